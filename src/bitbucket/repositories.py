"""Repository listing for a workspace, from the API or a saved JSON file."""

from __future__ import annotations

import json
import os
from typing import List, Optional
from urllib.parse import quote

from .config import PAGE_LEN
from .errors import ListingFailure
from .http_client import RequestExecutor


def workspace_path(workspace: str) -> str:
    """API path of the workspace's repository listing."""
    return f"/repositories/{quote(workspace, safe='')}"


def load_repositories_file(path: str) -> List[str]:
    """Read a flat JSON array of repository slugs; any problem is a ListingFailure."""
    print(f"Reading repositories from file: {path}")
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, json.JSONDecodeError) as exc:
        print(f"[error] reading repositories from file: {exc}")
        raise ListingFailure(f"cannot read repositories file {path}: {exc}") from exc

    if not isinstance(data, list) or not all(isinstance(slug, str) for slug in data):
        print(f"[error] repositories file {path} is not a JSON array of strings")
        raise ListingFailure(f"repositories file {path} must contain a JSON array of strings")
    return data


def save_repositories_file(path: str, repositories: List[str]) -> None:
    """Persist the slugs as a flat JSON array, creating parent folders as needed."""
    print(f"Saving repositories to file: {path}")
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(repositories, fh)


def fetch_repositories(executor: RequestExecutor, workspace: str) -> List[str]:
    """Walk the listing endpoint's cursors, collecting slugs in response order."""
    repositories: List[str] = []
    page_len = executor.settings.page_len or PAGE_LEN
    for page in executor.iter_pages(workspace_path(workspace), params={"pagelen": page_len}):
        for repo in page.get("values") or []:
            repositories.append(repo["slug"])
    return repositories


def list_repositories(executor: RequestExecutor,
                      workspace: str,
                      repositories_file: Optional[str] = None,
                      save_repositories: Optional[str] = None) -> List[str]:
    """Return the workspace's repository slugs.

    A supplied ``repositories_file`` bypasses the network entirely. Otherwise the
    listing endpoint is paginated and, when ``save_repositories`` is given, the
    result is written there before returning. Every failure is a ListingFailure.
    """
    if repositories_file:
        return load_repositories_file(repositories_file)

    try:
        repositories = fetch_repositories(executor, workspace)
        if save_repositories:
            save_repositories_file(save_repositories, repositories)
    except ListingFailure:
        raise
    except Exception as exc:
        print(f"[error] fetching repositories for {workspace}: {exc}")
        raise ListingFailure(f"cannot list repositories for workspace {workspace}: {exc}") from exc
    return repositories


__all__ = [
    "workspace_path",
    "load_repositories_file",
    "save_repositories_file",
    "fetch_repositories",
    "list_repositories",
]
