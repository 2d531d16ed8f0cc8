"""Time-windowed aggregation of unique commit authors across a workspace."""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional, Sequence, Set
from urllib.parse import quote

from .config import COMMIT_FILTER, COMMIT_FILTER_CHOICES, LOOKBACK_DAYS, PAGE_LEN
from .errors import PerRepositoryCollectionFailure, RequestCancelledError
from .http_client import RequestExecutor
from .repositories import workspace_path


def commits_path(workspace: str, repository: str) -> str:
    """API path of a repository's commit history."""
    return f"{workspace_path(workspace)}/{quote(repository, safe='')}/commits"


def starting_date(days: int, now: Optional[dt.datetime] = None) -> dt.datetime:
    """Return the cutoff ``days`` before ``now`` (UTC)."""
    now = now or dt.datetime.now(dt.timezone.utc)
    return now - dt.timedelta(days=days)


def parse_commit_date(raw: Optional[str]) -> Optional[dt.datetime]:
    """Parse Bitbucket's ISO-8601 commit dates; naive values are taken as UTC."""
    if not raw:
        return None
    try:
        value = dt.datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    return value


def bitbucket_timestamp(value: dt.datetime) -> str:
    return value.astimezone(dt.timezone.utc).strftime("%Y-%m-%dT%H:%M:%S+00:00")


def date_filter(cutoff: dt.datetime) -> str:
    """Query-language filter restricting commits to those at or after ``cutoff``."""
    return f"date >= {bitbucket_timestamp(cutoff)}"


def commit_identity(commit: Dict[str, Any]) -> Optional[str]:
    """Linked account display name, falling back to the raw author string."""
    author = commit.get("author") or {}
    user = author.get("user") or {}
    return user.get("display_name") or author.get("raw") or None


def progress_modulus(total: int) -> int:
    """10 ** (digits(total) - 1), so a scan reports progress about ten times."""
    if total < 10:
        return 1
    return 10 ** (len(str(total)) - 1)


class ContributorCollector:
    """Scans each repository's commit history and accumulates contributor identities.

    Two filtering strategies are supported:

    * ``client``: the first page is requested with only ``pagelen`` and each
      commit's date is compared to the cutoff. Precondition: the API returns
      commits newest first. The scan of a repository stops at the first
      commit older than the cutoff, so later pages are never requested. If
      the ordering does not hold, eligible commits after that point are missed.
    * ``server``: the first request also carries a ``q`` date filter that the
      cursors carry forward. Older commits are still ignored if they appear,
      but the scan never stops early and does not depend on ordering.
    """

    def __init__(self,
                 executor: RequestExecutor,
                 lookback_days: int = LOOKBACK_DAYS,
                 strategy: str = COMMIT_FILTER,
                 now: Optional[dt.datetime] = None):
        if strategy not in COMMIT_FILTER_CHOICES:
            raise ValueError(f"unknown commit filter strategy: {strategy!r}")
        self.executor = executor
        self.lookback_days = lookback_days
        self.strategy = strategy
        self.now = now
        self.cutoff: Optional[dt.datetime] = None
        self.skipped: List[str] = []

    def _first_page_params(self, cutoff: dt.datetime) -> Dict[str, Any]:
        params: Dict[str, Any] = {"pagelen": self.executor.settings.page_len or PAGE_LEN}
        if self.strategy == "server":
            params["q"] = date_filter(cutoff)
        return params

    def _scan(self, workspace: str, repository: str, contributors: Set[str], cutoff: dt.datetime) -> None:
        pages = self.executor.iter_pages(
            commits_path(workspace, repository), params=self._first_page_params(cutoff)
        )
        for page in pages:
            for commit in page.get("values") or []:
                committed = parse_commit_date(commit.get("date"))
                if committed is None:
                    print(f"[warn] {repository}: skipping commit with unparseable date {commit.get('date')!r}")
                    continue
                if committed < cutoff:
                    if self.strategy == "client":
                        return
                    continue
                identity = commit_identity(commit)
                if identity:
                    contributors.add(identity)

    def scan_repository(self,
                        workspace: str,
                        repository: str,
                        contributors: Set[str],
                        cutoff: dt.datetime) -> None:
        """Add one repository's in-window authors to ``contributors``.

        Identities found before a failure stay in the set; the failure is
        re-raised as PerRepositoryCollectionFailure. Cancellation is not a
        per-repository failure and propagates unchanged.
        """
        try:
            self._scan(workspace, repository, contributors, cutoff)
        except RequestCancelledError:
            raise
        except Exception as exc:
            raise PerRepositoryCollectionFailure(repository, exc) from exc

    def collect(self, workspace: str, repositories: Sequence[str]) -> Set[str]:
        """Return the unique contributors of ``repositories`` within the lookback window."""
        cutoff = starting_date(self.lookback_days, self.now)
        self.cutoff = cutoff
        self.skipped = []
        contributors: Set[str] = set()
        total = len(repositories)
        modulus = progress_modulus(total)

        for index, repository in enumerate(repositories, start=1):
            try:
                self.scan_repository(workspace, repository, contributors, cutoff)
            except PerRepositoryCollectionFailure as exc:
                print(f"[error] fetching contributors for repository {repository}: {exc.cause}")
                self.skipped.append(repository)

            if index % modulus == 0:
                print(
                    f"Processed {index} repositories out of {total}. "
                    f"Current total unique contributors: {len(contributors)}."
                )

        return contributors


__all__ = [
    "commits_path",
    "starting_date",
    "parse_commit_date",
    "bitbucket_timestamp",
    "date_filter",
    "commit_identity",
    "progress_modulus",
    "ContributorCollector",
]
