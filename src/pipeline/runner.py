"""Entry points for running the Bitbucket contributor workflow."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Tuple

from src.bitbucket.config import COMMIT_FILTER, LOOKBACK_DAYS, ClientSettings
from src.bitbucket.contributors import ContributorCollector
from src.bitbucket.http_client import RequestExecutor
from src.bitbucket.repositories import list_repositories

from .config import parse_args, resolve_settings


@dataclass(frozen=True)
class RunSummary:
    """Outcome of a completed run."""

    workspace: str
    repository_count: int
    contributors: FrozenSet[str]
    skipped: Tuple[str, ...] = ()

    @property
    def contributor_count(self) -> int:
        return len(self.contributors)


def run(workspace: str,
        token: str,
        repositories_file: Optional[str] = None,
        save_repositories: Optional[str] = None,
        lookback_days: int = LOOKBACK_DAYS,
        strategy: str = COMMIT_FILTER,
        executor: Optional[RequestExecutor] = None) -> RunSummary:
    """List repositories, then collect unique contributors; any uncaught error is fatal."""
    print(f"Getting contributors from bitbucket workspace: {workspace}")
    executor = executor or RequestExecutor(ClientSettings.from_env(token))

    repositories = tuple(
        list_repositories(executor, workspace, repositories_file, save_repositories)
    )
    print(
        f"Finished getting all repositories for workspace {workspace}. "
        f"Count: {len(repositories)}."
    )

    collector = ContributorCollector(executor, lookback_days=lookback_days, strategy=strategy)
    contributors = collector.collect(workspace, repositories)
    print(
        f"Finished getting all unique contributors from workspace {workspace}. "
        f"Unique contributors count: {len(contributors)}."
    )
    if collector.skipped:
        print(f"[warn] {len(collector.skipped)} repositories skipped: {', '.join(collector.skipped)}")

    return RunSummary(
        workspace=workspace,
        repository_count=len(repositories),
        contributors=frozenset(contributors),
        skipped=tuple(collector.skipped),
    )


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point; exits with status 1 when the run fails."""
    args = parse_args(argv)
    settings = resolve_settings(args)
    try:
        run(
            settings.workspace,
            settings.token,
            repositories_file=settings.repositories_file,
            save_repositories=settings.save_repositories,
            lookback_days=settings.lookback_days,
            strategy=settings.commit_filter,
        )
    except Exception as exc:
        print(f"[error] Command to get bitbucket contributors failed: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
