"""Command-line configuration for the Bitbucket contributor run."""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from typing import List, Optional

from src.bitbucket.config import (
    COMMIT_FILTER,
    COMMIT_FILTER_CHOICES,
    DATA_DIR,
    DEFAULT_REPOSITORIES_FILE,
    LOOKBACK_DAYS,
)
from src.secrets import resolve_token


@dataclass(frozen=True)
class RunSettings:
    """Resolved runtime settings for one contributor run."""

    workspace: str
    token: str
    repositories_file: Optional[str]
    save_repositories: Optional[str]
    lookback_days: int
    commit_filter: str


def save_repositories_path(value: Optional[str]) -> str:
    """Map a --save-repositories value to a file under the data directory."""

    cleansed = (value or "").strip()
    if not cleansed:
        return DEFAULT_REPOSITORIES_FILE
    return f"{DATA_DIR}/{cleansed}"


def existing_repositories_file(value: Optional[str]) -> str:
    """Validate a --repositories value: non-blank and pointing at an existing file."""

    cleansed = (value or "").strip()
    if not cleansed:
        raise argparse.ArgumentTypeError("Invalid file name")
    if not os.path.exists(cleansed):
        raise argparse.ArgumentTypeError(f"File {cleansed} does not exist")
    return cleansed


def positive_days(value: str) -> int:
    try:
        days = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid day count: {value!r}") from None
    if days <= 0:
        raise argparse.ArgumentTypeError("day count must be positive")
    return days


def build_arg_parser() -> argparse.ArgumentParser:
    """Return the CLI parser: ``bitbucket get-contributors -w WORKSPACE -t TOKEN ...``."""

    parser = argparse.ArgumentParser(
        prog="bitbucket-contributors",
        description="Count unique commit authors across a code-hosting workspace.",
    )
    providers = parser.add_subparsers(dest="provider", required=True)
    bitbucket = providers.add_parser("bitbucket", help="Bitbucket Cloud workspaces")
    actions = bitbucket.add_subparsers(dest="action", required=True)

    contributors = actions.add_parser(
        "get-contributors",
        help="Collect unique contributors from recent commits in every repository",
    )
    contributors.add_argument("-t", "--token", default=None, help="Access token")
    contributors.add_argument("-w", "--workspace", required=True, help="Workspace")
    contributors.add_argument("--days", type=positive_days, default=LOOKBACK_DAYS,
                              help="Lookback window in days")
    contributors.add_argument("--commit-filter", choices=COMMIT_FILTER_CHOICES, default=COMMIT_FILTER,
                              help="Filter commits client-side (early stop) or with a server-side query")
    source = contributors.add_mutually_exclusive_group()
    source.add_argument("--save-repositories", nargs="?", const="",
                        default=None, type=save_repositories_path, metavar="FILE",
                        help=f"Save repositories to a file under {DATA_DIR}")
    source.add_argument("--repositories", type=existing_repositories_file, default=None,
                        metavar="FILE", help="Repositories file")
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments; accepts argv overrides for testing."""

    parser = build_arg_parser()
    args = parser.parse_args(argv)
    args.token = resolve_token(args.token)
    if not args.token:
        parser.error("an access token is required (-t/--token or BITBUCKET_TOKEN)")
    return args


def resolve_settings(args: argparse.Namespace) -> RunSettings:
    """Return immutable settings from parsed arguments."""

    return RunSettings(
        workspace=args.workspace,
        token=args.token,
        repositories_file=args.repositories,
        save_repositories=args.save_repositories,
        lookback_days=int(args.days),
        commit_filter=args.commit_filter,
    )


__all__ = [
    "RunSettings",
    "save_repositories_path",
    "existing_repositories_file",
    "positive_days",
    "build_arg_parser",
    "parse_args",
    "resolve_settings",
]
