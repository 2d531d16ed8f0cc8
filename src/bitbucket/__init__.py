"""Bitbucket Cloud client pieces: request executor, repository listing, contributor scan."""

from .contributors import ContributorCollector
from .http_client import RequestExecutor
from .repositories import list_repositories

__all__ = ["ContributorCollector", "RequestExecutor", "list_repositories"]
