"""Exception hierarchy for Bitbucket requests, repository listing, and collection."""

from __future__ import annotations

from typing import Optional


class BitbucketError(Exception):
    """Base class for every error raised by the contributor workflow."""


class RequestError(BitbucketError):
    """A single logical request could not be completed."""

    def __init__(self, message: str, *, url: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status = status


class NonRetryableRequestError(RequestError):
    """Terminal HTTP status or an error that cannot be classified as transient."""


class RetryableRequestError(RequestError):
    """Transient HTTP status or transport failure; absorbed by the retry loop."""


class RetriesExhaustedError(NonRetryableRequestError):
    """The configured attempt ceiling was reached on a retryable failure."""


class RequestCancelledError(RequestError):
    """The run's cancellation event was set before a request attempt."""


class ListingFailure(BitbucketError):
    """The repository list could not be obtained; fatal for the run."""


class PerRepositoryCollectionFailure(BitbucketError):
    """Scanning one repository's commits failed; the repository is skipped."""

    def __init__(self, repository: str, cause: Exception):
        super().__init__(f"{repository}: {cause}")
        self.repository = repository
        self.cause = cause


__all__ = [
    "BitbucketError",
    "RequestError",
    "NonRetryableRequestError",
    "RetryableRequestError",
    "RetriesExhaustedError",
    "RequestCancelledError",
    "ListingFailure",
    "PerRepositoryCollectionFailure",
]
