"""Central configuration constants for the Bitbucket contributor workflow."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import FrozenSet, Optional

BASE_URL = os.getenv("BITBUCKET_API_BASE_URL", "https://api.bitbucket.org/2.0")
USER_AGENT = "bitbucket-contributors/1.0"
PAGE_LEN = int(os.getenv("BITBUCKET_PAGE_LEN", "100"))
REQUEST_TIMEOUT = int(os.getenv("BITBUCKET_REQUEST_TIMEOUT", "90"))
MIN_DELAY_SEC = float(os.getenv("MIN_DELAY_SEC", "5"))
RATE_LIMIT_MIN_DELAY_SEC = float(os.getenv("RATE_LIMIT_MIN_DELAY_SEC", "120"))
MAX_DELAY_SEC = float(os.getenv("MAX_DELAY_SEC", "300"))
MAX_ATTEMPTS = int(os.getenv("MAX_ATTEMPTS", "0"))  # 0 = no cap
LOOKBACK_DAYS = int(os.getenv("LOOKBACK_DAYS", "30"))
COMMIT_FILTER = os.getenv("COMMIT_FILTER", "client")  # "client" or "server"
DATA_DIR = "/data"
DEFAULT_REPOSITORIES_FILE = os.getenv("REPOSITORIES_FILE", f"{DATA_DIR}/repositories.json")

NON_RETRYABLE_STATUS_CODES: FrozenSet[int] = frozenset({400, 401, 403, 404, 500})
RATE_LIMIT_STATUS = 429
COMMIT_FILTER_CHOICES = ("client", "server")


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff parameters shared by every request of a run."""

    min_delay: float = MIN_DELAY_SEC
    rate_limit_min_delay: float = RATE_LIMIT_MIN_DELAY_SEC
    max_delay: float = MAX_DELAY_SEC
    max_attempts: int = MAX_ATTEMPTS
    jitter_low: float = 0.9
    jitter_high: float = 1.1


@dataclass(frozen=True)
class ClientSettings:
    """Immutable, run-scoped HTTP configuration handed to the request executor."""

    token: Optional[str]
    base_url: str = BASE_URL
    user_agent: str = USER_AGENT
    timeout: int = REQUEST_TIMEOUT
    page_len: int = PAGE_LEN
    retry: RetryPolicy = field(default_factory=RetryPolicy)

    @classmethod
    def from_env(cls, token: Optional[str]) -> "ClientSettings":
        return cls(
            token=token,
            base_url=BASE_URL,
            user_agent=USER_AGENT,
            timeout=REQUEST_TIMEOUT,
            page_len=PAGE_LEN,
            retry=RetryPolicy(
                min_delay=MIN_DELAY_SEC,
                rate_limit_min_delay=RATE_LIMIT_MIN_DELAY_SEC,
                max_delay=MAX_DELAY_SEC,
                max_attempts=MAX_ATTEMPTS,
            ),
        )


__all__ = [
    "BASE_URL",
    "USER_AGENT",
    "PAGE_LEN",
    "REQUEST_TIMEOUT",
    "MIN_DELAY_SEC",
    "RATE_LIMIT_MIN_DELAY_SEC",
    "MAX_DELAY_SEC",
    "MAX_ATTEMPTS",
    "LOOKBACK_DAYS",
    "COMMIT_FILTER",
    "COMMIT_FILTER_CHOICES",
    "DATA_DIR",
    "DEFAULT_REPOSITORIES_FILE",
    "NON_RETRYABLE_STATUS_CODES",
    "RATE_LIMIT_STATUS",
    "RetryPolicy",
    "ClientSettings",
]
