"""HTTP helpers with retry/backoff/jitter logic for the Bitbucket REST API."""

from __future__ import annotations

import random
import threading
import time
from typing import Any, Dict, Iterator, Optional

import requests

from .config import NON_RETRYABLE_STATUS_CODES, RATE_LIMIT_STATUS, ClientSettings, RetryPolicy
from .errors import (
    NonRetryableRequestError,
    RequestCancelledError,
    RetriesExhaustedError,
    RetryableRequestError,
)


def compute_delay(attempt: int, status: Optional[int], policy: RetryPolicy) -> float:
    """Exponential delay for the given zero-based attempt, capped at max_delay."""
    base = policy.rate_limit_min_delay if status == RATE_LIMIT_STATUS else policy.min_delay
    return min(policy.max_delay, base * (2 ** attempt))


def with_jitter(delay: float, policy: RetryPolicy) -> float:
    """Spread the delay by a random factor to avoid synchronized retries."""
    return delay * random.uniform(policy.jitter_low, policy.jitter_high)


def error_message(resp: requests.Response) -> str:
    """Extract the human-readable message from a Bitbucket error payload."""
    try:
        body = resp.json()
    except Exception:
        return (resp.text or "")[:300]
    if not isinstance(body, dict):
        return str(body)[:300]
    err = body.get("error")
    if isinstance(err, dict):
        return err.get("message") or err.get("detail") or str(err)
    return body.get("message") or str(err or body)[:300]


def log_http_error(resp: requests.Response, url: str) -> None:
    """Print a short, human-readable message when Bitbucket returns an error."""
    print(f"[error] HTTP {resp.status_code} for {url}\n  -> {error_message(resp)}")


class RequestExecutor:
    """Issues logical requests against the Bitbucket API, retrying transient failures.

    Non-retryable statuses surface immediately as NonRetryableRequestError. Every
    other HTTP error status and every transport failure is retried with
    exponential backoff; retries are unbounded unless the policy sets
    ``max_attempts``.
    """

    def __init__(
        self,
        settings: ClientSettings,
        session: Optional[requests.Session] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.settings = settings
        self.cancel_event = cancel_event
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Accept": "application/json",
                "User-Agent": settings.user_agent,
            }
        )
        if settings.token:
            self.session.headers["Authorization"] = f"Bearer {settings.token}"

    def resolve_url(self, url: str) -> str:
        """Join relative API paths onto the base URL; cursors pass through untouched."""
        if url.startswith(("http://", "https://")):
            return url
        return f"{self.settings.base_url.rstrip('/')}/{url.lstrip('/')}"

    def _check_cancelled(self, url: str) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise RequestCancelledError(f"request cancelled: {url}", url=url)

    def _sleep(self, wait: float) -> None:
        if self.cancel_event is not None:
            self.cancel_event.wait(wait)
        else:
            time.sleep(wait)

    def execute(self, method: str, url: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        """Perform one logical request, retrying until success or a terminal error."""
        target = self.resolve_url(url)
        policy = self.settings.retry
        attempt = 0

        while True:
            self._check_cancelled(target)
            status: Optional[int] = None
            try:
                resp = self.session.request(
                    method, target, params=params, timeout=self.settings.timeout
                )
            except requests.RequestException as exc:
                failure = RetryableRequestError(str(exc) or exc.__class__.__name__, url=target)
            else:
                if 200 <= resp.status_code < 300:
                    return resp
                status = resp.status_code
                if status in NON_RETRYABLE_STATUS_CODES:
                    log_http_error(resp, target)
                    raise NonRetryableRequestError(
                        f"HTTP {status} for {target}: {error_message(resp)}",
                        url=target,
                        status=status,
                    )
                failure = RetryableRequestError(f"HTTP {status}", url=target, status=status)

            if policy.max_attempts and attempt + 1 >= policy.max_attempts:
                raise RetriesExhaustedError(
                    f"giving up on {target} after {attempt + 1} attempts: {failure}",
                    url=target,
                    status=status,
                ) from failure

            wait = with_jitter(compute_delay(attempt, status, policy), policy)
            tag = f"backoff {status}" if status == RATE_LIMIT_STATUS else f"retry {attempt + 1}"
            print(f"[{tag}] {failure} for {target} -> sleep {wait:.1f}s")
            self._sleep(wait)
            attempt += 1

    def get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """GET a URL and decode its JSON object body."""
        resp = self.execute("GET", url, params=params)
        try:
            payload = resp.json()
        except ValueError as exc:
            raise NonRetryableRequestError(
                f"invalid JSON from {self.resolve_url(url)}", url=url, status=resp.status_code
            ) from exc
        if not isinstance(payload, dict):
            raise NonRetryableRequestError(
                f"expected a JSON object from {self.resolve_url(url)}, got {type(payload).__name__}",
                url=url,
                status=resp.status_code,
            )
        return payload

    def iter_pages(self, path: str, params: Optional[Dict[str, Any]] = None) -> Iterator[Dict[str, Any]]:
        """Yield page payloads by following ``next`` cursors until none is returned.

        ``params`` only go on the first request; a cursor already encodes every
        query parameter and is requested verbatim.
        """
        url: Optional[str] = path
        page_params = params
        while url:
            payload = self.get_json(url, params=page_params)
            yield payload
            url = payload.get("next") or None
            page_params = None


__all__ = [
    "compute_delay",
    "with_jitter",
    "error_message",
    "log_http_error",
    "RequestExecutor",
]
