"""HTTP fetcher with timeout, redirect cap, and SSRF protections."""

from __future__ import annotations

import time
from typing import Iterator
from urllib.parse import urljoin

import requests

from core.config import DiscoveryConfig
from core.errors import UrlValidationError
from core.models import FetchErrorCode, FetchedDoc, FetchLog
from core.structured_logging import EventLogger
from fetcher.logging import fetch_log_to_dict
from fetcher.safety import validate_url

_CHUNK_SIZE = 8192


class RedirectBlocked(Exception):
    """Raised when a redirect points at a malformed or unsafe URL."""


class BodyLimitExceeded(Exception):
    """Raised when a response body exceeds the configured size."""


def _is_redirect(response: requests.Response) -> bool:
    return 300 <= response.status_code < 400 and bool(response.headers.get("location"))


def fetch_deadline(timeout_seconds: float) -> float:
    """Monotonic instant by which a whole fetch must be finished."""
    return time.monotonic() + timeout_seconds


def _remaining(deadline: float) -> float:
    """Seconds left before `deadline`; raise requests.Timeout once it passed."""
    left = deadline - time.monotonic()
    if left <= 0:
        raise requests.Timeout("fetch deadline exceeded")
    return left


def _follow_redirects(
    session: requests.Session,
    url: str,
    deadline: float,
    max_redirects: int,
    user_agent: str,
) -> tuple[requests.Response, str]:
    """
    Fetch a URL, following at most `max_redirects` hops.

    Once the cap is reached the redirect response itself is returned rather
    than treated as an error. Every hop target is re-validated, and all hops
    share one deadline.
    """
    current_url = url
    hops = 0

    while True:
        response = session.get(
            current_url,
            headers={"User-Agent": user_agent},
            timeout=_remaining(deadline),
            allow_redirects=False,
            stream=True,
        )

        if not _is_redirect(response) or hops >= max_redirects:
            return response, current_url

        location = response.headers["location"]
        response.close()
        try:
            next_url = urljoin(current_url, location)
        except ValueError as exc:
            raise RedirectBlocked(f"malformed redirect location {location!r}: {exc}") from exc
        try:
            validate_url(next_url)
        except UrlValidationError as exc:
            raise RedirectBlocked(f"redirect to {next_url} blocked: {exc}") from exc

        current_url = next_url
        hops += 1


def iter_body(
    response: requests.Response,
    deadline: float,
    max_bytes: int,
) -> Iterator[bytes]:
    """
    Yield body chunks until the stream ends, the deadline passes or the
    body grows past `max_bytes`.

    Raises:
        requests.Timeout: If the deadline passes mid-body.
        BodyLimitExceeded: If more than `max_bytes` arrive.
    """
    total = 0
    for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
        _remaining(deadline)
        if not chunk:
            continue
        total += len(chunk)
        if total > max_bytes:
            raise BodyLimitExceeded(f"response exceeds {max_bytes} bytes")
        yield chunk


def open_url(
    url: str,
    session: requests.Session | None = None,
    timeout_seconds: float = DiscoveryConfig.FETCH_TIMEOUT_SECONDS,
    max_redirects: int = DiscoveryConfig.MAX_REDIRECTS,
    user_agent: str = DiscoveryConfig.USER_AGENT,
    deadline: float | None = None,
) -> tuple[requests.Response, str]:
    """
    Validate and open a URL for streaming; the caller must close the response.

    Pass `deadline` (see fetch_deadline) to keep reading the body under the
    same time budget as the request itself.

    Raises:
        UrlValidationError: If the URL is unsafe.
        RedirectBlocked: If a redirect hop is malformed or unsafe.
        requests.RequestException: On network failure or timeout.
    """
    validate_url(url)
    http_session = session or requests.Session()
    return _follow_redirects(
        http_session,
        url,
        deadline=deadline if deadline is not None else fetch_deadline(timeout_seconds),
        max_redirects=max_redirects,
        user_agent=user_agent,
    )


def fetch_url(
    url: str,
    session: requests.Session | None = None,
    timeout_seconds: float = DiscoveryConfig.FETCH_TIMEOUT_SECONDS,
    max_redirects: int = DiscoveryConfig.MAX_REDIRECTS,
    user_agent: str = DiscoveryConfig.USER_AGENT,
) -> tuple[FetchedDoc | None, FetchLog]:
    """Fetch status and headers for a URL without reading the body. Never raises."""
    start = time.monotonic()

    def _failed(error_code: FetchErrorCode, exc: Exception) -> tuple[None, FetchLog]:
        return None, FetchLog(
            url=url,
            error_code=error_code,
            error_message=str(exc),
            latency_ms=int((time.monotonic() - start) * 1000),
        )

    try:
        response, final_url = open_url(
            url,
            session=session,
            timeout_seconds=timeout_seconds,
            max_redirects=max_redirects,
            user_agent=user_agent,
        )
    except (UrlValidationError, RedirectBlocked) as exc:
        return _failed(FetchErrorCode.SECURITY_BLOCKED, exc)
    except requests.Timeout as exc:
        return _failed(FetchErrorCode.TIMEOUT, exc)
    except requests.RequestException as exc:
        return _failed(FetchErrorCode.FETCH_ERROR, exc)

    try:
        doc = FetchedDoc(
            status_code=response.status_code,
            final_url=final_url,
            headers={k.lower(): v for k, v in response.headers.items()},
            latency_ms=int((time.monotonic() - start) * 1000),
        )
    finally:
        response.close()

    log = FetchLog(
        url=url,
        status_code=doc.status_code,
        latency_ms=doc.latency_ms,
    )
    return doc, log


class HttpFetcher:
    """Shared HTTP settings for the harvester and prober, plus fetch logging."""

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout_seconds: float = DiscoveryConfig.FETCH_TIMEOUT_SECONDS,
        max_redirects: int = DiscoveryConfig.MAX_REDIRECTS,
        user_agent: str = DiscoveryConfig.USER_AGENT,
        logger: EventLogger | None = None,
    ) -> None:
        self.session = session or requests.Session()
        self.timeout_seconds = timeout_seconds
        self.max_redirects = max_redirects
        self.user_agent = user_agent
        self.logger = logger or EventLogger()

    def open(self, url: str, deadline: float | None = None) -> tuple[requests.Response, str]:
        """Open a URL for streaming. See open_url."""
        return open_url(
            url,
            session=self.session,
            timeout_seconds=self.timeout_seconds,
            max_redirects=self.max_redirects,
            user_agent=self.user_agent,
            deadline=deadline,
        )

    def fetch(self, url: str) -> tuple[FetchedDoc | None, FetchLog]:
        """Fetch status + headers for one URL and emit a debug fetch log."""
        fetched_doc, fetch_log = fetch_url(
            url,
            session=self.session,
            timeout_seconds=self.timeout_seconds,
            max_redirects=self.max_redirects,
            user_agent=self.user_agent,
        )
        self.logger.debug("fetch_completed", **fetch_log_to_dict(fetch_log))
        return fetched_doc, fetch_log
