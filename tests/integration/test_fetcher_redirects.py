"""Fetch layer: redirect cap, per-hop safety checks, error mapping."""

from __future__ import annotations

import time

import pytest
import requests

from core.errors import UrlValidationError
from core.models import FetchErrorCode
from fetcher.http import BodyLimitExceeded, HttpFetcher, fetch_deadline, fetch_url, iter_body, open_url
from http_fakes import DummyResponse, RoutedSession


def _redirect_chain(length: int) -> dict[str, DummyResponse]:
    """hop-0 -> hop-1 -> ... -> hop-<length>, each a 302."""
    return {
        f"https://example.com/hop-{index}": DummyResponse(302, headers={"location": f"/hop-{index + 1}"})
        for index in range(length)
    }


@pytest.mark.integration
def test_fetch_success_returns_headers_without_body(dns):
    """200 fetch returns lowercased headers and closes the response."""
    response = DummyResponse(200, headers={"Content-Type": "application/rss+xml"}, body=b"<rss/>")
    session = RoutedSession({"https://example.com/feed": response})

    doc, log = fetch_url("https://example.com/feed", session=session)

    assert doc is not None
    assert doc.status_code == 200
    assert doc.content_type == "application/rss+xml"
    assert doc.final_url == "https://example.com/feed"
    assert log.status_code == 200
    assert log.error_code is None
    assert response.closed
    assert session.kwargs[0]["allow_redirects"] is False
    assert session.kwargs[0]["stream"] is True
    assert 0 < session.kwargs[0]["timeout"] <= 10
    assert "User-Agent" in session.kwargs[0]["headers"]


@pytest.mark.integration
def test_redirects_up_to_cap_are_followed(dns):
    """Exactly 10 redirects still reach the final response."""
    routes = _redirect_chain(10)
    routes["https://example.com/hop-10"] = DummyResponse(200, headers={"content-type": "text/xml"})
    session = RoutedSession(routes)

    doc, log = fetch_url("https://example.com/hop-0", session=session)

    assert doc is not None
    assert doc.status_code == 200
    assert doc.final_url == "https://example.com/hop-10"
    assert len(session.calls) == 11
    assert log.error_code is None


@pytest.mark.integration
def test_redirect_beyond_cap_returns_last_response(dns):
    """The 11th redirect is not followed; the redirect response itself comes back."""
    session = RoutedSession(_redirect_chain(20))

    doc, log = fetch_url("https://example.com/hop-0", session=session)

    assert doc is not None
    assert doc.status_code == 302
    assert doc.final_url == "https://example.com/hop-10"
    assert len(session.calls) == 11
    assert log.error_code is None


@pytest.mark.integration
def test_custom_redirect_cap(dns):
    """max_redirects=0 returns the first response untouched."""
    session = RoutedSession(_redirect_chain(3))

    doc, _ = fetch_url("https://example.com/hop-0", session=session, max_redirects=0)

    assert doc is not None
    assert doc.status_code == 302
    assert session.calls == ["https://example.com/hop-0"]


@pytest.mark.integration
def test_redirect_into_private_network_is_blocked(dns):
    """Each redirect hop is re-validated before it is requested."""
    dns["intranet.example.com"] = {"10.0.0.5"}
    session = RoutedSession(
        {
            "https://example.com/feed": DummyResponse(
                301, headers={"location": "http://intranet.example.com/admin"}
            ),
        }
    )

    doc, log = fetch_url("https://example.com/feed", session=session)

    assert doc is None
    assert log.error_code == FetchErrorCode.SECURITY_BLOCKED
    assert session.calls == ["https://example.com/feed"]


@pytest.mark.integration
def test_private_target_is_never_requested(dns):
    """Validation happens before any request leaves."""
    dns["localhost"] = {"127.0.0.1"}
    session = RoutedSession()

    doc, log = fetch_url("http://localhost/resource", session=session)

    assert doc is None
    assert log.error_code == FetchErrorCode.SECURITY_BLOCKED
    assert session.calls == []


@pytest.mark.integration
@pytest.mark.parametrize(
    ("exc", "code"),
    [
        (requests.Timeout("slow network"), FetchErrorCode.TIMEOUT),
        (requests.ConnectionError("connection refused"), FetchErrorCode.FETCH_ERROR),
        (requests.exceptions.SSLError("bad cert"), FetchErrorCode.FETCH_ERROR),
    ],
)
def test_network_errors_map_to_error_codes(dns, exc: Exception, code: FetchErrorCode):
    """Network failures are returned as values, not raised."""
    session = RoutedSession({"https://example.com/slow": exc})

    doc, log = fetch_url("https://example.com/slow", session=session)

    assert doc is None
    assert log.error_code == code
    assert log.error_message


@pytest.mark.integration
def test_open_url_raises_validation_error(dns):
    """open_url surfaces unsafe URLs to the caller."""
    with pytest.raises(UrlValidationError):
        open_url("gopher://example.com/", session=RoutedSession())


@pytest.mark.integration
def test_http_fetcher_logs_each_fetch(dns, recording_logger):
    """HttpFetcher.fetch emits one debug fetch_completed event per request."""
    session = RoutedSession({"https://example.com/rss": DummyResponse(200, headers={"content-type": "text/xml"})})
    fetcher = HttpFetcher(session=session, logger=recording_logger)

    fetcher.fetch("https://example.com/rss")
    fetcher.fetch("https://example.com/missing")

    events = recording_logger.of_type("fetch_completed")
    assert [event["status_code"] for event in events] == [200, 404]
    assert all(event["level"] == "debug" for event in events)


@pytest.mark.integration
def test_malformed_redirect_location_is_blocked(dns):
    """A Location header that cannot be parsed ends the fetch as a value."""
    first = DummyResponse(301, headers={"location": "http://[::1"})
    session = RoutedSession({"https://example.com/index.xml": first})

    doc, log = fetch_url("https://example.com/index.xml", session=session)

    assert doc is None
    assert log.error_code == FetchErrorCode.SECURITY_BLOCKED
    assert "malformed redirect location" in log.error_message
    assert session.calls == ["https://example.com/index.xml"]
    assert first.closed


@pytest.mark.integration
def test_redirect_chain_shares_one_timeout(dns):
    """All hops draw from the same budget instead of a fresh timeout each."""
    session = RoutedSession(_redirect_chain(20), delay=0.1)

    started = time.monotonic()
    doc, log = fetch_url("https://example.com/hop-0", session=session, timeout_seconds=0.25)
    elapsed = time.monotonic() - started

    assert doc is None
    assert log.error_code == FetchErrorCode.TIMEOUT
    assert len(session.calls) < 11
    assert elapsed < 1.0
    timeouts = [kwargs["timeout"] for kwargs in session.kwargs]
    assert timeouts == sorted(timeouts, reverse=True)
    assert timeouts[0] <= 0.25


@pytest.mark.integration
def test_expired_deadline_stops_before_request(dns):
    session = RoutedSession()

    with pytest.raises(requests.Timeout):
        open_url("https://example.com/", session=session, deadline=time.monotonic() - 1)

    assert session.calls == []


@pytest.mark.unit
def test_iter_body_enforces_byte_limit():
    response = DummyResponse(200, body=b"x" * 20_000)

    with pytest.raises(BodyLimitExceeded):
        list(iter_body(response, fetch_deadline(10), max_bytes=10_000))


@pytest.mark.unit
def test_iter_body_enforces_deadline():
    response = DummyResponse(200, body=b"x" * 8192 * 10, chunk_delay=0.05)
    received: list[bytes] = []

    with pytest.raises(requests.Timeout):
        for chunk in iter_body(response, fetch_deadline(0.12), max_bytes=1_000_000):
            received.append(chunk)

    assert 0 < len(received) < 10
