"""Page link harvester: collect linked domains from one seed page."""

from __future__ import annotations

import codecs
from html.parser import HTMLParser
from urllib.parse import urlsplit

import requests

from core.config import DiscoveryConfig
from core.errors import DomainExtractionError, HarvestError, UrlValidationError
from core.structured_logging import EventLogger
from discovery.domains import check_hostname
from fetcher.http import (
    BodyLimitExceeded,
    HttpFetcher,
    RedirectBlocked,
    fetch_deadline,
    iter_body,
)


def _hostname_from_href(href: str) -> str | None:
    """Return the hostname an href points at, or None for relative/bad links."""
    try:
        parsed = urlsplit(href)
        hostname = parsed.hostname
    except ValueError:
        return None
    if not parsed.netloc or not hostname:
        return None
    try:
        return check_hostname(hostname)
    except DomainExtractionError:
        return None


def _charset_from_content_type(content_type: str) -> str:
    """Charset named in a Content-Type header, else utf-8."""
    # requests falls back to ISO-8859-1 for text/* without a charset.
    for param in content_type.split(";")[1:]:
        key, _, value = param.strip().partition("=")
        if key.strip().lower() == "charset" and value.strip(" \"'"):
            return value.strip(" \"'")
    return "utf-8"


class _AnchorDomainCollector(HTMLParser):
    """Collect unique hostnames from anchor hrefs, fed incrementally."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.domains: set[str] = set()
        self.anchor_count = 0
        self.skipped_count = 0

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag != "a":
            return
        for name, value in attrs:
            if name != "href":
                continue
            self.anchor_count += 1
            hostname = _hostname_from_href((value or "").strip())
            if hostname is None:
                self.skipped_count += 1
                continue
            self.domains.add(hostname)


class PageLinkHarvester:
    """Fetch one page and return every domain its anchors link to."""

    def __init__(
        self,
        fetcher: HttpFetcher | None = None,
        logger: EventLogger | None = None,
        max_body_bytes: int = DiscoveryConfig.MAX_PAGE_BYTES,
    ) -> None:
        self.logger = logger or EventLogger()
        self.fetcher = fetcher or HttpFetcher(logger=self.logger)
        self.max_body_bytes = max_body_bytes

    def harvest(self, page_url: str) -> set[str]:
        """
        Stream `page_url` through an HTML tokenizer and collect anchor domains.

        The request, its redirects and the body read share one timeout.

        Raises:
            UrlValidationError: If the page URL is unsafe.
            HarvestError: If the page cannot be fetched, is too slow, or is
                larger than max_body_bytes.
        """
        deadline = fetch_deadline(self.fetcher.timeout_seconds)
        try:
            response, final_url = self.fetcher.open(page_url, deadline=deadline)
        except UrlValidationError:
            raise
        except (RedirectBlocked, requests.RequestException) as exc:
            raise HarvestError(f"error fetching page {page_url}: {exc}") from exc

        try:
            if response.status_code != 200:
                self.logger.warn(
                    "harvest_unexpected_status",
                    url=page_url,
                    final_url=final_url,
                    status_code=response.status_code,
                )
            collector = self._collect(response, deadline)
        except (BodyLimitExceeded, requests.RequestException) as exc:
            raise HarvestError(f"error reading page {page_url}: {exc}") from exc
        finally:
            response.close()

        self.logger.debug(
            "harvest_completed",
            url=page_url,
            final_url=final_url,
            anchors=collector.anchor_count,
            skipped=collector.skipped_count,
            domains=len(collector.domains),
        )
        return collector.domains

    def _collect(self, response: requests.Response, deadline: float) -> _AnchorDomainCollector:
        """Decode the body chunk by chunk and tokenize it as it arrives."""
        encoding = _charset_from_content_type(response.headers.get("content-type", ""))
        try:
            decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        except LookupError:
            decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

        collector = _AnchorDomainCollector()
        for chunk in iter_body(response, deadline, self.max_body_bytes):
            collector.feed(decoder.decode(chunk))
        collector.feed(decoder.decode(b"", final=True))
        collector.close()
        return collector
