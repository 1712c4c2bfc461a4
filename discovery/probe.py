"""Feed probe engine: find the preferred feed URL on one domain."""

from __future__ import annotations

from typing import Sequence

from core.config import DiscoveryConfig
from core.models import FetchedDoc
from core.structured_logging import EventLogger
from fetcher.http import HttpFetcher


def looks_like_feed(doc: FetchedDoc) -> bool:
    """200 response whose Content-Type mentions xml or rss (plain substring match)."""
    if doc.status_code != 200:
        return False
    content_type = doc.content_type
    return any(marker in content_type for marker in DiscoveryConfig.FEED_CONTENT_TYPE_MARKERS)


class FeedProber:
    """
    Try well-known feed paths on a domain in preference order.

    Holds no per-domain state, so one instance is shared by all scanner
    workers.
    """

    def __init__(
        self,
        fetcher: HttpFetcher | None = None,
        logger: EventLogger | None = None,
        patterns: Sequence[str] = DiscoveryConfig.FEED_PATTERNS,
    ) -> None:
        self.logger = logger or EventLogger()
        self.fetcher = fetcher or HttpFetcher(logger=self.logger)
        self.patterns = tuple(patterns)

    def candidate_urls(self, domain: str) -> list[str]:
        """Feed URLs to try for `domain`, in order."""
        return [f"https://{domain}{pattern}" for pattern in self.patterns]

    def find_feed(self, domain: str) -> str:
        """
        Return the first candidate URL that serves a feed, or "" if none does.

        Unsafe URLs, network errors and non-feed responses all just move on to
        the next pattern.
        """
        self.logger.debug("probe_domain_started", domain=domain)
        for feed_url in self.candidate_urls(domain):
            fetched_doc, fetch_log = self.fetcher.fetch(feed_url)
            if fetched_doc is None:
                self.logger.debug(
                    "probe_candidate_skipped",
                    domain=domain,
                    url=feed_url,
                    error_code=fetch_log.error_code.value if fetch_log.error_code else None,
                    error=fetch_log.error_message,
                )
                continue
            if looks_like_feed(fetched_doc):
                self.logger.debug("probe_feed_found", domain=domain, url=feed_url)
                return feed_url

        self.logger.debug("probe_no_feed", domain=domain, patterns=list(self.patterns))
        return ""
