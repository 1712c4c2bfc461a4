"""
Discover-and-subscribe pipeline for rssffs.

Run shape (linear, no retries):
resolve category → [clear category feeds] → discover feeds → subscribe

Discovery runs in one of two modes:
- single URL: probe only the seed URL's own domain
- traversal: harvest every domain linked from the seed page, then probe
  them all concurrently
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Optional

from core.errors import (
    CategoryResolutionError,
    DomainExtractionError,
    FeedReaderError,
    HarvestError,
    UrlValidationError,
)
from core.models import DiscoveryMode, RunResult, RunStatus
from core.settings import Settings
from core.structured_logging import EventLogger
from discovery.domains import extract_domain
from discovery.harvester import PageLinkHarvester
from discovery.probe import FeedProber
from discovery.scanner import DomainScanner
from fetcher.http import HttpFetcher

# Failures that end a run; anything else raised is a bug and propagates.
_FATAL_ERRORS = (
    FeedReaderError,
    DomainExtractionError,
    UrlValidationError,
    HarvestError,
)


# ============================================================================
# Collaborator Interfaces
# ============================================================================

class FeedReader(ABC):
    """
    Remote feed-reader account the pipeline subscribes into.

    Implementations raise FeedReaderError (CategoryResolutionError for
    unknown categories) on failure.
    """

    @abstractmethod
    def resolve_category(self, name: str) -> int:
        """Map a category name to its ID."""

    @abstractmethod
    def list_category_feeds(self, category_id: int) -> list[int]:
        """Return the IDs of feeds currently in a category."""

    @abstractmethod
    def delete_feed(self, feed_id: int) -> None:
        """Delete one feed subscription."""

    @abstractmethod
    def subscribe(self, category_id: int, feed_url: str) -> Optional[int]:
        """Subscribe a feed URL into a category."""


def resolve_single_url_mode(cli_value: Optional[bool], config_value: bool) -> bool:
    """
    Decide the discovery mode.

    An explicit CLI/form value (True or False) wins; None falls back to the
    configured default.
    """
    if cli_value is not None:
        return cli_value
    return config_value


# ============================================================================
# Pipeline Orchestrator
# ============================================================================

class Pipeline:
    """
    Coordinates category lookup, feed discovery and subscription.

    Usage:
        pipeline = Pipeline(feed_reader, harvester, prober, scanner)
        result = pipeline.run("https://news.example.com", category="Tech")
    """

    def __init__(
        self,
        feed_reader: FeedReader,
        harvester: PageLinkHarvester,
        prober: FeedProber,
        scanner: DomainScanner,
        logger: EventLogger | None = None,
        default_single_url_mode: bool = False,
    ) -> None:
        self.feed_reader = feed_reader
        self.harvester = harvester
        self.prober = prober
        self.scanner = scanner
        self.logger = logger or EventLogger()
        self.default_single_url_mode = default_single_url_mode

    def _clear_category(self, category_id: int) -> int:
        """Delete every feed in a category; return how many were deleted."""
        feed_ids = self.feed_reader.list_category_feeds(category_id)
        self.logger.info("category_clear_started", category_id=category_id, feeds=len(feed_ids))
        deleted = 0
        for feed_id in feed_ids:
            self.logger.debug("feed_delete_started", category_id=category_id, feed_id=feed_id)
            try:
                self.feed_reader.delete_feed(feed_id)
            except FeedReaderError as exc:
                self.logger.error(
                    "feed_delete_error",
                    category_id=category_id,
                    feed_id=feed_id,
                    error=str(exc),
                )
                continue
            deleted += 1
        return deleted

    def _discover_single_url(self, page_url: str) -> list[str]:
        """Probe only the seed URL's domain. The page itself is never fetched."""
        domain = extract_domain(page_url)
        self.logger.info("single_url_mode_started", domain=domain)
        feed = self.prober.find_feed(domain)
        if not feed:
            self.logger.info(
                "single_url_no_feed",
                domain=domain,
                patterns=list(self.prober.patterns),
            )
            return []
        self.logger.info("single_url_feed_found", domain=domain, url=feed)
        return [feed]

    def _discover_traversal(self, page_url: str) -> list[str]:
        """Harvest linked domains from the seed page and scan them all."""
        self.logger.info("traversal_mode_started", url=page_url)
        domains = self.harvester.harvest(page_url)
        self.logger.info("traversal_domains_found", url=page_url, domains=len(domains))
        if not domains:
            self.logger.warn("traversal_no_domains", url=page_url)
            return []

        feeds = self.scanner.scan(domains)
        self.logger.info("traversal_feeds_found", domains=len(domains), feeds=len(feeds))
        return feeds

    def _subscribe_all(
        self,
        result: RunResult,
        category_id: int,
        feeds: list[str],
        debug: bool,
    ) -> None:
        """Subscribe each feed; failures are logged and counted, never raised."""
        for feed in feeds:
            if debug:
                self.logger.debug("feed_subscribe_simulated", url=feed, category_id=category_id)
                result.success_count += 1
                continue
            try:
                self.feed_reader.subscribe(category_id, feed)
            except FeedReaderError as exc:
                result.failed_feeds.append(feed)
                self.logger.error(
                    "feed_subscribe_error",
                    url=feed,
                    category_id=category_id,
                    error=str(exc),
                )
                continue
            result.success_count += 1
            self.logger.info("feed_subscribed", url=feed, category_id=category_id)

    def run(
        self,
        page_url: str,
        category: str,
        *,
        debug: bool = False,
        clear_category_feeds: bool = False,
        single_url_mode: Optional[bool] = None,
    ) -> RunResult:
        """
        Discover feeds reachable from `page_url` and subscribe them to `category`.

        Args:
            page_url: Seed page (a bare domain is fine in single URL mode)
            category: Feed-reader category name
            debug: Simulate subscriptions instead of calling the reader
            clear_category_feeds: Delete the category's feeds first
            single_url_mode: True/False to force a mode, None for the default

        Returns:
            RunResult. On fatal failures (unknown category, unusable seed URL,
            seed page fetch failure) status is FAILED, success_count is 0 and
            error_type/error_message are set. Individual subscribe or delete
            failures never fail the run.
        """
        result = RunResult(page_url=page_url, category=category)
        if self.logger.run_id:
            result.run_id = self.logger.run_id
        use_single = resolve_single_url_mode(single_url_mode, self.default_single_url_mode)
        result.mode = DiscoveryMode.SINGLE_URL if use_single else DiscoveryMode.TRAVERSAL
        self.logger.info(
            "run_started",
            url=page_url,
            category=category,
            mode=result.mode.value,
            debug=debug,
            clear_category_feeds=clear_category_feeds,
        )

        try:
            try:
                category_id = self.feed_reader.resolve_category(category)
            except CategoryResolutionError:
                raise
            except FeedReaderError as exc:
                raise CategoryResolutionError(
                    f"error getting category ID for {category!r}: {exc}",
                    status_code=exc.status_code,
                ) from exc
            result.category_id = category_id

            if clear_category_feeds:
                result.deleted_feed_count = self._clear_category(category_id)

            if use_single:
                feeds = self._discover_single_url(page_url)
            else:
                feeds = self._discover_traversal(page_url)
            result.discovered_feeds = feeds

            self._subscribe_all(result, category_id, feeds, debug)

        except _FATAL_ERRORS as exc:
            result.status = RunStatus.FAILED
            result.success_count = 0
            result.error_type = type(exc).__name__
            result.error_message = str(exc)
            result.ended_at = datetime.now(UTC)
            self.logger.error(
                "run_failed",
                url=page_url,
                category=category,
                mode=result.mode.value,
                error_type=result.error_type,
                error=result.error_message,
            )
            return result

        result.status = RunStatus.COMPLETED
        result.ended_at = datetime.now(UTC)
        self.logger.info(
            "run_completed",
            url=page_url,
            category=category,
            mode=result.mode.value,
            discovered=len(result.discovered_feeds),
            subscribed=result.success_count,
            failed=len(result.failed_feeds),
        )
        return result


def build_pipeline(
    settings: Settings,
    logger: EventLogger | None = None,
    max_workers: int | None = None,
    feed_reader: FeedReader | None = None,
) -> Pipeline:
    """Wire the default collaborators from settings."""
    from feedreader.client import RSSReaderClient

    event_logger = logger or EventLogger()
    fetcher = HttpFetcher(logger=event_logger)
    prober = FeedProber(fetcher=fetcher, logger=event_logger)
    reader = feed_reader or RSSReaderClient(
        endpoint=settings.rss_reader_endpoint,
        api_key=settings.rss_reader_api_key,
    )
    return Pipeline(
        feed_reader=reader,
        harvester=PageLinkHarvester(fetcher=fetcher, logger=event_logger),
        prober=prober,
        scanner=DomainScanner(prober=prober, max_workers=max_workers, logger=event_logger),
        logger=event_logger,
        default_single_url_mode=settings.single_url_mode,
    )


def run(
    page_url: str,
    category: str,
    debug: bool,
    clear_category_feeds: bool,
    single_url_mode: Optional[bool],
    settings: Settings,
    logger: EventLogger | None = None,
    max_workers: int | None = None,
) -> RunResult:
    """Entry point used by the CLI: build the default pipeline and run it once."""
    pipeline = build_pipeline(settings, logger=logger, max_workers=max_workers)
    return pipeline.run(
        page_url,
        category,
        debug=debug,
        clear_category_feeds=clear_category_feeds,
        single_url_mode=single_url_mode,
    )
