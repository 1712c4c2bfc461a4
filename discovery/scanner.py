"""Concurrent domain scanner: probe many domains at once and dedupe results."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Iterable

from core.config import DiscoveryConfig
from core.structured_logging import EventLogger
from discovery.probe import FeedProber


class ScanResultSet:
    """Domain -> feed URL map that accepts at most one feed per domain."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._feeds: dict[str, str] = {}

    def add(self, domain: str, feed_url: str) -> bool:
        """Record a feed for `domain`; return False if the domain already has one."""
        with self._lock:
            if domain in self._feeds:
                return False
            self._feeds[domain] = feed_url
            return True

    def snapshot(self) -> list[str]:
        """Feed URLs in acceptance order."""
        with self._lock:
            return list(self._feeds.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._feeds)


class DomainScanner:
    """Fan a FeedProber out across a set of domains."""

    def __init__(
        self,
        prober: FeedProber | None = None,
        max_workers: int | None = DiscoveryConfig.MAX_SCAN_WORKERS,
        logger: EventLogger | None = None,
    ) -> None:
        if max_workers is not None and max_workers < 1:
            raise ValueError("max_workers must be None or >= 1")
        self.logger = logger or EventLogger()
        self.prober = prober or FeedProber(logger=self.logger)
        self.max_workers = max_workers

    def _worker_count(self, domain_count: int) -> int:
        if self.max_workers is None:
            return domain_count
        return min(self.max_workers, domain_count)

    def _probe(self, domain: str, results: ScanResultSet) -> None:
        feed_url = self.prober.find_feed(domain)
        if feed_url and not results.add(domain, feed_url):
            self.logger.debug("scan_duplicate_domain", domain=domain, url=feed_url)

    def scan(self, domains: Iterable[str]) -> list[str]:
        """
        Probe every domain concurrently and return the discovered feed URLs.

        At most one feed per domain. Order follows task completion and is not
        stable between runs.
        """
        unique_domains = sorted(set(domains))
        if not unique_domains:
            return []

        results = ScanResultSet()
        workers = self._worker_count(len(unique_domains))
        self.logger.debug("scan_started", domains=len(unique_domains), workers=workers)

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="rssffs-probe") as executor:
            futures = {
                executor.submit(self._probe, domain, results): domain
                for domain in unique_domains
            }
            for future in as_completed(futures):
                domain = futures[future]
                try:
                    future.result()
                except Exception as exc:
                    self.logger.error(
                        "scan_domain_error",
                        domain=domain,
                        error_type=type(exc).__name__,
                        error=str(exc),
                    )

        feeds = results.snapshot()
        self.logger.debug("scan_completed", domains=len(unique_domains), feeds=len(feeds))
        return feeds
