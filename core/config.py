"""
Default discovery configuration for rssffs.

These settings bound every outbound request the feed finder makes: which
paths are probed, how long a request may take, how many redirects are
followed, and which address ranges are never contacted (SSRF prevention).

Per-deployment values (reader endpoint, API key, default mode) live in
core.settings and are loaded from the environment.
"""

from typing import Optional, Set, Tuple


class DiscoveryConfig:
    """
    Fixed probing and safety settings.

    Values are class attributes so tests and callers can read them without
    instantiating anything.
    """

    # ========================================================================
    # Probing
    # ========================================================================

    # Well-known feed paths, in preference order. First match wins.
    FEED_PATTERNS: Tuple[str, ...] = (
        "/index.xml",
        "/feed",
        "/feed.xml",
        "/rss",
        "/rss.xml",
        "/atom.xml",
        "/?format=rss",
    )
    """Feed paths tried per domain, highest preference first."""

    # Case-sensitive substrings of Content-Type that mark a response as a feed
    FEED_CONTENT_TYPE_MARKERS: Tuple[str, ...] = ("xml", "rss")
    """A 200 response whose Content-Type contains any of these is a feed."""

    # Worker ceiling for the domain scanner. None = one worker per domain.
    MAX_SCAN_WORKERS: Optional[int] = None
    """Max concurrent domain probes (None keeps one worker per domain)."""

    # ========================================================================
    # Fetch-Layer Constraints
    # ========================================================================

    # Whole-exchange budget: every redirect hop and the body read share it
    FETCH_TIMEOUT_SECONDS: int = 10
    """Maximum time for a single page fetch or probe, redirects included (seconds)."""

    # Past this many hops the last response is accepted as-is
    MAX_REDIRECTS: int = 10
    """Maximum redirect hops per fetch."""

    MAX_PAGE_BYTES: int = 5_000_000  # 5 MB
    """Largest seed page body the link harvester will read."""

    ALLOWED_PROTOCOLS: Set[str] = {"http", "https"}
    """Only HTTP(S) allowed."""

    # IP blocklist: private/internal IPs cannot be fetched (SSRF prevention)
    BLOCKED_IP_RANGES: list[str] = [
        # IPv4
        "10.0.0.0/8",           # Private
        "172.16.0.0/12",        # Private
        "192.168.0.0/16",       # Private
        "127.0.0.0/8",          # Loopback
        "169.254.0.0/16",       # Link-local
        # IPv6
        "::1/128",              # Loopback
        "fe80::/10",            # Link-local
        "fc00::/7",             # Unique local addresses (ULA)
    ]
    """IP ranges that are never fetched (SSRF prevention)."""

    MAX_HOSTNAME_LENGTH: int = 253
    """Longest hostname accepted as a domain."""

    USER_AGENT: str = "rssffs/0.1 (+https://github.com/toozej/RSSFFS)"
    """User-Agent header sent with page fetches and probes."""

    # ========================================================================
    # Feed Reader API
    # ========================================================================

    READER_TIMEOUT_SECONDS: int = 10
    """Timeout for feed-reader API calls (seconds)."""

    @classmethod
    def validate(cls) -> None:
        """
        Validate configuration at startup.

        Raises:
            AssertionError: If any constraint is violated.
        """
        assert cls.FEED_PATTERNS, "FEED_PATTERNS must not be empty"

        assert all(
            pattern.startswith("/") for pattern in cls.FEED_PATTERNS
        ), "FEED_PATTERNS entries must start with '/'"

        assert (
            cls.FETCH_TIMEOUT_SECONDS > 0
        ), "FETCH_TIMEOUT_SECONDS must be > 0"

        assert (
            cls.MAX_REDIRECTS >= 0
        ), "MAX_REDIRECTS must be ≥0"

        assert (
            cls.MAX_PAGE_BYTES > 0
        ), "MAX_PAGE_BYTES must be > 0"

        assert (
            cls.MAX_SCAN_WORKERS is None or cls.MAX_SCAN_WORKERS >= 1
        ), "MAX_SCAN_WORKERS must be None or ≥1"

        assert (
            cls.ALLOWED_PROTOCOLS <= {"http", "https"}
        ), "ALLOWED_PROTOCOLS may only contain http/https"


# Validate at module import time
DiscoveryConfig.validate()
