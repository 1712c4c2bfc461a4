"""Hostname extraction from user-supplied URLs and bare domains."""

from __future__ import annotations

from urllib.parse import urlsplit

from core.config import DiscoveryConfig
from core.errors import DomainExtractionError
from core.models import UrlErrorCode


def check_hostname(hostname: str) -> str:
    """
    Enforce the domain invariants on an already-parsed hostname.

    Raises:
        DomainExtractionError: If the hostname is empty, contains
            whitespace, or is longer than MAX_HOSTNAME_LENGTH.
    """
    if not hostname:
        raise DomainExtractionError(UrlErrorCode.NO_HOSTNAME, "empty hostname")
    if any(ch.isspace() for ch in hostname):
        raise DomainExtractionError(
            UrlErrorCode.CONTAINS_WHITESPACE,
            f"hostname contains whitespace: {hostname!r}",
        )
    if len(hostname) > DiscoveryConfig.MAX_HOSTNAME_LENGTH:
        raise DomainExtractionError(
            UrlErrorCode.TOO_LONG,
            f"hostname too long (max {DiscoveryConfig.MAX_HOSTNAME_LENGTH} characters): {hostname!r}",
        )
    return hostname


def extract_domain(value: str) -> str:
    """
    Extract the hostname from a URL or bare domain string.

    Inputs without an http(s):// prefix are treated as https URLs, so
    "blog.example.com" and "example.com:8080/feed" both work. Port, path,
    query and fragment are dropped. Hostnames come back lowercased.

    Raises:
        DomainExtractionError: with EMPTY_URL, INVALID_FORMAT, NO_HOSTNAME,
            CONTAINS_WHITESPACE or TOO_LONG.
    """
    if not value:
        raise DomainExtractionError(UrlErrorCode.EMPTY_URL, "URL cannot be empty")

    candidate = value
    if not candidate.lower().startswith(("http://", "https://")):
        candidate = "https://" + candidate

    try:
        hostname = urlsplit(candidate).hostname or ""
    except ValueError as exc:
        raise DomainExtractionError(
            UrlErrorCode.INVALID_FORMAT,
            f"invalid URL format {value!r}: {exc}",
        ) from exc

    if not hostname:
        raise DomainExtractionError(
            UrlErrorCode.NO_HOSTNAME,
            f"no valid hostname found in URL {value!r}",
        )
    return check_hostname(hostname)
