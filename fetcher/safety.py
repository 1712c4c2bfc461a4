"""URL safety checks: scheme whitelist and private-network blocklist (SSRF)."""

from __future__ import annotations

import socket
from ipaddress import ip_address, ip_network
from typing import Iterable
from urllib.parse import urlsplit

from core.config import DiscoveryConfig
from core.errors import UrlValidationError
from core.models import UrlErrorCode


def _blocked_networks() -> list:
    """Build blocked network list from discovery config."""
    return [ip_network(cidr, strict=False) for cidr in DiscoveryConfig.BLOCKED_IP_RANGES]


def _resolve_ip_addresses(hostname: str) -> set[str]:
    """Resolve hostname to a set of IP addresses."""
    try:
        infos = socket.getaddrinfo(hostname, None, proto=socket.IPPROTO_TCP)
    except (socket.gaierror, UnicodeError) as exc:
        raise UrlValidationError(
            UrlErrorCode.RESOLUTION_FAILURE,
            f"failed to resolve hostname {hostname}: {exc}",
        ) from exc
    return {item[4][0] for item in infos}


def _is_blocked_ip(ip_text: str, blocked_networks: Iterable) -> bool:
    """Check if an IP is inside blocked ranges."""
    # Drop an IPv6 zone index ("fe80::1%eth0") before parsing.
    ip_obj = ip_address(ip_text.split("%", 1)[0])
    mapped = getattr(ip_obj, "ipv4_mapped", None)
    if mapped is not None:
        ip_obj = mapped
    return any(ip_obj in network for network in blocked_networks)


def validate_url(raw_url: str) -> None:
    """
    Check that a URL is safe to request.

    Raises:
        UrlValidationError: with the matching UrlErrorCode when the URL is
            empty, unparseable, not http(s), has no hostname, does not
            resolve, or resolves to a blocked address.
    """
    if not raw_url:
        raise UrlValidationError(UrlErrorCode.EMPTY_URL, "URL cannot be empty")

    try:
        parsed = urlsplit(raw_url)
    except ValueError as exc:
        raise UrlValidationError(UrlErrorCode.INVALID_FORMAT, f"invalid URL format: {exc}") from exc

    if parsed.scheme.lower() not in DiscoveryConfig.ALLOWED_PROTOCOLS:
        raise UrlValidationError(
            UrlErrorCode.UNSUPPORTED_SCHEME,
            f"only HTTP and HTTPS schemes are allowed, got: {parsed.scheme!r}",
        )

    hostname = parsed.hostname or ""
    if not hostname:
        raise UrlValidationError(UrlErrorCode.NO_HOSTNAME, f"no hostname found in URL {raw_url!r}")

    resolved = _resolve_ip_addresses(hostname)
    if not resolved:
        raise UrlValidationError(
            UrlErrorCode.RESOLUTION_FAILURE,
            f"hostname {hostname} resolved to no addresses",
        )

    blocked_networks = _blocked_networks()
    for ip_text in sorted(resolved):
        if _is_blocked_ip(ip_text, blocked_networks):
            raise UrlValidationError(
                UrlErrorCode.PRIVATE_NETWORK,
                f"requests to private/internal IP addresses are not allowed: "
                f"{hostname} resolves to {ip_text}",
            )


def is_safe_url(raw_url: str) -> bool:
    """Return True when validate_url accepts the URL."""
    try:
        validate_url(raw_url)
    except UrlValidationError:
        return False
    return True
