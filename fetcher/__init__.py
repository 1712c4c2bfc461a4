"""Fetcher subsystem with redirect limits and SSRF safety checks."""

from fetcher.http import HttpFetcher, fetch_url, open_url
from fetcher.logging import fetch_log_to_dict
from fetcher.safety import is_safe_url, validate_url

__all__ = [
    "HttpFetcher",
    "fetch_url",
    "open_url",
    "fetch_log_to_dict",
    "is_safe_url",
    "validate_url",
]
