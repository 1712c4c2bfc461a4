"""Exception types shared across the feed finder."""

from __future__ import annotations

from core.models import UrlErrorCode


class RSSFFSError(Exception):
    """Base class for all rssffs errors."""


class ConfigurationError(RSSFFSError):
    """Raised when required settings are missing or malformed."""


class UrlValidationError(RSSFFSError, ValueError):
    """Raised when a URL is unsafe or unusable as a fetch target."""

    def __init__(self, code: UrlErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code


class DomainExtractionError(RSSFFSError, ValueError):
    """Raised when no usable hostname can be extracted from an input."""

    def __init__(self, code: UrlErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code


class HarvestError(RSSFFSError):
    """Raised when the seed page cannot be fetched for link harvesting."""


class FeedReaderError(RSSFFSError):
    """Raised when a feed-reader API call fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CategoryResolutionError(FeedReaderError):
    """Raised when a category name cannot be mapped to a category ID."""
