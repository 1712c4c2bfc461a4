"""Feed-reader API client."""

from feedreader.client import RSSReaderClient

__all__ = ["RSSReaderClient"]
