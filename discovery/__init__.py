"""Feed discovery: domain extraction, link harvesting, probing and scanning."""

from discovery.domains import extract_domain
from discovery.harvester import PageLinkHarvester
from discovery.probe import FeedProber
from discovery.scanner import DomainScanner, ScanResultSet

__all__ = [
    "extract_domain",
    "PageLinkHarvester",
    "FeedProber",
    "DomainScanner",
    "ScanResultSet",
]
