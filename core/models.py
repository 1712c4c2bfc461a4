"""
Core Pydantic models for rssffs.

Design principles:
- Every record crossing a component boundary is explicitly typed
- Nothing survives a run: models are rebuilt per invocation
- Fetch outcomes are values (FetchLog.error_code), not exceptions
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field


# ============================================================================
# Enums
# ============================================================================

class UrlErrorCode(str, Enum):
    """Why was a URL or domain input rejected?"""
    EMPTY_URL = "EMPTY_URL"
    INVALID_FORMAT = "INVALID_FORMAT"
    UNSUPPORTED_SCHEME = "UNSUPPORTED_SCHEME"
    NO_HOSTNAME = "NO_HOSTNAME"
    PRIVATE_NETWORK = "PRIVATE_NETWORK"  # SSRF blocklist hit
    RESOLUTION_FAILURE = "RESOLUTION_FAILURE"
    CONTAINS_WHITESPACE = "CONTAINS_WHITESPACE"
    TOO_LONG = "TOO_LONG"


class FetchErrorCode(str, Enum):
    """Why did a fetch fail?"""
    TIMEOUT = "TIMEOUT"
    SECURITY_BLOCKED = "SECURITY_BLOCKED"  # Validation failed on a URL or redirect hop
    FETCH_ERROR = "FETCH_ERROR"  # Network error


class RunStatus(str, Enum):
    """Status of a run."""
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class DiscoveryMode(str, Enum):
    """Which domains get probed."""
    SINGLE_URL = "single_url"  # Only the seed URL's own domain
    TRAVERSAL = "traversal"  # Every domain linked from the seed page


# ============================================================================
# Fetch / Network Logging
# ============================================================================

class FetchedDoc(BaseModel):
    """
    Response metadata for one completed fetch.

    Bodies are not kept: probes only need status + headers, and the link
    harvester streams the body directly off the response.
    """
    status_code: int
    final_url: str  # After redirects
    headers: Dict[str, str] = Field(default_factory=dict)  # Lowercased keys
    latency_ms: Optional[int] = None

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "")


class FetchLog(BaseModel):
    """
    Log entry for a single fetch operation.
    """
    id: str = Field(default_factory=lambda: str(uuid4()))
    url: str

    status_code: Optional[int] = None  # HTTP status
    latency_ms: Optional[int] = None  # Time to response

    error_code: Optional[FetchErrorCode] = None
    error_message: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)


# ============================================================================
# Feed Reader
# ============================================================================

class Category(BaseModel):
    """A feed-reader category as returned by GET /v1/categories."""
    id: int
    title: str
    user_id: Optional[int] = None


# ============================================================================
# Run Outcome
# ============================================================================

class RunResult(BaseModel):
    """
    Outcome of one discover-and-subscribe run.

    success_count is the number of feeds subscribed (or, in debug mode,
    that would have been). error_type/error_message are only set when the
    run failed as a whole; per-feed subscribe failures land in failed_feeds.
    """
    run_id: str = Field(default_factory=lambda: str(uuid4()))
    page_url: str
    category: str

    mode: Optional[DiscoveryMode] = None
    category_id: Optional[int] = None

    status: RunStatus = RunStatus.RUNNING
    success_count: int = 0

    discovered_feeds: List[str] = Field(default_factory=list)
    failed_feeds: List[str] = Field(default_factory=list)
    deleted_feed_count: int = 0

    error_type: Optional[str] = None
    error_message: Optional[str] = None

    started_at: datetime = Field(default_factory=datetime.utcnow)
    ended_at: Optional[datetime] = None

    @property
    def ok(self) -> bool:
        return self.status == RunStatus.COMPLETED
