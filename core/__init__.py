"""Core module for rssffs."""

from core.models import (
    Category,
    DiscoveryMode,
    FetchedDoc,
    FetchErrorCode,
    FetchLog,
    RunResult,
    RunStatus,
    UrlErrorCode,
)
from core.config import DiscoveryConfig
from core.settings import Settings, load_settings

__all__ = [
    "Category",
    "DiscoveryMode",
    "FetchedDoc",
    "FetchErrorCode",
    "FetchLog",
    "RunResult",
    "RunStatus",
    "UrlErrorCode",
    "DiscoveryConfig",
    "Settings",
    "load_settings",
]
