"""
Shared pytest fixtures and configuration for rssffs tests.
"""

from __future__ import annotations

from typing import Any

import pytest

from core.structured_logging import EventLogger


PUBLIC_IP = "93.184.216.34"


# ============================================================================
# Fixtures: Logging
# ============================================================================

class RecordingLogger(EventLogger):
    """EventLogger that keeps events in memory instead of printing them."""

    def __init__(self, run_id: str = "run-test", min_level: str = "debug") -> None:
        self.events: list[dict[str, Any]] = []
        super().__init__(run_id=run_id, min_level=min_level, sink=self._record)

    def _record(self, event_type: str, *, run_id: str | None, level: str, **payload: Any) -> str:
        self.events.append({"event_type": event_type, "run_id": run_id, "level": level, **payload})
        return event_type

    def of_type(self, event_type: str) -> list[dict[str, Any]]:
        return [event for event in self.events if event["event_type"] == event_type]


@pytest.fixture
def recording_logger() -> RecordingLogger:
    """Logger capturing every event, debug included."""
    return RecordingLogger()


# ============================================================================
# Fixtures: DNS
# ============================================================================

@pytest.fixture
def dns(monkeypatch) -> dict[str, set[str]]:
    """
    Replace DNS resolution with a lookup table.

    Hosts missing from the table resolve to a public address. Tests add
    entries to simulate private or multi-homed hosts.
    """
    table: dict[str, set[str]] = {}

    def _resolve(hostname: str) -> set[str]:
        return table.get(hostname, {PUBLIC_IP})

    monkeypatch.setattr("fetcher.safety._resolve_ip_addresses", _resolve)
    return table


# ============================================================================
# Fixtures: Environment
# ============================================================================

_SETTINGS_ENV_VARS = ("RSS_READER_ENDPOINT", "RSS_READER_API_KEY", "SINGLE_URL_MODE")


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """
    Run with no reader settings in the environment and cwd in an empty dir.

    setenv-then-delenv makes monkeypatch remove anything load_dotenv adds.
    """
    for name in _SETTINGS_ENV_VARS:
        monkeypatch.setenv(name, "placeholder")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "contract: fixed behavior other components rely on")
    config.addinivalue_line("markers", "integration: end-to-end integration tests")
    config.addinivalue_line("markers", "unit: unit tests")
