"""Shared structured JSON logging helpers."""

from __future__ import annotations

import json
import threading
from datetime import UTC, datetime
from typing import Any, Callable

_LEVELS = {"debug": 10, "info": 20, "warning": 30, "error": 40}

_write_lock = threading.Lock()


def emit_json_event(
    event_type: str,
    *,
    run_id: str | None,
    level: str = "info",
    **payload: Any,
) -> str:
    """Emit one JSON event line to stdout and return the rendered line."""
    event: dict[str, Any] = {
        "event_type": event_type,
        "level": level,
        "timestamp": datetime.now(UTC).isoformat(),
        "run_id": run_id,
    }
    event.update(payload)
    line = json.dumps(event, ensure_ascii=True, sort_keys=True, default=str)
    # Scanner workers log from several threads at once.
    with _write_lock:
        print(line, flush=True)
    return line


class EventLogger:
    """
    Level-filtered JSON event logger bound to one run.

    Components receive one of these instead of writing to a global logger,
    so tests can swap in a recorder and assert on events.
    """

    def __init__(
        self,
        run_id: str | None = None,
        min_level: str = "info",
        sink: Callable[..., str] | None = None,
    ) -> None:
        if min_level not in _LEVELS:
            raise ValueError(f"unknown log level: {min_level}")
        self.run_id = run_id
        self.min_level = min_level
        self._sink = sink or emit_json_event

    def enabled_for(self, level: str) -> bool:
        return _LEVELS[level] >= _LEVELS[self.min_level]

    def log(self, level: str, event_type: str, **payload: Any) -> str | None:
        """Emit an event if `level` passes the threshold."""
        if not self.enabled_for(level):
            return None
        return self._sink(event_type, run_id=self.run_id, level=level, **payload)

    def debug(self, event_type: str, **payload: Any) -> str | None:
        return self.log("debug", event_type, **payload)

    def info(self, event_type: str, **payload: Any) -> str | None:
        return self.log("info", event_type, **payload)

    def warn(self, event_type: str, **payload: Any) -> str | None:
        return self.log("warning", event_type, **payload)

    def error(self, event_type: str, **payload: Any) -> str | None:
        return self.log("error", event_type, **payload)
