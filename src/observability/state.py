"""Shared in-memory pipeline state for health and status snapshots."""

from __future__ import annotations

import threading
from collections import deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict, Mapping, MutableMapping


class PipelineState:
    """Thread-safe store aggregating alert, chart and notification outcomes."""

    def __init__(self, *, max_recent: int = 50) -> None:
        self._lock = threading.RLock()
        self._alerts: Dict[str, int] = {}
        self._charts: Dict[str, int] = {"rendered": 0, "skipped": 0, "failed": 0}
        self._failures: Dict[str, int] = {}
        self._notifications: Dict[str, int] = {"sent": 0, "failed": 0}
        self._recent: Deque[Mapping[str, Any]] = deque(maxlen=max_recent)
        self._last_updated: str | None = None

    def record_alert(self, status: str) -> None:
        with self._lock:
            self._alerts[status] = self._alerts.get(status, 0) + 1
            self._touch()

    def record_chart(self, outcome: str, *, error_kind: str | None = None) -> None:
        with self._lock:
            self._charts[outcome] = self._charts.get(outcome, 0) + 1
            if error_kind:
                self._failures[error_kind] = self._failures.get(error_kind, 0) + 1
            self._touch()

    def record_notification(self, *, delivered: bool) -> None:
        with self._lock:
            key = "sent" if delivered else "failed"
            self._notifications[key] += 1
            self._touch()

    def record_outcome(self, payload: Mapping[str, Any]) -> None:
        with self._lock:
            entry = dict(payload)
            entry["timestamp"] = datetime.now(timezone.utc).isoformat()
            self._recent.appendleft(entry)
            self._touch()

    def snapshot(self) -> MutableMapping[str, Any]:
        with self._lock:
            return {
                "alerts": dict(self._alerts),
                "charts": dict(self._charts),
                "failures": dict(self._failures),
                "notifications": dict(self._notifications),
                "recent": list(self._recent),
                "last_updated": self._last_updated,
            }

    def _touch(self) -> None:
        self._last_updated = datetime.now(timezone.utc).isoformat()


_STATE = PipelineState()


def get_pipeline_state() -> PipelineState:
    return _STATE


__all__ = ["PipelineState", "get_pipeline_state"]
