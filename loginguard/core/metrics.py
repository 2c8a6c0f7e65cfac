"""
Simple in-process metrics registry for login tracking snapshots.
"""

from __future__ import annotations

import threading


class MetricsRegistry:
    """Thread-safe counter/gauge registry for lightweight instrumentation."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: dict[str, float] = {
            "attempts_recorded_total": 0.0,
            "failed_attempts_total": 0.0,
            "lockouts_total": 0.0,
            "lockouts_cleared_total": 0.0,
            "blocked_checks_total": 0.0,
            "cleanup_pruned_total": 0.0,
        }
        self._gauges: dict[str, float] = {
            "tracked_identifiers": 0.0,
            "active_lockouts": 0.0,
        }

    def increment(self, name: str, amount: float = 1.0) -> None:
        """Increment a counter by the given amount."""
        with self._lock:
            self._counters[name] = self._counters.get(name, 0.0) + amount

    def set_gauge(self, name: str, value: float) -> None:
        """Set a gauge value (derived metric)."""
        with self._lock:
            self._gauges[name] = value

    def snapshot(self) -> dict[str, dict[str, float]]:
        """Return a snapshot of current counters and gauges."""
        with self._lock:
            return {
                "counters": dict(self._counters),
                "gauges": dict(self._gauges),
            }


metrics = MetricsRegistry()
