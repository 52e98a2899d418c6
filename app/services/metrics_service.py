"""Request metrics aggregated since process start.

One :class:`MetricsAggregator` is built per application and shared by the
metrics-capture middleware (writer) and ``GET /metrics`` (reader).

Note: ``response_times`` grows by one entry per request for the life of the
process.  That is acceptable for short-lived deployments; a long-running
service should move to a ring buffer or reservoir sample while keeping the
snapshot shape unchanged.
"""

from __future__ import annotations

import os
import threading
import time
from typing import Dict, List

import psutil

from app.utils.helpers import format_megabytes, format_millis, format_percent


class MetricsAggregator:
    """Counts completed responses, errors, and their latencies."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._process = psutil.Process(os.getpid())
        self.reset()

    def reset(self) -> None:
        """Drop all recorded data and restart the uptime clock."""
        with self._lock:
            self.request_count: int = 0
            self.error_count: int = 0
            self.response_times: List[float] = []
            self.start_time: float = time.monotonic()

    def record_completion(self, status_code: int, duration_ms: float) -> None:
        """Called once per request after its response has been produced."""
        with self._lock:
            self.request_count += 1
            self.response_times.append(duration_ms)
            if status_code >= 400:
                self.error_count += 1

    def uptime_seconds(self) -> float:
        return time.monotonic() - self.start_time

    def _memory(self) -> Dict[str, str]:
        info = self._process.memory_full_info()
        return {
            "rss": format_megabytes(info.rss),
            "vms": format_megabytes(info.vms),
            "uss": format_megabytes(getattr(info, "uss", info.rss)),
        }

    def snapshot(self) -> Dict[str, object]:
        """Return the ``GET /metrics`` payload.

        Rates and averages are defined as zero when nothing has been recorded.
        """
        with self._lock:
            request_count = self.request_count
            error_count = self.error_count
            total_ms = sum(self.response_times)
            samples = len(self.response_times)

        avg_ms = total_ms / samples if samples else 0.0
        if request_count:
            error_rate = format_percent(error_count / request_count * 100)
        else:
            error_rate = "0%"

        return {
            "uptime": int(self.uptime_seconds()),
            "requestCount": request_count,
            "errorCount": error_count,
            "errorRate": error_rate,
            "avgResponseTime": format_millis(avg_ms),
            "memory": self._memory(),
        }
