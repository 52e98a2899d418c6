"""Shared utility functions: timestamps and display formatting."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

_BYTES_PER_MB = 1024 * 1024


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_timestamp(dt: Optional[datetime] = None) -> str:
    """Format *dt* (default: now) as ISO-8601 UTC with milliseconds.

    >>> iso_timestamp(datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc))
    '2024-01-02T03:04:05.678Z'
    """
    dt = dt or utc_now()
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_megabytes(num_bytes: int) -> str:
    """Whole megabytes, e.g. ``52428800 -> '50MB'``."""
    return f"{round(num_bytes / _BYTES_PER_MB)}MB"


def format_percent(value: float) -> str:
    return f"{value:.2f}%"


def format_millis(value: float) -> str:
    return f"{value:.2f}ms"
