"""Dependency health checks behind ``GET /status``.

Each check is one time-bounded round-trip.  Any failure (timeout, refused
connection, bad credentials, dependency not configured) is logged and reported
as ``"error"``; nothing raised here reaches the request handler.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

CONNECTED = "connected"
ERROR = "error"
HEALTHY = "healthy"
DEGRADED = "degraded"


@dataclass(frozen=True)
class DependencyReport:
    database: str
    cache: str

    @property
    def status(self) -> str:
        if self.database == CONNECTED and self.cache == CONNECTED:
            return HEALTHY
        return DEGRADED


async def check_database(store, timeout: float) -> str:
    """Borrow one pooled connection and run a no-op query."""
    try:
        await asyncio.wait_for(store.ping(), timeout=timeout)
    except Exception as exc:
        logger.error("Postgres status error: %r", exc, exc_info=True)
        return ERROR
    return CONNECTED


async def check_cache(cache, timeout: float) -> str:
    """PING the cache; anything but an acknowledgment is an error."""
    try:
        pong = await asyncio.wait_for(cache.ping(), timeout=timeout)
    except Exception as exc:
        logger.error("Redis status error: %r", exc, exc_info=True)
        return ERROR
    if pong is True or pong == "PONG":
        return CONNECTED
    logger.error("Redis status error: unexpected PING reply %r", pong)
    return ERROR


async def check_dependencies(store, cache, timeout: float) -> DependencyReport:
    """Check the store and the cache concurrently."""
    database, cache_state = await asyncio.gather(
        check_database(store, timeout),
        check_cache(cache, timeout),
    )
    return DependencyReport(database=database, cache=cache_state)
