"""Redis cache client.

The service only needs the cache to answer liveness pings for ``/status``.
The underlying ``redis.asyncio`` client keeps its own connection pool and is
safe to share across concurrent requests.
"""

from __future__ import annotations

import logging
from typing import Optional

import redis.asyncio as redis

logger = logging.getLogger(__name__)


class CacheUnavailableError(RuntimeError):
    """Raised when no cache host is configured or the client is closed."""


class CacheClient:
    """Thin wrapper around ``redis.asyncio.Redis``.

    An empty *host* means the cache is not configured; the client is then
    never created and :meth:`ping` raises :class:`CacheUnavailableError`.
    """

    def __init__(self, host: str, port: int = 6379, timeout: float = 2.0):
        self._host = host
        self._port = port
        self._client: Optional[redis.Redis] = None
        if host:
            self._client = redis.Redis(
                host=host,
                port=port,
                socket_timeout=timeout,
                socket_connect_timeout=timeout,
                decode_responses=True,
            )

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    async def ping(self) -> bool:
        """Send PING and return the server acknowledgment."""
        if self._client is None:
            raise CacheUnavailableError("Cache is not configured")
        return await self._client.ping()

    async def close(self) -> None:
        """Release pooled connections.  Safe to call more than once."""
        if self._client is None:
            return
        client, self._client = self._client, None
        await client.aclose()
        logger.info("Redis connection closed (%s:%s).", self._host, self._port)
