"""Graceful shutdown: RUNNING → DRAINING → STOPPED.

The coordinator tracks in-flight requests, refuses new ones once draining
starts, and runs the registered cleanups (closing the database pool, the
cache client) exactly once after the last in-flight request has finished.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Awaitable, Callable, List, Optional

logger = logging.getLogger(__name__)

Cleanup = Callable[[], Awaitable[None]]


class ShutdownState(str, enum.Enum):
    RUNNING = "running"
    DRAINING = "draining"
    STOPPED = "stopped"


class ShutdownCoordinator:
    """Linear, non-reentrant shutdown sequence for one application."""

    def __init__(self) -> None:
        self._state = ShutdownState.RUNNING
        self._in_flight = 0
        self._idle: Optional[asyncio.Event] = None
        self._cleanups: List[Cleanup] = []
        self._finishing = False

    @property
    def state(self) -> ShutdownState:
        return self._state

    @property
    def in_flight(self) -> int:
        return self._in_flight

    def add_cleanup(self, callback: Cleanup) -> None:
        self._cleanups.append(callback)

    # ── Request tracking ─────────────────────────────────────────────────

    def request_started(self) -> bool:
        """Admit a request.  Returns False once draining has begun."""
        if self._state is not ShutdownState.RUNNING:
            return False
        self._in_flight += 1
        return True

    def request_finished(self) -> None:
        self._in_flight -= 1
        if self._in_flight == 0 and self._idle is not None:
            self._idle.set()

    # ── Shutdown sequence ────────────────────────────────────────────────

    def begin_drain(self) -> bool:
        """Stop admitting requests.  Only the first call has any effect."""
        if self._state is not ShutdownState.RUNNING:
            return False
        self._state = ShutdownState.DRAINING
        logger.info(
            "Termination signal received: draining %d in-flight request(s).",
            self._in_flight,
        )
        return True

    async def wait_drained(self) -> None:
        """Block until no admitted request is still in flight."""
        while self._in_flight > 0:
            self._idle = asyncio.Event()
            await self._idle.wait()

    async def finish(self) -> None:
        """Drain, run cleanups once in registration order, then stop."""
        if self._finishing:
            return
        self._finishing = True
        self.begin_drain()
        await self.wait_drained()
        logger.info("HTTP server closed.")

        for cleanup in self._cleanups:
            try:
                await cleanup()
            except Exception as exc:
                logger.error("Shutdown cleanup failed: %s", exc, exc_info=True)
        self._state = ShutdownState.STOPPED
        logger.info("Shutdown complete.")
