"""PostgreSQL connection pool and ``process_logs`` persistence.

The store is *optional*; the application keeps serving when PostgreSQL is
unreachable or unconfigured.  ``/status`` reports the store as ``error`` and
``/process`` answers with a server error until the database comes back.
"""

from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from sqlalchemy import event, func, select, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.models.db_models import Base, ProcessLog

logger = logging.getLogger(__name__)


class StoreUnavailableError(RuntimeError):
    """Raised when the store is unconfigured, not initialised or closed."""


def _log_driver_error(context) -> None:
    logger.error(
        "Unexpected database error: %s",
        context.original_exception,
        exc_info=context.original_exception,
    )


class ProcessLogStore:
    """Bounded connection pool plus the append-only ``process_logs`` table.

    Every operation borrows one pooled connection for its own exclusive use
    and returns it before completing.  With ``max_overflow=0`` the pool never
    grows past ``pool_size``; callers beyond that wait up to ``pool_timeout``
    seconds and then get ``sqlalchemy.exc.TimeoutError``.

    ``get`` and ``count`` are read-only inspection helpers for operators and
    tests; the request path only uses ``insert`` and ``ping``.
    """

    def __init__(
        self,
        url: str,
        pool_size: int = 20,
        pool_timeout: float = 2.0,
        idle_timeout: int = 30,
    ) -> None:
        self._url = url
        self._pool_size = pool_size
        self._pool_timeout = pool_timeout
        self._idle_timeout = idle_timeout
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._closed = False

    @property
    def is_configured(self) -> bool:
        return bool(self._url)

    @property
    def is_closed(self) -> bool:
        return self._closed

    async def init(self) -> None:
        """Create the engine and pool, then make sure the schema exists.

        Schema creation failures are logged and swallowed so a database that
        is down at boot does not keep the process from starting.
        """
        if not self.is_configured:
            logger.warning("No database configured, persistence disabled.")
            return

        self._engine = create_async_engine(
            self._url,
            echo=False,
            pool_size=self._pool_size,
            max_overflow=0,
            pool_timeout=self._pool_timeout,
            pool_recycle=self._idle_timeout,
            pool_pre_ping=True,
        )
        event.listen(self._engine.sync_engine, "handle_error", _log_driver_error)
        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("PostgreSQL connection established successfully.")
        except Exception as exc:
            logger.warning(
                "PostgreSQL unavailable at startup, schema not verified. Error: %s",
                exc,
            )

    async def close(self) -> None:
        """Dispose of the connection pool.  Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        if self._engine is not None:
            await self._engine.dispose()
            logger.info("Database pool closed.")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Yield a session bound to one pooled connection; commit on success."""
        if self._closed or self._session_factory is None:
            raise StoreUnavailableError("Database is not available")

        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def ping(self) -> None:
        """Round-trip a no-op query through one pooled connection."""
        async with self.session() as session:
            await session.execute(text("SELECT NOW()"))

    async def insert(self, data: Any) -> ProcessLog:
        """Persist *data* and return the row with its store-assigned id."""
        async with self.session() as session:
            record = ProcessLog(data=data)
            session.add(record)
            await session.flush()
            await session.refresh(record)
        return record

    async def get(self, record_id: int) -> ProcessLog | None:
        async with self.session() as session:
            return await session.get(ProcessLog, record_id)

    async def count(self) -> int:
        async with self.session() as session:
            result = await session.execute(select(func.count()).select_from(ProcessLog))
            return int(result.scalar_one())
