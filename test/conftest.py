# Test type: Configuration
# Validation to be executed: Shared fixtures for all test modules
# Command: pytest test/ -v (this file is auto-loaded by pytest)

"""Shared pytest fixtures for the Process API test suite.

Apps under test are built with ``create_app()`` around in-memory stand-ins
for PostgreSQL and Redis, so no external service is needed.
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient

from app.config import Settings
from app.database import StoreUnavailableError
from app.lifecycle import ShutdownCoordinator
from app.main import create_app
from app.models.db_models import ProcessLog
from app.services.metrics_service import MetricsAggregator


class FakeStore:
    """In-memory replacement for :class:`app.database.ProcessLogStore`."""

    def __init__(self):
        self.records: dict[int, ProcessLog] = {}
        self.error: Exception | None = None
        self.init_calls = 0
        self.close_calls = 0
        # Set both to hold an insert open mid-request.
        self.gate: asyncio.Event | None = None
        self.entered: asyncio.Event | None = None
        self._next_id = 1

    async def init(self) -> None:
        self.init_calls += 1

    async def close(self) -> None:
        self.close_calls += 1

    async def ping(self) -> None:
        if self.error is not None:
            raise self.error

    async def insert(self, data):
        if self.error is not None:
            raise self.error
        if self.entered is not None:
            self.entered.set()
        if self.gate is not None:
            await self.gate.wait()
        now = datetime.now(timezone.utc)
        record = ProcessLog(
            id=self._next_id,
            data=json.loads(json.dumps(data)),
            created_at=now,
            updated_at=now,
        )
        self.records[record.id] = record
        self._next_id += 1
        return record

    async def get(self, record_id: int):
        return self.records.get(record_id)

    async def count(self) -> int:
        return len(self.records)


class FakeCache:
    """In-memory replacement for :class:`app.cache.CacheClient`."""

    def __init__(self, reply="PONG"):
        self.reply = reply
        self.error: Exception | None = None
        self.close_calls = 0

    async def ping(self):
        if self.error is not None:
            raise self.error
        return self.reply

    async def close(self) -> None:
        self.close_calls += 1


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings():
    s = Settings()
    s.APP_ENV = "production"
    s.HEALTH_CHECK_TIMEOUT = 0.5
    return s


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def cache():
    return FakeCache()


@pytest.fixture
def metrics():
    return MetricsAggregator()


@pytest.fixture
def coordinator():
    return ShutdownCoordinator()


@pytest.fixture
def app(settings, store, cache, metrics, coordinator):
    return create_app(
        settings=settings,
        store=store,
        cache=cache,
        metrics=metrics,
        coordinator=coordinator,
    )


@pytest.fixture
async def client(app):
    """Async HTTP client bound to the FastAPI app (no real server needed)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
def store_down():
    return StoreUnavailableError("Database is not available")
