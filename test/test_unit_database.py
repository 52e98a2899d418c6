# Test type: Unit Test
# Validation to be executed: Validates the persistence and cache layers that
#   do not need a live server: table schema and indexes, behaviour when
#   unconfigured, idempotent closing, and the cache PING wrapper.
# Command: pytest test/test_unit_database.py -v

"""Unit tests for app.database, app.models.db_models and app.cache."""

import logging
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.schema import CreateIndex

from app.cache import CacheClient, CacheUnavailableError
from app.database import ProcessLogStore, StoreUnavailableError, _log_driver_error
from app.models.db_models import ProcessLog

pytestmark = pytest.mark.anyio


class TestSchema:

    def test_columns(self):
        table = ProcessLog.__table__
        assert table.name == "process_logs"
        assert set(table.columns.keys()) == {"id", "data", "created_at", "updated_at"}
        assert table.c.id.primary_key
        assert not table.c.data.nullable
        assert isinstance(table.c.data.type, postgresql.JSONB)

    def test_indexes(self):
        ddl = {
            index.name: str(CreateIndex(index).compile(dialect=postgresql.dialect()))
            for index in ProcessLog.__table__.indexes
        }
        assert "created_at DESC" in ddl["idx_process_logs_created_at"]
        assert "USING gin" in ddl["idx_process_logs_data"]


class TestStoreWithoutDatabase:

    async def test_unconfigured_init_is_noop(self):
        store = ProcessLogStore("")
        assert store.is_configured is False
        await store.init()
        with pytest.raises(StoreUnavailableError):
            await store.ping()

    async def test_operations_before_init_raise(self):
        store = ProcessLogStore("postgresql+asyncpg://u:p@localhost:5432/db")
        with pytest.raises(StoreUnavailableError):
            await store.insert({"a": 1})
        with pytest.raises(StoreUnavailableError):
            await store.count()

    async def test_close_is_idempotent(self):
        store = ProcessLogStore("")
        await store.close()
        await store.close()
        assert store.is_closed
        with pytest.raises(StoreUnavailableError):
            await store.get(1)


class TestStoreSessions:
    """Store operations against a mocked session factory."""

    @pytest.fixture
    def session(self):
        session = AsyncMock()
        session.add = MagicMock()
        return session

    @pytest.fixture
    def pg_store(self, session):
        store = ProcessLogStore("postgresql+asyncpg://u:p@localhost:5432/db")
        store._session_factory = MagicMock(return_value=session)
        return store

    async def test_insert_adds_flushes_refreshes_and_commits(self, pg_store, session):
        session.refresh.side_effect = lambda record: setattr(record, "id", 7)

        record = await pg_store.insert({"a": 1})

        assert record.id == 7
        assert record.data == {"a": 1}
        session.add.assert_called_once_with(record)
        session.flush.assert_awaited_once()
        session.refresh.assert_awaited_once_with(record)
        session.commit.assert_awaited_once()
        session.rollback.assert_not_awaited()
        session.close.assert_awaited_once()

    async def test_failed_flush_rolls_back_and_reraises(self, pg_store, session):
        session.flush.side_effect = RuntimeError("duplicate key")

        with pytest.raises(RuntimeError, match="duplicate key"):
            await pg_store.insert({"a": 1})

        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()
        session.close.assert_awaited_once()

    async def test_ping_runs_select_now(self, pg_store, session):
        await pg_store.ping()

        statement = session.execute.await_args.args[0]
        assert str(statement) == "SELECT NOW()"
        session.commit.assert_awaited_once()
        session.close.assert_awaited_once()

    async def test_failed_ping_rolls_back_and_reraises(self, pg_store, session):
        session.execute.side_effect = ConnectionRefusedError("refused")

        with pytest.raises(ConnectionRefusedError):
            await pg_store.ping()

        session.rollback.assert_awaited_once()
        session.close.assert_awaited_once()

    async def test_get_returns_stored_row(self, pg_store, session):
        row = ProcessLog(id=3, data={"a": 1})
        session.get.return_value = row

        assert await pg_store.get(3) is row
        session.get.assert_awaited_once_with(ProcessLog, 3)

    async def test_count(self, pg_store, session):
        session.execute.return_value = MagicMock(scalar_one=MagicMock(return_value=5))
        assert await pg_store.count() == 5

    async def test_closed_store_refuses_sessions(self, pg_store, session):
        await pg_store.close()
        with pytest.raises(StoreUnavailableError):
            await pg_store.insert({"a": 1})
        session.add.assert_not_called()


class TestDriverErrorLogging:

    def test_logs_with_traceback(self, caplog):
        exc = ConnectionResetError("server closed the connection")
        with caplog.at_level(logging.ERROR, logger="app.database"):
            _log_driver_error(SimpleNamespace(original_exception=exc))

        [record] = caplog.records
        assert "server closed the connection" in record.getMessage()
        assert record.exc_info[1] is exc


class TestCacheClient:

    async def test_unconfigured_ping_raises(self):
        cache = CacheClient("")
        assert cache.is_configured is False
        with pytest.raises(CacheUnavailableError):
            await cache.ping()
        await cache.close()

    async def test_ping_and_close(self):
        cache = CacheClient("localhost", 6379)
        fake = AsyncMock()
        fake.ping.return_value = True
        cache._client = fake

        assert await cache.ping() is True
        await cache.close()
        await cache.close()
        fake.aclose.assert_awaited_once()
        with pytest.raises(CacheUnavailableError):
            await cache.ping()
