"""Tests for the database connection manager."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import asyncpg
import pytest

from portal_tenancy.config.settings import TenancySettings
from portal_tenancy.core.exceptions import (
    ConfigurationError,
    ConnectionRetriesExhaustedError,
    InvalidPartitionNameError,
    get_http_status_code,
)
from portal_tenancy.database import ConnectionManager, validate_partition_name


def _settings(**overrides) -> TenancySettings:
    values = dict(
        _env_file=None,
        database_url="postgresql+asyncpg://portal@localhost/portal",
        connect_max_attempts=3,
        connect_backoff_seconds=0.5,
        connect_deadline_seconds=10,
    )
    values.update(overrides)
    return TenancySettings(**values)


@pytest.fixture
def pool():
    pool = MagicMock()
    pool.fetch = AsyncMock(return_value=[])
    pool.fetchval = AsyncMock(return_value=1)
    pool.close = AsyncMock()
    return pool


class TestPartitionNames:

    @pytest.mark.parametrize("name", ["acme", "acme_db", "_x", "t_123", "a" * 63])
    def test_valid(self, name):
        assert validate_partition_name(name) == name

    @pytest.mark.parametrize("name", ["", "Acme", "1acme", "acme-db", 'acme"; drop', "a" * 64])
    def test_invalid(self, name):
        with pytest.raises(InvalidPartitionNameError):
            validate_partition_name(name)


class TestConnectionManager:

    @pytest.mark.asyncio
    async def test_pool_created_once_under_concurrency(self, pool):
        factory = AsyncMock(return_value=pool)
        manager = ConnectionManager(_settings(), pool_factory=factory)

        pools = await asyncio.gather(*(manager.get_pool() for _ in range(10)))

        assert all(p is pool for p in pools)
        factory.assert_awaited_once()
        assert factory.await_args.args == ("postgresql://portal@localhost/portal",)

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self, pool):
        factory = AsyncMock(side_effect=[OSError("refused"), pool])
        manager = ConnectionManager(_settings(), pool_factory=factory)

        with patch("portal_tenancy.database.connection.asyncio.sleep", new=AsyncMock()) as sleep:
            assert await manager.get_pool() is pool

        assert factory.await_count == 2
        sleep.assert_awaited_once_with(0.5)

    @pytest.mark.asyncio
    async def test_retries_are_bounded(self):
        factory = AsyncMock(side_effect=asyncpg.InvalidPasswordError("bad password"))
        manager = ConnectionManager(_settings(), pool_factory=factory)

        with patch("portal_tenancy.database.connection.asyncio.sleep", new=AsyncMock()) as sleep:
            with pytest.raises(ConnectionRetriesExhaustedError) as exc_info:
                await manager.get_pool()

        assert factory.await_count == 3
        assert sleep.await_count == 2
        assert exc_info.value.details["attempts"] == 3
        assert get_http_status_code(exc_info.value) == 503

    @pytest.mark.asyncio
    async def test_deadline_stops_retries(self):
        async def hang(*args, **kwargs):
            await asyncio.sleep(10)

        manager = ConnectionManager(
            _settings(connect_deadline_seconds=0.05, connect_backoff_seconds=0),
            pool_factory=hang
        )

        with pytest.raises(ConnectionRetriesExhaustedError):
            await asyncio.wait_for(manager.get_pool(), timeout=2)

    @pytest.mark.asyncio
    async def test_deadline_reports_attempts_made(self):
        factory = AsyncMock(side_effect=OSError("refused"))
        manager = ConnectionManager(_settings(connect_deadline_seconds=10), pool_factory=factory)
        clock = MagicMock()
        # deadline at 10; first attempt at 1, backoff computed at 2, second check past the deadline
        clock.monotonic.side_effect = [0.0, 1.0, 2.0, 11.0]

        with patch("portal_tenancy.database.connection.time", new=clock), \
                patch("portal_tenancy.database.connection.asyncio.sleep", new=AsyncMock()):
            with pytest.raises(ConnectionRetriesExhaustedError) as exc_info:
                await manager.get_pool()

        factory.assert_awaited_once()
        assert exc_info.value.details["attempts"] == 1

    @pytest.mark.asyncio
    async def test_missing_dsn(self):
        manager = ConnectionManager(_settings(database_url=None), pool_factory=AsyncMock())

        with pytest.raises(ConfigurationError):
            await manager.get_pool()

    @pytest.mark.asyncio
    async def test_partition_handles(self, pool):
        manager = ConnectionManager(_settings(), pool_factory=AsyncMock(return_value=pool))

        assert manager.assignment_partition().partition_name == "usermaster"
        assert manager.directory_partition().partition_name == "tenant"
        assert manager.default_partition().partition_name == "stadiumpeople"

        handle = manager.get_partition("acme_db")
        assert handle.table("users") == '"acme_db"."users"'

        await handle.fetch("SELECT 1", "x")
        pool.fetch.assert_awaited_once_with("SELECT 1", "x", timeout=None)

    def test_invalid_partition_handle(self, pool):
        manager = ConnectionManager(_settings(), pool_factory=AsyncMock(return_value=pool))

        with pytest.raises(InvalidPartitionNameError):
            manager.get_partition("../etc")

    @pytest.mark.asyncio
    async def test_close_and_health(self, pool):
        manager = ConnectionManager(_settings(), pool_factory=AsyncMock(return_value=pool))

        assert await manager.health_check()
        await manager.close()

        pool.close.assert_awaited_once()
        assert manager.pool is None

    @pytest.mark.asyncio
    async def test_health_check_failure(self):
        manager = ConnectionManager(
            _settings(connect_max_attempts=1),
            pool_factory=AsyncMock(side_effect=OSError("refused"))
        )

        assert not await manager.health_check()
