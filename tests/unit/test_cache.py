"""Tests for the Redis cache manager and the tenant cache repository."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from portal_tenancy.cache.client import CacheManager
from portal_tenancy.config.settings import TenancySettings
from portal_tenancy.features.tenants.entities import CacheEntry
from portal_tenancy.features.tenants.repositories import (
    TenantCacheRepository,
    derived_user_cache_key,
    derived_user_cache_keys,
    tenant_context_key,
)


@pytest.fixture
def cache_settings():
    return TenancySettings(_env_file=None, redis_url="redis://localhost:6379/0", cache_timeout_seconds=0.05)


@pytest.fixture
def redis_client():
    client = AsyncMock()
    client.get = AsyncMock(return_value=None)
    client.set = AsyncMock(return_value=True)
    client.delete = AsyncMock(return_value=2)
    client.ping = AsyncMock(return_value=True)
    return client


@pytest.fixture
def manager(cache_settings, redis_client):
    manager = CacheManager(cache_settings)
    manager.redis_client = redis_client
    manager.is_available = True
    return manager


class TestCacheKeys:

    def test_tenant_context_key(self):
        assert tenant_context_key(" Alice@Example.com ") == "tenant:alice@example.com"

    def test_derived_keys(self):
        assert derived_user_cache_keys("Bob@Example.com") == [
            "user:enhanced:bob@example.com",
            "user:jobs:bob@example.com",
            "user:punches:bob@example.com",
            "user:dashboard:bob@example.com",
            "user:notifications:bob@example.com",
        ]

    def test_unknown_derived_kind(self):
        with pytest.raises(ValueError):
            derived_user_cache_key("payroll", "bob@example.com")


class TestCacheManager:

    @pytest.mark.asyncio
    async def test_set_writes_whole_value_with_expiry(self, manager, redis_client):
        written = await manager.set("tenant:a@b.c", {"active": {"tenant_id": "x"}}, ttl=86400)

        assert written
        redis_client.set.assert_awaited_once_with(
            "portal:tenant:a@b.c", json.dumps({"active": {"tenant_id": "x"}}), ex=86400, nx=False
        )

    @pytest.mark.asyncio
    async def test_set_only_if_absent(self, manager, redis_client):
        redis_client.set.return_value = None

        written = await manager.set("tenant:a@b.c", {}, ttl=10, only_if_absent=True)

        assert not written
        assert redis_client.set.await_args.kwargs["nx"] is True

    @pytest.mark.asyncio
    async def test_get_decodes_json(self, manager, redis_client):
        redis_client.get.return_value = '{"a": 1}'

        assert await manager.get("k") == {"a": 1}
        redis_client.get.assert_awaited_once_with("portal:k")

    @pytest.mark.asyncio
    async def test_get_undecodable_is_miss(self, manager, redis_client):
        redis_client.get.return_value = "not json"

        assert await manager.get("k") is None

    @pytest.mark.asyncio
    async def test_get_timeout_is_miss(self, manager, redis_client):
        async def slow(*args, **kwargs):
            await asyncio.sleep(1)

        redis_client.get.side_effect = slow

        assert await manager.get("k") is None

    @pytest.mark.asyncio
    async def test_command_error_marks_unavailable(self, manager, redis_client):
        redis_client.set.side_effect = ConnectionError("reset")

        assert not await manager.set("k", 1, ttl=10)
        assert not manager.is_available

    @pytest.mark.asyncio
    async def test_delete_failure_returns_none(self, manager, redis_client):
        redis_client.delete.side_effect = ConnectionError("reset")

        assert await manager.delete("a", "b") is None

    @pytest.mark.asyncio
    async def test_delete_prefixes_keys(self, manager, redis_client):
        assert await manager.delete("a", "b") == 2
        redis_client.delete.assert_awaited_once_with("portal:a", "portal:b")

    @pytest.mark.asyncio
    async def test_not_configured(self):
        manager = CacheManager(TenancySettings(_env_file=None, redis_url=None))

        assert await manager.get("k") is None
        assert not await manager.set("k", 1, ttl=10)
        assert await manager.delete("k") is None
        assert not await manager.health_check()
        assert manager.get_cache_status()["redis_configured"] is False

    @pytest.mark.asyncio
    async def test_failed_connect_enters_cooldown(self, cache_settings):
        manager = CacheManager(cache_settings)
        client = MagicMock()
        client.ping = AsyncMock(side_effect=ConnectionError("refused"))
        client.aclose = AsyncMock()
        pool = MagicMock()
        pool.disconnect = AsyncMock()

        with patch("portal_tenancy.cache.client.ConnectionPool.from_url", return_value=pool), \
             patch("portal_tenancy.cache.client.Redis", return_value=client) as redis_cls:
            assert await manager.connect() is None
            assert await manager.connect() is None

        assert redis_cls.call_count == 1
        assert not manager.is_available
        client.aclose.assert_awaited_once()
        pool.disconnect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_concurrent_connect_creates_one_client(self, cache_settings):
        manager = CacheManager(cache_settings)
        client = MagicMock()
        client.ping = AsyncMock(return_value=True)

        with patch("portal_tenancy.cache.client.ConnectionPool.from_url", return_value=MagicMock()), \
             patch("portal_tenancy.cache.client.Redis", return_value=client) as redis_cls:
            results = await asyncio.gather(*(manager.connect() for _ in range(5)))

        assert all(result is client for result in results)
        assert redis_cls.call_count == 1
        assert manager.is_available


class TestTenantCacheRepository:

    @pytest.mark.asyncio
    async def test_entry_written_in_one_command(self, manager, redis_client, alice_assignment, alice_email):
        repository = TenantCacheRepository(manager, ttl=86400)

        await repository.put_entry(alice_email, CacheEntry.from_assignment(alice_assignment))

        redis_client.set.assert_awaited_once()
        key, payload = redis_client.set.await_args.args
        assert key == "portal:tenant:alice@example.com"
        assert json.loads(payload)["active"]["partition_name"] == "acme_db"
        assert redis_client.set.await_args.kwargs["ex"] == 86400

    @pytest.mark.asyncio
    async def test_invalidate_derived_keys_single_delete(self, manager, redis_client, alice_email):
        repository = TenantCacheRepository(manager)

        deleted = await repository.invalidate_derived_keys(alice_email)

        assert deleted == 2
        redis_client.delete.assert_awaited_once_with(
            *("portal:" + key for key in derived_user_cache_keys(alice_email))
        )

    @pytest.mark.asyncio
    async def test_get_entry_round_trip(self, cache_repository, alice_email, alice_assignment, alice_identity):
        entry = CacheEntry.from_assignment(alice_assignment, alice_identity)

        assert await cache_repository.put_entry(alice_email, entry)
        assert await cache_repository.get_entry("ALICE@example.com") == entry

    @pytest.mark.asyncio
    async def test_get_entry_malformed_is_miss(self, cache_repository, fake_cache, alice_email):
        fake_cache.data[tenant_context_key(alice_email)] = json.dumps({"active": {"tenant": "acme"}})

        assert await cache_repository.get_entry(alice_email) is None

    @pytest.mark.asyncio
    async def test_add_if_absent_keeps_existing(self, cache_repository, alice_email, alice_assignment, globex):
        first = CacheEntry.from_assignment(alice_assignment)
        await cache_repository.put_entry(alice_email, first)

        written = await cache_repository.add_entry_if_absent(
            alice_email, CacheEntry(active=first.active.with_partition("other"), available=first.available)
        )

        assert not written
        assert (await cache_repository.get_entry(alice_email)).active.partition_name == "acme_db"
