"""Pytest configuration and fixtures for portal-tenancy tests."""

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import pytest

from portal_tenancy.config.settings import TenancySettings
from portal_tenancy.core.exceptions import StoreUnavailableError
from portal_tenancy.features.tenants.entities import (
    AvailableTenantSet,
    TenantAssignment,
    TenantContext,
    TenantSummary,
    UserIdentityInTenant,
)
from portal_tenancy.features.tenants.repositories import TenantCacheRepository
from portal_tenancy.features.tenants.services import (
    BackgroundTasks,
    TenantResolver,
    TenantSwitchService,
)


class FakeCacheManager:
    """In-memory stand-in for ``CacheManager``.

    Values are stored JSON-encoded like Redis would. With ``available`` set
    to False every call reports failure the way the real manager does.
    """

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.available = True
        self.operations: List[Tuple[str, Tuple[str, ...]]] = []

    @property
    def writes(self) -> List[Tuple[str, Tuple[str, ...]]]:
        return [op for op in self.operations if op[0] in ("set", "delete")]

    async def get(self, key: str) -> Optional[Any]:
        self.operations.append(("get", (key,)))
        if not self.available or key not in self.data:
            return None
        return json.loads(self.data[key])

    async def set(self, key: str, value: Any, ttl: int, only_if_absent: bool = False) -> bool:
        self.operations.append(("set", (key,)))
        if not self.available:
            return False
        if only_if_absent and key in self.data:
            return False
        self.data[key] = json.dumps(value)
        return True

    async def delete(self, *keys: str) -> Optional[int]:
        self.operations.append(("delete", keys))
        if not self.available:
            return None
        return sum(1 for key in keys if self.data.pop(key, None) is not None)

    async def health_check(self) -> bool:
        return self.available

    def get_cache_status(self) -> Dict[str, Any]:
        return {"redis_available": self.available}


class FakeAuthoritativeStore:
    """In-memory authoritative store with call recording."""

    def __init__(self):
        self.assignments: Dict[str, TenantAssignment] = {}
        self.identities: Dict[Tuple[str, str], UserIdentityInTenant] = {}
        self.unavailable = False
        self.record_fails = False
        self.assignment_lookups: List[str] = []
        self.identity_lookups: List[Tuple[str, str]] = []
        self.recorded: List[Tuple[str, str, datetime]] = []

    async def lookup_assignment(self, email: str) -> Optional[TenantAssignment]:
        self.assignment_lookups.append(email)
        if self.unavailable:
            raise StoreUnavailableError("store down", operation="lookup_assignment")
        return self.assignments.get(email)

    async def lookup_identity(self, partition_name: str, email: str) -> Optional[UserIdentityInTenant]:
        self.identity_lookups.append((partition_name, email))
        if self.unavailable:
            raise StoreUnavailableError("store down", operation="lookup_identity")
        return self.identities.get((partition_name, email))

    async def record_switch(self, email: str, tenant_id: str, timestamp: datetime) -> bool:
        if self.record_fails or self.unavailable:
            raise StoreUnavailableError("store down", operation="record_switch")
        self.recorded.append((email, tenant_id, timestamp))
        return True


@pytest.fixture
def settings():
    """Settings with defaults and no external services."""
    return TenancySettings(_env_file=None, database_url=None, redis_url=None)


@pytest.fixture
def fake_cache():
    return FakeCacheManager()


@pytest.fixture
def fake_store():
    return FakeAuthoritativeStore()


@pytest.fixture
def cache_repository(fake_cache):
    return TenantCacheRepository(fake_cache, ttl=86400)


@pytest.fixture
def background():
    return BackgroundTasks()


@pytest.fixture
def resolver(cache_repository, fake_store, settings, background):
    return TenantResolver(cache_repository, fake_store, settings, background)


@pytest.fixture
def switch_service(cache_repository, fake_store, resolver, background):
    return TenantSwitchService(cache_repository, fake_store, resolver, background)


@pytest.fixture
def acme():
    """Tenant with an explicit partition."""
    return TenantSummary(
        tenant_id="acme.example.com",
        partition_name="acme_db",
        display_name="Acme",
        last_login_at=datetime(2024, 5, 2, tzinfo=timezone.utc),
    )


@pytest.fixture
def globex():
    """Second tenant with an explicit partition."""
    return TenantSummary(
        tenant_id="globex.example.com",
        partition_name="globex_db",
        display_name="Globex",
    )


@pytest.fixture
def initech():
    """Tenant with no explicit partition (derived by heuristic)."""
    return TenantSummary(tenant_id="initech.example.com", display_name="Initech")


@pytest.fixture
def alice_email():
    return "alice@example.com"


@pytest.fixture
def alice_identity():
    return UserIdentityInTenant(user_id="101", employee_id="5001", user_type="employee", first_name="Alice")


@pytest.fixture
def alice_assignment(acme, globex, initech):
    """Alice is active on acme and may switch to globex or initech."""
    return TenantAssignment(
        active=TenantContext(tenant=acme),
        available=AvailableTenantSet([acme, globex, initech]),
    )
