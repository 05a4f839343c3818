"""Protocols consumed by the tenant resolver and switch coordinator."""

from datetime import datetime
from typing import Any, Optional, Protocol, runtime_checkable

from .tenant_context import TenantAssignment, UserIdentityInTenant


@runtime_checkable
class CacheStore(Protocol):
    """Key-value store with per-key expiry.

    Implementations report failures as a miss (``get``), ``False`` (``set``)
    or ``None`` (``delete``) instead of raising.
    """

    async def get(self, key: str) -> Optional[Any]:
        """Return the decoded value or None."""
        ...

    async def set(self, key: str, value: Any, ttl: int, only_if_absent: bool = False) -> bool:
        """Write a whole value with expiry."""
        ...

    async def delete(self, *keys: str) -> Optional[int]:
        """Delete keys; None means the command did not run."""
        ...

    async def health_check(self) -> bool:
        """Check cache health."""
        ...


@runtime_checkable
class AuthoritativeStore(Protocol):
    """Durable source of truth for tenant assignment.

    Timeouts and unreachable-store conditions raise ``StoreUnavailableError``.
    """

    async def lookup_assignment(self, email: str) -> Optional[TenantAssignment]:
        """Active and available tenants for a normalized email."""
        ...

    async def lookup_identity(self, partition_name: str, email: str) -> Optional[UserIdentityInTenant]:
        """The user's record inside one partition."""
        ...

    async def record_switch(self, email: str, tenant_id: str, timestamp: datetime) -> bool:
        """Persist the switch as the tenant's latest login."""
        ...
