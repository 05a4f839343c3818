"""Tenant resolution domain entities and protocols."""

from .tenant_context import (
    normalize_email,
    normalize_tenant_id,
    TenantSummary,
    TenantContext,
    AvailableTenantSet,
    UserIdentityInTenant,
    TenantAssignment,
    CacheEntry,
)
from .resolution import (
    ResolutionTier,
    PartitionResolution,
    SwitchOutcome,
    SwitchResult,
)
from .protocols import CacheStore, AuthoritativeStore

__all__ = [
    "normalize_email",
    "normalize_tenant_id",
    "TenantSummary",
    "TenantContext",
    "AvailableTenantSet",
    "UserIdentityInTenant",
    "TenantAssignment",
    "CacheEntry",
    "ResolutionTier",
    "PartitionResolution",
    "SwitchOutcome",
    "SwitchResult",
    "CacheStore",
    "AuthoritativeStore",
]
