"""Tenant resolution and switch feature.

Resolves, per authenticated request, which tenant partition to use and
coordinates user-initiated tenant switches.
"""

from .entities import (
    TenantSummary,
    TenantContext,
    AvailableTenantSet,
    UserIdentityInTenant,
    TenantAssignment,
    CacheEntry,
    ResolutionTier,
    PartitionResolution,
    SwitchOutcome,
    SwitchResult,
    CacheStore,
    AuthoritativeStore,
)
from .repositories import (
    TenantCacheRepository,
    AssignmentRepository,
    tenant_context_key,
    derived_user_cache_key,
)
from .services import (
    BackgroundTasks,
    TenantResolver,
    TenantSwitchService,
    derive_partition_name,
)
from .routers import (
    tenant_router,
    TenancyDependencies,
    get_tenancy_dependencies,
    get_partition_name,
    get_tenant_partition,
)

__all__ = [
    # Entities
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

    # Repositories
    "TenantCacheRepository",
    "AssignmentRepository",
    "tenant_context_key",
    "derived_user_cache_key",

    # Services
    "BackgroundTasks",
    "TenantResolver",
    "TenantSwitchService",
    "derive_partition_name",

    # API
    "tenant_router",
    "TenancyDependencies",
    "get_tenancy_dependencies",
    "get_partition_name",
    "get_tenant_partition",
]
