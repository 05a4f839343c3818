"""Tenancy routers and request dependencies."""

from .tenant_router import tenant_router
from .dependencies import (
    TenancyDependencies,
    get_tenancy_dependencies,
    get_user_email,
    get_attached_context,
    get_partition_resolution,
    get_partition_name,
    get_tenant_partition,
)

__all__ = [
    "tenant_router",
    "TenancyDependencies",
    "get_tenancy_dependencies",
    "get_user_email",
    "get_attached_context",
    "get_partition_resolution",
    "get_partition_name",
    "get_tenant_partition",
]
