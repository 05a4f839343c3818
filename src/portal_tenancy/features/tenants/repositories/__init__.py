"""Tenant cache and authoritative store repositories."""

from .tenant_cache_repository import (
    TenantCacheRepository,
    tenant_context_key,
    derived_user_cache_key,
    derived_user_cache_keys,
)
from .assignment_repository import AssignmentRepository

__all__ = [
    "TenantCacheRepository",
    "tenant_context_key",
    "derived_user_cache_key",
    "derived_user_cache_keys",
    "AssignmentRepository",
]
