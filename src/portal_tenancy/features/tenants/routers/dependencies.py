"""Tenancy router dependencies.

Domain handlers consume ``Depends(get_partition_name)`` or
``Depends(get_tenant_partition)``. Both read the authenticated email and the
optional already-attached tenant context from ``request.state``, which the
upstream auth step sets (``user_email`` and ``tenant_context``).

The application provides the wired ``TenancyDependencies`` by overriding
``get_tenancy_dependencies``.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from ....cache.client import CacheManager
from ....core.exceptions import MissingUserIdentityError
from ....database.connection import ConnectionManager, PartitionHandle
from ..entities.resolution import PartitionResolution
from ..entities.tenant_context import TenantContext
from ..services import TenantResolver, TenantSwitchService


logger = logging.getLogger(__name__)


@dataclass
class TenancyDependencies:
    """Process-wide tenancy services, wired once at startup."""

    resolver: TenantResolver
    switch_service: TenantSwitchService
    connection_manager: ConnectionManager
    cache_manager: Optional[CacheManager] = None


def get_tenancy_dependencies() -> TenancyDependencies:
    """Placeholder for tenancy dependencies.

    Applications must override this via:
    app.dependency_overrides[get_tenancy_dependencies] = lambda: dependencies
    """
    raise HTTPException(
        status_code=status.HTTP_501_NOT_IMPLEMENTED,
        detail="Tenancy dependencies not configured. Application must provide TenancyDependencies."
    )


def get_user_email(request: Request) -> str:
    """Authenticated email attached by the upstream auth step."""
    email = getattr(request.state, "user_email", None)
    if not email or not str(email).strip():
        raise MissingUserIdentityError("Authenticated user email is required")
    return str(email)


def get_attached_context(request: Request) -> Optional[TenantContext]:
    """Tenant context already attached earlier in the request pipeline, if any."""
    context = getattr(request.state, "tenant_context", None)
    if context is None or isinstance(context, TenantContext):
        return context
    if isinstance(context, dict):
        try:
            return TenantContext.from_dict(context)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring malformed attached tenant context: {e}")
            return None
    logger.warning(f"Ignoring attached tenant context of type {type(context).__name__}")
    return None


async def get_partition_resolution(
    email: str = Depends(get_user_email),
    attached_context: Optional[TenantContext] = Depends(get_attached_context),
    dependencies: TenancyDependencies = Depends(get_tenancy_dependencies)
) -> PartitionResolution:
    """Resolve the partition for the current request."""
    return await dependencies.resolver.resolve(email, attached_context)


async def get_partition_name(
    resolution: PartitionResolution = Depends(get_partition_resolution)
) -> str:
    """Partition name for the current request. Never empty."""
    return resolution.partition_name


async def get_tenant_partition(
    partition_name: str = Depends(get_partition_name),
    dependencies: TenancyDependencies = Depends(get_tenancy_dependencies)
) -> PartitionHandle:
    """Store handle for the current request's partition.

    Connects first, so retry exhaustion fails the request before the handler
    runs instead of letting it fall back to another partition.
    """
    manager = dependencies.connection_manager
    await manager.get_pool()
    return manager.get_partition(partition_name)
