"""Tenancy router.

Endpoints for switching the active tenant, inspecting the resolved tenant
context, clearing it at logout, and checking tenancy infrastructure health.
Tenancy errors propagate to the handlers from
``portal_tenancy.api.register_exception_handlers``.
"""

import logging

from fastapi import APIRouter, Depends, Response, status

from ....core.exceptions import CacheError
from ..entities.resolution import PartitionResolution
from ..models.requests import SwitchTenantRequest
from ..models.responses import (
    CurrentTenantResponse,
    ErrorResponse,
    SwitchTenantResponse,
    TenancyHealthResponse,
)
from .dependencies import (
    TenancyDependencies,
    get_partition_resolution,
    get_tenancy_dependencies,
    get_user_email,
)


logger = logging.getLogger(__name__)

CLEAR_SITE_DATA = '"cache", "storage"'

tenant_router = APIRouter(
    prefix="/tenant",
    tags=["Tenancy"],
    responses={
        401: {"model": ErrorResponse, "description": "No authenticated user"},
        404: {"model": ErrorResponse, "description": "No assignment, not a member, or no identity in target"},
        500: {"model": ErrorResponse, "description": "Cache or store failure"},
        503: {"model": ErrorResponse, "description": "Database connection unavailable"}
    }
)


@tenant_router.post("/switch", response_model=SwitchTenantResponse)
async def switch_tenant(
    request: SwitchTenantRequest,
    response: Response,
    email: str = Depends(get_user_email),
    dependencies: TenancyDependencies = Depends(get_tenancy_dependencies)
) -> SwitchTenantResponse:
    """Switch the caller's active tenant."""
    result = await dependencies.switch_service.switch_tenant(email, request.tenant_id)
    if result.discard_client_state:
        response.headers["Clear-Site-Data"] = CLEAR_SITE_DATA
    return SwitchTenantResponse.from_result(result)


@tenant_router.get("/current", response_model=CurrentTenantResponse)
async def get_current_tenant(
    resolution: PartitionResolution = Depends(get_partition_resolution)
) -> CurrentTenantResponse:
    """Resolved tenant context for the caller. Read only."""
    return CurrentTenantResponse.from_resolution(resolution)


@tenant_router.delete("/context", status_code=status.HTTP_204_NO_CONTENT)
async def clear_tenant_context(
    email: str = Depends(get_user_email),
    dependencies: TenancyDependencies = Depends(get_tenancy_dependencies)
) -> Response:
    """Drop the caller's cached tenant context (logout)."""
    cleared = await dependencies.switch_service.clear_tenant_context(email)
    if not cleared:
        raise CacheError("Tenant context could not be cleared", operation="clear_tenant_context")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@tenant_router.get("/health", response_model=TenancyHealthResponse)
async def get_tenancy_health(
    dependencies: TenancyDependencies = Depends(get_tenancy_dependencies)
) -> TenancyHealthResponse:
    """Cache and database health."""
    database_healthy = await dependencies.connection_manager.health_check()

    cache_healthy = False
    cache_status = {}
    if dependencies.cache_manager is not None:
        cache_healthy = await dependencies.cache_manager.health_check()
        cache_status = dependencies.cache_manager.get_cache_status()

    if not database_healthy:
        logger.warning("Tenancy health check: database unhealthy")

    return TenancyHealthResponse(
        status="healthy" if database_healthy and cache_healthy else "degraded",
        database_healthy=database_healthy,
        cache_healthy=cache_healthy,
        cache=cache_status
    )
