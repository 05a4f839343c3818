"""Portal tenancy application.

``build_tenancy_dependencies`` wires the process-wide clients, repositories
and services; ``create_app`` mounts the tenancy router on a FastAPI app whose
lifespan owns their startup and teardown.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .__version__ import __version__
from .api import register_exception_handlers
from .cache import close_cache, get_cache_manager
from .config.settings import TenancySettings, get_settings
from .database import close_connections, get_connection_manager
from .features.tenants.repositories import AssignmentRepository, TenantCacheRepository
from .features.tenants.routers import TenancyDependencies, get_tenancy_dependencies, tenant_router
from .features.tenants.services import BackgroundTasks, TenantResolver, TenantSwitchService

logger = logging.getLogger(__name__)


def build_tenancy_dependencies(settings: TenancySettings) -> TenancyDependencies:
    """Wire the tenancy services on top of the global cache and connection managers."""
    cache_manager = get_cache_manager(settings)
    connection_manager = get_connection_manager(settings)

    cache_repository = TenantCacheRepository(cache_manager, ttl=settings.tenant_context_ttl)
    store = AssignmentRepository(
        connection_manager,
        timeout=settings.store_timeout_seconds,
        applicant_lookup_enabled=settings.applicant_lookup_enabled
    )
    background = BackgroundTasks()
    resolver = TenantResolver(cache_repository, store, settings, background)
    switch_service = TenantSwitchService(cache_repository, store, resolver, background)

    return TenancyDependencies(
        resolver=resolver,
        switch_service=switch_service,
        connection_manager=connection_manager,
        cache_manager=cache_manager,
    )


def create_app(
    settings: Optional[TenancySettings] = None,
    dependencies: Optional[TenancyDependencies] = None
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        settings: Settings to use; defaults to ``get_settings()``
        dependencies: Pre-wired dependencies (tests); built at startup otherwise
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        owned = dependencies is None
        wired = dependencies or build_tenancy_dependencies(settings)
        app.dependency_overrides[get_tenancy_dependencies] = lambda: wired

        if owned and wired.cache_manager is not None:
            await wired.cache_manager.connect()
        logger.info(f"{settings.app_name} started ({settings.environment})")

        yield

        await wired.resolver.background.drain(timeout=settings.store_timeout_seconds)
        if owned:
            await close_cache()
            await close_connections()
        logger.info(f"{settings.app_name} stopped")

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        lifespan=lifespan,
    )
    if dependencies is not None:
        app.dependency_overrides[get_tenancy_dependencies] = lambda: dependencies

    register_exception_handlers(app, is_production=settings.is_production)
    app.include_router(tenant_router)
    return app
