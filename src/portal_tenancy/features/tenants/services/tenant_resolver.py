"""Tenant resolver: which partition does this request use?

Tiers, first success wins:

1. context already attached to the request by the upstream auth step
2. cache entry for the normalized email
3. authoritative store (cache repopulated in the background)
4. heuristic from the tenant's public identifier
5. global default partition

Cache and store failures degrade to the next tier; resolution never raises
for them and never returns an empty partition name. Handlers that write must
re-validate tenant membership themselves.
"""

import logging
from typing import Optional

from ....config.settings import TenancySettings
from ....core.exceptions import StoreUnavailableError, TenancyError
from ..entities.protocols import AuthoritativeStore
from ..entities.resolution import PartitionResolution, ResolutionTier
from ..entities.tenant_context import CacheEntry, TenantAssignment, TenantContext, normalize_email
from ..repositories.tenant_cache_repository import TenantCacheRepository
from .background import BackgroundTasks
from .partition_heuristic import derive_partition_name

logger = logging.getLogger(__name__)


class TenantResolver:
    """Resolves the partition name for an authenticated user."""

    def __init__(
        self,
        cache_repository: TenantCacheRepository,
        store: AuthoritativeStore,
        settings: TenancySettings,
        background: Optional[BackgroundTasks] = None
    ):
        self._cache = cache_repository
        self._store = store
        self._settings = settings
        self._background = background or BackgroundTasks()

    @property
    def background(self) -> BackgroundTasks:
        return self._background

    def derive_partition(self, tenant_identifier: Optional[str]) -> str:
        """Heuristic partition for a tenant identifier, using configured defaults."""
        return derive_partition_name(
            tenant_identifier,
            default_partition=self._settings.default_partition,
            legacy_identifier=self._settings.legacy_tenant_identifier,
            legacy_partition=self._settings.legacy_partition,
        )

    async def resolve_partition(self, email: str, attached_context: Optional[TenantContext] = None) -> str:
        """Partition name for the request. Never empty."""
        resolution = await self.resolve(email, attached_context)
        return resolution.partition_name

    async def resolve(self, email: str, attached_context: Optional[TenantContext] = None) -> PartitionResolution:
        """Resolve the partition and report which tier answered."""
        email = normalize_email(email)
        # Best tenant identifier seen so far, for the heuristic tier
        known_context: Optional[TenantContext] = attached_context

        if attached_context is not None and attached_context.partition_name:
            return PartitionResolution(
                partition_name=attached_context.partition_name,
                tier=ResolutionTier.FROM_REQUEST,
                context=attached_context,
            )

        entry = await self._cache.get_entry(email)
        if entry is not None:
            if entry.active.partition_name:
                return PartitionResolution(
                    partition_name=entry.active.partition_name,
                    tier=ResolutionTier.FROM_CACHE,
                    context=entry.active,
                    available=entry.available,
                    identity=entry.identity,
                )
            known_context = known_context or entry.active

        assignment = await self._lookup_store(email)
        if assignment is not None:
            if assignment.active.partition_name:
                self._schedule_repopulation(email, assignment)
                return PartitionResolution(
                    partition_name=assignment.active.partition_name,
                    tier=ResolutionTier.FROM_STORE,
                    context=assignment.active,
                    available=assignment.available,
                )
            known_context = known_context or assignment.active

        if known_context is not None and known_context.tenant_id:
            partition_name = self.derive_partition(known_context.tenant_id)
            logger.warning(
                f"No explicit partition for {email} on tenant {known_context.tenant_id}; "
                f"derived {partition_name}"
            )
            return PartitionResolution(
                partition_name=partition_name,
                tier=ResolutionTier.HEURISTIC,
                context=known_context.with_partition(partition_name),
                available=assignment.available if assignment is not None else None,
            )

        logger.warning(f"No tenant known for {email}; using default partition {self._settings.default_partition}")
        return PartitionResolution(
            partition_name=self._settings.default_partition,
            tier=ResolutionTier.DEFAULT,
        )

    async def _lookup_store(self, email: str) -> Optional[TenantAssignment]:
        try:
            return await self._store.lookup_assignment(email)
        except StoreUnavailableError as e:
            logger.warning(f"Authoritative store unavailable while resolving {email}: {e.message}")
            return None

    def _schedule_repopulation(self, email: str, assignment: TenantAssignment) -> None:
        self._background.spawn(
            self._repopulate_cache(email, assignment),
            name=f"tenant-cache-repopulate:{email}"
        )

    async def _repopulate_cache(self, email: str, assignment: TenantAssignment) -> bool:
        """Write the freshly looked-up entry unless another writer got there first."""
        identity = None
        try:
            identity = await self._store.lookup_identity(assignment.active.partition_name, email)
        except TenancyError as e:
            logger.warning(f"Identity lookup failed during cache repopulation for {email}: {e.message}")

        written = await self._cache.add_entry_if_absent(email, CacheEntry.from_assignment(assignment, identity))
        if written:
            logger.info(f"Cached tenant context for {email} ({assignment.active.partition_name})")
        else:
            logger.debug(f"Tenant context for {email} not cached (entry exists or cache unavailable)")
        return written
