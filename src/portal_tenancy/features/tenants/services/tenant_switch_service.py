"""Tenant switch coordinator.

Stages of a switch: validate, re-identify, invalidate, commit, signal.
Rejections raise not-found errors; any cache or store failure raises
``SwitchStorageError``. A switch never guesses: nothing is written until the
target tenant and the user's identity in it are confirmed.

The cache write and the authoritative-store write are independent. The
store write runs in the background after the cache commit and a failure
there does not roll the cache back; the cache stays the operative truth
until its TTL expires.
"""

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional, Tuple

from ....core.exceptions import (
    InvalidPartitionNameError,
    NoAssignmentDataError,
    NoIdentityInTargetError,
    StoreUnavailableError,
    SwitchStorageError,
    TenantNotMemberError,
)
from ..entities.protocols import AuthoritativeStore
from ..entities.resolution import SwitchOutcome, SwitchResult
from ..entities.tenant_context import (
    AvailableTenantSet,
    CacheEntry,
    TenantContext,
    UserIdentityInTenant,
    normalize_email,
)
from ..repositories.tenant_cache_repository import TenantCacheRepository
from .background import BackgroundTasks
from .tenant_resolver import TenantResolver

logger = logging.getLogger(__name__)


class TenantSwitchService:
    """Coordinates user-initiated tenant switches."""

    def __init__(
        self,
        cache_repository: TenantCacheRepository,
        store: AuthoritativeStore,
        resolver: TenantResolver,
        background: Optional[BackgroundTasks] = None
    ):
        self._cache = cache_repository
        self._store = store
        self._resolver = resolver
        self._background = background or resolver.background

    async def switch_tenant(self, email: str, requested_tenant_id: str) -> SwitchResult:
        """Make ``requested_tenant_id`` the user's active tenant.

        Raises:
            NoAssignmentDataError: no available tenant set for the user
            TenantNotMemberError: requested tenant is not in the set
            NoIdentityInTargetError: no user record in the target partition
            SwitchStorageError: cache or store failed
        """
        email = normalize_email(email)
        requested_tenant_id = (requested_tenant_id or "").strip()

        # Validate
        active, available = await self._load_membership(email)
        if active.tenant.matches(requested_tenant_id):
            logger.info(f"Tenant {requested_tenant_id} already active for {email}")
            return SwitchResult(outcome=SwitchOutcome.ALREADY_ACTIVE, tenant=self._with_partition(active))

        target = available.find(requested_tenant_id)
        if target is None:
            logger.info(f"Rejected switch of {email} to {requested_tenant_id}: not a member")
            raise TenantNotMemberError(
                f"Tenant {requested_tenant_id} is not available to this user",
                email=email,
                tenant_id=requested_tenant_id
            )

        # Re-identify
        partition_name = target.partition_name or self._resolver.derive_partition(target.tenant_id)
        identity = await self._lookup_identity(email, partition_name)
        if identity is None:
            logger.info(f"Rejected switch of {email} to {target.tenant_id}: no identity in {partition_name}")
            raise NoIdentityInTargetError(
                f"No user record for this account in tenant {target.tenant_id}",
                email=email,
                tenant_id=target.tenant_id,
                partition_name=partition_name
            )

        # Invalidate
        deleted = await self._cache.invalidate_derived_keys(email)
        if deleted is None:
            logger.error(f"Could not invalidate derived cache keys for {email}; switch aborted")
            raise SwitchStorageError(stage="invalidate")

        # Commit
        switched_at = datetime.now(timezone.utc)
        new_active = TenantContext(
            tenant=replace(target, partition_name=partition_name),
            last_switched_at=switched_at,
        )
        entry = CacheEntry(active=new_active, available=available, identity=identity)
        if not await self._cache.put_entry(email, entry):
            logger.error(f"Could not write tenant context for {email}; switch aborted")
            raise SwitchStorageError(stage="commit")

        # Keys rebuilt from the old entry between invalidate and commit
        if await self._cache.invalidate_derived_keys(email) is None:
            logger.warning(f"Post-commit cache sweep failed for {email}")

        self._background.spawn(
            self._record_switch(email, target.tenant_id, switched_at),
            name=f"tenant-switch-record:{email}"
        )

        # Signal
        logger.info(f"Switched {email} from {active.tenant_id} to {target.tenant_id} ({partition_name})")
        return SwitchResult(outcome=SwitchOutcome.SWITCHED, tenant=new_active, identity=identity)

    async def clear_tenant_context(self, email: str) -> bool:
        """Drop the user's tenant entry and derived keys (logout)."""
        email = normalize_email(email)
        derived = await self._cache.invalidate_derived_keys(email)
        deleted = await self._cache.delete_entry(email)
        if derived is None or deleted is None:
            logger.warning(f"Tenant context for {email} may not have been cleared")
            return False
        logger.info(f"Cleared tenant context for {email}")
        return True

    async def _load_membership(self, email: str) -> Tuple[TenantContext, AvailableTenantSet]:
        entry = await self._cache.get_entry(email)
        if entry is not None:
            return entry.active, entry.available

        try:
            assignment = await self._store.lookup_assignment(email)
        except StoreUnavailableError as e:
            logger.error(f"Authoritative store unavailable while validating switch for {email}: {e.message}")
            raise SwitchStorageError(stage="validate") from e

        if assignment is None:
            logger.info(f"Rejected switch for {email}: no tenant assignment")
            raise NoAssignmentDataError("No tenant assignment found for this user", email=email)
        return assignment.active, assignment.available

    async def _lookup_identity(self, email: str, partition_name: str) -> Optional[UserIdentityInTenant]:
        try:
            return await self._store.lookup_identity(partition_name, email)
        except StoreUnavailableError as e:
            logger.error(f"Identity lookup in {partition_name} failed for {email}: {e.message}")
            raise SwitchStorageError(stage="re-identify") from e
        except InvalidPartitionNameError as e:
            logger.error(f"Tenant partition {partition_name!r} for {email} is not a valid schema name")
            raise SwitchStorageError(stage="re-identify", details={"partition_name": partition_name}) from e

    def _with_partition(self, context: TenantContext) -> TenantContext:
        if context.partition_name:
            return context
        return context.with_partition(self._resolver.derive_partition(context.tenant_id))

    async def _record_switch(self, email: str, tenant_id: str, switched_at: datetime) -> bool:
        try:
            recorded = await self._store.record_switch(email, tenant_id, switched_at)
        except StoreUnavailableError as e:
            logger.warning(f"Switch of {email} to {tenant_id} not recorded in store: {e.message}")
            return False
        return recorded

