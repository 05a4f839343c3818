"""Closed set of tenant resolution and switch outcomes."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .tenant_context import TenantContext, AvailableTenantSet, UserIdentityInTenant


class ResolutionTier(str, Enum):
    """Which tier answered a partition lookup."""

    FROM_REQUEST = "from_request"
    FROM_CACHE = "from_cache"
    FROM_STORE = "from_store"
    HEURISTIC = "heuristic"
    DEFAULT = "default"

    @property
    def is_degraded(self) -> bool:
        """Heuristic and default answers were guessed, not looked up."""
        return self in (ResolutionTier.HEURISTIC, ResolutionTier.DEFAULT)


@dataclass(frozen=True)
class PartitionResolution:
    """Result of resolving the partition for one request.

    ``context`` is the active tenant when any tier knew it (its partition
    name is filled in); it is None for the global default.
    """

    partition_name: str
    tier: ResolutionTier
    context: Optional[TenantContext] = None
    available: Optional[AvailableTenantSet] = None
    identity: Optional[UserIdentityInTenant] = None

    def __post_init__(self):
        if not self.partition_name:
            raise ValueError("partition_name cannot be empty")


class SwitchOutcome(str, Enum):
    """Successful terminal outcomes of a tenant switch."""

    SWITCHED = "switched"
    ALREADY_ACTIVE = "already-active"


@dataclass
class SwitchResult:
    """Result of a tenant switch request."""

    outcome: SwitchOutcome
    tenant: TenantContext
    identity: Optional[UserIdentityInTenant] = None

    @property
    def discard_client_state(self) -> bool:
        """Clients must drop every locally cached value after a real switch."""
        return self.outcome == SwitchOutcome.SWITCHED
