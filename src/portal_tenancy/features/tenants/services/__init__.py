"""Tenant resolution and switch services."""

from .background import BackgroundTasks
from .partition_heuristic import derive_partition_name
from .tenant_resolver import TenantResolver
from .tenant_switch_service import TenantSwitchService

__all__ = [
    "BackgroundTasks",
    "derive_partition_name",
    "TenantResolver",
    "TenantSwitchService",
]
