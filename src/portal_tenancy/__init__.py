"""Portal tenancy - tenant resolution and switching for the employee portal.

Resolves, on every authenticated request, which tenant partition to use and
coordinates user-initiated tenant switches.
"""

# Initialize logging configuration on import
from .config.logging_config import setup_logging
setup_logging()

from .__version__ import __version__

from .config import (
    TenancySettings,
    get_settings,
    IntegrationProfile,
)

from .core.exceptions import (
    # Base Exception
    TenancyError,

    # Domain
    TenantNotFoundError,
    NoAssignmentDataError,
    TenantNotMemberError,
    NoIdentityInTargetError,

    # Infrastructure
    CacheError,
    StoreUnavailableError,
    SwitchStorageError,
    ConnectionRetriesExhaustedError,
    InvalidPartitionNameError,

    # Utility Functions
    get_http_status_code,
    create_error_response,
)

from .features.tenants import (
    TenantContext,
    TenantSummary,
    PartitionResolution,
    ResolutionTier,
    SwitchOutcome,
    SwitchResult,
    TenantResolver,
    TenantSwitchService,
    derive_partition_name,
    tenant_router,
    get_partition_name,
    get_tenant_partition,
)

__all__ = [
    "__version__",
    # Configuration
    "TenancySettings",
    "get_settings",
    "IntegrationProfile",
    # Exceptions
    "TenancyError",
    "TenantNotFoundError",
    "NoAssignmentDataError",
    "TenantNotMemberError",
    "NoIdentityInTargetError",
    "CacheError",
    "StoreUnavailableError",
    "SwitchStorageError",
    "ConnectionRetriesExhaustedError",
    "InvalidPartitionNameError",
    "get_http_status_code",
    "create_error_response",
    # Tenancy
    "TenantContext",
    "TenantSummary",
    "PartitionResolution",
    "ResolutionTier",
    "SwitchOutcome",
    "SwitchResult",
    "TenantResolver",
    "TenantSwitchService",
    "derive_partition_name",
    "tenant_router",
    "get_partition_name",
    "get_tenant_partition",
]
