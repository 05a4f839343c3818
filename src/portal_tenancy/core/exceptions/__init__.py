"""Exception hierarchy for portal-tenancy."""

from .base import TenancyError, get_http_status_code, create_error_response
from .domain import (
    TenantNotFoundError,
    NoAssignmentDataError,
    TenantNotMemberError,
    NoIdentityInTargetError,
    MissingUserIdentityError,
)
from .infrastructure import (
    CacheError,
    StoreUnavailableError,
    SwitchStorageError,
    ConnectionRetriesExhaustedError,
    InvalidPartitionNameError,
    ConfigurationError,
)

__all__ = [
    "TenancyError",
    "get_http_status_code",
    "create_error_response",
    # Domain
    "TenantNotFoundError",
    "NoAssignmentDataError",
    "TenantNotMemberError",
    "NoIdentityInTargetError",
    "MissingUserIdentityError",
    # Infrastructure
    "CacheError",
    "StoreUnavailableError",
    "SwitchStorageError",
    "ConnectionRetriesExhaustedError",
    "InvalidPartitionNameError",
    "ConfigurationError",
]
