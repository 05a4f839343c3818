"""HTTP status code mapping for portal-tenancy exceptions."""

from typing import Dict, Type

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


HTTP_STATUS_MAP: Dict[Type[Exception], int] = {
    # 401 Unauthorized
    MissingUserIdentityError: 401,

    # 404 Not Found
    TenantNotFoundError: 404,
    NoAssignmentDataError: 404,
    TenantNotMemberError: 404,
    NoIdentityInTargetError: 404,

    # 500 Internal Server Error
    CacheError: 500,
    StoreUnavailableError: 500,
    SwitchStorageError: 500,
    InvalidPartitionNameError: 500,
    ConfigurationError: 500,

    # 503 Service Unavailable
    ConnectionRetriesExhaustedError: 503,
}


def get_http_status_code(exception: Exception) -> int:
    """Get HTTP status code, walking the MRO for the closest mapped class."""
    for cls in type(exception).__mro__:
        if cls in HTTP_STATUS_MAP:
            return HTTP_STATUS_MAP[cls]
    return 500
