"""Domain exceptions for tenant switching.

Every rejection is client-correctable: the caller should pick a different
tenant rather than retry.
"""

from typing import Optional

from .base import TenancyError


class TenantNotFoundError(TenancyError):
    """Base class for not-found rejections."""

    default_error_code = "not-found"

    def __init__(self, message: str, email: Optional[str] = None, tenant_id: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        if email:
            self.details["email"] = email
        if tenant_id:
            self.details["tenant_id"] = tenant_id


class NoAssignmentDataError(TenantNotFoundError):
    """The user has no available tenant set at all."""

    default_error_code = "no-assignment-data"


class TenantNotMemberError(TenantNotFoundError):
    """The requested tenant is not in the user's available tenant set."""

    default_error_code = "not-a-member"


class NoIdentityInTargetError(TenantNotFoundError):
    """The user is assigned to the tenant but has no record in its partition."""

    default_error_code = "no-identity-in-target"

    def __init__(self, message: str, partition_name: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        if partition_name:
            self.details["partition_name"] = partition_name


class MissingUserIdentityError(TenancyError):
    """No authenticated email was attached to the request."""

    default_error_code = "unauthenticated"
