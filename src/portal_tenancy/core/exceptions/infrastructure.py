"""Infrastructure exceptions for portal-tenancy.

Transient errors (cache, store) degrade the resolver to its next tier.
Fatal errors (connection exhaustion, invalid partition) are always surfaced.
"""

from typing import Optional

from .base import TenancyError


# Cache Errors
class CacheError(TenancyError):
    """Base class for cache-related errors."""

    def __init__(self, message: str, operation: Optional[str] = None, key: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        if operation:
            self.details["operation"] = operation
        if key:
            self.details["key"] = key


# Authoritative store errors
class StoreUnavailableError(TenancyError):
    """Authoritative store timed out or could not be reached."""

    def __init__(self, message: str, operation: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        if operation:
            self.details["operation"] = operation


class SwitchStorageError(TenancyError):
    """A tenant switch could not complete because cache or store failed."""

    def __init__(self, message: str = "Failed to switch tenant", stage: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        if stage:
            self.details["stage"] = stage


# Connection errors
class ConnectionRetriesExhaustedError(TenancyError):
    """The connection manager could not connect within its retry budget."""

    default_error_code = "connection-unavailable"

    def __init__(self, message: str, attempts: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        if attempts is not None:
            self.details["attempts"] = attempts


class InvalidPartitionNameError(TenancyError):
    """Partition name is empty or not a safe schema identifier."""

    default_error_code = "invalid-partition"

    def __init__(self, partition_name: str, **kwargs):
        super().__init__(f"Invalid partition name: {partition_name!r}", **kwargs)
        self.details["partition_name"] = partition_name


class ConfigurationError(TenancyError):
    """Raised when required configuration is missing."""

    default_error_code = "configuration-error"
