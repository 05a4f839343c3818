"""Base exceptions for portal-tenancy.

All exceptions inherit from TenancyError and carry an error code, details
and (through ``http_mapping``) an HTTP status code for API responses.
"""

from typing import Any, Dict, Optional


class TenancyError(Exception):
    """Base exception for all portal-tenancy errors."""

    default_error_code: str = "internal-error"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}


def get_http_status_code(exception: Exception) -> int:
    """Get HTTP status code for an exception."""
    from .http_mapping import get_http_status_code as _lookup
    return _lookup(exception)


def create_error_response(exception: TenancyError) -> Dict[str, Any]:
    """Create standardized error response from exception."""
    return {
        "error": {
            "code": exception.error_code,
            "message": exception.message,
            "details": exception.details,
            "type": exception.__class__.__name__,
        }
    }
