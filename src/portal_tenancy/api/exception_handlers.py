"""
Exception handlers for applications that mount the tenancy router.

Tenancy errors are rendered as ``{"error": {code, message, details, type}}``
with the status from ``core.exceptions.http_mapping`` so clients can tell
"pick a different tenant" (4xx) from "try again" (5xx).
"""
from typing import Dict, Any, Optional, Callable
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
import logging

from ..core.exceptions import TenancyError, create_error_response, get_http_status_code

logger = logging.getLogger(__name__)


class ExceptionHandlerRegistry:
    """Registry for the tenancy exception handlers."""

    def __init__(
        self,
        response_formatter: Optional[Callable[[TenancyError], Dict[str, Any]]] = None,
        is_production: bool = True
    ):
        """
        Initialize exception handler registry.

        Args:
            response_formatter: Function turning a tenancy error into a body
            is_production: Hide unexpected error messages when True
        """
        self.response_formatter = response_formatter or create_error_response
        self.is_production = is_production

    def register_handlers(self, app: FastAPI) -> None:
        """Register exception handlers for the application.

        Args:
            app: FastAPI application instance
        """
        @app.exception_handler(TenancyError)
        async def tenancy_exception_handler(request: Request, exc: TenancyError):
            """Handle tenancy exceptions."""
            status_code = get_http_status_code(exc)
            if status_code >= 500:
                logger.error(f"{exc.__class__.__name__} on {request.method} {request.url.path}: {exc.message}")
            return JSONResponse(
                status_code=status_code,
                content=self.response_formatter(exc)
            )

        @app.exception_handler(Exception)
        async def general_exception_handler(request: Request, exc: Exception):
            """Handle unexpected exceptions."""
            logger.error(f"Unhandled exception: {exc}", exc_info=True)

            message = "An unexpected error occurred" if self.is_production else str(exc)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=self.response_formatter(TenancyError(message))
            )


def register_exception_handlers(
    app: FastAPI,
    response_formatter: Optional[Callable[[TenancyError], Dict[str, Any]]] = None,
    is_production: bool = True
) -> None:
    """
    Register exception handlers for a FastAPI application.

    Args:
        app: FastAPI application instance
        response_formatter: Custom response formatter function
        is_production: Whether running in production mode
    """
    registry = ExceptionHandlerRegistry(response_formatter, is_production)
    registry.register_handlers(app)
