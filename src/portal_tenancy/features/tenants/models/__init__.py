"""Tenant request/response models for API endpoints."""

from .requests import SwitchTenantRequest

from .responses import (
    TenantSummaryResponse,
    SwitchTenantResponse,
    CurrentTenantResponse,
    TenancyHealthResponse,
    ErrorResponse,
)

__all__ = [
    # Request models
    "SwitchTenantRequest",

    # Response models
    "TenantSummaryResponse",
    "SwitchTenantResponse",
    "CurrentTenantResponse",
    "TenancyHealthResponse",
    "ErrorResponse",
]
