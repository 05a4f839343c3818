"""Tenant response models for API endpoints."""

from typing import Optional, Dict, Any, List
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from ..entities.resolution import PartitionResolution, SwitchResult
from ..entities.tenant_context import AvailableTenantSet, TenantContext, TenantSummary


class TenantSummaryResponse(BaseModel):
    """Response model for one tenant a user may activate."""

    tenant_id: str = Field(..., description="Tenant identifier (tenant url)")
    partition_name: str = Field(..., description="Data partition of the tenant")
    display_name: str = Field(..., description="Tenant display name")
    tenant_type: str = Field(..., description="Tenant type")
    integration_profile: str = Field(..., description="Downstream integration profile")
    logo_url: Optional[str] = Field(None, description="Tenant logo")
    last_switched_at: Optional[datetime] = Field(None, description="When the user last switched to this tenant")

    @classmethod
    def from_summary(cls, summary: TenantSummary, last_switched_at: Optional[datetime] = None) -> "TenantSummaryResponse":
        return cls(
            tenant_id=summary.tenant_id,
            partition_name=summary.partition_name,
            display_name=summary.display_name,
            tenant_type=summary.tenant_type,
            integration_profile=summary.integration_profile.value,
            logo_url=summary.logo_url,
            last_switched_at=last_switched_at,
        )

    @classmethod
    def from_context(cls, context: TenantContext) -> "TenantSummaryResponse":
        return cls.from_summary(context.tenant, context.last_switched_at)


def _available_list(available: Optional[AvailableTenantSet]) -> List[TenantSummaryResponse]:
    return [TenantSummaryResponse.from_summary(tenant) for tenant in (available or ())]


class SwitchTenantResponse(BaseModel):
    """Response model for a successful tenant switch."""

    outcome: str = Field(..., description="switched or already-active")
    tenant: TenantSummaryResponse = Field(..., description="The now active tenant")
    discard_client_state: bool = Field(..., description="Client must drop all locally cached state")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "outcome": "switched",
                "tenant": {
                    "tenant_id": "globex.example.com",
                    "partition_name": "globex",
                    "display_name": "Globex",
                    "tenant_type": "Venue",
                    "integration_profile": "Helm",
                    "logo_url": None,
                    "last_switched_at": "2024-05-01T12:00:00+00:00"
                },
                "discard_client_state": True
            }
        }
    )

    @classmethod
    def from_result(cls, result: SwitchResult) -> "SwitchTenantResponse":
        return cls(
            outcome=result.outcome.value,
            tenant=TenantSummaryResponse.from_context(result.tenant),
            discard_client_state=result.discard_client_state,
        )


class CurrentTenantResponse(BaseModel):
    """Response model for the resolved tenant context of the caller."""

    partition_name: str = Field(..., description="Partition used for this request")
    resolved_from: str = Field(..., description="Resolution tier that answered")
    degraded: bool = Field(..., description="Partition was derived or defaulted, not looked up")
    tenant: Optional[TenantSummaryResponse] = Field(None, description="Active tenant, when known")
    available_tenants: List[TenantSummaryResponse] = Field(default_factory=list, description="Tenants the user may activate")

    @classmethod
    def from_resolution(cls, resolution: PartitionResolution) -> "CurrentTenantResponse":
        return cls(
            partition_name=resolution.partition_name,
            resolved_from=resolution.tier.value,
            degraded=resolution.tier.is_degraded,
            tenant=TenantSummaryResponse.from_context(resolution.context) if resolution.context else None,
            available_tenants=_available_list(resolution.available),
        )


class TenancyHealthResponse(BaseModel):
    """Response model for tenancy infrastructure health."""

    status: str = Field(..., description="healthy or degraded")
    database_healthy: bool = Field(..., description="Database reachable")
    cache_healthy: bool = Field(..., description="Cache reachable")
    cache: Dict[str, Any] = Field(default_factory=dict, description="Cache status details")


class ErrorResponse(BaseModel):
    """Error body returned for tenancy errors."""

    error: Dict[str, Any] = Field(..., description="code, message, details, type")
