"""Tenant request models for API endpoints."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SwitchTenantRequest(BaseModel):
    """Request model for switching the active tenant."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "tenant_id": "acme.example.com"
            }
        }
    )

    tenant_id: str = Field(
        ...,
        alias="tenantUrl",
        min_length=1,
        max_length=255,
        description="Tenant identifier (tenant url) to activate"
    )

    @field_validator('tenant_id')
    @classmethod
    def validate_tenant_id(cls, v):
        """Reject blank identifiers."""
        v = v.strip()
        if not v:
            raise ValueError('tenant_id cannot be blank')
        return v
