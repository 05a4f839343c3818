"""
Configuration management for the tenant resolution subsystem.

Settings are read from the environment (and an optional ``.env`` file) once per
process and shared by the cache client, the connection manager and the
tenant services.
"""
from functools import lru_cache
from typing import Optional

from pydantic import Field, RedisDsn, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import CacheTTL, PartitionNames, LEGACY_TENANT_IDENTIFIER


class TenancySettings(BaseSettings):
    """Settings for tenant resolution, caching and partition connections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Core Application Settings
    app_name: str = Field(default="portal-tenancy", description="Application name")
    environment: str = Field(default="development", description="Environment name")

    # Database Configuration
    database_url: Optional[str] = Field(default=None, description="PostgreSQL DSN for the tenant cluster")
    db_pool_min_size: int = Field(default=2, ge=0)
    db_pool_max_size: int = Field(default=20, ge=1)
    db_command_timeout: float = Field(default=30.0, gt=0)
    connect_max_attempts: int = Field(default=3, ge=1)
    connect_backoff_seconds: float = Field(default=0.5, ge=0)
    connect_deadline_seconds: float = Field(default=10.0, gt=0)

    # Redis Cache Configuration
    redis_url: Optional[RedisDsn] = Field(default=None)
    redis_pool_size: int = Field(default=10, ge=1)
    cache_key_prefix: str = Field(default="portal:")
    cache_timeout_seconds: float = Field(default=0.25, gt=0)
    cache_reconnect_cooldown_seconds: float = Field(default=30.0, ge=0)
    tenant_context_ttl: int = Field(default=CacheTTL.TENANT_CONTEXT, gt=0)

    # Authoritative store
    store_timeout_seconds: float = Field(default=3.0, gt=0)
    assignment_partition: str = Field(default=PartitionNames.ASSIGNMENTS)
    directory_partition: str = Field(default=PartitionNames.DIRECTORY)
    default_partition: str = Field(default=PartitionNames.LEGACY_DEFAULT)
    legacy_tenant_identifier: str = Field(default=LEGACY_TENANT_IDENTIFIER)
    legacy_partition: str = Field(default=PartitionNames.LEGACY_DEFAULT)
    applicant_lookup_enabled: bool = Field(default=True)

    # Logging Configuration
    log_level: str = Field(default="INFO")

    @field_validator("default_partition", "legacy_partition", "assignment_partition", "directory_partition")
    @classmethod
    def validate_partition(cls, v: str) -> str:
        """Partition names must never be empty."""
        v = v.strip().lower()
        if not v:
            raise ValueError("Partition names cannot be empty")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def is_cache_enabled(self) -> bool:
        """Check if Redis caching is configured."""
        return self.redis_url is not None

    def get_cache_key_prefix(self) -> str:
        """Get cache key prefix."""
        return self.cache_key_prefix

    def get_database_dsn(self) -> Optional[str]:
        """DSN usable by asyncpg (SQLAlchemy driver suffixes removed)."""
        if not self.database_url:
            return None
        return self.database_url.replace("+asyncpg", "")


@lru_cache()
def get_settings() -> TenancySettings:
    """Get the process-wide settings instance."""
    return TenancySettings()
