"""Configuration for portal-tenancy."""

from .constants import (
    CacheKeys,
    CacheTTL,
    DERIVED_USER_CACHE_KINDS,
    IntegrationProfile,
    LEGACY_TENANT_IDENTIFIER,
    PartitionNames,
)
from .logging_config import LoggingConfig, setup_logging, get_logger
from .settings import TenancySettings, get_settings

__all__ = [
    "CacheKeys",
    "CacheTTL",
    "DERIVED_USER_CACHE_KINDS",
    "IntegrationProfile",
    "LEGACY_TENANT_IDENTIFIER",
    "PartitionNames",
    "LoggingConfig",
    "setup_logging",
    "get_logger",
    "TenancySettings",
    "get_settings",
]
