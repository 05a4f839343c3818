"""Constants and enums for portal-tenancy.

Cache key patterns here are shared with the domain handlers that own the
derived per-user keys; a tenant switch deletes every key listed in
``DERIVED_USER_CACHE_KINDS`` for the switching user.
"""

from enum import Enum
from typing import Final, Tuple


class CacheKeys:
    """Cache key patterns for Redis (before the configured prefix)."""

    TENANT_CONTEXT: Final[str] = "tenant:{email}"
    DERIVED_USER: Final[str] = "user:{kind}:{email}"


class CacheTTL:
    """Cache TTL values in seconds."""

    TENANT_CONTEXT: Final[int] = 86400       # 24 hours


# Per-user keys computed by domain handlers under the active tenant.
DERIVED_USER_CACHE_KINDS: Final[Tuple[str, ...]] = (
    "enhanced",
    "jobs",
    "punches",
    "dashboard",
    "notifications",
)


class PartitionNames:
    """Cross-tenant administrative partitions."""

    ASSIGNMENTS: Final[str] = "usermaster"
    DIRECTORY: Final[str] = "tenant"
    LEGACY_DEFAULT: Final[str] = "stadiumpeople"


# Public identifier of the legacy job board. Its first label ("jobs") is not a
# partition; it always resolves to the legacy default partition.
LEGACY_TENANT_IDENTIFIER: Final[str] = "jobs.stadiumpeople.com"

ACTIVE_ASSIGNMENT_STATUS: Final[str] = "Active"
DEFAULT_TENANT_TYPE: Final[str] = "Venue"


class IntegrationProfile(str, Enum):
    """Downstream PEO integration a tenant is wired to."""

    HELM = "Helm"
    PRISM = "Prism"

    @classmethod
    def parse(cls, value) -> "IntegrationProfile":
        """Coerce stored values, defaulting unknown ones to Helm."""
        if isinstance(value, cls):
            return value
        for member in cls:
            if isinstance(value, str) and value.strip().lower() == member.value.lower():
                return member
        return cls.HELM
