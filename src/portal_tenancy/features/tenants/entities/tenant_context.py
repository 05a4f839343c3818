"""Tenant context domain entities.

These are the values stored in the per-user cache entry and returned by the
authoritative store. ``to_dict`` / ``from_dict`` define the cached JSON shape;
the whole entry is always written in one piece.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Iterator, Optional, Tuple

from ....config.constants import IntegrationProfile, DEFAULT_TENANT_TYPE, ACTIVE_ASSIGNMENT_STATUS


def normalize_email(email: str) -> str:
    """Lowercase and trim an email. Every cache key and lookup uses this form."""
    if email is None:
        raise ValueError("email cannot be None")
    return email.strip().lower()


def normalize_tenant_id(tenant_id: Optional[str]) -> str:
    """Comparable form of a tenant url: lowercase, no scheme, no trailing slash."""
    if not tenant_id:
        return ""
    value = tenant_id.strip().lower()
    for scheme in ("https://", "http://"):
        if value.startswith(scheme):
            value = value[len(scheme):]
            break
    return value.rstrip("/")


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _format_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class TenantSummary:
    """One tenant a user may activate.

    ``partition_name`` may be empty when the directory has no explicit
    database for the tenant; the resolver derives one in that case.
    """

    tenant_id: str
    partition_name: str = ""
    display_name: str = ""
    tenant_type: str = DEFAULT_TENANT_TYPE
    integration_profile: IntegrationProfile = IntegrationProfile.HELM
    status: str = ACTIVE_ASSIGNMENT_STATUS
    logo_url: Optional[str] = None
    last_login_at: Optional[datetime] = None

    def matches(self, tenant_id: str) -> bool:
        """Check whether a requested tenant id designates this tenant."""
        return bool(tenant_id) and normalize_tenant_id(self.tenant_id) == normalize_tenant_id(tenant_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tenant_id": self.tenant_id,
            "partition_name": self.partition_name,
            "display_name": self.display_name,
            "tenant_type": self.tenant_type,
            "integration_profile": self.integration_profile.value,
            "status": self.status,
            "logo_url": self.logo_url,
            "last_login_at": _format_datetime(self.last_login_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TenantSummary":
        return cls(
            tenant_id=data["tenant_id"],
            partition_name=data.get("partition_name") or "",
            display_name=data.get("display_name") or "",
            tenant_type=data.get("tenant_type") or DEFAULT_TENANT_TYPE,
            integration_profile=IntegrationProfile.parse(data.get("integration_profile")),
            status=data.get("status") or ACTIVE_ASSIGNMENT_STATUS,
            logo_url=data.get("logo_url"),
            last_login_at=_parse_datetime(data.get("last_login_at")),
        )


@dataclass(frozen=True)
class TenantContext:
    """The tenant a user currently has active."""

    tenant: TenantSummary
    last_switched_at: Optional[datetime] = None

    @property
    def tenant_id(self) -> str:
        return self.tenant.tenant_id

    @property
    def partition_name(self) -> str:
        return self.tenant.partition_name

    @property
    def display_name(self) -> str:
        return self.tenant.display_name

    @property
    def integration_profile(self) -> IntegrationProfile:
        return self.tenant.integration_profile

    def with_partition(self, partition_name: str) -> "TenantContext":
        """Copy with a (derived) partition name filled in."""
        return replace(self, tenant=replace(self.tenant, partition_name=partition_name))

    def to_dict(self) -> Dict[str, Any]:
        data = self.tenant.to_dict()
        data["last_switched_at"] = _format_datetime(self.last_switched_at)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TenantContext":
        return cls(
            tenant=TenantSummary.from_dict(data),
            last_switched_at=_parse_datetime(data.get("last_switched_at")),
        )


class AvailableTenantSet:
    """Ordered, immutable set of tenants a user may activate."""

    __slots__ = ("_tenants",)

    def __init__(self, tenants: Iterable[TenantSummary] = ()):
        unique = []
        seen = set()
        for tenant in tenants:
            key = normalize_tenant_id(tenant.tenant_id)
            if key and key not in seen:
                seen.add(key)
                unique.append(tenant)
        self._tenants: Tuple[TenantSummary, ...] = tuple(unique)

    def __iter__(self) -> Iterator[TenantSummary]:
        return iter(self._tenants)

    def __len__(self) -> int:
        return len(self._tenants)

    def __bool__(self) -> bool:
        return bool(self._tenants)

    def __contains__(self, tenant_id: object) -> bool:
        return isinstance(tenant_id, str) and self.find(tenant_id) is not None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AvailableTenantSet):
            return NotImplemented
        return self._tenants == other._tenants

    def __repr__(self) -> str:
        return f"AvailableTenantSet({[t.tenant_id for t in self._tenants]!r})"

    def find(self, tenant_id: str) -> Optional[TenantSummary]:
        """Return the member designated by ``tenant_id``, if any."""
        for tenant in self._tenants:
            if tenant.matches(tenant_id):
                return tenant
        return None

    def including(self, tenant: TenantSummary) -> "AvailableTenantSet":
        """Copy that is guaranteed to contain ``tenant`` (appended if missing)."""
        if self.find(tenant.tenant_id) is not None:
            return self
        return AvailableTenantSet((*self._tenants, tenant))

    def to_list(self) -> list:
        return [tenant.to_dict() for tenant in self._tenants]

    @classmethod
    def from_list(cls, data: Optional[list]) -> "AvailableTenantSet":
        return cls(TenantSummary.from_dict(item) for item in (data or []))


@dataclass(frozen=True)
class UserIdentityInTenant:
    """Projection of the user inside one tenant partition.

    The same login can map to different internal ids in different partitions.
    """

    user_id: str
    employee_id: Optional[str] = None
    user_type: Optional[str] = None
    employee_type: Optional[str] = None
    status: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "employee_id": self.employee_id,
            "user_type": self.user_type,
            "employee_type": self.employee_type,
            "status": self.status,
            "first_name": self.first_name,
            "last_name": self.last_name,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserIdentityInTenant":
        return cls(
            user_id=str(data["user_id"]),
            employee_id=data.get("employee_id"),
            user_type=data.get("user_type"),
            employee_type=data.get("employee_type"),
            status=data.get("status"),
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
        )


@dataclass(frozen=True)
class TenantAssignment:
    """What the authoritative store knows about a user's tenants."""

    active: TenantContext
    available: AvailableTenantSet = field(default_factory=AvailableTenantSet)

    def __post_init__(self):
        # The active tenant is always a member of the available set
        object.__setattr__(self, "available", self.available.including(self.active.tenant))


@dataclass(frozen=True)
class CacheEntry:
    """Value of the per-user tenant context cache key."""

    active: TenantContext
    available: AvailableTenantSet
    identity: Optional[UserIdentityInTenant] = None

    def __post_init__(self):
        object.__setattr__(self, "available", self.available.including(self.active.tenant))

    @classmethod
    def from_assignment(
        cls,
        assignment: TenantAssignment,
        identity: Optional[UserIdentityInTenant] = None
    ) -> "CacheEntry":
        return cls(active=assignment.active, available=assignment.available, identity=identity)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "active": self.active.to_dict(),
            "available": self.available.to_list(),
            "identity": self.identity.to_dict() if self.identity else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheEntry":
        identity = data.get("identity")
        return cls(
            active=TenantContext.from_dict(data["active"]),
            available=AvailableTenantSet.from_list(data.get("available")),
            identity=UserIdentityInTenant.from_dict(identity) if identity else None,
        )
