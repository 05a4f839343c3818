"""Authoritative store for tenant assignments, backed by asyncpg.

Tables (schema = partition):

* ``<assignment partition>.user_tenants``: one row per (user, tenant url)
* ``<directory partition>.tenants``: tenant directory (display data, db name)
* ``<tenant partition>.users``: per-tenant user records
* ``<tenant partition>.applicants``: per-tenant applicant records

Every call is bounded by ``store_timeout_seconds``. Timeouts, driver errors
and connection exhaustion raise ``StoreUnavailableError``.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Dict, List, Optional, TypeVar

import asyncpg

from ....core.exceptions import (
    ConfigurationError,
    ConnectionRetriesExhaustedError,
    InvalidPartitionNameError,
    StoreUnavailableError,
)
from ....config.constants import ACTIVE_ASSIGNMENT_STATUS, DEFAULT_TENANT_TYPE, IntegrationProfile
from ....database.connection import ConnectionManager, PartitionHandle
from ..entities.tenant_context import (
    AvailableTenantSet,
    TenantAssignment,
    TenantContext,
    TenantSummary,
    UserIdentityInTenant,
    normalize_email,
    normalize_tenant_id,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_UNAVAILABLE_ERRORS = (
    asyncio.TimeoutError,
    OSError,
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    ConnectionRetriesExhaustedError,
    ConfigurationError,
)

# Partition exists in the directory but has no such table/schema yet
_MISSING_RELATION_ERRORS = (
    asyncpg.UndefinedTableError,
    asyncpg.InvalidSchemaNameError,
)


def _normalized_url_sql(column: str) -> str:
    """SQL counterpart of ``normalize_tenant_id`` for a url or domain column."""
    return f"rtrim(regexp_replace(lower(btrim({column})), '^https?://', ''), '/')"


def _affected_rows(status: Any) -> int:
    """Row count from an asyncpg command status such as ``UPDATE 1``."""
    try:
        return int(str(status).rsplit(" ", 1)[-1])
    except ValueError:
        return 0


def _most_recent(rows: List[Any]) -> Any:
    """Row with the latest ``last_login_at``; ties and missing dates keep the earlier row."""
    latest = None
    for row in rows:
        if latest is None:
            latest = row
            continue
        current_at = row["last_login_at"]
        latest_at = latest["last_login_at"]
        if current_at is not None and (latest_at is None or current_at > latest_at):
            latest = row
    return latest


class AssignmentRepository:
    """PostgreSQL implementation of the authoritative store."""

    def __init__(
        self,
        connection_manager: ConnectionManager,
        timeout: float = 3.0,
        applicant_lookup_enabled: bool = True
    ):
        self._connections = connection_manager
        self._timeout = timeout
        self._applicant_lookup_enabled = applicant_lookup_enabled

    async def _bounded(self, operation: str, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except _UNAVAILABLE_ERRORS as e:
            logger.warning(f"Authoritative store {operation} failed: {e!r}")
            raise StoreUnavailableError(
                f"Authoritative store unavailable during {operation}",
                operation=operation
            ) from e

    # Assignment lookup

    async def lookup_assignment(self, email: str) -> Optional[TenantAssignment]:
        """Active and available tenants for a user, or None if unassigned."""
        email = normalize_email(email)
        return await self._bounded("lookup_assignment", self._lookup_assignment(email))

    async def _lookup_assignment(self, email: str) -> Optional[TenantAssignment]:
        assignments = self._connections.assignment_partition()
        rows = await assignments.fetch(
            f"""
                SELECT id, tenant_url, status, last_login_at
                FROM {assignments.table("user_tenants")}
                WHERE lower(email_address) = $1
                ORDER BY id
            """,
            email
        )

        if not rows:
            if self._applicant_lookup_enabled:
                return await self._lookup_applicant_assignment(email)
            return None

        active_rows = [row for row in rows if row["status"] == ACTIVE_ASSIGNMENT_STATUS]
        if not active_rows:
            logger.info(f"No active tenant assignment for {email}")
            return None

        directory = await self._load_directory([row["tenant_url"] for row in active_rows])

        def summary_for(row) -> TenantSummary:
            return self._map_summary(
                directory.get(normalize_tenant_id(row["tenant_url"])),
                tenant_id=row["tenant_url"],
                status=row["status"],
                last_login_at=row["last_login_at"],
            )

        current = _most_recent(active_rows)
        available = AvailableTenantSet(
            summary_for(row)
            for row in active_rows
            if directory.get(normalize_tenant_id(row["tenant_url"]), {}).get("client_name")
        )
        return TenantAssignment(active=TenantContext(tenant=summary_for(current)), available=available)

    async def _load_directory(self, tenant_urls: List[str]) -> Dict[str, Dict[str, Any]]:
        """Directory rows indexed by every domain they answer to."""
        urls = [normalize_tenant_id(url) for url in tenant_urls if url]
        if not urls:
            return {}

        directory = self._connections.directory_partition()
        rows = await directory.fetch(
            f"""
                SELECT id, client_name, client_domain, additional_domains,
                       tenant_type, tenant_logo, db_name, peo_integration
                FROM {directory.table("tenants")}
                WHERE {_normalized_url_sql("client_domain")} = ANY($1::text[])
                   OR EXISTS (
                       SELECT 1 FROM unnest(additional_domains) AS extra_domain
                       WHERE {_normalized_url_sql("extra_domain")} = ANY($1::text[])
                   )
                ORDER BY id
            """,
            urls
        )

        indexed: Dict[str, Dict[str, Any]] = {}
        for row in rows:
            data = dict(row)
            domains = [data.get("client_domain")] + list(data.get("additional_domains") or [])
            for domain in domains:
                key = normalize_tenant_id(domain)
                if key and key not in indexed:
                    indexed[key] = data
        return indexed

    async def _lookup_applicant_assignment(self, email: str) -> Optional[TenantAssignment]:
        """Applicant-only users: scan every directory tenant's applicants table."""
        directory = self._connections.directory_partition()
        tenants = await directory.fetch(
            f"""
                SELECT id, client_name, client_domain, additional_domains,
                       tenant_type, tenant_logo, db_name, peo_integration
                FROM {directory.table("tenants")}
                WHERE db_name IS NOT NULL AND db_name <> ''
                ORDER BY id
            """
        )

        found: List[TenantSummary] = []
        for tenant in tenants:
            data = dict(tenant)
            try:
                partition = self._connections.get_partition(data["db_name"].strip().lower())
                applicant_id = await partition.fetchval(
                    f"SELECT id FROM {partition.table('applicants')} WHERE lower(email) = $1 LIMIT 1",
                    email
                )
            except (InvalidPartitionNameError, *_MISSING_RELATION_ERRORS) as e:
                logger.warning(f"Skipping tenant {data.get('client_domain')} during applicant lookup: {e}")
                continue

            if applicant_id is not None:
                found.append(self._map_summary(data, tenant_id=data.get("client_domain") or ""))

        if not found:
            return None

        logger.info(f"Resolved applicant {email} to {len(found)} tenant(s)")
        return TenantAssignment(active=TenantContext(tenant=found[0]), available=AvailableTenantSet(found))

    @staticmethod
    def _map_summary(
        directory_row: Optional[Dict[str, Any]],
        tenant_id: str,
        status: str = ACTIVE_ASSIGNMENT_STATUS,
        last_login_at: Optional[datetime] = None
    ) -> TenantSummary:
        row = directory_row or {}
        return TenantSummary(
            tenant_id=tenant_id,
            partition_name=(row.get("db_name") or "").strip().lower(),
            display_name=row.get("client_name") or "",
            tenant_type=row.get("tenant_type") or DEFAULT_TENANT_TYPE,
            integration_profile=IntegrationProfile.parse(row.get("peo_integration")),
            status=status,
            logo_url=row.get("tenant_logo"),
            last_login_at=last_login_at,
        )

    # Identity lookup

    async def lookup_identity(self, partition_name: str, email: str) -> Optional[UserIdentityInTenant]:
        """The user's record inside ``partition_name``, or None."""
        email = normalize_email(email)
        partition = self._connections.get_partition(partition_name)
        return await self._bounded("lookup_identity", self._lookup_identity(partition, email))

    async def _lookup_identity(self, partition: PartitionHandle, email: str) -> Optional[UserIdentityInTenant]:
        try:
            row = await partition.fetchrow(
                f"""
                    SELECT id, applicant_id, first_name, last_name,
                           user_type, employee_type, status
                    FROM {partition.table("users")}
                    WHERE lower(email_address) = $1
                    LIMIT 1
                """,
                email
            )
        except _MISSING_RELATION_ERRORS as e:
            logger.warning(f"Partition {partition.partition_name} has no users table: {e}")
            return None

        if row is None:
            return None

        return UserIdentityInTenant(
            user_id=str(row["id"]),
            employee_id=str(row["applicant_id"]) if row["applicant_id"] is not None else None,
            user_type=row["user_type"],
            employee_type=row["employee_type"],
            status=row["status"],
            first_name=row["first_name"],
            last_name=row["last_name"],
        )

    # Switch bookkeeping

    async def record_switch(self, email: str, tenant_id: str, timestamp: datetime) -> bool:
        """Store the switch time as the tenant's latest login for this user."""
        email = normalize_email(email)
        assignments = self._connections.assignment_partition()
        result = await self._bounded(
            "record_switch",
            assignments.execute(
                f"""
                    UPDATE {assignments.table("user_tenants")}
                    SET last_login_at = $3
                    WHERE lower(email_address) = $1
                      AND {_normalized_url_sql("tenant_url")} = $2
                """,
                email,
                normalize_tenant_id(tenant_id),
                timestamp
            )
        )
        updated = _affected_rows(result) > 0
        if not updated:
            logger.warning(f"No assignment row updated when recording switch of {email} to {tenant_id}")
        return updated
