"""
Database connection management using asyncpg.

One process-wide pool serves every tenant partition. A partition is a
PostgreSQL schema; ``PartitionHandle`` qualifies table names with it so that
concurrent requests for different tenants share the pool without sharing any
"current partition" state.
"""
import asyncio
import logging
import re
import time
from typing import Optional, Any, List, Protocol, runtime_checkable

import asyncpg
from asyncpg import Pool, Record

from ..core.exceptions import (
    ConfigurationError,
    ConnectionRetriesExhaustedError,
    InvalidPartitionNameError,
)

logger = logging.getLogger(__name__)

PARTITION_NAME_PATTERN = re.compile(r'^[a-z_][a-z0-9_]{0,62}$')


def validate_partition_name(partition_name: str) -> str:
    """Return the partition name if it is a safe schema identifier."""
    if not partition_name or not PARTITION_NAME_PATTERN.match(partition_name):
        raise InvalidPartitionNameError(partition_name or "")
    return partition_name


@runtime_checkable
class ConnectionConfig(Protocol):
    """Protocol for connection manager configuration."""

    db_pool_min_size: int
    db_pool_max_size: int
    db_command_timeout: float
    connect_max_attempts: int
    connect_backoff_seconds: float
    connect_deadline_seconds: float
    assignment_partition: str
    directory_partition: str
    default_partition: str
    app_name: str

    def get_database_dsn(self) -> Optional[str]:
        """DSN for asyncpg."""
        ...


class PartitionHandle:
    """Store handle scoped to one partition.

    Handles are cheap and carry no connection of their own; every query
    acquires from the shared pool.
    """

    def __init__(self, manager: "ConnectionManager", partition_name: str):
        self._manager = manager
        self.partition_name = validate_partition_name(partition_name)

    def __repr__(self) -> str:
        return f"PartitionHandle({self.partition_name!r})"

    def table(self, name: str) -> str:
        """Fully qualified, quoted table identifier inside this partition."""
        return f'"{self.partition_name}"."{name}"'

    async def fetch(self, query: str, *args, timeout: Optional[float] = None) -> List[Record]:
        """Fetch multiple rows."""
        pool = await self._manager.get_pool()
        return await pool.fetch(query, *args, timeout=timeout)

    async def fetchrow(self, query: str, *args, timeout: Optional[float] = None) -> Optional[Record]:
        """Fetch a single row."""
        pool = await self._manager.get_pool()
        return await pool.fetchrow(query, *args, timeout=timeout)

    async def fetchval(self, query: str, *args, timeout: Optional[float] = None) -> Any:
        """Fetch a single value."""
        pool = await self._manager.get_pool()
        return await pool.fetchval(query, *args, timeout=timeout)

    async def execute(self, query: str, *args, timeout: Optional[float] = None) -> str:
        """Execute a query without returning results."""
        pool = await self._manager.get_pool()
        return await pool.execute(query, *args, timeout=timeout)


class ConnectionManager:
    """Owns the lazily created pool and hands out partition handles.

    Lifecycle: ``initialize()`` at startup (optional, the first query also
    connects), ``close()`` at shutdown. Concurrent first callers wait on one
    lock; only one of them connects.
    """

    def __init__(self, config: ConnectionConfig, pool_factory=None):
        self.config = config
        self.pool: Optional[Pool] = None
        self._lock = asyncio.Lock()
        self._pool_factory = pool_factory or asyncpg.create_pool

    async def initialize(self) -> Pool:
        """Create the pool now instead of on first use."""
        return await self.get_pool()

    async def get_pool(self) -> Pool:
        """Return the shared pool, creating it with bounded retries."""
        if self.pool is not None:
            return self.pool

        async with self._lock:
            if self.pool is None:
                self.pool = await self._create_pool_with_retry()
        return self.pool

    async def _create_pool_with_retry(self) -> Pool:
        dsn = self.config.get_database_dsn()
        if not dsn:
            raise ConfigurationError("DATABASE_URL is not configured")

        max_attempts = self.config.connect_max_attempts
        backoff = self.config.connect_backoff_seconds
        deadline = time.monotonic() + self.config.connect_deadline_seconds
        last_error: Optional[BaseException] = None
        attempts_made = 0

        for attempt in range(1, max_attempts + 1):
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            attempts_made = attempt
            try:
                logger.info(f"Creating database pool (attempt {attempt}/{max_attempts})")
                pool = await asyncio.wait_for(
                    self._pool_factory(
                        dsn,
                        min_size=self.config.db_pool_min_size,
                        max_size=self.config.db_pool_max_size,
                        command_timeout=self.config.db_command_timeout,
                        server_settings={"application_name": self.config.app_name},
                    ),
                    timeout=remaining
                )
                logger.info("Database pool created successfully")
                return pool
            except (asyncio.TimeoutError, OSError, asyncpg.PostgresError, asyncpg.InterfaceError) as e:
                last_error = e
                logger.warning(f"Database connection failed on attempt {attempt}/{max_attempts}: {e}")

            if attempt < max_attempts:
                sleep_for = min(backoff, max(0.0, deadline - time.monotonic()))
                await asyncio.sleep(sleep_for)

        logger.error(f"Failed to connect to the database after {attempts_made} attempts")
        raise ConnectionRetriesExhaustedError(
            f"Could not connect to the database: {last_error}",
            attempts=attempts_made
        )

    def get_partition(self, partition_name: str) -> PartitionHandle:
        """Handle for the given partition. The name is always passed explicitly."""
        return PartitionHandle(self, partition_name)

    def assignment_partition(self) -> PartitionHandle:
        """Partition holding user-to-tenant assignments."""
        return self.get_partition(self.config.assignment_partition)

    def directory_partition(self) -> PartitionHandle:
        """Partition holding the tenant directory."""
        return self.get_partition(self.config.directory_partition)

    def default_partition(self) -> PartitionHandle:
        """Legacy default tenant partition."""
        return self.get_partition(self.config.default_partition)

    async def close(self) -> None:
        """Close the connection pool."""
        async with self._lock:
            if self.pool is not None:
                await self.pool.close()
                self.pool = None
                logger.info("Database pool closed")

    async def health_check(self) -> bool:
        """Check database health."""
        try:
            pool = await self.get_pool()
            result = await pool.fetchval("SELECT 1", timeout=self.config.db_command_timeout)
            return result == 1
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False


# Global instance
_connection_manager: Optional[ConnectionManager] = None


def get_connection_manager(config: Optional[ConnectionConfig] = None) -> ConnectionManager:
    """Get the global connection manager instance."""
    global _connection_manager
    if _connection_manager is None:
        if config is None:
            from ..config.settings import get_settings
            config = get_settings()
        _connection_manager = ConnectionManager(config)
    return _connection_manager


async def init_connections(config: Optional[ConnectionConfig] = None) -> ConnectionManager:
    """Initialize database connections."""
    logger.info("Initializing database connections...")
    manager = get_connection_manager(config)
    await manager.initialize()
    logger.info("Database initialization complete")
    return manager


async def close_connections() -> None:
    """Close all database connections."""
    global _connection_manager
    if _connection_manager is not None:
        await _connection_manager.close()
        _connection_manager = None
