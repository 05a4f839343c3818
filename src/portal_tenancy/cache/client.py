"""
Redis cache client used as the fast read path for tenant context.

Every operation is bounded by a short timeout. An unreachable or slow Redis
downgrades to a cache miss (``None``) or a failed write (``False``); it never
raises into the request path.
"""
import asyncio
import json
import logging
import time
from typing import Optional, Any, Dict, Protocol, runtime_checkable

from redis.asyncio import Redis, ConnectionPool

logger = logging.getLogger(__name__)


@runtime_checkable
class CacheConfig(Protocol):
    """Protocol for cache configuration."""

    @property
    def is_cache_enabled(self) -> bool:
        """Whether cache is enabled."""
        ...

    @property
    def redis_url(self) -> Optional[Any]:
        """Redis connection URL."""
        ...

    @property
    def redis_pool_size(self) -> int:
        """Redis connection pool size."""
        ...

    @property
    def cache_timeout_seconds(self) -> float:
        """Per-command timeout."""
        ...

    @property
    def cache_reconnect_cooldown_seconds(self) -> float:
        """Seconds to wait after a failed connect before trying again."""
        ...

    def get_cache_key_prefix(self) -> str:
        """Get cache key prefix."""
        ...


class CacheManager:
    """Manages the process-wide Redis connection and key-value operations."""

    def __init__(self, config: Optional[CacheConfig] = None):
        self.config = config
        self.redis_client: Optional[Redis] = None
        self.pool: Optional[ConnectionPool] = None
        self.key_prefix = config.get_cache_key_prefix() if config else "portal:"
        self.timeout = config.cache_timeout_seconds if config else 0.25
        self.is_available = False
        self.connection_attempted = False
        self._last_failure_at: Optional[float] = None
        self._connect_lock = asyncio.Lock()

    def _in_cooldown(self) -> bool:
        if self._last_failure_at is None:
            return False
        cooldown = self.config.cache_reconnect_cooldown_seconds if self.config else 30.0
        return (time.monotonic() - self._last_failure_at) < cooldown

    async def connect(self) -> Optional[Redis]:
        """Create and return the Redis connection.

        Returns None if Redis is not configured, or if the last attempt failed
        and the reconnect cool-down has not elapsed.
        """
        if self.redis_client is not None:
            return self.redis_client

        if not self.config or not self.config.is_cache_enabled:
            if not self.connection_attempted:
                logger.info(
                    "Redis URL not configured (REDIS_URL not set). "
                    "Every tenant resolution will hit the authoritative store."
                )
                self.connection_attempted = True
            return None

        if self._in_cooldown():
            return None

        async with self._connect_lock:
            # Another task may have connected while we waited for the lock
            if self.redis_client is not None:
                return self.redis_client
            if self._in_cooldown():
                return None

            self.connection_attempted = True
            pool = ConnectionPool.from_url(
                str(self.config.redis_url),
                max_connections=self.config.redis_pool_size,
                decode_responses=True,
                socket_timeout=self.timeout,
                socket_connect_timeout=self.timeout,
                health_check_interval=30
            )
            client = Redis(connection_pool=pool)

            try:
                logger.info("Creating Redis connection pool...")
                await asyncio.wait_for(client.ping(), timeout=self.timeout)
            except Exception as e:
                logger.warning(f"Redis connection failed: {e}. Tenant context cache disabled until retry.")
                self.is_available = False
                self._last_failure_at = time.monotonic()
                await self._release(client, pool)
                return None

            logger.info("Redis connection established successfully")
            self.redis_client = client
            self.pool = pool
            self.is_available = True
            self._last_failure_at = None
            return self.redis_client

    @staticmethod
    async def _release(client: Optional[Redis], pool: Optional[ConnectionPool]) -> None:
        if client is not None:
            try:
                await client.aclose()
            except Exception as e:
                logger.debug(f"Ignoring error while closing Redis client: {e}")
        if pool is not None:
            try:
                await pool.disconnect()
            except Exception as e:
                logger.debug(f"Ignoring error while closing Redis pool: {e}")

    async def disconnect(self) -> None:
        """Close Redis connection."""
        async with self._connect_lock:
            if self.redis_client:
                await self._release(self.redis_client, self.pool)
                self.redis_client = None
                self.pool = None
                self.is_available = False
                logger.info("Redis connection closed")

    def _mark_failed(self) -> None:
        """Record a failed command; the pool reconnects on its own."""
        self.is_available = False

    def make_key(self, key: str) -> str:
        """Create a prefixed cache key."""
        return f"{self.key_prefix}{key}"

    async def get(self, key: str) -> Optional[Any]:
        """Get a JSON value from cache. Failures are reported as a miss."""
        client = await self.connect()
        if not client:
            return None

        full_key = self.make_key(key)

        try:
            value = await asyncio.wait_for(client.get(full_key), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Cache get timed out for key {full_key}")
            return None
        except Exception as e:
            logger.error(f"Cache get error for key {full_key}: {e}")
            self._mark_failed()
            return None

        if value is None:
            return None

        try:
            return json.loads(value)
        except (TypeError, json.JSONDecodeError):
            logger.warning(f"Discarding undecodable cache value for key {full_key}")
            return None

    async def set(
        self,
        key: str,
        value: Any,
        ttl: int,
        only_if_absent: bool = False
    ) -> bool:
        """Write a whole JSON value with expiry in one command.

        Returns False when Redis is unavailable, the call timed out, or
        ``only_if_absent`` was requested and the key already existed.
        """
        client = await self.connect()
        if not client:
            return False

        full_key = self.make_key(key)
        payload = json.dumps(value)

        try:
            result = await asyncio.wait_for(
                client.set(full_key, payload, ex=ttl, nx=only_if_absent),
                timeout=self.timeout
            )
            return bool(result)
        except asyncio.TimeoutError:
            logger.warning(f"Cache set timed out for key {full_key}")
            return False
        except Exception as e:
            logger.error(f"Cache set error for key {full_key}: {e}")
            self._mark_failed()
            return False

    async def delete(self, *keys: str) -> Optional[int]:
        """Delete keys. Returns the number removed, or None if the command did not run."""
        if not keys:
            return 0

        client = await self.connect()
        if not client:
            return None

        full_keys = [self.make_key(key) for key in keys]

        try:
            return await asyncio.wait_for(client.delete(*full_keys), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Cache delete timed out for keys {full_keys}")
            return None
        except Exception as e:
            logger.error(f"Cache delete error for keys {full_keys}: {e}")
            self._mark_failed()
            return None

    async def health_check(self) -> bool:
        """Check Redis health."""
        client = await self.connect()
        if not client:
            return False
        try:
            await asyncio.wait_for(client.ping(), timeout=self.timeout)
            self.is_available = True
            return True
        except Exception as e:
            logger.error(f"Redis health check failed: {e}")
            self._mark_failed()
            return False

    def get_cache_status(self) -> Dict[str, Any]:
        """Get cache status information."""
        return {
            "redis_configured": self.config.is_cache_enabled if self.config else False,
            "redis_available": self.is_available,
            "connection_attempted": self.connection_attempted,
            "key_prefix": self.key_prefix,
            "timeout_seconds": self.timeout,
            "warnings": [
                "Tenant context cache unavailable",
                "Every request resolves through the authoritative store",
            ] if not self.is_available else []
        }


_cache_manager: Optional[CacheManager] = None


def get_cache_manager(config: Optional[CacheConfig] = None) -> CacheManager:
    """Get the global cache manager instance."""
    global _cache_manager
    if _cache_manager is None:
        if config is None:
            from ..config.settings import get_settings
            config = get_settings()
        _cache_manager = CacheManager(config)
    return _cache_manager


async def close_cache() -> None:
    """Close the global cache manager."""
    global _cache_manager
    if _cache_manager is not None:
        await _cache_manager.disconnect()
        _cache_manager = None
