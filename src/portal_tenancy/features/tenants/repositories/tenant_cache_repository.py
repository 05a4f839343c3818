"""Cache repository for per-user tenant context entries.

Key naming (before the cache manager's prefix):

* ``tenant:<email>``: the whole ``CacheEntry`` (active, available, identity)
* ``user:<kind>:<email>``: derived per-user keys owned by domain handlers,
  one per kind in ``DERIVED_USER_CACHE_KINDS``

Emails are normalized before they reach a key.
"""

import logging
from typing import List, Optional

from ....config.constants import CacheKeys, CacheTTL, DERIVED_USER_CACHE_KINDS
from ..entities.protocols import CacheStore
from ..entities.tenant_context import CacheEntry, normalize_email

logger = logging.getLogger(__name__)


def tenant_context_key(email: str) -> str:
    """Cache key of a user's tenant context entry."""
    return CacheKeys.TENANT_CONTEXT.format(email=normalize_email(email))


def derived_user_cache_key(kind: str, email: str) -> str:
    """Cache key of a derived per-user value (dashboard, punches, ...)."""
    if kind not in DERIVED_USER_CACHE_KINDS:
        raise ValueError(f"Unknown derived cache kind: {kind}")
    return CacheKeys.DERIVED_USER.format(kind=kind, email=normalize_email(email))


def derived_user_cache_keys(email: str) -> List[str]:
    """Every derived per-user key a tenant switch must invalidate."""
    return [derived_user_cache_key(kind, email) for kind in DERIVED_USER_CACHE_KINDS]


class TenantCacheRepository:
    """Typed access to tenant context cache entries.

    Reads tolerate an unavailable cache (miss). Writes report success so the
    switch coordinator can refuse to continue when the cache did not accept
    the write.
    """

    def __init__(self, cache: CacheStore, ttl: int = CacheTTL.TENANT_CONTEXT):
        self._cache = cache
        self._ttl = ttl

    @property
    def ttl(self) -> int:
        return self._ttl

    async def get_entry(self, email: str) -> Optional[CacheEntry]:
        """Get the cached entry for a user, or None on miss or undecodable data."""
        key = tenant_context_key(email)
        data = await self._cache.get(key)
        if not data:
            return None

        try:
            return CacheEntry.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Ignoring malformed tenant context entry {key}: {e}")
            return None

    async def put_entry(self, email: str, entry: CacheEntry) -> bool:
        """Replace the whole entry in one write."""
        return await self._cache.set(tenant_context_key(email), entry.to_dict(), ttl=self._ttl)

    async def add_entry_if_absent(self, email: str, entry: CacheEntry) -> bool:
        """Write the entry only if no entry exists (never overwrites a newer switch)."""
        return await self._cache.set(
            tenant_context_key(email),
            entry.to_dict(),
            ttl=self._ttl,
            only_if_absent=True
        )

    async def delete_entry(self, email: str) -> Optional[int]:
        """Delete the tenant context entry."""
        return await self._cache.delete(tenant_context_key(email))

    async def invalidate_derived_keys(self, email: str) -> Optional[int]:
        """Delete every derived per-user key. None means the delete did not run."""
        keys = derived_user_cache_keys(email)
        deleted = await self._cache.delete(*keys)
        if deleted is not None:
            logger.debug(f"Invalidated {deleted} derived cache keys for {normalize_email(email)}")
        return deleted

    async def health_check(self) -> bool:
        return await self._cache.health_check()
