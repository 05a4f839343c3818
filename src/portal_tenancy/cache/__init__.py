"""Redis cache client for tenant context."""

from .client import CacheConfig, CacheManager, get_cache_manager, close_cache

__all__ = [
    "CacheConfig",
    "CacheManager",
    "get_cache_manager",
    "close_cache",
]
