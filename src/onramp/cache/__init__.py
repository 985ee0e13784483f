"""Remote cache with a silent process-local fallback."""

from onramp.cache.local import NO_EXPIRY, CacheEntry, LocalStore
from onramp.cache.store import (
    CacheItem,
    CacheStats,
    DualBackendCache,
    RemoteStore,
)

__all__ = [
    "NO_EXPIRY",
    "CacheEntry",
    "CacheItem",
    "CacheStats",
    "DualBackendCache",
    "LocalStore",
    "RemoteStore",
]
