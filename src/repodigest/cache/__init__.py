"""Digest caching keyed by normalized repository identity."""

from repodigest.cache.store import (
    DEFAULT_EXPIRY,
    CacheEntry,
    CacheListing,
    CacheMetadata,
    CacheStore,
    FileSystemCacheStore,
    MemoryCacheStore,
)

__all__ = [
    "DEFAULT_EXPIRY",
    "CacheEntry",
    "CacheListing",
    "CacheMetadata",
    "CacheStore",
    "FileSystemCacheStore",
    "MemoryCacheStore",
]
