"""Adapters for cache storage."""

from org_analytics.adapters.cache_store import (
    CacheStore,
    InMemoryCacheStore,
    NullCacheStore,
    build_cache_store,
)

__all__ = ["CacheStore", "InMemoryCacheStore", "NullCacheStore", "build_cache_store"]
