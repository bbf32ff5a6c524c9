"""CacheStore abstraction + in-memory and fail-open backends.

Values are opaque strings (serialized JSON); every entry carries its own TTL.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional, Protocol

log = logging.getLogger(__name__)


class CacheStore(Protocol):
    """Protocol for TTL key/value storage. Implementations: NullCacheStore, InMemoryCacheStore, SqlCacheStore."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str, ttl: int) -> None:
        ...


class NullCacheStore:
    """Store used when caching is unavailable: every read misses, every write is dropped."""

    def get(self, key: str) -> Optional[str]:
        return None

    def set(self, key: str, value: str, ttl: int) -> None:
        return None


class InMemoryCacheStore:
    """Process-local store. Expired entries are evicted when read."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: str, ttl: int) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def build_cache_store(backend: str | None = None, database_url: str | None = None) -> CacheStore:
    """Select the cache backend from configuration.

    A database URL always wins; otherwise `backend` picks memory (default) or none.
    """
    from org_analytics import config

    backend = (backend if backend is not None else config.CACHE_BACKEND).strip().lower()
    database_url = database_url if database_url is not None else config.CACHE_DATABASE_URL
    if database_url or backend == "sql":
        from org_analytics.adapters.sql_cache_store import SqlCacheStore

        log.info("cache_backend=sql")
        return SqlCacheStore(database_url)
    if backend in {"none", "off", "disabled"}:
        log.info("cache_backend=none")
        return NullCacheStore()
    log.info("cache_backend=memory")
    return InMemoryCacheStore()
