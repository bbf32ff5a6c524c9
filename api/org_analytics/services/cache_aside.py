"""Cache-aside access to a CacheStore.

A hit is returned verbatim and replaces the computation entirely. Store
calls run in a worker thread so a SQL backend never blocks the event loop.
Store failures never fail the caller: a read error is a miss, a write error
is logged and dropped.

Writes are fire-and-forget: `write` starts the store call and returns
immediately. `flush` awaits whatever is still pending; the router runs it as
a background task after the response has been sent.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from org_analytics.adapters.cache_store import CacheStore

log = logging.getLogger(__name__)


def repositories_key(org: str) -> str:
    return f"analytics:{org}:all"


def enhanced_repository_key(org: str, repo: str) -> str:
    return f"analytics:{org}:{repo}:enhanced"


def contributors_key(org: str) -> str:
    return f"analytics:{org}:contributors"


class CacheAside:
    def __init__(self, store: CacheStore) -> None:
        self._store = store
        self._pending: set[asyncio.Task] = set()

    async def read(self, key: str) -> Optional[str]:
        try:
            value = await asyncio.to_thread(self._store.get, key)
        except Exception as e:
            log.warning("cache_read_failed key=%s error=%s", key, e)
            return None
        log.debug("cache_%s key=%s", "hit" if value is not None else "miss", key)
        return value

    async def _store_value(self, key: str, value: str, ttl: int) -> None:
        try:
            await asyncio.to_thread(self._store.set, key, value, ttl)
        except Exception as e:
            log.warning("cache_write_failed key=%s ttl=%s error=%s", key, ttl, e)

    def write(self, key: str, value: str, ttl: int) -> None:
        """Start storing `value` without waiting for the store. Must be called from a running loop."""
        task = asyncio.get_running_loop().create_task(self._store_value(key, value, ttl))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    async def flush(self) -> None:
        """Wait for every write started so far."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def get_or_compute(self, key: str, ttl: int, compute: Callable[[], Awaitable[str]]) -> str:
        """Return the cached payload for `key`, or compute it, start storing it and return it."""
        cached = await self.read(key)
        if cached is not None:
            return cached
        value = await compute()
        self.write(key, value, ttl)
        return value
