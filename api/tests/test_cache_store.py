"""Tests for cache backends and the cache-aside policy."""

import asyncio
import threading

import pytest

from migrate_db import migrate_database
from org_analytics import config
from org_analytics.adapters.cache_store import InMemoryCacheStore, NullCacheStore, build_cache_store
from org_analytics.adapters.sql_cache_store import SqlCacheStore
from org_analytics.services.cache_aside import (
    CacheAside,
    contributors_key,
    enhanced_repository_key,
    repositories_key,
)


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class BrokenStore:
    def get(self, key):
        raise ConnectionError("cache down")

    def set(self, key, value, ttl):
        raise ConnectionError("cache down")


class SlowWriteStore(InMemoryCacheStore):
    """Blocks every set until `release` is signalled."""

    def __init__(self) -> None:
        super().__init__()
        self.release = threading.Event()

    def set(self, key, value, ttl):
        self.release.wait(timeout=5)
        super().set(key, value, ttl)


def test_cache_keys_are_namespaced_by_org_and_kind():
    assert repositories_key("acme") == "analytics:acme:all"
    assert enhanced_repository_key("acme", "widgets") == "analytics:acme:widgets:enhanced"
    assert contributors_key("acme") == "analytics:acme:contributors"


def test_enhanced_ttl_outlives_base_snapshot():
    assert config.ENHANCED_CACHE_TTL_SECONDS > config.CACHE_TTL_SECONDS


def test_in_memory_store_roundtrip_and_expiry():
    clock = FakeClock()
    store = InMemoryCacheStore(clock=clock)

    store.set("k", "v", ttl=60)
    assert store.get("k") == "v"

    clock.now += 59
    assert store.get("k") == "v"

    clock.now += 1
    assert store.get("k") is None
    assert len(store) == 0


def test_in_memory_store_overwrite_replaces_entry_wholesale():
    store = InMemoryCacheStore()
    store.set("k", "old", ttl=60)
    store.set("k", "new", ttl=60)
    assert store.get("k") == "new"


def test_null_store_always_misses():
    store = NullCacheStore()
    store.set("k", "v", ttl=60)
    assert store.get("k") is None


def test_sql_store_roundtrip_expiry_and_purge(tmp_path):
    clock = FakeClock()
    store = SqlCacheStore(f"sqlite:///{tmp_path / 'cache.db'}", clock=clock)

    store.set("a", '{"x": 1}', ttl=10)
    store.set("b", "[]", ttl=100)
    store.set("a", '{"x": 2}', ttl=10)
    assert store.get("a") == '{"x": 2}'
    assert store.get("missing") is None

    clock.now += 10
    assert store.get("a") is None

    clock.now += 100
    assert store.purge_expired() == 1
    assert store.get("b") is None


def test_sql_store_requires_database_url(monkeypatch):
    monkeypatch.delenv("ANALYTICS_CACHE_DATABASE_URL", raising=False)
    with pytest.raises(ValueError):
        SqlCacheStore()


def test_build_cache_store_selects_backend(tmp_path):
    assert isinstance(build_cache_store("memory", database_url=""), InMemoryCacheStore)
    assert isinstance(build_cache_store("none", database_url=""), NullCacheStore)
    assert isinstance(build_cache_store("memory", database_url=f"sqlite:///{tmp_path / 'c.db'}"), SqlCacheStore)


def test_migrate_database_recreates_cache_table(tmp_path):
    url = f"sqlite:///{tmp_path / 'cache.db'}"
    store = SqlCacheStore(url)
    store.set("k", "v", ttl=60)

    migrate_database(url)

    assert SqlCacheStore(url).get("k") is None


@pytest.mark.asyncio
async def test_cache_aside_read_error_is_a_miss():
    assert await CacheAside(BrokenStore()).read("k") is None


@pytest.mark.asyncio
async def test_cache_aside_write_error_is_ignored():
    cache = CacheAside(BrokenStore())
    cache.write("k", "v", ttl=60)
    await cache.flush()
    assert cache.pending_writes == 0


@pytest.mark.asyncio
async def test_get_or_compute_hit_skips_computation():
    store = InMemoryCacheStore()
    store.set("k", "cached", ttl=60)

    async def _compute():
        raise AssertionError("must not recompute on hit")

    assert await CacheAside(store).get_or_compute("k", 60, _compute) == "cached"


@pytest.mark.asyncio
async def test_get_or_compute_miss_writes_back():
    clock = FakeClock()
    store = InMemoryCacheStore(clock=clock)
    calls = []

    async def _compute():
        calls.append(1)
        return "fresh"

    cache = CacheAside(store)
    assert await cache.get_or_compute("k", 30, _compute) == "fresh"
    await cache.flush()
    assert await cache.get_or_compute("k", 30, _compute) == "fresh"
    assert len(calls) == 1

    clock.now += 30
    assert await cache.get_or_compute("k", 30, _compute) == "fresh"
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_get_or_compute_with_broken_store_still_computes():
    async def _compute():
        return "fresh"

    cache = CacheAside(BrokenStore())
    assert await cache.get_or_compute("k", 30, _compute) == "fresh"
    await cache.flush()


@pytest.mark.asyncio
async def test_slow_store_write_does_not_delay_result():
    store = SlowWriteStore()
    cache = CacheAside(store)

    async def _compute():
        return "fresh"

    result = await asyncio.wait_for(cache.get_or_compute("k", 30, _compute), timeout=1)

    assert result == "fresh"
    assert cache.pending_writes == 1
    assert store.get("k") is None

    store.release.set()
    await cache.flush()

    assert cache.pending_writes == 0
    assert store.get("k") == "fresh"


@pytest.mark.asyncio
async def test_slow_store_does_not_block_event_loop():
    store = SlowWriteStore()
    cache = CacheAside(store)
    cache.write("k", "v", ttl=30)

    ticks = 0
    for _ in range(3):
        await asyncio.sleep(0.01)
        ticks += 1

    assert ticks == 3
    assert cache.pending_writes == 1
    store.release.set()
    await cache.flush()
    assert store.get("k") == "v"
