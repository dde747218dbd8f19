"""Tests for the nutrition cache."""

import asyncio
from concurrent.futures import ThreadPoolExecutor

from nutrition_engine.services.cache import (
    InMemoryCache,
    build_cache_key,
    run_periodic_cleanup,
)
from tests.conftest import DRAGON_FRUIT, make_record


def test_get_returns_value_before_expiry(cache, clock) -> None:
    record = make_record(DRAGON_FRUIT)
    cache.set("key", record, ttl_seconds=60)

    clock.advance(59)

    assert cache.get("key") == record


def test_expired_entry_is_a_miss_before_cleanup(cache, clock) -> None:
    cache.set("key", make_record(DRAGON_FRUIT), ttl_seconds=60)

    clock.advance(60)

    assert cache.get("key") is None
    assert cache.cleanup_expired() == 1


def test_set_overwrites_and_resets_ttl(cache, clock) -> None:
    first = make_record(DRAGON_FRUIT, portion_grams=100)
    second = make_record(DRAGON_FRUIT, portion_grams=200)
    cache.set("key", first, ttl_seconds=60)
    clock.advance(50)

    cache.set("key", second, ttl_seconds=60)
    clock.advance(50)

    assert cache.get("key") == second


def test_cleanup_removes_only_expired(cache, clock) -> None:
    cache.set("short", make_record(DRAGON_FRUIT), ttl_seconds=10)
    cache.set("long", make_record(DRAGON_FRUIT), ttl_seconds=100)
    clock.advance(20)

    removed = cache.cleanup_expired()

    assert removed == 1
    assert cache.get("long") is not None
    assert cache.cleanup_expired() == 0


def test_cleanup_keeps_entries_refreshed_after_the_scan(cache, clock) -> None:
    cache.set("short", make_record(DRAGON_FRUIT), ttl_seconds=10)
    cache.set("long", make_record(DRAGON_FRUIT), ttl_seconds=100)
    clock.advance(20)

    class RefreshedAfterScan(dict):
        def items(self):
            snapshot = list(super().items())
            self["short"] = self["long"]
            return snapshot

    cache._entries = RefreshedAfterScan(cache._entries)

    assert cache.cleanup_expired() == 0
    assert cache.get("short") is not None


def test_stats_counts_hits_misses_and_live_entries(cache, clock) -> None:
    cache.set("a", make_record(DRAGON_FRUIT), ttl_seconds=10)
    cache.set("b", make_record(DRAGON_FRUIT), ttl_seconds=100)
    cache.get("a")
    cache.get("missing")
    clock.advance(20)

    stats = cache.stats()

    assert stats.size == 1
    assert stats.hit_count == 1
    assert stats.miss_count == 1
    assert stats.hit_rate == 0.5


def test_invalidate_and_clear(cache) -> None:
    cache.set("a", make_record(DRAGON_FRUIT), ttl_seconds=10)
    cache.set("b", make_record(DRAGON_FRUIT), ttl_seconds=10)

    assert cache.invalidate("a") is True
    assert cache.invalidate("a") is False
    assert cache.clear() == 1
    assert cache.get("b") is None


def test_cache_key_normalizes_query() -> None:
    assert build_cache_key("  Dragon   Fruit! ", 150) == build_cache_key(
        "dragon fruit", 150.0
    )


def test_cache_key_includes_portion_and_preparation() -> None:
    base = build_cache_key("dragon fruit", 150)

    assert base != build_cache_key("dragon fruit", 100)
    assert base != build_cache_key("dragon fruit", 150, "fried")


def test_concurrent_access_is_safe() -> None:
    cache = InMemoryCache()

    def worker(index: int) -> None:
        for step in range(200):
            key = f"key-{(index + step) % 10}"
            cache.set(key, make_record(DRAGON_FRUIT), ttl_seconds=60)
            cache.get(key)
            cache.cleanup_expired()

    with ThreadPoolExecutor(max_workers=8) as executor:
        list(executor.map(worker, range(8)))

    stats = cache.stats()
    assert stats.size == 10
    assert stats.hit_count == 8 * 200


def test_periodic_cleanup_removes_expired_entries(cache, clock) -> None:
    cache.set("key", make_record(DRAGON_FRUIT), ttl_seconds=1)
    clock.advance(5)

    async def run() -> None:
        task = asyncio.create_task(run_periodic_cleanup(cache, 0.01))
        await asyncio.sleep(0.05)
        task.cancel()

    asyncio.run(run())

    assert cache.cleanup_expired() == 0
    assert cache.stats().size == 0
