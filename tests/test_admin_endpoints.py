"""Tests for admin cache endpoints."""

from fastapi.testclient import TestClient

from nutrition_engine.api.app import create_app
from nutrition_engine.services.cache import build_cache_key
from tests.conftest import DRAGON_FRUIT, make_record

_HEADERS = {"X-Admin-Token": "admin-token"}


def test_admin_cache_stats_endpoint(container) -> None:
    client = TestClient(create_app(container))
    client.post("/resolve", json={"query": "dragon fruit", "portion_grams": 100})
    client.post("/resolve", json={"query": "dragon fruit", "portion_grams": 100})

    response = client.get("/admin/cache/stats", headers=_HEADERS)

    assert response.status_code == 200
    assert response.json() == {
        "size": 1,
        "hit_count": 1,
        "miss_count": 1,
        "hit_rate": 0.5,
    }


def test_admin_cache_cleanup_endpoint(container, clock) -> None:
    container.cache.set("stale", make_record(DRAGON_FRUIT), ttl_seconds=10)
    container.cache.set("fresh", make_record(DRAGON_FRUIT), ttl_seconds=1000)
    clock.advance(60)
    client = TestClient(create_app(container))

    response = client.post("/admin/cache/cleanup", headers=_HEADERS)

    assert response.status_code == 200
    assert response.json() == {"removed": 1}


def test_admin_cache_invalidate_single_key(container) -> None:
    key = build_cache_key("dragon fruit", 100)
    container.cache.set(key, make_record(DRAGON_FRUIT), ttl_seconds=60)
    client = TestClient(create_app(container))

    response = client.delete("/admin/cache", params={"key": key}, headers=_HEADERS)
    again = client.delete("/admin/cache", params={"key": key}, headers=_HEADERS)

    assert response.json() == {"removed": 1}
    assert again.json() == {"removed": 0}


def test_admin_cache_clear(container) -> None:
    container.cache.set("a", make_record(DRAGON_FRUIT), ttl_seconds=60)
    container.cache.set("b", make_record(DRAGON_FRUIT), ttl_seconds=60)
    client = TestClient(create_app(container))

    response = client.delete("/admin/cache", headers=_HEADERS)

    assert response.json() == {"removed": 2}
    assert container.cache.stats().size == 0
