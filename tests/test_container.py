"""Tests for container wiring."""

import asyncio

from nutrition_engine.config import Settings
from nutrition_engine.containers import build_container


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)

    assert container.knowledge_base.food_count > 0
    assert [provider.name for provider in container.resolver.providers] == [
        "usda",
        "openfoodfacts",
    ]
    assert container.resolver.barcode_provider is not None
    assert container.resolver.provider_timeout_seconds == 0.2
    asyncio.run(container.close_resources())


def test_build_container_adds_edamam_when_configured() -> None:
    settings = Settings(
        admin_token="admin-token",
        edamam_app_id="id",
        edamam_app_key="key",
        provider_order="edamam,usda",
    )

    container = build_container(settings)

    assert [provider.name for provider in container.resolver.providers] == [
        "edamam",
        "usda",
    ]
    asyncio.run(container.close_resources())
