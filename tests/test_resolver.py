"""Tests for nutrient resolution."""

import asyncio

import pytest

from nutrition_engine.domain.errors import FoodNotFoundError, ProviderTimeoutError
from nutrition_engine.domain.nutrition import ResolutionRequest
from nutrition_engine.services.resolver import NutrientResolver
from tests.conftest import DRAGON_FRUIT, CountingProvider, make_nutrition


def test_local_hit_skips_cache_and_providers(resolver, usda_provider, cache) -> None:
    record = asyncio.run(resolver.resolve("grilled chicken breast", 150))

    assert record.provenance == "local"
    assert record.origin == "local"
    assert record.food_id == "chicken_breast"
    assert record.category_id == "poultry"
    assert record.nutrition.calories == 248
    assert usda_provider.calls == []
    assert cache.stats().size == 0


def test_local_hit_applies_preparation(resolver) -> None:
    record = asyncio.run(resolver.resolve("chicken breast", 150, "grilled"))

    assert record.preparation_id == "grilled"
    assert record.nutrition.fat == 4.9


def test_confident_search_match_is_accepted(resolver, usda_provider) -> None:
    record = asyncio.run(resolver.resolve("Atlantic Sal", 100))

    assert record.food_id == "salmon"
    assert usda_provider.calls == []


def test_weak_search_match_falls_through_to_providers(
    resolver, usda_provider, off_provider
) -> None:
    off_provider.results["breast"] = DRAGON_FRUIT

    record = asyncio.run(resolver.resolve("breast", 100))

    assert record.provenance == "openfoodfacts"
    assert usda_provider.calls == ["breast"]


def test_provider_hit_is_scaled_and_cached(resolver, usda_provider) -> None:
    first = asyncio.run(resolver.resolve("dragon fruit", 50))
    second = asyncio.run(resolver.resolve("Dragon Fruit", 50))

    assert first.provenance == "usda"
    assert first.nutrition.calories == 30
    assert first.nutrition.carbs == 6.5
    assert second.provenance == "cache"
    assert second.origin == "usda"
    assert second.nutrition == first.nutrition
    assert usda_provider.calls == ["dragon fruit"]


def test_cache_is_keyed_by_portion(resolver, usda_provider) -> None:
    asyncio.run(resolver.resolve("dragon fruit", 50))
    record = asyncio.run(resolver.resolve("dragon fruit", 100))

    assert record.provenance == "usda"
    assert len(usda_provider.calls) == 2


def test_provider_error_falls_back_to_next(
    resolver, usda_provider, off_provider
) -> None:
    usda_provider.error = RuntimeError("boom")
    off_provider.results["dragon fruit"] = make_nutrition(calories=70, carbs=15)

    record = asyncio.run(resolver.resolve("dragon fruit", 100))

    assert record.provenance == "openfoodfacts"
    assert record.nutrition.calories == 70


def test_provider_timeout_falls_back_to_next(
    knowledge_base, cache, off_provider
) -> None:
    slow = CountingProvider(
        name="usda", results={"dragon fruit": DRAGON_FRUIT}, delay_seconds=1
    )
    off_provider.results["dragon fruit"] = make_nutrition(calories=61)
    resolver = NutrientResolver(
        knowledge_base=knowledge_base,
        cache=cache,
        providers=[slow, off_provider],
        provider_timeout_seconds=0.05,
    )

    record = asyncio.run(resolver.resolve("dragon fruit", 100))

    assert record.provenance == "openfoodfacts"
    assert record.nutrition.calories == 61


def test_all_providers_timing_out_raises_timeout(knowledge_base, cache) -> None:
    resolver = NutrientResolver(
        knowledge_base=knowledge_base,
        cache=cache,
        providers=[
            CountingProvider(name="usda", delay_seconds=1),
            CountingProvider(name="edamam", delay_seconds=1),
        ],
        provider_timeout_seconds=0.05,
    )

    with pytest.raises(ProviderTimeoutError) as excinfo:
        asyncio.run(resolver.resolve("dragon fruit", 100))

    assert excinfo.value.attempted == ["usda", "edamam"]


def test_not_found_everywhere_raises_without_caching(resolver, cache) -> None:
    with pytest.raises(FoodNotFoundError) as excinfo:
        asyncio.run(resolver.resolve("unicorn stew", 100))

    assert not isinstance(excinfo.value, ProviderTimeoutError)
    assert excinfo.value.attempted == ["usda", "openfoodfacts"]
    assert cache.stats().size == 0


@pytest.mark.parametrize("portion", [0, -10])
def test_non_positive_portion_is_rejected(resolver, portion) -> None:
    with pytest.raises(ValueError):
        asyncio.run(resolver.resolve("chicken breast", portion))


def test_resolve_many_tags_outcomes_with_requests(resolver) -> None:
    requests = [
        ResolutionRequest(request_id="1", query="unicorn stew", portion_grams=100),
        ResolutionRequest(request_id="2", query="dragon fruit", portion_grams=200),
        ResolutionRequest(request_id="3", query="rice", portion_grams=150),
    ]

    outcomes = asyncio.run(resolver.resolve_many(requests))

    assert [outcome.request.request_id for outcome in outcomes] == ["1", "2", "3"]
    assert outcomes[0].record is None
    assert "unicorn stew" in outcomes[0].error
    assert outcomes[1].record.nutrition.calories == 120
    assert outcomes[2].record.food_id == "white_rice"


def test_resolve_barcode_is_cached(resolver, barcode_provider) -> None:
    barcode_provider.products["3017620422003"] = make_nutrition(
        calories=539, protein=6.3, carbs=57.5, fat=30.9, sugar=56.3, sodium=43
    )

    first = asyncio.run(resolver.resolve_barcode("3017620422003", 15))
    second = asyncio.run(resolver.resolve_barcode("3017620422003", 15))

    assert first.provenance == "openfoodfacts"
    assert first.nutrition.calories == 81
    assert second.provenance == "cache"
    assert barcode_provider.calls == ["3017620422003"]


def test_resolve_unknown_barcode_raises(resolver) -> None:
    with pytest.raises(FoodNotFoundError):
        asyncio.run(resolver.resolve_barcode("0000000000000", 100))
