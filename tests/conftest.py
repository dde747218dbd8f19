"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import pytest

from nutrition_engine.config import Settings
from nutrition_engine.containers import AppContainer
from nutrition_engine.domain.nutrition import LOCAL, NutritionPer100g, NutritionRecord
from nutrition_engine.services.analysis import MealAnalysisService
from nutrition_engine.services.cache import InMemoryCache
from nutrition_engine.services.comparison import ComparisonEngine
from nutrition_engine.services.glycemic import GlycemicEngine, load_glycemic_engine
from nutrition_engine.services.grading import GradingEngine
from nutrition_engine.services.knowledge_base import (
    FoodKnowledgeBase,
    calculate_nutrition,
    load_knowledge_base,
)
from nutrition_engine.services.resolver import NutrientResolver


@dataclass
class CountingProvider:
    """Fake nutrition provider returning canned values and recording calls."""

    name: str
    results: dict[str, NutritionPer100g] = field(default_factory=dict)
    delay_seconds: float = 0.0
    error: Exception | None = None
    calls: list[str] = field(default_factory=list)

    async def lookup(self, query: str) -> NutritionPer100g | None:
        self.calls.append(query)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.error is not None:
            raise self.error
        return self.results.get(query)


@dataclass
class FakeBarcodeProvider:
    """Fake barcode provider keyed by barcode."""

    name: str = "openfoodfacts"
    products: dict[str, NutritionPer100g] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)

    async def lookup_barcode(self, barcode: str) -> NutritionPer100g | None:
        self.calls.append(barcode)
        return self.products.get(barcode)


@dataclass
class FakeClock:
    """Manually advanced clock for cache tests."""

    now: datetime = field(default_factory=lambda: datetime(2026, 1, 1, tzinfo=UTC))

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def make_nutrition(**values: float | None) -> NutritionPer100g:
    """Nutrition with zeroed required fields, overridden by ``values``."""
    base: dict[str, float | None] = {
        "calories": 0,
        "protein": 0,
        "carbs": 0,
        "fat": 0,
        "fiber": 0,
        "sugar": 0,
        "sodium": 0,
    }
    base.update(values)
    return NutritionPer100g(**base)


def make_record(
    nutrition: NutritionPer100g,
    portion_grams: float = 100,
    query: str = "test food",
    category_id: str | None = None,
) -> NutritionRecord:
    return NutritionRecord(
        query=query,
        nutrition=nutrition,
        portion_grams=portion_grams,
        provenance=LOCAL,
        origin=LOCAL,
        category_id=category_id,
    )


def local_record(
    knowledge_base: FoodKnowledgeBase, food_id: str, grams: float
) -> NutritionRecord:
    """Record for a bundled food, built the way the resolver builds local hits."""
    food = knowledge_base.get_food(food_id)
    assert food is not None
    category = knowledge_base.get_category_for_food(food_id)
    return NutritionRecord(
        query=food_id,
        nutrition=calculate_nutrition(food, grams),
        portion_grams=grams,
        provenance=LOCAL,
        origin=LOCAL,
        food_id=food.id,
        name=food.name,
        category_id=category.id if category else None,
    )


DRAGON_FRUIT = make_nutrition(
    calories=60, protein=1.2, carbs=13, fat=0.4, fiber=3, sugar=8, sodium=0
)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        admin_token="admin-token",
        usda_api_key="usda-key",
        provider_timeout_seconds=0.2,
    )


@pytest.fixture(scope="session")
def knowledge_base() -> FoodKnowledgeBase:
    return load_knowledge_base()


@pytest.fixture(scope="session")
def glycemic(knowledge_base: FoodKnowledgeBase) -> GlycemicEngine:
    return load_glycemic_engine(knowledge_base)


@pytest.fixture
def grading() -> GradingEngine:
    return GradingEngine()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> InMemoryCache:
    return InMemoryCache(clock=clock)


@pytest.fixture
def usda_provider() -> CountingProvider:
    return CountingProvider(name="usda", results={"dragon fruit": DRAGON_FRUIT})


@pytest.fixture
def off_provider() -> CountingProvider:
    return CountingProvider(name="openfoodfacts")


@pytest.fixture
def barcode_provider() -> FakeBarcodeProvider:
    return FakeBarcodeProvider()


@pytest.fixture
def resolver(
    knowledge_base: FoodKnowledgeBase,
    cache: InMemoryCache,
    usda_provider: CountingProvider,
    off_provider: CountingProvider,
    barcode_provider: FakeBarcodeProvider,
) -> NutrientResolver:
    return NutrientResolver(
        knowledge_base=knowledge_base,
        cache=cache,
        providers=[usda_provider, off_provider],
        barcode_provider=barcode_provider,
        provider_timeout_seconds=0.2,
    )


@pytest.fixture
def container(
    settings: Settings,
    knowledge_base: FoodKnowledgeBase,
    glycemic: GlycemicEngine,
    cache: InMemoryCache,
    resolver: NutrientResolver,
    grading: GradingEngine,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        knowledge_base=knowledge_base,
        cache=cache,
        resolver=resolver,
        glycemic=glycemic,
        grading=grading,
        comparison=ComparisonEngine(),
        analysis=MealAnalysisService(
            resolver=resolver, glycemic=glycemic, grading=grading
        ),
        close_resources=close_resources,
    )
