"""Dependency container wiring for the application."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from nutrition_engine.adapters.edamam_client import HttpxEdamamProvider
from nutrition_engine.adapters.open_food_facts_client import (
    HttpxOpenFoodFactsProvider,
)
from nutrition_engine.adapters.usda_client import HttpxUsdaProvider
from nutrition_engine.config import Settings, parse_provider_order
from nutrition_engine.services.analysis import MealAnalysisService
from nutrition_engine.services.cache import Cache, InMemoryCache
from nutrition_engine.services.comparison import ComparisonEngine
from nutrition_engine.services.glycemic import GlycemicEngine, load_glycemic_engine
from nutrition_engine.services.grading import GradingEngine
from nutrition_engine.services.knowledge_base import (
    FoodKnowledgeBase,
    load_knowledge_base,
)
from nutrition_engine.services.resolver import NutrientResolver, NutritionProvider

_logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    knowledge_base: FoodKnowledgeBase
    cache: Cache
    resolver: NutrientResolver
    glycemic: GlycemicEngine
    grading: GradingEngine
    comparison: ComparisonEngine
    analysis: MealAnalysisService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    data_dir = Path(resolved_settings.data_dir) if resolved_settings.data_dir else None
    knowledge_base = load_knowledge_base(data_dir)
    glycemic = load_glycemic_engine(knowledge_base, data_dir)

    open_food_facts = HttpxOpenFoodFactsProvider.create(
        base_url=resolved_settings.open_food_facts_base_url
    )
    available: dict[
        str, HttpxUsdaProvider | HttpxEdamamProvider | HttpxOpenFoodFactsProvider
    ] = {
        "usda": HttpxUsdaProvider.create(
            api_key=resolved_settings.usda_api_key,
            base_url=resolved_settings.usda_base_url,
        ),
        "openfoodfacts": open_food_facts,
    }
    if resolved_settings.edamam_app_id and resolved_settings.edamam_app_key:
        available["edamam"] = HttpxEdamamProvider.create(
            app_id=resolved_settings.edamam_app_id,
            app_key=resolved_settings.edamam_app_key,
            base_url=resolved_settings.edamam_base_url,
        )
    providers: list[NutritionProvider] = [
        available[name]
        for name in parse_provider_order(resolved_settings.provider_order)
        if name in available
    ]
    _logger.info("Nutrition providers: %s", [provider.name for provider in providers])

    cache = InMemoryCache()
    resolver = NutrientResolver(
        knowledge_base=knowledge_base,
        cache=cache,
        providers=providers,
        barcode_provider=open_food_facts,
        provider_ttl_seconds=resolved_settings.provider_cache_ttl_seconds,
        provider_timeout_seconds=resolved_settings.provider_timeout_seconds,
        confidence_floor=resolved_settings.search_confidence_floor,
        debug=resolved_settings.debug,
    )
    grading = GradingEngine(glycemic_thresholds=glycemic.thresholds)
    analysis = MealAnalysisService(
        resolver=resolver, glycemic=glycemic, grading=grading
    )

    async def close_resources() -> None:
        for provider in available.values():
            await provider.close()

    return AppContainer(
        settings=resolved_settings,
        knowledge_base=knowledge_base,
        cache=cache,
        resolver=resolver,
        glycemic=glycemic,
        grading=grading,
        comparison=ComparisonEngine(),
        analysis=analysis,
        close_resources=close_resources,
    )
