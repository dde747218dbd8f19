"""Nutrient resolution across the knowledge base, the cache and providers."""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from typing import Protocol

from nutrition_engine.domain.errors import FoodNotFoundError, ProviderTimeoutError
from nutrition_engine.domain.nutrition import (
    CACHE,
    LOCAL,
    NutritionPer100g,
    NutritionRecord,
    ResolutionOutcome,
    ResolutionRequest,
)
from nutrition_engine.services.cache import (
    Cache,
    build_barcode_cache_key,
    build_cache_key,
)
from nutrition_engine.services.knowledge_base import FoodKnowledgeBase

DEFAULT_PROVIDER_TTL_SECONDS = 30 * 24 * 3600

_logger = logging.getLogger(__name__)


class NutritionProvider(Protocol):
    """External source of per-100 g nutrition."""

    name: str

    async def lookup(self, query: str) -> NutritionPer100g | None:
        """Return per-100 g values for a query, or ``None`` when unknown."""


class BarcodeProvider(Protocol):
    """External source of per-100 g nutrition keyed by product barcode."""

    name: str

    async def lookup_barcode(self, barcode: str) -> NutritionPer100g | None:
        """Return per-100 g values for a barcode, or ``None`` when unknown."""


@dataclass
class NutrientResolver:
    """Resolve a food query to portion-scaled nutrition.

    Sources are tried in a fixed order: the local knowledge base, the cache,
    then each provider in turn. Local hits are never cached; provider hits are
    cached with ``provider_ttl_seconds``.
    """

    knowledge_base: FoodKnowledgeBase
    cache: Cache
    providers: list[NutritionProvider] = field(default_factory=list)
    barcode_provider: BarcodeProvider | None = None
    provider_ttl_seconds: int = DEFAULT_PROVIDER_TTL_SECONDS
    provider_timeout_seconds: float = 8.0
    confidence_floor: int = 80
    debug: bool = False

    async def resolve(
        self, query: str, portion_grams: float, preparation_id: str | None = None
    ) -> NutritionRecord:
        """Resolve nutrition for a portion of a food."""
        _validate_portion(portion_grams)
        local = self._resolve_local(query, portion_grams, preparation_id)
        if local is not None:
            if self.debug:
                _logger.info(
                    "Resolved locally: query=%s food_id=%s", query, local.food_id
                )
            return local

        cache_key = build_cache_key(query, portion_grams, preparation_id)
        cached = self.cache.get(cache_key)
        if cached is not None:
            if self.debug:
                _logger.info("Resolved from cache: query=%s", query)
            return replace(cached, provenance=CACHE)

        record = await self._resolve_with_providers(
            query, portion_grams, preparation_id
        )
        self.cache.set(cache_key, record, ttl_seconds=self.provider_ttl_seconds)
        return record

    async def resolve_barcode(
        self, barcode: str, portion_grams: float
    ) -> NutritionRecord:
        """Resolve a packaged product by barcode."""
        _validate_portion(portion_grams)
        cache_key = build_barcode_cache_key(barcode, portion_grams)
        cached = self.cache.get(cache_key)
        if cached is not None:
            return replace(cached, provenance=CACHE)
        if self.barcode_provider is None:
            raise FoodNotFoundError(barcode)

        provider = self.barcode_provider
        try:
            per_100g = await asyncio.wait_for(
                provider.lookup_barcode(barcode),
                timeout=self.provider_timeout_seconds,
            )
        except TimeoutError as exc:
            _logger.warning("Barcode lookup timed out: barcode=%s", barcode)
            raise ProviderTimeoutError(barcode, [provider.name]) from exc
        except Exception as exc:
            _logger.warning(
                "Barcode lookup failed (provider=%s, status=%s): %s",
                provider.name,
                _status_code_from_exception(exc),
                exc,
            )
            raise FoodNotFoundError(barcode, [provider.name]) from exc
        if per_100g is None:
            raise FoodNotFoundError(barcode, [provider.name])

        record = NutritionRecord(
            query=barcode,
            nutrition=per_100g.scaled(portion_grams / 100),
            portion_grams=portion_grams,
            provenance=provider.name,
            origin=provider.name,
        )
        self.cache.set(cache_key, record, ttl_seconds=self.provider_ttl_seconds)
        return record

    async def resolve_many(
        self, requests: Sequence[ResolutionRequest]
    ) -> list[ResolutionOutcome]:
        """Resolve several requests concurrently.

        Outcomes come back in request order and each carries its request, so a
        failure of one item never affects the others.
        """

        async def resolve_one(request: ResolutionRequest) -> ResolutionOutcome:
            try:
                record = await self.resolve(
                    request.query, request.portion_grams, request.preparation_id
                )
            except (FoodNotFoundError, ValueError) as exc:
                return ResolutionOutcome(request=request, error=str(exc))
            return ResolutionOutcome(request=request, record=record)

        return list(await asyncio.gather(*(resolve_one(req) for req in requests)))

    def _resolve_local(
        self, query: str, portion_grams: float, preparation_id: str | None
    ) -> NutritionRecord | None:
        knowledge_base = self.knowledge_base
        food = knowledge_base.get_food(query.strip().lower())
        if food is None:
            food = knowledge_base.get_food_by_alias(query)
        if food is None:
            matches = knowledge_base.search_foods_scored(query, limit=1)
            if matches and matches[0][1] >= self.confidence_floor:
                food = matches[0][0]
        if food is None:
            return None

        nutrition = knowledge_base.calculate_nutrition(food, portion_grams)
        nutrition = knowledge_base.apply_preparation_modifier(nutrition, preparation_id)
        category = knowledge_base.get_category_for_food(food.id)
        return NutritionRecord(
            query=query,
            nutrition=nutrition,
            portion_grams=portion_grams,
            provenance=LOCAL,
            origin=LOCAL,
            food_id=food.id,
            name=food.name,
            category_id=category.id if category else None,
            preparation_id=preparation_id,
        )

    async def _resolve_with_providers(
        self, query: str, portion_grams: float, preparation_id: str | None
    ) -> NutritionRecord:
        attempted: list[str] = []
        timed_out: list[str] = []
        for provider in self.providers:
            attempted.append(provider.name)
            try:
                per_100g = await asyncio.wait_for(
                    provider.lookup(query), timeout=self.provider_timeout_seconds
                )
            except TimeoutError:
                timed_out.append(provider.name)
                _logger.warning(
                    "Provider %s timed out after %ss: query=%s",
                    provider.name,
                    self.provider_timeout_seconds,
                    query,
                )
                continue
            except Exception as exc:
                _logger.warning(
                    "Provider %s failed (status=%s): query=%s error=%s",
                    provider.name,
                    _status_code_from_exception(exc),
                    query,
                    exc,
                )
                continue
            if per_100g is None:
                if self.debug:
                    _logger.info(
                        "Provider %s has no match: query=%s", provider.name, query
                    )
                continue

            nutrition = self.knowledge_base.apply_preparation_modifier(
                per_100g.scaled(portion_grams / 100), preparation_id
            )
            if self.debug:
                _logger.info("Resolved via %s: query=%s", provider.name, query)
            return NutritionRecord(
                query=query,
                nutrition=nutrition,
                portion_grams=portion_grams,
                provenance=provider.name,
                origin=provider.name,
                name=query,
                preparation_id=preparation_id,
            )

        if timed_out and len(timed_out) == len(attempted):
            raise ProviderTimeoutError(query, timed_out)
        raise FoodNotFoundError(query, attempted)


def _validate_portion(portion_grams: float) -> None:
    if portion_grams <= 0:
        raise ValueError("portion_grams must be greater than zero")


def _status_code_from_exception(exc: Exception) -> str:
    """Extract HTTP status code from an exception, if available."""
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return str(status_code)
    return "n/a"
