"""Food knowledge base backed by bundled reference data."""

import json
import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import TypeVar

from pydantic import TypeAdapter, ValidationError

from nutrition_engine.domain.errors import ReferenceDataError
from nutrition_engine.domain.foods import (
    FoodAlias,
    FoodCategory,
    FoodEntry,
    PreparationModifier,
)
from nutrition_engine.domain.grading import Focus, FocusGrade
from nutrition_engine.domain.nutrition import NutritionPer100g, round_nutrient

DEFAULT_DATA_DIR = Path(__file__).resolve().parents[1] / "data"

EXACT_MATCH_SCORE = 100
PREFIX_MATCH_SCORE = 80
SUBSTRING_MATCH_SCORE = 60

_WHITESPACE = re.compile(r"\s+")

_logger = logging.getLogger(__name__)

T = TypeVar("T")


def normalize_text(text: str) -> str:
    """Lowercase, trim and collapse inner whitespace."""
    return _WHITESPACE.sub(" ", text.strip().lower())


def calculate_nutrition(food: FoodEntry, amount_grams: float) -> NutritionPer100g:
    """Scale a food's per-100 g values to a portion."""
    if amount_grams < 0:
        raise ValueError("amount_grams must not be negative")
    return food.nutrition_per_100g.scaled(amount_grams / 100)


@dataclass(frozen=True)
class FoodKnowledgeBase:
    """Read-only index over canonical foods, aliases, categories and preparations."""

    foods: Mapping[str, FoodEntry]
    aliases: tuple[FoodAlias, ...] = ()
    categories: tuple[FoodCategory, ...] = ()
    preparations: Mapping[str, PreparationModifier] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def from_entries(
        cls,
        foods: Iterable[FoodEntry],
        aliases: Iterable[FoodAlias] = (),
        categories: Iterable[FoodCategory] = (),
        preparations: Iterable[PreparationModifier] = (),
    ) -> "FoodKnowledgeBase":
        """Build an index from loaded entries; later duplicates are ignored."""
        food_map: dict[str, FoodEntry] = {}
        for food in foods:
            food_map.setdefault(food.id, food)
        preparation_map: dict[str, PreparationModifier] = {}
        for preparation in preparations:
            preparation_map.setdefault(preparation.id, preparation)
        return cls(
            foods=MappingProxyType(food_map),
            aliases=tuple(aliases),
            categories=tuple(categories),
            preparations=MappingProxyType(preparation_map),
        )

    @property
    def food_count(self) -> int:
        return len(self.foods)

    def all_food_ids(self) -> list[str]:
        return sorted(self.foods)

    def get_food(self, food_id: str) -> FoodEntry | None:
        return self.foods.get(food_id)

    def get_food_by_alias(self, text: str) -> FoodEntry | None:
        """Find a food by canonical id or by any alias of it.

        The canonical id wins over aliases. When several alias groups contain
        the text, the first group in file order is used.
        """
        normalized = normalize_text(text)
        if not normalized:
            return None
        direct = self.foods.get(normalized)
        if direct is not None:
            return direct
        for alias in self.aliases:
            if any(normalize_text(name) == normalized for name in alias.aliases):
                food = self.foods.get(alias.canonical)
                if food is not None:
                    return food
        return None

    def search_foods(self, query: str, limit: int = 10) -> list[FoodEntry]:
        return [food for food, _ in self.search_foods_scored(query, limit)]

    def search_foods_scored(
        self, query: str, limit: int = 10
    ) -> list[tuple[FoodEntry, int]]:
        """Rank foods by how well their name or id matches the query.

        Exact matches score 100, prefixes 80 and substrings 60. Equal scores
        keep id order.
        """
        normalized = normalize_text(query)
        if not normalized or limit <= 0:
            return []
        scored: list[tuple[FoodEntry, int]] = []
        for food_id in sorted(self.foods):
            food = self.foods[food_id]
            score = _match_score(normalized, food)
            if score:
                scored.append((food, score))
        scored.sort(key=lambda item: item[1], reverse=True)
        return scored[:limit]

    def list_categories(self) -> list[FoodCategory]:
        return list(self.categories)

    def get_category(self, category_id: str) -> FoodCategory | None:
        for category in self.categories:
            if category.id == category_id:
                return category
        return None

    def get_foods_by_category(self, category_id: str) -> list[FoodEntry]:
        category = self.get_category(category_id)
        if category is None:
            return []
        return [
            self.foods[food_id]
            for food_id in category.examples
            if food_id in self.foods
        ]

    def get_category_for_food(self, food_id: str) -> FoodCategory | None:
        for category in self.categories:
            if food_id in category.examples:
                return category
        return None

    def list_preparations(self) -> list[PreparationModifier]:
        return list(self.preparations.values())

    def get_preparation(self, preparation_id: str) -> PreparationModifier | None:
        return self.preparations.get(preparation_id)

    def calculate_nutrition(
        self, food: FoodEntry, amount_grams: float
    ) -> NutritionPer100g:
        return calculate_nutrition(food, amount_grams)

    def apply_preparation_modifier(
        self, nutrition: NutritionPer100g, preparation_id: str | None
    ) -> NutritionPer100g:
        """Apply a cooking method's multipliers to already-scaled values.

        Unknown preparations leave the values unchanged, as do multipliers for
        fields the record does not know.
        """
        if not preparation_id:
            return nutrition
        preparation = self.preparations.get(preparation_id)
        if preparation is None:
            return nutrition
        known = nutrition.present_values()
        updated = {
            name: round_nutrient(name, known[name] * factor)
            for name, factor in preparation.multipliers.items()
            if name in known
        }
        if not updated:
            return nutrition
        return NutritionPer100g(**{**known, **updated})

    def get_focus_grade(self, food: FoodEntry, focus: Focus) -> FocusGrade | None:
        if not food.focus_grades:
            return None
        return food.focus_grades.get(focus)


def _match_score(normalized_query: str, food: FoodEntry) -> int:
    """Score the first matching rule over the food's name and id."""
    candidates = (normalize_text(food.name), food.id.lower())
    if normalized_query in candidates:
        return EXACT_MATCH_SCORE
    if any(candidate.startswith(normalized_query) for candidate in candidates):
        return PREFIX_MATCH_SCORE
    if any(normalized_query in candidate for candidate in candidates):
        return SUBSTRING_MATCH_SCORE
    return 0


_FOODS = TypeAdapter(list[FoodEntry])
_ALIASES = TypeAdapter(list[FoodAlias])
_CATEGORIES = TypeAdapter(list[FoodCategory])
_PREPARATIONS = TypeAdapter(list[PreparationModifier])


def load_reference_section(path: Path, section: str, adapter: TypeAdapter[T]) -> T:
    """Read one top-level section of a reference JSON file and validate it."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ReferenceDataError(f"Cannot read reference file {path}: {exc}") from exc
    if not isinstance(payload, dict) or section not in payload:
        raise ReferenceDataError(f"Reference file {path} has no {section!r} section")
    try:
        return adapter.validate_python(payload[section])
    except ValidationError as exc:
        raise ReferenceDataError(f"Invalid {section!r} in {path}: {exc}") from exc


def load_knowledge_base(data_dir: Path | None = None) -> FoodKnowledgeBase:
    """Load and validate the bundled reference data."""
    directory = data_dir or DEFAULT_DATA_DIR
    knowledge_base = FoodKnowledgeBase.from_entries(
        foods=load_reference_section(directory / "foods.json", "foods", _FOODS),
        aliases=load_reference_section(directory / "aliases.json", "aliases", _ALIASES),
        categories=load_reference_section(
            directory / "categories.json", "categories", _CATEGORIES
        ),
        preparations=load_reference_section(
            directory / "preparations.json", "preparations", _PREPARATIONS
        ),
    )
    _logger.info(
        "Loaded knowledge base: foods=%s categories=%s preparations=%s",
        knowledge_base.food_count,
        len(knowledge_base.categories),
        len(knowledge_base.preparations),
    )
    return knowledge_base
