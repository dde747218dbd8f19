"""Glycemic index lookup and glycemic load arithmetic."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from pydantic import TypeAdapter

from nutrition_engine.domain.glycemic import (
    GIEntry,
    GIReference,
    GlycemicBand,
    MealGlycemicItem,
    MealGlycemicSummary,
)
from nutrition_engine.domain.nutrition import (
    NutritionPer100g,
    NutritionRecord,
    round_half_up,
)
from nutrition_engine.services.knowledge_base import (
    DEFAULT_DATA_DIR,
    FoodKnowledgeBase,
    load_reference_section,
    normalize_text,
)

MIN_RELEVANT_CARBS_G = 5.0


@dataclass(frozen=True)
class GlycemicThresholds:
    """Upper bounds (inclusive) of the low and medium GI and GL bands."""

    gi_low_max: float = 55
    gi_medium_max: float = 69
    gl_low_max: float = 10
    gl_medium_max: float = 19


DEFAULT_THRESHOLDS = GlycemicThresholds()

_EXPLANATIONS: dict[tuple[GlycemicBand, GlycemicBand], str] = {
    ("low", "low"): "Low GI and low glycemic load: minimal effect on blood sugar.",
    ("low", "medium"): (
        "Low GI, but the carbohydrate amount gives a moderate glycemic load."
    ),
    ("low", "high"): (
        "Low GI, but the large carbohydrate amount still gives a high glycemic load."
    ),
    ("medium", "low"): "Moderate GI offset by a small carbohydrate amount.",
    ("medium", "medium"): (
        "Moderate GI and glycemic load: a gradual rise in blood sugar."
    ),
    ("medium", "high"): (
        "Moderate GI with a large carbohydrate amount: expect a marked rise."
    ),
    ("high", "low"): (
        "High GI, but the small carbohydrate amount keeps the glycemic load low."
    ),
    ("high", "medium"): (
        "High GI with a moderate glycemic load: a fast rise in blood sugar."
    ),
    ("high", "high"): (
        "High GI and high glycemic load: likely to spike blood sugar; "
        "pair with protein, fat or fiber."
    ),
}


def get_gi_band(
    value: float, thresholds: GlycemicThresholds = DEFAULT_THRESHOLDS
) -> GlycemicBand:
    if value <= thresholds.gi_low_max:
        return "low"
    if value <= thresholds.gi_medium_max:
        return "medium"
    return "high"


def get_gl_band(
    value: float, thresholds: GlycemicThresholds = DEFAULT_THRESHOLDS
) -> GlycemicBand:
    if value <= thresholds.gl_low_max:
        return "low"
    if value <= thresholds.gl_medium_max:
        return "medium"
    return "high"


def has_relevant_gi(nutrition: NutritionPer100g) -> bool:
    """GI only matters once a portion carries a meaningful amount of carbohydrate."""
    return nutrition.carbs >= MIN_RELEVANT_CARBS_G


def available_carbs(nutrition: NutritionPer100g) -> float:
    return max(0.0, nutrition.carbs - nutrition.fiber)


def glycemic_load(gi: float, nutrition: NutritionPer100g) -> float:
    """Glycemic load of one portion, using carbohydrate net of fiber."""
    return round_half_up(gi * available_carbs(nutrition) / 100, 1)


def calculate_meal_gi(items: Iterable[MealGlycemicItem]) -> float | None:
    """Carbohydrate-weighted mean GI, or ``None`` when the meal has no carbs."""
    weighted = 0.0
    total_carbs = 0.0
    for item in items:
        weighted += item.gi * item.carbs
        total_carbs += item.carbs
    if total_carbs <= 0:
        return None
    return weighted / total_carbs


def calculate_meal_gl(items: Iterable[MealGlycemicItem]) -> float:
    return sum(item.gi * item.carbs / 100 for item in items)


def explain(gi_band: GlycemicBand | None, gl_band: GlycemicBand) -> str:
    if gi_band is None:
        return "No carbohydrate with a known GI: negligible effect on blood sugar."
    return _EXPLANATIONS[(gi_band, gl_band)]


@dataclass(frozen=True)
class GlycemicEngine:
    """GI lookups against food and category reference values."""

    knowledge_base: FoodKnowledgeBase
    foods: Mapping[str, GIReference] = field(
        default_factory=lambda: MappingProxyType({})
    )
    categories: Mapping[str, GIReference] = field(
        default_factory=lambda: MappingProxyType({})
    )
    thresholds: GlycemicThresholds = DEFAULT_THRESHOLDS

    def lookup_gi(self, key: str) -> GIEntry | None:
        """Find a GI value for a food id, alias or category id.

        A direct food value wins over the food's category average, which wins
        over treating the key itself as a category id.
        """
        normalized = normalize_text(key)
        if not normalized:
            return None
        food = self.knowledge_base.get_food_by_alias(normalized)
        food_id = food.id if food is not None else normalized.replace(" ", "_")
        reference = self.foods.get(food_id)
        if reference is not None:
            return _entry(food_id, reference, "food")
        category = self.knowledge_base.get_category_for_food(food_id)
        if category is not None and category.id in self.categories:
            return _entry(category.id, self.categories[category.id], "category")
        if food_id in self.categories:
            return _entry(food_id, self.categories[food_id], "category")
        return None

    def lookup_for_record(self, record: NutritionRecord) -> GIEntry | None:
        if record.food_id:
            entry = self.lookup_gi(record.food_id)
            if entry is not None:
                return entry
        return self.lookup_gi(record.query)

    def get_gi_band(self, value: float) -> GlycemicBand:
        return get_gi_band(value, self.thresholds)

    def get_gl_band(self, value: float) -> GlycemicBand:
        return get_gl_band(value, self.thresholds)

    def has_relevant_gi(self, nutrition: NutritionPer100g) -> bool:
        return has_relevant_gi(nutrition)

    def glycemic_load(self, gi: float, nutrition: NutritionPer100g) -> float:
        return glycemic_load(gi, nutrition)

    def calculate_meal_gi(self, items: Iterable[MealGlycemicItem]) -> float | None:
        return calculate_meal_gi(items)

    def calculate_meal_gl(self, items: Iterable[MealGlycemicItem]) -> float:
        return calculate_meal_gl(items)

    def explain(self, gi_band: GlycemicBand | None, gl_band: GlycemicBand) -> str:
        return explain(gi_band, gl_band)

    def summarize_meal(self, items: Iterable[MealGlycemicItem]) -> MealGlycemicSummary:
        meal_items = list(items)
        meal_gi = calculate_meal_gi(meal_items)
        meal_gl = calculate_meal_gl(meal_items)
        gi_band = self.get_gi_band(meal_gi) if meal_gi is not None else None
        gl_band = self.get_gl_band(meal_gl)
        return MealGlycemicSummary(
            gi=meal_gi,
            gi_band=gi_band,
            gl=meal_gl,
            gl_band=gl_band,
            explanation=explain(gi_band, gl_band),
        )


def _entry(key: str, reference: GIReference, matched_on: str) -> GIEntry:
    return GIEntry(
        key=key,
        gi=reference.gi,
        confidence=reference.confidence,
        source=reference.source,
        matched_on=matched_on,
    )


_REFERENCES = TypeAdapter(dict[str, GIReference])


def load_glycemic_engine(
    knowledge_base: FoodKnowledgeBase,
    data_dir: Path | None = None,
    thresholds: GlycemicThresholds = DEFAULT_THRESHOLDS,
) -> GlycemicEngine:
    """Load GI reference values from ``glycemic_index.json``."""
    path = (data_dir or DEFAULT_DATA_DIR) / "glycemic_index.json"
    return GlycemicEngine(
        knowledge_base=knowledge_base,
        foods=MappingProxyType(load_reference_section(path, "foods", _REFERENCES)),
        categories=MappingProxyType(
            load_reference_section(path, "categories", _REFERENCES)
        ),
        thresholds=thresholds,
    )
