"""Reference food models."""

from dataclasses import dataclass, field

from nutrition_engine.domain.grading import Focus, FocusGrade
from nutrition_engine.domain.nutrition import NutritionPer100g


@dataclass(frozen=True)
class StandardServing:
    """Typical serving of a food."""

    amount: float
    unit: str
    description: str = ""

    @property
    def grams(self) -> float | None:
        if self.unit.lower() in {"g", "gram", "grams"}:
            return self.amount
        return None


@dataclass(frozen=True)
class FoodEntry:
    """Canonical food with per-100 g nutrition."""

    id: str
    name: str
    nutrition_per_100g: NutritionPer100g
    fdc_id: int | None = None
    standard_serving: StandardServing | None = None
    focus_grades: dict[Focus, FocusGrade] | None = None


@dataclass(frozen=True)
class PreparationModifier:
    """Multipliers applied to nutrient fields by a cooking method."""

    id: str
    name: str
    multipliers: dict[str, float] = field(default_factory=dict)
    notes: str | None = None


@dataclass(frozen=True)
class FoodAlias:
    """Alternative names for a canonical food."""

    canonical: str
    aliases: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class FoodCategory:
    """Group of foods, listed by id in display order."""

    id: str
    name: str
    description: str = ""
    examples: list[str] = field(default_factory=list)
