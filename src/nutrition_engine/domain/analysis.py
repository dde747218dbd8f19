"""Meal analysis result models."""

from dataclasses import dataclass, field

from nutrition_engine.domain.glycemic import GIEntry, MealGlycemicSummary
from nutrition_engine.domain.grading import FocusGrade, GradeSet
from nutrition_engine.domain.nutrition import (
    NutritionPer100g,
    NutritionRecord,
    ResolutionRequest,
)


@dataclass(frozen=True)
class AnalyzedItem:
    """One identified food after resolution and grading."""

    request: ResolutionRequest
    record: NutritionRecord | None = None
    gi: GIEntry | None = None
    grades: GradeSet | None = None
    focus_grade: FocusGrade | None = None
    error: str | None = None


@dataclass(frozen=True)
class MealAnalysis:
    """Per-item results, meal totals and the meal glycemic profile."""

    items: list[AnalyzedItem]
    totals: NutritionPer100g | None
    glycemic: MealGlycemicSummary
    unresolved: list[str] = field(default_factory=list)
