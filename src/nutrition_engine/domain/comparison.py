"""Comparison domain models."""

from dataclasses import dataclass, field
from typing import Literal

from nutrition_engine.domain.grading import Focus, FocusGrade
from nutrition_engine.domain.nutrition import NutritionPer100g

Winner = Literal["a", "b", "tie"]
Margin = Literal["decisive", "moderate", "slight", "narrow"]


@dataclass(frozen=True)
class ComparableFood:
    """A food prepared for comparison: its grades and, when known, nutrition."""

    food_id: str
    name: str
    grades: dict[Focus, FocusGrade]
    nutrition: NutritionPer100g | None = None


@dataclass(frozen=True)
class FocusOutcome:
    focus: Focus
    winner: Winner
    score_a: int
    score_b: int
    difference: int
    margin: Margin


@dataclass(frozen=True)
class NutrientLead:
    nutrient: str
    value_a: float
    value_b: float
    leader: Winner


@dataclass(frozen=True)
class FoodComparison:
    """Per-focus outcomes between two foods."""

    food_a: str
    food_b: str
    outcomes: dict[Focus, FocusOutcome]
    nutrients: list[NutrientLead] = field(default_factory=list)

    def wins(self, side: Winner) -> int:
        return sum(1 for outcome in self.outcomes.values() if outcome.winner == side)


@dataclass(frozen=True)
class TwoWayResult:
    """Single-focus decision between two foods."""

    focus: Focus
    winner: Winner
    winner_id: str | None
    score_a: int
    score_b: int
    explanation: str


@dataclass(frozen=True)
class ComparisonReport:
    """Comparison plus the human-readable lines built from it."""

    comparison: FoodComparison
    winner: Winner
    quick_winner: str
    summary: str
    explanations: dict[Focus, str] = field(default_factory=dict)
    highlights: list[str] = field(default_factory=list)
