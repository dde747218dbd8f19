"""Grading domain models."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Literal

from nutrition_engine.domain.nutrition import NutritionRecord

LetterGrade = Literal["A", "B", "C", "D", "F"]

OVERALL = "overall"


class Focus(StrEnum):
    """Health goals a food can be graded against."""

    HEART_HEALTH = "heart_health"
    WEIGHT_MANAGEMENT = "weight_management"
    BLOOD_SUGAR = "blood_sugar"
    MUSCLE_BUILDING = "muscle_building"
    GUT_HEALTH = "gut_health"
    BRAIN_FOCUS = "brain_focus"
    BALANCED = "balanced"
    BONE_JOINT = "bone_joint"
    ANTI_INFLAMMATORY = "anti_inflammatory"

    @property
    def label(self) -> str:
        return _FOCUS_LABELS[self]


_FOCUS_LABELS = {
    Focus.HEART_HEALTH: "heart health",
    Focus.WEIGHT_MANAGEMENT: "weight management",
    Focus.BLOOD_SUGAR: "blood sugar",
    Focus.MUSCLE_BUILDING: "muscle building",
    Focus.GUT_HEALTH: "gut health",
    Focus.BRAIN_FOCUS: "brain and focus",
    Focus.BALANCED: "balanced eating",
    Focus.BONE_JOINT: "bone and joint health",
    Focus.ANTI_INFLAMMATORY: "inflammation",
}


@dataclass(frozen=True)
class FocusGrade:
    """Letter grade and explanation for one focus, or for ``overall``."""

    focus: Focus | Literal["overall"]
    grade: LetterGrade
    score: int
    insight: str
    pros: list[str] = field(default_factory=list)
    cons: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SatietyScore:
    """How filling a portion is likely to be."""

    score: int
    category: str


@dataclass(frozen=True)
class InflammatoryIndex:
    """Estimated inflammatory potential, negative values are anti-inflammatory."""

    value: float
    category: str


@dataclass(frozen=True)
class GradeSet:
    """All focus grades for a record plus the aggregate."""

    focus_grades: dict[Focus, FocusGrade]
    overall: FocusGrade
    satiety: SatietyScore | None = None
    inflammatory: InflammatoryIndex | None = None


@dataclass(frozen=True)
class GradedRecord:
    """Grades for one record in a batch, tagged with its request id."""

    request_id: str
    record: NutritionRecord
    grades: GradeSet
