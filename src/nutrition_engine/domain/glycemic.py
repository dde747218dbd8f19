"""Glycemic index models."""

from dataclasses import dataclass
from typing import Literal

GIConfidence = Literal["high", "medium", "low"]
GlycemicBand = Literal["low", "medium", "high"]


@dataclass(frozen=True)
class GIReference:
    """GI value as stored in the reference file."""

    gi: float
    confidence: GIConfidence = "medium"
    source: str = ""


@dataclass(frozen=True)
class GIEntry:
    """GI value found for a lookup key."""

    key: str
    gi: float
    confidence: GIConfidence
    source: str
    matched_on: Literal["food", "category"]


@dataclass(frozen=True)
class MealGlycemicItem:
    """GI and available carbohydrate of one meal component."""

    gi: float
    carbs: float


@dataclass(frozen=True)
class MealGlycemicSummary:
    """Glycemic profile of a whole meal."""

    gi: float | None
    gi_band: GlycemicBand | None
    gl: float
    gl_band: GlycemicBand
    explanation: str
