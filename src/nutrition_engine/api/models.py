"""Request models for the HTTP API."""

from pydantic import BaseModel, Field

from nutrition_engine.domain.grading import Focus
from nutrition_engine.domain.identification import IdentificationResult


class ResolveRequest(BaseModel):
    """Food query with the portion to scale to."""

    query: str = Field(min_length=1)
    portion_grams: float = Field(gt=0)
    preparation_id: str | None = None


class BarcodeRequest(BaseModel):
    barcode: str = Field(pattern=r"^\d{8,14}$")
    portion_grams: float = Field(default=100, gt=0)


class GradeRequest(ResolveRequest):
    """Resolve a portion and grade it for one focus, or for all of them."""

    focus: Focus | None = None


class FoodPortion(BaseModel):
    query: str = Field(min_length=1)
    portion_grams: float = Field(default=100, gt=0)
    preparation_id: str | None = None


class CompareRequest(BaseModel):
    """Two portions to compare, on one focus or on a set of them."""

    food_a: FoodPortion
    food_b: FoodPortion
    focus: Focus | None = None
    focuses: list[Focus] | None = None


class AnalyzeRequest(IdentificationResult):
    """Output of the identification step plus an optional focus."""

    focus: Focus | None = None
