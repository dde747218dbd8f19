"""Models for foods identified by the upstream recognition step."""

from pydantic import BaseModel, Field


class IdentifiedFood(BaseModel):
    """Single food item as reported by the identification step."""

    description: str = Field(min_length=1)
    estimated_portion_grams: float = Field(gt=0)
    preparation_id: str | None = None


class IdentificationResult(BaseModel):
    """Structured output of the identification step."""

    items: list[IdentifiedFood] = Field(min_length=1)
