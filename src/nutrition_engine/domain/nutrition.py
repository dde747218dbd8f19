"""Nutrient value models and the shared rounding rule."""

from collections.abc import Mapping
from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal

REQUIRED_FIELDS: tuple[str, ...] = (
    "calories",
    "protein",
    "carbs",
    "fat",
    "fiber",
    "sugar",
    "sodium",
)

OPTIONAL_FIELDS: tuple[str, ...] = (
    "saturated_fat",
    "trans_fat",
    "cholesterol",
    "potassium",
    "calcium",
    "iron",
    "magnesium",
    "vitamin_a",
    "vitamin_c",
    "vitamin_d",
    "vitamin_b12",
    "vitamin_e",
    "vitamin_k",
    "folate",
    "omega3",
    "phosphorus",
)

ALL_FIELDS: tuple[str, ...] = REQUIRED_FIELDS + OPTIONAL_FIELDS

_WHOLE_UNIT_FIELDS = frozenset({"calories", "sodium"})

LOCAL = "local"
CACHE = "cache"


def round_half_up(value: float, digits: int = 0) -> float:
    """Round half away from zero using the decimal text of the value."""
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def round_nutrient(field_name: str, value: float) -> float:
    """Round a nutrient value with the precision its field uses."""
    if field_name in _WHOLE_UNIT_FIELDS:
        return round_half_up(value, 0)
    if field_name in REQUIRED_FIELDS:
        return round_half_up(value, 1)
    return round_half_up(value, 2)


@dataclass(frozen=True)
class NutritionPer100g:
    """Nutrient values for 100 g of a food, or for a scaled portion of it.

    Calories are kcal, sodium and the minerals are mg, macros are grams.
    Optional fields stay ``None`` when the source did not report them.
    """

    calories: float
    protein: float
    carbs: float
    fat: float
    fiber: float
    sugar: float
    sodium: float
    saturated_fat: float | None = None
    trans_fat: float | None = None
    cholesterol: float | None = None
    potassium: float | None = None
    calcium: float | None = None
    iron: float | None = None
    magnesium: float | None = None
    vitamin_a: float | None = None
    vitamin_c: float | None = None
    vitamin_d: float | None = None
    vitamin_b12: float | None = None
    vitamin_e: float | None = None
    vitamin_k: float | None = None
    folate: float | None = None
    omega3: float | None = None
    phosphorus: float | None = None

    @classmethod
    def from_values(
        cls, values: Mapping[str, float | None]
    ) -> "NutritionPer100g | None":
        """Build a rounded profile, or ``None`` when a required field is missing."""
        if any(values.get(name) is None for name in REQUIRED_FIELDS):
            return None
        known = {
            name: round_nutrient(name, float(value))
            for name, value in values.items()
            if name in ALL_FIELDS and value is not None
        }
        return cls(**known)

    def get(self, field_name: str) -> float | None:
        return getattr(self, field_name, None)

    def present_values(self) -> dict[str, float]:
        """Return every field that has a known value."""
        values: dict[str, float] = {}
        for name in ALL_FIELDS:
            value = getattr(self, name)
            if value is not None:
                values[name] = value
        return values

    def scaled(self, multiplier: float) -> "NutritionPer100g":
        """Multiply every known field and round it with its field precision."""
        return replace(
            self,
            **{
                name: round_nutrient(name, value * multiplier)
                for name, value in self.present_values().items()
            },
        )


@dataclass(frozen=True)
class NutritionRecord:
    """Portion-scaled nutrition for one resolved query."""

    query: str
    nutrition: NutritionPer100g
    portion_grams: float
    provenance: str
    origin: str
    food_id: str | None = None
    name: str | None = None
    category_id: str | None = None
    preparation_id: str | None = None

    @property
    def display_name(self) -> str:
        return self.name or self.query


@dataclass(frozen=True)
class ResolutionRequest:
    """One lookup in a batch, identified by its request id."""

    request_id: str
    query: str
    portion_grams: float
    preparation_id: str | None = None


@dataclass(frozen=True)
class ResolutionOutcome:
    """Result of one batched lookup, carrying either a record or an error."""

    request: ResolutionRequest
    record: NutritionRecord | None = None
    error: str | None = None

    @property
    def resolved(self) -> bool:
        return self.record is not None
