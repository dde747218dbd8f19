"""Edamam Food Database nutrition provider."""

from dataclasses import dataclass

import httpx

from nutrition_engine.domain.nutrition import NutritionPer100g

_GRAM_MEASURE = "http://www.edamam.com/ontologies/edamam.owl#Measure_gram"

_NUTRIENT_CODES: dict[str, str] = {
    "ENERC_KCAL": "calories",
    "PROCNT": "protein",
    "CHOCDF": "carbs",
    "FAT": "fat",
    "FIBTG": "fiber",
    "SUGAR": "sugar",
    "NA": "sodium",
    "FASAT": "saturated_fat",
    "FATRN": "trans_fat",
    "CHOLE": "cholesterol",
    "K": "potassium",
    "CA": "calcium",
    "FE": "iron",
    "MG": "magnesium",
    "P": "phosphorus",
    "VITA_RAE": "vitamin_a",
    "VITC": "vitamin_c",
    "VITD": "vitamin_d",
    "VITB12": "vitamin_b12",
    "TOCPHA": "vitamin_e",
    "VITK1": "vitamin_k",
    "FOLDFE": "folate",
}


@dataclass
class HttpxEdamamProvider:
    """HTTPX-backed Edamam provider.

    The parser endpoint identifies the food; the nutrients endpoint is then
    asked for a 100 g portion to get the full nutrient panel.
    """

    app_id: str
    app_key: str
    base_url: str
    http_client: httpx.AsyncClient
    name: str = "edamam"

    @classmethod
    def create(cls, app_id: str, app_key: str, base_url: str) -> "HttpxEdamamProvider":
        return cls(
            app_id=app_id,
            app_key=app_key,
            base_url=base_url,
            http_client=httpx.AsyncClient(),
        )

    async def parse(self, query: str) -> dict[str, object]:
        """Run the food parser for a free-text query."""
        response = await self.http_client.get(
            f"{self.base_url}/api/food-database/v2/parser",
            params={"ingr": query, "app_id": self.app_id, "app_key": self.app_key},
            timeout=15,
        )
        response.raise_for_status()
        return response.json()

    async def nutrients(self, food_id: str, grams: float = 100) -> dict[str, object]:
        """Fetch the full nutrient panel for a quantity of a parsed food."""
        response = await self.http_client.post(
            f"{self.base_url}/api/food-database/v2/nutrients",
            params={"app_id": self.app_id, "app_key": self.app_key},
            json={
                "ingredients": [
                    {"quantity": grams, "measureURI": _GRAM_MEASURE, "foodId": food_id}
                ]
            },
            timeout=15,
        )
        response.raise_for_status()
        return response.json()

    async def lookup(self, query: str) -> NutritionPer100g | None:
        payload = await self.parse(query)
        food_id = _first_food_id(payload)
        if food_id is None:
            return None
        panel = await self.nutrients(food_id)
        return parse_total_nutrients(panel.get("totalNutrients", {}))

    async def close(self) -> None:
        await self.http_client.aclose()


def _first_food_id(payload: dict[str, object]) -> str | None:
    for entry in payload.get("parsed", []) or []:
        food_id = (entry.get("food") or {}).get("foodId")
        if food_id:
            return food_id
    for hint in payload.get("hints", []) or []:
        food_id = (hint.get("food") or {}).get("foodId")
        if food_id:
            return food_id
    return None


def parse_total_nutrients(
    total_nutrients: dict[str, object],
) -> NutritionPer100g | None:
    """Map Edamam nutrient codes (``{"quantity", "unit"}``) to our fields."""
    values: dict[str, float] = {}
    for code, field_name in _NUTRIENT_CODES.items():
        entry = total_nutrients.get(code)
        if isinstance(entry, dict):
            quantity = entry.get("quantity")
        else:
            quantity = entry
        if quantity is not None:
            values[field_name] = float(quantity)
    return NutritionPer100g.from_values(values)
