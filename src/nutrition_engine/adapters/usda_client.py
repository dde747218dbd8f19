"""USDA FoodData Central nutrition provider."""

from dataclasses import dataclass

import httpx

from nutrition_engine.domain.nutrition import NutritionPer100g

_NUTRIENT_IDS: dict[int, str] = {
    1008: "calories",
    1003: "protein",
    1005: "carbs",
    1004: "fat",
    1079: "fiber",
    2000: "sugar",
    1093: "sodium",
    1258: "saturated_fat",
    1257: "trans_fat",
    1253: "cholesterol",
    1092: "potassium",
    1087: "calcium",
    1089: "iron",
    1090: "magnesium",
    1091: "phosphorus",
    1106: "vitamin_a",
    1162: "vitamin_c",
    1114: "vitamin_d",
    1178: "vitamin_b12",
    1109: "vitamin_e",
    1185: "vitamin_k",
    1177: "folate",
}

# ALA, EPA and DHA are reported separately and summed into omega3.
_OMEGA3_IDS = frozenset({1404, 1278, 1272})


@dataclass
class HttpxUsdaProvider:
    """HTTPX-backed FoodData Central provider."""

    api_key: str
    base_url: str
    http_client: httpx.AsyncClient
    name: str = "usda"
    page_size: int = 5

    @classmethod
    def create(cls, api_key: str, base_url: str) -> "HttpxUsdaProvider":
        """Create a provider with a managed httpx session."""
        return cls(api_key=api_key, base_url=base_url, http_client=httpx.AsyncClient())

    async def search_foods(self, query: str, page_size: int = 10) -> dict[str, object]:
        """Search foods by query and return raw API data."""
        url = f"{self.base_url}/foods/search"
        response = await self.http_client.post(
            url,
            params={"api_key": self.api_key},
            json={
                "query": query,
                "pageSize": page_size,
                "dataType": ["Foundation", "SR Legacy", "Survey (FNDDS)"],
            },
            timeout=15,
        )
        response.raise_for_status()
        return response.json()

    async def lookup(self, query: str) -> NutritionPer100g | None:
        """Return per-100 g values of the first complete search hit."""
        payload = await self.search_foods(query, page_size=self.page_size)
        for food in payload.get("foods", []):
            nutrition = parse_food_nutrients(food.get("foodNutrients", []))
            if nutrition is not None:
                return nutrition
        return None

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def parse_food_nutrients(
    food_nutrients: list[dict[str, object]],
) -> NutritionPer100g | None:
    """Map FDC nutrient rows to per-100 g values.

    Search results carry ``nutrientId``/``value``; food details nest the id
    under ``nutrient`` and use ``amount``.
    """
    values: dict[str, float] = {}
    omega3: float | None = None
    for nutrient in food_nutrients:
        nutrient_info = nutrient.get("nutrient") or {}
        nutrient_id = nutrient_info.get("id") or nutrient.get("nutrientId")
        amount = nutrient.get("value", nutrient.get("amount"))
        if nutrient_id is None or amount is None:
            continue
        nutrient_id = int(nutrient_id)
        if nutrient_id in _OMEGA3_IDS:
            omega3 = (omega3 or 0.0) + float(amount)
            continue
        field_name = _NUTRIENT_IDS.get(nutrient_id)
        if field_name is not None:
            values[field_name] = float(amount)
    if omega3 is not None:
        values["omega3"] = omega3
    return NutritionPer100g.from_values(values)
