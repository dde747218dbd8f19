"""OpenFoodFacts nutrition provider with barcode support."""

from dataclasses import dataclass

import httpx

from nutrition_engine.domain.nutrition import NutritionPer100g

_USER_AGENT = "nutrition-engine/0.1"

# Grams per 100 g in the API; the factor converts to the unit we store.
_NUTRIMENTS: dict[str, tuple[str, float]] = {
    "energy-kcal_100g": ("calories", 1),
    "proteins_100g": ("protein", 1),
    "carbohydrates_100g": ("carbs", 1),
    "fat_100g": ("fat", 1),
    "fiber_100g": ("fiber", 1),
    "sugars_100g": ("sugar", 1),
    "sodium_100g": ("sodium", 1000),
    "saturated-fat_100g": ("saturated_fat", 1),
    "trans-fat_100g": ("trans_fat", 1),
    "cholesterol_100g": ("cholesterol", 1000),
    "potassium_100g": ("potassium", 1000),
    "calcium_100g": ("calcium", 1000),
    "iron_100g": ("iron", 1000),
    "magnesium_100g": ("magnesium", 1000),
    "phosphorus_100g": ("phosphorus", 1000),
    "vitamin-a_100g": ("vitamin_a", 1_000_000),
    "vitamin-c_100g": ("vitamin_c", 1000),
    "vitamin-d_100g": ("vitamin_d", 1_000_000),
    "vitamin-b12_100g": ("vitamin_b12", 1_000_000),
    "vitamin-e_100g": ("vitamin_e", 1000),
    "vitamin-k_100g": ("vitamin_k", 1_000_000),
    "folates_100g": ("folate", 1_000_000),
    "omega-3-fat_100g": ("omega3", 1),
}


@dataclass
class HttpxOpenFoodFactsProvider:
    """HTTPX-backed OpenFoodFacts provider."""

    base_url: str
    http_client: httpx.AsyncClient
    name: str = "openfoodfacts"
    page_size: int = 5

    @classmethod
    def create(cls, base_url: str) -> "HttpxOpenFoodFactsProvider":
        return cls(
            base_url=base_url,
            http_client=httpx.AsyncClient(headers={"User-Agent": _USER_AGENT}),
        )

    async def search_products(self, query: str) -> dict[str, object]:
        response = await self.http_client.get(
            f"{self.base_url}/cgi/search.pl",
            params={
                "search_terms": query,
                "search_simple": 1,
                "json": 1,
                "page_size": self.page_size,
            },
            timeout=15,
        )
        response.raise_for_status()
        return response.json()

    async def get_product(self, barcode: str) -> dict[str, object]:
        response = await self.http_client.get(
            f"{self.base_url}/api/v0/product/{barcode}.json", timeout=15
        )
        response.raise_for_status()
        return response.json()

    async def lookup(self, query: str) -> NutritionPer100g | None:
        payload = await self.search_products(query)
        for product in payload.get("products", []):
            nutrition = parse_nutriments(product.get("nutriments") or {})
            if nutrition is not None:
                return nutrition
        return None

    async def lookup_barcode(self, barcode: str) -> NutritionPer100g | None:
        payload = await self.get_product(barcode)
        if payload.get("status") != 1:
            return None
        product = payload.get("product") or {}
        return parse_nutriments(product.get("nutriments") or {})

    async def close(self) -> None:
        await self.http_client.aclose()


def parse_nutriments(nutriments: dict[str, object]) -> NutritionPer100g | None:
    """Map OpenFoodFacts ``*_100g`` nutriments to our fields and units."""
    values: dict[str, float] = {}
    for key, (field_name, factor) in _NUTRIMENTS.items():
        raw = nutriments.get(key)
        if raw is None or raw == "":
            continue
        try:
            values[field_name] = float(raw) * factor
        except (TypeError, ValueError):
            continue
    if "calories" not in values and nutriments.get("energy_100g") is not None:
        values["calories"] = float(nutriments["energy_100g"]) / 4.184
    return NutritionPer100g.from_values(values)
