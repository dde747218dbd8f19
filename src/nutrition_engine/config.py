"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

KNOWN_PROVIDERS = ("usda", "edamam", "openfoodfacts")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    admin_token: str
    usda_api_key: str = "DEMO_KEY"
    usda_base_url: str = "https://api.nal.usda.gov/fdc/v1"
    edamam_app_id: str | None = None
    edamam_app_key: str | None = None
    edamam_base_url: str = "https://api.edamam.com"
    open_food_facts_base_url: str = "https://world.openfoodfacts.org"
    provider_order: str = "usda,edamam,openfoodfacts"
    provider_timeout_seconds: float = 8.0
    provider_cache_ttl_seconds: int = 30 * 24 * 3600
    search_confidence_floor: int = 80
    cache_cleanup_interval_seconds: float = 3600
    data_dir: str | None = None
    debug: bool = False
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_provider_order(raw: str | None) -> list[str]:
    """Parse the comma-separated provider order, dropping unknown names."""
    if raw is None:
        return list(KNOWN_PROVIDERS)
    order: list[str] = []
    for chunk in raw.split(","):
        value = chunk.strip().lower()
        if value in KNOWN_PROVIDERS and value not in order:
            order.append(value)
    return order
