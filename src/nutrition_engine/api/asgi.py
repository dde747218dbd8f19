"""ASGI entrypoint for the nutrition engine API."""

import logging

from fastapi import FastAPI

from nutrition_engine.api.app import create_app
from nutrition_engine.config import Settings
from nutrition_engine.containers import build_container


def build_app(settings: Settings | None = None) -> FastAPI:
    """Build the API from environment settings."""
    container = build_container(settings or Settings())
    app = create_app(container)
    logging.getLogger(__name__).info(
        "Nutrition engine ready: environment=%s foods=%s",
        container.settings.environment,
        container.knowledge_base.food_count,
    )
    return app


app = build_app()
