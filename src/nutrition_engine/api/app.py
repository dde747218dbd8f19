"""FastAPI application factory."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from nutrition_engine.api.admin import router as admin_router
from nutrition_engine.api.models import (
    AnalyzeRequest,
    BarcodeRequest,
    CompareRequest,
    GradeRequest,
    ResolveRequest,
)
from nutrition_engine.app_logging import configure_logging
from nutrition_engine.containers import AppContainer
from nutrition_engine.domain.comparison import ComparableFood
from nutrition_engine.domain.errors import FoodNotFoundError, ProviderTimeoutError
from nutrition_engine.domain.nutrition import NutritionRecord
from nutrition_engine.services.cache import run_periodic_cleanup


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(debug=container.settings.debug)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        cleanup = asyncio.create_task(
            run_periodic_cleanup(
                state_container.cache,
                state_container.settings.cache_cleanup_interval_seconds,
            )
        )
        yield
        cleanup.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await cleanup
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.exception_handler(FoodNotFoundError)
    async def food_not_found(request: Request, exc: FoodNotFoundError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)}
        )

    @app.exception_handler(ProviderTimeoutError)
    async def provider_timeout(
        request: Request, exc: ProviderTimeoutError
    ) -> JSONResponse:
        logger.warning("Provider timeout: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT, content={"detail": str(exc)}
        )

    @app.exception_handler(ValueError)
    async def invalid_value(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/foods/search")
    async def search_foods(
        request: Request, q: str, limit: int = 10
    ) -> dict[str, object]:
        """Search the reference foods by name or id."""
        state_container: AppContainer = request.app.state.container
        matches = state_container.knowledge_base.search_foods_scored(q, limit)
        return {
            "foods": [
                {"id": food.id, "name": food.name, "score": score}
                for food, score in matches
            ]
        }

    @app.get("/foods/{food_id}")
    async def get_food(food_id: str, request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        knowledge_base = state_container.knowledge_base
        food = knowledge_base.get_food(food_id)
        if food is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        category = knowledge_base.get_category_for_food(food.id)
        gi_entry = state_container.glycemic.lookup_gi(food.id)
        return {
            "food": asdict(food),
            "category": category.id if category else None,
            "glycemic_index": asdict(gi_entry) if gi_entry else None,
        }

    @app.get("/categories")
    async def list_categories(request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        categories = state_container.knowledge_base.list_categories()
        return {"categories": [asdict(category) for category in categories]}

    @app.get("/categories/{category_id}/foods")
    async def category_foods(category_id: str, request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        foods = state_container.knowledge_base.get_foods_by_category(category_id)
        return {"foods": [{"id": food.id, "name": food.name} for food in foods]}

    @app.get("/preparations")
    async def list_preparations(request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        preparations = state_container.knowledge_base.list_preparations()
        return {"preparations": [asdict(item) for item in preparations]}

    @app.post("/resolve")
    async def resolve(payload: ResolveRequest, request: Request) -> dict[str, object]:
        """Resolve a food query to portion-scaled nutrition."""
        state_container: AppContainer = request.app.state.container
        record = await state_container.resolver.resolve(
            payload.query, payload.portion_grams, payload.preparation_id
        )
        return {"record": asdict(record)}

    @app.post("/resolve/barcode")
    async def resolve_barcode(
        payload: BarcodeRequest, request: Request
    ) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        record = await state_container.resolver.resolve_barcode(
            payload.barcode, payload.portion_grams
        )
        return {"record": asdict(record)}

    @app.post("/grade")
    async def grade(payload: GradeRequest, request: Request) -> dict[str, object]:
        """Resolve a portion, then grade it for one focus or all of them."""
        state_container: AppContainer = request.app.state.container
        record = await state_container.resolver.resolve(
            payload.query, payload.portion_grams, payload.preparation_id
        )
        gi_entry = state_container.glycemic.lookup_for_record(record)
        grading = state_container.grading
        result: dict[str, object] = {
            "record": asdict(record),
            "glycemic_index": asdict(gi_entry) if gi_entry else None,
        }
        if payload.focus is not None:
            focus_grade = grading.grade_nutrition_with_gi(
                record, payload.focus, gi_entry
            )
            result["grade"] = asdict(focus_grade)
        else:
            result["grades"] = asdict(grading.grade_all(record, gi_entry))
        return result

    @app.post("/compare")
    async def compare(payload: CompareRequest, request: Request) -> dict[str, object]:
        """Compare two portions on one focus or across several."""
        state_container: AppContainer = request.app.state.container
        resolver = state_container.resolver
        record_a, record_b = await asyncio.gather(
            resolver.resolve(
                payload.food_a.query,
                payload.food_a.portion_grams,
                payload.food_a.preparation_id,
            ),
            resolver.resolve(
                payload.food_b.query,
                payload.food_b.portion_grams,
                payload.food_b.preparation_id,
            ),
        )
        food_a = _comparable(state_container, record_a)
        food_b = _comparable(state_container, record_b)
        comparison = state_container.comparison
        if payload.focus is not None:
            result = comparison.compare_two(food_a, food_b, payload.focus)
            return {"result": asdict(result)}
        report = comparison.compare_foods_with_insights(food_a, food_b, payload.focuses)
        return {"report": asdict(report)}

    @app.post("/analyze")
    async def analyze(payload: AnalyzeRequest, request: Request) -> dict[str, object]:
        """Resolve, grade and total a meal of identified foods."""
        state_container: AppContainer = request.app.state.container
        analysis = await state_container.analysis.analyze(payload.items, payload.focus)
        return {"analysis": asdict(analysis)}

    return app


def _comparable(container: AppContainer, record: NutritionRecord) -> ComparableFood:
    gi_entry = container.glycemic.lookup_for_record(record)
    grades = container.grading.grade_all(record, gi_entry)
    return ComparableFood(
        food_id=record.food_id or record.query,
        name=record.display_name,
        grades=grades.focus_grades,
        nutrition=record.nutrition,
    )
