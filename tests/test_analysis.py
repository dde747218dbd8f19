"""Tests for meal analysis."""

import asyncio

import pytest
from pydantic import ValidationError

from nutrition_engine.domain.grading import Focus
from nutrition_engine.domain.identification import IdentificationResult, IdentifiedFood
from nutrition_engine.services.analysis import MealAnalysisService, total_nutrition
from tests.conftest import local_record


@pytest.fixture
def service(resolver, glycemic, grading) -> MealAnalysisService:
    return MealAnalysisService(resolver=resolver, glycemic=glycemic, grading=grading)


def test_analyze_meal(service) -> None:
    items = [
        IdentifiedFood(description="rice", estimated_portion_grams=200),
        IdentifiedFood(description="chicken breast", estimated_portion_grams=150),
        IdentifiedFood(description="mystery stew", estimated_portion_grams=300),
    ]

    analysis = asyncio.run(service.analyze(items, Focus.MUSCLE_BUILDING))

    assert [item.request.request_id for item in analysis.items] == ["0", "1", "2"]
    rice, chicken, stew = analysis.items
    assert rice.record.food_id == "white_rice"
    assert rice.gi is not None and rice.gi.gi == 73
    assert chicken.gi is None
    assert chicken.focus_grade is not None
    assert chicken.focus_grade.focus == Focus.MUSCLE_BUILDING
    assert stew.record is None
    assert "mystery stew" in stew.error
    assert analysis.unresolved == ["mystery stew"]

    assert analysis.totals.calories == 508
    assert analysis.totals.potassium == 454.0
    assert analysis.totals.folate is None
    assert analysis.glycemic.gi == pytest.approx(73.0)
    assert analysis.glycemic.gi_band == "high"
    assert analysis.glycemic.gl_band == "high"


def test_analyze_without_focus_grades_everything(service) -> None:
    items = [IdentifiedFood(description="apple", estimated_portion_grams=180)]

    analysis = asyncio.run(service.analyze(items))

    item = analysis.items[0]
    assert item.focus_grade is None
    assert set(item.grades.focus_grades) == set(Focus)
    assert analysis.unresolved == []


def test_low_carb_items_stay_out_of_meal_gi(service) -> None:
    items = [
        IdentifiedFood(description="spinach", estimated_portion_grams=100),
        IdentifiedFood(description="chicken breast", estimated_portion_grams=150),
    ]

    analysis = asyncio.run(service.analyze(items))

    spinach, chicken = analysis.items
    assert spinach.record.nutrition.carbs == 3.6
    assert spinach.gi is None
    assert chicken.gi is None
    assert analysis.glycemic.gi is None
    assert analysis.glycemic.gi_band is None


def test_analyze_with_nothing_resolved(service) -> None:
    items = [IdentifiedFood(description="unicorn stew", estimated_portion_grams=100)]

    analysis = asyncio.run(service.analyze(items))

    assert analysis.totals is None
    assert analysis.glycemic.gi is None
    assert analysis.unresolved == ["unicorn stew"]


def test_total_nutrition_sums_known_optional_fields(knowledge_base) -> None:
    records = [
        local_record(knowledge_base, "lentils", 100),
        local_record(knowledge_base, "chickpeas", 100),
    ]

    totals = total_nutrition(records)

    assert totals.calories == 280
    assert totals.fiber == 15.5
    assert totals.folate == 353
    assert total_nutrition([]) is None


def test_identified_food_validation() -> None:
    result = IdentificationResult.model_validate(
        {"items": [{"description": "apple", "estimated_portion_grams": 150}]}
    )

    assert result.items[0].preparation_id is None
    with pytest.raises(ValidationError):
        IdentifiedFood(description="apple", estimated_portion_grams=0)
    with pytest.raises(ValidationError):
        IdentifiedFood(description="", estimated_portion_grams=100)
    with pytest.raises(ValidationError):
        IdentificationResult(items=[])
