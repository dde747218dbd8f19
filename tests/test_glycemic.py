"""Tests for glycemic index lookups and glycemic load."""

import pytest

from nutrition_engine.domain.glycemic import MealGlycemicItem
from nutrition_engine.services.glycemic import (
    GlycemicThresholds,
    calculate_meal_gi,
    calculate_meal_gl,
    get_gi_band,
    get_gl_band,
    glycemic_load,
    has_relevant_gi,
)
from tests.conftest import local_record, make_nutrition


def test_lookup_gi_resolves_aliases_to_food_values(glycemic) -> None:
    entry = glycemic.lookup_gi("Rice")

    assert entry is not None
    assert entry.key == "white_rice"
    assert entry.gi == 73
    assert entry.matched_on == "food"
    assert entry.confidence == "high"


def test_lookup_gi_falls_back_to_food_category(glycemic) -> None:
    entry = glycemic.lookup_gi("spinach")

    assert entry is not None
    assert entry.key == "vegetables"
    assert entry.gi == 35
    assert entry.matched_on == "category"


def test_lookup_gi_accepts_category_ids(glycemic) -> None:
    entry = glycemic.lookup_gi("grains")

    assert entry is not None
    assert entry.gi == 65


def test_lookup_gi_unknown(glycemic) -> None:
    assert glycemic.lookup_gi("chicken_breast") is None
    assert glycemic.lookup_gi("unicorn stew") is None
    assert glycemic.lookup_gi("") is None


def test_lookup_for_record_prefers_food_id(glycemic, knowledge_base) -> None:
    record = local_record(knowledge_base, "brown_rice", 150)

    entry = glycemic.lookup_for_record(record)

    assert entry is not None
    assert entry.gi == 68


@pytest.mark.parametrize(
    ("value", "band"),
    [(0, "low"), (55, "low"), (55.5, "medium"), (69, "medium"), (70, "high")],
)
def test_gi_bands(value, band) -> None:
    assert get_gi_band(value) == band


@pytest.mark.parametrize(
    ("value", "band"),
    [(10, "low"), (10.5, "medium"), (19, "medium"), (20, "high")],
)
def test_gl_bands(value, band) -> None:
    assert get_gl_band(value) == band


def test_bands_follow_custom_thresholds() -> None:
    thresholds = GlycemicThresholds(gi_low_max=50, gi_medium_max=60)

    assert get_gi_band(55, thresholds) == "medium"
    assert get_gi_band(61, thresholds) == "high"


def test_meal_gi_is_carb_weighted() -> None:
    items = [MealGlycemicItem(gi=70, carbs=30), MealGlycemicItem(gi=40, carbs=10)]

    assert calculate_meal_gi(items) == pytest.approx(62.5)
    assert calculate_meal_gl(items) == pytest.approx(25)


def test_meal_gi_with_equal_carbs_is_the_plain_average() -> None:
    items = [MealGlycemicItem(gi=70, carbs=20), MealGlycemicItem(gi=40, carbs=20)]

    assert calculate_meal_gi(items) == pytest.approx(55)


def test_meal_gi_leans_toward_the_higher_carb_item() -> None:
    items = [MealGlycemicItem(gi=70, carbs=30), MealGlycemicItem(gi=40, carbs=10)]

    meal_gi = calculate_meal_gi(items)

    assert abs(meal_gi - 70) < abs(meal_gi - 40)


def test_meal_gi_without_carbs_is_unknown() -> None:
    items = [MealGlycemicItem(gi=70, carbs=0)]

    assert calculate_meal_gi(items) is None
    assert calculate_meal_gi([]) is None
    assert calculate_meal_gl(items) == 0


def test_gi_relevance_needs_five_grams_of_carbs() -> None:
    assert not has_relevant_gi(make_nutrition(carbs=4.9))
    assert has_relevant_gi(make_nutrition(carbs=5))


def test_glycemic_load_uses_net_carbs() -> None:
    nutrition = make_nutrition(carbs=30, fiber=5)

    assert glycemic_load(40, nutrition) == 10.0
    assert glycemic_load(40, make_nutrition(carbs=2, fiber=3)) == 0


def test_summarize_meal(glycemic) -> None:
    summary = glycemic.summarize_meal(
        [MealGlycemicItem(gi=73, carbs=56), MealGlycemicItem(gi=35, carbs=4)]
    )

    assert summary.gi_band == "high"
    assert summary.gl_band == "high"
    assert summary.gl == pytest.approx(42.28)
    assert "spike" in summary.explanation


def test_summarize_meal_without_carbs(glycemic) -> None:
    summary = glycemic.summarize_meal([])

    assert summary.gi is None
    assert summary.gi_band is None
    assert summary.gl_band == "low"
