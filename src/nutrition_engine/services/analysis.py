"""Meal analysis: resolve, grade and total a list of identified foods."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from nutrition_engine.domain.analysis import AnalyzedItem, MealAnalysis
from nutrition_engine.domain.glycemic import MealGlycemicItem
from nutrition_engine.domain.grading import Focus
from nutrition_engine.domain.identification import IdentifiedFood
from nutrition_engine.domain.nutrition import (
    OPTIONAL_FIELDS,
    REQUIRED_FIELDS,
    NutritionPer100g,
    NutritionRecord,
    ResolutionRequest,
)
from nutrition_engine.services.glycemic import (
    GlycemicEngine,
    available_carbs,
    has_relevant_gi,
)
from nutrition_engine.services.grading import GradingEngine
from nutrition_engine.services.resolver import NutrientResolver

_logger = logging.getLogger(__name__)


@dataclass
class MealAnalysisService:
    """Runs identified foods through resolution, GI lookup and grading."""

    resolver: NutrientResolver
    glycemic: GlycemicEngine
    grading: GradingEngine

    async def analyze(
        self, items: Sequence[IdentifiedFood], focus: Focus | None = None
    ) -> MealAnalysis:
        requests = [
            ResolutionRequest(
                request_id=str(index),
                query=item.description,
                portion_grams=item.estimated_portion_grams,
                preparation_id=item.preparation_id,
            )
            for index, item in enumerate(items)
        ]
        outcomes = await self.resolver.resolve_many(requests)

        analyzed: list[AnalyzedItem] = []
        records: list[NutritionRecord] = []
        glycemic_items: list[MealGlycemicItem] = []
        unresolved: list[str] = []
        for outcome in outcomes:
            if outcome.record is None:
                unresolved.append(outcome.request.query)
                analyzed.append(
                    AnalyzedItem(request=outcome.request, error=outcome.error)
                )
                continue
            record = outcome.record
            gi_entry = None
            if has_relevant_gi(record.nutrition):
                gi_entry = self.glycemic.lookup_for_record(record)
            if gi_entry is not None:
                glycemic_items.append(
                    MealGlycemicItem(
                        gi=gi_entry.gi, carbs=available_carbs(record.nutrition)
                    )
                )
            grades = self.grading.grade_all(record, gi_entry)
            analyzed.append(
                AnalyzedItem(
                    request=outcome.request,
                    record=record,
                    gi=gi_entry,
                    grades=grades,
                    focus_grade=grades.focus_grades[Focus(focus)] if focus else None,
                )
            )
            records.append(record)

        if unresolved:
            _logger.info(
                "Meal analysis left %s of %s items unresolved",
                len(unresolved),
                len(requests),
            )
        return MealAnalysis(
            items=analyzed,
            totals=total_nutrition(records),
            glycemic=self.glycemic.summarize_meal(glycemic_items),
            unresolved=unresolved,
        )


def total_nutrition(records: Sequence[NutritionRecord]) -> NutritionPer100g | None:
    """Sum portions; optional fields only when every record knows them."""
    if not records:
        return None
    values: dict[str, float | None] = {
        name: sum(record.nutrition.get(name) or 0.0 for record in records)
        for name in REQUIRED_FIELDS
    }
    for name in OPTIONAL_FIELDS:
        amounts = [record.nutrition.get(name) for record in records]
        if all(amount is not None for amount in amounts):
            values[name] = sum(amounts)
    return NutritionPer100g.from_values(values)
