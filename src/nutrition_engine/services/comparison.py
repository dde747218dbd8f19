"""Head-to-head comparison of graded foods."""

from collections.abc import Iterable
from dataclasses import dataclass

from nutrition_engine.domain.comparison import (
    ComparableFood,
    ComparisonReport,
    FocusOutcome,
    FoodComparison,
    Margin,
    NutrientLead,
    TwoWayResult,
    Winner,
)
from nutrition_engine.domain.grading import Focus, FocusGrade
from nutrition_engine.domain.nutrition import ALL_FIELDS, NutritionPer100g

TIE = "tie"

LOWER_IS_BETTER = frozenset(
    {"calories", "sodium", "sugar", "saturated_fat", "trans_fat", "cholesterol"}
)

_MARGINS: tuple[tuple[int, Margin], ...] = (
    (25, "decisive"),
    (15, "moderate"),
    (5, "slight"),
)


def margin_for(difference: float) -> Margin:
    gap = abs(difference)
    for threshold, label in _MARGINS:
        if gap >= threshold:
            return label
    return "narrow"


@dataclass(frozen=True)
class ComparisonEngine:
    """Compares two foods focus by focus."""

    tie_epsilon: float = 1.0

    def compare_foods(
        self,
        food_a: ComparableFood,
        food_b: ComparableFood,
        focuses: Iterable[Focus] | None = None,
    ) -> FoodComparison:
        """Decide each focus both foods are graded on.

        Score differences smaller than ``tie_epsilon`` are ties.
        """
        if focuses is None:
            selected = [
                focus
                for focus in Focus
                if focus in food_a.grades and focus in food_b.grades
            ]
        else:
            selected = [
                Focus(focus)
                for focus in focuses
                if focus in food_a.grades and focus in food_b.grades
            ]
        outcomes = {
            focus: self._outcome(focus, food_a.grades[focus], food_b.grades[focus])
            for focus in selected
        }
        nutrients: list[NutrientLead] = []
        if food_a.nutrition is not None and food_b.nutrition is not None:
            nutrients = self.nutrient_leaders(food_a.nutrition, food_b.nutrition)
        return FoodComparison(
            food_a=food_a.food_id,
            food_b=food_b.food_id,
            outcomes=outcomes,
            nutrients=nutrients,
        )

    def quick_winner_side(self, comparison: FoodComparison) -> Winner:
        """Side with strictly more focus wins, otherwise ``tie``."""
        wins_a = comparison.wins("a")
        wins_b = comparison.wins("b")
        if wins_a > wins_b:
            return "a"
        if wins_b > wins_a:
            return "b"
        return TIE

    def get_quick_winner(self, comparison: FoodComparison) -> str:
        """Id of the food with strictly more focus wins, otherwise ``tie``."""
        side = self.quick_winner_side(comparison)
        return {"a": comparison.food_a, "b": comparison.food_b}.get(side, TIE)

    def compare_two(
        self, food_a: ComparableFood, food_b: ComparableFood, focus: Focus
    ) -> TwoWayResult:
        """Pick the better of two foods for one focus and say why."""
        focus = Focus(focus)
        grade_a = food_a.grades.get(focus)
        grade_b = food_b.grades.get(focus)
        if grade_a is None or grade_b is None:
            raise KeyError(f"Both foods need a {focus.value} grade to compare")
        outcome = self._outcome(focus, grade_a, grade_b)
        winner_id = {"a": food_a.food_id, "b": food_b.food_id}.get(outcome.winner)
        return TwoWayResult(
            focus=focus,
            winner=outcome.winner,
            winner_id=winner_id,
            score_a=outcome.score_a,
            score_b=outcome.score_b,
            explanation=self._explain(outcome, food_a, food_b),
        )

    def compare_foods_with_insights(
        self,
        food_a: ComparableFood,
        food_b: ComparableFood,
        focuses: Iterable[Focus] | None = None,
    ) -> ComparisonReport:
        comparison = self.compare_foods(food_a, food_b, focuses)
        side = self.quick_winner_side(comparison)
        wins_a = comparison.wins("a")
        wins_b = comparison.wins("b")
        total = len(comparison.outcomes)
        if side == TIE:
            summary = (
                f"{food_a.name} and {food_b.name} are evenly matched "
                f"with {wins_a} focus wins each."
            )
        elif side == "a":
            summary = (
                f"{food_a.name} wins {wins_a} of {total} focuses "
                f"against {food_b.name}."
            )
        else:
            summary = (
                f"{food_b.name} wins {wins_b} of {total} focuses "
                f"against {food_a.name}."
            )
        explanations = {
            focus: self._explain(outcome, food_a, food_b)
            for focus, outcome in comparison.outcomes.items()
        }
        highlights = [
            _highlight(lead, food_a.name, food_b.name)
            for lead in comparison.nutrients
            if lead.leader != TIE
        ]
        return ComparisonReport(
            comparison=comparison,
            winner=side,
            quick_winner=self.get_quick_winner(comparison),
            summary=summary,
            explanations=explanations,
            highlights=highlights,
        )

    def nutrient_leaders(
        self, nutrition_a: NutritionPer100g, nutrition_b: NutritionPer100g
    ) -> list[NutrientLead]:
        """Which side is better on each nutrient both sides know."""
        leads: list[NutrientLead] = []
        for name in ALL_FIELDS:
            value_a = nutrition_a.get(name)
            value_b = nutrition_b.get(name)
            if value_a is None or value_b is None:
                continue
            if value_a == value_b:
                leader: Winner = TIE
            elif (value_a < value_b) == (name in LOWER_IS_BETTER):
                leader = "a"
            else:
                leader = "b"
            leads.append(
                NutrientLead(
                    nutrient=name, value_a=value_a, value_b=value_b, leader=leader
                )
            )
        return leads

    def _outcome(
        self, focus: Focus, grade_a: FocusGrade, grade_b: FocusGrade
    ) -> FocusOutcome:
        difference = grade_a.score - grade_b.score
        if abs(difference) < self.tie_epsilon:
            winner: Winner = TIE
        elif difference > 0:
            winner = "a"
        else:
            winner = "b"
        return FocusOutcome(
            focus=focus,
            winner=winner,
            score_a=grade_a.score,
            score_b=grade_b.score,
            difference=abs(difference),
            margin=margin_for(difference),
        )

    @staticmethod
    def _explain(
        outcome: FocusOutcome, food_a: ComparableFood, food_b: ComparableFood
    ) -> str:
        label = outcome.focus.label
        if outcome.winner == TIE:
            return f"{food_a.name} and {food_b.name} are equally suited for {label}."
        if outcome.winner == "a":
            winner, loser = food_a, food_b
        else:
            winner, loser = food_b, food_a
        reasons = winner.grades[outcome.focus].pros[:2]
        if not reasons:
            reasons = [
                f"{loser.name}: {con.lower()}"
                for con in loser.grades[outcome.focus].cons[:2]
            ]
        sentence = (
            f"{winner.name} is the {outcome.margin} winner for {label}, "
            f"scoring {outcome.difference} points higher"
        )
        if reasons:
            return f"{sentence} ({'; '.join(reasons)})."
        return f"{sentence}."


def _highlight(lead: NutrientLead, name_a: str, name_b: str) -> str:
    leader = name_a if lead.leader == "a" else name_b
    direction = "less" if lead.nutrient in LOWER_IS_BETTER else "more"
    nutrient = lead.nutrient.replace("_", " ")
    return f"{leader} has {direction} {nutrient}"
