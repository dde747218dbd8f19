"""Deterministic per-focus grading of portion-scaled nutrition.

Every focus combines sub-scores read from threshold tables. A table maps a
value to 100, 80, 60, 40 or 20 depending on which of its four thresholds it
reaches. Sub-scores are weighted, bonuses and penalties added, and the total is
clamped to 0-100 before the letter grade is assigned.
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field

from nutrition_engine.domain.foods import FoodEntry
from nutrition_engine.domain.glycemic import GIEntry
from nutrition_engine.domain.grading import (
    OVERALL,
    Focus,
    FocusGrade,
    GradedRecord,
    GradeSet,
    InflammatoryIndex,
    LetterGrade,
    SatietyScore,
)
from nutrition_engine.domain.nutrition import (
    LOCAL,
    NutritionPer100g,
    NutritionRecord,
    round_half_up,
)
from nutrition_engine.services.glycemic import (
    DEFAULT_THRESHOLDS,
    GlycemicThresholds,
    get_gi_band,
    get_gl_band,
    glycemic_load,
    has_relevant_gi,
)
from nutrition_engine.services.knowledge_base import calculate_nutrition

NEUTRAL_SCORE = 50
MAX_OVERALL_REASONS = 5


@dataclass(frozen=True)
class GradeCutoffs:
    """Minimum scores for the A to D letters; anything lower is an F."""

    a: float = 85
    b: float = 70
    c: float = 55
    d: float = 40

    def letter(self, score: float) -> LetterGrade:
        if score >= self.a:
            return "A"
        if score >= self.b:
            return "B"
        if score >= self.c:
            return "C"
        if score >= self.d:
            return "D"
        return "F"


DEFAULT_CUTOFFS = GradeCutoffs()


@dataclass(frozen=True)
class _Bands:
    excellent: float
    good: float
    fair: float
    poor: float
    higher_is_better: bool = True

    def score(self, value: float) -> int:
        thresholds = (self.excellent, self.good, self.fair, self.poor)
        for points, threshold in zip((100, 80, 60, 40), thresholds, strict=True):
            if self.higher_is_better and value >= threshold:
                return points
            if not self.higher_is_better and value <= threshold:
                return points
        return 20

    def score_or(self, value: float | None, default: int) -> int:
        """Score a value that may be unknown, using ``default`` when it is."""
        if value is None:
            return default
        return self.score(value)


_PROTEIN = _Bands(20, 15, 10, 5)
_PROTEIN_MUSCLE = _Bands(30, 20, 12, 6)
_PROTEIN_SATIETY = _Bands(25, 18, 12, 5)
_PROTEIN_GLUCOSE = _Bands(20, 12, 6, 3)
_PROTEIN_DENSITY = _Bands(15, 10, 5, 2)
_FIBER = _Bands(8, 5, 3, 1)
_FIBER_MODEST = _Bands(6, 4, 2, 1)
_SATURATED_FAT = _Bands(2, 4, 6, 10, higher_is_better=False)
_SATURATED_FAT_HEART = _Bands(2, 4, 7, 12, higher_is_better=False)
_SODIUM = _Bands(300, 500, 700, 1000, higher_is_better=False)
_SODIUM_HEART = _Bands(300, 500, 800, 1200, higher_is_better=False)
_SODIUM_BONE = _Bands(400, 600, 1000, 1500, higher_is_better=False)
_SUGAR = _Bands(5, 10, 15, 25, higher_is_better=False)
_SUGAR_STRICT = _Bands(3, 8, 15, 25, higher_is_better=False)
_CHOLESTEROL = _Bands(50, 100, 150, 250, higher_is_better=False)
_CALORIE_DENSITY = _Bands(0.8, 1.2, 1.8, 2.5, higher_is_better=False)
_POTASSIUM = _Bands(500, 300, 150, 50)
_OMEGA3 = _Bands(1, 0.5, 0.2, 0.05)
_VITAMIN_C = _Bands(30, 15, 8, 2)
_CALCIUM = _Bands(300, 150, 75, 25)
_VITAMIN_D = _Bands(5, 2.5, 1, 0.3)
_MAGNESIUM = _Bands(80, 50, 25, 10)

_COMPLETE_PROTEIN_CATEGORIES = frozenset(
    {"poultry", "meat", "seafood", "eggs", "dairy", "legumes"}
)
_PLANT_CATEGORIES = frozenset(
    {"legumes", "grains", "vegetables", "fruits", "nuts_seeds"}
)
_PREBIOTIC_CATEGORIES = frozenset({"legumes"})
_CHOLINE_CATEGORIES = frozenset({"eggs", "seafood"})

_COMPLETE_PROTEIN_WORDS = (
    "chicken",
    "turkey",
    "beef",
    "steak",
    "pork",
    "fish",
    "salmon",
    "tuna",
    "cod",
    "shrimp",
    "egg",
    "milk",
    "cheese",
    "yogurt",
    "tofu",
    "soy",
    "quinoa",
)
_PLANT_WORDS = (
    "bean",
    "lentil",
    "chickpea",
    "vegetable",
    "salad",
    "spinach",
    "kale",
    "broccoli",
    "berry",
    "berries",
    "apple",
    "orange",
    "banana",
    "nut",
    "seed",
    "oat",
)
_PREBIOTIC_WORDS = (
    "onion",
    "garlic",
    "leek",
    "asparagus",
    "banana",
    "oat",
    "bean",
    "lentil",
    "chickpea",
)
_FERMENTED_WORDS = (
    "yogurt",
    "yoghurt",
    "kefir",
    "kimchi",
    "sauerkraut",
    "miso",
    "tempeh",
    "kombucha",
)
_CHOLINE_WORDS = ("egg", "salmon", "fish", "liver")

_GI_INSIGHT_PREFIX = {
    "low": "Low GI supports stable blood sugar. ",
    "medium": "Moderate GI. ",
    "high": "High GI may spike blood sugar. ",
}

# Insights by letter tier: A, B, C, then D and F.
_INSIGHTS: dict[Focus, tuple[str, str, str, str]] = {
    Focus.HEART_HEALTH: (
        "Excellent choice for cardiovascular health.",
        "Good for heart health in regular portions.",
        "Fine occasionally; watch sodium and saturated fat.",
        "Limit for heart health due to sodium or saturated fat.",
    ),
    Focus.WEIGHT_MANAGEMENT: (
        "Filling and light: excellent for weight management.",
        "Good choice for managing weight.",
        "Moderate fit for weight goals; mind the portion size.",
        "Energy-dense for how filling it is; keep portions small.",
    ),
    Focus.BLOOD_SUGAR: (
        "Minimal impact on blood sugar.",
        "Gentle effect on blood sugar.",
        "Moderate effect on blood sugar; pair with protein or fiber.",
        "Likely to raise blood sugar quickly.",
    ),
    Focus.GUT_HEALTH: (
        "Excellent for a healthy gut microbiome.",
        "Supports digestive health.",
        "Some gut benefits; add fiber-rich sides.",
        "Offers little for gut health.",
    ),
    Focus.BRAIN_FOCUS: (
        "Great fuel for focus and brain health.",
        "Supports steady mental energy.",
        "Moderate support for focus.",
        "May lead to an energy dip rather than focus.",
    ),
    Focus.BALANCED: (
        "Excellent nutritional balance.",
        "Good overall nutrient balance.",
        "Reasonable balance with some trade-offs.",
        "Poorly balanced; best as an occasional food.",
    ),
    Focus.BONE_JOINT: (
        "Excellent for bone and joint health.",
        "Good source of bone-supporting minerals.",
        "Some bone-supporting nutrients.",
        "Low in bone-supporting minerals.",
    ),
    Focus.ANTI_INFLAMMATORY: (
        "Strongly anti-inflammatory profile.",
        "Mostly anti-inflammatory profile.",
        "Neutral inflammatory profile.",
        "May promote inflammation.",
    ),
}

# Foci whose whole score hangs on optional nutrients.
_OPTIONAL_DRIVERS: dict[Focus, tuple[str, ...]] = {
    Focus.BONE_JOINT: ("calcium", "vitamin_d", "magnesium"),
}


@dataclass(frozen=True)
class _Traits:
    complete_protein: bool
    plant: bool
    prebiotic: bool
    fermented: bool
    choline_rich: bool


@dataclass
class _Scorecard:
    score: float = 0.0
    pros: list[str] = field(default_factory=list)
    cons: list[str] = field(default_factory=list)
    insight: str | None = None
    insight_prefix: str = ""

    def add(self, points: float) -> None:
        self.score += points

    def pro(self, reason: str) -> None:
        if reason not in self.pros:
            self.pros.append(reason)

    def con(self, reason: str) -> None:
        if reason not in self.cons:
            self.cons.append(reason)


def _traits_for(record: NutritionRecord) -> _Traits:
    category = record.category_id or ""
    tokens = {
        token
        for part in (record.food_id, record.name, record.query)
        if part
        for token in part.replace("_", " ").lower().split()
    }

    def mentions(words: tuple[str, ...]) -> bool:
        return any(token.startswith(word) for token in tokens for word in words)

    return _Traits(
        complete_protein=category in _COMPLETE_PROTEIN_CATEGORIES
        or mentions(_COMPLETE_PROTEIN_WORDS),
        plant=category in _PLANT_CATEGORIES or mentions(_PLANT_WORDS),
        prebiotic=category in _PREBIOTIC_CATEGORIES or mentions(_PREBIOTIC_WORDS),
        fermented=category == "fermented" or mentions(_FERMENTED_WORDS),
        choline_rich=category in _CHOLINE_CATEGORIES or mentions(_CHOLINE_WORDS),
    )


def _grade_heart_health(record: NutritionRecord, traits: _Traits) -> _Scorecard:
    n = record.nutrition
    card = _Scorecard()
    card.add(_SATURATED_FAT_HEART.score_or(n.saturated_fat, NEUTRAL_SCORE) * 0.30)
    card.add(_SODIUM_HEART.score(n.sodium) * 0.25)
    if n.trans_fat is None:
        card.add(NEUTRAL_SCORE * 0.10)
    else:
        card.add((0 if n.trans_fat > 0.5 else 100) * 0.10)
    card.add(_CHOLESTEROL.score_or(n.cholesterol, NEUTRAL_SCORE) * 0.10)
    card.add(_FIBER.score(n.fiber) * 0.15)
    card.add(_POTASSIUM.score_or(n.potassium, 50) * 0.10)
    if n.omega3 is not None and n.omega3 > 0.5:
        card.add(10)
        card.pro("Omega-3 fatty acids")

    if n.saturated_fat is not None:
        if n.saturated_fat <= 3:
            card.pro("Low saturated fat")
        elif n.saturated_fat > 7:
            card.con("High saturated fat")
    if n.sodium <= 400:
        card.pro("Low sodium")
    elif n.sodium > 800:
        card.con("High sodium")
    if n.fiber >= 5:
        card.pro("Heart-healthy fiber")
    if n.potassium is not None and n.potassium >= 300:
        card.pro("Good potassium for blood pressure")
    if n.trans_fat is not None and n.trans_fat > 0:
        card.con("Contains trans fat")
    if n.cholesterol is not None and n.cholesterol > 150:
        card.con("High dietary cholesterol")
    return card


def _grade_weight_management(record: NutritionRecord, traits: _Traits) -> _Scorecard:
    n = record.nutrition
    card = _Scorecard()
    density = n.calories / record.portion_grams
    card.add(_CALORIE_DENSITY.score(density) * 0.30)
    card.add(_PROTEIN_SATIETY.score(n.protein) * 0.30)
    card.add(_FIBER.score(n.fiber) * 0.25)
    card.add(_SUGAR_STRICT.score(n.sugar) * 0.15)

    if density <= 1.0:
        card.pro("Low calorie density")
    elif density > 2.0:
        card.con("High calorie density")
    if n.protein >= 18:
        card.pro("High protein for satiety")
    if n.fiber >= 5:
        card.pro("Fiber promotes fullness")
    if n.sugar > 15:
        card.con("High sugar content")
    if n.calories > 500 and n.protein < 15:
        card.con("High calories without much protein")
    return card


def _grade_blood_sugar(record: NutritionRecord, traits: _Traits) -> _Scorecard:
    n = record.nutrition
    card = _Scorecard()
    complex_ratio = (n.carbs - n.sugar) / n.carbs if n.carbs > 0 else 1.0
    card.add(_SUGAR_STRICT.score(n.sugar) * 0.35)
    card.add(_FIBER.score(n.fiber) * 0.25)
    card.add(_PROTEIN_GLUCOSE.score(n.protein) * 0.20)
    if complex_ratio >= 0.8:
        carb_quality = 100
    elif complex_ratio >= 0.6:
        carb_quality = 80
    elif complex_ratio >= 0.4:
        carb_quality = 60
    else:
        carb_quality = 40
    card.add(carb_quality * 0.20)
    if n.carbs > 50 and n.fiber < 5:
        card.add(-15)
        card.con("High carb load without fiber")

    if n.sugar < 5:
        card.pro("Very low sugar")
    elif n.sugar > 15:
        card.con("High sugar content")
    if n.fiber >= 5:
        card.pro("Fiber slows glucose absorption")
    if n.protein >= 15 and n.carbs < 30:
        card.pro("Protein moderates blood sugar")
    if has_relevant_gi(n):
        if complex_ratio >= 0.7:
            card.pro("Mostly complex carbohydrates")
        elif complex_ratio < 0.5:
            card.con("Mostly simple sugars")
    return card


def _grade_muscle_building(record: NutritionRecord, traits: _Traits) -> _Scorecard:
    n = record.nutrition
    card = _Scorecard()
    card.add(_PROTEIN_MUSCLE.score(n.protein) * 0.60)
    if traits.complete_protein:
        card.add(10)
        card.pro("Complete amino acid profile")
    density = n.protein / n.calories * 100 if n.calories > 0 else 0.0
    card.add(_PROTEIN_DENSITY.score(density) * 0.20)
    card.add((80 if 15 <= n.carbs <= 60 else 60) * 0.10)

    if n.protein >= 25:
        card.pro("Excellent protein for muscle synthesis")
    elif n.protein >= 18:
        card.pro("Good protein content")
    elif n.protein < 8:
        card.con("Very low protein")
    if density > 10:
        card.pro("High protein density")
    if n.calories > 600 and n.protein < 20:
        card.con("High calories without proportional protein")

    if n.protein >= 25:
        card.insight = (
            "Excellent for muscle protein synthesis with optimal protein content."
        )
    elif n.protein >= 18:
        card.insight = "Good protein source to support muscle building."
    elif n.protein >= 10:
        card.insight = "Moderate protein; pair with other protein sources."
    else:
        card.insight = "Low protein content; not ideal for muscle building alone."
    return card


def _grade_gut_health(record: NutritionRecord, traits: _Traits) -> _Scorecard:
    n = record.nutrition
    card = _Scorecard()
    card.add(_FIBER.score(n.fiber) * 0.70 + 20)
    if traits.prebiotic:
        card.add(15)
        card.pro("Prebiotic fibers feed gut bacteria")
    if traits.fermented:
        card.add(15)
        card.pro("Fermented food with live cultures")
    processed_penalty = 0
    if n.trans_fat is not None and n.trans_fat > 0:
        processed_penalty += 10
    if n.sodium > 1000:
        processed_penalty += 10
    if processed_penalty:
        card.add(-processed_penalty)
        card.con("Processing markers may harm gut health")

    if n.fiber >= 8:
        card.pro("Excellent fiber for the microbiome")
    elif n.fiber >= 5:
        card.pro("Good fiber content")
    elif n.fiber < 2:
        card.con("Very low fiber")
    return card


def _grade_brain_focus(record: NutritionRecord, traits: _Traits) -> _Scorecard:
    n = record.nutrition
    card = _Scorecard()
    card.add(_OMEGA3.score_or(n.omega3, 40) * 0.30)
    if n.sugar < 8 and n.fiber >= 3:
        stability = 100
    elif n.sugar < 12 and n.fiber >= 2:
        stability = 80
    elif n.sugar < 18:
        stability = 60
    else:
        stability = 40
    card.add(stability * 0.25)
    card.add(_VITAMIN_C.score_or(n.vitamin_c, 50) * 0.20)
    card.add(_FIBER_MODEST.score(n.fiber) * 0.15)
    card.add(10)
    if traits.choline_rich:
        card.add(15)
        card.pro("Choline for memory")
    if n.trans_fat is not None and n.trans_fat > 0:
        card.add(-15)
        card.con("Trans fat may impair cognition")

    if n.omega3 is not None and n.omega3 >= 0.5:
        card.pro("Rich in omega-3 for brain health")
    if stability == 100:
        card.pro("Steady energy release")
    elif n.sugar > 20:
        card.con("High sugar may cause an energy crash")
    if n.vitamin_c is not None and n.vitamin_c >= 15:
        card.pro("Antioxidant vitamin C")
    return card


def _grade_balanced(record: NutritionRecord, traits: _Traits) -> _Scorecard:
    n = record.nutrition
    card = _Scorecard()
    card.add(_PROTEIN.score(n.protein) * 0.25)
    card.add(_FIBER.score(n.fiber) * 0.25)
    card.add(_SATURATED_FAT.score_or(n.saturated_fat, NEUTRAL_SCORE) * 0.20)
    card.add(_SODIUM.score(n.sodium) * 0.15)
    card.add(_SUGAR.score(n.sugar) * 0.15)

    if n.protein >= 15:
        card.pro("Good protein content")
    if n.fiber >= 5:
        card.pro("Good fiber content")
    elif n.fiber < 2:
        card.con("Low fiber")
    if n.saturated_fat is not None:
        if n.saturated_fat <= 3:
            card.pro("Low saturated fat")
        elif n.saturated_fat > 6:
            card.con("High saturated fat")
    if n.sodium > 700:
        card.con("High sodium")
    if n.sugar > 15:
        card.con("High sugar content")
    return card


def _grade_bone_joint(record: NutritionRecord, traits: _Traits) -> _Scorecard:
    n = record.nutrition
    card = _Scorecard()
    card.add(_CALCIUM.score_or(n.calcium, 40) * 0.35)
    card.add(_VITAMIN_D.score_or(n.vitamin_d, 40) * 0.25)
    card.add(_MAGNESIUM.score_or(n.magnesium, 40) * 0.20)
    card.add(15)
    if n.omega3 is not None and n.omega3 >= 0.5:
        card.add(10)
        card.pro("Omega-3 supports joint health")
    if n.sodium > 800:
        card.add(-(100 - _SODIUM_BONE.score(n.sodium)) * 0.2)
    if n.sodium > 1000:
        card.con("High sodium increases calcium loss")

    if n.calcium is not None:
        if n.calcium >= 150:
            card.pro("Good calcium source")
        elif n.calcium < 50:
            card.con("Low calcium content")
    if n.vitamin_d is not None and n.vitamin_d >= 2:
        card.pro("Vitamin D aids calcium absorption")
    if n.magnesium is not None and n.magnesium >= 50:
        card.pro("Magnesium for bone density")
    return card


def _grade_anti_inflammatory(record: NutritionRecord, traits: _Traits) -> _Scorecard:
    n = record.nutrition
    card = _Scorecard()
    card.add(_OMEGA3.score_or(n.omega3, 40) * 0.25)
    card.add(_SATURATED_FAT_HEART.score_or(n.saturated_fat, NEUTRAL_SCORE) * 0.25)
    card.add(_SUGAR.score(n.sugar) * 0.20)
    card.add(_VITAMIN_C.score_or(n.vitamin_c, 50) * 0.15)
    card.add(_FIBER_MODEST.score(n.fiber) * 0.15)
    if traits.plant:
        card.add(10)
        card.pro("Plant food rich in polyphenols")
    if n.trans_fat is not None and n.trans_fat > 0:
        card.add(-20)
        card.con("Trans fat is strongly inflammatory")

    if n.omega3 is not None and n.omega3 >= 0.5:
        card.pro("Anti-inflammatory omega-3")
    if n.saturated_fat is not None:
        if n.saturated_fat <= 3:
            card.pro("Low saturated fat")
        elif n.saturated_fat > 7:
            card.con("High saturated fat")
    if n.vitamin_c is not None and n.vitamin_c >= 15:
        card.pro("Antioxidant vitamin C")
    if n.sugar > 15:
        card.con("High sugar promotes inflammation")
    return card


_GRADERS: dict[Focus, Callable[[NutritionRecord, _Traits], _Scorecard]] = {
    Focus.HEART_HEALTH: _grade_heart_health,
    Focus.WEIGHT_MANAGEMENT: _grade_weight_management,
    Focus.BLOOD_SUGAR: _grade_blood_sugar,
    Focus.MUSCLE_BUILDING: _grade_muscle_building,
    Focus.GUT_HEALTH: _grade_gut_health,
    Focus.BRAIN_FOCUS: _grade_brain_focus,
    Focus.BALANCED: _grade_balanced,
    Focus.BONE_JOINT: _grade_bone_joint,
    Focus.ANTI_INFLAMMATORY: _grade_anti_inflammatory,
}


def gi_adjustment(
    gi: float, thresholds: GlycemicThresholds = DEFAULT_THRESHOLDS
) -> int:
    """Score points for a GI value: up to +15 when low, down to -15 when high."""
    low_max = thresholds.gi_low_max
    high_min = thresholds.gi_medium_max + 1
    band = get_gi_band(gi, thresholds)
    if band == "low":
        points = 15 - gi / low_max * 10
    elif band == "medium":
        points = 5 - (gi - low_max) / (thresholds.gi_medium_max - low_max) * 10
    else:
        points = -5 - (gi - high_min) / max(1.0, 100 - high_min) * 10
    return int(round_half_up(points))


def satiety_score(record: NutritionRecord) -> SatietyScore:
    """Estimate how filling a portion is from its per-100 g composition."""
    n = record.nutrition
    per_100g = 100 / record.portion_grams
    protein = min(30.0, n.protein * per_100g * 1.5)
    fiber = min(25.0, n.fiber * per_100g * 5)
    water = min(20.0, 50 * 0.25)
    density_penalty = min(25.0, n.calories * per_100g * 0.08)
    fat_penalty = min(15.0, n.fat * per_100g * 0.3)
    raw = 40 + protein + fiber + water - density_penalty - fat_penalty
    score = int(round_half_up(max(0.0, min(100.0, raw))))
    if score >= 80:
        category = "very_high"
    elif score >= 65:
        category = "high"
    elif score >= 45:
        category = "moderate"
    elif score >= 25:
        category = "low"
    else:
        category = "very_low"
    return SatietyScore(score=score, category=category)


def inflammatory_index(record: NutritionRecord) -> InflammatoryIndex:
    """Simplified dietary inflammatory index; unknown nutrients contribute nothing."""
    n = record.nutrition
    contributions = (
        (n.saturated_fat, 0.0373),
        (n.trans_fat, 0.5),
        (n.sugar, 0.01),
        (n.cholesterol, 0.00042),
        (n.fiber, -0.0663),
        (n.omega3, -0.436),
        (n.magnesium, -0.00484),
        (n.vitamin_c, -0.00848),
        (n.iron, -0.0064),
    )
    value = round_half_up(
        sum(amount * weight for amount, weight in contributions if amount is not None),
        2,
    )
    if value <= -0.5:
        category = "anti_inflammatory"
    elif value <= 0.2:
        category = "neutral"
    elif value <= 0.7:
        category = "mildly_inflammatory"
    else:
        category = "inflammatory"
    return InflammatoryIndex(value=value, category=category)


@dataclass(frozen=True)
class GradingEngine:
    """Grades nutrition records against each health focus."""

    cutoffs: GradeCutoffs = DEFAULT_CUTOFFS
    glycemic_thresholds: GlycemicThresholds = DEFAULT_THRESHOLDS

    def grade_nutrition(self, record: NutritionRecord, focus: Focus) -> FocusGrade:
        return self.grade_nutrition_with_gi(record, focus, None)

    def grade_nutrition_with_gi(
        self, record: NutritionRecord, focus: Focus, gi_entry: GIEntry | None
    ) -> FocusGrade:
        """Grade one focus, folding in GI and GL when a GI value is known.

        Blood sugar always uses the GI value. Weight management and brain focus
        use a reduced share of it, and only for portions with enough carbs.
        """
        focus = Focus(focus)
        missing = self._missing_drivers(record.nutrition, focus)
        if missing is not None:
            return FocusGrade(
                focus=focus,
                grade=self.cutoffs.letter(NEUTRAL_SCORE),
                score=NEUTRAL_SCORE,
                insight=(
                    f"Insufficient data to grade {focus.label}: "
                    f"{', '.join(missing)} unknown."
                ),
            )
        card = _GRADERS[focus](record, _traits_for(record))
        if gi_entry is not None:
            self._apply_glycemic(card, focus, record.nutrition, gi_entry)
        return self._finish(focus, card)

    def grade_all(
        self, record: NutritionRecord, gi_entry: GIEntry | None = None
    ) -> GradeSet:
        focus_grades = {
            focus: self.grade_nutrition_with_gi(record, focus, gi_entry)
            for focus in Focus
        }
        return GradeSet(
            focus_grades=focus_grades,
            overall=self.get_overall_grade(focus_grades),
            satiety=satiety_score(record),
            inflammatory=inflammatory_index(record),
        )

    def get_overall_grade(self, per_focus: Mapping[Focus, FocusGrade]) -> FocusGrade:
        """Unweighted mean of the focus scores."""
        grades = list(per_focus.values())
        if not grades:
            return FocusGrade(
                focus=OVERALL,
                grade=self.cutoffs.letter(NEUTRAL_SCORE),
                score=NEUTRAL_SCORE,
                insight="Insufficient data for an overall grade.",
            )
        score = int(round_half_up(sum(grade.score for grade in grades) / len(grades)))
        best = max(grades, key=lambda grade: grade.score)
        worst = min(grades, key=lambda grade: grade.score)
        if best.score == worst.score:
            insight = "Scores evenly across every focus."
        else:
            insight = (
                f"Best for {Focus(best.focus).label}; "
                f"weakest for {Focus(worst.focus).label}."
            )
        return FocusGrade(
            focus=OVERALL,
            grade=self.cutoffs.letter(score),
            score=score,
            insight=insight,
            pros=_first_distinct(grade.pros for grade in grades),
            cons=_first_distinct(grade.cons for grade in grades),
        )

    def batch_grade_nutrition(
        self,
        records: Mapping[str, NutritionRecord],
        gi_entries: Mapping[str, GIEntry] | None = None,
    ) -> list[GradedRecord]:
        """Grade records independently, keyed by their request id."""
        entries = gi_entries or {}
        return [
            GradedRecord(
                request_id=request_id,
                record=record,
                grades=self.grade_all(record, entries.get(request_id)),
            )
            for request_id, record in records.items()
        ]

    def grade_food(self, food: FoodEntry, focus: Focus) -> FocusGrade:
        """Grade a reference food, preferring its stored snapshot."""
        focus = Focus(focus)
        if food.focus_grades and focus in food.focus_grades:
            return food.focus_grades[focus]
        serving = food.standard_serving
        grams = (serving.grams if serving else None) or 100.0
        record = NutritionRecord(
            query=food.id,
            nutrition=calculate_nutrition(food, grams),
            portion_grams=grams,
            provenance=LOCAL,
            origin=LOCAL,
            food_id=food.id,
            name=food.name,
        )
        return self.grade_nutrition(record, focus)

    def satiety_score(self, record: NutritionRecord) -> SatietyScore:
        return satiety_score(record)

    def inflammatory_index(self, record: NutritionRecord) -> InflammatoryIndex:
        return inflammatory_index(record)

    def _missing_drivers(
        self, nutrition: NutritionPer100g, focus: Focus
    ) -> tuple[str, ...] | None:
        drivers = _OPTIONAL_DRIVERS.get(focus)
        if not drivers:
            return None
        if all(nutrition.get(name) is None for name in drivers):
            return drivers
        return None

    def _apply_glycemic(
        self,
        card: _Scorecard,
        focus: Focus,
        nutrition: NutritionPer100g,
        gi_entry: GIEntry,
    ) -> None:
        thresholds = self.glycemic_thresholds
        adjustment = gi_adjustment(gi_entry.gi, thresholds)
        relevant = has_relevant_gi(nutrition)
        if focus == Focus.BLOOD_SUGAR:
            band = get_gi_band(gi_entry.gi, thresholds)
            card.add(adjustment)
            card.insight_prefix = _GI_INSIGHT_PREFIX[band]
            if band == "low":
                card.pro("Low glycemic index")
            elif band == "high":
                card.con("High glycemic index")
            if relevant:
                load = glycemic_load(gi_entry.gi, nutrition)
                load_band = get_gl_band(load, thresholds)
                if load_band == "high":
                    card.add(-5)
                    card.con("High glycemic load for this portion")
                elif load_band == "low":
                    card.pro("Low glycemic load portion")
        elif focus == Focus.WEIGHT_MANAGEMENT and relevant:
            card.add(round_half_up(adjustment * 0.6))
        elif focus == Focus.BRAIN_FOCUS and relevant:
            card.add(round_half_up(adjustment * 0.4))

    def _finish(self, focus: Focus, card: _Scorecard) -> FocusGrade:
        score = int(max(0.0, min(100.0, round_half_up(card.score))))
        letter = self.cutoffs.letter(score)
        insight = card.insight or _INSIGHTS[focus][self._tier(letter)]
        return FocusGrade(
            focus=focus,
            grade=letter,
            score=score,
            insight=card.insight_prefix + insight,
            pros=card.pros,
            cons=card.cons,
        )

    @staticmethod
    def _tier(letter: LetterGrade) -> int:
        return {"A": 0, "B": 1, "C": 2}.get(letter, 3)


def _first_distinct(groups: Iterable[list[str]]) -> list[str]:
    reasons: list[str] = []
    for group in groups:
        for reason in group:
            if reason not in reasons:
                reasons.append(reason)
            if len(reasons) == MAX_OVERALL_REASONS:
                return reasons
    return reasons
