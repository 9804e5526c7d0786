"""
Health Trajectory Projection

Projects a user's health state a number of years into the future from basic
info and lifestyle survey answers:
- Life expectancy from additive lifestyle adjustments
- Weight drift from diet, exercise and metabolic slowdown
- Height loss after age 40
- BMI
- Daily calorie needs (Mifflin-St Jeor BMR with an activity multiplier)

Every projection is a pure function of its inputs. Missing answers fall back
to neutral defaults, so projection never fails for validated basic info.
"""

import math
from dataclasses import asdict, dataclass
from typing import Dict, Mapping, Optional

from survey_questions import BasicInfo, SurveyAnswer, choice_value, numeric_value


BASELINE_LIFE_EXPECTANCY = 80
MIN_PROJECTED_WEIGHT_LBS = 80
MIN_CALORIE_INTAKE = 1200

# Height loss after 40
HEIGHT_LOSS_START_AGE = 40
HEIGHT_LOSS_PER_DECADE_INCHES = 0.5

# ~2 lbs gained per decade from slowing metabolism
METABOLISM_GAIN_PER_DECADE_LBS = 2

LBS_PER_KG = 2.2
CM_PER_INCH = 2.54


def _round_half_up(value: float, digits: int = 0) -> float:
    """Round .5 away from zero on the positive side, like a calculator does."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def format_height(inches: float) -> str:
    """Format inches as feet and inches, e.g. 68 -> 5' 8\"."""
    feet = int(inches // 12)
    remainder = int(_round_half_up(inches % 12))
    if remainder == 12:
        feet, remainder = feet + 1, 0
    return f"{feet}' {remainder}\""


@dataclass(frozen=True)
class HealthSnapshot:
    """Projected health state at current age + years_offset."""
    projected_weight: int
    projected_height: str
    projected_height_inches: float
    bmi: float
    calorie_intake: int
    life_expectancy: int
    years_offset: int
    future_age: int

    @property
    def exceeds_life_expectancy(self) -> bool:
        return self.future_age > self.life_expectancy

    def to_dict(self) -> Dict:
        return asdict(self)


class ProjectionEngine:
    """Deterministic health trajectory calculator."""

    def __init__(self):
        # Life expectancy adjustments (years) for categorical answers
        self.choice_adjustments = {
            ("smoking", "yes"): -10,
            ("smoking", "occasionally"): -4,
            ("alcohol", "heavily"): -5,
        }

        # Adjustments for rated answers: (question, comparison, threshold, delta)
        self.rating_adjustments = [
            ("diet", "<=", 2, -3),
            ("diet", ">=", 4, 3),
            ("exercise", "<=", 1, -4),
            ("exercise", ">=", 5, 4),
            ("stress", ">=", 4, -2),
        ]

        # Neutral values used when a rated answer is missing
        self.life_expectancy_defaults = {"diet": 3, "exercise": 0, "stress": 3}
        self.weight_defaults = {"diet": 3, "exercise": 3}
        self.activity_default_exercise = 0

    def project(
        self,
        basic_info: BasicInfo,
        answers: Mapping[str, SurveyAnswer],
        years_offset: int
    ) -> HealthSnapshot:
        """
        Project health stats years_offset years from now.

        Args:
            basic_info: Current age, height (inches) and weight (lbs)
            answers: Lifestyle survey answers keyed by question id
            years_offset: Years into the future (0 = today, negative allowed)

        Returns:
            Immutable HealthSnapshot
        """
        future_age = basic_info.age + years_offset

        life_expectancy = self._life_expectancy(answers)
        weight = self._projected_weight(basic_info.weight, answers, years_offset)
        height_inches = self._projected_height(basic_info.height, future_age)

        bmi = _round_half_up(weight / (height_inches * height_inches) * 703, 1)
        calories = self._calorie_intake(weight, height_inches, future_age, answers)

        return HealthSnapshot(
            projected_weight=weight,
            projected_height=format_height(height_inches),
            projected_height_inches=height_inches,
            bmi=bmi,
            calorie_intake=calories,
            life_expectancy=life_expectancy,
            years_offset=years_offset,
            future_age=future_age,
        )

    def _life_expectancy(self, answers: Mapping[str, SurveyAnswer]) -> int:
        expectancy = BASELINE_LIFE_EXPECTANCY

        for (question_id, choice), delta in self.choice_adjustments.items():
            if choice_value(answers, question_id) == choice:
                expectancy += delta

        for question_id, comparison, threshold, delta in self.rating_adjustments:
            value = numeric_value(answers, question_id, self.life_expectancy_defaults[question_id])
            if comparison == "<=" and value <= threshold:
                expectancy += delta
            elif comparison == ">=" and value >= threshold:
                expectancy += delta

        return int(_round_half_up(expectancy))

    def _projected_weight(
        self,
        current_weight: float,
        answers: Mapping[str, SurveyAnswer],
        years_offset: int
    ) -> int:
        diet_score = numeric_value(answers, "diet", self.weight_defaults["diet"]) - 3
        exercise_score = numeric_value(answers, "exercise", self.weight_defaults["exercise"]) - 3

        change_per_year = -diet_score - 0.5 * exercise_score
        metabolism_slowdown = years_offset / 10 * METABOLISM_GAIN_PER_DECADE_LBS

        projected = current_weight + change_per_year * years_offset + metabolism_slowdown
        return int(_round_half_up(max(MIN_PROJECTED_WEIGHT_LBS, projected)))

    def _projected_height(self, current_height: float, future_age: int) -> float:
        if future_age <= HEIGHT_LOSS_START_AGE:
            return current_height
        decades_past = (future_age - HEIGHT_LOSS_START_AGE) // 10
        return current_height - decades_past * HEIGHT_LOSS_PER_DECADE_INCHES

    def _calorie_intake(
        self,
        weight_lbs: int,
        height_inches: float,
        future_age: int,
        answers: Mapping[str, SurveyAnswer]
    ) -> int:
        # Mifflin-St Jeor, metric units
        weight_kg = weight_lbs / LBS_PER_KG
        height_cm = height_inches * CM_PER_INCH
        bmr = 10 * weight_kg + 6.25 * height_cm - 5 * future_age + 5

        exercise_hours = numeric_value(answers, "exercise", self.activity_default_exercise)
        activity_multiplier = 1.2 + exercise_hours * 0.05

        return int(_round_half_up(max(MIN_CALORIE_INTAKE, bmr * activity_multiplier)))


# Global engine instance
_projection_engine: Optional[ProjectionEngine] = None


def get_projection_engine() -> ProjectionEngine:
    """Get or create the global projection engine"""
    global _projection_engine
    if _projection_engine is None:
        _projection_engine = ProjectionEngine()
    return _projection_engine
