"""
Lifestyle Survey Catalog

Question definitions for the future self survey:
- Basic info (age, height, weight) with valid ranges
- Initial wellness questions
- Additional (optional) wellness questions

Also converts raw survey payloads into SurveyAnswer values. Choice questions
are single-select: a raw answer may arrive as a one-element list of options
(the shape the survey widget produces) and is normalized to the option value.

Option scores are catalog data only. Neither the health projection nor the
lifestyle classification reads them; they only look at the chosen value.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple


class ValidationError(ValueError):
    """Survey input is malformed or out of range."""


class QuestionType(Enum):
    STARS = "stars"
    CHOICE = "checkboxes"
    SLIDER = "slider"
    TEXT = "text"
    NUMBER = "number"


@dataclass(frozen=True)
class ChoiceOption:
    label: str
    value: str
    score: int  # not consumed anywhere


@dataclass(frozen=True)
class Question:
    id: str
    text: str
    type: QuestionType
    options: Tuple[ChoiceOption, ...] = ()
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    step: Optional[float] = None
    labels: Tuple[str, ...] = ()
    is_optional: bool = False
    placeholder: Optional[str] = None
    validation_message: Optional[str] = None

    @property
    def option_values(self) -> Tuple[str, ...]:
        return tuple(option.value for option in self.options)


@dataclass(frozen=True)
class SurveyAnswer:
    """One answer. value is a number, a single choice value, text or None."""
    value: Any = None
    details: Optional[str] = None

    def as_number(self) -> Optional[float]:
        if self.value is None or isinstance(self.value, bool):
            return None
        try:
            return float(self.value)
        except (TypeError, ValueError):
            return None


@dataclass(frozen=True)
class BasicInfo:
    """Validated basic info. Height in inches, weight in pounds."""
    age: int
    height: float
    weight: float

    @classmethod
    def from_answers(cls, answers: Mapping[str, Any]) -> "BasicInfo":
        """
        Build BasicInfo from basic-info answers.

        Accepts SurveyAnswer values or raw values/dicts keyed by question id.

        Raises:
            ValidationError: If a value is missing, not numeric or out of range
        """
        values = {}
        for question in BASIC_INFO_QUESTIONS:
            raw = answers.get(question.id)
            answer = raw if isinstance(raw, SurveyAnswer) else _coerce_answer(raw)
            number = answer.as_number()
            if number is None or not (question.min_value <= number <= question.max_value):
                raise ValidationError(question.validation_message)
            values[question.id] = number

        return cls(age=int(values["age"]), height=values["height"], weight=values["weight"])


# =============================================================================
# QUESTION CATALOG
# =============================================================================

BASIC_INFO_QUESTIONS: List[Question] = [
    Question(
        id="age",
        text="What is your current age?",
        type=QuestionType.NUMBER,
        placeholder="e.g., 30",
        min_value=13,
        max_value=100,
        validation_message="Please enter an age between 13 and 100.",
    ),
    Question(
        id="height",
        text="What is your height in inches?",
        type=QuestionType.NUMBER,
        placeholder="e.g., 68",
        min_value=24,
        max_value=96,
        validation_message="Please enter a height between 24 and 96 inches.",
    ),
    Question(
        id="weight",
        text="What is your weight in pounds (lbs)?",
        type=QuestionType.NUMBER,
        placeholder="e.g., 150",
        min_value=50,
        max_value=700,
        validation_message="Please enter a weight between 50 and 700 lbs.",
    ),
]

INITIAL_QUESTIONS: List[Question] = [
    Question(
        id="diet",
        text="How would you rate the typical healthiness of your diet?",
        type=QuestionType.STARS,
    ),
    Question(
        id="exercise",
        text="On average, how many hours per week do you engage in moderate to intense exercise?",
        type=QuestionType.SLIDER,
        min_value=0,
        max_value=10,
        step=1,
        labels=("0 hours", "5 hours", "10+ hours"),
    ),
    Question(
        id="sleep",
        text="How would you rate your average sleep quality and duration?",
        type=QuestionType.STARS,
    ),
    Question(
        id="outdoor",
        text="How often do you engage in outdoor activities (e.g. walking, hiking, sports)?",
        type=QuestionType.CHOICE,
        options=(
            ChoiceOption("Daily", "daily", 5),
            ChoiceOption("A few times a week", "weekly", 3),
            ChoiceOption("Rarely", "rarely", 1),
            ChoiceOption("Never", "never", 0),
        ),
    ),
    Question(
        id="stress",
        text="How would you describe your typical stress levels?",
        type=QuestionType.SLIDER,
        min_value=1,
        max_value=5,
        step=1,
        labels=("Very Low", "Moderate", "Very High"),
    ),
    Question(
        id="hydration",
        text="How well do you stay hydrated throughout the day?",
        type=QuestionType.STARS,
    ),
    Question(
        id="smoking",
        text="Do you smoke tobacco products?",
        type=QuestionType.CHOICE,
        options=(
            ChoiceOption("Never", "no", 5),
            ChoiceOption("Occasionally", "occasionally", 1),
            ChoiceOption("Regularly", "yes", 0),
        ),
    ),
    Question(
        id="alcohol",
        text="How often do you consume alcohol?",
        type=QuestionType.CHOICE,
        options=(
            ChoiceOption("Never", "no", 5),
            ChoiceOption("1-2 drinks/week", "rarely", 3),
            ChoiceOption("3-5 drinks/week", "moderately", 2),
            ChoiceOption("5+ drinks/week", "heavily", 0),
        ),
    ),
    Question(
        id="social",
        text="How strong is your social connection with friends and family?",
        type=QuestionType.STARS,
    ),
    Question(
        id="summary",
        text="In a few sentences, describe your general outlook on life and your future.",
        type=QuestionType.TEXT,
        is_optional=True,
    ),
]

ADDITIONAL_QUESTIONS: List[Question] = [
    Question(
        id="sunscreen",
        text="How consistently do you use sunscreen on exposed skin?",
        type=QuestionType.CHOICE,
        options=(
            ChoiceOption("Always", "always", 5),
            ChoiceOption("Sometimes", "sometimes", 2),
            ChoiceOption("Never", "never", 0),
        ),
    ),
    Question(
        id="processed_food",
        text="How much of your diet consists of processed foods?",
        type=QuestionType.SLIDER,
        min_value=1,
        max_value=5,
        step=1,
        labels=("Very Little", "Moderate", "A Lot"),
    ),
    Question(
        id="mental_health",
        text="How do you prioritize your mental health?",
        type=QuestionType.STARS,
    ),
    Question(
        id="checkups",
        text="How regularly do you attend preventative health checkups?",
        type=QuestionType.CHOICE,
        options=(
            ChoiceOption("Yearly", "yearly", 5),
            ChoiceOption("Every few years", "sometimes", 3),
            ChoiceOption("Only when sick", "rarely", 1),
            ChoiceOption("Never", "never", 0),
        ),
    ),
    Question(
        id="hobbies",
        text="Do you actively engage in hobbies that you enjoy?",
        type=QuestionType.STARS,
    ),
    Question(
        id="caffeine",
        text="How many caffeinated beverages (coffee, tea, soda) do you consume daily?",
        type=QuestionType.SLIDER,
        min_value=0,
        max_value=10,
        step=1,
        labels=("0", "5", "10+"),
    ),
    Question(
        id="screen_time",
        text="How many hours a day do you spend in front of screens (work and leisure)?",
        type=QuestionType.SLIDER,
        min_value=0,
        max_value=16,
        step=1,
        labels=("0-2", "8", "16+"),
    ),
    Question(
        id="relationships",
        text="How would you rate the quality of your close relationships?",
        type=QuestionType.STARS,
    ),
    Question(
        id="mindfulness",
        text="Do you practice mindfulness or meditation?",
        type=QuestionType.CHOICE,
        options=(
            ChoiceOption("Regularly", "regularly", 5),
            ChoiceOption("Occasionally", "occasionally", 3),
            ChoiceOption("Never", "never", 1),
        ),
    ),
    Question(
        id="learning",
        text="Do you regularly engage in activities that challenge your mind (e.g., learning, puzzles)?",
        type=QuestionType.STARS,
    ),
]

QUESTIONS_BY_ID: Dict[str, Question] = {
    question.id: question
    for question in BASIC_INFO_QUESTIONS + INITIAL_QUESTIONS + ADDITIONAL_QUESTIONS
}


# =============================================================================
# ANSWER NORMALIZATION
# =============================================================================

def _coerce_answer(raw: Any) -> SurveyAnswer:
    if isinstance(raw, SurveyAnswer):
        return raw
    if isinstance(raw, Mapping) and "value" in raw:
        return SurveyAnswer(value=raw.get("value"), details=raw.get("details"))
    return SurveyAnswer(value=raw)


def _single_choice(question: Question, value: Any) -> Optional[str]:
    """Reduce a choice answer to exactly one option value."""
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        if not value:
            return None
        if len(value) > 1:
            raise ValidationError(f"Please choose only one option for '{question.id}'.")
        value = value[0]
    if isinstance(value, Mapping):
        value = value.get("value")
    if value not in question.option_values:
        raise ValidationError(f"'{value}' is not a valid option for '{question.id}'.")
    return value


def normalize_answer(question_id: str, raw: Any) -> SurveyAnswer:
    """
    Convert a raw answer into a SurveyAnswer.

    Choice questions become a single option value. Unknown question ids are
    passed through unchanged so callers can carry extra data.
    """
    answer = _coerce_answer(raw)
    question = QUESTIONS_BY_ID.get(question_id)
    if question is None:
        return answer

    if question.type is QuestionType.CHOICE:
        return SurveyAnswer(value=_single_choice(question, answer.value), details=answer.details)

    if question.type in (QuestionType.STARS, QuestionType.SLIDER, QuestionType.NUMBER):
        if answer.value is None:
            return answer
        number = answer.as_number()
        if number is None:
            raise ValidationError(f"Answer to '{question_id}' must be a number.")
        return SurveyAnswer(value=number, details=answer.details)

    return answer


def answers_from_dict(raw_answers: Mapping[str, Any]) -> Dict[str, SurveyAnswer]:
    """Normalize a whole survey payload keyed by question id."""
    return {
        question_id: normalize_answer(question_id, raw)
        for question_id, raw in raw_answers.items()
    }


def choice_value(answers: Mapping[str, SurveyAnswer], question_id: str) -> Optional[str]:
    """The chosen option value of a choice question, or None."""
    answer = answers.get(question_id)
    if answer is None or answer.value is None:
        return None
    return str(answer.value)


def numeric_value(
    answers: Mapping[str, SurveyAnswer],
    question_id: str,
    default: Optional[float] = None
) -> Optional[float]:
    """The numeric value of a rating/slider question, or default when absent."""
    answer = answers.get(question_id)
    if answer is None:
        return default
    number = answer.as_number()
    return default if number is None else number
