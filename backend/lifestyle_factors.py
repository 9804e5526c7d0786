"""
Lifestyle Factor Classification

Turns survey answers into the narrative the image prompt is built from:
- Positive factors (leading to healthier aging)
- Negative factors (leading to accelerated aging)
- A mood bucket that steers the subject's expression

Rules are evaluated in a fixed dimension order, not in the order answers were
given, so the same answers always produce the same lists.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Tuple

from survey_questions import SurveyAnswer, choice_value, numeric_value

logger = logging.getLogger(__name__)


class Mood(Enum):
    CONTENT = "content"
    NEUTRAL = "neutral"
    STRAINED = "strained"

    @property
    def expression(self) -> str:
        return _MOOD_EXPRESSIONS[self]


_MOOD_EXPRESSIONS = {
    Mood.CONTENT: "a happy and content expression",
    Mood.NEUTRAL: "a neutral expression",
    Mood.STRAINED: "a sad, tired, or stressed expression",
}

CONTENT_MOOD_THRESHOLD = 3
STRAINED_MOOD_THRESHOLD = -2


@dataclass(frozen=True)
class FactorRule:
    """One threshold rule on a survey dimension."""
    question_id: str
    polarity: str  # "positive", "negative" or "mood" (mood only, no narrative)
    sentence: Optional[str] = None
    mood_delta: int = 0
    at_least: Optional[float] = None
    at_most: Optional[float] = None
    choices: Tuple[str, ...] = ()

    def matches(self, answers: Mapping[str, SurveyAnswer]) -> bool:
        if self.choices:
            return choice_value(answers, self.question_id) in self.choices
        value = numeric_value(answers, self.question_id)
        if value is None:
            return False
        if self.at_least is not None:
            return value >= self.at_least
        return value <= self.at_most


# Per dimension, at most one rule fires (positive side is checked first)
FACTOR_RULES: Tuple[Tuple[FactorRule, ...], ...] = (
    (
        FactorRule("diet", "positive", "Maintains a very healthy and balanced diet.", 1, at_least=4),
        FactorRule("diet", "negative", "Has a poor diet, likely high in processed foods.", -1, at_most=2),
    ),
    (
        FactorRule("exercise", "positive", "Exercises frequently and consistently.", 2, at_least=5),
        FactorRule("exercise", "negative", "Leads a sedentary lifestyle with little to no exercise.", -1, at_most=1),
    ),
    (
        FactorRule("sleep", "positive", "Gets consistent, high-quality sleep.", 1, at_least=4),
        FactorRule("sleep", "negative", "Suffers from poor sleep quality or insomnia.", -2, at_most=2),
    ),
    (
        FactorRule("smoking", "negative", "Is a regular smoker.", choices=("yes",)),
        FactorRule("smoking", "negative", "Is an occasional smoker.", choices=("occasionally",)),
    ),
    (
        FactorRule("alcohol", "negative", "Consumes alcohol heavily.", choices=("heavily",)),
        FactorRule("alcohol", "negative", "Consumes alcohol moderately.", choices=("moderately",)),
    ),
    (
        FactorRule("hydration", "negative", "Is often dehydrated.", at_most=2),
    ),
    (
        FactorRule("stress", "negative", "Experiences high levels of chronic stress.", -2, at_least=4),
        FactorRule("stress", "positive", "Manages stress effectively.", 1, at_most=2),
    ),
    (
        FactorRule("social", "mood", mood_delta=2, at_least=4),
        FactorRule("social", "mood", mood_delta=-1, at_most=2),
    ),
    (
        FactorRule("sunscreen", "negative", "Never wears sunscreen, leading to significant sun damage.", choices=("never",)),
    ),
)


@dataclass(frozen=True)
class LifestyleFactors:
    positive: Tuple[str, ...]
    negative: Tuple[str, ...]
    mood: Mood
    mood_score: int


def mood_for_score(score: int) -> Mood:
    if score >= CONTENT_MOOD_THRESHOLD:
        return Mood.CONTENT
    if score <= STRAINED_MOOD_THRESHOLD:
        return Mood.STRAINED
    return Mood.NEUTRAL


class LifestyleFactorExtractor:
    """Classifies survey answers into positive/negative factors and a mood."""

    def __init__(self, rules: Tuple[Tuple[FactorRule, ...], ...] = FACTOR_RULES):
        self.rules = rules

    def classify(self, answers: Mapping[str, SurveyAnswer]) -> LifestyleFactors:
        positive = []
        negative = []
        mood_score = 0

        for dimension in self.rules:
            for rule in dimension:
                if not rule.matches(answers):
                    continue
                if rule.polarity == "positive":
                    positive.append(rule.sentence)
                elif rule.polarity == "negative":
                    negative.append(rule.sentence)
                mood_score += rule.mood_delta
                break

        factors = LifestyleFactors(
            positive=tuple(positive),
            negative=tuple(negative),
            mood=mood_for_score(mood_score),
            mood_score=mood_score,
        )
        logger.debug(
            f"Classified lifestyle: {len(positive)} positive, {len(negative)} negative, "
            f"mood={factors.mood.value} ({mood_score})"
        )
        return factors
