"""
Custom request parsing.

Turns free text such as "playing tennis at age 60" into a target age and an
action. The age must be later than the current age, within the projected
life expectancy and no more than 110.
"""

import re
from dataclasses import dataclass

from survey_questions import ValidationError

MAX_CUSTOM_AGE = 110

_AGE_PATTERN = re.compile(r"age (\d+)", re.IGNORECASE)
_SHOW_ME_PHRASE = re.compile(r"show me at age \d+", re.IGNORECASE)
_AT_AGE_PHRASE = re.compile(r"at age \d+", re.IGNORECASE)


@dataclass(frozen=True)
class CustomRequest:
    target_age: int
    action_text: str


def parse_custom_request(text: str, current_age: int, life_expectancy: int) -> CustomRequest:
    """
    Parse a free-text custom request.

    Raises:
        ValidationError: With a message meant for the user
    """
    text = (text or "").strip()

    match = _AGE_PATTERN.search(text)
    if not match:
        raise ValidationError("Please specify an age in your request, for example: '...at age 60'.")

    target_age = int(match.group(1))
    if target_age <= current_age:
        raise ValidationError(f"Please enter an age older than your current age of {current_age}.")
    if target_age > life_expectancy:
        raise ValidationError(
            f"Based on your quiz answers, your life expectancy is {life_expectancy}. "
            "We cannot generate an image beyond this age."
        )
    if target_age > MAX_CUSTOM_AGE:
        raise ValidationError(
            f"That's very optimistic! Please choose an age of {MAX_CUSTOM_AGE} or younger."
        )

    action_text = _SHOW_ME_PHRASE.sub("", text, count=1)
    action_text = _AT_AGE_PHRASE.sub("", action_text, count=1).strip()
    if not action_text:
        raise ValidationError("Please specify an activity, for example: 'playing soccer at age 60'.")

    return CustomRequest(target_age=target_age, action_text=action_text)
