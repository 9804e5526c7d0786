"""
Unit tests for free-text custom request parsing.
"""

import pytest
import sys
import os

# Add backend to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from custom_request_parser import CustomRequest, parse_custom_request
from survey_questions import ValidationError


class TestParseCustomRequest:
    """Tests for extracting age and action."""

    def test_action_and_age(self):
        request = parse_custom_request("playing tennis at age 60", current_age=30, life_expectancy=80)

        assert request == CustomRequest(target_age=60, action_text="playing tennis")

    def test_show_me_phrase_removed(self):
        request = parse_custom_request("Show me at age 45 hiking in the mountains", 30, 80)

        assert request.target_age == 45
        assert request.action_text == "hiking in the mountains"

    def test_case_insensitive(self):
        assert parse_custom_request("Dancing AT AGE 50", 30, 80).target_age == 50

    def test_missing_age(self):
        with pytest.raises(ValidationError, match="Please specify an age"):
            parse_custom_request("playing tennis", 30, 80)

    def test_age_not_in_future(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_custom_request("reading at age 30", 30, 80)

        assert str(exc_info.value) == "Please enter an age older than your current age of 30."

    def test_beyond_life_expectancy(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_custom_request("gardening at age 75", 30, 70)

        assert str(exc_info.value) == (
            "Based on your quiz answers, your life expectancy is 70. "
            "We cannot generate an image beyond this age."
        )

    def test_beyond_human_limit(self):
        with pytest.raises(ValidationError, match="110 or younger"):
            parse_custom_request("celebrating at age 111", 30, 120)

    def test_missing_action(self):
        with pytest.raises(ValidationError, match="Please specify an activity"):
            parse_custom_request("show me at age 60", 30, 80)
