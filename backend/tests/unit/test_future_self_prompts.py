"""
Unit tests for prompt construction.
"""

import pytest
import sys
import os

# Add backend to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from future_self_prompts import PromptBuilder, PromptMode
from health_projection import ProjectionEngine
from lifestyle_factors import LifestyleFactorExtractor


@pytest.fixture
def builder():
    return PromptBuilder()


def _inputs(basic_info, answers, years):
    snapshot = ProjectionEngine().project(basic_info, answers, years)
    factors = LifestyleFactorExtractor().classify(answers)
    return snapshot, factors


class TestIntervalPrompt:
    """Tests for timeline prompts."""

    def test_contains_profile(self, builder, base_image, basic_info, neutral_answers):
        snapshot, factors = _inputs(basic_info, neutral_answers, 10)

        request = builder.build_interval_prompt(base_image, basic_info, snapshot, factors, 10)

        assert request.mode is PromptMode.INTERVAL
        assert request.target_age == 40
        assert request.years_offset == 10
        assert "10 years in the future (at age 40)" in request.prompt
        assert "Current Age: 30" in request.prompt
        assert "Approximately 152 lbs" in request.prompt
        assert "neutral gray studio" in request.prompt
        assert "General Mood" not in request.prompt

    def test_empty_factor_lists(self, builder, base_image, basic_info, neutral_answers):
        snapshot, factors = _inputs(basic_info, neutral_answers, 5)

        request = builder.build_interval_prompt(base_image, basic_info, snapshot, factors, 5)

        assert request.prompt.count("- None specified.") == 2

    def test_factors_included_verbatim(self, builder, base_image, basic_info, unhealthy_answers):
        snapshot, factors = _inputs(basic_info, unhealthy_answers, 20)

        request = builder.build_interval_prompt(base_image, basic_info, snapshot, factors, 20)

        for sentence in factors.negative:
            assert f"- {sentence}" in request.prompt

    def test_framing_and_safety(self, builder, base_image, basic_info, neutral_answers):
        snapshot, factors = _inputs(basic_info, neutral_answers, 5)

        prompt = builder.build_interval_prompt(base_image, basic_info, snapshot, factors, 5).prompt

        assert "full-body shot" in prompt
        assert "Do not create any violent, graphic, or disturbing content." in prompt

    def test_carries_base_image(self, builder, base_image, basic_info, neutral_answers):
        snapshot, factors = _inputs(basic_info, neutral_answers, 5)

        request = builder.build_interval_prompt(base_image, basic_info, snapshot, factors, 5)

        assert request.base_image is base_image
        assert request.mime_type == "image/png"


class TestCustomPrompt:
    """Tests for custom action prompts."""

    def test_contains_action_and_mood(self, builder, base_image, basic_info, healthy_answers):
        snapshot, factors = _inputs(basic_info, healthy_answers, 30)

        request = builder.build_custom_prompt(
            base_image, basic_info, snapshot, factors, 60, "playing tennis"
        )

        assert request.mode is PromptMode.CUSTOM
        assert request.target_age == 60
        assert request.years_offset == 30
        assert request.action_text == "playing tennis"
        assert "**playing tennis**" in request.prompt
        assert "at age 60" in request.prompt
        assert "General Mood/Expression: a happy and content expression" in request.prompt
        assert 'setting that makes sense for the action "playing tennis"' in request.prompt
        assert "neutral gray studio" not in request.prompt
        assert "full-body shot" in request.prompt
