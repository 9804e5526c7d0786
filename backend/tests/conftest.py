"""
Pytest configuration and shared fixtures for Future Self tests.

This module provides:
- Basic info and survey answer fixtures
- Base image fixtures (small in-memory PNGs)
- A scriptable fake image service and an instant retry policy
"""

import pytest
import os
import sys

# Add backend directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from future_self_prompts import BaseImage
from retry_policy import RetryPolicy
from survey_questions import BasicInfo

from fixtures.mock_data import (
    FakeImageService,
    HEALTHY_RAW_ANSWERS,
    RecordingSleep,
    UNHEALTHY_RAW_ANSWERS,
    make_answers,
    make_image_bytes,
)
from survey_questions import answers_from_dict


# =============================================================================
# SURVEY FIXTURES
# =============================================================================

@pytest.fixture
def basic_info():
    """A 30 year old, 5' 8\", 150 lbs."""
    return BasicInfo(age=30, height=68, weight=150)


@pytest.fixture
def neutral_answers():
    return make_answers()


@pytest.fixture
def smoker_answers():
    """Neutral answers except a regular smoker (life expectancy 70)."""
    return make_answers(smoking=["yes"])


@pytest.fixture
def healthy_answers():
    return answers_from_dict(HEALTHY_RAW_ANSWERS)


@pytest.fixture
def unhealthy_answers():
    return answers_from_dict(UNHEALTHY_RAW_ANSWERS)


# =============================================================================
# IMAGE AND SERVICE FIXTURES
# =============================================================================

@pytest.fixture
def base_image():
    return BaseImage(data=make_image_bytes("PNG"), mime_type="image/png")


@pytest.fixture
def fake_service():
    return FakeImageService()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def retry_policy(recording_sleep):
    """Default three attempts with 1s linear backoff, without real waiting."""
    return RetryPolicy(max_attempts=3, base_delay_seconds=1.0, sleep=recording_sleep)
