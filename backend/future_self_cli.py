"""
Future Self - Command Line Runner

Generates future-self images from a photo and a survey answers file.

Answers file (JSON):
    {
        "basic_info": {"age": 30, "height": 68, "weight": 150},
        "answers": {"diet": 4, "exercise": 3, "smoking": ["no"], ...}
    }

Examples:
    python future_self_cli.py --photo me.jpg --answers survey.json --years 10 --years 30
    python future_self_cli.py --photo me.jpg --answers survey.json --custom "hiking at age 60"

Requires API_KEY in the environment or a .env file.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from config import ConfigurationError, GenerationConfig, get_config_summary, load_generation_config
from custom_request_parser import parse_custom_request
from future_self_generator import AGE_INTERVALS, Deceased, Failed, FutureSelfGenerator, Ready
from image_generation_service import ImageGenerationService, load_base_image, write_artifact
from retry_policy import RetryPolicy
from structured_logging import configure_logging
from survey_questions import BasicInfo, ValidationError, answers_from_dict

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate images of your future self")
    parser.add_argument("--photo", type=str, required=True,
                        help="Path to a photo of yourself (JPEG or PNG)")
    parser.add_argument("--answers", type=str, required=True,
                        help="JSON file with basic_info and survey answers")
    parser.add_argument("--years", type=int, action="append", choices=AGE_INTERVALS,
                        help="Years into the future (repeatable, default: all intervals)")
    parser.add_argument("--custom", type=str,
                        help="Custom request, e.g. 'playing tennis at age 60'")
    parser.add_argument("--output-dir", type=str,
                        help="Directory for generated images (default: OUTPUT_DIR)")
    return parser


def load_survey(path: str):
    """Read basic info and answers from the answers file."""
    payload = json.loads(Path(path).read_text())
    basic_info = BasicInfo.from_answers(payload.get("basic_info", {}))
    answers = answers_from_dict(payload.get("answers", {}))
    return basic_info, answers


async def run(args: argparse.Namespace, config: GenerationConfig) -> int:
    basic_info, answers = load_survey(args.answers)
    base_image = load_base_image(args.photo)
    output_dir = Path(args.output_dir) if args.output_dir else config.output_dir

    generator = FutureSelfGenerator(
        service=ImageGenerationService(config),
        base_image=base_image,
        basic_info=basic_info,
        answers=answers,
        retry_policy=RetryPolicy.from_config(config),
    )
    print(f"Projected life expectancy: {generator.life_expectancy}")

    if args.custom:
        request = parse_custom_request(args.custom, basic_info.age, generator.life_expectancy)
        indices = [generator.nearest_slot_index(request.target_age)]
        states = [await generator.request_custom(request.target_age, request.action_text)]
    else:
        years = sorted(set(args.years or AGE_INTERVALS))
        indices = [AGE_INTERVALS.index(y) for y in years]
        states = await asyncio.gather(*(generator.request_slot(i) for i in indices))

    failures = 0
    for index, state in zip(indices, states):
        snapshot = state.snapshot
        label = f"Age {snapshot.future_age} (+{snapshot.years_offset} years)"
        if isinstance(state, Ready):
            path = write_artifact(state.image, generator.intervals[index], output_dir)
            print(f"[OK] {label}: {path}")
            print(f"     weight {snapshot.projected_weight} lbs, height {snapshot.projected_height}, "
                  f"BMI {snapshot.bmi}, {snapshot.calorie_intake} kcal/day")
        elif isinstance(state, Deceased):
            print(f"[--] {label}: beyond projected life expectancy of {snapshot.life_expectancy}")
        elif isinstance(state, Failed):
            failures += 1
            print(f"[ERROR] {label}: failed after {state.attempts} attempt(s): {state.error}")

    return 1 if failures else 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()

    try:
        config = load_generation_config()
    except ConfigurationError as e:
        logger.critical(f"Configuration error: {e}")
        sys.exit(1)

    logger.info("Starting future self generation", extra={"config": get_config_summary(config)})

    try:
        return asyncio.run(run(args, config))
    except ValidationError as e:
        print(f"[ERROR] {e}")
        return 2
    except (OSError, ValueError) as e:
        logger.error(f"Could not read input: {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
