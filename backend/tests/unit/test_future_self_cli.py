"""
Unit tests for the command line runner.
"""

import json
import pytest
import sys
import os
from unittest.mock import patch

# Add backend to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

import future_self_cli
from config import ConfigurationError, GenerationConfig
from fixtures.mock_data import NEUTRAL_RAW_ANSWERS, FakeImageService, make_image_bytes


@pytest.fixture
def cli_inputs(tmp_path):
    photo = tmp_path / "me.png"
    photo.write_bytes(make_image_bytes("PNG"))

    answers = tmp_path / "survey.json"
    answers.write_text(json.dumps({
        "basic_info": {"age": 30, "height": 68, "weight": 150},
        "answers": {**NEUTRAL_RAW_ANSWERS, "smoking": ["yes"]},
    }))
    return photo, answers


class TestMain:
    def test_missing_api_key_exits_before_generation(self, cli_inputs):
        photo, answers = cli_inputs

        with patch("future_self_cli.configure_logging"), \
             patch("future_self_cli.load_generation_config", side_effect=ConfigurationError("API_KEY is not set")), \
             patch("future_self_cli.ImageGenerationService") as mock_service:
            with pytest.raises(SystemExit) as exc_info:
                future_self_cli.main(["--photo", str(photo), "--answers", str(answers)])

        assert exc_info.value.code == 1
        mock_service.assert_not_called()

    def test_rejects_unknown_interval(self, cli_inputs):
        photo, answers = cli_inputs

        with pytest.raises(SystemExit):
            future_self_cli.build_parser().parse_args(
                ["--photo", str(photo), "--answers", str(answers), "--years", "7"]
            )


class TestRun:
    """Tests for the async runner with a fake service."""

    @pytest.mark.asyncio
    async def test_writes_artifacts_and_reports_deceased(self, cli_inputs, tmp_path, capsys):
        photo, answers = cli_inputs
        out_dir = tmp_path / "out"
        args = future_self_cli.build_parser().parse_args([
            "--photo", str(photo), "--answers", str(answers),
            "--years", "10", "--years", "45", "--output-dir", str(out_dir),
        ])
        service = FakeImageService()

        with patch("future_self_cli.ImageGenerationService", return_value=service):
            code = await future_self_cli.run(args, GenerationConfig(api_key="test-key-123456"))

        assert code == 0
        assert (out_dir / "future-self-10-years.jpg").exists()
        assert not (out_dir / "future-self-45-years.jpg").exists()
        assert service.call_count == 1
        output = capsys.readouterr().out
        assert "Projected life expectancy: 70" in output
        assert "beyond projected life expectancy of 70" in output

    @pytest.mark.asyncio
    async def test_custom_request(self, cli_inputs, tmp_path):
        photo, answers = cli_inputs
        args = future_self_cli.build_parser().parse_args([
            "--photo", str(photo), "--answers", str(answers),
            "--custom", "riding a bike at age 50", "--output-dir", str(tmp_path),
        ])
        service = FakeImageService()

        with patch("future_self_cli.ImageGenerationService", return_value=service):
            code = await future_self_cli.run(args, GenerationConfig(api_key="test-key-123456"))

        assert code == 0
        assert service.requests[0].action_text == "riding a bike"
        assert (tmp_path / "future-self-20-years.jpg").exists()

    @pytest.mark.asyncio
    async def test_custom_artifact_named_for_slot_interval(self, cli_inputs, tmp_path):
        photo, answers = cli_inputs
        args = future_self_cli.build_parser().parse_args([
            "--photo", str(photo), "--answers", str(answers),
            "--custom", "hiking at age 52", "--output-dir", str(tmp_path),
        ])

        with patch("future_self_cli.ImageGenerationService", return_value=FakeImageService()):
            code = await future_self_cli.run(args, GenerationConfig(api_key="test-key-123456"))

        # 22 years ahead lands in the +20 slot
        assert code == 0
        assert (tmp_path / "future-self-20-years.jpg").exists()
        assert not (tmp_path / "future-self-22-years.jpg").exists()

    @pytest.mark.asyncio
    async def test_repeated_years_generate_once(self, cli_inputs, tmp_path, capsys):
        photo, answers = cli_inputs
        args = future_self_cli.build_parser().parse_args([
            "--photo", str(photo), "--answers", str(answers),
            "--years", "10", "--years", "10", "--output-dir", str(tmp_path),
        ])
        service = FakeImageService()

        with patch("future_self_cli.ImageGenerationService", return_value=service):
            code = await future_self_cli.run(args, GenerationConfig(api_key="test-key-123456"))

        assert code == 0
        assert service.call_count == 1
        assert capsys.readouterr().out.count("[OK]") == 1
