"""
Unit tests for the Gemini image generation client and artifact helpers.

The Gemini SDK client is replaced with mocks; no network calls are made.
"""

import pytest
import sys
import os
from unittest.mock import AsyncMock, MagicMock, patch

from PIL import Image

# Add backend to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from config import GenerationConfig
from future_self_prompts import GenerationRequest, PromptMode
from image_generation_service import (
    ImageGenerationService,
    artifact_filename,
    load_base_image,
    parse_generation_response,
    write_artifact,
)
from fixtures.mock_data import make_image_bytes


def _gemini_response(*parts):
    content = MagicMock(parts=list(parts))
    return MagicMock(candidates=[MagicMock(content=content)])


def _image_part(data=b"png-bytes", mime_type="image/png"):
    return MagicMock(inline_data=MagicMock(data=data, mime_type=mime_type), text=None)


def _text_part(text):
    return MagicMock(inline_data=None, text=text)


class TestParseGenerationResponse:
    """Tests for extracting image and text parts."""

    def test_image_and_text(self):
        result = parse_generation_response(_gemini_response(_text_part("Here you go"), _image_part()))

        assert result.has_image
        assert result.image_bytes == b"png-bytes"
        assert result.image_mime_type == "image/png"
        assert result.explanatory_text == "Here you go"

    def test_text_only(self):
        result = parse_generation_response(_gemini_response(_text_part("I can't do that.")))

        assert not result.has_image
        assert result.explanatory_text == "I can't do that."

    def test_first_image_wins(self):
        result = parse_generation_response(
            _gemini_response(_image_part(b"first"), _image_part(b"second"))
        )
        assert result.image_bytes == b"first"

    def test_no_candidates(self):
        result = parse_generation_response(MagicMock(candidates=[]))

        assert not result.has_image
        assert result.explanatory_text is None


class TestImageGenerationService:
    """Tests for the Gemini call."""

    @pytest.fixture
    def request_payload(self, base_image):
        return GenerationRequest(
            base_image=base_image,
            prompt="Make them older",
            mode=PromptMode.INTERVAL,
            target_age=40,
            years_offset=10,
        )

    @pytest.mark.asyncio
    async def test_generate_returns_image(self, request_payload):
        config = GenerationConfig(api_key="test-key-123456", image_model="test-image-model")
        service = ImageGenerationService(config)

        with patch("image_generation_service.genai.Client") as mock_client_cls:
            mock_client = MagicMock()
            mock_client.aio.models.generate_content = AsyncMock(
                return_value=_gemini_response(_image_part())
            )
            mock_client_cls.return_value = mock_client

            result = await service.generate(request_payload)

        assert result.image_bytes == b"png-bytes"
        mock_client_cls.assert_called_once_with(api_key="test-key-123456")
        call_kwargs = mock_client.aio.models.generate_content.call_args.kwargs
        assert call_kwargs["model"] == "test-image-model"
        assert call_kwargs["contents"][1] == "Make them older"

    @pytest.mark.asyncio
    async def test_client_is_reused(self, request_payload):
        service = ImageGenerationService(GenerationConfig(api_key="test-key-123456"))

        with patch("image_generation_service.genai.Client") as mock_client_cls:
            mock_client_cls.return_value.aio.models.generate_content = AsyncMock(
                return_value=_gemini_response(_image_part())
            )
            await service.generate(request_payload)
            await service.generate(request_payload)

        assert mock_client_cls.call_count == 1

    @pytest.mark.asyncio
    async def test_sdk_errors_propagate(self, request_payload):
        service = ImageGenerationService(GenerationConfig(api_key="test-key-123456"))

        with patch("image_generation_service.genai.Client") as mock_client_cls:
            mock_client_cls.return_value.aio.models.generate_content = AsyncMock(
                side_effect=ConnectionError("reset by peer")
            )
            with pytest.raises(ConnectionError):
                await service.generate(request_payload)


class TestImageFiles:
    """Tests for loading photos and writing artifacts."""

    def test_load_png_bytes(self):
        image = load_base_image(make_image_bytes("PNG"))
        assert image.mime_type == "image/png"

    def test_load_jpeg_from_path(self, tmp_path):
        path = tmp_path / "me.jpg"
        path.write_bytes(make_image_bytes("JPEG"))

        image = load_base_image(path)

        assert image.mime_type == "image/jpeg"
        assert image.data == path.read_bytes()

    def test_load_garbage(self):
        with pytest.raises(ValueError):
            load_base_image(b"definitely not an image")

    def test_artifact_filename(self):
        assert artifact_filename(25) == "future-self-25-years.jpg"

    def test_write_artifact_reencodes_png(self, tmp_path):
        path = write_artifact(make_image_bytes("PNG"), 10, tmp_path / "out")

        assert path.name == "future-self-10-years.jpg"
        with Image.open(path) as written:
            assert written.format == "JPEG"

    def test_write_artifact_keeps_jpeg(self, tmp_path):
        data = make_image_bytes("JPEG")

        path = write_artifact(data, 5, tmp_path)

        assert path.read_bytes() == data
