"""
Gemini Image Generation Service

Sends the user's photo plus a prompt to a Gemini image model and returns the
generated image.

API Documentation: https://ai.google.dev/gemini-api/docs/image-generation

Setup:
1. Create an API key in Google AI Studio
2. Add to .env: API_KEY=your_api_key_here

Contract:
- Request: base image bytes, MIME type, prompt text
- Response: image bytes, or explanatory text when the model declined
- Network and API faults are raised to the caller (the retry policy)

Also provides helpers to load the base photo and write generated artifacts as
JPEG files named future-self-<years>-years.jpg.
"""

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

from google import genai
from google.genai import types
from PIL import Image

from config import GenerationConfig
from future_self_prompts import BaseImage, GenerationRequest

logger = logging.getLogger(__name__)

ARTIFACT_EXTENSION = "jpg"


@dataclass
class GenerationResponse:
    """What came back from one generation call."""
    image_bytes: Optional[bytes] = None
    image_mime_type: Optional[str] = None
    explanatory_text: Optional[str] = None

    @property
    def has_image(self) -> bool:
        return bool(self.image_bytes)


def parse_generation_response(response: Any) -> GenerationResponse:
    """Pull the first inline image and the first text part out of a Gemini response."""
    result = GenerationResponse()

    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return result

    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []

    for part in parts:
        inline_data = getattr(part, "inline_data", None)
        if inline_data is not None and inline_data.data and result.image_bytes is None:
            result.image_bytes = inline_data.data
            result.image_mime_type = inline_data.mime_type
        text = getattr(part, "text", None)
        if text and result.explanatory_text is None:
            result.explanatory_text = text

    return result


class ImageGenerationService:
    """Client for Gemini image-to-image generation."""

    def __init__(self, config: GenerationConfig):
        self.config = config
        self._client: Optional[genai.Client] = None

    def _get_client(self) -> genai.Client:
        """Get or create the Gemini client"""
        if self._client is None:
            self._client = genai.Client(api_key=self.config.api_key)
        return self._client

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        """
        Generate one image.

        Args:
            request: Base image, MIME type and prompt

        Returns:
            GenerationResponse; has_image is False when the model only sent text

        Raises:
            Any error from the Gemini SDK (network, quota, invalid request)
        """
        client = self._get_client()

        response = await client.aio.models.generate_content(
            model=self.config.image_model,
            contents=[
                types.Part.from_bytes(
                    data=request.base_image.data,
                    mime_type=request.base_image.mime_type,
                ),
                request.prompt,
            ],
            config=types.GenerateContentConfig(
                response_modalities=["IMAGE", "TEXT"],
            ),
        )

        result = parse_generation_response(response)
        if result.has_image:
            logger.debug(f"Gemini returned {len(result.image_bytes)} bytes ({result.image_mime_type})")
        else:
            logger.error(f"Gemini response did not include an image. Text response: {result.explanatory_text}")
        return result


# =============================================================================
# IMAGE FILE HELPERS
# =============================================================================

def load_base_image(source: Union[str, Path, bytes]) -> BaseImage:
    """
    Load the user's photo and detect its MIME type.

    Raises:
        ValueError: If the data is not a readable image
    """
    data = source if isinstance(source, bytes) else Path(source).read_bytes()
    try:
        with Image.open(io.BytesIO(data)) as image:
            image_format = image.format
    except Exception as e:
        raise ValueError(f"Unreadable image: {e}") from e

    mime_type = Image.MIME.get(image_format, "image/jpeg")
    return BaseImage(data=data, mime_type=mime_type)


def artifact_filename(years_offset: int) -> str:
    return f"future-self-{years_offset}-years.{ARTIFACT_EXTENSION}"


def write_artifact(image_bytes: bytes, years_offset: int, output_dir: Union[str, Path]) -> Path:
    """Save a generated image as JPEG, re-encoding if the model returned another format."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / artifact_filename(years_offset)

    with Image.open(io.BytesIO(image_bytes)) as image:
        if image.format == "JPEG":
            path.write_bytes(image_bytes)
        else:
            image.convert("RGB").save(path, format="JPEG", quality=95)

    logger.info(f"Saved generated image to {path}")
    return path
