"""
Application Configuration

Loads configuration from environment variables with sensible defaults.
All hardcoded settings for the future self generator should be defined here.

The image generation credential is the only required value: without it the
application refuses to start and never reaches the generation service.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional
from dotenv import load_dotenv

# Load .env file if it exists (override=True means .env takes precedence over system env vars)
load_dotenv(override=True)

# =============================================================================
# BASE PATHS
# =============================================================================

# Base directory (where this config file is located)
BASE_DIR = Path(__file__).resolve().parent

# =============================================================================
# IMAGE GENERATION SERVICE
# =============================================================================

# Name of the environment variable holding the Google AI API key
API_KEY_ENV_VAR = "API_KEY"

# Gemini model used for image-to-image generation
IMAGE_MODEL = os.getenv("IMAGE_MODEL", "gemini-2.5-flash-image-preview")

# =============================================================================
# RETRY SETTINGS
# =============================================================================

# Attempts per logical generation request (first try included)
DEFAULT_MAX_GENERATION_ATTEMPTS = 3

# Linear backoff: wait base * attempt seconds after a failed attempt
DEFAULT_RETRY_BASE_DELAY_SECONDS = 1.0

# Raw strings; parsed in load_generation_config
MAX_GENERATION_ATTEMPTS = os.getenv("MAX_GENERATION_ATTEMPTS", str(DEFAULT_MAX_GENERATION_ATTEMPTS))
RETRY_BASE_DELAY_SECONDS = os.getenv("RETRY_BASE_DELAY_SECONDS", str(DEFAULT_RETRY_BASE_DELAY_SECONDS))

# =============================================================================
# OUTPUT
# =============================================================================

OUTPUT_DIR = Path(os.getenv("OUTPUT_DIR", str(BASE_DIR / "generated")))

# =============================================================================
# LOGGING
# =============================================================================

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "json")
LOG_OUTPUT = os.getenv("LOG_OUTPUT", "stdout")
LOG_FILE = os.getenv("LOG_FILE", str(BASE_DIR / "logs" / "future_self.json.log"))


class ConfigurationError(RuntimeError):
    """Raised when a required setting is missing. Fatal at startup."""


@dataclass(frozen=True)
class GenerationConfig:
    """Settings shared by the image service client and the orchestrator."""
    api_key: str = field(repr=False)
    image_model: str = IMAGE_MODEL
    max_attempts: int = DEFAULT_MAX_GENERATION_ATTEMPTS
    retry_base_delay_seconds: float = DEFAULT_RETRY_BASE_DELAY_SECONDS
    output_dir: Path = OUTPUT_DIR

    @property
    def masked_api_key(self) -> str:
        if len(self.api_key) <= 8:
            return "***"
        return f"{self.api_key[:4]}...{self.api_key[-2:]}"


def load_generation_config(environ: Optional[Mapping[str, str]] = None) -> GenerationConfig:
    """
    Build the generation config from the environment.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        GenerationConfig with the API key and tuning values

    Raises:
        ConfigurationError: If the API key is missing or blank, or a numeric
            setting cannot be parsed
    """
    env = os.environ if environ is None else environ

    api_key = (env.get(API_KEY_ENV_VAR) or "").strip()
    if not api_key:
        raise ConfigurationError(
            f"{API_KEY_ENV_VAR} is not set. This application requires a Google AI API key "
            f"to generate images; set {API_KEY_ENV_VAR} in the environment or a .env file."
        )

    try:
        max_attempts = int(env.get("MAX_GENERATION_ATTEMPTS", MAX_GENERATION_ATTEMPTS))
        base_delay = float(env.get("RETRY_BASE_DELAY_SECONDS", RETRY_BASE_DELAY_SECONDS))
    except ValueError as e:
        raise ConfigurationError(f"Invalid retry setting: {e}") from e

    if max_attempts < 1:
        raise ConfigurationError("MAX_GENERATION_ATTEMPTS must be at least 1")

    return GenerationConfig(
        api_key=api_key,
        image_model=env.get("IMAGE_MODEL", IMAGE_MODEL),
        max_attempts=max_attempts,
        retry_base_delay_seconds=base_delay,
        output_dir=Path(env.get("OUTPUT_DIR", str(OUTPUT_DIR))),
    )


# =============================================================================
# HELPER FUNCTION
# =============================================================================

def get_config_summary(config: Optional[GenerationConfig] = None):
    """Returns a summary of current configuration (for debugging)."""
    summary = {
        "image_model": config.image_model if config else IMAGE_MODEL,
        "max_attempts": config.max_attempts if config else MAX_GENERATION_ATTEMPTS,
        "retry_base_delay_seconds": (
            config.retry_base_delay_seconds if config else RETRY_BASE_DELAY_SECONDS
        ),
        "output_dir": str(config.output_dir if config else OUTPUT_DIR),
        "log_level": LOG_LEVEL,
        "log_format": LOG_FORMAT,
    }
    if config is not None:
        summary["api_key"] = config.masked_api_key
    return summary
