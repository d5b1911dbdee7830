"""Process-wide settings, read once from the environment at startup."""

import os
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv


class ConfigError(Exception):
    """A required setting is missing or malformed."""
    pass


def _int(name: str, default: int) -> int:
    raw = os.environ.get(name, "")
    try:
        return int(raw) if raw else default
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e


def _float(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    try:
        return float(raw) if raw else default
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e


@dataclass(frozen=True)
class Settings:
    """Immutable configuration shared by every request.

    Attributes:
        gemini_api_key: Google AI Studio key for the chat model.
        plant_id_api_key: Plant.id key for identification and modifiers.
        gemini_model: Gemini model identifier.
        gemini_max_tokens: Default output-token cap for chat answers.
        gemini_timeout: Seconds before a Gemini call is abandoned.
        plant_id_api_url: Identification endpoint (modifiers live under it).
        plant_id_timeout: Seconds before an identification call is abandoned.
        plant_id_modifiers_timeout: Seconds before a modifiers call is abandoned.
        max_upload_bytes: Largest accepted image upload.
        image_max_width: Normalised image width cap in pixels.
        image_max_height: Normalised image height cap in pixels.
        image_quality: Starting JPEG quality.
        image_min_quality: JPEG quality floor for the size-reduction loop.
        image_max_bytes: Target ceiling for the normalised image size.
        rate_limit_per_min: Requests per client per minute on /api routes.
        log_level: structlog filtering level name.
        log_json: Render logs as JSON lines instead of console output.
    """
    gemini_api_key: str
    plant_id_api_key: str
    gemini_model: str = "gemini-2.0-flash"
    gemini_max_tokens: int = 2048
    gemini_timeout: float = 30.0
    plant_id_api_url: str = "https://api.plant.id/v3/identification"
    plant_id_timeout: float = 30.0
    plant_id_modifiers_timeout: float = 10.0
    max_upload_bytes: int = 10 * 1024 * 1024
    image_max_width: int = 1024
    image_max_height: int = 1024
    image_quality: int = 85
    image_min_quality: int = 50
    image_max_bytes: int = 1024 * 1024
    rate_limit_per_min: int = 30
    log_level: str = "info"
    log_json: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables (and a .env file if present).

        Raises:
            ConfigError: If an API key is missing or a numeric value is malformed.
        """
        load_dotenv(find_dotenv(usecwd=True))

        gemini_key = os.environ.get("GEMINI_API_KEY", "").strip()
        plant_id_key = os.environ.get("PLANT_ID_API_KEY", "").strip()
        if not gemini_key:
            raise ConfigError("GEMINI_API_KEY is not configured")
        if not plant_id_key:
            raise ConfigError("PLANT_ID_API_KEY is not configured")

        return cls(
            gemini_api_key=gemini_key,
            plant_id_api_key=plant_id_key,
            gemini_model=os.environ.get("GEMINI_MODEL", "gemini-2.0-flash"),
            gemini_max_tokens=_int("GEMINI_MAX_TOKENS", 2048),
            gemini_timeout=_float("GEMINI_TIMEOUT", 30.0),
            plant_id_api_url=os.environ.get(
                "PLANT_ID_API_URL", "https://api.plant.id/v3/identification"
            ).rstrip("/"),
            plant_id_timeout=_float("PLANT_ID_TIMEOUT", 30.0),
            plant_id_modifiers_timeout=_float("PLANT_ID_MODIFIERS_TIMEOUT", 10.0),
            max_upload_bytes=_int("MAX_UPLOAD_BYTES", 10 * 1024 * 1024),
            image_max_width=_int("IMAGE_MAX_WIDTH", 1024),
            image_max_height=_int("IMAGE_MAX_HEIGHT", 1024),
            image_quality=_int("IMAGE_QUALITY", 85),
            image_min_quality=_int("IMAGE_MIN_QUALITY", 50),
            image_max_bytes=_int("IMAGE_MAX_BYTES", 1024 * 1024),
            rate_limit_per_min=_int("RATE_LIMIT_PER_MIN", 30),
            log_level=os.environ.get("LOG_LEVEL", "info").lower(),
            log_json=os.environ.get("LOG_JSON", "false").lower() in ("1", "true", "yes"),
        )
