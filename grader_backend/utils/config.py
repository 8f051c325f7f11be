"""
Environment-driven settings
"""
import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from grader_backend.utils.errors import ConfigurationError

# Load .env from the working directory (python-dotenv searches upwards)
load_dotenv()

OCR_STRATEGIES = ("pdf_text", "vision_rest", "vision_client", "pdf_convert")
DEFAULT_OCR_STRATEGY = "pdf_convert"
DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_number(name: str, default, cast):
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    try:
        return cast(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {value!r}")


@dataclass
class Settings:
    """Runtime configuration for the grading pipeline."""

    ocr_strategy: str = DEFAULT_OCR_STRATEGY
    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    gemini_temperature: float = 0.4
    gemini_max_output_tokens: int = 4096
    google_vision_api_key: Optional[str] = None
    convertapi_secret: Optional[str] = None
    fallback_on_parse_error: bool = True
    max_upload_mb: float = 20
    http_timeout_seconds: float = 60
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Settings":
        cors = os.environ.get("CORS_ORIGINS", "*")
        return cls(
            ocr_strategy=os.environ.get("OCR_STRATEGY", DEFAULT_OCR_STRATEGY).strip().lower(),
            # GOOGLE_AI_API_KEY is the older variable name, still honoured
            gemini_api_key=os.environ.get("GEMINI_API_KEY") or os.environ.get("GOOGLE_AI_API_KEY"),
            gemini_model=os.environ.get("GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
            gemini_temperature=_env_number("GEMINI_TEMPERATURE", 0.4, float),
            gemini_max_output_tokens=_env_number("GEMINI_MAX_OUTPUT_TOKENS", 4096, int),
            google_vision_api_key=os.environ.get("GOOGLE_VISION_API_KEY"),
            convertapi_secret=os.environ.get("CONVERTAPI_SECRET"),
            fallback_on_parse_error=_env_bool("FALLBACK_ON_PARSE_ERROR", True),
            max_upload_mb=_env_number("MAX_UPLOAD_MB", 20, float),
            http_timeout_seconds=_env_number("HTTP_TIMEOUT_SECONDS", 60, float),
            cors_origins=[o.strip() for o in cors.split(",") if o.strip()],
        )

    @property
    def max_upload_bytes(self) -> int:
        return int(self.max_upload_mb * 1024 * 1024)

    def validate(self):
        if self.ocr_strategy not in OCR_STRATEGIES:
            raise ConfigurationError(
                f"Unknown OCR_STRATEGY '{self.ocr_strategy}'. "
                f"Expected one of: {', '.join(OCR_STRATEGIES)}"
            )
        return self


def get_settings() -> Settings:
    """FastAPI dependency returning settings read from the environment"""
    return Settings.from_env()
