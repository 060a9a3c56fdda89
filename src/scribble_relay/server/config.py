from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Runtime config.

    - Loaded from environment variables (`SCRIBBLE_` prefix)
    - Also reads `.env` if present (via pydantic-settings + python-dotenv)
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="SCRIBBLE_", extra="ignore", populate_by_name=True
    )

    host: str = "0.0.0.0"
    # Hosting platforms hand the port over as plain PORT.
    port: int = Field(default=8080, validation_alias=AliasChoices("SCRIBBLE_PORT", "PORT"))

    # Recognition service credential. Missing is logged at startup and
    # answered with a failure string per request, never a crash.
    api_key: str | None = None
    recognition_provider: Literal["gemini", "ocr_space"] = "gemini"
    recognition_timeout_s: float = 30.0

    # Stripped base64 shorter than this is treated as a blank canvas.
    min_image_chars: int = 1000

    # Gemini-style vision call
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_model: str = "gemini-2.0-flash"
    gemini_top_p: float = 0.1
    language_hint: str = "English"

    # OCR.space-style form call
    ocr_space_url: str = "https://api.ocr.space/parse/image"
    ocr_language: str = "eng"
    ocr_engine: int = 2
    ocr_fallback_engine: int | None = 1

    # Optional front-end directory served at `/` (index.html fallback).
    static_dir: str | None = None

    log_level: str = "INFO"
    # Debugging
    debug_log_msgs: bool = False


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
