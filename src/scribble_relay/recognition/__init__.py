from __future__ import annotations

from typing import TYPE_CHECKING

from .gemini import GeminiProvider
from .mediator import RecognitionMediator, RecognitionProvider, strip_data_uri
from .ocr_space import OcrSpaceProvider

if TYPE_CHECKING:
    from scribble_relay.server.config import Settings

__all__ = [
    "GeminiProvider",
    "OcrSpaceProvider",
    "RecognitionMediator",
    "RecognitionProvider",
    "build_mediator",
    "build_provider",
    "strip_data_uri",
]


def build_provider(settings: Settings) -> RecognitionProvider:
    if settings.recognition_provider == "ocr_space":
        return OcrSpaceProvider(
            url=settings.ocr_space_url,
            language=settings.ocr_language,
            engine=settings.ocr_engine,
            fallback_engine=settings.ocr_fallback_engine,
            timeout_s=settings.recognition_timeout_s,
        )
    return GeminiProvider(
        base_url=settings.gemini_base_url,
        model=settings.gemini_model,
        language_hint=settings.language_hint,
        top_p=settings.gemini_top_p,
        timeout_s=settings.recognition_timeout_s,
    )


def build_mediator(settings: Settings) -> RecognitionMediator:
    return RecognitionMediator(
        build_provider(settings),
        api_key=settings.api_key,
        min_image_chars=settings.min_image_chars,
    )
