from __future__ import annotations

import logging
import re
from typing import Protocol

from . import failures

logger = logging.getLogger(__name__)

_DATA_URI_PREFIX = re.compile(r"^data:[\w.+-]+/[\w.+-]+;base64,", re.IGNORECASE)


class RecognitionProvider(Protocol):
    """One external recognition backend; returns text or a failure string."""

    name: str

    async def recognize(self, image_b64: str, api_key: str) -> str: ...


def strip_data_uri(image: str) -> str:
    """Drop a leading `data:image/<type>;base64,` marker (and outer whitespace)."""
    return _DATA_URI_PREFIX.sub("", image.strip(), count=1)


class RecognitionMediator:
    """
    Turns a base64 canvas image into transcribed text.

    `recognize` always returns exactly one string and never raises. Blank
    canvases and a missing key short-circuit before any network call;
    whatever escapes the provider becomes an "unexpected error" string.
    """

    def __init__(
        self,
        provider: RecognitionProvider,
        *,
        api_key: str | None,
        min_image_chars: int,
    ) -> None:
        self.provider = provider
        self.api_key = (api_key or "").strip() or None
        self.min_image_chars = min_image_chars

    async def recognize(self, image: str) -> str:
        image_b64 = strip_data_uri(image)

        if len(image_b64) < self.min_image_chars:
            logger.info(
                "Recognition skipped: image too small (%d < %d chars)",
                len(image_b64),
                self.min_image_chars,
            )
            return failures.CANVAS_TOO_BLANK

        if self.api_key is None:
            logger.warning("Recognition skipped: no API key configured")
            return failures.KEY_MISSING

        try:
            text = await self.provider.recognize(image_b64, self.api_key)
        except Exception as e:
            logger.exception("Recognition via %s failed unexpectedly", self.provider.name)
            return failures.unexpected_error(str(e) or type(e).__name__)

        if text.startswith(failures.PREFIX):
            logger.info("Recognition via %s failed: %s", self.provider.name, text)
        else:
            logger.info("Recognition via %s succeeded (%d chars)", self.provider.name, len(text))
        return text
