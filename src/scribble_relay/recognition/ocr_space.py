from __future__ import annotations

import logging

from . import failures, transport

logger = logging.getLogger(__name__)

# OCRExitCode 4: fatal error inside the OCR engine itself.
_ENGINE_FATAL_EXIT = 4
_ENGINE_HINTS = ("engine", "timed out", "timeout")


def _error_messages(body: dict) -> list[str]:
    raw = body.get("ErrorMessage")
    if isinstance(raw, str):
        msgs = [raw]
    elif isinstance(raw, list):
        msgs = [str(m) for m in raw]
    else:
        msgs = []
    details = body.get("ErrorDetails")
    if isinstance(details, str) and details:
        msgs.append(details)
    return [m for m in msgs if m.strip()]


def is_engine_error(body: dict) -> bool:
    """Processing errors a different OCR engine has a chance of avoiding."""
    if body.get("OCRExitCode") == _ENGINE_FATAL_EXIT:
        return True
    text = " ".join(_error_messages(body)).lower()
    return any(h in text for h in _ENGINE_HINTS)


class OcrSpaceProvider:
    """
    Form-encoded OCR call with one optional retry on a second engine.

    - **engine**: first-choice `OCREngine`
    - **fallback_engine**: tried once when the first engine fails on its own;
      `None` (or the same engine) disables the retry
    """

    name = "ocr_space"

    def __init__(
        self,
        *,
        url: str,
        language: str,
        engine: int,
        fallback_engine: int | None,
        timeout_s: float,
    ) -> None:
        self.url = url
        self.language = language
        self.engine = engine
        self.fallback_engine = fallback_engine
        self.timeout_s = timeout_s

    def _fields(self, image_b64: str, engine: int) -> dict[str, str]:
        return {
            # the endpoint wants the data-URI header on base64 uploads
            "base64Image": f"data:image/png;base64,{image_b64}",
            "language": self.language,
            "OCREngine": str(engine),
            "scale": "true",
            "isOverlayRequired": "false",
        }

    async def _call(self, image_b64: str, api_key: str, engine: int) -> transport.HttpResponse:
        return await transport.post_form(
            self.url,
            self._fields(image_b64, engine),
            headers={"apikey": api_key},
            timeout_s=self.timeout_s,
        )

    async def recognize(self, image_b64: str, api_key: str) -> str:
        engine = self.engine
        retried = False
        while True:
            try:
                resp = await self._call(image_b64, api_key, engine)
            except transport.TransportError as e:
                logger.warning("OCR.space unreachable: %s", e)
                return failures.NETWORK_ERROR

            if not resp.ok:
                detail = resp.text()
                logger.warning("OCR.space returned HTTP %d: %s", resp.status, detail[:200])
                return failures.for_status(resp.status, detail)

            try:
                body = resp.json()
            except ValueError:
                return failures.INVALID_RESPONSE
            if not isinstance(body, dict):
                return failures.INVALID_RESPONSE

            if not body.get("IsErroredOnProcessing"):
                return self._parsed_text(body)

            can_retry = (
                not retried
                and self.fallback_engine is not None
                and self.fallback_engine != engine
                and is_engine_error(body)
            )
            if not can_retry:
                msgs = _error_messages(body)
                return failures.processing_error(msgs[0] if msgs else "unknown")

            logger.info(
                "OCR engine %d failed (%s), retrying with engine %d",
                engine,
                "; ".join(_error_messages(body))[:200],
                self.fallback_engine,
            )
            engine = self.fallback_engine
            retried = True

    @staticmethod
    def _parsed_text(body: dict) -> str:
        results = body.get("ParsedResults")
        if not isinstance(results, list) or not results:
            return failures.EMPTY_RESULT
        text = "\n".join(
            str(r.get("ParsedText") or "").strip() for r in results if isinstance(r, dict)
        ).strip()
        if not text:
            return failures.NO_TEXT_FOUND
        return text
