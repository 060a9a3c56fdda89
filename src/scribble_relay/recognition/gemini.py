from __future__ import annotations

import logging

from . import failures, transport

logger = logging.getLogger(__name__)

# The model is told to answer with exactly this when nothing is legible.
NO_TEXT_SENTINEL = "NO_TEXT_FOUND"

_SAFETY_FINISH_REASONS = {"SAFETY", "PROHIBITED_CONTENT", "BLOCKLIST", "SPII"}


def _gemini_payload(*, image_b64: str, language_hint: str, top_p: float) -> dict:
    prompt = (
        "Transcribe the handwritten text in this image exactly as written.\n"
        f"The writing is expected to be in {language_hint}.\n"
        "Rules:\n"
        "- Return ONLY the transcribed text, no commentary or formatting.\n"
        "- Preserve line breaks.\n"
        f"- If there is no legible text, return exactly {NO_TEXT_SENTINEL}.\n"
    )
    return {
        "contents": [
            {
                "parts": [
                    {"text": prompt},
                    {"inline_data": {"mime_type": "image/png", "data": image_b64}},
                ]
            }
        ],
        # Bias toward deterministic transcriptions.
        "generationConfig": {
            "temperature": 0.0,
            "topK": 1,
            "topP": top_p,
            "maxOutputTokens": 1024,
        },
    }


def _error_message(resp: transport.HttpResponse) -> str:
    try:
        err = resp.json().get("error") or {}
        return f"{err.get('status', '')} {err.get('message', '')}".strip()
    except Exception:
        return resp.text()


def interpret_response(resp: transport.HttpResponse) -> str:
    """Map a generateContent answer to recognized text or a failure string."""
    if not resp.ok:
        detail = _error_message(resp)
        logger.warning("Gemini returned HTTP %d: %s", resp.status, detail[:200])
        return failures.for_status(resp.status, detail)

    try:
        body = resp.json()
    except ValueError:
        return failures.INVALID_RESPONSE
    if not isinstance(body, dict):
        return failures.INVALID_RESPONSE

    feedback = body.get("promptFeedback") or {}
    if not isinstance(feedback, dict):
        return failures.INVALID_RESPONSE
    if feedback.get("blockReason"):
        return failures.SAFETY_BLOCKED

    candidates = body.get("candidates") or []
    if not isinstance(candidates, list):
        return failures.INVALID_RESPONSE
    if not candidates:
        return failures.EMPTY_RESULT
    candidate = candidates[0]
    if not isinstance(candidate, dict):
        return failures.INVALID_RESPONSE
    if candidate.get("finishReason") in _SAFETY_FINISH_REASONS:
        return failures.SAFETY_BLOCKED

    content = candidate.get("content") or {}
    if not isinstance(content, dict):
        return failures.INVALID_RESPONSE
    parts = content.get("parts") or []
    if not isinstance(parts, list):
        return failures.INVALID_RESPONSE
    texts: list[str] = []
    for p in parts:
        if not isinstance(p, dict):
            return failures.INVALID_RESPONSE
        value = p.get("text", "")
        if not isinstance(value, str):
            return failures.INVALID_RESPONSE
        texts.append(value)
    text = "".join(texts).strip()
    if not text:
        return failures.EMPTY_RESULT
    if text.upper() == NO_TEXT_SENTINEL:
        return failures.NO_TEXT_FOUND
    return text


class GeminiProvider:
    """Vision model call: JSON body with an inline PNG, key in a header."""

    name = "gemini"

    def __init__(
        self,
        *,
        base_url: str,
        model: str,
        language_hint: str,
        top_p: float,
        timeout_s: float,
    ) -> None:
        self.base_url = base_url
        self.model = model
        self.language_hint = language_hint
        self.top_p = top_p
        self.timeout_s = timeout_s

    @property
    def url(self) -> str:
        return f"{self.base_url.rstrip('/')}/models/{self.model}:generateContent"

    async def recognize(self, image_b64: str, api_key: str) -> str:
        payload = _gemini_payload(
            image_b64=image_b64, language_hint=self.language_hint, top_p=self.top_p
        )
        try:
            resp = await transport.post_json(
                self.url,
                payload,
                headers={"x-goog-api-key": api_key},
                timeout_s=self.timeout_s,
            )
        except transport.TransportError as e:
            logger.warning("Gemini unreachable: %s", e)
            return failures.NETWORK_ERROR
        return interpret_response(resp)
