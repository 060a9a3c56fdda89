"""
Human-readable failure strings sent back in place of recognized text.

Every string shares the `Recognition Failed:` prefix; clients tell failures
apart from real text only by that prefix. The catalogue is open: conditions
without a dedicated entry fall back to `http_error` or `unexpected_error`.
"""

PREFIX = "Recognition Failed: "

KEY_MISSING = PREFIX + "API key missing on the server."
CANVAS_TOO_BLANK = PREFIX + "Canvas looks empty, please write more clearly."
NETWORK_ERROR = PREFIX + "Network error, could not reach the recognition service."
INVALID_API_KEY = PREFIX + "The API key was rejected by the recognition service."
PERMISSION_DENIED = PREFIX + "Permission denied by the recognition service."
BAD_REQUEST = PREFIX + "Bad request, the recognition service could not read the image."
RATE_LIMITED = PREFIX + "Rate limit exceeded, too many requests. Wait a moment and try again."
SERVER_UNAVAILABLE = PREFIX + "The recognition service is having trouble, try again later."
SAFETY_BLOCKED = PREFIX + "The image was blocked by the provider's safety filter."
EMPTY_RESULT = PREFIX + "The recognition service returned no text."
NO_TEXT_FOUND = PREFIX + "No legible text found in the drawing."
INVALID_RESPONSE = PREFIX + "Could not understand the recognition service response."


def processing_error(detail: str) -> str:
    return f"{PREFIX}OCR processing error: {detail}"


def http_error(status: int) -> str:
    return f"{PREFIX}HTTP error {status}."


def unexpected_error(message: str) -> str:
    return f"{PREFIX}Unexpected error: {message}"


def for_status(status: int, provider_message: str = "") -> str:
    """Map a non-2xx status (plus the provider's own error text) to a failure string."""
    msg = provider_message.lower()
    if status == 429:
        return RATE_LIMITED
    if status >= 500:
        return SERVER_UNAVAILABLE
    if status in (400, 401, 403) and ("api key" in msg or "api_key" in msg or "apikey" in msg):
        return INVALID_API_KEY
    if status == 401:
        return INVALID_API_KEY
    if status == 403:
        return PERMISSION_DENIED
    if status in (400, 413, 422):
        return BAD_REQUEST
    return http_error(status)
