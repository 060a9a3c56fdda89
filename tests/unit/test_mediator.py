from __future__ import annotations

import pytest

from scribble_relay.recognition import (
    GeminiProvider,
    OcrSpaceProvider,
    RecognitionMediator,
    build_mediator,
    failures,
    strip_data_uri,
)
from scribble_relay.server.config import Settings
from tests.conftest import FakeProvider


def _mediator(provider: FakeProvider, *, api_key: str | None = "k", min_chars: int = 1000):
    return RecognitionMediator(provider, api_key=api_key, min_image_chars=min_chars)


@pytest.mark.parametrize(
    "raw",
    [
        "data:image/png;base64,QUJD",
        "data:image/jpeg;base64,QUJD",
        "DATA:IMAGE/PNG;BASE64,QUJD",
        "  data:image/webp;base64,QUJD\n",
        "QUJD",
    ],
)
def test_strip_data_uri(raw):
    assert strip_data_uri(raw) == "QUJD"


@pytest.mark.asyncio
async def test_small_image_short_circuits_without_calling_provider():
    provider = FakeProvider()
    mediator = _mediator(provider)

    result = await mediator.recognize("data:image/png;base64," + "A" * 200)

    assert result == failures.CANVAS_TOO_BLANK
    assert "write more clearly" in result
    assert provider.calls == []


@pytest.mark.asyncio
async def test_threshold_applies_after_prefix_is_stripped():
    provider = FakeProvider()
    mediator = _mediator(provider, min_chars=100)

    # 30 prefix chars + 90 payload chars: still below the threshold
    result = await mediator.recognize("data:image/png;base64," + "A" * 90)

    assert result == failures.CANVAS_TOO_BLANK
    assert provider.calls == []


@pytest.mark.asyncio
async def test_missing_key_never_calls_provider(big_image):
    provider = FakeProvider()

    for key in (None, "", "   "):
        result = await _mediator(provider, api_key=key).recognize(big_image)
        assert result == failures.KEY_MISSING

    assert provider.calls == []


@pytest.mark.asyncio
async def test_provider_receives_stripped_payload_and_key(big_image):
    provider = FakeProvider(reply="The quick brown fox")
    mediator = _mediator(provider, api_key="secret")

    result = await mediator.recognize("data:image/png;base64," + big_image)

    assert result == "The quick brown fox"
    assert provider.calls == [(big_image, "secret")]


@pytest.mark.asyncio
async def test_provider_exception_becomes_unexpected_error_string(big_image):
    provider = FakeProvider(error=KeyError("candidates"))
    mediator = _mediator(provider)

    result = await mediator.recognize(big_image)

    assert result.startswith(failures.PREFIX)
    assert "Unexpected error" in result
    assert "candidates" in result


@pytest.mark.asyncio
async def test_same_input_gives_same_output(big_image):
    provider = FakeProvider(reply="same")
    mediator = _mediator(provider)

    first = await mediator.recognize(big_image)
    second = await mediator.recognize(big_image)

    assert first == second == "same"


def test_build_mediator_follows_provider_setting():
    gemini = build_mediator(Settings(_env_file=None, recognition_provider="gemini", api_key="k"))
    ocr = build_mediator(
        Settings(_env_file=None, recognition_provider="ocr_space", min_image_chars=10)
    )

    assert isinstance(gemini.provider, GeminiProvider)
    assert gemini.api_key == "k"
    assert isinstance(ocr.provider, OcrSpaceProvider)
    assert ocr.api_key is None
    assert ocr.min_image_chars == 10
