"""Shared test fixtures."""
from __future__ import annotations

import json
import urllib.request
from dataclasses import dataclass, field

import pytest
from fastapi.websockets import WebSocketState

from scribble_relay.recognition import transport
from scribble_relay.recognition.transport import HttpResponse, TransportError
from scribble_relay.server.config import Settings

# Long enough to pass the blank-canvas guard at the default threshold.
BIG_IMAGE_B64 = "iVBORw0KGgo" + "A" * 2000


@dataclass(eq=False)
class FakeWebSocket:
    sent: list[str] = field(default_factory=list)
    client_state: WebSocketState = WebSocketState.CONNECTED
    application_state: WebSocketState = WebSocketState.CONNECTED
    fail_on_send: bool = False

    async def send_text(self, data: str) -> None:
        if self.fail_on_send:
            raise RuntimeError("socket is gone")
        self.sent.append(data)


@dataclass
class FakeProvider:
    """Provider double: returns `reply` (or raises `error`) and counts calls."""

    reply: str = "hello world"
    error: Exception | None = None
    name: str = "fake"
    calls: list[tuple[str, str]] = field(default_factory=list)

    async def recognize(self, image_b64: str, api_key: str) -> str:
        self.calls.append((image_b64, api_key))
        if self.error is not None:
            raise self.error
        return self.reply


@dataclass
class FakeHttp:
    """Stands in for the blocking urllib sender; replays queued responses in order."""

    responses: list[HttpResponse | Exception] = field(default_factory=list)
    requests: list[urllib.request.Request] = field(default_factory=list)

    def queue_json(self, status: int, body: object) -> None:
        self.responses.append(HttpResponse(status, json.dumps(body).encode("utf-8")))

    def queue_raw(self, status: int, body: bytes) -> None:
        self.responses.append(HttpResponse(status, body))

    def queue_unreachable(self) -> None:
        self.responses.append(TransportError("[Errno 111] Connection refused"))

    def __call__(self, req: urllib.request.Request, timeout_s: float) -> HttpResponse:
        self.requests.append(req)
        nxt = self.responses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        return nxt


@pytest.fixture
def fake_http(monkeypatch) -> FakeHttp:
    fake = FakeHttp()
    monkeypatch.setattr(transport, "_send_sync", fake)
    return fake


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, api_key="test-key", min_image_chars=1000)


@pytest.fixture
def big_image() -> str:
    return BIG_IMAGE_B64
