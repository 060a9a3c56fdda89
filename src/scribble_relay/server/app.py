from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError

from scribble_relay.protocol.constants import RELAY_TYPES, T_RECOGNIZE_IMAGE
from scribble_relay.protocol.messages import (
    Envelope,
    ErrorReply,
    Hello,
    RecognitionResult,
    RecognizeImage,
)
from scribble_relay.recognition import RecognitionMediator, build_mediator

from .config import Settings, get_settings
from .registry import Connection, ConnectionRegistry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings = app.state.settings
    logger.info(
        "Relay ready on %s:%d (provider=%s)",
        settings.host,
        settings.port,
        settings.recognition_provider,
    )
    if not (settings.api_key or "").strip():
        logger.warning(
            "SCRIBBLE_API_KEY is not set; recognition requests will answer 'API key missing'"
        )

    yield

    pending: set[asyncio.Task] = app.state.pending
    if pending:
        # in-flight recognitions are not cancelled; let them finish
        logger.info("Waiting for %d pending recognition(s)", len(pending))
        await asyncio.gather(*pending, return_exceptions=True)


def create_app(
    settings: Settings | None = None,
    mediator: RecognitionMediator | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="scribble-relay", lifespan=lifespan)
    app.state.settings = settings
    app.state.registry = ConnectionRegistry()
    app.state.mediator = mediator or build_mediator(settings)
    app.state.pending = set()

    app.add_api_route("/healthz", healthz, methods=["GET"])
    app.add_api_websocket_route("/ws", ws_endpoint)

    if settings.static_dir:
        static = Path(settings.static_dir)
        if static.is_dir():
            app.mount("/", StaticFiles(directory=static, html=True), name="static")
        else:
            logger.warning("static_dir %s does not exist; not serving a front-end", static)

    return app


def healthz(request: Request) -> dict:
    return {"ok": True, "clients": len(request.app.state.registry)}


async def ws_endpoint(ws: WebSocket) -> None:
    await ws.accept()
    state = ws.app.state
    registry: ConnectionRegistry = state.registry
    conn = Connection(ws)
    registry.register(conn)

    try:
        await conn.send_text(Hello(clients=len(registry)).model_dump_json())
        while True:
            raw = await _receive_frame(ws)
            await _handle_frame(state, conn, raw)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error for %s", conn.id)
    finally:
        registry.unregister(conn)


async def _receive_frame(ws: WebSocket) -> str:
    message = await ws.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(message.get("code", 1000))
    if message.get("text") is not None:
        return message["text"]
    return (message.get("bytes") or b"").decode("utf-8", errors="replace")


async def _handle_frame(state, conn: Connection, raw: str) -> None:
    registry: ConnectionRegistry = state.registry
    try:
        msg = Envelope.model_validate_json(raw)
        if msg.type == T_RECOGNIZE_IMAGE:
            request = RecognizeImage.model_validate_json(raw)
    except ValidationError as e:
        logger.warning("Malformed frame from %s: %s", conn.id, e.errors(include_url=False)[:1])
        await conn.send_text(ErrorReply().model_dump_json())
        return

    if state.settings.debug_log_msgs:
        logger.info("[ws:%s] in type=%s len=%d", conn.id, msg.type, len(raw))

    if msg.type in RELAY_TYPES:
        # relayed verbatim; the sender already drew it locally
        await registry.broadcast_except(conn, raw)
    elif msg.type == T_RECOGNIZE_IMAGE:
        _spawn_recognition(state, conn, request.image)
    else:
        logger.info("Dropping message with unknown type %r from %s", msg.type, conn.id)


def _spawn_recognition(state, conn: Connection, image: str) -> None:
    """Run the external call off the read loop; the result goes to everyone."""
    task = asyncio.create_task(
        _recognize_and_broadcast(state.mediator, state.registry, image),
        name=f"recognize-{conn.id}",
    )
    state.pending.add(task)
    task.add_done_callback(state.pending.discard)


async def _recognize_and_broadcast(
    mediator: RecognitionMediator, registry: ConnectionRegistry, image: str
) -> None:
    text = await mediator.recognize(image)
    await registry.broadcast_all(RecognitionResult(text=text).model_dump_json())


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "scribble_relay.server.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
