from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field

from fastapi import WebSocket
from fastapi.websockets import WebSocketState

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Connection:
    """One live client transport session; hashed by identity."""

    ws: WebSocket
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:10])

    @property
    def is_open(self) -> bool:
        return (
            self.ws.client_state == WebSocketState.CONNECTED
            and self.ws.application_state == WebSocketState.CONNECTED
        )

    async def send_text(self, data: str) -> None:
        await self.ws.send_text(data)


class ConnectionRegistry:
    """Set of currently-open connections plus the broadcast primitives."""

    def __init__(self) -> None:
        self._connections: set[Connection] = set()

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, conn: object) -> bool:
        return conn in self._connections

    def register(self, conn: Connection) -> None:
        self._connections.add(conn)
        logger.info("Client %s connected (total=%d)", conn.id, len(self._connections))

    def unregister(self, conn: Connection) -> None:
        if conn not in self._connections:
            return
        self._connections.discard(conn)
        logger.info("Client %s disconnected (total=%d)", conn.id, len(self._connections))

    async def broadcast_all(self, payload: str) -> None:
        await self._broadcast(payload, exclude=None)

    async def broadcast_except(self, sender: Connection, payload: str) -> None:
        await self._broadcast(payload, exclude=sender)

    async def _broadcast(self, payload: str, exclude: Connection | None) -> None:
        dead: list[Connection] = []
        # snapshot: handlers may register/unregister while we await sends
        for conn in list(self._connections):
            if conn is exclude or not conn.is_open:
                continue
            try:
                await conn.send_text(payload)
            except Exception:
                logger.debug("Send to %s failed, dropping it", conn.id, exc_info=True)
                dead.append(conn)
        for conn in dead:
            self.unregister(conn)
