from __future__ import annotations

import pytest
from fastapi.websockets import WebSocketState

from scribble_relay.server.registry import Connection, ConnectionRegistry
from tests.conftest import FakeWebSocket


def _connect(registry: ConnectionRegistry, n: int) -> list[Connection]:
    conns = [Connection(FakeWebSocket()) for _ in range(n)]
    for c in conns:
        registry.register(c)
    return conns


def test_register_and_unregister_is_idempotent():
    registry = ConnectionRegistry()
    (a,) = _connect(registry, 1)
    assert a in registry
    assert len(registry) == 1

    registry.unregister(a)
    registry.unregister(a)
    assert a not in registry
    assert len(registry) == 0


def test_connections_have_distinct_ids():
    registry = ConnectionRegistry()
    a, b = _connect(registry, 2)
    assert a.id != b.id
    assert len(registry) == 2


@pytest.mark.asyncio
async def test_broadcast_except_skips_sender():
    registry = ConnectionRegistry()
    a, b, c = _connect(registry, 3)

    await registry.broadcast_except(a, '{"type":"draw","x":1}')

    assert a.ws.sent == []
    assert b.ws.sent == ['{"type":"draw","x":1}']
    assert c.ws.sent == ['{"type":"draw","x":1}']


@pytest.mark.asyncio
async def test_broadcast_all_includes_everyone():
    registry = ConnectionRegistry()
    conns = _connect(registry, 3)

    await registry.broadcast_all("payload")

    assert all(c.ws.sent == ["payload"] for c in conns)


@pytest.mark.asyncio
async def test_closed_connections_are_skipped_silently():
    registry = ConnectionRegistry()
    a, b = _connect(registry, 2)
    b.ws.client_state = WebSocketState.DISCONNECTED

    await registry.broadcast_all("payload")

    assert a.ws.sent == ["payload"]
    assert b.ws.sent == []
    # skipped, not pruned: lifecycle events own removal
    assert b in registry


@pytest.mark.asyncio
async def test_failed_send_drops_connection_and_continues():
    registry = ConnectionRegistry()
    a, b, c = _connect(registry, 3)
    b.ws.fail_on_send = True

    await registry.broadcast_all("payload")

    assert a.ws.sent == ["payload"]
    assert c.ws.sent == ["payload"]
    assert b not in registry
    assert len(registry) == 2


@pytest.mark.asyncio
async def test_events_from_one_sender_arrive_in_order():
    registry = ConnectionRegistry()
    a, b = _connect(registry, 2)

    for i in range(5):
        await registry.broadcast_except(a, f"frame-{i}")

    assert b.ws.sent == [f"frame-{i}" for i in range(5)]
