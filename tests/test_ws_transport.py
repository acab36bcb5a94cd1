from __future__ import annotations

import asyncio
import json
import socket

import pytest
from websockets.asyncio.server import serve

from latency_console.drivers.ws_transport import WebSocketTransport


async def _bridge(ws) -> None:
    async for raw in ws:
        msg = json.loads(raw)
        if msg["type"] == "status":
            await ws.send("not json")
            await ws.send(json.dumps({"type": "status", "version": {"hardware": 1, "firmware": 3}}))


def _free_port() -> int:
    with socket.socket() as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.mark.asyncio
async def test_round_trip_through_bridge() -> None:
    async with serve(_bridge, "127.0.0.1", 0) as server:
        port = server.sockets[0].getsockname()[1]
        transport = WebSocketTransport(f"ws://127.0.0.1:{port}")
        got: asyncio.Queue = asyncio.Queue()
        opened = []
        transport.subscribe(got.put_nowait)
        transport.subscribe_to_open(lambda: opened.append(True))

        await transport.open()
        assert transport.is_open
        assert opened == [True]

        assert transport.send({"type": "status"}) is True
        msg = await asyncio.wait_for(got.get(), timeout=2.0)

        assert msg["version"]["firmware"] == 3
        await transport.close()
        assert transport.is_open is False
        assert transport.send({"type": "status"}) is False


@pytest.mark.asyncio
async def test_connect_failure_is_connection_error() -> None:
    transport = WebSocketTransport(f"ws://127.0.0.1:{_free_port()}")

    with pytest.raises(ConnectionError):
        await transport.open()
    assert transport.is_open is False


async def _hang_up(ws) -> None:
    await ws.close()


@pytest.mark.asyncio
async def test_server_hang_up_stops_writer() -> None:
    async with serve(_hang_up, "127.0.0.1", 0) as server:
        port = server.sockets[0].getsockname()[1]
        transport = WebSocketTransport(f"ws://127.0.0.1:{port}")
        await transport.open()
        reader, writer = transport._reader, transport._writer

        await asyncio.wait_for(reader, timeout=2.0)
        await asyncio.wait_for(asyncio.gather(writer, return_exceptions=True), timeout=2.0)

        assert transport.is_open is False
        assert writer.cancelled()
        assert transport._writer is None
        await transport.close()
