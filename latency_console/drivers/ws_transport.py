from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable, Dict, List, Optional

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, WebSocketException

logger = logging.getLogger(__name__)


class WebSocketTransport:
    """
    JSON-over-websocket channel to the device bridge.
    Responsible for: connect, in-order send, fan-out of inbound messages.
    No reconnection: once closed, callers see ``is_open == False``.
    """

    def __init__(self, url: str) -> None:
        self.url = url
        self.is_open = False
        self._ws: Optional[ClientConnection] = None
        self._outbox: asyncio.Queue[str] = asyncio.Queue()
        self._reader: Optional[asyncio.Task] = None
        self._writer: Optional[asyncio.Task] = None
        self._listeners: List[Callable[[Dict[str, Any]], None]] = []
        self._open_listeners: List[Callable[[], None]] = []

    async def open(self) -> None:
        if self.is_open:
            return
        try:
            self._ws = await connect(self.url)
        except (OSError, WebSocketException) as e:
            raise ConnectionError(f"Unable to connect to device bridge at {self.url}: {e}") from e

        self.is_open = True
        logger.info("Connected to device bridge at %s", self.url)
        self._reader = asyncio.create_task(self._read_loop(), name="ws_reader")
        self._writer = asyncio.create_task(self._write_loop(), name="ws_writer")

        for listener in list(self._open_listeners):
            listener()

    async def close(self) -> None:
        self.is_open = False
        if self._writer:
            self._writer.cancel()
            self._writer = None
        if self._ws is not None:
            await self._ws.close()
            self._ws = None
        if self._reader:
            await asyncio.gather(self._reader, return_exceptions=True)
            self._reader = None

    def send(self, message: Dict[str, Any]) -> bool:
        if not self.is_open:
            logger.error("WS is closed, %s message can't be sent", message.get("type"))
            return False
        logger.debug("Sending a message: %s", message)
        self._outbox.put_nowait(json.dumps(message))
        return True

    def subscribe(self, listener: Callable[[Dict[str, Any]], None]) -> None:
        self._listeners.append(listener)

    def subscribe_to_open(self, listener: Callable[[], None]) -> None:
        self._open_listeners.append(listener)

    async def _write_loop(self) -> None:
        assert self._ws is not None
        while True:
            text = await self._outbox.get()
            try:
                await self._ws.send(text)
            except ConnectionClosed as e:
                logger.error("WS closed while sending: %s", e)
                self.is_open = False
                return

    async def _read_loop(self) -> None:
        assert self._ws is not None
        try:
            async for raw in self._ws:
                if not isinstance(raw, str):
                    logger.error("Unexpected binary WS message (%d bytes)", len(raw))
                    continue
                try:
                    msg = json.loads(raw)
                except json.JSONDecodeError as e:
                    logger.warning("Undecodable WS message: %s", e)
                    continue
                for listener in list(self._listeners):
                    try:
                        listener(msg)
                    except Exception as e:
                        logger.exception("Message listener failed: %s", e)
        except ConnectionClosed as e:
            logger.info("WS closed: %s", e)
        finally:
            self.is_open = False
            if self._writer:
                self._writer.cancel()
                self._writer = None
