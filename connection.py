import asyncio
import json
from typing import Optional

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from logging_config import get_logger

logger = get_logger(__name__)


class WebSocketConnection:
    """Connection handle handed to the relay engine.

    `send()` never blocks: messages go onto a queue owned by the connection's
    event loop and a writer task delivers them in order. It may be called from
    any thread.
    """

    def __init__(self, websocket: WebSocket, connection_id: str):
        self.websocket = websocket
        self.connection_id = connection_id
        self._queue: asyncio.Queue = asyncio.Queue()
        self._loop = asyncio.get_running_loop()
        self._writer: Optional[asyncio.Task] = None
        self._closed = False

    def start(self):
        if self._writer is None:
            self._writer = asyncio.create_task(self._write_loop())

    def send(self, message: dict):
        if self._closed:
            logger.debug(f"Dropping '{message.get('type')}' for closed connection {self.connection_id}")
            return
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, message)
        except RuntimeError:
            # Event loop already shut down
            logger.warning(f"Could not queue '{message.get('type')}' for connection {self.connection_id}: loop closed")

    async def _write_loop(self):
        while True:
            message = await self._queue.get()
            try:
                if self.websocket.application_state != WebSocketState.CONNECTED:
                    logger.warning(f"Failed to send to connection {self.connection_id} because it is closed")
                    continue
                await self.websocket.send_text(json.dumps(message, allow_nan=False))
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(f"Error sending '{message.get('type')}' to connection {self.connection_id}: {e}")
            finally:
                self._queue.task_done()

    async def aclose(self):
        self._closed = True
        if self._writer is not None:
            self._writer.cancel()
            try:
                await self._writer
            except asyncio.CancelledError:
                pass
            self._writer = None

    def __repr__(self):
        return f"<WebSocketConnection {self.connection_id}>"
