import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Optional, Union

from pydantic import BaseModel
from starlette.websockets import WebSocket, WebSocketState

from logging_config import get_logger
from schemas.messages import Role

logger = get_logger(__name__)

Payload = Union[str, bytes]


class EventKind(str, Enum):
    OPENED = "opened"
    MESSAGE = "message"
    CLOSED = "closed"
    ERRORED = "errored"


@dataclass
class ConnectionEvent:
    kind: EventKind
    payload: Optional[Payload] = None
    code: Optional[int] = None
    error: Optional[BaseException] = None

    @property
    def is_terminal(self) -> bool:
        return self.kind in (EventKind.CLOSED, EventKind.ERRORED)


class ConnectionHandle:
    """One accepted WebSocket to a peer.

    The transport owns the lifetime of the socket; rooms only keep a reference
    to the handle for forwarding and notifications. ``role`` and ``room_id``
    stay ``None`` until a join succeeds and are cleared again on leave.
    """

    def __init__(self, websocket: WebSocket, connection_id: str):
        self.websocket = websocket
        self.connection_id = connection_id
        self.role: Optional[Role] = None
        self.room_id: Optional[str] = None
        self._send_lock = asyncio.Lock()
        self._close_requested = False
        self._terminated = False

    def __repr__(self):
        return f"ConnectionHandle({self.connection_id}, role={self.role.value if self.role else None})"

    @property
    def is_open(self) -> bool:
        return (
            not self._close_requested
            and self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    @property
    def is_bound(self) -> bool:
        return self.role is not None

    def bind(self, room_id: str, role: Role):
        self.room_id = room_id
        self.role = role

    def unbind(self):
        self.room_id = None
        self.role = None

    async def send(self, payload: Payload):
        """Send one frame, or do nothing if the socket is not open."""
        async with self._send_lock:
            if not self.is_open:
                logger.debug(f"Dropping frame for closed connection {self.connection_id}")
                return
            try:
                if isinstance(payload, bytes):
                    await self.websocket.send_bytes(payload)
                else:
                    await self.websocket.send_text(payload)
            except Exception as e:
                # The read side reports the failure as the terminal event
                logger.debug(f"Send to connection {self.connection_id} failed: {e}")

    async def send_message(self, message: BaseModel):
        await self.send(message.model_dump_json())

    async def close(self, code: int = 1000, reason: str = None):
        async with self._send_lock:
            if not self.is_open:
                return
            self._close_requested = True
            try:
                await self.websocket.close(code=code, reason=reason)
                logger.debug(f"Closed connection {self.connection_id} with code {code}")
            except Exception as e:
                logger.debug(f"Error closing connection {self.connection_id}: {e}")

    async def events(self) -> AsyncIterator[ConnectionEvent]:
        """Yield OPENED, then inbound frames, then exactly one CLOSED or ERRORED."""
        if self._terminated:
            return
        yield ConnectionEvent(EventKind.OPENED)
        while True:
            try:
                message = await self.websocket.receive()
            except Exception as e:
                self._terminated = True
                yield ConnectionEvent(EventKind.ERRORED, error=e)
                return

            if message["type"] == "websocket.disconnect":
                self._terminated = True
                yield ConnectionEvent(EventKind.CLOSED, code=message.get("code", 1000))
                return

            if message.get("text") is not None:
                yield ConnectionEvent(EventKind.MESSAGE, payload=message["text"])
            elif message.get("bytes") is not None:
                yield ConnectionEvent(EventKind.MESSAGE, payload=message["bytes"])
