import asyncio
import json

import pytest
from starlette.websockets import WebSocketState

from connection import ConnectionHandle
from registry import RoomRegistry, room_registry


class FakeWebSocket:
    """In-memory stand-in for an accepted Starlette WebSocket."""

    def __init__(self, incoming=None, yield_on_send=False):
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.incoming = list(incoming or [])
        self.sent = []
        self.closed_with = None
        self.yield_on_send = yield_on_send

    async def send_text(self, data):
        if self.yield_on_send:
            await asyncio.sleep(0)
        self.sent.append(data)

    async def send_bytes(self, data):
        if self.yield_on_send:
            await asyncio.sleep(0)
        self.sent.append(data)

    async def close(self, code=1000, reason=None):
        self.application_state = WebSocketState.DISCONNECTED
        self.closed_with = (code, reason)

    async def receive(self):
        if not self.incoming:
            self.client_state = WebSocketState.DISCONNECTED
            return {"type": "websocket.disconnect", "code": 1000}
        message = self.incoming.pop(0)
        if isinstance(message, Exception):
            raise message
        if isinstance(message, bytes):
            return {"type": "websocket.receive", "bytes": message}
        return {"type": "websocket.receive", "text": message}

    def disconnect(self):
        self.client_state = WebSocketState.DISCONNECTED

    def envelopes(self):
        """Server notifications sent so far, decoded."""
        result = []
        for frame in self.sent:
            if isinstance(frame, str) and frame.startswith("{"):
                result.append(json.loads(frame))
        return result


@pytest.fixture
def make_handle():
    counter = iter(range(1, 1000))

    def _make(incoming=None, yield_on_send=False):
        return ConnectionHandle(FakeWebSocket(incoming, yield_on_send), connection_id=f"conn-{next(counter)}")

    return _make


@pytest.fixture
def registry():
    return RoomRegistry()


@pytest.fixture
def clean_registry():
    room_registry._rooms.clear()
    yield room_registry
    room_registry._rooms.clear()
