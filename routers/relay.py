import uuid
from typing import Optional

from fastapi import APIRouter, WebSocket
from fastapi.responses import PlainTextResponse

from connection import ConnectionHandle, EventKind
from constants import HEALTH_MESSAGE, RELAY_PATH
from errors import MissingRoomIdentifier, NotARelayEndpoint, ProtocolMismatch, RelayRequestError
from logging_config import get_logger
from registry import RoomRegistry, room_registry

logger = get_logger(__name__)

relay_router = APIRouter(tags=["relay"])

# Plain HTTP is answered by path alone, whatever the method
HTTP_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def require_room_id(room: Optional[str]) -> str:
    # Presence is the only check; ids are opaque and compared verbatim
    if not room:
        raise MissingRoomIdentifier()
    return room


@relay_router.api_route("/", methods=HTTP_METHODS, response_class=PlainTextResponse)
async def health():
    return HEALTH_MESSAGE


@relay_router.api_route(RELAY_PATH, methods=HTTP_METHODS)
async def relay_without_upgrade(room: Optional[str] = None):
    """Plain HTTP hit on the relay endpoint: 400 without a room, 426 otherwise."""
    require_room_id(room)
    raise ProtocolMismatch()


async def reject_before_upgrade(websocket: WebSocket, error: RelayRequestError):
    response = PlainTextResponse(error.detail, status_code=error.status_code)
    try:
        await websocket.send_denial_response(response)
    except RuntimeError:
        # Server without the WebSocket Denial Response extension
        await websocket.close(code=1008, reason=error.detail)


@relay_router.websocket(RELAY_PATH)
async def relay_endpoint(websocket: WebSocket, room: Optional[str] = None):
    """WebSocket relay endpoint.

    Query parameters:
    - room: required room identifier; the first two peers to use it are paired
    """
    client = websocket.client.host if websocket.client else "unknown"
    try:
        room_id = require_room_id(room)
    except RelayRequestError as e:
        logger.info(f"Relay connection from {client} rejected before upgrade: {e.detail}")
        await reject_before_upgrade(websocket, e)
        return

    await websocket.accept()
    handle = ConnectionHandle(websocket, connection_id=str(uuid.uuid4()))
    logger.info(f"Relay connection {handle.connection_id} accepted from {client} for room {room_id}")
    await relay(handle, room_id)


@relay_router.websocket("/{path:path}")
async def unknown_websocket_path(websocket: WebSocket, path: str):
    logger.info(f"WebSocket request for unknown path /{path} rejected")
    await reject_before_upgrade(websocket, NotARelayEndpoint())


async def relay(handle: ConnectionHandle, room_id: str, registry: RoomRegistry = room_registry):
    """Drive one connection's events through its room until the connection ends.

    The leave/reclaim sequence runs exactly once, from ``finally``, whether the
    connection closed cleanly, failed, or the handler itself was cancelled.
    """
    room = None
    events = handle.events()
    try:
        async for event in events:
            if event.kind is EventKind.OPENED:
                room = registry.get_or_create(room_id)
                role = await room.join(handle)
                if role is None:
                    break
            elif event.kind is EventKind.MESSAGE:
                if handle.is_bound:
                    await room.forward(handle.role, event.payload)
            elif event.is_terminal:
                if event.kind is EventKind.ERRORED:
                    logger.warning(
                        f"Transport error on connection {handle.connection_id} in room {room_id}: {event.error}",
                        exc_info=event.error,
                    )
                else:
                    logger.debug(f"Connection {handle.connection_id} closed with code {event.code}")
                break
    finally:
        await events.aclose()
        if room is not None and handle.is_bound:
            await room.leave(handle.role, handle)
        registry.try_reclaim(room_id)
