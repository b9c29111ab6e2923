from typing import Callable, Dict, Optional

from connection import ConnectionHandle, Payload
from constants import ROOM_FULL_CLOSE_CODE, ROOM_FULL_MESSAGE, ROOM_FULL_REASON
from logging_config import get_logger
from schemas.messages import ErrorMessage, JoinedMessage, LeftMessage, Role, RoleMessage

logger = get_logger(__name__)


class Room:
    """A two-slot pairing of peers that relays frames between them.

    Slot changes in ``join`` and ``leave`` run before the first ``await``, so
    each transition is atomic on the event loop. Notifications are sent
    afterwards; per-handle send locks keep them in order on each socket.
    """

    def __init__(self, room_id: str, on_vacant: Optional[Callable[[str], None]] = None):
        self.room_id = room_id
        self._on_vacant = on_vacant
        self._slots: Dict[Role, Optional[ConnectionHandle]] = {
            Role.PRIMARY: None,
            Role.SECONDARY: None,
        }

    def __repr__(self):
        return f"Room({self.room_id!r}, primary={self.primary}, secondary={self.secondary})"

    @property
    def primary(self) -> Optional[ConnectionHandle]:
        return self._slots[Role.PRIMARY]

    @property
    def secondary(self) -> Optional[ConnectionHandle]:
        return self._slots[Role.SECONDARY]

    @property
    def is_empty(self) -> bool:
        return self.primary is None and self.secondary is None

    @property
    def is_full(self) -> bool:
        return self.primary is not None and self.secondary is not None

    def occupant(self, role: Role) -> Optional[ConnectionHandle]:
        return self._slots[role]

    async def join(self, handle: ConnectionHandle) -> Optional[Role]:
        """Seat ``handle`` in the first free slot.

        Returns the assigned role, or ``None`` when the room is full; in that
        case the handle is told so and closed, and the room is left untouched.
        """
        if self.primary is None:
            role = Role.PRIMARY
        elif self.secondary is None:
            role = Role.SECONDARY
        else:
            logger.info(f"Room {self.room_id} is full, rejecting connection {handle.connection_id}")
            await handle.send_message(ErrorMessage(msg=ROOM_FULL_MESSAGE))
            await handle.close(code=ROOM_FULL_CLOSE_CODE, reason=ROOM_FULL_REASON)
            return None

        self._slots[role] = handle
        handle.bind(self.room_id, role)
        logger.info(f"Connection {handle.connection_id} joined room {self.room_id} as {role.value}")

        await handle.send_message(RoleMessage(role=role))
        if role is Role.SECONDARY:
            host = self.primary
            if host is not None and host.is_open:
                await host.send_message(JoinedMessage())
            await handle.send_message(JoinedMessage())
        return role

    async def forward(self, from_role: Role, payload: Payload):
        """Relay ``payload`` unmodified to the other peer; drop it if nobody is listening."""
        target = self.occupant(from_role.other)
        if target is None or not target.is_open:
            logger.debug(f"Dropped frame from {from_role.value} in room {self.room_id}: peer unavailable")
            return
        await target.send(payload)

    async def leave(self, role: Role, handle: Optional[ConnectionHandle] = None):
        """Vacate ``role`` and tell the remaining peer. Safe to call more than once."""
        current = self.occupant(role)
        if current is None or (handle is not None and current is not handle):
            logger.debug(f"Ignoring leave for {role.value} in room {self.room_id}: slot not held")
            return

        self._slots[role] = None
        current.unbind()
        logger.info(f"Connection {current.connection_id} ({role.value}) left room {self.room_id}")

        if self.is_empty:
            if self._on_vacant is not None:
                self._on_vacant(self.room_id)
            return

        peer = self.occupant(role.other)
        if peer is not None and peer.is_open:
            await peer.send_message(LeftMessage())
