from typing import Dict, List, Optional

from logging_config import get_logger
from room import Room

logger = get_logger(__name__)


class RoomRegistry:
    """Process-wide, in-memory map of room id to Room.

    Lookups and removals never suspend, so on the event loop a room id can
    never map to two Room objects and reclamation cannot race a join.
    """

    def __init__(self):
        self._rooms: Dict[str, Room] = {}
        logger.info("Initializing in-memory RoomRegistry")

    def __contains__(self, room_id: str) -> bool:
        return room_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    def get(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def room_ids(self) -> List[str]:
        return list(self._rooms)

    def get_or_create(self, room_id: str) -> Room:
        room = self._rooms.get(room_id)
        if room is None:
            room = Room(room_id, on_vacant=self.try_reclaim)
            self._rooms[room_id] = room
            logger.info(f"Created room {room_id} ({len(self._rooms)} active rooms)")
        return room

    def try_reclaim(self, room_id: str) -> bool:
        """Drop the room if both slots are empty. Returns True if it was removed."""
        room = self._rooms.get(room_id)
        if room is None or not room.is_empty:
            return False
        del self._rooms[room_id]
        logger.info(f"Reclaimed room {room_id} ({len(self._rooms)} active rooms)")
        return True


room_registry = RoomRegistry()
