from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from exceptions import DuplicateCode, RoomNotFound
from logging_config import get_logger
from schemas.messages import FileMetadata

logger = get_logger(__name__)


@dataclass(eq=False)
class Room:
    code: str
    sender: Any
    created_at: float
    last_activity: float
    receiver: Optional[Any] = None
    metadata: Optional[FileMetadata] = None

    def touch(self, now: float):
        self.last_activity = now

    def occupants(self) -> List[Any]:
        return [conn for conn in (self.sender, self.receiver) if conn is not None]

    def peer_of(self, connection) -> Optional[Any]:
        """Return the occupant that is not `connection`, or None."""
        if connection is self.sender:
            return self.receiver
        if connection is self.receiver:
            return self.sender
        return None


class RoomRegistry:
    """In-memory room store.

    Rooms are keyed by code. A secondary index maps each occupying connection to
    its room code so per-message routing does not scan every room. Connections
    are hashed by identity.

    Not synchronized; the owning RelayEngine serializes access.
    """

    def __init__(self):
        self._rooms: Dict[str, Room] = {}
        self._codes_by_connection: Dict[Any, str] = {}

    def create(self, code: str, sender, now: float) -> Room:
        if code in self._rooms:
            raise DuplicateCode(code)
        room = Room(code=code, sender=sender, created_at=now, last_activity=now)
        self._rooms[code] = room
        self._codes_by_connection[sender] = code
        logger.debug(f"Room {code} created ({len(self._rooms)} live rooms)")
        return room

    def get(self, code: str) -> Room:
        room = self._rooms.get(code)
        if room is None:
            raise RoomNotFound(code)
        return room

    def find_by_connection(self, connection) -> Optional[Room]:
        code = self._codes_by_connection.get(connection)
        if code is None:
            return None
        return self._rooms.get(code)

    def assign_receiver(self, room: Room, receiver):
        room.receiver = receiver
        self._codes_by_connection[receiver] = room.code

    def remove(self, code: str) -> Optional[Room]:
        room = self._rooms.pop(code, None)
        if room is None:
            return None
        for connection in room.occupants():
            if self._codes_by_connection.get(connection) == code:
                del self._codes_by_connection[connection]
        logger.debug(f"Room {code} removed ({len(self._rooms)} live rooms)")
        return room

    def rooms(self) -> List[Room]:
        return list(self._rooms.values())

    def __len__(self):
        return len(self._rooms)

    def __contains__(self, code):
        return code in self._rooms
