"""
Room relay engine.

Pairs a sender and a receiver under a 4-digit room code and relays file
metadata, opaque chunks and the completion signal from one to the other.

Connections are opaque handles supplied by the transport. The only thing the
engine needs from them is a non-blocking ``send(message: dict)``; it never
closes them. Every operation runs to completion under one lock, so the
registry has a single writer at a time whatever the transport's threading.
"""
import json
import math
import re
import threading
import time
from typing import Any, Callable, List, Optional

from pydantic import ValidationError

import message_types
from backend import Room, RoomRegistry
from constants import MAX_FILE_NAME_LENGTH, MAX_FILE_SIZE_BYTES
from exceptions import (
    AlreadyInRoom,
    DuplicateCode,
    FileTooLarge,
    InvalidCode,
    InvalidFormat,
    RelayError,
    RoomFull,
    UnknownType,
)
from logging_config import get_logger
from schemas.messages import (
    INBOUND_MODELS,
    ChunkMessage,
    FileMetadata,
    JoinMessage,
    MetadataMessage,
    RegisterMessage,
)

logger = get_logger(__name__)

# ASCII digits only; \d would also accept other Unicode digits
ROOM_CODE_PATTERN = re.compile(r"[0-9]{4}")

# Messages that only make sense inside an existing room
ROOM_SCOPED_TYPES = frozenset({message_types.METADATA, message_types.CHUNK, message_types.COMPLETE})


def is_valid_code(code: Any) -> bool:
    return isinstance(code, str) and ROOM_CODE_PATTERN.fullmatch(code) is not None


def _reject_constant(name: str):
    # NaN and Infinity are not JSON; the receiver could not parse them back
    raise ValueError(f"Non-standard JSON constant {name}")


def _parse_finite_float(text: str) -> float:
    value = float(text)
    if math.isinf(value):
        raise ValueError(f"Number out of range: {text}")
    return value


def error_message(message: str) -> dict:
    return {"type": message_types.ERROR, "message": message}


class RelayEngine:
    def __init__(
        self,
        registry: Optional[RoomRegistry] = None,
        clock: Callable[[], float] = time.time,
        max_file_size: int = MAX_FILE_SIZE_BYTES,
        max_name_length: int = MAX_FILE_NAME_LENGTH,
    ):
        self.registry = registry if registry is not None else RoomRegistry()
        self.clock = clock
        self.max_file_size = max_file_size
        self.max_name_length = max_name_length
        self._lock = threading.RLock()
        self._handlers = {
            message_types.REGISTER: self._on_register,
            message_types.JOIN: self._on_join,
            message_types.METADATA: self._on_metadata,
            message_types.CHUNK: self._on_chunk,
            message_types.COMPLETE: self._on_complete,
        }

    # --- Dispatcher ---

    def handle_message(self, connection, raw):
        """Decode one inbound frame from `connection` and apply it.

        Any RelayError is answered with an error message to `connection`;
        nothing is returned to the transport.
        """
        try:
            message = self._decode(raw)
            message_type = message.get("type")
            if not isinstance(message_type, str) or message_type not in INBOUND_MODELS:
                raise UnknownType()
            if message_type in ROOM_SCOPED_TYPES and self.registry.find_by_connection(connection) is None:
                # A message about a vanished room is dropped, well-formed or not
                logger.debug(f"Dropping '{message_type}' from connection {self._describe(connection)}: no room")
                return
            try:
                payload = INBOUND_MODELS[message_type].model_validate(message)
            except ValidationError as e:
                logger.warning(f"Rejected malformed '{message_type}' message: {e.error_count()} validation error(s)")
                raise InvalidFormat()
            with self._lock:
                self._handlers[message_type](connection, payload)
        except RelayError as e:
            logger.warning(f"Replying with error to connection {self._describe(connection)}: {e.message}")
            self._send(connection, error_message(e.message))

    def _decode(self, raw) -> dict:
        if isinstance(raw, (bytes, bytearray)):
            try:
                raw = raw.decode("utf-8")
            except UnicodeDecodeError:
                raise InvalidFormat()
        try:
            message = json.loads(raw, parse_constant=_reject_constant, parse_float=_parse_finite_float)
        except (TypeError, ValueError, RecursionError):
            raise InvalidFormat()
        if not isinstance(message, dict):
            raise InvalidFormat()
        return message

    def _on_register(self, connection, payload: RegisterMessage):
        self.register(connection, payload.code)

    def _on_join(self, connection, payload: JoinMessage):
        self.join(connection, payload.code)

    def _on_metadata(self, connection, payload: MetadataMessage):
        self.set_metadata(connection, payload.name, payload.size, payload.file_type)

    def _on_chunk(self, connection, payload: ChunkMessage):
        self.forward_chunk(connection, payload.chunk)

    def _on_complete(self, connection, payload):
        self.complete(connection)

    # --- State machine ---

    def register(self, connection, code) -> Room:
        with self._lock:
            if not is_valid_code(code):
                raise InvalidCode(code)
            if code in self.registry:
                raise DuplicateCode(code)
            self._ensure_unassigned(connection)
            room = self.registry.create(code, connection, self.clock())
            logger.info(f"Room {code} registered by connection {self._describe(connection)}")
            self._send(connection, {"type": message_types.REGISTERED, "code": code})
            return room

    def join(self, connection, code) -> Room:
        with self._lock:
            if not is_valid_code(code):
                raise InvalidCode(code)
            room = self.registry.get(code)
            if room.receiver is not None:
                raise RoomFull(code)
            self._ensure_unassigned(connection)
            self.registry.assign_receiver(room, connection)
            room.touch(self.clock())
            logger.info(f"Connection {self._describe(connection)} joined room {code}")
            self._send(room.sender, {"type": message_types.PEER_CONNECTED})
            self._send(connection, {"type": message_types.CONNECTED, "code": code})
            return room

    def set_metadata(self, connection, name: str, size: int, file_type: Optional[str] = None):
        with self._lock:
            room = self.registry.find_by_connection(connection)
            if room is None:
                logger.debug(f"Dropping metadata from connection {self._describe(connection)}: no room")
                return
            if size > self.max_file_size:
                raise FileTooLarge(size, self.max_file_size)
            room.metadata = FileMetadata(name=name[:self.max_name_length], size=size, file_type=file_type)
            room.touch(self.clock())
            logger.info(f"Room {room.code} metadata set: {room.metadata.size} bytes, type {room.metadata.file_type}")
            # Not replayed if the receiver joins later
            if room.receiver is not None:
                self._send(room.receiver, room.metadata.to_message())

    def forward_chunk(self, connection, chunk):
        with self._lock:
            room = self.registry.find_by_connection(connection)
            if room is None or room.receiver is None:
                return
            room.touch(self.clock())
            self._send(room.receiver, {"type": message_types.CHUNK, "chunk": chunk})

    def complete(self, connection):
        with self._lock:
            room = self.registry.find_by_connection(connection)
            if room is None or room.receiver is None:
                return
            self._send(room.receiver, {"type": message_types.COMPLETE})
            self.registry.remove(room.code)
            logger.info(f"Room {room.code} completed and closed")

    # --- Cleanup ---

    def disconnect(self, connection):
        """Tear down the room owned by a closed connection, telling the surviving peer."""
        with self._lock:
            room = self.registry.find_by_connection(connection)
            if room is None:
                logger.debug(f"Connection {self._describe(connection)} closed without a room")
                return
            peer = room.peer_of(connection)
            if peer is not None:
                self._send(peer, error_message(message_types.MSG_PEER_DISCONNECTED))
            self.registry.remove(room.code)
            logger.info(f"Room {room.code} removed after connection {self._describe(connection)} closed")

    def expire_idle(self, max_idle_seconds: float) -> List[str]:
        """Remove rooms idle for longer than `max_idle_seconds`, notifying every occupant.

        Returns the expired room codes.
        """
        with self._lock:
            now = self.clock()
            expired = [room for room in self.registry.rooms() if now - room.last_activity > max_idle_seconds]
            for room in expired:
                for occupant in room.occupants():
                    self._send(occupant, error_message(message_types.MSG_ROOM_EXPIRED))
                self.registry.remove(room.code)
                logger.info(f"Room {room.code} expired after {now - room.last_activity:.0f}s idle")
            return [room.code for room in expired]

    # --- Helpers ---

    def _ensure_unassigned(self, connection):
        existing = self.registry.find_by_connection(connection)
        if existing is not None:
            raise AlreadyInRoom(existing.code)

    def _send(self, connection, message: dict):
        try:
            connection.send(message)
        except Exception as e:
            # Delivery is the transport's concern; the room state is already consistent
            logger.warning(f"Failed to hand message '{message.get('type')}' to connection {self._describe(connection)}: {e}")

    @staticmethod
    def _describe(connection) -> str:
        return str(getattr(connection, "connection_id", id(connection)))
