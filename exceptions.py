"""
Relay errors.

Every error kind is reported back to a client as an ``error`` message; none of
them is fatal to the server. State machine operations raise, the dispatcher
converts.
"""
import message_types


MIB = 1024 * 1024


def format_size(size: int) -> str:
    """Whole mebibytes as "NMB", anything else in bytes."""
    if size >= MIB and size % MIB == 0:
        return f"{size // MIB}MB"
    return f"{size} bytes"


class RelayError(Exception):
    """Base class for errors reported to a client"""

    default_message = message_types.MSG_INVALID_FORMAT

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidFormat(RelayError):
    default_message = message_types.MSG_INVALID_FORMAT


class UnknownType(RelayError):
    default_message = message_types.MSG_UNKNOWN_TYPE


class InvalidCode(RelayError):
    default_message = message_types.MSG_INVALID_CODE

    def __init__(self, code=None):
        self.code = code
        super().__init__()


class DuplicateCode(RelayError):
    default_message = message_types.MSG_DUPLICATE_CODE

    def __init__(self, code: str = None):
        self.code = code
        super().__init__()


class RoomNotFound(RelayError):
    default_message = message_types.MSG_ROOM_NOT_FOUND

    def __init__(self, code: str = None):
        self.code = code
        super().__init__()


class RoomFull(RelayError):
    default_message = message_types.MSG_ROOM_FULL

    def __init__(self, code: str = None):
        self.code = code
        super().__init__()


class FileTooLarge(RelayError):
    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(message_types.MSG_FILE_TOO_LARGE.format(limit=format_size(limit)))


class AlreadyInRoom(RelayError):
    """The connection already occupies a role in another room"""

    def __init__(self, code: str):
        self.code = code
        super().__init__(message_types.MSG_ALREADY_IN_ROOM.format(code=code))
