# Inbound message types
REGISTER = "register"
JOIN = "join"
METADATA = "metadata"
CHUNK = "chunk"
COMPLETE = "complete"

# Outbound message types
REGISTERED = "registered"
CONNECTED = "connected"
PEER_CONNECTED = "peerConnected"
ERROR = "error"

INBOUND_TYPES = frozenset({REGISTER, JOIN, METADATA, CHUNK, COMPLETE})

# Human-readable error strings sent in error{message}
MSG_INVALID_FORMAT = "Invalid message format"
MSG_UNKNOWN_TYPE = "Unknown message type"
MSG_INVALID_CODE = "Invalid room code format"
MSG_DUPLICATE_CODE = "Room already exists"
MSG_ROOM_NOT_FOUND = "Room does not exist or has expired"
MSG_ROOM_FULL = "Room is already occupied"
MSG_FILE_TOO_LARGE = "File too large (max {limit})"
MSG_ALREADY_IN_ROOM = "Connection already belongs to room {code}"
MSG_PEER_DISCONNECTED = "Peer disconnected"
MSG_ROOM_EXPIRED = "Room expired due to inactivity"

# Example payloads
# - {"type": "register", "code": "1234"}
# - {"type": "join", "code": "1234"}
# - {"type": "metadata", "name": "a.txt", "size": 1000, "fileType": "text/plain"}
# - {"type": "chunk", "chunk": "<opaque>"}
# - {"type": "complete"}
