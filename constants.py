import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3000))
RELOAD = os.getenv("RELOAD", "false").lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]

# Enforced limit is 200 MiB
MAX_FILE_SIZE_BYTES = int(os.getenv("MAX_FILE_SIZE_BYTES", 200 * 1024 * 1024))
MAX_FILE_NAME_LENGTH = int(os.getenv("MAX_FILE_NAME_LENGTH", 256))

# 0 disables idle expiry
ROOM_IDLE_TIMEOUT_SECONDS = float(os.getenv("ROOM_IDLE_TIMEOUT_SECONDS", 0))
ROOM_SWEEP_INTERVAL_SECONDS = float(os.getenv("ROOM_SWEEP_INTERVAL_SECONDS", 30))

SERVER_STATUS = "File Transfer WebSocket Server"
