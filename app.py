from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from routers.rooms import rooms_router
from relay import RelayEngine
from connection import WebSocketConnection
from schemas.rooms import HealthResponse
from constants import (
    CORS_ORIGINS,
    LOG_FILE,
    LOG_LEVEL,
    ROOM_IDLE_TIMEOUT_SECONDS,
    ROOM_SWEEP_INTERVAL_SECONDS,
    SERVER_STATUS,
)
import uuid
import asyncio
from datetime import datetime, timezone
from logging_config import get_logger, setup_logging

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


async def sweep_idle_rooms(app: FastAPI, max_idle_seconds: float, interval_seconds: float):
    """Background task that expires rooms with no activity for `max_idle_seconds`."""
    logger.info(f"Starting idle room sweeper: timeout={max_idle_seconds}s, interval={interval_seconds}s")
    try:
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                expired = app.state.relay_engine.expire_idle(max_idle_seconds)
                if expired:
                    logger.info(f"Expired {len(expired)} idle room(s): {', '.join(expired)}")
            except Exception as e:
                logger.error(f"Error while sweeping idle rooms: {e}", exc_info=True)
    except asyncio.CancelledError:
        logger.info("Idle room sweeper stopped")
        raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    sweeper = None
    if ROOM_IDLE_TIMEOUT_SECONDS > 0:
        sweeper = asyncio.create_task(
            sweep_idle_rooms(app, ROOM_IDLE_TIMEOUT_SECONDS, ROOM_SWEEP_INTERVAL_SECONDS)
        )
    yield
    if sweeper is not None:
        sweeper.cancel()
        try:
            await sweeper
        except asyncio.CancelledError:
            pass


app = FastAPI(
    title="File Transfer Relay",
    description="Pairs two clients by a 4-digit room code and relays file-transfer messages between them",
    lifespan=lifespan,
)

# The registry lives for the whole process; rooms do not survive a restart
app.state.relay_engine = RelayEngine()

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(rooms_router)

logger.info("FastAPI application initialized")


@app.get("/", response_model=HealthResponse)
async def health():
    return HealthResponse(status=SERVER_STATUS, timestamp=datetime.now(timezone.utc).isoformat())


@app.websocket("/")
@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Relay endpoint. Every frame is a JSON message with a `type` field."""
    engine: RelayEngine = websocket.app.state.relay_engine
    client = websocket.client
    client_address = f"{client.host}:{client.port}" if client else "unknown"

    await websocket.accept()
    connection = WebSocketConnection(websocket, uuid.uuid4().hex[:12])
    connection.start()
    logger.info(f"New WebSocket connection {connection.connection_id} from {client_address}")

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.info(f"WebSocket disconnected for connection {connection.connection_id} (code {message.get('code')})")
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            engine.handle_message(connection, raw)
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected normally for connection {connection.connection_id}")
    except Exception as e:
        logger.error(f"Error handling connection {connection.connection_id}: {e}", exc_info=True)
    finally:
        # Cleanup on disconnect
        engine.disconnect(connection)
        await connection.aclose()
        try:
            await websocket.close()
        except Exception as e:
            logger.debug(f"Error closing WebSocket {connection.connection_id}: {e}")
