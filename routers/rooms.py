from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request

from exceptions import RoomNotFound
from logging_config import get_logger
from relay import RelayEngine, is_valid_code
from schemas.rooms import RoomDetailsResponse, RoomMetadataResponse, RoomsSummaryResponse

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/rooms", tags=["rooms"])


def get_relay_engine(request: Request) -> RelayEngine:
    return request.app.state.relay_engine


def _isoformat(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


@rooms_router.get("", response_model=RoomsSummaryResponse)
async def get_rooms_summary(engine: RelayEngine = Depends(get_relay_engine)):
    rooms = engine.registry.rooms()
    return RoomsSummaryResponse(
        active_rooms=len(rooms),
        paired_rooms=sum(1 for room in rooms if room.receiver is not None),
    )


@rooms_router.get("/{code}", response_model=RoomDetailsResponse)
async def get_room_details(code: str, engine: RelayEngine = Depends(get_relay_engine)):
    """
    Get the status of a live room.

    Returns:
    - code: Room code
    - created_at / last_activity: ISO timestamps (UTC)
    - has_receiver: Whether a receiver has joined
    - metadata: File metadata, if the sender has sent it
    """
    if not is_valid_code(code):
        logger.warning(f"Room details failed: invalid code {code!r}")
        raise HTTPException(status_code=400, detail="Invalid room code format")

    try:
        room = engine.registry.get(code)
    except RoomNotFound as e:
        logger.info(f"Room details failed: room {code} not found")
        raise HTTPException(status_code=404, detail=e.message)

    metadata = None
    if room.metadata is not None:
        metadata = RoomMetadataResponse(
            name=room.metadata.name,
            size=room.metadata.size,
            fileType=room.metadata.file_type,
        )

    return RoomDetailsResponse(
        code=room.code,
        created_at=_isoformat(room.created_at),
        last_activity=_isoformat(room.last_activity),
        has_receiver=room.receiver is not None,
        metadata=metadata,
    )
