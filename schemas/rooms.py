from pydantic import BaseModel
from typing import Optional


class HealthResponse(BaseModel):
    status: str
    timestamp: str


class RoomMetadataResponse(BaseModel):
    name: str
    size: int
    fileType: Optional[str] = None


class RoomDetailsResponse(BaseModel):
    code: str
    created_at: str
    last_activity: str
    has_receiver: bool
    metadata: Optional[RoomMetadataResponse] = None


class RoomsSummaryResponse(BaseModel):
    active_rooms: int
    paired_rooms: int
