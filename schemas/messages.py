from pydantic import AliasChoices, BaseModel, Field
from typing import Any, Optional

import message_types


# The envelope's "type" key selects the model; models ignore it (extra="ignore").

class RegisterMessage(BaseModel):
    # Format is checked by the relay so that malformed codes map to InvalidCode
    code: Any = None


class JoinMessage(BaseModel):
    code: Any = None


class MetadataMessage(BaseModel):
    name: str
    size: int = Field(..., ge=0)
    file_type: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("fileType", "mimeType"),
        description="MIME type of the file; 'type' is taken by the envelope",
    )


class ChunkMessage(BaseModel):
    chunk: Any = None


class CompleteMessage(BaseModel):
    pass


INBOUND_MODELS = {
    message_types.REGISTER: RegisterMessage,
    message_types.JOIN: JoinMessage,
    message_types.METADATA: MetadataMessage,
    message_types.CHUNK: ChunkMessage,
    message_types.COMPLETE: CompleteMessage,
}


class FileMetadata(BaseModel):
    """Metadata stored on a room after validation and name truncation."""
    name: str
    size: int
    file_type: Optional[str] = None

    def to_message(self) -> dict:
        return {
            "type": message_types.METADATA,
            "name": self.name,
            "size": self.size,
            "fileType": self.file_type,
        }
