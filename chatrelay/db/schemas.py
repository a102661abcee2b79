from datetime import datetime, timezone
from typing import Annotated
from pydantic import BaseModel, ConfigDict, StringConstraints, field_validator
from pydantic.alias_generators import to_camel

RoomId = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=128)]
Username = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=64)]
MessageText = Annotated[str, StringConstraints(min_length=1)]


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone=True columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

# ---------- Outbound ----------
class MessageOut(CamelModel):
    id: int
    room_id: str
    sender: str
    text: str
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def timestamp_as_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)

class RoomOut(CamelModel):
    room_id: str
    participants: list[str]
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def created_at_as_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)

class RoomJoinedOut(CamelModel):
    room_id: str
    participants: list[str]
    messages: list[MessageOut]

class ParticipantsOut(CamelModel):
    """Payload of user-joined and user-left."""
    username: str
    participants: list[str]

class UserTypingOut(CamelModel):
    username: str
    is_typing: bool

class ErrorOut(BaseModel):
    message: str

# ---------- Inbound ----------
class JoinRoomIn(CamelModel):
    room_id: RoomId
    username: Username

class SendMessageIn(CamelModel):
    room_id: RoomId
    sender: Username
    text: MessageText

class TypingIn(CamelModel):
    room_id: RoomId
    username: Username
    is_typing: bool

class ClearRoomChatIn(CamelModel):
    room_id: RoomId
