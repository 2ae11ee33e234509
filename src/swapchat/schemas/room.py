# src/swapchat/schemas/room.py
"""Room and roster Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from swapchat.models.enums import RosterStatus


class RoomResponse(BaseModel):
    """Room as shown in a caller's list or detail view."""

    id: int
    chat_type: str
    name: str
    icon: str
    unseen: int
    reply_expected: int
    last_message_id: int | None
    last_message_at: datetime | None
    last_message_kind: str | None
    snippet: str
    last_seen: int | None
    other_user_id: int | None
    group_id: int | None
    participants: list[int]
    status: str | None
    latest_activity_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


class RoomListResponse(BaseModel):
    items: list[RoomResponse]
    next_cursor: str | None = Field(None, description="Opaque cursor for the next page")

    model_config = ConfigDict(from_attributes=True)


class UnseenCountResponse(BaseModel):
    count: int


class OpenRoomRequest(BaseModel):
    """Open (or find) the direct room with another user."""

    user_id: int = Field(..., ge=1, description="The other participant")


class OpenRoomResponse(BaseModel):
    id: int
    created: bool


class RosterUpdateRequest(BaseModel):
    """Presence write with an optional read watermark."""

    status: RosterStatus | None = Field(None, description="Defaults to Online")
    last_message_seen: int | None = Field(None, ge=1, description="Highest message id read")
    allow_back: bool = Field(False, description="Allow the watermark to move backwards")


class RosterMember(BaseModel):
    user_id: int
    status: str
    last_message_seen: int | None

    model_config = ConfigDict(from_attributes=True)


class RosterUpdateResponse(BaseModel):
    room_id: int
    roster: list[RosterMember]
    unseen: int


class NudgeResponse(BaseModel):
    message_id: int


class TypingResponse(BaseModel):
    bumped: int = Field(..., description="Messages whose notification was delayed")
