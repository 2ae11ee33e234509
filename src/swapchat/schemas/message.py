# src/swapchat/schemas/message.py
"""Chat message Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from swapchat.models.enums import MessageKind


class MessageCreate(BaseModel):
    """Schema for posting a message into a room."""

    text: str = Field("", max_length=10000, description="Message body")
    kind: MessageKind = Field(MessageKind.DEFAULT, description="Message kind")
    ref_item_type: str | None = Field(None, max_length=16, description="Offer/Wanted for Completed messages")


class MessageResponse(BaseModel):
    """Schema for message information returned by the API."""

    id: int
    room_id: int
    author_id: int
    kind: str
    text: str
    created_at: datetime
    review_required: bool
    review_rejected: bool
    seen_by_all: bool
    reply_expected: bool
    deleted: bool

    model_config = ConfigDict(from_attributes=True)


class MessageListResponse(BaseModel):
    items: list[MessageResponse]
    next_cursor: int | None = Field(None, description="Pass as cursor to read older messages")
