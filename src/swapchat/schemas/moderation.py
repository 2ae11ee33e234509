# src/swapchat/schemas/moderation.py
"""Moderation-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from swapchat.services.moderation import ModerationAction


class ModerationRequest(BaseModel):
    """Schema for a moderator decision on a message."""

    action: ModerationAction
    reason: str | None = Field(None, max_length=1000, description="Recorded on Reject")


class ModerationResultResponse(BaseModel):
    """What a moderation decision changed."""

    message_id: int
    action: ModerationAction
    cascaded_ids: list[int]
    recounted_room_ids: list[int]
    held_by: int | None
    changed: bool

    model_config = ConfigDict(from_attributes=True)


class ReviewRoomResponse(BaseModel):
    id: int
    chat_type: str
    user1_id: int | None
    user2_id: int | None
    group_id: int | None
    name: str

    model_config = ConfigDict(from_attributes=True)


class PendingReviewResponse(BaseModel):
    """A message awaiting a decision, with enough room context to act on it."""

    id: int
    room_id: int
    author_id: int
    kind: str
    text: str
    created_at: datetime
    held_by: int | None
    room: ReviewRoomResponse

    model_config = ConfigDict(from_attributes=True)


class ReviewPageResponse(BaseModel):
    items: list[PendingReviewResponse]
    next_cursor: int | None = None

    model_config = ConfigDict(from_attributes=True)
