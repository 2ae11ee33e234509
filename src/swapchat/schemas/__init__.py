# src/swapchat/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .common import Envelope, ErrorBody, ErrorEnvelope
from .message import MessageCreate, MessageListResponse, MessageResponse
from .moderation import (
    ModerationRequest,
    ModerationResultResponse,
    PendingReviewResponse,
    ReviewPageResponse,
)
from .room import (
    NudgeResponse,
    OpenRoomRequest,
    OpenRoomResponse,
    RoomListResponse,
    RoomResponse,
    RosterUpdateRequest,
    RosterUpdateResponse,
    TypingResponse,
    UnseenCountResponse,
)

__all__ = [
    "Envelope", "ErrorBody", "ErrorEnvelope",
    "MessageCreate", "MessageListResponse", "MessageResponse",
    "ModerationRequest", "ModerationResultResponse",
    "PendingReviewResponse", "ReviewPageResponse",
    "NudgeResponse", "OpenRoomRequest", "OpenRoomResponse",
    "RoomListResponse", "RoomResponse",
    "RosterUpdateRequest", "RosterUpdateResponse",
    "TypingResponse", "UnseenCountResponse",
]
