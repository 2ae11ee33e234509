# src/swapchat/api/v1/endpoints/rooms.py
"""Room endpoints for the SwapChat API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query, Request

from swapchat.api.v1.dependencies import (
    AggregationDep,
    CallerDep,
    EngagementDep,
    RoomStoreDep,
    RosterDep,
)
from swapchat.models.enums import ChatType
from swapchat.schemas.common import Envelope
from swapchat.schemas.room import (
    NudgeResponse,
    OpenRoomRequest,
    OpenRoomResponse,
    RoomListResponse,
    RoomResponse,
    RosterMember,
    RosterUpdateRequest,
    RosterUpdateResponse,
    TypingResponse,
    UnseenCountResponse,
)

router = APIRouter(prefix="/rooms", tags=["rooms"])

ChatTypesQuery = Annotated[list[ChatType] | None, Query(description="Room types to include")]


@router.get("/unseen", response_model=Envelope[UnseenCountResponse])
async def count_unseen(
    caller_id: CallerDep,
    aggregation: AggregationDep,
    chat_types: ChatTypesQuery = None,
) -> Envelope[UnseenCountResponse]:
    """Total unseen messages across the caller's open rooms."""
    count = await aggregation.count_unseen(caller_id, chat_types)
    return Envelope[UnseenCountResponse](data=UnseenCountResponse(count=count))


@router.get("", response_model=Envelope[RoomListResponse])
async def list_rooms(
    caller_id: CallerDep,
    aggregation: AggregationDep,
    chat_types: ChatTypesQuery = None,
    search: str | None = Query(None, max_length=80),
    age: int | None = Query(None, description="Only rooms active in the last N days"),
    include_closed: bool = Query(False),
    cursor: str | None = Query(None),
    limit: int | None = Query(None),
) -> Envelope[RoomListResponse]:
    """List the caller's rooms, most recently active first."""
    page = await aggregation.list_rooms(
        caller_id,
        chat_types=chat_types,
        search=search,
        age_days=age,
        include_closed=include_closed,
        cursor=cursor,
        limit=limit,
    )
    return Envelope[RoomListResponse](data=RoomListResponse.model_validate(page))


@router.put("", response_model=Envelope[OpenRoomResponse])
async def open_direct_room(
    body: OpenRoomRequest,
    caller_id: CallerDep,
    rooms: RoomStoreDep,
) -> Envelope[OpenRoomResponse]:
    """Return the caller's direct room with another user, creating it on first contact."""
    room, created = rooms.resolve_or_create_direct_room(caller_id, body.user_id)
    return Envelope[OpenRoomResponse](data=OpenRoomResponse(id=room.id, created=created))


@router.get("/{room_id}", response_model=Envelope[RoomResponse])
async def get_room(
    room_id: int,
    caller_id: CallerDep,
    aggregation: AggregationDep,
) -> Envelope[RoomResponse]:
    """Get a single room with unseen count and display name."""
    summary = await aggregation.room_detail(room_id, caller_id)
    return Envelope[RoomResponse](data=RoomResponse.model_validate(summary))


@router.post("/{room_id}/roster", response_model=Envelope[RosterUpdateResponse])
async def update_presence(
    room_id: int,
    body: RosterUpdateRequest,
    request: Request,
    caller_id: CallerDep,
    rooms: RoomStoreDep,
    roster: RosterDep,
) -> Envelope[RosterUpdateResponse]:
    """Record the caller's presence and, optionally, how far they have read."""
    room = rooms.require_visible(room_id, caller_id)
    source_address = request.client.host if request.client else None
    entries, unseen = roster.update_presence(
        room,
        caller_id,
        body.status,
        source_address,
        watermark=body.last_message_seen,
        allow_back=body.allow_back,
    )
    return Envelope[RosterUpdateResponse](
        data=RosterUpdateResponse(
            room_id=room_id,
            roster=[RosterMember.model_validate(entry) for entry in entries],
            unseen=unseen,
        )
    )


@router.post("/{room_id}/nudge", response_model=Envelope[NudgeResponse])
async def nudge(
    room_id: int,
    caller_id: CallerDep,
    engagement: EngagementDep,
) -> Envelope[NudgeResponse]:
    """Ask the other participant for a reply."""
    message_id = engagement.nudge(room_id, caller_id)
    return Envelope[NudgeResponse](data=NudgeResponse(message_id=message_id))


@router.post("/{room_id}/typing", response_model=Envelope[TypingResponse])
async def typing(
    room_id: int,
    caller_id: CallerDep,
    engagement: EngagementDep,
) -> Envelope[TypingResponse]:
    """Signal that the caller is composing a message."""
    bumped = engagement.typing(room_id, caller_id)
    return Envelope[TypingResponse](data=TypingResponse(bumped=bumped))
