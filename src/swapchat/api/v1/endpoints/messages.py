# src/swapchat/api/v1/endpoints/messages.py
"""Chat message endpoints for the SwapChat API."""

from __future__ import annotations

from fastapi import APIRouter, Query, status

from swapchat.api.v1.dependencies import CallerDep, MessagesDep
from swapchat.schemas.common import Envelope
from swapchat.schemas.message import MessageCreate, MessageListResponse, MessageResponse

router = APIRouter(tags=["messages"])


@router.get("/rooms/{room_id}/messages", response_model=Envelope[MessageListResponse])
async def list_room_messages(
    room_id: int,
    caller_id: CallerDep,
    messages: MessagesDep,
    cursor: int | None = Query(None, ge=1),
    limit: int | None = Query(None),
) -> Envelope[MessageListResponse]:
    """List messages in a room, newest first."""
    items = messages.list_for_room(room_id, caller_id, cursor=cursor, limit=limit)
    return Envelope[MessageListResponse](
        data=MessageListResponse(
            items=[MessageResponse.model_validate(message) for message in items],
            next_cursor=items[-1].id if items else None,
        )
    )


@router.post(
    "/rooms/{room_id}/messages",
    response_model=Envelope[MessageResponse],
    status_code=status.HTTP_201_CREATED,
)
async def post_message(
    room_id: int,
    body: MessageCreate,
    caller_id: CallerDep,
    messages: MessagesDep,
) -> Envelope[MessageResponse]:
    """Post a message into a room the caller participates in."""
    message = messages.post(room_id, caller_id, body.text, body.kind, body.ref_item_type)
    return Envelope[MessageResponse](data=MessageResponse.model_validate(message))


@router.delete("/messages/{message_id}", response_model=Envelope[MessageResponse])
async def delete_message(
    message_id: int,
    caller_id: CallerDep,
    messages: MessagesDep,
) -> Envelope[MessageResponse]:
    """Soft-delete one of the caller's own messages."""
    message = messages.delete(message_id, caller_id)
    return Envelope[MessageResponse](data=MessageResponse.model_validate(message))
