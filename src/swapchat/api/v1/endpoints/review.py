# src/swapchat/api/v1/endpoints/review.py
"""Review queue endpoints for the SwapChat API."""

from __future__ import annotations

from fastapi import APIRouter, Query

from swapchat.api.v1.dependencies import CallerDep, ReviewQueueDep
from swapchat.schemas.common import Envelope
from swapchat.schemas.moderation import ReviewPageResponse

router = APIRouter(prefix="/review", tags=["review"])


@router.get("/messages", response_model=Envelope[ReviewPageResponse])
async def list_pending_review(
    caller_id: CallerDep,
    queue: ReviewQueueDep,
    cursor: int | None = Query(None, ge=1, description="Id of the last message already seen"),
    limit: int | None = Query(None),
) -> Envelope[ReviewPageResponse]:
    """Get messages awaiting review in groups the caller moderates, oldest first."""
    page = queue.list_pending(caller_id, cursor=cursor, limit=limit)
    return Envelope[ReviewPageResponse](data=ReviewPageResponse.model_validate(page))
