# src/swapchat/api/v1/endpoints/moderation.py
"""Moderation-related endpoints for the SwapChat API."""

from __future__ import annotations

from fastapi import APIRouter

from swapchat.api.v1.dependencies import CallerDep, ModerationDep
from swapchat.schemas.common import Envelope
from swapchat.schemas.moderation import ModerationRequest, ModerationResultResponse

router = APIRouter(prefix="/moderation", tags=["moderation"])


@router.post("/messages/{message_id}", response_model=Envelope[ModerationResultResponse])
async def moderate_message(
    message_id: int,
    body: ModerationRequest,
    caller_id: CallerDep,
    engine: ModerationDep,
) -> Envelope[ModerationResultResponse]:
    """Hold, release, approve, reject or redact a message under review."""
    outcome = engine.perform(message_id, caller_id, body.action, body.reason)
    return Envelope[ModerationResultResponse](data=ModerationResultResponse.model_validate(outcome))
