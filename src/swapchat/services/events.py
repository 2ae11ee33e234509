# src/swapchat/services/events.py
"""Analytics events emitted by chat engagement features."""

from __future__ import annotations

import logging
from typing import Protocol

from sqlalchemy.orm import Session

from swapchat.models import UserNudge

logger = logging.getLogger(__name__)


class EventSink(Protocol):
    """Destination for engagement analytics."""

    def record_nudge(self, sender_id: int, recipient_id: int | None) -> None: ...


class NudgeEventSink:
    """Stores nudge events in the ``user_nudge`` table.

    Writes join the caller's session so they commit or roll back together
    with the nudge message itself.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def record_nudge(self, sender_id: int, recipient_id: int | None) -> None:
        self.db.add(UserNudge(from_user_id=sender_id, to_user_id=recipient_id))
        logger.debug("Recorded nudge %s -> %s", sender_id, recipient_id)
