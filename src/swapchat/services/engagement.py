# src/swapchat/services/engagement.py
"""Nudges and typing signals."""

from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from swapchat.core.settings import settings
from swapchat.db.session import transaction
from swapchat.db.time import utcnow
from swapchat.models import ChatMessage
from swapchat.models.enums import MessageKind
from swapchat.services.events import EventSink, NudgeEventSink
from swapchat.services.moderation import recompute_room_counts
from swapchat.services.rooms import RoomStore
from swapchat.services.roster import RosterManager

logger = logging.getLogger(__name__)


class EngagementTracker:
    """Participant-driven signals that keep a conversation moving."""

    def __init__(
        self,
        db: Session,
        rooms: RoomStore | None = None,
        roster: RosterManager | None = None,
        events: EventSink | None = None,
    ) -> None:
        self.db = db
        self.rooms = rooms or RoomStore(db)
        self.roster = roster or RosterManager(db)
        self.events = events or NudgeEventSink(db)

    def nudge(self, room_id: int, actor_id: int) -> int:
        """Ask the other participant for a reply.

        Nudging twice in a row is idempotent: if the newest message in the
        room is already the actor's nudge, that message is returned.

        Returns:
            Id of the nudge message.
        """
        room = self.rooms.require_participant(room_id, actor_id)

        latest = self.db.scalars(
            select(ChatMessage)
            .where(ChatMessage.room_id == room.id)
            .order_by(ChatMessage.id.desc())
            .limit(1)
        ).first()
        if latest is not None and latest.kind == MessageKind.NUDGE and latest.author_id == actor_id:
            return latest.id

        now = utcnow()
        with transaction(self.db):
            message = ChatMessage(
                room_id=room.id,
                author_id=actor_id,
                kind=MessageKind.NUDGE.value,
                text="",
                created_at=now,
                review_required=False,
                processing_successful=True,
                reply_expected=True,
            )
            self.db.add(message)
            self.db.flush()
            recompute_room_counts(self.db, room.id)
            self.events.record_nudge(actor_id, room.other_participant(actor_id))
            message_id = message.id

        logger.info("User %s nudged room %s (message %s)", actor_id, room_id, message_id)
        return message_id

    def typing(self, room_id: int, actor_id: int) -> int:
        """Hold back notification of recent unmailed messages while the actor types.

        Failures are logged and reported as nothing bumped; typing is only a
        hint and must never fail the caller.

        Returns:
            Number of messages whose timestamp was pushed forward.
        """
        room = self.rooms.require_visible(room_id, actor_id)
        now = utcnow()
        cutoff = now - timedelta(seconds=settings.typing_delay_seconds)
        try:
            with transaction(self.db):
                result = self.db.execute(
                    update(ChatMessage)
                    .where(
                        ChatMessage.room_id == room.id,
                        ChatMessage.mailed_to_all.is_(False),
                        ChatMessage.created_at >= cutoff,
                    )
                    .values(created_at=now)
                    .execution_options(synchronize_session="fetch")
                )
                self.roster.record_typing(room.id, actor_id)
        except SQLAlchemyError:
            logger.warning("Typing update failed for room %s user %s", room_id, actor_id, exc_info=True)
            return 0
        return result.rowcount
