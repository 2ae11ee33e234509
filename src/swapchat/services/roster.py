# src/swapchat/services/roster.py
"""Per-room presence and read watermark state."""

from __future__ import annotations

import logging

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.orm import Session, aliased

from swapchat.core.errors import InvalidArgumentError
from swapchat.db.session import transaction
from swapchat.db.time import utcnow
from swapchat.models import ChatMessage, ChatRoom, RosterEntry
from swapchat.models.enums import RosterStatus

logger = logging.getLogger(__name__)


def valid_message_clause():
    """SQL predicate for messages that passed review and processing."""
    return and_(
        ChatMessage.review_required.is_(False),
        ChatMessage.review_rejected.is_(False),
        ChatMessage.processing_successful.is_(True),
    )


class RosterManager:
    """State machine for (room, user) presence and watermarks."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_entry(self, room_id: int, user_id: int) -> RosterEntry | None:
        return self.db.get(RosterEntry, (room_id, user_id))

    def upsert_presence(
        self,
        room: ChatRoom,
        user_id: int,
        status: RosterStatus | str | None,
        source_address: str | None = None,
    ) -> RosterEntry:
        """Insert or update the caller's roster entry.

        A Closed write never downgrades a Blocked entry; every other status
        overwrites whatever was there.
        """
        try:
            new_status = RosterStatus(status) if status else RosterStatus.ONLINE
        except ValueError as err:
            raise InvalidArgumentError(f"Invalid status: {status}") from err
        now = utcnow()
        entry = self.get_entry(room.id, user_id)
        if entry is None:
            entry = RosterEntry(
                room_id=room.id,
                user_id=user_id,
                status=new_status.value,
                last_known_address=source_address,
                updated_at=now,
            )
            self.db.add(entry)
        else:
            if not (new_status == RosterStatus.CLOSED and entry.status == RosterStatus.BLOCKED):
                entry.status = new_status.value
            entry.last_known_address = source_address
            entry.updated_at = now
        self.db.flush()
        return entry

    def advance_watermark(
        self,
        room_id: int,
        user_id: int,
        message_id: int,
        allow_back: bool = False,
    ) -> int | None:
        """Move the user's read watermark and refresh ``seen_by_all``.

        Without ``allow_back`` the watermark only rises. The guard is part of
        the UPDATE itself.

        Returns:
            The watermark stored after the call.
        """
        stmt = update(RosterEntry).where(
            RosterEntry.room_id == room_id,
            RosterEntry.user_id == user_id,
        )
        if not allow_back:
            stmt = stmt.where(
                or_(
                    RosterEntry.last_message_seen.is_(None),
                    RosterEntry.last_message_seen < message_id,
                )
            )
        self.db.execute(stmt.values(last_message_seen=message_id))

        self._refresh_seen_by_all(room_id, message_id)
        self.db.flush()

        entry = self.get_entry(room_id, user_id)
        if entry is None:
            return None
        self.db.refresh(entry)
        return entry.last_message_seen

    def _refresh_seen_by_all(self, room_id: int, up_to: int) -> None:
        # Only ever sets the flag, so it cannot go back to False.
        lagging = aliased(RosterEntry)
        someone_behind = (
            select(lagging.user_id)
            .where(
                lagging.room_id == room_id,
                lagging.user_id != ChatMessage.author_id,
                or_(
                    lagging.last_message_seen.is_(None),
                    lagging.last_message_seen < ChatMessage.id,
                ),
            )
            .correlate(ChatMessage)
            .exists()
        )
        self.db.execute(
            update(ChatMessage)
            .where(
                ChatMessage.room_id == room_id,
                ChatMessage.id <= up_to,
                ChatMessage.seen_by_all.is_(False),
                ~someone_behind,
            )
            .values(seen_by_all=True)
        )

    def unseen_count(self, room_id: int, user_id: int) -> int:
        """Count valid messages from others beyond the user's watermark."""
        watermark = (
            select(func.coalesce(RosterEntry.last_message_seen, 0))
            .where(RosterEntry.room_id == room_id, RosterEntry.user_id == user_id)
            .scalar_subquery()
        )
        stmt = select(func.count(ChatMessage.id)).where(
            ChatMessage.room_id == room_id,
            ChatMessage.author_id != user_id,
            ChatMessage.deleted.is_(False),
            ChatMessage.id > func.coalesce(watermark, 0),
            valid_message_clause(),
        )
        return int(self.db.scalar(stmt) or 0)

    def last_seen(self, room_id: int, user_id: int) -> int | None:
        stmt = select(RosterEntry.last_message_seen).where(
            RosterEntry.room_id == room_id,
            RosterEntry.user_id == user_id,
        )
        return self.db.scalar(stmt)

    def roster(self, room_id: int) -> list[RosterEntry]:
        stmt = select(RosterEntry).where(RosterEntry.room_id == room_id).order_by(RosterEntry.user_id)
        return list(self.db.scalars(stmt))

    def record_typing(self, room_id: int, user_id: int) -> None:
        self.db.execute(
            update(RosterEntry)
            .where(RosterEntry.room_id == room_id, RosterEntry.user_id == user_id)
            .values(last_typing_at=utcnow())
        )

    def update_presence(
        self,
        room: ChatRoom,
        user_id: int,
        status: RosterStatus | str | None,
        source_address: str | None = None,
        watermark: int | None = None,
        allow_back: bool = False,
    ) -> tuple[list[RosterEntry], int]:
        """Presence write plus optional watermark move, as one unit of work.

        Returns:
            The room's roster and the caller's unseen count afterwards.
        """
        with transaction(self.db):
            self.upsert_presence(room, user_id, status, source_address)
            if watermark:
                self.advance_watermark(room.id, user_id, watermark, allow_back)
        logger.debug("Roster update room=%s user=%s status=%s", room.id, user_id, status)
        return self.roster(room.id), self.unseen_count(room.id, user_id)
