# src/swapchat/services/messages.py
"""Posting, listing and deleting chat messages."""

from __future__ import annotations

import logging

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from swapchat.core.errors import ForbiddenError, InvalidArgumentError, NotFoundError
from swapchat.core.settings import settings
from swapchat.db.session import transaction
from swapchat.db.time import utcnow
from swapchat.models import ChatMessage, User
from swapchat.models.enums import ChatModStatus, ChatType, MessageKind
from swapchat.services.moderation import recompute_room_counts
from swapchat.services.rooms import RoomStore
from swapchat.services.roster import valid_message_clause
from swapchat.utils.pagination import clamp_limit

logger = logging.getLogger(__name__)

# Kinds a participant may post directly; the rest are produced by the platform.
POSTABLE_KINDS = (
    MessageKind.DEFAULT,
    MessageKind.PROMISED,
    MessageKind.RENEGED,
    MessageKind.COMPLETED,
    MessageKind.ADDRESS,
    MessageKind.IMAGE,
    MessageKind.INTERESTED,
    MessageKind.REPORTED_USER,
)


class MessageService:
    """Business logic for the messages inside a room."""

    def __init__(self, db: Session, rooms: RoomStore | None = None) -> None:
        self.db = db
        self.rooms = rooms or RoomStore(db)

    def post(
        self,
        room_id: int,
        author_id: int,
        text: str,
        kind: MessageKind | str = MessageKind.DEFAULT,
        ref_item_type: str | None = None,
    ) -> ChatMessage:
        """Create a message from a participant.

        Direct-room messages from authors still under moderation wait in the
        review queue; everything else is visible straight away.
        """
        try:
            kind = MessageKind(kind)
        except ValueError as err:
            raise InvalidArgumentError(f"Invalid message kind: {kind}") from err
        if kind not in POSTABLE_KINDS:
            raise InvalidArgumentError(f"Message kind {kind.value} cannot be posted")
        text = (text or "").strip()
        if not text and kind in (MessageKind.DEFAULT, MessageKind.INTERESTED):
            raise InvalidArgumentError("Message must be non-empty")

        room = self.rooms.require_participant(room_id, author_id)
        author = self.db.get(User, author_id)
        if author is None or author.deleted_at is not None:
            raise NotFoundError("User not found")

        needs_review = (
            room.chat_type == ChatType.USER2USER
            and author.chat_mod_status == ChatModStatus.MODERATED
        )

        with transaction(self.db):
            message = ChatMessage(
                room_id=room.id,
                author_id=author_id,
                kind=kind.value,
                text=text,
                created_at=utcnow(),
                review_required=needs_review,
                processing_successful=True,
                ref_item_type=ref_item_type,
            )
            self.db.add(message)
            self.db.flush()
            recompute_room_counts(self.db, room.id)

        logger.info(
            "Message %s posted in room %s by %s (review=%s)",
            message.id,
            room.id,
            author_id,
            needs_review,
        )
        return message

    def delete(self, message_id: int, caller_id: int) -> ChatMessage:
        """Soft-delete one of the caller's own messages."""
        message = self.db.get(ChatMessage, message_id)
        if message is None or message.deleted:
            raise NotFoundError("Message not found")
        if message.author_id != caller_id:
            raise ForbiddenError("Not your message")

        with transaction(self.db):
            message.kind = MessageKind.DEFAULT.value
            message.deleted = True
            self.db.flush()
            recompute_room_counts(self.db, message.room_id)

        logger.info("Message %s deleted by its author", message_id)
        return message

    def list_for_room(
        self,
        room_id: int,
        caller_id: int,
        cursor: int | None = None,
        limit: int | None = None,
    ) -> list[ChatMessage]:
        """Return messages the caller may see, newest first.

        Others' messages appear once valid; the caller always sees their own.
        Messages from deleted accounts are hidden from everyone else.

        Args:
            room_id: Room to read.
            caller_id: Reader.
            cursor: Only return messages with an id below this one.
            limit: Page size.
        """
        room = self.rooms.require_visible(room_id, caller_id)
        limit = clamp_limit(limit, settings.review_page_size, settings.max_page_size)

        stmt = (
            select(ChatMessage)
            .join(User, User.id == ChatMessage.author_id)
            .where(
                ChatMessage.room_id == room.id,
                ChatMessage.deleted.is_(False),
                or_(ChatMessage.author_id == caller_id, valid_message_clause()),
                or_(User.deleted_at.is_(None), User.id == caller_id),
            )
            .order_by(ChatMessage.id.desc())
            .limit(limit)
        )
        if cursor:
            stmt = stmt.where(ChatMessage.id < cursor)
        return list(self.db.scalars(stmt))
