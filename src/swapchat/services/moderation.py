# src/swapchat/services/moderation.py
"""Moderation services for SwapChat."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from swapchat.core.errors import ConflictError, ForbiddenError, InvalidArgumentError, NotFoundError
from swapchat.core.settings import settings
from swapchat.db.session import transaction
from swapchat.db.time import utcnow
from swapchat.models import ChatMessage, ChatMessageHold, ChatRoom, User
from swapchat.models.enums import ChatModStatus, ChatType, MessageKind
from swapchat.services.membership import MembershipDirectory
from swapchat.services.rooms import RoomStore
from swapchat.services.roster import valid_message_clause
from swapchat.utils.text import redact_emails

logger = logging.getLogger(__name__)

PENDING_NOT_FOUND = "Message not found or not awaiting review"


class ModerationAction(str, Enum):
    """Decisions a moderator can take on a message."""

    HOLD = "Hold"
    RELEASE = "Release"
    APPROVE = "Approve"
    APPROVE_ALL_FUTURE = "ApproveAllFuture"
    REJECT = "Reject"
    REDACT = "Redact"


@dataclass
class ModerationOutcome:
    """What a moderation action changed."""

    message_id: int
    action: ModerationAction
    # Other messages moved by the same decision (ModMail cascade, flood sweep).
    cascaded_ids: list[int] = field(default_factory=list)
    recounted_room_ids: list[int] = field(default_factory=list)
    held_by: int | None = None
    changed: bool = True


def _pending():
    return (ChatMessage.review_required.is_(True), ChatMessage.review_rejected.is_(False))


def _not_held_by_other(actor_id: int):
    held_elsewhere = (
        select(ChatMessageHold.message_id)
        .where(
            ChatMessageHold.message_id == ChatMessage.id,
            ChatMessageHold.moderator_id != actor_id,
        )
        .correlate(ChatMessage)
        .exists()
    )
    return ~held_elsewhere


def recompute_room_counts(db: Session, room_id: int) -> tuple[int, int]:
    """Recount a room's valid and invalid messages from scratch.

    Mod2Mod rooms never report invalid messages. Any recount also marks the
    room as recently active.

    Returns:
        The stored ``(valid, invalid)`` pair.
    """
    is_valid = case((valid_message_clause(), 1), else_=0)
    valid, total = db.execute(
        select(func.coalesce(func.sum(is_valid), 0), func.count(ChatMessage.id)).where(
            ChatMessage.room_id == room_id,
            ChatMessage.deleted.is_(False),
        )
    ).one()
    valid = int(valid)
    invalid = int(total) - valid

    chat_type = db.scalar(select(ChatRoom.chat_type).where(ChatRoom.id == room_id))
    if chat_type == ChatType.MOD2MOD:
        invalid = 0

    db.execute(
        update(ChatRoom)
        .where(ChatRoom.id == room_id)
        .values(
            valid_message_count=valid,
            invalid_message_count=invalid,
            latest_activity_at=utcnow(),
        )
    )
    logger.debug("Room %s recounted: valid=%d invalid=%d", room_id, valid, invalid)
    return valid, invalid


class ModerationEngine:
    """Service handling review decisions and their side effects.

    Every transition is applied by a conditional UPDATE that re-checks the
    Pending state and the hold in the same statement, so two moderators
    acting at once cannot both succeed.
    """

    def __init__(
        self,
        db: Session,
        rooms: RoomStore | None = None,
        membership: MembershipDirectory | None = None,
    ) -> None:
        self.db = db
        self.membership = membership or MembershipDirectory(db)
        self.rooms = rooms or RoomStore(db, self.membership)

    def perform(
        self,
        message_id: int,
        actor_id: int,
        action: ModerationAction | str,
        reason: str | None = None,
    ) -> ModerationOutcome:
        """Apply ``action`` to a message on behalf of ``actor_id``.

        Args:
            message_id: Target message.
            actor_id: Moderator taking the decision.
            action: One of :class:`ModerationAction`.
            reason: Free-text reason recorded on Reject.

        Raises:
            NotFoundError: If the message is missing or not Pending.
            ForbiddenError: If the actor moderates none of the room's groups.
            ConflictError: If another moderator holds the message.
        """
        try:
            action = ModerationAction(action)
        except ValueError as err:
            raise InvalidArgumentError(f"Unknown moderation action: {action}") from err
        message = self._load(message_id)
        self._authorize(message, actor_id)

        match action:
            case ModerationAction.HOLD:
                return self.hold(message, actor_id)
            case ModerationAction.RELEASE:
                return self.release(message, actor_id)
            case ModerationAction.APPROVE:
                return self.approve(message, actor_id)
            case ModerationAction.APPROVE_ALL_FUTURE:
                return self.approve(message, actor_id, all_future=True)
            case ModerationAction.REJECT:
                return self.reject(message, actor_id, reason)
            case ModerationAction.REDACT:
                return self.redact(message, actor_id)

    def _load(self, message_id: int) -> ChatMessage:
        message = self.db.get(ChatMessage, message_id)
        if message is None or message.deleted:
            raise NotFoundError("Message not found")
        return message

    def _authorize(self, message: ChatMessage, actor_id: int) -> None:
        room = self.rooms.get(message.room_id)
        associated = self.rooms.associated_group_ids(room)
        moderated = set(self.membership.moderated_group_ids(actor_id))
        if not associated & moderated:
            logger.info(
                "Moderator %s refused on message %s: no standing in groups %s",
                actor_id,
                message.id,
                sorted(associated),
            )
            raise ForbiddenError("Permission denied")

    @staticmethod
    def _require_pending(message: ChatMessage) -> None:
        if not message.is_pending:
            raise NotFoundError(PENDING_NOT_FOUND)

    def current_holder(self, message_id: int) -> int | None:
        stmt = select(ChatMessageHold.moderator_id).where(ChatMessageHold.message_id == message_id)
        return self.db.scalar(stmt)

    def _diagnose(self, message_id: int, actor_id: int) -> None:
        """Explain why a guarded UPDATE matched nothing, as an exception."""
        message = self.db.get(ChatMessage, message_id, populate_existing=True)
        if message is None or message.deleted or not message.is_pending:
            raise NotFoundError(PENDING_NOT_FOUND)
        holder = self.current_holder(message_id)
        if holder is not None and holder != actor_id:
            raise ConflictError(f"Message is held by moderator {holder}")
        raise ConflictError("Message changed while the decision was applied")

    # ------------------------------------------------------------------
    # Holds
    # ------------------------------------------------------------------

    def hold(self, message: ChatMessage, actor_id: int) -> ModerationOutcome:
        """Claim the message for ``actor_id``; re-holding your own hold is a no-op."""
        self._require_pending(message)
        with transaction(self.db):
            refreshed = self.db.execute(
                update(ChatMessageHold)
                .where(
                    ChatMessageHold.message_id == message.id,
                    ChatMessageHold.moderator_id == actor_id,
                )
                .values(held_at=utcnow())
            )
            if refreshed.rowcount == 0:
                holder = self.current_holder(message.id)
                if holder is not None:
                    raise ConflictError(f"Message is held by moderator {holder}")
                self.db.add(ChatMessageHold(message_id=message.id, moderator_id=actor_id))
                try:
                    self.db.flush()
                except IntegrityError as err:
                    # Another moderator inserted between our check and our insert.
                    raise ConflictError("Message is held by another moderator") from err

        logger.info("Message %s held by moderator %s", message.id, actor_id)
        return ModerationOutcome(message.id, ModerationAction.HOLD, held_by=actor_id)

    def release(self, message: ChatMessage, actor_id: int) -> ModerationOutcome:
        """Drop whatever hold exists on the message, whoever owns it."""
        with transaction(self.db):
            previous = self.current_holder(message.id)
            self.db.execute(delete(ChatMessageHold).where(ChatMessageHold.message_id == message.id))

        if previous is not None and previous != actor_id:
            logger.info(
                "Message %s released by moderator %s (was held by %s)",
                message.id,
                actor_id,
                previous,
            )
        else:
            logger.info("Message %s released by moderator %s", message.id, actor_id)
        return ModerationOutcome(message.id, ModerationAction.RELEASE, changed=previous is not None)

    def _clear_holds(self, message_ids: list[int]) -> None:
        self.db.execute(delete(ChatMessageHold).where(ChatMessageHold.message_id.in_(message_ids)))

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    def approve(self, message: ChatMessage, actor_id: int, all_future: bool = False) -> ModerationOutcome:
        """Approve a Pending message.

        With ``all_future`` the author is also exempted from review for
        messages they post from now on.
        """
        self._require_pending(message)
        message_id, room_id, author_id = message.id, message.room_id, message.author_id

        with transaction(self.db):
            result = self.db.execute(
                update(ChatMessage)
                .where(ChatMessage.id == message_id, *_pending(), _not_held_by_other(actor_id))
                .values(review_required=False, reviewed_by=actor_id)
            )
            if result.rowcount == 0:
                self._diagnose(message_id, actor_id)

            cascaded = self._cascade_modmail(room_id, message_id, actor_id)
            self.recompute_counts(room_id)
            self._clear_holds([message_id])

            if all_future:
                self.db.execute(
                    update(User)
                    .where(User.id == author_id)
                    .values(chat_mod_status=ChatModStatus.UNMODERATED.value)
                )

        action = ModerationAction.APPROVE_ALL_FUTURE if all_future else ModerationAction.APPROVE
        logger.info(
            "Message %s approved by moderator %s (cascaded=%s, all_future=%s)",
            message_id,
            actor_id,
            cascaded,
            all_future,
        )
        return ModerationOutcome(message_id, action, cascaded_ids=cascaded, recounted_room_ids=[room_id])

    def reject(self, message: ChatMessage, actor_id: int, reason: str | None = None) -> ModerationOutcome:
        """Reject a Pending message and every recent identical copy of it."""
        self._require_pending(message)
        message_id, room_id, text = message.id, message.room_id, message.text

        with transaction(self.db):
            result = self.db.execute(
                update(ChatMessage)
                .where(ChatMessage.id == message_id, *_pending(), _not_held_by_other(actor_id))
                .values(
                    review_required=False,
                    review_rejected=True,
                    reviewed_by=actor_id,
                    reject_reason=reason,
                )
            )
            if result.rowcount == 0:
                self._diagnose(message_id, actor_id)

            cascaded = self._cascade_modmail(room_id, message_id, actor_id)
            duplicates = self._sweep_flood(message_id, text, actor_id, reason)

            touched = sorted({room_id, *(dup_room for _, dup_room in duplicates)})
            for touched_room in touched:
                self.recompute_counts(touched_room)
            self._clear_holds([message_id, *(dup_id for dup_id, _ in duplicates)])

        logger.info(
            "Message %s rejected by moderator %s (duplicates=%d, rooms=%s)",
            message_id,
            actor_id,
            len(duplicates),
            touched,
        )
        return ModerationOutcome(
            message_id,
            ModerationAction.REJECT,
            cascaded_ids=cascaded + [dup_id for dup_id, _ in duplicates],
            recounted_room_ids=touched,
        )

    def redact(self, message: ChatMessage, actor_id: int) -> ModerationOutcome:
        """Strip email addresses from a Pending message's text."""
        self._require_pending(message)
        original = message.text
        cleaned = redact_emails(original)

        if cleaned == original:
            holder = self.current_holder(message.id)
            if holder is not None and holder != actor_id:
                raise ConflictError(f"Message is held by moderator {holder}")
            return ModerationOutcome(message.id, ModerationAction.REDACT, changed=False)

        with transaction(self.db):
            result = self.db.execute(
                update(ChatMessage)
                .where(
                    ChatMessage.id == message.id,
                    ChatMessage.text == original,
                    *_pending(),
                    _not_held_by_other(actor_id),
                )
                .values(text=cleaned)
            )
            if result.rowcount == 0:
                self._diagnose(message.id, actor_id)

        logger.info("Message %s redacted by moderator %s", message.id, actor_id)
        return ModerationOutcome(message.id, ModerationAction.REDACT)

    def _cascade_modmail(self, room_id: int, after_id: int, actor_id: int) -> list[int]:
        """Approve later Pending ModMail in the room along with its trigger."""
        ids = list(
            self.db.scalars(
                select(ChatMessage.id).where(
                    ChatMessage.room_id == room_id,
                    ChatMessage.id > after_id,
                    ChatMessage.kind == MessageKind.MODMAIL.value,
                    ChatMessage.deleted.is_(False),
                    *_pending(),
                )
            )
        )
        if ids:
            self.db.execute(
                update(ChatMessage)
                .where(ChatMessage.id.in_(ids), *_pending())
                .values(review_required=False, reviewed_by=actor_id)
            )
        return ids

    def _sweep_flood(
        self,
        message_id: int,
        text: str,
        actor_id: int,
        reason: str | None,
    ) -> list[tuple[int, int]]:
        """Reject Pending copies of ``text`` posted inside the flood window.

        Returns:
            ``(message_id, room_id)`` for every message swept.
        """
        cutoff = utcnow() - timedelta(hours=settings.review_flood_window_hours)
        rows = self.db.execute(
            select(ChatMessage.id, ChatMessage.room_id).where(
                ChatMessage.id != message_id,
                ChatMessage.text == text,
                ChatMessage.created_at >= cutoff,
                ChatMessage.deleted.is_(False),
                *_pending(),
            )
        ).all()
        duplicates = [(row.id, row.room_id) for row in rows]
        if duplicates:
            self.db.execute(
                update(ChatMessage)
                .where(ChatMessage.id.in_([dup_id for dup_id, _ in duplicates]), *_pending())
                .values(
                    review_required=False,
                    review_rejected=True,
                    reviewed_by=actor_id,
                    reject_reason=reason,
                )
            )
        return duplicates

    def recompute_counts(self, room_id: int) -> tuple[int, int]:
        return recompute_room_counts(self.db, room_id)
