"""Models for chat messages and moderator holds."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from swapchat.db.session import Base
from swapchat.db.time import utcnow
from swapchat.models.enums import MessageKind


class ChatMessage(Base):
    """Message posted into a room.

    Review state lives in two flags:

    ========  ===============  ===============
    state     review_required  review_rejected
    ========  ===============  ===============
    Pending   True             False
    Approved  False            False
    Rejected  False            True
    ========  ===============  ===============

    Messages are never hard-deleted; ``deleted`` is a soft-delete flag.
    """

    __tablename__ = "chat_message"
    __table_args__ = (
        Index("ix_chat_message_room", "room_id", "id"),
        Index("ix_chat_message_review", "review_required", "review_rejected", "id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    room_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("chat_room.id", ondelete="CASCADE"),
        nullable=False,
    )
    author_id: Mapped[int] = mapped_column(Integer, ForeignKey("user_account.id"), nullable=False)
    kind: Mapped[str] = mapped_column(String(16), nullable=False, default=MessageKind.DEFAULT.value)
    text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    review_required: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    review_rejected: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    processing_successful: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    reviewed_by: Mapped[int | None] = mapped_column(Integer, ForeignKey("user_account.id"), nullable=True)
    reject_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    seen_by_all: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    mailed_to_all: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    reply_expected: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    reply_received: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Offer/Wanted for Completed messages; only used to word the snippet.
    ref_item_type: Mapped[str | None] = mapped_column(String(16), nullable=True)

    @property
    def is_pending(self) -> bool:
        return self.review_required and not self.review_rejected

    @property
    def is_valid(self) -> bool:
        return (
            not self.review_required
            and not self.review_rejected
            and self.processing_successful
        )


class ChatMessageHold(Base):
    """Exclusive claim on a message by one moderator."""

    __tablename__ = "chat_message_hold"

    # One hold per message; the primary key is what makes acquisition exclusive.
    message_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("chat_message.id", ondelete="CASCADE"),
        primary_key=True,
    )
    moderator_id: Mapped[int] = mapped_column(Integer, ForeignKey("user_account.id"), nullable=False)
    held_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
