"""Models describing chat rooms and their per-user roster."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from swapchat.db.session import Base
from swapchat.db.time import utcnow
from swapchat.models.enums import ChatType, RosterStatus


class ChatRoom(Base):
    """Conversation container.

    User2User and Mod2Mod rooms name up to two participants; User2Mod and
    Group rooms are owned by a group (for User2Mod, ``user1_id`` is the member
    who contacted the group).
    """

    __tablename__ = "chat_room"
    __table_args__ = (
        Index("ix_chat_room_users", "user1_id", "user2_id", "chat_type"),
        Index("ix_chat_room_group", "group_id", "chat_type"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    chat_type: Mapped[str] = mapped_column(String(16), nullable=False, default=ChatType.USER2USER.value)
    user1_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("user_account.id"), nullable=True)
    user2_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("user_account.id"), nullable=True)
    group_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("community_group.id"), nullable=True)
    latest_activity_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    # Denormalised; recomputed by the moderation engine after review transitions.
    valid_message_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    invalid_message_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    @property
    def participant_ids(self) -> list[int]:
        return [uid for uid in (self.user1_id, self.user2_id) if uid]

    def other_participant(self, user_id: int) -> int | None:
        """Return the participant that is not ``user_id``."""
        if self.user1_id == user_id:
            return self.user2_id
        return self.user1_id


class RosterEntry(Base):
    """Presence and read watermark of one user in one room."""

    __tablename__ = "chat_roster"

    room_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("chat_room.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        primary_key=True,
    )
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=RosterStatus.ONLINE.value)
    # Highest message id the user has read; NULL until the first read.
    last_message_seen: Mapped[int | None] = mapped_column(Integer, nullable=True)
    last_typing_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_known_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
