"""SQLAlchemy model for platform users as seen by the chat subsystem."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from swapchat.db.session import Base
from swapchat.db.time import utcnow
from swapchat.models.enums import ChatModStatus


class User(Base):
    """Platform user.

    Accounts are owned by the wider platform; chat only reads names and
    images, and flips ``chat_mod_status`` when a moderator exempts a user
    from review.
    """

    __tablename__ = "user_account"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    firstname: Mapped[str | None] = mapped_column(Text, nullable=True)
    lastname: Mapped[str | None] = mapped_column(Text, nullable=True)
    fullname: Mapped[str | None] = mapped_column(Text, nullable=True)
    profile_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    chat_mod_status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=ChatModStatus.MODERATED.value,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def display_name(self) -> str:
        """Full name if set, otherwise first and last name."""
        if self.fullname:
            return self.fullname
        return f"{self.firstname or ''} {self.lastname or ''}".strip()
