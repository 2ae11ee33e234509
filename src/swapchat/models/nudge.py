"""Analytics record of nudges between users."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from swapchat.db.session import Base
from swapchat.db.time import utcnow


class UserNudge(Base):
    """One nudge sent from one user to another."""

    __tablename__ = "user_nudge"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    from_user_id: Mapped[int] = mapped_column(Integer, ForeignKey("user_account.id"), nullable=False)
    to_user_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("user_account.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
