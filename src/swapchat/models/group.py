"""SQLAlchemy models for groups and group membership."""
from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from swapchat.db.session import Base
from swapchat.models.enums import MembershipRole


class Group(Base):
    """Local community group whose volunteers moderate chat."""

    __tablename__ = "community_group"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name_short: Mapped[str] = mapped_column(Text, nullable=False)
    name_full: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)


class Membership(Base):
    """Join table mapping users into groups with a role."""

    __tablename__ = "membership"

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        primary_key=True,
    )
    group_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("community_group.id", ondelete="CASCADE"),
        primary_key=True,
    )
    role: Mapped[str] = mapped_column(String(16), nullable=False, default=MembershipRole.MEMBER.value)
