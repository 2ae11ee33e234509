# src/swapchat/services/membership.py
"""Group membership lookups used for moderation authority."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from swapchat.models import Membership
from swapchat.models.enums import MODERATOR_ROLES


class MembershipDirectory:
    """Answers "who moderates what" from the membership table."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def is_moderator_of(self, user_id: int, group_id: int) -> bool:
        """Return True if ``user_id`` is a moderator or owner of ``group_id``."""
        stmt = select(Membership.user_id).where(
            Membership.user_id == user_id,
            Membership.group_id == group_id,
            Membership.role.in_(MODERATOR_ROLES),
        )
        return self.db.execute(stmt).first() is not None

    def is_member_of(self, user_id: int, group_id: int) -> bool:
        """Return True if ``user_id`` belongs to ``group_id`` in any role."""
        stmt = select(Membership.user_id).where(
            Membership.user_id == user_id,
            Membership.group_id == group_id,
        )
        return self.db.execute(stmt).first() is not None

    def moderated_group_ids(self, user_id: int) -> list[int]:
        """Return the ids of every group ``user_id`` moderates."""
        stmt = select(Membership.group_id).where(
            Membership.user_id == user_id,
            Membership.role.in_(MODERATOR_ROLES),
        )
        return list(self.db.scalars(stmt))

    def group_ids_for(self, user_ids: list[int]) -> set[int]:
        """Return every group any of ``user_ids`` belongs to, whatever the role."""
        if not user_ids:
            return set()
        stmt = select(Membership.group_id).where(Membership.user_id.in_(user_ids))
        return set(self.db.scalars(stmt))

    def member_group_ids(self, user_id: int) -> list[int]:
        stmt = select(Membership.group_id).where(Membership.user_id == user_id)
        return list(self.db.scalars(stmt))
