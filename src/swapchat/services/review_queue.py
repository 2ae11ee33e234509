# src/swapchat/services/review_queue.py
"""Messages awaiting a moderation decision, scoped to a moderator's groups."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from swapchat.core.settings import settings
from swapchat.models import ChatMessage, ChatMessageHold, ChatRoom, Group, Membership, User
from swapchat.models.enums import GROUP_SCOPED_TYPES, ChatType
from swapchat.services.membership import MembershipDirectory
from swapchat.services.rooms import room_display_name
from swapchat.utils.pagination import clamp_limit


@dataclass
class ReviewRoomContext:
    """Enough of the room for a reviewer to act without another call."""

    id: int
    chat_type: str
    user1_id: int | None
    user2_id: int | None
    group_id: int | None
    name: str


@dataclass
class PendingReviewItem:
    id: int
    room_id: int
    author_id: int
    kind: str
    text: str
    created_at: datetime
    held_by: int | None
    room: ReviewRoomContext


@dataclass
class ReviewPage:
    items: list[PendingReviewItem] = field(default_factory=list)
    # Id of the last item; pass back as ``cursor`` for the next page.
    next_cursor: int | None = None


def _member_of_any(user_column, group_ids: list[int]):
    return (
        select(Membership.user_id)
        .where(Membership.user_id == user_column, Membership.group_id.in_(group_ids))
        .exists()
    )


class ReviewQueue:
    """Read-optimised view of Pending messages."""

    def __init__(self, db: Session, membership: MembershipDirectory | None = None) -> None:
        self.db = db
        self.membership = membership or MembershipDirectory(db)

    def list_pending(
        self,
        moderator_id: int,
        cursor: int | None = None,
        limit: int | None = None,
    ) -> ReviewPage:
        """Return Pending messages the moderator has authority over.

        Oldest first so the backlog is worked in arrival order.

        Args:
            moderator_id: The reviewing moderator.
            cursor: Id of the last message of the previous page.
            limit: Page size; clamped to the configured bounds.
        """
        group_ids = self.membership.moderated_group_ids(moderator_id)
        if not group_ids:
            return ReviewPage()

        limit = clamp_limit(limit, settings.review_page_size, settings.max_page_size)
        scoped_types = [t.value for t in GROUP_SCOPED_TYPES]

        in_scope = or_(
            and_(ChatRoom.chat_type.in_(scoped_types), ChatRoom.group_id.in_(group_ids)),
            and_(
                ChatRoom.chat_type == ChatType.USER2USER.value,
                or_(
                    _member_of_any(ChatRoom.user1_id, group_ids),
                    _member_of_any(ChatRoom.user2_id, group_ids),
                ),
            ),
        )

        stmt = (
            select(ChatMessage, ChatRoom, ChatMessageHold.moderator_id)
            .join(ChatRoom, ChatRoom.id == ChatMessage.room_id)
            .join(User, User.id == ChatMessage.author_id)
            .outerjoin(ChatMessageHold, ChatMessageHold.message_id == ChatMessage.id)
            .where(
                ChatMessage.review_required.is_(True),
                ChatMessage.review_rejected.is_(False),
                ChatMessage.deleted.is_(False),
                User.deleted_at.is_(None),
                in_scope,
            )
            .order_by(ChatMessage.id.asc())
            .limit(limit)
        )
        if cursor:
            stmt = stmt.where(ChatMessage.id > cursor)

        rows = self.db.execute(stmt).all()
        if not rows:
            return ReviewPage()

        rooms = {room.id: room for _, room, _ in rows}
        groups = self._load_groups({r.group_id for r in rooms.values() if r.group_id})
        users = self._load_users({uid for r in rooms.values() for uid in r.participant_ids})

        items = []
        for message, room, held_by in rows:
            items.append(
                PendingReviewItem(
                    id=message.id,
                    room_id=message.room_id,
                    author_id=message.author_id,
                    kind=message.kind,
                    text=message.text,
                    created_at=message.created_at,
                    held_by=held_by,
                    room=ReviewRoomContext(
                        id=room.id,
                        chat_type=room.chat_type,
                        user1_id=room.user1_id,
                        user2_id=room.user2_id,
                        group_id=room.group_id,
                        name=room_display_name(room, moderator_id, groups, users),
                    ),
                )
            )
        return ReviewPage(items=items, next_cursor=items[-1].id)

    def _load_groups(self, group_ids: set[int]) -> dict[int, Group]:
        if not group_ids:
            return {}
        return {g.id: g for g in self.db.scalars(select(Group).where(Group.id.in_(group_ids)))}

    def _load_users(self, user_ids: set[int]) -> dict[int, User]:
        if not user_ids:
            return {}
        return {u.id: u for u in self.db.scalars(select(User).where(User.id.in_(user_ids)))}
