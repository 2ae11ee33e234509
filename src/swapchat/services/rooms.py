# src/swapchat/services/rooms.py
"""Room identity, participants and visibility."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from swapchat.core.errors import ForbiddenError, InvalidArgumentError, NotFoundError
from swapchat.db.session import transaction
from swapchat.db.time import utcnow
from swapchat.models import ChatRoom, Group, RosterEntry, User
from swapchat.models.enums import GROUP_SCOPED_TYPES, ChatType, RosterStatus
from swapchat.services.membership import MembershipDirectory
from swapchat.utils.text import strip_group_suffix

logger = logging.getLogger(__name__)


def user_display_name(user: User | None, user_id: int | None) -> str:
    """Name shown for the other participant of a direct room."""
    if user is None:
        return ""
    if user.deleted_at is not None:
        return f"Deleted User #{user_id}"
    return strip_group_suffix(user.display_name)


def room_display_name(
    room: ChatRoom,
    perspective_user_id: int,
    groups: Mapping[int, Group],
    users: Mapping[int, User],
) -> str:
    """Compute a room's display name from preloaded groups and users.

    User2Mod rooms are named after the group's volunteers, Mod2Mod rooms after
    its moderators; everything else after the other participant.
    """
    group = groups.get(room.group_id) if room.group_id else None
    if room.chat_type == ChatType.USER2MOD:
        if group is None:
            return ""
        name = group.name_full or group.name_short
        return f"{name} Volunteers" if name else ""
    if room.chat_type == ChatType.MOD2MOD:
        if group is None or not group.name_short:
            return ""
        return f"{group.name_short} Mods"
    other_id = room.other_participant(perspective_user_id)
    return user_display_name(users.get(other_id) if other_id else None, other_id)


class RoomStore:
    """Owns room identity, participants, type and visibility."""

    def __init__(self, db: Session, membership: MembershipDirectory | None = None) -> None:
        self.db = db
        self.membership = membership or MembershipDirectory(db)

    def get(self, room_id: int) -> ChatRoom:
        """Return a room or raise NotFound."""
        room = self.db.get(ChatRoom, room_id)
        if room is None:
            raise NotFoundError("Chat not found")
        return room

    def find_direct_room(self, user_a: int, user_b: int) -> ChatRoom | None:
        stmt = (
            select(ChatRoom)
            .where(
                ChatRoom.chat_type == ChatType.USER2USER.value,
                or_(
                    and_(ChatRoom.user1_id == user_a, ChatRoom.user2_id == user_b),
                    and_(ChatRoom.user1_id == user_b, ChatRoom.user2_id == user_a),
                ),
            )
            .order_by(ChatRoom.id)
            .limit(1)
        )
        return self.db.scalars(stmt).first()

    def resolve_or_create_direct_room(self, user_a: int, user_b: int) -> tuple[ChatRoom, bool]:
        """Return the User2User room between two users, creating it if needed.

        Returns:
            The room and whether it was created by this call.

        Raises:
            InvalidArgumentError: If both users are the same.
            NotFoundError: If the other user does not exist.
        """
        if user_a == user_b:
            raise InvalidArgumentError("Cannot create a chat with yourself")

        other = self.db.get(User, user_b)
        if other is None or other.deleted_at is not None:
            raise NotFoundError("User not found")

        existing = self.find_direct_room(user_a, user_b)
        if existing is not None:
            return existing, False

        with transaction(self.db):
            now = utcnow()
            room = ChatRoom(
                chat_type=ChatType.USER2USER.value,
                user1_id=user_a,
                user2_id=user_b,
                latest_activity_at=now,
            )
            self.db.add(room)
            self.db.flush()
            for uid in (user_a, user_b):
                self.db.add(
                    RosterEntry(
                        room_id=room.id,
                        user_id=uid,
                        status=RosterStatus.ONLINE.value,
                        updated_at=now,
                    )
                )

        logger.info("Opened direct room %s between %s and %s", room.id, user_a, user_b)
        return room, True

    def visibility_check(self, caller_id: int, room: ChatRoom) -> bool:
        """Return whether ``caller_id`` may read or act on ``room``."""
        if caller_id in room.participant_ids:
            return True
        if not room.group_id or room.chat_type not in GROUP_SCOPED_TYPES:
            return False
        # Group rooms are open to the whole group, the others to its moderators.
        if room.chat_type == ChatType.GROUP:
            return self.membership.is_member_of(caller_id, room.group_id)
        return self.membership.is_moderator_of(caller_id, room.group_id)

    def require_visible(self, room_id: int, caller_id: int) -> ChatRoom:
        """Return the room if the caller can see it.

        Raises:
            NotFoundError: If the room does not exist.
            ForbiddenError: If the caller fails the visibility check.
        """
        room = self.get(room_id)
        if not self.visibility_check(caller_id, room):
            raise ForbiddenError("Permission denied")
        return room

    def require_participant(self, room_id: int, caller_id: int) -> ChatRoom:
        """Return the room if the caller is one of its named participants."""
        room = self.get(room_id)
        if caller_id not in room.participant_ids:
            raise ForbiddenError("Not a member of this chat")
        return room

    def associated_group_ids(self, room: ChatRoom) -> set[int]:
        """Groups whose moderators have authority over ``room``.

        Group-scoped rooms answer to their owning group; direct rooms to every
        group either participant belongs to.
        """
        if room.chat_type in GROUP_SCOPED_TYPES:
            return {room.group_id} if room.group_id else set()
        return self.membership.group_ids_for(room.participant_ids)

    def display_name(self, room: ChatRoom, perspective_user_id: int) -> str:
        """Return the name ``perspective_user_id`` sees for ``room``."""
        groups: dict[int, Group] = {}
        users: dict[int, User] = {}
        if room.group_id:
            group = self.db.get(Group, room.group_id)
            if group is not None:
                groups[group.id] = group
        other_id = room.other_participant(perspective_user_id)
        if other_id:
            other = self.db.get(User, other_id)
            if other is not None:
                users[other.id] = other
        return room_display_name(room, perspective_user_id, groups, users)
