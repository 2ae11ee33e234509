# src/swapchat/services/aggregation.py
"""Room list composition.

A room list needs four independent reads per page (unseen counts, last
messages, watermarks and names). Each runs on its own session in a worker
thread; the results are joined under one shared deadline.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import and_, false, func, or_, select
from sqlalchemy.orm import Session, aliased, sessionmaker

from swapchat.core.errors import InvalidArgumentError, UnavailableError
from swapchat.core.settings import settings
from swapchat.db.time import utcnow
from swapchat.models import ChatMessage, ChatRoom, Group, RosterEntry, User
from swapchat.models.enums import GROUP_SCOPED_TYPES, ChatType, RosterStatus
from swapchat.services.membership import MembershipDirectory
from swapchat.services.rooms import RoomStore, room_display_name
from swapchat.services.roster import valid_message_clause
from swapchat.utils.pagination import clamp_limit, decode_room_cursor, encode_room_cursor
from swapchat.utils.text import snippet_for

logger = logging.getLogger(__name__)

# Lists a member sees by default.
DEFAULT_CHAT_TYPES = (ChatType.USER2USER, ChatType.USER2MOD)
MEMBER_FACING_TYPES = frozenset(DEFAULT_CHAT_TYPES)

HIDDEN_STATUSES = (RosterStatus.CLOSED.value, RosterStatus.BLOCKED.value)


@dataclass
class RoomRow:
    """A selected room, detached from any session."""

    id: int
    chat_type: str
    user1_id: int | None
    user2_id: int | None
    group_id: int | None
    latest_activity_at: datetime
    status: str | None = None
    message_hit: bool = False

    def as_room(self) -> ChatRoom:
        return ChatRoom(
            id=self.id,
            chat_type=self.chat_type,
            user1_id=self.user1_id,
            user2_id=self.user2_id,
            group_id=self.group_id,
            latest_activity_at=self.latest_activity_at,
        )

    @property
    def participant_ids(self) -> list[int]:
        return [uid for uid in (self.user1_id, self.user2_id) if uid]


@dataclass
class LastMessage:
    id: int
    created_at: datetime
    kind: str
    text: str
    ref_item_type: str | None


@dataclass
class RoomSummary:
    """One row of a room list, as seen by the caller."""

    id: int
    chat_type: str
    name: str
    icon: str
    unseen: int = 0
    reply_expected: int = 0
    last_message_id: int | None = None
    last_message_at: datetime | None = None
    last_message_kind: str | None = None
    snippet: str = ""
    last_seen: int | None = None
    other_user_id: int | None = None
    group_id: int | None = None
    participants: list[int] = field(default_factory=list)
    status: str | None = None
    latest_activity_at: datetime | None = None


@dataclass
class RoomPage:
    items: list[RoomSummary] = field(default_factory=list)
    next_cursor: str | None = None


def _parse_chat_types(chat_types: Sequence[ChatType | str] | None) -> list[ChatType]:
    if not chat_types:
        return list(DEFAULT_CHAT_TYPES)
    try:
        return [ChatType(t) for t in chat_types]
    except ValueError as err:
        raise InvalidArgumentError(f"Unknown chat type in {list(chat_types)}") from err


# ----------------------------------------------------------------------
# Reads. Each takes its own session and returns plain data.
# ----------------------------------------------------------------------


def select_rooms(
    db: Session,
    caller_id: int,
    chat_types: Sequence[ChatType],
    *,
    since: datetime | None = None,
    search: str | None = None,
    include_closed: bool = False,
    cursor: tuple[datetime, int] | None = None,
    limit: int | None = None,
) -> list[RoomRow]:
    """Pick the rooms a caller's list shows, most recently active first."""
    membership = MembershipDirectory(db)
    moderated = membership.moderated_group_ids(caller_id)
    member_of = membership.member_group_ids(caller_id)
    is_participant = or_(ChatRoom.user1_id == caller_id, ChatRoom.user2_id == caller_id)

    scopes = []
    for chat_type in chat_types:
        of_type = ChatRoom.chat_type == chat_type.value
        match chat_type:
            case ChatType.USER2USER:
                scopes.append(and_(of_type, is_participant))
            case ChatType.USER2MOD:
                scopes.append(and_(of_type, or_(ChatRoom.user1_id == caller_id, ChatRoom.group_id.in_(moderated))))
            case ChatType.MOD2MOD:
                scopes.append(and_(of_type, or_(is_participant, ChatRoom.group_id.in_(moderated))))
            case ChatType.GROUP:
                scopes.append(and_(of_type, ChatRoom.group_id.in_(member_of)))
    if not scopes:
        return []

    mine = aliased(RosterEntry)
    message_hit: Any = false()
    conditions = [or_(*scopes)]

    if search:
        pattern = f"%{search}%"
        message_hit = (
            select(ChatMessage.id)
            .where(
                ChatMessage.room_id == ChatRoom.id,
                ChatMessage.deleted.is_(False),
                or_(ChatMessage.author_id == caller_id, valid_message_clause()),
                ChatMessage.text.ilike(pattern),
            )
            .correlate(ChatRoom)
            .exists()
        )
        name_hit = (
            select(User.id)
            .where(
                or_(User.id == ChatRoom.user1_id, User.id == ChatRoom.user2_id),
                User.id != caller_id,
                or_(
                    User.fullname.ilike(pattern),
                    User.firstname.ilike(pattern),
                    User.lastname.ilike(pattern),
                ),
            )
            .correlate(ChatRoom)
            .exists()
        )
        group_hit = (
            select(Group.id)
            .where(
                Group.id == ChatRoom.group_id,
                or_(Group.name_short.ilike(pattern), Group.name_full.ilike(pattern)),
            )
            .correlate(ChatRoom)
            .exists()
        )
        conditions.append(or_(message_hit, name_hit, group_hit))
    elif since is not None:
        conditions.append(ChatRoom.latest_activity_at >= since)

    if not include_closed:
        conditions.append(or_(mine.status.is_(None), mine.status.not_in(HIDDEN_STATUSES)))

    if cursor is not None:
        stamp, room_id = cursor
        conditions.append(
            or_(
                ChatRoom.latest_activity_at < stamp,
                and_(ChatRoom.latest_activity_at == stamp, ChatRoom.id < room_id),
            )
        )

    stmt = (
        select(
            ChatRoom.id,
            ChatRoom.chat_type,
            ChatRoom.user1_id,
            ChatRoom.user2_id,
            ChatRoom.group_id,
            ChatRoom.latest_activity_at,
            mine.status,
            message_hit.label("message_hit"),
        )
        .outerjoin(mine, and_(mine.room_id == ChatRoom.id, mine.user_id == caller_id))
        .where(*conditions)
        .order_by(ChatRoom.latest_activity_at.desc(), ChatRoom.id.desc())
    )
    if limit is not None:
        stmt = stmt.limit(limit)

    return [
        RoomRow(
            id=row.id,
            chat_type=row.chat_type,
            user1_id=row.user1_id,
            user2_id=row.user2_id,
            group_id=row.group_id,
            latest_activity_at=row.latest_activity_at,
            status=row.status,
            message_hit=bool(row.message_hit),
        )
        for row in db.execute(stmt)
    ]


def select_visible_room(db: Session, room_id: int, caller_id: int) -> RoomRow:
    """Load one room for its detail view; closed rooms are included."""
    room = RoomStore(db).require_visible(room_id, caller_id)
    status = db.scalar(
        select(RosterEntry.status).where(RosterEntry.room_id == room.id, RosterEntry.user_id == caller_id)
    )
    return RoomRow(
        id=room.id,
        chat_type=room.chat_type,
        user1_id=room.user1_id,
        user2_id=room.user2_id,
        group_id=room.group_id,
        latest_activity_at=room.latest_activity_at,
        status=status,
    )


def read_unseen_counts(db: Session, caller_id: int, room_ids: list[int]) -> dict[int, tuple[int, int]]:
    """Unseen and awaiting-reply counts per room."""
    watermark = (
        select(RosterEntry.last_message_seen)
        .where(RosterEntry.room_id == ChatMessage.room_id, RosterEntry.user_id == caller_id)
        .correlate(ChatMessage)
        .scalar_subquery()
    )
    unseen = dict(
        db.execute(
            select(ChatMessage.room_id, func.count(ChatMessage.id))
            .where(
                ChatMessage.room_id.in_(room_ids),
                ChatMessage.author_id != caller_id,
                ChatMessage.deleted.is_(False),
                ChatMessage.id > func.coalesce(watermark, 0),
                valid_message_clause(),
            )
            .group_by(ChatMessage.room_id)
        ).all()
    )
    awaiting = dict(
        db.execute(
            select(ChatMessage.room_id, func.count(ChatMessage.id))
            .where(
                ChatMessage.room_id.in_(room_ids),
                ChatMessage.author_id != caller_id,
                ChatMessage.deleted.is_(False),
                ChatMessage.reply_expected.is_(True),
                ChatMessage.reply_received.is_(False),
                ChatMessage.processing_successful.is_(True),
            )
            .group_by(ChatMessage.room_id)
        ).all()
    )
    return {room_id: (unseen.get(room_id, 0), awaiting.get(room_id, 0)) for room_id in room_ids}


def read_last_messages(db: Session, caller_id: int, room_ids: list[int]) -> dict[int, LastMessage]:
    """Newest message per room that the caller can see."""
    visible = or_(valid_message_clause(), ChatMessage.author_id == caller_id)
    newest = (
        select(func.max(ChatMessage.id))
        .where(
            ChatMessage.room_id.in_(room_ids),
            ChatMessage.deleted.is_(False),
            ChatMessage.review_rejected.is_(False),
            visible,
        )
        .group_by(ChatMessage.room_id)
    )
    rows = db.execute(
        select(
            ChatMessage.id,
            ChatMessage.room_id,
            ChatMessage.created_at,
            ChatMessage.kind,
            ChatMessage.text,
            ChatMessage.ref_item_type,
        ).where(ChatMessage.id.in_(newest))
    )
    return {
        row.room_id: LastMessage(row.id, row.created_at, row.kind, row.text, row.ref_item_type)
        for row in rows
    }


def read_watermarks(db: Session, caller_id: int, room_ids: list[int]) -> dict[int, int | None]:
    stmt = select(RosterEntry.room_id, RosterEntry.last_message_seen).where(
        RosterEntry.room_id.in_(room_ids),
        RosterEntry.user_id == caller_id,
    )
    return dict(db.execute(stmt).all())


def read_names(db: Session, caller_id: int, rows: list[RoomRow]) -> dict[int, tuple[str, str]]:
    """Display name and icon per room."""
    group_ids = {row.group_id for row in rows if row.group_id}
    user_ids = {uid for row in rows for uid in row.participant_ids}
    groups = {g.id: g for g in db.scalars(select(Group).where(Group.id.in_(group_ids)))} if group_ids else {}
    users = {u.id: u for u in db.scalars(select(User).where(User.id.in_(user_ids)))} if user_ids else {}

    resolved = {}
    for row in rows:
        room = row.as_room()
        name = room_display_name(room, caller_id, groups, users)
        if row.chat_type in GROUP_SCOPED_TYPES:
            group = groups.get(row.group_id) if row.group_id else None
            icon = group.image_url if group is not None and group.image_url else None
        else:
            other = users.get(room.other_participant(caller_id) or 0)
            icon = other.profile_image_url if other is not None and other.deleted_at is None else None
        resolved[row.id] = (name, icon or settings.default_icon)
    return resolved


class AggregationService:
    """Read-only composition of room lists and room detail."""

    def __init__(self, session_factory: sessionmaker[Session], timeout: float | None = None) -> None:
        self.session_factory = session_factory
        self.timeout = timeout if timeout is not None else settings.aggregation_timeout_seconds

    def _read(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        with self.session_factory() as db:
            return fn(db, *args, **kwargs)

    async def _gather(self, *calls: tuple[Callable[..., Any], ...]) -> list[Any]:
        """Run reads concurrently, each on its own session, under one deadline."""
        try:
            async with asyncio.timeout(self.timeout):
                return await asyncio.gather(
                    *(asyncio.to_thread(self._read, fn, *args) for fn, *args in calls)
                )
        except TimeoutError as err:
            logger.warning("Room aggregation exceeded %.1fs", self.timeout)
            raise UnavailableError("Room data did not load in time") from err

    async def _compose(self, caller_id: int, rows: list[RoomRow], search: str | None = None) -> list[RoomSummary]:
        if not rows:
            return []
        room_ids = [row.id for row in rows]
        counts, last_messages, watermarks, names = await self._gather(
            (read_unseen_counts, caller_id, room_ids),
            (read_last_messages, caller_id, room_ids),
            (read_watermarks, caller_id, room_ids),
            (read_names, caller_id, rows),
        )

        summaries = []
        for row in rows:
            name, icon = names[row.id]
            unseen, reply_expected = counts.get(row.id, (0, 0))
            last = last_messages.get(row.id)
            summary = RoomSummary(
                id=row.id,
                chat_type=row.chat_type,
                name=name,
                icon=icon,
                unseen=unseen,
                reply_expected=reply_expected,
                last_seen=watermarks.get(row.id),
                other_user_id=row.as_room().other_participant(caller_id),
                group_id=row.group_id,
                participants=row.participant_ids,
                status=row.status,
                latest_activity_at=row.latest_activity_at,
            )
            if last is not None:
                summary.last_message_id = last.id
                summary.last_message_at = last.created_at
                summary.last_message_kind = last.kind
                summary.snippet = snippet_for(last.kind, last.text, last.ref_item_type, settings.snippet_length)
            if search and row.message_hit:
                summary.snippet = f"...contains '{search}'"
            summaries.append(summary)
        return summaries

    async def list_rooms(
        self,
        caller_id: int,
        chat_types: Sequence[ChatType | str] | None = None,
        search: str | None = None,
        age_days: int | None = None,
        include_closed: bool = False,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> RoomPage:
        """Return one page of the caller's rooms.

        Args:
            caller_id: Whose list this is.
            chat_types: Room types to include; members' types by default.
            search: Match message text, participant names or group names.
                Searching ignores the activity window.
            age_days: Activity window. Defaults to the member window for
                member-facing lists and the moderator window otherwise.
            include_closed: Also show rooms the caller closed or blocked.
            cursor: Opaque cursor from the previous page.
            limit: Page size.
        """
        types = _parse_chat_types(chat_types)
        if age_days is None or age_days <= 0:
            member_only = set(types) <= MEMBER_FACING_TYPES
            age_days = settings.user_chat_active_days if member_only else settings.mod_chat_active_days
        since = utcnow() - timedelta(days=age_days)
        position = decode_room_cursor(cursor) if cursor else None
        limit = clamp_limit(limit, settings.room_page_size, settings.max_page_size)

        (rows,) = await self._gather(
            (
                _select_page,
                caller_id,
                types,
                since,
                search or None,
                include_closed,
                position,
                limit + 1,
            ),
        )
        has_more = len(rows) > limit
        rows = rows[:limit]

        items = await self._compose(caller_id, rows, search)
        next_cursor = None
        if has_more and rows:
            last = rows[-1]
            next_cursor = encode_room_cursor(last.latest_activity_at, last.id)
        logger.debug("Listed %d rooms for user %s", len(items), caller_id)
        return RoomPage(items=items, next_cursor=next_cursor)

    async def room_detail(self, room_id: int, caller_id: int) -> RoomSummary:
        """Single-room view; raises NotFound or Forbidden like the room store."""
        (row,) = await self._gather((select_visible_room, room_id, caller_id))
        (summary,) = await self._compose(caller_id, [row])
        return summary

    async def count_unseen(self, caller_id: int, chat_types: Sequence[ChatType | str] | None = None) -> int:
        """Total unseen messages across the caller's open rooms."""
        types = _parse_chat_types(chat_types)
        (total,) = await self._gather((_total_unseen, caller_id, types))
        return total


def _select_page(
    db: Session,
    caller_id: int,
    types: list[ChatType],
    since: datetime,
    search: str | None,
    include_closed: bool,
    position: tuple[datetime, int] | None,
    limit: int,
) -> list[RoomRow]:
    return select_rooms(
        db,
        caller_id,
        types,
        since=since,
        search=search,
        include_closed=include_closed,
        cursor=position,
        limit=limit,
    )


def _total_unseen(db: Session, caller_id: int, types: list[ChatType]) -> int:
    rows = select_rooms(db, caller_id, types)
    if not rows:
        return 0
    counts = read_unseen_counts(db, caller_id, [row.id for row in rows])
    return sum(unseen for unseen, _ in counts.values())
