# tests/services/test_rooms.py
"""Tests for room identity, visibility and display names."""

import pytest

from swapchat.core.errors import ForbiddenError, InvalidArgumentError, NotFoundError
from swapchat.db.time import utcnow
from swapchat.models import RosterEntry
from swapchat.models.enums import ChatType, MembershipRole, RosterStatus
from swapchat.services.rooms import RoomStore


def test_direct_room_resolves_in_either_order(db_session, make_user) -> None:
    alice = make_user()
    bob = make_user()
    store = RoomStore(db_session)

    room, created = store.resolve_or_create_direct_room(alice.id, bob.id)
    again, created_again = store.resolve_or_create_direct_room(bob.id, alice.id)

    assert created is True
    assert created_again is False
    assert again.id == room.id
    assert room.chat_type == ChatType.USER2USER


def test_new_direct_room_seeds_both_roster_entries(db_session, make_user) -> None:
    alice = make_user()
    bob = make_user()

    room, _ = RoomStore(db_session).resolve_or_create_direct_room(alice.id, bob.id)

    entries = db_session.query(RosterEntry).filter(RosterEntry.room_id == room.id).all()
    assert sorted(e.user_id for e in entries) == sorted([alice.id, bob.id])
    assert {e.status for e in entries} == {RosterStatus.ONLINE.value}


def test_direct_room_with_yourself_is_rejected(db_session, make_user) -> None:
    alice = make_user()

    with pytest.raises(InvalidArgumentError):
        RoomStore(db_session).resolve_or_create_direct_room(alice.id, alice.id)


def test_direct_room_with_unknown_or_deleted_user(db_session, make_user) -> None:
    alice = make_user()
    ghost = make_user(deleted_at=utcnow())
    store = RoomStore(db_session)

    with pytest.raises(NotFoundError):
        store.resolve_or_create_direct_room(alice.id, 999_999)
    with pytest.raises(NotFoundError):
        store.resolve_or_create_direct_room(alice.id, ghost.id)


def test_visibility(db_session, make_user, make_group, add_member, make_room) -> None:
    group = make_group()
    moderator = make_user()
    member = make_user()
    stranger = make_user()
    add_member(moderator, group, MembershipRole.MODERATOR)
    add_member(member, group)

    direct = make_room(ChatType.USER2USER, member, stranger)
    volunteers = make_room(ChatType.USER2MOD, member, group=group)
    store = RoomStore(db_session)

    assert store.visibility_check(member.id, direct)
    assert store.visibility_check(stranger.id, direct)
    # Moderators do not see into direct rooms through the room store.
    assert not store.visibility_check(moderator.id, direct)

    assert store.visibility_check(member.id, volunteers)
    assert store.visibility_check(moderator.id, volunteers)
    assert not store.visibility_check(stranger.id, volunteers)


def test_require_visible_errors(db_session, make_user, make_room) -> None:
    alice = make_user()
    bob = make_user()
    outsider = make_user()
    room = make_room(ChatType.USER2USER, alice, bob)
    store = RoomStore(db_session)

    with pytest.raises(NotFoundError):
        store.require_visible(123_456, alice.id)
    with pytest.raises(ForbiddenError):
        store.require_visible(room.id, outsider.id)
    assert store.require_visible(room.id, bob.id).id == room.id


def test_display_names(db_session, make_user, make_group, make_room) -> None:
    group = make_group("Town", name_full="Town Freegle")
    short_only = make_group("Village")
    alice = make_user(fullname="Alice Smith-g1234")
    bob = make_user(firstname="Bob", lastname="Jones")
    gone = make_user(firstname="Gone", deleted_at=utcnow())
    store = RoomStore(db_session)

    assert store.display_name(make_room(ChatType.USER2MOD, alice, group=group), alice.id) == "Town Freegle Volunteers"
    assert store.display_name(make_room(ChatType.USER2MOD, alice, group=short_only), alice.id) == "Village Volunteers"
    assert store.display_name(make_room(ChatType.MOD2MOD, alice, group=group), alice.id) == "Town Mods"

    direct = make_room(ChatType.USER2USER, alice, bob)
    assert store.display_name(direct, alice.id) == "Bob Jones"
    assert store.display_name(direct, bob.id) == "Alice Smith"

    deleted = make_room(ChatType.USER2USER, alice, gone)
    assert store.display_name(deleted, alice.id) == f"Deleted User #{gone.id}"


def test_associated_groups(db_session, make_user, make_group, add_member, make_room) -> None:
    first = make_group()
    second = make_group()
    alice = make_user()
    bob = make_user()
    add_member(alice, first)
    add_member(bob, second)
    store = RoomStore(db_session)

    direct = make_room(ChatType.USER2USER, alice, bob)
    volunteers = make_room(ChatType.USER2MOD, alice, group=second)

    assert store.associated_group_ids(direct) == {first.id, second.id}
    assert store.associated_group_ids(volunteers) == {second.id}


def test_group_rooms_are_open_to_group_members(db_session, make_user, make_group, add_member, make_room) -> None:
    group = make_group()
    member = make_user()
    outsider = make_user()
    add_member(member, group)
    room = make_room(ChatType.GROUP, group=group)
    store = RoomStore(db_session)

    assert store.require_visible(room.id, member.id).id == room.id
    with pytest.raises(ForbiddenError):
        store.require_visible(room.id, outsider.id)
