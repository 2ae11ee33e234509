# tests/services/test_roster.py
"""Tests for presence and read watermarks."""

import pytest

from swapchat.core.errors import InvalidArgumentError
from swapchat.models import ChatMessage
from swapchat.models.enums import ChatType, RosterStatus
from swapchat.services.roster import RosterManager


@pytest.fixture()
def direct_room(make_user, make_room):
    alice = make_user()
    bob = make_user()
    return make_room(ChatType.USER2USER, alice, bob), alice, bob


def test_watermark_only_rises_without_allow_back(db_session, direct_room) -> None:
    room, alice, _ = direct_room
    roster = RosterManager(db_session)

    assert roster.advance_watermark(room.id, alice.id, 10) == 10
    assert roster.advance_watermark(room.id, alice.id, 5) == 10
    assert roster.last_seen(room.id, alice.id) == 10
    assert roster.advance_watermark(room.id, alice.id, 12) == 12


def test_watermark_moves_back_with_allow_back(db_session, direct_room) -> None:
    room, alice, _ = direct_room
    roster = RosterManager(db_session)

    roster.advance_watermark(room.id, alice.id, 10)
    assert roster.advance_watermark(room.id, alice.id, 3, allow_back=True) == 3


def test_closed_never_downgrades_blocked(db_session, direct_room) -> None:
    room, alice, _ = direct_room
    roster = RosterManager(db_session)

    roster.upsert_presence(room, alice.id, RosterStatus.BLOCKED)
    entry = roster.upsert_presence(room, alice.id, RosterStatus.CLOSED)
    assert entry.status == RosterStatus.BLOCKED.value

    entry = roster.upsert_presence(room, alice.id, RosterStatus.ONLINE)
    assert entry.status == RosterStatus.ONLINE.value
    entry = roster.upsert_presence(room, alice.id, RosterStatus.CLOSED)
    assert entry.status == RosterStatus.CLOSED.value


def test_missing_status_defaults_to_online(db_session, make_user, make_room) -> None:
    alice = make_user()
    bob = make_user()
    room = make_room(ChatType.USER2USER, alice, bob, roster=False)

    entry = RosterManager(db_session).upsert_presence(room, alice.id, None, "10.0.0.1")

    assert entry.status == RosterStatus.ONLINE.value
    assert entry.last_known_address == "10.0.0.1"


def test_unknown_status_is_invalid(db_session, direct_room) -> None:
    room, alice, _ = direct_room

    with pytest.raises(InvalidArgumentError):
        RosterManager(db_session).upsert_presence(room, alice.id, "Dancing")


def test_seen_by_all_follows_the_slowest_reader(db_session, direct_room, make_message) -> None:
    room, alice, bob = direct_room
    first = make_message(room, alice, "one")
    second = make_message(room, alice, "two")
    roster = RosterManager(db_session)

    roster.advance_watermark(room.id, bob.id, first.id)
    db_session.commit()
    db_session.refresh(first)
    db_session.refresh(second)

    # Alice authored both, so only Bob's watermark matters.
    assert first.seen_by_all is True
    assert second.seen_by_all is False


def test_seen_by_all_is_never_reset(db_session, direct_room, make_message) -> None:
    room, alice, bob = direct_room
    message = make_message(room, alice, "hello")
    roster = RosterManager(db_session)

    roster.advance_watermark(room.id, bob.id, message.id)
    roster.advance_watermark(room.id, bob.id, 0, allow_back=True)
    db_session.commit()

    stored = db_session.get(ChatMessage, message.id, populate_existing=True)
    assert stored.seen_by_all is True


def test_unseen_count_only_counts_valid_messages_from_others(db_session, direct_room, make_message) -> None:
    room, alice, bob = direct_room
    make_message(room, alice, "mine")
    seen = make_message(room, bob, "first")
    make_message(room, bob, "second")
    make_message(room, bob, "held back", pending=True)
    make_message(room, bob, "failed", processing_successful=False)
    make_message(room, bob, "removed", deleted=True)
    roster = RosterManager(db_session)

    assert roster.unseen_count(room.id, alice.id) == 2

    roster.advance_watermark(room.id, alice.id, seen.id)
    assert roster.unseen_count(room.id, alice.id) == 1


def test_update_presence_returns_roster_and_unseen(db_session, direct_room, make_message) -> None:
    room, alice, bob = direct_room
    message = make_message(room, bob, "hi")

    entries, unseen = RosterManager(db_session).update_presence(
        room,
        alice.id,
        RosterStatus.AWAY,
        "192.0.2.7",
        watermark=message.id,
    )

    by_user = {entry.user_id: entry for entry in entries}
    assert by_user[alice.id].status == RosterStatus.AWAY.value
    assert by_user[alice.id].last_message_seen == message.id
    assert by_user[bob.id].status == RosterStatus.ONLINE.value
    assert unseen == 0
