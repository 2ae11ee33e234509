# tests/services/test_review_queue.py
"""Tests for the pending-review listing."""

from swapchat.db.time import utcnow
from swapchat.models import ChatMessageHold
from swapchat.models.enums import ChatType
from swapchat.services.review_queue import ReviewQueue


def test_moderator_without_groups_gets_empty_page(db_session, make_user) -> None:
    nobody = make_user()

    page = ReviewQueue(db_session).list_pending(nobody.id)

    assert page.items == []
    assert page.next_cursor is None


def test_scope_and_order(
    db_session,
    moderated_group,
    make_user,
    make_group,
    add_member,
    make_room,
    make_message,
) -> None:
    group = moderated_group["group"]
    moderator = moderated_group["moderator"]
    alice = moderated_group["alice"]
    outsider = make_user()
    elsewhere = make_group("Elsewhere")
    stranger = make_user()
    add_member(stranger, elsewhere)

    # Direct room where one participant belongs to the moderator's group.
    direct = make_room(ChatType.USER2USER, alice, outsider)
    first = make_message(direct, outsider, "spam?", pending=True)
    # Group-scoped room owned by the moderator's group.
    volunteers = make_room(ChatType.USER2MOD, alice, group=group)
    second = make_message(volunteers, alice, "help", pending=True)
    # Not in scope: neither participant is in the moderator's groups.
    foreign = make_room(ChatType.USER2USER, stranger, outsider)
    make_message(foreign, stranger, "not yours", pending=True)
    # Not pending.
    make_message(direct, alice, "fine")
    make_message(direct, alice, "rejected", review_rejected=True)
    make_message(direct, alice, "gone", pending=True, deleted=True)

    page = ReviewQueue(db_session).list_pending(moderator.id)

    assert [item.id for item in page.items] == [first.id, second.id]
    assert page.next_cursor == second.id
    assert page.items[0].room.chat_type == ChatType.USER2USER
    assert page.items[1].room.name == "Townsville Freegle Volunteers"


def test_messages_from_deleted_authors_are_skipped(db_session, moderated_group, make_user, make_room, make_message) -> None:
    alice = moderated_group["alice"]
    gone = make_user(deleted_at=utcnow())
    room = make_room(ChatType.USER2USER, alice, gone)
    make_message(room, gone, "left behind", pending=True)

    page = ReviewQueue(db_session).list_pending(moderated_group["moderator"].id)

    assert page.items == []


def test_cursor_pagination(db_session, moderated_group, make_room, make_message) -> None:
    alice = moderated_group["alice"]
    bob = moderated_group["bob"]
    room = make_room(ChatType.USER2USER, alice, bob)
    ids = [make_message(room, bob, f"message {n}", pending=True).id for n in range(5)]
    queue = ReviewQueue(db_session)
    moderator_id = moderated_group["moderator"].id

    first = queue.list_pending(moderator_id, limit=2)
    second = queue.list_pending(moderator_id, cursor=first.next_cursor, limit=2)
    third = queue.list_pending(moderator_id, cursor=second.next_cursor, limit=2)

    assert [i.id for i in first.items] == ids[:2]
    assert [i.id for i in second.items] == ids[2:4]
    assert [i.id for i in third.items] == ids[4:]


def test_items_report_the_holder(db_session, moderated_group, make_room, make_message) -> None:
    alice = moderated_group["alice"]
    bob = moderated_group["bob"]
    moderator = moderated_group["moderator"]
    room = make_room(ChatType.USER2USER, alice, bob)
    message = make_message(room, bob, "check me", pending=True)
    db_session.add(ChatMessageHold(message_id=message.id, moderator_id=moderator.id))
    db_session.commit()

    (item,) = ReviewQueue(db_session).list_pending(moderator.id).items

    assert item.held_by == moderator.id
    # Seen from outside the room, a direct room is named after its first participant.
    assert item.room.name == "Alice Giver"


def test_member_role_is_not_moderation_authority(db_session, moderated_group, make_room, make_message) -> None:
    alice = moderated_group["alice"]
    bob = moderated_group["bob"]
    room = make_room(ChatType.USER2USER, alice, bob)
    make_message(room, bob, "pending", pending=True)

    assert ReviewQueue(db_session).list_pending(alice.id).items == []
