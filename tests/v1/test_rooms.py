# tests/v1/test_rooms.py
"""Tests for room endpoints."""

from fastapi import status

from swapchat.models.enums import ChatType


def test_requests_without_identity_are_rejected(client) -> None:
    response = client.get("/api/v1/rooms")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {
        "result": "error",
        "error": {"kind": "Unauthenticated", "detail": "Not logged in"},
    }

    response = client.get("/api/v1/rooms", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_open_direct_room_is_idempotent(client, auth_headers, moderated_group) -> None:
    alice, bob = moderated_group["alice"], moderated_group["bob"]

    first = client.put("/api/v1/rooms", json={"user_id": bob.id}, headers=auth_headers(alice))
    assert first.status_code == status.HTTP_200_OK
    assert first.json()["data"]["created"] is True

    # Either side resolves to the same room.
    second = client.put("/api/v1/rooms", json={"user_id": alice.id}, headers=auth_headers(bob))
    assert second.json()["data"] == {"id": first.json()["data"]["id"], "created": False}


def test_open_direct_room_errors(client, auth_headers, moderated_group) -> None:
    alice = moderated_group["alice"]

    response = client.put("/api/v1/rooms", json={"user_id": alice.id}, headers=auth_headers(alice))
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"]["kind"] == "InvalidArgument"

    response = client.put("/api/v1/rooms", json={"user_id": 99999}, headers=auth_headers(alice))
    assert response.status_code == status.HTTP_404_NOT_FOUND

    response = client.put("/api/v1/rooms", json={}, headers=auth_headers(alice))
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_list_and_detail(client, auth_headers, moderated_group, make_room, make_message, make_user) -> None:
    alice, bob = moderated_group["alice"], moderated_group["bob"]
    room = make_room(ChatType.USER2USER, alice, bob)
    make_message(room, bob, "Still available?")

    listing = client.get("/api/v1/rooms", headers=auth_headers(alice))
    assert listing.status_code == status.HTTP_200_OK
    body = listing.json()
    assert body["result"] == "success"
    (item,) = body["data"]["items"]
    assert item["id"] == room.id
    assert item["name"] == "Bob Taker"
    assert item["unseen"] == 1
    assert item["snippet"] == "Still available?"

    detail = client.get(f"/api/v1/rooms/{room.id}", headers=auth_headers(alice))
    assert detail.json()["data"]["chat_type"] == "User2User"

    outsider = make_user()
    assert client.get(f"/api/v1/rooms/{room.id}", headers=auth_headers(outsider)).status_code == 403
    assert client.get("/api/v1/rooms/424242", headers=auth_headers(alice)).status_code == 404


def test_list_rejects_unknown_chat_type(client, auth_headers, moderated_group) -> None:
    response = client.get(
        "/api/v1/rooms",
        params={"chat_types": "Party"},
        headers=auth_headers(moderated_group["alice"]),
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_roster_update_moves_watermark(client, auth_headers, moderated_group, make_room, make_message) -> None:
    alice, bob = moderated_group["alice"], moderated_group["bob"]
    room = make_room(ChatType.USER2USER, alice, bob)
    make_message(room, bob, "one")
    latest = make_message(room, bob, "two")

    unseen = client.get("/api/v1/rooms/unseen", headers=auth_headers(alice))
    assert unseen.json()["data"] == {"count": 2}

    response = client.post(
        f"/api/v1/rooms/{room.id}/roster",
        json={"status": "Away", "last_message_seen": latest.id},
        headers=auth_headers(alice),
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()["data"]
    assert data["unseen"] == 0
    mine = next(member for member in data["roster"] if member["user_id"] == alice.id)
    assert mine == {"user_id": alice.id, "status": "Away", "last_message_seen": latest.id}

    assert client.get("/api/v1/rooms/unseen", headers=auth_headers(alice)).json()["data"] == {"count": 0}


def test_roster_update_rejects_unknown_status(client, auth_headers, moderated_group, make_room) -> None:
    alice = moderated_group["alice"]
    room = make_room(ChatType.USER2USER, alice, moderated_group["bob"])

    response = client.post(
        f"/api/v1/rooms/{room.id}/roster",
        json={"status": "Dancing"},
        headers=auth_headers(alice),
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"]["kind"] == "InvalidArgument"


def test_nudge_and_typing(client, auth_headers, moderated_group, make_room) -> None:
    alice, bob = moderated_group["alice"], moderated_group["bob"]
    room = make_room(ChatType.USER2USER, alice, bob)

    first = client.post(f"/api/v1/rooms/{room.id}/nudge", headers=auth_headers(alice))
    again = client.post(f"/api/v1/rooms/{room.id}/nudge", headers=auth_headers(alice))
    assert first.status_code == status.HTTP_200_OK
    assert first.json()["data"]["message_id"] == again.json()["data"]["message_id"]

    typing = client.post(f"/api/v1/rooms/{room.id}/typing", headers=auth_headers(alice))
    assert typing.status_code == status.HTTP_200_OK
    assert typing.json()["data"]["bumped"] == 1

    moderator = moderated_group["moderator"]
    assert client.post(f"/api/v1/rooms/{room.id}/nudge", headers=auth_headers(moderator)).status_code == 403
