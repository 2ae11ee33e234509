# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import datetime
from itertools import count
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

os.environ.setdefault("PYTEST_RUNNING", "true")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from swapchat.core.security import create_access_token
from swapchat.db.session import Base, get_db, get_session_factory
from swapchat.db.time import utcnow
from swapchat.main import app as fastapi_app
from swapchat.models import ChatMessage, ChatRoom, Group, Membership, RosterEntry, User
from swapchat.models.enums import ChatType, MembershipRole, MessageKind, RosterStatus

_NAME_COUNTER = count(1)


@pytest.fixture()
def engine(tmp_path) -> Generator[Engine, None, None]:
    # A file database so that the aggregation's worker threads, each with its
    # own connection, see what the test committed.
    engine = create_engine(
        f"sqlite:///{tmp_path / 'swapchat-test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(
    app: FastAPI,
    db_session: Session,
    session_factory: sessionmaker[Session],
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db] = _get_session_override
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    try:
        yield
    finally:
        app.dependency_overrides.pop(get_db, None)
        app.dependency_overrides.pop(get_session_factory, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def auth_headers() -> Callable[[User], dict[str, str]]:
    def _auth_headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _auth_headers


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    def _make_user(**overrides: Any) -> User:
        n = next(_NAME_COUNTER)
        values: dict[str, Any] = {"firstname": f"User{n}", "lastname": "Tester"}
        values.update(overrides)
        user = User(**values)
        db_session.add(user)
        db_session.commit()
        return user

    return _make_user


@pytest.fixture()
def make_group(db_session: Session) -> Callable[..., Group]:
    def _make_group(name_short: str | None = None, **overrides: Any) -> Group:
        group = Group(name_short=name_short or f"group{next(_NAME_COUNTER)}", **overrides)
        db_session.add(group)
        db_session.commit()
        return group

    return _make_group


@pytest.fixture()
def add_member(db_session: Session) -> Callable[..., Membership]:
    def _add_member(user: User, group: Group, role: MembershipRole = MembershipRole.MEMBER) -> Membership:
        membership = Membership(user_id=user.id, group_id=group.id, role=role.value)
        db_session.add(membership)
        db_session.commit()
        return membership

    return _add_member


@pytest.fixture()
def make_room(db_session: Session) -> Callable[..., ChatRoom]:
    def _make_room(
        chat_type: ChatType = ChatType.USER2USER,
        user1: User | None = None,
        user2: User | None = None,
        group: Group | None = None,
        latest_activity_at: datetime | None = None,
        roster: bool = True,
    ) -> ChatRoom:
        room = ChatRoom(
            chat_type=chat_type.value,
            user1_id=user1.id if user1 else None,
            user2_id=user2.id if user2 else None,
            group_id=group.id if group else None,
            latest_activity_at=latest_activity_at or utcnow(),
        )
        db_session.add(room)
        db_session.flush()
        if roster:
            for user in (user1, user2):
                if user is not None:
                    db_session.add(
                        RosterEntry(room_id=room.id, user_id=user.id, status=RosterStatus.ONLINE.value)
                    )
        db_session.commit()
        return room

    return _make_room


@pytest.fixture()
def make_message(db_session: Session) -> Callable[..., ChatMessage]:
    def _make_message(
        room: ChatRoom,
        author: User,
        text: str = "Is this still available?",
        pending: bool = False,
        kind: MessageKind = MessageKind.DEFAULT,
        **overrides: Any,
    ) -> ChatMessage:
        created_at = overrides.pop("created_at", None) or utcnow()
        message = ChatMessage(
            room_id=room.id,
            author_id=author.id,
            text=text,
            kind=kind.value,
            review_required=pending,
            created_at=created_at,
            **overrides,
        )
        db_session.add(message)
        db_session.commit()
        return message

    return _make_message


@pytest.fixture()
def moderated_group(
    make_user: Callable[..., User],
    make_group: Callable[..., Group],
    add_member: Callable[..., Membership],
) -> dict[str, Any]:
    """A group with one moderator and two members who chat directly."""
    group = make_group("Townsville", name_full="Townsville Freegle")
    moderator = make_user(firstname="Mia", lastname="Moderator")
    alice = make_user(firstname="Alice", lastname="Giver")
    bob = make_user(firstname="Bob", lastname="Taker")
    add_member(moderator, group, MembershipRole.MODERATOR)
    add_member(alice, group)
    add_member(bob, group)
    return {"group": group, "moderator": moderator, "alice": alice, "bob": bob}
