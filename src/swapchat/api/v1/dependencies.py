"""Shared API dependencies for authentication and service construction."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session, sessionmaker

from swapchat.core.errors import UnauthenticatedError
from swapchat.core.security import decode_user_id
from swapchat.db.session import get_db, get_session_factory
from swapchat.services import (
    AggregationService,
    EngagementTracker,
    MessageService,
    ModerationEngine,
    ReviewQueue,
    RoomStore,
    RosterManager,
)

# Anonymous callers are allowed through; endpoints that need an identity
# depend on ``get_caller_id``.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]
SessionFactoryDep = Annotated[sessionmaker[Session], Depends(get_session_factory)]


def get_optional_caller_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> int | None:
    """Return the caller's user id, or None for anonymous requests."""
    if credentials is None:
        return None
    return decode_user_id(credentials.credentials)


def get_caller_id(
    caller_id: Annotated[int | None, Depends(get_optional_caller_id)],
) -> int:
    """Return the caller's user id.

    Raises:
        UnauthenticatedError: If no valid bearer token was presented.
    """
    if caller_id is None:
        raise UnauthenticatedError("Not logged in")
    return caller_id


# Type alias for current caller dependency
CallerDep = Annotated[int, Depends(get_caller_id)]


def get_room_store(db: SessionDep) -> RoomStore:
    return RoomStore(db)


def get_roster_manager(db: SessionDep) -> RosterManager:
    return RosterManager(db)


def get_review_queue(db: SessionDep) -> ReviewQueue:
    return ReviewQueue(db)


def get_moderation_engine(db: SessionDep) -> ModerationEngine:
    return ModerationEngine(db)


def get_engagement_tracker(db: SessionDep) -> EngagementTracker:
    return EngagementTracker(db)


def get_message_service(db: SessionDep) -> MessageService:
    return MessageService(db)


def get_aggregation_service(session_factory: SessionFactoryDep) -> AggregationService:
    return AggregationService(session_factory)


RoomStoreDep = Annotated[RoomStore, Depends(get_room_store)]
RosterDep = Annotated[RosterManager, Depends(get_roster_manager)]
ReviewQueueDep = Annotated[ReviewQueue, Depends(get_review_queue)]
ModerationDep = Annotated[ModerationEngine, Depends(get_moderation_engine)]
EngagementDep = Annotated[EngagementTracker, Depends(get_engagement_tracker)]
MessagesDep = Annotated[MessageService, Depends(get_message_service)]
AggregationDep = Annotated[AggregationService, Depends(get_aggregation_service)]
