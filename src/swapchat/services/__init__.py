# src/swapchat/services/__init__.py
"""Business logic services for the SwapChat application."""

from .aggregation import AggregationService
from .engagement import EngagementTracker
from .events import NudgeEventSink
from .membership import MembershipDirectory
from .messages import MessageService
from .moderation import ModerationAction, ModerationEngine
from .review_queue import ReviewQueue
from .rooms import RoomStore
from .roster import RosterManager

__all__ = [
    "AggregationService",
    "EngagementTracker",
    "MembershipDirectory",
    "MessageService",
    "ModerationAction",
    "ModerationEngine",
    "NudgeEventSink",
    "ReviewQueue",
    "RoomStore",
    "RosterManager",
]
