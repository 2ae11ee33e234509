# src/swapchat/models/__init__.py
"""SQLAlchemy models for the SwapChat service."""

from .group import Group, Membership
from .message import ChatMessage, ChatMessageHold
from .nudge import UserNudge
from .room import ChatRoom, RosterEntry
from .user import User

__all__ = [
    "ChatMessage", "ChatMessageHold",
    "ChatRoom", "RosterEntry",
    "Group", "Membership",
    "User",
    "UserNudge",
]
