"""Enumerations stored as plain strings in the chat tables."""

from enum import Enum


class ChatType(str, Enum):
    """Kinds of conversation a room can host."""

    USER2USER = "User2User"
    USER2MOD = "User2Mod"
    MOD2MOD = "Mod2Mod"
    GROUP = "Group"


# Rooms whose authority comes from an owning group rather than two users.
GROUP_SCOPED_TYPES = (ChatType.USER2MOD, ChatType.MOD2MOD, ChatType.GROUP)


class RosterStatus(str, Enum):
    """Presence recorded for a user in a room."""

    ONLINE = "Online"
    AWAY = "Away"
    TYPING = "Typing"
    BLOCKED = "Blocked"
    CLOSED = "Closed"


class MessageKind(str, Enum):
    """Chat message types."""

    DEFAULT = "Default"
    NUDGE = "Nudge"
    PROMISED = "Promised"
    RENEGED = "Reneged"
    COMPLETED = "Completed"
    ADDRESS = "Address"
    IMAGE = "Image"
    INTERESTED = "Interested"
    REPORTED_USER = "ReportedUser"
    MODMAIL = "ModMail"
    SYSTEM_NOTICE = "SystemNotice"


class MembershipRole(str, Enum):
    """Role a user holds in a group."""

    MEMBER = "Member"
    MODERATOR = "Moderator"
    OWNER = "Owner"


MODERATOR_ROLES = (MembershipRole.MODERATOR.value, MembershipRole.OWNER.value)


class ChatModStatus(str, Enum):
    """Whether a user's new chat messages enter the review queue."""

    MODERATED = "Moderated"
    UNMODERATED = "Unmoderated"
