# src/swapchat/utils/text.py
"""Text helpers for chat display and redaction."""

from __future__ import annotations

import re

from swapchat.models.enums import MessageKind

EMAIL_PATTERN = re.compile(r"[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}")
EMAIL_PLACEHOLDER = "(email removed)"

# Partner-site members carry a "-g<digits>" suffix we never show.
_GROUP_SUFFIX = re.compile(r"^([\s\S]+?)-g[0-9]+$")

# Clients encode emoji as "\u....\u/" runs.
_ENCODED_EMOJI = re.compile(r"\\u.*?\\u/")

ITEM_TYPE_OFFER = "Offer"


def redact_emails(text: str) -> str:
    """Replace every email-address-shaped substring with a placeholder."""
    return EMAIL_PATTERN.sub(EMAIL_PLACEHOLDER, text)


def strip_group_suffix(name: str) -> str:
    return _GROUP_SUFFIX.sub(r"\1", name)


def split_emoji(text: str) -> str:
    """Drop encoded emoji runs unless nothing else would remain."""
    without = _ENCODED_EMOJI.sub("", text)
    return without if without else text


def snippet_for(kind: str, text: str, ref_item_type: str | None, length: int = 30) -> str:
    """Summarise a message for room lists.

    Args:
        kind: Message kind.
        text: Message body.
        ref_item_type: Offer/Wanted for Completed messages.
        length: Maximum length of free-text snippets.
    """
    match kind:
        case MessageKind.ADDRESS:
            return "Address sent"
        case MessageKind.NUDGE:
            return "Nudged"
        case MessageKind.COMPLETED:
            if ref_item_type == ITEM_TYPE_OFFER:
                return split_emoji(text)[:length] if text else "Item marked as TAKEN"
            return "Item marked as RECEIVED"
        case MessageKind.PROMISED:
            return "Item promised"
        case MessageKind.RENEGED:
            return "Promise cancelled"
        case MessageKind.IMAGE:
            return "Image"
        case _:
            return split_emoji(text or "")[:length]
