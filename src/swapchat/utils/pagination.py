# src/swapchat/utils/pagination.py
"""Opaque keyset cursors for room lists."""

from __future__ import annotations

import base64
import binascii
from datetime import datetime

from swapchat.core.errors import InvalidArgumentError


def encode_room_cursor(latest_activity_at: datetime, room_id: int) -> str:
    """Encode the sort key of the last room on a page."""
    raw = f"{latest_activity_at.isoformat()}|{room_id}".encode()
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


def decode_room_cursor(cursor: str) -> tuple[datetime, int]:
    """Decode a cursor produced by :func:`encode_room_cursor`.

    Raises:
        InvalidArgumentError: If the cursor was not produced by this service.
    """
    padding = "=" * (-len(cursor) % 4)
    try:
        raw = base64.urlsafe_b64decode(cursor + padding).decode()
        stamp, room_id = raw.rsplit("|", 1)
        return datetime.fromisoformat(stamp), int(room_id)
    except (binascii.Error, UnicodeDecodeError, ValueError) as err:
        raise InvalidArgumentError("Malformed cursor") from err


def clamp_limit(limit: int | None, default: int, maximum: int) -> int:
    """Fall back to ``default`` for missing or out-of-range page sizes."""
    if limit is None or limit <= 0 or limit > maximum:
        return default
    return limit
