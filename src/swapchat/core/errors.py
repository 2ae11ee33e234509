"""Error taxonomy shared by the chat services and the API layer.

Services raise these exceptions; the FastAPI exception handlers installed in
``swapchat.main`` turn them into the error envelope.
"""

from __future__ import annotations

from fastapi import status


class ChatError(RuntimeError):
    """Base exception for failures surfaced to the caller."""

    kind = "Internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail or self.kind)
        self.detail = detail or self.kind


class UnauthenticatedError(ChatError):
    """No resolvable caller identity where one is required."""

    kind = "Unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(ChatError):
    """Caller lacks participant or moderator standing."""

    kind = "Forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ChatError):
    """Room or message absent, or not in a state the operation accepts."""

    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ChatError):
    """Message is held by a different moderator."""

    kind = "Conflict"
    status_code = status.HTTP_409_CONFLICT


class InvalidArgumentError(ChatError):
    """Missing or malformed required field, or unknown action name."""

    kind = "InvalidArgument"
    status_code = status.HTTP_400_BAD_REQUEST


class UnavailableError(ChatError):
    """A fanned-out read did not finish before the request deadline."""

    kind = "Unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


__all__ = [
    "ChatError",
    "ConflictError",
    "ForbiddenError",
    "InvalidArgumentError",
    "NotFoundError",
    "UnauthenticatedError",
    "UnavailableError",
]
