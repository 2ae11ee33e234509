# src/swapchat/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .messages import router as messages_router
from .moderation import router as moderation_router
from .review import router as review_router
from .rooms import router as rooms_router

__all__ = [
    "messages_router",
    "moderation_router",
    "review_router",
    "rooms_router",
]
