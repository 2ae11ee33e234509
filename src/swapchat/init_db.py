# src/swapchat/init_db.py
"""Create the chat tables directly, for local development without Alembic."""

import logging

from swapchat.core.settings import settings
from swapchat.db.session import create_tables

logger = logging.getLogger(__name__)


def init_db() -> None:
    """Initialize the database by creating all tables."""
    create_tables()


if __name__ == "__main__":
    logging.basicConfig(level=settings.log_level.upper())
    init_db()
    logger.info("Database initialized at %s", settings.database_url)
