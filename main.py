"""
Application entrypoint.

Creates the database tables for the configured DATABASE_URL.
"""
import logging

from moderator.core.config import settings
from moderator.db.session import create_tables

logger = logging.getLogger(__name__)


def main() -> None:
    """Initialize the database."""
    logger.info(f"Starting {settings.PROJECT_NAME}...")
    create_tables()
    logger.info("Database ready")


if __name__ == "__main__":
    main()
