"""
Database engine and session module.
"""
import logging
import sqlite3
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from moderator.core.config import settings
from moderator.db.tracking import TrackedSession

logger = logging.getLogger(__name__)

Base = declarative_base()


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE clauses unless foreign keys are switched on
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    connect_args={"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {},
)

SessionLocal = sessionmaker(class_=TrackedSession, autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    Yield a database session and close it afterwards.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind=None) -> None:
    """
    Create all tables registered on Base.metadata.

    Args:
        bind: Engine or connection to use, defaults to the application engine
    """
    # Registers every model and wires the associations
    import moderator.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables created")
