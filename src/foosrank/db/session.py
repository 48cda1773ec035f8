"""
Database session management for Foosrank.

Provides the SQLAlchemy engine and session factory. Uses the settings from
config.py. SQLite is the default backend; its connections are shared
between the event loop thread and FastAPI's worker threads, so the
same-thread check is disabled for it.

Usage:
    from foosrank.db import get_session

    with get_session() as session:
        record = session.get(PlayerRecord, 12345)
        # Commits automatically on exit, rolls back on exception
"""

from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from foosrank.config import settings
from foosrank.db.models import Base


def get_engine(database_url: Optional[str] = None) -> Engine:
    """
    Create a SQLAlchemy engine.

    The engine is configured with:
    - Echo mode tied to LOG_LEVEL=DEBUG
    - Pre-ping to verify connections before use (handles stale connections)
    """
    url = database_url or settings.database_url
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    return create_engine(
        url,
        connect_args=connect_args,
        pool_pre_ping=True,
        echo=settings.log_level == "DEBUG",
    )


# Create the engine lazily (singleton pattern via module-level variable)
_engine: Optional[Engine] = None


def _get_engine() -> Engine:
    """Get or create the singleton engine instance."""
    global _engine
    if _engine is None:
        _engine = get_engine()
    return _engine


def make_session_factory(engine: Optional[Engine] = None) -> sessionmaker:
    """Session factory bound to the given engine (default: the singleton)."""
    return sessionmaker(
        bind=engine or _get_engine(),
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


def init_db(engine: Optional[Engine] = None) -> None:
    """Create missing tables. Alembic manages migrations of existing databases."""
    Base.metadata.create_all(engine or _get_engine())


@contextmanager
def get_session(factory: Optional[sessionmaker] = None) -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Automatically commits on successful exit, rolls back on exception.

    Raises:
        Any exception from the database operation (after rollback)
    """
    session = (factory or make_session_factory())()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
