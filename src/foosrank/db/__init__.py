"""
Database module for Foosrank.

Provides SQLAlchemy ORM models, session management and the player
repository used by the player store.

Usage:
    from foosrank.db import PlayerRepository, make_session_factory

    repository = PlayerRepository(make_session_factory())
    documents = repository.load_players()
"""

from foosrank.db.models import Base, PlayerImageRecord, PlayerRecord
from foosrank.db.repository import PlayerRepository
from foosrank.db.session import get_engine, get_session, init_db, make_session_factory

__all__ = [
    # Base
    "Base",
    # Models
    "PlayerRecord",
    "PlayerImageRecord",
    # Repository
    "PlayerRepository",
    # Session
    "get_engine",
    "get_session",
    "init_db",
    "make_session_factory",
]
