"""
Pytest configuration and fixtures.

This file is automatically loaded by pytest and provides
shared fixtures for all tests.
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from foosrank.db import PlayerRepository, init_db, make_session_factory
from foosrank.players.store import PlayerStore


@pytest.fixture
def test_engine():
    """
    Create a test database engine.

    Uses SQLite in-memory. StaticPool keeps a single connection, so every
    session the repository opens sees the same database.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return make_session_factory(test_engine)


@pytest.fixture
def repository(session_factory):
    return PlayerRepository(session_factory)


@pytest.fixture
def store(repository):
    """Empty player store writing through to the in-memory database."""
    return PlayerStore.load(repository, lock_timeout=1.0)
