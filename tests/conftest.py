"""
Pytest configuration and fixtures.

This file is automatically loaded by pytest and provides
shared fixtures for all tests.
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from matchroom.db.gateway import SqlGateway
from matchroom.db.models import Base, Venue
from matchroom.records import MatchRecord, MatchSide


@pytest.fixture(scope="session")
def test_engine():
    """
    Create a test database engine.

    Uses SQLite in-memory for fast tests that don't need
    PostgreSQL-specific features.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
    )
    return engine


@pytest.fixture(scope="session")
def tables(test_engine):
    """
    Create all tables for testing.

    This fixture runs once per test session.
    """
    Base.metadata.create_all(test_engine)
    yield
    Base.metadata.drop_all(test_engine)


@pytest.fixture
def db_session(test_engine, tables):
    """
    Create a database session for a test.

    Each test gets its own session with automatic rollback,
    ensuring tests don't affect each other.
    """
    connection = test_engine.connect()
    transaction = connection.begin()

    Session = sessionmaker(bind=connection)
    session = Session()

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def gateway(db_session):
    """SqlGateway on the per-test session."""
    return SqlGateway(db_session)


@pytest.fixture
def make_venue(db_session):
    """Factory inserting a venue row."""
    def _make(venue_id="room-1", sport="pingpong", name="Main Room", mode="office", k_factor=32):
        venue = Venue(id=venue_id, sport=sport, name=name, mode=mode, k_factor=k_factor, season_history=[])
        db_session.add(venue)
        db_session.flush()
        return venue
    return _make


@pytest.fixture
def make_match():
    """Factory building a MatchRecord with sensible defaults."""
    def _make(
        match_id,
        p1="alice",
        p2="bob",
        s1=11,
        s2=5,
        timestamp="2025-06-03T12:00:00Z",
        venue_id="room-1",
        is_ranked=True,
        sport="pingpong",
        names=None,
    ):
        names = names or {}
        return MatchRecord(
            id=match_id,
            timestamp=timestamp,
            venue_id=venue_id,
            player1=MatchSide(p1, names.get(p1, (p1 or "").title()), s1, "left"),
            player2=MatchSide(p2, names.get(p2, (p2 or "").title()), s2, "right"),
            is_ranked=is_ranked,
            sport=sport,
        )
    return _make
