"""
Database module for Matchroom.

Provides SQLAlchemy ORM models, session management and the persistence
gateway the services use.

Usage:
    from matchroom.db import get_session, SqlGateway

    with get_session() as session:
        matches = SqlGateway(session).matches_for_activity("pingpong")
"""

from matchroom.db.models import (
    Base,
    Venue,
    VenueMember,
    Match,
    ParticipantRating,
    TournamentBracket,
    SeasonRecordRow,
    Achievement,
)
from matchroom.db.session import get_session, get_engine, SessionLocal
from matchroom.db.gateway import PersistenceGateway, SqlGateway, VenueInfo

__all__ = [
    # Base
    "Base",
    # Models
    "Venue",
    "VenueMember",
    "Match",
    "ParticipantRating",
    "TournamentBracket",
    "SeasonRecordRow",
    "Achievement",
    # Session
    "get_session",
    "get_engine",
    "SessionLocal",
    # Gateway
    "PersistenceGateway",
    "SqlGateway",
    "VenueInfo",
]
