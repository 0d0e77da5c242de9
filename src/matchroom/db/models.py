"""
SQLAlchemy ORM models for Matchroom.

The store is document-shaped: each row carries a few indexed key columns
plus JSON payloads that mirror the domain documents (match sides with their
rating annotations, bracket documents, season records). Everything is scoped
by activity (``sport``).

Tables:
- venues: Rooms with their rating rules and season history
- venue_members: Per-venue rating state of a participant
- matches: Recorded games with rating annotations
- participant_ratings: Global rating state per participant and activity
- tournaments: Bracket documents
- season_records: Finalized seasons per venue
- achievements: Season placements awarded to participants
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


# =============================================================================
# Venue Models
# =============================================================================

class Venue(Base):
    """
    A room where matches are played.

    ``mode`` and ``k_factor`` drive venue rating deltas. ``season_history``
    holds finalized season records (newest last) and is reset by a full
    rebuild.
    """
    __tablename__ = "venues"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    sport: Mapped[str] = mapped_column(String(20), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    mode: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)  # 'office', 'professional', 'arcade'
    k_factor: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    season_history: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    members: Mapped[list["VenueMember"]] = relationship(
        back_populates="venue", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_venues_sport", "sport"),
    )

    def __repr__(self) -> str:
        return f"<Venue(id='{self.id}', sport='{self.sport}', mode='{self.mode}')>"


class VenueMember(Base):
    """Rating state of one participant inside one venue."""
    __tablename__ = "venue_members"

    id: Mapped[int] = mapped_column(primary_key=True)
    venue_id: Mapped[str] = mapped_column(ForeignKey("venues.id", ondelete="CASCADE"), nullable=False)
    participant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    rating: Mapped[float] = mapped_column(Float, nullable=False)
    wins: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    losses: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    matches_played: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    venue: Mapped["Venue"] = relationship(back_populates="members")

    __table_args__ = (
        UniqueConstraint("venue_id", "participant_id", name="uq_venue_member"),
    )

    def __repr__(self) -> str:
        return f"<VenueMember(venue='{self.venue_id}', participant='{self.participant_id}', rating={self.rating})>"


# =============================================================================
# Match Models
# =============================================================================

class Match(Base):
    """
    One recorded game.

    ``timestamp`` keeps the value as recorded (ISO, epoch or locale string);
    rebuilds rewrite it to canonical ISO. ``player1`` and
    ``player2`` hold the side documents with rating annotations.
    """
    __tablename__ = "matches"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    sport: Mapped[str] = mapped_column(String(20), nullable=False)
    venue_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    timestamp: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    player1_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    player2_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    player1: Mapped[dict] = mapped_column(JSONType, nullable=False)
    player2: Mapped[dict] = mapped_column(JSONType, nullable=False)

    is_ranked: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    winner_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    winner_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_matches_sport", "sport"),
        Index("idx_matches_sport_venue", "sport", "venue_id"),
    )

    def __repr__(self) -> str:
        return f"<Match(id='{self.id}', sport='{self.sport}', venue='{self.venue_id}')>"


# =============================================================================
# Rating Models
# =============================================================================

class ParticipantRating(Base):
    """Global rating state of one participant within one activity."""
    __tablename__ = "participant_ratings"

    id: Mapped[int] = mapped_column(primary_key=True)
    participant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    sport: Mapped[str] = mapped_column(String(20), nullable=False)

    global_rating: Mapped[float] = mapped_column(Float, nullable=False)
    wins: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    losses: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # [{"timestamp": iso, "rating": float}, ...] oldest first
    rating_history: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (
        UniqueConstraint("participant_id", "sport", name="uq_participant_rating_sport"),
    )

    def __repr__(self) -> str:
        return f"<ParticipantRating(participant='{self.participant_id}', sport='{self.sport}', rating={self.global_rating})>"


# =============================================================================
# Tournament Models
# =============================================================================

class TournamentBracket(Base):
    """A tournament and its whole bracket document (last write wins)."""
    __tablename__ = "tournaments"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    sport: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    stage: Mapped[str] = mapped_column(String(20), nullable=False)
    bracket: Mapped[dict] = mapped_column(JSONType, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<TournamentBracket(id='{self.id}', stage='{self.stage}')>"


# =============================================================================
# Season Models
# =============================================================================

class SeasonRecordRow(Base):
    """A finalized season of one venue."""
    __tablename__ = "season_records"

    id: Mapped[int] = mapped_column(primary_key=True)
    venue_id: Mapped[str] = mapped_column(ForeignKey("venues.id", ondelete="CASCADE"), nullable=False)
    sport: Mapped[str] = mapped_column(String(20), nullable=False)
    date_finished: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    record: Mapped[dict] = mapped_column(JSONType, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_season_records_venue", "venue_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<SeasonRecordRow(venue='{self.venue_id}', finished='{self.date_finished}')>"


class Achievement(Base):
    """A season placement awarded to a participant."""
    __tablename__ = "achievements"

    id: Mapped[int] = mapped_column(primary_key=True)
    participant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    sport: Mapped[str] = mapped_column(String(20), nullable=False)
    venue_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    kind: Mapped[str] = mapped_column(String(30), nullable=False, default="seasonFinish")
    place: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    details: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_achievements_participant", "participant_id", "sport"),
    )

    def __repr__(self) -> str:
        return f"<Achievement(participant='{self.participant_id}', kind='{self.kind}', place={self.place})>"
