"""
Persistence gateway.

The engines never talk to the database directly. Services take a
PersistenceGateway, which reads and writes domain objects and decides when
work is committed. SqlGateway implements it on a SQLAlchemy session.

Writes are staged in the session until ``commit()``, so a caller can group
them into atomic batches (the rebuild commits every N writes).
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Protocol

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from matchroom.dates import to_iso
from matchroom.db.models import (
    Achievement,
    Match,
    ParticipantRating,
    SeasonRecordRow,
    TournamentBracket,
    Venue,
    VenueMember,
)
from matchroom.elo.constants import DEFAULT_RATING, DEFAULT_VENUE_K
from matchroom.elo.replay import ParticipantStats, RatingPoint, VenueMemberStats, VenueRules
from matchroom.exceptions import NotFoundError
from matchroom.modes import RoomMode, parse_room_mode
from matchroom.records import MatchRecord
from matchroom.season import SeasonRecord
from matchroom.tournament.models import Bracket

logger = logging.getLogger(__name__)

SEASON_ACHIEVEMENT = "seasonFinish"


@dataclass
class VenueInfo:
    """A venue with its rating rules and current members."""
    id: str
    sport: str
    name: str
    mode: RoomMode = RoomMode.OFFICE
    k_factor: float = DEFAULT_VENUE_K
    members: dict[str, VenueMemberStats] = field(default_factory=dict)
    season_history: list[dict] = field(default_factory=list)

    @property
    def rules(self) -> VenueRules:
        return VenueRules(mode=self.mode, k_factor=self.k_factor)


class PersistenceGateway(Protocol):
    """Storage operations the engines and services rely on."""

    def matches_for_activity(self, sport: str) -> list[MatchRecord]: ...

    def matches_for_venue(self, sport: str, venue_id: str) -> list[MatchRecord]: ...

    def get_venue(self, sport: str, venue_id: str) -> Optional[VenueInfo]: ...

    def venues_for_activity(self, sport: str) -> list[VenueInfo]: ...

    def get_rating_state(self, sport: str, participant_id: str) -> Optional[ParticipantStats]: ...

    def get_bracket(self, tournament_id: str) -> Optional[Bracket]: ...

    def upsert_match(self, match: MatchRecord) -> None: ...

    def upsert_rating_state(self, sport: str, stats: ParticipantStats) -> None: ...

    def upsert_venue_member(self, venue_id: str, member: VenueMemberStats) -> None: ...

    def upsert_bracket(self, tournament_id: str, bracket: Bracket, sport: Optional[str] = None,
                       name: Optional[str] = None) -> None: ...

    def append_season_record(self, record: SeasonRecord) -> None: ...

    def reset_season_history(self, sport: str) -> int: ...

    def clear_season_achievements(self, sport: str) -> int: ...

    def commit(self) -> None: ...


def _timestamp_column(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_iso(value)
    return str(value)


class SqlGateway:
    """
    PersistenceGateway on a SQLAlchemy session.

    Usage:
        with get_session() as session:
            gateway = SqlGateway(session)
            venue = gateway.get_venue("pingpong", "room-1")
    """

    def __init__(self, session: Session):
        self.session = session

    # =========================================================================
    # Reads
    # =========================================================================

    def _to_record(self, row: Match) -> MatchRecord:
        doc = {
            "timestamp": row.timestamp,
            "venue_id": row.venue_id,
            "sport": row.sport,
            "player1_id": row.player1_id,
            "player2_id": row.player2_id,
            "player1": row.player1,
            "player2": row.player2,
            "is_ranked": row.is_ranked,
            "winner_name": row.winner_name,
            "winner_id": row.winner_id,
        }
        return MatchRecord.from_document(row.id, doc)

    def matches_for_activity(self, sport: str) -> list[MatchRecord]:
        rows = self.session.execute(
            select(Match).where(Match.sport == sport).order_by(Match.created_at, Match.id)
        ).scalars()
        return [self._to_record(row) for row in rows]

    def matches_for_venue(self, sport: str, venue_id: str) -> list[MatchRecord]:
        rows = self.session.execute(
            select(Match)
            .where(Match.sport == sport, Match.venue_id == venue_id)
            .order_by(Match.created_at, Match.id)
        ).scalars()
        return [self._to_record(row) for row in rows]

    def _to_venue(self, row: Venue) -> VenueInfo:
        member_rows = self.session.execute(
            select(VenueMember).where(VenueMember.venue_id == row.id).order_by(VenueMember.id)
        ).scalars()
        members = {
            m.participant_id: VenueMemberStats(
                participant_id=m.participant_id,
                rating=m.rating,
                wins=m.wins,
                losses=m.losses,
                matches_played=m.matches_played,
                name=m.name,
            )
            for m in member_rows
        }
        return VenueInfo(
            id=row.id,
            sport=row.sport,
            name=row.name,
            mode=parse_room_mode(row.mode),
            k_factor=row.k_factor if row.k_factor is not None else DEFAULT_VENUE_K,
            members=members,
            season_history=list(row.season_history or []),
        )

    def get_venue(self, sport: str, venue_id: str) -> Optional[VenueInfo]:
        row = self.session.get(Venue, venue_id)
        if row is None or row.sport != sport:
            return None
        return self._to_venue(row)

    def venues_for_activity(self, sport: str) -> list[VenueInfo]:
        rows = self.session.execute(
            select(Venue).where(Venue.sport == sport).order_by(Venue.id)
        ).scalars()
        return [self._to_venue(row) for row in rows]

    def _rating_row(self, sport: str, participant_id: str) -> Optional[ParticipantRating]:
        return self.session.execute(
            select(ParticipantRating).where(
                ParticipantRating.sport == sport,
                ParticipantRating.participant_id == participant_id,
            )
        ).scalar_one_or_none()

    def get_rating_state(self, sport: str, participant_id: str) -> Optional[ParticipantStats]:
        row = self._rating_row(sport, participant_id)
        if row is None:
            return None
        return ParticipantStats(
            participant_id=row.participant_id,
            global_rating=row.global_rating,
            wins=row.wins,
            losses=row.losses,
            rating_history=[
                RatingPoint(timestamp=p["timestamp"], rating=p["rating"])
                for p in row.rating_history or []
            ],
        )

    def get_bracket(self, tournament_id: str) -> Optional[Bracket]:
        row = self.session.get(TournamentBracket, tournament_id)
        if row is None:
            return None
        return Bracket.from_document(row.bracket)

    # =========================================================================
    # Writes
    # =========================================================================

    def upsert_match(self, match: MatchRecord) -> None:
        row = self.session.get(Match, match.id)
        if row is None:
            row = Match(id=match.id, sport=match.sport or "")
            self.session.add(row)
        if match.sport:
            row.sport = match.sport
        row.venue_id = match.venue_id
        row.timestamp = _timestamp_column(match.timestamp)
        row.player1_id = match.player1.participant_id
        row.player2_id = match.player2.participant_id
        row.player1 = match.player1.to_document()
        row.player2 = match.player2.to_document()
        row.is_ranked = match.is_ranked
        row.winner_name = match.winner_name
        row.winner_id = match.winner_id

    def upsert_rating_state(self, sport: str, stats: ParticipantStats) -> None:
        row = self._rating_row(sport, stats.participant_id)
        if row is None:
            row = ParticipantRating(participant_id=stats.participant_id, sport=sport)
            self.session.add(row)
        row.global_rating = stats.global_rating
        row.wins = stats.wins
        row.losses = stats.losses
        row.rating_history = [
            {"timestamp": p.timestamp, "rating": p.rating} for p in stats.rating_history
        ]
        self.session.flush()

    def upsert_venue_member(self, venue_id: str, member: VenueMemberStats) -> None:
        row = self.session.execute(
            select(VenueMember).where(
                VenueMember.venue_id == venue_id,
                VenueMember.participant_id == member.participant_id,
            )
        ).scalar_one_or_none()
        if row is None:
            if self.session.get(Venue, venue_id) is None:
                raise NotFoundError(f"Venue not found: {venue_id}")
            row = VenueMember(venue_id=venue_id, participant_id=member.participant_id)
            self.session.add(row)
        if member.name:
            row.name = member.name
        row.rating = member.rating if member.rating is not None else DEFAULT_RATING
        row.wins = member.wins
        row.losses = member.losses
        row.matches_played = member.matches_played
        self.session.flush()

    def upsert_bracket(
        self,
        tournament_id: str,
        bracket: Bracket,
        sport: Optional[str] = None,
        name: Optional[str] = None,
    ) -> None:
        row = self.session.get(TournamentBracket, tournament_id)
        if row is None:
            row = TournamentBracket(id=tournament_id)
            self.session.add(row)
        if sport is not None:
            row.sport = sport
        if name is not None:
            row.name = name
        row.stage = bracket.stage.value
        row.bracket = bracket.to_document()

    def append_season_record(self, record: SeasonRecord) -> None:
        """Store the record, append it to the venue history and award achievements."""
        venue = self.session.get(Venue, record.venue_id)
        if venue is None:
            raise NotFoundError(f"Venue not found: {record.venue_id}")

        document = record.to_document()
        # Reassign so the JSON column is flagged dirty
        venue.season_history = list(venue.season_history or []) + [document]
        self.session.add(SeasonRecordRow(
            venue_id=record.venue_id,
            sport=record.sport,
            date_finished=record.date_finished,
            record=document,
        ))
        for row in record.rows:
            self.session.add(Achievement(
                participant_id=row.participant_id,
                sport=record.sport,
                venue_id=record.venue_id,
                kind=SEASON_ACHIEVEMENT,
                place=row.place,
                details=record.achievement_for(row),
            ))

    def reset_season_history(self, sport: str) -> int:
        """Empty every venue's season history for the activity; returns venues touched."""
        venues = self.session.execute(select(Venue).where(Venue.sport == sport)).scalars().all()
        for venue in venues:
            venue.season_history = []
        self.session.execute(delete(SeasonRecordRow).where(SeasonRecordRow.sport == sport))
        return len(venues)

    def clear_season_achievements(self, sport: str) -> int:
        """Delete season achievements of the activity; returns the number removed."""
        result = self.session.execute(
            delete(Achievement).where(
                Achievement.sport == sport,
                Achievement.kind == SEASON_ACHIEVEMENT,
            )
        )
        return result.rowcount or 0

    def commit(self) -> None:
        self.session.commit()
