"""
Season finalization.

Closing a venue's season ranks every participant by a composite score:

    base       = wins * 2 + current_venue_rating * 0.1
    normalized = total_added_points / (played / average)   if played > average
                 total_added_points                        otherwise
    final      = base + normalized, times 0.9 if played < average

``average`` is the mean number of matches played across the venue's season
participants. The normalisation keeps very active players from winning on
volume alone; the 0.9 factor discounts players below the venue average.

Places are dense and 1-based, assigned by descending final score with ties
keeping first-appearance order.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from matchroom.dates import format_locale, parse_timestamp
from matchroom.elo.constants import DEFAULT_RATING
from matchroom.exceptions import NotFoundError
from matchroom.records import MatchRecord

logger = logging.getLogger(__name__)

WIN_WEIGHT = 2
RATING_WEIGHT = 0.1
BELOW_AVERAGE_FACTOR = 0.9


class WinnerAttribution(str, Enum):
    """How a season match is credited to a side."""
    NAME = "name"
    ID = "id"


@dataclass(frozen=True)
class SeasonRow:
    participant_id: str
    name: str
    place: int
    matches_played: int
    wins: int
    losses: int
    win_rate: float
    total_added_points: float
    final_score: float
    longest_win_streak: int
    venue_rating: float
    start_global_rating: Optional[float] = None
    end_global_rating: Optional[float] = None

    def to_document(self) -> dict[str, Any]:
        return {
            "participant_id": self.participant_id,
            "name": self.name,
            "place": self.place,
            "matches_played": self.matches_played,
            "wins": self.wins,
            "losses": self.losses,
            "win_rate": self.win_rate,
            "total_added_points": self.total_added_points,
            "final_score": self.final_score,
            "longest_win_streak": self.longest_win_streak,
            "venue_rating": self.venue_rating,
            "start_global_rating": self.start_global_rating,
            "end_global_rating": self.end_global_rating,
        }


@dataclass(frozen=True)
class SeasonRecord:
    """An immutable finalized season of one venue."""
    venue_id: str
    venue_name: str
    sport: str
    mode: str
    date_finished: str
    rows: tuple[SeasonRow, ...] = ()

    def to_document(self) -> dict[str, Any]:
        return {
            "venue_id": self.venue_id,
            "venue_name": self.venue_name,
            "sport": self.sport,
            "mode": self.mode,
            "date_finished": self.date_finished,
            "rows": [row.to_document() for row in self.rows],
        }

    def achievement_for(self, row: SeasonRow) -> dict[str, Any]:
        """Achievement details awarded to one participant."""
        return {
            "type": "seasonFinish",
            "sport": self.sport,
            "venue_id": self.venue_id,
            "venue_name": self.venue_name,
            "mode": self.mode,
            "date_finished": self.date_finished,
            "place": row.place,
            "final_score": row.final_score,
            "win_rate": row.win_rate,
            "start_global_rating": row.start_global_rating,
            "end_global_rating": row.end_global_rating,
        }


@dataclass
class _Tally:
    participant_id: str
    name: str
    venue_rating: float = DEFAULT_RATING
    wins: int = 0
    losses: int = 0
    total_added_points: float = 0
    results: list[bool] = field(default_factory=list)

    @property
    def matches_played(self) -> int:
        return self.wins + self.losses


def longest_win_streak(results: Iterable[bool]) -> int:
    """
    Longest run of consecutive wins.

    Examples:
        >>> longest_win_streak([True, True, False, True])
        2
    """
    best = current = 0
    for won in results:
        if won:
            current += 1
            best = max(best, current)
        else:
            current = 0
    return best


def composite_score(
    wins: int,
    current_rating: float,
    total_added_points: float,
    matches_played: int,
    average_played: float,
) -> float:
    """Final season score of one participant."""
    base = wins * WIN_WEIGHT + current_rating * RATING_WEIGHT
    normalized = total_added_points
    if average_played and matches_played > average_played:
        normalized = total_added_points / (matches_played / average_played)
    final = base + normalized
    if matches_played < average_played:
        final *= BELOW_AVERAGE_FACTOR
    return final


def _is_winner(match: MatchRecord, side, attribute_by: WinnerAttribution) -> bool:
    if attribute_by is WinnerAttribution.ID:
        winner_id = match.winner_id
        if winner_id is None:
            winner = match.winner_side
            winner_id = winner.participant_id if winner is not None else None
        return winner_id == side.participant_id
    return match.winner_name == side.name


def compute_season(
    matches: Iterable[MatchRecord],
    current_ratings: Optional[Mapping[str, float]] = None,
    attribute_by: WinnerAttribution = WinnerAttribution.NAME,
) -> list[SeasonRow]:
    """
    Rank a venue's season.

    Args:
        matches: The venue's matches, any order
        current_ratings: Current venue rating per participant id. Defaults to
                         the latest venue rating seen in the matches.
        attribute_by: Credit wins by winner name (stored matches) or by
                      participant id

    Returns:
        SeasonRow list ordered by place. Empty when there is nothing to rank.
    """
    attribute_by = WinnerAttribution(attribute_by)
    tallies: dict[str, _Tally] = {}

    for _, match in sorted(
        ((parse_timestamp(m.timestamp), m) for m in matches), key=lambda pair: pair[0]
    ):
        if not (match.player1.participant_id and match.player2.participant_id):
            logger.warning("Season skips match %s: missing participant id", match.id)
            continue
        if match.is_tie:
            continue

        for side in (match.player1, match.player2):
            tally = tallies.get(side.participant_id)
            if tally is None:
                tally = _Tally(participant_id=side.participant_id, name=side.name)
                tallies[side.participant_id] = tally

            rating = side.new_venue_rating if side.new_venue_rating is not None else side.old_venue_rating
            if rating is not None:
                tally.venue_rating = rating

            won = _is_winner(match, side, attribute_by)
            if won:
                tally.wins += 1
            else:
                tally.losses += 1
            tally.results.append(won)

            added = side.venue_rating_delta if side.venue_rating_delta is not None else side.rating_delta
            tally.total_added_points += added or 0

    if not tallies:
        return []

    current_ratings = current_ratings or {}
    average = sum(t.matches_played for t in tallies.values()) / len(tallies)

    scored = []
    for tally in tallies.values():
        rating = current_ratings.get(tally.participant_id, tally.venue_rating)
        final = composite_score(
            tally.wins, rating, tally.total_added_points, tally.matches_played, average
        )
        scored.append((final, rating, tally))

    scored.sort(key=lambda item: item[0], reverse=True)

    rows = []
    for place, (final, rating, tally) in enumerate(scored, start=1):
        played = tally.matches_played
        rows.append(SeasonRow(
            participant_id=tally.participant_id,
            name=tally.name,
            place=place,
            matches_played=played,
            wins=tally.wins,
            losses=tally.losses,
            win_rate=tally.wins / played if played else 0.0,
            total_added_points=tally.total_added_points,
            final_score=final,
            longest_win_streak=longest_win_streak(tally.results),
            venue_rating=rating,
        ))
    return rows


def finalize_season(
    gateway,
    sport: str,
    venue_id: str,
    attribute_by: WinnerAttribution = WinnerAttribution.NAME,
) -> Optional[SeasonRecord]:
    """
    Close a venue's season and persist the record and achievements.

    Each row also gets global rating snapshots: the rating before the
    participant's first venue match and their current global rating.
    Venue members are written back with the season's wins, losses and
    final venue rating; their match counts are left alone.

    Returns:
        The SeasonRecord, or None when the venue has no matches.

    Raises:
        NotFoundError: If the venue does not exist
    """
    venue = gateway.get_venue(sport, venue_id)
    if venue is None:
        raise NotFoundError(f"Venue not found: {venue_id}")
    matches = gateway.matches_for_venue(sport, venue_id)

    current_ratings = {pid: member.rating for pid, member in venue.members.items()}
    rows = compute_season(matches, current_ratings=current_ratings, attribute_by=attribute_by)
    if not rows:
        logger.info("Venue %s has no season matches, nothing to finalize", venue_id)
        return None

    ordered = sorted(((parse_timestamp(m.timestamp), m) for m in matches), key=lambda pair: pair[0])
    last_played = ordered[-1][0]
    chronological = [m for _, m in ordered]
    snapshots = []
    for row in rows:
        start, end = _global_snapshot(gateway, sport, row, chronological)
        snapshots.append(replace(row, start_global_rating=start, end_global_rating=end))

    record = SeasonRecord(
        venue_id=venue_id,
        venue_name=venue.name,
        sport=sport,
        mode=venue.mode.value,
        date_finished=format_locale(last_played),
        rows=tuple(snapshots),
    )
    gateway.append_season_record(record)
    for row in record.rows:
        member = venue.members.get(row.participant_id)
        if member is not None:
            gateway.upsert_venue_member(
                venue_id, replace(member, wins=row.wins, losses=row.losses, rating=row.venue_rating)
            )
    gateway.commit()
    logger.info(
        "Season finalized for venue %s: %d participants, winner %s",
        venue_id,
        len(record.rows),
        record.rows[0].name,
    )
    return record


def _global_snapshot(gateway, sport: str, row: SeasonRow, chronological: list[MatchRecord]) -> tuple[float, float]:
    """Global rating before the participant's first and after their last venue match."""
    start = end = None
    for match in chronological:
        for side in (match.player1, match.player2):
            if side.participant_id != row.participant_id:
                continue
            if start is None:
                start = side.old_global_rating
            if side.new_global_rating is not None:
                end = side.new_global_rating

    state = gateway.get_rating_state(sport, row.participant_id)
    if state is not None:
        end = state.global_rating
    if start is None:
        start = DEFAULT_RATING
    if end is None:
        end = row.venue_rating
    return start, end
