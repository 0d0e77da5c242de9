"""
History replay: rebuilds every rating and statistic from the raw match log.

The match store is unordered, so the replay first parses each match's
timestamp (see matchroom.dates) and stable-sorts ascending. That order is
the single source of truth for "which match happened first". Every
participant then starts at 1000 globally and in every venue, and each match is
fed through the rating calculator:

1. Skip matches missing a participant id or the venue id (counted).
2. Ranked (``is_ranked is not False``), non-tied matches move the global
   rating (K=32) and the venue rating (venue mode and K, placement included).
3. Non-tied matches count a win and a loss, ranked or not.
4. The new global rating is appended to each participant's history at the
   match timestamp.
5. The match is annotated (old/new rating, deltas, winner) so that reading a
   single match later is self-describing.

All mutable state lives in a ReplayState owned by the caller, so independent
activities can be replayed side by side. The same input always produces the
same output. Passing the state from a previous replay plus only the matches
recorded since gives the same result as replaying everything.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Iterable, Mapping, Optional

from matchroom.dates import parse_timestamp, to_iso
from matchroom.elo.calculator import compute_delta, get_dynamic_k
from matchroom.elo.constants import DEFAULT_RATING, DEFAULT_VENUE_K
from matchroom.modes import RoomMode
from matchroom.records import MatchRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VenueRules:
    """Rating rules of one venue."""
    mode: RoomMode = RoomMode.OFFICE
    k_factor: float = DEFAULT_VENUE_K


DEFAULT_VENUE_RULES = VenueRules()


@dataclass(frozen=True)
class RatingPoint:
    """One entry of a participant's rating-over-time history."""
    timestamp: str
    rating: float


@dataclass
class ParticipantStats:
    """Global state of one participant within one activity."""
    participant_id: str
    global_rating: float = DEFAULT_RATING
    wins: int = 0
    losses: int = 0
    rating_history: list[RatingPoint] = field(default_factory=list)


@dataclass
class VenueMemberStats:
    """State of one participant inside one venue."""
    participant_id: str
    rating: float = DEFAULT_RATING
    wins: int = 0
    losses: int = 0
    matches_played: int = 0
    name: Optional[str] = None


@dataclass
class ReplayState:
    """
    Mutable rating state for one activity.

    Created empty for a full rebuild, or carried over from a previous
    ReplayResult to continue with newer matches.
    """
    participants: dict[str, ParticipantStats] = field(default_factory=dict)
    venues: dict[str, dict[str, VenueMemberStats]] = field(default_factory=dict)

    def participant(self, participant_id: str) -> ParticipantStats:
        stats = self.participants.get(participant_id)
        if stats is None:
            stats = ParticipantStats(participant_id=participant_id)
            self.participants[participant_id] = stats
        return stats

    def venue_member(self, venue_id: str, participant_id: str) -> VenueMemberStats:
        members = self.venues.setdefault(venue_id, {})
        stats = members.get(participant_id)
        if stats is None:
            stats = VenueMemberStats(participant_id=participant_id)
            members[participant_id] = stats
        return stats

    def global_ratings(self) -> dict[str, float]:
        return {pid: s.global_rating for pid, s in self.participants.items()}

    def venue_ratings(self) -> dict[str, dict[str, float]]:
        return {
            vid: {pid: s.rating for pid, s in members.items()}
            for vid, members in self.venues.items()
        }

    def copy(self) -> "ReplayState":
        return copy.deepcopy(self)


@dataclass
class ReplayResult:
    """Output of HistoryReplayer.rebuild()."""
    state: ReplayState
    matches: list[MatchRecord]
    processed: int = 0
    skipped: int = 0

    @property
    def global_ratings(self) -> dict[str, float]:
        return self.state.global_ratings()

    @property
    def venue_ratings(self) -> dict[str, dict[str, float]]:
        return self.state.venue_ratings()

    @property
    def participant_stats(self) -> dict[str, ParticipantStats]:
        return self.state.participants


def sort_matches(matches: Iterable[MatchRecord]) -> list[tuple[datetime, MatchRecord]]:
    """
    Order matches by parsed timestamp, oldest first.

    Python's sort is stable, so matches sharing a timestamp keep their input
    order. Unparsable timestamps parse to epoch 0 and come first.
    """
    keyed = [(parse_timestamp(m.timestamp), m) for m in matches]
    keyed.sort(key=lambda pair: pair[0])
    return keyed


class HistoryReplayer:
    """
    Rebuilds ratings and stats for one activity from its unordered match log.

    Usage (full rebuild):
        replayer = HistoryReplayer(venue_rules={"room-1": VenueRules(RoomMode.ARCADE)})
        result = replayer.rebuild(matches)
        result.global_ratings["alice"]  # 1016

    Usage (continue from a previous rebuild):
        later = replayer.rebuild(new_matches, state=result.state)
    """

    def __init__(self, venue_rules: Optional[Mapping[str, VenueRules]] = None):
        self.venue_rules = dict(venue_rules or {})

    def rules_for(self, venue_id: str) -> VenueRules:
        return self.venue_rules.get(venue_id, DEFAULT_VENUE_RULES)

    def rebuild(
        self,
        matches: Iterable[MatchRecord],
        state: Optional[ReplayState] = None,
    ) -> ReplayResult:
        """
        Replay matches in timestamp order.

        Args:
            matches: Match records in any order
            state: Optional state to continue from. It is copied, never
                   mutated, so the caller's snapshot stays valid.

        Returns:
            ReplayResult with the final state, the annotated matches in
            replay order, and processed/skipped counts.
        """
        state = state.copy() if state is not None else ReplayState()
        result = ReplayResult(state=state, matches=[])

        for played_at, match in sort_matches(matches):
            if not match.is_complete:
                result.skipped += 1
                logger.warning(
                    "Skipping match %s: missing participant or venue id "
                    "(player1=%r, player2=%r, venue=%r)",
                    match.id,
                    match.player1.participant_id,
                    match.player2.participant_id,
                    match.venue_id,
                )
                continue

            result.matches.append(self._apply(state, match, played_at))
            result.processed += 1

        logger.info(
            "Replay finished: processed=%d skipped=%d participants=%d venues=%d",
            result.processed,
            result.skipped,
            len(state.participants),
            len(state.venues),
        )
        return result

    def _apply(self, state: ReplayState, match: MatchRecord, played_at: datetime) -> MatchRecord:
        """Apply one complete match to the state and return it annotated."""
        p1_id = match.player1.participant_id
        p2_id = match.player2.participant_id
        rules = self.rules_for(match.venue_id)

        g1 = state.participant(p1_id)
        g2 = state.participant(p2_id)
        v1 = state.venue_member(match.venue_id, p1_id)
        v2 = state.venue_member(match.venue_id, p2_id)

        old_g1, old_g2 = g1.global_rating, g2.global_rating
        old_v1, old_v2 = v1.rating, v2.rating
        s1, s2 = match.player1.score, match.player2.score

        if match.is_ranked and not match.is_tie:
            k1 = get_dynamic_k(rules.k_factor, v1.matches_played, rules.mode)
            k2 = get_dynamic_k(rules.k_factor, v2.matches_played, rules.mode)
            g1.global_rating = old_g1 + compute_delta(old_g1, old_g2, s1, s2, True)
            g2.global_rating = old_g2 + compute_delta(old_g2, old_g1, s2, s1, True)
            v1.rating = old_v1 + compute_delta(old_v1, old_v2, s1, s2, False, rules.mode, k1)
            v2.rating = old_v2 + compute_delta(old_v2, old_v1, s2, s1, False, rules.mode, k2)

        winner = match.winner_side
        if winner is not None:
            p1_won = winner is match.player1
            for stats, won in ((g1, p1_won), (g2, not p1_won), (v1, p1_won), (v2, not p1_won)):
                if won:
                    stats.wins += 1
                else:
                    stats.losses += 1

        v1.matches_played += 1
        v2.matches_played += 1
        v1.name = match.player1.name
        v2.name = match.player2.name

        ts_iso = to_iso(played_at)
        g1.rating_history.append(RatingPoint(ts_iso, g1.global_rating))
        g2.rating_history.append(RatingPoint(ts_iso, g2.global_rating))

        logger.debug(
            "Match %s: %s %s->%s, %s %s->%s",
            match.id, p1_id, old_g1, g1.global_rating, p2_id, old_g2, g2.global_rating,
        )

        return replace(
            match,
            timestamp=ts_iso,
            player1=match.player1.annotated(old_g1, g1.global_rating, old_v1, v1.rating),
            player2=match.player2.annotated(old_g2, g2.global_rating, old_v2, v2.rating),
            winner_name=winner.name if winner is not None else None,
            winner_id=winner.participant_id if winner is not None else None,
        )


def rebuild(
    matches: Iterable[MatchRecord],
    venue_rules: Optional[Mapping[str, VenueRules]] = None,
    state: Optional[ReplayState] = None,
) -> ReplayResult:
    """Convenience wrapper around HistoryReplayer.rebuild()."""
    return HistoryReplayer(venue_rules).rebuild(matches, state=state)
