"""
Rating update service: records new games and rebuilds an activity's ratings.

Both paths run the same HistoryReplayer, so a match recorded incrementally
ends up with exactly the annotations a later full rebuild would give it.

Incremental flow (a series of games between two venue members):
1. Validate every score
2. Load the venue rules, both members' venue state and global state
3. Stamp the games one second apart so their order survives sorting
4. Replay the new games on top of the loaded state
5. Write matches, venue members and participant state, then commit

Rebuild flow (after a data fix or a rules change):
1. Load every match and every venue's rules for the activity
2. Replay from scratch (everyone starts at 1000)
3. Write annotated matches, venue members and participant state in
   batches, committing each batch
4. Reset venue season histories and strip the activity's season
   achievements so seasons can be finalized again

A rebuild is not atomic as a whole. If it fails part way, running it again
is the recovery.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

from matchroom.config import settings
from matchroom.db.gateway import PersistenceGateway, SqlGateway
from matchroom.elo.replay import HistoryReplayer, ReplayState
from matchroom.exceptions import NotFoundError
from matchroom.records import MatchRecord, MatchSide
from matchroom.validation import validate_game_scores

logger = logging.getLogger(__name__)

# Spacing between the games of one recorded series
GAME_STAGGER = timedelta(seconds=1)


@dataclass(frozen=True)
class GameScore:
    """Scores of one game in a recorded series."""
    score1: int
    score2: int
    side1: str = "left"
    side2: str = "right"


@dataclass
class RecordResult:
    """Summary returned by RatingUpdater.record_match()."""
    matches: list[MatchRecord] = field(default_factory=list)
    global_ratings: dict[str, float] = field(default_factory=dict)
    venue_ratings: dict[str, float] = field(default_factory=dict)


@dataclass
class UpdateResult:
    """Summary returned by RatingUpdater.rebuild()."""
    sport: str
    processed: int = 0
    skipped: int = 0
    matches_written: int = 0
    participants_written: int = 0
    venue_members_written: int = 0
    venues_reset: int = 0
    achievements_cleared: int = 0
    batches_committed: int = 0
    dry_run: bool = False
    duration_seconds: float = 0.0


class BatchWriter:
    """
    Counts staged writes and commits every ``batch_size`` of them.

    Each commit is atomic on its own; the sequence of batches is not.
    """

    def __init__(self, gateway: PersistenceGateway, batch_size: int):
        if batch_size <= 0:
            raise ValueError("batch_size must be greater than 0")
        self.gateway = gateway
        self.batch_size = batch_size
        self.pending = 0
        self.commits = 0

    def staged(self) -> None:
        self.pending += 1
        if self.pending >= self.batch_size:
            self.flush()

    def flush(self) -> None:
        if not self.pending:
            return
        self.gateway.commit()
        self.commits += 1
        logger.debug("Committed batch %d (%d writes)", self.commits, self.pending)
        self.pending = 0


# ---------------------------------------------------------------------------
# Main service
# ---------------------------------------------------------------------------

class RatingUpdater:
    """
    Keeps stored ratings in step with the match log.

    Usage (record a best-of-three):

        updater = RatingUpdater(gateway)
        result = updater.record_match(
            "pingpong", "room-1", "alice", "bob",
            [GameScore(11, 5), GameScore(9, 11), GameScore(11, 7)],
        )

    Usage (full rebuild):

        with get_session() as session:
            result = RatingUpdater.from_session(session).rebuild("pingpong")
    """

    def __init__(self, gateway: PersistenceGateway) -> None:
        self.gateway = gateway

    @classmethod
    def from_session(cls, session) -> "RatingUpdater":
        """Instantiate on a SQLAlchemy session."""
        return cls(SqlGateway(session))

    # ------------------------------------------------------------------
    # Incremental
    # ------------------------------------------------------------------

    def record_match(
        self,
        sport: str,
        venue_id: str,
        player1_id: str,
        player2_id: str,
        games: Sequence[GameScore],
        *,
        player1_name: Optional[str] = None,
        player2_name: Optional[str] = None,
        is_ranked: bool = True,
        started_at: Optional[datetime] = None,
    ) -> RecordResult:
        """
        Record a series of games and apply their rating changes.

        Raises:
            ScoreValidationError: A score is not a non-negative integer
            NotFoundError: The venue does not exist
            ValueError: Both sides are the same participant, or no games
        """
        if player1_id == player2_id:
            raise ValueError("A match needs two different participants")
        if not games:
            raise ValueError("At least one game is required")
        scores = [validate_game_scores(g.score1, g.score2) for g in games]

        venue = self.gateway.get_venue(sport, venue_id)
        if venue is None:
            raise NotFoundError(f"Venue not found: {venue_id}")

        state = ReplayState()
        names = {}
        for pid, explicit in ((player1_id, player1_name), (player2_id, player2_name)):
            stats = self.gateway.get_rating_state(sport, pid)
            if stats is not None:
                state.participants[pid] = stats
            member = venue.members.get(pid)
            if member is not None:
                state.venues.setdefault(venue_id, {})[pid] = member
            names[pid] = explicit or (member.name if member is not None and member.name else pid)

        started_at = started_at or datetime.now(timezone.utc)
        records = []
        for i, ((s1, s2), game) in enumerate(zip(scores, games)):
            records.append(MatchRecord(
                id=uuid.uuid4().hex,
                timestamp=started_at + GAME_STAGGER * i,
                venue_id=venue_id,
                player1=MatchSide(player1_id, names[player1_id], s1, game.side1),
                player2=MatchSide(player2_id, names[player2_id], s2, game.side2),
                is_ranked=is_ranked,
                sport=sport,
            ))

        replay = HistoryReplayer({venue_id: venue.rules}).rebuild(records, state=state)

        for match in replay.matches:
            self.gateway.upsert_match(match)
        for pid in (player1_id, player2_id):
            self.gateway.upsert_venue_member(venue_id, replay.state.venue_member(venue_id, pid))
            self.gateway.upsert_rating_state(sport, replay.state.participant(pid))
        self.gateway.commit()

        result = RecordResult(
            matches=replay.matches,
            global_ratings={pid: replay.state.participant(pid).global_rating for pid in (player1_id, player2_id)},
            venue_ratings={pid: replay.state.venue_member(venue_id, pid).rating for pid in (player1_id, player2_id)},
        )
        logger.info(
            "Recorded %d game(s) at %s: %s %s, %s %s",
            len(records),
            venue_id,
            player1_id,
            result.global_ratings[player1_id],
            player2_id,
            result.global_ratings[player2_id],
        )
        return result

    # ------------------------------------------------------------------
    # Full rebuild
    # ------------------------------------------------------------------

    def rebuild(
        self,
        sport: str,
        batch_size: Optional[int] = None,
        dry_run: bool = False,
    ) -> UpdateResult:
        """
        Recompute every rating of an activity from its match log.

        Args:
            sport: Activity to rebuild
            batch_size: Writes per commit (default: settings.rebuild_batch_size)
            dry_run: Compute and report without writing anything

        Returns:
            UpdateResult with counts and timing.
        """
        started = time.monotonic()
        result = UpdateResult(sport=sport, dry_run=dry_run)

        matches = self.gateway.matches_for_activity(sport)
        venues = self.gateway.venues_for_activity(sport)
        logger.info("Rebuilding %s: %d matches across %d venues", sport, len(matches), len(venues))

        replayer = HistoryReplayer({venue.id: venue.rules for venue in venues})
        replay = replayer.rebuild(matches)
        result.processed = replay.processed
        result.skipped = replay.skipped

        if dry_run:
            result.duration_seconds = time.monotonic() - started
            logger.info("Dry run, nothing written: processed=%d skipped=%d", result.processed, result.skipped)
            return result

        writer = BatchWriter(self.gateway, batch_size or settings.rebuild_batch_size)

        for match in replay.matches:
            self.gateway.upsert_match(match)
            writer.staged()
        result.matches_written = len(replay.matches)

        known_venues = {venue.id for venue in venues}
        for venue_id, members in replay.state.venues.items():
            if venue_id not in known_venues:
                logger.warning("Matches reference unknown venue %s, member state not written", venue_id)
                continue
            for member in members.values():
                self.gateway.upsert_venue_member(venue_id, member)
                writer.staged()
                result.venue_members_written += 1

        for stats in replay.state.participants.values():
            self.gateway.upsert_rating_state(sport, stats)
            writer.staged()
            result.participants_written += 1

        result.venues_reset = self.gateway.reset_season_history(sport)
        result.achievements_cleared = self.gateway.clear_season_achievements(sport)
        writer.staged()
        writer.flush()

        result.batches_committed = writer.commits
        result.duration_seconds = time.monotonic() - started
        logger.info(
            "Rebuild of %s done: %d matches, %d participants, %d venue members in %d batch(es), %.2fs",
            sport,
            result.matches_written,
            result.participants_written,
            result.venue_members_written,
            result.batches_committed,
            result.duration_seconds,
        )
        return result

