"""
Unit tests for RatingUpdater.

Runs the incremental and rebuild paths against an in-memory SQLite store
through SqlGateway.
"""

from datetime import datetime, timezone

import pytest

from matchroom.db.models import Achievement
from matchroom.elo.updater import BatchWriter, GameScore, RatingUpdater
from matchroom.exceptions import NotFoundError, ScoreValidationError
from matchroom.season import finalize_season

STARTED = datetime(2025, 6, 3, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def updater(gateway):
    return RatingUpdater(gateway)


@pytest.fixture
def room(make_venue):
    return make_venue("room-1", mode="office")


class TestRecordMatch:
    def test_single_game(self, updater, room, gateway):
        result = updater.record_match(
            "pingpong", "room-1", "alice", "bob", [GameScore(11, 5)],
            player1_name="Alice", player2_name="Bob", started_at=STARTED,
        )

        assert result.global_ratings == {"alice": 1016, "bob": 984}
        assert result.venue_ratings == {"alice": 1016, "bob": 987}
        assert gateway.get_rating_state("pingpong", "alice").global_rating == 1016
        member = gateway.get_venue("pingpong", "room-1").members["bob"]
        assert (member.rating, member.losses, member.matches_played, member.name) == (987, 1, 1, "Bob")

    def test_games_are_staggered_one_second(self, updater, room, gateway):
        result = updater.record_match(
            "pingpong", "room-1", "alice", "bob",
            [GameScore(11, 5), GameScore(9, 11), GameScore(11, 7)],
            started_at=STARTED,
        )

        assert [m.timestamp for m in result.matches] == [
            "2025-06-03T12:00:00.000Z",
            "2025-06-03T12:00:01.000Z",
            "2025-06-03T12:00:02.000Z",
        ]
        stored = gateway.matches_for_venue("pingpong", "room-1")
        assert len(stored) == 3
        alice = gateway.get_rating_state("pingpong", "alice")
        assert (alice.wins, alice.losses) == (2, 1)
        assert len(alice.rating_history) == 3

    def test_continues_from_stored_state(self, updater, room, gateway):
        updater.record_match("pingpong", "room-1", "alice", "bob", [GameScore(11, 5)], started_at=STARTED)
        second = updater.record_match(
            "pingpong", "room-1", "alice", "bob", [GameScore(11, 5)],
            started_at=STARTED.replace(hour=13),
        )

        match = second.matches[0]
        assert match.player1.old_global_rating == 1016
        assert match.player2.old_global_rating == 984
        assert gateway.get_venue("pingpong", "room-1").members["alice"].matches_played == 2

    def test_tie_recorded_without_rating_change(self, updater, room):
        result = updater.record_match("pingpong", "room-1", "alice", "bob", [GameScore(7, 7)], started_at=STARTED)
        assert result.global_ratings == {"alice": 1000, "bob": 1000}
        assert result.matches[0].winner_name is None

    def test_invalid_scores_rejected(self, updater, room, gateway):
        with pytest.raises(ScoreValidationError):
            updater.record_match("pingpong", "room-1", "alice", "bob", [GameScore(-1, 11)])
        assert gateway.matches_for_activity("pingpong") == []

    def test_unknown_venue(self, updater):
        with pytest.raises(NotFoundError):
            updater.record_match("pingpong", "nowhere", "alice", "bob", [GameScore(11, 5)])

    def test_same_participant_rejected(self, updater, room):
        with pytest.raises(ValueError):
            updater.record_match("pingpong", "room-1", "alice", "alice", [GameScore(11, 5)])


class TestRebuild:
    def _seed(self, updater):
        updater.record_match(
            "pingpong", "room-1", "alice", "bob",
            [GameScore(11, 5), GameScore(9, 11), GameScore(11, 7)],
            started_at=STARTED,
        )
        updater.record_match(
            "pingpong", "room-1", "carol", "alice", [GameScore(11, 3)],
            started_at=STARTED.replace(hour=14),
        )

    def test_rebuild_reproduces_incremental_ratings(self, updater, room, gateway):
        """Recording match by match and rebuilding from scratch agree."""
        self._seed(updater)
        before = {pid: gateway.get_rating_state("pingpong", pid) for pid in ("alice", "bob", "carol")}
        venue_before = gateway.get_venue("pingpong", "room-1").members

        result = updater.rebuild("pingpong")

        assert result.processed == 4
        assert result.skipped == 0
        for pid, stats in before.items():
            assert gateway.get_rating_state("pingpong", pid) == stats
        assert gateway.get_venue("pingpong", "room-1").members == venue_before

    def test_batches(self, updater, room):
        self._seed(updater)
        result = updater.rebuild("pingpong", batch_size=2)

        # 4 matches + 3 venue members + 3 participants + 1 season reset
        assert result.matches_written == 4
        assert result.venue_members_written == 3
        assert result.participants_written == 3
        assert result.batches_committed == 6

    def test_dry_run_writes_nothing(self, updater, room, gateway, make_match):
        gateway.upsert_match(make_match("raw", "alice", "bob", 11, 5))
        result = updater.rebuild("pingpong", dry_run=True)

        assert result.processed == 1
        assert result.dry_run
        assert gateway.get_rating_state("pingpong", "alice") is None

    def test_rebuild_annotates_raw_matches(self, updater, room, gateway, make_match):
        gateway.upsert_match(make_match("raw", "alice", "bob", 11, 5, timestamp="03.06.2025 12.00.00"))
        updater.rebuild("pingpong")

        match = gateway.matches_for_venue("pingpong", "room-1")[0]
        assert match.timestamp == "2025-06-03T12:00:00.000Z"
        assert match.player1.rating_delta == 16
        assert match.winner_id == "alice"

    def test_skips_incomplete_matches(self, updater, room, gateway, make_match):
        gateway.upsert_match(make_match("ok", "alice", "bob", 11, 5))
        gateway.upsert_match(make_match("orphan", "alice", "bob", 11, 5, venue_id=None))
        result = updater.rebuild("pingpong")

        assert (result.processed, result.skipped) == (1, 1)

    def test_resets_seasons(self, updater, room, gateway, db_session):
        self._seed(updater)
        finalize_season(gateway, "pingpong", "room-1")
        assert db_session.query(Achievement).count() == 3

        result = updater.rebuild("pingpong")

        assert result.venues_reset == 1
        assert result.achievements_cleared == 3
        assert gateway.get_venue("pingpong", "room-1").season_history == []
        assert db_session.query(Achievement).count() == 0

    def test_other_sports_untouched(self, updater, room, gateway, make_venue, make_match):
        make_venue("court-1", sport="tennis")
        gateway.upsert_match(make_match("t1", "alice", "bob", 6, 3, venue_id="court-1", sport="tennis"))
        self._seed(updater)

        updater.rebuild("pingpong")
        assert gateway.get_rating_state("tennis", "alice") is None


class TestBatchWriter:
    class _Gateway:
        def __init__(self):
            self.commits = 0

        def commit(self):
            self.commits += 1

    def test_commits_every_batch(self):
        gateway = self._Gateway()
        writer = BatchWriter(gateway, batch_size=3)
        for _ in range(7):
            writer.staged()
        writer.flush()

        assert gateway.commits == 3
        assert writer.commits == 3

    def test_rejects_non_positive_batch(self):
        with pytest.raises(ValueError):
            BatchWriter(self._Gateway(), batch_size=0)
