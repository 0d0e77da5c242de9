"""
Unit tests for SqlGateway.

Uses the in-memory SQLite session from conftest; every test rolls back.
"""

from dataclasses import replace
from datetime import datetime, timezone

import pytest

from matchroom.db.gateway import SEASON_ACHIEVEMENT, SqlGateway
from matchroom.db.models import Achievement, Match, SeasonRecordRow, TournamentBracket, Venue
from matchroom.elo.replay import ParticipantStats, RatingPoint, VenueMemberStats
from matchroom.exceptions import NotFoundError
from matchroom.modes import RoomMode
from matchroom.season import SeasonRecord, SeasonRow
from matchroom.tournament import Entrant, start_tournament


class TestMatches:
    def test_round_trip_keeps_annotations(self, gateway, make_match):
        match = make_match("m1")
        annotated = replace(
            match,
            timestamp="2025-06-03T12:00:00.000Z",
            player1=match.player1.annotated(1000, 1016, 1000, 1016),
            player2=match.player2.annotated(1000, 984, 1000, 987),
            winner_name="Alice",
            winner_id="alice",
        )
        gateway.upsert_match(annotated)

        [stored] = gateway.matches_for_activity("pingpong")
        assert stored == annotated

    def test_upsert_updates_in_place(self, gateway, make_match, db_session):
        gateway.upsert_match(make_match("m1", s1=11, s2=5))
        gateway.upsert_match(make_match("m1", s1=3, s2=11))

        assert db_session.query(Match).count() == 1
        [stored] = gateway.matches_for_activity("pingpong")
        assert (stored.player1.score, stored.player2.score) == (3, 11)

    def test_datetime_timestamps_stored_as_iso(self, gateway, make_match):
        gateway.upsert_match(make_match("m1", timestamp=datetime(2025, 6, 3, 12, 0, tzinfo=timezone.utc)))
        [stored] = gateway.matches_for_activity("pingpong")
        assert stored.timestamp == "2025-06-03T12:00:00.000Z"

    def test_scoped_by_sport_and_venue(self, gateway, make_match):
        gateway.upsert_match(make_match("m1"))
        gateway.upsert_match(make_match("m2", venue_id="room-2"))
        gateway.upsert_match(make_match("m3", sport="tennis"))

        assert [m.id for m in gateway.matches_for_activity("pingpong")] == ["m1", "m2"]
        assert [m.id for m in gateway.matches_for_venue("pingpong", "room-2")] == ["m2"]

    def test_reads_legacy_documents(self, gateway, db_session):
        db_session.add(Match(
            id="legacy",
            sport="pingpong",
            venue_id="room-1",
            timestamp="03.06.2025 14.32.08",
            player1_id="alice",
            player2_id="bob",
            player1={"name": "Alice", "scores": 11, "oldRating": 1000, "roomAddedPoints": 16},
            player2={"name": "Bob", "scores": "7"},
            is_ranked=True,
        ))
        db_session.flush()

        [match] = gateway.matches_for_venue("pingpong", "room-1")
        assert match.player1.score == 11
        assert match.player2.score == 7.0
        assert match.player1.old_global_rating == 1000
        assert match.player1.venue_rating_delta == 16


class TestVenues:
    def test_get_venue_with_members(self, gateway, make_venue):
        make_venue("room-1", mode="professional", k_factor=24)
        gateway.upsert_venue_member("room-1", VenueMemberStats("alice", rating=1010, wins=1, matches_played=1, name="Alice"))

        venue = gateway.get_venue("pingpong", "room-1")
        assert venue.mode is RoomMode.PROFESSIONAL
        assert venue.k_factor == 24
        assert venue.rules.k_factor == 24
        assert venue.members["alice"] == VenueMemberStats("alice", 1010, 1, 0, 1, "Alice")

    def test_missing_mode_and_k_default(self, gateway, make_venue):
        make_venue("room-1", mode=None, k_factor=None)
        venue = gateway.get_venue("pingpong", "room-1")
        assert venue.mode is RoomMode.OFFICE
        assert venue.k_factor == 32

    def test_other_sport_is_not_found(self, gateway, make_venue):
        make_venue("court-1", sport="tennis")
        assert gateway.get_venue("pingpong", "court-1") is None
        assert gateway.get_venue("pingpong", "nowhere") is None

    def test_venues_for_activity(self, gateway, make_venue):
        make_venue("room-2")
        make_venue("room-1")
        make_venue("court-1", sport="tennis")
        assert [v.id for v in gateway.venues_for_activity("pingpong")] == ["room-1", "room-2"]

    def test_member_upsert_updates(self, gateway, make_venue):
        make_venue("room-1")
        gateway.upsert_venue_member("room-1", VenueMemberStats("alice", name="Alice"))
        gateway.upsert_venue_member("room-1", VenueMemberStats("alice", rating=990, losses=1, matches_played=1))

        member = gateway.get_venue("pingpong", "room-1").members["alice"]
        assert (member.rating, member.losses, member.name) == (990, 1, "Alice")

    def test_member_of_unknown_venue(self, gateway):
        with pytest.raises(NotFoundError):
            gateway.upsert_venue_member("nowhere", VenueMemberStats("alice"))


class TestRatingState:
    def test_round_trip(self, gateway):
        stats = ParticipantStats(
            "alice", 1016, 1, 0, [RatingPoint("2025-06-03T12:00:00.000Z", 1016)]
        )
        gateway.upsert_rating_state("pingpong", stats)

        assert gateway.get_rating_state("pingpong", "alice") == stats
        assert gateway.get_rating_state("tennis", "alice") is None

    def test_overwrites(self, gateway):
        gateway.upsert_rating_state("pingpong", ParticipantStats("alice", 1016))
        gateway.upsert_rating_state("pingpong", ParticipantStats("alice", 1001, wins=1, losses=1))

        stats = gateway.get_rating_state("pingpong", "alice")
        assert (stats.global_rating, stats.wins, stats.losses) == (1001, 1, 1)


class TestBrackets:
    def test_round_trip(self, gateway, db_session):
        bracket = start_tournament([Entrant("a", "Ann"), Entrant("b", "Ben"), Entrant("c", "Cat")])
        gateway.upsert_bracket("cup-1", bracket, sport="pingpong", name="Cup")

        assert gateway.get_bracket("cup-1") == bracket
        row = db_session.get(TournamentBracket, "cup-1")
        assert (row.sport, row.name, row.stage) == ("pingpong", "Cup", "roundRobin")

    def test_missing(self, gateway):
        assert gateway.get_bracket("nope") is None


def _record(venue_id="room-1", sport="pingpong"):
    row = SeasonRow(
        participant_id="alice",
        name="Alice",
        place=1,
        matches_played=2,
        wins=2,
        losses=0,
        win_rate=1.0,
        total_added_points=31,
        final_score=135.0,
        longest_win_streak=2,
        venue_rating=1031,
    )
    return SeasonRecord(venue_id, "Main Room", sport, "office", "03.06.2025 12.00.00", (row,))


class TestSeasons:
    def test_append_season_record(self, gateway, make_venue, db_session):
        make_venue("room-1")
        gateway.append_season_record(_record())
        db_session.flush()

        venue = gateway.get_venue("pingpong", "room-1")
        assert venue.season_history == [_record().to_document()]
        assert db_session.query(SeasonRecordRow).count() == 1
        achievement = db_session.query(Achievement).one()
        assert (achievement.participant_id, achievement.kind, achievement.place) == ("alice", SEASON_ACHIEVEMENT, 1)

    def test_append_to_unknown_venue(self, gateway):
        with pytest.raises(NotFoundError):
            gateway.append_season_record(_record("nowhere"))

    def test_reset_and_clear(self, gateway, make_venue, db_session):
        make_venue("room-1")
        make_venue("court-1", sport="tennis")
        gateway.append_season_record(_record())
        gateway.append_season_record(_record("court-1", sport="tennis"))
        db_session.add(Achievement(participant_id="alice", sport="pingpong", kind="tournamentWin"))
        db_session.flush()

        assert gateway.reset_season_history("pingpong") == 1
        assert gateway.clear_season_achievements("pingpong") == 1
        db_session.flush()

        assert db_session.get(Venue, "room-1").season_history == []
        assert db_session.get(Venue, "court-1").season_history != []
        assert {a.kind for a in db_session.query(Achievement).filter_by(sport="pingpong")} == {"tournamentWin"}
        assert db_session.query(SeasonRecordRow).filter_by(sport="pingpong").count() == 0
        assert db_session.query(SeasonRecordRow).filter_by(sport="tennis").count() == 1


def test_commit_delegates_to_session(db_session, monkeypatch):
    calls = []
    monkeypatch.setattr(db_session, "commit", lambda: calls.append(True))
    SqlGateway(db_session).commit()
    assert calls == [True]
