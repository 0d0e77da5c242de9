"""
Unit tests for tournament progression.

Walks full tournaments through round-robin, knockout rounds and
completion, including uneven fields that need byes.
"""

import pytest

from matchroom.exceptions import BracketStateError
from matchroom.tournament.bracket import (
    can_finish_round,
    finish_round,
    record_score,
    start_tournament,
)
from matchroom.tournament.draw import bracket_seed_order, get_draw_size, get_next_match_slot, get_next_round
from matchroom.tournament.models import (
    Bracket,
    BracketStage,
    Entrant,
    MatchStatus,
    RoundStatus,
    RoundType,
)


def entrants(count):
    return [Entrant(participant_id=chr(ord("a") + i), name=chr(ord("A") + i)) for i in range(count)]


def play_round(bracket, round_index, score_for=None):
    """Score every open match so the earlier-listed entrant wins, then finish."""
    rnd = bracket.round_at(round_index)
    for match in rnd.matches:
        if match.is_bye:
            continue
        s1, s2 = score_for(match) if score_for else (11, 5)
        record_score(bracket, match.match_id, s1, s2)
    return finish_round(bracket, round_index)


def by_seed(match):
    """Lower letter (better seed) wins."""
    if match.player1.participant_id < match.player2.participant_id:
        return 11, 5
    return 5, 11


class TestDraw:
    def test_seed_order(self):
        assert bracket_seed_order(2) == [1, 2]
        assert bracket_seed_order(4) == [1, 4, 2, 3]
        assert bracket_seed_order(8) == [1, 8, 4, 5, 2, 7, 3, 6]

    def test_seed_order_rejects_non_power_of_two(self):
        with pytest.raises(ValueError):
            bracket_seed_order(6)

    @pytest.mark.parametrize("count,size", [(2, 2), (3, 4), (4, 4), (5, 8), (8, 8), (12, 8)])
    def test_draw_size(self, count, size):
        assert get_draw_size(count) == size

    def test_progression(self):
        assert get_next_round(RoundType.QUARTERS) is RoundType.SEMIS
        assert get_next_round(RoundType.SEMIS) is RoundType.FINAL
        assert get_next_round(RoundType.FINAL) is None
        assert get_next_match_slot(2) == (1, 0)


class TestStartTournament:
    def test_round_robin_over_every_pair(self):
        bracket = start_tournament(entrants(4))
        rnd = bracket.rounds[0]

        assert bracket.stage is BracketStage.ROUND_ROBIN
        assert bracket.current_round_index == 0
        assert rnd.type is RoundType.ROUND_ROBIN
        assert rnd.status is RoundStatus.IN_PROGRESS
        assert len(rnd.matches) == 6
        pairs = {(m.player1.participant_id, m.player2.participant_id) for m in rnd.matches}
        assert pairs == {("a", "b"), ("a", "c"), ("a", "d"), ("b", "c"), ("b", "d"), ("c", "d")}

    def test_needs_two_participants(self):
        with pytest.raises(BracketStateError):
            start_tournament(entrants(1))

    def test_rejects_duplicates(self):
        a = Entrant("a", "A")
        with pytest.raises(BracketStateError):
            start_tournament([a, a])


class TestFourPlayerTournament:
    """Round-robin, semis, bronze and final."""

    @pytest.fixture
    def after_round_robin(self):
        bracket = start_tournament(entrants(4))
        play_round(bracket, 0, by_seed)
        return bracket

    def test_semis_seeded_one_v_four(self, after_round_robin):
        bracket = after_round_robin
        semis = bracket.round_at(1)

        assert bracket.stage is BracketStage.KNOCKOUT
        assert bracket.current_round_index == 1
        assert semis.type is RoundType.SEMIS
        pairs = [(m.player1.participant_id, m.player2.participant_id) for m in semis.matches]
        assert pairs == [("a", "d"), ("b", "c")]
        assert [m.player1.seed for m in semis.matches] == [1, 2]

    def test_semis_seed_bronze_and_final(self, after_round_robin):
        bracket = after_round_robin
        play_round(bracket, 1, by_seed)

        bronze = bracket.round_of_type(RoundType.BRONZE)
        final = bracket.round_of_type(RoundType.FINAL)
        assert bronze.round_index == 2
        assert final.round_index == 3
        assert bracket.current_round_index == 2
        assert (bronze.matches[0].player1.participant_id, bronze.matches[0].player2.participant_id) == ("d", "c")
        assert (final.matches[0].player1.participant_id, final.matches[0].player2.participant_id) == ("a", "b")

    def test_completes_after_final_and_bronze(self, after_round_robin):
        bracket = after_round_robin
        play_round(bracket, 1, by_seed)
        play_round(bracket, 2, by_seed)
        assert bracket.stage is BracketStage.KNOCKOUT

        play_round(bracket, 3, by_seed)

        assert bracket.stage is BracketStage.COMPLETED
        assert bracket.champion.participant_id == "a"
        assert [(row.participant_id, row.place) for row in bracket.final_standings] == [
            ("a", 1), ("b", 2), ("c", 3), ("d", 4),
        ]

    def test_current_round_follows_open_rounds(self, after_round_robin):
        """Round-robin, semis, bronze, final: the pointer always lands on an open round."""
        bracket = after_round_robin
        play_round(bracket, 1, by_seed)
        assert bracket.current_round_index == 2

        play_round(bracket, 2, by_seed)
        assert bracket.current_round_index == 3
        assert bracket.round_at(3).status is RoundStatus.IN_PROGRESS

        play_round(bracket, 3, by_seed)
        assert bracket.current_round_index == 3

    def test_final_before_bronze_waits(self, after_round_robin):
        bracket = after_round_robin
        play_round(bracket, 1, by_seed)
        play_round(bracket, 3, by_seed)

        assert bracket.stage is BracketStage.KNOCKOUT
        assert bracket.current_round_index == 2
        play_round(bracket, 2, by_seed)
        assert bracket.stage is BracketStage.COMPLETED

    def test_without_bronze(self):
        bracket = start_tournament(entrants(4), include_bronze=False)
        play_round(bracket, 0, by_seed)
        play_round(bracket, 1, by_seed)

        assert bracket.round_of_type(RoundType.BRONZE) is None
        play_round(bracket, 2, by_seed)
        assert bracket.stage is BracketStage.COMPLETED
        assert [row.participant_id for row in bracket.final_standings] == ["a", "b", "c", "d"]

    def test_round_trip_document(self, after_round_robin):
        doc = after_round_robin.to_document()
        assert Bracket.from_document(doc) == after_round_robin
        assert doc["rounds"][1]["type"] == "knockoutSemis"


class TestByes:
    def test_five_players_get_quarter_final_byes(self):
        bracket = start_tournament(entrants(5))
        play_round(bracket, 0, by_seed)
        quarters = bracket.round_at(1)

        assert quarters.type is RoundType.QUARTERS
        byes = [m for m in quarters.matches if m.is_bye]
        assert len(byes) == 3
        assert {m.winner_id for m in byes} == {"a", "b", "c"}
        assert all(m.match_status is MatchStatus.FINISHED for m in byes)
        played = [m for m in quarters.matches if not m.is_bye]
        assert [(m.player1.participant_id, m.player2.participant_id) for m in played] == [("d", "e")]

    def test_bye_winner_advances(self):
        bracket = start_tournament(entrants(5))
        play_round(bracket, 0, by_seed)
        play_round(bracket, 1, by_seed)
        semis = bracket.round_at(2)

        assert semis.type is RoundType.SEMIS
        pairs = [(m.player1.participant_id, m.player2.participant_id) for m in semis.matches]
        assert pairs == [("a", "d"), ("b", "c")]

    def test_three_players_bronze_is_a_bye(self):
        bracket = start_tournament(entrants(3))
        play_round(bracket, 0, by_seed)
        play_round(bracket, 1, by_seed)

        bronze = bracket.round_of_type(RoundType.BRONZE)
        assert bronze.status is RoundStatus.FINISHED
        assert bronze.matches[0].is_bye
        assert bronze.matches[0].winner_id == "c"

        final = bracket.round_of_type(RoundType.FINAL)
        assert bracket.current_round_index == final.round_index
        play_round(bracket, final.round_index, by_seed)
        assert bracket.stage is BracketStage.COMPLETED
        assert [row.participant_id for row in bracket.final_standings] == ["a", "b", "c"]

    def test_bye_takes_no_scores(self):
        bracket = start_tournament(entrants(5))
        play_round(bracket, 0, by_seed)
        bye = next(m for m in bracket.round_at(1).matches if m.is_bye)
        with pytest.raises(BracketStateError):
            record_score(bracket, bye.match_id, 11, 0)


class TestTwoPlayers:
    def test_straight_to_final(self):
        bracket = start_tournament(entrants(2))
        play_round(bracket, 0, by_seed)
        final = bracket.round_at(1)

        assert final.type is RoundType.FINAL
        play_round(bracket, 1, lambda m: (5, 11))
        assert bracket.champion.participant_id == "b"
        assert [row.place for row in bracket.final_standings] == [1, 2]


class TestIllegalTransitions:
    def test_cannot_finish_with_missing_scores(self):
        bracket = start_tournament(entrants(3))
        record_score(bracket, "0-0", 11, 5)

        assert not can_finish_round(bracket.round_at(0))
        with pytest.raises(BracketStateError):
            finish_round(bracket, 0)

    def test_cannot_finish_twice(self):
        bracket = start_tournament(entrants(2))
        play_round(bracket, 0)
        with pytest.raises(BracketStateError):
            finish_round(bracket, 0)

    def test_cannot_score_finished_round(self):
        bracket = start_tournament(entrants(2))
        play_round(bracket, 0)
        with pytest.raises(BracketStateError):
            record_score(bracket, "0-0", 11, 2)

    def test_unknown_match_and_round(self):
        bracket = start_tournament(entrants(2))
        with pytest.raises(BracketStateError):
            record_score(bracket, "9-9", 11, 2)
        with pytest.raises(BracketStateError):
            finish_round(bracket, 7)

    def test_knockout_cannot_end_level(self):
        bracket = start_tournament(entrants(2))
        play_round(bracket, 0)
        record_score(bracket, "1-0", 10, 10)
        with pytest.raises(BracketStateError):
            finish_round(bracket, 1)
        assert bracket.round_at(1).status is RoundStatus.IN_PROGRESS

    def test_completed_bracket_is_read_only(self):
        bracket = start_tournament(entrants(2))
        play_round(bracket, 0)
        play_round(bracket, 1)
        assert bracket.is_completed
        with pytest.raises(BracketStateError):
            record_score(bracket, "1-0", 1, 11)

    def test_round_robin_draw_has_no_winner(self):
        bracket = start_tournament(entrants(3))
        play_round(bracket, 0, lambda m: (7, 7))
        assert all(m.winner_id is None for m in bracket.round_at(0).matches)
        assert all(m.match_status is MatchStatus.FINISHED for m in bracket.round_at(0).matches)
