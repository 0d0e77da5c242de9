"""Round-robin standings table."""

from typing import Iterable

from matchroom.tournament.models import BracketMatch, MatchStatus, StandingRow


def compute_round_robin_table(matches: Iterable[BracketMatch]) -> list[StandingRow]:
    """
    Aggregate wins, losses and points per entrant and rank them.

    Byes are ignored. Points are counted for every match with both scores
    set; wins and losses only for finished matches with a winner.

    Ranking: wins desc, then point differential desc. Entrants still level
    keep first-appearance order.

    Returns:
        StandingRow list with ``place`` filled in (1-based).
    """
    rows: dict[str, StandingRow] = {}

    def row_for(entrant) -> StandingRow:
        row = rows.get(entrant.participant_id)
        if row is None:
            row = StandingRow(participant_id=entrant.participant_id, name=entrant.name)
            rows[entrant.participant_id] = row
        return row

    for match in matches:
        if match.is_bye or match.player1 is None or match.player2 is None:
            continue
        row1 = row_for(match.player1)
        row2 = row_for(match.player2)

        if match.has_scores:
            row1.points_for += match.score_player1
            row1.points_against += match.score_player2
            row2.points_for += match.score_player2
            row2.points_against += match.score_player1

        if match.match_status is MatchStatus.FINISHED and match.winner_id is not None:
            if match.winner_id == match.player1.participant_id:
                row1.wins += 1
                row2.losses += 1
            else:
                row2.wins += 1
                row1.losses += 1

    table = sorted(
        rows.values(),
        key=lambda r: (-r.wins, -r.point_diff),
    )
    for place, row in enumerate(table, start=1):
        row.place = place
    return table
