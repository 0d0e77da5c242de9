"""
Tournament module.

Round-robin pool followed by a seeded knockout draw, with explicit byes
and an optional bronze match.
"""

from matchroom.tournament.models import (
    Bracket,
    BracketMatch,
    BracketStage,
    Entrant,
    MatchStatus,
    Round,
    RoundStatus,
    RoundType,
    StandingRow,
)
from matchroom.tournament.standings import compute_round_robin_table
from matchroom.tournament.bracket import (
    can_finish_round,
    compute_final_standings,
    finish_round,
    record_score,
    seed_next_round,
    start_tournament,
)

__all__ = [
    "Bracket",
    "BracketMatch",
    "BracketStage",
    "Entrant",
    "MatchStatus",
    "Round",
    "RoundStatus",
    "RoundType",
    "StandingRow",
    "compute_round_robin_table",
    "can_finish_round",
    "compute_final_standings",
    "finish_round",
    "record_score",
    "seed_next_round",
    "start_tournament",
]
