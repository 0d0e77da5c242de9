"""
Knockout draw utility functions.

Provides positional math for knockout brackets. Match positions are
0-indexed within each round and follow standard single-elimination
progression:

    Round N, match i  ->  Round N+1, match i // 2, slot i % 2

So the winners of matches 0 and 1 meet in match 0 of the next round,
matches 2 and 3 feed match 1, etc. Pairing winners "sequentially" is exactly
this rule.

Seeds are laid out in standard bracket order so the top two seeds can only
meet in the final.
"""

from typing import Optional

from matchroom.tournament.models import RoundType

# Ordered knockout progression; each round feeds the next one
ROUND_PROGRESSION = [RoundType.QUARTERS, RoundType.SEMIS, RoundType.FINAL]

# Draw size (power of two) -> first knockout round
DRAW_SIZE_TO_FIRST_ROUND = {
    8: RoundType.QUARTERS,
    4: RoundType.SEMIS,
    2: RoundType.FINAL,
}

# Largest knockout draw; lower round-robin finishers do not advance
MAX_DRAW_SIZE = 8


def get_next_round(round_type: RoundType) -> Optional[RoundType]:
    """
    Get the next knockout round.

    Examples:
        >>> get_next_round(RoundType.QUARTERS)
        <RoundType.SEMIS: 'knockoutSemis'>
        >>> get_next_round(RoundType.FINAL) is None
        True
    """
    try:
        idx = ROUND_PROGRESSION.index(round_type)
    except ValueError:
        return None
    if idx >= len(ROUND_PROGRESSION) - 1:
        return None
    return ROUND_PROGRESSION[idx + 1]


def get_next_match_slot(match_position: int) -> tuple[int, int]:
    """
    Where the winner of a match plays next.

    Returns:
        Tuple of (match position in next round, slot 0 or 1)

    Examples:
        >>> get_next_match_slot(0)
        (0, 0)
        >>> get_next_match_slot(3)
        (1, 1)
    """
    return match_position // 2, match_position % 2


def get_draw_size(entrants: int) -> int:
    """
    Smallest supported draw that fits the entrants.

    Non-power-of-two counts are rounded up; the missing slots become byes.

    Examples:
        >>> get_draw_size(3)
        4
        >>> get_draw_size(6)
        8
        >>> get_draw_size(12)
        8
    """
    size = 2
    while size < entrants and size < MAX_DRAW_SIZE:
        size *= 2
    return size


def get_first_round_for_draw_size(draw_size: int) -> RoundType:
    """First knockout round for a draw size (2, 4 or 8)."""
    return DRAW_SIZE_TO_FIRST_ROUND[draw_size]


def bracket_seed_order(draw_size: int) -> list[int]:
    """
    Seeds in draw order; consecutive pairs are first-round matches.

    Built by repeatedly replacing every seed s with (s, size + 1 - s).

    Examples:
        >>> bracket_seed_order(4)
        [1, 4, 2, 3]
        >>> bracket_seed_order(8)
        [1, 8, 4, 5, 2, 7, 3, 6]
    """
    if draw_size < 2 or draw_size & (draw_size - 1):
        raise ValueError(f"Draw size must be a power of two >= 2, got {draw_size}")
    order = [1]
    size = 1
    while size < draw_size:
        size *= 2
        order = [s for seed in order for s in (seed, size + 1 - seed)]
    return order
