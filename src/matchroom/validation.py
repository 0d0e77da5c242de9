"""
Score validation.

Scores arrive from clients as numbers or numeric strings. They must be
non-negative whole numbers. Tournament rounds add their own rules: a
round-robin game needs a winning margin of at least two points, and a
knockout game cannot end level.
"""

from typing import Any

from matchroom.exceptions import ScoreValidationError

ROUND_ROBIN_MIN_MARGIN = 2


def parse_score(raw: Any) -> int:
    """
    Parse one score.

    Raises:
        ScoreValidationError: If the value is not a non-negative integer

    Examples:
        >>> parse_score("11")
        11
        >>> parse_score(7.0)
        7
    """
    if isinstance(raw, bool) or raw is None:
        raise ScoreValidationError(f"Invalid score: {raw!r}")
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw.isdigit():
            raise ScoreValidationError(f"Invalid score: {raw!r}")
        return int(raw)
    if isinstance(raw, float):
        if not raw.is_integer():
            raise ScoreValidationError(f"Score must be a whole number: {raw!r}")
        raw = int(raw)
    if not isinstance(raw, int):
        raise ScoreValidationError(f"Invalid score: {raw!r}")
    if raw < 0:
        raise ScoreValidationError(f"Score cannot be negative: {raw}")
    return raw


def validate_game_scores(score1: Any, score2: Any) -> tuple[int, int]:
    """Validate a recorded game. Equal scores are allowed (a tie moves no ratings)."""
    return parse_score(score1), parse_score(score2)


def validate_round_robin_scores(score1: Any, score2: Any) -> tuple[int, int]:
    """Round-robin games must be won by at least two points."""
    s1, s2 = validate_game_scores(score1, score2)
    if abs(s1 - s2) < ROUND_ROBIN_MIN_MARGIN:
        raise ScoreValidationError(
            f"Round-robin game must be won by {ROUND_ROBIN_MIN_MARGIN} points: {s1}-{s2}"
        )
    return s1, s2


def validate_knockout_scores(score1: Any, score2: Any) -> tuple[int, int]:
    """Knockout games need a winner."""
    s1, s2 = validate_game_scores(score1, score2)
    if s1 == s2:
        raise ScoreValidationError(f"Knockout game cannot be a draw: {s1}-{s2}")
    return s1, s2
