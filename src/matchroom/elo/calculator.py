"""
Rating delta calculator.

Implements the standard Elo formula with venue-mode rules on top:

  Expected score: E_A = 1 / (1 + 10^((R_B - R_A) / 400))
  Delta:          d_A = round(K * (actual - expected))

Where:
  R_A, R_B = ratings of A and B before the match
  K        = 32 for global ratings, the venue's K-factor otherwise
  actual   = 1 if A scored more than B, else 0

Venue modes change the venue delta only:
  - arcade: ratings are cosmetic, the delta is always 0
  - office: losses are dampened to 80% ("loss inflation guard")
  - professional: K is doubled for a participant's first 10 venue matches
    (see get_dynamic_k)

Each side is computed independently by swapping the arguments. Because of
office dampening the two deltas are not always negatives of each other.

Ties and invalid scores are the caller's responsibility: compute_delta never
validates, and NaN inputs propagate as NaN.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from matchroom.elo.constants import (
    DEFAULT_VENUE_K,
    GLOBAL_K,
    OFFICE_LOSS_DAMPENING,
    PLACEMENT_MATCHES,
    PLACEMENT_MULTIPLIER,
    SPREAD,
)
from matchroom.modes import RoomMode, parse_room_mode


def round_half_up(value: float) -> int | float:
    """
    Round to the nearest integer, halves rounding towards +infinity.

    Matches the rounding used by the stored historical ratings, so replays
    reproduce them exactly. NaN and infinities are returned unchanged.
    """
    if math.isnan(value) or math.isinf(value):
        return value
    return int(math.floor(value + 0.5))


def expected_score(rating_a: float, rating_b: float) -> float:
    """
    Probability that A beats B.

    Example:
        expected_score(1000, 1000)  # 0.5
        expected_score(1200, 1000)  # ~0.76
    """
    try:
        return 1.0 / (1.0 + 10.0 ** ((rating_b - rating_a) / SPREAD))
    except OverflowError:
        return 0.0 if rating_b > rating_a else 1.0


def compute_delta(
    rating_a: float,
    rating_b: float,
    score_a: float,
    score_b: float,
    is_global: bool,
    mode: RoomMode | str = RoomMode.OFFICE,
    k_factor: float = DEFAULT_VENUE_K,
) -> int | float:
    """
    Rating delta for side A of one match.

    Args:
        rating_a: A's rating before the match
        rating_b: B's rating before the match
        score_a: A's score
        score_b: B's score
        is_global: True for the global rating (fixed K=32, no mode rules)
        mode: Venue mode (enum member or stored string), only consulted
              when is_global is False
        k_factor: Venue K-factor, only used when is_global is False

    Returns:
        Signed integer delta to add to A's rating (NaN if an input is NaN)

    Example:
        # Equal ratings, A wins 11-5 globally
        compute_delta(1000, 1000, 11, 5, is_global=True)  # 16
    """
    mode = parse_room_mode(mode)
    if not is_global and mode is RoomMode.ARCADE:
        return 0

    k = GLOBAL_K if is_global else k_factor
    result = 1 if score_a > score_b else 0
    delta = round_half_up(k * (result - expected_score(rating_a, rating_b)))

    if not is_global and mode is RoomMode.OFFICE and delta < 0:
        delta = round_half_up(delta * OFFICE_LOSS_DAMPENING)

    return delta


def get_dynamic_k(base_k: float, matches_played: int, mode: RoomMode | str) -> float:
    """
    Effective venue K-factor including placement volatility.

    Only professional venues apply placement: while a participant has fewer
    than 10 prior matches at the venue their K is doubled.

    Examples:
        get_dynamic_k(32, 3, RoomMode.PROFESSIONAL)   # 64
        get_dynamic_k(32, 10, RoomMode.PROFESSIONAL)  # 32
        get_dynamic_k(32, 3, "office")                # 32
    """
    if parse_room_mode(mode) is RoomMode.PROFESSIONAL and matches_played < PLACEMENT_MATCHES:
        return base_k * PLACEMENT_MULTIPLIER
    return base_k


@dataclass(frozen=True)
class RatingUpdate:
    """
    Both sides' rating changes for one match.

    Contains everything needed to annotate a match record.
    """
    rating_a_before: float
    rating_b_before: float
    delta_a: int
    delta_b: int
    expected_a: float

    @property
    def rating_a_after(self) -> float:
        return self.rating_a_before + self.delta_a

    @property
    def rating_b_after(self) -> float:
        return self.rating_b_before + self.delta_b

    @property
    def was_upset(self) -> bool:
        """Whether the lower-rated side gained rating."""
        if self.delta_a > 0:
            return self.rating_a_before < self.rating_b_before
        if self.delta_b > 0:
            return self.rating_b_before < self.rating_a_before
        return False

    def __repr__(self) -> str:
        return (
            f"<RatingUpdate(A: {self.rating_a_before:.0f} -> {self.rating_a_after:.0f}, "
            f"B: {self.rating_b_before:.0f} -> {self.rating_b_after:.0f})>"
        )


class RatingCalculator:
    """
    Applies compute_delta symmetrically for both sides of a match.

    Usage:
        calculator = RatingCalculator(mode=RoomMode.OFFICE, k_factor=32)

        glob = calculator.global_update(1000, 1000, 11, 5)
        venue = calculator.venue_update(1040, 980, 11, 5, matches_a=3, matches_b=12)
    """

    def __init__(self, mode: RoomMode | str = RoomMode.OFFICE, k_factor: Optional[float] = None):
        self.mode = parse_room_mode(mode)
        self.k_factor = DEFAULT_VENUE_K if k_factor is None else k_factor

    def global_update(
        self,
        rating_a: float,
        rating_b: float,
        score_a: float,
        score_b: float,
    ) -> RatingUpdate:
        """Global rating change (K=32, no venue rules)."""
        return RatingUpdate(
            rating_a_before=rating_a,
            rating_b_before=rating_b,
            delta_a=compute_delta(rating_a, rating_b, score_a, score_b, True),
            delta_b=compute_delta(rating_b, rating_a, score_b, score_a, True),
            expected_a=expected_score(rating_a, rating_b),
        )

    def venue_update(
        self,
        rating_a: float,
        rating_b: float,
        score_a: float,
        score_b: float,
        matches_a: int = 0,
        matches_b: int = 0,
    ) -> RatingUpdate:
        """
        Venue rating change under this calculator's mode.

        Args:
            matches_a: A's prior match count at the venue (placement)
            matches_b: B's prior match count at the venue (placement)
        """
        k_a = get_dynamic_k(self.k_factor, matches_a, self.mode)
        k_b = get_dynamic_k(self.k_factor, matches_b, self.mode)
        return RatingUpdate(
            rating_a_before=rating_a,
            rating_b_before=rating_b,
            delta_a=compute_delta(rating_a, rating_b, score_a, score_b, False, self.mode, k_a),
            delta_b=compute_delta(rating_b, rating_a, score_b, score_a, False, self.mode, k_b),
            expected_a=expected_score(rating_a, rating_b),
        )
