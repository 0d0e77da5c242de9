"""
Elo rating module.

Implements venue-aware Elo ratings:
- One global rating per participant and activity (K=32)
- Per-venue ratings whose behaviour depends on the venue mode
  (office loss dampening, professional placement volatility, arcade freeze)
- Deterministic full replay of an activity's match history

The persisted services (incremental recording, batched rebuild) live in
matchroom.elo.updater.
"""

from matchroom.elo.calculator import (
    RatingCalculator,
    RatingUpdate,
    compute_delta,
    expected_score,
    get_dynamic_k,
    round_half_up,
)
from matchroom.elo.constants import DEFAULT_RATING, DEFAULT_VENUE_K, GLOBAL_K
from matchroom.elo.replay import (
    HistoryReplayer,
    ParticipantStats,
    RatingPoint,
    ReplayResult,
    ReplayState,
    VenueMemberStats,
    VenueRules,
    rebuild,
)

__all__ = [
    "RatingCalculator",
    "RatingUpdate",
    "compute_delta",
    "expected_score",
    "get_dynamic_k",
    "round_half_up",
    "DEFAULT_RATING",
    "DEFAULT_VENUE_K",
    "GLOBAL_K",
    "HistoryReplayer",
    "ParticipantStats",
    "RatingPoint",
    "ReplayResult",
    "ReplayState",
    "VenueMemberStats",
    "VenueRules",
    "rebuild",
]
