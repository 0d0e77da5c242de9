"""
Rating system constants.

K factor: controls rating volatility (how much ratings change per match).
Global ratings always use GLOBAL_K. Venues choose their own K (default 32),
and professional venues double it during placement.

Spread: 400 rating points of difference correspond to 10:1 expected odds,
the classic chess Elo scale.
"""

from matchroom.config import settings

# Starting rating for every participant, globally and in every venue
DEFAULT_RATING = float(settings.default_rating)

# K-factor for global (cross-venue) ratings; venues cannot override it
GLOBAL_K = settings.global_k_factor

# K-factor used by venues that do not configure one
DEFAULT_VENUE_K = settings.default_venue_k_factor

# Rating difference that maps to 10:1 expected odds
SPREAD = 400

# Professional venues: K is multiplied by PLACEMENT_MULTIPLIER while the
# participant has fewer than PLACEMENT_MATCHES prior matches at the venue
PLACEMENT_MATCHES = settings.placement_matches
PLACEMENT_MULTIPLIER = 2

# Office venues: negative venue deltas are scaled by this factor
OFFICE_LOSS_DAMPENING = 0.8
