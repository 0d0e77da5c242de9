"""
Matchroom - rating and tournament engine for multi-sport match tracking.

Participants join venues ("rooms"), log match scores, and this package keeps
their skill ratings, tournament brackets and season standings up to date.

Main components:
- elo: per-match rating deltas, incremental updates and full history replay
- tournament: round-robin -> knockout bracket state machine
- season: season closure scoring and ranking
- db: persistence gateway backed by SQLAlchemy
"""

__version__ = "1.0.0"
