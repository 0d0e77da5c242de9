"""Exception hierarchy for Matchroom.

Expected branches (ties, arcade zero deltas, empty seasons) are modelled as
return values, never as exceptions. These types cover invalid caller input
and missing records.
"""


class MatchroomError(Exception):
    """Base class for all Matchroom errors."""


class ScoreValidationError(MatchroomError, ValueError):
    """Raised when submitted scores are not valid for the match type."""


class BracketStateError(MatchroomError):
    """Raised when a bracket operation is not allowed in the current state."""


class NotFoundError(MatchroomError, LookupError):
    """Raised when a record requested from the gateway does not exist."""
