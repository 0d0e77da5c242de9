"""
Match record types shared by the rating, season and persistence layers.

A match record is created once per recorded game and never deleted by the
core. Only its rating annotations (old/new rating and delta per side, and the
winner fields) are rewritten, either incrementally or by a full rebuild.

Documents read from the store may be in the current snake_case shape or in
the legacy camelCase shape written by older clients (``player1Id``,
``roomId``, ``player1.scores``, ``roomAddedPoints`` ...). ``from_document``
accepts both; ``to_document`` always writes the current shape.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional


def _first(mapping: dict, *keys: str, default: Any = None) -> Any:
    """Return the first key present with a non-None value."""
    for key in keys:
        value = mapping.get(key)
        if value is not None:
            return value
    return default


def _as_score(value: Any) -> float:
    """Coerce a stored score to a number; unreadable scores count as 0."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return value
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0


@dataclass(frozen=True)
class MatchSide:
    """One participant's side of a match plus its rating annotations."""

    participant_id: Optional[str]
    name: str
    score: float
    side: str = "left"

    # Rating annotations, filled in once the match is processed
    old_global_rating: Optional[float] = None
    new_global_rating: Optional[float] = None
    rating_delta: Optional[float] = None
    old_venue_rating: Optional[float] = None
    new_venue_rating: Optional[float] = None
    venue_rating_delta: Optional[float] = None

    @classmethod
    def from_document(
        cls,
        info: Optional[dict],
        participant_id: Optional[str],
        *,
        fallback_name: str,
        fallback_score: Any = None,
        fallback_side: str = "left",
    ) -> "MatchSide":
        info = info or {}
        return cls(
            participant_id=participant_id or info.get("participant_id"),
            name=_first(info, "name", default=fallback_name),
            score=_as_score(_first(info, "score", "scores", default=fallback_score)),
            side=_first(info, "side", default=fallback_side),
            old_global_rating=_first(info, "old_global_rating", "oldRating"),
            new_global_rating=_first(info, "new_global_rating", "newRating"),
            rating_delta=_first(info, "rating_delta", "addedPoints"),
            old_venue_rating=_first(info, "old_venue_rating", "roomOldRating"),
            new_venue_rating=_first(info, "new_venue_rating", "roomNewRating"),
            venue_rating_delta=_first(info, "venue_rating_delta", "roomAddedPoints"),
        )

    def to_document(self) -> dict[str, Any]:
        return {
            "participant_id": self.participant_id,
            "name": self.name,
            "score": self.score,
            "side": self.side,
            "old_global_rating": self.old_global_rating,
            "new_global_rating": self.new_global_rating,
            "rating_delta": self.rating_delta,
            "old_venue_rating": self.old_venue_rating,
            "new_venue_rating": self.new_venue_rating,
            "venue_rating_delta": self.venue_rating_delta,
        }

    def annotated(
        self,
        old_global: float,
        new_global: float,
        old_venue: float,
        new_venue: float,
    ) -> "MatchSide":
        return replace(
            self,
            old_global_rating=old_global,
            new_global_rating=new_global,
            rating_delta=new_global - old_global,
            old_venue_rating=old_venue,
            new_venue_rating=new_venue,
            venue_rating_delta=new_venue - old_venue,
        )


@dataclass(frozen=True)
class MatchRecord:
    """
    One recorded game between two participants at a venue.

    ``timestamp`` keeps the raw stored value (any shape accepted by
    :func:`matchroom.dates.parse_timestamp`).
    """

    id: str
    timestamp: Any
    venue_id: Optional[str]
    player1: MatchSide
    player2: MatchSide
    is_ranked: bool = True
    winner_name: Optional[str] = None
    winner_id: Optional[str] = None
    sport: Optional[str] = None

    @property
    def is_tie(self) -> bool:
        return self.player1.score == self.player2.score

    @property
    def is_complete(self) -> bool:
        """Whether both participant ids and the venue id are present."""
        return bool(self.player1.participant_id and self.player2.participant_id and self.venue_id)

    @property
    def winner_side(self) -> Optional[MatchSide]:
        """The side with the strictly higher score, or None for a tie."""
        if self.player1.score > self.player2.score:
            return self.player1
        if self.player2.score > self.player1.score:
            return self.player2
        return None

    @classmethod
    def from_document(cls, doc_id: str, doc: dict) -> "MatchRecord":
        """Build a record from a stored document (current or legacy shape)."""
        p1_id = _first(doc, "player1_id", "player1Id")
        p2_id = _first(doc, "player2_id", "player2Id")
        player1 = MatchSide.from_document(
            doc.get("player1"),
            p1_id,
            fallback_name=_first(doc, "player1Name", default="Player 1"),
            fallback_score=_first(doc, "score1", "player1Score", default=0),
            fallback_side="left",
        )
        player2 = MatchSide.from_document(
            doc.get("player2"),
            p2_id,
            fallback_name=_first(doc, "player2Name", default="Player 2"),
            fallback_score=_first(doc, "score2", "player2Score", default=0),
            fallback_side="right",
        )
        return cls(
            id=doc_id,
            timestamp=_first(doc, "timestamp_iso", "tsIso", "timestamp", "createdAt"),
            venue_id=_first(doc, "venue_id", "roomId"),
            player1=player1,
            player2=player2,
            is_ranked=doc.get("is_ranked", doc.get("isRanked")) is not False,
            winner_name=_first(doc, "winner_name", "winner"),
            winner_id=_first(doc, "winner_id", "winnerId"),
            sport=doc.get("sport"),
        )

    def to_document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "venue_id": self.venue_id,
            "sport": self.sport,
            "is_ranked": self.is_ranked,
            "winner_name": self.winner_name,
            "winner_id": self.winner_id,
            "player1": self.player1.to_document(),
            "player2": self.player2.to_document(),
        }
