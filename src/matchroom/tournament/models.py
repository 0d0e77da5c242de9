"""
Tournament bracket data model.

A bracket is stored as one document (last write wins). Its rounds move
through ``notStarted -> inProgress -> finished`` and the bracket itself
through ``roundRobin -> knockout -> completed``. Once completed the bracket
is read-only.

Enum values are the camelCase strings used in stored documents.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class BracketStage(str, Enum):
    ROUND_ROBIN = "roundRobin"
    KNOCKOUT = "knockout"
    COMPLETED = "completed"


class RoundType(str, Enum):
    ROUND_ROBIN = "roundRobin"
    QUARTERS = "knockoutQuarters"
    SEMIS = "knockoutSemis"
    FINAL = "knockoutFinal"
    BRONZE = "knockoutBronze"

    @property
    def is_knockout(self) -> bool:
        return self is not RoundType.ROUND_ROBIN


ROUND_LABELS: dict[RoundType, str] = {
    RoundType.ROUND_ROBIN: "Round-Robin",
    RoundType.QUARTERS: "Quarter-finals",
    RoundType.SEMIS: "Semi-finals",
    RoundType.FINAL: "Finals",
    RoundType.BRONZE: "3rd-place",
}


class RoundStatus(str, Enum):
    NOT_STARTED = "notStarted"
    IN_PROGRESS = "inProgress"
    FINISHED = "finished"


class MatchStatus(str, Enum):
    NOT_STARTED = "notStarted"
    FINISHED = "finished"


@dataclass(frozen=True)
class Entrant:
    """A tournament participant. ``seed`` is informational only."""
    participant_id: str
    name: str
    seed: Optional[int] = None

    def to_document(self) -> dict[str, Any]:
        return {"participant_id": self.participant_id, "name": self.name, "seed": self.seed}

    @classmethod
    def from_document(cls, doc: Optional[dict]) -> Optional["Entrant"]:
        if not doc:
            return None
        return cls(
            participant_id=doc.get("participant_id") or doc.get("userId"),
            name=doc.get("name", ""),
            seed=doc.get("seed"),
        )


@dataclass
class BracketMatch:
    """
    One bracket pairing.

    A bye has exactly one entrant; it is finished on creation with that
    entrant as the winner and never carries scores.
    """
    match_id: str
    player1: Optional[Entrant]
    player2: Optional[Entrant]
    score_player1: Optional[float] = None
    score_player2: Optional[float] = None
    match_status: MatchStatus = MatchStatus.NOT_STARTED
    winner_id: Optional[str] = None
    is_bye: bool = False

    @property
    def has_scores(self) -> bool:
        return self.score_player1 is not None and self.score_player2 is not None

    @property
    def entrants(self) -> list[Entrant]:
        return [p for p in (self.player1, self.player2) if p is not None]

    @property
    def winner(self) -> Optional[Entrant]:
        for entrant in self.entrants:
            if entrant.participant_id == self.winner_id:
                return entrant
        return None

    @property
    def loser(self) -> Optional[Entrant]:
        if self.winner_id is None:
            return None
        for entrant in self.entrants:
            if entrant.participant_id != self.winner_id:
                return entrant
        return None

    def to_document(self) -> dict[str, Any]:
        return {
            "match_id": self.match_id,
            "player1": self.player1.to_document() if self.player1 else None,
            "player2": self.player2.to_document() if self.player2 else None,
            "score_player1": self.score_player1,
            "score_player2": self.score_player2,
            "match_status": self.match_status.value,
            "winner_id": self.winner_id,
            "is_bye": self.is_bye,
        }

    @classmethod
    def from_document(cls, doc: dict) -> "BracketMatch":
        return cls(
            match_id=doc["match_id"],
            player1=Entrant.from_document(doc.get("player1")),
            player2=Entrant.from_document(doc.get("player2")),
            score_player1=doc.get("score_player1"),
            score_player2=doc.get("score_player2"),
            match_status=MatchStatus(doc.get("match_status", MatchStatus.NOT_STARTED.value)),
            winner_id=doc.get("winner_id"),
            is_bye=bool(doc.get("is_bye", False)),
        )


@dataclass
class Round:
    round_index: int
    type: RoundType
    status: RoundStatus = RoundStatus.NOT_STARTED
    matches: list[BracketMatch] = field(default_factory=list)

    @property
    def label(self) -> str:
        return ROUND_LABELS[self.type]

    def to_document(self) -> dict[str, Any]:
        return {
            "round_index": self.round_index,
            "type": self.type.value,
            "label": self.label,
            "status": self.status.value,
            "matches": [m.to_document() for m in self.matches],
        }

    @classmethod
    def from_document(cls, doc: dict) -> "Round":
        return cls(
            round_index=doc["round_index"],
            type=RoundType(doc["type"]),
            status=RoundStatus(doc.get("status", RoundStatus.NOT_STARTED.value)),
            matches=[BracketMatch.from_document(m) for m in doc.get("matches", [])],
        )


@dataclass
class StandingRow:
    """Aggregated results of one entrant."""
    participant_id: str
    name: str
    wins: int = 0
    losses: int = 0
    points_for: float = 0
    points_against: float = 0
    place: int = 0

    @property
    def point_diff(self) -> float:
        return self.points_for - self.points_against

    def to_document(self) -> dict[str, Any]:
        return {
            "participant_id": self.participant_id,
            "name": self.name,
            "wins": self.wins,
            "losses": self.losses,
            "points_for": self.points_for,
            "points_against": self.points_against,
            "place": self.place,
        }

    @classmethod
    def from_document(cls, doc: dict) -> "StandingRow":
        return cls(
            participant_id=doc["participant_id"],
            name=doc.get("name", ""),
            wins=doc.get("wins", 0),
            losses=doc.get("losses", 0),
            points_for=doc.get("points_for", 0),
            points_against=doc.get("points_against", 0),
            place=doc.get("place", 0),
        )


@dataclass
class Bracket:
    stage: BracketStage = BracketStage.ROUND_ROBIN
    current_round_index: int = 0
    rounds: list[Round] = field(default_factory=list)
    include_bronze: bool = True
    final_standings: list[StandingRow] = field(default_factory=list)
    champion: Optional[Entrant] = None

    @property
    def is_completed(self) -> bool:
        return self.stage is BracketStage.COMPLETED

    def round_at(self, round_index: int) -> Optional[Round]:
        for rnd in self.rounds:
            if rnd.round_index == round_index:
                return rnd
        return None

    def round_of_type(self, round_type: RoundType) -> Optional[Round]:
        for rnd in self.rounds:
            if rnd.type is round_type:
                return rnd
        return None

    def find_match(self, match_id: str) -> tuple[Round, BracketMatch]:
        for rnd in self.rounds:
            for match in rnd.matches:
                if match.match_id == match_id:
                    return rnd, match
        raise KeyError(f"Unknown bracket match: {match_id}")

    def to_document(self) -> dict[str, Any]:
        return {
            "stage": self.stage.value,
            "current_round_index": self.current_round_index,
            "include_bronze": self.include_bronze,
            "rounds": [r.to_document() for r in sorted(self.rounds, key=lambda r: r.round_index)],
            "final_standings": [s.to_document() for s in self.final_standings],
            "champion": self.champion.to_document() if self.champion else None,
        }

    @classmethod
    def from_document(cls, doc: dict) -> "Bracket":
        return cls(
            stage=BracketStage(doc.get("stage", BracketStage.ROUND_ROBIN.value)),
            current_round_index=doc.get("current_round_index", 0),
            rounds=[Round.from_document(r) for r in doc.get("rounds", [])],
            include_bronze=doc.get("include_bronze", True),
            final_standings=[StandingRow.from_document(s) for s in doc.get("final_standings", [])],
            champion=Entrant.from_document(doc.get("champion")),
        )
