"""
Persisted tournament flow.

Loads a bracket through the gateway, applies one validated change and
writes the whole document back (last write wins).
"""

import logging
from typing import Optional, Sequence

from matchroom.db.gateway import PersistenceGateway
from matchroom.exceptions import NotFoundError
from matchroom.tournament import bracket as engine
from matchroom.tournament.models import Bracket, BracketMatch, Entrant, Round, RoundType
from matchroom.validation import validate_knockout_scores, validate_round_robin_scores

logger = logging.getLogger(__name__)


class TournamentService:
    """
    Usage:
        service = TournamentService(gateway)
        service.create("cup-1", participants, sport="pingpong", name="Spring Cup")
        service.submit_score("cup-1", "0-0", 11, 4)
        service.finish_round("cup-1", 0)
    """

    def __init__(self, gateway: PersistenceGateway):
        self.gateway = gateway

    def load(self, tournament_id: str) -> Bracket:
        bracket = self.gateway.get_bracket(tournament_id)
        if bracket is None:
            raise NotFoundError(f"Tournament not found: {tournament_id}")
        return bracket

    def _save(self, tournament_id: str, bracket: Bracket, sport: Optional[str] = None,
              name: Optional[str] = None) -> None:
        self.gateway.upsert_bracket(tournament_id, bracket, sport=sport, name=name)
        self.gateway.commit()

    def create(
        self,
        tournament_id: str,
        participants: Sequence[Entrant],
        sport: Optional[str] = None,
        name: Optional[str] = None,
        include_bronze: bool = True,
    ) -> Bracket:
        bracket = engine.start_tournament(participants, include_bronze=include_bronze)
        self._save(tournament_id, bracket, sport=sport, name=name)
        return bracket

    def submit_score(self, tournament_id: str, match_id: str, score1, score2) -> Bracket:
        """
        Validate and store one match score.

        Raises:
            ScoreValidationError: Scores break the round's rules
            BracketStateError: The match cannot take scores
        """
        bracket = self.load(tournament_id)
        rnd, _ = self._find(bracket, match_id)
        if rnd.type is RoundType.ROUND_ROBIN:
            s1, s2 = validate_round_robin_scores(score1, score2)
        else:
            s1, s2 = validate_knockout_scores(score1, score2)
        engine.record_score(bracket, match_id, s1, s2)
        self._save(tournament_id, bracket)
        return bracket

    def finish_round(self, tournament_id: str, round_index: int) -> Bracket:
        bracket = self.load(tournament_id)
        engine.finish_round(bracket, round_index)
        self._save(tournament_id, bracket)
        if bracket.is_completed:
            logger.info(
                "Tournament %s completed, champion %s",
                tournament_id,
                bracket.champion.name if bracket.champion else None,
            )
        return bracket

    @staticmethod
    def _find(bracket: Bracket, match_id: str) -> tuple[Round, BracketMatch]:
        try:
            return bracket.find_match(match_id)
        except KeyError as e:
            raise NotFoundError(f"Unknown bracket match: {match_id}") from e
