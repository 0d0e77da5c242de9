"""
Tournament progression.

A tournament opens with one round-robin round over every pair of entrants.
Finishing it seeds a knockout draw from the table (top eight advance, laid
out in standard bracket order), and every finished knockout round seeds the
next one until the final, plus the optional bronze match, is done.

Empty draw slots become explicit bye matches. A bye is finished on creation
and its lone entrant advances without playing.

All functions mutate the given Bracket in place and raise BracketStateError
on illegal transitions. Nothing here touches storage; see
matchroom.tournament.service for the persisted flow.
"""

import logging
from itertools import combinations
from typing import Optional, Sequence

from matchroom.exceptions import BracketStateError
from matchroom.tournament.draw import (
    MAX_DRAW_SIZE,
    bracket_seed_order,
    get_draw_size,
    get_first_round_for_draw_size,
    get_next_match_slot,
    get_next_round,
)
from matchroom.tournament.models import (
    Bracket,
    BracketMatch,
    BracketStage,
    Entrant,
    MatchStatus,
    Round,
    RoundStatus,
    RoundType,
    StandingRow,
)
from matchroom.tournament.standings import compute_round_robin_table

logger = logging.getLogger(__name__)


def _match_id(round_index: int, position: int) -> str:
    return f"{round_index}-{position}"


def _make_match(round_index: int, position: int, player1: Optional[Entrant], player2: Optional[Entrant]) -> BracketMatch:
    """Create a pairing; a single entrant becomes a finished bye."""
    match = BracketMatch(match_id=_match_id(round_index, position), player1=player1, player2=player2)
    entrants = match.entrants
    if len(entrants) == 1:
        match.is_bye = True
        match.match_status = MatchStatus.FINISHED
        match.winner_id = entrants[0].participant_id
    return match


def start_tournament(participants: Sequence[Entrant], include_bronze: bool = True) -> Bracket:
    """
    Create a bracket whose first round is a full round-robin.

    Args:
        participants: Entrants in seeding order; ids must be unique
        include_bronze: Whether semi-final losers play for third place

    Raises:
        BracketStateError: Fewer than two entrants or duplicate ids
    """
    if len(participants) < 2:
        raise BracketStateError("A tournament needs at least two participants")
    ids = [p.participant_id for p in participants]
    if len(set(ids)) != len(ids):
        raise BracketStateError("Tournament participants must be unique")

    matches = [
        _make_match(0, position, p1, p2)
        for position, (p1, p2) in enumerate(combinations(participants, 2))
    ]
    bracket = Bracket(
        stage=BracketStage.ROUND_ROBIN,
        current_round_index=0,
        rounds=[Round(round_index=0, type=RoundType.ROUND_ROBIN, status=RoundStatus.IN_PROGRESS, matches=matches)],
        include_bronze=include_bronze,
    )
    logger.info("Tournament started: %d participants, %d round-robin matches", len(participants), len(matches))
    return bracket


def _require_open(bracket: Bracket) -> None:
    if bracket.is_completed:
        raise BracketStateError("Tournament is completed and can no longer change")


def record_score(bracket: Bracket, match_id: str, score1: float, score2: float) -> BracketMatch:
    """
    Store the scores of one match. Winners are decided when the round finishes.

    Raises:
        BracketStateError: Unknown match, bye, finished round or completed bracket
    """
    _require_open(bracket)
    try:
        rnd, match = bracket.find_match(match_id)
    except KeyError as e:
        raise BracketStateError(str(e)) from e
    if rnd.status is RoundStatus.FINISHED:
        raise BracketStateError(f"Round {rnd.round_index} is already finished")
    if match.is_bye:
        raise BracketStateError(f"Match {match_id} is a bye and takes no scores")

    match.score_player1 = score1
    match.score_player2 = score2
    return match


def can_finish_round(rnd: Round) -> bool:
    """Whether every played match of the round has both scores."""
    return all(match.is_bye or match.has_scores for match in rnd.matches)


def finish_round(bracket: Bracket, round_index: int) -> Round:
    """
    Decide winners, close the round and advance the tournament.

    Round-robin, quarter-final and semi-final rounds seed the next round.
    Final and bronze rounds trigger the completion check.

    Raises:
        BracketStateError: Unknown or finished round, missing scores, a
                           level knockout match, or a completed bracket
    """
    _require_open(bracket)
    rnd = bracket.round_at(round_index)
    if rnd is None:
        raise BracketStateError(f"Unknown round: {round_index}")
    if rnd.status is RoundStatus.FINISHED:
        raise BracketStateError(f"Round {round_index} is already finished")
    if not can_finish_round(rnd):
        raise BracketStateError(f"Round {round_index} still has matches without scores")
    if rnd.type.is_knockout:
        for match in rnd.matches:
            if not match.is_bye and match.score_player1 == match.score_player2:
                raise BracketStateError(f"Knockout match {match.match_id} cannot end level")

    _close_round(bracket, rnd)
    return rnd


def _close_round(bracket: Bracket, rnd: Round) -> None:
    for match in rnd.matches:
        if match.is_bye:
            continue
        if match.score_player1 > match.score_player2:
            match.winner_id = match.player1.participant_id
        elif match.score_player2 > match.score_player1:
            match.winner_id = match.player2.participant_id
        else:
            match.winner_id = None
        match.match_status = MatchStatus.FINISHED
    rnd.status = RoundStatus.FINISHED
    logger.debug("Round %d (%s) finished", rnd.round_index, rnd.type.value)

    if rnd.type in (RoundType.ROUND_ROBIN, RoundType.QUARTERS, RoundType.SEMIS):
        seed_next_round(bracket, rnd)
    else:
        _complete_if_done(bracket)
    _sync_current_round(bracket)


def _sync_current_round(bracket: Bracket) -> None:
    """Point at the lowest open round, or the last round once all are finished."""
    open_rounds = [r.round_index for r in bracket.rounds if r.status is not RoundStatus.FINISHED]
    if open_rounds:
        bracket.current_round_index = min(open_rounds)
    elif bracket.rounds:
        bracket.current_round_index = max(r.round_index for r in bracket.rounds)


def _open_round(bracket: Bracket, rnd: Round) -> None:
    """Add a seeded round; a round made only of byes closes immediately."""
    bracket.rounds.append(rnd)
    if all(match.is_bye for match in rnd.matches):
        _close_round(bracket, rnd)


def seed_next_round(bracket: Bracket, finished_round: Round) -> list[Round]:
    """
    Create the round(s) that follow a finished round.

    From the round-robin, the table ranks entrants and the top eight are
    laid out in standard bracket order. From a knockout round, winners are
    paired in match order. After the semi-finals the losers also get a
    bronze round when the bracket includes one.

    Returns:
        The newly created rounds
    """
    if finished_round.status is not RoundStatus.FINISHED:
        raise BracketStateError(f"Round {finished_round.round_index} is not finished")

    next_index = finished_round.round_index + 1
    if finished_round.type is RoundType.ROUND_ROBIN:
        new_rounds = [_seed_knockout_from_table(finished_round, next_index)]
    else:
        new_rounds = _seed_from_knockout(bracket, finished_round, next_index)

    bracket.stage = BracketStage.KNOCKOUT
    for rnd in new_rounds:
        logger.info("Seeded %s as round %d with %d matches", rnd.type.value, rnd.round_index, len(rnd.matches))
    for rnd in new_rounds:
        _open_round(bracket, rnd)
    _sync_current_round(bracket)
    return new_rounds


def _seed_knockout_from_table(rr_round: Round, round_index: int) -> Round:
    table = compute_round_robin_table(rr_round.matches)
    seeds = [
        Entrant(participant_id=row.participant_id, name=row.name, seed=row.place)
        for row in table[:MAX_DRAW_SIZE]
    ]
    draw_size = get_draw_size(len(seeds))
    order = bracket_seed_order(draw_size)

    matches = []
    for position in range(draw_size // 2):
        seed1, seed2 = order[2 * position], order[2 * position + 1]
        player1 = seeds[seed1 - 1] if seed1 <= len(seeds) else None
        player2 = seeds[seed2 - 1] if seed2 <= len(seeds) else None
        matches.append(_make_match(round_index, position, player1, player2))

    return Round(
        round_index=round_index,
        type=get_first_round_for_draw_size(draw_size),
        status=RoundStatus.IN_PROGRESS,
        matches=matches,
    )


def _seed_from_knockout(bracket: Bracket, finished_round: Round, next_index: int) -> list[Round]:
    next_type = get_next_round(finished_round.type)
    if next_type is None:
        raise BracketStateError(f"No round follows {finished_round.type.value}")

    rounds = []
    if finished_round.type is RoundType.SEMIS and bracket.include_bronze:
        losers = [match.loser for match in finished_round.matches]
        if any(loser is not None for loser in losers):
            rounds.append(Round(
                round_index=next_index,
                type=RoundType.BRONZE,
                status=RoundStatus.IN_PROGRESS,
                matches=[_make_match(next_index, 0, losers[0], losers[1] if len(losers) > 1 else None)],
            ))
            next_index += 1

    slots: list[list[Optional[Entrant]]] = [[None, None] for _ in range((len(finished_round.matches) + 1) // 2)]
    for position, match in enumerate(finished_round.matches):
        target, slot = get_next_match_slot(position)
        slots[target][slot] = match.winner

    rounds.append(Round(
        round_index=next_index,
        type=next_type,
        status=RoundStatus.IN_PROGRESS,
        matches=[_make_match(next_index, i, p1, p2) for i, (p1, p2) in enumerate(slots)],
    ))
    return rounds


def _complete_if_done(bracket: Bracket) -> bool:
    final = bracket.round_of_type(RoundType.FINAL)
    if final is None or final.status is not RoundStatus.FINISHED:
        return False
    bronze = bracket.round_of_type(RoundType.BRONZE)
    if bronze is not None and bronze.status is not RoundStatus.FINISHED:
        return False

    bracket.final_standings = compute_final_standings(bracket)
    final_match = final.matches[0]
    bracket.champion = final_match.winner
    bracket.stage = BracketStage.COMPLETED
    logger.info(
        "Tournament completed, champion: %s",
        bracket.champion.name if bracket.champion else None,
    )
    return True


def compute_final_standings(bracket: Bracket) -> list[StandingRow]:
    """
    Final placing of every entrant.

    1 champion, 2 runner-up, 3 and 4 from the bronze match (or the semi-final
    losers by table order when there is none), everyone else in table order.
    Rows carry wins, losses and points over the whole tournament.
    """
    all_matches = [match for rnd in sorted(bracket.rounds, key=lambda r: r.round_index) for match in rnd.matches]
    table = compute_round_robin_table(all_matches)
    by_id = {row.participant_id: row for row in table}

    ordered_ids: list[str] = []

    def place(entrant: Optional[Entrant]) -> None:
        if entrant is not None and entrant.participant_id not in ordered_ids:
            ordered_ids.append(entrant.participant_id)

    final = bracket.round_of_type(RoundType.FINAL)
    if final is not None and final.matches:
        place(final.matches[0].winner)
        place(final.matches[0].loser)

    bronze = bracket.round_of_type(RoundType.BRONZE)
    if bronze is not None and bronze.matches:
        place(bronze.matches[0].winner)
        place(bronze.matches[0].loser)
    else:
        semis = bracket.round_of_type(RoundType.SEMIS)
        if semis is not None:
            semi_losers = {m.loser.participant_id for m in semis.matches if m.loser is not None}
            for row in table:
                if row.participant_id in semi_losers:
                    ordered_ids.append(row.participant_id)

    for row in table:
        if row.participant_id not in ordered_ids:
            ordered_ids.append(row.participant_id)

    standings = []
    for position, participant_id in enumerate(ordered_ids, start=1):
        row = by_id[participant_id]
        row.place = position
        standings.append(row)
    return standings
