"""Opposed melee scoring.

Compares two already-evaluated Closed checks (attacker, defender) and
decides a winner plus a damage tier bonus of 0-3. Ties always go to the
defender.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable

from tierdice.dice.types import CheckMode, CheckOutcome, DieResult, OpposedMode, Side
from tierdice.exceptions import InvalidInputError

logger = logging.getLogger(__name__)

# Highest damage tier an opposed win can award
MAX_DAMAGE_TIER_BONUS = 3


@dataclass(frozen=True)
class SegmentResult:
    """One index-aligned die comparison in dice mode.

    Attributes:
        index: Die position in rolled order.
        attacker_die: Attacker's die at this position.
        defender_die: Defender's die at this position.
        winner: Side taking the segment.
    """

    index: int
    attacker_die: DieResult
    defender_die: DieResult
    winner: Side


@dataclass(frozen=True)
class OpposedOutcome:
    """Result of an opposed melee comparison.

    Attributes:
        winner: Side that won the exchange.
        mode: Scoring mode used.
        advantage_raw: Attacker score minus defender score.
        damage_tier_bonus: Damage tier earned by the attacker (0 if defender won).
        attacker_score: Success count (successes, vanilla) or segments won (dice).
        defender_score: Same measure for the defender.
        segments: Per-index breakdown (dice mode only).
    """

    winner: Side
    mode: OpposedMode
    advantage_raw: int
    damage_tier_bonus: int
    attacker_score: int
    defender_score: int
    segments: tuple[SegmentResult, ...] = field(default_factory=tuple)

    @property
    def attacker_won(self) -> bool:
        return self.winner == Side.ATTACKER


def _clamp_bonus(value: int) -> int:
    return max(0, min(MAX_DAMAGE_TIER_BONUS, value))


def _score_successes(attacker: CheckOutcome, defender: CheckOutcome) -> OpposedOutcome:
    attacker_score = attacker.success_count or 0
    defender_score = defender.success_count or 0
    advantage = attacker_score - defender_score

    if advantage > 0:
        winner, bonus = Side.ATTACKER, _clamp_bonus(advantage)
    else:
        # Exact tie goes to the defender
        winner, bonus = Side.DEFENDER, 0

    return OpposedOutcome(
        winner=winner,
        mode=OpposedMode.SUCCESSES,
        advantage_raw=advantage,
        damage_tier_bonus=bonus,
        attacker_score=attacker_score,
        defender_score=defender_score,
    )


def _segment_winner(attacker_die: DieResult, defender_die: DieResult) -> Side:
    if attacker_die.is_success and not defender_die.is_success:
        return Side.ATTACKER
    if defender_die.is_success and not attacker_die.is_success:
        return Side.DEFENDER
    if attacker_die.is_success and defender_die.is_success:
        if attacker_die.modified < defender_die.modified:
            return Side.ATTACKER
        return Side.DEFENDER
    # Neither succeeded
    return Side.DEFENDER


def _score_dice(attacker: CheckOutcome, defender: CheckOutcome) -> OpposedOutcome:
    attacker_dice = sorted(attacker.dice, key=lambda d: d.index)
    defender_dice = sorted(defender.dice, key=lambda d: d.index)
    if len(attacker_dice) != len(defender_dice):
        raise InvalidInputError(
            "Dice mode needs pools of equal size",
            field="dice",
            value=(len(attacker_dice), len(defender_dice)),
        )

    segments = tuple(
        SegmentResult(
            index=a.index,
            attacker_die=a,
            defender_die=d,
            winner=_segment_winner(a, d),
        )
        for a, d in zip(attacker_dice, defender_dice)
    )
    attacker_score = sum(1 for s in segments if s.winner == Side.ATTACKER)
    defender_score = len(segments) - attacker_score
    advantage = attacker_score - defender_score

    if attacker_score > defender_score:
        winner, bonus = Side.ATTACKER, _clamp_bonus(advantage)
    else:
        winner, bonus = Side.DEFENDER, 0

    return OpposedOutcome(
        winner=winner,
        mode=OpposedMode.DICE,
        advantage_raw=advantage,
        damage_tier_bonus=bonus,
        attacker_score=attacker_score,
        defender_score=defender_score,
        segments=segments,
    )


def _score_vanilla(attacker: CheckOutcome, defender: CheckOutcome) -> OpposedOutcome:
    attacker_score = attacker.success_count or 0
    defender_score = defender.success_count or 0
    advantage = attacker_score - defender_score

    if attacker.is_success and not defender.is_success:
        winner, bonus = Side.ATTACKER, _clamp_bonus(advantage)
    else:
        winner, bonus = Side.DEFENDER, 0

    return OpposedOutcome(
        winner=winner,
        mode=OpposedMode.VANILLA,
        advantage_raw=advantage,
        damage_tier_bonus=bonus,
        attacker_score=attacker_score,
        defender_score=defender_score,
    )


_SCORERS: dict[OpposedMode, Callable[[CheckOutcome, CheckOutcome], OpposedOutcome]] = {
    OpposedMode.SUCCESSES: _score_successes,
    OpposedMode.DICE: _score_dice,
    OpposedMode.VANILLA: _score_vanilla,
}


def resolve_opposed(
    attacker: CheckOutcome,
    defender: CheckOutcome,
    mode: OpposedMode = OpposedMode.SUCCESSES,
) -> OpposedOutcome:
    """Decide an opposed melee exchange.

    Args:
        attacker: Attacker's evaluated Closed check.
        defender: Defender's evaluated Closed check.
        mode: Scoring mode.

    Returns:
        OpposedOutcome with winner, damage tier bonus and breakdown.

    Raises:
        InvalidInputError: If either check is not a Closed check.

    Examples:
        Attacker 3 successes vs defender 1 in successes mode gives the
        attacker a damage tier bonus of 2.
    """
    for side, outcome in ((Side.ATTACKER, attacker), (Side.DEFENDER, defender)):
        if outcome.mode != CheckMode.CLOSED or outcome.success_count is None:
            raise InvalidInputError(
                f"Opposed melee needs a Closed check from the {side.value}",
                field=side.value,
                value=outcome.mode,
            )

    result = _SCORERS[OpposedMode(mode)](attacker, defender)
    logger.debug(
        f"Opposed ({result.mode.value}): attacker={result.attacker_score} "
        f"defender={result.defender_score} -> {result.winner.value} "
        f"bonus={result.damage_tier_bonus}"
    )
    return result
