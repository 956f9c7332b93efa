"""Pool evaluation and complete skill checks.

Two evaluation modes over a 3d20 pool:
- Closed: skill points are spent to buy individual successes, cheapest
  first; the check passes with at least two successful dice. A natural
  20 never succeeds.
- Open: the worst die is discarded and skill points lower the worse of
  the remaining two; the margin under the target is the advantage.

Ranged attacks use a third evaluation where only the lowest die of a
1-3 die pool decides.
"""

import logging
from typing import Sequence

from tierdice.dice.difficulty import check_shift, tier_from_percent, shift_tier
from tierdice.dice.roller import POOL_SIZE, DieSource, roll_pool
from tierdice.dice.types import (
    DIE_MAX,
    DIE_MIN,
    CheckMode,
    CheckOutcome,
    DieResult,
    PenaltyBreakdown,
    SkillCheckResult,
)
from tierdice.exceptions import InvalidInputError

logger = logging.getLogger(__name__)

# Successful dice needed to pass a Closed check
CLOSED_SUCCESSES_REQUIRED = 2

# Cost marker for dice that can never be bought (natural 20)
UNACHIEVABLE = float("inf")


def _validate(dice: Sequence[int], skill: int, pool_size: int | None = POOL_SIZE) -> None:
    if pool_size is not None and len(dice) != pool_size:
        raise InvalidInputError(
            f"Expected {pool_size} dice, got {len(dice)}",
            field="dice",
            value=tuple(dice),
        )
    if not 1 <= len(dice) <= POOL_SIZE:
        raise InvalidInputError(
            f"Dice pool size must be between 1 and {POOL_SIZE}, got {len(dice)}",
            field="dice",
            value=tuple(dice),
        )
    for face in dice:
        if not DIE_MIN <= face <= DIE_MAX:
            raise InvalidInputError(
                f"Die face out of range: {face}", field="dice", value=face
            )
    if skill < 0:
        raise InvalidInputError(
            f"Skill cannot be negative, got {skill}", field="skill", value=skill
        )


def evaluate_closed_check(target: int, skill: int, dice: Sequence[int]) -> CheckOutcome:
    """Evaluate a Closed check.

    Skill points buy the cheapest missing successes first. A die is
    never lowered below 1 and a natural 20 never receives points. Points
    that cannot complete a purchase are still spent on the cheapest
    remaining die. Anything left over lowers already successful dice,
    highest first.

    Args:
        target: Success threshold.
        skill: Skill budget (non-negative).
        dice: Exactly three rolled faces.

    Returns:
        CheckOutcome with success_count set.

    Raises:
        InvalidInputError: On a malformed pool or negative skill.

    Examples:
        >>> outcome = evaluate_closed_check(12, 4, [15, 18, 20])
        >>> outcome.modified, outcome.success_count, outcome.is_success
        ((12, 17, 20), 1, False)
    """
    _validate(dice, skill)

    costs = [
        UNACHIEVABLE if face == DIE_MAX else max(0, face - target) for face in dice
    ]
    modified = list(dice)
    budget = skill

    # Cheapest successes first, ties broken by face then rolled order
    for i in sorted(range(len(dice)), key=lambda i: (costs[i], dice[i], i)):
        if budget <= 0:
            break
        if costs[i] == UNACHIEVABLE or costs[i] == 0:
            continue
        spend = min(budget, costs[i], dice[i] - 1)
        modified[i] -= spend
        budget -= spend

    successes = [
        modified[i] <= target and dice[i] != DIE_MAX for i in range(len(dice))
    ]

    # Leftover lowers successful dice, always the currently highest one
    while budget > 0:
        candidates = [
            i
            for i in range(len(dice))
            if successes[i] and dice[i] != DIE_MIN and modified[i] > DIE_MIN
        ]
        if not candidates:
            break
        highest = max(candidates, key=lambda i: (modified[i], -i))
        modified[highest] -= 1
        budget -= 1

    results = tuple(
        DieResult(index=i, original=dice[i], modified=modified[i], is_success=successes[i])
        for i in range(len(dice))
    )
    success_count = sum(successes)

    outcome = CheckOutcome(
        mode=CheckMode.CLOSED,
        target=target,
        skill=skill,
        dice=results,
        is_success=success_count >= CLOSED_SUCCESSES_REQUIRED,
        success_count=success_count,
        is_critical_success=success_count == len(dice),
        is_critical_failure=success_count == 0 and DIE_MAX in dice,
        skill_used=skill - budget,
    )
    logger.debug(
        f"Closed check: dice={tuple(dice)} target={target} skill={skill} "
        f"-> modified={outcome.modified} successes={success_count}"
    )
    return outcome


def evaluate_open_check(target: int, skill: int, dice: Sequence[int]) -> CheckOutcome:
    """Evaluate an Open check.

    The numerically highest die is discarded. Skill points first bring
    the worse of the two survivors down toward the better one, then
    lower both alternately, never below 1.

    Args:
        target: Success threshold.
        skill: Skill budget (non-negative).
        dice: Exactly three rolled faces.

    Returns:
        CheckOutcome with advantage_points set.

    Examples:
        >>> outcome = evaluate_open_check(10, 2, [3, 9, 20])
        >>> outcome.advantage_points, outcome.is_success
        (3, True)
    """
    _validate(dice, skill)

    order = sorted(range(len(dice)), key=lambda i: (dice[i], i))
    better, worse, ignored = order
    m_better, m_worse = dice[better], dice[worse]
    budget = skill

    # Equalize the worse die toward the better one
    spend = min(budget, m_worse - m_better, m_worse - DIE_MIN)
    m_worse -= spend
    budget -= spend

    # Then alternate, better die first
    while budget > 0 and (m_better > DIE_MIN or m_worse > DIE_MIN):
        if m_better > DIE_MIN:
            m_better -= 1
            budget -= 1
        if budget > 0 and m_worse > DIE_MIN:
            m_worse -= 1
            budget -= 1

    modified = {better: m_better, worse: m_worse, ignored: dice[ignored]}
    results = tuple(
        DieResult(
            index=i,
            original=dice[i],
            modified=modified[i],
            is_success=i != ignored and modified[i] <= target,
            ignored=i == ignored,
        )
        for i in range(len(dice))
    )
    advantage = target - max(m_better, m_worse)

    outcome = CheckOutcome(
        mode=CheckMode.OPEN,
        target=target,
        skill=skill,
        dice=results,
        is_success=advantage >= 0,
        advantage_points=advantage,
        skill_used=skill - budget,
    )
    logger.debug(
        f"Open check: dice={tuple(dice)} target={target} skill={skill} "
        f"ignored=D{ignored + 1} -> modified={outcome.modified} advantage={advantage}"
    )
    return outcome


def evaluate_best_die(
    target: int,
    skill: int,
    dice: Sequence[int],
    mode: CheckMode = CheckMode.CLOSED,
) -> CheckOutcome:
    """Evaluate a ranged pool where only the lowest die decides.

    Every die is shown lowered by the full skill value (floor 1), but
    success and advantage come from the lowest rolled die alone.

    Args:
        target: Success threshold.
        skill: Skill value (non-negative).
        dice: One to three rolled faces.
        mode: Closed requires the lowest die not to be a natural 20.

    Returns:
        CheckOutcome with advantage_points set (and success_count for
        Closed, 1 or 0).

    Examples:
        >>> evaluate_best_die(10, 3, [12, 17]).advantage_points
        1
    """
    _validate(dice, skill, pool_size=None)

    best = min(dice)
    best_modified = max(DIE_MIN, best - skill)
    advantage = target - best_modified

    if mode == CheckMode.OPEN:
        passed = advantage >= 0
    else:
        passed = best_modified <= target and best != DIE_MAX

    results = []
    for i, face in enumerate(dice):
        die_modified = max(DIE_MIN, face - skill)
        if mode == CheckMode.OPEN:
            die_success = die_modified <= target
        else:
            die_success = die_modified <= target and face != DIE_MAX
        results.append(
            DieResult(index=i, original=face, modified=die_modified, is_success=die_success)
        )

    return CheckOutcome(
        mode=mode,
        target=target,
        skill=skill,
        dice=tuple(results),
        is_success=passed,
        success_count=(1 if passed else 0) if mode == CheckMode.CLOSED else None,
        advantage_points=advantage,
        is_critical_success=best == DIE_MIN,
        is_critical_failure=best == DIE_MAX,
        skill_used=best - best_modified,
    )


def evaluate_pool(
    target: int, skill: int, dice: Sequence[int], mode: CheckMode
) -> CheckOutcome:
    """Dispatch to the Closed or Open evaluation."""
    if mode == CheckMode.OPEN:
        return evaluate_open_check(target, skill, dice)
    return evaluate_closed_check(target, skill, dice)


def make_check(
    attribute: int,
    skill: int,
    source: DieSource,
    penalties: PenaltyBreakdown | None = None,
    mode: CheckMode = CheckMode.CLOSED,
    is_combat: bool = False,
    allow_combat_shift: bool = True,
) -> SkillCheckResult:
    """Roll and evaluate a complete 3d20 check.

    Steps: aggregate the percentage penalty, find the base tier, roll,
    shift the tier (natural extremes minus skill steps), then evaluate
    against attribute + tier modifier.

    Args:
        attribute: Attribute value (bonuses already added).
        skill: Skill value (bonuses already added).
        source: Die source to roll from.
        penalties: Percentage penalty breakdown.
        mode: Closed or Open evaluation.
        is_combat: Combat checks only shift when allow_combat_shift is set.
        allow_combat_shift: Configuration switch for combat shifting.

    Returns:
        SkillCheckResult with the difficulty trail and the outcome.

    Raises:
        InvalidInputError: On negative skill or invalid dice.

    Examples:
        >>> from tierdice.dice.roller import FixedDieSource
        >>> result = make_check(12, 4, FixedDieSource([5, 9, 14]))
        >>> result.difficulty.key.value, result.target
        ('easy', 14)
    """
    if skill < 0:
        raise InvalidInputError(
            f"Skill cannot be negative, got {skill}", field="skill", value=skill
        )
    penalties = penalties or PenaltyBreakdown()
    base = tier_from_percent(penalties.total)
    dice = roll_pool(source, POOL_SIZE)

    shift = 0
    if not is_combat or allow_combat_shift:
        shift = check_shift(dice, skill)
    tier = shift_tier(base, shift)
    target = attribute + tier.modifier

    logger.debug(
        f"Check: attribute={attribute} skill={skill} penalty={penalties.total}% "
        f"base={base.key.value} shift={shift:+d} final={tier.key.value} target={target}"
    )

    outcome = evaluate_pool(target, skill, dice, mode)
    return SkillCheckResult(
        attribute=attribute,
        skill=skill,
        penalties=penalties,
        base_difficulty=base,
        shift=shift,
        difficulty=tier,
        outcome=outcome,
        is_combat=is_combat,
    )
