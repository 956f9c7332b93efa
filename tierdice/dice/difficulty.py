"""Difficulty tiers and the tier shift.

Nine ordered tiers map an aggregated percentage penalty to a modifier
added to the attribute to form the success threshold. Skill magnitude
and natural extremes on the dice move the applicable tier along the
ordering.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable


class Difficulty(str, Enum):
    """Difficulty tier keys, easiest first."""

    EASY = "easy"
    AVERAGE = "average"
    PROBLEMATIC = "problematic"
    HARD = "hard"
    VERY_HARD = "very_hard"
    DAMN_HARD = "damn_hard"
    LUCK = "luck"
    MASTERFUL = "masterful"
    GRANDMASTERFUL = "grandmasterful"


@dataclass(frozen=True)
class DifficultyTier:
    """One band of the difficulty table.

    Attributes:
        key: Tier identifier.
        modifier: Added to the attribute to form the target.
        min_percent: Lowest penalty percent in the band.
        max_percent: Highest penalty percent in the band.
        position: Index in the easy-to-hardest ordering.
    """

    key: Difficulty
    modifier: int
    min_percent: int
    max_percent: int
    position: int

    def contains(self, percent: float) -> bool:
        return self.min_percent <= percent <= self.max_percent


DIFFICULTY_TIERS: tuple[DifficultyTier, ...] = (
    DifficultyTier(Difficulty.EASY, 2, -20, -1, 0),
    DifficultyTier(Difficulty.AVERAGE, 0, 0, 10, 1),
    DifficultyTier(Difficulty.PROBLEMATIC, -2, 11, 30, 2),
    DifficultyTier(Difficulty.HARD, -5, 31, 60, 3),
    DifficultyTier(Difficulty.VERY_HARD, -8, 61, 90, 4),
    DifficultyTier(Difficulty.DAMN_HARD, -11, 91, 120, 5),
    DifficultyTier(Difficulty.LUCK, -15, 121, 160, 6),
    DifficultyTier(Difficulty.MASTERFUL, -20, 161, 200, 7),
    DifficultyTier(Difficulty.GRANDMASTERFUL, -24, 201, 240, 8),
)

_TIERS_BY_KEY: dict[Difficulty, DifficultyTier] = {t.key: t for t in DIFFICULTY_TIERS}

# Skill points per one step of tier shift
SKILL_POINTS_PER_SHIFT = 4


def get_tier(key: Difficulty | str) -> DifficultyTier:
    """Look up a tier by key.

    Args:
        key: Difficulty enum member or its string value.

    Returns:
        The matching DifficultyTier.

    Raises:
        ValueError: If the key is not a known difficulty.
    """
    return _TIERS_BY_KEY[Difficulty(key)]


def tier_from_percent(percent: float) -> DifficultyTier:
    """Find the tier for an aggregated percentage penalty.

    Total over the real line: values below the easiest band map to the
    easiest tier, values above the hardest band map to the hardest tier,
    and values in the gap between two integer bands go to the lower tier.

    Args:
        percent: Aggregated percentage penalty.

    Returns:
        The applicable DifficultyTier.

    Examples:
        >>> tier_from_percent(0).key
        <Difficulty.AVERAGE: 'average'>
        >>> tier_from_percent(45).key
        <Difficulty.HARD: 'hard'>
        >>> tier_from_percent(-1000).key
        <Difficulty.EASY: 'easy'>
    """
    for tier in DIFFICULTY_TIERS:
        if percent <= tier.max_percent:
            return tier
    return DIFFICULTY_TIERS[-1]


def skill_shift(skill: int) -> int:
    """Tier shift earned by skill magnitude.

    Examples:
        >>> skill_shift(0)
        0
        >>> skill_shift(7)
        1
        >>> skill_shift(8)
        2
    """
    if skill <= 0:
        return 0
    return skill // SKILL_POINTS_PER_SHIFT


def dice_shift(dice: Iterable[int]) -> int:
    """Tier shift from natural extremes: -1 per natural 1, +1 per natural 20.

    Examples:
        >>> dice_shift([1, 7, 20])
        0
        >>> dice_shift([20, 20, 5])
        2
    """
    shift = 0
    for face in dice:
        if face == 1:
            shift -= 1
        elif face == 20:
            shift += 1
    return shift


def shift_tier(base: DifficultyTier, shift: int) -> DifficultyTier:
    """Move a tier along the ordering, clamped to the table bounds.

    Positive shifts make the check harder, negative shifts easier.

    Args:
        base: Starting tier.
        shift: Signed number of positions to move.

    Returns:
        The tier at the new position.
    """
    position = max(0, min(len(DIFFICULTY_TIERS) - 1, base.position + shift))
    return DIFFICULTY_TIERS[position]


def check_shift(dice: Iterable[int], skill: int) -> int:
    """Combined shift for a check: natural extremes minus skill steps.

    High skill eases the check, natural 20s make it harder and natural
    1s make it easier.
    """
    return dice_shift(dice) - skill_shift(skill)
