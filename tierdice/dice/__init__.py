"""Dice system for the tiered d20 rules.

Provides difficulty tiers, the tier shift, pool evaluation and opposed
scoring.

Usage:
    >>> from tierdice.dice import FixedDieSource, make_check, evaluate_closed_check
    >>> result = make_check(12, 4, FixedDieSource([5, 9, 14]))
    >>> outcome = evaluate_closed_check(target=12, skill=4, dice=[15, 18, 20])
"""

# Types
from tierdice.dice.types import (
    CheckMode,
    CheckOutcome,
    DieResult,
    OpposedMode,
    PenaltyBreakdown,
    Side,
    SkillCheckResult,
)

# Difficulty table and shift
from tierdice.dice.difficulty import (
    DIFFICULTY_TIERS,
    Difficulty,
    DifficultyTier,
    check_shift,
    dice_shift,
    get_tier,
    shift_tier,
    skill_shift,
    tier_from_percent,
)

# Roller
from tierdice.dice.roller import (
    DieSource,
    FixedDieSource,
    RandomDieSource,
    parse_fixed_dice,
    roll_pool,
)

# Checks
from tierdice.dice.checks import (
    evaluate_best_die,
    evaluate_closed_check,
    evaluate_open_check,
    evaluate_pool,
    make_check,
)

# Opposed scoring
from tierdice.dice.contested import OpposedOutcome, SegmentResult, resolve_opposed

__all__ = [
    # Types
    "CheckMode",
    "CheckOutcome",
    "DieResult",
    "OpposedMode",
    "PenaltyBreakdown",
    "Side",
    "SkillCheckResult",
    # Difficulty
    "DIFFICULTY_TIERS",
    "Difficulty",
    "DifficultyTier",
    "check_shift",
    "dice_shift",
    "get_tier",
    "shift_tier",
    "skill_shift",
    "tier_from_percent",
    # Roller
    "DieSource",
    "FixedDieSource",
    "RandomDieSource",
    "parse_fixed_dice",
    "roll_pool",
    # Checks
    "evaluate_best_die",
    "evaluate_closed_check",
    "evaluate_open_check",
    "evaluate_pool",
    "make_check",
    # Opposed
    "OpposedOutcome",
    "SegmentResult",
    "resolve_opposed",
]
