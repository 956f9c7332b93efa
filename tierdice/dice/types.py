"""Dice system type definitions.

Immutable dataclasses for die results and check outcomes.
"""

from dataclasses import dataclass
from enum import Enum

from tierdice.dice.difficulty import DifficultyTier


# Faces of the only die the system uses
DIE_MIN = 1
DIE_MAX = 20


class CheckMode(str, Enum):
    """How a 3-die pool is evaluated.

    - CLOSED: at least 2 dice must succeed, natural 20 always fails
    - OPEN: worst die discarded, surplus over the target is measured
    """

    OPEN = "open"
    CLOSED = "closed"


class OpposedMode(str, Enum):
    """Scoring mode for opposed melee tests."""

    SUCCESSES = "successes"  # compare success counts
    DICE = "dice"  # compare dice index by index
    VANILLA = "vanilla"  # pass vs fail only


class Side(str, Enum):
    """Party in an opposed test."""

    ATTACKER = "attacker"
    DEFENDER = "defender"


@dataclass(frozen=True)
class DieResult:
    """One die of a pool after skill points were spent.

    Attributes:
        index: Position in the rolled order (0-based).
        original: Face rolled (1-20).
        modified: Face after skill spend, always within [1, original].
        is_success: Whether this die individually succeeded.
        ignored: True for the die discarded by an Open check.
    """

    index: int
    original: int
    modified: int
    is_success: bool = False
    ignored: bool = False

    @property
    def spent(self) -> int:
        """Skill points spent on this die."""
        return self.original - self.modified

    @property
    def is_natural_one(self) -> bool:
        return self.original == DIE_MIN

    @property
    def is_natural_twenty(self) -> bool:
        return self.original == DIE_MAX


@dataclass(frozen=True)
class CheckOutcome:
    """Result of evaluating a die pool against a target.

    success_count is set for Closed evaluations, advantage_points for Open
    evaluations and for best-die (ranged) evaluations.

    Attributes:
        mode: Closed or Open evaluation.
        target: Success threshold (attribute + tier modifier).
        skill: Skill budget available for spending.
        dice: Per-die results in rolled order.
        is_success: Whether the check passed.
        success_count: Number of successful dice (Closed only).
        advantage_points: Target minus the deciding modified die.
        is_critical_success: All three dice succeeded (Closed).
        is_critical_failure: No successes with a natural 20 present (Closed).
        skill_used: Skill points actually spent.
    """

    mode: CheckMode
    target: int
    skill: int
    dice: tuple[DieResult, ...]
    is_success: bool
    success_count: int | None = None
    advantage_points: int | None = None
    is_critical_success: bool = False
    is_critical_failure: bool = False
    skill_used: int = 0

    @property
    def remaining_skill(self) -> int:
        """Skill points left unspent."""
        return self.skill - self.skill_used

    @property
    def originals(self) -> tuple[int, ...]:
        """Rolled faces in rolled order."""
        return tuple(d.original for d in self.dice)

    @property
    def modified(self) -> tuple[int, ...]:
        """Faces after skill spend in rolled order."""
        return tuple(d.modified for d in self.dice)


@dataclass(frozen=True)
class PenaltyBreakdown:
    """Percentage penalties contributing to a check's difficulty.

    Attributes:
        base: Minimum percent of the chosen base difficulty.
        modifier: Manual situational modifier.
        armor: Worn armor penalty (when applied).
        wounds: Accumulated wound penalty (when applied).
        location: Aimed-location penalty.
    """

    base: float = 0
    modifier: float = 0
    armor: float = 0
    wounds: float = 0
    location: float = 0

    @property
    def total(self) -> float:
        return self.base + self.modifier + self.armor + self.wounds + self.location


@dataclass(frozen=True)
class SkillCheckResult:
    """A complete rolled check: difficulty lookup, shift and evaluation.

    Attributes:
        attribute: Attribute value used (bonuses included).
        skill: Skill value used (bonuses included).
        penalties: Percentage penalty breakdown.
        base_difficulty: Tier found from the total percent.
        shift: Signed tier shift applied (0 if shifting disabled).
        difficulty: Tier after shifting.
        outcome: Evaluated pool.
        is_combat: Whether the check was a combat action.
    """

    attribute: int
    skill: int
    penalties: PenaltyBreakdown
    base_difficulty: DifficultyTier
    shift: int
    difficulty: DifficultyTier
    outcome: CheckOutcome
    is_combat: bool = False

    @property
    def target(self) -> int:
        return self.outcome.target

    @property
    def is_success(self) -> bool:
        return self.outcome.is_success

