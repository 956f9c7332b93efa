"""Pain resistance tests for incoming wounds.

Each wound gets its own Closed test at the wound's intrinsic difficulty.
Existing wound and armor penalties are deliberately ignored. Passing
stores the lower configured penalty for the severity, failing the higher.
"""

import logging
from dataclasses import dataclass
from typing import Iterable

from tierdice.dice.checks import make_check
from tierdice.dice.difficulty import get_tier
from tierdice.dice.types import CheckMode, PenaltyBreakdown, SkillCheckResult
from tierdice.managers.base import BaseResolver
from tierdice.rules.locations import BodyLocation
from tierdice.rules.wounds import WOUND_RULES, DamageSpec, WoundSeverity, parse_damage
from tierdice.schemas.records import ActorRecord

logger = logging.getLogger(__name__)

PAIN_RESISTANCE_SKILL = "pain_resistance"
PAIN_RESISTANCE_ATTRIBUTE = "charisma"


@dataclass(frozen=True)
class IncomingWound:
    """A wound about to be created, before its penalty is known."""

    severity: WoundSeverity
    is_bruise: bool = False
    location: BodyLocation | None = None

    @classmethod
    def from_code(cls, code: str, location: BodyLocation | None = None) -> "IncomingWound":
        spec = parse_damage(code)
        return cls(severity=spec.severity, is_bruise=spec.is_bruise, location=location)

    @property
    def code(self) -> str:
        return DamageSpec(self.severity, self.is_bruise).code


@dataclass(frozen=True)
class PainResistanceResult:
    """Outcome of one wound's pain resistance test.

    Attributes:
        wound: The wound tested.
        check: The Closed test rolled for it.
        penalty: Penalty percent the wound starts with.
    """

    wound: IncomingWound
    check: SkillCheckResult
    penalty: int

    @property
    def passed(self) -> bool:
        return self.check.is_success


class PainResistanceProcessor(BaseResolver):
    """Runs one independent pain resistance test per incoming wound."""

    def resolve_wound(
        self, attribute: int, skill: int, wound: IncomingWound
    ) -> PainResistanceResult:
        """Test a single wound.

        Args:
            attribute: Willpower-type attribute value.
            skill: Pain resistance skill value.
            wound: Incoming wound.

        Returns:
            PainResistanceResult with the chosen penalty.
        """
        rule = WOUND_RULES[wound.severity]
        tier = get_tier(rule.pain_difficulty)
        check = make_check(
            attribute=attribute,
            skill=skill,
            source=self.dice,
            penalties=PenaltyBreakdown(base=tier.min_percent),
            mode=CheckMode.CLOSED,
        )
        penalty = rule.pass_penalty if check.is_success else rule.fail_penalty
        logger.debug(
            f"Pain resistance vs {wound.code}: dice={check.outcome.originals} "
            f"target={check.target} passed={check.is_success} penalty={penalty}%"
        )
        return PainResistanceResult(wound=wound, check=check, penalty=penalty)

    def resolve_batch(
        self, actor: ActorRecord, wounds: Iterable[IncomingWound]
    ) -> list[PainResistanceResult]:
        """Test every wound of a batch for one actor.

        Args:
            actor: Wounded actor.
            wounds: Incoming wounds in order.

        Returns:
            One result per wound, same order.

        Raises:
            InvalidInputError: If the actor lacks the pain attribute.
        """
        wounds = list(wounds)
        if not wounds:
            return []
        attribute = actor.attribute_value(PAIN_RESISTANCE_ATTRIBUTE)
        skill = actor.skill_value(PAIN_RESISTANCE_SKILL)

        results = [self.resolve_wound(attribute, skill, wound) for wound in wounds]
        passed = sum(1 for r in results if r.passed)
        logger.info(
            f"Pain resistance for {actor.name or actor.id}: {passed}/{len(results)} passed"
        )
        return results
