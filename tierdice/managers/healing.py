"""Healing tests, wound healing bookkeeping and rest."""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from tierdice.dice.checks import make_check
from tierdice.dice.difficulty import get_tier
from tierdice.dice.types import CheckMode, PenaltyBreakdown, SkillCheckResult
from tierdice.exceptions import InvalidInputError
from tierdice.managers.base import BaseResolver
from tierdice.rules.wounds import WoundSeverity
from tierdice.schemas.mutations import DeleteWound, UpdateWound
from tierdice.schemas.records import ActorRecord, WoundRecord

logger = logging.getLogger(__name__)

HEALING_ATTRIBUTE = "cleverness"
FAILED_HEALING_PENALTY = 5


class HealingMethod(str, Enum):
    """Medical skill used for a healing test."""

    FIRST_AID = "first_aid"
    WOUND_TREATMENT = "wound_treatment"


class HealingAction(str, Enum):
    """Bookkeeping steps of a wound that is healing."""

    START = "start"
    PROGRESS = "progress"
    COMPLETE = "complete"


def penalty_change(method: HealingMethod, success: bool, had_first_aid: bool = False) -> int:
    """Signed penalty change for a healing test.

    Examples:
        >>> penalty_change(HealingMethod.FIRST_AID, True)
        -5
        >>> penalty_change(HealingMethod.WOUND_TREATMENT, True, had_first_aid=True)
        -10
        >>> penalty_change(HealingMethod.WOUND_TREATMENT, False)
        5
    """
    if not success:
        return FAILED_HEALING_PENALTY
    if HealingMethod(method) == HealingMethod.FIRST_AID:
        return -5
    return -10 if had_first_aid else -15


@dataclass(frozen=True)
class WoundHealing:
    """Effect of a healing test on one wound."""

    wound_id: str
    previous_penalty: int
    new_penalty: int
    removed: bool


@dataclass(frozen=True)
class HealingGroupResult:
    """One test rolled for all wounds of a severity.

    Attributes:
        severity: Severity of the group.
        check: Closed test for the group.
        wounds: Per-wound effects.
    """

    severity: WoundSeverity
    check: SkillCheckResult
    wounds: tuple[WoundHealing, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class HealingReport:
    """Result of a healing attempt or rest."""

    patient_id: str
    method: HealingMethod | None
    groups: tuple[HealingGroupResult, ...] = field(default_factory=tuple)
    mutations: tuple[UpdateWound | DeleteWound, ...] = field(default_factory=tuple)


class HealingResolver(BaseResolver):
    """Medical tests and recovery over time."""

    def attempt(
        self,
        medic: ActorRecord,
        patient: ActorRecord,
        wound_ids: Iterable[str],
        method: HealingMethod = HealingMethod.FIRST_AID,
        modifier: float = 0,
        healing_modifier: int = 0,
        apply_armor: bool = False,
        apply_wounds: bool = True,
    ) -> HealingReport:
        """Treat wounds with one Closed test per severity group.

        Args:
            medic: Actor performing the treatment.
            patient: Wounded actor.
            wound_ids: Wounds to treat. Repeated ids are treated once.
            method: First aid or wound treatment.
            modifier: Manual percentage modifier for the test.
            healing_modifier: Extra change added to every wound's penalty.
            apply_armor: Include the medic's armor penalty.
            apply_wounds: Include the medic's wound penalty.

        Returns:
            HealingReport with UpdateWound or DeleteWound mutations.

        Raises:
            InvalidInputError: If no wounds are given or one is unknown.
        """
        method = HealingMethod(method)
        wounds = [patient.get_wound(wound_id) for wound_id in dict.fromkeys(wound_ids)]
        if not wounds:
            raise InvalidInputError("No wounds selected for healing", field="wound_ids")

        groups: dict[WoundSeverity, list[WoundRecord]] = defaultdict(list)
        for wound in wounds:
            groups[wound.spec.severity].append(wound)

        attribute = medic.attribute_value(HEALING_ATTRIBUTE)
        skill = medic.skill_value(method.value)
        results: list[HealingGroupResult] = []
        mutations: list[UpdateWound | DeleteWound] = []
        for severity, group in groups.items():
            tier = get_tier(self.settings.healing_difficulty(severity))
            check = make_check(
                attribute=attribute,
                skill=skill,
                source=self.dice,
                penalties=PenaltyBreakdown(
                    base=tier.min_percent,
                    modifier=modifier,
                    armor=medic.total_armor_penalty if apply_armor else 0,
                    wounds=medic.total_wound_penalty if apply_wounds else 0,
                ),
                mode=CheckMode.CLOSED,
            )

            effects = []
            for wound in group:
                change = penalty_change(method, check.is_success, wound.had_first_aid)
                new_penalty = max(0, wound.penalty + change + healing_modifier)
                removed = new_penalty == 0
                effects.append(
                    WoundHealing(
                        wound_id=wound.id,
                        previous_penalty=wound.penalty,
                        new_penalty=new_penalty,
                        removed=removed,
                    )
                )
                if removed:
                    mutations.append(DeleteWound(actor_id=patient.id, wound_id=wound.id))
                    continue
                changes: dict = {"penalty": new_penalty}
                if check.is_success:
                    changes["is_healing"] = True
                    if method == HealingMethod.FIRST_AID:
                        changes["had_first_aid"] = True
                mutations.append(UpdateWound(actor_id=patient.id, wound_id=wound.id, **changes))

            logger.info(
                f"{method.value} on {len(group)} {severity.value} wound(s) of "
                f"{patient.name or patient.id}: {'success' if check.is_success else 'failure'}"
            )
            results.append(HealingGroupResult(severity=severity, check=check, wounds=tuple(effects)))

        return HealingReport(
            patient_id=patient.id,
            method=method,
            groups=tuple(results),
            mutations=tuple(mutations),
        )

    def heal_wound(
        self,
        actor: ActorRecord,
        wound_id: str,
        action: HealingAction,
        days: int = 1,
    ) -> UpdateWound | DeleteWound:
        """Track the healing of a single wound.

        START marks the wound healing with a fresh day counter, PROGRESS
        advances the counter and COMPLETE removes the wound.

        Raises:
            InvalidInputError: If the wound is unknown, days is negative,
                or a wound that is not healing is progressed.
        """
        wound = actor.get_wound(wound_id)
        action = HealingAction(action)
        if days < 0:
            raise InvalidInputError("Days must not be negative", field="days", value=days)

        if action == HealingAction.START:
            return UpdateWound(
                actor_id=actor.id, wound_id=wound.id, is_healing=True, healing_days=0
            )
        if action == HealingAction.PROGRESS:
            if not wound.is_healing:
                raise InvalidInputError(
                    f"Wound '{wound.name}' is not healing", field="wound_id", value=wound_id
                )
            return UpdateWound(
                actor_id=actor.id, wound_id=wound.id, healing_days=wound.healing_days + days
            )
        logger.info(f"Wound '{wound.name}' of {actor.name or actor.id} healed")
        return DeleteWound(actor_id=actor.id, wound_id=wound.id)

    def rest(self, actor: ActorRecord, days: int) -> HealingReport:
        """Lower every wound's penalty for days of rest.

        Bruises recover at the bruise rate, other wounds at the regular
        rate. Wounds reaching 0 are removed.

        Raises:
            InvalidInputError: If days is negative.
        """
        if days < 0:
            raise InvalidInputError("Days must not be negative", field="days", value=days)

        mutations: list[UpdateWound | DeleteWound] = []
        for wound in actor.wounds:
            rate = (
                self.settings.rest_bruise_penalty
                if wound.is_bruise
                else self.settings.rest_regular_penalty
            )
            new_penalty = max(0, wound.penalty - days * rate)
            if new_penalty == wound.penalty:
                continue
            if new_penalty == 0:
                mutations.append(DeleteWound(actor_id=actor.id, wound_id=wound.id))
            else:
                mutations.append(
                    UpdateWound(actor_id=actor.id, wound_id=wound.id, penalty=new_penalty)
                )

        logger.info(f"{actor.name or actor.id} rested {days} day(s): {len(mutations)} wound(s) changed")
        return HealingReport(patient_id=actor.id, method=None, mutations=tuple(mutations))
