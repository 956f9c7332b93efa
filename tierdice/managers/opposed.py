"""Opposed melee handshake.

An attack opens a request that waits for the defender. Once the defense
test is submitted the request is ready, and resolving it scores the
exchange and produces damage exactly once.

    WAITING --submit_defense--> READY --resolve--> RESOLVED

A defender may abandon a request; it stays WAITING until cleared. There
is no timeout. A second resolve of a resolved (or in-progress) request
is a silent no-op.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping
from uuid import uuid4

from tierdice.config import RulesSettings
from tierdice.dice.checks import make_check
from tierdice.dice.contested import OpposedOutcome, resolve_opposed
from tierdice.dice.difficulty import Difficulty, get_tier
from tierdice.dice.roller import DieSource
from tierdice.dice.types import (
    CheckMode,
    CheckOutcome,
    OpposedMode,
    PenaltyBreakdown,
    SkillCheckResult,
)
from tierdice.exceptions import HandshakeStateError, InvalidInputError, MissingCounterpartError
from tierdice.managers.base import BaseResolver
from tierdice.managers.damage import DamageReport, DamageResolver, Hit
from tierdice.rules.locations import BodyLocation, roll_location
from tierdice.rules.weapons import WeaponCategory
from tierdice.schemas.mutations import CreateWound
from tierdice.schemas.records import ActorRecord

logger = logging.getLogger(__name__)

DEFENSE_ATTRIBUTE = "dexterity"


class HandshakeState(str, Enum):
    """Lifecycle of an opposed request."""

    WAITING = "waiting"
    READY = "ready"
    RESOLVED = "resolved"


class DefenseKind(str, Enum):
    """Ways to defend against a melee attack."""

    BRAWL = "brawl"
    MELEE = "melee"
    DODGE = "dodge"


# Skill used by each defense
DEFENSE_SKILLS: dict[DefenseKind, str] = {
    DefenseKind.BRAWL: "brawl",
    DefenseKind.MELEE: "hand_weapon",
    DefenseKind.DODGE: "dodge",
}


@dataclass(frozen=True)
class DefenseOption:
    """A defense available to the defender."""

    kind: DefenseKind
    attribute: int
    skill: int
    weapon_id: str | None = None

    @property
    def total(self) -> int:
        return self.attribute + self.skill


@dataclass(frozen=True)
class OpposedResolution:
    """Final result of an opposed request.

    Attributes:
        request_id: Request resolved.
        outcome: Scoring result.
        location: Where the attacker's blow landed. None when the location
            was left random and no blow landed.
        hits: Hits delivered (empty when the defender won).
        damage: Damage report for the defender (None when no hit).
    """

    request_id: str
    outcome: OpposedOutcome
    location: BodyLocation | None
    hits: tuple[Hit, ...] = field(default_factory=tuple)
    damage: DamageReport | None = None

    @property
    def mutations(self) -> tuple[CreateWound, ...]:
        if self.damage is None:
            return ()
        return self.damage.mutations


@dataclass
class OpposedRequest:
    """Mutable handshake record, keyed by request_id."""

    request_id: str
    attacker_id: str
    defender_id: str
    weapon_id: str
    attack: CheckOutcome
    mode: OpposedMode
    location: BodyLocation | None = None
    state: HandshakeState = HandshakeState.WAITING
    defense: CheckOutcome | None = None
    defense_kind: DefenseKind | None = None
    abandoned: bool = False
    in_progress: bool = False
    damage_applied: bool = False
    resolution: OpposedResolution | None = None


class OpposedTestManager(BaseResolver):
    """Session map of opposed melee requests."""

    def __init__(
        self,
        settings: RulesSettings | None = None,
        dice: DieSource | None = None,
    ) -> None:
        super().__init__(settings, dice)
        self._requests: dict[str, OpposedRequest] = {}
        self.damage = DamageResolver(self.settings, self.dice)

    def get(self, request_id: str) -> OpposedRequest:
        """Look up a request.

        Raises:
            InvalidInputError: If the request is unknown.
        """
        request = self._requests.get(request_id)
        if request is None:
            raise InvalidInputError(
                f"Unknown opposed request '{request_id}'", field="request_id", value=request_id
            )
        return request

    def pending_for(self, defender_id: str) -> list[OpposedRequest]:
        """Unresolved requests waiting on a defender."""
        return [
            r
            for r in self._requests.values()
            if r.defender_id == defender_id and r.state != HandshakeState.RESOLVED
        ]

    def open_request(
        self,
        attacker_id: str,
        defender_id: str,
        weapon_id: str,
        attack: CheckOutcome,
        location: BodyLocation | None = None,
        request_id: str | None = None,
    ) -> OpposedRequest:
        """Register an attack awaiting the defender's answer.

        Melee is one on one: any earlier unresolved request against the
        same defender is cleared.

        Args:
            attacker_id: Attacking actor.
            defender_id: Defending actor.
            weapon_id: Attacker's melee weapon.
            attack: Attacker's evaluated Closed check.
            location: Aimed location, None for random.
            request_id: Identifier to use; generated when omitted.

        Returns:
            The new request in WAITING state.

        Raises:
            InvalidInputError: If the attack is not a Closed check or the
                id is already taken.
        """
        if attack.mode != CheckMode.CLOSED:
            raise InvalidInputError(
                "Opposed melee needs a Closed attack check", field="attack", value=attack.mode
            )
        request_id = request_id or uuid4().hex
        if request_id in self._requests:
            raise InvalidInputError(
                f"Opposed request '{request_id}' already exists",
                field="request_id",
                value=request_id,
            )

        for stale in self.pending_for(defender_id):
            logger.debug(f"Clearing earlier request {stale.request_id} for {defender_id}")
            del self._requests[stale.request_id]

        request = OpposedRequest(
            request_id=request_id,
            attacker_id=attacker_id,
            defender_id=defender_id,
            weapon_id=weapon_id,
            attack=attack,
            mode=self.settings.opposed_mode,
            location=location,
        )
        self._requests[request_id] = request
        logger.info(f"Opposed request {request_id}: {attacker_id} attacks {defender_id}")
        return request

    def defense_options(self, defender: ActorRecord) -> list[DefenseOption]:
        """Defenses available to an actor, best total first.

        Melee defense needs an equipped melee weapon and includes its
        defense bonus.
        """
        attribute = defender.attribute_value(DEFENSE_ATTRIBUTE)
        options = [
            DefenseOption(
                DefenseKind.BRAWL, attribute, defender.skill_value(DEFENSE_SKILLS[DefenseKind.BRAWL])
            ),
            DefenseOption(
                DefenseKind.DODGE, attribute, defender.skill_value(DEFENSE_SKILLS[DefenseKind.DODGE])
            ),
        ]
        weapon = next(
            (
                w
                for w in defender.weapons
                if w.category == WeaponCategory.MELEE and w.equipped
            ),
            None,
        )
        if weapon is not None:
            options.append(
                DefenseOption(
                    DefenseKind.MELEE,
                    attribute,
                    defender.skill_value(DEFENSE_SKILLS[DefenseKind.MELEE]) + weapon.defense_bonus,
                    weapon_id=weapon.id,
                )
            )
        return sorted(options, key=lambda o: o.total, reverse=True)

    def roll_defense(
        self,
        request_id: str,
        defender: ActorRecord,
        kind: DefenseKind | None = None,
        difficulty: Difficulty = Difficulty.AVERAGE,
        modifier: float = 0,
    ) -> SkillCheckResult:
        """Roll the defender's Closed test and submit it.

        Args:
            request_id: Request being answered.
            defender: Defending actor.
            kind: Defense to use; the best available when omitted.
            difficulty: Base difficulty.
            modifier: Manual percentage modifier.

        Returns:
            The defense check.

        Raises:
            HandshakeStateError: If the request is not waiting.
            InvalidInputError: If the chosen defense is unavailable.
        """
        request = self.get(request_id)
        self._require_state(request, HandshakeState.WAITING)

        options = self.defense_options(defender)
        if kind is None:
            option = options[0]
        else:
            option = next((o for o in options if o.kind == DefenseKind(kind)), None)
            if option is None:
                raise InvalidInputError(
                    f"Defense '{DefenseKind(kind).value}' is not available", field="kind", value=kind
                )

        check = make_check(
            attribute=option.attribute,
            skill=option.skill,
            source=self.dice,
            penalties=PenaltyBreakdown(
                base=get_tier(difficulty).min_percent,
                modifier=modifier,
                wounds=defender.total_wound_penalty,
            ),
            mode=CheckMode.CLOSED,
            is_combat=True,
            allow_combat_shift=self.settings.allow_combat_shift,
        )
        self.submit_defense(request_id, check.outcome, option.kind)
        return check

    def submit_defense(
        self,
        request_id: str,
        defense: CheckOutcome,
        kind: DefenseKind | None = None,
    ) -> OpposedRequest:
        """Attach the defender's test; WAITING becomes READY.

        Raises:
            HandshakeStateError: If the request is not waiting.
            InvalidInputError: If the defense is not a Closed check.
        """
        request = self.get(request_id)
        self._require_state(request, HandshakeState.WAITING)
        if defense.mode != CheckMode.CLOSED:
            raise InvalidInputError(
                "Opposed melee needs a Closed defense check", field="defense", value=defense.mode
            )
        request.defense = defense
        request.defense_kind = kind
        request.abandoned = False
        request.state = HandshakeState.READY
        logger.debug(f"Opposed request {request_id} ready")
        return request

    def abandon(self, request_id: str) -> OpposedRequest:
        """Defender walks away before answering. The request stays WAITING.

        Raises:
            HandshakeStateError: If the defense was already submitted.
        """
        request = self.get(request_id)
        self._require_state(request, HandshakeState.WAITING)
        request.abandoned = True
        logger.info(f"Opposed request {request_id} abandoned by {request.defender_id}")
        return request

    def clear(self, request_id: str) -> None:
        """Forget a request in any state."""
        self._requests.pop(request_id, None)

    def resolve(
        self, request_id: str, roster: Mapping[str, ActorRecord]
    ) -> OpposedResolution | None:
        """Score a ready request and produce its damage.

        Args:
            request_id: Request to resolve.
            roster: Current actor records by id.

        Returns:
            OpposedResolution, or None when the request is already
            resolved or another resolution is in progress.

        Raises:
            HandshakeStateError: If the defense has not been submitted.
            MissingCounterpartError: If attacker or defender is not in
                the roster. The request stays READY.
        """
        request = self.get(request_id)
        if request.state == HandshakeState.RESOLVED or request.in_progress:
            logger.debug(f"Opposed request {request_id} already resolved or in progress")
            return None
        self._require_state(request, HandshakeState.READY)

        request.in_progress = True
        try:
            missing = tuple(
                actor_id
                for actor_id in (request.attacker_id, request.defender_id)
                if actor_id not in roster
            )
            if missing:
                logger.warning(f"Opposed request {request_id}: missing actors {missing}")
                raise MissingCounterpartError(
                    f"Cannot resolve opposed request '{request_id}': missing {', '.join(missing)}",
                    request_id=request_id,
                    missing_ids=missing,
                )
            attacker = roster[request.attacker_id]
            defender = roster[request.defender_id]

            outcome = resolve_opposed(request.attack, request.defense, request.mode)

            location = request.location
            hits: tuple[Hit, ...] = ()
            damage = None
            if outcome.attacker_won and outcome.damage_tier_bonus > 0:
                if location is None:
                    location, _ = roll_location(self.dice)
                weapon = attacker.get_weapon(request.weapon_id)
                hits = (
                    Hit(
                        shell_index=1,
                        name=weapon.name,
                        damage=weapon.melee_tier_damage(outcome.damage_tier_bonus),
                        piercing=weapon.piercing,
                    ),
                )
                damage = self.damage.apply_hits(defender, hits, location)

            resolution = OpposedResolution(
                request_id=request_id,
                outcome=outcome,
                location=location,
                hits=hits,
                damage=damage,
            )
            request.resolution = resolution
            request.damage_applied = damage is not None
            request.state = HandshakeState.RESOLVED
        finally:
            request.in_progress = False

        logger.info(
            f"Opposed request {request_id} resolved: {outcome.winner.value} wins "
            f"(bonus {outcome.damage_tier_bonus})"
        )
        return resolution

    def _require_state(self, request: OpposedRequest, state: HandshakeState) -> None:
        if request.state != state:
            raise HandshakeStateError(
                f"Opposed request '{request.request_id}' is {request.state.value}, "
                f"expected {state.value}",
                request_id=request.request_id,
                state=request.state.value,
            )
