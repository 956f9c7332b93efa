"""Weapon attacks: plan the shot, then commit ammunition use.

plan() is pure. It validates, checks ammunition, rolls, evaluates and
works out the hits, but only describes the ammunition it would consume.
commit() turns a plan into mutations, and a jammed plan commits nothing.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from tierdice.dice.checks import evaluate_best_die, evaluate_closed_check
from tierdice.dice.difficulty import (
    Difficulty,
    DifficultyTier,
    check_shift,
    get_tier,
    shift_tier,
    tier_from_percent,
)
from tierdice.dice.roller import POOL_SIZE, roll_pool
from tierdice.dice.types import CheckMode, CheckOutcome, DIE_MAX, DIE_MIN, PenaltyBreakdown
from tierdice.exceptions import InvalidInputError, ResourceExhaustedError
from tierdice.managers.base import BaseResolver
from tierdice.managers.damage import Hit
from tierdice.rules.ammunition import (
    BulletRecord,
    bullet_from_item,
    bullets_fired,
    draw_from_magazine,
    jamming_threshold,
    pellet_damage_at,
    weapon_bullets,
)
from tierdice.rules.locations import BodyLocation, location_penalty, roll_location
from tierdice.rules.weapons import BurstLevel, WeaponCategory
from tierdice.schemas.mutations import Mutation, UpdateAmmoQuantity, UpdateMagazineContents
from tierdice.schemas.records import ActorRecord, AmmoStack, WeaponProfile

logger = logging.getLogger(__name__)

# Highest aiming level (aiming adds one die per level)
MAX_AIMING_LEVEL = POOL_SIZE - 1


class MeleeAction(str, Enum):
    """What a melee test is for; selects the weapon bonus."""

    ATTACK = "attack"
    DEFENSE = "defense"


class AmmoSourceKind(str, Enum):
    """Where a shot's rounds come from."""

    NONE = "none"  # melee, or a weapon that tracks no ammunition
    MAGAZINE = "magazine"
    LOOSE = "loose"  # loose ammunition item (thrown weapons)


@dataclass(frozen=True)
class FireRequest:
    """Player choices for one attack.

    Attributes:
        weapon_id: Weapon to attack with.
        difficulty: Chosen base difficulty.
        modifier: Manual percentage modifier.
        aiming_level: 0-2, adds one die per level (ranged and thrown).
        burst: Burst length (ranged).
        hit_location: Aimed location, or None to roll a random one.
        mode: Closed or Open (melee is always Closed).
        apply_armor_penalty: Add the attacker's armor penalty.
        apply_wound_penalty: Add the attacker's wound penalty.
        skill_bonus: Added to the weapon skill.
        attribute_bonus: Added to the weapon attribute.
        distance: Range to target in metres (pellet bands).
        melee_action: Attack or defense (melee weapon bonus).
    """

    weapon_id: str
    difficulty: Difficulty = Difficulty.AVERAGE
    modifier: float = 0
    aiming_level: int = 0
    burst: BurstLevel = BurstLevel.SINGLE
    hit_location: BodyLocation | None = BodyLocation.TORSO
    mode: CheckMode = CheckMode.CLOSED
    apply_armor_penalty: bool = False
    apply_wound_penalty: bool = False
    skill_bonus: int = 0
    attribute_bonus: int = 0
    distance: float = 0
    melee_action: MeleeAction = MeleeAction.ATTACK


@dataclass(frozen=True)
class AmmoDraw:
    """Ammunition a plan would consume.

    Attributes:
        kind: Source of the rounds.
        source_id: Magazine or ammo item id.
        contents_before: Magazine contents the draw was planned from.
        contents_after: Magazine contents after the draw.
        quantity_before: Loose ammunition quantity before.
        quantity_after: Loose ammunition quantity after.
    """

    kind: AmmoSourceKind = AmmoSourceKind.NONE
    source_id: str | None = None
    contents_before: tuple[AmmoStack, ...] = ()
    contents_after: tuple[AmmoStack, ...] = ()
    quantity_before: int = 0
    quantity_after: int = 0


@dataclass(frozen=True)
class FirePlan:
    """Fully evaluated attack, before any ammunition is committed.

    Attributes:
        actor_id: Attacker.
        weapon: Weapon used.
        request: Choices the plan was built from.
        penalties: Percentage penalty breakdown.
        base_difficulty: Tier from the total percent.
        shift: Tier shift applied.
        difficulty: Final tier.
        attribute: Attribute value used.
        skill: Skill value used (melee includes the weapon bonus).
        outcome: Evaluated dice.
        hit_location: Location hit (rolled when random).
        location_roll: d20 face when the location was random.
        bullets_requested: Rounds the burst asked for.
        bullets: Rounds drawn, in firing order.
        jamming_threshold: Lowest jamming value in play.
        is_jammed: Weapon jammed; nothing hits, nothing is consumed.
        hits: Hits in burst order.
        ammo: Ammunition the plan would consume.
    """

    actor_id: str
    weapon: WeaponProfile
    request: FireRequest
    penalties: PenaltyBreakdown
    base_difficulty: DifficultyTier
    shift: int
    difficulty: DifficultyTier
    attribute: int
    skill: int
    outcome: CheckOutcome
    hit_location: BodyLocation
    location_roll: int | None
    bullets_requested: int
    bullets: tuple[BulletRecord, ...]
    jamming_threshold: int
    is_jammed: bool
    hits: tuple[Hit, ...] = field(default_factory=tuple)
    ammo: AmmoDraw = field(default_factory=AmmoDraw)

    @property
    def is_melee(self) -> bool:
        return self.weapon.category == WeaponCategory.MELEE

    @property
    def is_success(self) -> bool:
        return self.outcome.is_success

    @property
    def best_die(self) -> int:
        return min(self.outcome.originals)

    @property
    def bullets_fired(self) -> int:
        return len(self.bullets)

    @property
    def shortfall(self) -> int:
        """Rounds the burst asked for but the magazine did not have."""
        return max(0, self.bullets_requested - self.bullets_fired)

    @property
    def target(self) -> int:
        return self.outcome.target

    @property
    def total_pellet_hits(self) -> int:
        return sum(h.pellets for h in self.hits if h.is_pellet)

    @property
    def nominal_damage(self) -> str:
        """Damage shown for the attack: first round drawn, or the melee tiers."""
        if self.is_melee:
            return "/".join(self.weapon.melee_damage)
        if self.bullets:
            return self.bullets[0].damage
        return self.weapon.damage

    @property
    def nominal_piercing(self) -> int:
        if self.bullets:
            return self.bullets[0].piercing
        return self.weapon.piercing

    @property
    def is_critical_success(self) -> bool:
        if self.is_melee:
            return self.outcome.is_critical_success
        return self.best_die == DIE_MIN

    @property
    def is_critical_failure(self) -> bool:
        if self.is_melee:
            return self.outcome.is_critical_failure
        return self.best_die == DIE_MAX or self.is_jammed

    @property
    def should_commit(self) -> bool:
        return not self.is_jammed and self.ammo.kind != AmmoSourceKind.NONE


class WeaponFireResolver(BaseResolver):
    """Resolves melee, ranged and thrown attacks.

    Calls against the same weapon must be serialized by the caller: a
    plan is drawn from a snapshot of the magazine and committing it after
    another shot changed that magazine is rejected.
    """

    def plan(self, actor: ActorRecord, request: FireRequest) -> FirePlan:
        """Evaluate an attack without consuming anything.

        Args:
            actor: Attacker.
            request: Player choices.

        Returns:
            FirePlan describing the roll, the hits and the ammunition use.

        Raises:
            InvalidInputError: Unknown weapon or ammunition reference,
                aiming level outside 0-2, negative skill.
            ResourceExhaustedError: No magazine for a weapon that needs one,
                or the selected magazine / ammunition is empty.
        """
        weapon = actor.get_weapon(request.weapon_id)
        is_melee = weapon.category == WeaponCategory.MELEE

        if not is_melee and not 0 <= request.aiming_level <= MAX_AIMING_LEVEL:
            raise InvalidInputError(
                f"Aiming level must be between 0 and {MAX_AIMING_LEVEL}, "
                f"got {request.aiming_level}",
                field="aiming_level",
                value=request.aiming_level,
            )

        attribute = actor.attribute_value(weapon.attribute) + request.attribute_bonus
        skill = actor.skill_value(weapon.skill) + request.skill_bonus
        if is_melee:
            if request.melee_action == MeleeAction.ATTACK:
                skill += weapon.attack_bonus
            else:
                skill += weapon.defense_bonus
        if skill < 0:
            raise InvalidInputError(
                f"Skill cannot be negative, got {skill}", field="skill", value=skill
            )

        # Ammunition is checked before any die is rolled
        requested, bullets, ammo = self._plan_ammunition(actor, weapon, request)

        dice_count = POOL_SIZE if is_melee else request.aiming_level + 1
        dice = roll_pool(self.dice, dice_count)

        location = request.hit_location
        location_roll = None
        if location is None:
            location, location_roll = roll_location(self.dice)

        penalties = PenaltyBreakdown(
            base=get_tier(request.difficulty).min_percent,
            modifier=request.modifier,
            armor=actor.total_armor_penalty if request.apply_armor_penalty else 0,
            wounds=actor.total_wound_penalty if request.apply_wound_penalty else 0,
            location=location_penalty(weapon.category, request.hit_location),
        )
        base = tier_from_percent(penalties.total)
        shift = check_shift(dice, skill) if self.settings.allow_combat_shift else 0
        tier = shift_tier(base, shift)
        target = attribute + tier.modifier

        threshold = jamming_threshold(weapon, bullets)
        is_jammed = not is_melee and min(dice) >= threshold

        logger.debug(
            f"{weapon.name}: penalty={penalties.total}% base={base.key.value} "
            f"shift={shift:+d} final={tier.key.value} target={target} dice={dice} "
            f"jam_at={threshold} jammed={is_jammed}"
        )

        if is_melee:
            outcome = evaluate_closed_check(target, skill, dice)
            hits: tuple[Hit, ...] = ()
            if outcome.is_success:
                hits = (
                    Hit(
                        shell_index=1,
                        name=weapon.name,
                        damage=weapon.melee_tier_damage(1),
                        piercing=weapon.piercing,
                    ),
                )
        else:
            outcome = evaluate_best_die(target, skill, dice, request.mode)
            hits = ()
            if outcome.is_success and not is_jammed:
                hits = self._assign_hits(bullets, outcome.advantage_points, request.distance)

        if is_jammed:
            logger.info(f"{weapon.name} jammed on {min(dice)} (threshold {threshold})")

        return FirePlan(
            actor_id=actor.id,
            weapon=weapon,
            request=request,
            penalties=penalties,
            base_difficulty=base,
            shift=shift,
            difficulty=tier,
            attribute=attribute,
            skill=skill,
            outcome=outcome,
            hit_location=location,
            location_roll=location_roll,
            bullets_requested=requested,
            bullets=bullets,
            jamming_threshold=threshold,
            is_jammed=is_jammed,
            hits=hits,
            ammo=ammo,
        )

    def _plan_ammunition(
        self, actor: ActorRecord, weapon: WeaponProfile, request: FireRequest
    ) -> tuple[int, tuple[BulletRecord, ...], AmmoDraw]:
        if weapon.category == WeaponCategory.MELEE:
            return 0, (), AmmoDraw()

        is_thrown = weapon.category == WeaponCategory.THROWN
        requested = 1 if is_thrown else bullets_fired(weapon, request.burst)

        magazine = actor.find_magazine(weapon.magazine_id)
        if magazine is not None:
            if magazine.total_count <= 0:
                raise ResourceExhaustedError(
                    f"Magazine '{magazine.name}' is empty", resource_id=magazine.id
                )
            draw = draw_from_magazine(magazine, requested, weapon)
            return (
                requested,
                draw.bullets,
                AmmoDraw(
                    kind=AmmoSourceKind.MAGAZINE,
                    source_id=magazine.id,
                    contents_before=tuple(s.model_copy(deep=True) for s in magazine.contents),
                    contents_after=draw.remaining,
                ),
            )

        loose = actor.find_ammo(weapon.magazine_id) if is_thrown else None
        if loose is not None:
            if loose.quantity <= 0:
                raise ResourceExhaustedError(f"Out of '{loose.name}'", resource_id=loose.id)
            return (
                requested,
                (bullet_from_item(loose, weapon),),
                AmmoDraw(
                    kind=AmmoSourceKind.LOOSE,
                    source_id=loose.id,
                    quantity_before=loose.quantity,
                    quantity_after=loose.quantity - 1,
                ),
            )

        if weapon.magazine_id:
            raise InvalidInputError(
                f"Actor '{actor.id}' has no magazine or ammunition '{weapon.magazine_id}'",
                field="magazine_id",
                value=weapon.magazine_id,
            )
        if weapon.caliber:
            logger.warning(f"{weapon.name}: no magazine selected")
            raise ResourceExhaustedError(
                f"No magazine selected for '{weapon.name}'", resource_id=weapon.id
            )
        return requested, weapon_bullets(weapon, requested), AmmoDraw()

    def _assign_hits(
        self, bullets: tuple[BulletRecord, ...], advantage: int, distance: float
    ) -> tuple[Hit, ...]:
        # A bare success already lands the first round
        points = advantage + 1
        hits: list[Hit] = []
        for j, bullet in enumerate(bullets):
            if points <= j:
                break
            if not bullet.is_pellet:
                hits.append(
                    Hit(
                        shell_index=j + 1,
                        name=bullet.name,
                        damage=bullet.damage,
                        piercing=bullet.piercing,
                    )
                )
                continue

            # Each later shell in a burst loses j pellets of capacity
            pellets = max(0, points - j)
            if self.settings.use_pellet_count_limit:
                pellets = min(pellets, max(0, bullet.pellet_count - j))
            if pellets > 0:
                hits.append(
                    Hit(
                        shell_index=j + 1,
                        name=bullet.name,
                        damage=pellet_damage_at(bullet.pellet_bands, distance),
                        piercing=bullet.piercing,
                        is_pellet=True,
                        pellets=pellets,
                    )
                )
        return tuple(hits)

    def commit(self, plan: FirePlan, current: ActorRecord | None = None) -> list[Mutation]:
        """Turn a plan into ammunition mutations.

        Args:
            plan: Plan from plan().
            current: Attacker's current record. When given, the magazine
                or ammunition must still match the snapshot the plan was
                drawn from.

        Returns:
            Mutations to apply; empty for a jammed weapon or a weapon
            that tracks no ammunition.

        Raises:
            InvalidInputError: If the ammunition changed since planning.
        """
        if not plan.should_commit:
            if plan.is_jammed:
                logger.info(f"{plan.weapon.name} jammed: no ammunition consumed")
            return []

        ammo = plan.ammo
        if ammo.kind == AmmoSourceKind.MAGAZINE:
            if current is not None:
                magazine = current.find_magazine(ammo.source_id)
                if magazine is None or magazine.contents != list(ammo.contents_before):
                    raise InvalidInputError(
                        f"Magazine '{ammo.source_id}' changed since the shot was planned",
                        field="magazine_id",
                        value=ammo.source_id,
                    )
            logger.info(f"{plan.weapon.name}: {plan.bullets_fired} rounds consumed")
            return [
                UpdateMagazineContents(
                    actor_id=plan.actor_id,
                    magazine_id=ammo.source_id,
                    contents=[s.model_copy(deep=True) for s in ammo.contents_after],
                )
            ]

        if current is not None:
            item = current.find_ammo(ammo.source_id)
            if item is None or item.quantity != ammo.quantity_before:
                raise InvalidInputError(
                    f"Ammunition '{ammo.source_id}' changed since the shot was planned",
                    field="ammo_id",
                    value=ammo.source_id,
                )
        return [
            UpdateAmmoQuantity(
                actor_id=plan.actor_id,
                ammo_id=ammo.source_id,
                quantity=ammo.quantity_after,
            )
        ]

    def fire(
        self, actor: ActorRecord, request: FireRequest
    ) -> tuple[FirePlan, list[Mutation]]:
        """Plan and commit in one step."""
        plan = self.plan(actor, request)
        return plan, self.commit(plan, actor)
