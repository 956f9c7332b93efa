"""Ammunition sequencing.

Magazines are LIFO stacks: the most recently loaded round is fired
first. Every function here is pure; it returns new contents instead of
editing the magazine it was given.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from tierdice.exceptions import InvalidInputError, ResourceExhaustedError
from tierdice.rules.weapons import DEFAULT_JAMMING, BurstLevel
from tierdice.schemas.records import (
    AmmoItem,
    AmmoOverrides,
    AmmoStack,
    Magazine,
    PelletBand,
    WeaponProfile,
)

logger = logging.getLogger(__name__)

# Burst length in multiples of the fire rate (single is always 1 round)
BURST_MULTIPLIERS: dict[BurstLevel, int] = {
    BurstLevel.SHORT: 1,
    BurstLevel.LONG: 3,
    BurstLevel.FULL: 6,
}

# Damage of a pellet beyond every band when the shell has no bands
FALLBACK_PELLET_DAMAGE = "D"


@dataclass(frozen=True)
class BulletRecord:
    """Resolved statistics of one round at fire time.

    Attributes:
        name: Ammunition name.
        damage: Damage code.
        piercing: Armor points ignored.
        jamming: Jamming threshold this round imposes.
        is_pellet: Shell spreading pellets.
        pellet_count: Physical pellets in the shell.
        pellet_bands: Distance bands for pellet damage.
        overrides: Stack overrides the round came from (None for rounds
            built from the weapon alone).
    """

    name: str
    damage: str
    piercing: int
    jamming: int
    is_pellet: bool = False
    pellet_count: int = 1
    pellet_bands: tuple[PelletBand, ...] = ()
    overrides: AmmoOverrides | None = None


@dataclass(frozen=True)
class DrawPlan:
    """Rounds taken from a magazine for one burst.

    Attributes:
        requested: Rounds the burst asked for.
        bullets: Rounds actually drawn, in firing order.
        remaining: Magazine contents after the draw (bottom to top).
    """

    requested: int
    bullets: tuple[BulletRecord, ...]
    remaining: tuple[AmmoStack, ...] = field(default_factory=tuple)

    @property
    def fired(self) -> int:
        return len(self.bullets)

    @property
    def shortfall(self) -> int:
        return self.requested - self.fired


@dataclass(frozen=True)
class LoadResult:
    """Outcome of loading loose ammunition into a magazine.

    Attributes:
        contents: New magazine contents.
        loaded: Rounds moved into the magazine.
        ammo_remaining: Quantity left on the loose ammunition item.
    """

    contents: tuple[AmmoStack, ...]
    loaded: int
    ammo_remaining: int


def bullets_fired(weapon: WeaponProfile, burst: BurstLevel) -> int:
    """Rounds a burst fires.

    Examples:
        Fire rate 2 on a long burst fires 6 rounds.
    """
    burst = BurstLevel(burst)
    if burst == BurstLevel.SINGLE:
        return 1
    return weapon.effective_fire_rate * BURST_MULTIPLIERS[burst]


def _bullet(name: str, overrides: AmmoOverrides | None, weapon: WeaponProfile) -> BulletRecord:
    enabled = overrides is not None and overrides.enabled
    damage = overrides.damage if enabled and overrides.damage else weapon.damage
    piercing = (
        overrides.piercing if enabled and overrides.piercing is not None else weapon.piercing
    )
    jamming = (
        overrides.jamming
        if enabled and overrides.jamming is not None
        else (weapon.jamming or DEFAULT_JAMMING)
    )
    is_pellet = overrides is not None and overrides.is_pellet
    return BulletRecord(
        name=name,
        damage=damage,
        piercing=piercing,
        jamming=jamming,
        is_pellet=is_pellet,
        pellet_count=overrides.pellet_count if is_pellet else 1,
        pellet_bands=tuple(overrides.pellet_bands) if is_pellet else (),
        overrides=overrides,
    )


def bullet_from_item(ammo: AmmoItem, weapon: WeaponProfile) -> BulletRecord:
    """Round drawn from loose ammunition (thrown weapons)."""
    return _bullet(ammo.name, ammo.overrides, weapon)


def weapon_bullets(weapon: WeaponProfile, count: int) -> tuple[BulletRecord, ...]:
    """Rounds for weapons that track no ammunition, built from weapon stats."""
    return tuple(_bullet(weapon.name, None, weapon) for _ in range(count))


def draw_from_magazine(
    magazine: Magazine, count: int, weapon: WeaponProfile
) -> DrawPlan:
    """Plan a LIFO draw of up to `count` rounds.

    The magazine is not modified. If it holds fewer rounds than asked,
    the plan carries the shortfall.

    Args:
        magazine: Magazine to draw from.
        count: Rounds requested.
        weapon: Weapon supplying default statistics.

    Returns:
        DrawPlan with drawn rounds in firing order and remaining contents.
    """
    contents = [stack.model_copy(deep=True) for stack in magazine.contents]
    bullets: list[BulletRecord] = []
    remaining_to_draw = count

    while remaining_to_draw > 0 and contents:
        top = contents[-1]
        take = min(remaining_to_draw, top.quantity)
        bullets.extend(_bullet(top.name, top.overrides, weapon) for _ in range(take))
        top.quantity -= take
        remaining_to_draw -= take
        if top.quantity <= 0:
            contents.pop()

    plan = DrawPlan(requested=count, bullets=tuple(bullets), remaining=tuple(contents))
    if plan.shortfall > 0:
        logger.warning(
            f"Magazine '{magazine.id}' ran dry: {plan.fired} of {count} rounds fired"
        )
    logger.debug(f"Drew {plan.fired} rounds from magazine '{magazine.id}'")
    return plan


def jamming_threshold(weapon: WeaponProfile, bullets: Sequence[BulletRecord]) -> int:
    """Lowest jamming value among the weapon and every round drawn."""
    values = [weapon.jamming or DEFAULT_JAMMING] + [b.jamming for b in bullets]
    return min(values)


def pellet_damage_at(bands: Sequence[PelletBand], distance: float) -> str:
    """Per-pellet damage at a distance.

    Uses the first band (nearest first) whose distance is not exceeded.
    Beyond every band the last, weakest band applies.

    Examples:
        With the default bands, 4 m deals C and 35 m deals D.
    """
    if not bands:
        return FALLBACK_PELLET_DAMAGE
    ordered = sorted(bands, key=lambda b: b.distance)
    for band in ordered:
        if distance <= band.distance:
            return band.damage
    return ordered[-1].damage


def _push(contents: list[AmmoStack], stack: AmmoStack) -> None:
    if contents and contents[-1].same_profile(stack):
        contents[-1] = contents[-1].model_copy(
            update={"quantity": contents[-1].quantity + stack.quantity}
        )
    else:
        contents.append(stack)


def load_magazine(
    magazine: Magazine, ammo: AmmoItem, confirm_caliber: bool = False
) -> LoadResult:
    """Load loose ammunition on top of a magazine.

    Args:
        magazine: Target magazine.
        ammo: Loose ammunition item.
        confirm_caliber: Allow loading a different caliber.

    Returns:
        LoadResult with the new contents.

    Raises:
        InvalidInputError: On a caliber mismatch without confirmation.
        ResourceExhaustedError: If the magazine is full or the ammo empty.
    """
    if (
        magazine.caliber
        and ammo.caliber
        and magazine.caliber != ammo.caliber
        and not confirm_caliber
    ):
        raise InvalidInputError(
            f"Caliber mismatch: magazine takes {magazine.caliber}, ammo is {ammo.caliber}",
            field="caliber",
            value=ammo.caliber,
        )
    if ammo.quantity <= 0:
        raise ResourceExhaustedError(f"No '{ammo.name}' left to load", resource_id=ammo.id)

    amount = min(ammo.quantity, magazine.free_space)
    if amount <= 0:
        raise ResourceExhaustedError(
            f"Magazine '{magazine.name}' is full", resource_id=magazine.id
        )

    contents = [stack.model_copy(deep=True) for stack in magazine.contents]
    _push(
        contents,
        AmmoStack(name=ammo.name, quantity=amount, overrides=ammo.overrides.model_copy(deep=True)),
    )
    logger.info(f"Loaded {amount}x {ammo.name} into '{magazine.name}'")
    return LoadResult(
        contents=tuple(contents), loaded=amount, ammo_remaining=ammo.quantity - amount
    )


def merge_adjacent(stacks: Iterable[AmmoStack]) -> list[AmmoStack]:
    """Merge neighbouring stacks with identical profiles."""
    merged: list[AmmoStack] = []
    for stack in stacks:
        if stack.quantity > 0:
            _push(merged, stack.model_copy(deep=True))
    return merged


def unload_magazine(magazine: Magazine) -> list[AmmoStack]:
    """Stacks to hand back to the inventory when emptying a magazine.

    The magazine itself should then be given empty contents.
    """
    returned = merge_adjacent(magazine.contents)
    logger.info(f"Unloaded {magazine.total_count} rounds from '{magazine.name}'")
    return returned


def refund_bullets(
    contents: Sequence[AmmoStack], bullets: Sequence[BulletRecord]
) -> list[AmmoStack]:
    """Put fired rounds back on top of a magazine.

    Rounds are pushed in reverse firing order so the magazine returns to
    its state before the draw. Rounds built from the weapon alone carry
    no ammunition and are skipped.
    """
    restored = [stack.model_copy(deep=True) for stack in contents]
    for bullet in reversed(bullets):
        if bullet.overrides is None:
            continue
        _push(
            restored,
            AmmoStack(name=bullet.name, quantity=1, overrides=bullet.overrides.model_copy(deep=True)),
        )
    return restored
