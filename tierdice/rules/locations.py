"""Body locations: hit tables and aimed-shot penalties."""

import logging
from dataclasses import dataclass
from enum import Enum

from tierdice.dice.roller import DieSource
from tierdice.dice.types import DIE_MAX, DIE_MIN
from tierdice.rules.weapons import WeaponCategory

logger = logging.getLogger(__name__)


class BodyLocation(str, Enum):
    """Hit locations, in head-to-foot order."""

    HEAD = "head"
    RIGHT_ARM = "right_arm"
    LEFT_ARM = "left_arm"
    TORSO = "torso"
    RIGHT_LEG = "right_leg"
    LEFT_LEG = "left_leg"


@dataclass(frozen=True)
class LocationRule:
    """Hit roll range and aimed-shot penalties for a location.

    Attributes:
        roll_min: Lowest d20 face hitting this location.
        roll_max: Highest d20 face hitting this location.
        ranged_penalty: Percent penalty to aim a ranged attack here.
        melee_penalty: Percent penalty to aim a melee attack here.
    """

    roll_min: int
    roll_max: int
    ranged_penalty: int
    melee_penalty: int


LOCATION_RULES: dict[BodyLocation, LocationRule] = {
    BodyLocation.HEAD: LocationRule(1, 2, 80, 80),
    BodyLocation.RIGHT_ARM: LocationRule(3, 4, 60, 40),
    BodyLocation.LEFT_ARM: LocationRule(5, 6, 60, 40),
    BodyLocation.TORSO: LocationRule(7, 16, 0, 0),
    BodyLocation.RIGHT_LEG: LocationRule(17, 18, 40, 40),
    BodyLocation.LEFT_LEG: LocationRule(19, 20, 40, 40),
}

LOCATION_ORDER: tuple[BodyLocation, ...] = tuple(BodyLocation)


def location_penalty(category: WeaponCategory, location: BodyLocation | None) -> int:
    """Aimed-shot penalty for a weapon category.

    Random locations (None) and the torso are free. Thrown weapons have
    no aimed penalty.

    Args:
        category: Weapon category of the attack.
        location: Aimed location, or None for a random hit.

    Returns:
        Penalty percent.

    Examples:
        >>> location_penalty(WeaponCategory.RANGED, BodyLocation.HEAD)
        80
        >>> location_penalty(WeaponCategory.MELEE, BodyLocation.RIGHT_ARM)
        40
    """
    if location is None:
        return 0
    rule = LOCATION_RULES[BodyLocation(location)]
    category = WeaponCategory(category)
    if category == WeaponCategory.RANGED:
        return rule.ranged_penalty
    if category == WeaponCategory.MELEE:
        return rule.melee_penalty
    return 0


def location_from_roll(face: int) -> BodyLocation:
    """Map a d20 face to a location. Out-of-range faces are clamped."""
    face = max(DIE_MIN, min(DIE_MAX, face))
    for location, rule in LOCATION_RULES.items():
        if rule.roll_min <= face <= rule.roll_max:
            return location
    return BodyLocation.TORSO


def roll_location(source: DieSource) -> tuple[BodyLocation, int]:
    """Roll a random hit location on 1d20.

    Returns:
        Tuple of (location, face rolled).
    """
    face = source.roll()
    location = location_from_roll(face)
    logger.debug(f"Random hit location: rolled {face} -> {location.value}")
    return location, face


def shift_location(location: BodyLocation, steps: int) -> BodyLocation:
    """Move a location along the head-to-foot order, clamped at the ends.

    Examples:
        >>> shift_location(BodyLocation.TORSO, -1)
        <BodyLocation.LEFT_ARM: 'left_arm'>
        >>> shift_location(BodyLocation.HEAD, -3)
        <BodyLocation.HEAD: 'head'>
    """
    index = LOCATION_ORDER.index(BodyLocation(location))
    index = max(0, min(len(LOCATION_ORDER) - 1, index + steps))
    return LOCATION_ORDER[index]
