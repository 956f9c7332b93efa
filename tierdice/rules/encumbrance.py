"""Carrying capacity and encumbrance levels.

Capacity starts at the configured base and grows by a fixed step for
every few points of constitution above a threshold. Carried weight is
the sum of every item's weight times its quantity.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum

from tierdice.config import RulesSettings
from tierdice.schemas.records import ActorRecord

logger = logging.getLogger(__name__)


class EncumbranceLevel(str, Enum):
    """Encumbrance level based on carried weight vs capacity."""

    LIGHT = "light"  # under 50% capacity
    MEDIUM = "medium"  # 50% capacity or more
    HEAVY = "heavy"  # 75% capacity or more
    OVER = "over"  # at or over capacity


@dataclass(frozen=True)
class EncumbranceStatus:
    """Current encumbrance status for an actor.

    Attributes:
        enabled: Whether encumbrance tracking is on.
        capacity: Maximum carrying capacity.
        carried_weight: Total weight of all carried items.
        percentage: Carried weight as percentage of capacity, capped at 100.
        level: Current encumbrance level.
    """

    enabled: bool
    capacity: float
    carried_weight: float
    percentage: float
    level: EncumbranceLevel

    @property
    def is_over(self) -> bool:
        return self.level == EncumbranceLevel.OVER


# Attribute that raises capacity
CAPACITY_ATTRIBUTE = "constitution"

# Capacity reported when encumbrance tracking is switched off
DISABLED_CAPACITY = 999.0

MEDIUM_THRESHOLD = 50
HEAVY_THRESHOLD = 75


def carry_capacity(constitution: int, settings: RulesSettings) -> float:
    """Calculate carrying capacity from constitution.

    Examples:
        >>> settings = RulesSettings(_env_file=None)
        >>> carry_capacity(10, settings), carry_capacity(13, settings), carry_capacity(14, settings)
        (20.0, 25.0, 30.0)
    """
    if not settings.enable_encumbrance:
        return DISABLED_CAPACITY
    capacity = float(settings.base_encumbrance)
    interval = settings.encumbrance_bonus_interval
    if (
        settings.use_constitution_bonus
        and constitution > settings.encumbrance_threshold
        and interval > 0
    ):
        steps = math.floor((constitution - settings.encumbrance_threshold) / interval)
        capacity += max(0, steps * settings.encumbrance_bonus_value)
    return round(capacity, 2)


def carried_weight(actor: ActorRecord) -> float:
    """Total weight of everything the actor carries, equipped or not."""
    total = sum(weapon.weight for weapon in actor.weapons)
    total += sum(piece.weight for piece in actor.armor)
    total += sum(magazine.weight for magazine in actor.magazines)
    # Stacked items weigh per unit
    total += sum(ammo.weight * ammo.quantity for ammo in actor.ammo)
    total += sum(item.weight * item.quantity for item in actor.gear)
    return round(total, 2)


def encumbrance_level(weight: float, capacity: float, percentage: float) -> EncumbranceLevel:
    if weight >= capacity:
        return EncumbranceLevel.OVER
    if percentage >= HEAVY_THRESHOLD:
        return EncumbranceLevel.HEAVY
    if percentage >= MEDIUM_THRESHOLD:
        return EncumbranceLevel.MEDIUM
    return EncumbranceLevel.LIGHT


def encumbrance_status(actor: ActorRecord, settings: RulesSettings) -> EncumbranceStatus:
    """Get full encumbrance status for an actor.

    Args:
        actor: Carrier. A missing constitution attribute counts as 0.
        settings: Encumbrance tunables.

    Returns:
        EncumbranceStatus. Reading the actor has no side effects.
    """
    capacity = carry_capacity(actor.attributes.get(CAPACITY_ATTRIBUTE, 0), settings)
    weight = carried_weight(actor)
    percentage = min(100.0, weight / capacity * 100) if capacity > 0 else 0.0
    status = EncumbranceStatus(
        enabled=settings.enable_encumbrance,
        capacity=capacity,
        carried_weight=weight,
        percentage=round(percentage, 2),
        level=encumbrance_level(weight, capacity, percentage),
    )
    logger.debug(
        f"Encumbrance for '{actor.id}': {weight}/{capacity} "
        f"({status.percentage}%) -> {status.level.value}"
    )
    return status
