"""Armor-mediated damage reduction."""

import logging
import math
from dataclasses import dataclass, field

from tierdice.exceptions import InvalidInputError
from tierdice.rules.locations import BodyLocation
from tierdice.rules.wounds import WoundSeverity, points_to_severity, severity_to_points
from tierdice.schemas.mutations import UpdateArmorDamage
from tierdice.schemas.records import ActorRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArmorContribution:
    """One armor piece's share of the protection at a location."""

    armor_id: str
    name: str
    rating: int
    damage: int
    effective_rating: int


@dataclass(frozen=True)
class ReductionDetail:
    """Breakdown of an armor reduction.

    Attributes:
        location: Body location hit.
        incoming: Severity before armor.
        piercing: Piercing of the hit.
        total_armor: Sum of effective ratings at the location.
        raw_reduction: total_armor minus piercing.
        actual_reduction: Rounded reduction actually applied.
        damage_points: Points left after reduction.
        severity: Severity after reduction (NONE when negated).
        contributions: Per-piece ratings.
    """

    location: BodyLocation
    incoming: WoundSeverity
    piercing: float
    total_armor: float
    raw_reduction: float
    actual_reduction: int
    damage_points: int
    severity: WoundSeverity
    contributions: tuple[ArmorContribution, ...] = field(default_factory=tuple)

    @property
    def is_negated(self) -> bool:
        return self.severity == WoundSeverity.NONE


def round_reduction(raw_reduction: float) -> int:
    """Round a raw armor reduction.

    Values of 1 or more round half up. Any positive value below 1 still
    stops one point. Zero or negative stops nothing.

    Examples:
        >>> round_reduction(2.5)
        3
        >>> round_reduction(0.2)
        1
        >>> round_reduction(-1)
        0
    """
    if raw_reduction >= 1:
        whole = math.floor(raw_reduction)
        return whole + (1 if raw_reduction - whole >= 0.5 else 0)
    if raw_reduction > 0:
        return 1
    return 0


def reduce_points(severity: WoundSeverity, total_armor: float, piercing: float) -> tuple[int, int]:
    """Apply the reduction rule to a severity.

    Returns:
        Tuple of (actual reduction, remaining damage points).
    """
    actual = round_reduction(total_armor - piercing)
    return actual, max(0, severity_to_points(severity) - actual)


class ArmorDamageReducer:
    """Converts incoming wound severity through worn armor.

    Side-effect free: reduce_damage only reads the actor.
    """

    def reduce_damage(
        self,
        actor: ActorRecord,
        location: BodyLocation,
        severity: WoundSeverity,
        piercing: float = 0,
    ) -> ReductionDetail:
        """Reduce a wound's severity by the armor covering a location.

        Args:
            actor: Wearer.
            location: Location hit.
            severity: Incoming severity.
            piercing: Armor points the hit ignores.

        Returns:
            ReductionDetail with the resulting severity and breakdown.
        """
        location = BodyLocation(location)
        contributions = tuple(
            ArmorContribution(
                armor_id=piece.id,
                name=piece.name,
                rating=piece.rating(location),
                damage=piece.damage.get(location, 0),
                effective_rating=piece.effective_rating(location),
            )
            for piece in actor.equipped_armor
            if piece.rating(location) > 0
        )
        total_armor = sum(c.effective_rating for c in contributions)
        actual, points = reduce_points(severity, total_armor, piercing)
        result = points_to_severity(points)

        logger.debug(
            f"Armor at {location.value}: total={total_armor} piercing={piercing} "
            f"reduction={actual} {severity.value} -> {result.value}"
        )
        return ReductionDetail(
            location=location,
            incoming=severity,
            piercing=piercing,
            total_armor=total_armor,
            raw_reduction=total_armor - piercing,
            actual_reduction=actual,
            damage_points=points,
            severity=result,
            contributions=contributions,
        )

    def record_armor_damage(
        self,
        actor: ActorRecord,
        armor_id: str,
        location: BodyLocation,
        amount: int,
    ) -> UpdateArmorDamage:
        """Change the damage an armor piece has taken at a location.

        The new damage is clamped to 0..rating.

        Args:
            actor: Wearer.
            armor_id: Armor piece to change.
            location: Location on the piece.
            amount: Signed change in damage points.

        Returns:
            UpdateArmorDamage mutation.

        Raises:
            InvalidInputError: If the actor has no such armor.
        """
        piece = actor.get_armor(armor_id)
        location = BodyLocation(location)
        rating = piece.rating(location)
        if rating <= 0 and amount > 0:
            raise InvalidInputError(
                f"Armor '{piece.name}' does not cover {location.value}",
                field="location",
                value=location,
            )
        current = piece.damage.get(location, 0)
        new_damage = max(0, min(rating, current + amount))
        return UpdateArmorDamage(
            actor_id=actor.id, armor_id=armor_id, location=location, damage=new_damage
        )
