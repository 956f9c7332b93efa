"""Damage pipeline: hits -> armor -> pain resistance -> wounds."""

import logging
from dataclasses import dataclass, field
from typing import Iterable
from uuid import uuid4

from tierdice.config import RulesSettings
from tierdice.dice.roller import DieSource
from tierdice.managers.armor import ArmorDamageReducer, ReductionDetail
from tierdice.managers.base import BaseResolver
from tierdice.managers.pain_resistance import (
    IncomingWound,
    PainResistanceProcessor,
    PainResistanceResult,
)
from tierdice.rules.locations import BodyLocation
from tierdice.rules.wounds import DamageSpec, parse_damage
from tierdice.schemas.mutations import CreateWound
from tierdice.schemas.records import ActorRecord, WoundRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Hit:
    """One hit delivered to a target.

    Attributes:
        shell_index: 1-based position in the burst (1 for melee).
        name: Ammunition or weapon name.
        damage: Damage code per wound.
        piercing: Armor points ignored.
        is_pellet: Pellet shell; one wound per pellet.
        pellets: Pellets that hit (1 for ordinary rounds).
    """

    shell_index: int
    name: str
    damage: str
    piercing: int = 0
    is_pellet: bool = False
    pellets: int = 1

    @property
    def spec(self) -> DamageSpec:
        return parse_damage(self.damage)

    @property
    def wound_count(self) -> int:
        return self.pellets if self.is_pellet else 1


@dataclass(frozen=True)
class WoundApplication:
    """What happened to one wound-sized piece of damage.

    Attributes:
        hit: Hit the damage came from.
        reduction: Armor reduction applied.
        pain: Pain resistance test (None when armor negated the damage).
        wound: Wound created (None when negated).
    """

    hit: Hit
    reduction: ReductionDetail
    pain: PainResistanceResult | None = None
    wound: WoundRecord | None = None


@dataclass(frozen=True)
class DamageReport:
    """Result of applying a set of hits to one actor."""

    actor_id: str
    location: BodyLocation
    applications: tuple[WoundApplication, ...] = field(default_factory=tuple)
    mutations: tuple[CreateWound, ...] = field(default_factory=tuple)

    @property
    def wounds(self) -> list[WoundRecord]:
        return [a.wound for a in self.applications if a.wound is not None]

    @property
    def negated(self) -> int:
        return sum(1 for a in self.applications if a.wound is None)


class DamageResolver(BaseResolver):
    """Turns hits into wound mutations for one target."""

    def __init__(
        self,
        settings: RulesSettings | None = None,
        dice: DieSource | None = None,
        reducer: ArmorDamageReducer | None = None,
    ) -> None:
        super().__init__(settings, dice)
        self.reducer = reducer or ArmorDamageReducer()
        self.pain = PainResistanceProcessor(self.settings, self.dice)

    def apply_hits(
        self,
        actor: ActorRecord,
        hits: Iterable[Hit],
        location: BodyLocation,
    ) -> DamageReport:
        """Apply hits at a location.

        Pellet hits become one wound per pellet. Every wound is reduced
        by armor first; negated damage creates nothing and skips the pain
        test. Survivors go through one pain resistance batch.

        Args:
            actor: Target.
            hits: Hits to apply.
            location: Location every hit lands on.

        Returns:
            DamageReport with one CreateWound mutation per surviving wound.
        """
        location = BodyLocation(location)
        pieces: list[tuple[Hit, ReductionDetail]] = []
        for hit in hits:
            spec = hit.spec
            for _ in range(hit.wound_count):
                reduction = self.reducer.reduce_damage(
                    actor, location, spec.severity, hit.piercing
                )
                pieces.append((hit, reduction))

        surviving = [(hit, r) for hit, r in pieces if not r.is_negated]
        pain_results = self.pain.resolve_batch(
            actor,
            [
                IncomingWound(
                    severity=r.severity, is_bruise=hit.spec.is_bruise, location=location
                )
                for hit, r in surviving
            ],
        )
        pain_iter = iter(pain_results)

        applications: list[WoundApplication] = []
        mutations: list[CreateWound] = []
        for hit, reduction in pieces:
            if reduction.is_negated:
                applications.append(WoundApplication(hit=hit, reduction=reduction))
                continue
            pain = next(pain_iter)
            wound = WoundRecord(
                id=uuid4().hex,
                name=f"{pain.wound.code} wound ({location.value})",
                damage=pain.wound.code,
                location=location,
                penalty=pain.penalty,
            )
            applications.append(
                WoundApplication(hit=hit, reduction=reduction, pain=pain, wound=wound)
            )
            mutations.append(CreateWound(actor_id=actor.id, wound=wound))

        report = DamageReport(
            actor_id=actor.id,
            location=location,
            applications=tuple(applications),
            mutations=tuple(mutations),
        )
        logger.info(
            f"{actor.name or actor.id} hit at {location.value}: "
            f"{len(report.wounds)} wounds, {report.negated} negated by armor"
        )
        return report
