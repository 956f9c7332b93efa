"""Resolvers for combat, damage and healing."""

from tierdice.managers.base import BaseResolver
from tierdice.managers.armor import ArmorDamageReducer, ReductionDetail
from tierdice.managers.damage import DamageReport, DamageResolver, Hit
from tierdice.managers.healing import HealingAction, HealingMethod, HealingReport, HealingResolver
from tierdice.managers.opposed import (
    DefenseKind,
    DefenseOption,
    HandshakeState,
    OpposedRequest,
    OpposedResolution,
    OpposedTestManager,
)
from tierdice.managers.pain_resistance import (
    IncomingWound,
    PainResistanceProcessor,
    PainResistanceResult,
)
from tierdice.managers.weapon_fire import FirePlan, FireRequest, WeaponFireResolver

__all__ = [
    "ArmorDamageReducer",
    "BaseResolver",
    "DamageReport",
    "DamageResolver",
    "DefenseKind",
    "DefenseOption",
    "FirePlan",
    "FireRequest",
    "HandshakeState",
    "HealingAction",
    "HealingMethod",
    "HealingReport",
    "HealingResolver",
    "Hit",
    "IncomingWound",
    "OpposedRequest",
    "OpposedResolution",
    "OpposedTestManager",
    "PainResistanceProcessor",
    "PainResistanceResult",
    "ReductionDetail",
    "WeaponFireResolver",
]
