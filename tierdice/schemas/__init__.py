"""Pydantic records read by the rules and the mutations they return."""

from tierdice.rules.weapons import BurstLevel, WeaponCategory
from tierdice.schemas.records import (
    ActorRecord,
    AmmoItem,
    AmmoOverrides,
    AmmoStack,
    ArmorPiece,
    GearItem,
    Magazine,
    PelletBand,
    WeaponProfile,
    WoundRecord,
)
from tierdice.schemas.mutations import (
    CreateWound,
    DeleteWound,
    Mutation,
    UpdateAmmoQuantity,
    UpdateArmorDamage,
    UpdateMagazineContents,
    UpdateWound,
    apply_mutations,
)

__all__ = [
    # Records
    "ActorRecord",
    "AmmoItem",
    "AmmoOverrides",
    "AmmoStack",
    "ArmorPiece",
    "BurstLevel",
    "GearItem",
    "Magazine",
    "PelletBand",
    "WeaponCategory",
    "WeaponProfile",
    "WoundRecord",
    # Mutations
    "CreateWound",
    "DeleteWound",
    "Mutation",
    "UpdateAmmoQuantity",
    "UpdateArmorDamage",
    "UpdateMagazineContents",
    "UpdateWound",
    "apply_mutations",
]
