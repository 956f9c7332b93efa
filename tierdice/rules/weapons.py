"""Weapon categories and burst lengths."""

from enum import Enum


class WeaponCategory(str, Enum):
    """Weapon category."""

    MELEE = "melee"
    RANGED = "ranged"
    THROWN = "thrown"


class BurstLevel(str, Enum):
    """Burst length for ranged fire."""

    SINGLE = "single"  # 1 bullet
    SHORT = "short"  # fire rate
    LONG = "long"  # fire rate x3
    FULL = "full"  # fire rate x6


DEFAULT_JAMMING = 20
