"""Wound severity, damage codes and per-severity rules.

Damage is written as a one-letter code: D (grazing), L (light),
C (heavy), K (critical). An "s" prefix marks a bruise, non-lethal damage
of the same severity (e.g. "sL").
"""

from dataclasses import dataclass
from enum import Enum

from tierdice.dice.difficulty import Difficulty


class WoundSeverity(str, Enum):
    """Ordered wound severity. NONE means the damage was negated."""

    NONE = "none"
    GRAZING = "D"
    LIGHT = "L"
    HEAVY = "C"
    CRITICAL = "K"


# Damage points used by armor reduction (Critical saturates at 4)
SEVERITY_POINTS: dict[WoundSeverity, int] = {
    WoundSeverity.NONE: 0,
    WoundSeverity.GRAZING: 1,
    WoundSeverity.LIGHT: 2,
    WoundSeverity.HEAVY: 3,
    WoundSeverity.CRITICAL: 4,
}

_SEVERITY_BY_POINTS: dict[int, WoundSeverity] = {v: k for k, v in SEVERITY_POINTS.items()}

BRUISE_PREFIX = "s"


@dataclass(frozen=True)
class WoundRule:
    """Per-severity constants.

    Attributes:
        pain_difficulty: Difficulty of the pain resistance test.
        pass_penalty: Penalty percent stored when the pain test passes.
        fail_penalty: Penalty percent stored when the pain test fails.
        health_points: Weight toward the actor's total damage points.
    """

    pain_difficulty: Difficulty
    pass_penalty: int
    fail_penalty: int
    health_points: int


WOUND_RULES: dict[WoundSeverity, WoundRule] = {
    WoundSeverity.GRAZING: WoundRule(Difficulty.AVERAGE, 5, 10, 1),
    WoundSeverity.LIGHT: WoundRule(Difficulty.PROBLEMATIC, 15, 30, 3),
    WoundSeverity.HEAVY: WoundRule(Difficulty.HARD, 30, 60, 9),
    WoundSeverity.CRITICAL: WoundRule(Difficulty.AVERAGE, 160, 160, 27),
}


@dataclass(frozen=True)
class DamageSpec:
    """Parsed damage code.

    Attributes:
        severity: Wound severity.
        is_bruise: True for non-lethal (bruise) damage.
    """

    severity: WoundSeverity
    is_bruise: bool = False

    @property
    def code(self) -> str:
        prefix = BRUISE_PREFIX if self.is_bruise else ""
        return f"{prefix}{self.severity.value}"

    @property
    def rule(self) -> WoundRule:
        return WOUND_RULES[self.severity]


def parse_damage(code: str) -> DamageSpec:
    """Parse a damage code such as "L" or "sC".

    Args:
        code: Damage code, optionally prefixed with "s" for bruises.

    Returns:
        DamageSpec.

    Raises:
        ValueError: If the code is not a known severity.

    Examples:
        >>> parse_damage("sC")
        DamageSpec(severity=<WoundSeverity.HEAVY: 'C'>, is_bruise=True)
    """
    text = code.strip()
    is_bruise = len(text) == 2 and text[0] == BRUISE_PREFIX
    letter = text[1:] if is_bruise else text
    try:
        severity = WoundSeverity(letter.upper())
    except ValueError:
        raise ValueError(f"Unknown damage code: '{code}'") from None
    if severity == WoundSeverity.NONE:
        raise ValueError(f"Unknown damage code: '{code}'")
    return DamageSpec(severity=severity, is_bruise=is_bruise)


def is_valid_damage_code(code: str) -> bool:
    try:
        parse_damage(code)
    except ValueError:
        return False
    return True


def severity_to_points(severity: WoundSeverity) -> int:
    """Damage points carried by a severity."""
    return SEVERITY_POINTS[severity]


def points_to_severity(points: int) -> WoundSeverity:
    """Map damage points back to a severity.

    Examples:
        >>> points_to_severity(0)
        <WoundSeverity.NONE: 'none'>
        >>> points_to_severity(7)
        <WoundSeverity.CRITICAL: 'K'>
    """
    if points <= 0:
        return WoundSeverity.NONE
    if points >= SEVERITY_POINTS[WoundSeverity.CRITICAL]:
        return WoundSeverity.CRITICAL
    return _SEVERITY_BY_POINTS[int(points)]
