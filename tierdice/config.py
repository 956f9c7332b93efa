"""Rules configuration using pydantic-settings.

Settings are read-only tunables. Resolvers receive a RulesSettings
instance explicitly; only the command line calls get_settings().
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from tierdice.dice.difficulty import Difficulty
from tierdice.dice.types import OpposedMode
from tierdice.rules.wounds import WoundSeverity


def _default_healing_difficulties() -> dict[WoundSeverity, Difficulty]:
    return {
        WoundSeverity.GRAZING: Difficulty.AVERAGE,
        WoundSeverity.LIGHT: Difficulty.AVERAGE,
        WoundSeverity.HEAVY: Difficulty.PROBLEMATIC,
        WoundSeverity.CRITICAL: Difficulty.PROBLEMATIC,
    }


class RulesSettings(BaseSettings):
    """Rules tunables loaded from environment variables (TIERDICE_*)."""

    model_config = SettingsConfigDict(
        env_prefix="TIERDICE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # ==========================================================================
    # Combat
    # ==========================================================================
    opposed_mode: OpposedMode = OpposedMode.SUCCESSES
    use_pellet_count_limit: bool = False  # cap pellet hits at the shell's pellets
    allow_combat_shift: bool = True  # skill/natural-die shift on combat tests

    # ==========================================================================
    # Healing
    # ==========================================================================
    # Base difficulty of a healing test per wound severity
    healing_difficulties: dict[WoundSeverity, Difficulty] = Field(
        default_factory=_default_healing_difficulties
    )
    rest_regular_penalty: int = Field(default=5, ge=0)  # percent healed per day
    rest_bruise_penalty: int = Field(default=30, ge=0)  # percent healed per day for bruises

    # ==========================================================================
    # Encumbrance
    # ==========================================================================
    enable_encumbrance: bool = True
    base_encumbrance: float = Field(default=20, ge=0)  # carry limit before bonuses
    use_constitution_bonus: bool = True
    encumbrance_threshold: int = 10  # constitution above this raises the limit
    encumbrance_bonus_interval: int = Field(default=2, ge=0)  # constitution per step
    encumbrance_bonus_value: float = Field(default=5, ge=0)  # limit added per step

    # Debug
    debug: bool = False
    log_level: str = "INFO"

    def healing_difficulty(self, severity: WoundSeverity) -> Difficulty:
        """Healing difficulty for a severity, average when not configured."""
        return self.healing_difficulties.get(severity, Difficulty.AVERAGE)


@lru_cache
def get_settings() -> RulesSettings:
    """Get cached settings instance."""
    return RulesSettings()
