"""Tests for rules configuration."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from tierdice.config import RulesSettings, get_settings
from tierdice.dice.difficulty import Difficulty
from tierdice.dice.types import OpposedMode
from tierdice.rules.wounds import WoundSeverity


class TestSettingsDefaults:
    """Tests for default configuration values."""

    def test_default_opposed_mode(self):
        """Opposed melee counts successes by default."""
        settings = RulesSettings(_env_file=None)
        assert settings.opposed_mode == OpposedMode.SUCCESSES

    def test_combat_switches(self):
        """Pellet limit is off and combat shifting is on."""
        settings = RulesSettings(_env_file=None)
        assert settings.use_pellet_count_limit is False
        assert settings.allow_combat_shift is True

    def test_healing_difficulties(self):
        """Heavier wounds are harder to treat."""
        settings = RulesSettings(_env_file=None)
        assert settings.healing_difficulty(WoundSeverity.LIGHT) == Difficulty.AVERAGE
        assert settings.healing_difficulty(WoundSeverity.CRITICAL) == Difficulty.PROBLEMATIC

    def test_unconfigured_severity_is_average(self):
        """Severities missing from the table default to average."""
        settings = RulesSettings(_env_file=None, healing_difficulties={})
        assert settings.healing_difficulty(WoundSeverity.HEAVY) == Difficulty.AVERAGE

    def test_rest_rates(self):
        """Bruises recover faster than wounds."""
        settings = RulesSettings(_env_file=None)
        assert settings.rest_regular_penalty == 5
        assert settings.rest_bruise_penalty == 30

    def test_encumbrance_defaults(self):
        """Base 20, plus 5 for every 2 constitution above 10."""
        settings = RulesSettings(_env_file=None)
        assert settings.enable_encumbrance is True
        assert settings.base_encumbrance == 20
        assert settings.use_constitution_bonus is True
        assert settings.encumbrance_threshold == 10
        assert settings.encumbrance_bonus_interval == 2
        assert settings.encumbrance_bonus_value == 5

    def test_default_debug_is_false(self):
        """Debug mode should be off by default."""
        settings = RulesSettings(_env_file=None)
        assert settings.debug is False


class TestSettingsValidation:
    """Tests for configuration validation."""

    def test_frozen(self):
        """Settings cannot be changed after creation."""
        settings = RulesSettings(_env_file=None)
        with pytest.raises(ValidationError):
            settings.opposed_mode = OpposedMode.DICE

    def test_unknown_mode_rejected(self):
        """Opposed mode must be a known mode."""
        with pytest.raises(ValidationError):
            RulesSettings(_env_file=None, opposed_mode="coin_flip")

    def test_negative_base_encumbrance_rejected(self):
        """The carry limit cannot start below zero."""
        with pytest.raises(ValidationError):
            RulesSettings(_env_file=None, base_encumbrance=-1)

    def test_negative_rest_rate_rejected(self):
        """Rest rates cannot be negative."""
        with pytest.raises(ValidationError):
            RulesSettings(_env_file=None, rest_regular_penalty=-1)


class TestSettingsEnvironment:
    """Tests for environment variable loading."""

    def test_env_overrides_defaults(self):
        """TIERDICE_ variables override default values."""
        with patch.dict(
            os.environ,
            {
                "TIERDICE_OPPOSED_MODE": "dice",
                "TIERDICE_USE_PELLET_COUNT_LIMIT": "true",
                "TIERDICE_DEBUG": "true",
            },
            clear=False,
        ):
            settings = RulesSettings(_env_file=None)
            assert settings.opposed_mode == OpposedMode.DICE
            assert settings.use_pellet_count_limit is True
            assert settings.debug is True

    def test_encumbrance_from_env(self):
        """Encumbrance tunables are read from the environment."""
        with patch.dict(
            os.environ,
            {"TIERDICE_ENABLE_ENCUMBRANCE": "false", "TIERDICE_BASE_ENCUMBRANCE": "32.5"},
            clear=False,
        ):
            settings = RulesSettings(_env_file=None)
            assert settings.enable_encumbrance is False
            assert settings.base_encumbrance == 32.5

    def test_healing_table_from_json(self):
        """The healing table is read as JSON."""
        with patch.dict(
            os.environ, {"TIERDICE_HEALING_DIFFICULTIES": '{"L": "hard"}'}, clear=False
        ):
            settings = RulesSettings(_env_file=None)
            assert settings.healing_difficulty(WoundSeverity.LIGHT) == Difficulty.HARD


class TestGetSettings:
    """Tests for the get_settings function."""

    def test_get_settings_returns_settings_instance(self):
        """get_settings should return a RulesSettings instance."""
        assert isinstance(get_settings(), RulesSettings)

    def test_get_settings_is_cached(self):
        """get_settings should return cached instance."""
        settings1 = get_settings()
        settings2 = get_settings()
        assert settings1 is settings2
