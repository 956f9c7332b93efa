"""Core test fixtures for rules tests."""

import pytest

from tierdice.config import RulesSettings, get_settings
from tierdice.dice.roller import FixedDieSource


@pytest.fixture
def settings() -> RulesSettings:
    """Default settings without reading .env."""
    return RulesSettings(_env_file=None)


@pytest.fixture
def fixed_dice():
    """Factory for a FixedDieSource from faces."""

    def _make(*faces: int) -> FixedDieSource:
        return FixedDieSource(faces)

    return _make


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Keep the cached CLI settings from leaking between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
