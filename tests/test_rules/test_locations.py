"""Tests for hit locations."""

import pytest

from tierdice.dice.roller import FixedDieSource
from tierdice.rules.locations import (
    LOCATION_RULES,
    BodyLocation,
    location_from_roll,
    location_penalty,
    roll_location,
    shift_location,
)
from tierdice.rules.weapons import WeaponCategory


class TestLocationPenalty:
    """Tests for aimed-shot penalties."""

    def test_random_and_torso_are_free(self):
        """No penalty for random hits or the torso."""
        assert location_penalty(WeaponCategory.RANGED, None) == 0
        assert location_penalty(WeaponCategory.RANGED, BodyLocation.TORSO) == 0
        assert location_penalty(WeaponCategory.MELEE, BodyLocation.TORSO) == 0

    def test_torso_row_is_free(self):
        """The table itself carries no torso penalty for either category."""
        rule = LOCATION_RULES[BodyLocation.TORSO]
        assert (rule.ranged_penalty, rule.melee_penalty) == (0, 0)

    def test_ranged_and_melee_tables(self):
        """Arms are cheaper to aim at in melee."""
        assert location_penalty(WeaponCategory.RANGED, BodyLocation.RIGHT_ARM) == 60
        assert location_penalty(WeaponCategory.MELEE, BodyLocation.RIGHT_ARM) == 40
        assert location_penalty(WeaponCategory.RANGED, BodyLocation.HEAD) == 80

    def test_thrown_has_no_penalty(self):
        """Thrown weapons ignore the aimed table."""
        assert location_penalty(WeaponCategory.THROWN, BodyLocation.HEAD) == 0

    def test_category_value_accepted(self):
        """A raw category value resolves to the same row as the enum."""
        assert location_penalty("melee", BodyLocation.LEFT_LEG) == location_penalty(
            WeaponCategory.MELEE, BodyLocation.LEFT_LEG
        )


class TestRollLocation:
    """Tests for random locations."""

    @pytest.mark.parametrize(
        "face,location",
        [
            (1, BodyLocation.HEAD),
            (4, BodyLocation.RIGHT_ARM),
            (5, BodyLocation.LEFT_ARM),
            (7, BodyLocation.TORSO),
            (16, BodyLocation.TORSO),
            (18, BodyLocation.RIGHT_LEG),
            (20, BodyLocation.LEFT_LEG),
        ],
    )
    def test_face_table(self, face, location):
        """Every face maps to exactly one location."""
        assert location_from_roll(face) == location

    def test_roll_uses_source(self):
        """The face is drawn from the die source and reported."""
        location, face = roll_location(FixedDieSource([2]))
        assert (location, face) == (BodyLocation.HEAD, 2)

    def test_shift_clamps(self):
        """Shifting stops at the ends of the body."""
        assert shift_location(BodyLocation.LEFT_LEG, 2) == BodyLocation.LEFT_LEG
        assert shift_location(BodyLocation.TORSO, 1) == BodyLocation.RIGHT_LEG
