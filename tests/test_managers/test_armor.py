"""Tests for armor damage reduction."""

import pytest

from tests.factories import create_actor, create_armor
from tierdice.exceptions import InvalidInputError
from tierdice.managers.armor import ArmorDamageReducer, reduce_points, round_reduction
from tierdice.rules.locations import BodyLocation
from tierdice.rules.wounds import WoundSeverity, severity_to_points


@pytest.fixture
def reducer() -> ArmorDamageReducer:
    return ArmorDamageReducer()


class TestRoundReduction:
    """Tests for reduction rounding."""

    @pytest.mark.parametrize(
        "raw,expected",
        [(2.0, 2), (2.4, 2), (2.5, 3), (1.0, 1), (0.2, 1), (0, 0), (-3, 0)],
    )
    def test_rounding(self, raw, expected):
        """Half rounds up; any positive fraction below 1 stops one point."""
        assert round_reduction(raw) == expected


class TestReduceDamage:
    """Tests for ArmorDamageReducer.reduce_damage."""

    def test_heavy_through_stacked_armor(self, reducer):
        """Armor 3 with piercing 1 turns a heavy wound into a grazing one."""
        actor = create_actor(
            armor=[
                create_armor({BodyLocation.TORSO: 2}),
                create_armor({BodyLocation.TORSO: 1}, name="Plate"),
            ]
        )
        detail = reducer.reduce_damage(actor, BodyLocation.TORSO, WoundSeverity.HEAVY, piercing=1)
        assert detail.total_armor == 3
        assert detail.raw_reduction == 2
        assert detail.actual_reduction == 2
        assert detail.severity == WoundSeverity.GRAZING
        assert len(detail.contributions) == 2

    def test_fully_negated(self, reducer):
        """Enough armor negates the wound."""
        actor = create_actor(armor=[create_armor({BodyLocation.HEAD: 2})])
        detail = reducer.reduce_damage(actor, BodyLocation.HEAD, WoundSeverity.LIGHT)
        assert detail.is_negated
        assert detail.damage_points == 0

    def test_other_locations_unprotected(self, reducer):
        """Armor only covers its own locations."""
        actor = create_actor(armor=[create_armor({BodyLocation.TORSO: 5})])
        detail = reducer.reduce_damage(actor, BodyLocation.LEFT_LEG, WoundSeverity.LIGHT)
        assert detail.severity == WoundSeverity.LIGHT
        assert detail.contributions == ()

    def test_unequipped_and_damaged_armor(self, reducer):
        """Unequipped armor is ignored and damage lowers the rating."""
        actor = create_actor(
            armor=[
                create_armor({BodyLocation.TORSO: 4}, equipped=False),
                create_armor({BodyLocation.TORSO: 3}, damage={BodyLocation.TORSO: 2}),
            ]
        )
        detail = reducer.reduce_damage(actor, BodyLocation.TORSO, WoundSeverity.HEAVY)
        assert detail.total_armor == 1
        assert detail.severity == WoundSeverity.LIGHT

    def test_piercing_beyond_armor(self, reducer):
        """Excess piercing never raises severity."""
        actor = create_actor(armor=[create_armor({BodyLocation.TORSO: 1})])
        detail = reducer.reduce_damage(actor, BodyLocation.TORSO, WoundSeverity.LIGHT, piercing=4)
        assert detail.actual_reduction == 0
        assert detail.severity == WoundSeverity.LIGHT

    @pytest.mark.parametrize(
        "severity",
        [WoundSeverity.GRAZING, WoundSeverity.LIGHT, WoundSeverity.HEAVY, WoundSeverity.CRITICAL],
    )
    def test_more_armor_never_worse(self, severity):
        """Severity points fall as armor rises."""
        previous = severity_to_points(severity)
        for armor in range(0, 6):
            _, points = reduce_points(severity, armor, piercing=0)
            assert points <= previous
            previous = points

    @pytest.mark.parametrize("armor", [0, 1, 2.5, 3, 5])
    @pytest.mark.parametrize(
        "severity",
        [WoundSeverity.GRAZING, WoundSeverity.LIGHT, WoundSeverity.HEAVY, WoundSeverity.CRITICAL],
    )
    def test_more_piercing_never_better(self, severity, armor):
        """Reduction never grows and points never fall as piercing rises."""
        previous_reduction, previous_points = reduce_points(severity, armor, piercing=0)
        for piercing in [0.5, 1, 1.5, 2, 3, 4, 5]:
            reduction, points = reduce_points(severity, armor, piercing=piercing)
            assert 0 <= reduction <= previous_reduction
            assert points >= previous_points
            assert points <= severity_to_points(severity)
            previous_reduction, previous_points = reduction, points


class TestRecordArmorDamage:
    """Tests for armor damage mutations."""

    def test_clamped_to_rating(self, reducer):
        """Damage never exceeds the rating."""
        armor = create_armor({BodyLocation.TORSO: 3})
        actor = create_actor(armor=[armor])
        mutation = reducer.record_armor_damage(actor, armor.id, BodyLocation.TORSO, 5)
        assert mutation.damage == 3

    def test_repair_clamped_at_zero(self, reducer):
        """Repairs never go below zero."""
        armor = create_armor({BodyLocation.TORSO: 3}, damage={BodyLocation.TORSO: 1})
        actor = create_actor(armor=[armor])
        mutation = reducer.record_armor_damage(actor, armor.id, BodyLocation.TORSO, -2)
        assert mutation.damage == 0

    def test_uncovered_location(self, reducer):
        """Damaging a location the armor does not cover raises."""
        armor = create_armor({BodyLocation.TORSO: 3})
        actor = create_actor(armor=[armor])
        with pytest.raises(InvalidInputError):
            reducer.record_armor_damage(actor, armor.id, BodyLocation.HEAD, 1)
