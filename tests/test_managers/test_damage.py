"""Tests for pain resistance and the damage pipeline."""

import pytest

from tests.factories import create_actor, create_armor, create_wound
from tierdice.dice.difficulty import Difficulty
from tierdice.dice.roller import FixedDieSource
from tierdice.exceptions import InvalidInputError
from tierdice.managers.damage import DamageResolver, Hit
from tierdice.managers.pain_resistance import IncomingWound, PainResistanceProcessor
from tierdice.rules.locations import BodyLocation
from tierdice.rules.wounds import WoundSeverity
from tierdice.schemas.mutations import CreateWound, apply_mutations


class TestPainResistance:
    """Tests for PainResistanceProcessor."""

    def test_pass_and_fail_penalties(self, settings):
        """Each wound gets its own test at its own difficulty."""
        actor = create_actor()
        processor = PainResistanceProcessor(settings, FixedDieSource([5, 6, 7, 15, 16, 17]))

        results = processor.resolve_batch(
            actor, [IncomingWound.from_code("L"), IncomingWound.from_code("D")]
        )

        light, grazing = results
        assert light.check.base_difficulty.key == Difficulty.PROBLEMATIC
        assert light.passed
        assert light.penalty == 15
        assert grazing.check.target == 12
        assert not grazing.passed
        assert grazing.penalty == 10

    def test_critical_penalty_regardless(self, settings):
        """Critical wounds carry the same penalty pass or fail."""
        actor = create_actor()
        processor = PainResistanceProcessor(settings, FixedDieSource([1, 2, 3]))
        (result,) = processor.resolve_batch(actor, [IncomingWound(WoundSeverity.CRITICAL)])
        assert result.passed
        assert result.penalty == 160

    def test_existing_penalties_ignored(self, settings):
        """Current wounds and armor do not make pain tests harder."""
        actor = create_actor(
            wounds=[create_wound("C", 60)], armor=[create_armor(penalty=30)]
        )
        processor = PainResistanceProcessor(settings, FixedDieSource([5, 6, 7]))
        (result,) = processor.resolve_batch(actor, [IncomingWound.from_code("D")])
        assert result.check.penalties.total == 0

    def test_skill_eases(self, settings):
        """Pain resistance skill shifts the tier."""
        actor = create_actor(skills={"pain_resistance": 4})
        processor = PainResistanceProcessor(settings, FixedDieSource([5, 6, 7]))
        (result,) = processor.resolve_batch(actor, [IncomingWound.from_code("L")])
        assert result.check.difficulty.key == Difficulty.AVERAGE

    def test_empty_batch_rolls_nothing(self, settings):
        """No wounds, no dice."""
        source = FixedDieSource([5])
        processor = PainResistanceProcessor(settings, source)
        assert processor.resolve_batch(create_actor(), []) == []
        assert source.remaining == 1

    def test_missing_attribute(self, settings):
        """Actors without the attribute cannot test."""
        actor = create_actor(attributes={"dexterity": 10})
        processor = PainResistanceProcessor(settings, FixedDieSource([5, 6, 7]))
        with pytest.raises(InvalidInputError):
            processor.resolve_batch(actor, [IncomingWound.from_code("L")])


class TestDamageResolver:
    """Tests for DamageResolver.apply_hits."""

    def test_armor_then_pain(self, settings):
        """Armor reduces each hit; negated hits skip the pain test."""
        actor = create_actor(armor=[create_armor({BodyLocation.TORSO: 2})])
        source = FixedDieSource([5, 6, 7])
        resolver = DamageResolver(settings, source)

        report = resolver.apply_hits(
            actor,
            [Hit(shell_index=1, name="FMJ", damage="C"), Hit(shell_index=2, name="FMJ", damage="L")],
            BodyLocation.TORSO,
        )

        assert report.negated == 1
        assert [w.damage for w in report.wounds] == ["D"]
        assert report.wounds[0].penalty == 5
        assert source.remaining == 0
        assert isinstance(report.mutations[0], CreateWound)

    def test_bruise_kept(self, settings):
        """Bruise damage creates bruise wounds."""
        actor = create_actor()
        resolver = DamageResolver(settings, FixedDieSource([15, 16, 17]))

        report = resolver.apply_hits(
            actor, [Hit(shell_index=1, name="Fist", damage="sL")], BodyLocation.HEAD
        )

        wound = report.wounds[0]
        assert wound.damage == "sL"
        assert wound.location == BodyLocation.HEAD
        assert wound.penalty == 30

    def test_pellets_one_wound_each(self, settings):
        """Every pellet is a separate wound with its own test."""
        actor = create_actor()
        source = FixedDieSource([5, 6, 7] * 3)
        resolver = DamageResolver(settings, source)

        report = resolver.apply_hits(
            actor,
            [Hit(shell_index=1, name="Buck", damage="D", is_pellet=True, pellets=3)],
            BodyLocation.TORSO,
        )

        assert len(report.wounds) == 3
        assert len({w.id for w in report.wounds}) == 3
        updated = apply_mutations(actor, report.mutations)
        assert updated.total_wound_penalty == 15

    def test_piercing_restores_damage(self, settings):
        """Piercing cuts through armor."""
        actor = create_actor(armor=[create_armor({BodyLocation.TORSO: 2})])
        resolver = DamageResolver(settings, FixedDieSource([5, 6, 7]))

        report = resolver.apply_hits(
            actor, [Hit(shell_index=1, name="AP", damage="L", piercing=2)], BodyLocation.TORSO
        )

        assert [w.damage for w in report.wounds] == ["L"]
