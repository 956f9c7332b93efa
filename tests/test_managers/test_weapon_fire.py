"""Tests for WeaponFireResolver plan/commit."""

import pytest

from tests.factories import (
    create_actor,
    create_ammo,
    create_magazine,
    create_melee_weapon,
    create_stack,
    create_weapon,
)
from tierdice.config import RulesSettings
from tierdice.dice.difficulty import Difficulty
from tierdice.dice.roller import FixedDieSource
from tierdice.exceptions import InvalidInputError, ResourceExhaustedError
from tierdice.managers.weapon_fire import FireRequest, WeaponFireResolver
from tierdice.rules.locations import BodyLocation
from tierdice.rules.weapons import BurstLevel, WeaponCategory
from tierdice.schemas.mutations import (
    UpdateAmmoQuantity,
    UpdateMagazineContents,
    apply_mutations,
)


def _gunner(weapon, magazine=None, skills=None, ammo=None):
    return create_actor(
        skills=skills if skills is not None else {"pistols": 4},
        weapons=[weapon],
        magazines=[magazine] if magazine else [],
        ammo=[ammo] if ammo else [],
    )


def _pistol_with_magazine(rounds: int = 10, **weapon_overrides):
    magazine = create_magazine([create_stack("FMJ", rounds)])
    weapon = create_weapon(caliber="9mm", magazine_id=magazine.id, **weapon_overrides)
    return weapon, magazine


class TestRangedPlan:
    """Tests for planning ranged attacks."""

    def test_single_shot_hits(self, settings):
        """Skill 4 eases to easy; the best die decides and one round lands."""
        weapon, magazine = _pistol_with_magazine()
        actor = _gunner(weapon, magazine)
        resolver = WeaponFireResolver(settings, FixedDieSource([5]))

        plan = resolver.plan(actor, FireRequest(weapon_id=weapon.id))

        assert plan.difficulty.key == Difficulty.EASY
        assert plan.target == 14
        assert plan.outcome.advantage_points == 13
        assert plan.bullets_fired == 1
        assert [h.damage for h in plan.hits] == ["L"]
        assert plan.hit_location == BodyLocation.TORSO
        # Planning leaves the magazine alone
        assert magazine.total_count == 10

    def test_commit_updates_magazine(self, settings):
        """Committing a plan yields the magazine's new contents."""
        weapon, magazine = _pistol_with_magazine()
        actor = _gunner(weapon, magazine)
        resolver = WeaponFireResolver(settings, FixedDieSource([5]))

        plan, mutations = resolver.fire(actor, FireRequest(weapon_id=weapon.id))

        assert len(mutations) == 1
        assert isinstance(mutations[0], UpdateMagazineContents)
        updated = apply_mutations(actor, mutations)
        assert updated.find_magazine(magazine.id).total_count == 9

    def test_burst_shortfall(self, settings):
        """A long burst of six from four rounds fires four and reports the gap."""
        weapon, magazine = _pistol_with_magazine(rounds=4, fire_rate=2)
        actor = _gunner(weapon, magazine)
        resolver = WeaponFireResolver(settings, FixedDieSource([3]))

        plan, mutations = resolver.fire(
            actor, FireRequest(weapon_id=weapon.id, burst=BurstLevel.LONG)
        )

        assert plan.bullets_requested == 6
        assert plan.bullets_fired == 4
        assert plan.shortfall == 2
        assert len(plan.hits) == 4
        assert mutations[0].contents == []

    def test_advantage_limits_hits(self, settings):
        """Advantage 2 lands three rounds of a six-round burst."""
        weapon, magazine = _pistol_with_magazine(fire_rate=2)
        actor = _gunner(weapon, magazine, skills={})
        resolver = WeaponFireResolver(settings, FixedDieSource([10]))

        plan = resolver.plan(actor, FireRequest(weapon_id=weapon.id, burst=BurstLevel.LONG))

        assert plan.target == 12
        assert plan.outcome.advantage_points == 2
        assert plan.bullets_fired == 6
        assert [h.shell_index for h in plan.hits] == [1, 2, 3]

    def test_jam_commits_nothing(self, settings):
        """A jammed weapon hits nothing and consumes nothing."""
        weapon, magazine = _pistol_with_magazine(jamming=18)
        actor = _gunner(weapon, magazine)
        resolver = WeaponFireResolver(settings, FixedDieSource([19, 18, 20]))

        plan, mutations = resolver.fire(actor, FireRequest(weapon_id=weapon.id, aiming_level=2))

        assert plan.is_jammed
        assert plan.jamming_threshold == 18
        assert plan.hits == ()
        assert plan.is_critical_failure
        assert mutations == []

    def test_ammo_lowers_jamming(self, settings):
        """Rounds with a lower jamming value jam the weapon sooner."""
        magazine = create_magazine([create_stack("Reload", 5, enabled=True, jamming=15)])
        weapon = create_weapon(caliber="9mm", magazine_id=magazine.id, jamming=20)
        actor = _gunner(weapon, magazine)
        resolver = WeaponFireResolver(settings, FixedDieSource([16]))

        plan = resolver.plan(actor, FireRequest(weapon_id=weapon.id))

        assert plan.jamming_threshold == 15
        assert plan.is_jammed

    def test_random_location(self, settings):
        """No aimed location rolls one after the pool."""
        weapon = create_weapon()
        actor = _gunner(weapon)
        resolver = WeaponFireResolver(settings, FixedDieSource([5, 2]))

        plan, mutations = resolver.fire(
            actor, FireRequest(weapon_id=weapon.id, hit_location=None)
        )

        assert plan.hit_location == BodyLocation.HEAD
        assert plan.location_roll == 2
        assert plan.penalties.location == 0
        # Weapon without caliber or magazine tracks no ammunition
        assert plan.hits[0].damage == weapon.damage
        assert mutations == []

    def test_aimed_location_penalty(self, settings):
        """Aiming at the head adds its ranged penalty."""
        weapon = create_weapon()
        actor = _gunner(weapon)
        resolver = WeaponFireResolver(settings, FixedDieSource([5]))

        plan = resolver.plan(
            actor, FireRequest(weapon_id=weapon.id, hit_location=BodyLocation.HEAD)
        )

        assert plan.penalties.location == 80
        assert plan.base_difficulty.key == Difficulty.VERY_HARD


class TestPellets:
    """Tests for pellet shells."""

    def _shotgun(self, pellet_count: int = 3):
        magazine = create_magazine(
            [create_stack("Buck", 5, is_pellet=True, pellet_count=pellet_count)],
            caliber="12",
        )
        weapon = create_weapon(
            name="Shotgun", caliber="12", magazine_id=magazine.id, fire_rate=2, skill="shotguns"
        )
        return weapon, magazine

    def test_pellets_per_shell(self, settings):
        """Later shells lose one pellet of capacity per position."""
        weapon, magazine = self._shotgun()
        actor = _gunner(weapon, magazine, skills={})
        resolver = WeaponFireResolver(settings, FixedDieSource([11]))

        plan = resolver.plan(
            actor, FireRequest(weapon_id=weapon.id, burst=BurstLevel.SHORT, distance=4)
        )

        assert [(h.shell_index, h.pellets) for h in plan.hits] == [(1, 2), (2, 1)]
        assert plan.total_pellet_hits == 3
        assert {h.damage for h in plan.hits} == {"C"}

    def test_pellet_count_limit(self):
        """With the limit on, hits never exceed the shell's pellets."""
        settings = RulesSettings(_env_file=None, use_pellet_count_limit=True)
        weapon, magazine = self._shotgun(pellet_count=1)
        actor = _gunner(weapon, magazine, skills={})
        resolver = WeaponFireResolver(settings, FixedDieSource([11]))

        plan = resolver.plan(
            actor, FireRequest(weapon_id=weapon.id, burst=BurstLevel.SHORT, distance=4)
        )

        assert plan.total_pellet_hits == 1


class TestAmmunitionErrors:
    """Tests for missing or empty ammunition."""

    def test_empty_magazine_rolls_nothing(self, settings):
        """An empty magazine is reported before any die is rolled."""
        weapon, magazine = _pistol_with_magazine(rounds=0)
        magazine.contents.clear()
        actor = _gunner(weapon, magazine)
        source = FixedDieSource([5])
        resolver = WeaponFireResolver(settings, source)

        with pytest.raises(ResourceExhaustedError):
            resolver.plan(actor, FireRequest(weapon_id=weapon.id))
        assert source.remaining == 1

    def test_caliber_weapon_needs_magazine(self, settings):
        """A weapon with a caliber but no magazine cannot fire."""
        weapon = create_weapon(caliber="9mm")
        actor = _gunner(weapon)
        resolver = WeaponFireResolver(settings, FixedDieSource([5]))

        with pytest.raises(ResourceExhaustedError):
            resolver.plan(actor, FireRequest(weapon_id=weapon.id))

    def test_unknown_magazine(self, settings):
        """A dangling magazine reference is invalid input."""
        weapon = create_weapon(caliber="9mm", magazine_id="ghost")
        actor = _gunner(weapon)
        resolver = WeaponFireResolver(settings, FixedDieSource([5]))

        with pytest.raises(InvalidInputError):
            resolver.plan(actor, FireRequest(weapon_id=weapon.id))

    def test_aiming_level_bounds(self, settings):
        """Aiming above 2 is rejected."""
        weapon = create_weapon()
        actor = _gunner(weapon)
        resolver = WeaponFireResolver(settings, FixedDieSource([5, 5, 5, 5]))

        with pytest.raises(InvalidInputError) as exc_info:
            resolver.plan(actor, FireRequest(weapon_id=weapon.id, aiming_level=3))
        assert exc_info.value.field == "aiming_level"

    def test_stale_plan_rejected(self, settings):
        """Committing after the magazine changed raises."""
        weapon, magazine = _pistol_with_magazine()
        actor = _gunner(weapon, magazine)
        resolver = WeaponFireResolver(settings, FixedDieSource([5]))
        plan = resolver.plan(actor, FireRequest(weapon_id=weapon.id))

        current = apply_mutations(
            actor,
            [
                UpdateMagazineContents(
                    actor_id=actor.id, magazine_id=magazine.id, contents=[create_stack("FMJ", 3)]
                )
            ],
        )
        with pytest.raises(InvalidInputError):
            resolver.commit(plan, current)


class TestMeleeAndThrown:
    """Tests for melee and thrown attacks."""

    def test_melee_uses_attack_bonus(self, settings):
        """Melee rolls three dice and adds the weapon's attack bonus."""
        weapon = create_melee_weapon(attack_bonus=1)
        actor = create_actor(skills={"hand_weapon": 2}, weapons=[weapon])
        resolver = WeaponFireResolver(settings, FixedDieSource([3, 4, 5]))

        plan, mutations = resolver.fire(actor, FireRequest(weapon_id=weapon.id))

        assert plan.is_melee
        assert plan.skill == 3
        assert plan.outcome.success_count == 3
        assert [h.damage for h in plan.hits] == ["D"]
        assert plan.nominal_damage == "D/L/C"
        assert mutations == []

    def test_thrown_consumes_loose_ammo(self, settings):
        """Thrown weapons take one item from loose ammunition."""
        ammo = create_ammo(name="Grenade", caliber=None, quantity=2)
        weapon = create_weapon(
            name="Grenade", category=WeaponCategory.THROWN, skill="throwing", magazine_id=ammo.id
        )
        actor = _gunner(weapon, ammo=ammo, skills={})
        resolver = WeaponFireResolver(settings, FixedDieSource([5]))

        plan, mutations = resolver.fire(actor, FireRequest(weapon_id=weapon.id))

        assert plan.bullets_fired == 1
        assert mutations == [UpdateAmmoQuantity(actor_id=actor.id, ammo_id=ammo.id, quantity=1)]

    def test_thrown_out_of_ammo(self, settings):
        """An empty stack of throwables is exhausted."""
        ammo = create_ammo(name="Knife", caliber=None, quantity=0)
        weapon = create_weapon(category=WeaponCategory.THROWN, magazine_id=ammo.id)
        actor = _gunner(weapon, ammo=ammo)
        resolver = WeaponFireResolver(settings, FixedDieSource([5]))

        with pytest.raises(ResourceExhaustedError):
            resolver.plan(actor, FireRequest(weapon_id=weapon.id))
