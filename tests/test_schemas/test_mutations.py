"""Tests for record mutations and the reference applier."""

import pytest
from pydantic import TypeAdapter, ValidationError

from tests.factories import (
    create_actor,
    create_ammo,
    create_armor,
    create_magazine,
    create_stack,
    create_wound,
)
from tierdice.exceptions import InvalidInputError
from tierdice.rules.locations import BodyLocation
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


class TestMutationUnion:
    """Tests for the discriminated union."""

    def test_kind_selects_model(self):
        """Serialized mutations come back as the right class."""
        adapter = TypeAdapter(Mutation)
        mutation = adapter.validate_python(
            {"kind": "update_ammo", "actor_id": "a1", "ammo_id": "x", "quantity": 3}
        )
        assert isinstance(mutation, UpdateAmmoQuantity)

    def test_negative_quantity_rejected(self):
        """Quantities cannot go below zero."""
        with pytest.raises(ValidationError):
            UpdateAmmoQuantity(actor_id="a1", ammo_id="x", quantity=-1)


class TestApplyMutations:
    """Tests for apply_mutations."""

    def test_original_untouched(self):
        """The input record is never modified."""
        actor = create_actor()
        wound = create_wound()
        updated = apply_mutations(actor, [CreateWound(actor_id=actor.id, wound=wound)])
        assert actor.wounds == []
        assert [w.id for w in updated.wounds] == [wound.id]

    def test_update_and_delete_wound(self):
        """Partial updates keep unspecified fields."""
        wound = create_wound(penalty=30, had_first_aid=True)
        other = create_wound(damage="D", penalty=5)
        actor = create_actor(wounds=[wound, other])
        updated = apply_mutations(
            actor,
            [
                UpdateWound(actor_id=actor.id, wound_id=wound.id, penalty=20, is_healing=True),
                DeleteWound(actor_id=actor.id, wound_id=other.id),
            ],
        )
        assert len(updated.wounds) == 1
        assert updated.wounds[0].penalty == 20
        assert updated.wounds[0].is_healing
        assert updated.wounds[0].had_first_aid

    def test_magazine_and_ammo(self):
        """Magazine contents and loose quantities are replaced."""
        magazine = create_magazine([create_stack("FMJ", 5)])
        ammo = create_ammo(quantity=4)
        actor = create_actor(magazines=[magazine], ammo=[ammo])
        updated = apply_mutations(
            actor,
            [
                UpdateMagazineContents(
                    actor_id=actor.id, magazine_id=magazine.id, contents=[create_stack("FMJ", 2)]
                ),
                UpdateAmmoQuantity(actor_id=actor.id, ammo_id=ammo.id, quantity=3),
            ],
        )
        assert updated.magazines[0].total_count == 2
        assert updated.ammo[0].quantity == 3

    def test_armor_damage(self):
        """Armor damage is set per location."""
        armor = create_armor({BodyLocation.TORSO: 3})
        actor = create_actor(armor=[armor])
        updated = apply_mutations(
            actor,
            [
                UpdateArmorDamage(
                    actor_id=actor.id, armor_id=armor.id, location=BodyLocation.TORSO, damage=2
                )
            ],
        )
        assert updated.armor[0].effective_rating(BodyLocation.TORSO) == 1

    def test_wrong_actor_rejected(self):
        """Mutations for another actor raise."""
        actor = create_actor()
        with pytest.raises(InvalidInputError):
            apply_mutations(actor, [DeleteWound(actor_id="someone_else", wound_id="w")])

    def test_missing_record_rejected(self):
        """Updating an unknown wound raises."""
        actor = create_actor()
        with pytest.raises(InvalidInputError) as exc_info:
            apply_mutations(actor, [UpdateWound(actor_id=actor.id, wound_id="nope", penalty=5)])
        assert exc_info.value.field == "wound_id"
