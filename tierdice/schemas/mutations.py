"""State mutations requested by the rules core.

Resolvers never touch storage. They return lists of these models and the
caller applies them atomically. apply_mutations is an in-memory
reference store for tests and the command line.
"""

import logging
from typing import Annotated, Iterable, Literal, Union

from pydantic import BaseModel, Field

from tierdice.exceptions import InvalidInputError
from tierdice.rules.locations import BodyLocation
from tierdice.schemas.records import ActorRecord, AmmoStack, WoundRecord

logger = logging.getLogger(__name__)


class CreateWound(BaseModel):
    """Add a wound to an actor."""

    kind: Literal["create_wound"] = "create_wound"
    actor_id: str
    wound: WoundRecord


class DeleteWound(BaseModel):
    """Remove a healed wound."""

    kind: Literal["delete_wound"] = "delete_wound"
    actor_id: str
    wound_id: str


class UpdateWound(BaseModel):
    """Change a wound's penalty and healing state. None leaves a field unchanged."""

    kind: Literal["update_wound"] = "update_wound"
    actor_id: str
    wound_id: str
    penalty: int | None = Field(default=None, ge=0)
    is_healing: bool | None = None
    had_first_aid: bool | None = None
    healing_days: int | None = Field(default=None, ge=0)


class UpdateMagazineContents(BaseModel):
    """Replace a magazine's contents."""

    kind: Literal["update_magazine"] = "update_magazine"
    actor_id: str
    magazine_id: str
    contents: list[AmmoStack]


class UpdateAmmoQuantity(BaseModel):
    """Set the quantity of a loose ammunition item."""

    kind: Literal["update_ammo"] = "update_ammo"
    actor_id: str
    ammo_id: str
    quantity: int = Field(ge=0)


class UpdateArmorDamage(BaseModel):
    """Set accumulated damage of an armor piece at one location."""

    kind: Literal["update_armor_damage"] = "update_armor_damage"
    actor_id: str
    armor_id: str
    location: BodyLocation
    damage: int = Field(ge=0)


Mutation = Annotated[
    Union[
        CreateWound,
        DeleteWound,
        UpdateWound,
        UpdateMagazineContents,
        UpdateAmmoQuantity,
        UpdateArmorDamage,
    ],
    Field(discriminator="kind"),
]


def _index_of(items: list, item_id: str, field: str) -> int:
    for index, item in enumerate(items):
        if item.id == item_id:
            return index
    raise InvalidInputError(f"No {field} '{item_id}' to update", field=field, value=item_id)


def apply_mutations(actor: ActorRecord, mutations: Iterable[Mutation]) -> ActorRecord:
    """Apply mutations to a copy of an actor record.

    Args:
        actor: Current actor state (left untouched).
        mutations: Mutations to apply, in order.

    Returns:
        New ActorRecord with every mutation applied.

    Raises:
        InvalidInputError: If a mutation targets another actor or a
            record that does not exist.
    """
    updated = actor.model_copy(deep=True)

    for mutation in mutations:
        if mutation.actor_id != actor.id:
            raise InvalidInputError(
                f"Mutation for actor '{mutation.actor_id}' applied to '{actor.id}'",
                field="actor_id",
                value=mutation.actor_id,
            )

        if isinstance(mutation, CreateWound):
            updated.wounds.append(mutation.wound.model_copy(deep=True))
        elif isinstance(mutation, DeleteWound):
            index = _index_of(updated.wounds, mutation.wound_id, "wound_id")
            del updated.wounds[index]
        elif isinstance(mutation, UpdateWound):
            index = _index_of(updated.wounds, mutation.wound_id, "wound_id")
            changes = {
                key: value
                for key, value in mutation.model_dump(
                    include={"penalty", "is_healing", "had_first_aid", "healing_days"}
                ).items()
                if value is not None
            }
            updated.wounds[index] = updated.wounds[index].model_copy(update=changes)
        elif isinstance(mutation, UpdateMagazineContents):
            index = _index_of(updated.magazines, mutation.magazine_id, "magazine_id")
            updated.magazines[index] = updated.magazines[index].model_copy(
                update={"contents": [s.model_copy(deep=True) for s in mutation.contents]}
            )
        elif isinstance(mutation, UpdateAmmoQuantity):
            index = _index_of(updated.ammo, mutation.ammo_id, "ammo_id")
            updated.ammo[index] = updated.ammo[index].model_copy(
                update={"quantity": mutation.quantity}
            )
        elif isinstance(mutation, UpdateArmorDamage):
            index = _index_of(updated.armor, mutation.armor_id, "armor_id")
            piece = updated.armor[index]
            damage = dict(piece.damage)
            damage[mutation.location] = mutation.damage
            updated.armor[index] = piece.model_copy(update={"damage": damage})

        logger.debug(f"Applied {mutation.kind} to actor {actor.id}")

    return updated
