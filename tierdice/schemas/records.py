"""Plain-data records supplied by the character store.

The rules core reads these and never writes them; every change is
expressed as a mutation (see tierdice.schemas.mutations).
"""

from pydantic import BaseModel, Field, field_validator

from tierdice.exceptions import InvalidInputError
from tierdice.rules.locations import BodyLocation
from tierdice.rules.weapons import DEFAULT_JAMMING, WeaponCategory
from tierdice.rules.wounds import DamageSpec, WOUND_RULES, parse_damage


def _check_damage_code(value: str) -> str:
    parse_damage(value)
    return value


class PelletBand(BaseModel):
    """Damage dealt by each pellet up to a distance (metres)."""

    distance: float = Field(ge=0)
    damage: str = "D"

    @field_validator("damage")
    @classmethod
    def validate_damage(cls, value: str) -> str:
        return _check_damage_code(value)


DEFAULT_PELLET_BANDS: tuple[PelletBand, ...] = (
    PelletBand(distance=2, damage="K"),
    PelletBand(distance=5, damage="C"),
    PelletBand(distance=10, damage="L"),
    PelletBand(distance=20, damage="D"),
)


class AmmoOverrides(BaseModel):
    """Per-ammunition replacements for weapon statistics.

    Damage, piercing and jamming only replace the weapon's values when
    enabled. Pellet settings always apply.
    """

    enabled: bool = False
    damage: str | None = None
    piercing: int | None = Field(default=None, ge=0)
    jamming: int | None = Field(default=None, ge=1, le=20)
    is_pellet: bool = False
    pellet_count: int = Field(default=1, ge=1)
    pellet_bands: list[PelletBand] = Field(
        default_factory=lambda: [band.model_copy() for band in DEFAULT_PELLET_BANDS]
    )

    @field_validator("damage")
    @classmethod
    def validate_damage(cls, value: str | None) -> str | None:
        if value is None:
            return value
        return _check_damage_code(value)

    def profile_key(self) -> tuple:
        """Values that decide whether two stacks are the same ammunition."""
        key: tuple = (
            self.enabled,
            self.damage or "L",
            self.piercing or 0,
            self.jamming or DEFAULT_JAMMING,
            self.is_pellet,
        )
        if self.is_pellet:
            bands = tuple((b.distance, b.damage) for b in self.pellet_bands)
            key += (self.pellet_count, bands)
        return key


class AmmoStack(BaseModel):
    """Run of identical rounds inside a magazine."""

    name: str
    quantity: int = Field(ge=0)
    overrides: AmmoOverrides = Field(default_factory=AmmoOverrides)

    def same_profile(self, other: "AmmoStack") -> bool:
        return (
            self.name == other.name
            and self.overrides.profile_key() == other.overrides.profile_key()
        )


class Magazine(BaseModel):
    """Magazine with LIFO contents.

    Attributes:
        contents: Stacks ordered bottom (first loaded) to top (fired first).
    """

    id: str
    name: str = "Magazine"
    caliber: str | None = None
    capacity: int = Field(default=0, ge=0)
    contents: list[AmmoStack] = Field(default_factory=list)
    weight: float = Field(default=0, ge=0)

    @property
    def total_count(self) -> int:
        return sum(stack.quantity for stack in self.contents)

    @property
    def free_space(self) -> int:
        return max(0, self.capacity - self.total_count)


class AmmoItem(BaseModel):
    """Loose ammunition in the inventory."""

    id: str
    name: str
    caliber: str | None = None
    quantity: int = Field(default=0, ge=0)
    overrides: AmmoOverrides = Field(default_factory=AmmoOverrides)
    weight: float = Field(default=0, ge=0)  # per round


class WeaponProfile(BaseModel):
    """Weapon statistics.

    Attributes:
        category: Melee, ranged or thrown.
        attribute: Attribute key used for the test.
        skill: Skill key used for the test.
        damage: Damage code for ranged and thrown hits.
        melee_damage: Damage codes for melee tiers 1-3.
        piercing: Armor points ignored.
        jamming: Lowest die at or above this value jams.
        fire_rate: Rounds per short burst (0 treated as 1).
        caliber: Ammunition caliber; weapons with one need a magazine.
        magazine_id: Selected magazine (or loose ammo for thrown weapons).
        attack_bonus: Melee only, added to the skill when attacking.
        defense_bonus: Melee only, added to the skill when defending.
        weight: Carried weight.
    """

    id: str
    name: str
    category: WeaponCategory
    attribute: str = "dexterity"
    skill: str | None = None
    damage: str = "L"
    melee_damage: tuple[str, str, str] = ("D", "L", "C")
    piercing: int = Field(default=0, ge=0)
    jamming: int = Field(default=DEFAULT_JAMMING, ge=1, le=20)
    fire_rate: int = Field(default=1, ge=0)
    caliber: str | None = None
    magazine_id: str | None = None
    attack_bonus: int = 0
    defense_bonus: int = 0
    equipped: bool = True
    weight: float = Field(default=0, ge=0)

    @field_validator("damage")
    @classmethod
    def validate_damage(cls, value: str) -> str:
        return _check_damage_code(value)

    @field_validator("melee_damage")
    @classmethod
    def validate_melee_damage(cls, value: tuple[str, str, str]) -> tuple[str, str, str]:
        for code in value:
            _check_damage_code(code)
        return value

    @property
    def effective_fire_rate(self) -> int:
        return max(1, self.fire_rate)

    def melee_tier_damage(self, tier: int) -> str:
        """Damage code for melee tier 1-3 (clamped)."""
        index = max(1, min(3, tier)) - 1
        return self.melee_damage[index]


class ArmorPiece(BaseModel):
    """Armor with per-location rating and accumulated damage."""

    id: str
    name: str
    equipped: bool = True
    ratings: dict[BodyLocation, int] = Field(default_factory=dict)
    damage: dict[BodyLocation, int] = Field(default_factory=dict)
    penalty: int = 0
    weight: float = Field(default=0, ge=0)

    def rating(self, location: BodyLocation) -> int:
        return self.ratings.get(location, 0)

    def effective_rating(self, location: BodyLocation) -> int:
        """Rating left after damage, never negative."""
        return max(0, self.ratings.get(location, 0) - self.damage.get(location, 0))


class GearItem(BaseModel):
    """Carried equipment with no rules of its own."""

    id: str
    name: str
    quantity: int = Field(default=1, ge=0)
    weight: float = Field(default=0, ge=0)  # per unit


class WoundRecord(BaseModel):
    """A wound on an actor."""

    id: str
    name: str
    damage: str
    location: BodyLocation | None = None
    penalty: int = Field(default=0, ge=0)
    is_healing: bool = False
    had_first_aid: bool = False
    healing_days: int = Field(default=0, ge=0)

    @field_validator("damage")
    @classmethod
    def validate_damage(cls, value: str) -> str:
        return _check_damage_code(value)

    @property
    def spec(self) -> DamageSpec:
        return parse_damage(self.damage)

    @property
    def is_bruise(self) -> bool:
        return self.spec.is_bruise


class ActorRecord(BaseModel):
    """Everything the rules need about one character."""

    id: str
    name: str = ""
    attributes: dict[str, int] = Field(default_factory=dict)
    skills: dict[str, int] = Field(default_factory=dict)
    weapons: list[WeaponProfile] = Field(default_factory=list)
    armor: list[ArmorPiece] = Field(default_factory=list)
    magazines: list[Magazine] = Field(default_factory=list)
    ammo: list[AmmoItem] = Field(default_factory=list)
    gear: list[GearItem] = Field(default_factory=list)
    wounds: list[WoundRecord] = Field(default_factory=list)

    def attribute_value(self, key: str) -> int:
        """Attribute value by key.

        Raises:
            InvalidInputError: If the actor has no such attribute.
        """
        if key not in self.attributes:
            raise InvalidInputError(
                f"Actor '{self.id}' has no attribute '{key}'", field="attribute", value=key
            )
        return self.attributes[key]

    def skill_value(self, key: str | None) -> int:
        """Skill value by key; untrained or missing skills are 0."""
        if not key:
            return 0
        return self.skills.get(key, 0)

    def get_weapon(self, weapon_id: str) -> WeaponProfile:
        for weapon in self.weapons:
            if weapon.id == weapon_id:
                return weapon
        raise InvalidInputError(
            f"Actor '{self.id}' has no weapon '{weapon_id}'", field="weapon_id", value=weapon_id
        )

    def get_wound(self, wound_id: str) -> WoundRecord:
        for wound in self.wounds:
            if wound.id == wound_id:
                return wound
        raise InvalidInputError(
            f"Actor '{self.id}' has no wound '{wound_id}'", field="wound_id", value=wound_id
        )

    def get_armor(self, armor_id: str) -> ArmorPiece:
        for piece in self.armor:
            if piece.id == armor_id:
                return piece
        raise InvalidInputError(
            f"Actor '{self.id}' has no armor '{armor_id}'", field="armor_id", value=armor_id
        )

    def find_magazine(self, magazine_id: str | None) -> Magazine | None:
        return next((m for m in self.magazines if m.id == magazine_id), None)

    def find_ammo(self, ammo_id: str | None) -> AmmoItem | None:
        return next((a for a in self.ammo if a.id == ammo_id), None)

    @property
    def equipped_armor(self) -> list[ArmorPiece]:
        return [piece for piece in self.armor if piece.equipped]

    @property
    def total_armor_penalty(self) -> int:
        return sum(piece.penalty for piece in self.equipped_armor)

    @property
    def total_wound_penalty(self) -> int:
        return sum(wound.penalty for wound in self.wounds)

    @property
    def total_damage_points(self) -> int:
        return sum(WOUND_RULES[wound.spec.severity].health_points for wound in self.wounds)
