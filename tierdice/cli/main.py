"""Command line front end for the rules core."""

import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from tierdice.cli.display import (
    display_check_result,
    display_encumbrance,
    display_error,
    display_fire_plan,
    display_info,
    display_reduction,
    display_success,
    display_tier_table,
    format_hits,
)
from tierdice.config import get_settings
from tierdice.dice.checks import make_check
from tierdice.dice.difficulty import Difficulty, get_tier
from tierdice.dice.roller import DieSource, FixedDieSource, RandomDieSource, parse_fixed_dice
from tierdice.dice.types import CheckMode, PenaltyBreakdown
from tierdice.exceptions import RulesError
from tierdice.managers.armor import ArmorDamageReducer
from tierdice.managers.weapon_fire import FireRequest, WeaponFireResolver
from tierdice.rules.encumbrance import encumbrance_status
from tierdice.rules.locations import BodyLocation
from tierdice.rules.weapons import BurstLevel
from tierdice.rules.wounds import parse_damage
from tierdice.schemas.records import ActorRecord, ArmorPiece

# Create main app
app = typer.Typer(
    name="tierdice",
    help="Tiered d20 rules resolution: checks, attacks and armor",
    add_completion=False,
)

RANDOM_LOCATION = "random"


def _die_source(dice: str | None) -> DieSource:
    if dice:
        return FixedDieSource(parse_fixed_dice(dice))
    return RandomDieSource()


def _load_actor(path: Path) -> ActorRecord:
    try:
        return ActorRecord.model_validate_json(path.read_text(encoding="utf-8"))
    except OSError as e:
        display_error(f"Cannot read {path}: {e}")
        raise typer.Exit(1)
    except ValidationError as e:
        display_error(f"Invalid actor file {path}: {e.error_count()} error(s)")
        raise typer.Exit(1)


@app.command()
def check(
    attribute: int = typer.Option(..., "--attribute", "-a", help="Attribute value"),
    skill: int = typer.Option(0, "--skill", "-s", help="Skill value"),
    difficulty: Difficulty = typer.Option(Difficulty.AVERAGE, "--difficulty", "-d"),
    modifier: float = typer.Option(0, "--modifier", "-m", help="Percentage modifier"),
    open_check: bool = typer.Option(False, "--open", help="Open test instead of Closed"),
    combat: bool = typer.Option(False, "--combat", help="Treat as a combat test"),
    dice: Optional[str] = typer.Option(None, "--dice", help="Fixed faces, e.g. 15,18,20"),
) -> None:
    """Roll a skill check."""
    settings = get_settings()
    try:
        result = make_check(
            attribute=attribute,
            skill=skill,
            source=_die_source(dice),
            penalties=PenaltyBreakdown(base=get_tier(difficulty).min_percent, modifier=modifier),
            mode=CheckMode.OPEN if open_check else CheckMode.CLOSED,
            is_combat=combat,
            allow_combat_shift=settings.allow_combat_shift,
        )
    except RulesError as e:
        display_error(str(e))
        raise typer.Exit(1)

    display_check_result(result)


@app.command()
def fire(
    actor_file: Path = typer.Argument(..., help="Actor record (JSON)"),
    weapon_id: str = typer.Argument(..., help="Weapon to attack with"),
    difficulty: Difficulty = typer.Option(Difficulty.AVERAGE, "--difficulty", "-d"),
    modifier: float = typer.Option(0, "--modifier", "-m", help="Percentage modifier"),
    aim: int = typer.Option(0, "--aim", help="Aiming level 0-2"),
    burst: BurstLevel = typer.Option(BurstLevel.SINGLE, "--burst", "-b"),
    location: str = typer.Option(
        BodyLocation.TORSO.value, "--location", "-l", help="Body location or 'random'"
    ),
    distance: float = typer.Option(0, "--distance", help="Range in metres"),
    open_check: bool = typer.Option(False, "--open", help="Open test instead of Closed"),
    armor_penalty: bool = typer.Option(False, "--armor-penalty", help="Apply armor penalty"),
    wound_penalty: bool = typer.Option(False, "--wound-penalty", help="Apply wound penalty"),
    dice: Optional[str] = typer.Option(None, "--dice", help="Fixed faces, e.g. 3,20"),
) -> None:
    """Resolve an attack for an actor stored in a JSON file."""
    actor = _load_actor(actor_file)
    try:
        hit_location = None if location == RANDOM_LOCATION else BodyLocation(location)
    except ValueError:
        display_error(f"Unknown location '{location}'")
        raise typer.Exit(1)

    request = FireRequest(
        weapon_id=weapon_id,
        difficulty=difficulty,
        modifier=modifier,
        aiming_level=aim,
        burst=burst,
        hit_location=hit_location,
        mode=CheckMode.OPEN if open_check else CheckMode.CLOSED,
        apply_armor_penalty=armor_penalty,
        apply_wound_penalty=wound_penalty,
        distance=distance,
    )
    try:
        resolver = WeaponFireResolver(settings=get_settings(), dice=_die_source(dice))
        plan, mutations = resolver.fire(actor, request)
    except RulesError as e:
        display_error(str(e))
        raise typer.Exit(1)

    display_fire_plan(plan)
    if mutations:
        display_info(f"{len(mutations)} ammunition change(s) to apply")
    if plan.hits:
        display_success(f"Hits: {format_hits(plan.hits)}")


@app.command()
def reduce(
    severity: str = typer.Option(..., "--severity", help="Incoming damage code (D, L, C, K)"),
    piercing: int = typer.Option(0, "--piercing", "-p", help="Piercing of the hit"),
    armor: int = typer.Option(0, "--armor", help="Armor rating at the location"),
    damage: int = typer.Option(0, "--damage", help="Damage the armor has taken"),
) -> None:
    """Show how armor changes an incoming wound."""
    try:
        spec = parse_damage(severity)
    except ValueError as e:
        display_error(str(e))
        raise typer.Exit(1)

    location = BodyLocation.TORSO
    actor = ActorRecord(
        id="target",
        armor=[
            ArmorPiece(
                id="armor",
                name="Armor",
                ratings={location: armor},
                damage={location: damage},
            )
        ],
    )
    detail = ArmorDamageReducer().reduce_damage(actor, location, spec.severity, piercing)
    display_reduction(detail)


@app.command()
def load(
    actor_file: Path = typer.Argument(..., help="Actor record (JSON)"),
) -> None:
    """Show carried weight against carrying capacity."""
    actor = _load_actor(actor_file)
    display_encumbrance(actor.name or actor.id, encumbrance_status(actor, get_settings()))


@app.command()
def tiers() -> None:
    """Print the difficulty table."""
    display_tier_table()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug details"),
) -> None:
    """Tierdice - rules resolution for a tiered d20 system.

    Use 'tierdice check' for a plain test and 'tierdice fire' for attacks.
    """
    settings = get_settings()
    level = logging.DEBUG if verbose or settings.debug else settings.log_level.upper()
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


if __name__ == "__main__":
    app()
