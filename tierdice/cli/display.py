"""Rich display helpers for CLI output."""

from collections import Counter
from typing import Iterable

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from tierdice.dice.difficulty import DIFFICULTY_TIERS
from tierdice.dice.types import CheckMode, CheckOutcome, SkillCheckResult
from tierdice.managers.armor import ReductionDetail
from tierdice.managers.damage import Hit
from tierdice.managers.weapon_fire import FirePlan
from tierdice.rules.encumbrance import EncumbranceLevel, EncumbranceStatus


# Shared console instance
console = Console()


def display_error(message: str) -> None:
    """Display error message.

    Args:
        message: Error message.
    """
    console.print(f"[bold red]Error:[/bold red] {message}")


def display_success(message: str) -> None:
    """Display success message.

    Args:
        message: Success message.
    """
    console.print(f"[bold green]{message}[/bold green]")


def display_info(message: str) -> None:
    """Display info message.

    Args:
        message: Info message.
    """
    console.print(f"[dim]{message}[/dim]")


def format_percent(value: float) -> str:
    """Format a signed percentage, dropping a trailing .0."""
    text = f"{value:+.1f}".rstrip("0").rstrip(".")
    return f"{text}%"


def format_hits(hits: Iterable[Hit]) -> str:
    """Summarize hits as grouped damage codes, e.g. "2xL, 3xD".

    Pellet hits count once per pellet.
    """
    counts: Counter[str] = Counter()
    for hit in hits:
        counts[hit.damage] += hit.wound_count
    if not counts:
        return "none"
    return ", ".join(f"{n}x{code}" if n > 1 else code for code, n in counts.items())


def format_dice(outcome: CheckOutcome) -> str:
    """Color each die: green success, red failure, dim when ignored."""
    parts = []
    for die in outcome.dice:
        face = str(die.original)
        if die.modified != die.original:
            face += f"→{die.modified}"
        if die.ignored:
            parts.append(f"[dim]{face}[/dim]")
        elif die.is_success:
            parts.append(f"[green]{face}[/green]")
        else:
            parts.append(f"[red]{face}[/red]")
    return ", ".join(parts)


def _outcome_line(outcome: CheckOutcome) -> str:
    if outcome.is_critical_success:
        return "[bold green]CRITICAL SUCCESS[/bold green]"
    if outcome.is_critical_failure:
        return "[bold red]CRITICAL FAILURE[/bold red]"
    if outcome.is_success:
        return "[bold green]SUCCESS[/bold green]"
    return "[bold red]FAILURE[/bold red]"


def display_check_result(check: SkillCheckResult) -> None:
    """Display a rolled skill check.

    Args:
        check: Result from make_check.
    """
    outcome = check.outcome
    lines = [
        f"Attribute {check.attribute}, skill {check.skill}",
        f"Penalty: {format_percent(check.penalties.total)} → "
        f"[cyan]{check.base_difficulty.key.value}[/cyan]",
        f"Shift: {check.shift:+d} → [bold cyan]{check.difficulty.key.value}[/bold cyan] "
        f"(target {check.target})",
        f"Dice: [{format_dice(outcome)}]",
    ]
    if outcome.mode == CheckMode.CLOSED and outcome.success_count is not None:
        lines.append(f"Successes: {outcome.success_count}/{len(outcome.dice)}")
    if outcome.advantage_points is not None:
        lines.append(f"Advantage: {outcome.advantage_points}")
    lines.append(f"Skill used: {outcome.skill_used}/{outcome.skill}")
    lines.append("")
    lines.append(_outcome_line(outcome))

    console.print(
        Panel(
            "\n".join(lines),
            title=f"[bold cyan]{outcome.mode.value.title()} Check[/bold cyan]",
            border_style="cyan",
        )
    )


def display_fire_plan(plan: FirePlan) -> None:
    """Display an evaluated attack.

    Args:
        plan: Plan from WeaponFireResolver.
    """
    location = plan.hit_location.value.replace("_", " ")
    if plan.location_roll is not None:
        location += f" (rolled {plan.location_roll})"

    lines = [
        f"Weapon: [bold]{plan.weapon.name}[/bold] ({plan.weapon.category.value})",
        f"Penalty: {format_percent(plan.penalties.total)} → "
        f"[cyan]{plan.base_difficulty.key.value}[/cyan], shift {plan.shift:+d} → "
        f"[bold cyan]{plan.difficulty.key.value}[/bold cyan] (target {plan.target})",
        f"Dice: [{format_dice(plan.outcome)}]",
        f"Location: {location}",
        f"Damage: {plan.nominal_damage}, piercing {plan.nominal_piercing}",
    ]
    if not plan.is_melee:
        lines.append(
            f"Rounds: {plan.bullets_fired}/{plan.bullets_requested}, "
            f"jams on {plan.jamming_threshold}+"
        )
        if plan.shortfall:
            lines.append(f"[yellow]Magazine short by {plan.shortfall}[/yellow]")
    if plan.is_jammed:
        lines.append("[bold red]JAMMED[/bold red]")
    lines.append(f"Hits: [bold]{format_hits(plan.hits)}[/bold]")
    lines.append("")
    lines.append(_outcome_line(plan.outcome))

    console.print(
        Panel("\n".join(lines), title="[bold cyan]Attack[/bold cyan]", border_style="cyan")
    )


def display_reduction(detail: ReductionDetail) -> None:
    """Display an armor reduction.

    Args:
        detail: Reduction breakdown.
    """
    table = Table(title="Armor Reduction", box=box.ROUNDED)
    table.add_column("Incoming", style="white")
    table.add_column("Armor", justify="right", style="cyan")
    table.add_column("Piercing", justify="right", style="yellow")
    table.add_column("Reduction", justify="right")
    table.add_column("Points", justify="right")
    table.add_column("Result", style="bold")
    table.add_row(
        detail.incoming.value,
        str(detail.total_armor),
        str(detail.piercing),
        str(detail.actual_reduction),
        str(detail.damage_points),
        "negated" if detail.is_negated else detail.severity.value,
    )
    console.print(table)


def display_tier_table() -> None:
    """Display the difficulty table."""
    table = Table(title="Difficulty Tiers", box=box.ROUNDED)
    table.add_column("Tier", style="white")
    table.add_column("Modifier", justify="right", style="cyan")
    table.add_column("Penalty", justify="right", style="yellow")
    for tier in DIFFICULTY_TIERS:
        table.add_row(
            tier.key.value.replace("_", " "),
            f"{tier.modifier:+d}",
            f"{tier.min_percent}% to {tier.max_percent}%",
        )
    console.print(table)


LEVEL_COLORS = {
    EncumbranceLevel.LIGHT: "green",
    EncumbranceLevel.MEDIUM: "yellow",
    EncumbranceLevel.HEAVY: "dark_orange",
    EncumbranceLevel.OVER: "red",
}


def display_encumbrance(name: str, status: EncumbranceStatus) -> None:
    """Display carried weight against carrying capacity.

    Args:
        name: Actor name for the panel title.
        status: Encumbrance status.
    """
    if not status.enabled:
        console.print(f"[dim]Encumbrance tracking is off ({status.carried_weight} carried)[/dim]")
        return
    color = LEVEL_COLORS[status.level]
    console.print(
        Panel(
            f"[{color}]{status.carried_weight} / {status.capacity}[/{color}] "
            f"({status.percentage:.0f}%, {status.level.value})",
            title=f"Load: {name}",
            box=box.ROUNDED,
        )
    )
