"""
maint CLI - Triage, quote and rules commands.

Inspect how a description is classified, what a job would cost, and which
vendor rules are in effect, without touching any work items.
"""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from maint.cli.errors import ExitCode, print_error
from maint.core.assign import estimate_cost
from maint.core.config import load_config
from maint.core.errors import UnknownCategoryError
from maint.core.triage import Urgency, triage_request

console = Console()


def triage(
    description: str = typer.Argument(..., help="Maintenance request text"),
    category: str | None = typer.Option(
        None,
        "--category",
        help="Category supplied by an upstream classifier",
    ),
) -> None:
    """
    Show how a request would be triaged.

    Examples:
        maint triage "Gas leak smell near the furnace"
        maint triage "AC blowing warm air" --category HVAC
    """
    rules = load_config().rule_book()
    try:
        result = triage_request(description, rules, category=category)
    except UnknownCategoryError as e:
        print_error(str(e), solution="maint rules  # to list known categories")
        raise typer.Exit(ExitCode.USER_ERROR) from e

    table = Table(show_header=False, box=None)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Category", f"[bold]{result.category}[/bold]")
    table.add_row("Urgency", result.urgency.value)
    table.add_row("Emergency", "[red]yes[/red]" if result.emergency else "no")
    table.add_row("Keywords", ", ".join(result.matched_keywords) or "-")
    console.print(table)


def quote(
    category: str = typer.Argument(..., help="Vendor rule category"),
    urgency: str = typer.Option(
        "medium",
        "--urgency",
        "-u",
        help="low, medium, high or emergency",
    ),
) -> None:
    """
    Show the cost estimate for a category at an urgency.

    Examples:
        maint quote Plumbing
        maint quote HVAC --urgency emergency
    """
    rules = load_config().rule_book()
    try:
        level = Urgency.parse(urgency)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(ExitCode.USER_ERROR) from e
    try:
        rule = rules.resolve(category)
    except UnknownCategoryError as e:
        print_error(str(e), solution="maint rules  # to list known categories")
        raise typer.Exit(ExitCode.USER_ERROR) from e

    estimate = estimate_cost(rule, level)
    table = Table(show_header=False, box=None)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Category", rule.category)
    table.add_row("Urgency", level.value)
    table.add_row("Range", f"${rule.cost_min:g} - ${rule.cost_max:g}")
    table.add_row("Estimated cost", f"${estimate.estimated_cost}")
    table.add_row("Markup", f"{estimate.markup_percent:g}%")
    table.add_row("Final quote", f"[bold]${estimate.final_quote}[/bold]")
    console.print(table)


def rules() -> None:
    """List the vendor rules in effect, in classification order."""
    book = load_config().rule_book()

    table = Table(title="Vendor Rules", show_header=True)
    table.add_column("Category", style="cyan")
    table.add_column("Range", justify="right")
    table.add_column("Markup", justify="right")
    table.add_column("Keywords")
    table.add_column("Default / emergency contractor", style="dim")
    for rule in book:
        table.add_row(
            rule.category,
            f"${rule.cost_min:g} - ${rule.cost_max:g}",
            f"{rule.markup_percent:g}%",
            ", ".join(rule.keywords),
            f"{rule.default_contractor_id or '-'} / {rule.emergency_contractor_id or '-'}",
        )
    console.print(table)
