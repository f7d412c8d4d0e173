"""
maint CLI - Run command.

Run one automation pass over JSON input files.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from maint.cli.errors import (
    ExitCode,
    print_error,
    print_invalid_option_error,
    print_run_in_progress_error,
)
from maint.cli.inputs import load_contractors, load_properties, load_work_items, write_work_items
from maint.core.config import AutomationMode, MaintConfig, load_config
from maint.core.errors import RunInProgressError
from maint.core.run import (
    InterruptHandler,
    OutcomeAction,
    RunEvent,
    RunEventType,
    RunReport,
)
from maint.core.services import AutomationService, AutomationServiceError

app = typer.Typer(
    name="run",
    help="Run one triage and assignment pass",
    no_args_is_help=False,
)

console = Console()

ACTION_STYLES = {
    OutcomeAction.AUTO_ASSIGNED: "green",
    OutcomeAction.NEEDS_REVIEW: "yellow",
    OutcomeAction.OWNER_APPROVAL_NEEDED: "magenta",
    OutcomeAction.MERGED: "blue",
    OutcomeAction.ERROR: "red",
}


def render_event(event: RunEvent) -> None:
    """Print one run event."""
    if event.event_type == RunEventType.RUN_STARTED:
        console.print(f"[bold]{event.message}[/bold]")
    elif event.event_type == RunEventType.SOURCE_FETCHED:
        console.print(f"[dim]{event.message}[/dim]")
    elif event.event_type == RunEventType.SOURCE_UNAVAILABLE:
        console.print(f"[yellow]⚠ {event.message}[/yellow]")
    elif event.event_type in (RunEventType.ITEM_COMPLETED, RunEventType.ITEM_FAILED):
        outcome = event.outcome
        if outcome is None:
            return
        style = ACTION_STYLES[outcome.action]
        detail = outcome.error if outcome.action is OutcomeAction.ERROR else outcome.reason
        console.print(
            f"[{style}]{outcome.action.value:>21}[/{style}]  {outcome.work_item_id}  [dim]{detail}[/dim]"
        )
    elif event.event_type == RunEventType.RUN_CANCELLED:
        console.print(f"[yellow]{event.message}[/yellow]")


def display_summary(report: RunReport) -> None:
    """Display the run summary and per-item outcomes."""
    table = Table(title="Run Summary", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    duration = (report.ended_at - report.started_at).total_seconds()
    table.add_row("Run ID", report.run_id)
    table.add_row("Mode", report.mode.value)
    table.add_row("Duration", f"{duration:.1f}s")
    table.add_row("Processed", str(report.processed))
    table.add_row("Auto-assigned", str(report.auto_assigned))
    table.add_row("Needs review", str(report.manual_review_needed))
    table.add_row("Errors", str(report.errors))
    table.add_row("Merged duplicates", str(report.merged))
    if report.cancelled:
        table.add_row("Status", "[yellow]cancelled[/yellow]")
    console.print(table)

    if report.outcomes:
        outcomes = Table(show_header=True, header_style="bold")
        outcomes.add_column("Work item")
        outcomes.add_column("Source", style="dim")
        outcomes.add_column("Action")
        outcomes.add_column("Category")
        outcomes.add_column("Contractor")
        outcomes.add_column("Quote", justify="right")
        outcomes.add_column("Confidence", justify="right")
        for o in report.outcomes:
            style = ACTION_STYLES[o.action]
            outcomes.add_row(
                o.work_item_id,
                o.source.value,
                f"[{style}]{o.action.value}[/{style}]",
                o.category or "-",
                o.contractor_name or "-",
                f"${o.final_quote}" if o.final_quote is not None else "-",
                f"{o.confidence}%" if o.confidence is not None else "-",
            )
        console.print(outcomes)

    for note in report.notes:
        console.print(f"[yellow]Note:[/yellow] {note}")


def _apply_mode(config: MaintConfig, mode: str | None) -> MaintConfig:
    if mode is None:
        return config
    valid = [m.value for m in AutomationMode]
    if mode not in valid:
        print_invalid_option_error(mode, valid)
        raise typer.Exit(ExitCode.USER_ERROR)
    config = config.model_copy(deep=True)
    config.automation = config.automation.model_copy(update={"mode": AutomationMode(mode)})
    return config


@app.callback(invoke_without_command=True)
def run(
    ctx: typer.Context,
    contractors_file: Path = typer.Option(
        ...,
        "--contractors",
        "-c",
        help="JSON file with the contractor pool",
    ),
    work_items_file: Path = typer.Option(
        ...,
        "--work-items",
        "-w",
        help="JSON file with native work items",
    ),
    properties_file: Path | None = typer.Option(
        None,
        "--properties",
        "-p",
        help="JSON file with property records (used in notifications)",
    ),
    mode: str | None = typer.Option(
        None,
        "--mode",
        "-m",
        help="Override the configured mode (native_only, external_only, hybrid)",
    ),
    write: bool = typer.Option(
        False,
        "--write",
        help="Write updated work items back to the work items file",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Print the run report as JSON",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Show debug information",
    ),
) -> None:
    """
    Triage pending work items and assign contractors.

    Examples:
        maint run -c contractors.json -w work_items.json
        maint run -c contractors.json -w work_items.json --mode native_only --write
        maint run -c contractors.json -w work_items.json --json
    """
    if ctx.invoked_subcommand is not None:
        return
    debug = debug or bool((ctx.obj or {}).get("debug"))

    contractors = load_contractors(contractors_file)
    work_items = load_work_items(work_items_file)
    properties = load_properties(properties_file)
    config = _apply_mode(load_config(), mode)

    try:
        service = AutomationService.from_config(config)
    except AutomationServiceError as e:
        print_error(str(e), solution="check the 'external' section of .maint.json")
        raise typer.Exit(ExitCode.USER_ERROR) from e

    interrupt_handler = InterruptHandler()
    interrupt_handler.register()
    try:
        for event in service.execute(
            contractors, work_items, properties, cancellation=interrupt_handler
        ):
            if debug and not json_output:
                console.print(f"[dim][{event.event_type.value}][/dim]")
            if not json_output:
                render_event(event)
    except RunInProgressError as e:
        print_run_in_progress_error()
        raise typer.Exit(ExitCode.RUN_IN_PROGRESS) from e
    finally:
        interrupt_handler.unregister()
        service.close()

    report = service.get_report()
    if write:
        write_work_items(work_items_file, work_items)

    if json_output:
        typer.echo(report.model_dump_json(indent=2))
    else:
        display_summary(report)
        if write:
            console.print(f"[dim]Updated {work_items_file}[/dim]")

    if report.cancelled:
        raise typer.Exit(ExitCode.SIGINT)
    if report.errors:
        raise typer.Exit(ExitCode.GENERAL_ERROR)
