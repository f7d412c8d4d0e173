"""
maint CLI - Queue command.

Show how many work items are waiting for the engine, per source.
"""

from __future__ import annotations

import json as json_module
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from maint.cli.errors import ExitCode, print_error
from maint.cli.inputs import load_work_items
from maint.core.config import load_config
from maint.core.run import queue_status
from maint.core.services import AutomationService, AutomationServiceError

console = Console()


def queue(
    work_items_file: Path = typer.Option(
        ...,
        "--work-items",
        "-w",
        help="JSON file with native work items",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
) -> None:
    """
    Show pending work item counts per source.

    Examples:
        maint queue -w work_items.json
    """
    work_items = load_work_items(work_items_file)
    try:
        service = AutomationService.from_config(load_config())
    except AutomationServiceError as e:
        print_error(str(e))
        raise typer.Exit(ExitCode.USER_ERROR) from e

    with service:
        status = queue_status(work_items, service.external_source)

    if json_output:
        payload = {
            "native_pending": status.native_pending,
            "external_pending": status.external_pending,
            "total": status.total,
            "external_error": status.external_error,
        }
        typer.echo(json_module.dumps(payload, indent=2))
        return

    table = Table(title="Pending Work Items", show_header=True)
    table.add_column("Source", style="cyan")
    table.add_column("Pending", justify="right", style="green")
    table.add_row("native", str(status.native_pending))
    external = str(status.external_pending)
    if service.external_source is None:
        external = "[dim]not configured[/dim]"
    elif status.external_error:
        external = "[red]unavailable[/red]"
    table.add_row("external", external)
    table.add_row("[bold]total[/bold]", f"[bold]{status.total}[/bold]")
    console.print(table)
    if status.external_error:
        console.print(f"[yellow]Note:[/yellow] {status.external_error}")
