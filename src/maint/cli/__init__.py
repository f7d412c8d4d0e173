"""
maint CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import logging
import sys

import typer
from rich.console import Console

from maint import __version__
from maint.cli import queue, run, triage
from maint.core.config import load_env_files

# Help panel names for command grouping
PANEL_RUN = "Run Automation"
PANEL_INSPECT = "Inspect Triage and Pricing"
PANEL_INSTALL = "Manage Your maint Installation"

# Create the main Typer app
app = typer.Typer(
    name="maint",
    help="Maintenance request triage and automated contractor assignment",
    no_args_is_help=True,
    add_completion=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


def configure_logging(debug: bool) -> None:
    """Log to stderr; DEBUG with --debug, WARNING otherwise."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
) -> None:
    """
    maint - Maintenance triage and contractor assignment.

    Classifies maintenance requests, picks and prices a contractor, and
    either assigns the job or routes it to a human for review or owner
    approval.

    Quick Start:
        maint triage "Kitchen sink is leaking"
        maint quote Plumbing --urgency high
        maint run -c contractors.json -w work_items.json
    """
    # Credentials for the external source and classifier usually live in .env
    load_env_files()
    configure_logging(debug)
    ctx.obj = {"debug": debug}


# =============================================================================
# Run Automation
# =============================================================================

app.add_typer(run.app, name="run", rich_help_panel=PANEL_RUN)
app.command(name="queue", rich_help_panel=PANEL_RUN)(queue.queue)


# =============================================================================
# Inspect Triage and Pricing
# =============================================================================

app.command(name="triage", rich_help_panel=PANEL_INSPECT)(triage.triage)
app.command(name="quote", rich_help_panel=PANEL_INSPECT)(triage.quote)
app.command(name="rules", rich_help_panel=PANEL_INSPECT)(triage.rules)


# =============================================================================
# Manage Your maint Installation
# =============================================================================


@app.command(rich_help_panel=PANEL_INSTALL)
def version() -> None:
    """Show maint version and exit."""
    console.print(f"maint version {__version__}")
    raise typer.Exit(0)


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]
