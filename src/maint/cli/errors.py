"""
Standardized error handling and exit codes for the maint CLI.
"""

from enum import IntEnum
from pathlib import Path

from rich.console import Console

console = Console()


class ExitCode(IntEnum):
    """Standard exit codes for maint CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """The run finished but some work items failed, or an unexpected error."""

    USER_ERROR = 2
    """Bad input file, option or configuration (actionable by user)."""

    RUN_IN_PROGRESS = 3
    """Another automation run holds the run lock."""

    SIGINT = 130
    """Terminated by SIGINT (Ctrl+C) - Unix standard."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(f"[dim]{reason}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


def print_input_file_error(path: Path, reason: str) -> None:
    """Print error when an input JSON file cannot be read or validated."""
    print_error(
        f"Cannot load {path}",
        reason=reason,
        solution="check the file is a JSON array of records",
    )


def print_run_in_progress_error() -> None:
    print_error(
        "Another automation run is in progress",
        reason="Runs are single-flight so two runs cannot over-assign the same contractor",
        solution="wait for the other run to finish, or remove a stale lock file",
    )


def print_invalid_option_error(option: str, valid_options: list[str]) -> None:
    """Print error when an invalid option value is provided."""
    valid_str = ", ".join(valid_options)
    print_error(
        f"Invalid option: {option}",
        reason=f"Valid options are: {valid_str}",
        solution=f"Use one of: {valid_str}",
    )


__all__ = [
    "ExitCode",
    "print_error",
    "print_input_file_error",
    "print_invalid_option_error",
    "print_run_in_progress_error",
]
