"""
JSON input and output files for CLI commands.

Each file holds a JSON array of records (contractors, work items or
properties) in the shape of the corresponding model.
"""

from __future__ import annotations

from pathlib import Path
from typing import TypeVar

import typer
from pydantic import BaseModel, TypeAdapter, ValidationError

from maint.cli.errors import ExitCode, print_input_file_error
from maint.core.workorders import Contractor, Property, WorkItem

M = TypeVar("M", bound=BaseModel)


def load_records(path: Path, model: type[M]) -> list[M]:
    """
    Load and validate a JSON array of ``model`` records.

    Raises:
        typer.Exit: With USER_ERROR if the file is missing or invalid
    """
    try:
        raw = path.read_bytes()
    except OSError as e:
        print_input_file_error(path, str(e))
        raise typer.Exit(ExitCode.USER_ERROR) from e

    try:
        return TypeAdapter(list[model]).validate_json(raw)  # type: ignore[valid-type]
    except ValidationError as e:
        print_input_file_error(path, f"{e.error_count()} validation error(s): {e.errors()[0]['msg']}")
        raise typer.Exit(ExitCode.USER_ERROR) from e


def load_contractors(path: Path) -> list[Contractor]:
    return load_records(path, Contractor)


def load_work_items(path: Path) -> list[WorkItem]:
    return load_records(path, WorkItem)


def load_properties(path: Path | None) -> list[Property]:
    if path is None:
        return []
    return load_records(path, Property)


def write_work_items(path: Path, items: list[WorkItem]) -> None:
    """Write work items back as a JSON array."""
    path.write_bytes(TypeAdapter(list[WorkItem]).dump_json(items, indent=2) + b"\n")
