"""Load credentials from .env files.

Source and classifier credentials usually live in a .env file next to the
scheduler job rather than in .maint.json. Two layers are read:

- user file: ~/.config/maint/.env
- project files: ./.env, then ./.env.local

A value already exported in the process environment always wins; project
files may override values that came from the user file.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path

from dotenv import dotenv_values

logger = logging.getLogger(__name__)


def _env_file_values(path: Path) -> dict[str, str]:
    if not path.is_file():
        return {}
    return {k: v for k, v in dotenv_values(path).items() if k and v is not None}


def default_env_paths(project_dir: Path) -> tuple[list[Path], list[Path]]:
    """Return the (user, project) .env paths for ``project_dir``."""
    xdg_home = Path(os.environ.get("XDG_CONFIG_HOME", str(Path.home() / ".config")))
    return [xdg_home / "maint" / ".env"], [project_dir / ".env", project_dir / ".env.local"]


def load_env_files(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> list[str]:
    """Populate ``os.environ`` from .env files.

    Args:
        project_dir: base directory for project env files (defaults to cwd)
        user_env_paths: explicit user env file paths
        project_env_paths: explicit project env file paths

    Returns:
        Names of the variables that were set.
    """
    default_user, default_project = default_env_paths(project_dir or Path.cwd())
    user_paths = list(user_env_paths) if user_env_paths is not None else default_user
    project_paths = list(project_env_paths) if project_env_paths is not None else default_project

    from_files: set[str] = set()
    for layer in (user_paths, project_paths):
        for path in layer:
            for key, value in _env_file_values(Path(path)).items():
                if key in os.environ and key not in from_files:
                    continue
                os.environ[key] = value
                from_files.add(key)

    if from_files:
        logger.debug(f"Loaded {len(from_files)} variable(s) from .env files")
    return sorted(from_files)
