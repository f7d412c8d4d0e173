"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < env vars
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from .models import AutomationMode, MaintConfig

logger = logging.getLogger(__name__)

# Global cache to avoid reloading config multiple times per session
_config_cache: MaintConfig | None = None


def get_xdg_config_home() -> Path:
    """
    Get XDG config home directory.

    Returns:
        Path to config directory (defaults to ~/.config)
    """
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_path() -> Path:
    """Get path to ~/.config/maint/config.json (or XDG equivalent)."""
    return get_xdg_config_home() / "maint" / "config.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    """Get path to .maint.json in the project directory."""
    if cwd is None:
        cwd = Path.cwd()
    return cwd / ".maint.json"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence over values in `base`.
    Nested dicts are merged, not replaced; lists are replaced.

    Example:
        >>> base = {"a": 1, "b": {"x": 10, "y": 20}}
        >>> override = {"b": {"y": 30, "z": 40}, "c": 3}
        >>> deep_merge(base, override)
        {'a': 1, 'b': {'x': 10, 'y': 30, 'z': 40}, 'c': 3}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON file, returning None if it doesn't exist or is invalid.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON as dict, or None if file doesn't exist or can't be parsed
    """
    if not path.exists():
        return None

    try:
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            return None
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Failed to parse config at {path}: {e}")
        return None


def _set_nested(config_dict: dict[str, Any], section: str, key: str, value: Any) -> None:
    config_dict.setdefault(section, {})
    config_dict[section][key] = value


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Env vars have the highest precedence and override all config files.

    Supported env vars:
        MAINT_MODE - overrides automation.mode
        MAINT_AUTO_ASSIGN_THRESHOLD - overrides automation.auto_assign_threshold
        MAINT_OWNER_APPROVAL_THRESHOLD - overrides automation.owner_approval_threshold
        MAINT_EXTERNAL_URL - overrides external.base_url
        MAINT_EXTERNAL_TOKEN - overrides external.api_token
        MAINT_CLASSIFIER_URL - overrides classifier.endpoint
        MAINT_CLASSIFIER_API_KEY - overrides classifier.api_key

    Invalid values are ignored with a warning.
    """
    result = {k: (v.copy() if isinstance(v, dict) else v) for k, v in config_dict.items()}

    if mode_str := os.environ.get("MAINT_MODE"):
        valid_modes = [m.value for m in AutomationMode]
        if mode_str.lower() in valid_modes:
            _set_nested(result, "automation", "mode", mode_str.lower())
        else:
            logger.warning(f"Invalid MAINT_MODE value '{mode_str}', ignoring")

    if threshold_str := os.environ.get("MAINT_AUTO_ASSIGN_THRESHOLD"):
        try:
            threshold = int(threshold_str)
            if 50 <= threshold <= 100:
                _set_nested(result, "automation", "auto_assign_threshold", threshold)
            else:
                logger.warning(
                    f"MAINT_AUTO_ASSIGN_THRESHOLD must be 50-100, got {threshold}, ignoring"
                )
        except ValueError:
            logger.warning(f"Invalid MAINT_AUTO_ASSIGN_THRESHOLD value '{threshold_str}', ignoring")

    if approval_str := os.environ.get("MAINT_OWNER_APPROVAL_THRESHOLD"):
        try:
            approval = float(approval_str)
            if approval < 0:
                logger.warning(
                    f"MAINT_OWNER_APPROVAL_THRESHOLD must be >= 0, got {approval}, ignoring"
                )
            else:
                _set_nested(result, "automation", "owner_approval_threshold", approval)
        except ValueError:
            logger.warning(
                f"Invalid MAINT_OWNER_APPROVAL_THRESHOLD value '{approval_str}', ignoring"
            )

    if external_url := os.environ.get("MAINT_EXTERNAL_URL"):
        _set_nested(result, "external", "base_url", external_url)

    if external_token := os.environ.get("MAINT_EXTERNAL_TOKEN"):
        _set_nested(result, "external", "api_token", external_token)

    if classifier_url := os.environ.get("MAINT_CLASSIFIER_URL"):
        _set_nested(result, "classifier", "endpoint", classifier_url)

    if classifier_key := os.environ.get("MAINT_CLASSIFIER_API_KEY"):
        _set_nested(result, "classifier", "api_key", classifier_key)

    return result


def get_default_config() -> dict[str, Any]:
    """
    Get hardcoded default configuration.

    Only the values worth spelling out are listed; everything else comes
    from model defaults.
    """
    return {
        "automation": {
            "mode": AutomationMode.HYBRID.value,
            "auto_assign_threshold": 70,
            "owner_approval_threshold": 1000.0,
            "emergency_auto_assign": True,
            "notify_on_assignment": True,
        },
        "retry": {"max_retries": 1, "base_delay": 1.0},
    }


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> MaintConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables (MAINT_*)
        2. Project config (.maint.json)
        3. User config (~/.config/maint/config.json)
        4. Hardcoded defaults

    Args:
        project_dir: Project directory to load .maint.json from (defaults to cwd)
        use_cache: If True, return cached config from previous load

    Returns:
        Validated MaintConfig instance

    Raises:
        ValidationError: If the merged config fails Pydantic validation
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged = get_default_config()

    if user_config := load_json_file(get_user_config_path()):
        merged = deep_merge(merged, user_config)

    if project_config := load_json_file(get_project_config_path(project_dir)):
        merged = deep_merge(merged, project_config)

    merged = apply_env_overrides(merged)

    config = MaintConfig(**merged)
    _config_cache = config

    return config


def clear_cache() -> None:
    """Clear the cached configuration."""
    global _config_cache
    _config_cache = None
