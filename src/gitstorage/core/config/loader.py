"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < config file < env vars < explicit overrides
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from .env import load_layered_env
from .models import StorageConfig

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".gitstorage.json"
CONFIG_PATH_ENV = "GITSTORAGE_CONFIG"

# Env var -> config key ("author.name" addresses the nested author model)
ENV_VARS = {
    "GITSTORAGE_REPOSITORY_URL": "repository_url",
    "GITSTORAGE_BRANCH": "branch",
    "GITSTORAGE_FILE_NAME": "file_name",
    "GITSTORAGE_LOCAL_PATH": "local_path",
    "GITSTORAGE_AUTHOR_NAME": "author.name",
    "GITSTORAGE_AUTHOR_EMAIL": "author.email",
}


def get_config_path(project_dir: Path | None = None) -> Path:
    """
    Get path to the configuration file.

    Args:
        project_dir: Directory to look in (defaults to current directory)

    Returns:
        $GITSTORAGE_CONFIG if set, otherwise .gitstorage.json in project_dir
    """
    if explicit := os.environ.get(CONFIG_PATH_ENV):
        return Path(explicit).expanduser()
    if project_dir is None:
        project_dir = Path.cwd()
    return project_dir / CONFIG_FILE_NAME


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence over values in `base`; nested dicts
    are merged, not replaced.

    Example:
        >>> deep_merge({"author": {"name": "a"}}, {"author": {"email": "e"}})
        {'author': {'name': 'a', 'email': 'e'}}
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
        Parsed JSON object, or None if the file is missing or can't be parsed
    """
    if not path.exists():
        return None

    try:
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to parse config at %s: %s", path, e)
        return None

    if not isinstance(data, dict):
        logger.warning("Ignoring config at %s: top level is not an object", path)
        return None
    return data


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply GITSTORAGE_* environment variables on top of a config dict.

    Empty variables are ignored.

    Args:
        config_dict: Configuration dictionary to override

    Returns:
        New configuration dictionary with env var overrides applied
    """
    overrides: dict[str, Any] = {}

    for env_name, key in ENV_VARS.items():
        value = os.environ.get(env_name)
        if not value:
            continue
        if "." in key:
            outer, inner = key.split(".", 1)
            overrides.setdefault(outer, {})[inner] = value
        else:
            overrides[key] = value

    return deep_merge(config_dict, overrides)


def get_default_config() -> dict[str, Any]:
    """
    Get hardcoded default configuration.

    repository_url has no default and must come from another layer.
    """
    return {
        "branch": "main",
        "file_name": "root",
    }


def load_config(
    project_dir: Path | None = None,
    *,
    overrides: dict[str, Any] | None = None,
    load_env_files: bool = True,
) -> StorageConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Explicit overrides
        2. Environment variables (GITSTORAGE_*), including .env files
        3. Config file ($GITSTORAGE_CONFIG or .gitstorage.json)
        4. Hardcoded defaults

    Args:
        project_dir: Directory holding .gitstorage.json and .env (defaults to cwd)
        overrides: Values that win over every other layer
        load_env_files: Whether to layer .env files into os.environ first

    Returns:
        Validated StorageConfig instance

    Raises:
        ValidationError: If the merged config fails Pydantic validation
            (for example when no repository URL was configured)

    Example:
        >>> config = load_config(overrides={"repository_url": "https://github.com/org/data"})
        >>> config.branch
        'main'
    """
    if load_env_files:
        load_layered_env(project_dir=project_dir)

    merged = get_default_config()

    if file_config := load_json_file(get_config_path(project_dir)):
        merged = deep_merge(merged, file_config)

    merged = apply_env_overrides(merged)

    if overrides:
        merged = deep_merge(merged, {k: v for k, v in overrides.items() if v is not None})

    return StorageConfig(**merged)
