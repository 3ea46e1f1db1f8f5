"""
.env support for git-storage options.

GITSTORAGE_* variables may live in dotenv files as well as the process
environment. Precedence, highest first:

1. Variables exported before the store was configured
2. The project .env (next to .gitstorage.json)
3. The user .env under $XDG_CONFIG_HOME/git-storage/

Only GITSTORAGE_* keys are imported; anything else in those files is left
for other tools.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

from dotenv import dotenv_values

ENV_PREFIX = "GITSTORAGE_"


def user_env_file() -> Path:
    config_home = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(config_home) / "git-storage" / ".env"


def read_storage_env(path: Path) -> dict[str, str]:
    """Return the GITSTORAGE_* assignments in a dotenv file ({} if absent)."""
    if not path.is_file():
        return {}
    return {
        key: value
        for key, value in dotenv_values(path).items()
        if key and key.startswith(ENV_PREFIX) and value is not None
    }


def load_layered_env(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> dict[str, str]:
    """
    Copy GITSTORAGE_* values from the user and project .env files into os.environ.

    Args:
        project_dir: Directory holding the project .env (defaults to cwd)
        user_env_paths: Override the user-level files
        project_env_paths: Override the project-level files

    Returns:
        The variables that were set by this call.
    """
    if user_env_paths is None:
        user_env_paths = [user_env_file()]
    if project_env_paths is None:
        project_env_paths = [(project_dir or Path.cwd()) / ".env"]

    exported = {key for key in os.environ if key.startswith(ENV_PREFIX)}

    merged: dict[str, str] = {}
    for path in [*user_env_paths, *project_env_paths]:
        merged.update(read_storage_env(Path(path)))

    applied = {key: value for key, value in merged.items() if key not in exported}
    os.environ.update(applied)
    return applied
