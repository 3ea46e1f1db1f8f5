"""
Configuration models and loading.

This module provides Pydantic models for git-storage configuration
with multi-layer merging: defaults < config file < env vars < overrides.
"""

from .env import load_layered_env
from .loader import (
    apply_env_overrides,
    deep_merge,
    get_config_path,
    load_config,
)
from .models import GitAuthor, StorageConfig

__all__ = [
    # Models
    "GitAuthor",
    "StorageConfig",
    # Loader functions
    "apply_env_overrides",
    "deep_merge",
    "get_config_path",
    "load_config",
    "load_layered_env",
]
