"""
Data models for the storage layer.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class StorageLifecycle(str, Enum):
    """Lifecycle of a GitStorage instance."""

    UNINITIALIZED = "uninitialized"
    READY = "ready"


class StorageStatus(BaseModel):
    """
    Snapshot of a store's binding and local sync position.

    Example:
        >>> status = await storage.status()
        >>> if status.has_unpushed_commits:
        ...     await storage.sync()
    """

    repository_url: str = Field(description="Remote repository URL")
    branch: str = Field(description="Branch holding the snapshot")
    working_directory: Path = Field(description="Local clone")
    snapshot_path: Path = Field(description="Snapshot file inside the clone")
    key_count: int = Field(ge=0, description="Number of keys held in memory")
    has_unpushed_commits: bool = Field(
        description="Whether local commits may be missing from the remote",
    )
