"""
Configuration data models for git-storage.

These models define the construction-time options of a GitStorage instance,
with validation and type safety via Pydantic.
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GitAuthor(BaseModel):
    """
    Commit identity applied as local git config of the working copy.
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, description="Value for git user.name")
    email: str = Field(min_length=1, description="Value for git user.email")


class StorageConfig(BaseModel):
    """
    Options for a git-backed key-value store.

    Example:
        >>> config = StorageConfig(repository_url="https://github.com/org/data")
        >>> config.branch
        'main'
        >>> config.snapshot_file_name
        'root.json'
    """
    model_config = ConfigDict(frozen=True)

    repository_url: str = Field(
        min_length=1,
        description="Remote repository to clone, pull from and push to"
    )
    branch: str = Field(
        default="main",
        min_length=1,
        description="Branch holding the snapshot file"
    )
    file_name: str = Field(
        default="root",
        min_length=1,
        description="Logical snapshot name; stored as <file_name>.json in the working copy"
    )
    local_path: Optional[Path] = Field(
        default=None,
        description="Working directory override (defaults to a path derived from the URL)"
    )
    author: Optional[GitAuthor] = Field(
        default=None,
        description="Commit identity for the working copy"
    )

    @field_validator("repository_url", "branch")
    @classmethod
    def strip_value(cls, v: str) -> str:
        """Reject whitespace-only values."""
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("file_name")
    @classmethod
    def normalize_file_name(cls, v: str) -> str:
        """Drop a trailing .json and keep the file inside the working copy."""
        v = v.strip().replace("\\", "/")
        if v.endswith(".json"):
            v = v[: -len(".json")]
        parts = [p for p in v.split("/") if p]
        if not parts:
            raise ValueError("must name a file")
        if ".." in parts or v.startswith("/"):
            raise ValueError(f"must stay inside the working directory: {v!r}")
        return "/".join(parts)

    @property
    def snapshot_file_name(self) -> str:
        """Snapshot path relative to the working directory."""
        return f"{self.file_name}.json"
