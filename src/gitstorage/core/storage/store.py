"""
Git-backed key-value store.

GitStorage keeps the whole map in memory and mirrors every mutation into a
JSON snapshot inside a local clone, commits it, and pushes the commit. The
persist-and-commit protocol after each mutation is:

1. Overwrite the snapshot file with the full map.
2. Stage and commit only that file; stop if nothing changed.
3. Push if the branch has commits the remote does not.

One GitStorage instance must own its working directory exclusively: two
instances on the same path race on both the file and the git index.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from gitstorage.core.config.loader import load_config
from gitstorage.core.config.models import GitAuthor, StorageConfig
from gitstorage.core.git.client import GitClient, GitError
from gitstorage.core.storage.binding import RepositoryBinding, resolve_working_directory
from gitstorage.core.storage.errors import (
    InvalidPatchError,
    KeyNotFoundError,
    PersistError,
    SnapshotWriteError,
    StorageNotInitializedError,
)
from gitstorage.core.storage.file_store import SnapshotFileStore
from gitstorage.core.storage.models import StorageLifecycle, StorageStatus
from gitstorage.utils.git import generate_commit_tag

logger = logging.getLogger(__name__)


class GitStorage:
    """
    Key-value store persisted as commits in a git repository.

    Values are JSON documents (objects or arrays). Reads are served from
    memory; every mutating call returns only after its commit has been
    pushed, or raises.

    Example:
        >>> storage = GitStorage.from_options(
        ...     repository_url="https://github.com/org/data",
        ...     file_name="users",
        ... )
        >>> await storage.init()
        >>> await storage.set("user", {"id": 1, "name": "A"})
        >>> await storage.patch("user", {"name": "B"})
        >>> storage.get("user")
        {'id': 1, 'name': 'B'}
    """

    def __init__(
        self,
        config: StorageConfig,
        *,
        client: GitClient | None = None,
        base_dir: Path | None = None,
    ) -> None:
        """
        Initialize the store. No I/O happens until init().

        Args:
            config: Store options.
            client: Git client to use (its repo_path becomes the working
                directory). Defaults to a client for the resolved directory.
            base_dir: Parent directory for derived working directories.
        """
        self.config = config

        if client is None:
            working_directory = resolve_working_directory(
                config.repository_url, config.local_path, base_dir
            )
            client = GitClient(working_directory)
        self.client = client

        self.file_store = SnapshotFileStore(
            self.working_directory / config.snapshot_file_name
        )
        self.binding = RepositoryBinding(
            client,
            config.repository_url,
            config.branch,
            config.author,
            snapshot_path=self.file_store.file_path,
        )

        self._data: dict[str, Any] = {}
        self._state = StorageLifecycle.UNINITIALIZED
        self._lock = asyncio.Lock()

    @classmethod
    def from_options(
        cls,
        repository_url: str,
        *,
        branch: str = "main",
        file_name: str = "root",
        local_path: Path | str | None = None,
        author: GitAuthor | Mapping[str, str] | None = None,
    ) -> GitStorage:
        """Build a store from keyword options."""
        config = StorageConfig(
            repository_url=repository_url,
            branch=branch,
            file_name=file_name,
            local_path=local_path,
            author=author,
        )
        return cls(config)

    @classmethod
    def from_env(cls, project_dir: Path | None = None, **overrides: Any) -> GitStorage:
        """Build a store from .gitstorage.json, GITSTORAGE_* variables and overrides."""
        return cls(load_config(project_dir, overrides=overrides))

    @property
    def working_directory(self) -> Path:
        """Local clone backing this store."""
        return self.client.repo_path

    @property
    def snapshot_path(self) -> Path:
        """Snapshot file inside the working directory."""
        return self.file_store.file_path

    @property
    def branch(self) -> str:
        return self.config.branch

    @property
    def is_ready(self) -> bool:
        """Whether init() has completed."""
        return self._state is StorageLifecycle.READY

    async def init(self) -> None:
        """
        Bind the working copy and load the map from the snapshot.

        A missing or unreadable snapshot starts the store empty; a missing one
        is also written as an empty baseline file (not committed).

        Raises:
            RepositoryBindingError: If the clone, pull, identity or branch
                setup fails.
        """
        async with self._lock:
            await self.binding.ensure_working_copy()
            await self._load(write_baseline=True)
            self._state = StorageLifecycle.READY

        logger.info(
            "Loaded %d keys from %s (%s)",
            len(self._data),
            self.snapshot_path,
            self.branch,
        )

    def get(self, key: str) -> Any | None:
        """
        Return a copy of the value stored under key, or None.

        Raises:
            StorageNotInitializedError: If init() has not completed.
        """
        self._require_ready()
        if key not in self._data:
            return None
        return copy.deepcopy(self._data[key])

    def keys(self) -> list[str]:
        """Keys currently held in memory."""
        self._require_ready()
        return list(self._data)

    def snapshot(self) -> dict[str, Any]:
        """Copy of the whole map."""
        self._require_ready()
        return copy.deepcopy(self._data)

    def __contains__(self, key: object) -> bool:
        self._require_ready()
        return key in self._data

    async def set(self, key: str, value: Any, tag: str | None = None) -> None:
        """
        Create or overwrite key, then persist and commit.

        Args:
            key: Entry key.
            value: JSON-serializable document.
            tag: Commit message tag (defaults to a random token).

        Raises:
            PersistError: If writing, committing or pushing fails. The
                in-memory map keeps the new value.
        """
        self._require_ready()
        async with self._lock:
            self._data[key] = copy.deepcopy(value)
            await self._persist_and_commit(f"set({key}): {_tag(tag)}")

    async def patch(self, key: str, value: Any, tag: str | None = None) -> None:
        """
        Update an existing entry, then persist and commit.

        An array value gets `value` appended as one element; an object value
        gets the fields of `value` merged over its own (shallow).

        Raises:
            KeyNotFoundError: If key does not exist (nothing is written).
            InvalidPatchError: If the stored value is neither an array nor an
                object, or an object is patched with a non-object.
            PersistError: If writing, committing or pushing fails.
        """
        self._require_ready()
        async with self._lock:
            if key not in self._data:
                raise KeyNotFoundError(key)

            self._data[key] = self._patched(key, self._data[key], value)
            await self._persist_and_commit(f"patch({key}): {_tag(tag)}")

    async def delete(self, key: str, tag: str | None = None) -> bool:
        """
        Remove key, then persist and commit.

        Returns:
            True if the key existed. An absent key is a no-op: no write, no
            commit.

        Raises:
            PersistError: If writing, committing or pushing fails.
        """
        self._require_ready()
        async with self._lock:
            if key not in self._data:
                return False

            del self._data[key]
            await self._persist_and_commit(f"delete({key}): {_tag(tag)}")
            return True

    async def clear(self, tag: str | None = None) -> None:
        """
        Remove every key, then persist and commit.

        Unlike delete(), this always records a commit, even when the store
        was already empty.

        Raises:
            PersistError: If writing, committing or pushing fails.
        """
        self._require_ready()
        async with self._lock:
            self._data.clear()
            await self._persist_and_commit(
                f"clear: {_tag(tag)}",
                allow_empty=True,
            )

    async def sync(self) -> None:
        """
        Reconcile with the remote.

        Pulls the branch, reloads the map from the snapshot (picking up
        changes made elsewhere), then pushes any unpushed local commits.
        An untracked baseline snapshot is removed before the pull.

        Raises:
            GitError: If the pull or push fails. Nothing is retried.
        """
        self._require_ready()
        async with self._lock:
            if await self.client.remote_branch_exists(self.branch):
                await self.binding.discard_untracked_snapshot()
                await self.client.pull(self.branch)
            await self._load(write_baseline=False)
            await self.client.push(self.branch)

        logger.info("Synced %s: %d keys", self.working_directory, len(self._data))

    async def status(self) -> StorageStatus:
        """Report the binding and whether local commits await a push."""
        self._require_ready()
        return StorageStatus(
            repository_url=self.config.repository_url,
            branch=self.branch,
            working_directory=self.working_directory,
            snapshot_path=self.snapshot_path,
            key_count=len(self._data),
            has_unpushed_commits=await self.client.has_unpushed_commits(self.branch),
        )

    def _require_ready(self) -> None:
        if self._state is not StorageLifecycle.READY:
            raise StorageNotInitializedError(
                "GitStorage is not initialized. Call init() first."
            )

    async def _load(self, *, write_baseline: bool) -> None:
        data = await self.file_store.read()
        if data is not None:
            self._data = data
            return

        self._data = {}
        # A malformed snapshot is left for git history; only a missing one gets a baseline
        if write_baseline and not self.file_store.file_exists():
            try:
                await self.file_store.write(self._data)
            except SnapshotWriteError as e:
                logger.warning("Could not write empty baseline snapshot: %s", e)

    async def _persist_and_commit(self, message: str, *, allow_empty: bool = False) -> None:
        try:
            await self.file_store.write(self._data)
            committed = await self.client.commit_file(
                self.snapshot_path,
                message,
                allow_empty=allow_empty,
            )
            if committed:
                await self.client.push(self.branch)
        except (SnapshotWriteError, GitError) as e:
            raise PersistError(f"Failed to persist and commit: {e}") from e

    @staticmethod
    def _patched(key: str, existing: Any, value: Any) -> Any:
        """Apply a patch according to the shape of the stored value."""
        if isinstance(existing, list):
            return [*existing, copy.deepcopy(value)]

        if isinstance(existing, dict):
            if not isinstance(value, Mapping):
                raise InvalidPatchError(
                    f"Cannot patch object at key '{key}' with {type(value).__name__}"
                )
            return {**existing, **copy.deepcopy(dict(value))}

        raise InvalidPatchError(
            f"Cannot patch key '{key}': stored value is {type(existing).__name__}, "
            "not an object or array"
        )


def _tag(tag: str | None) -> str:
    return generate_commit_tag() if tag is None else tag
