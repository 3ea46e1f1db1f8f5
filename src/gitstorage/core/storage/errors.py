"""
Exceptions raised by the storage layer.

Git command failures are reported separately as
:class:`gitstorage.core.git.GitError`; the wrappers here chain to them.
"""

from __future__ import annotations


class GitStorageError(Exception):
    """Base exception for git-storage operations."""

    pass


class StorageNotInitializedError(GitStorageError):
    """Raised when a data operation runs before init()."""

    pass


class RepositoryBindingError(GitStorageError):
    """Raised when the working copy could not be created or brought up to date."""

    pass


class SnapshotWriteError(GitStorageError):
    """Raised when the snapshot file could not be written."""

    pass


class PersistError(GitStorageError):
    """Raised when the write, commit or push after a mutation fails."""

    pass


class KeyNotFoundError(GitStorageError, KeyError):
    """Raised when patching a key that does not exist."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Key '{key}' does not exist. Use set() to add new data.")
        self.key = key

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])


class InvalidPatchError(GitStorageError, TypeError):
    """Raised when a patch value does not fit the stored value's shape."""

    pass
