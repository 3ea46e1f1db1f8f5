"""
Git-backed key-value storage.

The store keeps a JSON snapshot of its map inside a local clone and turns
every mutation into a commit that is pushed to the remote.

Example:
    >>> from gitstorage.core.storage import GitStorage
    >>> storage = GitStorage.from_options(repository_url="git@github.com:org/data.git")
    >>> await storage.init()
    >>> await storage.set("posts", [{"text": "First post"}])
    >>> await storage.patch("posts", {"text": "Second post"})
    >>> await storage.sync()
"""

from gitstorage.core.storage.binding import (
    RepositoryBinding,
    get_default_base_dir,
    resolve_working_directory,
)
from gitstorage.core.storage.errors import (
    GitStorageError,
    InvalidPatchError,
    KeyNotFoundError,
    PersistError,
    RepositoryBindingError,
    SnapshotWriteError,
    StorageNotInitializedError,
)
from gitstorage.core.storage.file_store import SnapshotFileStore
from gitstorage.core.storage.models import StorageLifecycle, StorageStatus
from gitstorage.core.storage.store import GitStorage

__all__ = [
    "GitStorage",
    "RepositoryBinding",
    "SnapshotFileStore",
    "StorageLifecycle",
    "StorageStatus",
    "get_default_base_dir",
    "resolve_working_directory",
    # Errors
    "GitStorageError",
    "InvalidPatchError",
    "KeyNotFoundError",
    "PersistError",
    "RepositoryBindingError",
    "SnapshotWriteError",
    "StorageNotInitializedError",
]
