"""
git-storage - key-value storage backed by a git repository

Every mutation is committed to a JSON snapshot in a local clone and pushed
to the remote; sync() pulls changes made elsewhere.
"""

__version__ = "0.1.0"

# Re-export the public API for convenience
from gitstorage.core.config.models import GitAuthor, StorageConfig
from gitstorage.core.git.client import GitError
from gitstorage.core.storage.errors import (
    GitStorageError,
    InvalidPatchError,
    KeyNotFoundError,
    PersistError,
    RepositoryBindingError,
    SnapshotWriteError,
    StorageNotInitializedError,
)
from gitstorage.core.storage.store import GitStorage

__all__ = [
    "GitAuthor",
    "GitError",
    "GitStorage",
    "GitStorageError",
    "InvalidPatchError",
    "KeyNotFoundError",
    "PersistError",
    "RepositoryBindingError",
    "SnapshotWriteError",
    "StorageConfig",
    "StorageNotInitializedError",
    "__version__",
]
