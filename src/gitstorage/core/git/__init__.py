"""
Git command layer.

Example:
    >>> from gitstorage.core.git import GitClient, GitError
    >>> client = GitClient(Path("/tmp/clone"))
    >>> await client.pull("main")
"""

from gitstorage.core.git.client import DEFAULT_REMOTE, GitClient, GitError

__all__ = [
    "DEFAULT_REMOTE",
    "GitClient",
    "GitError",
]
