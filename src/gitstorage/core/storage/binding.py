"""
Binding between a remote repository and its local working copy.

Resolves where the clone lives and brings it to a usable state (cloned,
up to date, on the right branch, with the configured identity) before any
data operation runs.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from gitstorage.core.config.models import GitAuthor
from gitstorage.core.git.client import GitClient, GitError
from gitstorage.core.storage.errors import RepositoryBindingError
from gitstorage.utils.git import escape_repo_name

logger = logging.getLogger(__name__)

HOME_ENV = "GITSTORAGE_HOME"


def get_default_base_dir() -> Path:
    """
    Directory under which working copies are created.

    Returns:
        $GITSTORAGE_HOME if set, otherwise $XDG_CACHE_HOME/git-storage
        (defaults to ~/.cache/git-storage)
    """
    if explicit := os.environ.get(HOME_ENV):
        return Path(explicit).expanduser()
    if xdg_cache := os.environ.get("XDG_CACHE_HOME"):
        return Path(xdg_cache) / "git-storage"
    return Path.home() / ".cache" / "git-storage"


def resolve_working_directory(
    repository_url: str,
    local_path: Path | str | None = None,
    base_dir: Path | None = None,
) -> Path:
    """
    Resolve the working directory for a remote repository.

    The same URL always maps to the same directory, so a later process
    reuses an earlier clone.

    Args:
        repository_url: Remote repository URL
        local_path: Explicit working directory; wins when given
        base_dir: Parent for derived directories (defaults to get_default_base_dir())

    Returns:
        Absolute path of the working directory
    """
    if local_path is not None:
        return Path(local_path).expanduser().resolve()
    if base_dir is None:
        base_dir = get_default_base_dir()
    return (base_dir / escape_repo_name(repository_url)).resolve()


class RepositoryBinding:
    """
    Establishes and repairs the working copy of one remote branch.

    Example:
        >>> binding = RepositoryBinding(client, "https://github.com/org/data", "main")
        >>> await binding.ensure_working_copy()
    """

    def __init__(
        self,
        client: GitClient,
        repository_url: str,
        branch: str,
        author: GitAuthor | None = None,
        *,
        snapshot_path: Path | None = None,
    ) -> None:
        self.client = client
        self.repository_url = repository_url
        self.branch = branch
        self.author = author
        self.snapshot_path = snapshot_path

    @property
    def working_directory(self) -> Path:
        return self.client.repo_path

    async def ensure_working_copy(self) -> None:
        """
        Clone or update the working copy and check out the branch.

        Clones when no clone exists yet, otherwise pulls the branch (after
        dropping an untracked snapshot that would block the merge). Applies
        the author identity if configured, then ensures the branch.

        Raises:
            RepositoryBindingError: If any step fails. The working copy must
                not be assumed usable afterwards.
        """
        try:
            if self.client.is_repository():
                logger.debug("Reusing working copy at %s", self.working_directory)
                if await self.client.remote_branch_exists(self.branch):
                    await self.discard_untracked_snapshot()
                    await self.client.pull(self.branch)
                else:
                    # Nothing pushed yet; pulling a missing ref would fail
                    logger.info("Remote has no branch %s yet, skipping pull", self.branch)
            else:
                await self.client.clone(self.repository_url)

            if self.author is not None:
                await self.client.set_identity(self.author.name, self.author.email)

            await self.client.ensure_branch(self.branch)

        except GitError as e:
            raise RepositoryBindingError(
                f"Failed to bind working copy {self.working_directory} "
                f"to {self.repository_url} ({self.branch}): {e}"
            ) from e

    async def discard_untracked_snapshot(self) -> bool:
        """
        Delete the snapshot file if git does not track it.

        An untracked snapshot normally holds the empty baseline written by
        init(). Left in place, it makes git refuse any pull that brings the
        file in from the remote.

        Returns:
            True if a file was removed.
        """
        path = self.snapshot_path
        if path is None or not path.is_file():
            return False
        if await self.client.is_tracked(path):
            return False

        try:
            path.unlink()
        except OSError as e:
            logger.warning("Could not remove untracked snapshot %s: %s", path, e)
            return False

        logger.info("Removed untracked snapshot %s before pulling", path)
        return True
