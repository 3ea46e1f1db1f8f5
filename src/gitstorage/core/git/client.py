"""
Async git command client.

Issues porcelain git commands against one working directory. Each operation
is opaque to callers beyond success/failure and textual output: failures
raise GitError carrying the attempted command and git's error text, and no
operation retries.
"""

from __future__ import annotations

import logging
from pathlib import Path

from gitstorage.core.tools.process import run_process
from gitstorage.utils.git import parse_rev_count

logger = logging.getLogger(__name__)

DEFAULT_REMOTE = "origin"

# Credential prompts would block forever with no terminal attached
GIT_ENV = {"GIT_TERMINAL_PROMPT": "0"}


class GitError(Exception):
    """Exception raised when a git operation fails."""

    def __init__(self, message: str, command: list[str] | None = None, stderr: str = ""):
        super().__init__(message)
        self.command = command
        self.stderr = stderr

    def wrap(self, prefix: str) -> GitError:
        """Return a copy of this error with an operation prefix on the message."""
        return GitError(f"{prefix}: {self}", command=self.command, stderr=self.stderr)


class GitClient:
    """
    Git operations against a single working directory.

    Example:
        >>> client = GitClient(Path("/tmp/clone"))
        >>> await client.clone("https://github.com/org/data")
        >>> await client.ensure_branch("main")
        >>> if await client.commit_file(Path("/tmp/clone/root.json"), "set(a): x1"):
        ...     await client.push("main")
    """

    def __init__(self, repo_path: Path, remote: str = DEFAULT_REMOTE) -> None:
        """
        Initialize the client.

        Args:
            repo_path: Working directory the commands run in.
            remote: Name of the remote to pull from and push to.
        """
        self.repo_path = repo_path
        self.remote = remote

    async def _run_git(self, args: list[str], *, cwd: Path | None = None) -> str:
        """
        Run a git command and return its stdout.

        Args:
            args: Git command arguments (without "git" prefix).
            cwd: Directory to run in (defaults to the working directory).

        Returns:
            Command stdout as string (stripped).

        Raises:
            GitError: If the command exits non-zero or cannot be started.
        """
        cmd = ["git"] + args
        result = await run_process(cmd, cwd=cwd or self.repo_path, env=GIT_ENV)

        if not result.success:
            raise GitError(
                f"Git command failed: {' '.join(cmd)}\nError: {result.failure_text}",
                command=cmd,
                stderr=result.stderr.strip(),
            )

        return result.stdout.strip()

    async def _ref_exists(self, ref: str) -> bool:
        try:
            await self._run_git(["rev-parse", "--verify", "--quiet", ref])
            return True
        except GitError:
            return False

    def is_repository(self) -> bool:
        """Check whether the working directory already holds a clone."""
        return (self.repo_path / ".git").exists()

    async def is_tracked(self, file_path: Path) -> bool:
        """Check whether git knows the file (committed or staged)."""
        try:
            await self._run_git(["ls-files", "--error-unmatch", "--", self._pathspec(file_path)])
            return True
        except GitError:
            return False

    async def clone(self, repository_url: str) -> None:
        """
        Clone the remote into the working directory.

        Creates the parent directory first. The working directory itself must
        not exist or must be empty.

        Raises:
            GitError: If the clone fails.
        """
        parent = self.repo_path.parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise GitError(f"Failed to clone repository: {e}") from e

        logger.info("Cloning %s into %s", repository_url, self.repo_path)
        try:
            await self._run_git(
                ["clone", "--origin", self.remote, repository_url, str(self.repo_path)],
                cwd=parent,
            )
        except GitError as e:
            raise e.wrap("Failed to clone repository") from e

    async def pull(self, branch: str) -> None:
        """
        Pull the branch from the remote and merge it into the current branch.

        No conflict resolution is attempted; a conflicting merge fails.

        Raises:
            GitError: On network or merge failure.
        """
        try:
            await self._run_git(["pull", "--no-rebase", "--no-edit", self.remote, branch])
        except GitError as e:
            raise e.wrap("Pull failed") from e
        logger.debug("Pulled %s/%s into %s", self.remote, branch, self.repo_path)

    async def remote_branch_exists(self, branch: str) -> bool:
        """
        Ask the remote whether it has the branch.

        Raises:
            GitError: If the remote cannot be reached.
        """
        try:
            output = await self._run_git(
                ["ls-remote", "--heads", self.remote, f"refs/heads/{branch}"]
            )
        except GitError as e:
            raise e.wrap(f"Failed to query {self.remote} for {branch}") from e
        return bool(output)

    async def ahead_count(self, branch: str) -> int:
        """
        Count local commits that are not on the remote tracking branch.

        Raises:
            GitError: If the tracking branch is unknown or git fails.
        """
        output = await self._run_git(
            ["rev-list", "--count", f"{self.remote}/{branch}..HEAD"]
        )
        try:
            return parse_rev_count(output)
        except ValueError as e:
            raise GitError(f"Unexpected rev-list output: {output!r}") from e

    async def has_unpushed_commits(self, branch: str) -> bool:
        """
        Check for local commits not yet pushed.

        A failed query counts as "yes": attempting a push is safer than
        silently stranding commits.
        """
        try:
            return await self.ahead_count(branch) > 0
        except GitError as e:
            logger.debug("Ahead count unavailable for %s, assuming unpushed: %s", branch, e)
            return True

    async def push(self, branch: str) -> bool:
        """
        Push the branch when it has unpushed commits.

        Returns:
            True if a push was performed, False if there was nothing to push.

        Raises:
            GitError: If the push fails.
        """
        try:
            if not await self.has_unpushed_commits(branch):
                return False
            await self._run_git(["push", "--set-upstream", self.remote, branch])
        except GitError as e:
            raise e.wrap("Push failed") from e

        logger.info("Pushed %s to %s/%s", self.repo_path, self.remote, branch)
        return True

    async def commit_file(
        self,
        file_path: Path,
        message: str,
        *,
        allow_empty: bool = False,
    ) -> bool:
        """
        Stage exactly one file and commit only that file.

        Anything else already staged stays staged and out of the commit.

        Args:
            file_path: File to stage, absolute or relative to the working directory.
            message: Commit message.
            allow_empty: Record a commit even when the file is unchanged.

        Returns:
            True if a commit was created, False if the file had no changes.

        Raises:
            GitError: If staging or committing fails.
        """
        pathspec = self._pathspec(file_path)
        try:
            await self._run_git(["add", "--", pathspec])
            status = await self._run_git(["status", "--porcelain", "--", pathspec])

            if status:
                await self._run_git(["commit", "-m", message, "--", pathspec])
            elif allow_empty:
                await self._run_git(
                    ["commit", "--allow-empty", "-m", message, "--", pathspec]
                )
            else:
                logger.debug("No changes to commit for %s", pathspec)
                return False
        except GitError as e:
            raise e.wrap("Failed to add and commit") from e

        logger.info("Committed %s: %s", pathspec, message)
        return True

    async def ensure_branch(self, branch: str) -> None:
        """
        Make sure the branch is checked out.

        Checks out the local branch if it exists, otherwise creates a tracking
        branch from the remote branch, otherwise creates a new branch.

        Raises:
            GitError: If any checkout fails.
        """
        try:
            if await self.current_branch() == branch:
                return

            if await self._ref_exists(f"refs/heads/{branch}"):
                await self._run_git(["checkout", branch])
            elif await self._ref_exists(f"refs/remotes/{self.remote}/{branch}"):
                await self._run_git(
                    ["checkout", "-b", branch, "--track", f"{self.remote}/{branch}"]
                )
                logger.info("Created branch %s tracking %s/%s", branch, self.remote, branch)
            else:
                await self._run_git(["checkout", "-b", branch])
                logger.info("Created new branch %s", branch)
        except GitError as e:
            raise e.wrap("Branch operations failed") from e

    async def current_branch(self) -> str | None:
        """Name of the checked-out branch (possibly unborn), or None if detached."""
        try:
            return await self._run_git(["symbolic-ref", "--quiet", "--short", "HEAD"])
        except GitError:
            return None

    async def set_config(self, key: str, value: str) -> None:
        """
        Set a repository-local git config value.

        Raises:
            GitError: If git config fails.
        """
        try:
            await self._run_git(["config", key, value])
        except GitError as e:
            raise e.wrap(f"Failed to set git config {key}") from e

    async def set_identity(self, name: str, email: str) -> None:
        """Apply the commit author identity to the working directory."""
        await self.set_config("user.name", name)
        await self.set_config("user.email", email)

    def _pathspec(self, file_path: Path) -> str:
        if file_path.is_absolute():
            try:
                return file_path.relative_to(self.repo_path).as_posix()
            except ValueError:
                return str(file_path)
        return file_path.as_posix()
