"""
Pytest configuration and shared fixtures.

Provides isolated git environments, bare "remote" repositories, and a
factory for GitStorage instances bound to them.
"""

import subprocess
from pathlib import Path
from typing import Callable

import pytest

from gitstorage.core.config.models import GitAuthor, StorageConfig
from gitstorage.core.storage.store import GitStorage

TEST_AUTHOR = GitAuthor(name="Test User", email="test@example.com")


def run_git(*args: str, cwd: Path) -> str:
    """Run a git command synchronously and return stripped stdout."""
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


def commit_count(repo: Path, ref: str = "HEAD") -> int:
    """Number of commits reachable from ref."""
    return int(run_git("rev-list", "--count", ref, cwd=repo))


@pytest.fixture
def git() -> Callable[..., str]:
    """Synchronous git runner: git("log", cwd=path)."""
    return run_git


@pytest.fixture
def count_commits() -> Callable[..., int]:
    """Commit counter: count_commits(repo, ref="HEAD")."""
    return commit_count


# ==============================================================================
# Environment Fixtures
# ==============================================================================


@pytest.fixture(autouse=True)
def isolated_git_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """
    Isolate git from the developer's global config.

    HOME and XDG dirs point into tmp_path, and a fallback identity is set so
    commits made by fixtures never depend on the machine's configuration.
    """
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(home / ".cache"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_TERMINAL_PROMPT", "0")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Fixture User")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "fixture@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Fixture User")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "fixture@example.com")
    for name in (
        "GITSTORAGE_HOME",
        "GITSTORAGE_CONFIG",
        "GITSTORAGE_REPOSITORY_URL",
        "GITSTORAGE_BRANCH",
        "GITSTORAGE_FILE_NAME",
        "GITSTORAGE_LOCAL_PATH",
        "GITSTORAGE_AUTHOR_NAME",
        "GITSTORAGE_AUTHOR_EMAIL",
    ):
        monkeypatch.delenv(name, raising=False)


# ==============================================================================
# Repository Fixtures
# ==============================================================================


@pytest.fixture
def empty_remote(tmp_path: Path) -> Path:
    """A bare repository with no commits whose HEAD names `main`."""
    remote = tmp_path / "remote.git"
    remote.mkdir()
    run_git("init", "--bare", cwd=remote)
    run_git("symbolic-ref", "HEAD", "refs/heads/main", cwd=remote)
    return remote


@pytest.fixture
def seeded_remote(empty_remote: Path, tmp_path: Path) -> Path:
    """A bare repository with one README commit on `main`."""
    seed = tmp_path / "seed"
    run_git("clone", str(empty_remote), str(seed), cwd=tmp_path)
    run_git("symbolic-ref", "HEAD", "refs/heads/main", cwd=seed)
    (seed / "README.md").write_text("# Data\n")
    run_git("add", "README.md", cwd=seed)
    run_git("commit", "-m", "Initial commit", cwd=seed)
    run_git("push", "origin", "main", cwd=seed)
    return empty_remote


@pytest.fixture
def other_clone(tmp_path: Path) -> Callable[[Path], Path]:
    """Factory for a second, independent clone of a remote on `main`."""

    def _clone(remote: Path) -> Path:
        path = tmp_path / "other"
        run_git("clone", "--branch", "main", str(remote), str(path), cwd=tmp_path)
        return path

    return _clone


@pytest.fixture
def make_storage(tmp_path: Path) -> Callable[..., GitStorage]:
    """Factory for GitStorage instances with a working copy under tmp_path."""

    def _make(remote: Path, **options: object) -> GitStorage:
        options.setdefault("local_path", tmp_path / "work")
        options.setdefault("author", TEST_AUTHOR)
        config = StorageConfig(repository_url=str(remote), **options)
        return GitStorage(config)

    return _make
