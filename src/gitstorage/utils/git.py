"""
Git utilities for git-storage.

Small pure helpers shared by the git client and the storage layer: naming
working directories after their remote, generating commit tags, and parsing
git's count output.
"""

from __future__ import annotations

import hashlib
import re
import secrets
import string

TAG_CHARS = string.ascii_lowercase + string.digits
TAG_LENGTH = 8
DIGEST_LENGTH = 8

_SCHEMES = ("https://", "http://")
_RESERVED = re.compile(r"[/\\:@.\s*?\"<>|#%~]+")


def escape_repo_name(repo_url: str) -> str:
    """Turn a repository URL into a single safe directory name.

    The scheme is dropped, runs of path-reserved characters become ``-`` and a
    short SHA-256 digest of the full URL is appended, so two URLs that escape to
    the same readable part still get distinct directories.

    Args:
        repo_url: Remote repository URL (or any remote identity string)

    Returns:
        Directory name, stable across process runs

    Example:
        >>> escape_repo_name("https://github.com/vsezol/git-storage-data")
        'github-com-vsezol-git-storage-data-...'
    """
    readable = repo_url.strip()
    for scheme in _SCHEMES:
        if readable.startswith(scheme):
            readable = readable[len(scheme):]
            break

    readable = _RESERVED.sub("-", readable).strip("-") or "repository"
    digest = hashlib.sha256(repo_url.encode("utf-8")).hexdigest()[:DIGEST_LENGTH]
    return f"{readable}-{digest}"


def generate_commit_tag() -> str:
    """Generate a short random tag for a commit message.

    Returns:
        8 characters of lowercase letters and digits
    """
    return "".join(secrets.choice(TAG_CHARS) for _ in range(TAG_LENGTH))


def parse_rev_count(output: str) -> int:
    """Parse the output of ``git rev-list --count``.

    Raises:
        ValueError: If the output is not a non-negative integer
    """
    value = int(output.strip())
    if value < 0:
        raise ValueError(f"Negative commit count: {value}")
    return value
