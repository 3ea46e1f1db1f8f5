"""Utility modules for git-storage."""

from .git import escape_repo_name, generate_commit_tag, parse_rev_count

__all__ = [
    "escape_repo_name",
    "generate_commit_tag",
    "parse_rev_count",
]
