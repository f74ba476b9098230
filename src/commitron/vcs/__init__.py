"""
Version control integration.

:class:`GitClient` detects the repository root, lists and stages changes,
reads the staged diff and commits.
"""

from .git_client import FileChange, GitClient, GitError  # noqa: F401
