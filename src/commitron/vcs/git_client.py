"""
Git client implementation for commitron.

This module wraps the few Git operations the generator needs: locating
the repository, listing and staging changes, reading the staged diff and
committing. All subprocess calls go through :meth:`GitClient._run` so that
unit tests can mock them easily.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


@dataclass
class FileChange:
    """Representation of a single file change in the working tree."""

    path: str
    status: str  # e.g. 'M' modified, 'A' added, 'D' deleted, 'R' renamed


class GitError(Exception):
    """Raised when a Git command fails."""

    pass


def _lines(output: str) -> List[str]:
    return [line for line in output.splitlines() if line.strip()]


class GitClient:
    """Client for interacting with a Git repository."""

    def __init__(self, repo_root: Path) -> None:
        self.repo_root = repo_root

    # ------------------------------------------------------------------
    # Static helpers
    # ------------------------------------------------------------------
    @staticmethod
    def find_repo_root(start: Path) -> Optional[Path]:
        """Find the root of the Git repository starting from ``start``.

        Walk upwards until a ``.git`` entry is found or the filesystem
        root is reached.
        """
        current = start.resolve()
        while True:
            if (current / ".git").exists():
                return current
            if current.parent == current:
                return None
            current = current.parent

    # ------------------------------------------------------------------
    # Basic Git commands
    # ------------------------------------------------------------------
    def _run(self, args: List[str], check: bool = True) -> subprocess.CompletedProcess:
        """Run a Git command in the repository root.

        Raises
        ------
        GitError
            If Git cannot be started, or exits with a non-zero status when
            ``check`` is True.
        """
        full_cmd = ["git"] + args
        logger.debug("Executing Git command: %s", " ".join(full_cmd))
        try:
            result = subprocess.run(
                full_cmd,
                cwd=self.repo_root,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as exc:
            logger.error("Failed to run git: %s", exc)
            raise GitError(f"Failed to run git: {exc}") from exc

        if check and result.returncode != 0:
            logger.error(
                "Git command failed: %s\nSTDOUT: %s\nSTDERR: %s",
                " ".join(full_cmd),
                result.stdout,
                result.stderr,
            )
            raise GitError(result.stderr.strip() or result.stdout.strip())
        return result

    # ------------------------------------------------------------------
    # Change detection
    # ------------------------------------------------------------------
    def get_changes(self) -> List[FileChange]:
        """Return tracked changes from ``git status --porcelain``.

        Untracked files (status ``??``) are excluded. For renames only the
        new path is kept.
        """
        result = self._run(["status", "--porcelain"])
        changes = []
        for line in _lines(result.stdout):
            if len(line) < 4 or line[:2] == "??":
                continue
            status = line[:2].strip()
            path = line[3:]
            if " -> " in path:
                path = path.split(" -> ", 1)[1]
            changes.append(FileChange(path=path, status=status[0]))
        return changes

    def get_modified_files(self) -> List[str]:
        return [change.path for change in self.get_changes()]

    def get_staged_files(self) -> List[str]:
        """Return the paths staged for the next commit."""
        result = self._run(["diff", "--name-only", "--cached"])
        return _lines(result.stdout)

    def get_staged_diff(self) -> str:
        """Return the unified diff of the staged changes."""
        return self._run(["diff", "--cached"]).stdout

    # ------------------------------------------------------------------
    # Staging and committing
    # ------------------------------------------------------------------
    def stage_all(self) -> None:
        """Stage modifications and deletions of tracked files.

        Untracked files are left alone, matching :meth:`get_changes`.
        """
        self._run(["add", "--update"])

    def commit(self, message: str) -> None:
        """Create a commit with the given message.

        Multi-line messages are passed on standard input with ``-F -``.
        """
        if not message.strip():
            raise GitError("commit message cannot be empty")
        full_cmd = ["git", "commit", "-F", "-"]
        logger.debug("Executing Git command: %s", " ".join(full_cmd))
        try:
            result = subprocess.run(
                full_cmd,
                cwd=self.repo_root,
                input=message,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as exc:
            raise GitError(f"Failed to run git: {exc}") from exc
        if result.returncode != 0:
            logger.error("Git commit failed: %s", result.stderr)
            raise GitError(result.stderr.strip() or result.stdout.strip())
