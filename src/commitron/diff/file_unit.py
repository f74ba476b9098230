"""
Data models for per-file diff units.

A :class:`FileUnit` is one file's slice of a unified diff. A
:class:`ScoredFileUnit` pairs it with the priority and token count the
allocator needs.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass

from commitron.diff.summary import summarize_file


STATUS_ADDED = "added"
STATUS_MODIFIED = "modified"
STATUS_DELETED = "deleted"
STATUS_RENAMED = "renamed"


@dataclass(frozen=True)
class FileUnit:
    """A single file's changes.

    Attributes
    ----------
    path : str
        Destination path of the file, unique within one diff.
    status : str
        One of ``added``, ``modified``, ``deleted`` or ``renamed``.
    added_lines : int
        Number of ``+`` lines in the file's hunks.
    removed_lines : int
        Number of ``-`` lines in the file's hunks.
    raw_content : str
        The file's diff text, separator line included.
    """

    path: str
    status: str = STATUS_MODIFIED
    added_lines: int = 0
    removed_lines: int = 0
    raw_content: str = ""

    @functools.cached_property
    def summary(self) -> str:
        """Condensed description of the change, computed once."""
        return summarize_file(self)

    def stats_line(self) -> str:
        return f"File: {self.path} (+{self.added_lines}, -{self.removed_lines})\n"


@dataclass(frozen=True)
class ScoredFileUnit:
    """A :class:`FileUnit` with its priority score and token count."""

    unit: FileUnit
    priority: int
    token_count: int

    @property
    def path(self) -> str:
        return self.unit.path
