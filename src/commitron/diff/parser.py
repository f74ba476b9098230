"""
Splitting a unified diff into per-file units.

Git sections start with ``diff --git a/X b/Y``; Subversion sections start
with ``Index: X``. Anything before the first separator is ignored, and a
section whose path cannot be determined is skipped rather than treated as
an error. An empty result tells the caller to fall back to handling the
raw diff as a single block.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional

from commitron.diff.file_unit import (
    STATUS_ADDED,
    STATUS_DELETED,
    STATUS_MODIFIED,
    STATUS_RENAMED,
    FileUnit,
)


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


_SECTION_START = re.compile(r"^(?=diff --git |Index: )", re.MULTILINE)
_GIT_HEADER = re.compile(r"^diff --git (?P<src>\"?a/.*?\"?) (?P<dst>\"?b/.*?\"?)\s*$")
_SVN_HEADER = re.compile(r"^Index: (?P<path>.+?)\s*$")
_NEW_PATH = re.compile(r"^(?:rename|copy) to (?P<path>.+?)\s*$")
_PLUS_HEADER = re.compile(r"^\+\+\+ (?P<path>[^\t]+)")

_STATUS_MARKERS = (
    ("new file", STATUS_ADDED),
    ("deleted file", STATUS_DELETED),
    ("rename from", STATUS_RENAMED),
)


def _clean_path(path: str, prefix: str = "") -> str:
    path = path.strip().strip('"')
    if prefix and path.startswith(prefix):
        path = path[len(prefix):]
    return path


def _split_sections(diff: str) -> List[str]:
    sections = _SECTION_START.split(diff)
    # The first element holds any preamble before the first separator.
    return [s for s in sections[1:] if s.strip()]


def parse_section(section: str) -> Optional[FileUnit]:
    """Parse one file section, returning ``None`` if it has no usable path."""
    lines = section.splitlines()
    if not lines:
        return None

    path = ""
    git_match = _GIT_HEADER.match(lines[0])
    svn_match = _SVN_HEADER.match(lines[0])
    if git_match:
        path = _clean_path(git_match.group("dst"), "b/")
    elif svn_match:
        path = _clean_path(svn_match.group("path"))

    status: Optional[str] = None
    added = removed = 0
    in_hunk = False
    for line in lines[1:]:
        if line.startswith("@@"):
            in_hunk = True
            continue
        if not in_hunk:
            if status is None:
                for marker, marker_status in _STATUS_MARKERS:
                    if line.startswith(marker):
                        status = marker_status
                        break
            new_path = _NEW_PATH.match(line)
            if new_path:
                path = _clean_path(new_path.group("path"))
            elif not path and line.startswith("+++ "):
                plus_path = _PLUS_HEADER.match(line)
                if plus_path and plus_path.group("path").strip() != "/dev/null":
                    path = _clean_path(plus_path.group("path"), "b/")
            continue
        if line.startswith("+"):
            added += 1
        elif line.startswith("-"):
            removed += 1

    if not path:
        return None
    return FileUnit(
        path=path,
        status=status or STATUS_MODIFIED,
        added_lines=added,
        removed_lines=removed,
        raw_content=section,
    )


def parse_diff(diff: str) -> List[FileUnit]:
    """Split ``diff`` into :class:`FileUnit` objects in order of appearance.

    Parameters
    ----------
    diff : str
        Zero or more concatenated unified-diff file sections.

    Returns
    -------
    List[FileUnit]
        One unit per recognizable section. Malformed sections are skipped;
        an empty list means nothing could be parsed.
    """
    units: List[FileUnit] = []
    seen = set()
    for section in _split_sections(diff or ""):
        unit = parse_section(section)
        if unit is None:
            logger.debug("Skipping diff section without a file path: %r", section[:80])
            continue
        if unit.path in seen:
            logger.debug("Ignoring repeated section for %s", unit.path)
            continue
        seen.add(unit.path)
        units.append(unit)
    logger.debug("Parsed %d file section(s) from diff", len(units))
    return units
