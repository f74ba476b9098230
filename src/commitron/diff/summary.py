"""
Condensed summaries of a single file's diff.

A summary is what the allocator sends instead of the full diff when a file
does not earn (or cannot afford) full inclusion. It lists the declarations
touched by the change and a handful of meaningful changed lines.

Declarations are found with an ordered table of ``(pattern, kind)`` rules.
The first rule that matches a line wins, so more specific idioms are
listed before the generic ``name(...) {`` rule.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, List, Optional, Pattern, Tuple

if TYPE_CHECKING:  # pragma: no cover
    from commitron.diff.file_unit import FileUnit


MAX_NAMES = 5
MAX_KEY_CHANGES = 5
MAX_LINE_WIDTH = 120

DECLARATION_PATTERNS: Tuple[Tuple[Pattern[str], str], ...] = (
    (re.compile(r"\bfunc\s+(?:\([^)]*\)\s*)?(\w+)"), "go function"),
    (re.compile(r"\bfunction\s+(\w+)"), "javascript function"),
    (re.compile(r"\bdef\s+(\w+)"), "python function"),
    (re.compile(r"\bclass\s+(\w+)"), "class"),
    (
        re.compile(r"\b(?:public|private|protected)\s+(?:static\s+)?[\w<>\[\],]+\s+(\w+)\s*\("),
        "method",
    ),
    (re.compile(r"(\w+)\s*\([^)]*\)\s*\{"), "generic function"),
)

# Words the generic rule would otherwise report as function names.
_CONTROL_KEYWORDS = frozenset(
    {"if", "for", "while", "switch", "catch", "return", "else", "function", "func", "with"}
)

_NOISE_LINES = frozenset({"{", "}", "};", "})", "}),", ")", "];", "]", "(", "end"})
_IMPORT_LINE = re.compile(r"^(?:import\s|from\s+\S+\s+import\s|#include\s|require\(|use\s)")


def _changed_lines(content: str):
    """Yield ``(sign, text)`` for every added or removed line in hunks."""
    in_hunk = False
    for line in content.splitlines():
        if line.startswith("@@"):
            in_hunk = True
            continue
        if not in_hunk:
            continue
        if line.startswith("+"):
            yield "+", line[1:]
        elif line.startswith("-"):
            yield "-", line[1:]


def declaration_name(line: str) -> Optional[str]:
    """Return the declared name on ``line`` using the first matching rule."""
    for pattern, _kind in DECLARATION_PATTERNS:
        match = pattern.search(line)
        if match and match.group(1) not in _CONTROL_KEYWORDS:
            return match.group(1)
    return None


def extract_declarations(content: str, limit: int = MAX_NAMES) -> Tuple[List[str], List[str]]:
    """Return the unique added and removed declaration names in ``content``.

    Each list keeps at most ``limit`` names in order of first appearance.
    """
    added: List[str] = []
    removed: List[str] = []
    for sign, text in _changed_lines(content):
        bucket = added if sign == "+" else removed
        if len(bucket) >= limit:
            continue
        name = declaration_name(text)
        if name and f"{name}()" not in bucket:
            bucket.append(f"{name}()")
    return added, removed


def _is_noise(text: str) -> bool:
    return not text or text in _NOISE_LINES or bool(_IMPORT_LINE.match(text))


def extract_key_changes(content: str, max_lines: int = MAX_KEY_CHANGES) -> List[str]:
    """Pick the most meaningful changed lines, preferring additions.

    Additions fill the first half of the slots, deletions the rest; unused
    slots go back to additions.
    """
    additions: List[str] = []
    deletions: List[str] = []
    for sign, text in _changed_lines(content):
        text = text.strip()
        if _is_noise(text):
            continue
        if len(text) > MAX_LINE_WIDTH:
            text = text[: MAX_LINE_WIDTH - 3] + "..."
        (additions if sign == "+" else deletions).append(sign + text)

    add_limit = max_lines // 2 or max_lines
    changes = additions[:add_limit]
    changes += deletions[: max_lines - len(changes)]
    changes += additions[add_limit : add_limit + max_lines - len(changes)]
    return changes


def summarize_file(unit: "FileUnit") -> str:
    """Build the multi-line summary for ``unit``."""
    label = {"added": "new file, ", "deleted": "deleted, ", "renamed": "renamed, "}.get(
        unit.status, ""
    )
    parts = [f"File: {unit.path} ({label}+{unit.added_lines}, -{unit.removed_lines})\n"]

    added, removed = extract_declarations(unit.raw_content)
    if added:
        parts.append(f"  Added/Modified: {', '.join(added)}\n")
    if removed:
        parts.append(f"  Removed: {', '.join(removed)}\n")

    key_changes = extract_key_changes(unit.raw_content)
    if key_changes:
        parts.append("  Key changes:\n")
        parts.extend(f"    {change}\n" for change in key_changes)
    return "".join(parts)
