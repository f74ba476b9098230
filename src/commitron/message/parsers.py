"""
Parsing raw model output into a :class:`CommitMessage`.

Language models rarely return exactly what was asked for. Their output
may wrap the answer in reasoning tags or code fences, embed a JSON object
in prose, emit bare JSON, or write a plain conventional commit with some
preamble. Each shape has its own strategy; :data:`PARSE_STRATEGIES` lists
them in the order they are tried and the first that recognizes the text
wins.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, List, Optional, Sequence, Tuple

from commitron.message.model import CommitMessage
from commitron.message.rules import looks_like_placeholder


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


ParseStrategy = Callable[[str], Optional[CommitMessage]]

MESSAGE_FIELDS = ("type", "scope", "subject", "body")

THINKING_MARKERS = (
    "let me",
    "i will",
    "i'll",
    "first,",
    "based on",
    "looking at",
    "analyzing",
    "the changes show",
    "here's the",
    "here is the",
    "now write",
    "writing the",
    "i see that",
    "i can see",
)

_THINKING_PATTERNS = (
    r"<think>.*?</think>",
    r"<thinking>.*?</thinking>",
    r"<thought>.*?</thought>",
    r"<reasoning>.*?</reasoning>",
)

_HEADER = re.compile(
    r"^\[?(?P<type>[A-Za-z][\w-]*)\]?"
    r"(?:\((?P<scope>[^)]*)\))?"
    r"(?P<bang>!)?:\s*(?P<subject>.*)$"
)
_BARE_COLON = re.compile(r"^:\s*(?P<subject>.*)$")
_SUBJECT_MARKER = re.compile(r"^\s*(?:\[subject\]|subject:)\s*(?P<rest>.*)$", re.IGNORECASE)
_BODY_MARKER = re.compile(r"^\s*(?:\[body\]|body:)\s*(?P<rest>.*)$", re.IGNORECASE)
_FENCE = re.compile(r"^\s*```[\w-]*\s*$")


def strip_thinking_tags(text: str) -> str:
    """Remove reasoning blocks such as ``<think>...</think>`` from ``text``.

    Examples
    --------
    >>> strip_thinking_tags("<think>reasoning...</think>Answer")
    'Answer'
    """
    result = text
    for pattern in _THINKING_PATTERNS:
        result = re.sub(pattern, "", result, flags=re.DOTALL | re.IGNORECASE)
    return result.strip()


def strip_code_fences(text: str) -> str:
    """Drop Markdown fence lines (```` ``` ```` or ```` ```json ````)."""
    return "\n".join(line for line in text.splitlines() if not _FENCE.match(line)).strip()


def clean_output(text: str) -> str:
    return strip_code_fences(strip_thinking_tags(text))


def extract_json_object(text: str) -> Optional[str]:
    """Return the first balanced ``{...}`` block in ``text``.

    Braces inside JSON string literals do not count towards the nesting.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            ch = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
            elif ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start:index + 1]
        start = text.find("{", start + 1)
    return None


def _field_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return "\n".join(str(item) for item in value).strip()
    return str(value).strip()


def message_from_mapping(data: Any) -> Optional[CommitMessage]:
    """Build a message from a decoded JSON object carrying message fields."""
    if not isinstance(data, dict) or not any(key in data for key in MESSAGE_FIELDS):
        return None
    message = CommitMessage(
        type=_field_text(data.get("type")),
        scope=_field_text(data.get("scope")),
        subject=_field_text(data.get("subject")),
        body=_clean_body(_field_text(data.get("body"))),
        breaking=bool(data.get("breaking", False)),
    )
    # Some models put the whole header into "subject".
    if not message.type and message.subject:
        header = parse_header(message.subject)
        if header.type:
            message.type = header.type
            message.scope = message.scope or header.scope
            message.subject = header.subject
            message.breaking = message.breaking or header.breaking
    return message


def parse_embedded_json(text: str) -> Optional[CommitMessage]:
    """Find a JSON object inside surrounding prose and decode it."""
    block = extract_json_object(text)
    if block is None:
        return None
    try:
        data = json.loads(block)
    except json.JSONDecodeError:
        logger.debug("Embedded JSON block could not be decoded")
        return None
    return message_from_mapping(data)


def parse_json(text: str) -> Optional[CommitMessage]:
    """Decode ``text`` as a bare JSON object."""
    try:
        data = json.loads(text.strip())
    except json.JSONDecodeError:
        return None
    return message_from_mapping(data)


def parse_header(line: str) -> CommitMessage:
    """Split a header line into type, scope, breaking marker and subject.

    A line with no type prefix becomes the subject. A line starting with a
    bare colon (``": add feature"``) also yields an empty type.
    """
    line = line.strip().strip("`\"'").strip()
    bare = _BARE_COLON.match(line)
    if bare:
        return CommitMessage(subject=bare.group("subject").strip())
    match = _HEADER.match(line)
    if not match:
        return CommitMessage(subject=line)
    return CommitMessage(
        type=match.group("type"),
        scope=(match.group("scope") or "").strip(),
        subject=match.group("subject").strip(),
        breaking=bool(match.group("bang")),
    )


def _clean_body(body: str) -> str:
    lines = []
    for line in body.splitlines():
        if _FENCE.match(line):
            continue
        marker = _BODY_MARKER.match(line)
        lines.append(marker.group("rest") if marker else line)
    cleaned = "\n".join(lines).strip()
    if looks_like_placeholder(cleaned):
        return ""
    return cleaned


def _is_meta(line: str) -> bool:
    lowered = line.strip().lower()
    return lowered.startswith(THINKING_MARKERS)


def _header_index(lines: Sequence[str]) -> int:
    """Index of the line holding the header.

    A line shaped like a conventional header always wins. Otherwise the first
    line that does not open with meta-commentary is used.
    """
    candidates = [i for i, line in enumerate(lines) if line.strip()]
    for index in candidates:
        stripped = lines[index].strip()
        if _HEADER.match(stripped) or _BARE_COLON.match(stripped):
            return index
    for index in candidates:
        if not _is_meta(lines[index]) and not lines[index].strip().endswith(":"):
            return index
    return candidates[0]


def _parse_marked(lines: List[str]) -> Optional[CommitMessage]:
    """Handle ``[SUBJECT]``/``[BODY]`` and ``Subject:``/``Body:`` layouts."""
    subject_at = next((i for i, line in enumerate(lines) if _SUBJECT_MARKER.match(line)), None)
    if subject_at is None:
        return None
    rest = _SUBJECT_MARKER.match(lines[subject_at]).group("rest").strip()
    subject_line = rest
    after = subject_at + 1
    if not subject_line:
        while after < len(lines) and not lines[after].strip():
            after += 1
        if after < len(lines):
            subject_line = lines[after]
            after += 1
    message = parse_header(subject_line)
    body_lines = lines[after:]
    body_at = next((i for i, line in enumerate(body_lines) if _BODY_MARKER.match(line)), None)
    if body_at is not None:
        body_lines = body_lines[body_at:]
    message.body = _clean_body("\n".join(body_lines))
    return message


def parse_text(text: str) -> Optional[CommitMessage]:
    """Parse a free-form commit message.

    The header is the first line that looks like ``type(scope): subject``,
    or failing that the first line that is not meta-commentary. Everything
    after the first blank line following the header is the body.
    """
    lines = text.strip().splitlines()
    if not lines:
        return None
    marked = _parse_marked(lines)
    if marked is not None:
        return marked

    start = _header_index(lines)
    message = parse_header(lines[start])
    rest = lines[start + 1:]
    blank = next((i for i, line in enumerate(rest) if not line.strip()), None)
    body_lines = rest[blank + 1:] if blank is not None else rest
    message.body = _clean_body("\n".join(body_lines))
    return message


PARSE_STRATEGIES: Tuple[Tuple[str, ParseStrategy], ...] = (
    ("embedded-json", parse_embedded_json),
    ("json", parse_json),
    ("text", parse_text),
)


def parse_message(
    raw: str,
    strategies: Sequence[Tuple[str, ParseStrategy]] = PARSE_STRATEGIES,
) -> Tuple[Optional[CommitMessage], str]:
    """Run ``strategies`` in order on the cleaned output of a model.

    Returns
    -------
    tuple
        The parsed message and the name of the strategy that produced it,
        or ``(None, "")`` when nothing could be recognized.
    """
    text = clean_output(raw)
    if not text:
        return None, ""
    for name, strategy in strategies:
        message = strategy(text)
        if message is not None and (message.subject or message.type or message.body):
            logger.debug("Parsed model output with the %s strategy", name)
            return message, name
    return None, ""
