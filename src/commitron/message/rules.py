"""
Convention rules for commit messages.

:func:`validate_message` checks a :class:`CommitMessage` against the
configured convention and returns every :class:`Violation` it finds. An
empty list means the message is valid.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List

from commitron.config.settings import CommitSettings
from commitron.message.model import CommitMessage, format_message, render_header


MIN_BODY_LENGTH = 10

PLACEHOLDER_MARKERS = (
    "<descriptive body",
    "<optional body>",
    "<commit message>",
    "<body>",
    "[optional body]",
)

META_OPENERS = (
    "this code",
    "this commit",
    "the changes",
    "the code",
    "the file",
    "the files",
    "based on",
    "it appears",
    "here is",
    "here's",
)

FILE_LIST_MARKERS = ("file:", "files:", "changed files:")

_SCOPE_FORBIDDEN = re.compile(r"[^a-z0-9-]")


class MessageValidationError(Exception):
    """Raised when a commit message still violates its convention."""

    def __init__(self, violations: List["Violation"]) -> None:
        self.violations = list(violations)
        super().__init__("; ".join(v.message for v in self.violations))


@dataclass(frozen=True)
class Violation:
    """A single broken rule."""

    rule: str
    message: str


def looks_like_placeholder(text: str) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in PLACEHOLDER_MARKERS)


def is_file_list_line(line: str) -> bool:
    lowered = line.strip().lower()
    return any(marker in lowered for marker in FILE_LIST_MARKERS)


def starts_with_meta(text: str) -> bool:
    lowered = text.strip().lower()
    return any(lowered.startswith(opener) for opener in META_OPENERS)


def _is_file_listing(body: str) -> bool:
    lines = [line for line in body.splitlines() if line.strip()]
    if any(is_file_list_line(line) for line in lines):
        return True
    # A body made only of "- path/to/file.ext" bullets lists files, not intent.
    return bool(lines) and all(
        re.match(r"^\s*[-*]\s*\S+\.\w+\s*$", line) for line in lines
    )


def _type_violations(message: CommitMessage, settings: CommitSettings) -> List[Violation]:
    if not message.type:
        return [Violation("type-required", "commit type is required for conventional commits")]
    violations = []
    if message.type != message.type.lower():
        violations.append(Violation("type-case", f"commit type must be lowercase: {message.type}"))
    if message.type.lower() not in settings.allowed_types:
        violations.append(
            Violation(
                "type-allowed",
                f"commit type '{message.type}' is not allowed; must be one of: "
                + ", ".join(settings.allowed_types),
            )
        )
    return violations


def _subject_violations(message: CommitMessage, settings: CommitSettings) -> List[Violation]:
    subject = message.subject
    if not subject.strip():
        return [Violation("subject-required", "commit subject is required")]
    violations = []
    if "\n" in subject:
        violations.append(Violation("subject-newline", "commit subject should not contain newlines"))
    if not settings.is_conventional:
        return violations
    if subject.endswith("."):
        violations.append(Violation("subject-period", "commit subject should not end with a period"))
    if subject[0].isupper():
        violations.append(
            Violation("subject-case", "commit subject should not start with a capital letter")
        )
    if subject.strip().lower() in settings.generic_subjects:
        violations.append(
            Violation(
                "subject-generic",
                "commit subject is too generic, please be more specific about what was changed",
            )
        )
    return violations


def _scope_violations(message: CommitMessage, settings: CommitSettings) -> List[Violation]:
    scope = message.scope
    if not scope:
        return []
    violations = []
    if scope != scope.lower():
        violations.append(Violation("scope-case", f"commit scope must be lowercase: {scope}"))
    if any(ch.isspace() for ch in scope):
        violations.append(Violation("scope-whitespace", "commit scope should not contain spaces"))
    elif _SCOPE_FORBIDDEN.search(scope.lower()):
        violations.append(
            Violation("scope-punctuation", "commit scope should not contain special characters")
        )
    if scope.lower() in settings.generic_subjects:
        violations.append(Violation("scope-generic", "commit scope is too generic"))
    return violations


def _body_violations(message: CommitMessage, settings: CommitSettings) -> List[Violation]:
    body = message.body.strip()
    if not body:
        return [Violation("body-required", "commit body is required when include_body is set")]
    violations = []
    if looks_like_placeholder(body):
        violations.append(
            Violation("body-placeholder", "commit body contains placeholder text")
        )
    if len(body) < MIN_BODY_LENGTH:
        violations.append(
            Violation(
                "body-length",
                f"commit body is too short (must be at least {MIN_BODY_LENGTH} characters)",
            )
        )
    if _is_file_listing(body):
        violations.append(
            Violation(
                "body-file-list",
                "commit body should not be a list of files; describe what changed and why",
            )
        )
    if starts_with_meta(body):
        violations.append(
            Violation(
                "body-meta",
                "commit body should not start with phrases like 'this commit' or 'the changes'",
            )
        )
    rendered = format_message(message, settings).split("\n")
    if len(rendered) < 3 or rendered[1] != "":
        violations.append(
            Violation("body-separation", "commit body must be separated from the subject by a blank line")
        )
    return violations


def validate_message(message: CommitMessage, settings: CommitSettings) -> List[Violation]:
    """Return all rule violations of ``message`` under ``settings``."""
    violations: List[Violation] = []
    if settings.is_conventional:
        violations += _type_violations(message, settings)
        violations += _scope_violations(message, settings)
    violations += _subject_violations(message, settings)

    header_length = len(render_header(message, settings))
    if header_length > settings.max_length:
        violations.append(
            Violation(
                "header-length",
                f"commit header is {header_length} characters; the limit is {settings.max_length}",
            )
        )
    if settings.include_body:
        violations += _body_violations(message, settings)
    return violations
