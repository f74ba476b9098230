"""
Deterministic fixes for commit messages that break their convention.

:func:`repair_message` is applied at most once per message. It only
rewrites fields in ways that cannot change what the message says: casing,
punctuation, synonyms and boilerplate.
"""

from __future__ import annotations

import logging
import os
import re
from typing import Sequence

from commitron.config.settings import CommitSettings
from commitron.message.model import CommitMessage
from commitron.message.rules import (
    META_OPENERS,
    MIN_BODY_LENGTH,
    is_file_list_line,
    looks_like_placeholder,
    starts_with_meta,
)


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


# Extension groups mapped to the sentence used for a single changed file.
DEFAULT_BODY_TEMPLATES = (
    (("go",), "Update {name} with improved Go code implementation"),
    (("js", "jsx", "ts", "tsx"), "Enhance {name} with better JavaScript/TypeScript functionality"),
    (("py",), "Update Python implementation in {name}"),
    (("md", "markdown"), "Improve documentation in {name}"),
    (("css", "scss", "sass"), "Update styles in {name}"),
    (("html",), "Update HTML template in {name}"),
    (("json", "yaml", "yml"), "Update configuration in {name}"),
)
DEFAULT_BODY = "Update code with necessary changes"

_PATH_BULLET = re.compile(r"^\s*[-*]\s*\S+\.\w+\s*$")
_SLUG_INVALID = re.compile(r"[^a-z0-9]+")


def default_body(files: Sequence[str]) -> str:
    """Synthesize a minimal body from the changed file list."""
    if len(files) > 1:
        return f"Update {len(files)} files with necessary changes"
    if not files:
        return DEFAULT_BODY
    name = os.path.basename(files[0])
    ext = os.path.splitext(name)[1].lstrip(".").lower()
    if not ext:
        return f"Update {name}"
    for extensions, template in DEFAULT_BODY_TEMPLATES:
        if ext in extensions:
            return template.format(name=name)
    return f"Update {name} file"


def slugify_scope(scope: str) -> str:
    return _SLUG_INVALID.sub("-", scope.strip().lower()).strip("-")


def _strip_meta_opener(body: str) -> str:
    text = body.strip()
    while starts_with_meta(text):
        lowered = text.lower()
        opener = next(o for o in META_OPENERS if lowered.startswith(o))
        text = text[len(opener):].lstrip(" ,:;-")
    if text:
        text = text[0].upper() + text[1:]
    return text


def repair_body(body: str, files: Sequence[str]) -> str:
    lines = [
        line
        for line in body.splitlines()
        if not is_file_list_line(line) and not _PATH_BULLET.match(line)
    ]
    repaired = _strip_meta_opener("\n".join(lines))
    if len(repaired) < MIN_BODY_LENGTH or looks_like_placeholder(repaired):
        return default_body(files)
    return repaired


def repair_subject(subject: str, settings: CommitSettings) -> str:
    subject = " ".join(subject.split())
    if not settings.is_conventional:
        return subject
    subject = subject.rstrip(".").rstrip()
    replacement = settings.generic_subjects.get(subject.lower())
    if replacement:
        subject = replacement
    if subject and subject[0].isupper():
        subject = subject[0].lower() + subject[1:]
    return subject


def repair_type(type_: str, settings: CommitSettings) -> str:
    lowered = type_.strip().lower()
    if not lowered:
        return settings.default_type
    return settings.type_synonyms.get(lowered, lowered)


def repair_message(
    message: CommitMessage,
    settings: CommitSettings,
    files: Sequence[str] = (),
) -> CommitMessage:
    """Apply one pass of deterministic fixes to ``message`` in place.

    Parameters
    ----------
    message : CommitMessage
        The message to repair; it is modified and returned.
    settings : CommitSettings
        Convention, synonyms and the generic-subject deny-list.
    files : Sequence[str], optional
        Changed files, used when the body has to be synthesized again.

    Returns
    -------
    CommitMessage
        The same ``message`` instance.
    """
    if settings.is_conventional:
        message.type = repair_type(message.type, settings)
        scope = slugify_scope(message.scope)
        message.scope = "" if scope in settings.generic_subjects else scope
    message.subject = repair_subject(message.subject, settings)
    if settings.include_body:
        message.body = repair_body(message.body, files)
    logger.debug("Repaired commit message: %r", message)
    return message
