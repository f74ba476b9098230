"""
Normalization of raw model output into a valid commit message.

The :class:`MessageNormalizer` runs a short, terminating state machine::

    raw -> structured -> (repaired) -> failed

The raw text is parsed into a :class:`CommitMessage`, given a default body
when one is mandatory, length-limited and validated. A message that breaks
the convention is repaired exactly once; whatever is still wrong afterwards
is reported in the :class:`NormalizationResult` rather than raised, so the
caller can decide to fall back to the raw text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from commitron.config.settings import CommitSettings
from commitron.message.model import CommitMessage, format_message, render_header
from commitron.message.parsers import clean_output, parse_message
from commitron.message.repair import default_body, repair_message
from commitron.message.rules import MessageValidationError, Violation, validate_message


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


STATE_STRUCTURED = "structured"
STATE_REPAIRED = "repaired"
STATE_FAILED = "failed"

ELLIPSIS = "…"
PLACEHOLDER_SUBJECT = "changes"
MIN_SUBJECT_SPACE = 10
# How far back from the limit smart truncation looks for a break point.
BREAK_SEARCH_WINDOW = 10
BREAK_CHARS = " ,;"


@dataclass
class NormalizationResult:
    """Outcome of normalizing one model response.

    Attributes
    ----------
    message : CommitMessage
        The parsed (and possibly repaired) message.
    text : str
        ``message`` rendered for the commit.
    state : str
        ``"structured"``, ``"repaired"`` or ``"failed"``.
    strategy : str
        Name of the parse strategy that recognized the output.
    violations : list of Violation
        Rules still broken after repair; empty unless ``state`` is failed.
    raw : str
        The model output with reasoning tags and code fences removed.
    """

    message: CommitMessage
    text: str
    state: str
    strategy: str = ""
    violations: List[Violation] = field(default_factory=list)
    raw: str = ""

    @property
    def is_valid(self) -> bool:
        return not self.violations

    @property
    def fallback_text(self) -> str:
        """Best text to use when the caller accepts an invalid message."""
        return self.text or self.raw

    def error(self) -> Optional[MessageValidationError]:
        if self.is_valid:
            return None
        return MessageValidationError(self.violations)


def smart_truncate(text: str, limit: int) -> str:
    """Cut ``text`` to at most ``limit`` characters, ending in an ellipsis.

    The cut is moved back to a space, comma or semicolon when one occurs
    within the last few characters before the limit.
    """
    if len(text) <= limit:
        return text
    if limit <= 0:
        return ""
    cut = limit - len(ELLIPSIS)
    for index in range(cut, max(cut - BREAK_SEARCH_WINDOW, 0), -1):
        if text[index] in BREAK_CHARS:
            head = text[:index].rstrip(BREAK_CHARS)
            if head:
                return head + ELLIPSIS
            break
    return text[:cut].rstrip() + ELLIPSIS


def shrink_scope(scope: str) -> str:
    """Drop the last ``-`` or ``_`` separated segment of ``scope``."""
    index = max(scope.rfind("-"), scope.rfind("_"))
    return scope[:index] if index > 0 else ""


def _subject_space(message: CommitMessage, settings: CommitSettings) -> int:
    overhead = len(render_header(message, settings)) - len(message.subject)
    return settings.max_length - overhead


def enforce_lengths(message: CommitMessage, settings: CommitSettings) -> CommitMessage:
    """Bring the header and body of ``message`` within the configured limits."""
    if len(render_header(message, settings)) > settings.max_length:
        space = _subject_space(message, settings)
        while space < MIN_SUBJECT_SPACE and message.scope:
            message.scope = shrink_scope(message.scope)
            space = _subject_space(message, settings)
        if space < MIN_SUBJECT_SPACE:
            message.subject = PLACEHOLDER_SUBJECT
        else:
            message.subject = smart_truncate(message.subject, space)
        logger.debug("Shortened commit header to %r", render_header(message, settings))

    limit = settings.max_body_length
    if limit > 0 and len(message.body) > limit:
        message.body = message.body[:limit - len(ELLIPSIS)] + ELLIPSIS
        logger.debug("Truncated commit body to %d characters", limit)
    return message


class MessageNormalizer:
    """Turn raw model output into a commit message for one convention."""

    def __init__(self, settings: CommitSettings, files: Sequence[str] = ()) -> None:
        self.settings = settings
        self.files = list(files)

    def _prepare(self, message: CommitMessage) -> CommitMessage:
        if self.settings.is_conventional and not message.type:
            message.type = self.settings.default_type
        if self.settings.include_body and not message.body.strip():
            message.body = default_body(self.files)
        return enforce_lengths(message, self.settings)

    def _result(
        self, message: CommitMessage, state: str, strategy: str,
        violations: List[Violation], raw: str,
    ) -> NormalizationResult:
        return NormalizationResult(
            message=message,
            text=format_message(message, self.settings),
            state=state,
            strategy=strategy,
            violations=violations,
            raw=raw,
        )

    def normalize(self, raw: str) -> NormalizationResult:
        cleaned = clean_output(raw or "")
        message, strategy = parse_message(cleaned)
        if message is None:
            violation = Violation("parse", "model output did not contain a commit message")
            return NormalizationResult(CommitMessage(), "", STATE_FAILED, "", [violation], cleaned)

        message = self._prepare(message)
        violations = validate_message(message, self.settings)
        if not violations:
            return self._result(message, STATE_STRUCTURED, strategy, [], cleaned)

        logger.debug(
            "Commit message breaks %d rule(s): %s; repairing",
            len(violations), ", ".join(v.rule for v in violations),
        )
        message = enforce_lengths(repair_message(message, self.settings, self.files), self.settings)
        violations = validate_message(message, self.settings)
        if violations:
            logger.warning(
                "Commit message is still invalid after repair: %s",
                "; ".join(v.message for v in violations),
            )
            return self._result(message, STATE_FAILED, strategy, violations, cleaned)
        return self._result(message, STATE_REPAIRED, strategy, [], cleaned)


def normalize_message(
    raw: str,
    settings: Optional[CommitSettings] = None,
    files: Sequence[str] = (),
) -> NormalizationResult:
    """Normalize ``raw`` model output under ``settings``."""
    return MessageNormalizer(settings or CommitSettings(), files).normalize(raw)
