"""
Structured commit messages and their rendering.

A :class:`CommitMessage` is created fresh for every generation attempt,
adjusted in place by the normalizer and discarded once rendered.
"""

from __future__ import annotations

from dataclasses import dataclass

from commitron.config.settings import CONVENTION_CONVENTIONAL, CONVENTION_CUSTOM, CommitSettings


@dataclass
class CommitMessage:
    """A commit message split into its conventional parts.

    Attributes
    ----------
    type : str
        Conventional commit type, e.g. ``feat``.
    scope : str
        Optional lowercase scope.
    subject : str
        Single-line description.
    body : str
        Optional multi-line body.
    breaking : bool
        Whether the header carries the ``!`` breaking-change marker.
    """

    type: str = ""
    scope: str = ""
    subject: str = ""
    body: str = ""
    breaking: bool = False

    def header_prefix(self) -> str:
        """Return ``type(scope)!: `` or an empty string without a type."""
        if not self.type:
            return ""
        scope = f"({self.scope})" if self.scope else ""
        bang = "!" if self.breaking else ""
        return f"{self.type}{scope}{bang}: "


def render_header(message: CommitMessage, settings: CommitSettings) -> str:
    """Render the first line of ``message`` according to the convention."""
    if settings.convention == CONVENTION_CONVENTIONAL:
        return message.header_prefix() + message.subject
    if settings.convention == CONVENTION_CUSTOM and settings.custom_template:
        header = settings.custom_template
        if not message.scope:
            header = header.replace("({{scope}})", "")
        return (
            header.replace("{{type}}", message.type)
            .replace("{{scope}}", message.scope)
            .replace("{{subject}}", message.subject)
        )
    return message.subject


def format_message(message: CommitMessage, settings: CommitSettings) -> str:
    """Render ``message`` as the final commit text.

    The body, when rendered, is separated from the header by a blank line.
    """
    header = render_header(message, settings)
    body = message.body.strip()
    if settings.include_body and body:
        return f"{header}\n\n{body}"
    return header
