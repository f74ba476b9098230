"""
Prompt construction for commit message generation.

The prompt asks for a JSON object, which the embedded-JSON parse strategy
handles best, but the normalizer copes with plain-text answers as well.
"""

from __future__ import annotations

import json
from textwrap import dedent
from typing import Sequence

from commitron.config.settings import CONVENTION_CUSTOM, CommitSettings


def _convention_rules(settings: CommitSettings) -> str:
    if settings.is_conventional:
        return dedent(
            f"""
            Follow the Conventional Commits rules:
            1. "type" MUST be one of: {", ".join(settings.allowed_types)}
            2. "type" MUST be lowercase. Never start the header with a bare colon.
            3. "subject" MUST start lowercase and MUST NOT end with a period.
            4. "scope" is optional; if used it MUST be lowercase without spaces
               or special characters.
            5. The whole header "type(scope): subject" MUST stay under
               {settings.max_length} characters.
            Examples: "fix: handle empty config file", "feat(auth): add login timeout"
            """
        ).strip()
    if settings.convention == CONVENTION_CUSTOM and settings.custom_template:
        return (
            f"The header will be rendered with the template {settings.custom_template!r}; "
            f"keep it under {settings.max_length} characters."
        )
    return f"Keep the subject under {settings.max_length} characters."


def _body_rules(settings: CommitSettings) -> str:
    if not settings.include_body:
        return 'Do NOT include a body; set "body" to an empty string.'
    return (
        "You MUST include a body of at most "
        f"{settings.max_body_length} characters. Describe what changed and why, "
        "briefly and technically. Do NOT list files or line statistics and do not "
        'start with phrases like "This commit" or "The changes".'
    )


def build_prompt(settings: CommitSettings, files: Sequence[str], context: str) -> str:
    """Construct the prompt for one commit message.

    Parameters
    ----------
    settings : CommitSettings
        The convention and limits the message must respect.
    files : Sequence[str]
        Paths of the changed files.
    context : str
        The bounded diff context produced by :func:`build_context`.
    """
    files_json = json.dumps(list(files))
    return dedent(
        """
        You are an expert software engineer writing a commit message.

        IMPORTANT: Return ONLY a JSON object, with no reasoning, preamble or
        explanation before or after it:
        {{"type": "feat", "scope": "", "subject": "concise subject", "body": "what and why"}}

        {rules}

        {body}

        FILES CHANGED:
        {files}

        CHANGES:
        {context}
        """
    ).strip().format(
        rules=_convention_rules(settings),
        body=_body_rules(settings),
        files=files_json,
        context=context,
    )
