"""
Token counting and token-aware truncation.

Counts are produced with :mod:`tiktoken`. Models unknown to tiktoken are
counted with the ``cl100k_base`` encoding, and when no encoding can be
loaded at all (for example on a machine without network access to fetch
the BPE files) a character-count estimate is used instead. Every function
here is deterministic for a given input and model.
"""

from __future__ import annotations

import functools
import logging
import math
from typing import Callable, Optional

import tiktoken


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


TokenCounter = Callable[[str], int]

DEFAULT_ENCODING = "cl100k_base"
CHARS_PER_TOKEN = 3.5
TRUNCATION_MARKER = "...[truncated to fit token limit]"


@functools.lru_cache(maxsize=None)
def _encoding_for(model: str) -> Optional["tiktoken.Encoding"]:
    """Return the tiktoken encoding for ``model`` or ``None`` if unavailable."""
    if model:
        try:
            return tiktoken.encoding_for_model(model)
        except KeyError:
            logger.debug("No tiktoken encoding registered for model %r", model)
    try:
        return tiktoken.get_encoding(DEFAULT_ENCODING)
    except Exception as exc:  # encoding files could not be loaded
        logger.warning(
            "Falling back to character-based token estimates: %s", exc
        )
        return None


def estimate_tokens(text: str) -> int:
    """Estimate a token count from the character length of ``text``."""
    if not text:
        return 0
    return int(math.ceil(len(text) / CHARS_PER_TOKEN))


def count_tokens(text: str, model: str = "") -> int:
    """Return the number of tokens in ``text`` under ``model``'s tokenizer.

    Parameters
    ----------
    text : str
        The text to measure.
    model : str, optional
        Model identifier, e.g. ``"gpt-4"``. Unknown or empty identifiers
        use the ``cl100k_base`` encoding.

    Returns
    -------
    int
        A non-negative token count. Empty text counts as zero.
    """
    if not text:
        return 0
    encoding = _encoding_for(model)
    if encoding is None:
        return estimate_tokens(text)
    # Diffs may legitimately contain strings such as "<|endoftext|>".
    return len(encoding.encode(text, disallowed_special=()))


def token_counter(model: str = "") -> TokenCounter:
    """Return a one-argument counter bound to ``model``."""
    return functools.partial(count_tokens, model=model)


def truncate_to_token_limit(
    text: str,
    max_tokens: int,
    model: str = "",
    count: Optional[TokenCounter] = None,
) -> str:
    """Truncate ``text`` at a line boundary so that it fits ``max_tokens``.

    When anything is cut, :data:`TRUNCATION_MARKER` is appended as the last
    line. The marker is included in the limit. If not even the marker fits,
    an empty string is returned.
    """
    count = count or token_counter(model)
    if count(text) <= max_tokens:
        return text

    marker_tokens = count(TRUNCATION_MARKER)
    if marker_tokens > max_tokens:
        return ""

    kept = []
    total = marker_tokens
    for line in text.split("\n"):
        line_tokens = count(line + "\n")
        if total + line_tokens > max_tokens:
            break
        kept.append(line)
        total += line_tokens

    # Per-line counts are an approximation of the joined text's count.
    result = "\n".join(kept + [TRUNCATION_MARKER])
    while kept and count(result) > max_tokens:
        kept.pop()
        result = "\n".join(kept + [TRUNCATION_MARKER])
    logger.debug(
        "Truncated text from %d to %d lines to fit %d tokens",
        text.count("\n") + 1,
        len(kept),
        max_tokens,
    )
    return result


def get_provider_token_limit(provider: str, model: str) -> int:
    """Return a conservative input token ceiling for ``provider``/``model``.

    The limits leave room for the response within each model family's
    context window.
    """
    provider = (provider or "").lower()
    model = (model or "").lower()

    if provider == "openai":
        if "gpt-3.5-turbo" in model:
            return 12000 if "16k" in model else 3000
        return 100000
    if provider == "claude":
        if "claude-3" in model or "claude-4" in model:
            return 180000
        return 90000
    if provider == "gemini":
        if "1.5" in model or "2.0" in model:
            return 900000
        return 30000
    if provider == "ollama":
        return 8000
    return 100000
