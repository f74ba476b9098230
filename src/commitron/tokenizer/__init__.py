"""
Token counting for commitron.

See :mod:`commitron.tokenizer.tokens` for the tiktoken-backed counter,
line-boundary truncation and the provider token-limit table.
"""

from .tokens import (  # noqa: F401
    TRUNCATION_MARKER,
    TokenCounter,
    count_tokens,
    get_provider_token_limit,
    token_counter,
    truncate_to_token_limit,
)
