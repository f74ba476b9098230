"""
Choosing how to fit a diff into the model's input budget.

:func:`build_context` is the entry point used by the generator. Diffs that
already fit are passed through untouched. Larger ones are summarized with
the budget allocator, batch-summarized when they are far over budget, or
truncated when summarization is disabled or impossible.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from commitron.config.settings import (
    STRATEGY_AUTO,
    STRATEGY_BATCH,
    STRATEGY_SUMMARIZE,
    STRATEGY_TRUNCATE,
    AISettings,
    ContextSettings,
)
from commitron.diff.batch import batch_summarize
from commitron.diff.budget import allocate
from commitron.diff.parser import parse_diff
from commitron.diff.scoring import PriorityScorer, build_rules, prioritize
from commitron.tokenizer.tokens import (
    TokenCounter,
    get_provider_token_limit,
    token_counter,
    truncate_to_token_limit,
)


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


STRATEGY_NONE = "none"

# Share of the budget handed to the summarizer and truncation, leaving
# headroom for the prompt around the context.
CONTEXT_SHARE = 0.8
BATCH_DIVISOR = 10
# Diffs up to this multiple of the budget are summarized, larger ones batched.
SUMMARIZE_RATIO_LIMIT = 2


@dataclass
class ContextResult:
    """The bounded context and how it was produced."""

    text: str
    strategy: str
    input_tokens: int
    output_tokens: int
    file_count: int = 0


def resolve_token_budget(ai: AISettings, context: ContextSettings) -> int:
    """Return the input budget: the configured maximum capped by the provider limit."""
    provider_limit = get_provider_token_limit(ai.provider, ai.model)
    configured = context.max_input_tokens
    if configured <= 0 or configured > provider_limit:
        return provider_limit
    return configured


def select_strategy(strategy: str, input_tokens: int, budget: int) -> str:
    if strategy != STRATEGY_AUTO:
        return strategy
    if input_tokens < budget * SUMMARIZE_RATIO_LIMIT:
        return STRATEGY_SUMMARIZE
    return STRATEGY_BATCH


def _opaque_block(diff: str, files: Sequence[str]) -> str:
    if not files:
        return diff
    listing = "\n".join(f"- {path}" for path in files)
    return f"Files changed:\n{listing}\n\n{diff}"


def build_context(
    diff: str,
    files: Sequence[str],
    budget: int,
    model: str = "",
    settings: Optional[ContextSettings] = None,
    count: Optional[TokenCounter] = None,
) -> ContextResult:
    """Produce a context string for ``diff`` that respects ``budget``.

    Parameters
    ----------
    diff : str
        The raw unified diff.
    files : Sequence[str]
        Paths of the changed files, as reported by the VCS.
    budget : int
        Maximum number of input tokens for the diff context.
    model : str, optional
        Model identifier used for token counting.
    settings : ContextSettings, optional
        Strategy selection and priority configuration.
    count : TokenCounter, optional
        Token counter; defaults to :func:`token_counter` for ``model``.

    Returns
    -------
    ContextResult
        The context text with the strategy used and token statistics.
    """
    settings = settings or ContextSettings()
    count = count or token_counter(model)
    input_tokens = count(diff)

    if input_tokens <= budget:
        return ContextResult(diff, STRATEGY_NONE, input_tokens, input_tokens, len(files))

    target = int(budget * CONTEXT_SHARE)
    strategy = select_strategy(settings.diff_strategy, input_tokens, budget)
    if not settings.summarization_enabled:
        strategy = STRATEGY_TRUNCATE
    logger.debug(
        "Diff has %d tokens, budget %d: using %s strategy", input_tokens, budget, strategy
    )

    units = parse_diff(diff) if strategy != STRATEGY_TRUNCATE else []
    if strategy == STRATEGY_TRUNCATE or not units:
        if strategy != STRATEGY_TRUNCATE:
            logger.debug("No file sections found; truncating the diff as a single block")
        text = truncate_to_token_limit(_opaque_block(diff, files), target, model, count)
        return ContextResult(text, STRATEGY_TRUNCATE, input_tokens, count(text), len(files))

    scorer = PriorityScorer(build_rules(settings.priority_paths))
    items = prioritize(units, count, scorer)
    if strategy == STRATEGY_BATCH:
        text = batch_summarize(items, max(budget // BATCH_DIVISOR, 1), count)
    else:
        text = allocate(items, target, count).text
    output_tokens = count(text)
    logger.debug(
        "Context reduced from %d to %d tokens (%.1f%% reduction)",
        input_tokens,
        output_tokens,
        100.0 * (1.0 - output_tokens / float(input_tokens)),
    )
    return ContextResult(text, strategy, input_tokens, output_tokens, len(units))
