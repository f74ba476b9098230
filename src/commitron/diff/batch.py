"""
Batch summarization for change sets too large for a single pass.

Every file is reduced to its summary and the summaries are packed into
consecutive batches whose summed token cost stays under a per-batch
ceiling. Coverage of every file is guaranteed; detail is not.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from commitron.diff.file_unit import ScoredFileUnit
from commitron.diff.parser import parse_diff
from commitron.diff.scoring import PriorityScorer, prioritize
from commitron.tokenizer.tokens import TokenCounter


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


def pack_batches(
    items: Sequence[ScoredFileUnit],
    batch_tokens: int,
    count: TokenCounter,
) -> List[List[ScoredFileUnit]]:
    """Greedily group ``items`` so each batch's summaries fit ``batch_tokens``.

    A file whose summary alone exceeds the ceiling gets a batch of its own.
    """
    batches: List[List[ScoredFileUnit]] = []
    current: List[ScoredFileUnit] = []
    current_tokens = 0
    for item in items:
        cost = count(item.unit.summary)
        if current and current_tokens + cost > batch_tokens:
            batches.append(current)
            current, current_tokens = [], 0
        current.append(item)
        current_tokens += cost
    if current:
        batches.append(current)
    return batches


def batch_summarize(
    items: Sequence[ScoredFileUnit],
    batch_tokens: int,
    count: TokenCounter,
) -> str:
    """Render every file summary, grouped into numbered batches."""
    batches = pack_batches(items, batch_tokens, count)
    logger.debug(
        "Packed %d file(s) into %d batch(es) of at most %d tokens",
        len(items), len(batches), batch_tokens,
    )
    parts = [
        f"=== Large Changeset Summary ({len(items)} files in {len(batches)} batches) ===\n\n"
    ]
    for number, batch in enumerate(batches, start=1):
        parts.append(f"--- Batch {number}/{len(batches)} ({len(batch)} files) ---\n")
        for item in batch:
            parts.append(item.unit.summary + "\n")
        parts.append("\n")
    return "".join(parts)


def batch_summarize_diff(
    diff: str,
    batch_tokens: int,
    count: TokenCounter,
    scorer: Optional[PriorityScorer] = None,
) -> str:
    """Parse ``diff`` and batch-summarize it; unparsable input is returned as is."""
    units = parse_diff(diff)
    if not units:
        return diff
    return batch_summarize(prioritize(units, count, scorer), batch_tokens, count)
