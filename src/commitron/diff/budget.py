"""
Greedy token-budget allocation over prioritized file units.

The allocator walks files in priority order and, for each one, commits the
richest representation it can afford:

1. the full diff, for high-priority files that use less than half of the
   remaining budget;
2. otherwise the file's summary;
3. otherwise a one-line ``File: path (+A, -R)`` stats entry.

A small reserve is always kept back so that the truncation notice fits
when files have to be dropped. The only way the output can exceed the
budget is a stats line for the final file, which is the smallest thing a
file can be reduced to.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from commitron.diff.file_unit import ScoredFileUnit
from commitron.diff.parser import parse_diff
from commitron.diff.scoring import PriorityScorer, prioritize
from commitron.tokenizer.tokens import TokenCounter


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


CONTEXT_HEADER = "=== Diff Summary ===\n\n"
FULL_CONTENT_PRIORITY = 100
NOTICE_RESERVE_TOKENS = 20

MODE_FULL = "full"
MODE_SUMMARY = "summary"
MODE_STATS = "stats"


def truncation_notice(remaining_files: int) -> str:
    return f"\n... and {remaining_files} more files (truncated to fit token limit)\n"


class TokenBudget:
    """Mutable token counter owned by a single allocation pass."""

    def __init__(self, total: int) -> None:
        self.total = total
        self.remaining = total

    @property
    def used(self) -> int:
        return self.total - self.remaining

    def fits(self, cost: int, reserve: int = 0) -> bool:
        return cost <= self.remaining - reserve

    def spend(self, cost: int) -> None:
        self.remaining -= cost

    def __repr__(self) -> str:
        return f"TokenBudget(total={self.total}, remaining={self.remaining})"


@dataclass
class AllocationResult:
    """Outcome of one allocation pass.

    Attributes
    ----------
    text : str
        The bounded context block.
    tokens_used : int
        Tokens charged against the budget.
    entries : list of (path, mode)
        How each included file was represented.
    truncated : int
        Number of files dropped behind the truncation notice.
    """

    text: str
    tokens_used: int
    entries: List[Tuple[str, str]] = field(default_factory=list)
    truncated: int = 0


def allocate(
    items: Sequence[ScoredFileUnit],
    budget: int,
    count: TokenCounter,
    full_content_priority: int = FULL_CONTENT_PRIORITY,
) -> AllocationResult:
    """Build a context block for ``items`` within ``budget`` tokens.

    Parameters
    ----------
    items : Sequence[ScoredFileUnit]
        Files ordered by descending priority.
    budget : int
        Maximum number of tokens the block may use.
    count : TokenCounter
        Token counter for the target model.
    full_content_priority : int, optional
        Minimum priority for a file to be considered for full inclusion.
    """
    tokens = TokenBudget(budget)
    parts: List[str] = []
    result = AllocationResult(text="", tokens_used=0)

    header_cost = count(CONTEXT_HEADER)
    if tokens.fits(header_cost):
        parts.append(CONTEXT_HEADER)
        tokens.spend(header_cost)

    reserve = max(NOTICE_RESERVE_TOKENS, count(truncation_notice(len(items))))

    for index, item in enumerate(items):
        pending = len(items) - index
        # The last file can always be reduced to its stats line.
        if pending > 1 and tokens.remaining <= reserve:
            result.truncated = pending
            break
        # Keep room for the notice while later files might still be dropped.
        room_reserve = reserve if pending > 1 else 0
        chosen = _choose_representation(item, tokens, room_reserve, count, full_content_priority)
        if chosen is None:
            result.truncated = pending
            break
        mode, text, cost = chosen
        parts.append(text)
        tokens.spend(cost)
        result.entries.append((item.path, mode))
        logger.debug(
            "Included %s as %s (%d tokens, priority %d, %d left)",
            item.path, mode, cost, item.priority, tokens.remaining,
        )

    if result.truncated:
        notice = truncation_notice(result.truncated)
        notice_cost = count(notice)
        if tokens.fits(notice_cost):
            parts.append(notice)
            tokens.spend(notice_cost)
        logger.debug("Dropped %d file(s) to stay within %d tokens", result.truncated, budget)

    result.text = "".join(parts)
    result.tokens_used = tokens.used
    return result


def _choose_representation(
    item: ScoredFileUnit,
    tokens: TokenBudget,
    reserve: int,
    count: TokenCounter,
    full_content_priority: int,
) -> Optional[Tuple[str, str, int]]:
    """Return ``(mode, text, cost)`` for ``item`` or ``None`` to stop."""
    if item.priority >= full_content_priority and item.token_count < tokens.remaining // 2:
        full = item.unit.raw_content + "\n"
        cost = count(full)
        if tokens.fits(cost, reserve):
            return MODE_FULL, full, cost

    summary = item.unit.summary + "\n"
    cost = count(summary)
    if tokens.fits(cost, reserve):
        return MODE_SUMMARY, summary, cost

    stats = item.unit.stats_line()
    cost = count(stats)
    if tokens.fits(cost, reserve) or reserve == 0:
        # With no reserve this is the last file: the stats line is the
        # one permitted overflow.
        return MODE_STATS, stats, cost
    return None


def build_context_from_diff(
    diff: str,
    budget: int,
    count: TokenCounter,
    scorer: Optional[PriorityScorer] = None,
) -> str:
    """Parse, prioritize and allocate ``diff`` within ``budget`` tokens.

    A diff without any recognizable file section is returned unchanged.
    """
    units = parse_diff(diff)
    if not units:
        return diff
    return allocate(prioritize(units, count, scorer), budget, count).text
