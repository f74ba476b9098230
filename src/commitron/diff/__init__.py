"""
Diff handling for commitron.

This package splits a unified diff into per-file units
(:mod:`commitron.diff.parser`), ranks them (:mod:`commitron.diff.scoring`)
and packs them into a token-bounded context
(:mod:`commitron.diff.budget`, :mod:`commitron.diff.batch`,
:mod:`commitron.diff.context`).
"""

from .file_unit import FileUnit, ScoredFileUnit  # noqa: F401
from .parser import parse_diff  # noqa: F401
from .scoring import PriorityScorer, prioritize  # noqa: F401
from .budget import AllocationResult, allocate, build_context_from_diff  # noqa: F401
from .batch import batch_summarize, pack_batches  # noqa: F401
from .context import ContextResult, build_context, resolve_token_budget  # noqa: F401
