"""
Heuristic priority scoring for changed files.

Scores decide which files the allocator spends its budget on. They favour
files that explain the intent of a change (core logic, new code) over
incidental churn (tests, docs, deletions), while the capped size term still
lets a heavily changed peripheral file earn some weight.

The path heuristics are an ordered table of :class:`ScoreRule` entries.
Rules are grouped by category; inside a category only the first matching
rule contributes, and contributions from different categories add up.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Pattern, Sequence, Tuple

from commitron.config.settings import DEFAULT_PRIORITY_PATHS
from commitron.diff.file_unit import (
    STATUS_ADDED,
    STATUS_DELETED,
    FileUnit,
    ScoredFileUnit,
)
from commitron.tokenizer.tokens import TokenCounter


SIZE_BONUS_CAP = 50
ADDED_BONUS = 20
DELETED_PENALTY = -30


@dataclass(frozen=True)
class ScoreRule:
    """A weighted path pattern within a scoring category."""

    category: str
    pattern: Pattern[str]
    weight: int


def _location_rule(marker: str, weight: int) -> ScoreRule:
    # Markers match at the start of the path or after a directory separator.
    return ScoreRule("location", re.compile(r"(?:^|/)" + re.escape(marker)), weight)


SOURCE_EXTENSIONS = (
    "go", "py", "js", "jsx", "ts", "tsx", "java", "kt", "rs", "c", "h", "cc",
    "cpp", "hpp", "cs", "rb", "php", "swift", "scala",
)

KIND_RULES: Tuple[ScoreRule, ...] = (
    ScoreRule(
        "source",
        re.compile(r"\.(?:%s)$" % "|".join(SOURCE_EXTENSIONS), re.IGNORECASE),
        30,
    ),
    ScoreRule(
        "test",
        re.compile(
            r"(?:^|/)(?:tests?|__tests__)/"
            r"|(?:^|/)test_[^/]*$"
            r"|_test\.\w+$"
            r"|\.(?:test|spec)\.\w+$"
        ),
        -20,
    ),
    ScoreRule("docs", re.compile(r"\.(?:md|rst|txt|adoc)$", re.IGNORECASE), -30),
    ScoreRule(
        "config",
        re.compile(r"\.(?:json|ya?ml|toml|ini|cfg|xml)$", re.IGNORECASE),
        10,
    ),
)


def build_rules(priority_paths: Optional[Iterable[Tuple[str, int]]] = None) -> Tuple[ScoreRule, ...]:
    """Return the full rule table for the given location markers."""
    markers = DEFAULT_PRIORITY_PATHS if priority_paths is None else priority_paths
    return tuple(_location_rule(marker, weight) for marker, weight in markers) + KIND_RULES


DEFAULT_RULES = build_rules()


class PriorityScorer:
    """Score :class:`FileUnit` objects against an ordered rule table."""

    def __init__(self, rules: Sequence[ScoreRule] = DEFAULT_RULES) -> None:
        self.rules = tuple(rules)

    def path_score(self, path: str) -> int:
        score = 0
        matched = set()
        for rule in self.rules:
            if rule.category in matched:
                continue
            if rule.pattern.search(path):
                matched.add(rule.category)
                score += rule.weight
        return score

    def score(self, unit: FileUnit) -> int:
        """Return the non-negative priority of ``unit``."""
        score = self.path_score(unit.path)
        score += min(unit.added_lines + unit.removed_lines, SIZE_BONUS_CAP)
        if unit.status == STATUS_ADDED:
            score += ADDED_BONUS
        elif unit.status == STATUS_DELETED:
            score += DELETED_PENALTY
        return max(score, 0)


def prioritize(
    units: Iterable[FileUnit],
    count: TokenCounter,
    scorer: Optional[PriorityScorer] = None,
) -> List[ScoredFileUnit]:
    """Score and token-count ``units``, highest priority first.

    The sort is stable, so files with equal priority keep diff order.
    """
    scorer = scorer or PriorityScorer()
    scored = [
        ScoredFileUnit(unit=unit, priority=scorer.score(unit), token_count=count(unit.raw_content))
        for unit in units
    ]
    scored.sort(key=lambda item: -item.priority)
    return scored
