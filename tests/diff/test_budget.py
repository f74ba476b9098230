import unittest

import pytest

from commitron.diff.budget import (
    CONTEXT_HEADER,
    MODE_FULL,
    MODE_STATS,
    MODE_SUMMARY,
    TokenBudget,
    allocate,
    build_context_from_diff,
    truncation_notice,
)
from commitron.diff.parser import parse_diff
from commitron.diff.scoring import prioritize

from conftest import git_section, word_count


def items_for(diff):
    return prioritize(parse_diff(diff), word_count)


class TestTokenBudget(unittest.TestCase):
    def test_spend_and_fits(self) -> None:
        budget = TokenBudget(10)
        self.assertTrue(budget.fits(10))
        self.assertFalse(budget.fits(8, reserve=3))
        budget.spend(4)
        self.assertEqual((budget.remaining, budget.used), (6, 4))


class TestAllocate(unittest.TestCase):
    def setUp(self) -> None:
        self.two_files = git_section(
            "README.md", added=["docs", "more docs"]
        ) + git_section(
            "pkg/ai/x.go", added=[f"a{i}" for i in range(40)], removed=[f"r{i}" for i in range(5)]
        )

    def test_core_file_first_and_in_full(self) -> None:
        result = allocate(items_for(self.two_files), 10000, word_count)
        self.assertEqual(
            result.entries, [("pkg/ai/x.go", MODE_FULL), ("README.md", MODE_SUMMARY)]
        )
        self.assertTrue(result.text.startswith(CONTEXT_HEADER))
        self.assertLess(result.text.index("pkg/ai/x.go"), result.text.index("README.md"))
        self.assertEqual(result.truncated, 0)

    def test_both_files_in_full_with_lower_threshold(self) -> None:
        result = allocate(items_for(self.two_files), 10000, word_count, full_content_priority=0)
        self.assertEqual(result.entries, [("pkg/ai/x.go", MODE_FULL), ("README.md", MODE_FULL)])

    def test_oversized_single_file_gets_stats_line_only(self) -> None:
        long_line = " ".join(["tok"] * 40)
        diff = git_section("pkg/ai/big.go", added=[long_line] * 130)
        items = items_for(diff)
        self.assertGreater(items[0].token_count, 5000)

        result = allocate(items, 50, word_count)
        self.assertEqual(result.entries, [("pkg/ai/big.go", MODE_STATS)])
        self.assertIn("File: pkg/ai/big.go (+130, -0)\n", result.text)
        self.assertNotIn("Key changes", result.text)
        self.assertNotIn(long_line, result.text)
        self.assertLessEqual(word_count(result.text), 50)

    def test_truncation_notice_when_files_are_dropped(self) -> None:
        diff = "".join(
            git_section(f"lib/f{i}.go", added=[f"x{i} y", f"z{i} w", f"q{i} v"]) for i in range(10)
        )
        result = allocate(items_for(diff), 60, word_count)
        self.assertEqual(len(result.entries), 3)
        self.assertEqual(result.truncated, 7)
        self.assertTrue(result.text.endswith(truncation_notice(7)))
        self.assertIn("... and 7 more files (truncated to fit token limit)", result.text)
        self.assertEqual(result.tokens_used, word_count(result.text))
        self.assertLessEqual(result.tokens_used, 60)

    def test_allocation_is_deterministic(self) -> None:
        items = items_for(self.two_files)
        self.assertEqual(allocate(items, 40, word_count), allocate(items, 40, word_count))

    def test_header_is_dropped_when_it_does_not_fit(self) -> None:
        result = allocate(items_for(git_section("a.py", added=["x"])), 2, word_count)
        self.assertFalse(result.text.startswith(CONTEXT_HEADER))
        self.assertEqual(result.entries[0][1], MODE_STATS)


DIFFS = [
    git_section("pkg/ai/x.go", added=[f"line {i}" for i in range(30)]),
    git_section("README.md", added=["a"]) + git_section("cmd/run.go", removed=["b c d"] * 12),
    "".join(git_section(f"pkg/m{i}.py", added=[f"def f{i}(): pass"] * (i + 1)) for i in range(8)),
    git_section("huge.txt", added=[" ".join(["w"] * 60)] * 40),
]


@pytest.mark.parametrize("diff", DIFFS)
@pytest.mark.parametrize("budget", [1, 5, 10, 25, 50, 100, 400, 2000])
def test_output_never_exceeds_budget_except_final_stats_line(diff, budget) -> None:
    items = items_for(diff)
    result = allocate(items, budget, word_count)
    used = word_count(result.text)
    if used <= budget:
        return
    # The only permitted overflow: the last file reduced to its stats line.
    path, mode = result.entries[-1]
    assert mode == MODE_STATS
    unit = next(item.unit for item in items if item.path == path)
    assert used - word_count(unit.stats_line()) <= budget


def test_build_context_from_diff_returns_unparsable_input(count) -> None:
    assert build_context_from_diff("no sections here", 3, count) == "no sections here"


def test_build_context_from_diff_allocates(count) -> None:
    text = build_context_from_diff(git_section("a.py", added=["x"]), 1000, count)
    assert text.startswith(CONTEXT_HEADER)
    assert "a.py" in text
