import unittest

from commitron.config.settings import (
    STRATEGY_BATCH,
    STRATEGY_SUMMARIZE,
    STRATEGY_TRUNCATE,
    AISettings,
    ContextSettings,
)
from commitron.diff.context import (
    STRATEGY_NONE,
    build_context,
    resolve_token_budget,
    select_strategy,
)
from commitron.tokenizer.tokens import TRUNCATION_MARKER

from conftest import git_section, word_count


def big_diff(files=4, lines=30):
    return "".join(
        git_section(f"pkg/m{i}.go", added=[f"value{i} = compute{i}(a, b)"] * lines)
        for i in range(files)
    )


class TestBuildContext(unittest.TestCase):
    def test_small_diff_passes_through(self) -> None:
        diff = git_section("a.py", added=["x"])
        result = build_context(diff, ["a.py"], 1000, count=word_count)
        self.assertEqual(result.text, diff)
        self.assertEqual(result.strategy, STRATEGY_NONE)
        self.assertEqual(result.input_tokens, result.output_tokens)

    def test_summarize_when_moderately_over_budget(self) -> None:
        diff = big_diff()
        tokens = word_count(diff)
        budget = tokens // 2 + 10
        result = build_context(diff, [], budget, count=word_count)
        self.assertEqual(result.strategy, STRATEGY_SUMMARIZE)
        self.assertTrue(result.text.startswith("=== Diff Summary ==="))
        self.assertLess(result.output_tokens, result.input_tokens)
        self.assertEqual(result.file_count, 4)

    def test_batch_when_far_over_budget(self) -> None:
        diff = big_diff(files=6, lines=60)
        budget = word_count(diff) // 5
        result = build_context(diff, [], budget, count=word_count)
        self.assertEqual(result.strategy, STRATEGY_BATCH)
        self.assertTrue(result.text.startswith("=== Large Changeset Summary (6 files"))

    def test_truncate_when_summarization_disabled(self) -> None:
        diff = big_diff()
        budget = word_count(diff) // 2
        settings = ContextSettings(summarization_enabled=False)
        result = build_context(diff, [], budget, settings=settings, count=word_count)
        self.assertEqual(result.strategy, STRATEGY_TRUNCATE)
        self.assertTrue(result.text.endswith(TRUNCATION_MARKER))
        self.assertLessEqual(result.output_tokens, int(budget * 0.8))

    def test_unparsable_diff_is_truncated_as_one_block(self) -> None:
        text = "\n".join(f"line {i} of an opaque blob" for i in range(200))
        result = build_context(text, ["blob.bin"], 100, count=word_count)
        self.assertEqual(result.strategy, STRATEGY_TRUNCATE)
        self.assertTrue(result.text.startswith("Files changed:\n- blob.bin\n"))
        self.assertLessEqual(word_count(result.text), 80)

    def test_explicit_strategy_is_honoured(self) -> None:
        diff = big_diff()
        settings = ContextSettings(diff_strategy=STRATEGY_BATCH)
        result = build_context(diff, [], word_count(diff) - 1, settings=settings, count=word_count)
        self.assertEqual(result.strategy, STRATEGY_BATCH)


def test_select_strategy() -> None:
    assert select_strategy("auto", 150, 100) == STRATEGY_SUMMARIZE
    assert select_strategy("auto", 200, 100) == STRATEGY_BATCH
    assert select_strategy(STRATEGY_TRUNCATE, 1000, 100) == STRATEGY_TRUNCATE


def test_resolve_token_budget() -> None:
    ai = AISettings(provider="ollama", model="llama3")
    assert resolve_token_budget(ai, ContextSettings()) == 8000
    assert resolve_token_budget(ai, ContextSettings(max_input_tokens=500)) == 500
    assert resolve_token_budget(ai, ContextSettings(max_input_tokens=20000)) == 8000
