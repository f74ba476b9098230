import unittest

from commitron.message.model import CommitMessage
from commitron.message.parsers import (
    PARSE_STRATEGIES,
    extract_json_object,
    parse_embedded_json,
    parse_header,
    parse_json,
    parse_message,
    parse_text,
    strip_code_fences,
    strip_thinking_tags,
)


class TestCleaning(unittest.TestCase):
    def test_strip_thinking_tags(self) -> None:
        self.assertEqual(strip_thinking_tags("<think>reasoning...</think>Answer"), "Answer")
        self.assertEqual(
            strip_thinking_tags("<THINKING>\nmulti\nline\n</THINKING>\n\nfeat: x"), "feat: x"
        )
        self.assertEqual(strip_thinking_tags("<reasoning>a</reasoning><thought>b</thought>ok"), "ok")

    def test_strip_code_fences(self) -> None:
        self.assertEqual(strip_code_fences("```json\n{\"a\": 1}\n```"), '{"a": 1}')
        self.assertEqual(strip_code_fences("feat: x"), "feat: x")


class TestJsonStrategies(unittest.TestCase):
    def test_extract_first_balanced_object(self) -> None:
        text = 'Sure! {"subject": "a {b} c", "body": "x"} and {"other": 1}'
        self.assertEqual(extract_json_object(text), '{"subject": "a {b} c", "body": "x"}')

    def test_braces_inside_strings_do_not_count(self) -> None:
        text = '{"subject": "close } early \\" quote", "type": "fix"}'
        self.assertEqual(extract_json_object(text), text)

    def test_no_balanced_object(self) -> None:
        self.assertIsNone(extract_json_object("{ never closed"))
        self.assertIsNone(extract_json_object("plain"))

    def test_embedded_json(self) -> None:
        text = 'Here is the message:\n{"type": "feat", "scope": "cli", "subject": "add flag", "body": "Adds --dry-run."}\nThanks'
        self.assertEqual(
            parse_embedded_json(text),
            CommitMessage("feat", "cli", "add flag", "Adds --dry-run."),
        )

    def test_embedded_json_requires_message_fields(self) -> None:
        self.assertIsNone(parse_embedded_json('Result: {"answer": 42}'))
        self.assertIsNone(parse_embedded_json('{"type": broken}'))

    def test_json_body_list_is_joined(self) -> None:
        message = parse_json('{"type": "fix", "subject": "x", "body": ["- one", "- two"]}')
        self.assertEqual(message.body, "- one\n- two")

    def test_json_header_in_subject(self) -> None:
        message = parse_json('{"subject": "fix(api)!: drop v1 routes"}')
        self.assertEqual(
            (message.type, message.scope, message.subject, message.breaking),
            ("fix", "api", "drop v1 routes", True),
        )

    def test_json_null_fields(self) -> None:
        message = parse_json('{"type": "docs", "scope": null, "subject": "fix typo", "body": null}')
        self.assertEqual((message.scope, message.body), ("", ""))


class TestTextStrategy(unittest.TestCase):
    def test_header_parsing(self) -> None:
        self.assertEqual(parse_header("feat(parser): handle renames"), CommitMessage("feat", "parser", "handle renames"))
        self.assertEqual(parse_header("[fix]: guard nulls"), CommitMessage("fix", "", "guard nulls"))
        self.assertEqual(parse_header(": add feature"), CommitMessage("", "", "add feature"))
        self.assertEqual(parse_header("Add a feature"), CommitMessage("", "", "Add a feature"))
        self.assertTrue(parse_header("feat!: remove api").breaking)

    def test_body_after_blank_line(self) -> None:
        message = parse_text("fix: guard nulls\n\nMissing keys raised KeyError.\n\nNow they default.")
        self.assertEqual(message.subject, "guard nulls")
        self.assertEqual(message.body, "Missing keys raised KeyError.\n\nNow they default.")

    def test_body_without_blank_line(self) -> None:
        message = parse_text("fix: guard nulls\nMissing keys raised KeyError.")
        self.assertEqual(message.body, "Missing keys raised KeyError.")

    def test_skips_meta_commentary(self) -> None:
        text = "Let me analyze the diff first.\nHere's the commit message:\n\nrefactor(core): split allocator\n\nMoves packing into its own module."
        message = parse_text(text)
        self.assertEqual((message.type, message.scope, message.subject), ("refactor", "core", "split allocator"))
        self.assertEqual(message.body, "Moves packing into its own module.")

    def test_header_with_meta_words_beats_preamble(self) -> None:
        text = "Looking at the diff, this fixes a leak.\n\nfix: handle pallet metadata\n\nRefresh cached pallet records."
        message = parse_text(text)
        self.assertEqual((message.type, message.subject), ("fix", "handle pallet metadata"))
        self.assertEqual(message.body, "Refresh cached pallet records.")

    def test_marked_sections(self) -> None:
        text = "[SUBJECT]\nfeat: add cache\n[BODY]\nCaches encodings per model."
        message = parse_text(text)
        self.assertEqual((message.type, message.subject), ("feat", "add cache"))
        self.assertEqual(message.body, "Caches encodings per model.")

    def test_inline_markers(self) -> None:
        message = parse_text("Subject: docs: explain budgets\nBody: Documents the notice reserve.")
        self.assertEqual((message.type, message.subject), ("docs", "explain budgets"))
        self.assertEqual(message.body, "Documents the notice reserve.")

    def test_placeholder_body_is_dropped(self) -> None:
        message = parse_text("feat: add x\n\n<optional body>")
        self.assertEqual(message.body, "")


class TestParseMessage(unittest.TestCase):
    def test_strategy_order(self) -> None:
        self.assertEqual([name for name, _ in PARSE_STRATEGIES], ["embedded-json", "json", "text"])

    def test_reports_winning_strategy(self) -> None:
        _, name = parse_message('```json\n{"type": "fix", "subject": "x"}\n```')
        self.assertEqual(name, "embedded-json")
        _, name = parse_message("<think>hmm</think>fix: x")
        self.assertEqual(name, "text")

    def test_first_success_wins(self) -> None:
        calls = []

        def first(text):
            calls.append("first")
            return None

        def second(text):
            calls.append("second")
            return CommitMessage(subject="from second")

        def third(text):
            calls.append("third")
            return CommitMessage(subject="from third")

        message, name = parse_message("anything", [("a", first), ("b", second), ("c", third)])
        self.assertEqual((message.subject, name), ("from second", "b"))
        self.assertEqual(calls, ["first", "second"])

    def test_empty_output(self) -> None:
        self.assertEqual(parse_message("   "), (None, ""))
        self.assertEqual(parse_message("<think>only thoughts</think>"), (None, ""))
