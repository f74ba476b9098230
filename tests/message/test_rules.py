import unittest

from commitron.config.settings import CONVENTION_NONE, CommitSettings
from commitron.message.model import CommitMessage
from commitron.message.rules import MessageValidationError, Violation, validate_message


BODY = "Explain what the change does and why."


def rules_of(message, settings=None):
    return [v.rule for v in validate_message(message, settings or CommitSettings())]


class TestValidateMessage(unittest.TestCase):
    def test_valid_message(self) -> None:
        self.assertEqual(rules_of(CommitMessage("feat", "cli", "add dry run flag", BODY)), [])

    def test_type_rules(self) -> None:
        self.assertEqual(rules_of(CommitMessage("", "", "add x", BODY)), ["type-required"])
        self.assertEqual(rules_of(CommitMessage("Feat", "", "add x", BODY)), ["type-case"])
        self.assertEqual(rules_of(CommitMessage("feature", "", "add x", BODY)), ["type-allowed"])

    def test_subject_rules(self) -> None:
        self.assertEqual(rules_of(CommitMessage("fix", "", "", BODY)), ["subject-required"])
        self.assertEqual(rules_of(CommitMessage("fix", "", "guard nulls.", BODY)), ["subject-period"])
        self.assertEqual(rules_of(CommitMessage("fix", "", "Guard nulls", BODY)), ["subject-case"])
        self.assertIn("subject-newline", rules_of(CommitMessage("fix", "", "guard\nnulls", BODY)))
        self.assertEqual(rules_of(CommitMessage("fix", "", "Update", BODY)), ["subject-case", "subject-generic"])

    def test_ellipsis_is_not_a_period(self) -> None:
        self.assertEqual(rules_of(CommitMessage("fix", "", "guard nulls in the…", BODY)), [])

    def test_scope_rules(self) -> None:
        self.assertEqual(rules_of(CommitMessage("fix", "API", "x y", BODY)), ["scope-case"])
        self.assertEqual(rules_of(CommitMessage("fix", "my api", "x y", BODY)), ["scope-whitespace"])
        self.assertEqual(rules_of(CommitMessage("fix", "api/v2", "x y", BODY)), ["scope-punctuation"])
        self.assertEqual(rules_of(CommitMessage("fix", "update", "x y", BODY)), ["scope-generic"])
        self.assertEqual(rules_of(CommitMessage("fix", "token-budget", "x y", BODY)), [])

    def test_header_length(self) -> None:
        settings = CommitSettings(max_length=20)
        self.assertEqual(
            rules_of(CommitMessage("feat", "", "a subject that is too long", BODY), settings),
            ["header-length"],
        )

    def test_body_rules(self) -> None:
        self.assertEqual(rules_of(CommitMessage("fix", "", "x y", "")), ["body-required"])
        self.assertEqual(rules_of(CommitMessage("fix", "", "x y", "short")), ["body-length"])
        self.assertIn("body-placeholder", rules_of(CommitMessage("fix", "", "x y", "<descriptive body here>")))
        self.assertEqual(rules_of(CommitMessage("fix", "", "x y", "Files: a.py, b.py")), ["body-file-list"])
        self.assertEqual(rules_of(CommitMessage("fix", "", "x y", "- src/a.py\n- src/b.py")), ["body-file-list"])
        self.assertEqual(
            rules_of(CommitMessage("fix", "", "x y", "This commit fixes the parser.")), ["body-meta"]
        )

    def test_body_not_checked_when_not_included(self) -> None:
        settings = CommitSettings(include_body=False)
        self.assertEqual(rules_of(CommitMessage("fix", "", "x y", ""), settings), [])

    def test_none_convention_checks_subject_and_body_only(self) -> None:
        settings = CommitSettings(convention=CONVENTION_NONE)
        self.assertEqual(rules_of(CommitMessage("", "Bad Scope", "Update things.", BODY), settings), [])
        self.assertEqual(rules_of(CommitMessage("", "", "", BODY), settings), ["subject-required"])

    def test_reports_every_violation(self) -> None:
        rules = rules_of(CommitMessage("Feature", "My Scope", "Fixed it.", ""))
        self.assertEqual(
            rules,
            [
                "type-case",
                "type-allowed",
                "scope-case",
                "scope-whitespace",
                "subject-period",
                "subject-case",
                "body-required",
            ],
        )


def test_validation_error_carries_violations() -> None:
    violations = [Violation("a", "first"), Violation("b", "second")]
    error = MessageValidationError(violations)
    assert error.violations == violations
    assert str(error) == "first; second"
