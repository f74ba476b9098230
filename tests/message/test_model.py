from commitron.config.settings import CONVENTION_CUSTOM, CONVENTION_NONE, CommitSettings
from commitron.message.model import CommitMessage, format_message, render_header


def test_conventional_header() -> None:
    settings = CommitSettings()
    assert render_header(CommitMessage("feat", "", "add login"), settings) == "feat: add login"
    assert render_header(CommitMessage("fix", "api", "handle nulls"), settings) == "fix(api): handle nulls"
    breaking = CommitMessage("feat", "api", "drop v1", breaking=True)
    assert render_header(breaking, settings) == "feat(api)!: drop v1"


def test_none_convention_renders_subject_only() -> None:
    settings = CommitSettings(convention=CONVENTION_NONE)
    assert render_header(CommitMessage("feat", "api", "Add login"), settings) == "Add login"


def test_custom_template() -> None:
    settings = CommitSettings(convention=CONVENTION_CUSTOM, custom_template="[{{type}}]({{scope}}) {{subject}}")
    assert render_header(CommitMessage("feat", "ui", "add tabs"), settings) == "[feat](ui) add tabs"
    assert render_header(CommitMessage("feat", "", "add tabs"), settings) == "[feat] add tabs"


def test_format_message_separates_body_with_blank_line() -> None:
    message = CommitMessage("fix", "", "handle nulls", body="  Guard against missing keys.\n")
    assert format_message(message, CommitSettings()) == "fix: handle nulls\n\nGuard against missing keys."


def test_format_message_omits_body_when_not_included() -> None:
    message = CommitMessage("fix", "", "handle nulls", body="Guard against missing keys.")
    assert format_message(message, CommitSettings(include_body=False)) == "fix: handle nulls"
