from typing import Iterable, Optional

import pytest

from commitron.config import loader


def word_count(text: str) -> int:
    """Deterministic stand-in for a tokenizer: one token per word."""
    return len(text.split())


def git_section(
    path: str,
    added: Iterable[str] = (),
    removed: Iterable[str] = (),
    header: Optional[str] = None,
) -> str:
    """Build one ``diff --git`` file section."""
    added = list(added)
    removed = list(removed)
    lines = [f"diff --git a/{path} b/{path}"]
    if header:
        lines.append(header)
    lines += [
        "index 1111111..2222222 100644",
        f"--- a/{path}",
        f"+++ b/{path}",
        f"@@ -1,{len(removed)} +1,{len(added)} @@",
    ]
    lines += [f"-{line}" for line in removed]
    lines += [f"+{line}" for line in added]
    return "\n".join(lines) + "\n"


@pytest.fixture
def count():
    return word_count


@pytest.fixture
def make_section():
    return git_section


@pytest.fixture(autouse=True)
def isolate_home_config(tmp_path, monkeypatch):
    """Point the user-level configuration directory at a temporary path.

    Tests must never read or write the real ``~/.commitron`` directory.
    """
    monkeypatch.setattr(loader, "_get_config_directory", lambda: tmp_path / ".commitron")
