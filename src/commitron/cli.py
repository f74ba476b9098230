"""
Command line interface for commitron.

This module defines the ``main`` click group used as the entry point of
the ``commitron`` command. ``generate`` runs the whole pipeline against
the current Git repository; ``context`` and ``normalize`` expose the two
halves of it on their own for scripting and inspection; ``init`` writes an
example configuration file.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional, Tuple

import click

from commitron import __version__
from commitron.config.loader import ConfigError, load_config, save_example_config
from commitron.config.settings import Config
from commitron.diff.context import build_context, resolve_token_budget
from commitron.llm.commit_message_generator import CommitMessageGenerator
from commitron.llm.ollama_client import LLMError, OllamaClient
from commitron.message.normalizer import STATE_REPAIRED, NormalizationResult, normalize_message
from commitron.vcs.git_client import GitClient, GitError


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------
EXIT_SUCCESS = 0
EXIT_GENERIC_ERROR = 1
EXIT_NO_REPO = 3
EXIT_NO_CHANGES = 4
EXIT_CONFIG_ERROR = 5
EXIT_VCS_FAILURE = 6
EXIT_LLM_FAILURE = 7
EXIT_VALIDATION_FAILURE = 8


# ---------------------------------------------------------------------------
# Progress and status display utilities
# ---------------------------------------------------------------------------

class ProgressIndicator:
    """Simple progress indicator for user feedback."""

    def __init__(self, message: str):
        self.message = message
        self.start_time = 0.0

    def __enter__(self):
        self.start_time = time.time()
        click.echo(f"→ {self.message}...", err=True)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            elapsed = time.time() - self.start_time
            click.echo(f"  ✓ Done ({elapsed:.1f}s)", err=True)
        return False


def print_info(message: str, indent: int = 0):
    """Print an info message."""
    prefix = "  " * indent
    click.echo(f"{prefix}ℹ {message}", err=True)


def print_success(message: str, indent: int = 0):
    """Print a success message."""
    prefix = "  " * indent
    click.echo(f"{prefix}✓ {message}", err=True)


def print_warning(message: str, indent: int = 0):
    """Print a warning message."""
    prefix = "  " * indent
    click.echo(f"{prefix}⚠ {message}", err=True)


def print_error(message: str, indent: int = 0):
    """Print an error message."""
    prefix = "  " * indent
    click.echo(f"{prefix}✗ {message}", err=True)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def _load(config_path: Optional[Path]) -> Config:
    try:
        return load_config(config_path)
    except ConfigError as exc:
        print_error(f"Configuration error: {exc}")
        raise click.exceptions.Exit(EXIT_CONFIG_ERROR)


def _report(result: NormalizationResult, strict: bool) -> str:
    """Return the text to use for ``result``, exiting under ``strict``."""
    if result.is_valid:
        if result.state == STATE_REPAIRED:
            print_info("Commit message was repaired to follow the convention")
        return result.text
    for violation in result.violations:
        print_warning(violation.message, indent=1)
    if strict:
        print_error("Commit message does not follow the configured convention.")
        raise click.exceptions.Exit(EXIT_VALIDATION_FAILURE)
    print_warning("Using the best-effort message.")
    return result.fallback_text


def _collect_changes(git: GitClient) -> Tuple[str, list]:
    files = git.get_staged_files()
    if not files:
        if not git.get_modified_files():
            return "", []
        print_info("No staged changes; staging modified tracked files")
        git.stage_all()
        files = git.get_staged_files()
    return git.get_staged_diff(), files


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Configuration file (default: ~/.commitron/config.json).",
)


@click.group()
@click.option("--verbose", is_flag=True, help="Enable verbose (debug) output.")
@click.version_option(version=__version__, prog_name="commitron")
def main(verbose: bool) -> None:
    """Generate commit messages for staged changes with an LLM."""
    # force=True reconfigures handlers on repeated invocations (tests).
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
        force=True,
    )


@main.command()
@click.option("--dry-run", is_flag=True, help="Print the message without committing.")
@click.option("--strict", is_flag=True, help="Fail instead of using an invalid message.")
@config_option
def generate(dry_run: bool, strict: bool, config_path: Optional[Path]) -> None:
    """Generate a commit message for the staged changes and commit."""
    repo_root = GitClient.find_repo_root(Path.cwd())
    if repo_root is None:
        print_error("No Git repository found in current directory or parent directories.")
        raise click.exceptions.Exit(EXIT_NO_REPO)
    logger.debug("Repository root: %s", repo_root)

    config = _load(config_path)
    git = GitClient(repo_root)
    try:
        diff, files = _collect_changes(git)
    except GitError as exc:
        print_error(f"Git error: {exc}")
        raise click.exceptions.Exit(EXIT_VCS_FAILURE)
    if not files or not diff.strip():
        print_warning("No changes to commit.")
        raise click.exceptions.Exit(EXIT_NO_CHANGES)
    print_info(f"{len(files)} file(s) staged")

    generator = CommitMessageGenerator(OllamaClient.from_settings(config.ai), config)
    try:
        with ProgressIndicator(f"Generating commit message with {config.ai.model}"):
            generation = generator.generate(diff, files)
    except LLMError as exc:
        print_error(f"LLM error: {exc}")
        raise click.exceptions.Exit(EXIT_LLM_FAILURE)

    message = _report(generation.normalization, strict)
    click.echo(message)
    if dry_run:
        print_info("Dry run: no commit created")
        return
    try:
        git.commit(message)
    except GitError as exc:
        print_error(f"Commit failed: {exc}")
        raise click.exceptions.Exit(EXIT_VCS_FAILURE)
    print_success("Changes committed")


@main.command()
@click.argument("diff_file", type=click.File("r"), default="-")
@click.option("--budget", type=click.IntRange(min=1), default=None, help="Token budget for the context.")
@click.option("--model", default=None, help="Model used for token counting.")
@config_option
def context(diff_file, budget: Optional[int], model: Optional[str], config_path: Optional[Path]) -> None:
    """Print the token-bounded context for a unified diff."""
    config = _load(config_path)
    if budget is None:
        budget = resolve_token_budget(config.ai, config.context)
    result = build_context(
        diff_file.read(),
        [],
        budget,
        model=model or config.tokenizer_model,
        settings=config.context,
    )
    click.echo(result.text, nl=not result.text.endswith("\n"))
    print_info(
        f"strategy={result.strategy} files={result.file_count} "
        f"tokens={result.input_tokens}->{result.output_tokens} budget={budget}"
    )


@main.command()
@click.argument("text_file", type=click.File("r"), default="-")
@click.option("--file", "files", multiple=True, help="Changed file path (repeatable).")
@click.option("--strict", is_flag=True, help="Exit with an error if the message stays invalid.")
@config_option
def normalize(text_file, files: Tuple[str, ...], strict: bool, config_path: Optional[Path]) -> None:
    """Normalize raw model output into a commit message."""
    config = _load(config_path)
    result = normalize_message(text_file.read(), config.commit, files)
    logger.debug("Normalization state: %s (strategy %s)", result.state, result.strategy)
    click.echo(_report(result, strict))


@main.command()
@click.option("--force", is_flag=True, help="Overwrite an existing configuration file.")
@config_option
def init(force: bool, config_path: Optional[Path]) -> None:
    """Write an example configuration file."""
    try:
        path = save_example_config(config_path, force=force)
    except ConfigError as exc:
        print_error(str(exc))
        raise click.exceptions.Exit(EXIT_CONFIG_ERROR)
    print_success(f"Wrote example configuration to {path}")


if __name__ == "__main__":  # pragma: no cover
    main()
