"""
Typed settings for commitron.

The configuration is split into three sections mirroring the JSON file:
``ai`` (text-generation backend), ``commit`` (message convention and
limits) and ``context`` (diff budgeting). Every component receives the
section it needs as an explicit argument; nothing reads settings from
global state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


CONVENTION_CONVENTIONAL = "conventional"
CONVENTION_NONE = "none"
CONVENTION_CUSTOM = "custom"
CONVENTIONS = (CONVENTION_CONVENTIONAL, CONVENTION_NONE, CONVENTION_CUSTOM)

STRATEGY_AUTO = "auto"
STRATEGY_SUMMARIZE = "summarize"
STRATEGY_BATCH = "batch"
STRATEGY_TRUNCATE = "truncate"
DIFF_STRATEGIES = (STRATEGY_AUTO, STRATEGY_SUMMARIZE, STRATEGY_BATCH, STRATEGY_TRUNCATE)

CONVENTIONAL_TYPES: Tuple[str, ...] = (
    "feat",
    "fix",
    "docs",
    "style",
    "refactor",
    "perf",
    "test",
    "build",
    "ci",
    "chore",
    "revert",
)

# Subjects rejected as too generic, mapped to the word repair uses instead.
DEFAULT_GENERIC_SUBJECTS: Dict[str, str] = {
    "update": "improve",
    "change": "adjust",
    "modify": "enhance",
    "add": "implement",
    "remove": "drop",
    "delete": "drop",
    "fix": "resolve",
}

DEFAULT_TYPE_SYNONYMS: Dict[str, str] = {
    "feature": "feat",
    "features": "feat",
    "bugfix": "fix",
    "hotfix": "fix",
    "document": "docs",
    "documentation": "docs",
    "doc": "docs",
    "styling": "style",
    "refactoring": "refactor",
    "performance": "perf",
    "testing": "test",
    "tests": "test",
    "building": "build",
    "maintenance": "chore",
}

DEFAULT_PRIORITY_PATHS: List[Tuple[str, int]] = [
    ("pkg/ai/", 100),
    ("pkg/git/", 80),
    ("cmd/", 60),
    ("pkg/", 40),
]


@dataclass
class AISettings:
    """Settings for the text-generation backend."""

    provider: str = "ollama"
    model: str = "llama3"
    base_url: str = "http://localhost"
    port: int = 11434
    request_timeout: float = 60.0
    max_tokens: Optional[int] = None
    temperature: float = 0.7
    debug: bool = False


@dataclass
class CommitSettings:
    """Settings for the commit message convention and its limits.

    Attributes
    ----------
    convention : str
        ``"conventional"``, ``"none"`` or ``"custom"``.
    include_body : bool
        Whether a body is mandatory and rendered.
    max_length : int
        Maximum length of the rendered header line.
    max_body_length : int
        Maximum length of the body.
    custom_template : str
        Header template for the custom convention, using ``{{type}}``,
        ``{{scope}}`` and ``{{subject}}`` placeholders.
    allowed_types : tuple of str
        Types accepted under the conventional convention.
    default_type : str
        Type used when the generated text does not provide one.
    generic_subjects : dict
        Deny-listed subjects mapped to their replacement.
    type_synonyms : dict
        Common misspellings of types mapped to the canonical type.
    """

    convention: str = CONVENTION_CONVENTIONAL
    include_body: bool = True
    max_length: int = 72
    max_body_length: int = 500
    custom_template: str = ""
    allowed_types: Tuple[str, ...] = CONVENTIONAL_TYPES
    default_type: str = "chore"
    generic_subjects: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_GENERIC_SUBJECTS)
    )
    type_synonyms: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_TYPE_SYNONYMS)
    )

    @property
    def is_conventional(self) -> bool:
        return self.convention == CONVENTION_CONVENTIONAL


@dataclass
class ContextSettings:
    """Settings for turning a diff into a bounded context."""

    max_input_tokens: int = 0
    diff_strategy: str = STRATEGY_AUTO
    tokenizer_model: str = ""
    summarization_enabled: bool = True
    priority_paths: List[Tuple[str, int]] = field(
        default_factory=lambda: list(DEFAULT_PRIORITY_PATHS)
    )


@dataclass
class Config:
    """Complete commitron configuration."""

    ai: AISettings = field(default_factory=AISettings)
    commit: CommitSettings = field(default_factory=CommitSettings)
    context: ContextSettings = field(default_factory=ContextSettings)

    @property
    def tokenizer_model(self) -> str:
        """Model used for token counting; defaults to the generation model."""
        return self.context.tokenizer_model or self.ai.model
