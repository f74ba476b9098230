"""
Commit message generation using an LLM.

This module provides the :class:`CommitMessageGenerator` class, which
turns a staged diff into a commit message: it bounds the diff to the
model's token budget, builds the prompt, calls the Ollama LLM (via
:class:`OllamaClient`) and normalizes the answer against the configured
convention.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from commitron.config.settings import Config
from commitron.diff.context import ContextResult, build_context, resolve_token_budget
from commitron.llm.ollama_client import OllamaClient
from commitron.llm.prompt import build_prompt
from commitron.message.normalizer import MessageNormalizer, NormalizationResult
from commitron.tokenizer.tokens import TokenCounter, token_counter


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


@dataclass
class GenerationResult:
    """Everything produced for one commit."""

    context: ContextResult
    prompt: str
    raw_response: str
    normalization: NormalizationResult

    @property
    def message(self) -> str:
        return self.normalization.text


class CommitMessageGenerator:
    """Generate a commit message for a diff with an LLM."""

    def __init__(
        self,
        ollama_client: OllamaClient,
        config: Optional[Config] = None,
        count: Optional[TokenCounter] = None,
    ) -> None:
        self.ollama_client = ollama_client
        self.config = config or Config()
        self.count = count or token_counter(self.config.tokenizer_model)

    def _debug(self, title: str, content: str) -> None:
        if self.config.ai.debug:
            logger.info("==== COMMITRON DEBUG: %s ====\n%s\n", title, content)

    def build_context(self, diff: str, files: Sequence[str]) -> ContextResult:
        """Bound ``diff`` to the input budget of the configured model."""
        budget = resolve_token_budget(self.config.ai, self.config.context)
        result = build_context(
            diff,
            files,
            budget,
            model=self.config.tokenizer_model,
            settings=self.config.context,
            count=self.count,
        )
        self._debug(
            "CONTEXT",
            f"strategy={result.strategy} input_tokens={result.input_tokens} "
            f"output_tokens={result.output_tokens} budget={budget}",
        )
        return result

    def generate(self, diff: str, files: Sequence[str]) -> GenerationResult:
        """Generate and normalize a commit message for ``diff``.

        Raises
        ------
        LLMError
            If the LLM request fails. Invalid messages are not raised; they
            are reported in the returned :class:`NormalizationResult`.
        """
        context = self.build_context(diff, files)
        prompt = build_prompt(self.config.commit, files, context.text)
        self._debug("PROMPT", prompt)

        raw = self.ollama_client.generate(prompt)
        self._debug("RAW RESPONSE", raw)

        result = MessageNormalizer(self.config.commit, files).normalize(raw)
        self._debug("PARSED MESSAGE", f"{result.message!r} via {result.strategy or 'nothing'}")
        self._debug("FINAL COMMIT MESSAGE", result.fallback_text)
        logger.debug("Commit message normalized with state %s", result.state)
        return GenerationResult(context, prompt, raw, result)
