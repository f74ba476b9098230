"""
Language model integration for commitron.

This package contains the :class:`OllamaClient` for communicating with
an Ollama LLM server and the :class:`CommitMessageGenerator` which turns
a diff into a normalized commit message.
"""

from .ollama_client import OllamaClient, LLMError  # noqa: F401
from .commit_message_generator import CommitMessageGenerator, GenerationResult  # noqa: F401
