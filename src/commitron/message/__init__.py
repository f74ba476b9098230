"""
Commit message handling: parsing model output, validating it against a
convention, repairing it and rendering the final text.
"""

from .model import CommitMessage, format_message, render_header  # noqa: F401
from .rules import MessageValidationError, Violation, validate_message  # noqa: F401
from .parsers import PARSE_STRATEGIES, parse_message, strip_thinking_tags  # noqa: F401
from .repair import default_body, repair_message  # noqa: F401
from .normalizer import (  # noqa: F401
    MessageNormalizer,
    NormalizationResult,
    enforce_lengths,
    normalize_message,
    smart_truncate,
)
