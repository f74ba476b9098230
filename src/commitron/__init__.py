"""
Top-level package for commitron.

This package exposes the main CLI entry point via the ``commitron.cli``
module. The library entry points are :func:`commitron.diff.build_context`
for bounding a diff to a token budget and
:func:`commitron.message.normalize_message` for turning model output into
a valid commit message.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
