"""
Configuration for commitron.

Typed settings live in :mod:`commitron.config.settings`; reading and
writing the JSON file is done by :mod:`commitron.config.loader`.
"""

from .loader import ConfigError, load_config, save_example_config  # noqa: F401
from .settings import AISettings, CommitSettings, Config, ContextSettings  # noqa: F401
