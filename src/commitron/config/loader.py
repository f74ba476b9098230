"""
Configuration loader for commitron.

The configuration lives in ``~/.commitron/config.json`` unless a path is
given explicitly. A missing file is not an error: every setting has a
default. A file that exists but is malformed, or that holds a value of the
wrong type, raises :class:`ConfigError`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Type, Union

from commitron.config.settings import (
    CONVENTIONS,
    DIFF_STRATEGIES,
    AISettings,
    CommitSettings,
    Config,
    ContextSettings,
)


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


CONFIG_FILE_NAME = "config.json"

_Types = Union[Type[Any], Tuple[Type[Any], ...]]

# Expected JSON types per key, used to reject wrongly typed values.
_SCHEMA: Dict[str, Dict[str, Tuple[_Types, str]]] = {
    "ai": {
        "provider": (str, "a string"),
        "model": (str, "a string"),
        "base_url": (str, "a string"),
        "port": (int, "an integer"),
        "request_timeout": ((int, float), "a number"),
        "max_tokens": ((int, type(None)), "an integer"),
        "temperature": ((int, float), "a number"),
        "debug": (bool, "a boolean"),
    },
    "commit": {
        "convention": (str, "a string"),
        "include_body": (bool, "a boolean"),
        "max_length": (int, "an integer"),
        "max_body_length": (int, "an integer"),
        "custom_template": (str, "a string"),
        "allowed_types": (list, "a list of strings"),
        "default_type": (str, "a string"),
        "generic_subjects": (dict, "an object"),
        "type_synonyms": (dict, "an object"),
    },
    "context": {
        "max_input_tokens": (int, "an integer"),
        "diff_strategy": (str, "a string"),
        "tokenizer_model": (str, "a string"),
        "summarization_enabled": (bool, "a boolean"),
        "priority_paths": (list, "a list of [marker, weight] pairs"),
    },
}


class ConfigError(Exception):
    """Raised when the configuration file is malformed or invalid."""

    pass


def _get_config_directory() -> Path:
    """Return the per-user configuration directory, ``~/.commitron``."""
    return Path.home() / ".commitron"


def default_config_path() -> Path:
    return _get_config_directory() / CONFIG_FILE_NAME


def _check_section(name: str, data: Any) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ConfigError(f"'{name}' must be an object")
    schema = _SCHEMA[name]
    unknown = sorted(set(data) - set(schema))
    if unknown:
        logger.warning("Ignoring unknown '%s' settings: %s", name, ", ".join(unknown))
    values = {}
    for key, (types, label) in schema.items():
        if key not in data:
            continue
        value = data[key]
        # bool is an int subclass; only accept it where a boolean is expected.
        if isinstance(value, bool) and types is not bool:
            raise ConfigError(f"'{key}' must be {label}")
        if not isinstance(value, types):
            raise ConfigError(f"'{key}' must be {label}")
        values[key] = value
    return values


def _priority_paths(raw: Any) -> list:
    pairs = []
    for entry in raw:
        if (
            not isinstance(entry, (list, tuple))
            or len(entry) != 2
            or not isinstance(entry[0], str)
            or isinstance(entry[1], bool)
            or not isinstance(entry[1], int)
        ):
            raise ConfigError("'priority_paths' entries must be [marker, weight] pairs")
        pairs.append((entry[0], entry[1]))
    return pairs


def _string_map(key: str, raw: Mapping[str, Any]) -> Dict[str, str]:
    if not all(isinstance(k, str) and isinstance(v, str) for k, v in raw.items()):
        raise ConfigError(f"'{key}' must map strings to strings")
    return {k.lower(): v for k, v in raw.items()}


def config_from_dict(data: Mapping[str, Any]) -> Config:
    """Build a :class:`Config` from decoded JSON, validating every value.

    Raises
    ------
    ConfigError
        If a section or a value has the wrong type or an unknown choice.
    """
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a JSON object")

    ai = _check_section("ai", data.get("ai", {}))
    commit = _check_section("commit", data.get("commit", {}))
    context = _check_section("context", data.get("context", {}))

    if commit.get("convention", CONVENTIONS[0]) not in CONVENTIONS:
        raise ConfigError(
            f"'convention' must be one of: {', '.join(CONVENTIONS)}"
        )
    if context.get("diff_strategy", DIFF_STRATEGIES[0]) not in DIFF_STRATEGIES:
        raise ConfigError(
            f"'diff_strategy' must be one of: {', '.join(DIFF_STRATEGIES)}"
        )
    if "allowed_types" in commit:
        if not all(isinstance(t, str) for t in commit["allowed_types"]):
            raise ConfigError("'allowed_types' must be a list of strings")
        commit["allowed_types"] = tuple(t.lower() for t in commit["allowed_types"])
    for key in ("generic_subjects", "type_synonyms"):
        if key in commit:
            commit[key] = _string_map(key, commit[key])
    if "priority_paths" in context:
        context["priority_paths"] = _priority_paths(context["priority_paths"])
    if ai.get("request_timeout") is not None:
        ai["request_timeout"] = float(ai["request_timeout"])

    return Config(
        ai=AISettings(**ai),
        commit=CommitSettings(**commit),
        context=ContextSettings(**context),
    )


def load_config(path: Optional[Path] = None) -> Config:
    """Load the configuration from ``path`` or the default location.

    Parameters
    ----------
    path : Path, optional
        Explicit configuration file. Defaults to ``~/.commitron/config.json``.

    Returns
    -------
    Config
        The validated configuration, or defaults if the file is missing.

    Raises
    ------
    ConfigError
        If the file cannot be read, is not valid JSON or holds invalid values.
    """
    config_path = Path(path) if path is not None else default_config_path()
    if not config_path.exists():
        logger.debug("No configuration file at %s; using defaults", config_path)
        return Config()
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Failed to read or parse configuration file: %s", exc)
        raise ConfigError(f"Invalid JSON in {config_path.name}: {exc}") from exc
    config = config_from_dict(data)
    logger.debug("Loaded configuration from: %s", config_path)
    return config


def config_to_dict(config: Config) -> Dict[str, Any]:
    data = asdict(config)
    data["commit"]["allowed_types"] = list(config.commit.allowed_types)
    data["context"]["priority_paths"] = [list(p) for p in config.context.priority_paths]
    return data


def save_example_config(path: Optional[Path] = None, force: bool = False) -> Path:
    """Write the default configuration as an example file.

    Raises
    ------
    ConfigError
        If the file exists and ``force`` is not set, or cannot be written.
    """
    config_path = Path(path) if path is not None else default_config_path()
    if config_path.exists() and not force:
        raise ConfigError(f"Configuration file already exists: {config_path}")
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(
            json.dumps(config_to_dict(Config()), indent=2) + "\n", encoding="utf-8"
        )
    except OSError as exc:
        raise ConfigError(f"Could not write {config_path}: {exc}") from exc
    logger.info("Wrote example configuration to %s", config_path)
    return config_path
