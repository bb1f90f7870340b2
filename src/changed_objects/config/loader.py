"""
Configuration loader for changed_objects.

A repository may carry a JSON file named ``.changed-objects.json`` at its
root that provides default values for the command line options, for
example::

    {
        "default_branch": "main",
        "group_by": ["kubernetes/**/{dev,prod}"],
        "ignores": ["**/*.md"]
    }

The file is optional. If it exists but is malformed, has unknown keys, or
has values of the wrong type, a :class:`ConfigError` is raised.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict


logger = logging.getLogger(__name__)
# Attach a null handler to avoid "No handler" warnings or logging errors in
# environments where the root logger may be closed. The CLI configures
# logging explicitly when it runs.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


CONFIG_FILE_NAME = ".changed-objects.json"

_STRING_KEYS = ("default_branch", "merge_base", "group_by_marker")
_LIST_KEYS = ("types", "ignores", "group_by")
_TYPE_CHOICES = ("added", "deleted", "modified")
_DIR_EXIST_CHOICES = ("true", "false", "all")


class ConfigError(Exception):
    """Raised when the configuration file is invalid."""

    pass


def _validate(data: Dict[str, Any]) -> None:
    known = set(_STRING_KEYS) | set(_LIST_KEYS) | {"dir_exist"}
    unknown = sorted(key for key in data if key not in known)
    if unknown:
        logger.error("Configuration file has unknown keys: %s", unknown)
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

    for key in _STRING_KEYS:
        if key in data and not isinstance(data[key], str):
            raise ConfigError(f"'{key}' must be a string")

    for key in _LIST_KEYS:
        if key in data:
            value = data[key]
            if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
                raise ConfigError(f"'{key}' must be a list of strings")

    invalid_types = [t for t in data.get("types", []) if t not in _TYPE_CHOICES]
    if invalid_types:
        raise ConfigError(
            f"'types' entries must be one of {', '.join(_TYPE_CHOICES)}; got {', '.join(invalid_types)}"
        )

    if "dir_exist" in data:
        value = data["dir_exist"]
        # JSON booleans are accepted for convenience
        if isinstance(value, bool):
            data["dir_exist"] = "true" if value else "false"
        elif value not in _DIR_EXIST_CHOICES:
            raise ConfigError(f"'dir_exist' must be one of {', '.join(_DIR_EXIST_CHOICES)}")


def load_config(repo_root: Path) -> Dict[str, Any]:
    """Load the configuration file from ``repo_root``.

    Args:
        repo_root: Root directory of the Git repository.

    Returns:
        A dictionary of validated option defaults. Possible keys:
        - default_branch (str)
        - merge_base (str)
        - types (list of "added" | "deleted" | "modified")
        - ignores (list of str)
        - group_by (list of str)
        - group_by_marker (str)
        - dir_exist ("true" | "false" | "all")
        An empty dictionary is returned if the file does not exist.

    Raises:
        ConfigError: If the file cannot be read, is not valid JSON, is not a
            JSON object, or fails validation.
    """
    config_path = repo_root / CONFIG_FILE_NAME

    if not config_path.exists():
        logger.debug("No configuration file at %s", config_path)
        return {}

    try:
        content = config_path.read_text(encoding="utf-8")
        data = json.loads(content)
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Failed to read or parse configuration file: %s", exc)
        raise ConfigError(f"Invalid JSON in {config_path.name}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"{config_path.name} must contain a JSON object")

    _validate(data)

    logger.debug("Loaded configuration from: %s", config_path)
    logger.debug("Configuration data: %s", data)
    return data
