"""
Configuration loading for changed_objects.

Provides a loader for the optional ``.changed-objects.json`` file located
in the repository root. See :mod:`changed_objects.config.loader` for
implementation details.
"""

from .loader import CONFIG_FILE_NAME, ConfigError, load_config  # noqa: F401
