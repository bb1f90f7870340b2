"""
Filesystem queries against the checked-out working tree.

Existence flags on files and groups describe the working tree on disk,
not the compared commits: a directory whose last file was deleted no
longer exists even though it appears in the diff. Results are cached for
the lifetime of a :class:`WorkingTree`, which is one detection run.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from changed_objects.grouping.glob import matches


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


class WorkingTree:
    """Cached existence and marker lookups relative to a repository root."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self._exists: Dict[str, bool] = {}
        self._markers: Dict[Tuple[str, str], bool] = {}

    def exists(self, path: str) -> bool:
        """Return True if ``path`` (relative to the root) exists on disk."""
        if path not in self._exists:
            self._exists[path] = (self.root / path).exists()
        return self._exists[path]

    def has_marker(self, path: str, marker: str) -> bool:
        """Return True if directory ``path`` holds a file whose name matches ``marker``."""
        key = (path, marker)
        if key not in self._markers:
            self._markers[key] = self._scan_for_marker(self.root / path, marker)
        return self._markers[key]

    @staticmethod
    def _scan_for_marker(directory: Path, marker: str) -> bool:
        if not directory.is_dir():
            return False
        try:
            return any(entry.is_file() and matches(marker, entry.name) for entry in directory.iterdir())
        except OSError as exc:
            logger.warning("Cannot list %s: %s", directory, exc)
            return False

    def find_marker_root(self, directory: str, marker: str) -> Optional[str]:
        """Return the deepest ancestor of ``directory`` holding a ``marker`` file.

        The search starts at ``directory`` itself and walks up, excluding the
        repository root. ``None`` is returned when no ancestor qualifies.
        """
        for step in ancestors(directory):
            if self.has_marker(step, marker):
                return step
        return None


def ancestors(directory: str) -> List[str]:
    """Return ``directory`` and its ancestors, deepest first, excluding the root."""
    steps: List[str] = []
    step = directory
    while step and step not in (".", "/"):
        steps.append(step)
        step = step.rpartition("/")[0]
    return steps
