"""
Grouping of changed paths into directories.

Given the classified changes, the :class:`Grouper` picks one directory,
the *group key*, for every change and collects the changed files under
it. Three strategies exist:

* no patterns: the key is the file's parent directory;
* glob patterns: the key is the shallowest ancestor of the file's parent
  directory (the parent itself included) that matches any pattern.
  Changes with no matching ancestor are left out of every group;
* marker: the key is the deepest ancestor directory that contains a file
  whose name matches the marker glob in the working tree.

For example, with the patterns ``kubernetes/**/{dev,prod}`` and
``kubernetes/**/overlays/{dev,prod}`` the changes::

    kubernetes/service-a/prod/Deployment/a.yaml
    kubernetes/service-b/overlays/dev/a.yaml

are grouped under ``kubernetes/service-a/prod`` and
``kubernetes/service-b/overlays/dev`` respectively.

Groups are emitted in the order their key is first produced while walking
the changes, so the result does not depend on dictionary iteration
details and is identical across runs on the same input.
"""

from __future__ import annotations

import logging
import posixpath
from typing import Dict, List, Optional, Sequence

from changed_objects.grouping.glob import GlobError, matches, validate
from changed_objects.grouping.group_model import Change, Dir, File, ParentDir
from changed_objects.grouping.worktree import WorkingTree, ancestors


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


def depth(path: str) -> int:
    """Number of path segments in ``path``."""
    return len(path.split("/"))


class Grouper:
    """Group changes into directories.

    Parameters
    ----------
    worktree : WorkingTree
        Used for existence flags and marker lookups.
    patterns : Sequence[str], optional
        Glob patterns matched against ancestor directories. Malformed
        patterns are reported and never match.
    marker : str, optional
        File-name glob; when set, marker grouping is used instead of
        ``patterns``.
    log : logging.Logger, optional
        Logger for diagnostics; defaults to the module logger.
    """

    def __init__(
        self,
        worktree: WorkingTree,
        patterns: Optional[Sequence[str]] = None,
        marker: Optional[str] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.worktree = worktree
        self.log = log or logger
        self.marker = marker or None
        self.patterns: List[str] = list(patterns or [])
        self._usable_patterns = [p for p in self.patterns if self._is_valid(p)]
        self._marker_usable = self.marker is not None and self._is_valid(self.marker)

    def _is_valid(self, pattern: str) -> bool:
        try:
            validate(pattern)
        except GlobError as exc:
            self.log.warning("Ignoring malformed pattern %r, nothing will match it: %s", pattern, exc)
            return False
        return True

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------
    def to_file(self, change: Change) -> File:
        parent = change.dir
        return File(
            name=posixpath.basename(change.path),
            path=change.path,
            kind=change.kind,
            parent_dir=ParentDir(path=parent, exist=self.worktree.exists(parent)),
        )

    def files(self, changes: Sequence[Change]) -> List[File]:
        """Return one :class:`File` per change, regardless of grouping."""
        return [self.to_file(change) for change in changes]

    # ------------------------------------------------------------------
    # Group key selection
    # ------------------------------------------------------------------
    def _key_from_patterns(self, change: Change) -> Optional[str]:
        steps = ancestors(change.dir)
        matched: List[str] = []
        for pattern in self._usable_patterns:
            matched.extend(step for step in steps if matches(pattern, step))
        if not matched:
            return None
        # min() keeps the first of equal-depth candidates; distinct ancestors of
        # one path never share a depth, so only duplicates of one step can tie.
        return min(matched, key=depth)

    def group_key(self, change: Change) -> Optional[str]:
        """Return the directory ``change`` belongs to, or None to leave it ungrouped."""
        if self.marker is not None:
            if not self._marker_usable:
                return None
            return self.worktree.find_marker_root(change.dir, self.marker)
        if self.patterns:
            return self._key_from_patterns(change)
        return change.dir

    def group(self, changes: Sequence[Change]) -> Dict[str, Dir]:
        """Group ``changes`` by directory.

        Returns
        -------
        Dict[str, Dir]
            Groups keyed by directory path, in order of first appearance.
        """
        found: Dict[str, Dir] = {}
        for change in changes:
            key = self.group_key(change)
            if key is None:
                self.log.debug("%s does not match any group, skipped", change.path)
                continue
            file = self.to_file(change)
            if key in found:
                self.log.debug("group %r: updated", key)
                found[key].files.append(file)
            else:
                self.log.debug("group %r: created", key)
                found[key] = Dir(path=key, exist=self.worktree.exists(key), files=[file])
        return found
