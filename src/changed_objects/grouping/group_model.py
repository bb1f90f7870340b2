"""
Data models for change detection and directory grouping.

A :class:`Change` is what the classifier produces for each changed path.
:class:`File` and :class:`Dir` are the views emitted to the user: the
flat list of changed files, and the changed files grouped by directory.
:class:`Diff` bundles both.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class Kind(Enum):
    """Kind of change for a single path."""

    ADDITION = "insert"
    DELETION = "delete"
    MODIFICATION = "modify"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


# User-facing change type names accepted by the type filter.
TYPE_KINDS: Dict[str, Kind] = {
    "added": Kind.ADDITION,
    "deleted": Kind.DELETION,
    "modified": Kind.MODIFICATION,
}


def parent_of(path: str) -> str:
    """Return the parent directory of a repository-relative path.

    Root-level paths have the parent ``"."``.
    """
    return posixpath.dirname(path) or "."


@dataclass(frozen=True)
class Change:
    """A single path-level difference between two commits."""

    path: str
    kind: Kind

    @property
    def dir(self) -> str:
        return parent_of(self.path)


@dataclass(frozen=True)
class ParentDir:
    path: str
    exist: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "exist": self.exist}


@dataclass(frozen=True)
class File:
    """Representation of a changed file.

    Attributes
    ----------
    name : str
        Base name of the file.
    path : str
        Path relative to the repository root.
    kind : Kind
        How the file changed.
    parent_dir : ParentDir
        The file's parent directory and whether it currently exists in the
        working tree.
    """

    name: str
    path: str
    kind: Kind
    parent_dir: ParentDir

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "kind": self.kind.value,
            "parent_dir": self.parent_dir.to_dict(),
        }


@dataclass(frozen=True)
class Dir:
    """A group of changed files represented by a single directory.

    Attributes
    ----------
    path : str
        The group key: a directory that is an ancestor of (or equal to) the
        parent directory of every file in ``files``.
    exist : bool
        Whether the directory currently exists in the working tree.
    files : List[File]
        The files in the group, in discovery order.
    """

    path: str
    exist: bool
    files: List[File] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "exist": self.exist,
            "files": [f.to_dict() for f in self.files],
        }


@dataclass
class Diff:
    """Result of a detection run."""

    files: List[File] = field(default_factory=list)
    dirs: List[Dir] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files": [f.to_dict() for f in self.files],
            "dirs": [d.to_dict() for d in self.dirs],
        }
