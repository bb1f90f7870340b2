"""
Filtering of the detected files and groups.

Stages run in a fixed order, each on the survivors of the previous one:

1. path prefixes (positional arguments, any prefix may match);
2. ignore globs (an item matching any ignore pattern is dropped);
3. change types (``added``, ``deleted``, ``modified``);
4. directory existence (``true``, ``false`` or ``all``).

Each stage has a predicate for files and one for groups. The file
predicate is applied both to the flat file list and to the files inside
every group, and a group left without files is removed. A file listed in
a group is therefore always present in the flat list too, and no group is
ever emitted empty.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional, Sequence, Set, Tuple

from changed_objects.grouping.glob import GlobError, matches
from changed_objects.grouping.group_model import TYPE_KINDS, Diff, Dir, File, Kind


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


DIR_EXIST_CHOICES = ("true", "false", "all")


@dataclass
class FilterOptions:
    """Options for :func:`apply_filters`.

    Attributes
    ----------
    path_prefixes : List[str]
        Keep only items whose path starts with one of these prefixes.
    ignores : List[str]
        Drop items whose path matches one of these globs.
    types : List[str]
        Keep only files whose change type is listed (``added``,
        ``deleted``, ``modified``).
    dir_exist : str
        ``true`` or ``false`` to keep items whose directory does or does
        not exist in the working tree; ``all`` keeps everything.
    """

    path_prefixes: List[str] = field(default_factory=list)
    ignores: List[str] = field(default_factory=list)
    types: List[str] = field(default_factory=list)
    dir_exist: str = "all"

    def __post_init__(self) -> None:
        unknown = [t for t in self.types if t not in TYPE_KINDS]
        if unknown:
            raise ValueError(f"invalid change type(s): {', '.join(unknown)}")
        if self.dir_exist not in DIR_EXIST_CHOICES:
            raise ValueError(f"invalid dir-exist value: {self.dir_exist!r}")


FilePredicate = Callable[[File], bool]
DirPredicate = Callable[[Dir], bool]


def _keep_all(_item: object) -> bool:
    return True


class _IgnoreMatcher:
    """Ignore-pattern check that reports each malformed pattern once."""

    def __init__(self, patterns: Sequence[str], log: logging.Logger) -> None:
        self.patterns = list(patterns)
        self.log = log
        self._reported: Set[str] = set()

    def ignored(self, path: str) -> bool:
        for pattern in self.patterns:
            try:
                if matches(pattern, path):
                    return True
            except GlobError as exc:
                # malformed pattern: the path is excluded
                if pattern not in self._reported:
                    self._reported.add(pattern)
                    self.log.warning("Malformed ignore pattern %r excludes every path: %s", pattern, exc)
                return True
        return False


def _stage(
    files: List[File],
    dirs: List[Dir],
    keep_file: FilePredicate,
    keep_dir: DirPredicate,
) -> Tuple[List[File], List[Dir]]:
    kept_files = [f for f in files if keep_file(f)]
    kept_dirs: List[Dir] = []
    for d in dirs:
        if not keep_dir(d):
            continue
        members = [f for f in d.files if keep_file(f)]
        if members:
            kept_dirs.append(d if len(members) == len(d.files) else replace(d, files=members))
    return kept_files, kept_dirs


def _exist_predicate(dir_exist: str) -> Tuple[FilePredicate, DirPredicate]:
    if dir_exist == "true":
        return (lambda f: f.parent_dir.exist), (lambda d: d.exist)
    if dir_exist == "false":
        return (lambda f: not f.parent_dir.exist), (lambda d: not d.exist)
    return _keep_all, _keep_all


def apply_filters(
    files: Sequence[File],
    dirs: Sequence[Dir],
    options: FilterOptions,
    log: Optional[logging.Logger] = None,
) -> Diff:
    """Filter files and groups and return the resulting :class:`Diff`."""
    log = log or logger
    kept_files, kept_dirs = list(files), list(dirs)

    if options.path_prefixes:
        prefixes = tuple(options.path_prefixes)
        kept_files, kept_dirs = _stage(
            kept_files,
            kept_dirs,
            lambda f: f.path.startswith(prefixes),
            lambda d: d.path.startswith(prefixes),
        )
        log.debug("after prefix filter: %d files, %d dirs", len(kept_files), len(kept_dirs))

    if options.ignores:
        ignore = _IgnoreMatcher(options.ignores, log)
        kept_files, kept_dirs = _stage(
            kept_files,
            kept_dirs,
            lambda f: not ignore.ignored(f.path),
            lambda d: not ignore.ignored(d.path),
        )
        log.debug("after ignore filter: %d files, %d dirs", len(kept_files), len(kept_dirs))

    if options.types:
        kinds: Set[Kind] = {TYPE_KINDS[t] for t in options.types}
        kept_files, kept_dirs = _stage(kept_files, kept_dirs, lambda f: f.kind in kinds, _keep_all)
        log.debug("after type filter %s: %d files, %d dirs", options.types, len(kept_files), len(kept_dirs))

    if options.dir_exist != "all":
        keep_file, keep_dir = _exist_predicate(options.dir_exist)
        kept_files, kept_dirs = _stage(kept_files, kept_dirs, keep_file, keep_dir)
        log.debug("after dir-exist=%s filter: %d files, %d dirs", options.dir_exist, len(kept_files), len(kept_dirs))

    return Diff(files=kept_files, dirs=kept_dirs)
