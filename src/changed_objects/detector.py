"""
Change detection for a single repository.

:func:`detect_changes` runs the whole pipeline for one invocation:

1. resolve the base and current commits;
2. compare their trees;
3. classify each changed path;
4. group the changes into directories;
5. filter files and groups.

Nothing is kept between invocations.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from changed_objects.grouping.change_classifier import classify_changes
from changed_objects.grouping.filters import FilterOptions, apply_filters
from changed_objects.grouping.group_model import Diff
from changed_objects.grouping.grouper import Grouper
from changed_objects.grouping.worktree import WorkingTree
from changed_objects.vcs.git_client import GitClient
from changed_objects.vcs.revision import RevisionResolver


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


DEFAULT_BRANCH = "main"


@dataclass
class DetectOptions:
    """Options controlling a detection run.

    Attributes
    ----------
    default_branch : str
        Name of the default branch.
    merge_base : str, optional
        Compare against the merge base of this revision and the current
        branch.
    types : List[str]
        Change types to keep (``added``, ``deleted``, ``modified``).
    ignores : List[str]
        Globs of paths to drop.
    group_by : List[str]
        Globs selecting group directories.
    group_by_marker : str, optional
        File-name glob marking group directories.
    dir_exist : str
        ``true``, ``false`` or ``all``.
    path_prefixes : List[str]
        Keep only paths starting with one of these prefixes.
    """

    default_branch: str = DEFAULT_BRANCH
    merge_base: Optional[str] = None
    types: List[str] = field(default_factory=list)
    ignores: List[str] = field(default_factory=list)
    group_by: List[str] = field(default_factory=list)
    group_by_marker: Optional[str] = None
    dir_exist: str = "all"
    path_prefixes: List[str] = field(default_factory=list)

    def filter_options(self) -> FilterOptions:
        return FilterOptions(
            path_prefixes=list(self.path_prefixes),
            ignores=list(self.ignores),
            types=list(self.types),
            dir_exist=self.dir_exist,
        )


def detect_changes(
    repo_root: Path,
    options: DetectOptions,
    client: Optional[GitClient] = None,
    log: Optional[logging.Logger] = None,
) -> Diff:
    """Detect changed files and directories in the repository at ``repo_root``.

    Parameters
    ----------
    repo_root : Path
        Root of the Git repository; existence flags are checked relative to
        this directory.
    options : DetectOptions
        What to compare and how to group and filter.
    client : GitClient, optional
        Client to use; one is created for ``repo_root`` when omitted.
    log : logging.Logger, optional
        Logger passed down to every stage. Each stage uses its own module
        logger when omitted.

    Raises
    ------
    ValueError
        If ``options`` contains an invalid type or dir-exist value.
    GitError
        If the repository cannot be queried or a revision cannot be
        resolved (including :class:`RevisionError`).
    """
    # validate before touching the repository
    filter_options = options.filter_options()
    client = client or GitClient(repo_root)

    revisions = RevisionResolver(client, log=log).resolve(
        options.default_branch,
        merge_base=options.merge_base,
    )
    raw_changes = client.diff_trees(revisions.base, revisions.current)
    changes = classify_changes(raw_changes, log=log)
    (log or logger).debug("%d change(s) between %s and %s", len(changes), revisions.base, revisions.current)

    grouper = Grouper(
        WorkingTree(repo_root),
        patterns=options.group_by,
        marker=options.group_by_marker,
        log=log,
    )
    files = grouper.files(changes)
    dirs = list(grouper.group(changes).values())

    return apply_filters(files, dirs, filter_options, log=log)
