"""
Classification of raw tree changes into additions, deletions and modifications.

The classifier takes the records reported by :meth:`GitClient.diff_trees`
and turns each one into a :class:`Change`. It is deliberately forgiving:
a record that cannot be classified is logged and skipped so that a single
corrupt entry never aborts the whole detection run.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from changed_objects.grouping.group_model import Change, Kind
from changed_objects.vcs.git_client import DELETE, INSERT, MODIFY, RawChange


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


class ClassificationError(Exception):
    """Raised when a raw change record cannot be classified."""

    pass


def classify_change(raw: RawChange) -> Change:
    """Classify a single raw change.

    Parameters
    ----------
    raw : RawChange
        A change record from the tree diff.

    Returns
    -------
    Change
        The path and kind of the change. Deletions report the path in the
        base tree; insertions and modifications report the path in the
        current tree. Unrecognised actions yield :attr:`Kind.UNKNOWN`.

    Raises
    ------
    ClassificationError
        If the record lacks the path its action requires.
    """
    if raw.action == DELETE:
        kind, path = Kind.DELETION, raw.old_path
    elif raw.action == INSERT:
        kind, path = Kind.ADDITION, raw.new_path
    elif raw.action == MODIFY:
        kind, path = Kind.MODIFICATION, raw.new_path
    else:
        kind, path = Kind.UNKNOWN, raw.new_path or raw.old_path

    if not path:
        raise ClassificationError(f"change record without path: {raw!r}")
    return Change(path=path, kind=kind)


def classify_changes(raw_changes: Iterable[RawChange], log: Optional[logging.Logger] = None) -> List[Change]:
    """Classify every raw change, skipping records that cannot be classified.

    The result follows the order of ``raw_changes``. If the same path is
    reported more than once the last record wins.
    """
    log = log or logger
    changes: Dict[str, Change] = {}
    for raw in raw_changes:
        try:
            change = classify_change(raw)
        except ClassificationError as exc:
            log.warning("Skipping change: %s", exc)
            continue
        if change.kind is Kind.UNKNOWN:
            log.debug("Unrecognised action %r for %s", raw.action, change.path)
        if change.path in changes:
            log.warning(
                "Path %s reported twice (%s, then %s); keeping the last",
                change.path,
                changes[change.path].kind,
                change.kind,
            )
        changes[change.path] = change
    return list(changes.values())
