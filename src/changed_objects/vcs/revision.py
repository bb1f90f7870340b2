"""
Selection of the two commits whose trees are compared.

The base commit depends on where HEAD is:

* on the default branch, HEAD is compared with its own parent so that the
  most recent change is reported;
* on any other branch, HEAD is compared with ``origin/<default branch>``;
* with an explicit merge-base revision, the base is the common ancestor of
  that revision and the current branch, whatever the branch is.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from changed_objects.vcs.git_client import GitClient, GitError


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


DEFAULT_REMOTE = "origin"


class RevisionError(GitError):
    """Raised when the base or current commit cannot be determined."""

    pass


@dataclass(frozen=True)
class Revisions:
    """The pair of commits to compare."""

    base: str
    current: str


class RevisionResolver:
    """Resolve the base and current commits for a repository."""

    def __init__(self, client: GitClient, log: Optional[logging.Logger] = None) -> None:
        self.client = client
        self.log = log or logger

    def resolve(
        self,
        default_branch: str,
        merge_base: Optional[str] = None,
        current_branch: Optional[str] = None,
    ) -> Revisions:
        """Return the ``(base, current)`` commits to diff.

        Parameters
        ----------
        default_branch : str
            Name of the repository's default branch, e.g. ``main``.
        merge_base : str, optional
            When non-empty, the base becomes the merge base of this revision
            and the current branch.
        current_branch : str, optional
            Name of the branch HEAD is on. Looked up from the branch whose tip
            equals HEAD when omitted.

        Raises
        ------
        RevisionError
            If the remote default branch does not exist or the merge base has
            no common ancestor.
        GitError
            If any underlying Git query fails.
        """
        current = self.client.resolve_head()
        if current_branch is None:
            current_branch = self.client.resolve_branch_name(current)
        self.log.debug("Current branch: %r", current_branch)

        if current_branch == default_branch:
            self.log.debug("Getting previous HEAD commit")
            base = self.client.resolve_previous()
        else:
            remote_name = f"{DEFAULT_REMOTE}/{default_branch}"
            self.log.debug("Getting remote commit %s", remote_name)
            remote = self.client.resolve_remote_ref(remote_name)
            if remote is None:
                raise RevisionError(f"remote reference not found: refs/remotes/{remote_name}")
            base = remote

        if merge_base:
            head_name = self.client.get_current_branch()
            self.log.debug("Comparing with merge-base of %s and %s", merge_base, head_name)
            common = self.client.resolve_merge_base(merge_base, head_name)
            if common is None:
                raise RevisionError(f"failed to get merge-base: no common ancestor of {merge_base} and {head_name}")
            base = common

        self.log.debug("Comparing %s..%s", base, current)
        return Revisions(base=base, current=current)
