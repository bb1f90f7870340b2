"""
Git client implementation for changed_objects.

This module wraps the read-only Git queries required to find which
paths changed between two commits. All subprocess calls go through
:meth:`GitClient._run` so that unit tests can mock them easily.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional


logger = logging.getLogger(__name__)
# Attach a null handler to avoid logging errors when the root logger is not
# configured. Logs will propagate to the root when configured by the CLI.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


# Actions reported in RawChange.action. Status letters git uses for anything
# else (U, X, ...) are passed through unchanged.
INSERT = "insert"
DELETE = "delete"
MODIFY = "modify"

_STATUS_ACTIONS = {
    "A": INSERT,
    "D": DELETE,
    "M": MODIFY,
    # file type change (e.g. regular file -> symlink) is a modification of the tree entry
    "T": MODIFY,
}


@dataclass(frozen=True)
class RawChange:
    """A single tree-level change as reported by ``git diff-tree``."""

    action: str
    old_path: Optional[str] = None
    new_path: Optional[str] = None


class GitError(Exception):
    """Raised when a Git command fails."""

    pass


class RepositoryNotFoundError(GitError):
    """Raised when no Git repository can be found."""

    pass


class GitClient:
    """Client for read-only queries against a Git repository."""

    def __init__(self, repo_root: Path) -> None:
        self.repo_root = repo_root

    # ------------------------------------------------------------------
    # Static helpers
    # ------------------------------------------------------------------
    @staticmethod
    def is_repo(path: Path) -> bool:
        """Return True if the given path is the root of a Git repository."""
        return (path / ".git").exists()

    @staticmethod
    def find_repo_root(start: Path) -> Optional[Path]:
        """Find the root of the Git repository starting from ``start``.

        Walk upwards until a ``.git`` entry is found or the filesystem
        root is reached.
        """
        current = start.resolve()
        while True:
            if (current / ".git").exists():
                return current
            if current.parent == current:
                # reached filesystem root
                return None
            current = current.parent

    @classmethod
    def open(cls, start: Path) -> "GitClient":
        """Return a client for the repository containing ``start``.

        Raises
        ------
        RepositoryNotFoundError
            If ``start`` is not inside a Git repository.
        """
        root = cls.find_repo_root(start)
        if root is None:
            raise RepositoryNotFoundError(f"cannot open repository: no git repository found at {start}")
        logger.debug("Opened Git repository at %s", root)
        return cls(root)

    # ------------------------------------------------------------------
    # Basic Git commands
    # ------------------------------------------------------------------
    def _run(self, args: List[str], check: bool = True) -> subprocess.CompletedProcess:
        """Run a Git command in the repository root.

        Raises
        ------
        GitError
            If the command exits with a non-zero status when ``check`` is True,
            or if the ``git`` executable cannot be started.
        """
        full_cmd = ["git"] + args
        logger.debug("Executing Git command: %s", " ".join(full_cmd))
        try:
            result = subprocess.run(
                full_cmd,
                cwd=self.repo_root,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding='utf-8',
                errors='replace',  # Replace invalid characters instead of failing
            )
        except FileNotFoundError as e:
            logger.error("Git executable not found: %s", e)
            raise GitError(f"git executable not found: {e}") from e

        if check and result.returncode != 0:
            logger.error(
                "Git command failed: %s\nSTDOUT: %s\nSTDERR: %s",
                " ".join(full_cmd),
                result.stdout,
                result.stderr,
            )
            raise GitError(result.stderr.strip() or result.stdout.strip())
        return result

    def _rev_parse(self, revision: str) -> str:
        result = self._run(["rev-parse", "--verify", f"{revision}^{{commit}}"], check=True)
        return result.stdout.strip()

    # ------------------------------------------------------------------
    # Revisions and references
    # ------------------------------------------------------------------
    def resolve_head(self) -> str:
        """Return the commit SHA that HEAD points to."""
        sha = self._rev_parse("HEAD")
        logger.debug("HEAD: %s", sha)
        return sha

    def resolve_previous(self, revision: str = "HEAD") -> str:
        """Return the SHA of the first parent of ``revision``.

        Raises
        ------
        GitError
            If ``revision`` has no parent (e.g. the root commit).
        """
        return self._rev_parse(f"{revision}^")

    def get_current_branch(self) -> str:
        """Get the name of the current branch.

        Returns ``"HEAD"`` when the repository is in detached HEAD state.
        """
        result = self._run(["rev-parse", "--abbrev-ref", "HEAD"], check=True)
        return result.stdout.strip()

    def resolve_branch_name(self, sha: str) -> str:
        """Return the name of a local branch whose tip is ``sha``.

        When several branches point at ``sha`` the checked-out branch is
        preferred, otherwise the first one in refname order is returned.
        An empty string is returned when no branch points at ``sha``.
        """
        result = self._run(
            ["for-each-ref", f"--points-at={sha}", "--format=%(refname:short)", "refs/heads/"],
            check=True,
        )
        names = [line.strip() for line in result.stdout.splitlines() if line.strip()]
        if not names:
            return ""
        if len(names) > 1:
            current = self.get_current_branch()
            if current in names:
                return current
        return names[0]

    def resolve_remote_ref(self, name: str) -> Optional[str]:
        """Return the commit SHA of ``refs/remotes/<name>`` or None if it does not exist."""
        result = self._run(
            ["rev-parse", "--verify", "--quiet", f"refs/remotes/{name}^{{commit}}"],
            check=False,
        )
        sha = result.stdout.strip()
        if result.returncode != 0 or not sha:
            return None
        logger.debug("refs/remotes/%s: %s", name, sha)
        return sha

    def resolve_merge_base(self, rev_a: str, rev_b: str) -> Optional[str]:
        """Return the merge base of two revisions or None without a common ancestor.

        ``git merge-base --all`` may report several best common ancestors
        for criss-cross histories; the first one reported is returned.

        Raises
        ------
        GitError
            If either revision cannot be resolved.
        """
        shas = [self._rev_parse(rev) for rev in (rev_a, rev_b)]
        result = self._run(["merge-base", "--all"] + shas, check=False)
        candidates = [line.strip() for line in result.stdout.splitlines() if line.strip()]
        if result.returncode not in (0, 1):
            raise GitError(result.stderr.strip() or "git merge-base failed")
        if not candidates:
            return None
        if len(candidates) > 1:
            logger.debug("merge-base candidates for %s and %s: %s", rev_a, rev_b, candidates)
        return candidates[0]

    # ------------------------------------------------------------------
    # Tree comparison
    # ------------------------------------------------------------------
    def diff_trees(self, base: str, current: str) -> List[RawChange]:
        """Compare the trees of two commits.

        Rename detection is disabled so that a moved file shows up as a
        deletion of the old path and an insertion of the new one.

        Returns
        -------
        List[RawChange]
            One record per changed path, in the order git reports them.
        """
        result = self._run(
            ["diff-tree", "-r", "-z", "--no-renames", "--name-status", base, current],
            check=True,
        )
        # -z output is a flat sequence of NUL terminated fields: status, path, status, path, ...
        fields = result.stdout.split("\0")
        if fields and fields[-1] == "":
            fields.pop()

        changes: List[RawChange] = []
        for i in range(0, len(fields), 2):
            status = fields[i]
            path = fields[i + 1] if i + 1 < len(fields) else None
            action = _STATUS_ACTIONS.get(status[:1], status)
            if action == INSERT:
                changes.append(RawChange(action=action, new_path=path))
            elif action == DELETE:
                changes.append(RawChange(action=action, old_path=path))
            else:
                changes.append(RawChange(action=action, old_path=path, new_path=path))

        logger.debug("a number of changes: %d", len(changes))
        return changes
