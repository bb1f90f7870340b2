"""
Version control system (VCS) integration.

This package contains the Git client used to query a repository and the
resolver that picks which two commits are compared. Only read-only
queries are performed.
"""

from .git_client import GitClient, GitError, RawChange, RepositoryNotFoundError  # noqa: F401
from .revision import RevisionError, RevisionResolver, Revisions  # noqa: F401
