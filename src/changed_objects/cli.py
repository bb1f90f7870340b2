"""
Command line interface for the changed_objects tool.

This module defines the ``main`` function which is used as the entry
point when executing the ``changed-objects`` command. It locates the
repository, merges the repository configuration file with the command
line options, runs change detection and renders the result on stdout.
Diagnostics go to stderr through :mod:`logging`.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click

from changed_objects import __version__
from changed_objects.config.loader import ConfigError, load_config
from changed_objects.detector import DEFAULT_BRANCH, DetectOptions, detect_changes
from changed_objects.grouping.group_model import Diff
from changed_objects.vcs.git_client import GitClient, GitError, RepositoryNotFoundError

# Create a module-level logger. Attach a null handler and disable
# propagation until the CLI configures logging.
logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------
EXIT_SUCCESS = 0
EXIT_GENERIC_ERROR = 1
EXIT_INVALID_USAGE = 2
EXIT_NO_REPO = 3
EXIT_CONFIG_ERROR = 4
EXIT_VCS_FAILURE = 5

# Environment variable holding a log level name, e.g. LOG=debug
LOG_ENV = "LOG"
PACKAGE_LOGGER = "changed_objects"


def print_error(message: str) -> None:
    """Print an error message on stderr."""
    click.echo(f"✗ {message}", err=True)


def configure_logging(verbose: bool) -> None:
    """Configure logging on stderr.

    ``--verbose`` selects DEBUG. Otherwise the level named by the ``LOG``
    environment variable is used (``TRACE`` is treated as DEBUG), falling
    back to WARNING.
    """
    level = logging.WARNING
    if verbose:
        level = logging.DEBUG
    else:
        name = os.environ.get(LOG_ENV, "").strip().upper()
        if name == "TRACE":
            name = "DEBUG"
        if name:
            resolved = logging.getLevelName(name)
            if isinstance(resolved, int):
                level = resolved

    # Use force=True to ensure handlers are reconfigured on subsequent
    # invocations (important for tests).
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s", force=True)
    for name in list(logging.root.manager.loggerDict):
        if name == PACKAGE_LOGGER or name.startswith(PACKAGE_LOGGER + "."):
            logging.getLogger(name).propagate = True


def build_options(
    config: Dict[str, Any],
    path_prefixes: Tuple[str, ...],
    default_branch: Optional[str],
    merge_base: Optional[str],
    types: Tuple[str, ...],
    ignores: Tuple[str, ...],
    group_by: Tuple[str, ...],
    group_by_marker: Optional[str],
    dir_exist: Optional[str],
) -> DetectOptions:
    """Merge command line values over the configuration file.

    A command line value replaces the configured one. Grouping is taken as
    a whole: giving ``--group-by`` or ``--group-by-marker`` on the command
    line discards both grouping settings from the file.

    Raises
    ------
    click.UsageError
        If both glob grouping and marker grouping end up selected.
    """
    if group_by or group_by_marker:
        grouping_patterns: List[str] = list(group_by)
        marker = group_by_marker
    else:
        grouping_patterns = list(config.get("group_by", []))
        marker = config.get("group_by_marker")

    if grouping_patterns and marker:
        raise click.UsageError("--group-by and --group-by-marker cannot be used together")

    return DetectOptions(
        default_branch=default_branch or config.get("default_branch") or DEFAULT_BRANCH,
        merge_base=merge_base or config.get("merge_base"),
        types=list(types) or list(config.get("types", [])),
        ignores=list(ignores) or list(config.get("ignores", [])),
        group_by=grouping_patterns,
        group_by_marker=marker,
        dir_exist=dir_exist or config.get("dir_exist") or "all",
        path_prefixes=list(path_prefixes),
    )


def render(diff: Diff, output: str, dirname: bool) -> None:
    """Write ``diff`` to stdout as JSON or as one path per line."""
    if output == "json":
        click.echo(json.dumps(diff.to_dict()))
        return
    items = diff.dirs if dirname else diff.files
    for item in items:
        click.echo(item.path)


@click.command()
@click.argument("path_prefixes", nargs=-1)
@click.option(
    "--repo",
    "repo",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Directory inside the Git repository (defaults to the current directory).",
)
@click.option("--default-branch", default=None, help=f"Default branch name (default: {DEFAULT_BRANCH}).")
@click.option("--merge-base", default=None, help="Compare against the merge-base of this revision and the current branch.")
@click.option(
    "--type",
    "types",
    multiple=True,
    type=click.Choice(["added", "deleted", "modified"]),
    help="Keep only changes of this type (repeatable).",
)
@click.option("--ignore", "ignores", multiple=True, help="Glob of paths to ignore (repeatable).")
@click.option("--group-by", "group_by", multiple=True, help="Glob selecting group directories (repeatable).")
@click.option("--group-by-marker", default=None, help="Group by the nearest directory holding a file matching this glob.")
@click.option(
    "--dir-exist",
    type=click.Choice(["true", "false", "all"]),
    default=None,
    help="Keep items whose directory exists (true), does not exist (false), or all.",
)
@click.option("-o", "--output", type=click.Choice(["json", "plain"]), default="json", show_default=True, help="Output format.")
@click.option("--dirname", is_flag=True, help="With plain output, list group directories instead of files.")
@click.option("--verbose", is_flag=True, help="Enable verbose (debug) output.")
@click.version_option(version=__version__, prog_name="changed-objects")
def main(
    path_prefixes: Tuple[str, ...],
    repo: Optional[Path],
    default_branch: Optional[str],
    merge_base: Optional[str],
    types: Tuple[str, ...],
    ignores: Tuple[str, ...],
    group_by: Tuple[str, ...],
    group_by_marker: Optional[str],
    dir_exist: Optional[str],
    output: str,
    dirname: bool,
    verbose: bool,
) -> None:
    """Detect changed files and directories between two commits.

    PATH_PREFIXES restrict the result to paths starting with any of them.
    """
    configure_logging(verbose)
    logger.info("Version: %s", __version__)

    start = repo if repo is not None else Path.cwd()
    try:
        client = GitClient.open(start)
    except RepositoryNotFoundError as exc:
        print_error(str(exc))
        raise click.exceptions.Exit(EXIT_NO_REPO)
    logger.info("git repo: %s", client.repo_root)

    try:
        config = load_config(client.repo_root)
    except ConfigError as exc:
        print_error(f"Configuration error: {exc}")
        raise click.exceptions.Exit(EXIT_CONFIG_ERROR)

    options = build_options(
        config,
        path_prefixes,
        default_branch,
        merge_base,
        types,
        ignores,
        group_by,
        group_by_marker,
        dir_exist,
    )
    logger.debug("Options: %s", options)

    try:
        diff = detect_changes(client.repo_root, options, client=client)
    except ValueError as exc:
        print_error(str(exc))
        raise click.exceptions.Exit(EXIT_INVALID_USAGE)
    except GitError as exc:
        print_error(f"Git error: {exc}")
        raise click.exceptions.Exit(EXIT_VCS_FAILURE)
    except Exception as exc:
        # Catch any other unhandled errors
        logger.exception("Unhandled error: %s", exc)
        print_error(f"Unexpected error: {exc}")
        raise click.exceptions.Exit(EXIT_GENERIC_ERROR)

    render(diff, output, dirname)
