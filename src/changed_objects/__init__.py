"""
Top-level package for changed_objects.

This package detects which files and directories changed between two
commits of a Git repository and groups them by directory. The command
line entry point lives in :mod:`changed_objects.cli`; the library entry
point is :func:`changed_objects.detector.detect_changes`.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
