"""
Change classification, directory grouping and filtering.

See :mod:`changed_objects.grouping.change_classifier`,
:mod:`changed_objects.grouping.grouper` and
:mod:`changed_objects.grouping.filters` for details.
"""

from .change_classifier import ClassificationError, classify_changes  # noqa: F401
from .filters import FilterOptions, apply_filters  # noqa: F401
from .group_model import Change, Diff, Dir, File, Kind, ParentDir  # noqa: F401
from .grouper import Grouper  # noqa: F401
