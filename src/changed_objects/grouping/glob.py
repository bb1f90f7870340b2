"""
Path glob matching with ``**`` and brace alternation.

Patterns are matched segment by segment against ``/`` separated paths:

* ``*``, ``?`` and ``[...]`` match within a single segment;
* a ``**`` segment matches zero or more whole segments, so
  ``kubernetes/**`` matches ``kubernetes`` itself as well as anything
  below it;
* ``{a,b}`` expands to alternatives before matching and may be nested.

All pattern evaluation in the package goes through :func:`matches`.
"""

from __future__ import annotations

from fnmatch import fnmatchcase
from functools import lru_cache
from typing import List, Sequence, Tuple


__all__ = ["GlobError", "matches", "validate"]

GLOBSTAR = "**"


class GlobError(ValueError):
    """Raised for a malformed glob pattern."""

    pass


def _split_alternatives(body: str) -> List[str]:
    """Split the inside of a brace group on top-level commas."""
    parts: List[str] = []
    depth = 0
    current = ""
    for ch in body:
        if ch == "," and depth == 0:
            parts.append(current)
            current = ""
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
        current += ch
    parts.append(current)
    return parts


def _expand_braces(pattern: str) -> List[str]:
    depth = 0
    start = -1
    for i, ch in enumerate(pattern):
        if ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                prefix, body, suffix = pattern[:start], pattern[start + 1:i], pattern[i + 1:]
                expanded: List[str] = []
                for option in _split_alternatives(body):
                    expanded.extend(_expand_braces(prefix + option + suffix))
                return expanded
    if depth:
        raise GlobError(f"unclosed '{{' in pattern {pattern!r}")
    return [pattern]


def _check_brackets(segment: str, pattern: str) -> None:
    i = 0
    while i < len(segment):
        if segment[i] == "[":
            j = i + 1
            if j < len(segment) and segment[j] in "!^":
                j += 1
            # a ']' right after the opening bracket is a literal member
            if j < len(segment) and segment[j] == "]":
                j += 1
            close = segment.find("]", j)
            if close == -1:
                raise GlobError(f"unclosed '[' in pattern {pattern!r}")
            i = close
        i += 1


@lru_cache(maxsize=512)
def _compile(pattern: str) -> Tuple[Tuple[str, ...], ...]:
    alternatives = []
    for alternative in _expand_braces(pattern):
        segments = tuple(alternative.split("/"))
        for segment in segments:
            _check_brackets(segment, pattern)
        alternatives.append(segments)
    return tuple(alternatives)


def _match_segments(pattern: Sequence[str], path: Sequence[str], pi: int = 0, si: int = 0) -> bool:
    while pi < len(pattern):
        segment = pattern[pi]
        if segment == GLOBSTAR:
            # collapse consecutive globstars
            while pi + 1 < len(pattern) and pattern[pi + 1] == GLOBSTAR:
                pi += 1
            if pi + 1 == len(pattern):
                return True
            return any(_match_segments(pattern, path, pi + 1, k) for k in range(si, len(path) + 1))
        if si >= len(path) or not fnmatchcase(path[si], segment):
            return False
        pi += 1
        si += 1
    return si == len(path)


def validate(pattern: str) -> None:
    """Raise :class:`GlobError` if ``pattern`` is malformed."""
    _compile(pattern)


def matches(pattern: str, candidate: str) -> bool:
    """Return True if ``candidate`` matches the glob ``pattern``.

    Raises
    ------
    GlobError
        If the pattern is malformed (unclosed ``{`` or ``[``).
    """
    path = candidate.split("/")
    return any(_match_segments(segments, path) for segments in _compile(pattern))
