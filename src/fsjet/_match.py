"""Path matching for copy, remove and find.

Patterns use gitignore glob syntax (compiled by ``dulwich.ignore.Pattern``):

- a pattern without ``/`` matches the base name at any depth (``*.txt``);
- a pattern with ``/`` is anchored at the base path (``sub/*.txt``), as is
  one starting with ``./`` or with the absolute base path itself;
- ``**`` spans directories, a trailing ``/`` only matches directories;
- a leading ``!`` negates.

Evaluation is ordered.  Positive patterns are tried until one matches; once
the first negated pattern is reached, any negated pattern whose glob matches
rejects the path.  If the very first pattern is negated, every path starts as
a match and negations subtract from it.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Sequence

from dulwich.ignore import Pattern

PathFilter = Callable[[str], bool]


def _to_relative_pattern(base: str, pattern: str) -> str:
    """Rewrite ``./`` patterns and absolute patterns under *base* as base-anchored ones."""
    negated = pattern.startswith("!")
    body = pattern[1:] if negated else pattern
    if body.startswith("./"):
        body = body[1:]
    elif os.path.isabs(body):
        try:
            rel = os.path.relpath(body, base)
        except ValueError:
            rel = body
        if not rel.startswith(".."):
            body = "/" + rel.replace(os.sep, "/")
    return ("!" if negated else "") + body


class Matcher:
    """Compiled predicate ``absolute_path -> bool`` relative to *base_path*."""

    def __init__(self, base_path: str, patterns: str | Sequence[str]) -> None:
        if isinstance(patterns, str):
            patterns = [patterns]
        self._base = os.path.abspath(base_path)
        self._patterns: list[Pattern] = [
            Pattern(os.fsencode(_to_relative_pattern(self._base, p)))
            for p in patterns if p
        ]

    @classmethod
    def from_file(cls, base_path: str, pattern_file: str) -> Matcher:
        """Load patterns from *pattern_file* (one per line, ``#`` comments)."""
        lines = []
        for raw in Path(pattern_file).read_text().splitlines():
            line = raw.strip()
            if line and not line.startswith("#"):
                lines.append(line)
        return cls(base_path, lines)

    @property
    def active(self) -> bool:
        """True if any pattern is configured."""
        return bool(self._patterns)

    def _subject(self, path: str, is_dir: bool) -> bytes:
        full = os.path.abspath(path)
        if full == self._base:
            rel = os.path.basename(full)
        else:
            rel = os.path.relpath(full, self._base)
            if rel.startswith(".."):
                # Outside the base only base-name patterns can apply.
                rel = os.path.basename(full)
        rel = rel.replace(os.sep, "/")
        return os.fsencode(rel + "/" if is_dir else rel)

    def __call__(self, path: str, *, is_dir: bool = False) -> bool:
        if not self._patterns:
            return True
        subject = self._subject(path, is_dir)
        matched = False
        negating = False
        for index, pattern in enumerate(self._patterns):
            if not pattern.is_exclude:
                negating = True
                if index == 0:
                    matched = True
            if negating:
                if matched and not pattern.is_exclude and pattern.match(subject):
                    return False
            elif not matched:
                matched = pattern.match(subject)
        return matched


def compile_filter(
    base_path: str,
    matching: str | Sequence[str] | None = None,
    filter: PathFilter | None = None,
) -> Callable[..., bool]:
    """Build the node predicate used by the engines.

    *matching* wins over *filter*; with neither, everything matches.
    """
    if matching:
        return Matcher(base_path, matching)
    if filter is not None:
        return lambda path, *, is_dir=False: bool(filter(path))
    return lambda path, *, is_dir=False: True
