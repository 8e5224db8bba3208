"""Minimal glob path filter.

Patterns are matched against workdir-relative POSIX paths:

- ``**`` matches any number of path segments (including none)
- ``*`` matches within a single segment
- ``?`` matches one character within a segment
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import ClassVar, Iterable, Pattern, Tuple

from .errors import ValidationError


@lru_cache(maxsize=256)
def _compile(pattern: str) -> Pattern[str]:
    out = []
    i = 0
    n = len(pattern)
    while i < n:
        c = pattern[i]
        if pattern.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            out.append(".*")
            i += 2
        elif c == "*":
            out.append("[^/]*")
            i += 1
        elif c == "?":
            out.append("[^/]")
            i += 1
        else:
            out.append(re.escape(c))
            i += 1
    return re.compile("".join(out) + r"\Z", re.DOTALL)


class Glob:
    """Include/exclude glob set implementing the PathFilter protocol."""

    ALL_FILES: ClassVar["Glob"]

    def __init__(self, include: Iterable[str], exclude: Iterable[str] = ()) -> None:
        self.include: Tuple[str, ...] = tuple(include)
        self.exclude: Tuple[str, ...] = tuple(exclude)
        if not self.include:
            raise ValidationError("Glob include list cannot be empty")
        for pattern in self.include + self.exclude:
            if not pattern or pattern.startswith("/"):
                raise ValidationError(f"Invalid glob pattern '{pattern}': must be a non-empty relative path")

    def matches(self, path: str) -> bool:
        if any(_compile(p).match(path) for p in self.exclude):
            return False
        return any(_compile(p).match(path) for p in self.include)

    def __repr__(self) -> str:
        if self.exclude:
            return f"glob({list(self.include)}, exclude = {list(self.exclude)})"
        return f"glob({list(self.include)})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Glob):
            return NotImplemented
        return self.include == other.include and self.exclude == other.exclude

    def __hash__(self) -> int:
        return hash((self.include, self.exclude))


Glob.ALL_FILES = Glob(["**"])
