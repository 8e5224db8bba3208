"""VCS abstraction base types.

Each backend implements the ``Origin``/``Reader`` protocols on its own; they
share no implementation base class.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import FrozenSet, Optional, Protocol, Sequence, Tuple, TypeVar

from ..authoring import Author, Authoring


class Revision(Protocol):
    """A canonical, immutable commit identifier."""

    def as_string(self) -> str:
        """Canonical identifier."""
        ...

    def context_reference(self) -> Optional[str]:
        """The user reference this revision was resolved from, if any."""
        ...


R = TypeVar("R", bound=Revision)


class PathFilter(Protocol):
    """Decides which workdir-relative POSIX paths belong to a migration."""

    def matches(self, path: str) -> bool:
        ...


@dataclass(frozen=True)
class Change:
    """A commit as handed to the transformation pipeline."""

    revision: Revision
    author: Author
    message: str
    date: datetime
    files: FrozenSet[str] = field(default_factory=frozenset)
    parents: Tuple[Revision, ...] = ()
    branch: Optional[str] = None

    @property
    def first_line_message(self) -> str:
        return self.message.split("\n", 1)[0]


class Reader(Protocol[R]):
    """Session object that checks out revisions and reads history."""

    def checkout(self, revision: R, work_dir: Path) -> object:
        ...

    def change(self, revision: R) -> Change:
        ...

    def changes(self, from_revision: Optional[R], to_revision: R) -> Sequence[Change]:
        ...


class Origin(Protocol[R]):
    """Configuration-bound source repository producing readers."""

    @property
    def label_name(self) -> str:
        ...

    def resolve(self, reference: Optional[str]) -> R:
        ...

    def new_reader(self, path_filter: PathFilter, authoring: Authoring) -> Reader[R]:
        ...
