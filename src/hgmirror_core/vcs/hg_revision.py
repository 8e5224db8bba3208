"""Mercurial revision value."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class HgRevision:
    """A resolved hg changeset: full node id plus the reference it came from.

    Equality and hashing only consider ``global_id``.
    """

    global_id: str
    reference: Optional[str] = field(default=None, compare=False)

    def as_string(self) -> str:
        return self.global_id

    def context_reference(self) -> Optional[str]:
        return self.reference

    def short_id(self, length: int = 12) -> str:
        return self.global_id[:length]

    def __str__(self) -> str:
        if self.reference and self.reference != self.global_id:
            return f"{self.reference} ({self.short_id()})"
        return self.global_id
