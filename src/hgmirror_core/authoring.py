"""Author identities and the policy mapping raw VCS users onto them."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Iterable, Optional, Union

from .errors import ValidationError

AUTHOR_PATTERN = re.compile(r"^\s*(?P<name>[^<>]*?)\s*<(?P<email>[^<>]*)>\s*$")


@dataclass(frozen=True)
class Author:
    """Canonical author identity."""

    name: str
    email: str

    @classmethod
    def parse(cls, raw: str) -> "Author":
        """Parse ``Name <email>``. The email may be empty, the name may not."""
        match = AUTHOR_PATTERN.match(raw or "")
        if not match or not match.group("name"):
            raise ValidationError(f"Author '{raw}' doesn't match the expected format 'name <mail@example.com>'")
        return cls(name=match.group("name"), email=match.group("email").strip())

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


class AuthoringMappingMode(str, Enum):
    """How raw commit authors become canonical identities."""

    PASS_THRU = "PASS_THRU"        # use the raw author unchanged
    USE_DEFAULT = "USE_DEFAULT"    # always the default author
    WHITELISTED = "WHITELISTED"    # raw author if allow-listed, else default

    @classmethod
    def parse(cls, value: Union[str, "AuthoringMappingMode"]) -> "AuthoringMappingMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            allowed = ", ".join(m.value for m in cls)
            raise ValidationError(f"Invalid authoring mode '{value}'. Expected one of: {allowed}")


class Authoring:
    """Authoring policy: default identity, mode and allow-list of emails."""

    def __init__(
        self,
        default_author: Optional[Author],
        mode: Union[str, AuthoringMappingMode] = AuthoringMappingMode.PASS_THRU,
        allowlist: Iterable[str] = (),
    ) -> None:
        self.mode = AuthoringMappingMode.parse(mode)
        if default_author is None and self.mode is not AuthoringMappingMode.PASS_THRU:
            raise ValidationError(f"Invalid empty field 'default' (required by authoring mode {self.mode.value})")
        self.default_author = default_author
        self.allowlist: FrozenSet[str] = frozenset(e.strip() for e in allowlist if e.strip())

    def resolve(self, raw: str) -> Author:
        """Map a raw ``Name <email>`` string to an Author under this policy."""
        if self.mode is AuthoringMappingMode.PASS_THRU:
            return Author.parse(raw)

        if self.mode is AuthoringMappingMode.WHITELISTED:
            try:
                author = Author.parse(raw)
            except ValidationError:
                author = None
            if author is not None and author.email in self.allowlist:
                return author
        # default_author is set for every mode but PASS_THRU (checked in __init__)
        return self.default_author

    def __repr__(self) -> str:
        return (
            f"Authoring(default_author={self.default_author}, mode={self.mode.value}, "
            f"allowlist={sorted(self.allowlist)})"
        )


def map_author(raw: str, authoring: Authoring) -> Author:
    """Functional form of ``Authoring.resolve``."""
    return authoring.resolve(raw)
