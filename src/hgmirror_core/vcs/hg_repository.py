"""Local Mercurial repository driven through the ``hg`` command line."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import List, Mapping, Optional, Union

from ..errors import CannotResolveRevisionError, ExternalToolError, ValidationError
from .hg_log import LOG_TEMPLATE, NODE_PATTERN, HgLogEntry, parse_log
from .hg_revision import HgRevision
from .process import CommandOutput, run_command

logger = logging.getLogger(__name__)

DEFAULT_EXECUTABLE = "hg"

# stderr fragments hg prints when a reference matches zero or several changesets
_UNRESOLVABLE_PATTERN = re.compile(
    r"unknown revision|ambiguous|filtered revision|hidden revision"
    r"|unknown identifier|empty revision set|parse error|not found",
    re.IGNORECASE,
)


def quote_revset(value: str) -> str:
    """Quote ``value`` as a revset string literal."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


class HgRepository:
    """A local hg repository (usually the backing clone of an origin)."""

    def __init__(
        self,
        path: Union[str, Path],
        executable: str = DEFAULT_EXECUTABLE,
        timeout: Optional[float] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.path = Path(path)
        self.executable = executable
        self.timeout = timeout
        self.env = dict(env or {})

    def __repr__(self) -> str:
        return f"HgRepository(path={str(self.path)!r})"

    def hg(self, cwd: Union[str, Path], *args: str) -> CommandOutput:
        """Run ``hg <args>`` in ``cwd``."""
        return run_command(
            [self.executable, "--noninteractive", *args],
            cwd=cwd,
            timeout=self.timeout,
            env=self.env,
        )

    def simple_command(self, *args: str) -> CommandOutput:
        """Run ``hg <args>`` inside this repository."""
        return self.hg(self.path, *args)

    def exists(self) -> bool:
        return (self.path / ".hg").is_dir()

    def init(self) -> "HgRepository":
        """Create an empty repository at ``path`` (parents included)."""
        self.path.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Initializing hg repository at {self.path}")
        self.hg(self.path, "init")
        return self

    def pull_all(self, url: str) -> None:
        """Pull every changeset from ``url``."""
        logger.info(f"Pulling {url} into {self.path}")
        self.simple_command("pull", "--force", url)

    def pull_from_ref(self, url: str, reference: str) -> None:
        """Pull ``reference`` and its ancestors from ``url``."""
        logger.info(f"Pulling {reference} from {url} into {self.path}")
        self.simple_command("pull", "--force", "--rev", reference, url)

    def has_revision(self, global_id: str) -> bool:
        try:
            out = self.simple_command("log", "--rev", global_id, "--template", "{node}")
        except ExternalToolError:
            return False
        return out.stdout.strip() == global_id

    def identify(self, reference: str) -> HgRevision:
        """Resolve ``reference`` (bookmark, tag, branch, ``tip``, hash prefix).

        Raises:
            CannotResolveRevisionError: no single changeset matches.
            ExternalToolError: hg failed for another reason.
        """
        try:
            out = self.simple_command("identify", "--debug", "--id", "--rev", reference)
        except ExternalToolError as e:
            if e.exit_code is not None and _UNRESOLVABLE_PATTERN.search(e.stderr):
                raise CannotResolveRevisionError(reference, e.stderr.strip()) from e
            raise

        tokens = out.stdout.split()
        global_id = tokens[-1].rstrip("+") if tokens else ""
        if not NODE_PATTERN.match(global_id):
            raise CannotResolveRevisionError(reference, f"unexpected hg identify output {out.stdout.strip()!r}")
        if global_id == "0" * 40:
            raise CannotResolveRevisionError(reference, "reference resolves to the null revision")
        return HgRevision(global_id=global_id, reference=reference)

    def clean_update(self, global_id: str) -> None:
        """Update the working copy to ``global_id``, discarding local changes."""
        self.simple_command("update", "--clean", "--rev", global_id)

    def manifest(self, global_id: str) -> List[str]:
        """Tracked file paths (POSIX, repository-relative) at ``global_id``."""
        out = self.simple_command("manifest", "--rev", global_id)
        return [line for line in out.stdout.split("\n") if line]

    def log(self) -> "LogCmd":
        return LogCmd(self)


@dataclass(frozen=True)
class LogCmd:
    """``hg log`` builder. Each ``with_*`` returns a new command.

    Results are newest first unless ``oldest_first()`` is requested.
    """

    repo: HgRepository
    limit: Optional[int] = None
    reference_expression: str = "all()"
    branch: Optional[str] = None
    keyword: Optional[str] = None
    ascending: bool = False

    def with_limit(self, limit: int) -> "LogCmd":
        if limit < 1:
            raise ValidationError(f"Log limit must be > 0, got {limit}")
        return replace(self, limit=limit)

    def with_reference_expression(self, expression: str) -> "LogCmd":
        if not expression or not expression.strip():
            raise ValidationError("Invalid empty field 'reference expression'")
        return replace(self, reference_expression=expression)

    def with_branch(self, branch: str) -> "LogCmd":
        return replace(self, branch=branch)

    def with_keyword(self, keyword: str) -> "LogCmd":
        return replace(self, keyword=keyword)

    def oldest_first(self) -> "LogCmd":
        return replace(self, ascending=True)

    def revset(self) -> str:
        expression = f"({self.reference_expression})"
        if self.branch:
            expression += f" and branch({quote_revset(self.branch)})"
        if self.keyword:
            expression += f" and keyword({quote_revset(self.keyword)})"
        order = "rev" if self.ascending else "-rev"
        return f"sort({expression}, {order})"

    def run(self) -> List[HgLogEntry]:
        args = ["log", "--rev", self.revset(), "--template", LOG_TEMPLATE]
        if self.limit is not None:
            args += ["--limit", str(self.limit)]
        out = self.repo.simple_command(*args)
        return parse_log(out.stdout)
