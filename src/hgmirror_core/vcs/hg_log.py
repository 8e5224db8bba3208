"""Parse machine-readable ``hg log`` output into commit records.

``hg log`` is driven with ``LOG_TEMPLATE``: fields are separated by
``FIELD_SEP``, list items by ``ITEM_SEP`` and each record ends with
``RECORD_SEP``. The description is the last field so that multi-line
messages never break record boundaries.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from types import MappingProxyType
from typing import List, Mapping, Tuple

from ..errors import MalformedLogError

logger = logging.getLogger(__name__)

FIELD_SEP = "\x1f"
ITEM_SEP = "\x1d"
RECORD_SEP = "\x1e"

NULL_NODE = "0" * 40
NODE_PATTERN = re.compile(r"^[0-9a-f]{40}$")

_FIELDS = (
    "{node}",
    "{p1node}",
    "{p2node}",
    "{author}",
    "{date|hgdate}",
    "{branch}",
    '{join(file_adds, "' + ITEM_SEP + '")}',
    '{join(file_mods, "' + ITEM_SEP + '")}',
    '{join(file_dels, "' + ITEM_SEP + '")}',
    "{desc}",
)
LOG_TEMPLATE = FIELD_SEP.join(_FIELDS) + RECORD_SEP


class FileChange(str, Enum):
    """How a commit touched a path."""

    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    REMOVED = "REMOVED"


@dataclass(frozen=True)
class HgLogEntry:
    """One commit as reported by ``hg log``."""

    global_id: str
    parents: Tuple[str, ...]
    user: str
    date: datetime
    branch: str
    description: str
    files: Mapping[str, FileChange] = field(default_factory=lambda: MappingProxyType({}), hash=False)

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1

    @property
    def is_root(self) -> bool:
        return not self.parents


def parse_hg_date(value: str) -> datetime:
    """Parse the ``hgdate`` filter form: ``<unix seconds> <offset west of UTC>``."""
    parts = value.split()
    if len(parts) != 2:
        raise ValueError(f"expected '<seconds> <offset>', got {value!r}")
    seconds = float(parts[0])
    offset = int(parts[1])
    tz = timezone(timedelta(seconds=-offset))
    return datetime.fromtimestamp(seconds, tz)


def _split_items(value: str) -> List[str]:
    return [item for item in value.split(ITEM_SEP) if item]


def _parse_record(record: str) -> HgLogEntry:
    parts = record.split(FIELD_SEP, len(_FIELDS) - 1)
    if len(parts) != len(_FIELDS):
        raise MalformedLogError(f"expected {len(_FIELDS)} fields, got {len(parts)}", record)

    node, p1, p2, user, date, branch, adds, mods, dels, desc = parts
    node = node.strip()
    if not NODE_PATTERN.match(node):
        raise MalformedLogError("missing or invalid node id", record)
    try:
        when = parse_hg_date(date)
    except (ValueError, OverflowError, OSError) as e:
        raise MalformedLogError(f"invalid date: {e}", record) from e

    parents = tuple(p.strip() for p in (p1, p2) if p.strip() and p.strip() != NULL_NODE)
    for parent in parents:
        if not NODE_PATTERN.match(parent):
            raise MalformedLogError(f"invalid parent id {parent!r}", record)

    files = {}
    for path in _split_items(adds):
        files[path] = FileChange.ADDED
    for path in _split_items(mods):
        files[path] = FileChange.MODIFIED
    for path in _split_items(dels):
        files[path] = FileChange.REMOVED

    return HgLogEntry(
        global_id=node,
        parents=parents,
        user=user,
        date=when,
        branch=branch or "default",
        description=desc,
        files=MappingProxyType(files),
    )


def parse_log(raw: str) -> List[HgLogEntry]:
    """Parse ``hg log --template LOG_TEMPLATE`` output, keeping its order.

    Raises:
        MalformedLogError: a record lacks a valid node id or date.
    """
    entries: List[HgLogEntry] = []
    for record in raw.split(RECORD_SEP):
        if not record.strip():
            continue
        entries.append(_parse_record(record.lstrip("\r\n")))
    logger.debug(f"Parsed {len(entries)} log entries")
    return entries

