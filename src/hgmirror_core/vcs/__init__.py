"""VCS abstraction layer: the Mercurial origin and its building blocks."""

from .base import Change, Origin, PathFilter, Reader, Revision
from .checkout import CheckoutResult, checkout_revision
from .hg_log import FileChange, HgLogEntry, parse_log
from .hg_origin import HgOrigin, HgReader, hg_origin
from .hg_repository import HgRepository, LogCmd
from .hg_revision import HgRevision
from .process import CommandOutput, configure_max_concurrent_commands, run_command

__all__ = [
    "Change",
    "CheckoutResult",
    "CommandOutput",
    "FileChange",
    "HgLogEntry",
    "HgOrigin",
    "HgReader",
    "HgRepository",
    "HgRevision",
    "LogCmd",
    "Origin",
    "PathFilter",
    "Reader",
    "Revision",
    "checkout_revision",
    "configure_max_concurrent_commands",
    "hg_origin",
    "parse_log",
    "run_command",
]
