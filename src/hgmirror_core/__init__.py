"""hgmirror core - Mercurial origin for repository migration."""

from .__version__ import __version__, __version_info__

from .authoring import Author, Authoring, AuthoringMappingMode, map_author
from .config import HgOptions, MirrorConfig, load_config, load_config_optional
from .glob import Glob
from .vcs import (
    Change,
    CheckoutResult,
    FileChange,
    HgLogEntry,
    HgOrigin,
    HgReader,
    HgRepository,
    HgRevision,
    hg_origin,
    parse_log,
)
from .errors import (
    CannotResolveRevisionError,
    CheckoutError,
    CommandTimeoutError,
    ConfigError,
    ExternalToolError,
    HgMirrorError,
    MalformedLogError,
    ValidationError,
)

__all__ = [
    # Version
    "__version__",
    "__version_info__",
    # Authoring
    "Author",
    "Authoring",
    "AuthoringMappingMode",
    "map_author",
    # Config
    "HgOptions",
    "MirrorConfig",
    "load_config",
    "load_config_optional",
    # Path filter
    "Glob",
    # VCS
    "Change",
    "CheckoutResult",
    "FileChange",
    "HgLogEntry",
    "HgOrigin",
    "HgReader",
    "HgRepository",
    "HgRevision",
    "hg_origin",
    "parse_log",
    # Errors
    "CannotResolveRevisionError",
    "CheckoutError",
    "CommandTimeoutError",
    "ConfigError",
    "ExternalToolError",
    "HgMirrorError",
    "MalformedLogError",
    "ValidationError",
]
