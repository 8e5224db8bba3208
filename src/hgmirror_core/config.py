"""Configuration models and the TOML loader for hgmirror.

A config file (default name ``.hgmirror.toml``) looks like::

    [hg]
    executable = "hg"
    timeout_seconds = 600
    storage_root = "~/.cache/hgmirror"
    max_concurrent_commands = 8

    [origin]
    url = "https://example.org/repo"
    ref = "tip"

    [origin_files]
    include = ["**"]
    exclude = []

    [authoring]
    default = "Copy <copy@bara.com>"
    mode = "PASS_THRU"
    allowlist = []

The file is located by walking up from the current directory unless an
explicit path is given.
"""

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, field_validator

from .authoring import Author, Authoring, AuthoringMappingMode
from .errors import ConfigError
from .glob import Glob

if TYPE_CHECKING:
    from .vcs.hg_origin import HgOrigin

# Conditional TOML import: stdlib tomllib (3.11+) or fallback tomli (<3.11)
try:
    import tomllib  # Python 3.11+
except ImportError:
    try:
        import tomli as tomllib  # type: ignore
    except ImportError:
        tomllib = None  # type: ignore

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".hgmirror.toml"
DEFAULT_STORAGE_ROOT = "~/.cache/hgmirror"


class HgOptions(BaseModel):
    """How the ``hg`` binary is invoked and where backing clones live."""

    executable: str = Field(
        default_factory=lambda: os.environ.get("HGMIRROR_HG", "hg"),
        description="hg binary (name on PATH or absolute path)",
    )
    timeout_seconds: float = Field(default=600.0, gt=0, description="Time budget per hg invocation")
    storage_root: str = Field(default=DEFAULT_STORAGE_ROOT, description="Directory holding backing clones")
    max_concurrent_commands: int = Field(default=8, ge=1)

    model_config = ConfigDict(extra="forbid")

    @field_validator("executable")
    @classmethod
    def validate_executable(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("hg executable cannot be empty")
        return v.strip()

    def storage_path(self) -> Path:
        return Path(self.storage_root).expanduser()


class OriginSection(BaseModel):
    url: str = ""
    ref: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class OriginFilesSection(BaseModel):
    include: List[str] = Field(default_factory=lambda: ["**"])
    exclude: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class AuthoringSection(BaseModel):
    default: Optional[str] = Field(None, description="Default author, 'Name <email>'")
    mode: str = AuthoringMappingMode.PASS_THRU.value
    allowlist: List[str] = Field(default_factory=list, description="Allowed author emails")

    model_config = ConfigDict(extra="forbid")


class MirrorConfig(BaseModel):
    """Whole config file."""

    hg: HgOptions = Field(default_factory=HgOptions)
    origin: OriginSection = Field(default_factory=OriginSection)
    origin_files: OriginFilesSection = Field(default_factory=OriginFilesSection)
    authoring: AuthoringSection = Field(default_factory=AuthoringSection)

    model_config = ConfigDict(extra="forbid")

    def build_origin(self, url: Optional[str] = None) -> "HgOrigin":
        """Build the origin; ``url`` overrides ``[origin].url``."""
        from .vcs.hg_origin import hg_origin

        return hg_origin(
            url=url if url is not None else self.origin.url,
            ref=self.origin.ref,
            options=self.hg,
        )

    def build_authoring(self) -> Authoring:
        default = Author.parse(self.authoring.default) if self.authoring.default else None
        return Authoring(default, self.authoring.mode, self.authoring.allowlist)

    def build_path_filter(
        self,
        include: Optional[List[str]] = None,
        exclude: Optional[List[str]] = None,
    ) -> Glob:
        return Glob(
            include or self.origin_files.include,
            exclude if exclude is not None else self.origin_files.exclude,
        )


def find_config(start_path: Path) -> Optional[Path]:
    """Find ``.hgmirror.toml`` in ``start_path`` or one of its parents."""
    current = start_path if start_path.is_dir() else start_path.parent
    for parent in [current, *current.parents]:
        candidate = parent / CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
    return None


def load_config(config_path: Path) -> MirrorConfig:
    """Load and validate a config file.

    Raises:
        ConfigError: the file is missing, is not TOML or does not fit the schema.
    """
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    if tomllib is None:
        raise ConfigError("TOML support not available. Install tomli package: pip install tomli")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Failed to parse TOML from {config_path}: {e}") from e

    try:
        config = MirrorConfig.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid config structure in {config_path}: {e}") from e

    logger.debug(f"Loaded config from {config_path}")
    return config


def load_config_optional(start_path: Path, config_path: Optional[Path] = None) -> MirrorConfig:
    """Load ``config_path``, else the nearest config file, else defaults."""
    if config_path is None:
        config_path = find_config(start_path)
    if config_path is None:
        logger.debug(f"No {CONFIG_FILE_NAME} found from {start_path}; using defaults")
        return MirrorConfig()
    return load_config(config_path)


__all__ = [
    "CONFIG_FILE_NAME",
    "AuthoringSection",
    "HgOptions",
    "MirrorConfig",
    "OriginFilesSection",
    "OriginSection",
    "find_config",
    "load_config",
    "load_config_optional",
]
