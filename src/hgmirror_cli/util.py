from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer
from rich.console import Console

from hgmirror_core.config import MirrorConfig, load_config_optional
from hgmirror_core.errors import ConfigError, HgMirrorError, ValidationError
from hgmirror_core.vcs.process import configure_max_concurrent_commands

err_console = Console(stderr=True)

# Global variable to store custom config file path
_global_config_file: Optional[Path] = None


def set_global_config_file(config_file: Optional[Path]) -> None:
    """Set the global config file path for use by utility functions."""
    global _global_config_file
    _global_config_file = config_file.resolve() if config_file else None


def get_global_config_file() -> Optional[Path]:
    """Get the global config file path if set."""
    return _global_config_file


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def load_cli_config() -> MirrorConfig:
    """Config from --config-file, else the nearest .hgmirror.toml, else defaults."""
    config = load_config_optional(Path.cwd(), get_global_config_file())
    configure_max_concurrent_commands(config.hg.max_concurrent_commands)
    return config


@contextmanager
def handle_errors() -> Iterator[None]:
    """Turn hgmirror errors into a red message and a non-zero exit code.

    Validation and config errors exit with 2, everything else with 1.
    """
    try:
        yield
    except (ValidationError, ConfigError) as e:
        err_console.print(f"[red]Error:[/red] {e}", highlight=False)
        raise typer.Exit(code=2)
    except HgMirrorError as e:
        err_console.print(f"[red]Error:[/red] {e}", highlight=False)
        raise typer.Exit(code=1)
