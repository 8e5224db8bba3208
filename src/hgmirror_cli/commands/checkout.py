"""checkout command: reconcile a directory with a revision."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console

from hgmirror_cli.util import handle_errors, load_cli_config

console = Console()


def checkout(
    ref: str = typer.Argument(..., help="Reference to check out"),
    work_dir: Path = typer.Argument(
        ...,
        help="Existing directory to reconcile",
        exists=True,
        file_okay=False,
        dir_okay=True,
        writable=True,
    ),
    url: Optional[str] = typer.Option(None, "--url", "-u", help="Origin URL (overrides [origin].url)"),
    include: Optional[List[str]] = typer.Option(None, "--include", "-i", help="Glob of paths to materialize"),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude", "-x", help="Glob of paths to leave alone"),
):
    """Make WORK_DIR hold exactly the (filtered) tree of REF."""
    with handle_errors():
        config = load_cli_config()
        origin = config.build_origin(url)
        reader = origin.new_reader(
            config.build_path_filter(include or None, exclude or None),
            config.build_authoring(),
        )
        revision = origin.resolve(ref)
        result = reader.checkout(revision, work_dir)

    console.print(
        f"[bold]{revision.global_id}[/bold] -> {work_dir}: "
        f"[green]{len(result.written)} written[/green], "
        f"[yellow]{len(result.removed)} removed[/yellow], "
        f"{len(result.unchanged)} unchanged",
        highlight=False,
    )
