"""resolve command: reference to canonical changeset id."""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console

from hgmirror_cli.util import handle_errors, load_cli_config

console = Console()


def resolve(
    ref: Optional[str] = typer.Argument(None, help="Bookmark, tag, branch, 'tip' or (partial) hash"),
    url: Optional[str] = typer.Option(None, "--url", "-u", help="Origin URL (overrides [origin].url)"),
):
    """Resolve a reference to a full changeset id."""
    with handle_errors():
        origin = load_cli_config().build_origin(url)
        revision = origin.resolve(ref)
    console.print(revision.global_id, highlight=False)
