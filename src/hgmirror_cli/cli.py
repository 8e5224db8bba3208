from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from .util import configure_logging, set_global_config_file

app = typer.Typer(help="hgmirror: read history and check out snapshots from Mercurial origins")


@app.callback()
def _init(
    config_file: Optional[Path] = typer.Option(
        None,
        "--config-file",
        help="Path to config file (.hgmirror.toml)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log hg commands and file actions"),
):
    configure_logging(verbose)
    set_global_config_file(config_file)


from .commands.checkout import checkout as checkout_fn  # noqa: E402
from .commands.log import log as log_fn  # noqa: E402
from .commands.resolve import resolve as resolve_fn  # noqa: E402

app.command(name="resolve", help="Resolve a reference to a full changeset id")(resolve_fn)
app.command(name="log", help="List changesets between two references")(log_fn)
app.command(name="checkout", help="Reconcile a directory with a revision's tree")(checkout_fn)


def main():
    app()
