"""log command: list changesets of an origin."""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from hgmirror_cli.util import handle_errors, load_cli_config

console = Console()

_FORMATS = ("table", "json", "plain")


def log(
    to_ref: Optional[str] = typer.Option(None, "--to", help="Newest reference (default: [origin].ref or tip)"),
    from_ref: Optional[str] = typer.Option(None, "--from", help="Exclude this reference and its ancestors"),
    url: Optional[str] = typer.Option(None, "--url", "-u", help="Origin URL (overrides [origin].url)"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=1, help="Show at most N changesets"),
    oldest_first: bool = typer.Option(False, "--oldest-first", help="Oldest changeset first"),
    format: str = typer.Option("table", "--format", "-f", help="Output format: table|json|plain"),
):
    """List changesets reachable from --to but not from --from (newest first)."""
    if format not in _FORMATS:
        raise typer.BadParameter(f"format must be one of {', '.join(_FORMATS)}")

    with handle_errors():
        config = load_cli_config()
        origin = config.build_origin(url)
        reader = origin.new_reader(config.build_path_filter(), config.build_authoring())
        to_revision = origin.resolve(to_ref)
        from_revision = origin.resolve(from_ref) if from_ref else None
        entries = reader.find_log_entries(from_revision, to_revision, oldest_first=oldest_first, limit=limit)

    if format == "json":
        console.print_json(
            data=[
                {
                    "node": e.global_id,
                    "parents": list(e.parents),
                    "user": e.user,
                    "date": e.date.isoformat(),
                    "branch": e.branch,
                    "description": e.description,
                    "files": {path: kind.value for path, kind in sorted(e.files.items())},
                }
                for e in entries
            ]
        )
        return

    if format == "plain":
        for e in entries:
            summary = e.description.split("\n", 1)[0]
            console.print(f"{e.global_id} {e.date.isoformat()} {summary}", highlight=False, markup=False)
        return

    table = Table(show_header=True, title=origin.label_name)
    table.add_column("Node", style="cyan", no_wrap=True)
    table.add_column("Date")
    table.add_column("User")
    table.add_column("Description")
    for e in entries:
        table.add_row(e.global_id[:12], e.date.strftime("%Y-%m-%d %H:%M %z"), e.user, e.description.split("\n", 1)[0])
    console.print(table)
