"""Index CLI command -- rebuild .gitsol/commits.db from git history."""

from typing import Optional

import typer
from rich.table import Table

from ..exceptions import StoreInitializationError
from ..ingest import IngestionReport, Indexer
from . import app
from ._common import console, resolve_config, resolve_root


@app.command()
def index(
    ctx: typer.Context,
    timeout: Optional[int] = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Per-command timeout for git, in seconds",
        min=1,
    ),
    batch_size: Optional[int] = typer.Option(
        None,
        "--batch-size",
        help="Commits written per transaction",
        min=1,
    ),
):
    """
    Parse git history and rebuild the commit store.

    Indexes the repository at the path, or every repository directly under
    it. The previous store is discarded.

    [bold cyan]Examples:[/bold cyan]

      gitsol index

      gitsol -C ~/src index --timeout 60
    """
    root = resolve_root(ctx)
    config = resolve_config(ctx, timeout_seconds=timeout, batch_size=batch_size)

    try:
        with console.status(f"Indexing {root} ...") as status:
            report = Indexer(root, config, progress=status.update).run()
    except StoreInitializationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if not report.repositories:
        console.print(f"[yellow]No git repositories found under {root}.[/yellow]")
        raise typer.Exit(1)

    _output_rich(report)


def _output_rich(report: IngestionReport):
    table = Table(title="Indexed repositories", show_lines=False, pad_edge=True)
    table.add_column("Repository", style="bold")
    table.add_column("Commits", justify="right", style="cyan")
    table.add_column("Branches", justify="right")
    table.add_column("Tags", justify="right")
    table.add_column("Errors", justify="right", style="yellow")

    for r in report.repositories:
        table.add_row(
            r.name,
            f"{r.commits_written}/{r.commits_parsed}",
            str(r.branches_written),
            str(r.tags_written),
            str(len(r.errors)) if r.errors else "",
        )

    console.print()
    console.print(table)
    for error in report.errors:
        console.print(f"  [yellow]![/yellow] {error}")
    console.print(f"\nStore written to [green]{report.db_path}[/green]")
