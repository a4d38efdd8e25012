"""SQL CLI command -- run a raw query against the commit store."""

import typer

from ..exceptions import QueryExecutionError
from ..storage import execute_query
from . import app
from ._common import console, open_store, print_rows


@app.command()
def sql(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="SQL to run against .gitsol/commits.db"),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    Run a SQL query against the commit store.

    Tables: commits, file_changes, commit_parents, branches, tags.

    [bold cyan]Examples:[/bold cyan]

      gitsol sql "SELECT author, SUM(total_additions) FROM commits GROUP BY author"

      gitsol sql "SELECT * FROM tags ORDER BY tag_date" --json
    """
    store = open_store(ctx)
    try:
        rows = execute_query(store.conn, query)
    except QueryExecutionError as e:
        console.print(f"[red]Query failed:[/red] {e.reason}")
        raise typer.Exit(1)
    finally:
        store.close()

    print_rows(rows, json_output=json_output)
