"""Report CLI commands -- predefined reports, release windows, table counts."""

from datetime import datetime
from typing import Optional

import typer

from ..exceptions import QueryExecutionError
from ..storage import ReportType, release_windows, run_report, table_counts
from . import app
from ._common import console, open_store, print_rows


@app.command()
def report(
    ctx: typer.Context,
    report_type: ReportType = typer.Argument(..., help="Report to run", case_sensitive=False),
    since: Optional[datetime] = typer.Option(
        None,
        "--since",
        help="Only commits on or after this day (YYYY-MM-DD)",
        formats=["%Y-%m-%d"],
    ),
    until: Optional[datetime] = typer.Option(
        None,
        "--until",
        help="Only commits on or before this day (YYYY-MM-DD)",
        formats=["%Y-%m-%d"],
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    Run a predefined report over the indexed history.

    [bold cyan]Reports:[/bold cyan]

      churn            commits, additions and deletions per author
      releases         number of tags per repository
      merge_time       average days between merge commits
      commit_velocity  commits per day
      test_changes     share of line changes touching test files

    [bold cyan]Examples:[/bold cyan]

      gitsol report churn

      gitsol report commit_velocity --since 2024-01-01 --until 2024-03-31
    """
    if since and until and since > until:
        console.print("[red]--since must not be later than --until[/red]")
        raise typer.Exit(1)

    store = open_store(ctx)
    try:
        rows = run_report(
            store.conn,
            report_type,
            since.date() if since else None,
            until.date() if until else None,
        )
    except QueryExecutionError as e:
        console.print(f"[red]Report failed:[/red] {e.reason}")
        raise typer.Exit(1)
    finally:
        store.close()

    print_rows(rows, title=report_type.value, json_output=json_output)


@app.command()
def releases(
    ctx: typer.Context,
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    Summarize each release: commits since the previous tag, with churn.
    """
    store = open_store(ctx)
    try:
        rows = release_windows(store.conn)
    finally:
        store.close()

    print_rows(rows, title="Releases", json_output=json_output)


@app.command()
def tables(ctx: typer.Context):
    """Show row counts for every table in the store."""
    store = open_store(ctx)
    try:
        counts = table_counts(store.conn)
    finally:
        store.close()

    print_rows([{"table": name, "rows": n} for name, n in counts.items()], title="Tables")
