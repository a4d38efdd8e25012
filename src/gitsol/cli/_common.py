"""Shared CLI helpers."""

import json
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from ..config import IndexConfig, load_config
from ..exceptions import ConfigurationError
from ..storage import CommitStore

console = Console()


def resolve_root(ctx: typer.Context) -> Path:
    obj = ctx.obj or {}
    return Path(obj.get("path") or Path.cwd()).resolve()


def resolve_config(ctx: typer.Context, **overrides) -> IndexConfig:
    """Build config from the callback's options plus command-level overrides."""
    obj = ctx.obj or {}
    try:
        return load_config(
            config_file=obj.get("config"),
            verbose=obj.get("verbose", False),
            quiet=obj.get("quiet", False),
            **overrides,
        )
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1)


def open_store(ctx: typer.Context) -> CommitStore:
    """Connect to the store under the root, or exit with a hint if it was never built."""
    config = resolve_config(ctx)
    store = CommitStore(str(resolve_root(ctx)), config.store_dir, config.store_filename)
    if not store.exists:
        console.print(
            f"[yellow]No commit store at {store.db_path}.[/yellow] "
            "Run [bold]gitsol index[/bold] first."
        )
        raise typer.Exit(1)
    store.connect()
    return store


def print_rows(rows: list[dict[str, Any]], title: Optional[str] = None, json_output: bool = False):
    """Render query rows as a rich table or as JSON on stdout."""
    if json_output:
        print(json.dumps(rows, indent=2, default=str))
        return

    if not rows:
        console.print("[yellow]No rows.[/yellow]")
        return

    table = Table(title=title, show_lines=False, pad_edge=True)
    for column in rows[0]:
        table.add_column(column)
    for row in rows:
        table.add_row(*("" if v is None else str(v) for v in row.values()))

    console.print()
    console.print(table)
    console.print()
