"""Top-level callback: global options shared by every subcommand."""

from pathlib import Path
from typing import Optional

import typer

from .. import __version__
from ..logging_config import setup_logging
from . import app
from ._common import console, resolve_config


@app.callback(invoke_without_command=True, no_args_is_help=False)
def callback(
    ctx: typer.Context,
    path: Optional[Path] = typer.Option(
        None,
        "-C",
        "--path",
        help="Repository, or directory of repositories (default: current directory)",
        exists=True,
        file_okay=False,
        dir_okay=True,
        readable=True,
    ),
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only log errors",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
    ),
):
    """
    Index git history into a local SQLite store and query it.

    [bold cyan]Examples:[/bold cyan]

      gitsol index

      gitsol -C ~/work report churn --since 2024-01-01

      gitsol sql "SELECT author, COUNT(*) AS n FROM commits GROUP BY author"
    """
    if version:
        console.print(f"gitsol {__version__}")
        raise typer.Exit(0)

    ctx.ensure_object(dict)
    ctx.obj["path"] = path or Path.cwd()
    ctx.obj["config"] = config
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    # flags win; otherwise GITSOL_VERBOSITY or the config file decide
    settings = resolve_config(ctx)
    setup_logging(
        verbose=settings.verbosity == "verbose",
        quiet=settings.verbosity == "quiet",
    )

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit(0)
