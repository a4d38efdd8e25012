"""CLI entry point: the typer app and its subcommands."""

import typer


app = typer.Typer(
    name="gitsol",
    help="gitsol - statistics over git logs",
    add_completion=False,
    rich_markup_mode="rich",
)


# Import subcommands to register them
from .root import callback as _callback  # noqa: F401, E402
from .index import index as _index  # noqa: F401, E402
from .sql import sql as _sql  # noqa: F401, E402
from .report import report as _report, releases as _releases, tables as _tables  # noqa: F401, E402


def main() -> None:
    app()
