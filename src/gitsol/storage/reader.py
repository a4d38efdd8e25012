"""Read queries against the commit store."""

import sqlite3
from typing import Any, Sequence

from ..exceptions import QueryExecutionError
from .database import TABLES


def execute_query(
    conn: sqlite3.Connection, sql: str, params: Sequence[Any] = ()
) -> list[dict[str, Any]]:
    """Run arbitrary SQL and return rows as ``{column: value}`` dicts.

    The SQL is trusted and run as-is: the store is a local file owned by the
    user. Column order follows the query's projection.

    Raises
    ------
    QueryExecutionError
        On any SQLite error (syntax, missing table or column, ...).
    """
    try:
        cur = conn.execute(sql, tuple(params))
        if cur.description is None:
            return []
        columns = [d[0] for d in cur.description]
        return [dict(zip(columns, row)) for row in cur.fetchall()]
    # sqlite3.Warning: "You can only execute one statement at a time" on older Pythons
    except (sqlite3.Error, sqlite3.Warning) as e:
        raise QueryExecutionError(sql, str(e)) from e


def table_counts(conn: sqlite3.Connection) -> dict[str, int]:
    """Return row counts for every data table."""
    return {
        table: int(conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0])
        for table in TABLES
    }


def read_meta(conn: sqlite3.Connection) -> dict[str, str]:
    """Return the ``store_meta`` key/value pairs."""
    return {row[0]: row[1] for row in conn.execute("SELECT key, value FROM store_meta")}
