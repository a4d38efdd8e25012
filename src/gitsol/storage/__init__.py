"""SQLite commit store: schema, batched writes, queries and reports."""

from .database import DEFAULT_STORE_DIR, DEFAULT_STORE_FILENAME, SCHEMA_VERSION, TABLES, CommitStore
from .reader import execute_query, read_meta, table_counts
from .reports import (
    ReportType,
    build_report_query,
    commits_in_release,
    release_windows,
    run_report,
)
from .writer import (
    DEFAULT_BATCH_SIZE,
    WriteReport,
    insert_branch,
    insert_commits,
    insert_tag,
    write_meta,
)

__all__ = [
    "CommitStore",
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_STORE_DIR",
    "DEFAULT_STORE_FILENAME",
    "ReportType",
    "SCHEMA_VERSION",
    "TABLES",
    "WriteReport",
    "build_report_query",
    "commits_in_release",
    "execute_query",
    "insert_branch",
    "insert_commits",
    "insert_tag",
    "read_meta",
    "release_windows",
    "run_report",
    "table_counts",
    "write_meta",
]
