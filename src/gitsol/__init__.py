"""
gitsol - statistics over git logs

Parses ``git log``, branch and tag listings into a local SQLite store
(``.gitsol/commits.db``) that can be queried with plain SQL or through a
handful of predefined reports: churn per author, release cadence, time
between merges, commit velocity and test-change share.
"""

__version__ = "0.1.0"

from .config import IndexConfig, load_config
from .ingest import IngestionReport, Indexer, RepositoryReport, discover_repositories
from .history import Branch, ChangeType, Commit, FileChange, Tag, parse_log
from .storage import CommitStore, ReportType, execute_query, run_report

__all__ = [
    "Indexer",  # Main entry point
    "IngestionReport",
    "RepositoryReport",
    "discover_repositories",
    "IndexConfig",
    "load_config",
    "CommitStore",
    "execute_query",
    "run_report",
    "ReportType",
    "Commit",
    "FileChange",
    "ChangeType",
    "Branch",
    "Tag",
    "parse_log",
]
