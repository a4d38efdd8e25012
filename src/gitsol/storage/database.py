"""SQLite-backed commit store kept in .gitsol/ under the invoking directory."""

import sqlite3
from pathlib import Path
from typing import Optional

from ..exceptions import StoreInitializationError, StoreNotFoundError
from ..logging_config import get_logger

logger = get_logger(__name__)

# Current schema version (bump when tables change).
SCHEMA_VERSION = 1

DEFAULT_STORE_DIR = ".gitsol"
DEFAULT_STORE_FILENAME = "commits.db"

TABLES = ("commits", "file_changes", "commit_parents", "branches", "tags")

_SCHEMA = [
    # ── store_meta ───────────────────────────────────────────────
    """
    CREATE TABLE store_meta (
        key   TEXT PRIMARY KEY,
        value TEXT
    )
    """,
    # ── commits ──────────────────────────────────────────────────
    """
    CREATE TABLE commits (
        commit_hash           TEXT    NOT NULL,
        repo_name             TEXT    NOT NULL DEFAULT '',
        author                TEXT,
        date                  TEXT,
        timezone              TEXT,
        is_merge              INTEGER NOT NULL DEFAULT 0,
        total_additions       INTEGER NOT NULL DEFAULT 0,
        total_deletions       INTEGER NOT NULL DEFAULT 0,
        total_additions_test  INTEGER NOT NULL DEFAULT 0,
        total_deletions_test  INTEGER NOT NULL DEFAULT 0,
        total_additions_build INTEGER NOT NULL DEFAULT 0,
        total_deletions_build INTEGER NOT NULL DEFAULT 0,
        total_additions_dot   INTEGER NOT NULL DEFAULT 0,
        total_deletions_dot   INTEGER NOT NULL DEFAULT 0,
        message               TEXT,
        PRIMARY KEY (commit_hash, repo_name)
    )
    """,
    # ── file_changes ─────────────────────────────────────────────
    """
    CREATE TABLE file_changes (
        id                    INTEGER PRIMARY KEY AUTOINCREMENT,
        commit_hash           TEXT    NOT NULL,
        repo_name             TEXT    NOT NULL DEFAULT '',
        author                TEXT,
        change_type           TEXT    NOT NULL,
        file_path             TEXT    NOT NULL,
        additions             INTEGER NOT NULL DEFAULT 0,
        deletions             INTEGER NOT NULL DEFAULT 0,
        is_test_file          INTEGER NOT NULL DEFAULT 0,
        is_build_file         INTEGER NOT NULL DEFAULT 0,
        is_dot_file           INTEGER NOT NULL DEFAULT 0,
        is_documentation_file INTEGER NOT NULL DEFAULT 0,
        FOREIGN KEY (commit_hash, repo_name)
            REFERENCES commits(commit_hash, repo_name) ON DELETE CASCADE
    )
    """,
    # ── commit_parents ───────────────────────────────────────────
    # parent_hash is not a foreign key: truncated histories
    # reference parents that were never ingested.
    """
    CREATE TABLE commit_parents (
        commit_hash TEXT NOT NULL,
        repo_name   TEXT NOT NULL DEFAULT '',
        parent_hash TEXT NOT NULL,
        PRIMARY KEY (commit_hash, repo_name, parent_hash),
        FOREIGN KEY (commit_hash, repo_name)
            REFERENCES commits(commit_hash, repo_name) ON DELETE CASCADE
    )
    """,
    # ── branches ─────────────────────────────────────────────────
    """
    CREATE TABLE branches (
        branch_name   TEXT    NOT NULL,
        repo_name     TEXT    NOT NULL DEFAULT '',
        is_active     INTEGER NOT NULL,
        creation_date TEXT,
        merge_date    TEXT,
        PRIMARY KEY (branch_name, repo_name)
    )
    """,
    # ── tags ─────────────────────────────────────────────────────
    """
    CREATE TABLE tags (
        tag_name    TEXT NOT NULL,
        repo_name   TEXT NOT NULL DEFAULT '',
        tag_commit  TEXT NOT NULL,
        tag_date    TEXT,
        tag_message TEXT,
        PRIMARY KEY (tag_name, repo_name)
    )
    """,
]

_INDEXES = [
    # author lookups and per-author date ranges
    "CREATE INDEX idx_commits_author ON commits(author)",
    "CREATE INDEX idx_commits_author_repo ON commits(author, repo_name)",
    "CREATE INDEX idx_commits_author_date ON commits(author, date)",
    # date-range scans, merge detection over time
    "CREATE INDEX idx_commits_date ON commits(date)",
    "CREATE INDEX idx_commits_date_repo ON commits(date, repo_name)",
    "CREATE INDEX idx_commits_date_merge ON commits(date, is_merge)",
    "CREATE INDEX idx_commits_merge_date ON commits(is_merge, date)",
    "CREATE INDEX idx_commits_date_hash ON commits(date, commit_hash)",
    # file-change lookups
    "CREATE INDEX idx_file_changes_file_path ON file_changes(file_path)",
    "CREATE INDEX idx_file_changes_file_path_repo ON file_changes(file_path, repo_name)",
    "CREATE INDEX idx_file_changes_commit_hash ON file_changes(commit_hash, repo_name)",
    "CREATE INDEX idx_file_changes_commit_file ON file_changes(commit_hash, file_path)",
    "CREATE INDEX idx_file_changes_file_commit ON file_changes(file_path, commit_hash)",
    "CREATE INDEX idx_file_changes_hash_add_del ON file_changes(commit_hash, additions, deletions)",
    # per-category filtering
    "CREATE INDEX idx_is_test_file ON file_changes(is_test_file)",
    "CREATE INDEX idx_is_build_file ON file_changes(is_build_file)",
    "CREATE INDEX idx_is_dot_file ON file_changes(is_dot_file)",
    "CREATE INDEX idx_is_documentation_file ON file_changes(is_documentation_file)",
    "CREATE INDEX idx_file_changes_categories ON file_changes("
    "commit_hash, file_path, is_test_file, is_build_file, is_dot_file, is_documentation_file)",
    # parent/child traversal
    "CREATE INDEX idx_commit_parents_commit_hash ON commit_parents(commit_hash, repo_name)",
    "CREATE INDEX idx_commit_parents_parent_hash ON commit_parents(parent_hash, repo_name)",
    # refs
    "CREATE INDEX idx_tags_tag_name ON tags(tag_name)",
    "CREATE INDEX idx_tags_tag_date ON tags(tag_date)",
    "CREATE INDEX idx_tags_tag_commit ON tags(tag_commit)",
    "CREATE INDEX idx_branches_merge_date ON branches(merge_date)",
]


class CommitStore:
    """Manages the ``.gitsol/commits.db`` SQLite database.

    The store is rebuilt from scratch on every indexing run; ``initialize()``
    deletes the previous file before the schema is created, so a store never
    mixes rows from two runs.

    Usage::

        store = CommitStore("/path/to/workspace")
        with store.initialize():
            insert_commits(store.conn, commits)

        with CommitStore("/path/to/workspace") as store:   # read side
            rows = execute_query(store.conn, "SELECT COUNT(*) AS n FROM commits")
    """

    def __init__(
        self,
        root: str,
        store_dir: str = DEFAULT_STORE_DIR,
        filename: str = DEFAULT_STORE_FILENAME,
    ) -> None:
        self.db_dir: Path = Path(root) / store_dir
        self.db_path: Path = self.db_dir / filename
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def conn(self) -> sqlite3.Connection:
        """Return the active connection. Raises if not connected."""
        if self._conn is None:
            raise RuntimeError("CommitStore is not connected. Use as context manager or call connect().")
        return self._conn

    @property
    def exists(self) -> bool:
        return self.db_path.exists()

    # ── lifecycle ─────────────────────────────────────────────────

    def _ensure_dir(self) -> None:
        """Create .gitsol/ and write a .gitignore so it stays untracked."""
        self.db_dir.mkdir(parents=True, exist_ok=True)
        gitignore = self.db_dir / ".gitignore"
        if not gitignore.exists():
            gitignore.write_text("*\n")

    def _open(self) -> sqlite3.Connection:
        # isolation_level=None: transactions are opened explicitly with BEGIN
        conn = sqlite3.connect(str(self.db_path), isolation_level=None)
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        conn.row_factory = sqlite3.Row
        return conn

    def connect(self) -> sqlite3.Connection:
        """Open an existing store for reading or writing."""
        if not self.exists:
            raise StoreNotFoundError(self.db_path)
        self._conn = self._open()
        logger.debug("Commit store connected at %s", self.db_path)
        return self._conn

    def initialize(self) -> "CommitStore":
        """Discard any previous store and create a fresh schema.

        Raises
        ------
        StoreInitializationError
            If the directory, file, tables or indices cannot be created.
        """
        self.close()
        try:
            self._ensure_dir()
            for suffix in ("", "-wal", "-shm"):
                stale = self.db_path.with_name(self.db_path.name + suffix)
                if stale.exists():
                    stale.unlink()
            self._conn = self._open()
            self._create_schema()
        except (OSError, sqlite3.Error) as e:
            self.close()
            raise StoreInitializationError(self.db_path, str(e)) from e
        logger.info("Commit store initialized at %s", self.db_path)
        return self

    def close(self) -> None:
        """Close the connection if open."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "CommitStore":
        if self._conn is None:
            self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ── schema ────────────────────────────────────────────────────

    def _create_schema(self) -> None:
        c = self.conn
        c.execute("BEGIN")
        try:
            for statement in _SCHEMA:
                c.execute(statement)
            for statement in _INDEXES:
                c.execute(statement)
            c.execute(
                "INSERT INTO store_meta (key, value) VALUES ('schema_version', ?)",
                (str(SCHEMA_VERSION),),
            )
            c.commit()
        except sqlite3.Error:
            c.rollback()
            raise
