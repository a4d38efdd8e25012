"""Write commits, branches and tags into the commit store.

Commits are written in fixed-size batches, one transaction per batch. A
failing batch is rolled back and reported; batches already committed stay.
"""

import sqlite3
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from ..exceptions import BatchWriteError
from ..history.models import Branch, Commit, Tag, offset_label, to_utc_text
from ..logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_BATCH_SIZE = 1000

_INSERT_COMMIT = """
    INSERT INTO commits (
        commit_hash, repo_name, author, date, timezone, is_merge,
        total_additions, total_deletions,
        total_additions_test, total_deletions_test,
        total_additions_build, total_deletions_build,
        total_additions_dot, total_deletions_dot,
        message
    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""

_INSERT_FILE_CHANGE = """
    INSERT INTO file_changes (
        commit_hash, repo_name, author, change_type, file_path,
        additions, deletions,
        is_test_file, is_build_file, is_dot_file, is_documentation_file
    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""

_INSERT_PARENT = """
    INSERT INTO commit_parents (commit_hash, repo_name, parent_hash)
    VALUES (?, ?, ?)
"""


@dataclass
class WriteReport:
    """Outcome of :func:`insert_commits`."""

    commits_written: int = 0
    batches_committed: int = 0
    batches_failed: int = 0
    errors: list[BatchWriteError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.batches_failed == 0


def commit_row(commit: Commit) -> tuple:
    """Materialize a commit row, computing the derived totals."""
    return (
        commit.hash,
        commit.repo_name,
        commit.author,
        to_utc_text(commit.authored_at),
        offset_label(commit.authored_at),
        1 if commit.is_merge else 0,
        commit.total_additions,
        commit.total_deletions,
        commit.total_additions_test,
        commit.total_deletions_test,
        commit.total_additions_build,
        commit.total_deletions_build,
        commit.total_additions_dot,
        commit.total_deletions_dot,
        commit.message,
    )


def _file_change_rows(commit: Commit) -> list[tuple]:
    return [
        (
            commit.hash,
            commit.repo_name,
            commit.author,
            fc.change_type.value,
            fc.file_path,
            fc.additions,
            fc.deletions,
            int(fc.is_test_file),
            int(fc.is_build_file),
            int(fc.is_dot_file),
            int(fc.is_documentation_file),
        )
        for fc in commit.file_changes
    ]


def _parent_rows(commit: Commit) -> list[tuple]:
    # dict.fromkeys: a parent listed twice would violate the primary key
    return [(commit.hash, commit.repo_name, p) for p in dict.fromkeys(commit.parent_hashes)]


def _chunks(items: Sequence[Commit], size: int) -> Iterable[Sequence[Commit]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


def insert_commits(
    conn: sqlite3.Connection,
    commits: Sequence[Commit],
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> WriteReport:
    """Persist commits with their file changes and parent links.

    Parameters
    ----------
    conn:
        An open connection from ``CommitStore``.
    commits:
        The full parsed batch for one repository.
    batch_size:
        Commits per transaction.

    Returns
    -------
    WriteReport
        Counts of what was written plus one ``BatchWriteError`` per failed batch.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")

    report = WriteReport()
    for index, batch in enumerate(_chunks(list(commits), batch_size)):
        commit_rows = [commit_row(c) for c in batch]
        file_rows = [row for c in batch for row in _file_change_rows(c)]
        parent_rows = [row for c in batch for row in _parent_rows(c)]

        cur = conn.cursor()
        try:
            cur.execute("BEGIN")
            cur.executemany(_INSERT_COMMIT, commit_rows)
            if file_rows:
                cur.executemany(_INSERT_FILE_CHANGE, file_rows)
            if parent_rows:
                cur.executemany(_INSERT_PARENT, parent_rows)
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            error = BatchWriteError("commits", str(e), batch_index=index)
            logger.error("Commit batch %d rolled back: %s", index, e)
            report.batches_failed += 1
            report.errors.append(error)
            continue

        report.batches_committed += 1
        report.commits_written += len(batch)
        logger.debug("Committed batch %d (%d commits)", index, len(batch))

    return report


def _insert_one(conn: sqlite3.Connection, table: str, sql: str, params: tuple) -> None:
    try:
        conn.execute("BEGIN")
        conn.execute(sql, params)
        conn.commit()
    except sqlite3.Error as e:
        conn.rollback()
        raise BatchWriteError(table, str(e)) from e


def insert_branch(conn: sqlite3.Connection, branch: Branch) -> None:
    """Persist a single branch row.

    Raises
    ------
    BatchWriteError
        If the row cannot be written (e.g. the branch was already stored).
    """
    _insert_one(
        conn,
        "branches",
        """
        INSERT INTO branches (branch_name, repo_name, is_active, creation_date, merge_date)
        VALUES (?, ?, ?, ?, ?)
        """,
        (
            branch.name,
            branch.repo_name,
            1 if branch.is_active else 0,
            to_utc_text(branch.creation_date),
            to_utc_text(branch.merge_date),
        ),
    )


def insert_tag(conn: sqlite3.Connection, tag: Tag) -> None:
    """Persist a single tag row.

    Raises
    ------
    BatchWriteError
        If the row cannot be written.
    """
    _insert_one(
        conn,
        "tags",
        """
        INSERT INTO tags (tag_name, repo_name, tag_commit, tag_date, tag_message)
        VALUES (?, ?, ?, ?, ?)
        """,
        (tag.name, tag.repo_name, tag.commit_hash, to_utc_text(tag.date), tag.message),
    )


def write_meta(conn: sqlite3.Connection, key: str, value: str) -> None:
    """Insert or replace one ``store_meta`` entry."""
    conn.execute("BEGIN")
    conn.execute(
        "INSERT OR REPLACE INTO store_meta (key, value) VALUES (?, ?)",
        (key, value),
    )
    conn.commit()
