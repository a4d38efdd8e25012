"""Predefined analytical queries over the commit store.

Dates in the store are UTC text (``YYYY-MM-DDTHH:MM:SSZ``), so date windows
are plain string comparisons. Every report accepts an optional
``[since 00:00:00, until 23:59:59]`` window.
"""

import sqlite3
from datetime import date
from enum import Enum
from typing import Any, Optional

from .reader import execute_query


class ReportType(str, Enum):
    CHURN = "churn"
    RELEASES = "releases"
    MERGE_TIME = "merge_time"
    COMMIT_VELOCITY = "commit_velocity"
    TEST_CHANGES = "test_changes"


_WINDOW = "{window}"

_QUERIES: dict[ReportType, str] = {
    ReportType.CHURN: """
        SELECT
            author,
            COUNT(commit_hash) AS num_commits,
            SUM(total_deletions) AS total_deletions,
            SUM(total_additions) AS total_additions
        FROM commits
        WHERE 1 = 1 {window}
        GROUP BY author
        ORDER BY num_commits DESC, author
    """,
    ReportType.RELEASES: """
        SELECT
            t.repo_name,
            COUNT(t.tag_name) AS no_of_releases
        FROM tags t
        JOIN commits c ON t.tag_commit = c.commit_hash AND t.repo_name = c.repo_name
        WHERE 1 = 1 {window}
        GROUP BY t.repo_name
    """,
    ReportType.MERGE_TIME: """
        WITH merge_times AS (
            SELECT
                repo_name,
                date AS merge_date,
                LAG(date) OVER (PARTITION BY repo_name ORDER BY date) AS previous_merge_date
            FROM commits
            WHERE is_merge = 1 {window}
        )
        SELECT
            repo_name,
            AVG(JULIANDAY(merge_date) - JULIANDAY(previous_merge_date))
                AS avg_time_in_days_between_merges
        FROM merge_times
        WHERE previous_merge_date IS NOT NULL
        GROUP BY repo_name
    """,
    ReportType.COMMIT_VELOCITY: """
        SELECT
            substr(date, 1, 10) AS day,
            repo_name,
            COUNT(commit_hash) AS commits_per_day
        FROM commits
        WHERE 1 = 1 {window}
        GROUP BY repo_name, day
        ORDER BY repo_name, day
    """,
    ReportType.TEST_CHANGES: """
        SELECT
            repo_name,
            SUM(total_additions + total_deletions) AS total_changes,
            SUM(total_additions_test + total_deletions_test) AS test_file_changes,
            ROUND(
                SUM(total_additions_test + total_deletions_test) * 100.0
                / NULLIF(SUM(total_additions + total_deletions), 0),
                2
            ) AS test_file_change_percentage
        FROM commits
        WHERE 1 = 1 {window}
        GROUP BY repo_name
        ORDER BY test_file_change_percentage DESC
    """,
}

_RELEASE_WINDOWS = """
    WITH ordered AS (
        SELECT
            tag_name,
            repo_name,
            tag_commit,
            tag_date,
            LAG(tag_date) OVER (PARTITION BY repo_name ORDER BY tag_date) AS previous_tag_date
        FROM tags
        WHERE tag_date IS NOT NULL
    )
"""


def _window_bounds(since: Optional[date], until: Optional[date]) -> tuple[str, list[str]]:
    clauses: list[str] = []
    params: list[str] = []
    if since is not None:
        clauses.append("AND date >= ?")
        params.append(f"{since.isoformat()}T00:00:00Z")
    if until is not None:
        clauses.append("AND date <= ?")
        params.append(f"{until.isoformat()}T23:59:59Z")
    return " ".join(clauses), params


def build_report_query(
    report: ReportType,
    since: Optional[date] = None,
    until: Optional[date] = None,
) -> tuple[str, list[str]]:
    """Return ``(sql, params)`` for a predefined report and optional date window."""
    window, params = _window_bounds(since, until)
    return _QUERIES[ReportType(report)].replace(_WINDOW, window), params


def run_report(
    conn: sqlite3.Connection,
    report: ReportType,
    since: Optional[date] = None,
    until: Optional[date] = None,
) -> list[dict[str, Any]]:
    sql, params = build_report_query(report, since, until)
    return execute_query(conn, sql, params)


def release_windows(conn: sqlite3.Connection) -> list[dict[str, Any]]:
    """Summarize each release: the commits after the previous tag, up to this one.

    A commit belongs to a tag's window when
    ``previous_tag_date < commit.date <= tag_date``; the first tag of a
    repository takes everything up to its date.
    """
    sql = (
        _RELEASE_WINDOWS
        + """
    SELECT
        o.repo_name,
        o.tag_name,
        o.tag_date,
        o.previous_tag_date,
        COUNT(c.commit_hash) AS commit_count,
        COALESCE(SUM(c.total_additions), 0) AS total_additions,
        COALESCE(SUM(c.total_deletions), 0) AS total_deletions
    FROM ordered o
    LEFT JOIN commits c
        ON c.repo_name = o.repo_name
        AND c.date <= o.tag_date
        AND (o.previous_tag_date IS NULL OR c.date > o.previous_tag_date)
    GROUP BY o.repo_name, o.tag_name, o.tag_date, o.previous_tag_date
    ORDER BY o.repo_name, o.tag_date
    """
    )
    return execute_query(conn, sql)


def commits_in_release(
    conn: sqlite3.Connection, tag_name: str, repo_name: Optional[str] = None
) -> list[dict[str, Any]]:
    """Return the commits inside one tag's release window, oldest first."""
    sql = (
        _RELEASE_WINDOWS
        + """
    SELECT c.*
    FROM ordered o
    JOIN commits c
        ON c.repo_name = o.repo_name
        AND c.date <= o.tag_date
        AND (o.previous_tag_date IS NULL OR c.date > o.previous_tag_date)
    WHERE o.tag_name = ?
    """
    )
    params: list[str] = [tag_name]
    if repo_name is not None:
        sql += " AND o.repo_name = ?"
        params.append(repo_name)
    sql += " ORDER BY c.date, c.commit_hash"
    return execute_query(conn, sql, params)
