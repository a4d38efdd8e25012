"""Tests for storage/reports.py - predefined reports and release windows."""

from datetime import date, datetime, timezone

import pytest

from gitsol.history.models import ChangeType, Commit, FileChange, Tag
from gitsol.storage import (
    CommitStore,
    ReportType,
    build_report_query,
    commits_in_release,
    insert_commits,
    insert_tag,
    release_windows,
    run_report,
)

D0 = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)
D1 = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)
MID = datetime(2024, 1, 15, 8, 30, tzinfo=timezone.utc)
D2 = datetime(2024, 1, 20, 18, 0, tzinfo=timezone.utc)


def make_commit(sha, when, author="alice", parents=("p",), adds=1, test_adds=0, repo_name=""):
    changes = [FileChange(ChangeType.MODIFIED, "src/Main.java", adds, 0)]
    if test_adds:
        changes.append(
            FileChange(ChangeType.ADDED, "src/MainTest.java", test_adds, 0, is_test_file=True)
        )
    return Commit(
        hash=sha,
        author=author,
        authored_at=when,
        message=f"commit {sha}",
        parent_hashes=list(parents),
        file_changes=changes,
        repo_name=repo_name,
    )


@pytest.fixture
def conn(tmp_path):
    store = CommitStore(str(tmp_path)).initialize()
    yield store.conn
    store.close()


@pytest.fixture
def released(conn):
    """Two tags, with one commit exactly on the first tag's timestamp."""
    insert_commits(
        conn,
        [
            make_commit("before", D0),
            make_commit("on_d1", D1),
            make_commit("between", MID),
            make_commit("on_d2", D2),
        ],
    )
    insert_tag(conn, Tag("v1", "on_d1", D1, "first"))
    insert_tag(conn, Tag("v2", "on_d2", D2, "second"))
    return conn


class TestReleaseWindows:
    def test_window_boundaries(self, released):
        """A commit at exactly the previous tag's time belongs to that tag only."""
        rows = {r["tag_name"]: r for r in release_windows(released)}
        assert rows["v1"]["commit_count"] == 2
        assert rows["v1"]["previous_tag_date"] is None
        assert rows["v2"]["commit_count"] == 2
        assert rows["v2"]["previous_tag_date"] == "2024-01-10T12:00:00Z"

    def test_commits_in_release(self, released):
        hashes = [r["commit_hash"] for r in commits_in_release(released, "v2")]
        assert hashes == ["between", "on_d2"]
        assert "on_d1" not in hashes

    def test_first_release_takes_everything_before(self, released):
        hashes = [r["commit_hash"] for r in commits_in_release(released, "v1")]
        assert hashes == ["before", "on_d1"]

    def test_ordered_by_tag_date(self, released):
        assert [r["tag_name"] for r in release_windows(released)] == ["v1", "v2"]

    def test_empty_release(self, conn):
        """A tag with no commits in its window reports zero churn."""
        insert_tag(conn, Tag("v0", "x", D0, ""))
        row = release_windows(conn)[0]
        assert (row["commit_count"], row["total_additions"]) == (0, 0)


class TestReports:
    def test_build_query_window(self):
        """The date window is bound as whole-day UTC bounds."""
        sql, params = build_report_query(ReportType.CHURN, date(2024, 1, 1), date(2024, 1, 31))
        assert params == ["2024-01-01T00:00:00Z", "2024-01-31T23:59:59Z"]
        assert sql.count("?") == 2

    def test_build_query_without_window(self):
        sql, params = build_report_query("commit_velocity")
        assert params == []
        assert "{window}" not in sql

    def test_churn(self, conn):
        insert_commits(
            conn,
            [
                make_commit("a", D0, "alice", adds=3),
                make_commit("b", D1, "alice", adds=2),
                make_commit("c", D2, "bob", adds=7),
            ],
        )
        rows = run_report(conn, ReportType.CHURN)
        assert rows[0] == {
            "author": "alice",
            "num_commits": 2,
            "total_deletions": 0,
            "total_additions": 5,
        }
        assert rows[1]["author"] == "bob"

    def test_churn_window(self, conn):
        """Commits outside the window are excluded; the until day is inclusive."""
        insert_commits(conn, [make_commit("a", D0), make_commit("b", D1), make_commit("c", D2)])
        rows = run_report(conn, ReportType.CHURN, since=date(2024, 1, 2), until=date(2024, 1, 10))
        assert rows[0]["num_commits"] == 1

    def test_releases(self, released):
        rows = run_report(released, ReportType.RELEASES)
        assert rows == [{"repo_name": "", "no_of_releases": 2}]

    def test_merge_time(self, conn):
        """Average gap between merge commits, in days."""
        insert_commits(
            conn,
            [
                make_commit("m1", datetime(2024, 1, 1, tzinfo=timezone.utc), parents=("a", "b")),
                make_commit("m2", datetime(2024, 1, 3, tzinfo=timezone.utc), parents=("c", "d")),
                make_commit("m3", datetime(2024, 1, 7, tzinfo=timezone.utc), parents=("e", "f")),
                make_commit("n", datetime(2024, 1, 2, tzinfo=timezone.utc)),
            ],
        )
        row = run_report(conn, ReportType.MERGE_TIME)[0]
        assert row["avg_time_in_days_between_merges"] == pytest.approx(3.0)

    def test_commit_velocity(self, conn):
        insert_commits(
            conn,
            [
                make_commit("a", D0),
                make_commit("b", D0.replace(hour=17)),
                make_commit("c", D1),
            ],
        )
        rows = run_report(conn, ReportType.COMMIT_VELOCITY)
        assert [(r["day"], r["commits_per_day"]) for r in rows] == [
            ("2024-01-01", 2),
            ("2024-01-10", 1),
        ]

    def test_test_changes(self, conn):
        insert_commits(conn, [make_commit("a", D0, adds=6, test_adds=2)])
        row = run_report(conn, ReportType.TEST_CHANGES)[0]
        assert row["total_changes"] == 8
        assert row["test_file_changes"] == 2
        assert row["test_file_change_percentage"] == 25.0
