"""Tests for the storage package: schema, writes and queries."""

from datetime import datetime, timedelta, timezone

import pytest

from gitsol.exceptions import (
    BatchWriteError,
    QueryExecutionError,
    StoreInitializationError,
    StoreNotFoundError,
)
from gitsol.history.log_parser import parse_log
from gitsol.history.models import Branch, ChangeType, Commit, FileChange, Tag
from gitsol.storage import (
    TABLES,
    CommitStore,
    execute_query,
    insert_branch,
    insert_commits,
    insert_tag,
    read_meta,
    table_counts,
)


def make_commit(sha: str, parents=(), changes=None, repo_name="") -> Commit:
    return Commit(
        hash=sha,
        author="alice",
        authored_at=datetime(2024, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=-5))),
        message=f"commit {sha}",
        parent_hashes=list(parents),
        file_changes=changes
        if changes is not None
        else [FileChange(ChangeType.MODIFIED, f"{sha}.py", 3, 1)],
        repo_name=repo_name,
    )


@pytest.fixture
def store(tmp_path):
    s = CommitStore(str(tmp_path)).initialize()
    yield s
    s.close()


class TestCommitStoreSchema:
    def test_creates_tables(self, store):
        """All data tables plus the metadata table exist."""
        rows = store.conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
        names = {r["name"] for r in rows}
        assert set(TABLES) <= names
        assert "store_meta" in names

    def test_creates_indexes(self, store):
        """Lookup indices for authors, dates, paths and tags are created."""
        rows = store.conn.execute("SELECT name FROM sqlite_master WHERE type='index'").fetchall()
        names = {r["name"] for r in rows}
        for expected in (
            "idx_commits_author",
            "idx_commits_date",
            "idx_file_changes_file_path",
            "idx_commit_parents_parent_hash",
            "idx_tags_tag_name",
        ):
            assert expected in names

    def test_schema_version_recorded(self, store):
        assert read_meta(store.conn)["schema_version"] == "1"

    def test_store_location_and_gitignore(self, tmp_path, store):
        """The store lives in .gitsol/ which ignores itself."""
        assert store.db_path == tmp_path / ".gitsol" / "commits.db"
        assert (tmp_path / ".gitsol" / ".gitignore").read_text() == "*\n"

    def test_reinitialize_replaces(self, tmp_path, store):
        """Initializing again discards all earlier rows."""
        insert_commits(store.conn, [make_commit("a")])
        store.initialize()
        assert table_counts(store.conn)["commits"] == 0

    def test_connect_missing_store(self, tmp_path):
        with pytest.raises(StoreNotFoundError):
            CommitStore(str(tmp_path)).connect()

    def test_initialize_failure_is_typed(self, tmp_path):
        """A store directory blocked by a file cannot be created."""
        (tmp_path / ".gitsol").write_text("not a directory")
        with pytest.raises(StoreInitializationError):
            CommitStore(str(tmp_path)).initialize()

    def test_context_manager_reconnects(self, tmp_path, store):
        insert_commits(store.conn, [make_commit("a")])
        store.close()
        with CommitStore(str(tmp_path)) as reopened:
            assert table_counts(reopened.conn)["commits"] == 1


class TestInsertCommits:
    def test_rows_and_derived_columns(self, store):
        """Commit rows carry UTC dates, the offset label and computed totals."""
        changes = [
            FileChange(ChangeType.ADDED, "src/MainTest.java", 5, 0, is_test_file=True),
            FileChange(ChangeType.MODIFIED, "pom.xml", 2, 1, is_build_file=True),
            FileChange(ChangeType.DELETED, "old.py", 0, 9),
        ]
        report = insert_commits(store.conn, [make_commit("a", parents=["p"], changes=changes)])
        assert report.ok
        assert report.commits_written == 1

        row = execute_query(store.conn, "SELECT * FROM commits")[0]
        assert row["date"] == "2024-01-01T17:00:00Z"
        assert row["timezone"] == "-05:00"
        assert row["total_additions"] == 7
        assert row["total_deletions"] == 1
        assert row["total_additions_test"] == 5
        assert row["total_additions_build"] == 2
        assert row["is_merge"] == 0

        types = execute_query(
            store.conn, "SELECT change_type FROM file_changes ORDER BY file_path"
        )
        assert [r["change_type"] for r in types] == ["D", "M", "A"]

    def test_unknown_parents_accepted(self, store):
        """Parents outside the ingested history are stored as plain references."""
        insert_commits(store.conn, [make_commit("a", parents=["never-seen-1", "never-seen-2"])])
        assert table_counts(store.conn)["commit_parents"] == 2
        assert execute_query(store.conn, "SELECT is_merge FROM commits")[0]["is_merge"] == 1

    def test_batches(self, store):
        """Commits are written in batches of the requested size."""
        commits = [make_commit(f"c{i}") for i in range(5)]
        report = insert_commits(store.conn, commits, batch_size=2)
        assert report.batches_committed == 3
        assert table_counts(store.conn)["commits"] == 5

    def test_failed_batch_rolled_back(self, store):
        """A failing batch leaves no partial rows and earlier batches stay."""
        commits = [make_commit("a"), make_commit("b"), make_commit("c"), make_commit("c")]
        report = insert_commits(store.conn, commits, batch_size=2)

        assert not report.ok
        assert report.batches_failed == 1
        assert report.commits_written == 2
        assert isinstance(report.errors[0], BatchWriteError)
        assert report.errors[0].batch_index == 1

        counts = table_counts(store.conn)
        assert counts["commits"] == 2
        assert counts["file_changes"] == 2

    def test_same_hash_in_two_repositories(self, store):
        """Rows are keyed by hash and repository."""
        report = insert_commits(
            store.conn, [make_commit("a", repo_name="one"), make_commit("a", repo_name="two")]
        )
        assert report.ok
        assert table_counts(store.conn)["commits"] == 2

    def test_invalid_batch_size(self, store):
        with pytest.raises(ValueError):
            insert_commits(store.conn, [], batch_size=0)


class TestInsertRefs:
    def test_branch_row(self, store):
        created = datetime(2024, 1, 2, tzinfo=timezone.utc)
        insert_branch(store.conn, Branch("feature/x", False, created, None))
        row = execute_query(store.conn, "SELECT * FROM branches")[0]
        assert row["is_active"] == 0
        assert row["creation_date"] == "2024-01-02T00:00:00Z"
        assert row["merge_date"] is None

    def test_duplicate_branch_raises(self, store):
        """A second row for the same branch is rejected with a typed error."""
        insert_branch(store.conn, Branch("feature/x", True))
        with pytest.raises(BatchWriteError):
            insert_branch(store.conn, Branch("feature/x", True))
        assert table_counts(store.conn)["branches"] == 1

    def test_tag_row(self, store):
        insert_tag(store.conn, Tag("v1", "abc", None, "first"))
        row = execute_query(store.conn, "SELECT * FROM tags")[0]
        assert (row["tag_name"], row["tag_commit"], row["tag_date"]) == ("v1", "abc", None)


class TestExecuteQuery:
    def test_column_order_preserved(self, store):
        insert_commits(store.conn, [make_commit("a")])
        row = execute_query(store.conn, "SELECT message, commit_hash, author FROM commits")[0]
        assert list(row) == ["message", "commit_hash", "author"]

    def test_params(self, store):
        insert_commits(store.conn, [make_commit("a"), make_commit("b")])
        rows = execute_query(store.conn, "SELECT commit_hash FROM commits WHERE commit_hash = ?", ["b"])
        assert rows == [{"commit_hash": "b"}]

    def test_syntax_error_is_typed(self, store):
        with pytest.raises(QueryExecutionError) as exc_info:
            execute_query(store.conn, "SELEC nonsense")
        assert "syntax error" in exc_info.value.reason

    def test_missing_table_is_typed(self, store):
        with pytest.raises(QueryExecutionError) as exc_info:
            execute_query(store.conn, "SELECT * FROM no_such_table")
        assert "no_such_table" in exc_info.value.reason

    def test_statement_without_rows(self, store):
        assert execute_query(store.conn, "CREATE TEMP TABLE scratch (x)") == []


class TestCategoryColumns:
    def test_all_category_columns_stored(self, store):
        """Each category total column matches the parsed commit and stays within its total."""
        lines = [
            "commit:mix",
            "author:alice",
            "date:2024-01-01T00:00:00Z",
            "parents:p",
            "message:",
            "Mixed change",
            "numstat:",
            ":000000 100644 0000000 a000001 A\tsrc/MainTest.java",
            ":100644 100644 a000002 b000002 M\t.github/workflows/ci.yml",
            ":100644 000000 a000003 0000000 D\tdocs/.old",
            "5\t1\tsrc/MainTest.java",
            "4\t2\t.github/workflows/ci.yml",
            "0\t9\tdocs/.old",
        ]
        insert_commits(store.conn, parse_log(lines))
        row = execute_query(store.conn, "SELECT * FROM commits")[0]

        assert (row["total_additions"], row["total_deletions"]) == (9, 3)
        assert (row["total_additions_test"], row["total_deletions_test"]) == (5, 1)
        assert (row["total_additions_build"], row["total_deletions_build"]) == (4, 2)
        assert (row["total_additions_dot"], row["total_deletions_dot"]) == (4, 2)
        for category in ("test", "build", "dot"):
            assert row[f"total_additions_{category}"] <= row["total_additions"]
            assert row[f"total_deletions_{category}"] <= row["total_deletions"]
