"""Shared test fixtures: canned git output and a fake command runner."""

import os

import pytest

# git log --all --numstat --raw --format=... for a three-commit history, newest first
SAMPLE_LOG = [
    "commit:c3",
    "author:Alice",
    "date:2024-01-10T12:00:00Z",
    "parents:c2 f1",
    "message:",
    "Merge branch 'feature/login'",
    "",
    "numstat:",
    "",
    ":100644 100644 aaa1111 bbb2222 M\tsrc/Main.java",
    "4\t2\tsrc/Main.java",
    "",
    "commit:c2",
    "author:Bob",
    "date:2024-01-05T09:00:00+01:00",
    "parents:c1",
    "message:",
    "Add tests",
    "",
    "numstat:",
    "",
    ":000000 100644 0000000 ccc3333 A\tsrc/MainTest.java",
    ":100644 100644 bbb2222 ddd4444 M\tsrc/Main.java",
    "5\t0\tsrc/MainTest.java",
    "2\t1\tsrc/Main.java",
    "",
    "commit:c1",
    "author:Alice",
    "date:2024-01-01T10:00:00Z",
    "parents:",
    "message:",
    "Initial commit",
    "",
    "numstat:",
    "",
    ":000000 100644 0000000 aaa1111 A\tsrc/Main.java",
    ":000000 100644 0000000 eee5555 A\tREADME.md",
    "10\t0\tsrc/Main.java",
    "3\t0\tREADME.md",
]

SAMPLE_MERGED = ["* main", "  feature/login", "  remotes/origin/HEAD -> origin/main"]
SAMPLE_UNMERGED = ["  feature/wip", "  remotes/origin/feature/login"]
SAMPLE_CREATION = [
    "feature/login,2024-01-06T00:00:00Z",
    "feature/wip,2024-01-08T00:00:00Z",
    "origin/feature/login,2024-01-02T00:00:00Z",
]
SAMPLE_TAGS = [
    "v0.1,c2,,2024-01-05T08:00:00Z,first release",
    "v0.2,t2obj,c3,2024-01-10T12:00:00Z,second release",
]


class FakeGit:
    """Command runner returning canned output keyed on the git subcommand."""

    def __init__(self, log=None, merged=None, unmerged=None, creation=None, tags=None):
        self.outputs = {
            "log": SAMPLE_LOG if log is None else log,
            "merged": SAMPLE_MERGED if merged is None else merged,
            "unmerged": SAMPLE_UNMERGED if unmerged is None else unmerged,
            "creation": SAMPLE_CREATION if creation is None else creation,
            "tags": SAMPLE_TAGS if tags is None else tags,
        }
        self.calls = []

    def __call__(self, timeout_seconds, args, cwd=None):
        self.calls.append((timeout_seconds, list(args), cwd))
        sub = args[1]
        if sub == "log":
            return list(self.outputs["log"])
        if sub == "branch":
            return list(self.outputs["merged" if "--merged" in args else "unmerged"])
        if sub == "for-each-ref":
            return list(self.outputs["tags" if "refs/tags" in args else "creation"])
        return []


@pytest.fixture(autouse=True)
def isolated_env(tmp_path_factory, monkeypatch):
    """Keep user config files and GITSOL_* variables out of every test."""
    for key in list(os.environ):
        if key.startswith("GITSOL_"):
            monkeypatch.delenv(key)
    monkeypatch.setenv("HOME", str(tmp_path_factory.mktemp("home")))


@pytest.fixture
def sample_log():
    return list(SAMPLE_LOG)


@pytest.fixture
def fake_git():
    return FakeGit()


@pytest.fixture
def make_fake_git():
    """Build a FakeGit with some feeds replaced."""
    return FakeGit


@pytest.fixture
def repo(tmp_path):
    """A directory that looks like a git checkout."""
    (tmp_path / ".git").mkdir()
    return tmp_path
