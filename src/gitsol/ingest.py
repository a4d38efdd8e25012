"""Index one or more git repositories into the commit store.

The root passed to :class:`Indexer` is either a repository itself or a
directory whose immediate children are repositories. Every run rebuilds the
store at ``<root>/.gitsol/commits.db`` from scratch.

Per repository the pipeline is::

    git log  ->  LogParser  ->  insert_commits (batched)
    git for-each-ref refs/heads refs/remotes  ->  creation dates
    git branch -a --merged / --no-merged  ->  parse_branches  ->  insert_branch
    git for-each-ref refs/tags  ->  parse_tags  ->  insert_tag

A repository whose git commands fail contributes nothing; the others still
get indexed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from .config import IndexConfig
from .exceptions import BatchWriteError, InvalidPathError
from .history.log_parser import LogParser
from .history.refs import parse_branch_creation_dates, parse_branches, parse_tags
from .history.runner import CommandRunner, GitSource, is_git_repo, run_command
from .logging_config import get_logger
from .storage.database import CommitStore
from .storage.writer import insert_branch, insert_commits, insert_tag, write_meta

logger = get_logger(__name__)


def discover_repositories(root: Path, store_dir: str = ".gitsol") -> list[Path]:
    """Return the repositories to index under ``root``.

    ``root`` itself when it is a repository, otherwise its immediate child
    directories that are repositories, sorted by name.
    """
    root = Path(root)
    if is_git_repo(root):
        return [root]
    if not root.is_dir():
        return []
    return sorted(
        child
        for child in root.iterdir()
        if child.is_dir() and child.name != store_dir and is_git_repo(child)
    )


@dataclass
class RepositoryReport:
    """What one repository contributed to the store."""

    name: str
    path: Path
    commits_parsed: int = 0
    commits_written: int = 0
    branches_written: int = 0
    tags_written: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class IngestionReport:
    db_path: Path
    repositories: list[RepositoryReport] = field(default_factory=list)

    @property
    def commits_written(self) -> int:
        return sum(r.commits_written for r in self.repositories)

    @property
    def branches_written(self) -> int:
        return sum(r.branches_written for r in self.repositories)

    @property
    def tags_written(self) -> int:
        return sum(r.tags_written for r in self.repositories)

    @property
    def errors(self) -> list[str]:
        return [f"{r.name}: {e}" for r in self.repositories for e in r.errors]

    @property
    def ok(self) -> bool:
        return all(r.ok for r in self.repositories)


class Indexer:
    """Drive the extraction-and-load pipeline for a workspace root.

    Parameters
    ----------
    root:
        Repository or directory of repositories. The store lives under it.
    config:
        Indexing options; defaults to ``IndexConfig()``.
    runner:
        Command runner handed to every :class:`GitSource`. Tests pass a fake
        that returns canned git output.
    progress:
        Called with a one-line message at the start and end of every phase
        (commits, merged branches, unmerged branches, tags) of every
        repository. The CLI feeds these to its status spinner.
    """

    def __init__(
        self,
        root: Path,
        config: Optional[IndexConfig] = None,
        runner: Optional[CommandRunner] = None,
        progress: Optional[Callable[[str], None]] = None,
    ):
        self.root = Path(root).resolve()
        if not self.root.is_dir():
            raise InvalidPathError(self.root, "not a directory")
        self.config = config or IndexConfig()
        self.runner = runner or run_command
        self.progress = progress
        self.parser = LogParser()

    def run(self) -> IngestionReport:
        """Rebuild the store from every repository under the root.

        Raises
        ------
        StoreInitializationError
            If the store cannot be created. Nothing is indexed in that case.
        """
        store = CommitStore(str(self.root), self.config.store_dir, self.config.store_filename)
        store.initialize()
        report = IngestionReport(db_path=store.db_path)

        repos = discover_repositories(self.root, self.config.store_dir)
        if not repos:
            logger.warning("No git repositories found under %s", self.root)

        try:
            for repo_path in repos:
                report.repositories.append(self._index_repository(store, repo_path))
            write_meta(store.conn, "indexed_at", datetime.now(timezone.utc).isoformat())
            write_meta(store.conn, "root", str(self.root))
        finally:
            store.close()

        logger.info(
            "Indexed %d repositories: %d commits, %d branches, %d tags",
            len(report.repositories),
            report.commits_written,
            report.branches_written,
            report.tags_written,
        )
        return report

    def _phase(self, message: str, *args) -> None:
        logger.info(message, *args)
        if self.progress is not None:
            self.progress(message % args if args else message)

    def _index_repository(self, store: CommitStore, repo_path: Path) -> RepositoryReport:
        # a single repository at the root is stored under an empty name
        name = "" if repo_path == self.root else repo_path.name
        result = RepositoryReport(name=name or repo_path.name, path=repo_path)
        source = GitSource(repo_path, self.config.timeout_seconds, self.runner)
        conn = store.conn
        label = result.name

        self._phase("Collecting commits for %s", label)
        commits = self.parser.parse(source.log_lines(), repo_name=name)
        result.commits_parsed = len(commits)
        write = insert_commits(conn, commits, self.config.batch_size)
        result.commits_written = write.commits_written
        result.errors.extend(str(e) for e in write.errors)
        self._phase(
            "Finished collecting commits for %s (%d/%d written)",
            label,
            write.commits_written,
            len(commits),
        )

        creation_dates = parse_branch_creation_dates(
            source.branch_creation_lines(), self.config.remote_prefixes
        )

        self._phase("Collecting merged branches for %s", label)
        merged = parse_branches(
            source.branch_lines(merged=True),
            is_merged_group=True,
            commits=commits,
            creation_dates=creation_dates,
            default_branches=self.config.default_branches,
            remote_prefixes=self.config.remote_prefixes,
            repo_name=name,
        )
        written = self._write_refs(conn, merged, insert_branch, "branch", result)
        result.branches_written += written
        self._phase("Finished collecting merged branches for %s (%d)", label, written)

        self._phase("Collecting unmerged branches for %s", label)
        merged_names = {b.name for b in merged}
        unmerged = [
            b
            for b in parse_branches(
                source.branch_lines(merged=False),
                is_merged_group=False,
                creation_dates=creation_dates,
                default_branches=self.config.default_branches,
                remote_prefixes=self.config.remote_prefixes,
                repo_name=name,
            )
            # a local branch can be merged while its remote copy is not
            if b.name not in merged_names
        ]
        written = self._write_refs(conn, unmerged, insert_branch, "branch", result)
        result.branches_written += written
        self._phase("Finished collecting unmerged branches for %s (%d)", label, written)

        self._phase("Collecting tags for %s", label)
        tags = parse_tags(source.tag_lines(), repo_name=name)
        result.tags_written = self._write_refs(conn, tags, insert_tag, "tag", result)
        self._phase("Finished collecting tags for %s (%d)", label, result.tags_written)

        return result

    @staticmethod
    def _write_refs(conn, refs, insert, kind: str, result: RepositoryReport) -> int:
        written = 0
        for ref in refs:
            try:
                insert(conn, ref)
            except BatchWriteError as e:
                logger.warning("Skipping %s %r: %s", kind, ref.name, e.reason)
                result.errors.append(str(e))
                continue
            written += 1
        return written
