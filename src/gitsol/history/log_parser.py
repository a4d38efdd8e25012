r"""Parse ``git log --raw --numstat`` output into Commit records.

The expected feed is produced by::

    git log --all --encoding=UTF-8 --numstat --raw \
        --format=commit:%H%nauthor:%an%ndate:%aI%nparents:%P%nmessage:%n%s%n%b%nnumstat:

which yields repeating blocks like::

    commit:3f2a...
    author:Jane Doe
    date:2024-03-01T10:15:00+02:00
    parents:9ab1... 77cd...
    message:
    Merge branch 'feature/login'

    Long body text...
    numstat:

    :100644 100644 bcd1234 0123456 M\tsrc/app.py
    :000000 100644 0000000 abc1234 A\ttests/test_app.py
    12\t3\tsrc/app.py
    40\t0\ttests/test_app.py

Commit messages are free text and are not escaped, so the parser is lenient:
any line that is not a structural marker or a file line is folded into the
message of the commit being built. A message line that happens to start with
``author:``/``date:``/``parents:`` is still read as a header line; this is a
known collision of the format, not something the parser tries to repair.
``message:`` only opens the message while the header is being read; later
it is ordinary message text and does not discard what was collected.

The raw line carries the change type, the numstat line carries the counts.
Both are merged into a single FileChange keyed by the final file path,
whichever arrives first.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Optional

from ..logging_config import get_logger
from .classifier import FileClassification, classify
from .models import ChangeType, Commit, FileChange, parse_timestamp

logger = get_logger(__name__)

COMMIT_MARKER = "commit:"
AUTHOR_MARKER = "author:"
DATE_MARKER = "date:"
PARENTS_MARKER = "parents:"
MESSAGE_MARKER = "message:"
NUMSTAT_MARKER = "numstat:"

LOG_FORMAT = (
    "commit:%H%nauthor:%an%ndate:%aI%nparents:%P%nmessage:%n%s%n%b%nnumstat:"
)

_RAW_RE = re.compile(r"^:\d{6} \d{6}")
_NUMSTAT_RE = re.compile(r"^(\d+|-)\s+(\d+|-)\s+(.+)$")
# "src/{old => new}/file.py" or "{a => b}"
_BRACE_RENAME_RE = re.compile(r"^(.*)\{(.*) => (.*)\}(.*)$")


class ParseState(Enum):
    AWAITING_COMMIT = "awaiting_commit"
    IN_HEADER = "in_header"
    IN_MESSAGE = "in_message"
    IN_BODY = "in_body"


@dataclass
class _PendingChange:
    file_path: str
    change_type: Optional[ChangeType] = None
    additions: int = 0
    deletions: int = 0


@dataclass
class _Accumulator:
    """Fold state: the commit being built plus everything already finished."""

    repo_name: str
    state: ParseState = ParseState.AWAITING_COMMIT
    commit_hash: Optional[str] = None
    author: str = ""
    date_text: str = ""
    parents: list[str] = field(default_factory=list)
    message_lines: list[str] = field(default_factory=list)
    changes: dict[str, _PendingChange] = field(default_factory=dict)
    finished: list[Commit] = field(default_factory=list)

    def reset(self, commit_hash: str) -> None:
        self.state = ParseState.IN_HEADER
        self.commit_hash = commit_hash
        self.author = ""
        self.date_text = ""
        self.parents = []
        self.message_lines = []
        self.changes = {}

    def change_for(self, path: str) -> _PendingChange:
        pending = self.changes.get(path)
        if pending is None:
            pending = _PendingChange(file_path=path)
            self.changes[path] = pending
        return pending


def resolve_numstat_path(path: str) -> str:
    """Return the final path from a numstat path, expanding rename notation.

    >>> resolve_numstat_path("src/{old => new}/mod.py")
    'src/new/mod.py'
    >>> resolve_numstat_path("a.txt => b.txt")
    'b.txt'
    """
    match = _BRACE_RENAME_RE.match(path)
    if match:
        prefix, _old, new, suffix = match.groups()
        resolved = f"{prefix}{new}{suffix}"
        # "{old => }" collapses a directory level
        return resolved.replace("//", "/")
    if " => " in path:
        return path.split(" => ", 1)[1]
    return path


def _parse_count(token: str) -> int:
    # binary files report "-"
    return int(token) if token.isdigit() else 0


class LogParser:
    """Fold ``git log`` lines into Commits.

    The parser holds no per-run state; every call to :meth:`parse` starts a
    fresh accumulator, so one instance may be reused across repositories.
    """

    def __init__(self, classifier: Callable[[str], FileClassification] = classify):
        self.classifier = classifier

    def parse(self, lines: Iterable[str], repo_name: str = "") -> list[Commit]:
        acc = _Accumulator(repo_name=repo_name)
        for line in lines:
            self._step(acc, line.rstrip("\r\n"))
        self._finalize(acc)
        logger.debug("Parsed %d commits for %r", len(acc.finished), repo_name or ".")
        return acc.finished

    # ── fold step ─────────────────────────────────────────────────

    def _step(self, acc: _Accumulator, line: str) -> None:
        if line.startswith(COMMIT_MARKER):
            self._finalize(acc)
            acc.reset(line[len(COMMIT_MARKER):].strip())
            return

        if acc.state is ParseState.AWAITING_COMMIT:
            # preamble before the first commit marker carries no data
            return

        if line.startswith(AUTHOR_MARKER):
            acc.author = line[len(AUTHOR_MARKER):].strip()
        elif line.startswith(DATE_MARKER):
            acc.date_text = line[len(DATE_MARKER):].strip()
        elif line.startswith(PARENTS_MARKER):
            acc.parents.extend(line[len(PARENTS_MARKER):].split())
        elif line.startswith(MESSAGE_MARKER) and acc.state is ParseState.IN_HEADER:
            acc.message_lines = []
            acc.state = ParseState.IN_MESSAGE
        elif line.startswith(NUMSTAT_MARKER):
            acc.state = ParseState.IN_BODY
        elif _RAW_RE.match(line):
            self._apply_raw(acc, line)
            acc.state = ParseState.IN_BODY
        elif acc.state is ParseState.IN_BODY and (numstat := _NUMSTAT_RE.match(line)):
            self._apply_numstat(acc, numstat)
        elif not line.strip():
            if acc.state is ParseState.IN_MESSAGE:
                acc.message_lines.append("")
        else:
            acc.message_lines.append(line)

    def _apply_raw(self, acc: _Accumulator, line: str) -> None:
        meta, _, paths = line.partition("\t")
        if not paths:
            # no tab: fall back to whitespace-separated fields
            parts = line.split()
            if len(parts) < 6:
                logger.debug("Skipping malformed raw line: %r", line)
                return
            status, path = parts[4], parts[-1]
        else:
            status = meta.split()[-1]
            path = paths.split("\t")[-1]
        acc.change_for(path).change_type = ChangeType.from_status(status)

    def _apply_numstat(self, acc: _Accumulator, match: re.Match) -> None:
        added, deleted, raw_path = match.groups()
        pending = acc.change_for(resolve_numstat_path(raw_path.strip()))
        pending.additions = _parse_count(added)
        pending.deletions = _parse_count(deleted)

    # ── emit ──────────────────────────────────────────────────────

    def _finalize(self, acc: _Accumulator) -> None:
        if acc.commit_hash is None:
            return
        acc.finished.append(
            Commit(
                hash=acc.commit_hash,
                author=acc.author,
                authored_at=parse_timestamp(acc.date_text),
                message="\n".join(acc.message_lines).strip(),
                parent_hashes=list(acc.parents),
                file_changes=[self._build_change(p) for p in acc.changes.values()],
                repo_name=acc.repo_name,
            )
        )
        acc.commit_hash = None
        acc.state = ParseState.AWAITING_COMMIT

    def _build_change(self, pending: _PendingChange) -> FileChange:
        flags = self.classifier(pending.file_path)
        return FileChange(
            change_type=pending.change_type or ChangeType.MODIFIED,
            file_path=pending.file_path,
            additions=pending.additions,
            deletions=pending.deletions,
            is_test_file=flags.is_test,
            is_build_file=flags.is_build,
            is_dot_file=flags.is_dot,
            is_documentation_file=flags.is_documentation,
        )


def parse_log(lines: Iterable[str], repo_name: str = "") -> list[Commit]:
    """Parse ``git log`` output lines into commits, in source order."""
    return LogParser().parse(lines, repo_name=repo_name)
