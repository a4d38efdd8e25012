"""Data models for indexed git history."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional


class ChangeType(Enum):
    """Kind of change a commit made to one file (stored as git's status letter)."""

    ADDED = "A"
    MODIFIED = "M"
    DELETED = "D"
    RENAMED = "R"

    @classmethod
    def from_status(cls, status: str) -> "ChangeType":
        """Map a git raw status code (``M``, ``A``, ``R100``, ``C075`` ...) to a ChangeType."""
        code = status[:1].upper()
        if code in ("A", "C"):  # a copy introduces a new path
            return cls.ADDED
        if code == "D":
            return cls.DELETED
        if code == "R":
            return cls.RENAMED
        return cls.MODIFIED

    @property
    def counts_towards_totals(self) -> bool:
        return self in (ChangeType.ADDED, ChangeType.MODIFIED)


@dataclass
class FileChange:
    change_type: ChangeType
    file_path: str
    additions: int = 0
    deletions: int = 0
    is_test_file: bool = False
    is_build_file: bool = False
    is_dot_file: bool = False
    is_documentation_file: bool = False


@dataclass
class Commit:
    hash: str
    author: str
    authored_at: Optional[datetime]  # aware; keeps the originating offset
    message: str
    parent_hashes: list[str] = field(default_factory=list)
    file_changes: list[FileChange] = field(default_factory=list)
    repo_name: str = ""

    @property
    def is_merge(self) -> bool:
        return len(self.parent_hashes) > 1

    def message_contains(self, text: str) -> bool:
        return text in self.message

    def _sum(self, predicate: Callable[[FileChange], bool], attr: str) -> int:
        return sum(
            getattr(fc, attr)
            for fc in self.file_changes
            if fc.change_type.counts_towards_totals and predicate(fc)
        )

    @property
    def total_additions(self) -> int:
        return self._sum(lambda fc: True, "additions")

    @property
    def total_deletions(self) -> int:
        return self._sum(lambda fc: True, "deletions")

    @property
    def total_additions_test(self) -> int:
        return self._sum(lambda fc: fc.is_test_file, "additions")

    @property
    def total_deletions_test(self) -> int:
        return self._sum(lambda fc: fc.is_test_file, "deletions")

    @property
    def total_additions_build(self) -> int:
        return self._sum(lambda fc: fc.is_build_file, "additions")

    @property
    def total_deletions_build(self) -> int:
        return self._sum(lambda fc: fc.is_build_file, "deletions")

    @property
    def total_additions_dot(self) -> int:
        return self._sum(lambda fc: fc.is_dot_file, "additions")

    @property
    def total_deletions_dot(self) -> int:
        return self._sum(lambda fc: fc.is_dot_file, "deletions")


@dataclass
class Branch:
    name: str
    is_active: bool  # True = not merged into the main line
    creation_date: Optional[datetime] = None
    merge_date: Optional[datetime] = None  # None is the normal state for unmerged branches
    repo_name: str = ""


@dataclass
class Tag:
    name: str
    commit_hash: str
    date: Optional[datetime] = None
    message: str = ""
    repo_name: str = ""


# ── timestamp helpers ────────────────────────────────────────────────


def parse_timestamp(text: Optional[str]) -> Optional[datetime]:
    """Parse a strict ISO-8601 timestamp as emitted by git (``%aI``, ``iso-strict``).

    Returns ``None`` for empty or unparseable input; naive results are assumed UTC.
    """
    if not text:
        return None
    text = text.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_utc_text(dt: Optional[datetime]) -> Optional[str]:
    """Render an instant as ``YYYY-MM-DDTHH:MM:SSZ`` (sortable as text)."""
    if dt is None:
        return None
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def offset_label(dt: Optional[datetime]) -> Optional[str]:
    """Return the originating UTC offset as ``Z`` or ``+HH:MM`` / ``-HH:MM``."""
    if dt is None:
        return None
    offset = dt.utcoffset()
    if offset is None or offset == timedelta(0):
        return "Z"
    total_minutes = int(offset.total_seconds() // 60)
    sign = "+" if total_minutes >= 0 else "-"
    hours, minutes = divmod(abs(total_minutes), 60)
    return f"{sign}{hours:02d}:{minutes:02d}"
