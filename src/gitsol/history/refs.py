"""Parse branch and tag listings into Branch / Tag records.

Input-shape problems (wrong field counts, empty names) drop the record and
keep going: partial ref metadata is more useful than an aborted run.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..logging_config import get_logger
from .models import Branch, Commit, Tag, parse_timestamp

logger = get_logger(__name__)

TAG_FORMAT = (
    "%(refname:short),%(objectname),%(*objectname),"
    "%(creatordate:iso-strict),%(contents:subject)"
)
BRANCH_DATE_FORMAT = "%(refname:short),%(creatordate:iso-strict)"

DEFAULT_BRANCHES = ("main", "master")
REMOTE_PREFIXES = ("remotes/", "origin/")


# ── tags ──────────────────────────────────────────────────────────────


def parse_tags(lines: Iterable[str], repo_name: str = "") -> list[Tag]:
    """Parse ``name,object,peeled-object,date,subject`` records.

    The tag points at the peeled object for annotated tags and at the direct
    object for lightweight ones (where the peeled field is empty).
    """
    tags: list[Tag] = []
    for line in lines:
        if not line.strip():
            continue
        fields = line.split(",", 4)
        if len(fields) != 5:
            logger.debug("Dropping malformed tag record: %r", line)
            continue
        name, direct, annotated, date_text, message = (f.strip() for f in fields)
        target = annotated or direct
        if not name or not target:
            logger.debug("Dropping tag record without name or target: %r", line)
            continue
        tags.append(
            Tag(
                name=name,
                commit_hash=target,
                date=parse_timestamp(date_text),
                message=message,
                repo_name=repo_name,
            )
        )
    return tags


# ── branches ──────────────────────────────────────────────────────────


def strip_remote_prefix(name: str, remote_prefixes: Sequence[str] = REMOTE_PREFIXES) -> str:
    """Strip remote-tracking prefixes (``remotes/origin/x`` -> ``x``), in order."""
    for prefix in remote_prefixes:
        if name.startswith(prefix):
            name = name[len(prefix):]
    return name


def is_default_branch(name: str, default_branches: Sequence[str] = DEFAULT_BRANCHES) -> bool:
    lowered = name.lower()
    return any(lowered == d.lower() for d in default_branches)


def branch_names(
    lines: Iterable[str],
    default_branches: Sequence[str] = DEFAULT_BRANCHES,
    remote_prefixes: Sequence[str] = REMOTE_PREFIXES,
) -> list[str]:
    """Normalise ``git branch -a`` output into unique, non-default branch names."""
    seen: dict[str, None] = {}
    for line in lines:
        name = line.strip()
        # "* " marks the current branch, "+ " one checked out in a linked worktree
        if name[:2] in ("* ", "+ "):
            name = name[2:].strip()
        if not name or " -> " in name or name.startswith("("):
            # symbolic refs (remotes/origin/HEAD -> origin/main), detached HEAD
            continue
        name = strip_remote_prefix(name, remote_prefixes)
        if not name or is_default_branch(name, default_branches):
            continue
        seen.setdefault(name, None)
    return list(seen)


def parse_branch_creation_dates(
    lines: Iterable[str], remote_prefixes: Sequence[str] = REMOTE_PREFIXES
) -> dict[str, Optional[datetime]]:
    """Parse ``name,iso-date`` records; the first record for a name wins."""
    dates: dict[str, Optional[datetime]] = {}
    for line in lines:
        fields = line.strip().split(",")
        if len(fields) != 2:
            continue
        name = strip_remote_prefix(fields[0].strip(), remote_prefixes)
        if name and name not in dates:
            dates[name] = parse_timestamp(fields[1])
    return dates


def find_merge_date(
    branch: str,
    commits: Iterable[Commit],
    not_before: Optional[datetime] = None,
) -> Optional[datetime]:
    """Best-effort merge date: the first commit whose message mentions ``branch``.

    Commits dated before ``not_before`` (the branch's creation) are skipped so
    a merge date never precedes creation. ``None`` means no match, which is a
    normal outcome and not an error.
    """
    for commit in commits:
        if commit.authored_at is None or not commit.message_contains(branch):
            continue
        if not_before is not None and commit.authored_at < not_before:
            continue
        return commit.authored_at
    return None


def parse_branches(
    lines: Iterable[str],
    is_merged_group: bool,
    commits: Sequence[Commit] = (),
    creation_dates: Optional[dict[str, Optional[datetime]]] = None,
    default_branches: Sequence[str] = DEFAULT_BRANCHES,
    remote_prefixes: Sequence[str] = REMOTE_PREFIXES,
    repo_name: str = "",
) -> list[Branch]:
    """Build Branch records for one listing group (merged or not merged)."""
    creation_dates = creation_dates or {}
    branches: list[Branch] = []
    for name in branch_names(lines, default_branches, remote_prefixes):
        created = creation_dates.get(name)
        merged_at = find_merge_date(name, commits, not_before=created) if is_merged_group else None
        branches.append(
            Branch(
                name=name,
                is_active=not is_merged_group,
                creation_date=created,
                merge_date=merged_at,
                repo_name=repo_name,
            )
        )
    return branches
