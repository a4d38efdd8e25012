"""Git history parsing: commits, file changes, branches and tags."""

from .classifier import FileClassification, classify
from .log_parser import LogParser, parse_log
from .models import Branch, ChangeType, Commit, FileChange, Tag
from .refs import parse_branch_creation_dates, parse_branches, parse_tags
from .runner import GitSource, is_git_repo, run_command

__all__ = [
    "Branch",
    "ChangeType",
    "Commit",
    "FileChange",
    "FileClassification",
    "GitSource",
    "LogParser",
    "Tag",
    "classify",
    "is_git_repo",
    "parse_branch_creation_dates",
    "parse_branches",
    "parse_log",
    "parse_tags",
    "run_command",
]
