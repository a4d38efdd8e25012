"""Run git via subprocess and hand back its output as lines.

A failed or timed-out command never aborts ingestion: callers get whatever
output was produced (possibly nothing) and treat an empty list as "no data".
"""

from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Callable, Optional, Sequence

from ..exceptions import CommandError
from ..logging_config import get_logger
from .log_parser import LOG_FORMAT
from .refs import BRANCH_DATE_FORMAT, TAG_FORMAT

logger = get_logger(__name__)

# (timeout_seconds, args, cwd) -> lines
CommandRunner = Callable[[int, Sequence[str], Optional[Path]], list[str]]


def _decode(data) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


def _execute(timeout_seconds: int, args: Sequence[str], cwd: Optional[Path]) -> list[str]:
    env = dict(os.environ, NO_COLOR="1", GIT_PAGER="cat", LC_ALL="C")
    try:
        result = subprocess.run(
            list(args),
            cwd=str(cwd) if cwd is not None else None,
            capture_output=True,
            env=env,
            timeout=timeout_seconds,
        )
    except FileNotFoundError as e:
        raise CommandError(args, f"executable not found: {e}") from e
    except subprocess.TimeoutExpired as e:
        partial = _decode(e.stdout).splitlines()
        logger.warning(
            "Command timed out after %ds, keeping %d partial lines: %s",
            timeout_seconds,
            len(partial),
            " ".join(args),
        )
        return partial

    if result.returncode != 0:
        raise CommandError(args, _decode(result.stderr).strip(), returncode=result.returncode)
    return _decode(result.stdout).splitlines()


def run_command(
    timeout_seconds: int, args: Sequence[str], cwd: Optional[Path] = None
) -> list[str]:
    """Run ``args`` and return stdout lines; ``[]`` on failure, partial output on timeout."""
    try:
        return _execute(timeout_seconds, args, cwd)
    except CommandError as e:
        logger.warning("%s", e)
        return []


def is_git_repo(path: Path) -> bool:
    return (Path(path) / ".git").exists()


class GitSource:
    """The three raw-text feeds ingestion needs from one repository."""

    def __init__(
        self,
        repo_path: Path,
        timeout_seconds: int = 10,
        runner: CommandRunner = run_command,
    ):
        self.repo_path = Path(repo_path)
        self.timeout_seconds = timeout_seconds
        self.runner = runner

    def _git(self, *args: str) -> list[str]:
        return self.runner(self.timeout_seconds, ["git", *args], self.repo_path)

    def log_lines(self) -> list[str]:
        return self._git(
            "log",
            "--all",
            "--encoding=UTF-8",
            "--numstat",
            "--raw",
            f"--format={LOG_FORMAT}",
        )

    def branch_lines(self, merged: bool) -> list[str]:
        return self._git("branch", "-a", "--merged" if merged else "--no-merged")

    def branch_creation_lines(self) -> list[str]:
        return self._git(
            "for-each-ref", f"--format={BRANCH_DATE_FORMAT}", "refs/heads/", "refs/remotes/"
        )

    def tag_lines(self) -> list[str]:
        return self._git("for-each-ref", f"--format={TAG_FORMAT}", "refs/tags")
