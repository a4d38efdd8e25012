"""Ingestion exceptions: external command failures."""

from typing import Optional, Sequence

from .base import GitSolError


class IngestionError(GitSolError):
    """Base class for ingestion pipeline errors."""

    pass


class CommandError(IngestionError):
    """Raised when an external command cannot be started or exits non-zero."""

    def __init__(self, args: Sequence[str], reason: str, returncode: Optional[int] = None):
        details = {"command": " ".join(args), "reason": reason}
        if returncode is not None:
            details["returncode"] = str(returncode)
        super().__init__(f"Command failed: {args[0] if args else '?'}", details=details)
        self.args_list = list(args)
        self.reason = reason
        self.returncode = returncode
