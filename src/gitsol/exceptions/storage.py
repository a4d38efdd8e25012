"""Storage exceptions: schema creation, batch writes, query execution."""

from pathlib import Path
from typing import Optional

from .base import GitSolError


class StorageError(GitSolError):
    """Base class for commit store errors."""

    pass


class StoreInitializationError(StorageError):
    """Raised when the store file or its schema cannot be created.

    Ingestion aborts on this error: nothing can be written afterwards.
    """

    def __init__(self, db_path: Path, reason: str):
        super().__init__(
            f"Cannot initialize commit store at {db_path}",
            details={"path": str(db_path), "reason": reason},
        )
        self.db_path = db_path
        self.reason = reason


class StoreNotFoundError(StorageError):
    """Raised when reading from a store that was never indexed."""

    def __init__(self, db_path: Path):
        super().__init__(f"No commit store at {db_path}", details={"path": str(db_path)})
        self.db_path = db_path


class BatchWriteError(StorageError):
    """Raised (or recorded) when a write transaction is rolled back."""

    def __init__(self, table: str, reason: str, batch_index: Optional[int] = None):
        details = {"table": table, "reason": reason}
        if batch_index is not None:
            details["batch"] = str(batch_index)
        super().__init__(f"Failed to write {table}", details=details)
        self.table = table
        self.reason = reason
        self.batch_index = batch_index


class QueryExecutionError(StorageError):
    """Raised when a read query fails; carries the database's own message."""

    def __init__(self, sql: str, reason: str):
        super().__init__(f"Query failed: {reason}", details={"sql": sql.strip()})
        self.sql = sql
        self.reason = reason
