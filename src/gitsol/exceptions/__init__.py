"""Exception hierarchy for gitsol."""

from .base import GitSolError
from .config import (
    ConfigurationError,
    InvalidConfigError,
    InvalidPathError,
)
from .ingestion import CommandError, IngestionError
from .storage import (
    BatchWriteError,
    QueryExecutionError,
    StorageError,
    StoreInitializationError,
    StoreNotFoundError,
)

__all__ = [
    "GitSolError",
    "ConfigurationError",
    "InvalidPathError",
    "InvalidConfigError",
    "IngestionError",
    "CommandError",
    "StorageError",
    "StoreInitializationError",
    "StoreNotFoundError",
    "BatchWriteError",
    "QueryExecutionError",
]
