"""Configuration loading and management for gitsol.

Configuration sources are merged in priority order:
    1. Defaults (defined in IndexConfig)
    2. Global config (~/.gitsol.toml)
    3. Project config (./gitsol.toml)
    4. Explicit config file
    5. Environment variables (GITSOL_* prefix)
    6. CLI overrides (passed as kwargs)

Example:
    >>> config = load_config(timeout_seconds=30)
    >>> config.timeout_seconds
    30
    >>> config.db_relpath
    '.gitsol/commits.db'
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import ConfigurationError, InvalidConfigError

Verbosity = Literal["quiet", "normal", "verbose"]


@dataclass(frozen=True)
class IndexConfig:
    """Configuration for indexing and querying.

    Attributes:
        Command execution:
            timeout_seconds: Per-command timeout for git invocations

        Storage:
            store_dir: Directory (relative to the invoking root) holding the store
            store_filename: SQLite file name inside ``store_dir``
            batch_size: Commits written per transaction

        Ref handling:
            default_branches: Names treated as the main line (never listed as branches)
            remote_prefixes: Prefixes stripped from remote-tracking branch names

        Output control:
            verbosity: Logging verbosity level
    """

    timeout_seconds: int = 10

    store_dir: str = ".gitsol"
    store_filename: str = "commits.db"
    batch_size: int = 1000

    default_branches: tuple[str, ...] = ("main", "master")
    remote_prefixes: tuple[str, ...] = ("remotes/", "origin/")

    verbosity: Verbosity = "normal"

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.timeout_seconds < 1:
            raise InvalidConfigError("timeout_seconds", self.timeout_seconds, "must be at least 1")
        if self.batch_size < 1:
            raise InvalidConfigError("batch_size", self.batch_size, "must be at least 1")
        if not self.store_dir or not self.store_filename:
            raise InvalidConfigError(
                "store_dir", f"{self.store_dir}/{self.store_filename}", "must not be empty"
            )
        if not self.default_branches:
            raise InvalidConfigError(
                "default_branches", self.default_branches, "at least one name is required"
            )
        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise InvalidConfigError(
                "verbosity", self.verbosity, "expected quiet, normal or verbose"
            )

    @property
    def db_relpath(self) -> str:
        """Store location relative to the invoking directory."""
        return f"{self.store_dir}/{self.store_filename}"


def load_config(config_file: Optional[Path] = None, **overrides) -> IndexConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags). ``None``
            values are ignored so unset CLI options don't mask file values.

    Returns:
        Validated IndexConfig instance

    Raises:
        ConfigurationError: If a config file is invalid or missing
        InvalidConfigError: If a value fails validation
    """
    merged: dict = {}

    global_config = Path.home() / ".gitsol.toml"
    if global_config.exists():
        merged.update(_load_toml_checked(global_config, "global config"))

    project_config = Path.cwd() / "gitsol.toml"
    if project_config.exists():
        merged.update(_load_toml_checked(project_config, "project config"))

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        merged.update(_load_toml_checked(config_file, "config file"))

    merged.update(_load_env_vars())

    # Convert verbosity boolean flags to string
    if "verbose" in overrides:
        if overrides["verbose"]:
            overrides["verbosity"] = "verbose"
        del overrides["verbose"]
    if "quiet" in overrides:
        if overrides["quiet"]:
            overrides["verbosity"] = "quiet"
        del overrides["quiet"]

    merged.update({k: v for k, v in overrides.items() if v is not None})

    # TOML arrays arrive as lists
    for key in ("default_branches", "remote_prefixes"):
        if key in merged and isinstance(merged[key], list):
            merged[key] = tuple(merged[key])

    try:
        return IndexConfig(**merged)
    except TypeError as e:
        # Unknown field in config
        raise ConfigurationError(f"Invalid configuration: {e}")


def _load_toml_checked(path: Path, label: str) -> dict:
    try:
        return _load_toml_file(path)
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Invalid {label} '{path}': {e}")


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from GITSOL_* environment variables.

    Supported environment variables:
        GITSOL_TIMEOUT_SECONDS: int
        GITSOL_BATCH_SIZE: int
        GITSOL_STORE_DIR: str
        GITSOL_STORE_FILENAME: str
        GITSOL_DEFAULT_BRANCHES: comma-separated names
        GITSOL_REMOTE_PREFIXES: comma-separated prefixes
        GITSOL_VERBOSITY: quiet/normal/verbose

    Returns:
        Dict of field_name -> parsed_value for any GITSOL_* vars found.
    """
    type_hints = get_type_hints(IndexConfig)

    result: dict[str, Any] = {}

    for field_name in IndexConfig.__dataclass_fields__:
        env_key = f"GITSOL_{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
        except ValueError as e:
            raise InvalidConfigError(field_name, env_value, f"{env_key}: {e}")
        if parsed is not None:
            result[field_name] = parsed

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse environment variable string to the correct type.

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    origin = getattr(type_hint, "__origin__", None)

    # tuple[str, ...] -> comma-separated list
    if origin is tuple:
        return tuple(part.strip() for part in value.split(",") if part.strip())

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    # String (including Literal types like Verbosity)
    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict.

    Raises:
        ConfigurationError: If tomllib/tomli not available
        Exception: If TOML parsing fails
    """
    try:
        import tomllib
    except ModuleNotFoundError:
        try:
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise ConfigurationError(
                "TOML support requires Python 3.11+ or 'tomli' package. "
                "Install with: pip install tomli"
            )

    with open(path, "rb") as f:
        data = tomllib.load(f)

    # Allow either top-level keys or a [gitsol] table
    section = data.get("gitsol")
    if isinstance(section, dict):
        return section
    return data
