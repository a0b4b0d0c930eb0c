"""Configuration loading for the rusk command line."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .errors import ConfigError

DB_ENV_KEY = "RUSK_DB"
LOG_LEVEL_ENV_KEY = "RUSK_LOG_LEVEL"
SHOW_PATHS_ENV_KEY = "RUSK_SHOW_PATHS"
DEFAULT_DB_NAME = "tasks.json"

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


@dataclass(frozen=True)
class RuskConfig:
    db_path: Path
    log_level: int = logging.WARNING
    show_paths: bool = False


def resolve_db_path(raw_value: Optional[str], home: Optional[Path] = None) -> Path:
    """Resolve the database file from a RUSK_DB-style value.

    A value naming a directory (or ending in a path separator) means
    ``tasks.json`` inside it; anything else is the full file path. An unset
    or blank value falls back to ``~/.rusk/tasks.json``.
    """
    if raw_value is None or not raw_value.strip():
        base = home if home is not None else Path.home()
        return base / ".rusk" / DEFAULT_DB_NAME

    path = Path(raw_value).expanduser()
    if path.is_dir() or raw_value.endswith(("/", os.sep)):
        return path / DEFAULT_DB_NAME
    return path


def _read_bool(raw_value: str | None, *, default: bool, key: str) -> bool:
    if raw_value is None:
        return default
    normalized = raw_value.strip().lower()
    if not normalized:
        return default
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ConfigError(f"{key} must be a boolean value.")


def _read_log_level(raw_value: str | None) -> int:
    if raw_value is None or not raw_value.strip():
        return logging.WARNING
    level = _LOG_LEVELS.get(raw_value.strip().lower())
    if level is None:
        choices = ", ".join(_LOG_LEVELS)
        raise ConfigError(f"{LOG_LEVEL_ENV_KEY} must be one of: {choices}.")
    return level


def load_config(
    environ: Optional[Mapping[str, str]] = None,
    *,
    db_override: Optional[str] = None,
    verbose: bool = False,
) -> RuskConfig:
    """Build the configuration from command-line overrides and the environment."""
    env = os.environ if environ is None else environ

    if db_override:
        db_path = resolve_db_path(db_override)
    else:
        db_path = resolve_db_path(env.get(DB_ENV_KEY))

    log_level = logging.DEBUG if verbose else _read_log_level(env.get(LOG_LEVEL_ENV_KEY))
    show_paths = verbose or _read_bool(
        env.get(SHOW_PATHS_ENV_KEY), default=False, key=SHOW_PATHS_ENV_KEY
    )

    return RuskConfig(db_path=db_path, log_level=log_level, show_paths=show_paths)
