"""Error kinds raised by the task store, the durability layer and the editor."""

from pathlib import Path
from typing import Optional


class RuskError(RuntimeError):
    """Base class for errors reported to the user with exit code 1."""


class EmptyTextError(RuskError):
    def __init__(self) -> None:
        super().__init__("Task text cannot be empty")


class CapacityExhaustedError(RuskError):
    def __init__(self, limit: int) -> None:
        super().__init__(f"Maximum number of tasks ({limit}) reached")
        self.limit = limit


class CorruptedDatabaseError(RuskError):
    """The database (or its backup) could not be parsed into task records."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(
            f"Failed to parse the database file at '{path}'. "
            f"The file appears to be corrupted.\n"
            f"Parse error: {reason}\n"
            f"\n"
            f"To fix this issue, you can:\n"
            f"  1. Delete the corrupted file: rm '{path}'\n"
            f"  2. Or restore from backup: rusk restore\n"
            f"  3. The application will create a new empty database on next run"
        )


class NoBackupError(RuskError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"No backup file found at '{path}'")
        self.path = path


class StorageError(RuskError):
    """A filesystem operation failed; `step` names what was being attempted."""

    def __init__(self, step: str, path: Optional[Path] = None) -> None:
        message = f"{step}: '{path}'" if path is not None else step
        super().__init__(message)
        self.step = step
        self.path = path

    def __str__(self) -> str:
        base = super().__str__()
        if self.__cause__ is not None:
            return f"{base} ({self.__cause__})"
        return base


class TerminalError(RuskError):
    """The terminal could not be switched into (or out of) raw mode."""


class ConfigError(RuskError):
    """Raised when configuration taken from the environment is invalid."""
