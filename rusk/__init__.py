"""
RUSK - Command-Line Task Manager
================================

A small, flat list of numbered tasks kept in one human-readable JSON file,
with a one-level backup and an in-terminal line editor for editing.

Usage:
    from rusk import TaskManager, load_config

    manager = TaskManager.open(load_config())
    task = manager.add_task(["buy", "groceries"], "15-01-2025")
    manager.mark_tasks([task.id])

    # Undo the last save
    manager.restore()
"""

__version__ = "1.0.0"

from .schema import (
    Task,
    EditResult,
    MarkResult,
    RestoreReport,
    MAX_TASK_ID,
)
from .errors import (
    RuskError,
    EmptyTextError,
    CapacityExhaustedError,
    CorruptedDatabaseError,
    NoBackupError,
    StorageError,
)
from .config import RuskConfig, load_config
from .storage import Storage
from .manager import TaskManager

__all__ = [
    "TaskManager",
    "Storage",
    "Task",
    "EditResult",
    "MarkResult",
    "RestoreReport",
    "MAX_TASK_ID",
    "RuskConfig",
    "load_config",
    "RuskError",
    "EmptyTextError",
    "CapacityExhaustedError",
    "CorruptedDatabaseError",
    "NoBackupError",
    "StorageError",
]
