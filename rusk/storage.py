"""
RUSK - Durability Layer
=======================
Loads and saves the task document with a one-level backup.

Sidecar files live next to the database and share its name:

    tasks.json                  main document
    tasks.json.backup           main document as it was before the last save
    tasks.json.before_restore   main document as it was before the last restore
    tasks.json.tmp              scratch file used by a single save
"""

import logging
import os
import shutil
from pathlib import Path
from typing import List

from pydantic import ValidationError

from .errors import CorruptedDatabaseError, NoBackupError, StorageError
from .schema import RestoreReport, Task, dump_tasks, parse_tasks

logger = logging.getLogger("rusk")

BACKUP_SUFFIX = ".backup"
BEFORE_RESTORE_SUFFIX = ".before_restore"
TMP_SUFFIX = ".tmp"


def _describe(exc: ValidationError) -> str:
    """First validation problem, formatted for the corruption message"""
    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "invalid document")
    return f"{location}: {message}" if location else message


class Storage:
    """
    File-backed storage for a single task document.

    Nothing is held open between calls; every operation opens, reads or
    writes and closes the files it needs.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)

    # ========================================
    # PATHS
    # ========================================

    def _sidecar(self, suffix: str) -> Path:
        return self.db_path.with_name(self.db_path.name + suffix)

    @property
    def backup_path(self) -> Path:
        return self._sidecar(BACKUP_SUFFIX)

    @property
    def before_restore_path(self) -> Path:
        return self._sidecar(BEFORE_RESTORE_SUFFIX)

    @property
    def tmp_path(self) -> Path:
        return self._sidecar(TMP_SUFFIX)

    def _ensure_parent(self) -> None:
        parent = self.db_path.parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError("Failed to create directory for the database file", parent) from exc

    # ========================================
    # LOAD
    # ========================================

    def read_tasks(self, path: Path) -> List[Task]:
        """Read and parse a task document at `path`"""
        try:
            raw = path.read_bytes()
        except OSError as exc:
            raise StorageError("Failed to read the database file", path) from exc

        try:
            return parse_tasks(raw.decode("utf-8"))
        except UnicodeDecodeError as exc:
            raise CorruptedDatabaseError(path, f"invalid UTF-8 at byte {exc.start}") from exc
        except ValidationError as exc:
            raise CorruptedDatabaseError(path, _describe(exc)) from exc

    def load(self) -> List[Task]:
        """Load the store; a missing file is an empty store"""
        if not self.db_path.exists():
            logger.debug(f"No database at {self.db_path}, starting empty")
            return []

        tasks = self.read_tasks(self.db_path)
        logger.debug(f"📂 Loaded {len(tasks)} tasks from {self.db_path}")
        return tasks

    # ========================================
    # SAVE
    # ========================================

    def save(self, tasks: List[Task]) -> None:
        """
        Replace the main document with `tasks`.

        The previous document is copied to the backup sidecar first. The new
        content goes to the tmp sidecar and is renamed over the main file;
        if the rename fails we fall back to copy+remove, then to a direct
        write of the main file.
        """
        self._ensure_parent()

        if self.db_path.exists():
            try:
                shutil.copyfile(self.db_path, self.backup_path)
            except OSError as e:
                logger.warning(f"⚠️ Failed to create backup: {e}")

        data = dump_tasks(tasks)

        try:
            self.tmp_path.write_text(data, encoding="utf-8")
        except OSError as exc:
            self._remove_tmp()
            raise StorageError("Failed to write temporary database file", self.tmp_path) from exc

        try:
            os.replace(self.tmp_path, self.db_path)
        except OSError as e:
            logger.warning(f"⚠️ Atomic rename failed ({e}), copying temporary file instead")
            self._fallback_write(data)

        logger.info(f"✅ Saved {len(tasks)} tasks to {self.db_path}")

    def _fallback_write(self, data: str) -> None:
        # the directory may have vanished between steps
        self._ensure_parent()
        try:
            shutil.copyfile(self.tmp_path, self.db_path)
            self.tmp_path.unlink()
            return
        except OSError as e:
            logger.warning(f"⚠️ Copy from temporary file failed ({e}), writing database directly")

        self._remove_tmp()
        self._ensure_parent()
        try:
            self.db_path.write_text(data, encoding="utf-8")
        except OSError as exc:
            raise StorageError("Failed to write database file", self.db_path) from exc

    def _remove_tmp(self) -> None:
        try:
            self.tmp_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"⚠️ Could not remove {self.tmp_path}: {e}")

    # ========================================
    # RESTORE
    # ========================================

    def restore(self) -> RestoreReport:
        """
        Replace the main document with the backup sidecar.

        The backup is validated before anything is touched. A main file that
        still parses is preserved as the before_restore sidecar; a corrupted
        one is overwritten without a copy.
        """
        backup = self.backup_path
        if not backup.exists():
            raise NoBackupError(backup)

        backup_tasks = self.read_tasks(backup)

        before_restore = None
        current_corrupted = False
        if self.db_path.exists():
            try:
                self.read_tasks(self.db_path)
            except CorruptedDatabaseError:
                current_corrupted = True
                logger.info(f"Current database {self.db_path} is corrupted, not preserving it")
            else:
                try:
                    shutil.copyfile(self.db_path, self.before_restore_path)
                    before_restore = self.before_restore_path
                except OSError as e:
                    logger.warning(f"⚠️ Failed to backup current database: {e}")

        self._ensure_parent()
        try:
            shutil.copyfile(backup, self.db_path)
        except OSError as exc:
            raise StorageError("Failed to restore from backup", backup) from exc

        logger.info(f"🔄 Restored {len(backup_tasks)} tasks from {backup}")
        return RestoreReport(
            tasks=backup_tasks,
            backup_path=backup,
            before_restore_path=before_restore,
            current_corrupted=current_corrupted,
        )
