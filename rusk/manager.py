"""
RUSK - Task Manager
===================
Holds the ordered task list, allocates ids and applies mutations.
Every mutating operation saves at most once, and only when something changed.
"""

import logging
from typing import List, Optional, Sequence

from .config import RuskConfig
from .dates import parse_date
from .errors import CapacityExhaustedError, EmptyTextError
from .schema import (
    MAX_TASK_ID, MIN_TASK_ID,
    EditResult, MarkResult, RestoreReport, Task,
)
from .storage import Storage

logger = logging.getLogger("rusk")


def join_text(words: Sequence[str]) -> str:
    """Join command-line words into task text, rejecting blank results"""
    text = " ".join(words)
    if not text.strip():
        raise EmptyTextError()
    return text


class TaskManager:
    """
    Task store backed by a single JSON document.

    Insertion order is the store's identity: tasks are kept in the order
    they were added, and ids are looked up by scanning that sequence.
    """

    def __init__(self, storage: Storage, tasks: Optional[List[Task]] = None):
        self.storage = storage
        self.tasks: List[Task] = list(tasks) if tasks else []

    @classmethod
    def open(cls, config: RuskConfig) -> "TaskManager":
        """Create a manager for the configured database and load it"""
        storage = Storage(config.db_path)
        return cls(storage, storage.load())

    @property
    def db_path(self):
        return self.storage.db_path

    # ========================================
    # PERSISTENCE OPERATIONS
    # ========================================

    def save(self) -> None:
        self.storage.save(self.tasks)

    def restore(self) -> RestoreReport:
        """Replace the store and the main file with the backup sidecar"""
        report = self.storage.restore()
        self.tasks = list(report.tasks)
        return report

    # ========================================
    # TASK OPERATIONS
    # ========================================

    def add_task(self, words: Sequence[str], date: Optional[str] = None) -> Task:
        """Append a new open task; an unparseable date becomes no date"""
        text = join_text(words)
        parsed = parse_date(date) if date is not None else None
        if date is not None and parsed is None:
            logger.info(f"Ignoring invalid date {date!r}")

        task = Task(id=self.generate_next_id(), text=text, date=parsed, done=False)
        self.tasks.append(task)
        self.save()

        logger.info(f"➕ Added task {task.id}")
        return task

    def delete_tasks(self, ids: Sequence[int]) -> List[int]:
        """Delete tasks by id; returns ids that were not found"""
        not_found: List[int] = []
        deleted = 0

        # descending so earlier removals don't disturb later lookups
        for task_id in sorted(ids, reverse=True):
            idx = self.find_task_index(task_id)
            if idx is None:
                not_found.append(task_id)
                continue
            del self.tasks[idx]
            deleted += 1

        if deleted:
            self.save()
            logger.info(f"🗑️ Deleted {deleted} tasks")
        return not_found

    def delete_all_done(self) -> int:
        """Purge every completed task; returns how many were removed"""
        done_count = self.done_count()
        if done_count == 0:
            return 0

        self.tasks = [t for t in self.tasks if not t.done]
        self.save()
        return done_count

    def mark_tasks(self, ids: Sequence[int]) -> MarkResult:
        """Toggle `done` on each listed task"""
        marked = []
        not_found = []

        for task_id in ids:
            task = self.get_task(task_id)
            if task is None:
                not_found.append(task_id)
                continue
            task.done = not task.done
            marked.append((task_id, task.done))

        if marked:
            self.save()
        return MarkResult(marked, not_found)

    def edit_tasks(
        self,
        ids: Sequence[int],
        words: Optional[Sequence[str]] = None,
        date: Optional[str] = None,
    ) -> EditResult:
        """
        Replace text and/or date of the listed tasks.

        A date that does not parse clears the task's date. Tasks whose
        values would not change are reported as unchanged.
        """
        new_text = join_text(words) if words is not None else None
        new_date = parse_date(date) if date is not None else None

        edited = []
        unchanged = []
        not_found = []

        for task_id in ids:
            task = self.get_task(task_id)
            if task is None:
                not_found.append(task_id)
                continue

            changed = False
            if new_text is not None and task.text != new_text:
                task.text = new_text
                changed = True
            if date is not None and task.date != new_date:
                task.date = new_date
                changed = True

            (edited if changed else unchanged).append(task_id)

        if edited:
            self.save()
        return EditResult(edited, unchanged, not_found)

    # ========================================
    # HELPER METHODS
    # ========================================

    def find_task_index(self, task_id: int) -> Optional[int]:
        for idx, task in enumerate(self.tasks):
            if task.id == task_id:
                return idx
        return None

    def get_task(self, task_id: int) -> Optional[Task]:
        """Get task by ID"""
        idx = self.find_task_index(task_id)
        return None if idx is None else self.tasks[idx]

    def generate_next_id(self) -> int:
        """Smallest id in [1, 255] not currently used"""
        candidate = MIN_TASK_ID
        for used in sorted({t.id for t in self.tasks}):
            if used < candidate:
                continue
            if used != candidate:
                break
            candidate += 1

        if candidate > MAX_TASK_ID:
            raise CapacityExhaustedError(MAX_TASK_ID)
        return candidate

    def done_count(self) -> int:
        return sum(1 for t in self.tasks if t.done)
