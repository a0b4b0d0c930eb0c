"""
RUSK - Task Schema Definition
=============================
The task record and the on-disk document that holds the whole store.

The database file is a pretty-printed JSON array of task records:

    [
      {
        "id": 1,
        "text": "buy groceries",
        "date": "2025-01-15",
        "done": false
      }
    ]
"""

import json
from datetime import date as Date
from typing import List, NamedTuple, Optional, Tuple
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


MIN_TASK_ID = 1
MAX_TASK_ID = 255   # 8-bit ids are a product constraint


class Task(BaseModel):
    """Individual task record"""
    model_config = ConfigDict(strict=True)

    id: int = Field(ge=MIN_TASK_ID, le=MAX_TASK_ID)
    text: str
    date: Optional[Date] = None
    done: bool = False

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("task text cannot be empty")
        return value


TaskDocument = TypeAdapter(List[Task])


def dump_tasks(tasks: List[Task]) -> str:
    """Serialize the store to the pretty-printed document format"""
    return json.dumps(
        [task.model_dump(mode="json") for task in tasks],
        indent=2,
        ensure_ascii=False,
    )


def parse_tasks(raw: str) -> List[Task]:
    """Parse a document; raises pydantic.ValidationError on any malformation"""
    return TaskDocument.validate_json(raw)


# ============================================================
# OPERATION RESULTS
# ============================================================

class EditResult(NamedTuple):
    edited: List[int]
    unchanged: List[int]
    not_found: List[int]


class MarkResult(NamedTuple):
    marked: List[Tuple[int, bool]]   # (id, new done state)
    not_found: List[int]


class RestoreReport(NamedTuple):
    tasks: List[Task]
    backup_path: Path
    before_restore_path: Optional[Path]   # None when no copy was taken
    current_corrupted: bool
