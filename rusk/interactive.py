"""Interactive edit: walk the requested tasks through the line editor.

Every task but the last may be skipped with Esc; on the last one Esc
leaves without saving. Edits are applied in memory as each task is
confirmed and written with a single save at the end.
"""

import logging
from typing import List, NamedTuple, Optional, Sequence, Union

from .dates import format_canonical, is_valid_date, parse_date
from .display import Presenter
from .editor import SKIP, LineEditor, PrefillMode, Signal
from .manager import TaskManager
from .schema import Task

logger = logging.getLogger("rusk")


class InteractiveEditResult(NamedTuple):
    edited: List[int]
    unchanged: List[int]
    not_found: List[int]
    skipped: List[int]


def _prompt_text(editor: LineEditor, presenter: Presenter, task: Task, allow_skip: bool) -> Union[str, Signal]:
    answer = editor.read_line(
        presenter.text_prompt(),
        prefill=task.text,
        mode=PrefillMode.GHOST,
        allow_skip=allow_skip,
    )
    if answer is SKIP:
        return SKIP
    return answer.strip()


def _prompt_date(editor: LineEditor, presenter: Presenter, task: Task, allow_skip: bool):
    prefill = format_canonical(task.date) if task.date is not None else ""
    answer = editor.read_line(
        presenter.date_prompt(task),
        prefill=prefill,
        mode=PrefillMode.GHOST,
        validator=is_valid_date,
        allow_skip=allow_skip,
    )
    if answer is SKIP:
        return SKIP
    if not answer.strip():
        return task.date
    parsed = parse_date(answer)
    return task.date if parsed is None else parsed


def edit_interactively(
    manager: TaskManager,
    ids: Sequence[int],
    editor: LineEditor,
    presenter: Presenter,
    edit_date: bool = False,
) -> InteractiveEditResult:
    """Edit each task's text (and optionally date) with the line editor"""
    edited: List[int] = []
    unchanged: List[int] = []
    not_found: List[int] = []
    skipped: List[int] = []

    for position, task_id in enumerate(ids):
        allow_skip = position < len(ids) - 1
        task: Optional[Task] = manager.get_task(task_id)
        if task is None:
            not_found.append(task_id)
            continue

        presenter.edit_header(task)
        new_text = _prompt_text(editor, presenter, task, allow_skip)
        new_date = task.date
        if new_text is not SKIP and edit_date:
            new_date = _prompt_date(editor, presenter, task, allow_skip)
        if new_text is SKIP or new_date is SKIP:
            skipped.append(task_id)
            presenter.task_skipped(task_id)
            continue

        changed = False
        if new_text and new_text != task.text.strip():
            task.text = new_text
            changed = True
        if new_date != task.date:
            task.date = new_date
            changed = True

        if changed:
            edited.append(task_id)
            presenter.task_edited(task)
        else:
            unchanged.append(task_id)
            presenter.task_unchanged(task)

    if edited:
        manager.save()
        logger.info(f"✏️ Interactively edited {len(edited)} tasks")

    presenter.not_found(not_found)
    return InteractiveEditResult(edited, unchanged, not_found, skipped)
