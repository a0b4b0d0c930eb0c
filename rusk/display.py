"""
RUSK - Presenter
================
Renders task listings and result messages through a rich Console,
word-wrapped to the terminal (never wider than 80 columns).
"""

from datetime import date
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from rich.console import Console
from rich.text import Text

from .dates import format_canonical, format_date
from .schema import EditResult, RestoreReport, Task

MAX_LINE_WIDTH = 80

# list row layout: "  ✔ 255 31-12-2025 text"
_STATUS_WIDTH = 1
_ID_WIDTH = 3
_DATE_WIDTH = 10
_ROW_INDENT = 2


def wrap_text(text: str, width: int) -> List[str]:
    """
    Wrap on whitespace so that no line exceeds `width` characters.

    Words longer than `width` are cut into chunks of exactly `width`
    characters. Empty input yields a single empty line.
    """
    width = max(width, 1)
    lines: List[str] = []
    current = ""

    for word in text.split():
        while len(word) > width:
            if current:
                lines.append(current)
                current = ""
            lines.append(word[:width])
            word = word[width:]

        if not current:
            current = word
        elif len(current) + 1 + len(word) <= width:
            current = f"{current} {word}"
        else:
            lines.append(current)
            current = word

    if current:
        lines.append(current)
    return lines or [""]


def max_line_width(console: Console) -> int:
    return min(console.width, MAX_LINE_WIDTH)


def is_overdue(task: Task, today: date) -> bool:
    return task.date is not None and not task.done and task.date < today


class Presenter:
    """User-facing output for every command"""

    def __init__(
        self,
        console: Console,
        today: Optional[date] = None,
        left_margin: int = 0,
        right_margin: int = 1,
    ):
        self.console = console
        self.today = today or date.today()
        self.left_margin = left_margin
        self.right_margin = right_margin

    # ========================================
    # LAYOUT HELPERS
    # ========================================

    def available_width(self, indent: int = 0) -> int:
        width = max_line_width(self.console) - self.left_margin - self.right_margin - indent
        return max(width, 10)

    def _print_lines(self, first: Text, body: str, indent: int, style: str = "") -> None:
        """Print `first` followed by `body` wrapped under the end of `first`"""
        lines = wrap_text(body, self.available_width(indent))
        margin = " " * self.left_margin
        self.console.print(Text(margin) + first + Text(lines[0], style=style))
        for line in lines[1:]:
            self.console.print(Text(margin + " " * indent + line, style=style))

    def _labelled(self, label: str, label_style: str, task_id: int, text: str) -> None:
        head = Text.assemble((label, label_style), " ", (str(task_id), "bold"), ": ")
        self._print_lines(head, text, head.cell_len, style="bold")

    def _notice(self, message: str, style: str = "yellow") -> None:
        self._print_lines(Text(""), message, 0, style=style)

    # ========================================
    # LISTING
    # ========================================

    def show_tasks(self, tasks: Sequence[Task]) -> None:
        if not tasks:
            self._notice("No tasks")
            return

        indent = _ROW_INDENT + _STATUS_WIDTH + 1 + _ID_WIDTH + 1 + _DATE_WIDTH + 1
        header = f"{' ' * _ROW_INDENT}# {'id'.rjust(_ID_WIDTH)} {'date'.center(_DATE_WIDTH)} task"
        self.console.print()
        self.console.print(Text(header))
        rule_width = min(46, max_line_width(self.console) - _ROW_INDENT - self.right_margin)
        self.console.print(Text(" " * _ROW_INDENT + "─" * rule_width))

        for task in tasks:
            head = Text(" " * _ROW_INDENT)
            head.append("✔" if task.done else "•", style="green" if task.done else "")
            head.append(" ")
            head.append(str(task.id).rjust(_ID_WIDTH), style="bold")
            head.append(" ")
            if task.date is None:
                head.append(" " * _DATE_WIDTH)
            else:
                date_style = "red" if is_overdue(task, self.today) else "cyan"
                head.append(format_canonical(task.date).center(_DATE_WIDTH), style=date_style)
            head.append(" ")

            lines = wrap_text(task.text, max_line_width(self.console) - indent - self.right_margin)
            self.console.print(head + Text(lines[0]))
            for line in lines[1:]:
                self.console.print(Text(" " * indent + line))

        self.console.print()

    # ========================================
    # RESULT MESSAGES
    # ========================================

    def task_added(self, task: Task) -> None:
        self._labelled("Added task:", "green", task.id, task.text)

    def tasks_marked(self, marked: Iterable[Tuple[int, bool]], tasks: Sequence[Task]) -> None:
        by_id = {t.id: t for t in tasks}
        for task_id, done in marked:
            task = by_id.get(task_id)
            if task is None:
                continue
            status = "done" if done else "undone"
            self._labelled(f"Marked task as {status}:", "green", task_id, task.text)

    def task_edited(self, task: Task) -> None:
        self._labelled("Edited task:", "green", task.id, task.text)

    def task_unchanged(self, task: Task) -> None:
        self._labelled("Task already has this content:", "magenta", task.id, task.text)

    def edit_results(self, result: EditResult, tasks: Sequence[Task]) -> None:
        by_id = {t.id: t for t in tasks}
        for task_id in result.edited:
            if task_id in by_id:
                self.task_edited(by_id[task_id])
        for task_id in result.unchanged:
            if task_id in by_id:
                self.task_unchanged(by_id[task_id])
        self.not_found(result.not_found)

    def task_skipped(self, task_id: int) -> None:
        self._notice(f"Skipped task {task_id}.", style="magenta")

    def not_found(self, ids: Sequence[int]) -> None:
        if not ids:
            return
        listing = " ".join(str(i) for i in ids)
        head = Text("Tasks not found IDs: ", style="yellow")
        self._print_lines(head, listing, head.cell_len)

    def tasks_deleted(self, count: int) -> None:
        self.console.print(Text.assemble(("Deleted ", "red"), str(count), (" task(s).", "red")))

    def done_deleted(self, count: int) -> None:
        self.console.print(Text.assemble(("Deleted ", "red"), str(count), (" done tasks.", "red")))

    def no_done_tasks(self) -> None:
        self._notice("No done tasks to delete.")

    def deletion_canceled(self, task_id: Optional[int] = None) -> None:
        if task_id is None:
            self.console.print("Canceled.")
        else:
            self.console.print(f"Canceled deletion of task {task_id}.")

    def usage(self, message: str) -> None:
        self._notice(message)

    def restored(self, report: RestoreReport) -> None:
        if report.before_restore_path is not None:
            self._path_line("Current database backed up to: ", report.before_restore_path)
        elif report.current_corrupted:
            self._notice("Current database is corrupted, skipping backup")
        count = len(report.tasks)
        self.console.print(
            Text(f"Successfully restored {count} tasks from backup", style="green")
        )
        self._path_line("Backup file: ", report.backup_path)

    def db_path(self, path: Path) -> None:
        self._path_line("Database: ", path, style="dim")

    def _path_line(self, label: str, path: Path, style: str = "") -> None:
        self.console.print(Text.assemble(label, (str(path), style)), soft_wrap=True)

    # ========================================
    # PROMPTS
    # ========================================

    def delete_prompt(self, task: Task) -> Text:
        return Text.assemble(
            ("Delete '", "orange1"), task.text, ("'? [y/N]: ", "orange1")
        )

    def delete_done_prompt(self, count: int) -> Text:
        return Text.assemble(
            ("Delete all done tasks (", "orange1"), str(count), (")? [y/N]: ", "orange1")
        )

    def edit_header(self, task: Task) -> None:
        head = Text.assemble(("Editing task ", "cyan"), (str(task.id), "bold"), ": ")
        self._print_lines(head, task.text, head.cell_len)

    def text_prompt(self) -> Text:
        return Text("  Text: ", style="cyan")

    def date_prompt(self, task: Task) -> Text:
        return Text.assemble(
            ("  Date ", "cyan"), (f"[{format_date(task.date)}]", "dim"), (": ", "cyan")
        )
