#!/usr/bin/env python3
"""
RUSK - CLI Interface
====================
Command-line tool for a small list of numbered tasks.

Usage:
    rusk add buy groceries --date 15-01-25
    rusk list
    rusk mark 2,4
    rusk edit 3 new text for task three
    rusk edit 3 --date          (interactive text + date)
    rusk del 1 3
    rusk del --done
    rusk restore
"""

import argparse
import logging
import sys
from typing import List, Optional, Sequence, Tuple

from rich.console import Console
from rich.text import Text

from . import __version__
from .config import RuskConfig, load_config
from .display import Presenter
from .editor import LineEditor, confirm
from .errors import RuskError
from .interactive import edit_interactively
from .manager import TaskManager
from .schema import MAX_TASK_ID
from .storage import Storage

logger = logging.getLogger("rusk")

# --date given without a value on `edit`
ASK_DATE = object()


# ============================================================
# ID PARSING
# ============================================================

def _parse_id(part: str) -> Optional[int]:
    part = part.strip()
    if not part or not (part.isascii() and part.isdigit()):
        return None
    value = int(part)
    return value if value <= MAX_TASK_ID else None


def _parse_id_token(token: str) -> Optional[List[int]]:
    """Ids in one token, or None when the token is not an id token at all"""
    if "," in token:
        return [i for i in (_parse_id(p) for p in token.split(",")) if i is not None]
    stripped = token.strip()
    if not stripped:
        return []
    if stripped.isascii() and stripped.isdigit():
        value = _parse_id(stripped)
        return [] if value is None else [value]
    return None


def parse_flexible_ids(tokens: Sequence[str]) -> List[int]:
    """
    Collect ids from tokens that are single integers or comma lists.

    "1" "2,3" " ,4" -> [1, 2, 3, 4]; invalid parts are dropped, order and
    duplicates are kept.
    """
    ids: List[int] = []
    for token in tokens:
        ids.extend(_parse_id_token(token) or [])
    return ids


def parse_edit_args(tokens: Sequence[str]) -> Tuple[List[int], Optional[List[str]]]:
    """Split edit arguments into leading ids and the replacement text words"""
    ids: List[int] = []
    for idx, token in enumerate(tokens):
        parsed = _parse_id_token(token)
        if parsed is None:
            return ids, list(tokens[idx:])
        ids.extend(parsed)
    return ids, None


# ============================================================
# ARGUMENTS
# ============================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rusk",
        description="rusk - a minimal command-line task manager",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  rusk add buy groceries --date 15-01-25    Add a task with a due date
  rusk list                                 Show all tasks
  rusk mark 2,4                             Toggle done on tasks 2 and 4
  rusk edit 3 new text                      Replace the text of task 3
  rusk edit 3                               Edit task 3 interactively
  rusk edit 1,3 --date                      Edit text and date interactively
  rusk del 1 3                              Delete tasks (asks first)
  rusk del --done                           Delete all completed tasks
  rusk restore                              Restore the last backup

Set RUSK_DB to a directory or file to choose where tasks are stored.
        """
    )
    parser.add_argument("--db", help="Database file or directory (overrides RUSK_DB)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show database path and debug logging")
    parser.add_argument("--version", action="version", version=f"rusk {__version__}")

    subparsers = parser.add_subparsers(dest="alias", help="Commands")

    # ADD command
    add_parser = subparsers.add_parser("add", aliases=["a"], help="Add a new task")
    add_parser.add_argument("text", nargs="*", help="Task text")
    add_parser.add_argument("-d", "--date", help="Due date (DD-MM-YYYY, DD/MM/YY, ...)")
    add_parser.set_defaults(command="add")

    # DEL command
    del_parser = subparsers.add_parser("del", aliases=["d"], help="Delete tasks")
    del_parser.add_argument("ids", nargs="*", help="Task ids (1 2 or 1,2)")
    del_parser.add_argument("--done", action="store_true", help="Delete all completed tasks")
    del_parser.set_defaults(command="del")

    # MARK command
    mark_parser = subparsers.add_parser("mark", aliases=["m"], help="Toggle tasks done/undone")
    mark_parser.add_argument("ids", nargs="*", help="Task ids")
    mark_parser.set_defaults(command="mark")

    # EDIT command
    edit_parser = subparsers.add_parser("edit", aliases=["e"], help="Edit task text and/or date")
    edit_parser.add_argument("args", nargs="*", help="Task ids followed by the new text")
    edit_parser.add_argument(
        "-d", "--date", nargs="?", const=ASK_DATE,
        help="New date; without a value, edit the date interactively",
    )
    edit_parser.set_defaults(command="edit")

    # LIST command
    list_parser = subparsers.add_parser("list", aliases=["l"], help="List all tasks")
    list_parser.set_defaults(command="list")

    # RESTORE command
    restore_parser = subparsers.add_parser("restore", aliases=["r"], help="Restore from backup")
    restore_parser.set_defaults(command="restore")

    return parser


# ============================================================
# COMMANDS
# ============================================================

def _delete_by_ids(manager: TaskManager, presenter: Presenter, ids: List[int]) -> None:
    confirmed: List[int] = []
    declined: List[int] = []
    not_found: List[int] = []

    for task_id in ids:
        if task_id in confirmed or task_id in declined:
            continue
        task = manager.get_task(task_id)
        if task is None:
            not_found.append(task_id)
            continue
        if confirm(presenter.console, presenter.delete_prompt(task)):
            confirmed.append(task_id)
        else:
            declined.append(task_id)
            presenter.deletion_canceled(task_id)

    if confirmed:
        not_found.extend(manager.delete_tasks(confirmed))
        presenter.tasks_deleted(len(confirmed))

    presenter.not_found(not_found)


def _delete_done(manager: TaskManager, presenter: Presenter) -> None:
    done_count = manager.done_count()
    if done_count == 0:
        presenter.no_done_tasks()
        return

    if not confirm(presenter.console, presenter.delete_done_prompt(done_count)):
        presenter.deletion_canceled()
        return

    deleted = manager.delete_all_done()
    if deleted:
        presenter.done_deleted(deleted)


def _edit(manager: TaskManager, presenter: Presenter, args: argparse.Namespace) -> int:
    ids, words = parse_edit_args(args.args)
    if not ids:
        presenter.usage("Please specify task id(s) to edit.")
        return 1

    if words is None and (args.date is None or args.date is ASK_DATE):
        editor = LineEditor(presenter.console)
        edit_interactively(manager, ids, editor, presenter, edit_date=args.date is ASK_DATE)
        return 0

    date = None if args.date is ASK_DATE else args.date
    result = manager.edit_tasks(ids, words, date)
    presenter.edit_results(result, manager.tasks)
    return 0


def run(args: argparse.Namespace, config: RuskConfig, presenter: Presenter) -> int:
    """Execute one parsed command against the configured database"""
    command = getattr(args, "command", None) or "list"
    logger.debug(f"🚀 Running '{command}' against {config.db_path}")

    if config.show_paths:
        presenter.db_path(config.db_path)

    # restore must not parse the main file first; it may be the corrupted one
    if command == "restore":
        manager = TaskManager(Storage(config.db_path))
        report = manager.restore()
        presenter.restored(report)
        return 0

    manager = TaskManager.open(config)

    if command == "add":
        task = manager.add_task(args.text, args.date)
        presenter.task_added(task)

    elif command == "del":
        ids = parse_flexible_ids(args.ids)
        if args.done and not ids:
            _delete_done(manager, presenter)
        elif ids:
            _delete_by_ids(manager, presenter, ids)
        else:
            presenter.usage("Please specify id(s) or --done.")

    elif command == "mark":
        ids = parse_flexible_ids(args.ids)
        if not ids:
            presenter.usage("Please specify task id(s) to mark.")
            return 1
        marked, not_found = manager.mark_tasks(ids)
        presenter.tasks_marked(marked, manager.tasks)
        presenter.not_found(not_found)

    elif command == "edit":
        return _edit(manager, presenter, args)

    elif command == "list":
        presenter.show_tasks(manager.tasks)

    return 0


def main(
    argv: Optional[Sequence[str]] = None,
    console: Optional[Console] = None,
    err_console: Optional[Console] = None,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    console = console or Console(highlight=False)
    err_console = err_console or Console(stderr=True, highlight=False)

    try:
        config = load_config(db_override=args.db, verbose=args.verbose)
        logging.basicConfig(level=config.log_level, format="%(levelname)s: %(message)s")
        return run(args, config, Presenter(console))
    except RuskError as e:
        err_console.print(Text(str(e), style="red"), soft_wrap=True)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
