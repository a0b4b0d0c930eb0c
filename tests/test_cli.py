import io
import json

import pytest
from rich.console import Console

from rusk.cli import main, parse_edit_args, parse_flexible_ids


def _console():
    return Console(file=io.StringIO(), width=80, color_system=None, highlight=False)


def _run(tmp_path, *argv, stdin="", monkeypatch=None):
    if monkeypatch is not None:
        monkeypatch.setattr("sys.stdin", io.StringIO(stdin))
    out, err = _console(), _console()
    code = main(["--db", str(tmp_path / "tasks.json"), *argv], console=out, err_console=err)
    return code, out.file.getvalue(), err.file.getvalue()


def _on_disk(tmp_path):
    return json.loads((tmp_path / "tasks.json").read_text(encoding="utf-8"))


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in ("RUSK_DB", "RUSK_LOG_LEVEL", "RUSK_SHOW_PATHS"):
        monkeypatch.delenv(key, raising=False)


# argument parsing

def test_parse_flexible_ids():
    assert parse_flexible_ids(["1", "2,3", " ,4", "5,,x,6"]) == [1, 2, 3, 4, 5, 6]


def test_parse_flexible_ids_drops_out_of_range_and_words():
    assert parse_flexible_ids(["256", "abc", "7", "-1"]) == [7]


def test_parse_flexible_ids_keeps_order_and_duplicates():
    assert parse_flexible_ids(["3", "1,3"]) == [3, 1, 3]


def test_parse_edit_args_ids_then_text():
    assert parse_edit_args(["1,2", "3", "new", "text", "4"]) == ([1, 2, 3], ["new", "text", "4"])


def test_parse_edit_args_ids_only():
    assert parse_edit_args(["1", "2"]) == ([1, 2], None)


def test_parse_edit_args_text_first():
    assert parse_edit_args(["hello", "1"]) == ([], ["hello", "1"])


# commands

def test_add_and_list(tmp_path):
    code, out, _ = _run(tmp_path, "add", "buy", "milk", "--date", "15/01/25")

    assert code == 0
    assert "Added task: 1: buy milk" in out
    assert _on_disk(tmp_path)[0]["date"] == "2025-01-15"

    code, out, _ = _run(tmp_path, "l")
    assert code == 0
    assert "15-01-2025 buy milk" in out


def test_no_command_lists(tmp_path):
    _run(tmp_path, "a", "something")

    code, out, _ = _run(tmp_path)

    assert code == 0
    assert "something" in out


def test_add_empty_text_fails(tmp_path):
    code, _, err = _run(tmp_path, "add", " ")

    assert code == 1
    assert "Task text cannot be empty" in err
    assert not (tmp_path / "tasks.json").exists()


def test_mark_reports_state_and_missing(tmp_path):
    _run(tmp_path, "add", "one")

    code, out, _ = _run(tmp_path, "m", "1,9")

    assert code == 0
    assert "Marked task as done: 1: one" in out
    assert "Tasks not found IDs: 9" in out
    assert _on_disk(tmp_path)[0]["done"] is True


def test_mark_without_ids_is_usage_error(tmp_path):
    code, out, _ = _run(tmp_path, "mark")

    assert code == 1
    assert "specify" in out


def test_edit_with_text(tmp_path):
    _run(tmp_path, "add", "old")

    code, out, _ = _run(tmp_path, "e", "1", "brand", "new")

    assert code == 0
    assert "Edited task: 1: brand new" in out
    assert _on_disk(tmp_path)[0]["text"] == "brand new"


def test_edit_date_only(tmp_path):
    _run(tmp_path, "add", "task")

    code, _, _ = _run(tmp_path, "edit", "1", "--date", "01-02-2030")

    assert code == 0
    assert _on_disk(tmp_path)[0] == {"id": 1, "text": "task", "date": "2030-02-01", "done": False}


def test_edit_unchanged(tmp_path):
    _run(tmp_path, "add", "same")

    _, out, _ = _run(tmp_path, "edit", "1", "same")

    assert "Task already has this content" in out
    assert not (tmp_path / "tasks.json.backup").exists()


def test_interactive_edit_needs_a_terminal(tmp_path, monkeypatch):
    _run(tmp_path, "add", "keep")

    code, _, err = _run(tmp_path, "edit", "1", monkeypatch=monkeypatch)

    assert code == 1
    assert err
    assert _on_disk(tmp_path)[0]["text"] == "keep"


def test_delete_confirmed(tmp_path, monkeypatch):
    _run(tmp_path, "add", "one")
    _run(tmp_path, "add", "two")

    code, out, _ = _run(tmp_path, "del", "1", "5", stdin="y\n", monkeypatch=monkeypatch)

    assert code == 0
    assert "Delete 'one'? [y/N]:" in out
    assert "Deleted 1 task(s)." in out
    assert "Tasks not found IDs: 5" in out
    assert [t["id"] for t in _on_disk(tmp_path)] == [2]


def test_delete_declined(tmp_path, monkeypatch):
    _run(tmp_path, "add", "one")

    code, out, _ = _run(tmp_path, "d", "1", stdin="n\n", monkeypatch=monkeypatch)

    assert code == 0
    assert "Canceled deletion of task 1." in out
    assert len(_on_disk(tmp_path)) == 1


def test_delete_done(tmp_path, monkeypatch):
    for text in ("a", "b", "c"):
        _run(tmp_path, "add", text)
    _run(tmp_path, "mark", "1", "3")

    code, out, _ = _run(tmp_path, "del", "--done", stdin="Y\n", monkeypatch=monkeypatch)

    assert code == 0
    assert "Delete all done tasks (2)? [y/N]:" in out
    assert "Deleted 2 done tasks." in out
    assert [t["text"] for t in _on_disk(tmp_path)] == ["b"]


def test_delete_done_with_nothing_done(tmp_path):
    _run(tmp_path, "add", "a")

    _, out, _ = _run(tmp_path, "del", "--done")

    assert "No done tasks to delete." in out


def test_restore_round_trip(tmp_path):
    _run(tmp_path, "add", "first")
    _run(tmp_path, "add", "second")

    code, out, _ = _run(tmp_path, "restore")

    assert code == 0
    assert "Successfully restored 1 tasks from backup" in out
    assert [t["text"] for t in _on_disk(tmp_path)] == ["first"]
    assert (tmp_path / "tasks.json.before_restore").exists()


def test_restore_without_backup(tmp_path):
    code, _, err = _run(tmp_path, "r")

    assert code == 1
    assert "No backup file found" in err


def test_corrupted_database_is_reported(tmp_path):
    (tmp_path / "tasks.json").write_text("[oops", encoding="utf-8")

    code, _, err = _run(tmp_path, "list")

    assert code == 1
    assert "appears to be corrupted" in err
    assert "rusk restore" in err


def test_binary_database_is_reported(tmp_path):
    (tmp_path / "tasks.json").write_bytes(b"\xff\xff")

    code, _, err = _run(tmp_path, "list")

    assert code == 1
    assert "appears to be corrupted" in err


def test_verbose_shows_database_path(tmp_path):
    _, out, _ = _run(tmp_path, "-v", "list")

    assert str(tmp_path / "tasks.json") in out


def test_db_directory_gets_default_file(tmp_path):
    out, err = _console(), _console()

    code = main(["--db", str(tmp_path), "add", "x"], console=out, err_console=err)

    assert code == 0
    assert (tmp_path / "tasks.json").exists()
