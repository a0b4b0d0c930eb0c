import io
from datetime import date

from rich.console import Console

from rusk.display import Presenter
from rusk.editor import SKIP
from rusk.interactive import edit_interactively
from rusk.manager import TaskManager
from rusk.schema import Task
from rusk.storage import Storage


class ScriptedEditor:
    """Answers prompts from a fixed list and records what was asked"""

    def __init__(self, answers):
        self.answers = list(answers)
        self.calls = []

    def read_line(self, prompt, prefill="", mode=None, validator=None, allow_skip=False):
        self.calls.append({"prefill": prefill, "allow_skip": allow_skip, "validator": validator})
        return self.answers.pop(0)


def _setup(tmp_path, tasks):
    manager = TaskManager(Storage(tmp_path / "tasks.json"), tasks)
    console = Console(file=io.StringIO(), width=80, color_system=None, highlight=False)
    return manager, Presenter(console)


def test_edit_text_saves_once(tmp_path):
    manager, presenter = _setup(tmp_path, [Task(id=1, text="old"), Task(id=2, text="other")])
    editor = ScriptedEditor(["new", "  changed too  "])

    result = edit_interactively(manager, [1, 2], editor, presenter)

    assert result.edited == [1, 2]
    assert [t.text for t in manager.tasks] == ["new", "changed too"]
    assert [c["allow_skip"] for c in editor.calls] == [True, False]
    assert [c["prefill"] for c in editor.calls] == ["old", "other"]
    assert Storage(tmp_path / "tasks.json").load()[1].text == "changed too"
    assert not (tmp_path / "tasks.json.backup").exists()


def test_empty_answer_keeps_text(tmp_path):
    manager, presenter = _setup(tmp_path, [Task(id=1, text="keep")])

    result = edit_interactively(manager, [1], ScriptedEditor([""]), presenter)

    assert result.unchanged == [1]
    assert manager.tasks[0].text == "keep"
    assert not (tmp_path / "tasks.json").exists()
    assert "Task already has this content" in presenter.console.file.getvalue()


def test_accepting_padded_text_is_unchanged(tmp_path):
    manager, presenter = _setup(tmp_path, [Task(id=1, text="  padded  ")])

    result = edit_interactively(manager, [1], ScriptedEditor(["  padded  "]), presenter)

    assert result.unchanged == [1]
    assert result.edited == []
    assert manager.tasks[0].text == "  padded  "
    assert not (tmp_path / "tasks.json").exists()


def test_skip_moves_to_next_task(tmp_path):
    manager, presenter = _setup(tmp_path, [Task(id=1, text="a"), Task(id=2, text="b")])

    result = edit_interactively(manager, [1, 2], ScriptedEditor([SKIP, "B"]), presenter)

    assert result.skipped == [1]
    assert result.edited == [2]
    assert [t.text for t in manager.tasks] == ["a", "B"]
    assert "Skipped task 1." in presenter.console.file.getvalue()


def test_skip_at_date_prompt_discards_text(tmp_path):
    manager, presenter = _setup(tmp_path, [Task(id=1, text="a"), Task(id=2, text="b")])
    editor = ScriptedEditor(["A", SKIP, "", ""])

    result = edit_interactively(manager, [1, 2], editor, presenter, edit_date=True)

    assert result.skipped == [1]
    assert result.unchanged == [2]
    assert manager.tasks[0].text == "a"


def test_edit_date_uses_canonical_prefill(tmp_path):
    manager, presenter = _setup(tmp_path, [Task(id=1, text="a", date=date(2025, 1, 15))])
    editor = ScriptedEditor(["", "20/02/26"])

    result = edit_interactively(manager, [1], editor, presenter, edit_date=True)

    assert result.edited == [1]
    assert editor.calls[1]["prefill"] == "15-01-2025"
    assert editor.calls[1]["validator"] is not None
    assert manager.tasks[0].date == date(2026, 2, 20)


def test_blank_date_answer_keeps_date(tmp_path):
    manager, presenter = _setup(tmp_path, [Task(id=1, text="a", date=date(2025, 1, 15))])

    result = edit_interactively(manager, [1], ScriptedEditor(["", "  "]), presenter, edit_date=True)

    assert result.unchanged == [1]
    assert manager.tasks[0].date == date(2025, 1, 15)


def test_missing_ids_are_reported_after_the_loop(tmp_path):
    manager, presenter = _setup(tmp_path, [Task(id=3, text="c")])
    editor = ScriptedEditor(["see"])

    result = edit_interactively(manager, [7, 3], editor, presenter)

    assert result.not_found == [7]
    assert result.edited == [3]
    out = presenter.console.file.getvalue()
    assert out.index("Edited task") < out.index("Tasks not found IDs: 7")
