"""
RUSK - Line Editor
==================
Single-line raw-mode editor used by interactive edit, plus the single-key
confirmation prompt.

The editor is split into layers so each can be exercised on its own:

    translate_keys()  prompt_toolkit key presses -> KeyPress values
    LineState         buffer, cursor and ghost prefill; all editing rules
    render_line()     LineState -> styled line and cursor column
    LineEditor        drives the three against a key source and a console

Terminal input (raw mode, escape sequences, UTF-8) comes from
prompt_toolkit's input layer; rendering goes through rich.

Key bindings:
    printable       insert (replaces an active ghost)
    Backspace/Del   delete left / at cursor
    Left/Right      move one character
    Home/End        jump to start / end
    Ctrl+Left/Right jump by word
    Ctrl+W          delete previous word (also Ctrl+Backspace)
    Tab, Ctrl+Up    accept the prefill
    Enter           submit (bell when a validator rejects the input)
    Esc             skip this prompt, or quit when skipping is not allowed
    Ctrl+C / Ctrl+D quit with status 130 / 0
"""

import select
import sys
import unicodedata
from contextlib import ExitStack
from dataclasses import dataclass
from enum import Enum
from typing import (
    Callable, ContextManager, Iterable, Iterator, List, NamedTuple,
    Optional, Sequence, Tuple, Union,
)

from prompt_toolkit.input import Input, create_input
from prompt_toolkit.key_binding import KeyPress as ToolkitKeyPress
from prompt_toolkit.keys import Keys
from rich.cells import cell_len
from rich.console import Console
from rich.control import Control
from rich.segment import ControlType
from rich.text import Text

from .errors import TerminalError

Validator = Callable[[str], bool]
Prompt = Union[str, Text]

# how long a lone Esc waits for the rest of an escape sequence
ESCAPE_TIMEOUT = 0.05


class KeyName(str, Enum):
    CHAR = "char"
    ENTER = "enter"
    TAB = "tab"
    BACKSPACE = "backspace"
    CTRL_BACKSPACE = "ctrl_backspace"
    CTRL_W = "ctrl_w"
    DELETE = "delete"
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"
    HOME = "home"
    END = "end"
    CTRL_LEFT = "ctrl_left"
    CTRL_RIGHT = "ctrl_right"
    CTRL_UP = "ctrl_up"
    ESC = "esc"
    CTRL_C = "ctrl_c"
    CTRL_D = "ctrl_d"
    UNKNOWN = "unknown"


class KeyPress(NamedTuple):
    name: KeyName
    char: str = ""


class PrefillMode(str, Enum):
    GHOST = "ghost"                 # shown as a suggestion, not in the buffer
    CURSOR_START = "cursor_start"   # loaded into the buffer, cursor at 0
    CURSOR_END = "cursor_end"       # loaded into the buffer, cursor at end


class Signal(Enum):
    SKIP = "skip"


SKIP = Signal.SKIP


# ============================================================
# KEY TRANSLATION
# ============================================================

_TOOLKIT_KEYS = {
    Keys.ControlM: KeyName.ENTER,
    Keys.ControlJ: KeyName.ENTER,
    Keys.ControlI: KeyName.TAB,
    Keys.ControlW: KeyName.CTRL_W,
    Keys.ControlC: KeyName.CTRL_C,
    Keys.ControlD: KeyName.CTRL_D,
    Keys.Delete: KeyName.DELETE,
    Keys.Left: KeyName.LEFT,
    Keys.Right: KeyName.RIGHT,
    Keys.Up: KeyName.UP,
    Keys.Down: KeyName.DOWN,
    Keys.Home: KeyName.HOME,
    Keys.End: KeyName.END,
    Keys.ControlLeft: KeyName.CTRL_LEFT,
    Keys.ControlRight: KeyName.CTRL_RIGHT,
    Keys.ControlUp: KeyName.CTRL_UP,
    Keys.Escape: KeyName.ESC,
}


def _is_backspace(press: ToolkitKeyPress) -> bool:
    return press.key == Keys.ControlH or press.key == "\x7f"


def translate_keys(presses: Sequence[ToolkitKeyPress]) -> List[KeyPress]:
    """Map prompt_toolkit key presses onto editor keys.

    Backspace and Ctrl+Backspace both arrive as ``c-h``; the raw data tells
    them apart (``\\x7f`` vs ``\\x08``). Esc immediately followed by
    Backspace in the same read is the Alt/Ctrl+Backspace form some
    terminals send.
    """
    keys: List[KeyPress] = []
    i = 0
    while i < len(presses):
        press = presses[i]
        i += 1

        if press.key == Keys.Escape and i < len(presses) and _is_backspace(presses[i]):
            keys.append(KeyPress(KeyName.CTRL_BACKSPACE))
            i += 1
        elif _is_backspace(press):
            name = KeyName.CTRL_BACKSPACE if press.data == "\x08" else KeyName.BACKSPACE
            keys.append(KeyPress(name))
        elif press.key == Keys.BracketedPaste:
            text = " ".join(press.data.splitlines())
            if text:
                keys.append(KeyPress(KeyName.CHAR, text))
        elif isinstance(press.key, Keys):
            keys.append(KeyPress(_TOOLKIT_KEYS.get(press.key, KeyName.UNKNOWN)))
        elif press.key.isprintable():
            keys.append(KeyPress(KeyName.CHAR, press.key))
        else:
            keys.append(KeyPress(KeyName.UNKNOWN))

    return keys


# ============================================================
# CHARACTER BOUNDARIES AND WORDS
# ============================================================

_ZWJ = "\u200d"


def _joins_previous(text: str, idx: int) -> bool:
    """True when text[idx] belongs to the same cluster as text[idx - 1]"""
    ch = text[idx]
    if unicodedata.combining(ch) or ch in (_ZWJ, "\ufe0e", "\ufe0f"):
        return True
    if 0x1F3FB <= ord(ch) <= 0x1F3FF:   # skin tone modifiers
        return True
    return idx > 0 and text[idx - 1] == _ZWJ


def prev_char_boundary(text: str, idx: int) -> int:
    if idx <= 0:
        return 0
    idx -= 1
    while idx > 0 and _joins_previous(text, idx):
        idx -= 1
    return idx


def next_char_boundary(text: str, idx: int) -> int:
    if idx >= len(text):
        return len(text)
    idx += 1
    while idx < len(text) and _joins_previous(text, idx):
        idx += 1
    return idx


def is_word_char(ch: str) -> bool:
    return ch.isalnum() or ch in ("_", "-") or bool(unicodedata.combining(ch))


def jump_prev_word(text: str, cursor: int) -> int:
    i = cursor
    while i > 0 and is_word_char(text[i - 1]):
        i -= 1
    while i > 0 and not is_word_char(text[i - 1]):
        i -= 1
    while i > 0 and is_word_char(text[i - 1]):
        i -= 1
    return i


def jump_next_word(text: str, cursor: int) -> int:
    i = cursor
    while i < len(text) and is_word_char(text[i]):
        i += 1
    while i < len(text) and not is_word_char(text[i]):
        i += 1
    return i


# ============================================================
# EDITING STATE
# ============================================================

@dataclass
class LineState:
    """Buffer, cursor and ghost prefill of one prompt"""
    buffer: str = ""
    cursor: int = 0
    prefill: str = ""
    ghost_active: bool = False

    @classmethod
    def start(cls, prefill: str, mode: PrefillMode) -> "LineState":
        if mode is PrefillMode.GHOST:
            return cls(prefill=prefill, ghost_active=bool(prefill))
        cursor = 0 if mode is PrefillMode.CURSOR_START else len(prefill)
        return cls(buffer=prefill, cursor=cursor, prefill=prefill)

    @property
    def ghost(self) -> str:
        return self.prefill if self.ghost_active else ""

    def insert(self, text: str) -> None:
        if self.ghost_active:
            self.buffer = ""
            self.cursor = 0
            self.ghost_active = False
        self.buffer = self.buffer[:self.cursor] + text + self.buffer[self.cursor:]
        self.cursor += len(text)

    def backspace(self) -> None:
        if self.cursor == 0:
            return
        start = prev_char_boundary(self.buffer, self.cursor)
        self.buffer = self.buffer[:start] + self.buffer[self.cursor:]
        self.cursor = start

    def delete(self) -> None:
        if self.cursor >= len(self.buffer):
            return
        end = next_char_boundary(self.buffer, self.cursor)
        self.buffer = self.buffer[:self.cursor] + self.buffer[end:]

    def move_left(self) -> None:
        self.cursor = prev_char_boundary(self.buffer, self.cursor)

    def move_right(self) -> None:
        self.cursor = next_char_boundary(self.buffer, self.cursor)

    def move_home(self) -> None:
        self.cursor = 0

    def move_end(self) -> None:
        self.cursor = len(self.buffer)

    def word_left(self) -> None:
        self.cursor = jump_prev_word(self.buffer, self.cursor)

    def word_right(self) -> None:
        self.cursor = jump_next_word(self.buffer, self.cursor)

    def delete_word(self) -> None:
        start = jump_prev_word(self.buffer, self.cursor)
        self.buffer = self.buffer[:start] + self.buffer[self.cursor:]
        self.cursor = start

    def accept_ghost(self) -> None:
        self.buffer = self.prefill
        self.cursor = len(self.buffer)
        self.ghost_active = False

    def apply(self, key: KeyPress) -> bool:
        """Apply an editing key; False when the key is not an editing key"""
        actions = {
            KeyName.BACKSPACE: self.backspace,
            KeyName.DELETE: self.delete,
            KeyName.LEFT: self.move_left,
            KeyName.RIGHT: self.move_right,
            KeyName.HOME: self.move_home,
            KeyName.END: self.move_end,
            KeyName.CTRL_LEFT: self.word_left,
            KeyName.CTRL_RIGHT: self.word_right,
            KeyName.CTRL_W: self.delete_word,
            KeyName.CTRL_BACKSPACE: self.delete_word,
            KeyName.TAB: self.accept_ghost,
            KeyName.CTRL_UP: self.accept_ghost,
        }
        if key.name is KeyName.CHAR:
            self.insert(key.char)
            return True
        action = actions.get(key.name)
        if action is None:
            return False
        action()
        return True


# ============================================================
# RENDERING
# ============================================================

def render_line(
    state: LineState,
    prompt: Prompt,
    validator: Optional[Validator] = None,
) -> Tuple[Text, int]:
    """Build the display line and the screen column of the cursor"""
    prompt_text = prompt.copy() if isinstance(prompt, Text) else Text(prompt)
    line = prompt_text.copy()

    style = ""
    if validator is not None:
        trimmed = state.buffer.strip()
        style = "green" if trimmed and validator(trimmed) else "red"
    line.append(state.buffer, style=style)

    ghost = state.ghost
    if ghost:
        line.append(ghost, style="dim")

    # pad over whatever a longer buffer or prefill left on screen
    shown = cell_len(state.buffer) + cell_len(ghost)
    widest = max(cell_len(state.buffer), cell_len(state.prefill))
    if widest > shown:
        line.append(" " * (widest - shown))

    column = prompt_text.cell_len + cell_len(state.buffer[:state.cursor])
    return line, column


# ============================================================
# TERMINAL
# ============================================================

class TerminalKeys:
    """
    Key source reading a prompt_toolkit input in raw mode.

    Raw mode lasts exactly as long as the `with` block; the terminal is
    restored however the block is left, including SystemExit.
    """

    def __init__(self, source: Optional[Input] = None):
        self._input = source
        self._stack = ExitStack()

    def __enter__(self) -> "TerminalKeys":
        if self._input is None:
            if not sys.stdin.isatty():
                raise TerminalError("Interactive input needs a terminal (stdin is not a TTY)")
            try:
                self._input = create_input()
            except (OSError, ValueError) as exc:
                raise TerminalError(f"Failed to open the terminal: {exc}") from exc

        try:
            self._stack.enter_context(self._input.raw_mode())
        except (OSError, ValueError) as exc:
            raise TerminalError(f"Failed to enable raw mode: {exc}") from exc
        return self

    def __exit__(self, *exc_info) -> bool:
        self._stack.close()
        return False

    def __iter__(self) -> Iterator[KeyPress]:
        fileno = self._input.fileno()
        while not self._input.closed:
            ready, _, _ = select.select([fileno], [], [], ESCAPE_TIMEOUT)
            # a pending lone Esc is only released by flushing after a pause
            presses = self._input.read_keys() if ready else self._input.flush_keys()
            yield from translate_keys(presses)


KeySourceFactory = Callable[[], ContextManager[Iterable[KeyPress]]]


class _Outcome(Enum):
    SUBMIT = "submit"
    SKIP = "skip"
    CANCEL = "cancel"
    INTERRUPT = "interrupt"
    EOF = "eof"


class LineEditor:
    """Interactive single-line editor bound to a console and a key source"""

    def __init__(self, console: Console, keys_factory: Optional[KeySourceFactory] = None):
        self.console = console
        self.keys_factory = keys_factory or TerminalKeys

    def read_line(
        self,
        prompt: Prompt,
        prefill: str = "",
        mode: PrefillMode = PrefillMode.GHOST,
        validator: Optional[Validator] = None,
        allow_skip: bool = False,
    ) -> Union[str, Signal]:
        """
        Read one line of input.

        Returns the submitted buffer, or SKIP when `allow_skip` is set and
        Esc was pressed. Esc without `allow_skip`, Ctrl+C and Ctrl+D end
        the process via SystemExit once the terminal has been restored.
        """
        state = LineState.start(prefill, mode)

        with self.keys_factory() as keys:
            self._draw(state, prompt, validator)
            outcome = self._run(state, keys, prompt, validator, allow_skip)
            if outcome is _Outcome.SUBMIT:
                state.ghost_active = False
                self._draw(state, prompt, validator)

        self.console.line()

        if outcome is _Outcome.SUBMIT:
            return state.buffer
        if outcome is _Outcome.SKIP:
            return SKIP
        if outcome is _Outcome.INTERRUPT:
            raise SystemExit(130)
        if outcome is _Outcome.CANCEL:
            self.console.print(Text("Nothing changed.", style="yellow"))
        raise SystemExit(0)

    def _run(
        self,
        state: LineState,
        keys: Iterable[KeyPress],
        prompt: Prompt,
        validator: Optional[Validator],
        allow_skip: bool,
    ) -> _Outcome:
        for key in keys:
            if key.name is KeyName.CTRL_C:
                return _Outcome.INTERRUPT
            if key.name is KeyName.CTRL_D:
                return _Outcome.EOF
            if key.name is KeyName.ESC:
                return _Outcome.SKIP if allow_skip else _Outcome.CANCEL
            if key.name is KeyName.ENTER:
                trimmed = state.buffer.strip()
                if validator is not None and trimmed and not validator(trimmed):
                    self.console.bell()
                    continue
                return _Outcome.SUBMIT
            if state.apply(key):
                self._draw(state, prompt, validator)
        return _Outcome.EOF

    def _draw(self, state: LineState, prompt: Prompt, validator: Optional[Validator]) -> None:
        line, column = render_line(state, prompt, validator)
        self.console.control(
            Control(ControlType.CARRIAGE_RETURN, (ControlType.ERASE_IN_LINE, 2))
        )
        self.console.print(line, end="", soft_wrap=True)
        self.console.control(Control.move_to_column(column))


def confirm(
    console: Console,
    prompt: Prompt,
    keys_factory: Optional[KeySourceFactory] = None,
) -> bool:
    """Ask a yes/no question answered by a single key; only y/Y confirms"""
    console.print(prompt, end="")

    if keys_factory is None and not sys.stdin.isatty():
        answer = sys.stdin.readline().strip()
        console.line()
        return answer.lower() == "y"

    with (keys_factory or TerminalKeys)() as keys:
        key = next(iter(keys), KeyPress(KeyName.CTRL_D))

    if key.name is KeyName.CTRL_C:
        console.line()
        raise SystemExit(130)

    console.print(key.char if key.name is KeyName.CHAR else "")
    return key.name is KeyName.CHAR and key.char in ("y", "Y")
