"""Line editor - the in-progress command buffer, cursor and history."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from stacksh.tui.keys import Key, KeyEvent
from stacksh.tui.terminal import CRLF, ERASE_TO_END, cursor_back, cursor_forward

DEFAULT_HISTORY_SIZE = 1000


@dataclass
class CommandLine:
    """Buffer being edited and the cursor index into it.

    ``0 <= cursor <= len(buffer)`` always holds.
    """

    buffer: str = ""
    cursor: int = 0

    def reset(self) -> None:
        self.buffer = ""
        self.cursor = 0


class History:
    """Append-only list of submitted lines with a browsing index.

    ``index`` ranges over ``[0, len(entries)]``; ``len(entries)`` means the
    live, not-yet-submitted line.
    """

    def __init__(self, max_size: int = DEFAULT_HISTORY_SIZE) -> None:
        self._entries: list[str] = []
        self._max_size = max_size
        self.index: int = 0

    @property
    def entries(self) -> tuple[str, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, line: str) -> None:
        self._entries.append(line)
        if len(self._entries) > self._max_size:
            del self._entries[: len(self._entries) - self._max_size]
        self.index = len(self._entries)

    def entry(self, index: int) -> str:
        return self._entries[index]

    def reset_index(self) -> None:
        self.index = len(self._entries)


class LineEditor:
    """Turns key events into buffer mutations and terminal redraws.

    Every mutation repaints the whole line (``\\r``, prompt, buffer,
    erase-to-end) and then steps the cursor back from the end of the buffer
    to the authoritative cursor index. Pure cursor moves only emit relative
    cursor motion.
    """

    def __init__(
        self,
        write: Callable[[str], None],
        prompt: Callable[[], str],
        *,
        history: History | None = None,
    ) -> None:
        self._write = write
        self._prompt = prompt
        self.line = CommandLine()
        self.history = history if history is not None else History()
        self._live_buffer: str = ""

        self.on_submit: Callable[[str], None] | None = None
        self.on_tab: Callable[[], None] | None = None

    # -- accessors -----------------------------------------------------------

    @property
    def buffer(self) -> str:
        return self.line.buffer

    @property
    def cursor(self) -> int:
        return self.line.cursor

    # -- input dispatch ------------------------------------------------------

    def handle_key(self, event: KeyEvent) -> None:
        match event.name:
            case Key.enter:
                line = self.submit()
                if self.on_submit:
                    self.on_submit(line)
            case Key.ctrl_c:
                self.cancel()
            case Key.backspace:
                self.backspace()
            case Key.delete:
                self.delete_forward()
            case Key.left:
                self.move_left()
            case Key.right:
                self.move_right()
            case Key.word_left:
                self.move_word_left()
            case Key.word_right:
                self.move_word_right()
            case Key.home:
                self.move_home()
            case Key.end:
                self.move_end()
            case Key.up:
                self.history_up()
            case Key.down:
                self.history_down()
            case Key.tab:
                if self.on_tab:
                    self.on_tab()
            case "char":
                self.insert_char(event.data)
            case _:
                pass

    # -- rendering -----------------------------------------------------------

    def show_prompt(self) -> None:
        """Write the prompt followed by the current buffer."""
        self._write(self._prompt() + self.line.buffer + cursor_back(len(self.line.buffer) - self.line.cursor))

    def redraw(self) -> None:
        line = self.line
        self._write(
            "\r" + self._prompt() + line.buffer + ERASE_TO_END + cursor_back(len(line.buffer) - line.cursor)
        )

    def _move_cursor_to(self, target: int) -> None:
        delta = target - self.line.cursor
        self.line.cursor = target
        if delta > 0:
            self._write(cursor_forward(delta))
        elif delta < 0:
            self._write(cursor_back(-delta))

    # -- editing -------------------------------------------------------------

    def insert_char(self, text: str) -> None:
        line = self.line
        line.buffer = line.buffer[: line.cursor] + text + line.buffer[line.cursor :]
        line.cursor += len(text)
        self.redraw()

    def backspace(self) -> None:
        line = self.line
        if line.cursor == 0:
            return
        line.buffer = line.buffer[: line.cursor - 1] + line.buffer[line.cursor :]
        line.cursor -= 1
        self.redraw()

    def delete_forward(self) -> None:
        line = self.line
        if line.cursor >= len(line.buffer):
            return
        line.buffer = line.buffer[: line.cursor] + line.buffer[line.cursor + 1 :]
        self.redraw()

    def set_buffer(self, text: str, cursor: int | None = None) -> None:
        """Replace the buffer wholesale and repaint."""
        self.line.buffer = text
        self.line.cursor = len(text) if cursor is None else max(0, min(cursor, len(text)))
        self.redraw()

    def append(self, text: str) -> None:
        """Append *text* at the end of the buffer, echoing only the new text."""
        line = self.line
        if line.cursor != len(line.buffer):
            self.set_buffer(line.buffer + text)
            return
        line.buffer += text
        line.cursor = len(line.buffer)
        self._write(text)

    # -- cursor movement -----------------------------------------------------

    def move_left(self) -> None:
        if self.line.cursor > 0:
            self._move_cursor_to(self.line.cursor - 1)

    def move_right(self) -> None:
        if self.line.cursor < len(self.line.buffer):
            self._move_cursor_to(self.line.cursor + 1)

    def move_home(self) -> None:
        self._move_cursor_to(0)

    def move_end(self) -> None:
        self._move_cursor_to(len(self.line.buffer))

    def move_word_left(self) -> None:
        buf = self.line.buffer
        pos = self.line.cursor
        while pos > 0 and buf[pos - 1] == " ":
            pos -= 1
        while pos > 0 and buf[pos - 1] != " ":
            pos -= 1
        self._move_cursor_to(pos)

    def move_word_right(self) -> None:
        buf = self.line.buffer
        pos = self.line.cursor
        while pos < len(buf) and buf[pos] == " ":
            pos += 1
        while pos < len(buf) and buf[pos] != " ":
            pos += 1
        self._move_cursor_to(pos)

    # -- history -------------------------------------------------------------

    def history_up(self) -> None:
        history = self.history
        if history.index == 0:
            return
        if history.index == len(history):
            self._live_buffer = self.line.buffer
        history.index -= 1
        self._load(history.entry(history.index))

    def history_down(self) -> None:
        history = self.history
        if history.index >= len(history):
            return
        history.index += 1
        if history.index == len(history):
            self._load(self._live_buffer)
        else:
            self._load(history.entry(history.index))

    def _load(self, text: str) -> None:
        self.line.buffer = text
        self.line.cursor = len(text)
        self.redraw()

    # -- submit / cancel -----------------------------------------------------

    def submit(self) -> str:
        """Finish the line: returns it, records it in history, resets state."""
        text = self.line.buffer
        self._write(CRLF)
        if text.strip():
            self.history.append(text)
        else:
            self.history.reset_index()
        self.line.reset()
        self._live_buffer = ""
        return text

    def cancel(self) -> None:
        """Abort the current line without executing it."""
        self.discard()
        self.show_prompt()

    def discard(self) -> None:
        """Echo ``^C`` and drop the line and history position, leaving the prompt unpainted."""
        self._write("^C" + CRLF)
        self.line.reset()
        self._live_buffer = ""
        self.history.reset_index()
