"""Full-screen modal text editor that runs on captured input.

One entry point, :meth:`ModalEditor.handle_key`, branches on the document's
mode; every document mutation goes through :class:`EditorDocument`. Each
input event is followed by a full repaint of the alternate screen.
"""

from __future__ import annotations

import asyncio
import logging

from stacksh.capture import CaptureSlot
from stacksh.editor.document import EditorDocument, Mode
from stacksh.errors import NotFoundError, ShellError
from stacksh.services import FileSystem
from stacksh.tui.keys import Key, KeyEvent, decode
from stacksh.tui.terminal import CLEAR_SCREEN, CRLF, Terminal, cursor_to
from stacksh.tui.utils import RESET, REVERSE, pad_to_width, yellow

logger = logging.getLogger(__name__)

MSG_INSERT = "-- INSERT --"
MSG_NEW_FILE = "New File"
MSG_NO_FILE_NAME = "No file name"
MSG_UNSAVED = "No write since last change (add ! to override)"
MSG_NO_PREVIOUS_SEARCH = "No previous search pattern"
MSG_INTERRUPT = "Type  :q!  and press <Enter> to abandon all changes and exit"


class ModalEditor:
    """Vi-like editor bound to an optional file path."""

    def __init__(
        self,
        terminal: Terminal,
        capture: CaptureSlot,
        fs: FileSystem,
        path: str | None = None,
    ) -> None:
        self._terminal = terminal
        self._capture = capture
        self._fs = fs
        self.document = self._load(path)
        self.running = False
        self._closed: asyncio.Future[None] | None = None

    def _load(self, path: str | None) -> EditorDocument:
        if path is None:
            return EditorDocument()
        try:
            return EditorDocument.from_text(self._fs.read_text(path), path)
        except NotFoundError:
            return EditorDocument(path=path, message=MSG_NEW_FILE)
        except ShellError as e:
            return EditorDocument(path=path, message=e.message)

    # -- lifecycle -----------------------------------------------------------

    def start(self) -> None:
        """Take over input and switch to the alternate screen."""
        self._capture.acquire(self.handle_input, on_resize=self.render)
        self._closed = asyncio.get_running_loop().create_future()
        self.running = True
        self._terminal.enter_alternate_screen()
        self.render()
        logger.debug("editor started on %s", self.document.path or "[No Name]")

    def stop(self) -> None:
        self.running = False
        self._terminal.leave_alternate_screen()
        self._capture.release(self.handle_input)
        if self._closed is not None and not self._closed.done():
            self._closed.set_result(None)
        logger.debug("editor closed")

    async def wait_closed(self) -> None:
        if self._closed is not None:
            await self._closed

    # -- input ---------------------------------------------------------------

    def handle_input(self, data: str) -> None:
        self.handle_key(decode(data))

    def handle_key(self, event: KeyEvent) -> None:
        doc = self.document
        if event.name == Key.ctrl_c:
            doc.mode = Mode.NORMAL
            doc.command = ""
            doc.pending = None
            doc.message = MSG_INTERRUPT
        elif doc.mode is Mode.NORMAL:
            self._handle_normal(event)
        elif doc.mode is Mode.INSERT:
            self._handle_insert(event)
        else:
            self._handle_command(event)

        if self.running:
            self.render()

    def _handle_normal(self, event: KeyEvent) -> None:
        doc = self.document
        key = event.data if event.is_char else event.name

        if key != "d":
            doc.pending = None

        match key:
            case "i":
                doc.mode = Mode.INSERT
                doc.message = MSG_INSERT
            case ":" | "?":
                doc.mode = Mode.COMMAND
                doc.command = key
            case "h" | Key.left:
                doc.move_left()
            case "l" | Key.right:
                doc.move_right()
            case "j" | Key.down:
                doc.move_down()
            case "k" | Key.up:
                doc.move_up()
            case "x":
                doc.delete_char()
            case "d":
                if doc.pending == "d":
                    doc.pending = None
                    doc.delete_line()
                else:
                    doc.pending = "d"
            case _:
                pass

    def _handle_insert(self, event: KeyEvent) -> None:
        doc = self.document
        match event.name:
            case Key.escape:
                doc.mode = Mode.NORMAL
                doc.message = ""
                doc.move_left()
            case Key.up:
                doc.move_up()
            case Key.down:
                doc.move_down()
            case Key.left:
                doc.move_left()
            case Key.right:
                doc.move_right()
            case Key.enter:
                doc.split_line()
            case Key.backspace:
                doc.backspace()
            case "char":
                doc.insert(event.data)
            case _:
                pass

    def _handle_command(self, event: KeyEvent) -> None:
        doc = self.document
        match event.name:
            case Key.escape:
                doc.mode = Mode.NORMAL
                doc.command = ""
                doc.message = ""
            case Key.enter:
                prefix, content = doc.command[:1], doc.command[1:]
                doc.mode = Mode.NORMAL
                doc.command = ""
                if prefix == ":":
                    self.execute_ex(content)
                elif prefix == "?":
                    self.search(content)
            case Key.backspace:
                if len(doc.command) > 1:
                    doc.command = doc.command[:-1]
                else:
                    doc.mode = Mode.NORMAL
                    doc.command = ""
            case "char":
                doc.command += event.data
            case _:
                pass

    # -- ex commands ---------------------------------------------------------

    def execute_ex(self, cmd: str) -> None:
        doc = self.document
        cmd = cmd.strip()
        match cmd:
            case "q":
                if doc.dirty:
                    doc.message = MSG_UNSAVED
                else:
                    self.stop()
            case "q!":
                self.stop()
            case "w" | "w!":
                self.write()
            case "wq" | "wq!":
                if self.write():
                    self.stop()
            case "d":
                doc.delete_line()
            case "set number" | "set nu":
                doc.show_numbers = True
            case "set nonumber" | "set nonu":
                doc.show_numbers = False
            case _:
                doc.message = f"Not an editor command: {cmd}"

    def write(self) -> bool:
        """Write the document to its bound path. Returns True on success."""
        doc = self.document
        if not doc.path:
            doc.message = MSG_NO_FILE_NAME
            return False
        try:
            self._fs.write_text(doc.path, doc.text())
        except ShellError as e:
            doc.message = f"E212: Can't open file for writing: {e.message}"
            return False
        doc.dirty = False
        doc.message = f'"{doc.path}" written'
        logger.debug("wrote %d lines to %s", len(doc.lines), doc.path)
        return True

    def search(self, query: str) -> None:
        doc = self.document
        if not query:
            if doc.last_search is None:
                doc.message = MSG_NO_PREVIOUS_SEARCH
                return
            query = doc.last_search
        doc.last_search = query
        if doc.search_backward(query):
            doc.message = f"?{query}"
        else:
            doc.message = f"Pattern not found: {query}"

    # -- rendering -----------------------------------------------------------

    def render(self) -> None:
        self._terminal.write(self.frame())

    def frame(self) -> str:
        """Build one full-screen repaint for the current state."""
        doc = self.document
        rows = self._terminal.rows
        cols = self._terminal.columns
        text_rows = max(1, rows - 1)
        doc.scroll_to_cursor(text_rows)

        digits = len(str(len(doc.lines)))
        gutter_width = digits + 1 if doc.show_numbers else 0

        out = [CLEAR_SCREEN]
        for i in range(text_rows):
            index = doc.offset + i
            if index < len(doc.lines):
                if doc.show_numbers:
                    out.append(yellow(str(index + 1).rjust(digits) + " "))
                out.append(doc.lines[index])
            else:
                out.append("~")
            out.append(CRLF)

        if doc.mode is Mode.COMMAND:
            status = doc.command
        else:
            status = f"{doc.message}  {doc.path or '[No Name]'}  {doc.y + 1},{doc.x + 1}"
        out.append(REVERSE + pad_to_width(status, cols) + RESET)

        if doc.mode is Mode.COMMAND:
            out.append(cursor_to(rows, len(doc.command) + 1))
        else:
            out.append(cursor_to(doc.y - doc.offset + 1, doc.x + 1 + gutter_width))
        return "".join(out)
