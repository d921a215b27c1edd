"""Tests for stacksh.editor: document edits, modes, ex-commands and rendering."""

from __future__ import annotations

from pathlib import Path

import pytest

from stacksh.capture import CaptureSlot
from stacksh.editor import EditorDocument, ModalEditor, Mode
from stacksh.editor.modal import MSG_INSERT, MSG_NEW_FILE, MSG_NO_FILE_NAME, MSG_UNSAVED
from stacksh.errors import CaptureBusyError
from stacksh.local_fs import LocalFileSystem
from stacksh.tui.terminal import ALT_SCREEN_DISABLE, ALT_SCREEN_ENABLE, CLEAR_SCREEN, SHOW_CURSOR, cursor_to
from stacksh.tui.utils import RESET, REVERSE, yellow

from .virtual_terminal import VirtualTerminal


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def open_editor(
    tmp_path: Path,
    path: str | None = "notes.txt",
    content: str | None = None,
    rows: int = 6,
    columns: int = 30,
) -> tuple[ModalEditor, VirtualTerminal, CaptureSlot]:
    if path is not None and content is not None:
        (tmp_path / path).write_text(content)
    terminal = VirtualTerminal(rows=rows, columns=columns)
    capture = CaptureSlot()
    editor = ModalEditor(terminal, capture, LocalFileSystem(str(tmp_path)), path)
    editor.start()
    return editor, terminal, capture


def feed(capture: CaptureSlot, *units: str) -> None:
    for unit in units:
        for piece in ([unit] if unit.startswith("\x1b") else list(unit)):
            capture.dispatch(piece)


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


class TestDocument:
    def test_from_text_round_trip(self) -> None:
        doc = EditorDocument.from_text("a\nb\n")
        assert doc.lines == ["a", "b", ""]
        assert doc.text() == "a\nb\n"

    def test_vertical_move_clamps_column(self) -> None:
        doc = EditorDocument(lines=["hello", "hi"], x=4)
        doc.move_down()
        assert (doc.y, doc.x) == (1, 2)
        doc.move_down()
        assert doc.y == 1

    def test_delete_char_at_end_steps_back(self) -> None:
        doc = EditorDocument(lines=["abc"], x=2)
        doc.delete_char()
        assert doc.lines == ["ab"]
        assert doc.x == 1
        assert doc.dirty

    def test_delete_char_on_empty_line(self) -> None:
        doc = EditorDocument()
        doc.delete_char()
        assert doc.lines == [""]
        assert not doc.dirty

    def test_delete_only_line_keeps_blank(self) -> None:
        doc = EditorDocument(lines=["only"])
        doc.delete_line()
        assert doc.lines == [""]
        assert (doc.x, doc.y) == (0, 0)

    def test_delete_last_line_moves_up(self) -> None:
        doc = EditorDocument(lines=["a", "b"], y=1)
        doc.delete_line()
        assert doc.lines == ["a"]
        assert doc.y == 0

    def test_split_and_join(self) -> None:
        doc = EditorDocument(lines=["hello"], x=2)
        doc.split_line()
        assert doc.lines == ["he", "llo"]
        assert (doc.y, doc.x) == (1, 0)
        doc.backspace()
        assert doc.lines == ["hello"]
        assert (doc.y, doc.x) == (0, 2)

    def test_backspace_at_origin_is_noop(self) -> None:
        doc = EditorDocument(lines=["x"])
        doc.backspace()
        assert doc.lines == ["x"]
        assert not doc.dirty

    def test_search_backward_wraps(self) -> None:
        doc = EditorDocument(lines=["foo", "bar", "xfoo"])
        assert doc.search_backward("foo")
        assert (doc.y, doc.x) == (2, 1)
        assert doc.search_backward("foo")
        assert (doc.y, doc.x) == (0, 0)
        assert not doc.search_backward("zzz")
        assert (doc.y, doc.x) == (0, 0)

    def test_scroll_to_cursor(self) -> None:
        doc = EditorDocument(lines=[str(i) for i in range(10)], y=7)
        doc.scroll_to_cursor(4)
        assert doc.offset == 4
        doc.y = 1
        doc.scroll_to_cursor(4)
        assert doc.offset == 1


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_enters_alternate_screen_and_captures(self, tmp_path: Path) -> None:
        editor, terminal, capture = open_editor(tmp_path)
        assert terminal.output.startswith(ALT_SCREEN_ENABLE)
        assert capture.active
        assert editor.document.message == MSG_NEW_FILE

    @pytest.mark.asyncio
    async def test_second_editor_cannot_capture(self, tmp_path: Path) -> None:
        _, terminal, capture = open_editor(tmp_path)
        other = ModalEditor(terminal, capture, LocalFileSystem(str(tmp_path)), None)
        with pytest.raises(CaptureBusyError):
            other.start()

    @pytest.mark.asyncio
    async def test_insert_write_quit(self, tmp_path: Path) -> None:
        editor, terminal, capture = open_editor(tmp_path)
        feed(capture, "i", "hi", "\x1b")
        assert editor.document.mode is Mode.NORMAL
        assert editor.document.x == 1

        feed(capture, ":wq", "\r")
        await editor.wait_closed()
        assert (tmp_path / "notes.txt").read_text() == "hi"
        assert not capture.active
        assert terminal.output.endswith(ALT_SCREEN_DISABLE + SHOW_CURSOR)

    @pytest.mark.asyncio
    async def test_quit_refuses_unsaved_changes(self, tmp_path: Path) -> None:
        editor, _, capture = open_editor(tmp_path, content="abc")
        feed(capture, "x", ":q", "\r")
        assert editor.running
        assert editor.document.message == MSG_UNSAVED
        feed(capture, ":q!", "\r")
        assert not editor.running
        assert (tmp_path / "notes.txt").read_text() == "abc"

    @pytest.mark.asyncio
    async def test_write_then_quit(self, tmp_path: Path) -> None:
        editor, _, capture = open_editor(tmp_path, content="abc")
        feed(capture, "x", ":w", "\r")
        assert editor.document.message == '"notes.txt" written'
        assert not editor.document.dirty
        feed(capture, ":q", "\r")
        assert not editor.running
        assert (tmp_path / "notes.txt").read_text() == "bc"

    @pytest.mark.asyncio
    async def test_write_without_path(self, tmp_path: Path) -> None:
        editor, _, capture = open_editor(tmp_path, path=None)
        feed(capture, ":w", "\r")
        assert editor.document.message == MSG_NO_FILE_NAME
        feed(capture, ":wq", "\r")
        assert editor.running

    @pytest.mark.asyncio
    async def test_write_failure_reported_on_status_line(self, tmp_path: Path) -> None:
        (tmp_path / "adir").mkdir()
        editor = ModalEditor(VirtualTerminal(), CaptureSlot(), LocalFileSystem(str(tmp_path)), "adir")
        editor.start()
        editor.execute_ex("w")
        assert editor.document.message.startswith("E212: Can't open file for writing")
        assert editor.running

    @pytest.mark.asyncio
    async def test_resize_repaints(self, tmp_path: Path) -> None:
        _, terminal, capture = open_editor(tmp_path)
        before = terminal.write_count
        capture.resize()
        assert terminal.write_count == before + 1


# ---------------------------------------------------------------------------
# Modes and keys
# ---------------------------------------------------------------------------


class TestNormalMode:
    @pytest.mark.asyncio
    async def test_movement(self, tmp_path: Path) -> None:
        editor, _, capture = open_editor(tmp_path, content="hello\nhi")
        feed(capture, "llll", "j")
        assert (editor.document.y, editor.document.x) == (1, 2)
        feed(capture, "\x1b[A", "h")
        assert (editor.document.y, editor.document.x) == (0, 1)

    @pytest.mark.asyncio
    async def test_dd_deletes_line(self, tmp_path: Path) -> None:
        editor, _, capture = open_editor(tmp_path, content="one\ntwo\nthree")
        feed(capture, "j", "dd")
        assert editor.document.lines == ["one", "three"]

    @pytest.mark.asyncio
    async def test_unrelated_key_clears_pending_operator(self, tmp_path: Path) -> None:
        editor, _, capture = open_editor(tmp_path, content="one\ntwo")
        feed(capture, "d", "j", "d")
        assert editor.document.lines == ["one", "two"]
        assert editor.document.pending == "d"

    @pytest.mark.asyncio
    async def test_insert_mode_message(self, tmp_path: Path) -> None:
        editor, _, capture = open_editor(tmp_path)
        feed(capture, "i")
        assert editor.document.mode is Mode.INSERT
        assert editor.document.message == MSG_INSERT

    @pytest.mark.asyncio
    async def test_ctrl_c_stays_in_editor(self, tmp_path: Path) -> None:
        editor, _, capture = open_editor(tmp_path)
        feed(capture, "i", "\x03")
        assert editor.running
        assert editor.document.mode is Mode.NORMAL
        assert ":q!" in editor.document.message


class TestInsertMode:
    @pytest.mark.asyncio
    async def test_enter_and_backspace(self, tmp_path: Path) -> None:
        editor, _, capture = open_editor(tmp_path)
        feed(capture, "i", "ab", "\r", "c", "\x7f", "\x7f")
        assert editor.document.lines == ["ab"]
        assert (editor.document.y, editor.document.x) == (0, 2)

    @pytest.mark.asyncio
    async def test_escape_at_column_zero(self, tmp_path: Path) -> None:
        editor, _, capture = open_editor(tmp_path)
        feed(capture, "i", "\x1b")
        assert editor.document.x == 0
        assert editor.document.message == ""


class TestCommandMode:
    @pytest.mark.asyncio
    async def test_backspace_on_prefix_returns_to_normal(self, tmp_path: Path) -> None:
        editor, _, capture = open_editor(tmp_path)
        feed(capture, ":w", "\x7f")
        assert editor.document.command == ":"
        feed(capture, "\x7f")
        assert editor.document.mode is Mode.NORMAL
        assert editor.document.command == ""

    @pytest.mark.asyncio
    async def test_escape_abandons_command(self, tmp_path: Path) -> None:
        editor, _, capture = open_editor(tmp_path)
        feed(capture, ":q", "\x1b")
        assert editor.running
        assert editor.document.mode is Mode.NORMAL

    @pytest.mark.asyncio
    async def test_unknown_ex_command(self, tmp_path: Path) -> None:
        editor, _, capture = open_editor(tmp_path)
        feed(capture, ":frob", "\r")
        assert editor.document.message == "Not an editor command: frob"

    @pytest.mark.asyncio
    async def test_ex_delete_line(self, tmp_path: Path) -> None:
        editor, _, capture = open_editor(tmp_path, content="a\nb")
        feed(capture, ":d", "\r")
        assert editor.document.lines == ["b"]

    @pytest.mark.asyncio
    async def test_search(self, tmp_path: Path) -> None:
        editor, _, capture = open_editor(tmp_path, content="foo\nbar\nfoo bar")
        feed(capture, "?bar", "\r")
        assert (editor.document.y, editor.document.x) == (2, 4)
        assert editor.document.message == "?bar"

        feed(capture, "?", "\r")
        assert editor.document.y == 1

        feed(capture, "?zzz", "\r")
        assert editor.document.message == "Pattern not found: zzz"
        assert editor.document.y == 1


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class TestRender:
    @pytest.mark.asyncio
    async def test_frame_layout(self, tmp_path: Path) -> None:
        editor, _, _ = open_editor(tmp_path, content="hello", rows=4, columns=20)
        editor.document.message = ""
        frame = editor.frame()
        assert frame.startswith(CLEAR_SCREEN)
        assert "hello\r\n~\r\n~\r\n" in frame
        status = "  notes.txt  1,1"
        assert REVERSE + status + " " * (20 - len(status)) + RESET in frame
        assert frame.endswith(cursor_to(1, 1))

    @pytest.mark.asyncio
    async def test_gutter(self, tmp_path: Path) -> None:
        content = "\n".join(f"line{i}" for i in range(10))
        editor, _, capture = open_editor(tmp_path, content=content, rows=4)
        feed(capture, ":set nu", "\r")
        frame = editor.frame()
        assert yellow(" 1 ") + "line0" in frame
        assert frame.endswith(cursor_to(1, 4))

        feed(capture, ":set nonu", "\r")
        assert yellow(" 1 ") not in editor.frame()

    @pytest.mark.asyncio
    async def test_viewport_follows_cursor(self, tmp_path: Path) -> None:
        content = "\n".join(f"line{i}" for i in range(10))
        editor, _, capture = open_editor(tmp_path, content=content, rows=4)
        feed(capture, "jjjjj")
        frame = editor.frame()
        assert editor.document.offset == 3
        assert "line3" in frame
        assert "line2" not in frame
        assert frame.endswith(cursor_to(3, 1))

    @pytest.mark.asyncio
    async def test_command_mode_status(self, tmp_path: Path) -> None:
        editor, _, capture = open_editor(tmp_path, rows=4)
        feed(capture, ":wq")
        frame = editor.frame()
        assert REVERSE + ":wq" in frame
        assert frame.endswith(cursor_to(4, 4))
