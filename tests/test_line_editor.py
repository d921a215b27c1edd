"""Tests for stacksh.line_editor."""

from __future__ import annotations

from stacksh.line_editor import History, LineEditor
from stacksh.tui.keys import Key, KeyEvent, decode


class Output:
    def __init__(self) -> None:
        self.writes: list[str] = []

    def __call__(self, data: str) -> None:
        self.writes.append(data)

    @property
    def last(self) -> str:
        return self.writes[-1]

    def clear(self) -> None:
        self.writes.clear()


def make_editor(history: History | None = None) -> tuple[LineEditor, Output]:
    out = Output()
    editor = LineEditor(out, lambda: "$ ", history=history)
    return editor, out


def type_text(editor: LineEditor, text: str) -> None:
    for ch in text:
        editor.handle_key(decode(ch))


class TestEditing:
    def test_insert_redraws_whole_line(self) -> None:
        editor, out = make_editor()
        type_text(editor, "ab")
        assert editor.buffer == "ab"
        assert editor.cursor == 2
        assert out.last == "\r$ ab\x1b[K"

    def test_insert_mid_line_steps_cursor_back(self) -> None:
        editor, out = make_editor()
        type_text(editor, "abc")
        editor.move_home()
        editor.move_right()
        editor.insert_char("x")
        assert editor.buffer == "axbc"
        assert editor.cursor == 2
        assert out.last == "\r$ axbc\x1b[K\x1b[2D"

    def test_backspace_at_start_is_noop(self) -> None:
        editor, out = make_editor()
        type_text(editor, "a")
        editor.move_home()
        out.clear()
        editor.backspace()
        assert editor.buffer == "a"
        assert out.writes == []

    def test_backspace(self) -> None:
        editor, _ = make_editor()
        type_text(editor, "abc")
        editor.handle_key(KeyEvent(Key.backspace, "\x7f"))
        assert editor.buffer == "ab"
        assert editor.cursor == 2

    def test_delete_forward(self) -> None:
        editor, _ = make_editor()
        type_text(editor, "abc")
        editor.move_home()
        editor.handle_key(decode("\x1b[3~"))
        assert editor.buffer == "bc"
        assert editor.cursor == 0

    def test_set_buffer_clamps_cursor(self) -> None:
        editor, _ = make_editor()
        editor.set_buffer("hello", cursor=99)
        assert editor.cursor == 5

    def test_append_at_end_echoes_only_new_text(self) -> None:
        editor, out = make_editor()
        type_text(editor, "ca")
        out.clear()
        editor.append("t ")
        assert editor.buffer == "cat "
        assert editor.cursor == 4
        assert out.writes == ["t "]


class TestCursorMovement:
    def test_left_right_emit_relative_moves(self) -> None:
        editor, out = make_editor()
        type_text(editor, "abc")
        out.clear()
        editor.handle_key(decode("\x1b[D"))
        assert editor.cursor == 2
        assert out.writes == ["\x1b[1D"]
        editor.handle_key(decode("\x1b[C"))
        assert editor.cursor == 3
        assert out.writes[-1] == "\x1b[1C"

    def test_bounds(self) -> None:
        editor, out = make_editor()
        type_text(editor, "a")
        out.clear()
        editor.move_right()
        assert editor.cursor == 1
        assert out.writes == []
        editor.move_home()
        editor.move_left()
        assert editor.cursor == 0

    def test_home_end(self) -> None:
        editor, out = make_editor()
        type_text(editor, "hello")
        editor.handle_key(decode("\x1b[H"))
        assert editor.cursor == 0
        assert out.last == "\x1b[5D"
        editor.handle_key(decode("\x1b[F"))
        assert editor.cursor == 5
        assert out.last == "\x1b[5C"

    def test_word_left(self) -> None:
        editor, _ = make_editor()
        type_text(editor, "foo bar  baz")
        editor.move_word_left()
        assert editor.cursor == 9
        editor.move_word_left()
        assert editor.cursor == 4
        editor.move_word_left()
        assert editor.cursor == 0
        editor.move_word_left()
        assert editor.cursor == 0

    def test_word_right(self) -> None:
        editor, _ = make_editor()
        type_text(editor, "foo bar  baz")
        editor.move_home()
        editor.handle_key(decode("\x1bf"))
        assert editor.cursor == 3
        editor.handle_key(decode("\x1b[1;3C"))
        assert editor.cursor == 7
        editor.move_word_right()
        assert editor.cursor == 12


class TestHistory:
    def test_browse_and_restore_live_buffer(self) -> None:
        editor, _ = make_editor()
        for line in ("ls", "pwd"):
            type_text(editor, line)
            editor.submit()
        type_text(editor, "ec")

        editor.history_up()
        assert editor.buffer == "pwd"
        editor.history_up()
        assert editor.buffer == "ls"
        editor.history_up()
        assert editor.buffer == "ls"

        editor.history_down()
        assert editor.buffer == "pwd"
        editor.history_down()
        assert editor.buffer == "ec"
        assert editor.cursor == 2
        editor.history_down()
        assert editor.buffer == "ec"

    def test_up_with_empty_history_is_noop(self) -> None:
        editor, out = make_editor()
        editor.handle_key(decode("\x1b[A"))
        assert editor.buffer == ""
        assert out.writes == []

    def test_browsing_does_not_mutate_entries(self) -> None:
        editor, _ = make_editor()
        type_text(editor, "ls")
        editor.submit()
        editor.history_up()
        type_text(editor, " -l")
        assert editor.history.entries == ("ls",)

    def test_history_is_bounded(self) -> None:
        history = History(max_size=2)
        for line in ("a", "b", "c"):
            history.append(line)
        assert history.entries == ("b", "c")
        assert history.index == 2


class TestSubmitCancel:
    def test_submit(self) -> None:
        editor, out = make_editor()
        submitted: list[str] = []
        editor.on_submit = submitted.append
        type_text(editor, "echo hi")
        editor.handle_key(decode("\r"))
        assert submitted == ["echo hi"]
        assert out.last == "\r\n"
        assert editor.buffer == ""
        assert editor.cursor == 0
        assert editor.history.entries == ("echo hi",)
        assert editor.history.index == 1

    def test_blank_line_not_recorded(self) -> None:
        editor, _ = make_editor()
        type_text(editor, "   ")
        assert editor.submit() == "   "
        assert editor.history.entries == ()

    def test_cancel(self) -> None:
        editor, out = make_editor()
        type_text(editor, "rm -rf")
        out.clear()
        editor.handle_key(decode("\x03"))
        assert editor.buffer == ""
        assert out.writes == ["^C\r\n", "$ "]
        assert editor.history.entries == ()

    def test_discard_leaves_prompt_unpainted(self) -> None:
        editor, out = make_editor()
        for line in ("ls", "pwd"):
            type_text(editor, line)
            editor.submit()
        editor.history_up()
        editor.history_up()
        out.clear()
        editor.discard()
        assert out.writes == ["^C\r\n"]
        assert editor.buffer == ""
        editor.history_up()
        assert editor.buffer == "pwd"

    def test_tab_calls_hook(self) -> None:
        editor, _ = make_editor()
        calls: list[int] = []
        editor.on_tab = lambda: calls.append(1)
        editor.handle_key(decode("\t"))
        assert calls == [1]
