"""Editor document: lines, cursor, mode and the edits that act on them."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class Mode(enum.Enum):
    NORMAL = "normal"
    INSERT = "insert"
    COMMAND = "command"


@dataclass
class EditorDocument:
    """State of one editor session.

    ``lines`` is never empty and ``0 <= x <= len(lines[y])`` holds after
    every operation. ``offset`` is the first line shown in the viewport.
    """

    lines: list[str] = field(default_factory=lambda: [""])
    x: int = 0
    y: int = 0
    mode: Mode = Mode.NORMAL
    pending: str | None = None
    dirty: bool = False
    offset: int = 0
    command: str = ""
    message: str = ""
    path: str | None = None
    show_numbers: bool = False
    last_search: str | None = None

    @classmethod
    def from_text(cls, text: str, path: str | None = None) -> EditorDocument:
        return cls(lines=text.split("\n"), path=path)

    @property
    def line(self) -> str:
        return self.lines[self.y]

    def text(self) -> str:
        return "\n".join(self.lines)

    # -- movement ------------------------------------------------------------

    def move_left(self) -> None:
        if self.x > 0:
            self.x -= 1

    def move_right(self) -> None:
        if self.x < len(self.line):
            self.x += 1

    def move_up(self) -> None:
        if self.y > 0:
            self.y -= 1
            self.x = min(self.x, len(self.line))

    def move_down(self) -> None:
        if self.y < len(self.lines) - 1:
            self.y += 1
            self.x = min(self.x, len(self.line))

    # -- edits ---------------------------------------------------------------

    def delete_char(self) -> None:
        """Delete the character under the cursor."""
        line = self.line
        if not line or self.x >= len(line):
            return
        self.lines[self.y] = line[: self.x] + line[self.x + 1 :]
        if self.x >= len(self.lines[self.y]) and self.x > 0:
            self.x -= 1
        self.dirty = True

    def delete_line(self) -> None:
        """Delete the current line; an emptied document keeps one blank line."""
        del self.lines[self.y]
        if not self.lines:
            self.lines = [""]
        if self.y >= len(self.lines):
            self.y = len(self.lines) - 1
        self.x = 0
        self.dirty = True

    def insert(self, text: str) -> None:
        line = self.line
        self.lines[self.y] = line[: self.x] + text + line[self.x :]
        self.x += len(text)
        self.dirty = True

    def split_line(self) -> None:
        line = self.line
        self.lines[self.y] = line[: self.x]
        self.lines.insert(self.y + 1, line[self.x :])
        self.y += 1
        self.x = 0
        self.dirty = True

    def backspace(self) -> None:
        """Delete before the cursor, joining with the previous line at column 0."""
        if self.x > 0:
            line = self.line
            self.lines[self.y] = line[: self.x - 1] + line[self.x :]
            self.x -= 1
            self.dirty = True
        elif self.y > 0:
            current = self.lines.pop(self.y)
            self.y -= 1
            self.x = len(self.line)
            self.lines[self.y] += current
            self.dirty = True

    # -- search --------------------------------------------------------------

    def search_backward(self, query: str) -> bool:
        """Move to the nearest match above the cursor, wrapping at the top.

        Rows above the cursor are scanned upward to row 0, then the scan
        wraps from the last row down to the cursor row itself.
        """
        rows = list(range(self.y - 1, -1, -1)) + list(range(len(self.lines) - 1, self.y - 1, -1))
        for row in rows:
            col = self.lines[row].find(query)
            if col != -1:
                self.y = row
                self.x = col
                return True
        return False

    # -- viewport ------------------------------------------------------------

    def scroll_to_cursor(self, text_rows: int) -> None:
        text_rows = max(1, text_rows)
        if self.y < self.offset:
            self.offset = self.y
        elif self.y >= self.offset + text_rows:
            self.offset = self.y - text_rows + 1
