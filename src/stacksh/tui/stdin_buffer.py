"""StdinBuffer reassembles raw reads into whole input units.

A single ``os.read`` can return half an escape sequence (``"\\x1b["`` now,
``"A"`` on the next read) or several keystrokes at once. The key decoder
matches exact sequences only, so every unit handed to it must be complete:
one character, or one full escape sequence.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Literal

ESC = "\x1b"
BRACKETED_PASTE_START = "\x1b[200~"
BRACKETED_PASTE_END = "\x1b[201~"

SequenceStatus = Literal["complete", "incomplete", "not-escape"]


def _is_complete_sequence(data: str) -> SequenceStatus:
    """Classify a candidate that starts at an ESC byte."""
    if not data.startswith(ESC):
        return "not-escape"
    if len(data) == 1:
        return "incomplete"

    introducer = data[1]

    # CSI: ESC [ params final-byte(0x40-0x7e)
    if introducer == "[":
        if len(data) < 3:
            return "incomplete"
        return "complete" if 0x40 <= ord(data[-1]) <= 0x7E else "incomplete"

    # SS3: ESC O <char>
    if introducer == "O":
        return "complete" if len(data) >= 3 else "incomplete"

    # Meta / Alt: ESC <char>
    return "complete"


def _extract_complete_sequences(buffer: str) -> tuple[list[str], str]:
    """Split *buffer* into whole units.

    Returns ``(units, remainder)`` where *remainder* is a trailing escape
    sequence still waiting for more bytes.
    """
    units: list[str] = []
    pos = 0

    while pos < len(buffer):
        if buffer[pos] != ESC:
            units.append(buffer[pos])
            pos += 1
            continue

        end = pos + 1
        while True:
            if end > len(buffer):
                return units, buffer[pos:]
            status = _is_complete_sequence(buffer[pos:end])
            if status == "incomplete":
                end += 1
                continue
            units.append(buffer[pos:end])
            pos = end
            break

    return units, ""


class StdinBuffer:
    """Buffers stdin input and emits complete units.

    A lone trailing ``ESC`` is ambiguous (the Escape key, or the start of a
    sequence); it is flushed as-is once *timeout* seconds pass without more
    input.
    """

    def __init__(self, *, timeout: float = 0.01) -> None:
        self._buffer: str = ""
        self._timeout: float = timeout
        self._timeout_handle: asyncio.TimerHandle | None = None
        self._paste_mode: bool = False
        self._paste_buffer: str = ""

        self._on_data: Callable[[str], None] | None = None
        self._on_paste: Callable[[str], None] | None = None

    def on_data(self, callback: Callable[[str], None]) -> None:
        """Set callback for complete units."""
        self._on_data = callback

    def on_paste(self, callback: Callable[[str], None]) -> None:
        """Set callback for bracketed paste content."""
        self._on_paste = callback

    def _emit_data(self, data: str) -> None:
        if self._on_data:
            self._on_data(data)

    def _emit_paste(self, data: str) -> None:
        if self._on_paste:
            self._on_paste(data)

    def process(self, data: str) -> None:
        """Feed raw input into the buffer."""
        self._cancel_timeout()

        if self._paste_mode:
            self._paste_buffer += data
            self._finish_paste()
            return

        self._buffer += data

        start = self._buffer.find(BRACKETED_PASTE_START)
        if start != -1:
            before = self._buffer[:start]
            self._paste_buffer = self._buffer[start + len(BRACKETED_PASTE_START) :]
            self._buffer = ""
            self._paste_mode = True
            units, remainder = _extract_complete_sequences(before)
            for unit in units + ([remainder] if remainder else []):
                self._emit_data(unit)
            self._finish_paste()
            return

        units, self._buffer = _extract_complete_sequences(self._buffer)
        for unit in units:
            self._emit_data(unit)

        if self._buffer:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                for unit in self.flush():
                    self._emit_data(unit)
                return
            self._timeout_handle = loop.call_later(self._timeout, self._flush_timeout)

    def _finish_paste(self) -> None:
        end = self._paste_buffer.find(BRACKETED_PASTE_END)
        if end == -1:
            return
        content = self._paste_buffer[:end]
        remaining = self._paste_buffer[end + len(BRACKETED_PASTE_END) :]
        self._paste_mode = False
        self._paste_buffer = ""
        self._emit_paste(content)
        if remaining:
            self.process(remaining)

    def _cancel_timeout(self) -> None:
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None

    def _flush_timeout(self) -> None:
        self._timeout_handle = None
        for unit in self.flush():
            self._emit_data(unit)

    def flush(self) -> list[str]:
        """Return and clear whatever is buffered, complete or not."""
        self._cancel_timeout()
        if not self._buffer:
            return []
        units = [self._buffer]
        self._buffer = ""
        return units

    def clear(self) -> None:
        self._cancel_timeout()
        self._buffer = ""
        self._paste_mode = False
        self._paste_buffer = ""

    def get_buffer(self) -> str:
        return self._buffer

    def destroy(self) -> None:
        self.clear()
