"""Terminal abstraction for raw-mode stdin/stdout interaction.

Provides a ``Terminal`` protocol and a concrete ``ProcessTerminal``
implementation that manages raw mode, bracketed paste, the alternate screen
buffer, and resize notifications via ANSI escape sequences.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
import termios
import tty
from typing import Callable, Protocol

from stacksh.tui.stdin_buffer import BRACKETED_PASTE_END, BRACKETED_PASTE_START, StdinBuffer

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

CRLF = "\r\n"
ERASE_TO_END = "\x1b[K"
CLEAR_SCREEN = "\x1b[H\x1b[2J"
ALT_SCREEN_ENABLE = "\x1b[?1049h"
ALT_SCREEN_DISABLE = "\x1b[?1049l"
SHOW_CURSOR = "\x1b[?25h"

_BRACKETED_PASTE_ENABLE = "\x1b[?2004h"
_BRACKETED_PASTE_DISABLE = "\x1b[?2004l"


def cursor_forward(n: int) -> str:
    return f"\x1b[{n}C" if n > 0 else ""


def cursor_back(n: int) -> str:
    return f"\x1b[{n}D" if n > 0 else ""


def cursor_to(row: int, col: int) -> str:
    """Absolute 1-based cursor position."""
    return f"\x1b[{row};{col}H"


# ---------------------------------------------------------------------------
# Terminal protocol
# ---------------------------------------------------------------------------


class Terminal(Protocol):
    """Interface for terminal I/O operations.

    ``write`` is the session's single ordered output sink.
    """

    def start(
        self,
        on_input: Callable[[str], None],
        on_resize: Callable[[], None],
    ) -> None: ...

    def stop(self) -> None: ...

    def write(self, data: str) -> None: ...

    @property
    def columns(self) -> int: ...

    @property
    def rows(self) -> int: ...

    def clear_screen(self) -> None: ...

    def enter_alternate_screen(self) -> None: ...

    def leave_alternate_screen(self) -> None: ...


# ---------------------------------------------------------------------------
# ProcessTerminal implementation
# ---------------------------------------------------------------------------


class ProcessTerminal:
    """Concrete terminal backed by ``sys.stdin``/``sys.stdout``.

    Puts stdin in raw mode via :mod:`tty`, reads it through an asyncio
    reader feeding a :class:`StdinBuffer`, and reports SIGWINCH resizes.
    """

    def __init__(self) -> None:
        self._input_handler: Callable[[str], None] | None = None
        self._resize_handler: Callable[[], None] | None = None
        self._stdin_buffer: StdinBuffer | None = None
        self._stdin_reader_active: bool = False
        self._original_termios: list | None = None
        self._prev_sigwinch_handler: signal.Handlers | None = None

    # -- properties ---------------------------------------------------------

    @property
    def columns(self) -> int:
        try:
            return os.get_terminal_size(sys.stdout.fileno()).columns
        except (ValueError, OSError):
            return 80

    @property
    def rows(self) -> int:
        try:
            return os.get_terminal_size(sys.stdout.fileno()).lines
        except (ValueError, OSError):
            return 24

    # -- start / stop -------------------------------------------------------

    def start(
        self,
        on_input: Callable[[str], None],
        on_resize: Callable[[], None],
    ) -> None:
        """Enable raw mode and bracketed paste, and begin reading stdin."""
        self._input_handler = on_input
        self._resize_handler = on_resize

        fd = sys.stdin.fileno()
        self._original_termios = termios.tcgetattr(fd)
        tty.setraw(fd)

        self._raw_write(_BRACKETED_PASTE_ENABLE)

        self._prev_sigwinch_handler = signal.getsignal(signal.SIGWINCH)
        signal.signal(signal.SIGWINCH, self._on_sigwinch)

        self._stdin_buffer = StdinBuffer(timeout=0.01)
        self._stdin_buffer.on_data(self._on_buffer_data)
        self._stdin_buffer.on_paste(self._on_buffer_paste)
        self._start_stdin_reader()
        logger.debug("terminal started (%dx%d)", self.columns, self.rows)

    def stop(self) -> None:
        """Restore terminal state and clean up all handlers."""
        self._raw_write(_BRACKETED_PASTE_DISABLE)

        if self._stdin_buffer is not None:
            self._stdin_buffer.destroy()
            self._stdin_buffer = None

        self._remove_stdin_reader()

        if self._prev_sigwinch_handler is not None:
            signal.signal(signal.SIGWINCH, self._prev_sigwinch_handler)
            self._prev_sigwinch_handler = None

        if self._original_termios is not None:
            termios.tcsetattr(sys.stdin.fileno(), termios.TCSADRAIN, self._original_termios)
            self._original_termios = None

        self._input_handler = None
        self._resize_handler = None
        logger.debug("terminal stopped")

    # -- write --------------------------------------------------------------

    def write(self, data: str) -> None:
        self._raw_write(data)

    # -- screen manipulation ------------------------------------------------

    def clear_screen(self) -> None:
        self._raw_write(CLEAR_SCREEN)

    def enter_alternate_screen(self) -> None:
        self._raw_write(ALT_SCREEN_ENABLE)

    def leave_alternate_screen(self) -> None:
        self._raw_write(ALT_SCREEN_DISABLE + SHOW_CURSOR)

    # -- private: stdin buffer callbacks -----------------------------------

    def _on_buffer_data(self, data: str) -> None:
        if self._input_handler is not None:
            self._input_handler(data)

    def _on_buffer_paste(self, data: str) -> None:
        # Forwarded as one unit with its newlines intact.
        if data and self._input_handler is not None:
            self._input_handler(data)

    # -- private: stdin reading --------------------------------------------

    def _start_stdin_reader(self) -> None:
        if self._stdin_reader_active:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("no running event loop; stdin reader not installed")
            return
        loop.add_reader(sys.stdin.fileno(), self._on_stdin_readable)
        self._stdin_reader_active = True

    def _remove_stdin_reader(self) -> None:
        if not self._stdin_reader_active:
            return
        try:
            asyncio.get_running_loop().remove_reader(sys.stdin.fileno())
        except (RuntimeError, ValueError):
            pass
        self._stdin_reader_active = False

    def _on_stdin_readable(self) -> None:
        try:
            raw = os.read(sys.stdin.fileno(), 4096)
        except OSError:
            return
        if not raw:
            return

        data = raw.decode("utf-8", errors="replace")
        if self._stdin_buffer is not None:
            self._stdin_buffer.process(data)
        elif self._input_handler is not None:
            self._input_handler(data)

    # -- private: SIGWINCH -------------------------------------------------

    def _on_sigwinch(self, signum: int, frame: object) -> None:
        if self._resize_handler is not None:
            self._resize_handler()

    # -- private: raw write ------------------------------------------------

    def _raw_write(self, data: str) -> None:
        """Write directly to stdout, bypassing buffering."""
        try:
            sys.stdout.write(data)
            sys.stdout.flush()
        except OSError:
            pass


__all__ = [
    "ALT_SCREEN_DISABLE",
    "ALT_SCREEN_ENABLE",
    "BRACKETED_PASTE_END",
    "BRACKETED_PASTE_START",
    "CLEAR_SCREEN",
    "CRLF",
    "ERASE_TO_END",
    "ProcessTerminal",
    "Terminal",
    "cursor_back",
    "cursor_forward",
    "cursor_to",
]
