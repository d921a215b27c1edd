"""Raw terminal input decoding.

Maps raw input units (a single character or a complete escape sequence, as
emitted by :class:`~stacksh.tui.stdin_buffer.StdinBuffer`) to semantic key
events. Decoding is a stateless lookup against a fixed table of exact
sequences: multi-byte sequences are matched whole, never parsed
incrementally, and anything not in the table passes through unmodified.
"""

from __future__ import annotations

from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Key helper object
# ---------------------------------------------------------------------------


class Key:
    """Named key constants."""

    enter = "enter"
    backspace = "backspace"
    delete = "delete"
    tab = "tab"
    escape = "escape"
    up = "up"
    down = "down"
    left = "left"
    right = "right"
    home = "home"
    end = "end"

    ctrl_c = "ctrl+c"
    ctrl_d = "ctrl+d"
    ctrl_l = "ctrl+l"

    word_left = "alt+left"
    word_right = "alt+right"


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

ESC = "\x1b"
CTRL_C = "\x03"

# Exact raw sequences -> key names
KEY_SEQUENCES: dict[str, str] = {
    "\r": Key.enter,
    "\n": Key.enter,
    "\x7f": Key.backspace,
    "\x08": Key.backspace,
    "\t": Key.tab,
    "\x1b": Key.escape,
    "\x03": Key.ctrl_c,
    "\x04": Key.ctrl_d,
    "\x0c": Key.ctrl_l,
    "\x1b[A": Key.up,
    "\x1b[B": Key.down,
    "\x1b[C": Key.right,
    "\x1b[D": Key.left,
    "\x1bOA": Key.up,
    "\x1bOB": Key.down,
    "\x1bOC": Key.right,
    "\x1bOD": Key.left,
    "\x1b[H": Key.home,
    "\x1b[F": Key.end,
    "\x1bOH": Key.home,
    "\x1bOF": Key.end,
    "\x1b[1~": Key.home,
    "\x1b[4~": Key.end,
    "\x1b[3~": Key.delete,
    "\x1b[1;3D": Key.word_left,
    "\x1b[1;3C": Key.word_right,
    "\x1b[1;5D": Key.word_left,
    "\x1b[1;5C": Key.word_right,
    "\x1bb": Key.word_left,
    "\x1bf": Key.word_right,
}


# ---------------------------------------------------------------------------
# Decoded event
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class KeyEvent:
    """A decoded input unit.

    ``name`` is a :class:`Key` constant for recognised sequences, ``"char"``
    for printable text, and ``None`` for anything else. ``data`` always
    carries the raw input exactly as received.
    """

    name: str | None
    data: str

    @property
    def is_char(self) -> bool:
        return self.name == "char"


def is_printable(data: str) -> bool:
    """True when *data* is non-empty and contains no C0/C1 control characters."""
    if not data:
        return False
    for ch in data:
        code = ord(ch)
        if code < 0x20 or code == 0x7F or 0x80 <= code <= 0x9F:
            return False
    return True


def decode(data: str) -> KeyEvent:
    """Decode one raw input unit into a :class:`KeyEvent`."""
    name = KEY_SEQUENCES.get(data)
    if name is not None:
        return KeyEvent(name, data)
    if is_printable(data):
        return KeyEvent("char", data)
    return KeyEvent(None, data)
