"""Terminal text utilities: width measurement, colors, column layout."""

from __future__ import annotations

import re
import unicodedata

import grapheme
import wcwidth as _wcwidth

# ---------------------------------------------------------------------------
# ANSI colors
# ---------------------------------------------------------------------------

RESET = "\x1b[0m"
REVERSE = "\x1b[7m"


def _color(code: int):
    def wrap(text: str) -> str:
        return f"\x1b[{code}m{text}{RESET}"

    return wrap


red = _color(31)
green = _color(32)
yellow = _color(33)

# CSI sequences that take no columns on screen
_ANSI_RE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")


def strip_ansi(text: str) -> str:
    return _ANSI_RE.sub("", text)


# ---------------------------------------------------------------------------
# Width
# ---------------------------------------------------------------------------


def _grapheme_width(g: str) -> int:
    """Display width of a single grapheme cluster."""
    if len(g) == 1:
        code = ord(g)
        if code < 0x20 or 0x7F <= code <= 0x9F:
            return 0
        return max(_wcwidth.wcwidth(g), 0)

    for ch in g:
        if ch in ("\ufe0f", "\u200d"):  # VS16, ZWJ
            return 2
    if unicodedata.category(g[0]).startswith("M"):
        return 0
    return max(_wcwidth.wcwidth(g[0]), 0)


def visible_width(text: str) -> int:
    """Number of terminal columns *text* occupies, ignoring ANSI codes."""
    plain = strip_ansi(text)
    if plain.isascii():
        return sum(1 for ch in plain if 0x20 <= ord(ch) < 0x7F)
    return sum(_grapheme_width(g) for g in grapheme.graphemes(plain))


def pad_to_width(text: str, width: int) -> str:
    """Right-pad *text* with spaces to *width* visible columns."""
    return text + " " * max(0, width - visible_width(text))


# ---------------------------------------------------------------------------
# Column layout
# ---------------------------------------------------------------------------


def format_columns(items: list[str], width: int) -> str:
    """Lay *items* out row-major in equal-width columns fitting *width*.

    Every column is as wide as the widest item plus two spaces of padding.
    Rows are joined with ``\\r\\n`` and the result ends with ``\\r\\n``.
    An empty list yields an empty string.
    """
    if not items:
        return ""
    col_width = max(visible_width(item) for item in items) + 2
    per_row = max(1, width // col_width)

    rows: list[str] = []
    for start in range(0, len(items), per_row):
        row = items[start : start + per_row]
        rows.append("".join(pad_to_width(item, col_width) for item in row))
    return "\r\n".join(rows) + "\r\n"
