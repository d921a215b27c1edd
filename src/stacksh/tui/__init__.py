"""Terminal boundary: raw input decoding, output sink, text utilities."""

from stacksh.tui.keys import KEY_SEQUENCES, Key, KeyEvent, decode, is_printable
from stacksh.tui.stdin_buffer import StdinBuffer
from stacksh.tui.terminal import ProcessTerminal, Terminal
from stacksh.tui.utils import format_columns, pad_to_width, visible_width

__all__ = [
    "KEY_SEQUENCES",
    "Key",
    "KeyEvent",
    "ProcessTerminal",
    "StdinBuffer",
    "Terminal",
    "decode",
    "format_columns",
    "is_printable",
    "pad_to_width",
    "visible_width",
]
