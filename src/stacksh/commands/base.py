"""Command handler contract and the context handlers run in."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Callable

from stacksh.tui.terminal import CRLF

if TYPE_CHECKING:
    from stacksh.capture import CaptureSlot
    from stacksh.config import ConfigStore
    from stacksh.line_editor import History
    from stacksh.services import Services
    from stacksh.tui.terminal import Terminal

CancelCallback = Callable[[], None]
RegisterCancel = Callable[[CancelCallback], None]
ExecuteFn = Callable[[list[str], "CommandContext", RegisterCancel], Awaitable[int | None]]


@dataclass
class Command:
    """A named handler. ``execute`` returns an exit code; ``None`` means 0."""

    name: str
    description: str
    execute: ExecuteFn


@dataclass
class CommandContext:
    """Everything a handler may touch during one invocation."""

    terminal: Terminal
    capture: CaptureSlot
    services: Services
    config: ConfigStore
    history: History
    commands: dict[str, Command]
    execute_line: Callable[[str], Awaitable[int]]
    write: Callable[[str], None]
    request_exit: Callable[[int], None]

    def writeln(self, text: str = "") -> None:
        """Write *text* with bare newlines normalised to CRLF, then CRLF."""
        self.write(to_crlf(text) + CRLF)

    @property
    def cwd(self) -> str:
        return self.services.fs.cwd


def to_crlf(text: str) -> str:
    """Raw mode does not translate ``\\n``; convert it to ``\\r\\n``."""
    return text.replace("\r\n", "\n").replace("\n", CRLF)


def parse_flags(
    args: list[str], booleans: frozenset[str] = frozenset()
) -> tuple[dict[str, str | bool], list[str]]:
    """Split *args* into ``--key value`` / ``-k`` flags and positionals.

    A flag followed by a non-flag argument takes it as its value unless its
    name is in *booleans*; otherwise the flag is ``True``. Leading dashes are
    stripped from flag names.
    """
    flags: dict[str, str | bool] = {}
    positionals: list[str] = []
    i = 0
    while i < len(args):
        arg = args[i]
        if arg.startswith("-") and arg != "-":
            key = arg.lstrip("-")
            if key not in booleans and i + 1 < len(args) and not args[i + 1].startswith("-"):
                flags[key] = args[i + 1]
                i += 2
                continue
            flags[key] = True
        else:
            positionals.append(arg)
        i += 1
    return flags, positionals


def short_flags(args: list[str]) -> tuple[str, list[str]]:
    """Collect single-dash letter flags (``-rf`` -> ``"rf"``) and the rest."""
    letters = ""
    rest: list[str] = []
    for arg in args:
        if arg.startswith("-") and len(arg) > 1:
            letters += arg.lstrip("-")
        else:
            rest.append(arg)
    return letters, rest
