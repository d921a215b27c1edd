"""Reading a short answer from the user while a command runs."""

from __future__ import annotations

import asyncio

from stacksh.commands.base import CommandContext
from stacksh.tui.keys import ESC, Key, decode
from stacksh.tui.terminal import CRLF


async def ask(ctx: CommandContext, label: str, *, echo: bool = True) -> str | None:
    """Print *label* and read one line through the capture slot.

    Enter submits, Backspace deletes the last character and Ctrl-C aborts,
    in which case ``None`` is returned. With ``echo=False`` nothing typed is
    shown.
    """
    answer: asyncio.Future[str | None] = asyncio.get_running_loop().create_future()
    chars: list[str] = []

    def on_input(data: str) -> None:
        if answer.done():
            return
        if len(data) > 1 and not data.startswith(ESC):
            data = data.replace("\r", "").replace("\n", "")
        event = decode(data)
        match event.name:
            case Key.enter:
                answer.set_result("".join(chars))
            case Key.ctrl_c:
                answer.set_result(None)
            case Key.backspace:
                if chars:
                    chars.pop()
                    if echo:
                        ctx.write("\b \b")
            case "char":
                chars.extend(event.data)
                if echo:
                    ctx.write(event.data)

    ctx.write(label)
    ctx.capture.acquire(on_input)
    try:
        result = await answer
    finally:
        ctx.capture.release(on_input)
    ctx.write(CRLF if result is not None else "^C" + CRLF)
    return result
