"""vi: open the modal editor on a file."""

from __future__ import annotations

from stacksh.commands.base import Command, CommandContext, RegisterCancel
from stacksh.editor import ModalEditor


def create_vi_command() -> Command:
    async def execute(args: list[str], ctx: CommandContext, register_cancel: RegisterCancel) -> int:
        editor = ModalEditor(ctx.terminal, ctx.capture, ctx.services.fs, args[0] if args else None)
        editor.start()
        await editor.wait_closed()
        return 0

    return Command(name="vi", description="edit a file", execute=execute)
