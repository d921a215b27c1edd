"""Filesystem and basic output commands: ls, cd, pwd, cat, mkdir, rm, mv, clear, echo, true, false."""

from __future__ import annotations

import posixpath

from stacksh.commands.base import Command, CommandContext, RegisterCancel, short_flags, to_crlf
from stacksh.errors import ShellError, UsageError
from stacksh.tui.terminal import CRLF
from stacksh.tui.utils import format_columns


def format_size(num_bytes: int) -> str:
    """Format bytes as a human-readable string."""
    if num_bytes < 1000:
        return f"{num_bytes} B"
    size = float(num_bytes)
    for unit in ("kB", "MB", "GB", "TB"):
        size /= 1000
        if size < 1000 or unit == "TB":
            return f"{size:.3g} {unit}"
    return f"{num_bytes} B"


def create_ls_command() -> Command:
    """List a directory in columns, or one ``size name`` row per entry with ``-l``."""

    async def execute(args: list[str], ctx: CommandContext, register_cancel: RegisterCancel) -> int:
        flags, rest = short_flags(args)
        directory = rest[0] if rest else "."
        fs = ctx.services.fs
        names = fs.listdir(directory)

        if "l" not in flags:
            ctx.write(format_columns(names, ctx.terminal.columns))
            return 0

        rows: list[tuple[str, str]] = []
        for name in names:
            try:
                size = fs.stat(posixpath.join(directory, name)).size
            except ShellError:
                size = 0
            rows.append((format_size(size) if "h" in flags else str(size), name))
        if not rows:
            return 0
        width = max(len(size) for size, _ in rows)
        ctx.write("".join(f"{size.rjust(width)} {name}{CRLF}" for size, name in rows))
        return 0

    return Command(name="ls", description="list directory contents", execute=execute)


def create_cd_command() -> Command:
    async def execute(args: list[str], ctx: CommandContext, register_cancel: RegisterCancel) -> int:
        ctx.services.fs.chdir(args[0] if args else "/")
        return 0

    return Command(name="cd", description="change the working directory", execute=execute)


def create_pwd_command() -> Command:
    async def execute(args: list[str], ctx: CommandContext, register_cancel: RegisterCancel) -> int:
        ctx.writeln(ctx.cwd)
        return 0

    return Command(name="pwd", description="print the working directory", execute=execute)


def create_cat_command() -> Command:
    async def execute(args: list[str], ctx: CommandContext, register_cancel: RegisterCancel) -> int:
        if not args:
            raise UsageError("Usage: cat <filename>")
        data = ctx.services.fs.read_text(args[0])
        ctx.write(to_crlf(data))
        if not data.endswith("\n"):
            ctx.write(CRLF)
        return 0

    return Command(name="cat", description="print a file", execute=execute)


def create_mkdir_command() -> Command:
    """Create each named directory; ``-p`` creates parents and tolerates existing ones."""

    async def execute(args: list[str], ctx: CommandContext, register_cancel: RegisterCancel) -> int:
        flags, dirs = short_flags(args)
        if not dirs:
            raise UsageError("mkdir: missing operand")
        code = 0
        for directory in dirs:
            try:
                ctx.services.fs.mkdir(directory, parents="p" in flags)
            except ShellError as e:
                ctx.writeln(f"mkdir: {e.message}")
                code = 1
        return code

    return Command(name="mkdir", description="make directories", execute=execute)


def create_rm_command() -> Command:
    async def execute(args: list[str], ctx: CommandContext, register_cancel: RegisterCancel) -> int:
        flags, paths = short_flags(args)
        if not paths:
            raise UsageError("usage: rm [-rf] <file/dir>")
        recursive = "r" in flags or "R" in flags
        code = 0
        for path in paths:
            try:
                ctx.services.fs.remove(path, recursive=recursive, force="f" in flags)
            except ShellError as e:
                ctx.writeln(f"rm: {e.message}")
                code = 1
        return code

    return Command(name="rm", description="remove files or directories", execute=execute)


def create_mv_command() -> Command:
    async def execute(args: list[str], ctx: CommandContext, register_cancel: RegisterCancel) -> int:
        if len(args) < 2:
            raise UsageError("Usage: mv <source> <destination>")
        ctx.services.fs.rename(args[0], args[1])
        return 0

    return Command(name="mv", description="move or rename files", execute=execute)


def create_clear_command() -> Command:
    async def execute(args: list[str], ctx: CommandContext, register_cancel: RegisterCancel) -> int:
        ctx.terminal.clear_screen()
        return 0

    return Command(name="clear", description="clear the screen", execute=execute)


def create_echo_command() -> Command:
    async def execute(args: list[str], ctx: CommandContext, register_cancel: RegisterCancel) -> int:
        ctx.writeln(" ".join(args))
        return 0

    return Command(name="echo", description="print arguments", execute=execute)


def create_true_command() -> Command:
    async def execute(args: list[str], ctx: CommandContext, register_cancel: RegisterCancel) -> int:
        return 0

    return Command(name="true", description="do nothing, successfully", execute=execute)


def create_false_command() -> Command:
    async def execute(args: list[str], ctx: CommandContext, register_cancel: RegisterCancel) -> int:
        return 1

    return Command(name="false", description="do nothing, unsuccessfully", execute=execute)
