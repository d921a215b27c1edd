"""Session commands: history, alias, unalias, help, exit."""

from __future__ import annotations

from stacksh.commands.base import Command, CommandContext, RegisterCancel
from stacksh.errors import NotFoundError, UsageError


def create_history_command() -> Command:
    async def execute(args: list[str], ctx: CommandContext, register_cancel: RegisterCancel) -> int:
        for i, entry in enumerate(ctx.history.entries, start=1):
            ctx.writeln(f"{i:5}  {entry}")
        return 0

    return Command(name="history", description="list previously submitted lines", execute=execute)


def create_alias_command() -> Command:
    """``alias`` lists, ``alias name`` shows one, ``alias name=value`` defines and persists."""

    async def execute(args: list[str], ctx: CommandContext, register_cancel: RegisterCancel) -> int:
        aliases = ctx.config.config.aliases
        if not args:
            for name in sorted(aliases):
                ctx.writeln(f"alias {name}='{aliases[name]}'")
            return 0

        definition = " ".join(args)
        name, sep, value = definition.partition("=")
        name = name.strip()
        if not name:
            raise UsageError("usage: alias [name[=value]]")
        if not sep:
            if name not in aliases:
                raise NotFoundError(f"{name}: not found")
            ctx.writeln(f"alias {name}='{aliases[name]}'")
            return 0

        ctx.config.save_alias(name, value.strip())
        return 0

    return Command(name="alias", description="define or list aliases", execute=execute)


def create_unalias_command() -> Command:
    async def execute(args: list[str], ctx: CommandContext, register_cancel: RegisterCancel) -> int:
        if not args:
            raise UsageError("usage: unalias <name>")
        code = 0
        for name in args:
            if name not in ctx.config.config.aliases:
                ctx.writeln(f"unalias: {name}: not found")
                code = 1
                continue
            ctx.config.save_alias(name, None)
        return code

    return Command(name="unalias", description="remove aliases", execute=execute)


def create_help_command() -> Command:
    async def execute(args: list[str], ctx: CommandContext, register_cancel: RegisterCancel) -> int:
        width = max((len(name) for name in ctx.commands), default=0)
        for name in sorted(ctx.commands):
            ctx.writeln(f"  {name.ljust(width)}  {ctx.commands[name].description}")
        return 0

    return Command(name="help", description="list available commands", execute=execute)


def create_exit_command() -> Command:
    async def execute(args: list[str], ctx: CommandContext, register_cancel: RegisterCancel) -> int:
        code = 0
        if args:
            try:
                code = int(args[0])
            except ValueError:
                raise UsageError(f"exit: {args[0]}: numeric argument required") from None
        ctx.request_exit(code)
        return code

    return Command(name="exit", description="end the session", execute=execute)
