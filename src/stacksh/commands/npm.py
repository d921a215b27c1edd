"""npm: package.json lifecycle scripts plus the package manager collaborator."""

from __future__ import annotations

import json
import logging
from typing import Any

from stacksh.commands.base import Command, CommandContext, RegisterCancel, parse_flags
from stacksh.errors import ExternalServiceError, NotFoundError, UsageError
from stacksh.services import Done, EventStream, PackageEvent, Progress

logger = logging.getLogger(__name__)

PACKAGE_JSON = "package.json"
SCRIPT_COMMANDS = frozenset({"run", "start", "restart", "test"})
BOOLEAN_FLAGS = frozenset({"D", "save-dev"})


def format_progress(progress: Progress) -> str:
    """``[stage] name @version (NN%)``, omitting the parts that are unset."""
    parts = []
    if progress.stage:
        parts.append(f"[{progress.stage}]")
    if progress.name:
        parts.append(progress.name)
    if progress.version:
        parts.append(f"@{progress.version}")
    if progress.progress is not None:
        parts.append(f"({round(progress.progress * 100)}%)")
    return " ".join(parts)


def load_scripts(ctx: CommandContext) -> dict[str, str]:
    try:
        text = ctx.services.fs.read_text(PACKAGE_JSON)
    except NotFoundError:
        raise NotFoundError(f"{PACKAGE_JSON} not found") from None
    try:
        package: dict[str, Any] = json.loads(text)
    except json.JSONDecodeError:
        raise ExternalServiceError(f"failed to parse {PACKAGE_JSON}") from None
    scripts = package.get("scripts") or {}
    return {str(k): str(v) for k, v in scripts.items()}


class ScriptRunner:
    """Runs one package.json script with its ``pre<name>`` chain first.

    Pre-scripts are looked up recursively (``preprestart`` runs before
    ``prestart``). A missing script is only an error when it was asked for.
    """

    def __init__(self, scripts: dict[str, str], ctx: CommandContext) -> None:
        self.scripts = scripts
        self.ctx = ctx

    async def run(self, name: str, *, required: bool = True) -> int:
        pre = f"pre{name}"
        if pre in self.scripts:
            code = await self.run(pre, required=False)
            if code != 0:
                return code

        script = self.scripts.get(name)
        if script is None:
            if required:
                self.ctx.writeln(f"npm ERR! missing script: {name}")
                return 1
            return 0

        self.ctx.writeln(f"> {name}")
        self.ctx.writeln(f"> {script}")
        return await self.ctx.execute_line(script)


async def run_scripts(args: list[str], ctx: CommandContext) -> int:
    sub = args[0]
    scripts = load_scripts(ctx)
    runner = ScriptRunner(scripts, ctx)

    if sub == "run":
        if len(args) < 2:
            ctx.writeln("Scripts available:")
            for name in scripts:
                ctx.writeln(f"  {name}")
            return 0
        return await runner.run(args[1])

    if sub == "restart" and "restart" not in scripts:
        code = await runner.run("stop", required=False)
        if code != 0:
            return code
        return await runner.run("start")

    return await runner.run(sub)


async def consume_progress(
    stream: EventStream[PackageEvent],
    ctx: CommandContext,
    register_cancel: RegisterCancel,
) -> None:
    register_cancel(stream.end)
    async for event in stream:
        if isinstance(event, Done):
            logger.debug("package operation done: %d packages", event.count)
        else:
            ctx.writeln(format_progress(event))


async def run_package_manager(args: list[str], ctx: CommandContext, register_cancel: RegisterCancel) -> int:
    packages = ctx.services.packages
    if packages is None:
        raise ExternalServiceError("package manager is not available in this session")
    sub = args[0]
    flags, positionals = parse_flags(args[1:], BOOLEAN_FLAGS)
    directory = flags.get("directory")
    directory = directory if isinstance(directory, str) else ctx.cwd

    match sub:
        case "install" | "i":
            dev = bool(flags.get("D") or flags.get("save-dev"))
            await consume_progress(packages.install(directory, dev, *positionals), ctx, register_cancel)
        case "uninstall" | "remove" | "rm":
            await consume_progress(packages.uninstall(directory, *positionals), ctx, register_cancel)
        case "audit":
            ctx.writeln(json.dumps(await packages.audit(directory), indent=2))
        case _:
            raise UsageError(f"Unknown packages command: {sub}")
    return 0


def create_npm_command() -> Command:
    async def execute(args: list[str], ctx: CommandContext, register_cancel: RegisterCancel) -> int:
        if not args:
            raise UsageError("usage: npm <command>")
        if args[0] in SCRIPT_COMMANDS:
            return await run_scripts(args, ctx)
        return await run_package_manager(args, ctx, register_cancel)

    return Command(name="npm", description="run package scripts and manage packages", execute=execute)
