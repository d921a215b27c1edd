"""bundle and run: build through the bundler, execute through the runner."""

from __future__ import annotations

from stacksh.commands.base import Command, CommandContext, RegisterCancel
from stacksh.errors import ExternalServiceError, UsageError
from stacksh.services import BuildResult, Diagnostic


def format_diagnostic(diagnostic: Diagnostic) -> str:
    """Diagnostic text, then its location, source line and a caret under the column."""
    out = diagnostic.text
    loc = diagnostic.location
    if loc is not None:
        out += f"\n    at {loc.file}:{loc.line}:{loc.column}"
        if loc.line_text:
            out += f"\n    {loc.line_text}\n    {' ' * loc.column}^"
    return out


def report(result: BuildResult, ctx: CommandContext) -> bool:
    """Print warnings and errors. Returns True when the build has errors."""
    for warning in result.warnings:
        ctx.writeln(format_diagnostic(warning))
    for error in result.errors:
        ctx.writeln(format_diagnostic(error))
    return bool(result.errors)


def create_bundle_command() -> Command:
    async def execute(args: list[str], ctx: CommandContext, register_cancel: RegisterCancel) -> int:
        bundler = ctx.services.bundler
        if bundler is None:
            raise ExternalServiceError("bundler is not available in this session")
        result = await bundler.bundle(*(args or ["."]))
        if report(result, ctx):
            return 1
        for output in result.outputs:
            ctx.writeln(output)
        return 0

    return Command(name="bundle", description="bundle the project", execute=execute)


def create_run_command() -> Command:
    async def execute(args: list[str], ctx: CommandContext, register_cancel: RegisterCancel) -> int:
        runner = ctx.services.runner
        if runner is None:
            raise ExternalServiceError("runner is not available in this session")
        target = ctx.services.fs.resolve(args[0] if args else ".")
        register_cancel(runner.stop)
        return await runner.run(target)

    return Command(name="run", description="run the project", execute=execute)


def create_exec_command() -> Command:
    async def execute(args: list[str], ctx: CommandContext, register_cancel: RegisterCancel) -> int:
        entries = [a for a in args if not a.startswith("--")]
        if not entries:
            raise UsageError("usage: exec <file>")
        bundler, runner = ctx.services.bundler, ctx.services.runner
        if bundler is None or runner is None:
            raise ExternalServiceError("bundler and runner are required to exec a file")

        result = await bundler.bundle(ctx.services.fs.resolve(entries[0]))
        if report(result, ctx):
            return 1
        if not result.outputs:
            raise ExternalServiceError(f"no output for {entries[0]}")
        register_cancel(runner.stop)
        return await runner.run(result.outputs[0])

    return Command(name="exec", description="bundle a file and run it", execute=execute)
