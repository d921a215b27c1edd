"""ssh: interactive remote shell over a duplex stream."""

from __future__ import annotations

import asyncio
import codecs
import logging

from stacksh.commands.base import Command, CommandContext, RegisterCancel, parse_flags
from stacksh.commands.prompt import ask
from stacksh.errors import ExternalServiceError, ShellError, UsageError
from stacksh.router import EXIT_CANCELED
from stacksh.tui.terminal import CRLF

logger = logging.getLogger(__name__)


def parse_target(target: str) -> tuple[str, str]:
    """``user@host`` -> ``(user, host)``; a bare host gives an empty user."""
    user, at, host = target.rpartition("@")
    if not at:
        return "", target
    return user, host


def create_ssh_command() -> Command:
    async def execute(args: list[str], ctx: CommandContext, register_cancel: RegisterCancel) -> int:
        flags, positionals = parse_flags(args)
        if not positionals:
            raise UsageError("usage: ssh [user@]host")
        remote = ctx.services.remote
        if remote is None:
            raise ExternalServiceError("remote shell is not available in this session")

        user, host = parse_target(positionals[0])
        user = user or ctx.config.get("ssh", "user") or ""
        if not user:
            answer = await ask(ctx, "Username: ")
            if answer is None:
                return EXIT_CANCELED
            user = answer.strip()
        if not user:
            ctx.writeln("Username required")
            return 1

        password = flags.get("password")
        if not isinstance(password, str):
            password = await ask(ctx, f"{user}@{host}'s password: ", echo=False)
            if password is None:
                return EXIT_CANCELED

        ctx.writeln(f"Connecting to {user}@{host}...")
        try:
            stream = await remote.connect(host, user, password or None)
        except (ShellError, OSError) as e:
            ctx.writeln(f"SSH Connection failed: {getattr(e, 'message', None) or e}")
            return 1

        pending: set[asyncio.Task[None]] = set()

        def written(task: asyncio.Task[None]) -> None:
            pending.discard(task)
            if not task.cancelled() and task.exception() is not None:
                logger.debug("ssh write failed: %s", task.exception())

        def forward(data: str) -> None:
            task = asyncio.ensure_future(stream.write(data.encode("utf-8")))
            pending.add(task)
            task.add_done_callback(written)

        register_cancel(stream.close)
        ctx.capture.acquire(forward)
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        try:
            async for chunk in stream:
                ctx.write(decoder.decode(chunk))
        except (ShellError, OSError) as e:
            logger.debug("ssh stream error", exc_info=True)
            ctx.writeln(f"SSH Error: {getattr(e, 'message', None) or e}")
        finally:
            ctx.capture.release(forward)
            stream.close()
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        ctx.write(decoder.decode(b"", final=True))
        ctx.write(CRLF)
        ctx.writeln(f"Connection to {host} closed.")
        return 0

    return Command(name="ssh", description="open a shell on a remote host", execute=execute)
