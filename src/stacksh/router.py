"""Command router: chain splitting, alias expansion, dispatch and cancellation.

A submitted line is split into sub-commands at unquoted ``&&``. Each
sub-command is either an alias (expanded and run as a chain of its own) or
``name args...`` dispatched to a registered :class:`~stacksh.commands.base.Command`.
Chains short-circuit: the first nonzero exit code stops the rest.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from stacksh.errors import ShellError, UsageError

if TYPE_CHECKING:
    from stacksh.commands.base import CancelCallback, Command, CommandContext

logger = logging.getLogger(__name__)

CHAIN_OPERATOR = "&&"
EXIT_CANCELED = 130
MAX_ALIAS_DEPTH = 16


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def split_chain(line: str) -> list[str]:
    """Split *line* at every ``&&`` that is not inside matching quotes.

    Parts are returned untrimmed; empty parts are kept.
    """
    parts: list[str] = []
    quote: str | None = None
    start = 0
    i = 0
    while i < len(line):
        ch = line[i]
        if quote is not None:
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif line.startswith(CHAIN_OPERATOR, i):
            parts.append(line[start:i])
            i += len(CHAIN_OPERATOR)
            start = i
            continue
        i += 1
    parts.append(line[start:])
    return parts


def resolve_alias(
    text: str,
    aliases: dict[str, str],
    exclude: frozenset[str] = frozenset(),
) -> tuple[str, str] | None:
    """Expand the longest alias key that *text* starts with.

    A key matches when it equals *text* or is followed by a space in it; the
    rest of *text* is appended to the expansion. Returns ``(key, expanded)``
    or ``None``. Keys in *exclude* are skipped.
    """
    for key in sorted(aliases, key=len, reverse=True):
        if key in exclude:
            continue
        if text == key:
            return key, aliases[key]
        if text.startswith(key + " "):
            return key, aliases[key] + text[len(key) :]
    return None


def tokenize(text: str) -> tuple[str, list[str]]:
    """Split *text* on whitespace into ``(name, args)``.

    Quoted runs keep their spaces and lose their quotes. An unterminated
    quote runs to the end of the text.
    """
    tokens: list[str] = []
    current: list[str] = []
    in_token = False
    quote: str | None = None

    for ch in text:
        if quote is not None:
            if ch == quote:
                quote = None
            else:
                current.append(ch)
        elif ch in ("'", '"'):
            quote = ch
            in_token = True
        elif ch.isspace():
            if in_token:
                tokens.append("".join(current))
                current = []
                in_token = False
        else:
            current.append(ch)
            in_token = True

    if in_token:
        tokens.append("".join(current))
    if not tokens:
        return "", []
    return tokens[0], tokens[1:]


# ---------------------------------------------------------------------------
# Router
# ---------------------------------------------------------------------------


class CommandRouter:
    """Runs command chains one sub-command at a time.

    Holds the session's cancel slot: at most one callback, registered by the
    handler currently executing and cleared as soon as that handler settles.
    """

    def __init__(self, commands: dict[str, Command], aliases: dict[str, str]) -> None:
        self.commands = commands
        self.aliases = aliases
        self.last_exit_code: int = 0
        self._cancel: tuple[object, CancelCallback] | None = None
        self._canceled = False
        self._stopped = False
        self._depth = 0

    @property
    def busy(self) -> bool:
        return self._depth > 0

    @property
    def has_cancel(self) -> bool:
        return self._cancel is not None

    async def execute_line(self, line: str, ctx: CommandContext) -> int:
        """Run every sub-command of *line*, stopping at the first failure."""
        top_level = self._depth == 0
        if top_level:
            self._canceled = False
            self._stopped = False
        self._depth += 1
        try:
            code = await self._run_chain(line, ctx, frozenset())
        finally:
            self._depth -= 1
        if top_level:
            self.last_exit_code = code
        return code

    def cancel(self) -> bool:
        """Invoke and clear the registered cancel callback, if any.

        The remainder of the running chain is abandoned.
        """
        if self._cancel is None:
            return False
        _, callback = self._cancel
        self._cancel = None
        self._canceled = True
        logger.info("cancel requested")
        callback()
        return True

    def stop(self) -> None:
        """Run no further sub-commands of the current chain.

        Unlike :meth:`cancel` the running handler is left to finish and its
        exit code is kept.
        """
        self._stopped = True

    async def _run_chain(self, line: str, ctx: CommandContext, expanding: frozenset[str]) -> int:
        code = 0
        for part in split_chain(line):
            text = part.strip()
            if not text:
                continue
            code = await self._run_one(text, ctx, expanding)
            if self._canceled:
                return EXIT_CANCELED
            if code != 0 or self._stopped:
                return code
        return code

    async def _run_one(self, text: str, ctx: CommandContext, expanding: frozenset[str]) -> int:
        if len(expanding) < MAX_ALIAS_DEPTH:
            alias = resolve_alias(text, self.aliases, expanding)
            if alias is not None:
                key, expanded = alias
                logger.debug("alias %s -> %s", key, expanded)
                return await self._run_chain(expanded, ctx, expanding | {key})

        name, args = tokenize(text)
        command = self.commands.get(name)
        if command is None:
            ctx.writeln(f"{name}: command not found")
            return 1
        return await self._dispatch(command, args, ctx)

    async def _dispatch(self, command: Command, args: list[str], ctx: CommandContext) -> int:
        token = object()

        def register_cancel(callback: CancelCallback) -> None:
            if self._cancel is not None:
                logger.warning("%s: cancel callback already registered; ignoring", command.name)
                return
            self._cancel = (token, callback)

        logger.debug("run %s %r", command.name, args)
        try:
            result = await command.execute(args, ctx, register_cancel)
            code = 0 if result is None else int(result)
        except UsageError as e:
            ctx.writeln(e.message)
            code = e.exit_code
        except ShellError as e:
            ctx.writeln(f"{command.name}: {e.message}")
            code = e.exit_code
        except Exception as e:
            logger.exception("%s failed", command.name)
            ctx.writeln(f"{command.name}: {e}")
            code = 1
        finally:
            if self._cancel is not None and self._cancel[0] is token:
                self._cancel = None
        logger.debug("%s exited %d", command.name, code)
        return code
