"""git: version control through the :class:`~stacksh.services.VersionControl` collaborator."""

from __future__ import annotations

import asyncio
import codecs
import json
import logging
from typing import Any

from stacksh.commands.base import Command, CommandContext, RegisterCancel, parse_flags, to_crlf
from stacksh.errors import AuthRequiredError, ExternalServiceError, UsageError
from stacksh.services import AuthRequest, Author, Credentials, EventStream, VcsStreamItem, VersionControl
from stacksh.tui.utils import green, red, yellow

logger = logging.getLogger(__name__)

IDENTITY_HELP = """Author identity unknown

*** Please tell me who you are.

Run

  git config user.name "Your Name"
  git config user.email "you@example.com"

or pass --name and --email to git commit."""

BOOLEAN_FLAGS = frozenset({"hard"})


# --- Formatting ---


def format_status(status: dict[str, Any]) -> str:
    lines: list[str] = []
    head = status.get("head") or {}
    if head.get("branch"):
        lines.append(f"On branch {head['branch']}")
    else:
        lines.append(f"HEAD detached at {red(str(head.get('hash', ''))[:7])}")

    staged = status.get("staged") or {}
    unstaged = status.get("unstaged") or {}
    untracked = status.get("untracked") or []
    has_staged = any(staged.get(k) for k in ("modified", "deleted", "added"))
    has_unstaged = any(unstaged.get(k) for k in ("modified", "deleted"))

    if has_staged:
        lines.append("Changes to be committed:")
        lines.append('  (use "git restore --staged <file>..." to unstage)')
        lines.extend(green(f"\tmodified:   {f}") for f in staged.get("modified") or [])
        lines.extend(green(f"\tdeleted:    {f}") for f in staged.get("deleted") or [])
        lines.extend(green(f"\tnew file:   {f}") for f in staged.get("added") or [])
        lines.append("")

    if has_unstaged:
        lines.append("Changes not staged for commit:")
        lines.append('  (use "git add/rm <file>..." to update what will be committed)')
        lines.append('  (use "git restore <file>..." to discard changes in working directory)')
        lines.extend(red(f"\tmodified:   {f}") for f in unstaged.get("modified") or [])
        lines.extend(red(f"\tdeleted:    {f}") for f in unstaged.get("deleted") or [])
        lines.append("")

    if untracked:
        lines.append("Untracked files:")
        lines.append('  (use "git add <file>..." to include in what will be committed)')
        lines.extend(red(f"\t{f}") for f in untracked)
        lines.append("")

    if not (has_staged or has_unstaged or untracked):
        lines.append("nothing to commit, working tree clean")
    return "\n".join(lines)


def format_log(log: list[dict[str, Any]]) -> str:
    entries = []
    for commit in log:
        author = commit.get("author") or {}
        entries.append(
            f"{yellow('commit ' + str(commit.get('hash', '')))}\n"
            f"Author: {author.get('name', '')} <{author.get('email', '')}>\n"
            f"Date:   {commit.get('date', '')}\n"
            f"\n"
            f"    {commit.get('message', '')}"
        )
    return "\n\n".join(entries)


def format_branches(branches: list[dict[str, Any]]) -> str:
    return "\n".join(green(f"* {b['name']}") if b.get("is_head") else f"  {b['name']}" for b in branches)


def format_tags(tags: list[dict[str, Any]]) -> str:
    return "\n".join(yellow(t["name"]) for t in tags)


# --- Streams ---


async def consume_stream(
    stream: EventStream[VcsStreamItem],
    ctx: CommandContext,
    register_cancel: RegisterCancel,
) -> None:
    """Write stream output until it ends, answering credential requests on the way.

    Canceling ends the stream and abandons a sign-in that is still polling;
    the pending request is then answered with ``None``.
    """
    canceled = False
    polling: asyncio.Task[Credentials | None] | None = None

    def cancel() -> None:
        nonlocal canceled
        canceled = True
        stream.end()
        if polling is not None:
            polling.cancel()

    register_cancel(cancel)
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    async for item in stream:
        if isinstance(item, AuthRequest):
            credentials = None
            flow = ctx.services.device_flow
            if flow is not None and not canceled:
                polling = asyncio.ensure_future(flow.poll(ctx.write))
                try:
                    credentials = await polling
                except asyncio.CancelledError:
                    if not canceled:
                        raise
                finally:
                    polling = None
            if credentials is None:
                logger.info("no credentials for %s; canceling", item.url)
            item.respond(credentials)
        elif isinstance(item, bytes):
            ctx.write(to_crlf(decoder.decode(item)))
        else:
            ctx.write(to_crlf(item))
    ctx.write(to_crlf(decoder.decode(b"", final=True)))


# --- Subcommands ---


def _split_config_key(key: str) -> tuple[str, str]:
    section, dot, name = key.partition(".")
    if not dot or not section or not name:
        raise UsageError(f"error: key does not contain a section: {key}")
    return section, name


def _git_config(ctx: CommandContext, flags: dict[str, str | bool], positionals: list[str]) -> int:
    unset = flags.get("unset")
    if isinstance(unset, str):
        section, name = _split_config_key(unset)
        ctx.config.set(section, name, None)
        return 0
    if not positionals:
        raise UsageError("usage: git config <key> [<value>]")
    section, name = _split_config_key(positionals[0])
    if len(positionals) == 1:
        value = ctx.config.get(section, name)
        if value is None:
            return 1
        ctx.writeln(value)
        return 0
    ctx.config.set(section, name, " ".join(positionals[1:]))
    return 0


def _commit_author(ctx: CommandContext, flags: dict[str, str | bool]) -> Author:
    config = ctx.config.config
    name = flags.get("name")
    email = flags.get("email")
    name = name if isinstance(name, str) else config.user_name
    email = email if isinstance(email, str) else config.user_email
    if not name or not email:
        raise AuthRequiredError(IDENTITY_HELP)
    return Author(name=name, email=email)


def _require(positionals: list[str], usage: str) -> None:
    if not positionals:
        raise UsageError(usage)


def create_git_command() -> Command:
    async def execute(args: list[str], ctx: CommandContext, register_cancel: RegisterCancel) -> int:
        if not args:
            raise UsageError("usage: git <command> [<args>]")
        sub = args[0]
        flags, positionals = parse_flags(args[1:], BOOLEAN_FLAGS)

        if sub == "config":
            return _git_config(ctx, flags, positionals)

        vcs: VersionControl | None = ctx.services.vcs
        if vcs is None:
            raise ExternalServiceError("version control is not available in this session")
        directory = flags.get("directory")
        directory = directory if isinstance(directory, str) else ctx.cwd

        match sub:
            case "init":
                _require(positionals, "Usage: git init <url>")
                ctx.writeln(await vcs.init(directory, positionals[0]))
            case "status":
                ctx.writeln(format_status(await vcs.status(directory)))
            case "add":
                _require(positionals, "Usage: git add <path>")
                ctx.writeln(await vcs.add(directory, positionals[0]))
            case "commit":
                message = flags.get("m") or flags.get("message")
                if not isinstance(message, str):
                    raise UsageError("Usage: git commit -m <message>")
                author = _commit_author(ctx, flags)
                ctx.writeln(await vcs.commit(directory, message, author))
            case "log":
                ctx.writeln(format_log(await vcs.log(directory)))
            case "branch":
                ctx.writeln(format_branches(await vcs.branch(directory)))
            case "tags" | "tag":
                ctx.writeln(format_tags(await vcs.tags(directory)))
            case "merge":
                _require(positionals, "Usage: git merge <branch>")
                ctx.writeln(json.dumps(await vcs.merge(directory, positionals[0]), indent=2))
            case "reset":
                ctx.writeln(await vcs.reset(directory, bool(flags.get("hard")), *positionals))
            case "restore":
                _require(positionals, "Usage: git restore <paths>")
                ctx.writeln(await vcs.restore(directory, *positionals))
            case "checkout":
                # `-b <ref>` parses as a flag carrying the ref as its value.
                create = next((flags[k] for k in ("b", "B", "create") if k in flags), None)
                ref = create if isinstance(create, str) else (positionals[0] if positionals else None)
                if ref is None:
                    raise UsageError("Usage: git checkout <ref>")
                await consume_stream(vcs.checkout(directory, ref, create is not None), ctx, register_cancel)
            case "clone":
                _require(positionals, "Usage: git clone <url>")
                await consume_stream(vcs.clone(positionals[0], directory), ctx, register_cancel)
            case "push":
                await consume_stream(vcs.push(directory), ctx, register_cancel)
            case "pull":
                await consume_stream(vcs.pull(directory), ctx, register_cancel)
            case _:
                raise UsageError(f"Unknown git command: {sub}")
        return 0

    return Command(name="git", description="run version control commands", execute=execute)
