"""Built-in shell commands."""

from __future__ import annotations

from stacksh.commands.base import Command, CommandContext, parse_flags, short_flags, to_crlf
from stacksh.commands.bundle import create_bundle_command, create_exec_command, create_run_command
from stacksh.commands.fs import (
    create_cat_command,
    create_cd_command,
    create_clear_command,
    create_echo_command,
    create_false_command,
    create_ls_command,
    create_mkdir_command,
    create_mv_command,
    create_pwd_command,
    create_rm_command,
    create_true_command,
)
from stacksh.commands.git import create_git_command
from stacksh.commands.npm import create_npm_command
from stacksh.commands.session import (
    create_alias_command,
    create_exit_command,
    create_help_command,
    create_history_command,
    create_unalias_command,
)
from stacksh.commands.ssh import create_ssh_command
from stacksh.commands.vi import create_vi_command


def create_default_commands() -> dict[str, Command]:
    """Create every built-in command keyed by name."""
    commands = [
        create_ls_command(),
        create_cd_command(),
        create_pwd_command(),
        create_cat_command(),
        create_mkdir_command(),
        create_rm_command(),
        create_mv_command(),
        create_clear_command(),
        create_echo_command(),
        create_true_command(),
        create_false_command(),
        create_history_command(),
        create_alias_command(),
        create_unalias_command(),
        create_help_command(),
        create_exit_command(),
        create_vi_command(),
        create_git_command(),
        create_npm_command(),
        create_bundle_command(),
        create_run_command(),
        create_exec_command(),
        create_ssh_command(),
    ]
    return {c.name: c for c in commands}


__all__ = [
    "Command",
    "CommandContext",
    "create_default_commands",
    "parse_flags",
    "short_flags",
    "to_crlf",
]
