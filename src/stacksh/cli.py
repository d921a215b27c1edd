"""Entry point for the stacksh CLI."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

from stacksh.errors import ConfigError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="stacksh: interactive shell with a built-in modal editor")
    parser.add_argument("--config", default=None, help="Config file (default: $STACKSH_CONFIG or ~/.stackshrc)")
    parser.add_argument("--cwd", default=os.getcwd(), help="Starting working directory")
    parser.add_argument("--log-level", default="warning", choices=["debug", "info", "warning", "error"])
    parser.add_argument(
        "--log-file",
        default=os.environ.get("STACKSH_LOG"),
        help="Write logs here (default: $STACKSH_LOG); the terminal itself never shows logs",
    )
    parser.add_argument("--github-client-id", default=os.environ.get("STACKSH_GITHUB_CLIENT_ID"))
    return parser


def configure_logging(level: str, log_file: str | None) -> None:
    # stdout and stderr belong to the raw-mode terminal
    handlers: list[logging.Handler] = [logging.FileHandler(log_file) if log_file else logging.NullHandler()]
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )


async def run_shell(args: argparse.Namespace) -> int:
    from stacksh.config import ConfigStore
    from stacksh.device_flow import GithubDeviceFlow
    from stacksh.local_fs import LocalFileSystem
    from stacksh.remote import SshSubprocessTransport
    from stacksh.services import Services
    from stacksh.shell import Shell
    from stacksh.tui.terminal import ProcessTerminal

    config = ConfigStore.load(Path(args.config) if args.config else None)
    services = Services(
        fs=LocalFileSystem(args.cwd),
        remote=SshSubprocessTransport(),
        device_flow=GithubDeviceFlow(args.github_client_id) if args.github_client_id else None,
    )
    shell = Shell(ProcessTerminal(), services, config=config)
    return await shell.run()


def main() -> None:
    args = build_parser().parse_args()
    configure_logging(args.log_level, args.log_file)

    if not sys.stdin.isatty():
        print("stacksh: stdin is not a terminal", file=sys.stderr)
        sys.exit(1)

    try:
        code = asyncio.run(run_shell(args))
    except ConfigError as e:
        print(f"stacksh: config: {e.message}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        code = 130
    sys.exit(code)


if __name__ == "__main__":
    main()
