"""One interactive shell session.

Wires the terminal to the input path (capture slot, then line editor) and the
line editor to the command router. Every byte the session prints goes
through :meth:`Shell.write`, which forwards to the terminal.
"""

from __future__ import annotations

import asyncio
import logging

from stacksh.autocomplete import Autocompleter
from stacksh.capture import CaptureSlot
from stacksh.commands import create_default_commands
from stacksh.commands.base import Command, CommandContext
from stacksh.config import ConfigStore
from stacksh.line_editor import History, LineEditor
from stacksh.router import CommandRouter
from stacksh.services import Services
from stacksh.tui.keys import ESC, Key, decode
from stacksh.tui.terminal import CRLF, Terminal
from stacksh.tui.utils import format_columns

logger = logging.getLogger(__name__)


class Shell:
    """Interactive session over a :class:`~stacksh.tui.terminal.Terminal`."""

    def __init__(
        self,
        terminal: Terminal,
        services: Services,
        *,
        config: ConfigStore | None = None,
        commands: dict[str, Command] | None = None,
    ) -> None:
        self.terminal = terminal
        self.services = services
        self.config = config if config is not None else ConfigStore.in_memory()
        self.commands = commands if commands is not None else create_default_commands()

        self.capture = CaptureSlot()
        self.capture.on_release(self._on_capture_release)
        self.history = History(self.config.config.history_size)
        self.router = CommandRouter(self.commands, self.config.config.aliases)
        self.autocompleter = Autocompleter(services.fs, self._completion_names)

        self.editor = LineEditor(self.write, self.prompt, history=self.history)
        self.editor.on_submit = self._on_submit
        self.editor.on_tab = self._on_tab

        self.context = CommandContext(
            terminal=terminal,
            capture=self.capture,
            services=services,
            config=self.config,
            history=self.history,
            commands=self.commands,
            execute_line=self.execute_line,
            write=self.write,
            request_exit=self.request_exit,
        )

        self.exit_code = 0
        self._exiting = False
        self._at_line_start = True
        self._task: asyncio.Task[None] | None = None
        self._closed: asyncio.Future[int] | None = None

    # -- lifecycle -----------------------------------------------------------

    def start(self) -> None:
        self._closed = asyncio.get_running_loop().create_future()
        self.terminal.start(self.handle_input, self.handle_resize)
        self.editor.show_prompt()

    def stop(self) -> None:
        self.terminal.stop()

    async def run(self) -> int:
        """Run until ``exit`` or Ctrl-D, then restore the terminal."""
        self.start()
        try:
            assert self._closed is not None
            return await self._closed
        finally:
            self.stop()

    def request_exit(self, code: int = 0) -> None:
        self.exit_code = code
        self._exiting = True
        self.router.stop()
        if self._closed is not None and not self._closed.done():
            self._closed.set_result(code)
        logger.info("session exit requested (%d)", code)

    # -- output --------------------------------------------------------------

    def write(self, data: str) -> None:
        if not data:
            return
        self.terminal.write(data)
        self._at_line_start = data.endswith("\n")

    def prompt(self) -> str:
        text = self.config.config.prompt.replace("{cwd}", self.services.fs.cwd)
        return text if text.endswith(" ") else text + " "

    # -- input ---------------------------------------------------------------

    def handle_input(self, data: str) -> None:
        """Route one input unit: capture owner first, then the line editor."""
        if self.capture.dispatch(data):
            return
        if len(data) > 1 and not data.startswith(ESC):
            # A paste lands on the prompt as a single line.
            data = data.replace("\r", "").replace("\n", "")
            if not data:
                return

        event = decode(data)
        if self.router.busy:
            # With no cancel callback Ctrl-C aborts the line; the prompt returns when the chain settles.
            if event.name == Key.ctrl_c and not self.router.cancel():
                self.editor.discard()
            return

        match event.name:
            case Key.ctrl_d if not self.editor.buffer:
                self.write(CRLF)
                self.request_exit(0)
            case Key.ctrl_l:
                self.terminal.clear_screen()
                self.editor.show_prompt()
            case _:
                self.editor.handle_key(event)

    def handle_resize(self) -> None:
        self.capture.resize()

    # -- execution -----------------------------------------------------------

    async def execute_line(self, line: str) -> int:
        """Run *line* through the router; used by handlers for nested lines."""
        return await self.router.execute_line(line, self.context)

    def _on_submit(self, line: str) -> None:
        if not line.strip():
            self.editor.show_prompt()
            return
        self._task = asyncio.ensure_future(self._run(line))

    async def _run(self, line: str) -> None:
        try:
            await self.execute_line(line)
        finally:
            if not self._exiting:
                if not self._at_line_start:
                    self.write(CRLF)
                self.editor.show_prompt()

    async def wait_idle(self) -> None:
        """Wait for the chain started by the last submitted line."""
        while self._task is not None and not self._task.done():
            await self._task

    # -- completion / capture ------------------------------------------------

    def _completion_names(self) -> list[str]:
        return [*self.commands, *self.router.aliases]

    def _on_tab(self) -> None:
        result = self.autocompleter.complete(self.editor.buffer)
        if result.kind == "insert":
            self.editor.append(result.text)
        elif result.kind == "list":
            self.write(CRLF + format_columns(result.candidates, self.terminal.columns))
            self.editor.show_prompt()

    def _on_capture_release(self) -> None:
        # A running command gets its prompt when the chain settles.
        if not self.router.busy:
            self.editor.show_prompt()
