"""Remote shell transport that shells out to the ``ssh`` binary."""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import subprocess
from collections.abc import AsyncIterator

from stacksh.errors import ExternalServiceError

logger = logging.getLogger(__name__)

READ_CHUNK = 4096


class SshProcessStream:
    """:class:`~stacksh.services.DuplexStream` over a running ssh process."""

    def __init__(self, proc: asyncio.subprocess.Process) -> None:
        self._proc = proc

    async def __aiter__(self) -> AsyncIterator[bytes]:
        stdout = self._proc.stdout
        if stdout is None:
            return
        while True:
            chunk = await stdout.read(READ_CHUNK)
            if not chunk:
                break
            yield chunk
        await self._proc.wait()
        logger.debug("ssh exited with %s", self._proc.returncode)

    async def write(self, data: bytes) -> None:
        stdin = self._proc.stdin
        if stdin is None or stdin.is_closing():
            return
        stdin.write(data)
        try:
            await stdin.drain()
        except (BrokenPipeError, ConnectionResetError):
            logger.debug("ssh stdin closed")

    def close(self) -> None:
        if self._proc.returncode is None:
            self._proc.terminate()


class SshSubprocessTransport:
    """:class:`~stacksh.services.RemoteShell` that spawns ``ssh -tt user@host``.

    A password is handed to ``sshpass`` through its environment variable when
    that binary is installed; otherwise ssh falls back to its own key-based
    authentication.
    """

    def __init__(self, ssh_binary: str = "ssh", extra_args: list[str] | None = None) -> None:
        self.ssh_binary = ssh_binary
        self.extra_args = extra_args or []

    async def connect(self, host: str, user: str, password: str | None) -> SshProcessStream:
        argv = [self.ssh_binary, "-tt", *self.extra_args, f"{user}@{host}" if user else host]
        env = None
        if password:
            sshpass = shutil.which("sshpass")
            if sshpass is None:
                logger.warning("sshpass not found; ignoring --password")
            else:
                argv = [sshpass, "-e", *argv]
                env = {**os.environ, "SSHPASS": password}

        logger.info("connecting to %s@%s", user, host)
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                env=env,
            )
        except OSError as e:
            raise ExternalServiceError(f"cannot start {argv[0]}: {e.strerror or e}") from None
        return SshProcessStream(proc)
