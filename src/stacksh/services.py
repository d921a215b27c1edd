"""Collaborator contracts the shell commands call through.

The shell does not implement version control, package management, bundling
or remote transport itself. Commands reach those services only through the
narrow protocols below; a session is handed whichever implementations are
available in a :class:`Services` bundle.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Protocol, TypeVar

_SENTINEL = object()

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Streams
# ---------------------------------------------------------------------------


class EventStream(Generic[T]):
    """Push/pull channel with explicit completion.

    Producers ``push`` items and call ``end`` exactly once; consumers iterate
    with ``async for`` until the stream ends. ``end(error=...)`` makes the
    consumer's loop raise that error after draining queued items.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[T | object] = asyncio.Queue()
        self._done = False
        self._error: BaseException | None = None

    @property
    def done(self) -> bool:
        return self._done

    def push(self, item: T) -> None:
        """Push an item. No-op once the stream has ended."""
        if self._done:
            return
        self._queue.put_nowait(item)

    def end(self, error: BaseException | None = None) -> None:
        if self._done:
            return
        self._done = True
        self._error = error
        self._queue.put_nowait(_SENTINEL)

    async def next(self) -> T | None:
        """Next item, or ``None`` once the stream has ended."""
        item = await self._queue.get()
        if item is _SENTINEL:
            # Keep the sentinel available for any further readers.
            self._queue.put_nowait(_SENTINEL)
            if self._error is not None:
                raise self._error
            return None
        return item  # type: ignore[return-value]

    async def __aiter__(self) -> AsyncIterator[T]:
        while True:
            item = await self.next()
            if item is None:
                return
            yield item


# ---------------------------------------------------------------------------
# Filesystem
# ---------------------------------------------------------------------------


@dataclass
class FileStat:
    name: str
    size: int
    is_dir: bool


class FileSystem(Protocol):
    """Working-directory-aware file operations.

    Errors are raised as :class:`~stacksh.errors.NotFoundError`,
    :class:`~stacksh.errors.NotADirectory` or
    :class:`~stacksh.errors.PermissionDeniedError`.
    """

    @property
    def cwd(self) -> str: ...

    def resolve(self, path: str) -> str: ...

    def chdir(self, path: str) -> None: ...

    def stat(self, path: str) -> FileStat: ...

    def is_dir(self, path: str) -> bool: ...

    def listdir(self, path: str) -> list[str]: ...

    def read_text(self, path: str) -> str: ...

    def write_text(self, path: str, content: str) -> None: ...

    def rename(self, source: str, dest: str) -> None: ...

    def remove(self, path: str, *, recursive: bool = False, force: bool = False) -> None: ...

    def mkdir(self, path: str, *, parents: bool = False) -> None: ...


# ---------------------------------------------------------------------------
# Version control
# ---------------------------------------------------------------------------


@dataclass
class Credentials:
    username: str
    password: str


@dataclass
class AuthRequest:
    """Emitted on a VCS stream when the remote needs credentials.

    The consumer must call ``respond`` with credentials, or ``None`` to
    cancel the operation.
    """

    url: str
    respond: Callable[[Credentials | None], None]


VcsStreamItem = bytes | str | AuthRequest


@dataclass
class Author:
    name: str
    email: str


class VersionControl(Protocol):
    async def init(self, directory: str, url: str) -> str: ...

    async def status(self, directory: str) -> dict[str, Any]: ...

    async def add(self, directory: str, path: str) -> str: ...

    async def commit(self, directory: str, message: str, author: Author) -> str: ...

    async def log(self, directory: str) -> list[dict[str, Any]]: ...

    async def branch(self, directory: str) -> list[dict[str, Any]]: ...

    async def tags(self, directory: str) -> list[dict[str, Any]]: ...

    async def merge(self, directory: str, branch: str) -> dict[str, Any]: ...

    async def reset(self, directory: str, hard: bool, *paths: str) -> str: ...

    async def restore(self, directory: str, *paths: str) -> str: ...

    def checkout(self, directory: str, ref: str, create: bool) -> EventStream[VcsStreamItem]: ...

    def clone(self, url: str, directory: str) -> EventStream[VcsStreamItem]: ...

    def push(self, directory: str) -> EventStream[VcsStreamItem]: ...

    def pull(self, directory: str) -> EventStream[VcsStreamItem]: ...


# ---------------------------------------------------------------------------
# Package management
# ---------------------------------------------------------------------------


@dataclass
class Progress:
    stage: str = ""
    name: str = ""
    version: str = ""
    progress: float | None = None


@dataclass
class Done:
    count: int = 0


PackageEvent = Progress | Done


class PackageManager(Protocol):
    def install(self, directory: str, dev: bool, *packages: str) -> EventStream[PackageEvent]: ...

    def uninstall(self, directory: str, *packages: str) -> EventStream[PackageEvent]: ...

    async def audit(self, directory: str) -> dict[str, Any]: ...


# ---------------------------------------------------------------------------
# Bundler
# ---------------------------------------------------------------------------


@dataclass
class Location:
    file: str
    line: int
    column: int
    line_text: str | None = None


@dataclass
class Diagnostic:
    text: str
    location: Location | None = None


@dataclass
class BuildResult:
    outputs: list[str] = field(default_factory=list)
    errors: list[Diagnostic] = field(default_factory=list)
    warnings: list[Diagnostic] = field(default_factory=list)


class Bundler(Protocol):
    async def bundle(self, *entries: str) -> BuildResult: ...


class Runner(Protocol):
    """Executes a built artifact until it exits; ``stop`` ends it early."""

    async def run(self, artifact: str) -> int: ...

    def stop(self) -> None: ...


# ---------------------------------------------------------------------------
# Remote shell
# ---------------------------------------------------------------------------


class DuplexStream(Protocol):
    """Bidirectional byte channel.

    Reading yields output chunks until the remote side closes; ``write``
    sends input; ``close`` ends the session from this side.
    """

    def __aiter__(self) -> AsyncIterator[bytes]: ...

    async def write(self, data: bytes) -> None: ...

    def close(self) -> None: ...


class RemoteShell(Protocol):
    async def connect(self, host: str, user: str, password: str | None) -> DuplexStream: ...


# ---------------------------------------------------------------------------
# OAuth device flow
# ---------------------------------------------------------------------------


class DeviceFlow(Protocol):
    async def poll(self, write: Callable[[str], None]) -> Credentials | None: ...


# ---------------------------------------------------------------------------
# Bundle
# ---------------------------------------------------------------------------


@dataclass
class Services:
    """Collaborators available to one shell session."""

    fs: FileSystem
    vcs: VersionControl | None = None
    packages: PackageManager | None = None
    bundler: Bundler | None = None
    runner: Runner | None = None
    remote: RemoteShell | None = None
    device_flow: DeviceFlow | None = None
