"""Tests for EventStream and the disk-backed filesystem."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

import pytest

from stacksh.errors import NotADirectory, NotFoundError, ShellError
from stacksh.local_fs import LocalFileSystem
from stacksh.services import EventStream


class TestEventStream:
    @pytest.mark.asyncio
    async def test_drains_then_ends(self) -> None:
        stream: EventStream[str] = EventStream()
        stream.push("a")
        stream.push("b")
        stream.end()
        stream.push("ignored")
        assert [item async for item in stream] == ["a", "b"]
        assert await stream.next() is None
        assert stream.done

    @pytest.mark.asyncio
    async def test_consumer_waits_for_producer(self) -> None:
        stream: EventStream[int] = EventStream()
        received: list[int] = []

        async def consume() -> None:
            async for item in stream:
                received.append(item)

        task = asyncio.ensure_future(consume())
        await asyncio.sleep(0)
        stream.push(1)
        await asyncio.sleep(0)
        assert received == [1]
        stream.end()
        await task
        assert received == [1]

    @pytest.mark.asyncio
    async def test_error_raised_after_items(self) -> None:
        stream: EventStream[str] = EventStream()
        stream.push("partial")
        stream.end(RuntimeError("remote hung up"))
        received: list[str] = []
        with pytest.raises(RuntimeError, match="remote hung up"):
            async for item in stream:
                received.append(item)
        assert received == ["partial"]

    @pytest.mark.asyncio
    async def test_end_is_idempotent(self) -> None:
        stream: EventStream[str] = EventStream()
        stream.end()
        stream.end(RuntimeError("late"))
        assert await stream.next() is None


class TestLocalFileSystem:
    def test_cwd_is_per_instance(self, tmp_path: Path) -> None:
        (tmp_path / "sub").mkdir()
        before = os.getcwd()
        fs = LocalFileSystem(str(tmp_path))
        other = LocalFileSystem(str(tmp_path))
        fs.chdir("sub")
        assert fs.cwd == str(tmp_path.resolve() / "sub")
        assert other.cwd == str(tmp_path.resolve())
        assert os.getcwd() == before

    def test_resolve(self, tmp_path: Path) -> None:
        fs = LocalFileSystem(str(tmp_path))
        root = str(tmp_path.resolve())
        assert fs.resolve("a/../b") == os.path.join(root, "b")
        assert fs.resolve("/etc") == "/etc"
        assert fs.resolve("~") == os.path.expanduser("~")

    def test_read_write_round_trip(self, tmp_path: Path) -> None:
        fs = LocalFileSystem(str(tmp_path))
        fs.write_text("notes.txt", "héllo\n")
        assert fs.read_text("notes.txt") == "héllo\n"
        assert fs.stat("notes.txt").size == len("héllo\n".encode())

    def test_errors_translated(self, tmp_path: Path) -> None:
        (tmp_path / "file").write_text("")
        fs = LocalFileSystem(str(tmp_path))
        with pytest.raises(NotFoundError, match="no such file or directory: nope"):
            fs.read_text("nope")
        with pytest.raises(NotADirectory):
            fs.chdir("file")
        with pytest.raises(NotADirectory):
            fs.listdir("file")

    def test_remove(self, tmp_path: Path) -> None:
        (tmp_path / "d" / "e").mkdir(parents=True)
        fs = LocalFileSystem(str(tmp_path))
        with pytest.raises(ShellError, match="is a directory"):
            fs.remove("d")
        fs.remove("d", recursive=True)
        assert not (tmp_path / "d").exists()
        fs.remove("ghost", force=True)
        with pytest.raises(NotFoundError):
            fs.remove("ghost")

    def test_rename_into_directory(self, tmp_path: Path) -> None:
        (tmp_path / "a.txt").write_text("x")
        (tmp_path / "dest").mkdir()
        fs = LocalFileSystem(str(tmp_path))
        fs.rename("a.txt", "dest")
        assert (tmp_path / "dest" / "a.txt").read_text() == "x"

    def test_mkdir_parents(self, tmp_path: Path) -> None:
        fs = LocalFileSystem(str(tmp_path))
        fs.mkdir("x/y", parents=True)
        fs.mkdir("x/y", parents=True)
        with pytest.raises(ShellError, match="file exists"):
            fs.mkdir("x")
        with pytest.raises(NotFoundError):
            fs.mkdir("missing/child")
