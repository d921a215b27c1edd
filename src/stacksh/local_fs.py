"""FileSystem implementation over the local disk.

Each instance keeps its own working directory; relative paths resolve
against it instead of the process-wide cwd, so sessions never share state.
"""

from __future__ import annotations

import errno
import os
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from stacksh.errors import NotADirectory, NotFoundError, PermissionDeniedError, ShellError
from stacksh.services import FileStat


@contextmanager
def _os_errors(path: str) -> Iterator[None]:
    """Translate ``OSError`` into the shell's error taxonomy."""
    try:
        yield
    except FileNotFoundError:
        raise NotFoundError(f"no such file or directory: {path}") from None
    except NotADirectoryError:
        raise NotADirectory(f"not a directory: {path}") from None
    except PermissionError:
        raise PermissionDeniedError(f"permission denied: {path}") from None
    except IsADirectoryError:
        raise ShellError(f"is a directory: {path}") from None
    except FileExistsError:
        raise ShellError(f"file exists: {path}") from None
    except OSError as e:
        if e.errno == errno.ENOTEMPTY:
            raise ShellError(f"directory not empty: {path}") from None
        raise ShellError(f"{e.strerror or e}: {path}") from None


class LocalFileSystem:
    """Disk-backed :class:`~stacksh.services.FileSystem`."""

    def __init__(self, cwd: str | None = None) -> None:
        self._cwd = str(Path(cwd or os.getcwd()).resolve())

    @property
    def cwd(self) -> str:
        return self._cwd

    def resolve(self, path: str) -> str:
        p = Path(os.path.expanduser(path))
        if not p.is_absolute():
            p = Path(self._cwd) / p
        return os.path.normpath(str(p))

    def chdir(self, path: str) -> None:
        target = self.resolve(path)
        with _os_errors(path):
            if not os.path.exists(target):
                raise FileNotFoundError(target)
            if not os.path.isdir(target):
                raise NotADirectoryError(target)
            if not os.access(target, os.X_OK):
                raise PermissionError(target)
        self._cwd = target

    def stat(self, path: str) -> FileStat:
        target = self.resolve(path)
        with _os_errors(path):
            st = os.stat(target)
        return FileStat(name=os.path.basename(target), size=st.st_size, is_dir=os.path.isdir(target))

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(self.resolve(path))

    def listdir(self, path: str) -> list[str]:
        with _os_errors(path):
            return sorted(os.listdir(self.resolve(path)))

    def read_text(self, path: str) -> str:
        with _os_errors(path):
            return Path(self.resolve(path)).read_text(encoding="utf-8")

    def write_text(self, path: str, content: str) -> None:
        with _os_errors(path):
            Path(self.resolve(path)).write_text(content, encoding="utf-8")

    def rename(self, source: str, dest: str) -> None:
        src = self.resolve(source)
        dst = self.resolve(dest)
        if os.path.isdir(dst):
            dst = os.path.join(dst, os.path.basename(src))
        with _os_errors(source):
            os.rename(src, dst)

    def remove(self, path: str, *, recursive: bool = False, force: bool = False) -> None:
        target = self.resolve(path)
        if not os.path.lexists(target):
            if force:
                return
            raise NotFoundError(f"no such file or directory: {path}")
        with _os_errors(path):
            if os.path.isdir(target) and not os.path.islink(target):
                if not recursive:
                    raise ShellError(f"is a directory: {path}")
                shutil.rmtree(target)
            else:
                os.remove(target)

    def mkdir(self, path: str, *, parents: bool = False) -> None:
        with _os_errors(path):
            Path(self.resolve(path)).mkdir(parents=parents, exist_ok=parents)
