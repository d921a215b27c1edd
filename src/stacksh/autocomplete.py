"""Tab completion for command names and paths."""

from __future__ import annotations

import logging
import posixpath
import re
from dataclasses import dataclass, field
from typing import Callable, Iterable, Literal

from stacksh.errors import ShellError
from stacksh.services import FileSystem

logger = logging.getLogger(__name__)

# Commands whose arguments complete as paths
PATH_COMMANDS = frozenset({"ls", "cat", "cd", "mkdir", "rm", "mv", "vi"})

_FIRST_WHITESPACE = re.compile(r"\s")


@dataclass
class Completion:
    """Outcome of one completion request.

    ``insert``: append ``text`` to the buffer. ``list``: show
    ``candidates`` and leave the buffer alone. ``none``: do nothing.
    """

    kind: Literal["insert", "list", "none"]
    text: str = ""
    candidates: list[str] = field(default_factory=list)


NO_COMPLETION = Completion("none")


def longest_common_prefix(items: Iterable[str]) -> str:
    items = list(items)
    if not items:
        return ""
    prefix = items[0]
    for item in items[1:]:
        i = 0
        while i < len(prefix) and i < len(item) and prefix[i] == item[i]:
            i += 1
        prefix = prefix[:i]
    return prefix


def split_path_fragment(partial: str) -> tuple[str, str]:
    """Split a typed path into ``(directory, name prefix)``.

    ``"src/ma"`` -> ``("src", "ma")``; ``"src/"`` -> ``("src/", "")``;
    ``"ma"`` -> ``(".", "ma")``.
    """
    if not partial:
        return ".", ""
    if partial.endswith("/"):
        return partial, ""
    directory, base = posixpath.split(partial)
    return directory or ".", base


class Autocompleter:
    """Computes completions from the in-progress buffer."""

    def __init__(self, fs: FileSystem, command_names: Callable[[], Iterable[str]]) -> None:
        self._fs = fs
        self._command_names = command_names

    def complete(self, buffer: str) -> Completion:
        parts = _FIRST_WHITESPACE.split(buffer, maxsplit=1)
        if len(parts) == 1:
            return self._complete_command(buffer)
        if parts[0] not in PATH_COMMANDS:
            return NO_COMPLETION
        last_arg = re.split(r"\s", buffer)[-1]
        return self._complete_path(last_arg)

    def _complete_command(self, fragment: str) -> Completion:
        candidates = sorted({name for name in self._command_names() if name.startswith(fragment)})
        return self._resolve(candidates, fragment)

    def _complete_path(self, partial: str) -> Completion:
        directory, base = split_path_fragment(partial)
        try:
            entries = self._fs.listdir(directory)
        except ShellError as e:
            logger.debug("path completion skipped: %s", e.message)
            return NO_COMPLETION

        candidates = [entry for entry in entries if entry.startswith(base)]
        if len(candidates) == 1 and self._fs.is_dir(posixpath.join(directory, candidates[0])):
            return Completion("insert", candidates[0][len(base) :] + "/", candidates)
        return self._resolve(candidates, base)

    @staticmethod
    def _resolve(candidates: list[str], fragment: str) -> Completion:
        if not candidates:
            return NO_COMPLETION
        prefix = longest_common_prefix(candidates)
        if len(prefix) > len(fragment):
            return Completion("insert", prefix[len(fragment) :], candidates)
        if len(candidates) > 1:
            return Completion("list", "", candidates)
        return NO_COMPLETION
