"""Shell configuration stored in an INI-like text file.

The file holds ``[section]`` headers and ``key = value`` lines; ``#`` and
``;`` start comment lines. Section and key names are case-sensitive. Edits
are applied as text patches so comments and ordering survive a save.

Recognised sections::

    [shell]
    prompt = {cwd} $
    history_size = 1000

    [alias]
    ll = ls -l

    [user]
    name = Jane Doe
    email = jane@example.com

    [ssh]
    user = jane
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path

from stacksh.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".stackshrc"
DEFAULT_PROMPT = "{cwd} $ "
DEFAULT_HISTORY_SIZE = 1000

_SECTION_RE = re.compile(r"^\s*\[([^\]]+)\]\s*$")
_PROPERTY_RE = re.compile(r"^\s*([^=\s][^=]*?)\s*=\s?(.*)$")


def _is_comment(line: str) -> bool:
    stripped = line.strip()
    return not stripped or stripped[0] in "#;"


# --- Parsing ---


def parse_config(text: str) -> dict[str, dict[str, str]]:
    """Parse config text into ``{section: {key: value}}``.

    Properties before the first header land in the ``""`` section. A later
    duplicate key overrides an earlier one.
    """
    sections: dict[str, dict[str, str]] = {}
    current = ""
    for lineno, line in enumerate(text.splitlines(), start=1):
        if _is_comment(line):
            continue
        header = _SECTION_RE.match(line)
        if header:
            current = header.group(1).strip()
            sections.setdefault(current, {})
            continue
        prop = _PROPERTY_RE.match(line)
        if prop is None:
            raise ConfigError(f"expected 'key = value', got {line.strip()!r}", line=lineno)
        sections.setdefault(current, {})[prop.group(1)] = prop.group(2).rstrip()
    return sections


# --- Patching ---


def patch_config(text: str, section: str, key: str, value: str | None) -> str:
    """Set ``section.key`` to *value* inside *text*, preserving everything else.

    Match-or-append: the first ``key`` line inside the first ``[section]``
    is replaced; if the section has no such key, the line is appended after
    the section's last property; if the section is missing, it is appended
    at the end of the file. ``value=None`` deletes the key instead.
    """
    lines = text.splitlines()
    new_line = f"{key} = {value}" if value is not None else None

    start: int | None = None
    end = len(lines)
    for i, line in enumerate(lines):
        header = _SECTION_RE.match(line)
        if header is None:
            continue
        if start is None and header.group(1).strip() == section:
            start = i
        elif start is not None:
            end = i
            break

    if start is None:
        if new_line is None:
            return text
        if lines and lines[-1].strip():
            lines.append("")
        lines.extend([f"[{section}]", new_line])
        return "\n".join(lines) + "\n"

    last_property = start
    for i in range(start + 1, end):
        if _is_comment(lines[i]):
            continue
        prop = _PROPERTY_RE.match(lines[i])
        if prop is None:
            continue
        last_property = i
        if prop.group(1) == key:
            if new_line is None:
                del lines[i]
            else:
                lines[i] = new_line
            return "\n".join(lines) + "\n"

    if new_line is not None:
        lines.insert(last_property + 1, new_line)
    return "\n".join(lines) + "\n"


# --- Settings ---


@dataclass
class ShellConfig:
    """Settings the shell reads at startup."""

    prompt: str = DEFAULT_PROMPT
    history_size: int = DEFAULT_HISTORY_SIZE
    aliases: dict[str, str] = field(default_factory=dict)
    user_name: str | None = None
    user_email: str | None = None

    @classmethod
    def from_sections(cls, sections: dict[str, dict[str, str]]) -> ShellConfig:
        shell = sections.get("shell", {})
        user = sections.get("user", {})
        try:
            history_size = int(shell.get("history_size", DEFAULT_HISTORY_SIZE))
        except ValueError:
            raise ConfigError(f"history_size must be an integer, got {shell['history_size']!r}") from None
        return cls(
            prompt=shell.get("prompt", DEFAULT_PROMPT),
            history_size=history_size,
            aliases=dict(sections.get("alias", {})),
            user_name=user.get("name") or None,
            user_email=user.get("email") or None,
        )


def default_config_path() -> Path:
    return Path(os.environ.get("STACKSH_CONFIG", Path.home() / CONFIG_FILE_NAME))


class ConfigStore:
    """Loads and patches one config file.

    ``path=None`` keeps everything in memory, which is what tests use.
    """

    def __init__(self, path: Path | None = None, text: str = "") -> None:
        self._path = path
        self._text = text
        self.config = ShellConfig()

    @classmethod
    def in_memory(cls, text: str = "") -> ConfigStore:
        store = cls(None, text)
        store.config = ShellConfig.from_sections(parse_config(text))
        return store

    @classmethod
    def load(cls, path: Path | None = None) -> ConfigStore:
        path = path or default_config_path()
        text = ""
        if path.exists():
            text = path.read_text(encoding="utf-8")
        store = cls(path, text)
        store.config = ShellConfig.from_sections(parse_config(text))
        logger.debug("loaded config from %s (%d aliases)", path, len(store.config.aliases))
        return store

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def text(self) -> str:
        return self._text

    def get(self, section: str, key: str) -> str | None:
        return parse_config(self._text).get(section, {}).get(key)

    def set(self, section: str, key: str, value: str | None) -> None:
        """Patch one property and persist the file."""
        self._text = patch_config(self._text, section, key, value)
        self._save()
        fresh = ShellConfig.from_sections(parse_config(self._text))
        # Keep the alias dict identity: the router holds a reference to it.
        self.config.aliases.clear()
        self.config.aliases.update(fresh.aliases)
        self.config.prompt = fresh.prompt
        self.config.history_size = fresh.history_size
        self.config.user_name = fresh.user_name
        self.config.user_email = fresh.user_email

    def save_alias(self, name: str, value: str | None) -> None:
        self.set("alias", name, value)

    def _save(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(self._text, encoding="utf-8")
        logger.debug("saved config to %s", self._path)
