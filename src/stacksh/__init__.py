"""stacksh: an interactive shell over a raw terminal."""

from stacksh.capture import CaptureSlot
from stacksh.config import ConfigStore, ShellConfig
from stacksh.errors import ShellError
from stacksh.line_editor import History, LineEditor
from stacksh.local_fs import LocalFileSystem
from stacksh.router import CommandRouter
from stacksh.services import Services
from stacksh.shell import Shell

__all__ = [
    "CaptureSlot",
    "CommandRouter",
    "ConfigStore",
    "History",
    "LineEditor",
    "LocalFileSystem",
    "Services",
    "Shell",
    "ShellConfig",
    "ShellError",
]
