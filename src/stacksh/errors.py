"""Error taxonomy shared by command handlers and the router."""

from __future__ import annotations


class ShellError(Exception):
    """Base class for failures reported to the user as plain text.

    ``exit_code`` is what the router records when one of these escapes a
    command handler.
    """

    exit_code: int = 1

    def __init__(self, message: str, *, exit_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code


class UsageError(ShellError):
    """Bad or missing command arguments."""


class NotFoundError(ShellError):
    """A path or named resource does not exist."""


class NotADirectory(ShellError):
    """A directory was required but the path names something else."""


class PermissionDeniedError(ShellError):
    """The operating system refused the operation."""


class ExternalServiceError(ShellError):
    """A collaborator service failed; its message is surfaced verbatim."""


class AuthRequiredError(ShellError):
    """An operation needs an identity or credentials that are not configured."""


class CaptureBusyError(ShellError):
    """Raw input is already owned by another sub-program."""


class ConfigError(ShellError):
    """The config file could not be parsed."""

    def __init__(self, message: str, *, line: int | None = None) -> None:
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)
        self.line = line
