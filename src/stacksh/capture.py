"""Single-slot exclusive ownership of raw terminal input."""

from __future__ import annotations

import logging
from typing import Callable

from stacksh.errors import CaptureBusyError

logger = logging.getLogger(__name__)

InputHandler = Callable[[str], None]


class CaptureSlot:
    """Holds at most one raw-input consumer.

    While an owner is installed every input unit goes to it verbatim,
    Ctrl-C included, and the line editor sees nothing. Acquire and release
    are the only ways to change the owner.
    """

    def __init__(self) -> None:
        self._owner: InputHandler | None = None
        self._on_resize: Callable[[], None] | None = None
        self._on_release: list[Callable[[], None]] = []

    @property
    def owner(self) -> InputHandler | None:
        return self._owner

    @property
    def active(self) -> bool:
        return self._owner is not None

    def on_release(self, callback: Callable[[], None]) -> None:
        """Register *callback* to run every time the slot is released."""
        self._on_release.append(callback)

    def acquire(self, owner: InputHandler, on_resize: Callable[[], None] | None = None) -> None:
        if self._owner is not None:
            raise CaptureBusyError("input is already captured by another program")
        self._owner = owner
        self._on_resize = on_resize
        logger.debug("input captured by %r", owner)

    def release(self, owner: InputHandler) -> None:
        if self._owner is None:
            return
        if self._owner != owner:
            raise CaptureBusyError("input is captured by a different program")
        self._owner = None
        self._on_resize = None
        logger.debug("input released by %r", owner)
        for callback in self._on_release:
            callback()

    def dispatch(self, data: str) -> bool:
        """Forward *data* to the owner. Returns False when nothing holds the slot."""
        owner = self._owner
        if owner is None:
            return False
        owner(data)
        return True

    def resize(self) -> bool:
        """Notify the owner of a terminal resize. Returns False when nothing holds the slot."""
        if self._owner is None:
            return False
        if self._on_resize is not None:
            self._on_resize()
        return True
