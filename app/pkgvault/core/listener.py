"""Progress listener interface.

Listeners receive progress events while a target store installs or
uninstalls package content. They are purely observational.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol, runtime_checkable


class Mode(str, Enum):
    """Kind of progress message.

    Attributes:
        TEXT: Free-form status text.
        PATHS: The message refers to a store path.
    """

    TEXT = "text"
    PATHS = "paths"


@runtime_checkable
class ProgressListener(Protocol):
    """Sink for progress and error events."""

    def on_message(self, mode: Mode, action: str, path: str) -> None:
        """Receive a progress event for a path."""

    def on_error(self, mode: Mode, path: str, error: Exception) -> None:
        """Receive an error event for a path."""


class LoggingListener:
    """Listener that forwards events to a logger.

    Attributes:
        logger: Target logger (defaults to this module's logger).
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(__name__)

    def on_message(self, mode: Mode, action: str, path: str) -> None:
        self._logger.info("%s %s", action, path)

    def on_error(self, mode: Mode, path: str, error: Exception) -> None:
        self._logger.error("E %s %s", path, error)


class RecordingListener:
    """Listener that keeps every event in memory, in arrival order."""

    def __init__(self) -> None:
        self.messages: list[tuple[Mode, str, str]] = []
        self.errors: list[tuple[Mode, str, Exception]] = []

    def on_message(self, mode: Mode, action: str, path: str) -> None:
        self.messages.append((mode, action, path))

    def on_error(self, mode: Mode, path: str, error: Exception) -> None:
        self.errors.append((mode, path, error))

    def paths(self, action: str | None = None) -> list[str]:
        """Return reported paths, optionally only those with a given action."""
        return [path for _, act, path in self.messages if action is None or act == action]
