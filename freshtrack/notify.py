"""Transient user notifications."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import TextIO

logger = logging.getLogger(__name__)


@dataclass
class Notification:
    level: str  # "success" | "error" | "info"
    message: str


class Notifier:
    """Collects notifications and mirrors them to the log."""

    def __init__(self) -> None:
        self.history: list[Notification] = []

    def success(self, message: str) -> None:
        self._emit(Notification("success", message))

    def info(self, message: str) -> None:
        self._emit(Notification("info", message))

    def error(self, message: str) -> None:
        self._emit(Notification("error", message))

    @property
    def last(self) -> Notification | None:
        return self.history[-1] if self.history else None

    def _emit(self, note: Notification) -> None:
        self.history.append(note)
        if note.level == "error":
            logger.warning(note.message)
        else:
            logger.info(note.message)
        self.show(note)

    def show(self, note: Notification) -> None:
        pass


class ConsoleNotifier(Notifier):
    """Prints notifications to the terminal."""

    _ICONS = {"success": "✔", "error": "✖", "info": "•"}

    def __init__(self, stream: TextIO | None = None) -> None:
        super().__init__()
        self._stream = stream

    def show(self, note: Notification) -> None:
        stream = self._stream or (sys.stderr if note.level == "error" else sys.stdout)
        print(f"{self._ICONS.get(note.level, '')} {note.message}", file=stream)
