"""Editor-facing seams: the buffer sink and the notifier.

The host editor implements these; the in-memory versions back the CLI and
the tests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol

from ..render.marshal import Annotation

logger = logging.getLogger(__name__)

INFO = "info"
WARNING = "warning"
ERROR = "error"


class BufferSink(Protocol):
    def replace(self, handle: int, lines: list[str], annotations: list[Annotation]) -> None:
        """Atomically replace the whole buffer for tree ``handle``."""
        ...

    def set_visible(self, handle: int, visible: bool) -> None:
        ...

    def discard(self, handle: int) -> None:
        """Drop the buffer of a closed tree."""
        ...


class Notifier(Protocol):
    def notify(self, message: str, level: str = INFO) -> None:
        ...


@dataclass
class MemoryBuffer:
    """Snapshot of one tree's committed buffer."""

    lines: list[str] = field(default_factory=list)
    annotations: dict[int, str] = field(default_factory=dict)
    visible: bool = True
    writes: int = 0

    def text(self) -> str:
        """Join lines, appending annotations after two spaces."""
        out: list[str] = []
        for number, line in enumerate(self.lines, start=1):
            detail = self.annotations.get(number)
            out.append(f"{line}  {detail}" if detail else line)
        return "\n".join(out)


class MemorySink:
    """Keep one ``MemoryBuffer`` per tree handle."""

    def __init__(self) -> None:
        self.buffers: dict[int, MemoryBuffer] = {}

    def replace(self, handle: int, lines: list[str], annotations: list[Annotation]) -> None:
        buffer = self.buffers.setdefault(handle, MemoryBuffer())
        buffer.lines = list(lines)
        buffer.annotations = {annotation.line: annotation.text for annotation in annotations}
        buffer.writes += 1

    def set_visible(self, handle: int, visible: bool) -> None:
        self.buffers.setdefault(handle, MemoryBuffer()).visible = bool(visible)

    def discard(self, handle: int) -> None:
        self.buffers.pop(handle, None)


class LogNotifier:
    """Route notifications to ``logging`` and keep the most recent ones."""

    _LEVELS = {INFO: logging.INFO, WARNING: logging.WARNING, ERROR: logging.ERROR}

    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def notify(self, message: str, level: str = INFO) -> None:
        self.messages.append((level, message))
        logger.log(self._LEVELS.get(level, logging.INFO), "%s", message)


__all__ = [
    "INFO",
    "WARNING",
    "ERROR",
    "BufferSink",
    "Notifier",
    "MemoryBuffer",
    "MemorySink",
    "LogNotifier",
]
