from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

COLOR_OK = "green"
COLOR_INFO = "cyan"
COLOR_WARN = "yellow"
COLOR_MILESTONE = "magenta"
COLOR_DIR = "blue"


@dataclass(slots=True)
class OutputLine:
    text: str
    is_error: bool = False
    color: str | None = None
    clear: bool = False


class OutputSink(Protocol):
    def emit(self, text: str, is_error: bool = False, color: str | None = None) -> None: ...

    def clear(self) -> None: ...


class ListSink:
    """Collects emitted lines; handy for tests and headless runs."""

    def __init__(self) -> None:
        self.lines: list[OutputLine] = []

    def emit(self, text: str, is_error: bool = False, color: str | None = None) -> None:
        self.lines.append(OutputLine(text, is_error=is_error, color=color))

    def clear(self) -> None:
        self.lines.clear()

    @property
    def text(self) -> str:
        return "\n".join(line.text for line in self.lines)
