from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class EditorAction(str, Enum):
    NONE = "none"
    SAVE = "save"
    SAVE_EXIT = "save_exit"
    EXIT = "exit"


KEY_ACTIONS = {
    "ctrl+o": EditorAction.SAVE,
    "ctrl+s": EditorAction.SAVE,
    "ctrl+x": EditorAction.SAVE_EXIT,
    "ctrl+q": EditorAction.EXIT,
}

LINE_ACTIONS = {
    "save": EditorAction.SAVE,
    "w": EditorAction.SAVE,
    "x": EditorAction.SAVE_EXIT,
    "saveexit": EditorAction.SAVE_EXIT,
    "exit": EditorAction.EXIT,
    "quit": EditorAction.EXIT,
}

HELP_LINES = [
    "^O Save   ^X Save & Exit   ^Q Exit without saving",
    "Line mode: save | x (save and exit) | exit (discard changes)",
    "Any other line replaces the whole buffer (\\n starts a new line)",
]


@dataclass(slots=True)
class EditorBuffer:
    """Text being edited, addressed by (row, col)."""

    lines: list[str] = field(default_factory=lambda: [""])
    row: int = 0
    col: int = 0
    dirty: bool = False

    @classmethod
    def from_text(cls, text: str) -> EditorBuffer:
        return cls(lines=text.split("\n"))

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    def _clamp_col(self) -> None:
        self.col = min(self.col, len(self.lines[self.row]))

    # --- cursor ---

    def move_left(self) -> None:
        if self.col > 0:
            self.col -= 1
        elif self.row > 0:
            self.row -= 1
            self.col = len(self.lines[self.row])

    def move_right(self) -> None:
        if self.col < len(self.lines[self.row]):
            self.col += 1
        elif self.row < len(self.lines) - 1:
            self.row += 1
            self.col = 0

    def move_up(self) -> None:
        if self.row > 0:
            self.row -= 1
            self._clamp_col()

    def move_down(self) -> None:
        if self.row < len(self.lines) - 1:
            self.row += 1
            self._clamp_col()

    def move_home(self) -> None:
        self.col = 0

    def move_end(self) -> None:
        self.col = len(self.lines[self.row])

    # --- edits ---

    def insert(self, text: str) -> None:
        for ch in text:
            if ch == "\n":
                self.split_line()
                continue
            line = self.lines[self.row]
            self.lines[self.row] = line[:self.col] + ch + line[self.col:]
            self.col += 1
        self.dirty = True

    def split_line(self) -> None:
        line = self.lines[self.row]
        self.lines[self.row] = line[:self.col]
        self.lines.insert(self.row + 1, line[self.col:])
        self.row += 1
        self.col = 0
        self.dirty = True

    def backspace(self) -> None:
        if self.col > 0:
            line = self.lines[self.row]
            self.lines[self.row] = line[:self.col - 1] + line[self.col:]
            self.col -= 1
        elif self.row > 0:
            prev = self.lines[self.row - 1]
            self.lines[self.row - 1] = prev + self.lines.pop(self.row)
            self.row -= 1
            self.col = len(prev)
        else:
            return
        self.dirty = True

    def delete(self) -> None:
        line = self.lines[self.row]
        if self.col < len(line):
            self.lines[self.row] = line[:self.col] + line[self.col + 1:]
        elif self.row < len(self.lines) - 1:
            self.lines[self.row] = line + self.lines.pop(self.row + 1)
        else:
            return
        self.dirty = True

    def replace(self, text: str) -> None:
        self.lines = text.split("\n")
        self.row = len(self.lines) - 1
        self.col = len(self.lines[-1])
        self.dirty = True

    # --- input ---

    def handle_key(self, key: str) -> EditorAction:
        if key in KEY_ACTIONS:
            return KEY_ACTIONS[key]
        moves = {
            "left": self.move_left,
            "right": self.move_right,
            "up": self.move_up,
            "down": self.move_down,
            "home": self.move_home,
            "end": self.move_end,
            "backspace": self.backspace,
            "delete": self.delete,
            "enter": self.split_line,
        }
        if key in moves:
            moves[key]()
        elif key == "space":
            self.insert(" ")
        elif key == "tab":
            self.insert("    ")
        elif len(key) == 1 and key.isprintable():
            self.insert(key)
        return EditorAction.NONE

    def handle_line(self, line: str) -> EditorAction:
        command = line.strip()
        if command in LINE_ACTIONS:
            return LINE_ACTIONS[command]
        self.replace(line.replace("\\n", "\n"))
        return EditorAction.NONE

    def render(self) -> list[str]:
        out = []
        for i, line in enumerate(self.lines):
            marker = ">" if i == self.row else " "
            out.append(f"{marker}{i + 1:>4} {line}")
        return out
