from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import ClassVar, Union

from hackeros.config.balance import Balance


class FsNodeKind(str, Enum):
    FILE = "file"
    DIR = "dir"


class FsErrorCode(str, Enum):
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    NOT_A_DIRECTORY = "not_a_directory"
    IS_A_DIRECTORY = "is_a_directory"
    NOT_EMPTY = "not_empty"
    NO_SUCH_PARENT = "no_such_parent"
    PERMISSION_DENIED = "permission_denied"  # reserved, permissions are not enforced
    INVALID_ARGUMENT = "invalid_argument"
    UNSUPPORTED = "unsupported"


_ERROR_TEXT = {
    FsErrorCode.NOT_FOUND: "No such file or directory",
    FsErrorCode.ALREADY_EXISTS: "File exists",
    FsErrorCode.NOT_A_DIRECTORY: "Not a directory",
    FsErrorCode.IS_A_DIRECTORY: "Is a directory",
    FsErrorCode.NOT_EMPTY: "Directory not empty",
    FsErrorCode.NO_SUCH_PARENT: "No such file or directory",
    FsErrorCode.PERMISSION_DENIED: "Permission denied",
    FsErrorCode.INVALID_ARGUMENT: "Invalid argument",
    FsErrorCode.UNSUPPORTED: "Operation not supported",
}


@dataclass(slots=True, eq=False)
class FsError(Exception):
    code: FsErrorCode
    path: str = ""
    detail: str = ""

    @property
    def reason(self) -> str:
        return self.detail or _ERROR_TEXT[self.code]

    @property
    def message(self) -> str:
        if self.path:
            return f"{self.path}: {self.reason}"
        return self.reason

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True)
class FileNode:
    kind: ClassVar[FsNodeKind] = FsNodeKind.FILE

    name: str
    content: str = ""
    permissions: str = Balance.DEFAULT_FILE_PERMS
    owner: str = Balance.USER
    group: str = Balance.USER
    modified_at: datetime = field(default_factory=datetime.now)

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(slots=True)
class DirectoryNode:
    kind: ClassVar[FsNodeKind] = FsNodeKind.DIR

    name: str
    children: dict[str, FsNode] = field(default_factory=dict)
    permissions: str = Balance.DEFAULT_DIR_PERMS
    owner: str = Balance.USER
    group: str = Balance.USER
    modified_at: datetime = field(default_factory=datetime.now)

    @property
    def size(self) -> int:
        return Balance.DIR_SIZE


FsNode = Union[FileNode, DirectoryNode]


def is_executable_node(node: FsNode) -> bool:
    if not isinstance(node, FileNode):
        return False
    return "x" in node.permissions or node.name.endswith(Balance.EXECUTABLE_SUFFIXES)


@dataclass(slots=True)
class DirEntry:
    name: str
    kind: FsNodeKind
    permissions: str
    owner: str
    group: str
    size: int
    modified_at: datetime
    executable: bool = False
    long_format: bool = False

    @classmethod
    def from_node(cls, node: FsNode, name: str | None = None, long_format: bool = False) -> DirEntry:
        return cls(
            name=node.name if name is None else name,
            kind=node.kind,
            permissions=node.permissions,
            owner=node.owner,
            group=node.group,
            size=node.size,
            modified_at=node.modified_at,
            executable=is_executable_node(node),
            long_format=long_format,
        )

    @property
    def is_dir(self) -> bool:
        return self.kind == FsNodeKind.DIR

    def display_name(self) -> str:
        if self.is_dir:
            return self.name + "/"
        if self.executable:
            return self.name + "*"
        return self.name

    def long_line(self) -> str:
        type_char = "d" if self.is_dir else "-"
        stamp = self.modified_at.strftime("%b %d %H:%M")
        return (
            f"{type_char}{self.permissions} 1 {self.owner:<6} {self.group:<6} "
            f"{self.size:>6} {stamp} {self.display_name()}"
        )

    def __str__(self) -> str:
        return self.long_line() if self.long_format else self.display_name()


def normalize_path(path: str) -> str:
    """Collapse an absolute path: drop empty and '.' parts, apply '..' (never above root)."""
    parts: list[str] = []
    for part in path.split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            if parts:
                parts.pop()
            continue
        parts.append(part)
    return "/" + "/".join(parts)


def resolve_path(path: str, cwd: str = "/", home: str = Balance.HOME) -> str:
    """Turn an absolute, '~'-relative or cwd-relative path into a canonical absolute one.

    Only a leading '~' is expanded: '~' and '~/x' refer to `home`, '~name' to /home/name.
    The result is already canonical, so resolving it again returns it unchanged.
    """
    if not path:
        return normalize_path(cwd)
    if path == "~" or path.startswith("~/"):
        path = home + path[1:]
    elif path.startswith("~"):
        path = "/home/" + path[1:]
    if not path.startswith("/"):
        path = f"{cwd}/{path}"
    return normalize_path(path)


def split_path(path: str) -> tuple[str, str]:
    if path == "/":
        return "/", ""
    parent, _, name = path.rpartition("/")
    return parent or "/", name


def join_path(parent: str, name: str) -> str:
    if parent == "/":
        return "/" + name
    return f"{parent}/{name}"


def is_within(path: str, ancestor: str) -> bool:
    if ancestor == "/":
        return True
    return path == ancestor or path.startswith(ancestor + "/")


_OCTAL_MODE = re.compile(r"^0?[0-7]{3}$")
_FULL_MODE = re.compile(r"^[r-][w-][x-][r-][w-][x-][r-][w-][x-]$")
_SYMBOLIC_CLAUSE = re.compile(r"^([ugoa]*)([+\-=])([rwx]*)$")


def _octal_to_symbolic(digits: str) -> str:
    out = []
    for digit in digits:
        value = int(digit)
        out.append(
            ("r" if value & 4 else "-")
            + ("w" if value & 2 else "-")
            + ("x" if value & 1 else "-")
        )
    return "".join(out)


def parse_mode(mode: str, current: str) -> str:
    """Apply a chmod-style mode (octal, 9-char symbolic or u+x clauses) to `current`."""
    if _OCTAL_MODE.match(mode):
        return _octal_to_symbolic(mode[-3:])
    if _FULL_MODE.match(mode):
        return mode
    triads = [list(current[i:i + 3]) for i in (0, 3, 6)]
    for clause in mode.split(","):
        m = _SYMBOLIC_CLAUSE.match(clause)
        if not m:
            raise ValueError(f"invalid mode: '{mode}'")
        who, op, what = m.groups()
        if not who or "a" in who:
            targets = [0, 1, 2]
        else:
            targets = sorted({"ugo".index(c) for c in who})
        for t in targets:
            for i, bit in enumerate("rwx"):
                if op == "=":
                    triads[t][i] = bit if bit in what else "-"
                elif bit in what:
                    triads[t][i] = bit if op == "+" else "-"
    return "".join("".join(t) for t in triads)
