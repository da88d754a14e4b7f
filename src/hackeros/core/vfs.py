from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Iterator

from hackeros.config.balance import Balance
from hackeros.model.fs import (
    DirEntry,
    DirectoryNode,
    FileNode,
    FsError,
    FsErrorCode,
    FsNode,
    is_executable_node,
    is_within,
    join_path,
    parse_mode,
    resolve_path,
    split_path,
)

log = logging.getLogger(__name__)

FindPredicate = Callable[[str, FsNode], bool]


class VirtualFilesystem:
    """In-memory directory tree with a current working directory.

    Every query and mutator accepts absolute, '~'-relative or cwd-relative paths.
    Failures raise FsError; nothing here writes output.
    """

    def __init__(self, home: str = Balance.HOME, user: str = Balance.USER) -> None:
        self.home = home
        self.user = user
        self.root = DirectoryNode(name="", owner="root", group="root")
        self._cwd = "/"
        # (path, content) of every file written since the last drain
        self._writes: list[tuple[str, str]] = []

    # --- lookup ---

    @property
    def current_path(self) -> str:
        return self._cwd

    def resolve(self, path: str) -> str:
        return resolve_path(path, self._cwd, self.home)

    def _walk(self, abs_path: str) -> FsNode:
        node: FsNode = self.root
        if abs_path == "/":
            return node
        walked = ""
        for part in abs_path[1:].split("/"):
            if not isinstance(node, DirectoryNode):
                raise FsError(FsErrorCode.NOT_A_DIRECTORY, walked)
            walked += "/" + part
            child = node.children.get(part)
            if child is None:
                raise FsError(FsErrorCode.NOT_FOUND, abs_path)
            node = child
        return node

    def _lookup(self, abs_path: str) -> FsNode | None:
        try:
            return self._walk(abs_path)
        except FsError:
            return None

    def _parent_of(self, abs_path: str) -> tuple[DirectoryNode, str]:
        parent_path, name = split_path(abs_path)
        parent = self._lookup(parent_path)
        if parent is None:
            raise FsError(FsErrorCode.NO_SUCH_PARENT, abs_path)
        if not isinstance(parent, DirectoryNode):
            raise FsError(FsErrorCode.NOT_A_DIRECTORY, parent_path)
        return parent, name

    def _file(self, abs_path: str) -> FileNode:
        node = self._walk(abs_path)
        if not isinstance(node, FileNode):
            raise FsError(FsErrorCode.IS_A_DIRECTORY, abs_path)
        return node

    def exists(self, path: str) -> bool:
        return self._lookup(self.resolve(path)) is not None

    def is_directory(self, path: str) -> bool:
        return isinstance(self._lookup(self.resolve(path)), DirectoryNode)

    def is_file(self, path: str) -> bool:
        return isinstance(self._lookup(self.resolve(path)), FileNode)

    def is_executable(self, path: str) -> bool:
        node = self._lookup(self.resolve(path))
        return node is not None and is_executable_node(node)

    def entry(self, path: str, long_format: bool = False) -> DirEntry:
        abs_path = self.resolve(path)
        node = self._walk(abs_path)
        name = "/" if abs_path == "/" else None
        return DirEntry.from_node(node, name=name, long_format=long_format)

    def list(self, path: str = ".", show_hidden: bool = False, long_format: bool = False) -> list[DirEntry]:
        abs_path = self.resolve(path)
        node = self._walk(abs_path)
        if not isinstance(node, DirectoryNode):
            raise FsError(FsErrorCode.NOT_A_DIRECTORY, abs_path)
        entries = []
        for name in sorted(node.children):
            if name.startswith(".") and not show_hidden:
                continue
            entries.append(DirEntry.from_node(node.children[name], long_format=long_format))
        return entries

    # --- creation and content ---

    def create_directory(self, path: str, recursive: bool = False) -> None:
        abs_path = self.resolve(path)
        if recursive:
            node = self.root
            walked = ""
            for part in [p for p in abs_path.split("/") if p]:
                walked += "/" + part
                child = node.children.get(part)
                if child is None:
                    child = DirectoryNode(name=part, owner=self.user, group=self.user)
                    node.children[part] = child
                    log.debug("mkdir %s", walked)
                elif not isinstance(child, DirectoryNode):
                    code = FsErrorCode.ALREADY_EXISTS if walked == abs_path else FsErrorCode.NOT_A_DIRECTORY
                    raise FsError(code, walked)
                node = child
            return
        if abs_path == "/":
            raise FsError(FsErrorCode.ALREADY_EXISTS, abs_path)
        parent, name = self._parent_of(abs_path)
        if name in parent.children:
            raise FsError(FsErrorCode.ALREADY_EXISTS, abs_path)
        parent.children[name] = DirectoryNode(name=name, owner=self.user, group=self.user)
        log.debug("mkdir %s", abs_path)

    def create_file(self, path: str, content: str = "") -> None:
        abs_path = self.resolve(path)
        if abs_path == "/":
            raise FsError(FsErrorCode.ALREADY_EXISTS, abs_path)
        parent, name = self._parent_of(abs_path)
        if name in parent.children:
            raise FsError(FsErrorCode.ALREADY_EXISTS, abs_path)
        parent.children[name] = FileNode(name=name, content=content, owner=self.user, group=self.user)
        self._writes.append((abs_path, content))

    def read_file(self, path: str) -> str:
        return self._file(self.resolve(path)).content

    def write_file(self, path: str, content: str) -> None:
        abs_path = self.resolve(path)
        node = self._file(abs_path)
        node.content = content
        node.modified_at = datetime.now()
        self._writes.append((abs_path, content))

    def append_file(self, path: str, content: str) -> None:
        abs_path = self.resolve(path)
        node = self._file(abs_path)
        self.write_file(abs_path, node.content + content)

    def touch(self, path: str) -> None:
        abs_path = self.resolve(path)
        node = self._lookup(abs_path)
        if node is None:
            self.create_file(abs_path)
            return
        node.modified_at = datetime.now()

    def drain_writes(self) -> list[tuple[str, str]]:
        writes = list(self._writes)
        self._writes.clear()
        return writes

    # --- removal, copy, move ---

    def remove(self, path: str, recursive: bool = False, force: bool = False) -> None:
        abs_path = self.resolve(path)
        if abs_path == "/":
            raise FsError(FsErrorCode.INVALID_ARGUMENT, "/", "refusing to remove root directory")
        node = self._lookup(abs_path)
        if node is None:
            if force:
                return
            raise FsError(FsErrorCode.NOT_FOUND, abs_path)
        if isinstance(node, DirectoryNode) and node.children and not recursive:
            raise FsError(FsErrorCode.NOT_EMPTY, abs_path)
        parent, name = self._parent_of(abs_path)
        del parent.children[name]
        log.debug("rm %s", abs_path)
        if is_within(self._cwd, abs_path):
            self._cwd = split_path(abs_path)[0]

    def _target_path(self, src_abs: str, dst: str) -> str:
        dst_abs = self.resolve(dst)
        if isinstance(self._lookup(dst_abs), DirectoryNode):
            return join_path(dst_abs, split_path(src_abs)[1])
        return dst_abs

    def copy(self, src: str, dst: str, recursive: bool = False) -> str:
        src_abs = self.resolve(src)
        node = self._walk(src_abs)
        if isinstance(node, DirectoryNode) and not recursive:
            raise FsError(FsErrorCode.IS_A_DIRECTORY, src_abs, "-r not specified; omitting directory")
        dst_abs = self._target_path(src_abs, dst)
        if isinstance(node, DirectoryNode) and is_within(dst_abs, src_abs):
            raise FsError(FsErrorCode.INVALID_ARGUMENT, dst_abs, "cannot copy a directory into itself")
        parent, name = self._parent_of(dst_abs)
        if name in parent.children:
            raise FsError(FsErrorCode.ALREADY_EXISTS, dst_abs)
        clone = _clone(node, name)
        parent.children[name] = clone
        self._journal_tree(dst_abs, clone)
        log.debug("cp %s -> %s", src_abs, dst_abs)
        return dst_abs

    def move(self, src: str, dst: str) -> str:
        src_abs = self.resolve(src)
        if src_abs == "/":
            raise FsError(FsErrorCode.INVALID_ARGUMENT, "/", "cannot move root directory")
        node = self._walk(src_abs)
        dst_abs = self._target_path(src_abs, dst)
        if dst_abs == src_abs:
            raise FsError(FsErrorCode.INVALID_ARGUMENT, dst_abs, "source and destination are the same")
        if isinstance(node, DirectoryNode) and is_within(dst_abs, src_abs):
            raise FsError(FsErrorCode.INVALID_ARGUMENT, dst_abs, "cannot move a directory into itself")
        parent, name = self._parent_of(dst_abs)
        if name in parent.children:
            raise FsError(FsErrorCode.ALREADY_EXISTS, dst_abs)
        old_parent, old_name = self._parent_of(src_abs)
        del old_parent.children[old_name]
        node.name = name
        parent.children[name] = node
        if is_within(self._cwd, src_abs):
            self._cwd = dst_abs + self._cwd[len(src_abs):]
        self._journal_tree(dst_abs, node)
        log.debug("mv %s -> %s", src_abs, dst_abs)
        return dst_abs

    def _journal_tree(self, path: str, node: FsNode) -> None:
        for sub_path, sub_node in _iter_tree(path, node):
            if isinstance(sub_node, FileNode):
                self._writes.append((sub_path, sub_node.content))

    # --- metadata ---

    def change_permissions(self, path: str, mode: str) -> str:
        abs_path = self.resolve(path)
        node = self._walk(abs_path)
        try:
            node.permissions = parse_mode(mode, node.permissions)
        except ValueError as e:
            raise FsError(FsErrorCode.INVALID_ARGUMENT, "", str(e)) from e
        return node.permissions

    def change_owner(self, path: str, owner: str) -> None:
        abs_path = self.resolve(path)
        node = self._walk(abs_path)
        user, _, group = owner.partition(":")
        if not user and not group:
            raise FsError(FsErrorCode.INVALID_ARGUMENT, "", f"invalid user: '{owner}'")
        if user:
            node.owner = user
        if group:
            node.group = group

    def change_current_path(self, path: str) -> str:
        abs_path = self.resolve(path)
        node = self._walk(abs_path)
        if not isinstance(node, DirectoryNode):
            raise FsError(FsErrorCode.NOT_A_DIRECTORY, abs_path)
        self._cwd = abs_path
        log.debug("cd -> %r", abs_path)
        return abs_path

    # --- traversal ---

    def find(self, path: str = ".", predicate: FindPredicate | None = None) -> Iterator[str]:
        start = self.resolve(path)
        node = self._walk(start)
        return (p for p, n in _iter_tree(start, node) if predicate is None or predicate(p, n))

    def disk_usage(self) -> int:
        return sum(n.size for _, n in _iter_tree("/", self.root) if isinstance(n, FileNode))

    # --- persistence ---

    def snapshot(self) -> dict[str, Any]:
        return {"cwd": self._cwd, "root": _node_to_dict(self.root)}

    def restore(self, data: dict[str, Any]) -> None:
        root = _node_from_dict(data["root"])
        if not isinstance(root, DirectoryNode):
            raise ValueError("filesystem snapshot root must be a directory")
        root.name = ""
        self.root = root
        self._writes.clear()
        cwd = data.get("cwd", self.home)
        if not isinstance(self._lookup(cwd), DirectoryNode):
            cwd = self.home if isinstance(self._lookup(self.home), DirectoryNode) else "/"
        self._cwd = cwd


def _iter_tree(path: str, node: FsNode) -> Iterator[tuple[str, FsNode]]:
    yield path, node
    if isinstance(node, DirectoryNode):
        for name in sorted(node.children):
            child = node.children.get(name)
            if child is not None:
                yield from _iter_tree(join_path(path, name), child)


def _clone(node: FsNode, name: str) -> FsNode:
    if isinstance(node, FileNode):
        return FileNode(
            name=name,
            content=node.content,
            permissions=node.permissions,
            owner=node.owner,
            group=node.group,
        )
    return DirectoryNode(
        name=name,
        children={k: _clone(v, k) for k, v in node.children.items()},
        permissions=node.permissions,
        owner=node.owner,
        group=node.group,
    )


def _node_to_dict(node: FsNode) -> dict[str, Any]:
    data: dict[str, Any] = {
        "type": node.kind.value,
        "name": node.name,
        "permissions": node.permissions,
        "owner": node.owner,
        "group": node.group,
        "modified_at": node.modified_at.isoformat(),
    }
    if isinstance(node, FileNode):
        data["content"] = node.content
    else:
        data["children"] = [_node_to_dict(c) for c in node.children.values()]
    return data


def _node_from_dict(data: dict[str, Any]) -> FsNode:
    is_dir = data.get("type") == "dir"
    default_perms = Balance.DEFAULT_DIR_PERMS if is_dir else Balance.DEFAULT_FILE_PERMS
    common: dict[str, Any] = {
        "name": data["name"],
        "permissions": data.get("permissions", default_perms),
        "owner": data.get("owner", Balance.USER),
        "group": data.get("group", Balance.USER),
    }
    if "modified_at" in data:
        common["modified_at"] = datetime.fromisoformat(data["modified_at"])
    if is_dir:
        children = [_node_from_dict(c) for c in data.get("children", [])]
        return DirectoryNode(children={c.name: c for c in children}, **common)
    return FileNode(content=data.get("content", ""), **common)
