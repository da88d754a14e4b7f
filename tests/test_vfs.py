from __future__ import annotations

import pytest

from hackeros.core.vfs import VirtualFilesystem
from hackeros.model.fs import FileNode, FsError, FsErrorCode


def _code(excinfo: pytest.ExceptionInfo[FsError]) -> FsErrorCode:
    return excinfo.value.code


@pytest.mark.parametrize("path", ["/a", "/a/b", "rel", "/tmp/deep"])
def test_create_directory_then_exists(empty_fs: VirtualFilesystem, path: str) -> None:
    empty_fs.create_directory("/tmp")
    empty_fs.create_directory("/a")
    if path == "/a":
        assert empty_fs.is_directory("/a")
    else:
        empty_fs.create_directory(path)
    assert empty_fs.exists(path)
    assert empty_fs.is_directory(path)
    with pytest.raises(FsError) as excinfo:
        empty_fs.create_directory(path)
    assert _code(excinfo) == FsErrorCode.ALREADY_EXISTS


def test_create_directory_requires_parent(empty_fs: VirtualFilesystem) -> None:
    with pytest.raises(FsError) as excinfo:
        empty_fs.create_directory("/x/y/z")
    assert _code(excinfo) == FsErrorCode.NO_SUCH_PARENT
    empty_fs.create_directory("/x/y/z", recursive=True)
    assert empty_fs.is_directory("/x/y")
    # recursive on an existing chain is a no-op
    empty_fs.create_directory("/x/y/z", recursive=True)


def test_root_already_exists(empty_fs: VirtualFilesystem) -> None:
    with pytest.raises(FsError) as excinfo:
        empty_fs.create_directory("/")
    assert _code(excinfo) == FsErrorCode.ALREADY_EXISTS


@pytest.mark.parametrize("content", ["", "hello", "line one\nline two\n", "tabs\tand 'quotes'"])
def test_write_read_roundtrip(empty_fs: VirtualFilesystem, content: str) -> None:
    empty_fs.create_file("/f.txt", "old")
    empty_fs.write_file("/f.txt", content)
    assert empty_fs.read_file("/f.txt") == content


def test_write_file_requires_existing_file(empty_fs: VirtualFilesystem) -> None:
    with pytest.raises(FsError) as excinfo:
        empty_fs.write_file("/missing.txt", "x")
    assert _code(excinfo) == FsErrorCode.NOT_FOUND
    empty_fs.create_directory("/d")
    with pytest.raises(FsError) as excinfo:
        empty_fs.write_file("/d", "x")
    assert _code(excinfo) == FsErrorCode.IS_A_DIRECTORY


def test_create_file_errors(empty_fs: VirtualFilesystem) -> None:
    empty_fs.create_file("/a.txt")
    with pytest.raises(FsError) as excinfo:
        empty_fs.create_file("/a.txt")
    assert _code(excinfo) == FsErrorCode.ALREADY_EXISTS
    with pytest.raises(FsError) as excinfo:
        empty_fs.create_file("/nope/a.txt")
    assert _code(excinfo) == FsErrorCode.NO_SUCH_PARENT
    with pytest.raises(FsError) as excinfo:
        empty_fs.create_file("/a.txt/b.txt")
    assert _code(excinfo) == FsErrorCode.NOT_A_DIRECTORY


def test_list_is_alphabetical_and_hides_dotfiles(fs: VirtualFilesystem) -> None:
    names = [e.name for e in fs.list("~")]
    assert names == sorted(names)
    assert ".bashrc" not in names
    assert ".bashrc" in [e.name for e in fs.list("~", show_hidden=True)]
    assert [e.name for e in fs.list("~")] == names


def test_list_of_a_file_fails(fs: VirtualFilesystem) -> None:
    with pytest.raises(FsError) as excinfo:
        fs.list("/etc/hosts")
    assert _code(excinfo) == FsErrorCode.NOT_A_DIRECTORY
    with pytest.raises(FsError) as excinfo:
        fs.list("/nowhere")
    assert _code(excinfo) == FsErrorCode.NOT_FOUND


def test_long_format_entry(fs: VirtualFilesystem) -> None:
    entry = fs.entry("/etc/hosts", long_format=True)
    line = str(entry)
    assert line.startswith("-rw-r--r-- 1 root")
    assert line.endswith(" hosts")
    directory = fs.entry("/etc", long_format=True)
    assert str(directory).startswith("drwxr-xr-x")
    assert directory.size == 4096


def test_remove_semantics(empty_fs: VirtualFilesystem) -> None:
    empty_fs.create_directory("/d")
    empty_fs.create_file("/d/f")
    with pytest.raises(FsError) as excinfo:
        empty_fs.remove("/d")
    assert _code(excinfo) == FsErrorCode.NOT_EMPTY
    empty_fs.remove("/d", recursive=True)
    assert not empty_fs.exists("/d")

    with pytest.raises(FsError) as excinfo:
        empty_fs.remove("/nonexistent")
    assert _code(excinfo) == FsErrorCode.NOT_FOUND
    empty_fs.remove("/nonexistent", force=True)

    empty_fs.create_directory("/empty")
    empty_fs.remove("/empty")
    assert not empty_fs.exists("/empty")


def test_remove_root_is_refused(empty_fs: VirtualFilesystem) -> None:
    with pytest.raises(FsError) as excinfo:
        empty_fs.remove("/", recursive=True, force=True)
    assert _code(excinfo) == FsErrorCode.INVALID_ARGUMENT


def test_remove_current_directory_moves_cwd_up(empty_fs: VirtualFilesystem) -> None:
    empty_fs.create_directory("/a/b", recursive=True)
    empty_fs.change_current_path("/a/b")
    empty_fs.remove("/a/b")
    assert empty_fs.current_path == "/a"


def test_copy_and_move(empty_fs: VirtualFilesystem) -> None:
    empty_fs.create_file("/src.txt", "data")
    assert empty_fs.copy("/src.txt", "/dst.txt") == "/dst.txt"
    assert empty_fs.read_file("/dst.txt") == "data"
    assert empty_fs.read_file("/src.txt") == "data"

    empty_fs.create_directory("/dir")
    assert empty_fs.move("/dst.txt", "/dir") == "/dir/dst.txt"
    assert not empty_fs.exists("/dst.txt")
    assert empty_fs.read_file("/dir/dst.txt") == "data"

    with pytest.raises(FsError) as excinfo:
        empty_fs.move("/missing", "/x")
    assert _code(excinfo) == FsErrorCode.NOT_FOUND


def test_copy_directory_needs_recursive(empty_fs: VirtualFilesystem) -> None:
    empty_fs.create_directory("/d/sub", recursive=True)
    empty_fs.create_file("/d/sub/f", "x")
    with pytest.raises(FsError) as excinfo:
        empty_fs.copy("/d", "/e")
    assert _code(excinfo) == FsErrorCode.IS_A_DIRECTORY
    empty_fs.copy("/d", "/e", recursive=True)
    assert empty_fs.read_file("/e/sub/f") == "x"
    # the copy is independent of the source
    empty_fs.write_file("/e/sub/f", "changed")
    assert empty_fs.read_file("/d/sub/f") == "x"


def test_copy_directory_into_itself_is_refused(empty_fs: VirtualFilesystem) -> None:
    empty_fs.create_directory("/d")
    with pytest.raises(FsError) as excinfo:
        empty_fs.copy("/d", "/d/inner", recursive=True)
    assert _code(excinfo) == FsErrorCode.INVALID_ARGUMENT
    with pytest.raises(FsError) as excinfo:
        empty_fs.move("/d", "/d/inner")
    assert _code(excinfo) == FsErrorCode.INVALID_ARGUMENT


def test_move_updates_cwd(empty_fs: VirtualFilesystem) -> None:
    empty_fs.create_directory("/old/inner", recursive=True)
    empty_fs.change_current_path("/old/inner")
    empty_fs.move("/old", "/new")
    assert empty_fs.current_path == "/new/inner"


def test_change_current_path(fs: VirtualFilesystem) -> None:
    assert fs.current_path == "/home/user"
    fs.change_current_path("documents")
    assert fs.current_path == "/home/user/documents"
    with pytest.raises(FsError) as excinfo:
        fs.change_current_path("welcome.txt")
    assert _code(excinfo) == FsErrorCode.NOT_A_DIRECTORY
    assert fs.current_path == "/home/user/documents"


def test_find_is_lazy_and_restartable(fs: VirtualFilesystem) -> None:
    results = fs.find("/home/user", lambda p, n: isinstance(n, FileNode) and p.endswith(".txt"))
    first = next(results)
    assert first == "/home/user/documents/welcome.txt"
    again = list(fs.find("/home/user", lambda p, n: isinstance(n, FileNode) and p.endswith(".txt")))
    assert again == ["/home/user/documents/welcome.txt", "/home/user/wifi/wordlist.txt"]
    with pytest.raises(FsError):
        fs.find("/missing")


def test_chmod_and_chown(fs: VirtualFilesystem) -> None:
    fs.create_file("~/scan.sh", "#!/bin/sh\n")
    assert fs.change_permissions("~/scan.sh", "u+x") == "rwxr--r--"
    assert fs.is_executable("~/scan.sh")
    fs.change_owner("~/scan.sh", "root:wheel")
    entry = fs.entry("~/scan.sh")
    assert (entry.owner, entry.group) == ("root", "wheel")
    with pytest.raises(FsError) as excinfo:
        fs.change_permissions("~/scan.sh", "bogus")
    assert _code(excinfo) == FsErrorCode.INVALID_ARGUMENT


def test_write_journal(empty_fs: VirtualFilesystem) -> None:
    empty_fs.create_file("/a", "1")
    empty_fs.append_file("/a", "2")
    assert empty_fs.drain_writes() == [("/a", "1"), ("/a", "12")]
    assert empty_fs.drain_writes() == []


def test_snapshot_restore(fs: VirtualFilesystem) -> None:
    fs.create_file("~/notes.txt", "remember")
    fs.change_permissions("~/notes.txt", "600")
    fs.change_current_path("/etc")
    data = fs.snapshot()

    other = VirtualFilesystem()
    other.restore(data)
    assert other.read_file("/home/user/notes.txt") == "remember"
    assert other.entry("/home/user/notes.txt").permissions == "rw-------"
    assert other.current_path == "/etc"
    assert other.is_executable("/bin/ls")
