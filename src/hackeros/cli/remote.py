from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from hackeros.cli.modes import NormalMode, RemoteSessionMode, RemoteSessionPasswordMode
from hackeros.cli.output import COLOR_DIR, COLOR_OK
from hackeros.model.fs import FsError, normalize_path, split_path

if TYPE_CHECKING:
    from hackeros.cli.session import SessionInterpreter

log = logging.getLogger(__name__)

DEFAULT_HOST = "ftp.corp.local"

# Canned remote tree: directory -> entries (a trailing "/" marks a directory).
REMOTE_TREE: dict[str, list[str]] = {
    "/": ["incoming/", "pub/", "welcome.msg"],
    "/pub": ["backup.tar.gz", "credentials.bak", "readme.txt"],
    "/incoming": [],
}

REMOTE_FILES: dict[str, str] = {
    "/welcome.msg": "Welcome to the CORP file server.\nUnauthorized access is prohibited.\n",
    "/pub/readme.txt": "Public files. Backups are rotated every Friday.\n",
    "/pub/backup.tar.gz": "[binary archive: corp-www-backup]\n",
    "/pub/credentials.bak": "# legacy service accounts\nbackup:Summer2019!\nprinter:printer\n",
}

HELP_TEXT = [
    "Commands may be abbreviated.  Commands are:",
    "  open [host] [user]   ls / dir   cd <dir>   pwd",
    "  get <remote> [local]   put <local> [remote]",
    "  close   quit / bye / exit   help / ?",
]


class RemoteShell:
    """FTP-style sub-machine over a canned remote tree."""

    def __init__(self, session: SessionInterpreter) -> None:
        self.session = session

    def connect(self, host: str | None) -> None:
        mode = RemoteSessionMode()
        self.session.set_mode(mode)
        if host:
            self._open(mode, [host])

    def handle(self, mode: RemoteSessionMode, line: str) -> None:
        parts = line.split()
        name, args = parts[0].lower(), parts[1:]
        if name in ("quit", "bye", "exit"):
            if mode.host:
                self.session.out("221 Goodbye.")
            self.session.set_mode(NormalMode())
            return
        if name in ("help", "?"):
            for text in HELP_TEXT:
                self.session.out(text)
            return
        if name == "open":
            self._open(mode, args)
            return
        if name == "close":
            self._close(mode)
            return
        if name not in ("ls", "dir", "cd", "pwd", "get", "put"):
            self.session.err("?Invalid command.")
            return
        if mode.host is None:
            self.session.err("Not connected.")
            return
        if not mode.authenticated:
            self.session.err("530 Please login with USER and PASS.")
            return
        getattr(self, f"_{'ls' if name == 'dir' else name}")(mode, args)

    def authenticate(self, mode: RemoteSessionPasswordMode, raw: str) -> None:
        remote = mode.session
        remote.authenticated = True
        log.debug("ftp login %s@%s", remote.user, remote.host)
        self.session.out("230 Login successful.", color=COLOR_OK)
        self.session.out("Remote system type is UNIX.")
        self.session.set_mode(remote)

    # --- connection ---

    def _open(self, mode: RemoteSessionMode, args: list[str]) -> None:
        if mode.host is not None:
            self.session.err(f"Already connected to {mode.host}, use close first.")
            return
        host = args[0] if args else DEFAULT_HOST
        mode.host = host
        mode.user = args[1] if len(args) > 1 else "anonymous"
        mode.cwd = "/"
        self.session.out(f"Connected to {host}.")
        self.session.out("220 (vsFTPd 3.0.3)")
        self.session.out(f"Name ({host}:{self.session.env.get('USER', 'user')}): {mode.user}")
        self.session.out("331 Please specify the password.")
        self.session.set_mode(RemoteSessionPasswordMode(session=mode))

    def _close(self, mode: RemoteSessionMode) -> None:
        if mode.host is None:
            self.session.err("Not connected.")
            return
        mode.host = None
        mode.authenticated = False
        self.session.out("221 Goodbye.")

    # --- navigation ---

    def _remote_path(self, mode: RemoteSessionMode, path: str) -> str:
        if not path.startswith("/"):
            path = f"{mode.cwd.rstrip('/')}/{path}"
        return normalize_path(path)

    def _entries(self, mode: RemoteSessionMode) -> list[str]:
        entries = list(REMOTE_TREE.get(mode.cwd, []))
        prefix = mode.cwd.rstrip("/") + "/"
        for path in mode.uploads:
            parent, name = split_path(path)
            if parent.rstrip("/") + "/" == prefix and name not in entries:
                entries.append(name)
        return sorted(entries)

    def _ls(self, mode: RemoteSessionMode, args: list[str]) -> None:
        self.session.out("200 PORT command successful.")
        self.session.out("150 Here comes the directory listing.")
        for entry in self._entries(mode):
            is_dir = entry.endswith("/")
            name = entry.rstrip("/")
            path = self._remote_path(mode, name)
            size = 4096 if is_dir else len(REMOTE_FILES.get(path, mode.uploads.get(path, "")))
            perms = "drwxr-xr-x" if is_dir else "-rw-r--r--"
            self.session.out(f"{perms}    2 ftp      ftp      {size:>8} Mar 22 11:24 {name}", color=COLOR_DIR if is_dir else None)
        self.session.out("226 Directory send OK.")

    def _cd(self, mode: RemoteSessionMode, args: list[str]) -> None:
        target = self._remote_path(mode, args[0] if args else "/")
        if target not in REMOTE_TREE:
            self.session.err("550 Failed to change directory.")
            return
        mode.cwd = target
        self.session.out("250 Directory successfully changed.")

    def _pwd(self, mode: RemoteSessionMode, args: list[str]) -> None:
        self.session.out(f'257 "{mode.cwd}" is the current directory')

    # --- transfers ---

    def _get(self, mode: RemoteSessionMode, args: list[str]) -> None:
        if not args:
            self.session.err("usage: get remote-file [local-file]")
            return
        remote = self._remote_path(mode, args[0])
        content = REMOTE_FILES.get(remote, mode.uploads.get(remote))
        if content is None:
            self.session.err("550 Failed to open file.")
            return
        local = args[1] if len(args) > 1 else split_path(remote)[1]
        fs = self.session.fs
        try:
            if fs.is_file(local):
                fs.write_file(local, content)
            else:
                fs.create_file(local, content)
        except FsError as e:
            self.session.err(f"local: {e.message}")
            return
        self.session.out(f"150 Opening BINARY mode data connection for {split_path(remote)[1]} ({len(content)} bytes).")
        self.session.out("226 Transfer complete.")
        self.session.out(f"{len(content)} bytes received")

    def _put(self, mode: RemoteSessionMode, args: list[str]) -> None:
        if not args:
            self.session.err("usage: put local-file [remote-file]")
            return
        try:
            content = self.session.fs.read_file(args[0])
        except FsError as e:
            self.session.err(f"local: {e.message}")
            return
        remote = self._remote_path(mode, args[1] if len(args) > 1 else split_path(self.session.fs.resolve(args[0]))[1])
        if split_path(remote)[0] not in REMOTE_TREE:
            self.session.err("553 Could not create file.")
            return
        mode.uploads[remote] = content
        self.session.out("150 Ok to send data.")
        self.session.out("226 Transfer complete.")
        self.session.out(f"{len(content)} bytes sent")
