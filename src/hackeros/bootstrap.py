from __future__ import annotations

from pathlib import Path

from hackeros.cli.output import OutputSink
from hackeros.cli.session import SessionInterpreter
from hackeros.config.balance import Balance
from hackeros.core.missions import MissionStore
from hackeros.core.vfs import VirtualFilesystem
from hackeros.runtime.data_loader import load_missions

WELCOME_TEXT = """Welcome to HackerOS!

This machine is your training ground. Everything here is simulated:
files, networks and the tools you will use to probe them.

Type 'help' to list commands and 'mission list' to pick your first job.
"""

BASHRC_TEXT = """# ~/.bashrc
export EDITOR=nano
alias ll='ls -l'
alias la='ls -a'
"""

WORDLIST = [
    "password", "123456", "letmein", "qwerty", "welcome1",
    "admin2022", "summer2023", "corporate2023", "dragon", "trustno1",
]

SYSLOG_TEXT = """Mar 22 11:20:01 hackeros systemd[1]: Started Session 1 of user user.
Mar 22 11:20:03 hackeros NetworkManager[512]: <info> device (wlan0): state change: unavailable -> disconnected
Mar 22 11:21:14 hackeros sshd[412]: Server listening on 0.0.0.0 port 22.
"""

BIN_COMMANDS = ["bash", "cat", "cp", "echo", "grep", "ls", "mkdir", "mv", "nano", "ping", "rm", "touch"]


def create_filesystem(home: str = Balance.HOME, user: str = Balance.USER) -> VirtualFilesystem:
    fs = VirtualFilesystem(home=home, user=user)

    for path in ("/bin", "/etc", "/tmp", "/var/log", "/usr/bin"):
        fs.create_directory(path, recursive=True)
    for name in BIN_COMMANDS:
        fs.create_file(f"/bin/{name}", f"#!ELF {name}\n")
        fs.change_permissions(f"/bin/{name}", "755")
        fs.change_owner(f"/bin/{name}", "root:root")
    for path in ("/bin", "/etc", "/tmp", "/var", "/var/log", "/usr", "/usr/bin"):
        fs.change_owner(path, "root:root")
    fs.change_permissions("/tmp", "777")

    fs.create_file("/etc/hosts", f"127.0.0.1 localhost\n127.0.1.1 {Balance.HOSTNAME}\n")
    fs.create_file("/etc/hostname", f"{Balance.HOSTNAME}\n")
    fs.create_file("/var/log/syslog", SYSLOG_TEXT)
    for path in ("/etc/hosts", "/etc/hostname", "/var/log/syslog"):
        fs.change_owner(path, "root:root")

    for sub in ("documents", "projects", "wifi"):
        fs.create_directory(f"{home}/{sub}", recursive=True)
    fs.create_file(f"{home}/documents/welcome.txt", WELCOME_TEXT)
    fs.create_file(f"{home}/.bashrc", BASHRC_TEXT)
    fs.create_file(f"{home}/wifi/wordlist.txt", "\n".join(WORDLIST) + "\n")

    fs.change_current_path(home)
    # the seed content is not player activity
    fs.drain_writes()
    return fs


def create_mission_store(path: Path | None = None) -> MissionStore:
    store = MissionStore()
    for mission in load_missions(path):
        store.register_mission(mission)
    store.drain_events()
    return store


def create_session(
    sink: OutputSink | None = None,
    fs: VirtualFilesystem | None = None,
    missions: MissionStore | None = None,
) -> SessionInterpreter:
    return SessionInterpreter(
        fs if fs is not None else create_filesystem(),
        missions if missions is not None else create_mission_store(),
        sink=sink,
    )
