from __future__ import annotations

import fnmatch
import logging
import re
from datetime import datetime
from functools import partial
from typing import TYPE_CHECKING, Callable

from hackeros.cli import tools
from hackeros.cli.output import COLOR_DIR, COLOR_INFO, COLOR_OK, COLOR_WARN
from hackeros.cli.parser import CommandLine, UsageError, split_flags, suggest_command
from hackeros.config.balance import Balance
from hackeros.core.vfs import VirtualFilesystem
from hackeros.model.fs import DirEntry, FileNode, FsError, FsErrorCode, FsNode
from hackeros.model.missions import Mission, MissionState
from hackeros.util.timefmt import format_elapsed, format_uptime

if TYPE_CHECKING:
    from hackeros.cli.session import SessionInterpreter

log = logging.getLogger(__name__)

Handler = Callable[[CommandLine], None]

COMMAND_HELP: dict[str, tuple[str, str]] = {
    "cd": ("cd [dir]", "Change the current directory"),
    "pwd": ("pwd", "Print the current directory"),
    "ls": ("ls [-al] [path...]", "List directory contents"),
    "mkdir": ("mkdir [-p] dir...", "Create directories"),
    "touch": ("touch file...", "Create empty files or update their timestamp"),
    "rm": ("rm [-rf] path...", "Remove files or directories"),
    "cp": ("cp [-r] src... dest", "Copy files and directories"),
    "mv": ("mv src... dest", "Move or rename files and directories"),
    "cat": ("cat file...", "Print file contents"),
    "echo": ("echo [-ne] text [> file | >> file]", "Print text or write it to a file"),
    "grep": ("grep [-invcr] pattern file...", "Search files for lines matching a pattern"),
    "find": ("find [path] [-name pat] [-iname pat] [-type f|d]", "Search for files in a directory tree"),
    "chmod": ("chmod mode file...", "Change file permissions (755, u+x, rw-r--r--)"),
    "chown": ("chown owner[:group] file...", "Change file owner and group"),
    "help": ("help [command]", "Show available commands"),
    "history": ("history [-c] [n]", "Show command history"),
    "ps": ("ps", "List running processes"),
    "df": ("df [-h]", "Show disk usage"),
    "date": ("date", "Print the current date and time"),
    "uname": ("uname [-asnrm]", "Print system information"),
    "env": ("env", "Print environment variables"),
    "printenv": ("printenv [name...]", "Print environment variables"),
    "export": ("export [name=value...]", "Set environment variables"),
    "unset": ("unset name...", "Remove environment variables"),
    "alias": ("alias [name[=value]...]", "Define or show aliases"),
    "unalias": ("unalias name...", "Remove aliases"),
    "man": ("man command", "Show the manual page for a command"),
    "whoami": ("whoami", "Print the current user"),
    "hostname": ("hostname", "Print the machine name"),
    "sudo": ("sudo command", "Run a command with elevated rights"),
    "nano": ("nano file", "Edit a file"),
    "edit": ("edit file", "Edit a file (same as nano)"),
    "ftp": ("ftp [host]", "Open a file transfer session"),
    "connect": ("connect [host]", "Open a file transfer session (same as ftp)"),
    "mission": ("mission list|start <id>|info [id]|status", "Browse and start missions"),
    "stats": ("stats", "Show level, XP, rank and inventory"),
    "clear": ("clear", "Clear the screen"),
    "exit": ("exit", "Close the terminal session"),
    "neofetch": ("neofetch", "Show system information with a logo"),
    "ping": ("ping [-c count] host", "Send echo requests to a host"),
}
COMMAND_HELP.update(tools.TOOL_HELP)

HELP_SECTIONS = [
    ("Navigation", ["cd", "pwd", "ls", "find"]),
    ("Files", ["mkdir", "touch", "rm", "cp", "mv", "cat", "echo", "grep", "chmod", "chown", "nano"]),
    ("System", ["help", "history", "ps", "df", "date", "uname", "whoami", "hostname", "neofetch", "clear", "exit"]),
    ("Environment", ["env", "printenv", "export", "unset", "alias", "unalias", "man"]),
    ("Privileges & network", ["sudo", "ftp", "ping"]),
    ("Missions", ["mission", "stats"]),
    ("Wireless toolkit", sorted(tools.TOOL_HELP)),
]

MAN_DETAILS: dict[str, list[str]] = {
    "ls": [
        "-a     include entries whose names begin with a dot",
        "-l     use a long listing format: permissions, owner, group, size, date",
    ],
    "rm": [
        "-r     remove directories and their contents recursively",
        "-f     ignore nonexistent files, never report them",
    ],
    "chmod": [
        "MODE is octal (755), a full permission string (rwxr-xr-x)",
        "or comma separated clauses such as u+x, go-w, a=r",
    ],
    "grep": [
        "-i     ignore case      -n     prefix each line with its number",
        "-v     invert match     -c     print only a count of matching lines",
        "-r     search directories recursively",
    ],
    "mission": [
        "list          show every mission and its state",
        "start <id>    begin an available mission",
        "info [id]     objectives, rewards and hints (active mission by default)",
        "status        progress of the active mission",
    ],
    "nano": [
        "^O save, ^X save and exit, ^Q exit without saving.",
        "In line mode type save, x or exit; any other line replaces the buffer.",
    ],
}

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_STATE_LABELS = {
    MissionState.LOCKED: "locked",
    MissionState.AVAILABLE: "available",
    MissionState.IN_PROGRESS: "in progress",
    MissionState.COMPLETED: "completed",
}


class ShellCommands:
    """Normal-mode command table. Handlers raise FsError/UsageError; the session renders them."""

    def __init__(self, session: SessionInterpreter) -> None:
        self.session = session
        self.table: dict[str, Handler] = {
            "cd": self.cd,
            "pwd": self.pwd,
            "ls": self.ls,
            "mkdir": self.mkdir,
            "touch": self.touch,
            "rm": self.rm,
            "cp": self.cp,
            "mv": self.mv,
            "cat": self.cat,
            "echo": self.echo,
            "grep": self.grep,
            "find": self.find,
            "chmod": self.chmod,
            "chown": self.chown,
            "help": self.help,
            "history": self.history,
            "ps": self.ps,
            "df": self.df,
            "date": self.date,
            "uname": self.uname,
            "env": self.env,
            "printenv": self.printenv,
            "export": self.export,
            "unset": self.unset,
            "alias": self.alias,
            "unalias": self.unalias,
            "man": self.man,
            "whoami": self.whoami,
            "hostname": self.hostname,
            "sudo": self.sudo,
            "nano": self.nano,
            "edit": self.nano,
            "ftp": self.ftp,
            "connect": self.ftp,
            "mission": self.mission,
            "stats": self.stats,
            "clear": self.clear,
            "cls": self.clear,
            "exit": self.exit,
            "logout": self.exit,
            "neofetch": self.neofetch,
            "ping": self.ping,
        }
        for name, func in tools.TOOLS.items():
            self.table[name] = partial(func, session)

    @property
    def fs(self) -> VirtualFilesystem:
        return self.session.fs

    def lookup(self, name: str) -> Handler | None:
        return self.table.get(name)

    def not_found_message(self, name: str) -> str:
        suggestion = suggest_command(name, sorted(self.table))
        if suggestion:
            return f"{name}: command not found (did you mean '{suggestion}'?)"
        return f"{name}: command not found"

    # --- helpers ---

    def _print(self, text: str, color: str | None = None) -> None:
        for line in text.split("\n"):
            self.session.out(line, color=color)

    def _each(self, name: str, operands: list[str], func: Callable[[str], object]) -> None:
        for operand in operands:
            try:
                func(operand)
            except FsError as e:
                self.session.err(f"{name}: {e.message}")

    def _print_entries(self, entries: list[DirEntry], long_format: bool) -> None:
        if not entries:
            return
        if long_format:
            self.session.out(f"total {len(entries)}")
            for entry in entries:
                self.session.out(str(entry), color=COLOR_DIR if entry.is_dir else None)
            return
        self.session.out("  ".join(str(e) for e in entries))

    # --- navigation ---

    def cd(self, cmd: CommandLine) -> None:
        args = cmd.args
        if len(args) > 1:
            raise UsageError("too many arguments")
        env = self.session.env
        target = args[0] if args else env.get("HOME", self.fs.home)
        if target == "-":
            target = env.get("OLDPWD", "")
            if not target:
                raise UsageError("OLDPWD not set")
            self.session.out(target)
        old = self.fs.current_path
        self.fs.change_current_path(target)
        env["OLDPWD"] = old
        self.session.sync_pwd()

    def pwd(self, cmd: CommandLine) -> None:
        self.session.out(self.fs.current_path)

    def ls(self, cmd: CommandLine) -> None:
        flags, operands = split_flags(cmd.args, "alh1")
        show_hidden = "a" in flags
        long_format = "l" in flags
        targets = operands or ["."]
        for target in targets:
            try:
                if self.fs.is_file(target):
                    entries = [self.fs.entry(target, long_format=long_format)]
                else:
                    entries = self.fs.list(target, show_hidden=show_hidden, long_format=long_format)
            except FsError as e:
                self.session.err(f"ls: cannot access '{target}': {e.reason}")
                continue
            if len(targets) > 1:
                self.session.out(f"{target}:", color=COLOR_INFO)
            self._print_entries(entries, long_format)

    # --- files ---

    def mkdir(self, cmd: CommandLine) -> None:
        flags, operands = split_flags(cmd.args, "pv")
        if not operands:
            raise UsageError("missing operand")
        self._each("mkdir", operands, lambda p: self.fs.create_directory(p, recursive="p" in flags))

    def touch(self, cmd: CommandLine) -> None:
        _, operands = split_flags(cmd.args, "")
        if not operands:
            raise UsageError("missing file operand")
        self._each("touch", operands, self.fs.touch)

    def rm(self, cmd: CommandLine) -> None:
        flags, operands = split_flags(cmd.args, "rRfv")
        force = "f" in flags
        recursive = bool(flags & {"r", "R"})
        if not operands:
            if force:
                return
            raise UsageError("missing operand")
        self._each("rm", operands, lambda p: self.fs.remove(p, recursive=recursive, force=force))
        self.session.sync_pwd()

    def _transfer(self, cmd: CommandLine, known: str) -> tuple[set[str], list[str], str]:
        flags, operands = split_flags(cmd.args, known)
        if not operands:
            raise UsageError("missing file operand")
        if len(operands) == 1:
            raise UsageError(f"missing destination file operand after '{operands[0]}'")
        *sources, dest = operands
        if len(sources) > 1 and not self.fs.is_directory(dest):
            raise FsError(FsErrorCode.NOT_A_DIRECTORY, self.fs.resolve(dest), f"target '{dest}' is not a directory")
        return flags, sources, dest

    def cp(self, cmd: CommandLine) -> None:
        flags, sources, dest = self._transfer(cmd, "rRv")
        recursive = bool(flags & {"r", "R"})
        self._each("cp", sources, lambda s: self.fs.copy(s, dest, recursive=recursive))

    def mv(self, cmd: CommandLine) -> None:
        _, sources, dest = self._transfer(cmd, "v")
        self._each("mv", sources, lambda s: self.fs.move(s, dest))
        self.session.sync_pwd()

    def cat(self, cmd: CommandLine) -> None:
        _, operands = split_flags(cmd.args, "")
        if not operands:
            raise UsageError("missing file operand")

        def _show(path: str) -> None:
            content = self.fs.read_file(path)
            if content.endswith("\n"):
                content = content[:-1]
            if content:
                self._print(content)

        self._each("cat", operands, _show)

    def echo(self, cmd: CommandLine) -> None:
        args = list(cmd.args)
        escapes = False
        while args and args[0] in ("-n", "-e", "-ne", "-en", "-E"):
            escapes = escapes or "e" in args[0]
            args.pop(0)
        text = " ".join(args)
        if escapes:
            text = text.replace("\\n", "\n").replace("\\t", "\t")
        redirect = cmd.redirect
        if redirect is None:
            self._print(text)
            return
        target = redirect.target
        if not self.fs.exists(target):
            self.fs.create_file(target, text)
        elif redirect.append:
            existing = self.fs.read_file(target)
            sep = "\n" if existing and not existing.endswith("\n") else ""
            self.fs.append_file(target, sep + text)
        else:
            self.fs.write_file(target, text)

    # --- search ---

    def grep(self, cmd: CommandLine) -> None:
        flags, operands = split_flags(cmd.args, "invcrR")
        if not operands:
            raise UsageError("usage: grep [-invcr] PATTERN FILE...")
        pattern, files = operands[0], operands[1:]
        if not files:
            raise UsageError("no input files (standard input is not available)")
        re_flags = re.IGNORECASE if "i" in flags else 0
        try:
            regex = re.compile(pattern, re_flags)
        except re.error:
            regex = re.compile(re.escape(pattern), re_flags)
        recursive = bool(flags & {"r", "R"})

        targets: list[tuple[str, str]] = []
        for name in files:
            if self.fs.is_directory(name):
                if not recursive:
                    self.session.err(f"grep: {name}: Is a directory")
                    continue
                for path in self.fs.find(name, lambda p, n: isinstance(n, FileNode)):
                    targets.append((path, path))
            else:
                targets.append((name, name))

        show_prefix = len(targets) > 1 or recursive
        for display, path in targets:
            try:
                content = self.fs.read_file(path)
            except FsError as e:
                self.session.err(f"grep: {e.message}")
                continue
            prefix = f"{display}:" if show_prefix else ""
            count = 0
            for number, line in enumerate(content.split("\n"), start=1):
                if bool(regex.search(line)) == ("v" in flags):
                    continue
                count += 1
                if "c" in flags:
                    continue
                line_no = f"{number}:" if "n" in flags else ""
                self.session.out(f"{prefix}{line_no}{line}")
            if "c" in flags:
                self.session.out(f"{prefix}{count}")

    def find(self, cmd: CommandLine) -> None:
        args = list(cmd.args)
        start = "."
        if args and not args[0].startswith("-"):
            start = args.pop(0)
        tests: list[Callable[[str, FsNode], bool]] = []
        while args:
            option = args.pop(0)
            if option not in ("-name", "-iname", "-type"):
                raise UsageError(f"unknown predicate `{option}'")
            if not args:
                raise UsageError(f"missing argument to `{option}'")
            value = args.pop(0)
            if option == "-name":
                tests.append(lambda p, n, pat=value: fnmatch.fnmatchcase(_basename(p), pat))
            elif option == "-iname":
                tests.append(lambda p, n, pat=value.lower(): fnmatch.fnmatchcase(_basename(p).lower(), pat))
            elif value in ("f", "d"):
                kind = "file" if value == "f" else "dir"
                tests.append(lambda p, n, kind=kind: n.kind.value == kind)
            else:
                raise UsageError(f"Unknown argument to -type: {value}")
        for path in self.fs.find(start, lambda p, n: all(t(p, n) for t in tests)):
            self.session.out(path)

    # --- metadata ---

    def chmod(self, cmd: CommandLine) -> None:
        if len(cmd.args) < 2:
            raise UsageError("missing operand")
        mode, *paths = cmd.args
        self._each("chmod", paths, lambda p: self.fs.change_permissions(p, mode))

    def chown(self, cmd: CommandLine) -> None:
        if len(cmd.args) < 2:
            raise UsageError("missing operand")
        owner, *paths = cmd.args
        self._each("chown", paths, lambda p: self.fs.change_owner(p, owner))

    # --- informational ---

    def help(self, cmd: CommandLine) -> None:
        if cmd.args:
            topic = cmd.args[0]
            if topic not in COMMAND_HELP:
                raise UsageError(f"no help topics match '{topic}'")
            usage, summary = COMMAND_HELP[topic]
            self.session.out(f"{usage}")
            self.session.out(f"    {summary}")
            return
        self.session.out(f"{Balance.OS_NAME} {Balance.OS_VERSION} - available commands", color=COLOR_INFO)
        for section, names in HELP_SECTIONS:
            self.session.out(f"{section}:", color=COLOR_INFO)
            for name in names:
                self.session.out(f"  {name:<16}{COMMAND_HELP[name][1]}")
        self.session.out("Type 'man <command>' for details.")

    def history(self, cmd: CommandLine) -> None:
        history = self.session.history
        if cmd.args and cmd.args[0] == "-c":
            history.clear()
            return
        entries = list(history)
        if cmd.args:
            try:
                count = int(cmd.args[0])
            except ValueError:
                raise UsageError(f"{cmd.args[0]}: numeric argument required") from None
            entries = entries[-count:] if count > 0 else []
        first = len(history) - len(entries) + 1
        for offset, line in enumerate(entries):
            self.session.out(f"{first + offset:>5}  {line}")

    def ps(self, cmd: CommandLine) -> None:
        rows = [
            ("PID", "TTY", "TIME", "CMD"),
            ("1", "?", "00:00:02", "init"),
            ("412", "?", "00:00:00", "sshd"),
            ("733", "?", "00:00:01", "cron"),
            ("1337", "pts/0", "00:00:00", "bash"),
            ("1402", "pts/0", "00:00:00", "ps"),
        ]
        for pid, tty, time, name in rows:
            self.session.out(f"{pid:>5} {tty:<8} {time:>8} {name}")

    def df(self, cmd: CommandLine) -> None:
        flags, _ = split_flags(cmd.args, "h")
        total_k = 10 * 1024 * 1024
        used_k = 3 * 1024 * 1024 + (self.fs.disk_usage() + 1023) // 1024
        rows = [("/dev/sda1", total_k, used_k, "/"), ("tmpfs", 512 * 1024, 0, "/tmp")]
        size = _human_k if "h" in flags else str
        self.session.out(f"{'Filesystem':<12}{'Size' if 'h' in flags else '1K-blocks':>10}{'Used':>10}{'Avail':>10} Use% Mounted on")
        for name, total, used, mount in rows:
            pct = f"{used * 100 // total}%"
            self.session.out(f"{name:<12}{size(total):>10}{size(used):>10}{size(total - used):>10} {pct:>4} {mount}")

    def date(self, cmd: CommandLine) -> None:
        self.session.out(self.session.clock().strftime("%a %b %d %H:%M:%S %Z %Y"))

    def uname(self, cmd: CommandLine) -> None:
        flags, _ = split_flags(cmd.args, "asnrm")
        if "a" in flags:
            self.session.out(
                f"{Balance.OS_NAME} {Balance.HOSTNAME} {Balance.KERNEL} #1 SMP {Balance.OS_NAME} {Balance.OS_VERSION} x86_64"
            )
            return
        parts = []
        if not flags or "s" in flags:
            parts.append(Balance.OS_NAME)
        if "n" in flags:
            parts.append(Balance.HOSTNAME)
        if "r" in flags:
            parts.append(Balance.KERNEL)
        if "m" in flags:
            parts.append("x86_64")
        self.session.out(" ".join(parts))

    def env(self, cmd: CommandLine) -> None:
        for key in sorted(self.session.env):
            self.session.out(f"{key}={self.session.env[key]}")

    def printenv(self, cmd: CommandLine) -> None:
        if not cmd.args:
            self.env(cmd)
            return
        for name in cmd.args:
            if name in self.session.env:
                self.session.out(self.session.env[name])

    def export(self, cmd: CommandLine) -> None:
        env = self.session.env
        if not cmd.args:
            for key in sorted(env):
                self.session.out(f'declare -x {key}="{env[key]}"')
            return
        for arg in cmd.args:
            name, sep, value = arg.partition("=")
            if not _IDENTIFIER.match(name):
                self.session.err(f"export: `{arg}': not a valid identifier")
                continue
            if sep:
                env[name] = value
            else:
                env.setdefault(name, "")

    def unset(self, cmd: CommandLine) -> None:
        for name in cmd.args:
            self.session.env.pop(name, None)

    def alias(self, cmd: CommandLine) -> None:
        aliases = self.session.aliases
        if not cmd.args:
            for name in sorted(aliases):
                self.session.out(f"alias {name}='{aliases[name]}'")
            return
        for arg in cmd.args:
            name, sep, value = arg.partition("=")
            if sep:
                if not name:
                    self.session.err(f"alias: `{arg}': invalid alias name")
                    continue
                aliases[name] = value
            elif name in aliases:
                self.session.out(f"alias {name}='{aliases[name]}'")
            else:
                self.session.err(f"alias: {name}: not found")

    def unalias(self, cmd: CommandLine) -> None:
        if not cmd.args:
            raise UsageError("usage: unalias name [name ...]")
        for name in cmd.args:
            if self.session.aliases.pop(name, None) is None:
                self.session.err(f"unalias: {name}: not found")

    def man(self, cmd: CommandLine) -> None:
        if not cmd.args:
            raise UsageError("What manual page do you want?")
        topic = cmd.args[0]
        if topic not in COMMAND_HELP:
            raise UsageError(f"No manual entry for {topic}")
        usage, summary = COMMAND_HELP[topic]
        header = f"{topic.upper()}(1)"
        self.session.out(f"{header}{'HackerOS Manual':^40}{header}", color=COLOR_INFO)
        self.session.out("")
        self.session.out("NAME", color=COLOR_INFO)
        self.session.out(f"       {topic} - {summary}")
        self.session.out("")
        self.session.out("SYNOPSIS", color=COLOR_INFO)
        self.session.out(f"       {usage}")
        details = MAN_DETAILS.get(topic)
        if details:
            self.session.out("")
            self.session.out("DESCRIPTION", color=COLOR_INFO)
            for line in details:
                self.session.out(f"       {line}")

    def whoami(self, cmd: CommandLine) -> None:
        self.session.out(self.session.env.get("USER", Balance.USER))

    def hostname(self, cmd: CommandLine) -> None:
        self.session.out(Balance.HOSTNAME)

    # --- mode entry ---

    def sudo(self, cmd: CommandLine) -> None:
        parts = cmd.expanded.split(None, 1)
        if len(parts) < 2:
            raise UsageError("usage: sudo command")
        self.session.request_privileges(parts[1])

    def nano(self, cmd: CommandLine) -> None:
        if not cmd.args:
            raise UsageError("missing file operand")
        self.session.open_editor(cmd.args[0])

    def ftp(self, cmd: CommandLine) -> None:
        self.session.remote.connect(cmd.args[0] if cmd.args else None)

    # --- missions ---

    def mission(self, cmd: CommandLine) -> None:
        if not cmd.args:
            raise UsageError("usage: mission list|start <id>|info [id]|status")
        sub, rest = cmd.args[0], cmd.args[1:]
        if sub == "list":
            self._mission_list()
        elif sub == "start":
            if not rest:
                raise UsageError("usage: mission start <id>")
            self._mission_start(rest[0])
        elif sub == "info":
            self._mission_info(rest[0] if rest else None)
        elif sub == "status":
            self._mission_status()
        else:
            raise UsageError(f"unknown subcommand '{sub}' (try: list, start, info, status)")

    def _mission_list(self) -> None:
        store = self.session.missions
        if not store.missions:
            self.session.out("No missions registered.")
            return
        self.session.out(f"{'ID':<16}{'STATE':<13}{'DIFFICULTY':<14}TITLE", color=COLOR_INFO)
        for m in store.missions.values():
            color = COLOR_OK if m.state == MissionState.COMPLETED else None
            if m.id == store.active_mission_id:
                color = COLOR_WARN
            self.session.out(f"{m.id:<16}{_STATE_LABELS[m.state]:<13}{m.difficulty.value:<14}{m.title}", color=color)

    def _mission_start(self, mission_id: str) -> None:
        store = self.session.missions
        mission = store.get(mission_id)
        if mission is None:
            self.session.err(f"mission: unknown mission '{mission_id}'")
            return
        active = store.active_mission
        if active is not None and active.id != mission_id and active.state == MissionState.IN_PROGRESS:
            log.info("mission %s not started: %s in progress", mission_id, active.id)
            self.session.err(f"mission: finish '{active.id}' before starting '{mission_id}'")
            return
        if not store.start_mission(mission_id):
            if mission.state == MissionState.COMPLETED:
                reason = "already completed"
            elif mission.state == MissionState.IN_PROGRESS:
                reason = "already in progress"
            else:
                missing = sorted(mission.prerequisites - store.progress.completed_missions)
                reason = "is locked" + (f" (requires: {', '.join(missing)})" if missing else "")
            log.info("mission %s not started: %s", mission_id, reason)
            self.session.err(f"mission: '{mission_id}' {reason}")
            return
        self.session.out(f"Mission started: {mission.title}", color=COLOR_OK)
        self.session.out(mission.description)
        self._print_objectives(mission)
        self.session.out("Type 'mission info' to review objectives and hints.")

    def _mission_info(self, mission_id: str | None) -> None:
        store = self.session.missions
        if mission_id is None:
            mission = store.active_mission
            if mission is None:
                raise UsageError("no active mission (usage: mission info <id>)")
        else:
            mission = store.get(mission_id)
            if mission is None:
                raise UsageError(f"unknown mission '{mission_id}'")
        self.session.out(f"{mission.title} [{mission.id}]", color=COLOR_INFO)
        self.session.out(
            f"Category: {mission.category} | Difficulty: {mission.difficulty.value} | State: {_STATE_LABELS[mission.state]}"
        )
        if mission.description:
            self.session.out(mission.description)
        if mission.prerequisites:
            self.session.out(f"Requires: {', '.join(sorted(mission.prerequisites))}")
        self._print_objectives(mission)
        reward = mission.reward
        parts = [f"{reward.xp} XP"]
        parts.extend(f"+{v} {k}" for k, v in reward.skill_points.items())
        parts.extend(reward.items)
        self.session.out("Reward: " + ", ".join(parts))
        if mission.state == MissionState.IN_PROGRESS and mission.start_time is not None:
            elapsed = (datetime.now(mission.start_time.tzinfo) - mission.start_time).total_seconds()
            self.session.out(f"Elapsed: {format_elapsed(elapsed)}")
        if mission.hints and mission.state != MissionState.COMPLETED:
            self.session.out("Hints:", color=COLOR_INFO)
            for hint in mission.hints:
                self.session.out(f"  - {hint}")

    def _mission_status(self) -> None:
        mission = self.session.missions.active_mission
        if mission is None:
            self.session.out("No active mission. Type 'mission list' to pick one.")
            return
        self.session.out(
            f"{mission.title}: {mission.completed_count}/{len(mission.objectives)} objectives", color=COLOR_INFO
        )
        self._print_objectives(mission)

    def _print_objectives(self, mission: Mission) -> None:
        self.session.out(f"Objectives ({mission.completed_count}/{len(mission.objectives)}):")
        for obj in mission.objectives:
            mark = "x" if obj.completed else " "
            self.session.out(f"  [{mark}] {obj.description}", color=COLOR_OK if obj.completed else None)

    def stats(self, cmd: CommandLine) -> None:
        p = self.session.missions.progress
        nxt = "max level" if p.is_max_level else f"{p.xp_to_next_level} XP to next level"
        self.session.out(f"Level {p.level} ({nxt})", color=COLOR_INFO)
        self.session.out(f"XP: {p.xp}  ELO: {p.elo}  Rank: {p.rank}")
        self.session.out(f"Completed missions: {len(p.completed_missions)}")
        self.session.out("Skills: " + ", ".join(f"{k} {v}" for k, v in sorted(p.skills.items())))
        self.session.out("Inventory: " + (", ".join(p.inventory) if p.inventory else "(empty)"))

    # --- misc ---

    def clear(self, cmd: CommandLine) -> None:
        self.session.clear_screen()

    def exit(self, cmd: CommandLine) -> None:
        self.session.exited = True
        self.session.out("logout")

    def neofetch(self, cmd: CommandLine) -> None:
        user = self.session.env.get("USER", Balance.USER)
        p = self.session.missions.progress
        logo = [
            "   _  _         _           ",
            "  | || |__ _ __| |_____ _ _ ",
            "  | __ / _` / _| / / -_) '_|",
            "  |_||_\\__,_\\__|_\\_\\___|_|  ",
            "          ___  ___          ",
            "         / _ \\/ __|         ",
            "        | (_) \\__ \\         ",
            "         \\___/|___/         ",
            "                            ",
        ]
        info = [
            f"{user}@{Balance.HOSTNAME}",
            "-" * (len(user) + len(Balance.HOSTNAME) + 1),
            f"OS: {Balance.OS_NAME} {Balance.OS_VERSION} x86_64",
            f"Kernel: {Balance.KERNEL}",
            f"Uptime: {format_uptime((self.session.clock() - self.session.started_at).total_seconds())}",
            f"Shell: {self.session.env.get('SHELL', '/bin/bash')}",
            f"Terminal: {self.session.env.get('TERM', 'xterm')}",
            f"Rank: {p.rank}",
            f"Level: {p.level}",
        ]
        for art, text in zip(logo, info):
            self.session.out(f"{art}   {text}", color=COLOR_OK)

    def ping(self, cmd: CommandLine) -> None:
        args = list(cmd.args)
        count = 4
        if "-c" in args:
            i = args.index("-c")
            try:
                count = int(args[i + 1])
            except (IndexError, ValueError):
                raise UsageError("option requires a positive integer argument -- 'c'") from None
            if not 0 < count <= Balance.MAX_PACKET_COUNT:
                raise UsageError(f"invalid count: {count} (1..{Balance.MAX_PACKET_COUNT})")
            del args[i:i + 2]
        if not args:
            raise UsageError("usage: ping [-c count] host")
        host = args[0]
        address = self._lookup_host(host)
        if address is None:
            raise UsageError(f"{host}: Name or service not known")
        self.session.out(f"PING {host} ({address}) 56(84) bytes of data.")
        for seq in range(1, count + 1):
            self.session.out(f"64 bytes from {address}: icmp_seq={seq} ttl=64 time={0.040 + seq * 0.003:.3f} ms")
        self.session.out("")
        self.session.out(f"--- {host} ping statistics ---")
        self.session.out(f"{count} packets transmitted, {count} received, 0% packet loss")

    def _lookup_host(self, host: str) -> str | None:
        if re.fullmatch(r"\d{1,3}(\.\d{1,3}){3}", host):
            return host
        try:
            hosts = self.fs.read_file("/etc/hosts")
        except FsError:
            return None
        for line in hosts.split("\n"):
            fields = line.split()
            if len(fields) >= 2 and host in fields[1:]:
                return fields[0]
        return None


def _basename(path: str) -> str:
    return path.rsplit("/", 1)[-1] or "/"


def _human_k(kbytes: int) -> str:
    value = float(kbytes)
    for unit in ("K", "M", "G", "T"):
        if value < 1024 or unit == "T":
            return f"{value:.0f}{unit}" if value >= 10 or unit == "K" else f"{value:.1f}{unit}"
        value /= 1024
    return f"{value:.1f}T"
