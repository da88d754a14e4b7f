from __future__ import annotations

import logging
from collections import deque
from datetime import datetime, timezone
from typing import Callable

from hackeros.cli.commands import ShellCommands
from hackeros.cli.editor import HELP_LINES, EditorAction, EditorBuffer
from hackeros.cli.modes import (
    EditorMode,
    NormalMode,
    PasswordPromptMode,
    RemoteSessionMode,
    RemoteSessionPasswordMode,
    SessionMode,
)
from hackeros.cli.output import (
    COLOR_INFO,
    COLOR_MILESTONE,
    COLOR_OK,
    COLOR_WARN,
    OutputLine,
    OutputSink,
)
from hackeros.cli.parser import CommandLine, ParseError, UsageError, parse_line
from hackeros.cli.remote import RemoteShell
from hackeros.config.balance import Balance
from hackeros.core.missions import MissionStore
from hackeros.core.vfs import VirtualFilesystem
from hackeros.model.events import ProgressEvent, ProgressEventType
from hackeros.model.fs import FsError, FsErrorCode, split_path

log = logging.getLogger(__name__)


class SessionInterpreter:
    """Turns submitted lines into filesystem/mission operations and output lines.

    One line is processed completely (dispatch, objective checks, progress report)
    before submit_line returns. Output goes to the optional sink and is also returned.
    """

    def __init__(
        self,
        fs: VirtualFilesystem,
        missions: MissionStore,
        sink: OutputSink | None = None,
        env: dict[str, str] | None = None,
        aliases: dict[str, str] | None = None,
        sudo_password: str = Balance.SUDO_PASSWORD,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.fs = fs
        self.missions = missions
        self.sink = sink
        self.env = dict(Balance.DEFAULT_ENV)
        self.env.update(env or {})
        self.aliases = dict(Balance.DEFAULT_ALIASES if aliases is None else aliases)
        self.mode: SessionMode = NormalMode()
        self.history: deque[str] = deque(maxlen=Balance.HISTORY_MAX)
        self.exited = False
        self.clock = clock
        self.started_at = clock()
        self._sudo_password = sudo_password
        self._out: list[OutputLine] = []
        self.commands = ShellCommands(self)
        self.remote = RemoteShell(self)
        self.sync_pwd()

    # --- output ---

    def out(self, text: str = "", color: str | None = None) -> None:
        self._push(OutputLine(text, color=color))

    def err(self, text: str) -> None:
        self._push(OutputLine(text, is_error=True))

    def clear_screen(self) -> None:
        self._out.append(OutputLine("", clear=True))
        if self.sink is not None:
            self.sink.clear()

    def _push(self, line: OutputLine) -> None:
        self._out.append(line)
        if self.sink is not None:
            self.sink.emit(line.text, line.is_error, line.color)

    def _output_since(self, start: int) -> str:
        return "\n".join(line.text for line in self._out[start:] if not line.clear)

    # --- state ---

    @property
    def prompt(self) -> str:
        mode = self.mode
        if isinstance(mode, PasswordPromptMode):
            return f"[sudo] password for {self.env.get('USER', Balance.USER)}: "
        if isinstance(mode, RemoteSessionMode):
            return "ftp> "
        if isinstance(mode, RemoteSessionPasswordMode):
            return "Password: "
        if isinstance(mode, EditorMode):
            return "> "
        return f"{self.env.get('USER', Balance.USER)}@{Balance.HOSTNAME}:{self.display_path()}$ "

    @property
    def secret_input(self) -> bool:
        return isinstance(self.mode, (PasswordPromptMode, RemoteSessionPasswordMode))

    def display_path(self) -> str:
        path = self.fs.current_path
        home = self.fs.home
        if path == home:
            return "~"
        if path.startswith(home + "/"):
            return "~" + path[len(home):]
        return path

    def sync_pwd(self) -> None:
        self.env["PWD"] = self.fs.current_path

    def recent_history(self) -> list[str]:
        return list(reversed(self.history))

    def set_mode(self, mode: SessionMode) -> None:
        log.debug("mode %s -> %s", self.mode.kind.value, mode.kind.value)
        self.mode = mode

    # --- input ---

    def submit_line(self, raw: str) -> list[OutputLine]:
        self._out = []
        mode = self.mode
        if isinstance(mode, NormalMode):
            line = raw.strip()
            if line:
                self.history.append(line)
                self.run_line(line)
        elif isinstance(mode, PasswordPromptMode):
            self._handle_password(mode, raw)
        elif isinstance(mode, RemoteSessionMode):
            start = len(self._out)
            line = raw.strip()
            if line:
                self.remote.handle(mode, line)
            self._post_command([line] if line else [], self._output_since(start))
        elif isinstance(mode, RemoteSessionPasswordMode):
            self.remote.authenticate(mode, raw)
        elif isinstance(mode, EditorMode):
            self._handle_editor(mode, mode.buffer.handle_line(raw))
        self._post_command([], "")
        self._report_progress()
        return self._out

    def submit_key(self, key: str) -> list[OutputLine]:
        """Structured key event; only meaningful while the editor is open."""
        self._out = []
        mode = self.mode
        if isinstance(mode, EditorMode):
            self._handle_editor(mode, mode.buffer.handle_key(key), quiet=True)
            self._post_command([], "")
            self._report_progress()
        return self._out

    def run_line(self, line: str) -> None:
        start = len(self._out)
        cmdline: CommandLine | None = None
        try:
            cmdline = parse_line(line, self.env, self.aliases)
            self._dispatch(cmdline)
        except ParseError as e:
            self.err(f"{line.split()[0]}: {e.message}")
        candidates = [line]
        if cmdline is not None and cmdline.expanded != line:
            candidates.append(cmdline.expanded)
        mode = self.mode
        if isinstance(mode, PasswordPromptMode) and not mode.candidates:
            mode.candidates = candidates
            candidates = []
        self._post_command(candidates, self._output_since(start))

    def _dispatch(self, cmd: CommandLine) -> None:
        if not cmd.argv:
            if cmd.redirect is not None:
                raise ParseError("syntax error: missing command")
            return
        name = cmd.name
        log.debug("dispatch %r", cmd.argv)
        handler = self.commands.lookup(name)
        if handler is None:
            if self._is_known_executable(name):
                self.out(f"{name}: executed successfully", color=COLOR_OK)
                return
            self.err(self.commands.not_found_message(name))
            return
        # sudo re-parses its deferred line, redirect included
        if cmd.redirect is not None and name not in ("echo", "sudo"):
            self.err(f"{name}: output redirection is only supported for echo")
            return
        try:
            handler(cmd)
        except (FsError, UsageError) as e:
            self.err(f"{name}: {e.message}")

    def _is_known_executable(self, name: str) -> bool:
        if "/" in name:
            return self.fs.is_executable(name)
        for directory in self.env.get("PATH", "").split(":"):
            if directory and self.fs.is_executable(f"{directory}/{name}"):
                return True
        return False

    # --- privilege prompt ---

    def request_privileges(self, deferred: str) -> None:
        self.set_mode(PasswordPromptMode(deferred=deferred))

    def _handle_password(self, mode: PasswordPromptMode, raw: str) -> None:
        if raw.rstrip("\r\n") == self._sudo_password:
            self.set_mode(NormalMode())
            start = len(self._out)
            self.run_line(mode.deferred)
            self._post_command(mode.candidates, self._output_since(start))
            return
        mode.attempts += 1
        if mode.attempts >= Balance.MAX_PASSWORD_ATTEMPTS:
            self.set_mode(NormalMode())
            self.err(f"sudo: {mode.attempts} incorrect password attempts")
            return
        self.err("Sorry, try again.")

    # --- editor ---

    def open_editor(self, path: str) -> None:
        abs_path = self.fs.resolve(path)
        if self.fs.is_directory(abs_path):
            raise FsError(FsErrorCode.IS_A_DIRECTORY, abs_path)
        self.fs.create_directory(split_path(abs_path)[0], recursive=True)
        text = self.fs.read_file(abs_path) if self.fs.is_file(abs_path) else ""
        mode = EditorMode(path=abs_path, buffer=EditorBuffer.from_text(text))
        self.set_mode(mode)
        status = "" if self.fs.is_file(abs_path) else " (new file)"
        self.out(f"  GNU nano 6.2        {abs_path}{status}", color=COLOR_INFO)
        for line in mode.buffer.lines:
            self.out(line)
        for line in HELP_LINES:
            self.out(line, color=COLOR_INFO)

    def _handle_editor(self, mode: EditorMode, action: EditorAction, quiet: bool = False) -> None:
        if action in (EditorAction.SAVE, EditorAction.SAVE_EXIT):
            if not self._save_editor(mode):
                return
        if action in (EditorAction.SAVE_EXIT, EditorAction.EXIT):
            if action == EditorAction.EXIT and mode.buffer.dirty:
                self.out("Changes discarded.", color=COLOR_WARN)
            self.set_mode(NormalMode())
            return
        if action == EditorAction.NONE and not quiet:
            self.out(f"[ Buffer updated: {len(mode.buffer.lines)} line(s) ]")

    def _save_editor(self, mode: EditorMode) -> bool:
        text = mode.buffer.text
        try:
            if self.fs.is_file(mode.path):
                self.fs.write_file(mode.path, text)
            else:
                self.fs.create_directory(split_path(mode.path)[0], recursive=True)
                self.fs.create_file(mode.path, text)
        except FsError as e:
            self.err(f"nano: {e.message}")
            return False
        mode.buffer.dirty = False
        self.out(f"[ Wrote {len(mode.buffer.lines)} line(s) to {mode.path} ]", color=COLOR_OK)
        return True

    # --- progression ---

    def _post_command(self, commands: list[str], output: str) -> None:
        writes = self.fs.drain_writes()
        active = self.missions.active_mission_id
        if active is None:
            return
        for command in commands:
            self.missions.check_command_objective(active, command, output)
        for path, content in writes:
            self.missions.check_file_objective(active, path, content, self.fs.home)

    def _report_progress(self) -> None:
        for event in self.missions.drain_events():
            line = format_progress_event(event)
            if line is not None:
                self._push(line)


def format_progress_event(event: ProgressEvent) -> OutputLine | None:
    if event.type == ProgressEventType.OBJECTIVE_COMPLETED:
        return OutputLine(f"[+] {event.message}", color=COLOR_OK)
    if event.type == ProgressEventType.MISSION_COMPLETED:
        return OutputLine(f"*** {event.message} ***", color=COLOR_WARN)
    if event.type == ProgressEventType.REWARDS_GRANTED:
        parts = [f"+{event.data.get('xp', 0)} XP"]
        parts.extend(f"+{v} {k}" for k, v in event.data.get("skill_points", {}).items())
        parts.extend(event.data.get("items", []))
        return OutputLine("Rewards: " + ", ".join(parts), color=COLOR_WARN)
    if event.type in (ProgressEventType.LEVEL_UP, ProgressEventType.RANK_UP):
        return OutputLine(event.message, color=COLOR_MILESTONE)
    if event.type == ProgressEventType.MISSION_UNLOCKED:
        return OutputLine(event.message, color=COLOR_INFO)
    return None
