from __future__ import annotations

import getpass
import logging
import readline
import sys

from hackeros.bootstrap import create_session
from hackeros.cli.modes import EditorMode, NormalMode
from hackeros.cli.session import SessionInterpreter
from hackeros.config.balance import Balance
from hackeros.model.fs import FsError
from hackeros.runtime.savegame import SaveStore, default_save_path

log = logging.getLogger(__name__)

_ANSI = {
    "green": "\033[32m",
    "cyan": "\033[36m",
    "yellow": "\033[33m",
    "magenta": "\033[35m",
    "blue": "\033[34m",
    "red": "\033[31m",
}
_RESET = "\033[0m"


class ReplSink:
    """Prints lines as they are emitted, coloured when stdout is a terminal."""

    def __init__(self, stream=None, color: bool | None = None) -> None:
        self.stream = stream or sys.stdout
        self.color = self.stream.isatty() if color is None else color

    def emit(self, text: str, is_error: bool = False, color: str | None = None) -> None:
        if is_error:
            color = "red"
        if self.color and color in _ANSI:
            text = f"{_ANSI[color]}{text}{_RESET}"
        print(text, file=self.stream)

    def clear(self) -> None:
        if self.color:
            print("\033[2J\033[H", end="", file=self.stream)


def _install_completer(session: SessionInterpreter) -> None:
    def _completer(text: str, state_idx: int) -> str | None:
        if not isinstance(session.mode, NormalMode):
            return None
        buf = readline.get_line_buffer()
        tokens = buf.split()
        if buf.endswith(" "):
            tokens.append("")
        if len(tokens) <= 1:
            candidates = sorted(c for c in session.commands.table if c.startswith(text))
        elif tokens[0] == "mission" and len(tokens) == 2:
            candidates = [c for c in ("list", "start", "info", "status") if c.startswith(text)]
        elif tokens[0] == "mission" and tokens[1] in ("start", "info"):
            candidates = sorted(m for m in session.missions.missions if m.startswith(text))
        else:
            directory, _, prefix = text.rpartition("/")
            try:
                entries = session.fs.list(directory or ".", show_hidden=prefix.startswith("."))
            except FsError:
                return None
            base = f"{directory}/" if directory else ""
            candidates = [
                base + e.name + ("/" if e.is_dir else "")
                for e in entries
                if e.name.startswith(prefix)
            ]
        if state_idx < len(candidates):
            return candidates[state_idx]
        return None

    readline.set_completer_delims(" \t\n")
    readline.set_completer(_completer)
    readline.parse_and_bind("tab: complete")


def run(session: SessionInterpreter, store: SaveStore | None = None) -> None:
    print(f"{Balance.OS_NAME} {Balance.OS_VERSION} ({Balance.KERNEL})")
    print("Type 'help' for commands, 'mission list' to begin.")
    _install_completer(session)

    while not session.exited:
        try:
            if session.secret_input:
                line = getpass.getpass(session.prompt)
            else:
                line = input(session.prompt)
        except KeyboardInterrupt:
            print("^C")
            if isinstance(session.mode, EditorMode):
                session.submit_line("exit")
            elif not isinstance(session.mode, NormalMode):
                session.set_mode(NormalMode())
            continue
        except EOFError:
            print()
            break
        session.submit_line(line)
        if store is not None and isinstance(session.mode, NormalMode):
            store.save_game(session.fs, session.missions)

    if store is not None:
        store.save_game(session.fs, session.missions)
    print("bye")


def main(save: bool = True) -> None:
    session = create_session(sink=ReplSink())
    store = None
    if save:
        path = default_save_path()
        if path is not None:
            store = SaveStore(path)
            store.load_game(session.fs, session.missions)
    log.info("plain repl started (save file: %s)", store.path if store else None)
    run(session, store)


if __name__ == "__main__":
    main()
