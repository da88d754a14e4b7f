from __future__ import annotations

import logging
import time

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widgets import Input, RichLog, Static

from hackeros.bootstrap import create_session
from hackeros.cli.modes import EditorMode
from hackeros.cli.output import OutputLine
from hackeros.cli.session import SessionInterpreter
from hackeros.config.balance import Balance
from hackeros.runtime.savegame import SaveStore
from hackeros.ui_textual import presenter

log = logging.getLogger(__name__)


class CommandInput(Input):
    def key_up(self) -> None:
        self.app.action_history_prev()

    def key_down(self) -> None:
        self.app.action_history_next()


class LogSink:
    """Routes interpreter output into the terminal log widget."""

    def __init__(self, app: App) -> None:
        self.app = app

    def emit(self, text: str, is_error: bool = False, color: str | None = None) -> None:
        line = OutputLine(text, is_error=is_error, color=color)
        self.app.query_one("#log", RichLog).write(presenter.style_line(line))

    def clear(self) -> None:
        self.app.query_one("#log", RichLog).clear()


class HackerOSApp(App):
    CSS = """
    Screen {
        layout: vertical;
        background: $background;
        overflow: hidden;
    }
    #header {
        height: 1;
        padding: 0 2;
        background: #002F69;
        color: #f2f2f2;
    }
    #main {
        height: 1fr;
    }
    #log {
        width: 2fr;
        padding: 0 1;
        border: none;
        background: $background;
        scrollbar-size-vertical: 1;
        scrollbar-size-horizontal: 0;
        scrollbar-color: #666666;
        scrollbar-background: $background;
    }
    #missions {
        width: 1fr;
        padding: 0 1;
        border-left: solid #333333;
        background: $background;
        scrollbar-size-vertical: 1;
        scrollbar-size-horizontal: 0;
        scrollbar-color: #666666;
        scrollbar-background: $background;
    }
    #input {
        height: 1;
        background: $background;
        border: none;
    }
    #status {
        height: 1;
        padding: 0 2;
        background: #002F69;
        color: #f2f2f2;
    }
    """

    BINDINGS = [
        Binding("ctrl+l", "clear_log", "Clear log"),
        Binding("tab", "complete", "Complete", priority=True),
        Binding("ctrl+o", "editor_key('ctrl+o')", "Save", show=False, priority=True),
        Binding("ctrl+s", "editor_key('ctrl+s')", "Save", show=False, priority=True),
        Binding("ctrl+x", "editor_key('ctrl+x')", "Save & exit", show=False, priority=True),
        Binding("ctrl+q", "editor_key('ctrl+q')", "Quit", show=False, priority=True),
    ]

    def __init__(self, session: SessionInterpreter | None = None, store: SaveStore | None = None) -> None:
        super().__init__()
        self.session = session or create_session()
        self.session.sink = LogSink(self)
        self.store = store
        self._history_index: int = 0
        self._history_current: str = ""
        self._last_complete_key: str = ""
        self._last_complete_at: float = 0.0

    def compose(self) -> ComposeResult:
        yield Static(id="header")
        with Horizontal(id="main"):
            yield RichLog(id="log", wrap=True, highlight=False, min_width=0)
            yield RichLog(id="missions", wrap=True, highlight=False, min_width=0)
        yield CommandInput(id="input")
        yield Static(id="status")

    def on_mount(self) -> None:
        self.query_one("#missions", RichLog).auto_scroll = False
        self._log_line(f"{Balance.OS_NAME} {Balance.OS_VERSION} ({Balance.KERNEL})")
        self._log_line("Type 'help' for commands, 'mission list' to begin.")
        self.refresh_panels()
        self.call_later(lambda: self.query_one("#input", Input).focus())

    # --- input ---

    def action_editor_key(self, key: str) -> None:
        if not self._editor_key(key) and key == "ctrl+q":
            self.exit()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        text = event.value
        event.input.value = ""
        prompt = self.session.prompt
        echoed = "" if self.session.secret_input else text
        self._log_line(f"{prompt}{echoed}")
        log.debug("submit in %s mode", self.session.mode.kind.value)
        self.session.submit_line(text)
        self._history_index = len(self.session.history)
        self._history_current = ""
        self._after_command()

    def _after_command(self) -> None:
        if self.store is not None:
            self.store.save_game(self.session.fs, self.session.missions)
        if self.session.exited:
            self.exit()
            return
        self.refresh_panels()

    def action_clear_log(self) -> None:
        self.query_one("#log", RichLog).clear()

    def _editor_key(self, key: str) -> bool:
        if not isinstance(self.session.mode, EditorMode):
            return False
        self.session.submit_key(key)
        self._after_command()
        return True

    def action_history_prev(self) -> None:
        # up/down move the editor cursor while nano is open
        if self._editor_key("up"):
            return
        input_widget = self.query_one("#input", Input)
        history = list(self.session.history)
        if not history:
            return
        if self._history_index >= len(history):
            self._history_current = input_widget.value
            self._history_index = len(history)
        if self._history_index > 0:
            self._history_index -= 1
        input_widget.value = history[self._history_index]
        input_widget.cursor_position = len(input_widget.value)

    def action_history_next(self) -> None:
        if self._editor_key("down"):
            return
        input_widget = self.query_one("#input", Input)
        history = list(self.session.history)
        if not history:
            return
        if self._history_index < len(history) - 1:
            self._history_index += 1
            input_widget.value = history[self._history_index]
        else:
            self._history_index = len(history)
            input_widget.value = self._history_current
        input_widget.cursor_position = len(input_widget.value)

    def action_complete(self) -> None:
        focused = self.focused
        if not isinstance(focused, Input):
            return
        buf = focused.value
        candidates = presenter.completion_candidates(self.session, buf)
        if not candidates:
            return
        token = "" if buf.endswith(" ") or not buf.split() else buf.split()[-1]
        base = buf[:len(buf) - len(token)]
        prefix = presenter.common_prefix(candidates)
        if len(prefix) > len(token):
            focused.value = base + prefix
            focused.cursor_position = len(focused.value)
            self._last_complete_key = ""
            return
        # A second tab within a short window lists the options.
        now = time.time()
        if buf == self._last_complete_key and now - self._last_complete_at < 1.5:
            self._log_line("  ".join(candidates))
            self._last_complete_key = ""
            return
        self._last_complete_key = buf
        self._last_complete_at = now

    # --- panels ---

    def refresh_panels(self) -> None:
        session = self.session
        self.query_one("#header", Static).update(presenter.build_header(session))
        self.query_one("#status", Static).update(presenter.build_status_line(session.missions.progress))
        side = self.query_one("#missions", RichLog)
        side.clear()
        for line in presenter.build_side_lines(session):
            side.write(line)
        input_widget = self.query_one("#input", Input)
        input_widget.password = session.secret_input
        input_widget.placeholder = session.prompt

    def _log_line(self, line: str) -> None:
        self.query_one("#log", RichLog).write(line)


if __name__ == "__main__":
    HackerOSApp().run()
