from __future__ import annotations

import asyncio

from textual.widgets import Input

from hackeros.cli.modes import EditorMode
from hackeros.cli.output import OutputLine
from hackeros.cli.session import SessionInterpreter
from hackeros.config.balance import Balance
from hackeros.core import progression
from hackeros.core.missions import MissionStore
from hackeros.model.missions import PlayerProgress
from hackeros.ui_textual import presenter
from hackeros.ui_textual.app import HackerOSApp, LogSink


def test_header_and_status(session: SessionInterpreter) -> None:
    assert presenter.build_header(session) == "HackerOS 1.0 | user@hackeros:~ | mode=normal"
    assert presenter.build_status_line(PlayerProgress()) == (
        "LVL 1  XP 0 (100 to next)  RANK Script Kiddie  ELO 0  DONE 0"
    )
    top = PlayerProgress(xp=Balance.LEVEL_XP[-1])
    progression.recompute(top)
    assert "(max)" in presenter.build_status_line(top)


def test_mission_panel(store: MissionStore) -> None:
    assert presenter.build_mission_lines(store) == [
        "MISSIONS",
        "[ ] First Steps (first_steps)",
        "[L] Field Notes (file_ops)",
        "[L] Corporate WiFi Audit (wifi_pentest)",
        "",
        "No active mission.",
        "mission start <id>",
    ]
    store.start_mission("first_steps")
    lines = presenter.build_mission_lines(store)
    assert lines[1] == "[>] First Steps (first_steps)"
    assert "ACTIVE: First Steps" in lines
    assert "0/4 objectives" in lines
    assert presenter.build_mission_lines(MissionStore()) == ["MISSIONS", "  (none)"]


def test_side_panel_follows_editor(session: SessionInterpreter) -> None:
    assert presenter.build_side_lines(session)[0] == "MISSIONS"
    session.submit_line("nano t.txt")
    lines = presenter.build_side_lines(session)
    assert lines[:2] == ["nano: /home/user/t.txt", "line 1, col 1"]
    session.submit_key("a")
    assert presenter.build_side_lines(session)[0] == "nano: /home/user/t.txt *"


def test_style_line() -> None:
    assert presenter.style_line(OutputLine("boom", is_error=True)).style == "red"
    styled = presenter.style_line(OutputLine("ok", color="green"))
    assert (styled.plain, styled.style) == ("ok", "green")
    assert presenter.style_line(OutputLine("plain")).style == ""


def test_completion(session: SessionInterpreter) -> None:
    complete = presenter.completion_candidates
    assert complete(session, "mis") == ["mission"]
    assert complete(session, "") == sorted(session.commands.table)
    assert complete(session, "mission st") == ["start", "status"]
    assert complete(session, "mission start f") == ["file_ops", "first_steps"]
    assert complete(session, "mission list x") == []
    assert complete(session, "cat doc") == ["documents/"]
    assert complete(session, "cat documents/w") == ["documents/welcome.txt"]
    assert complete(session, "ls /e") == ["/etc/"]
    assert complete(session, "cat .") == [".bashrc"]
    assert complete(session, "cat nowhere/x") == []
    session.submit_line("sudo ls")
    assert complete(session, "mis") == []


def test_common_prefix() -> None:
    assert presenter.common_prefix(["start", "status"]) == "sta"
    assert presenter.common_prefix(["mission"]) == "mission"
    assert presenter.common_prefix(["abc", "xyz"]) == ""
    assert presenter.common_prefix([]) == ""


def test_app_runs_a_command(session: SessionInterpreter) -> None:
    async def scenario() -> None:
        app = HackerOSApp(session=session)
        assert isinstance(session.sink, LogSink)
        async with app.run_test() as pilot:
            await pilot.pause()
            await pilot.press("p", "w", "d", "enter")
            await pilot.pause()
            assert list(session.history) == ["pwd"]
            await pilot.press("e", "x", "i", "t", "enter")
            await pilot.pause()
        assert session.exited

    asyncio.run(scenario())


def test_app_arrows_move_editor_cursor(session: SessionInterpreter) -> None:
    session.submit_line("nano t.txt")
    mode = session.mode
    assert isinstance(mode, EditorMode)
    mode.buffer.replace("one\ntwo")

    async def scenario() -> None:
        app = HackerOSApp(session=session)
        async with app.run_test() as pilot:
            await pilot.pause()
            await pilot.press("up")
            await pilot.pause()
            assert mode.buffer.row == 0
            await pilot.press("down")
            await pilot.pause()
            assert mode.buffer.row == 1
            assert app.query_one("#input", Input).value == ""

    asyncio.run(scenario())
