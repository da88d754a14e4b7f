from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from hackeros.bootstrap import create_filesystem, create_mission_store
from hackeros.cli.session import SessionInterpreter
from hackeros.model.missions import MissionState
from hackeros.runtime.logsetup import configure_logging
from hackeros.runtime.savegame import SAVE_FORMAT_VERSION, SaveStore, default_save_path


def test_save_and_load_roundtrip(tmp_path: Path, session: SessionInterpreter) -> None:
    session.submit_line("mkdir loot")
    session.submit_line("echo secret > loot/key.txt")
    session.submit_line("mission start first_steps")
    session.submit_line("pwd")
    session.submit_line("cd loot")

    store = SaveStore(tmp_path / "save.json")
    store.save_game(session.fs, session.missions)
    raw = json.loads((tmp_path / "save.json").read_text(encoding="utf-8"))
    assert raw["format_version"] == SAVE_FORMAT_VERSION
    assert set(raw["data"]) == {"missions", "filesystem"}

    fs = create_filesystem()
    missions = create_mission_store()
    assert store.load_game(fs, missions)
    assert fs.read_file("~/loot/key.txt") == "secret"
    assert fs.current_path == "/home/user/loot"
    assert missions.active_mission_id == "first_steps"
    assert missions.get("first_steps").state == MissionState.IN_PROGRESS
    assert missions.get("first_steps").objective("whereami").completed
    assert missions.drain_events() == []


def test_missing_file_loads_nothing(tmp_path: Path) -> None:
    store = SaveStore(tmp_path / "none.json")
    assert store.read() == {}
    assert not store.load_game(create_filesystem(), create_mission_store())


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        "[1, 2, 3]",
        json.dumps({"format_version": SAVE_FORMAT_VERSION + 1, "data": {"missions": {}}}),
    ],
)
def test_unusable_files_are_ignored(tmp_path: Path, content: str, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "save.json"
    path.write_text(content, encoding="utf-8")
    store = SaveStore(path)
    with caplog.at_level(logging.WARNING, logger="hackeros"):
        assert store.read() == {}
    assert any(r.levelno == logging.WARNING for r in caplog.records)


def test_get_put(tmp_path: Path) -> None:
    store = SaveStore(tmp_path / "nested" / "kv.json")
    assert store.get("k", "default") == "default"
    store.put("k", {"a": 1})
    store.put("other", 2)
    assert store.get("k") == {"a": 1}
    assert store.get("other") == 2
    assert not (tmp_path / "nested" / "kv.json.tmp").exists()


def test_default_save_path(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("HACKEROS_SAVE", "off")
    assert default_save_path() is None
    monkeypatch.setenv("HACKEROS_SAVE", str(tmp_path / "s.json"))
    assert default_save_path() == tmp_path / "s.json"
    monkeypatch.delenv("HACKEROS_SAVE")
    assert default_save_path().name == "save.json"


def test_configure_logging_to_file(tmp_path: Path) -> None:
    target = tmp_path / "logs" / "hackeros.log"
    logger = configure_logging("info", target)
    try:
        logging.getLogger("hackeros.core.missions").info("mission %s completed", "m1")
        for handler in logger.handlers:
            handler.flush()
        assert "hackeros.core.missions: mission m1 completed" in target.read_text(encoding="utf-8")
        assert logger.level == logging.INFO
        assert not logger.propagate
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)


@pytest.mark.parametrize(
    "missions",
    [
        {"missions": [{"id": "first_steps", "state": "in_progress", "start_time": "yesterday"}]},
        {"player_progress": {"xp": "lots"}},
        {"missions": ["first_steps"]},
    ],
)
def test_corrupt_mission_state_keeps_fresh_game(
    tmp_path: Path, missions: dict, caplog: pytest.LogCaptureFixture
) -> None:
    path = tmp_path / "save.json"
    payload = {"missions": missions, "filesystem": {"cwd": "/", "root": {}}}
    path.write_text(json.dumps({"format_version": SAVE_FORMAT_VERSION, "data": payload}), encoding="utf-8")
    fs = create_filesystem()
    store = create_mission_store()

    with caplog.at_level(logging.WARNING, logger="hackeros"):
        assert not SaveStore(path).load_game(fs, store)

    assert any("corrupt save" in r.getMessage() for r in caplog.records)
    assert store.get("first_steps").state == MissionState.AVAILABLE
    assert store.progress.xp == 0
    assert store.active_mission_id is None
    assert fs.current_path == "/home/user"
