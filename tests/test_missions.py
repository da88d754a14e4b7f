from __future__ import annotations

from datetime import datetime, timezone

import pytest

from conftest import make_mission
from hackeros.config.balance import Balance
from hackeros.core import progression
from hackeros.core.missions import MissionStore, command_matches
from hackeros.model.events import ProgressEventType
from hackeros.model.missions import MissionState, Objective


def _fixed_clock() -> datetime:
    return datetime(2024, 3, 22, 11, 20, tzinfo=timezone.utc)


def _store(*missions) -> MissionStore:
    store = MissionStore(clock=_fixed_clock)
    for mission in missions:
        store.register_mission(mission)
    store.drain_events()
    return store


def _finish(store: MissionStore, mission_id: str) -> None:
    assert store.start_mission(mission_id)
    for obj in store.get(mission_id).objectives:
        store.complete_objective(mission_id, obj.id)


@pytest.mark.parametrize(
    "rule,command,expected",
    [
        ("ls", "ls", True),
        ("ls", "ls -la", False),
        ("ls -la", "ls   -la", True),
        ("cat*", "cat notes.txt", True),
        ("cat*", "concat", False),
        ("/^ls( -\\w+)?$/", "ls -l", True),
        ("/^ls( -\\w+)?$/", "lsblk", False),
        ("/mkdir .*projects/", "mkdir -p ~/projects/x", True),
        ("/(unclosed/", "anything", False),
    ],
)
def test_command_matches(rule: str, command: str, expected: bool) -> None:
    assert command_matches(rule, command) is expected


def test_start_requires_available_state() -> None:
    store = _store(make_mission("locked", state=MissionState.LOCKED), make_mission("m1"))
    assert not store.start_mission("locked")
    assert not store.start_mission("missing")
    assert store.start_mission("m1")
    mission = store.get("m1")
    assert mission.state == MissionState.IN_PROGRESS
    assert mission.start_time == _fixed_clock()
    assert store.active_mission_id == "m1"
    # already in progress
    assert not store.start_mission("m1")


def test_start_requires_prerequisites() -> None:
    store = _store(make_mission("a"), make_mission("b", prerequisites={"a"}))
    assert not store.start_mission("b")
    _finish(store, "a")
    assert store.start_mission("b")


def test_command_objective_completes_mission_once() -> None:
    store = _store(make_mission("m1", xp=100))
    store.start_mission("m1")
    assert not store.check_command_objective("m1", "pwd", "")
    assert store.check_command_objective("m1", "ls", "")
    assert store.get("m1").state == MissionState.COMPLETED
    assert store.active_mission_id is None
    assert store.progress.xp == 100

    assert store.complete_mission("m1")
    assert not store.check_command_objective("m1", "ls", "")
    assert store.progress.xp == 100
    assert store.progress.completed_missions == {"m1"}


def test_objective_completion_is_idempotent() -> None:
    objectives = [Objective(id="a", description="a"), Objective(id="b", description="b")]
    store = _store(make_mission("m1", objectives=objectives))
    store.start_mission("m1")
    assert store.complete_objective("m1", "a")
    assert store.complete_objective("m1", "a")
    kinds = [e.type for e in store.drain_events()]
    assert kinds.count(ProgressEventType.OBJECTIVE_COMPLETED) == 1
    assert store.get("m1").state == MissionState.IN_PROGRESS
    assert not store.complete_objective("m1", "zzz")


def test_required_output_rule() -> None:
    obj = Objective(id="scan", description="scan", required_command="nmap*", required_output="Nmap scan report")
    store = _store(make_mission("m1", objectives=[obj]))
    store.start_mission("m1")
    assert not store.check_command_objective("m1", "nmap -h", "usage")
    assert store.check_command_objective("m1", "nmap -sn 10.0.0.0/24", "Nmap scan report for 10.0.0.1")


def test_file_objective_rule() -> None:
    obj = Objective(
        id="note",
        description="write a note",
        required_file="/home/user/notes.txt",
        expected_file_content="owned",
    )
    store = _store(make_mission("m1", objectives=[obj]))
    store.start_mission("m1")
    assert not store.check_file_objective("m1", "/home/user/other.txt", "owned")
    assert not store.check_file_objective("m1", "/home/user/notes.txt", "nothing yet")
    assert store.check_file_objective("m1", "/home/user//notes.txt", "I owned it")
    assert store.get("m1").state == MissionState.COMPLETED


def test_file_objective_tilde_follows_the_given_home() -> None:
    obj = Objective(id="loot", description="stash loot", required_file="~/loot.txt")
    store = _store(make_mission("m1", objectives=[obj]))
    store.start_mission("m1")
    assert not store.check_file_objective("m1", "/home/user/loot.txt", "", home="/root")
    assert store.check_file_objective("m1", "/root/loot.txt", "", home="/root")


def test_manual_objective_is_not_auto_completed() -> None:
    obj = Objective(id="o1", description="x", required_command="ls", auto_complete=False)
    store = _store(make_mission("m1", objectives=[obj]))
    store.start_mission("m1")
    assert not store.check_command_objective("m1", "ls", "")
    assert store.complete_objective("m1", "o1")


def test_completion_unlocks_next_mission() -> None:
    store = _store(
        make_mission("a", unlocks=["b"]),
        make_mission("b", state=MissionState.LOCKED, prerequisites={"a"}),
    )
    _finish(store, "a")
    assert store.get("b").state == MissionState.AVAILABLE
    kinds = [e.type for e in store.drain_events()]
    assert ProgressEventType.MISSION_UNLOCKED in kinds
    assert kinds.index(ProgressEventType.MISSION_COMPLETED) < kinds.index(ProgressEventType.REWARDS_GRANTED)


def test_unlock_waits_for_all_prerequisites() -> None:
    store = _store(
        make_mission("a", unlocks=["c"]),
        make_mission("b", unlocks=["c"]),
        make_mission("c", state=MissionState.LOCKED, prerequisites={"a", "b"}),
    )
    _finish(store, "a")
    assert store.get("c").state == MissionState.LOCKED
    _finish(store, "b")
    assert store.get("c").state == MissionState.AVAILABLE


def test_level_and_rank_do_not_depend_on_order() -> None:
    def run(order: list[str]) -> tuple[int, int, str, int]:
        store = _store(make_mission("a", xp=150), make_mission("b", xp=400), make_mission("c", xp=20))
        for mission_id in order:
            _finish(store, mission_id)
        p = store.progress
        return p.level, p.xp, p.rank, p.elo

    assert run(["a", "b", "c"]) == run(["c", "b", "a"]) == run(["b", "a", "c"])
    level, xp, rank, elo = run(["a", "b", "c"])
    assert xp == 570
    assert level == progression.level_for_xp(570) == 4
    assert elo == 570 * Balance.ELO_PER_XP
    assert rank == "Ethical Hacker"


def test_level_up_event() -> None:
    store = _store(make_mission("m1", xp=100))
    _finish(store, "m1")
    events = store.drain_events()
    level_ups = [e for e in events if e.type == ProgressEventType.LEVEL_UP]
    assert len(level_ups) == 1
    assert level_ups[0].data == {"old": 1, "new": 2}
    assert [e.event_id for e in events] == sorted(e.event_id for e in events)


def test_xp_to_next_level_clamps_at_max() -> None:
    top = Balance.LEVEL_XP[-1]
    assert progression.xp_to_next_level(0) == Balance.LEVEL_XP[1]
    assert progression.xp_to_next_level(top) == 0
    assert progression.xp_to_next_level(top * 10) == 0
    assert progression.level_for_xp(top * 10) == len(Balance.LEVEL_XP)


def test_skill_points_and_items() -> None:
    mission = make_mission("m1")
    mission.reward.skill_points = {"network_security": 2, "lockpicking": 1}
    mission.reward.items = ["usb_key"]
    store = _store(mission)
    _finish(store, "m1")
    assert store.progress.skills["network_security"] == 3
    assert store.progress.skills["lockpicking"] == 1
    assert store.progress.inventory == ["usb_key"]


def test_reregistration_keeps_latest_definition() -> None:
    store = _store(make_mission("m1", xp=10))
    store.register_mission(make_mission("m1", xp=99))
    assert store.get("m1").reward.xp == 99
    assert len(store.missions) == 1


def test_subscribers_receive_events() -> None:
    store = _store(make_mission("m1"))
    seen = []
    unsubscribe = store.subscribe(seen.append)
    store.start_mission("m1")
    unsubscribe()
    store.complete_objective("m1", "o1")
    assert [e.type for e in seen] == [ProgressEventType.MISSION_STARTED]


def test_recent_events_are_bounded() -> None:
    store = _store()
    for i in range(Balance.MAX_RECENT_EVENTS + 10):
        store.register_mission(make_mission(f"m{i}"))
    assert len(store.recent) == Balance.MAX_RECENT_EVENTS
    assert store.recent[-1].source.id == f"m{Balance.MAX_RECENT_EVENTS + 9}"


def test_export_import_roundtrip() -> None:
    objectives = [Objective(id="a", description="a"), Objective(id="b", description="b")]
    store = _store(make_mission("done", xp=300), make_mission("half", objectives=objectives))
    _finish(store, "done")
    store.start_mission("half")
    store.complete_objective("half", "a")
    snapshot = store.export_state()

    fresh = _store(
        make_mission("done", xp=300),
        make_mission("half", objectives=[Objective(id="a", description="a"), Objective(id="b", description="b")]),
    )
    fresh.import_state(snapshot)
    assert fresh.get("done").state == MissionState.COMPLETED
    assert fresh.get("half").state == MissionState.IN_PROGRESS
    assert [o.completed for o in fresh.get("half").objectives] == [True, False]
    assert fresh.active_mission_id == "half"
    assert fresh.progress.xp == 300
    assert fresh.progress.level == store.progress.level
    assert fresh.progress.completed_missions == {"done"}


def test_import_ignores_unknown_missions() -> None:
    store = _store(make_mission("m1"))
    store.import_state(
        {
            "missions": [
                {"id": "ghost", "state": "completed", "objectives": []},
                {"id": "m1", "state": "not-a-state", "objectives": []},
            ],
            "active_mission": "ghost",
        }
    )
    assert store.get("ghost") is None
    assert store.get("m1").state == MissionState.AVAILABLE
    assert store.active_mission_id is None
