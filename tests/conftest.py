from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from hackeros.bootstrap import create_filesystem, create_mission_store  # noqa: E402
from hackeros.cli.output import ListSink, OutputLine  # noqa: E402
from hackeros.cli.session import SessionInterpreter  # noqa: E402
from hackeros.core.missions import MissionStore  # noqa: E402
from hackeros.core.vfs import VirtualFilesystem  # noqa: E402
from hackeros.model.missions import Mission, MissionState, Objective, Reward  # noqa: E402


@pytest.fixture
def fs() -> VirtualFilesystem:
    return create_filesystem()


@pytest.fixture
def empty_fs() -> VirtualFilesystem:
    return VirtualFilesystem()


@pytest.fixture
def store() -> MissionStore:
    return create_mission_store()


@pytest.fixture
def sink() -> ListSink:
    return ListSink()


@pytest.fixture
def session(fs: VirtualFilesystem, store: MissionStore, sink: ListSink) -> SessionInterpreter:
    return SessionInterpreter(fs, store, sink=sink)


def make_mission(
    mission_id: str = "m1",
    objectives: list[Objective] | None = None,
    xp: int = 100,
    state: MissionState = MissionState.AVAILABLE,
    prerequisites: set[str] | None = None,
    unlocks: list[str] | None = None,
) -> Mission:
    return Mission(
        id=mission_id,
        title=f"Mission {mission_id}",
        description="",
        category="test",
        objectives=objectives if objectives is not None else [Objective(id="o1", description="list", required_command="ls")],
        reward=Reward(xp=xp, unlocks=unlocks or []),
        state=state,
        prerequisites=prerequisites or set(),
    )


def texts(lines: list[OutputLine]) -> list[str]:
    return [line.text for line in lines]


def errors(lines: list[OutputLine]) -> list[str]:
    return [line.text for line in lines if line.is_error]
