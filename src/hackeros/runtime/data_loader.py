from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from hackeros.model.missions import Difficulty, Mission, MissionState, Objective, Reward

_DATA_ROOT = Path(__file__).resolve().parents[1] / "data"


class MissionDataError(ValueError):
    pass


def _objective_from_dict(mission_id: str, raw: dict[str, Any]) -> Objective:
    if "id" not in raw or "description" not in raw:
        raise MissionDataError(f"Mission '{mission_id}' has an objective without id/description.")
    return Objective(
        id=str(raw["id"]),
        description=str(raw["description"]),
        required_command=raw.get("required_command"),
        required_output=raw.get("required_output"),
        required_file=raw.get("required_file"),
        expected_file_content=raw.get("expected_file_content"),
        auto_complete=bool(raw.get("auto_complete", True)),
    )


def mission_from_dict(raw: dict[str, Any]) -> Mission:
    mission_id = raw.get("id")
    if not mission_id or "title" not in raw:
        raise MissionDataError(f"Mission without id/title: {raw!r}")
    reward_raw = raw.get("reward", {})
    try:
        difficulty = Difficulty(raw.get("difficulty", Difficulty.BEGINNER.value))
        state = MissionState(raw.get("state", MissionState.LOCKED.value))
    except ValueError as e:
        raise MissionDataError(f"Mission '{mission_id}': {e}") from e
    return Mission(
        id=str(mission_id),
        title=str(raw["title"]),
        description=str(raw.get("description", "")),
        category=str(raw.get("category", "general")),
        difficulty=difficulty,
        objectives=[_objective_from_dict(mission_id, o) for o in raw.get("objectives", [])],
        reward=Reward(
            xp=int(reward_raw.get("xp", 0)),
            skill_points={str(k): int(v) for k, v in reward_raw.get("skill_points", {}).items()},
            items=[str(i) for i in reward_raw.get("items", [])],
            unlocks=[str(u) for u in reward_raw.get("unlocks", [])],
        ),
        state=state,
        prerequisites={str(p) for p in raw.get("prerequisites", [])},
        hints=[str(h) for h in raw.get("hints", [])],
    )


def load_missions(path: Path | None = None) -> list[Mission]:
    root = path or (_DATA_ROOT / "missions")
    if not root.exists():
        return []
    missions: dict[str, Mission] = {}
    for file in sorted(root.glob("*.json")):
        with file.open("r", encoding="utf-8") as fh:
            mission = mission_from_dict(json.load(fh))
        if mission.id in missions:
            raise MissionDataError(f"Duplicate mission id: {mission.id}")
        missions[mission.id] = mission
    _validate_prerequisites(missions)
    return list(missions.values())


def _validate_prerequisites(missions: dict[str, Mission]) -> None:
    for mission in missions.values():
        for prereq in mission.prerequisites:
            if prereq not in missions:
                raise MissionDataError(f"Mission '{mission.id}' has unknown prerequisite '{prereq}'.")
        for unlock in mission.reward.unlocks:
            if unlock not in missions:
                raise MissionDataError(f"Mission '{mission.id}' unlocks unknown mission '{unlock}'.")

    visiting: set[str] = set()
    visited: set[str] = set()

    def visit(mission_id: str, path: list[str]) -> None:
        if mission_id in visited:
            return
        if mission_id in visiting:
            cycle = path[path.index(mission_id):] + [mission_id]
            raise MissionDataError(f"Circular mission prerequisites: {' -> '.join(cycle)}")
        visiting.add(mission_id)
        path.append(mission_id)
        for prereq in sorted(missions[mission_id].prerequisites):
            visit(prereq, path)
        path.pop()
        visiting.remove(mission_id)
        visited.add(mission_id)

    for mission_id in missions:
        visit(mission_id, [])
