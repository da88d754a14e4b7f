from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Callable

from hackeros.config.balance import Balance
from hackeros.core import progression
from hackeros.model.events import ProgressEvent, ProgressEventType, Severity, SourceRef
from hackeros.model.fs import resolve_path
from hackeros.model.missions import Mission, MissionState, Objective, PlayerProgress

log = logging.getLogger(__name__)

Listener = Callable[[ProgressEvent], None]


def command_matches(rule: str, command: str) -> bool:
    """Match a typed command against an objective rule.

    '/pattern/' is a regular expression searched in the command, 'prefix*' matches by prefix,
    anything else must equal the command once runs of whitespace are collapsed.
    """
    command = " ".join(command.split())
    if len(rule) >= 2 and rule.startswith("/") and rule.endswith("/"):
        try:
            return re.search(rule[1:-1], command) is not None
        except re.error:
            log.warning("bad objective pattern %r", rule)
            return False
    if rule.endswith("*"):
        return command.startswith(" ".join(rule[:-1].split()))
    return command == " ".join(rule.split())


def objective_matches_command(obj: Objective, command: str, output: str) -> bool:
    if not obj.has_command_rule:
        return False
    if obj.required_command is not None and not command_matches(obj.required_command, command):
        return False
    if obj.required_output is not None and obj.required_output not in output:
        return False
    return True


def objective_matches_file(obj: Objective, path: str, content: str, home: str = Balance.HOME) -> bool:
    if not obj.has_file_rule:
        return False
    if resolve_path(obj.required_file, "/", home) != resolve_path(path, "/", home):
        return False
    if obj.expected_file_content is not None and obj.expected_file_content not in content:
        return False
    return True


class MissionStore:
    _MAX_RECENT_EVENTS = Balance.MAX_RECENT_EVENTS

    def __init__(self, clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)) -> None:
        self.missions: dict[str, Mission] = {}
        self.progress = PlayerProgress()
        progression.recompute(self.progress)
        self.active_mission_id: str | None = None
        self.recent: list[ProgressEvent] = []
        self._pending: list[ProgressEvent] = []
        self._listeners: list[Listener] = []
        self._next_event_seq = 1
        self._clock = clock

    # --- queries ---

    def get(self, mission_id: str) -> Mission | None:
        return self.missions.get(mission_id)

    @property
    def active_mission(self) -> Mission | None:
        if self.active_mission_id is None:
            return None
        return self.missions.get(self.active_mission_id)

    def missions_in_state(self, state: MissionState) -> list[Mission]:
        return [m for m in self.missions.values() if m.state == state]

    def prerequisites_met(self, mission: Mission) -> bool:
        return mission.prerequisites <= self.progress.completed_missions

    # --- subscriptions ---

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def drain_events(self) -> list[ProgressEvent]:
        events = list(self._pending)
        self._pending.clear()
        return events

    # --- mission lifecycle ---

    def register_mission(self, mission: Mission) -> None:
        if mission.id in self.missions:
            log.warning("mission %s registered twice; keeping the latest definition", mission.id)
        self.missions[mission.id] = mission
        self._emit(
            ProgressEventType.MISSION_REGISTERED,
            Severity.INFO,
            mission.id,
            f"Mission registered: {mission.title}",
        )

    def start_mission(self, mission_id: str) -> bool:
        mission = self.missions.get(mission_id)
        if mission is None:
            return False
        if mission.state != MissionState.AVAILABLE or not self.prerequisites_met(mission):
            return False
        for obj in mission.objectives:
            obj.completed = False
        mission.start_time = self._clock()
        mission.state = MissionState.IN_PROGRESS
        self.active_mission_id = mission.id
        log.info("mission %s started", mission.id)
        self._emit(
            ProgressEventType.MISSION_STARTED,
            Severity.INFO,
            mission.id,
            f"Mission started: {mission.title}",
        )
        return True

    def complete_objective(self, mission_id: str, objective_id: str) -> bool:
        mission = self.missions.get(mission_id)
        if mission is None:
            return False
        obj = mission.objective(objective_id)
        if obj is None:
            return False
        if obj.completed:
            return True
        if mission.state != MissionState.IN_PROGRESS:
            return False
        self._mark_completed(mission, [obj])
        return True

    def check_command_objective(self, mission_id: str, command: str, output: str) -> bool:
        mission = self.missions.get(mission_id)
        if mission is None or mission.state != MissionState.IN_PROGRESS:
            return False
        matched = [
            o for o in mission.objectives
            if not o.completed and o.auto_complete and objective_matches_command(o, command, output)
        ]
        log.debug("command check %s %r -> %d match(es)", mission_id, command, len(matched))
        if not matched:
            return False
        self._mark_completed(mission, matched)
        return True

    def check_file_objective(self, mission_id: str, path: str, content: str, home: str = Balance.HOME) -> bool:
        """`home` expands a leading '~' in the objective's required_file."""
        mission = self.missions.get(mission_id)
        if mission is None or mission.state != MissionState.IN_PROGRESS:
            return False
        matched = [
            o for o in mission.objectives
            if not o.completed and o.auto_complete and objective_matches_file(o, path, content, home)
        ]
        log.debug("file check %s %r -> %d match(es)", mission_id, path, len(matched))
        if not matched:
            return False
        self._mark_completed(mission, matched)
        return True

    def _mark_completed(self, mission: Mission, objectives: list[Objective]) -> None:
        for obj in objectives:
            obj.completed = True
            self._emit(
                ProgressEventType.OBJECTIVE_COMPLETED,
                Severity.NOTICE,
                mission.id,
                f"Objective complete: {obj.description}",
                {"objective_id": obj.id},
            )
        if mission.all_objectives_completed:
            self.complete_mission(mission.id)

    def complete_mission(self, mission_id: str) -> bool:
        mission = self.missions.get(mission_id)
        if mission is None:
            return False
        if mission.state == MissionState.COMPLETED:
            return True
        if mission.state != MissionState.IN_PROGRESS or not mission.all_objectives_completed:
            return False
        mission.state = MissionState.COMPLETED
        self.progress.completed_missions.add(mission.id)
        if self.active_mission_id == mission.id:
            self.active_mission_id = None
        log.info("mission %s completed", mission.id)
        self._emit(
            ProgressEventType.MISSION_COMPLETED,
            Severity.MILESTONE,
            mission.id,
            f"Mission complete: {mission.title}",
        )
        self._apply_reward(mission)
        for unlock_id in mission.reward.unlocks:
            self._unlock(unlock_id)
        return True

    def _unlock(self, mission_id: str) -> None:
        mission = self.missions.get(mission_id)
        if mission is None or mission.state != MissionState.LOCKED:
            return
        if not self.prerequisites_met(mission):
            return
        mission.state = MissionState.AVAILABLE
        self._emit(
            ProgressEventType.MISSION_UNLOCKED,
            Severity.NOTICE,
            mission.id,
            f"New mission available: {mission.title}",
        )

    def _apply_reward(self, mission: Mission) -> None:
        reward = mission.reward
        p = self.progress
        old_level, old_rank = p.level, p.rank
        p.xp += reward.xp
        p.elo += reward.xp * Balance.ELO_PER_XP
        for skill, points in reward.skill_points.items():
            p.skills[skill] = p.skills.get(skill, 0) + points
        p.inventory.extend(reward.items)
        progression.recompute(p)
        self._emit(
            ProgressEventType.REWARDS_GRANTED,
            Severity.NOTICE,
            mission.id,
            f"+{reward.xp} XP",
            {"xp": reward.xp, "skill_points": dict(reward.skill_points), "items": list(reward.items)},
        )
        if p.level != old_level:
            log.info("level up: %d -> %d", old_level, p.level)
            self._emit(
                ProgressEventType.LEVEL_UP,
                Severity.MILESTONE,
                "player",
                f"Level up! You are now level {p.level}",
                {"old": old_level, "new": p.level},
                kind="player",
            )
        if p.rank != old_rank:
            log.info("rank up: %s -> %s", old_rank, p.rank)
            self._emit(
                ProgressEventType.RANK_UP,
                Severity.MILESTONE,
                "player",
                f"Rank up! New rank: {p.rank}",
                {"old": old_rank, "new": p.rank},
                kind="player",
            )

    # --- persistence ---

    def export_state(self) -> dict[str, Any]:
        p = self.progress
        return {
            "missions": [
                {
                    "id": m.id,
                    "state": m.state.value,
                    "start_time": m.start_time.isoformat() if m.start_time else None,
                    "objectives": [{"id": o.id, "completed": o.completed} for o in m.objectives],
                }
                for m in self.missions.values()
            ],
            "player_progress": {
                "level": p.level,
                "xp": p.xp,
                "xp_to_next_level": p.xp_to_next_level,
                "rank": p.rank,
                "elo": p.elo,
                "completed_missions": sorted(p.completed_missions),
                "skills": dict(p.skills),
                "inventory": list(p.inventory),
            },
            "active_mission": self.active_mission_id or "",
        }

    def import_state(self, snapshot: dict[str, Any]) -> None:
        """Apply an export_state snapshot.

        The whole snapshot is parsed before anything is assigned, so a malformed one
        raises (KeyError, TypeError, ValueError or AttributeError) and leaves the store untouched.
        """
        parsed = []
        for entry in snapshot.get("missions", []):
            if not isinstance(entry, dict):
                raise TypeError(f"bad mission entry: {entry!r}")
            mission = self.missions.get(entry.get("id", ""))
            if mission is None:
                log.warning("ignoring saved state for unknown mission %r", entry.get("id"))
                continue
            try:
                state = MissionState(entry["state"])
            except (KeyError, ValueError):
                log.warning("bad saved state for mission %s: %r", mission.id, entry.get("state"))
                continue
            start = entry.get("start_time")
            start_time = datetime.fromisoformat(start) if start else None
            done = {o["id"]: bool(o.get("completed")) for o in entry.get("objectives", []) if "id" in o}
            parsed.append((mission, state, start_time, done))

        progress = None
        saved = snapshot.get("player_progress")
        if saved:
            progress = PlayerProgress(
                xp=int(saved.get("xp", 0)),
                elo=int(saved.get("elo", 0)),
                completed_missions=set(saved.get("completed_missions", [])),
                skills={k: int(v) for k, v in dict(saved.get("skills", Balance.DEFAULT_SKILLS)).items()},
                inventory=list(saved.get("inventory", [])),
            )
            progression.recompute(progress)

        active = snapshot.get("active_mission") or None
        if active is not None and not isinstance(active, str):
            raise TypeError(f"bad active mission: {active!r}")

        for mission, state, start_time, done in parsed:
            mission.state = state
            mission.start_time = start_time
            for obj in mission.objectives:
                obj.completed = done.get(obj.id, False)
        if progress is not None:
            self.progress = progress

        if active is not None and active not in self.missions:
            log.warning("ignoring unknown active mission %r", active)
            active = None
        elif active is not None and self.missions[active].state != MissionState.IN_PROGRESS:
            active = None
        self.active_mission_id = active

    # --- events ---

    def _emit(
        self,
        event_type: ProgressEventType,
        severity: Severity,
        source_id: str,
        message: str,
        data: dict | None = None,
        kind: str = "mission",
    ) -> ProgressEvent:
        event = self._make_event(event_type, severity, SourceRef(kind=kind, id=source_id), message, data)
        self._record_event(event)
        for listener in list(self._listeners):
            listener(event)
        return event

    def _record_event(self, event: ProgressEvent) -> None:
        self._pending.append(event)
        self.recent.append(event)
        if len(self.recent) > self._MAX_RECENT_EVENTS:
            self.recent.pop(0)

    def _make_event(
        self,
        event_type: ProgressEventType,
        severity: Severity,
        source: SourceRef,
        message: str,
        data: dict | None = None,
    ) -> ProgressEvent:
        seq = self._next_event_seq
        self._next_event_seq += 1
        return ProgressEvent(
            event_id=f"P{seq:05d}",
            type=event_type,
            severity=severity,
            source=source,
            message=message,
            data=data or {},
            t=self._clock(),
        )
