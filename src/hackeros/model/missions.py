from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from hackeros.config.balance import Balance


class MissionState(str, Enum):
    LOCKED = "locked"
    AVAILABLE = "available"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Difficulty(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"
    EXPERT = "Expert"


@dataclass(slots=True)
class Objective:
    id: str
    description: str
    completed: bool = False
    # Matching rule; any combination of the three may be set.
    required_command: str | None = None
    required_output: str | None = None
    required_file: str | None = None
    expected_file_content: str | None = None
    auto_complete: bool = True

    @property
    def has_command_rule(self) -> bool:
        return self.required_command is not None or self.required_output is not None

    @property
    def has_file_rule(self) -> bool:
        return self.required_file is not None


@dataclass(slots=True)
class Reward:
    xp: int = 0
    skill_points: dict[str, int] = field(default_factory=dict)
    items: list[str] = field(default_factory=list)
    unlocks: list[str] = field(default_factory=list)


@dataclass(slots=True)
class Mission:
    id: str
    title: str
    description: str = ""
    category: str = "general"
    difficulty: Difficulty = Difficulty.BEGINNER
    objectives: list[Objective] = field(default_factory=list)
    reward: Reward = field(default_factory=Reward)
    state: MissionState = MissionState.LOCKED
    prerequisites: set[str] = field(default_factory=set)
    start_time: datetime | None = None
    hints: list[str] = field(default_factory=list)

    @property
    def completed_count(self) -> int:
        return sum(1 for o in self.objectives if o.completed)

    @property
    def all_objectives_completed(self) -> bool:
        return all(o.completed for o in self.objectives)

    def objective(self, objective_id: str) -> Objective | None:
        for obj in self.objectives:
            if obj.id == objective_id:
                return obj
        return None


@dataclass(slots=True)
class PlayerProgress:
    level: int = 1
    xp: int = 0
    xp_to_next_level: int = Balance.LEVEL_XP[1]
    rank: str = Balance.RANKS[0][1]
    elo: int = 0
    completed_missions: set[str] = field(default_factory=set)
    skills: dict[str, int] = field(default_factory=lambda: dict(Balance.DEFAULT_SKILLS))
    inventory: list[str] = field(default_factory=list)

    @property
    def is_max_level(self) -> bool:
        return self.level >= len(Balance.LEVEL_XP)
