from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class Severity(str, Enum):
    INFO = "info"
    NOTICE = "notice"
    MILESTONE = "milestone"


class ProgressEventType(str, Enum):
    MISSION_REGISTERED = "mission_registered"
    MISSION_STARTED = "mission_started"
    OBJECTIVE_COMPLETED = "objective_completed"
    MISSION_COMPLETED = "mission_completed"
    MISSION_UNLOCKED = "mission_unlocked"
    REWARDS_GRANTED = "rewards_granted"
    LEVEL_UP = "level_up"
    RANK_UP = "rank_up"


@dataclass(slots=True)
class SourceRef:
    kind: str  # "mission", "player"
    id: str


@dataclass(slots=True)
class ProgressEvent:
    event_id: str
    type: ProgressEventType
    severity: Severity
    source: SourceRef
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    t: datetime = field(default_factory=datetime.now)
