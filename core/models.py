"""
Core Data Models for Elite65.
Read snapshots of the tracker's entities plus the chat-side types.

Timestamps are epoch milliseconds, the unit the store speaks.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class TaskStatus(str, Enum):
    YET_TO_START = "YET_TO_START"
    STARTED = "STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class Difficulty(str, Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"
    EPIC = "EPIC"


DIFFICULTY_RANK = {
    Difficulty.EASY: 1,
    Difficulty.MEDIUM: 2,
    Difficulty.HARD: 3,
    Difficulty.EPIC: 4,
}


class TrackerType(str, Enum):
    DAILY = "daily"
    ASSIGNMENT = "assignment"
    PROJECT = "project"
    HABIT = "habit"


class Sender(str, Enum):
    USER = "user"
    BOT = "bot"


class ActionKind(str, Enum):
    CREATE_TASK = "CREATE_TASK"
    EDIT_TASK = "EDIT_TASK"
    DELETE_TASK = "DELETE_TASK"
    CREATE_TRACKER = "CREATE_TRACKER"
    DELETE_TRACKER = "DELETE_TRACKER"


def now_ms(moment: Optional[datetime] = None) -> int:
    """Epoch milliseconds for ``moment`` (default: now, local time)."""
    moment = moment or datetime.now()
    return int(moment.timestamp() * 1000)


def _pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


@dataclass
class Task:
    """A mission on the board."""
    id: str
    title: str
    status: TaskStatus = TaskStatus.YET_TO_START
    difficulty: Difficulty = Difficulty.MEDIUM
    skills: List[str] = field(default_factory=list)   # case preserved
    tracker_id: str = ""
    due_date: Optional[int] = None
    created_at: Optional[int] = None
    description: str = ""

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        return cls(
            id=str(_pick(data, "id", "$id", default="")),
            title=str(_pick(data, "title", default="")),
            status=TaskStatus(_pick(data, "status", default=TaskStatus.YET_TO_START.value)),
            difficulty=Difficulty(_pick(data, "difficulty", default=Difficulty.MEDIUM.value)),
            skills=list(_pick(data, "skills", default=[])),
            tracker_id=str(_pick(data, "tracker_id", "trackerId", default="")),
            due_date=_pick(data, "due_date", "dueDate"),
            created_at=_pick(data, "created_at", "createdAt"),
            description=str(_pick(data, "description", default="")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "status": self.status.value,
            "difficulty": self.difficulty.value,
            "skills": list(self.skills),
            "tracker_id": self.tracker_id,
            "due_date": self.due_date,
            "created_at": self.created_at,
            "description": self.description,
        }


@dataclass
class Tracker:
    """A course/module that groups tasks."""
    id: str
    name: str
    type: TrackerType = TrackerType.DAILY

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tracker":
        return cls(
            id=str(_pick(data, "id", "$id", default="")),
            name=str(_pick(data, "name", default="")),
            type=TrackerType(_pick(data, "type", default=TrackerType.DAILY.value)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "type": self.type.value}


@dataclass
class Habit:
    id: str
    title: str
    goal_amount: float = 1
    unit: str = ""
    start_date: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Habit":
        return cls(
            id=str(_pick(data, "id", "$id", default="")),
            title=str(_pick(data, "title", default="")),
            goal_amount=_pick(data, "goal_amount", "goalAmount", default=1),
            unit=str(_pick(data, "unit", default="")),
            start_date=_pick(data, "start_date", "startDate"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "goal_amount": self.goal_amount,
            "unit": self.unit,
            "start_date": self.start_date,
        }


@dataclass
class HabitLog:
    habit_id: str
    date: str            # YYYY-MM-DD
    value: float = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HabitLog":
        return cls(
            habit_id=str(_pick(data, "habit_id", "habitId", default="")),
            date=str(_pick(data, "date", default="")),
            value=_pick(data, "value", default=0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"habit_id": self.habit_id, "date": self.date, "value": self.value}


@dataclass
class SkillStats:
    level: int = 1
    value: float = 0     # 0-100, hex graph scale


@dataclass
class UserStats:
    level: int = 1
    xp: int = 0
    next_level_xp: int = 100
    streak: int = 0
    skills: Dict[str, SkillStats] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "UserStats":
        data = data or {}
        raw_skills = _pick(data, "skills", default={}) or {}
        skills = {
            str(name): SkillStats(
                level=int(_pick(entry, "level", default=1)),
                value=_pick(entry, "value", default=0),
            )
            for name, entry in raw_skills.items()
        }
        return cls(
            level=int(_pick(data, "level", default=1)),
            xp=int(_pick(data, "xp", default=0)),
            next_level_xp=int(_pick(data, "next_level_xp", "nextLevelXp", default=100)),
            streak=int(_pick(data, "streak", default=0)),
            skills=skills,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "xp": self.xp,
            "next_level_xp": self.next_level_xp,
            "streak": self.streak,
            "skills": {
                name: {"level": s.level, "value": s.value}
                for name, s in self.skills.items()
            },
        }


@dataclass
class ChatMessage:
    """One line of the transcript. Never mutated after creation."""
    id: str
    text: str
    sender: Sender
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "sender": self.sender.value,
            "timestamp": self.timestamp,
        }


@dataclass
class GameContext:
    """Read snapshot handed to the rule engine for one turn."""
    tasks: List[Task] = field(default_factory=list)
    habits: List[Habit] = field(default_factory=list)
    user_stats: UserStats = field(default_factory=UserStats)
    habit_logs: List[HabitLog] = field(default_factory=list)
    now: Optional[datetime] = None

    def __post_init__(self):
        if self.now is None:
            self.now = datetime.now()

    @property
    def pending_tasks(self) -> List[Task]:
        return [t for t in self.tasks if not t.is_completed]


@dataclass
class BotAction:
    """A requested, not yet executed mutation."""
    kind: ActionKind
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "payload": dict(self.payload)}
