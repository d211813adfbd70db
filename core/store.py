"""
Store collaborator for Elite65.

Defines the interface the assistant needs from the tracker's backing store,
plus an in-memory implementation used by the demo API and the tests.
"""
import uuid
from abc import ABC, abstractmethod
from copy import deepcopy
from typing import Any, Dict, List, Optional

from core.exceptions import StoreError
from core.logger import get_logger
from core.models import Habit, HabitLog, Task, Tracker, UserStats, now_ms

logger = get_logger("store")


class TaskStore(ABC):
    """Base class for all stores. Every call is scoped to one user."""

    # --- reads ---

    @abstractmethod
    def list_tasks(self, user_id: str) -> List[Task]:
        pass

    @abstractmethod
    def list_trackers(self, user_id: str) -> List[Tracker]:
        pass

    @abstractmethod
    def list_habits(self, user_id: str) -> List[Habit]:
        pass

    @abstractmethod
    def list_habit_logs(self, user_id: str) -> List[HabitLog]:
        pass

    @abstractmethod
    def get_user_stats(self, user_id: str) -> UserStats:
        pass

    # --- mutations ---

    @abstractmethod
    def create_task(self, user_id: str, data: Dict[str, Any]) -> Task:
        """
        Create a task.

        Args:
            user_id: owner
            data: task fields (title, status, difficulty, due_date, tracker_id, skills)

        Returns:
            the stored task, with its new id
        """
        pass

    @abstractmethod
    def update_task(self, user_id: str, task_id: str, updates: Dict[str, Any]) -> Task:
        """Apply a partial update. Raises StoreError for an unknown id."""
        pass

    @abstractmethod
    def delete_task(self, user_id: str, task_id: str) -> None:
        pass

    @abstractmethod
    def create_tracker(self, user_id: str, name: str, tracker_type: str = "daily") -> Tracker:
        pass

    @abstractmethod
    def delete_tracker(self, user_id: str, tracker_id: str) -> None:
        pass


class _Workspace:
    """One user's data inside the in-memory store."""

    def __init__(self):
        self.tasks: Dict[str, Task] = {}
        self.trackers: Dict[str, Tracker] = {}
        self.habits: List[Habit] = []
        self.habit_logs: List[HabitLog] = []
        self.user_stats = UserStats()


class InMemoryStore(TaskStore):
    """Dict-backed store. Insertion order is list order."""

    def __init__(self):
        self._workspaces: Dict[str, _Workspace] = {}

    def _workspace(self, user_id: str) -> _Workspace:
        if user_id not in self._workspaces:
            self._workspaces[user_id] = _Workspace()
        return self._workspaces[user_id]

    @staticmethod
    def _new_id() -> str:
        return uuid.uuid4().hex

    def load_snapshot(self, user_id: str, snapshot: Dict[str, Any]) -> None:
        """
        Replace a user's data with a snapshot.

        Args:
            user_id: owner
            snapshot: {"tasks": [...], "trackers": [...], "habits": [...],
                "habit_logs": [...], "user_stats": {...}}; camelCase keys accepted
        """
        ws = _Workspace()
        for raw in snapshot.get("trackers") or []:
            tracker = Tracker.from_dict(raw)
            tracker.id = tracker.id or self._new_id()
            ws.trackers[tracker.id] = tracker
        for raw in snapshot.get("tasks") or []:
            task = Task.from_dict(raw)
            task.id = task.id or self._new_id()
            ws.tasks[task.id] = task
        ws.habits = [Habit.from_dict(raw) for raw in snapshot.get("habits") or []]
        logs = snapshot.get("habit_logs") or snapshot.get("habitLogs") or []
        ws.habit_logs = [HabitLog.from_dict(raw) for raw in logs]
        stats = snapshot.get("user_stats") or snapshot.get("userStats")
        ws.user_stats = UserStats.from_dict(stats)

        self._workspaces[user_id] = ws
        logger.info(
            "Loaded snapshot for %s: %d tasks, %d trackers, %d habits",
            user_id, len(ws.tasks), len(ws.trackers), len(ws.habits)
        )

    def export_snapshot(self, user_id: str) -> Dict[str, Any]:
        ws = self._workspace(user_id)
        return {
            "tasks": [t.to_dict() for t in ws.tasks.values()],
            "trackers": [t.to_dict() for t in ws.trackers.values()],
            "habits": [h.to_dict() for h in ws.habits],
            "habit_logs": [log.to_dict() for log in ws.habit_logs],
            "user_stats": ws.user_stats.to_dict(),
        }

    # --- reads ---

    def list_tasks(self, user_id: str) -> List[Task]:
        return [deepcopy(t) for t in self._workspace(user_id).tasks.values()]

    def list_trackers(self, user_id: str) -> List[Tracker]:
        return [deepcopy(t) for t in self._workspace(user_id).trackers.values()]

    def list_habits(self, user_id: str) -> List[Habit]:
        return deepcopy(self._workspace(user_id).habits)

    def list_habit_logs(self, user_id: str) -> List[HabitLog]:
        return deepcopy(self._workspace(user_id).habit_logs)

    def get_user_stats(self, user_id: str) -> UserStats:
        return deepcopy(self._workspace(user_id).user_stats)

    # --- mutations ---

    def create_task(self, user_id: str, data: Dict[str, Any]) -> Task:
        fields = dict(data)
        fields["id"] = self._new_id()
        fields.setdefault("created_at", now_ms())
        try:
            task = Task.from_dict(fields)
        except ValueError as e:
            raise StoreError(f"Invalid task data: {e}", "create_task") from e

        self._workspace(user_id).tasks[task.id] = task
        return deepcopy(task)

    def update_task(self, user_id: str, task_id: str, updates: Dict[str, Any]) -> Task:
        ws = self._workspace(user_id)
        current: Optional[Task] = ws.tasks.get(task_id)
        if current is None:
            raise StoreError(f"Task {task_id} not found", "update_task")

        merged = current.to_dict()
        merged.update(updates)
        merged["id"] = task_id
        try:
            task = Task.from_dict(merged)
        except ValueError as e:
            raise StoreError(f"Invalid task update: {e}", "update_task") from e

        ws.tasks[task_id] = task
        return deepcopy(task)

    def delete_task(self, user_id: str, task_id: str) -> None:
        ws = self._workspace(user_id)
        if ws.tasks.pop(task_id, None) is None:
            raise StoreError(f"Task {task_id} not found", "delete_task")

    def create_tracker(self, user_id: str, name: str, tracker_type: str = "daily") -> Tracker:
        try:
            tracker = Tracker.from_dict({"id": self._new_id(), "name": name, "type": tracker_type})
        except ValueError as e:
            raise StoreError(f"Invalid tracker data: {e}", "create_tracker") from e

        self._workspace(user_id).trackers[tracker.id] = tracker
        return deepcopy(tracker)

    def delete_tracker(self, user_id: str, tracker_id: str) -> None:
        ws = self._workspace(user_id)
        if ws.trackers.pop(tracker_id, None) is None:
            raise StoreError(f"Tracker {tracker_id} not found", "delete_tracker")
