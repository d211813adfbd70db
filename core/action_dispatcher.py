"""
Action Dispatcher for Elite65.

Takes the BotAction a rule produced, resolves the free-text names in its
payload against live store data, and issues at most one mutation.

Resolution never guesses: a name the fuzzy matcher cannot place yields an
"unresolved" result and no write.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from core.exceptions import EntityNotFoundError, StoreError, UnreadableCommandError
from core.fuzzy_matcher import best_match, merge_skill_names
from core.logger import get_logger
from core.models import ActionKind, BotAction, Task, Tracker

logger = get_logger("dispatcher")

NEW_TASK_MODULE_HINT = "Name an existing module, or create it first with 'create course <name>'."


class DispatchStatus(str, Enum):
    DISPATCHED = "dispatched"
    UNRESOLVED = "unresolved"   # a referenced name matched nothing
    FAILED = "failed"           # the store raised
    SKIPPED = "skipped"         # nothing to do (e.g. tracker already exists)


@dataclass
class DispatchResult:
    status: DispatchStatus
    action: BotAction
    entity_id: Optional[str] = None
    message: str = ""


def _title_key(task: Task) -> str:
    return task.title


class ActionDispatcher:
    """
    Executes chat actions against a TaskStore.

    Args:
        store: the store collaborator
    """

    def __init__(self, store):
        self.store = store

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve_tracker(self, name: str, trackers: Sequence[Tracker], detail: Optional[str] = None) -> Tracker:
        """Exact (case-insensitive) name first, then fuzzy; raises EntityNotFoundError."""
        wanted = (name or "").strip().lower()
        if wanted:
            for tracker in trackers:
                if tracker.name.strip().lower() == wanted:
                    return tracker

        match = best_match(name, list(trackers))
        if match is None:
            raise EntityNotFoundError("module", name, detail)
        return match

    def resolve_task(
        self,
        name: str,
        tasks: Sequence[Task],
        trackers: Sequence[Tracker],
        course_name: Optional[str] = None
    ) -> Task:
        """
        Fuzzy-match a task title, optionally narrowed to one course.

        The course filter keeps tasks whose tracker name contains
        ``course_name`` (case-insensitive).
        """
        candidates = list(tasks)
        if course_name:
            needle = course_name.strip().lower()
            tracker_ids = {t.id for t in trackers if needle in t.name.lower()}
            candidates = [t for t in candidates if t.tracker_id in tracker_ids]
            if not candidates:
                raise EntityNotFoundError("mission", name, f"No missions found in module '{course_name}'.")

        match = best_match(name, candidates, key=_title_key)
        if match is None:
            raise EntityNotFoundError("mission", name)
        return match

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(
        self,
        user_id: str,
        action: BotAction,
        tasks: Optional[List[Task]] = None,
        trackers: Optional[List[Tracker]] = None,
        skills: Optional[Sequence[str]] = None
    ) -> DispatchResult:
        """
        Resolve and execute one action.

        Args:
            user_id: owner of the data
            action: what the rule asked for
            tasks / trackers: live lists (fetched from the store when omitted)
            skills: registered skill names used to canonicalise tags

        Returns:
            DispatchResult; never raises for resolution or store failures
        """
        if tasks is None:
            tasks = self.store.list_tasks(user_id)
        if trackers is None:
            trackers = self.store.list_trackers(user_id)
        if skills is None:
            skills = list(self.store.get_user_stats(user_id).skills.keys())

        handlers = {
            ActionKind.CREATE_TASK: self._create_task,
            ActionKind.EDIT_TASK: self._edit_task,
            ActionKind.DELETE_TASK: self._delete_task,
            ActionKind.CREATE_TRACKER: self._create_tracker,
            ActionKind.DELETE_TRACKER: self._delete_tracker,
        }

        try:
            return handlers[action.kind](user_id, action, tasks, trackers, skills)
        except (EntityNotFoundError, UnreadableCommandError) as e:
            logger.warning("Unresolved %s for %s: %s", action.kind.value, user_id, e.message)
            return DispatchResult(DispatchStatus.UNRESOLVED, action, message=e.message)
        except StoreError:
            logger.exception("Store rejected %s for %s", action.kind.value, user_id)
            return DispatchResult(
                DispatchStatus.FAILED,
                action,
                message=f"Uplink failure: the {action.kind.value} request could not be saved.",
            )

    def _create_task(self, user_id, action, tasks, trackers, skills) -> DispatchResult:
        payload: Dict[str, Any] = dict(action.payload)
        tracker_name = payload.pop("tracker", None)

        if tracker_name:
            payload["tracker_id"] = self.resolve_tracker(tracker_name, trackers, NEW_TASK_MODULE_HINT).id
        elif not payload.get("tracker_id") and trackers:
            payload["tracker_id"] = trackers[0].id

        payload["skills"] = merge_skill_names(payload.get("skills") or [], skills)

        task = self.store.create_task(user_id, payload)
        logger.info("Created task %s ('%s') for %s", task.id, task.title, user_id)
        return DispatchResult(
            DispatchStatus.DISPATCHED, action, task.id, f"Mission '{task.title}' registered."
        )

    def _edit_task(self, user_id, action, tasks, trackers, skills) -> DispatchResult:
        task_name = action.payload.get("task_name", "")
        updates: Dict[str, Any] = dict(action.payload.get("updates") or {})
        if not updates:
            raise UnreadableCommandError(
                f"No changes could be read from the command for mission '{task_name}'.",
                hint="Say what to change, e.g. 'edit Dinner to done'.",
            )

        task = self.resolve_task(task_name, tasks, trackers)

        tracker_name = updates.pop("tracker", None)
        if tracker_name:
            updates["tracker_id"] = self.resolve_tracker(tracker_name, trackers).id
        if "skills" in updates:
            updates["skills"] = merge_skill_names(updates["skills"], skills)

        updated = self.store.update_task(user_id, task.id, updates)
        logger.info("Updated task %s for %s: %s", task.id, user_id, sorted(updates))
        return DispatchResult(
            DispatchStatus.DISPATCHED, action, updated.id, f"Mission '{updated.title}' updated."
        )

    def _delete_task(self, user_id, action, tasks, trackers, skills) -> DispatchResult:
        task = self.resolve_task(
            action.payload.get("task_name", ""),
            tasks,
            trackers,
            course_name=action.payload.get("course_name"),
        )
        self.store.delete_task(user_id, task.id)
        logger.info("Deleted task %s ('%s') for %s", task.id, task.title, user_id)
        return DispatchResult(
            DispatchStatus.DISPATCHED, action, task.id, f"Mission '{task.title}' deleted."
        )

    def _create_tracker(self, user_id, action, tasks, trackers, skills) -> DispatchResult:
        name = (action.payload.get("name") or "").strip()
        if not name:
            raise UnreadableCommandError("A module needs a name.")

        for tracker in trackers:
            if tracker.name.strip().lower() == name.lower():
                return DispatchResult(
                    DispatchStatus.SKIPPED, action, tracker.id, f"Module '{tracker.name}' already exists."
                )

        tracker = self.store.create_tracker(user_id, name, action.payload.get("type", "daily"))
        logger.info("Created tracker %s ('%s') for %s", tracker.id, tracker.name, user_id)
        return DispatchResult(
            DispatchStatus.DISPATCHED, action, tracker.id, f"Module '{tracker.name}' registered."
        )

    def _delete_tracker(self, user_id, action, tasks, trackers, skills) -> DispatchResult:
        tracker = self.resolve_tracker(action.payload.get("name", ""), trackers)
        self.store.delete_tracker(user_id, tracker.id)
        logger.info("Deleted tracker %s ('%s') for %s", tracker.id, tracker.name, user_id)
        return DispatchResult(
            DispatchStatus.DISPATCHED, action, tracker.id, f"Module '{tracker.name}' deleted."
        )
