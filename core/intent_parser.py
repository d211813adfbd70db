"""
Intent parser: turns the trailing fragment of a command into a partial task
update.

Example:
    "hard and due tomorrow at 5pm" -> difficulty=HARD, due_date=<tomorrow 17:00>

Every rule runs on its own; a fragment may yield any subset of fields, and a
fragment nothing can be read from yields an empty update, never an error.
"""
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from core.models import Difficulty, TaskStatus, now_ms

STATUS_TARGET_RE = re.compile(r"\bto\s+(todo|to\s+do|in\s+progress|progress|done|complete)", re.IGNORECASE)

# loose containment fallback, checked in this order
STATUS_SYNONYMS = (
    (TaskStatus.YET_TO_START, ("todo", "to do")),
    (TaskStatus.IN_PROGRESS, ("progress", "doing", "started", "improve", "broken")),
    (TaskStatus.COMPLETED, ("done", "complete", "finished")),
)

DIFFICULTY_SYNONYMS = (
    (Difficulty.EASY, ("easy", "trivial")),
    (Difficulty.MEDIUM, ("medium", "normal")),
    (Difficulty.HARD, ("hard", "difficult")),
    (Difficulty.EPIC, ("epic", "legendary")),
)

TOMORROW_WORDS = ("tomorrow", "tmrw")

TIME_RE = re.compile(r"(\d{1,2})(?::(\d{2}))?\s*(?:([ap]\.?m\.?)|o'clock)?", re.IGNORECASE)

TRACKER_RE = re.compile(
    r"\b(?:in|within|for)\s+(?:the\s+)?([a-z0-9\s]+?)"
    r"(?:\s+(?:with|status|difficulty|due|date|priority|at|by|on|today|tomorrow)\b|$)",
    re.IGNORECASE,
)
TRACKER_REJECTS = {"progress", "time", "today", "tomorrow"}

TITLE_RE = re.compile(
    r"\b(?:name|title|call|rename)(?:\s+(?:is|to|be))?\s+(.+?)"
    r"(?:\s+(?:with|status|difficulty|due|date|priority|and)\b|$)",
    re.IGNORECASE,
)

RENAME_BLOCKERS = ("change", "update")


@dataclass
class PartialUpdate:
    """Subset of task fields extracted from a fragment."""
    status: Optional[TaskStatus] = None
    difficulty: Optional[Difficulty] = None
    due_date: Optional[int] = None
    tracker: Optional[str] = None
    title: Optional[str] = None

    def is_empty(self) -> bool:
        return not self.to_dict()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.status is not None:
            data["status"] = self.status.value
        if self.difficulty is not None:
            data["difficulty"] = self.difficulty.value
        if self.due_date is not None:
            data["due_date"] = self.due_date
        if self.tracker:
            data["tracker"] = self.tracker
        if self.title:
            data["title"] = self.title
        return data


def _parse_status(lower: str) -> Optional[TaskStatus]:
    match = STATUS_TARGET_RE.search(lower)
    if match:
        target = match.group(1)
        if "todo" in target or "to do" in target:
            return TaskStatus.YET_TO_START
        if "progress" in target:
            return TaskStatus.IN_PROGRESS
        return TaskStatus.COMPLETED

    for status, words in STATUS_SYNONYMS:
        if any(word in lower for word in words):
            return status
    return None


def _parse_difficulty(lower: str) -> Optional[Difficulty]:
    for difficulty, words in DIFFICULTY_SYNONYMS:
        if any(word in lower for word in words):
            return difficulty
    return None


def _parse_date(lower: str, now: datetime) -> Optional[datetime]:
    if "today" in lower:
        return now
    if any(word in lower for word in TOMORROW_WORDS):
        return now + timedelta(days=1)
    return None


def _apply_time(lower: str, day: datetime) -> datetime:
    """Merge the last time mention onto ``day``; self-corrections win."""
    last = None
    for match in TIME_RE.finditer(lower):
        last = match
    if last is None:
        return day

    hours = int(last.group(1))
    minutes = int(last.group(2)) if last.group(2) else 0
    meridiem = last.group(3).replace(".", "").lower() if last.group(3) else None

    if meridiem == "pm" and hours < 12:
        hours += 12
    if meridiem == "am" and hours == 12:
        hours = 0

    if hours > 23 or minutes > 59:
        return day
    return day.replace(hour=hours, minute=minutes, second=0, microsecond=0)


def _parse_tracker(text: str) -> Optional[str]:
    match = TRACKER_RE.search(text)
    if not match:
        return None
    candidate = match.group(1).strip()
    if not candidate or candidate.lower() in TRACKER_REJECTS:
        return None
    return candidate


def _parse_title(text: str) -> Optional[str]:
    match = TITLE_RE.search(text)
    if not match:
        return None
    return match.group(1).strip() or None


def parse_task_updates(
    fragment: str,
    now: Optional[datetime] = None,
    allow_rename: bool = True,
    assume_today: bool = False
) -> PartialUpdate:
    """
    Extract task attributes from free text.

    Args:
        fragment: trailing part of the user's command
        now: clock reading for "today"/"tomorrow" (default: now)
        allow_rename: whether a keyword-less fragment becomes a new title
        assume_today: with no date word, anchor the due date (and any time)
            on today instead of leaving it unset. Used for new tasks.

    Returns:
        PartialUpdate with whatever could be read
    """
    text = fragment or ""
    lower = text.lower()
    now = now or datetime.now()
    updates = PartialUpdate()

    updates.status = _parse_status(lower)
    updates.difficulty = _parse_difficulty(lower)

    day = _parse_date(lower, now)
    if day is None and assume_today:
        day = now
    if day is not None:
        updates.due_date = now_ms(_apply_time(lower, day))

    updates.tracker = _parse_tracker(text)
    updates.title = _parse_title(text)

    stripped = text.strip()
    if (
        allow_rename
        and updates.is_empty()
        and len(stripped) > 2
        and not stripped.lower().startswith(RENAME_BLOCKERS)
    ):
        updates.title = stripped

    return updates
