"""
Elite65 knowledge base: the ordered rule table and its response/action
generators.

Rule order is load-bearing. Groups, top to bottom:
    1. meta (identity, help, intro)
    2. topic-gated follow-ups
    3. how-to guides that mention action verbs
    4. actions (create / move / edit / rename / delete)
    5. social
    6. analysis over the snapshot
    7. keyword mechanics

Specific rules sit above the general ones that would otherwise shadow them;
tests/test_knowledge_base.py pins this with a shadowing audit.
"""
import random
import re
from typing import Dict, List, Optional, Tuple

from core.config_manager import config
from core.intent_parser import parse_task_updates
from core.models import (
    DIFFICULTY_RANK,
    ActionKind,
    BotAction,
    Difficulty,
    GameContext,
    Habit,
    Task,
    TaskStatus,
    now_ms,
)
from core.rule_engine import Rule, RuleEngine

TOPIC_TASKS = "TASKS"
TOPIC_STATS = "STATS"
TOPIC_HABITS = "HABITS"

WELCOME_MESSAGE = "Elite65 Online. I am your specialized support agent. Ask me about your Missions, XP, or Habits."

GREETINGS = [
    "Systems online. I am Elite65. How can I assist you with your missions today?",
    "Greetings, Operator. Elite65 ready for query.",
    "Welcome back. I am standing by to assist with platform navigation and data analysis.",
]

FALLBACKS = [
    "I processed that query but found no matching protocols. Could you rephrase?",
    "My database doesn't have a record for that specific term. Try asking about 'XP', 'Habits', or 'Missions'.",
    "Command unrecognized. I can assist with Task tracking, Habit formation, and Analytics.",
]

THEME_DESCRIPTIONS = {
    "eclipse skies": "Deep Blue/Purple",
    "cold nights": "Dark Cyan/Slate",
    "frigid winter": "Cozy Anime Lofi style",
    "spring shower": "Soft Pink/Blue Sunrise",
    "soft autumn": "Warm Amber/Rust",
    "forest flow": "Moss/Emerald",
}

UNDATED = float("inf")


def _rx(pattern: str) -> "re.Pattern":
    return re.compile(pattern, re.IGNORECASE)


def _group(match: Optional[re.Match], name: str, default: str = "") -> str:
    if match is None:
        return default
    value = match.groupdict().get(name)
    return value.strip() if value else default


# ---------------------------------------------------------------------------
# Snapshot analytics
# ---------------------------------------------------------------------------

def prioritize_tasks(tasks: List[Task]) -> List[Task]:
    """Urgency first (earliest due, undated last), then EPIC > HARD > MEDIUM > EASY."""
    return sorted(
        tasks,
        key=lambda t: (
            t.due_date if t.due_date is not None else UNDATED,
            -DIFFICULTY_RANK[t.difficulty],
        ),
    )


def _habit_total_today(ctx: GameContext, habit: Habit) -> float:
    today = ctx.now.date().isoformat()
    return sum(
        log.value for log in ctx.habit_logs
        if log.habit_id == habit.id and log.date == today
    )


def habit_progress_today(ctx: GameContext) -> Tuple[float, float, int]:
    """(goal total, logged today, percent) across all habits."""
    total_goal = sum(h.goal_amount for h in ctx.habits)
    done = sum(_habit_total_today(ctx, h) for h in ctx.habits)
    percent = round(done / total_goal * 100) if total_goal > 0 else 0
    return total_goal, done, percent


def habits_behind_today(ctx: GameContext) -> List[Tuple[Habit, float]]:
    """Habits whose goal is not met today, with the remaining amount."""
    behind = []
    for habit in ctx.habits:
        remaining = habit.goal_amount - _habit_total_today(ctx, habit)
        if remaining > 0:
            behind.append((habit, remaining))
    return behind


def workload_score(ctx: GameContext) -> float:
    pending = ctx.pending_tasks
    epics = sum(1 for t in pending if t.difficulty == Difficulty.EPIC)
    hards = sum(1 for t in pending if t.difficulty == Difficulty.HARD)
    others = len(pending) - epics - hards
    return epics * 3 + hards * 2 + others + len(ctx.habits) * config.HABIT_LOAD_WEIGHT


def _fmt_amount(value: float) -> str:
    return f"{value:g}"


# ---------------------------------------------------------------------------
# Response generators
# ---------------------------------------------------------------------------

def _pending_list(ctx: GameContext, match) -> str:
    pending = ctx.pending_tasks
    if not pending:
        return "Zero pending missions. Schedule is clear."

    count = len(pending)
    preview = config.PENDING_PREVIEW_COUNT
    top = ", ".join(t.title for t in pending[:preview])
    more = "..." if count > preview else ""
    return (
        f"Pending Count: {count}. \nTop Priorities: {top}{more}. \n"
        "Use 'Suggest Mission' for tactical advice."
    )


def _weakest_habit(ctx: GameContext, match) -> str:
    if not ctx.habits:
        return "No habit data found."

    def log_count(habit: Habit) -> int:
        return sum(1 for log in ctx.habit_logs if log.habit_id == habit.id)

    weakest = min(ctx.habits, key=log_count)
    return (
        f"Optimization Required: '{weakest.title}' has the lowest recorded activity "
        f"({log_count(weakest)} logs). Focus effort here to balance your routine."
    )


def _theme_named(ctx: GameContext, match) -> str:
    name = _group(match, "theme", "The requested theme")
    return (
        f"'{name.title()}' is a visual override available in the Settings module. "
        "It changes the interface palette and background banner to match the mood."
    )


def _theme_list(ctx: GameContext, match) -> str:
    lines = [
        f"{i}. '{name.title()}' ({mood})"
        for i, (name, mood) in enumerate(THEME_DESCRIPTIONS.items(), start=1)
    ]
    return "Elite65 supports multiple visual themes. You can switch them in Settings:\n" + "\n".join(lines)


def _habit_followup(ctx: GameContext, match) -> str:
    _, _, percent = habit_progress_today(ctx)
    return f"Habit Protocol Efficiency: {percent}% for today. Consistent execution required."


def _tasks_followup(ctx: GameContext, match) -> str:
    return f"Regarding your Tasks: You still have {len(ctx.pending_tasks)} pending missions. Stay focused."


def _status_report(ctx: GameContext, match) -> str:
    behind = habits_behind_today(ctx)
    if behind:
        details = ", ".join(f"{_fmt_amount(left)} {h.unit} of {h.title}" for h, left in behind)
        habit_text = f"Habits pending: {details}."
    else:
        habit_text = "All habits completed."
    return f"Status Report: {len(ctx.pending_tasks)} active missions. {habit_text}"


def _task_count(ctx: GameContext, match) -> str:
    return f"You have {len(ctx.pending_tasks)} pending missions in the queue."


def _next_task(ctx: GameContext, match) -> str:
    ordered = prioritize_tasks(ctx.pending_tasks)
    if not ordered:
        return "All systems clear. You have no pending operations based on current filters."
    target = ordered[0]
    return (
        f'Priority Alert: Your next target should be "{target.title}" '
        f"[{target.difficulty.value}]. Engage when ready."
    )


def _habit_percentage(ctx: GameContext, match) -> str:
    total_goal, done, percent = habit_progress_today(ctx)
    return (
        f"Daily Habit Protocol Efficiency: {percent}%. "
        f"(Goal: {_fmt_amount(total_goal)}, Done: {_fmt_amount(done)})."
    )


def _streak_guardian(ctx: GameContext, match) -> str:
    behind = habits_behind_today(ctx)
    if not behind:
        return (
            "All Habit Protocols for today are active. Streak integrity is 100%. "
            "Excellent consistency, Operator."
        )
    names = ", ".join(h.title for h, _ in behind)
    return (
        f"Warning: {len(behind)} Habit Protocols require attention today: {names}. "
        "Complete them to maintain streak data."
    )


def _level(ctx: GameContext, match) -> str:
    stats = ctx.user_stats
    return (
        f"You are currently Level {stats.level} with {stats.xp} XP. "
        f"You need {max(stats.next_level_xp - stats.xp, 0)} more XP to reach the next rank."
    )


def _top_skill(ctx: GameContext, match) -> str:
    skills = ctx.user_stats.skills
    if not skills:
        return "No skill data available. Tag missions with attributes to build your profile."
    name, stats = max(skills.items(), key=lambda item: item[1].value)
    return f"Your dominant attribute is {name} (Level {stats.level}). Keep investing in this vector."


def _workload(ctx: GameContext, match) -> str:
    pending = ctx.pending_tasks
    epics = sum(1 for t in pending if t.difficulty == Difficulty.EPIC)
    score = workload_score(ctx)

    if score > config.LOAD_CRITICAL_THRESHOLD:
        return (
            f"STATUS: CRITICAL LOAD. You have {len(pending)} pending missions "
            f"(including {epics} Epics) and {len(ctx.habits)} active habits. "
            "Recommendation: Focus on ONE Epic task today and maintain only 2 core habits to avoid burnout."
        )
    if score > config.LOAD_MODERATE_THRESHOLD:
        return (
            f"STATUS: MODERATE. Your load is balanced. {len(pending)} missions active. "
            "You have capacity for 1 more major objective."
        )
    return (
        f"STATUS: OPTIMAL. You are running light with only {len(pending)} pending operations. "
        "Consider increasing difficulty or adding a new habit."
    )


def _completion(ctx: GameContext, match) -> str:
    total = len(ctx.tasks)
    if total == 0:
        return "No missions recorded. Progress is 0%."
    completed = sum(1 for t in ctx.tasks if t.is_completed)
    percent = round(completed / total * 100)
    return f"Global Mission Completion: {percent}% ({completed}/{total}). Maintain course."


def _advisor(ctx: GameContext, match) -> str:
    ordered = prioritize_tasks(ctx.pending_tasks)
    if not ordered:
        return (
            "All systems nominal. No pending missions. "
            "Suggestion: Create a new objective or focus on Habit Protocols."
        )

    top = ordered[0]
    if top.due_date is not None and top.due_date < now_ms(ctx.now):
        return (
            f"CRITICAL ALERT: Mission '{top.title}' is OVERDUE. "
            "Immediate execution required to restore efficiency."
        )
    return (
        f"Tactical Analysis suggests engaging mission: '{top.title}' "
        f"({top.difficulty.value}). It is your highest priority target."
    )


def _skill_coach(ctx: GameContext, match) -> str:
    skills = ctx.user_stats.skills
    if not skills:
        return "No skill data available. Tag missions with attributes to build your profile."
    name, stats = min(skills.items(), key=lambda item: item[1].level)
    return (
        f"Analysis indicates strict deficiency in '{name}' (Level {stats.level}). "
        f"Suggestion: Initialize a new mission tagged '{name}' to improve this attribute."
    )


def _xp_rewards(ctx: GameContext, match) -> str:
    rewards = ", ".join(
        f"{level.title()} ({xp} XP)" for level, xp in config.XP_REWARDS.items()
    )
    return (
        "Experience Points (XP) are earned by completing missions. "
        f"Difficulty matters: {rewards}. Habits grant {config.HABIT_LOG_XP} XP per log."
    )


def _static(text: str):
    return lambda ctx, match: text


# ---------------------------------------------------------------------------
# Action generators
# ---------------------------------------------------------------------------

def _create_tracker_action(ctx: GameContext, match) -> BotAction:
    return BotAction(ActionKind.CREATE_TRACKER, {"name": _group(match, "name")})


def _create_task_payload(ctx: GameContext, title: str, details: str, tracker: Optional[str]) -> Dict:
    updates = parse_task_updates(details, now=ctx.now, allow_rename=False, assume_today=True)
    payload = {
        "title": title,
        "status": (updates.status or TaskStatus.YET_TO_START).value,
        "difficulty": (updates.difficulty or Difficulty(config.DEFAULT_TASK_DIFFICULTY)).value,
        "due_date": updates.due_date,
        "tracker_id": "",
        "skills": [],
    }
    tracker_name = tracker or updates.tracker
    if tracker_name:
        payload["tracker"] = tracker_name
    return payload


def _create_task_in_course_action(ctx: GameContext, match) -> BotAction:
    payload = _create_task_payload(
        ctx,
        title=_group(match, "title", "New Mission"),
        details=_group(match, "details"),
        tracker=_group(match, "course") or None,
    )
    return BotAction(ActionKind.CREATE_TASK, payload)


def _create_task_action(ctx: GameContext, match) -> BotAction:
    payload = _create_task_payload(
        ctx,
        title=_group(match, "title", "New Mission"),
        details=_group(match, "details"),
        tracker=None,
    )
    return BotAction(ActionKind.CREATE_TASK, payload)


def _move_task_action(ctx: GameContext, match) -> BotAction:
    return BotAction(ActionKind.EDIT_TASK, {
        "task_name": _group(match, "task"),
        "updates": {"tracker": _group(match, "course")},
    })


def _edit_attribute_action(ctx: GameContext, match) -> BotAction:
    # only the attribute clause is parsed; "for <task>" would read as a tracker
    updates = parse_task_updates(_group(match, "attrs"), now=ctx.now, allow_rename=False)
    return BotAction(ActionKind.EDIT_TASK, {
        "task_name": _group(match, "task"),
        "updates": updates.to_dict(),
    })


def _edit_task_action(ctx: GameContext, match) -> BotAction:
    fragment = _group(match, "rest") or _group(match, "attr_rest")
    updates = parse_task_updates(fragment, now=ctx.now)
    return BotAction(ActionKind.EDIT_TASK, {
        "task_name": _group(match, "task"),
        "updates": updates.to_dict(),
    })


def _rename_task_action(ctx: GameContext, match) -> BotAction:
    return BotAction(ActionKind.EDIT_TASK, {
        "task_name": _group(match, "task"),
        "updates": {"title": _group(match, "title")},
    })


def _delete_tracker_action(ctx: GameContext, match) -> BotAction:
    return BotAction(ActionKind.DELETE_TRACKER, {"name": _group(match, "name")})


def _delete_task_action(ctx: GameContext, match) -> BotAction:
    payload = {"task_name": _group(match, "task")}
    course = _group(match, "course")
    if course:
        payload["course_name"] = course
    return BotAction(ActionKind.DELETE_TASK, payload)


def _delete_task_text(ctx: GameContext, match) -> str:
    course = _group(match, "course")
    suffix = f" from module '{course}'" if course else ""
    return f"Initiating Deletion Protocol: Removing mission '{_group(match, 'task', 'Unknown')}'{suffix}."


def _update_text(ctx: GameContext, match) -> str:
    return f"Initiating Update Protocol: Modifying mission '{_group(match, 'task', 'target')}'."


# ---------------------------------------------------------------------------
# The table
# ---------------------------------------------------------------------------

EDIT_VERBS = r"(?:edit|change|update|modify|set)"
TASK_NOUN = r"(?:task|mission|card)"
WEEKDAYS = r"(?:(?:mon|tues|wednes|thurs|fri|satur|sun)day|weekend)"
ATTRIBUTE_WORDS = r"(?:status|difficulty|due\s+date|due|date|time|deadline|title|name|tracker|course)"

KNOWLEDGE_BASE: List[Rule] = [
    # --- 1. meta ---
    Rule(
        name="identity",
        pattern=_rx(r"\b(who are you|what are you|your name|identify yourself)\b"),
        response=_static(
            "I am Elite65, a tactical cognitive support system designed to gamify your productivity. "
            "I track your missions, analyze your consistency, and visualize your growth."
        ),
    ),
    Rule(
        name="help",
        pattern=_rx(r"^\s*(help|commands|menu|what can you do)\s*[?!.]*\s*$"),
        response=_static(
            "I can assist with:\n- Navigation ('Where is habits?')\n- Status Reports ('How many tasks?')\n"
            "- Mechanics ('How does XP work?')\n- Instructions ('How to tag?')\n- Analysis ('Top skill?')\n"
            "- Commands ('Create task Dinner tomorrow at 7pm', 'Edit Dinner to done', 'Delete task Dinner')"
        ),
    ),
    Rule(
        name="introduction",
        pattern=_rx(r"(what is this|introduce.*\b(tool|app|website)\b|explain.*\b(system|platform)\b|what does (this|it) do)"),
        response=_static(
            "This is the 'Gamified Task Tracker' (Protocol: Elite65). It turns your life into an RPG. \n"
            "- completing Tasks grants XP.\n- Habits build Streaks.\n"
            "- Skills are visualized on the Hex Graph.\nMy role is to serve as your HUD and tactical advisor."
        ),
    ),

    # --- 2. topic-gated follow-ups ---
    Rule(
        name="followup_habit_percentage",
        pattern=_rx(r"^\s*(what about|how about|and)\s+(the\s+|my\s+)?(habits?|protocols?|routines?)\b"),
        required_topic=TOPIC_STATS,
        response=_habit_followup,
    ),
    Rule(
        name="followup_pending_tasks",
        pattern=_rx(r"^\s*(what about|how about|and)\s+(them|it|that|remaining|pending)\s*[?!.]*\s*$"),
        required_topic=TOPIC_TASKS,
        response=_tasks_followup,
    ),

    # --- 3. how-to guides that would otherwise read as commands ---
    Rule(
        name="howto_tag",
        pattern=_rx(r"\b(how|way)\b.*\b(tag|add skill|attributes?)\b"),
        response=_static(
            "To tag a mission: \n1. Open the 'Create/Edit Mission' modal.\n"
            "2. Scroll to 'Skills / Attributes'.\n3. Click existing chips to select, or tap '+ Custom' to type a new skill."
        ),
    ),
    Rule(
        name="howto_create_task",
        pattern=_rx(r"\b(how|way)\b.*\b(create|new|add)\b.*\b(tasks?|missions?)\b"),
        response=_static(
            "To initialize a new mission:\n1. Navigate to the 'Tasks' or 'Dashboard' module.\n"
            "2. Click the large '+' button or 'New Mission'.\n3. Fill in the title, difficulty, and due date.\n"
            "Or tell me directly: 'Create task Dinner in Daily Life tomorrow at 7pm'."
        ),
    ),
    Rule(
        name="edit_skills_clarification",
        pattern=_rx(r"\b(debug(ging)?|edit\s+(my\s+)?skills?|manual(ly)?\s+adjust)\b"),
        response=_static(
            "Clarification: 'Debugging' refers to troubleshooting code or data issues. "
            "The 'Edit Skills' button is for CONFIGURATION (adding/removing skill types) only. "
            "You cannot manually change your Level or XP values. Those must be earned through missions!"
        ),
    ),

    # --- 4. actions ---
    Rule(
        name="create_tracker",
        pattern=_rx(r"\b(?:create|add|new)\s+(?:a\s+)?(?:new\s+)?(?:course|tracker)\s+(?:called\s+|named\s+)?(?P<name>.+?)\s*$"),
        response=lambda ctx, m: f"Initiating Module Protocol: Registering module '{_group(m, 'name', 'Unknown')}'.",
        action=_create_tracker_action,
    ),
    Rule(
        # "Create task Dinner in the Daily Life course at 7pm"
        name="create_task_in_course",
        pattern=_rx(
            r"\b(?:create|add|new)\s+(?:a\s+|the\s+)?(?:new\s+)?" + TASK_NOUN + r"\s+(?P<title>.+?)"
            r"\s+(?:in|for|to|on)\s+(?!(?:the\s+)?(?:today|tomorrow|tmrw|tonight|do|done|" + WEEKDAYS + r")\b)"
            r"(?:the\s+)?(?P<course>.+?)"
            r"(?:\s+(?:course|tracker|module))?"
            r"(?:\s+(?P<details>(?:with|at|by|due|status|difficulty|date|priority|today|tomorrow|tmrw)\b.*)|\s*$)"
        ),
        response=lambda ctx, m: (
            f"Initiating Task Protocol: '{_group(m, 'title', 'Mission')}' assigned to "
            f"Module '{_group(m, 'course', 'General')}'. Processing attributes..."
        ),
        action=_create_task_in_course_action,
    ),
    Rule(
        # "Create a task Buy Groceries due tomorrow at 5pm"
        name="create_task",
        pattern=_rx(
            r"\b(?:create|new|add)\s+(?:a\s+)?(?:new\s+)?" + TASK_NOUN + r"\s+(?P<title>.+?)"
            r"(?:\s+(?P<details>(?:to\s+(?:do|done|complete|in\s+progress|progress)"
            r"|with\s+(?:status|difficulty|priority|due)"
            r"|status|difficulty|due|date|priority|at|by|today|tomorrow|tmrw)\b.*))?\s*$"
        ),
        response=lambda ctx, m: f"Initiating Creation Protocol: New mission '{_group(m, 'title', 'Unknown')}' registered.",
        action=_create_task_action,
    ),
    Rule(
        # "Move Dinner to Daily Life"
        name="move_task",
        pattern=_rx(
            r"\bmove\s+(?:the\s+)?(?:" + TASK_NOUN + r"\s+)?(?P<task>.+?)\s+(?:to|into)\s+(?:the\s+)?"
            r"(?P<course>.+?)(?:\s+(?:course|tracker|module))?\s*$"
        ),
        response=lambda ctx, m: (
            f"Initiating Transfer Protocol: Moving mission '{_group(m, 'task', 'target')}' "
            f"to module '{_group(m, 'course', 'General')}'."
        ),
        action=_move_task_action,
    ),
    Rule(
        # "Change the status to in progress for Dinner with Rudranil"
        name="edit_task_attribute_for",
        pattern=_rx(
            r"\b" + EDIT_VERBS + r"\s+(?:the\s+|my\s+)?(?P<attrs>" + ATTRIBUTE_WORDS + r"\b.*?)"
            r"\s+(?:for|of)\s+(?:the\s+)?(?:" + TASK_NOUN + r"\s+)?(?P<task>.+?)\s*$"
        ),
        response=_update_text,
        action=_edit_attribute_action,
    ),
    Rule(
        # "Edit Dinner from todo to in progress", "Edit task Dinner to Dinner with Rudra"
        name="edit_task",
        pattern=_rx(
            r"\b" + EDIT_VERBS + r"(?:\s+(?:the\s+)?" + TASK_NOUN + r")?\s+(?P<task>.+?)\s+"
            r"(?:(?:from|to|set|into|with(?=\s+(?:status|difficulty|due|date|priority|time)\b)"
            r"|and\s+(?:i|you|please|make|change)|change)\s+(?P<rest>.+)"
            r"|(?P<attr_rest>(?:date|time|due|status|priority|difficulty)\s+.+))$"
        ),
        response=_update_text,
        action=_edit_task_action,
    ),
    Rule(
        name="rename_task",
        pattern=_rx(
            r"\brename\s+(?:the\s+)?(?:" + TASK_NOUN + r"\s+)?(?P<task>.+?)\s+(?:to|as|into)\s+(?P<title>.+?)\s*$"
        ),
        response=_update_text,
        action=_rename_task_action,
    ),
    Rule(
        name="delete_tracker",
        pattern=_rx(r"\b(?:delete|remove|cancel|trash)\s+(?:the\s+)?(?:course|tracker|module)\s+(?P<name>.+?)\s*$"),
        response=lambda ctx, m: (
            f"Initiating Deletion Protocol: Removing module '{_group(m, 'name', 'Target')}'. Confirming erasure..."
        ),
        action=_delete_tracker_action,
    ),
    Rule(
        # "Delete task Dinner 2 from Daily Life"
        name="delete_task",
        pattern=_rx(
            r"\b(?:delete|remove|cancel|trash)\s+(?:the\s+)?" + TASK_NOUN + r"\s+(?P<task>.+?)"
            r"(?:\s+(?:from|in|on)\s+(?:the\s+)?(?P<course>.+?)(?:\s+(?:course|tracker|module))?)?\s*$"
        ),
        response=_delete_task_text,
        action=_delete_task_action,
    ),

    # --- 5. social ---
    Rule(
        name="greeting",
        keywords=("hello", "hi", "hey", "greetings"),
        response=lambda ctx, m: random.choice(GREETINGS),
    ),
    Rule(
        name="thanks",
        keywords=("thank", "thanks", "thx"),
        response=_static("You are welcome, Operator. Efficiency is my reward."),
    ),

    # --- 6. analysis ---
    Rule(
        name="voice_status",
        pattern=_rx(r"\b(mute|muted|voice|speak|sound|audio)\b"),
        response=_static("Voice channel offline. Elite65 currently operates over text protocols only."),
    ),
    Rule(
        name="pending_list",
        pattern=_rx(r"(what.*\b(pending|left|remaining)\b|\blist\b.*\btasks?\b)"),
        set_topic=TOPIC_TASKS,
        response=_pending_list,
    ),
    Rule(
        name="weakest_habit",
        pattern=_rx(r"(improve.*habit|weak.*habit|lowest.*streak|worst.*habit)"),
        response=_weakest_habit,
    ),
    Rule(
        name="hex_graph",
        pattern=_rx(r"(\b(hex|graph|polygon|radar|chart)\b|skill.*visual)"),
        response=_static(
            "The Hexagon Skill Graph visualizes your attribute balance. \n"
            "- Vertices represent different skill categories.\n"
            "- The area expands as you complete tasks tagged with those skills.\n"
            "- A balanced shape indicates a well-rounded skillset."
        ),
    ),
    Rule(
        name="theme_named",
        pattern=_rx(r"(?P<theme>" + "|".join(THEME_DESCRIPTIONS) + r")"),
        response=_theme_named,
    ),
    Rule(
        name="themes",
        pattern=_rx(r"\b(themes?|colou?rs?|appearance|style)\b"),
        response=_theme_list,
    ),
    Rule(
        name="status_report",
        pattern=_rx(r"(how much|what.*)\b(left|remain|pending|to do)"),
        set_topic=TOPIC_TASKS,
        response=_status_report,
    ),
    Rule(
        name="task_count",
        pattern=_rx(r"(count|how many|number of)\s+(tasks?|missions?|jobs?)"),
        set_topic=TOPIC_TASKS,
        response=_task_count,
    ),
    Rule(
        name="next_task",
        pattern=_rx(r"\b(next|pending|todo|to do)\s+(tasks?|missions?)\b"),
        set_topic=TOPIC_TASKS,
        response=_next_task,
    ),
    Rule(
        name="habit_percentage",
        pattern=_rx(r"\b(habits?|protocols?)\b.*(p.*cent|prog.*s|rate)"),
        set_topic=TOPIC_STATS,
        response=_habit_percentage,
    ),
    Rule(
        name="streak_break_mechanics",
        keywords=("break streak", "broke streak", "broken streak", "missed day"),
        response=_static(
            "If you miss a day, the generic streak logic breaks. However, this system uses a flexible "
            "lookback, so log it as soon as possible to try and save it."
        ),
    ),
    Rule(
        name="streak_guardian",
        pattern=_rx(
            r"(streak|habits?.*\b(status|check|done|today|maintain|keep)\b|\b(missed|forgot|did|do)\b.*habit)"
        ),
        response=_streak_guardian,
    ),
    Rule(
        name="habit_overview",
        pattern=_rx(r"\b(habits?|routines?)\b"),
        set_topic=TOPIC_HABITS,
        response=_static(
            "Habit Protocols are recurring objectives. Tracking them daily builds your streak multiplier. "
            "A streak only increases if you meet the daily goal amount."
        ),
    ),
    Rule(
        name="level",
        pattern=_rx(r"\b(my level|current level|xp check|experience)\b"),
        response=_level,
    ),
    Rule(
        name="top_skill",
        pattern=_rx(r"((top|best) skill|strongest attribute)"),
        response=_top_skill,
    ),
    Rule(
        name="workload",
        pattern=_rx(r"(overwhelm|heavy|busy|workload|pressure|how.*\blook)"),
        set_topic=TOPIC_TASKS,
        response=_workload,
    ),
    Rule(
        # typo tolerant: "ow muc precentage"
        name="completion_percentage",
        pattern=_rx(r"(p.*cent.*|prog.*s|completion.*rate|fraction|how.*done|ow.*muc)"),
        set_topic=TOPIC_STATS,
        response=_completion,
    ),
    Rule(
        name="tactical_advisor",
        pattern=_rx(r"(what.*\bdo\b|advise|suggest|recommend|what.*next)"),
        set_topic=TOPIC_TASKS,
        response=_advisor,
    ),
    Rule(
        name="skill_coach",
        pattern=_rx(r"(\b(weak|improve|train)\b|skill.*focus|lowest.*stat)"),
        response=_skill_coach,
    ),
    Rule(
        name="stat_mechanics",
        pattern=_rx(r"(how|way|formula).*(calculate|work|update|change)|(auto|manual).*(stats|xp)"),
        response=_static(
            "All attributes and XP are calculated AUTOMATICALLY. \n"
            "1. Completing Tasks grants XP based on difficulty.\n"
            "2. Tagging tasks with skills (e.g. 'Coding') automatically improves that specific attribute.\n"
            "3. You do not need to manually edit stats unless you are debugging."
        ),
    ),

    # --- 7. keyword mechanics ---
    Rule(
        name="xp_loss",
        keywords=("lose xp", "lost xp", "losing xp", "xp gone"),
        response=_static(
            "If you uncheck a completed task, the XP is deducted to maintain data integrity. "
            "Deleting a completed task does NOT remove XP."
        ),
    ),
    Rule(
        name="xp_rewards",
        keywords=("xp", "level up", "leveling"),
        response=_xp_rewards,
    ),
    Rule(
        name="navigation",
        keywords=("cant find", "where is", "navigate", "go to"),
        response=_static(
            "Navigation modules are located in the sidebar (Desktop) or bottom bar (Mobile). "
            "Access Dashboard, Calendar, Tasks, Habits, or Data Analytics from there."
        ),
    ),
    Rule(
        name="analytics",
        keywords=("stats", "analytics", "data"),
        response=_static(
            "The Data/Analytics module visualizes your performance. Check the 'Data' tab to see your "
            "Activity Wave, Hex Skill Graph, and Habit Streaks."
        ),
    ),
    Rule(
        name="skill_merging",
        keywords=("duplicate skill", "duplicate skills", "merge skill", "merge skills"),
        response=_static(
            "The system fuzzy-matches skills (e.g., 'Code' matches 'Coding') and files the tag under the "
            "registered name. Precise spelling is still recommended to avoid fragmentation."
        ),
    ),
    Rule(
        name="skills",
        keywords=("skill", "skills", "attributes", "strength", "intelligence"),
        response=_static(
            "Skills (Attributes) level up as you tag tasks. For example, tagging a task with 'Coding' "
            "increases your Coding skill. The Hex Graph visualizes your top 6 attributes."
        ),
    ),
]


def build_engine(rng=None) -> RuleEngine:
    """Engine wired with the default knowledge base."""
    if rng is None:
        return RuleEngine(rules=list(KNOWLEDGE_BASE), fallbacks=FALLBACKS)
    return RuleEngine(rules=list(KNOWLEDGE_BASE), fallbacks=FALLBACKS, rng=rng)
