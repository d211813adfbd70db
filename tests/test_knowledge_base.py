import random
from datetime import datetime, timedelta

import pytest

from core.knowledge_base import (
    FALLBACKS,
    GREETINGS,
    KNOWLEDGE_BASE,
    TOPIC_STATS,
    TOPIC_TASKS,
    build_engine,
    prioritize_tasks,
    workload_score,
)
from core.models import (
    ActionKind,
    Difficulty,
    GameContext,
    Habit,
    HabitLog,
    SkillStats,
    Task,
    TaskStatus,
    UserStats,
    now_ms,
)

NOW = datetime(2026, 3, 10, 9, 30)
TODAY = NOW.date().isoformat()


def _ms(delta: timedelta) -> int:
    return now_ms(NOW + delta)


def _at(day: datetime, hour: int) -> int:
    return now_ms(day.replace(hour=hour, minute=0, second=0, microsecond=0))


@pytest.fixture
def engine():
    return build_engine(rng=random.Random(3))


@pytest.fixture
def context():
    tasks = [
        Task(id="t1", title="Water plants", difficulty=Difficulty.EASY, due_date=_ms(timedelta(days=2))),
        Task(id="t2", title="Thesis Draft", difficulty=Difficulty.EPIC, due_date=_ms(timedelta(days=-1))),
        Task(id="t3", title="Old report", status=TaskStatus.COMPLETED),
    ]
    habits = [
        Habit(id="h1", title="Read", goal_amount=30, unit="pages"),
        Habit(id="h2", title="Run", goal_amount=10, unit="km"),
    ]
    logs = [
        HabitLog(habit_id="h1", date=TODAY, value=30),
        HabitLog(habit_id="h2", date=TODAY, value=2),
        HabitLog(habit_id="h1", date="2026-03-09", value=30),
    ]
    stats = UserStats(
        level=4,
        xp=340,
        next_level_xp=400,
        skills={"Coding": SkillStats(level=5, value=80), "Art": SkillStats(level=2, value=20)},
    )
    return GameContext(tasks=tasks, habits=habits, user_stats=stats, habit_logs=logs, now=NOW)


# Utterances each rule is written for, probed with no topic set.
ROUTING_SAMPLES = {
    "identity": ["who are you", "what is your name"],
    "help": ["help", "What can you do?"],
    "introduction": ["what is this", "explain the system to me"],
    "howto_tag": ["how do I tag a mission"],
    "howto_create_task": ["how do I create a new task"],
    "edit_skills_clarification": ["can I edit my skills manually", "debugging"],
    "create_tracker": ["create a new course called Physics"],
    "create_task_in_course": ["create task Dinner in Daily Life tomorrow at 7pm"],
    "create_task": [
        "create a task Buy Groceries due tomorrow at 5pm",
        "add mission Laundry",
        "create task Call mom on Friday",
    ],
    "move_task": ["move Dinner to Daily Life"],
    "edit_task_attribute_for": ["change the status to in progress for Dinner with Rudranil"],
    "edit_task": [
        "edit Dinner from todo to in progress",
        "edit task Dinner to Dinner with Rudra",
        "update Laundry difficulty hard",
    ],
    "rename_task": ["rename Dinner to Supper"],
    "delete_tracker": ["delete course Physics"],
    "delete_task": ["delete task Dinner 2 from Daily Life"],
    "greeting": ["hello there", "hey"],
    "thanks": ["thanks!"],
    "voice_status": ["why are you muted"],
    "pending_list": ["what is pending", "list my tasks"],
    "weakest_habit": ["what is my weakest habit"],
    "hex_graph": ["explain the hex graph"],
    "theme_named": ["tell me about Forest Flow"],
    "themes": ["which themes are available"],
    "status_report": ["how much is left"],
    "task_count": ["how many tasks do I have"],
    "next_task": ["show my next task"],
    "habit_percentage": ["habit completion rate"],
    "streak_break_mechanics": ["what happens if I break streak"],
    "streak_guardian": ["did I do my habits today", "streak check"],
    "habit_overview": ["tell me about habits", "what about habits"],
    "level": ["what is my level"],
    "top_skill": ["what is my top skill"],
    "workload": ["I feel overwhelmed"],
    "completion_percentage": ["what percentage is complete"],
    "tactical_advisor": ["what should I do next", "suggest something"],
    "skill_coach": ["how can I train better"],
    "stat_mechanics": ["how is xp calculated"],
    "xp_loss": ["will I lose xp"],
    "xp_rewards": ["tell me about xp"],
    "navigation": ["where is the calendar"],
    "analytics": ["show me my stats"],
    "skill_merging": ["merge skills"],
    "skills": ["what are skills"],
}


def test_rule_names_are_unique():
    names = [rule.name for rule in KNOWLEDGE_BASE]
    assert len(names) == len(set(names))


def test_every_rule_is_reachable_with_its_own_utterances(engine):
    assert engine.audit_shadowing(ROUTING_SAMPLES) == []


def test_every_ungated_rule_has_a_routing_sample():
    ungated = {rule.name for rule in KNOWLEDGE_BASE if rule.required_topic is None}
    assert ungated <= set(ROUTING_SAMPLES)


def test_topic_gated_followups(engine, context):
    stats = engine.route("what about habits", context, last_topic=TOPIC_STATS)
    assert stats.rule == "followup_habit_percentage"
    # (30 + 2) / (30 + 10)
    assert stats.text == "Habit Protocol Efficiency: 80% for today. Consistent execution required."

    tasks = engine.route("what about them?", context, last_topic=TOPIC_TASKS)
    assert tasks.rule == "followup_pending_tasks"
    assert "2 pending missions" in tasks.text


def test_stale_topic_falls_through_to_generic_habit_rule(engine, context):
    result = engine.route("what about habits", context, last_topic=TOPIC_TASKS)
    assert result.rule == "habit_overview"
    assert result.new_topic == "HABITS"


@pytest.mark.parametrize("query", ["", "zzz"])
def test_garbage_gets_a_fallback(engine, context, query):
    result = engine.route(query, context, last_topic="")
    assert result.text in FALLBACKS
    assert result.new_topic is None


def test_greeting_picks_from_pool(engine, context):
    assert engine.route("hello", context).text in GREETINGS


def test_advisor_names_overdue_epic(engine, context):
    result = engine.route("what should I do next", context)
    assert result.new_topic == TOPIC_TASKS
    assert "Thesis Draft" in result.text
    assert "OVERDUE" in result.text
    assert "Water plants" not in result.text


def test_advisor_without_overdue_prefers_earliest_then_hardest(engine):
    due = _ms(timedelta(days=1))
    ctx = GameContext(
        tasks=[
            Task(id="a", title="Easy thing", difficulty=Difficulty.EASY, due_date=due),
            Task(id="b", title="Hard thing", difficulty=Difficulty.HARD, due_date=due),
            Task(id="c", title="Undated epic", difficulty=Difficulty.EPIC),
        ],
        now=NOW,
    )
    result = engine.route("what should I do next", ctx)
    assert result.text == (
        "Tactical Analysis suggests engaging mission: 'Hard thing' (HARD). "
        "It is your highest priority target."
    )


def test_advisor_with_nothing_pending(engine):
    result = engine.route("suggest a mission", GameContext(now=NOW))
    assert "No pending missions" in result.text


def test_prioritize_tasks_puts_undated_last():
    undated = Task(id="u", title="u", difficulty=Difficulty.EPIC)
    dated = Task(id="d", title="d", difficulty=Difficulty.EASY, due_date=_ms(timedelta(days=30)))
    assert [t.id for t in prioritize_tasks([undated, dated])] == ["d", "u"]


def test_pending_list_previews_three(engine):
    ctx = GameContext(tasks=[Task(id=str(i), title=f"Task {i}") for i in range(5)], now=NOW)
    result = engine.route("list my tasks", ctx)
    assert "Pending Count: 5" in result.text
    assert "Task 0, Task 1, Task 2..." in result.text
    assert "Task 3" not in result.text


def test_status_report_lists_habits_behind(engine, context):
    result = engine.route("how much is left", context)
    assert result.text == "Status Report: 2 active missions. Habits pending: 8 km of Run."


def test_streak_guardian_all_done(engine):
    ctx = GameContext(
        habits=[Habit(id="h", title="Read", goal_amount=1)],
        habit_logs=[HabitLog(habit_id="h", date=TODAY, value=1)],
        now=NOW,
    )
    assert "Streak integrity is 100%" in engine.route("streak check", ctx).text


def test_weakest_habit_uses_log_count(engine, context):
    assert "'Run'" in engine.route("what is my weakest habit", context).text


def test_habit_percentage_sets_stats_topic(engine, context):
    result = engine.route("habit completion rate", context)
    assert result.new_topic == TOPIC_STATS
    assert "80%" in result.text
    assert "(Goal: 40, Done: 32)" in result.text


def test_completion_percentage(engine, context):
    result = engine.route("what percentage is complete", context)
    assert result.text.startswith("Global Mission Completion: 33% (1/3)")


def test_level_and_skills(engine, context):
    assert "60 more XP" in engine.route("what is my level", context).text
    assert "Coding (Level 5)" in engine.route("what is my top skill", context).text
    assert "'Art' (Level 2)" in engine.route("how can I train better", context).text


def test_top_skill_without_skills(engine):
    assert "No skill data" in engine.route("what is my top skill", GameContext(now=NOW)).text


def test_workload_levels(engine):
    light = GameContext(tasks=[Task(id="1", title="a")], now=NOW)
    assert engine.route("what is my workload", light).text.startswith("STATUS: OPTIMAL")

    epics = [Task(id=str(i), title=f"e{i}", difficulty=Difficulty.EPIC) for i in range(4)]
    moderate = GameContext(tasks=epics, now=NOW)
    assert workload_score(moderate) == 12
    assert engine.route("what is my workload", moderate).text.startswith("STATUS: MODERATE")

    heavy = GameContext(tasks=epics * 2, now=NOW)
    assert engine.route("what is my workload", heavy).text.startswith("STATUS: CRITICAL LOAD")


def test_xp_rewards_quote_config(engine):
    text = engine.route("tell me about xp", GameContext(now=NOW)).text
    assert "Epic (100 XP)" in text
    assert "10 XP per log" in text


def test_keyword_rules_do_not_match_inside_words(engine):
    # "habitat" / "this" must not trip the habit or greeting rules
    result = engine.route("the habitat of this", GameContext(now=NOW))
    assert result.rule not in {"habit_overview", "greeting"}


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

def test_create_task_in_course_action(engine, context):
    result = engine.route("create task Dinner in Daily Life tomorrow at 7pm", context)
    assert result.action.kind == ActionKind.CREATE_TASK
    payload = result.action.payload
    assert payload["title"] == "Dinner"
    assert payload["tracker"] == "Daily Life"
    assert payload["status"] == "YET_TO_START"
    assert payload["difficulty"] == "MEDIUM"
    assert payload["due_date"] == _at(NOW + timedelta(days=1), 19)
    assert "Dinner" in result.text and "Daily Life" in result.text


def test_create_task_action_with_details(engine, context):
    result = engine.route("create a task Buy Groceries due tomorrow at 5pm with difficulty hard", context)
    payload = result.action.payload
    assert result.rule == "create_task"
    assert payload["title"] == "Buy Groceries"
    assert payload["difficulty"] == "HARD"
    assert payload["due_date"] == _at(NOW + timedelta(days=1), 17)
    assert "tracker" not in payload


def test_create_task_defaults_to_today(engine, context):
    payload = engine.route("add mission Laundry", context).action.payload
    assert payload["title"] == "Laundry"
    assert payload["due_date"] == now_ms(NOW)


@pytest.mark.parametrize("query", ["create task Call mom on Friday", "add task Clean garage on the weekend"])
def test_weekday_after_title_stays_in_title(engine, context, query):
    result = engine.route(query, context)
    assert result.rule == "create_task"
    assert "tracker" not in result.action.payload
    assert result.action.payload["title"] == query.split(" ", 2)[2]


def test_create_tracker_action(engine, context):
    result = engine.route("create a new course called Physics", context)
    assert result.action.kind == ActionKind.CREATE_TRACKER
    assert result.action.payload == {"name": "Physics"}


def test_move_task_action(engine, context):
    action = engine.route("move Dinner to Daily Life", context).action
    assert action.kind == ActionKind.EDIT_TASK
    assert action.payload == {"task_name": "Dinner", "updates": {"tracker": "Daily Life"}}


def test_edit_attribute_for_task_action(engine, context):
    action = engine.route("change the status to in progress for Dinner with Rudranil", context).action
    assert action.payload == {
        "task_name": "Dinner with Rudranil",
        "updates": {"status": "IN_PROGRESS"},
    }


def test_edit_task_status_action(engine, context):
    action = engine.route("edit Dinner from todo to in progress", context).action
    assert action.payload == {"task_name": "Dinner", "updates": {"status": "IN_PROGRESS"}}


def test_edit_task_free_rename_action(engine, context):
    action = engine.route("edit task Dinner to Dinner with Rudra", context).action
    assert action.payload == {"task_name": "Dinner", "updates": {"title": "Dinner with Rudra"}}


def test_edit_task_attribute_rest_action(engine, context):
    action = engine.route("edit Laundry date tomorrow at 9am", context).action
    assert action.payload == {
        "task_name": "Laundry",
        "updates": {"due_date": _at(NOW + timedelta(days=1), 9)},
    }


def test_rename_action(engine, context):
    action = engine.route("rename Dinner to Supper", context).action
    assert action.payload == {"task_name": "Dinner", "updates": {"title": "Supper"}}


def test_delete_actions(engine, context):
    task = engine.route("delete task Dinner 2 from Daily Life", context)
    assert task.action.kind == ActionKind.DELETE_TASK
    assert task.action.payload == {"task_name": "Dinner 2", "course_name": "Daily Life"}
    assert "from module 'Daily Life'" in task.text

    plain = engine.route("remove mission Laundry", context)
    assert plain.action.payload == {"task_name": "Laundry"}

    tracker = engine.route("delete course Physics", context)
    assert tracker.action.kind == ActionKind.DELETE_TRACKER
    assert tracker.action.payload == {"name": "Physics"}


def test_informational_rules_emit_no_action(engine, context):
    for query in ("what should I do next", "help", "how do I create a new task"):
        assert engine.route(query, context).action is None
