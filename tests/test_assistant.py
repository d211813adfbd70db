import random
from datetime import datetime, timedelta

import pytest

from core.assistant import Elite65Assistant
from core.exceptions import StoreError
from core.knowledge_base import WELCOME_MESSAGE, build_engine
from core.models import Sender, now_ms
from core.session import ConversationSession, SessionManager
from core.store import InMemoryStore

USER = "operator"
NOW = datetime(2026, 3, 10, 9, 30)


@pytest.fixture
def store():
    store = InMemoryStore()
    store.load_snapshot(USER, {
        "trackers": [{"id": "tr_daily", "name": "Daily Life"}],
        "tasks": [
            {"id": "t1", "title": "Thesis Draft", "difficulty": "EPIC",
             "due_date": now_ms(NOW - timedelta(days=1)), "tracker_id": "tr_daily"},
            {"id": "t2", "title": "Water plants", "difficulty": "EASY",
             "due_date": now_ms(NOW + timedelta(days=1)), "tracker_id": "tr_daily"},
        ],
        "habits": [{"id": "h1", "title": "Read", "goalAmount": 10, "unit": "pages"}],
        "habitLogs": [{"habitId": "h1", "date": NOW.date().isoformat(), "value": 5}],
    })
    return store


@pytest.fixture
def assistant(store):
    return Elite65Assistant(store, engine=build_engine(rng=random.Random(1)))


def test_new_session_starts_with_welcome():
    session = ConversationSession("c1")
    assert len(session.messages) == 1
    assert session.messages[0].text == WELCOME_MESSAGE
    assert session.messages[0].sender == Sender.BOT
    assert session.topic == ""


def test_session_topic_only_changes_when_published():
    session = ConversationSession("c1")
    session.apply_topic("TASKS")
    session.apply_topic(None)
    assert session.topic == "TASKS"


def test_session_manager_keeps_conversations_apart():
    manager = SessionManager()
    first = manager.get_or_create("tab-1")
    second = manager.get_or_create("tab-2")
    first.apply_topic("STATS")

    assert manager.get_or_create("tab-1") is first
    assert second.topic == ""
    assert len(manager) == 2

    assert manager.reset("tab-1") is True
    assert manager.reset("tab-1") is False
    assert manager.get("tab-1") is None


def test_session_manager_evicts_least_recently_used():
    manager = SessionManager(max_sessions=2)
    manager.get_or_create("a")
    manager.get_or_create("b")
    manager.get("a")
    manager.get_or_create("c")

    assert len(manager) == 2
    assert manager.get("b") is None
    assert manager.get("a") is not None


def test_session_manager_cap_defaults_to_config():
    assert SessionManager().max_sessions == 500


def test_turn_appends_transcript_and_topic(assistant):
    reply = assistant.handle(USER, "c1", "what should I do next", now=NOW)

    assert "Thesis Draft" in reply.text
    assert reply.topic == "TASKS"
    assert reply.action is None

    session = assistant.sessions.get("c1")
    assert [m.sender for m in session.messages] == [Sender.BOT, Sender.USER, Sender.BOT]
    assert session.messages[-1].text == reply.text


def test_topic_carries_into_followup(assistant):
    assistant.handle(USER, "c1", "habit completion rate", now=NOW)
    reply = assistant.handle(USER, "c1", "what about habits", now=NOW)
    assert reply.text.startswith("Habit Protocol Efficiency: 50%")


def test_topics_are_per_conversation(assistant):
    assistant.handle(USER, "tab-1", "habit completion rate", now=NOW)
    reply = assistant.handle(USER, "tab-2", "what about habits", now=NOW)
    assert reply.topic == "HABITS"
    assert not reply.text.startswith("Habit Protocol Efficiency")


def test_action_turn_mutates_store(assistant, store):
    reply = assistant.handle(USER, "c1", "create task Dinner in Daily Life tomorrow at 7pm", now=NOW)

    assert reply.action["kind"] == "CREATE_TASK"
    assert reply.action_status == "dispatched"
    assert reply.notice is None
    assert "Dinner" in [t.title for t in store.list_tasks(USER)]


def test_unresolved_target_is_surfaced(assistant, store):
    reply = assistant.handle(USER, "c1", "delete task xyz123", now=NOW)

    assert reply.action_status == "unresolved"
    assert "could not be identified" in reply.notice
    assert reply.text.endswith("No changes were made.")
    assert len(store.list_tasks(USER)) == 2


def test_short_name_does_not_delete_task_containing_it():
    store = InMemoryStore()
    store.load_snapshot(USER, {"tasks": [{"id": "t1", "title": "Write report"}]})
    assistant = Elite65Assistant(store, engine=build_engine(rng=random.Random(1)))

    reply = assistant.handle(USER, "c1", "delete task it", now=NOW)

    assert reply.action_status == "unresolved"
    assert [t.title for t in store.list_tasks(USER)] == ["Write report"]


def test_weekday_after_title_is_not_read_as_module(assistant, store):
    reply = assistant.handle(USER, "c1", "create task Call mom on Friday", now=NOW)

    assert reply.action_status == "dispatched"
    created = [t for t in store.list_tasks(USER) if t.title == "Call mom on Friday"]
    assert created[0].tracker_id == "tr_daily"


def test_unknown_module_notice_says_how_to_fix_it(assistant, store):
    reply = assistant.handle(USER, "c1", "create task Essay in Underwater Basket Weaving", now=NOW)

    assert reply.action_status == "unresolved"
    assert "Name an existing module" in reply.notice
    assert "Essay" not in [t.title for t in store.list_tasks(USER)]


def test_store_failure_keeps_text_and_reports_notice(assistant, store, monkeypatch):
    def explode(*args, **kwargs):
        raise StoreError("backend offline", "update_task")

    monkeypatch.setattr(store, "update_task", explode)
    reply = assistant.handle(USER, "c1", "edit Water plants to done", now=NOW)

    assert reply.action_status == "failed"
    assert reply.text == "Initiating Update Protocol: Modifying mission 'Water plants'."
    assert "could not be saved" in reply.notice


def test_fallback_turn_has_no_action(assistant):
    reply = assistant.handle(USER, "c1", "zzz", now=NOW)
    assert reply.action is None
    assert reply.action_status is None
    assert reply.topic == ""
