"""
Elite65 Assistant - one chat turn, end to end.

    message -> session -> snapshot -> rule engine -> dispatcher -> transcript

The reply text is fixed by the rule engine before anything is written, so the
wording never depends on whether the store accepted the write. Failures are
surfaced next to it instead.
"""
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel

from core.action_dispatcher import ActionDispatcher, DispatchStatus
from core.knowledge_base import build_engine
from core.logger import get_logger
from core.models import GameContext
from core.rule_engine import RuleEngine
from core.session import SessionManager
from core.store import TaskStore

logger = get_logger("assistant")


class AssistantReply(BaseModel):
    text: str
    topic: str = ""
    action: Optional[Dict[str, Any]] = None
    action_status: Optional[str] = None   # DispatchStatus value when an action ran
    notice: Optional[str] = None


class Elite65Assistant:
    def __init__(
        self,
        store: TaskStore,
        engine: Optional[RuleEngine] = None,
        sessions: Optional[SessionManager] = None
    ):
        self.store = store
        self.engine = engine or build_engine()
        self.sessions = sessions or SessionManager()
        self.dispatcher = ActionDispatcher(store)

    def build_context(self, user_id: str, now: Optional[datetime] = None) -> GameContext:
        return GameContext(
            tasks=self.store.list_tasks(user_id),
            habits=self.store.list_habits(user_id),
            user_stats=self.store.get_user_stats(user_id),
            habit_logs=self.store.list_habit_logs(user_id),
            now=now,
        )

    def handle(
        self,
        user_id: str,
        conversation_id: str,
        message: str,
        now: Optional[datetime] = None
    ) -> AssistantReply:
        """
        Process one user message.

        Args:
            user_id: whose workspace the turn reads and mutates
            conversation_id: which session's topic and transcript to use
            message: raw user text
            now: clock override for time-dependent replies

        Returns:
            AssistantReply; the bot line is already appended to the transcript
        """
        session = self.sessions.get_or_create(conversation_id)
        session.add_user_message(message)

        context = self.build_context(user_id, now)
        result = self.engine.route(message, context, session.topic)
        session.apply_topic(result.new_topic)

        reply = AssistantReply(text=result.text, topic=session.topic)

        if result.action is not None:
            reply.action = result.action.to_dict()
            outcome = self.dispatcher.dispatch(
                user_id,
                result.action,
                tasks=context.tasks,
                trackers=self.store.list_trackers(user_id),
                skills=list(context.user_stats.skills.keys()),
            )
            reply.action_status = outcome.status.value

            if outcome.status == DispatchStatus.UNRESOLVED:
                reply.notice = f"{outcome.message} No changes were made."
                reply.text = f"{reply.text}\n{reply.notice}"
            elif outcome.status == DispatchStatus.FAILED:
                logger.error("Action %s failed in %s", result.action.kind.value, conversation_id)
                reply.notice = outcome.message
            elif outcome.status == DispatchStatus.SKIPPED:
                reply.notice = outcome.message

        session.add_bot_message(reply.text)
        return reply
