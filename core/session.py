"""
Conversation sessions for Elite65.

A session holds the transcript and the single "last topic" token for one
conversation. Sessions never share state; two browser tabs get two topics.
"""
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from core.config_manager import config
from core.knowledge_base import WELCOME_MESSAGE
from core.logger import get_logger
from core.models import ChatMessage, Sender, now_ms

logger = get_logger("session")


def _message(text: str, sender: Sender) -> ChatMessage:
    return ChatMessage(id=uuid.uuid4().hex, text=text, sender=sender, timestamp=now_ms())


@dataclass
class ConversationSession:
    conversation_id: str
    topic: str = ""
    messages: List[ChatMessage] = field(default_factory=list)

    def __post_init__(self):
        if not self.messages:
            self.messages.append(_message(WELCOME_MESSAGE, Sender.BOT))

    def add_user_message(self, text: str) -> ChatMessage:
        message = _message(text, Sender.USER)
        self.messages.append(message)
        return message

    def add_bot_message(self, text: str) -> ChatMessage:
        message = _message(text, Sender.BOT)
        self.messages.append(message)
        return message

    def apply_topic(self, new_topic: Optional[str]) -> None:
        """Overwrite the topic when a rule published one; otherwise keep it."""
        if new_topic:
            self.topic = new_topic

    def to_dict(self) -> Dict:
        return {
            "conversation_id": self.conversation_id,
            "topic": self.topic,
            "messages": [m.to_dict() for m in self.messages],
        }


class SessionManager:
    """
    In-process registry of conversations. Lost on restart.

    Holds at most ``max_sessions`` conversations; opening one more evicts the
    least recently used.
    """

    def __init__(self, max_sessions: Optional[int] = None):
        self.max_sessions = config.SESSION_MAX_CONVERSATIONS if max_sessions is None else max_sessions
        self._sessions: "OrderedDict[str, ConversationSession]" = OrderedDict()

    def get(self, conversation_id: str) -> Optional[ConversationSession]:
        session = self._sessions.get(conversation_id)
        if session is not None:
            self._sessions.move_to_end(conversation_id)
        return session

    def get_or_create(self, conversation_id: str) -> ConversationSession:
        session = self.get(conversation_id)
        if session is None:
            while self.max_sessions > 0 and len(self._sessions) >= self.max_sessions:
                evicted, _ = self._sessions.popitem(last=False)
                logger.info("Evicted idle conversation %s", evicted)
            session = ConversationSession(conversation_id)
            self._sessions[conversation_id] = session
            logger.info("Opened conversation %s", conversation_id)
        return session

    def reset(self, conversation_id: str) -> bool:
        """Drop a conversation. Returns False if it did not exist."""
        removed = self._sessions.pop(conversation_id, None)
        if removed is not None:
            logger.info("Reset conversation %s", conversation_id)
        return removed is not None

    def __len__(self) -> int:
        return len(self._sessions)
