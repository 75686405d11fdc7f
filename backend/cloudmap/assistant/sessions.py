"""
Conversation sessions for the Jarvis assistant, keyed by architecture id.
"""

import threading
import time
from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

MAX_INTENT_HISTORY = 20
MAX_SESSION_MESSAGES = 100


@dataclass
class IntentRecord:
    intent: str
    timestamp: float


@dataclass
class ConversationSession:
    id: str
    message_count: int = 0
    last_message_timestamp: float = field(default_factory=time.time)
    intents: List[IntentRecord] = field(default_factory=list)
    messages: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "messageCount": self.message_count,
            "lastMessageTimestamp": self.last_message_timestamp,
            "intents": [asdict(i) for i in self.intents],
            "messages": list(self.messages),
        }


class SessionStore:
    def __init__(self):
        self._sessions: Dict[str, ConversationSession] = {}
        self._lock = threading.RLock()

    def get(self, session_id: str) -> Optional[ConversationSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def get_or_create(self, session_id: str) -> ConversationSession:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = ConversationSession(id=session_id)
                self._sessions[session_id] = session
            return session

    def update(
        self,
        session_id: str,
        messages: Optional[List[Dict[str, Any]]] = None,
        intent: Optional[str] = None,
    ) -> ConversationSession:
        with self._lock:
            session = self.get_or_create(session_id)

            if messages is not None:
                session.messages = list(messages)[-MAX_SESSION_MESSAGES:]
                session.message_count = len(messages)

            if intent:
                session.intents.append(IntentRecord(intent=str(intent), timestamp=time.time()))
                session.intents = session.intents[-MAX_INTENT_HISTORY:]

            session.last_message_timestamp = time.time()
            return session

    def append_message(self, session_id: str, role: str, content: str) -> ConversationSession:
        with self._lock:
            session = self.get_or_create(session_id)
            session.messages.append({"role": role, "content": content, "timestamp": time.time()})
            # Oldest turns drop off; the count keeps growing
            session.messages = session.messages[-MAX_SESSION_MESSAGES:]
            session.message_count += 1
            session.last_message_timestamp = time.time()
            return session

    def history(self, session_id: str) -> List[Dict[str, str]]:
        """Session messages as plain {role, content} chat turns."""
        session = self.get(session_id)
        if session is None:
            return []
        return [{"role": m["role"], "content": m["content"]} for m in session.messages]

    def analytics(self, session_id: str) -> dict:
        session = self.get(session_id)
        if session is None:
            return {"messageCount": 0, "hasActiveSession": False}

        distribution = Counter(record.intent for record in session.intents)
        return {
            "messageCount": session.message_count,
            "hasActiveSession": True,
            "intentDistribution": dict(distribution),
            "sessionData": session.to_dict(),
        }

    def clear(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def clear_all(self):
        with self._lock:
            self._sessions.clear()


_sessions = SessionStore()


def get_session_store() -> SessionStore:
    return _sessions
