"""
Session Store.

Owns every session. Sessions are append-only and live for the lifetime
of the store.
"""

from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime, timedelta
from typing import Optional

from ..domain.entities import Message, MessageRole, Session, utcnow

logger = logging.getLogger(__name__)

TOPIC_KEYWORDS = (
    "ai", "artificial intelligence", "machine learning", "blockchain",
    "funding", "investment", "venture capital", "startup", "fintech",
    "saas", "software", "technology", "innovation", "market analysis",
    "business plan", "strategy", "growth", "scaling", "partnership",
    "marketing", "valuation", "legal",
)


def new_session_id() -> str:
    return f"session-{uuid.uuid4().hex}"


class SessionStore:
    """In-memory session store.

    Usage:
        store = SessionStore()
        session = store.get_or_create(None, user_id="u1")
        store.append(session.id, Message.user("hello"))
    """

    def __init__(
        self,
        topic_keywords: tuple[str, ...] = TOPIC_KEYWORDS,
        max_topics: int = 10,
    ):
        """Initialize the store.

        Args:
            topic_keywords: Keywords tracked as session topics
            max_topics: Most recent topics kept per session
        """
        self._sessions: dict[str, Session] = {}
        self.max_topics = max_topics
        self._topic_patterns = [
            (kw, re.compile(rf"\b{re.escape(kw)}\b")) for kw in topic_keywords
        ]

    def get(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: Optional[str], user_id: str = "anonymous") -> Session:
        """Return the session, creating it on first use."""
        session_id = session_id or new_session_id()
        session = self._sessions.get(session_id)
        if session is None:
            session = Session(id=session_id, user_id=user_id)
            self._sessions[session_id] = session
            logger.info(f"Created session {session_id} for user {user_id}")
        return session

    def append(self, session_id: str, message: Message) -> Message:
        """Append to an existing session, returning the message as stored."""
        session = self._sessions[session_id]
        stored = session.append(message)
        if stored.role == MessageRole.USER:
            self._update_topics(session, stored.content)
        return stored

    def history(self, session_id: str, limit: int) -> tuple[Message, ...]:
        session = self._sessions.get(session_id)
        return session.recent(limit) if session else ()

    def _update_topics(self, session: Session, content: str) -> None:
        lowered = content.lower()
        for keyword, pattern in self._topic_patterns:
            if keyword not in session.key_topics and pattern.search(lowered):
                session.key_topics.append(keyword)
        del session.key_topics[:-self.max_topics]

    def all(self) -> list[Session]:
        return list(self._sessions.values())

    def __len__(self) -> int:
        return len(self._sessions)

    @property
    def total_messages(self) -> int:
        return sum(s.message_count for s in self._sessions.values())

    def active_sessions(
        self,
        within: timedelta = timedelta(minutes=30),
        now: Optional[datetime] = None,
    ) -> int:
        """Count sessions with activity inside the ``within`` window."""
        cutoff = (now or utcnow()) - within
        return sum(1 for s in self._sessions.values() if s.last_activity_at >= cutoff)
