"""
Session Store: per-user conversation state.

Read by: Conversation Orchestrator at the start of every turn
Written by: Conversation Orchestrator at the end of every turn

Turns for the same user are serialized through that user's lock; turns for
different users share nothing and run concurrently.
"""

import asyncio
import logging
from collections import OrderedDict
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import AsyncContextManager, AsyncIterator, Callable, Dict, Optional, Protocol

from autoflow_ai.models.conversation import ConversationSession

logger = logging.getLogger(__name__)


class _UserLock:
    """A user's lock plus the number of turns holding or waiting on it."""

    def __init__(self):
        self.lock = asyncio.Lock()
        self.users = 0


class SessionStore(Protocol):
    """Protocol for session persistence: pluggable backend."""

    def get(self, user_id: str) -> Optional[ConversationSession]: ...

    def create(self, session: ConversationSession) -> ConversationSession: ...

    def update(self, session: ConversationSession) -> None: ...

    def delete(self, user_id: str) -> bool: ...

    def lock(self, user_id: str) -> AsyncContextManager[None]: ...


class InMemorySessionStore:
    """
    In-memory session store for a single process.

    Sessions are handed out as deep copies, so a turn works on its own
    snapshot and publishes it with update(). Idle sessions older than the
    TTL are evicted lazily, and the least recently used sessions are evicted
    once capacity is exceeded.
    """

    def __init__(
        self,
        ttl_seconds: int = 86400,
        max_sessions: int = 10000,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.ttl = timedelta(seconds=ttl_seconds)
        self.max_sessions = max_sessions
        self._clock = clock or datetime.utcnow
        self._sessions: "OrderedDict[str, ConversationSession]" = OrderedDict()
        self._locks: Dict[str, _UserLock] = {}

    def get(self, user_id: str) -> Optional[ConversationSession]:
        """Get a copy of the user's session, or None."""
        self._evict_expired()
        session = self._sessions.get(user_id)
        if session is None:
            return None
        self._sessions.move_to_end(user_id)
        return session.model_copy(deep=True)

    def create(self, session: ConversationSession) -> ConversationSession:
        """Insert a new session. Replaces any existing session for the same user."""
        self._sessions[session.user_id] = session.model_copy(deep=True)
        self._sessions.move_to_end(session.user_id)
        self._enforce_capacity()
        return session.model_copy(deep=True)

    def update(self, session: ConversationSession) -> None:
        """Publish the state of a session at the end of a turn."""
        self._sessions[session.user_id] = session.model_copy(deep=True)
        self._sessions.move_to_end(session.user_id)
        self._enforce_capacity()

    def delete(self, user_id: str) -> bool:
        """Remove a session."""
        if user_id in self._sessions:
            del self._sessions[user_id]
            return True
        return False

    @asynccontextmanager
    async def lock(self, user_id: str) -> AsyncIterator[None]:
        """
        Hold the lock serializing turns of one user.

        The lock lives as long as some turn holds or waits on it, independent
        of the session itself, so deleting or evicting a session never hands
        a second turn a fresh lock.
        """
        entry = self._locks.get(user_id)
        if entry is None:
            entry = self._locks[user_id] = _UserLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[user_id]

    def _evict_expired(self) -> None:
        cutoff = self._clock() - self.ttl
        expired = [
            user_id for user_id, s in self._sessions.items()
            if s.last_activity < cutoff
        ]
        for user_id in expired:
            del self._sessions[user_id]
        if expired:
            logger.info("Evicted %d idle conversation sessions", len(expired))

    def _enforce_capacity(self) -> None:
        while len(self._sessions) > self.max_sessions:
            user_id, _ = self._sessions.popitem(last=False)
            logger.info("Evicted least recently used session for user %s", user_id)

