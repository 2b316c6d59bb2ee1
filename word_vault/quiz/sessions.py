from __future__ import annotations

import logging
import os
import threading
from datetime import datetime, timedelta, timezone

from word_vault.quiz.engine import QuizSession

UTC = timezone.utc

logger = logging.getLogger(__name__)


class QuizSessionStore:
    """In-memory quiz sessions with idle expiry.

    Each session carries its own lock so that concurrent requests against one
    session are applied one at a time, while different sessions never contend.
    """

    def __init__(self, *, timeout_minutes: int | None = None) -> None:
        if timeout_minutes is None:
            timeout_minutes = int(os.getenv("WORD_VAULT_QUIZ_SESSION_TIMEOUT_MINUTES", "120"))
        self.timeout = timedelta(minutes=max(1, timeout_minutes))
        self._sessions: dict[str, QuizSession] = {}
        self._locks: dict[str, threading.RLock] = {}
        self._guard = threading.Lock()

    def add(self, session: QuizSession) -> QuizSession:
        with self._guard:
            self._evict_expired()
            self._sessions[session.id] = session
            self._locks[session.id] = threading.RLock()
        return session

    def get(self, session_id: str) -> QuizSession | None:
        with self._guard:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            if self._expired(session):
                logger.info("quiz session %s expired", session_id)
                self._drop(session_id)
                return None
            return session

    def lock(self, session_id: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(session_id)
        if lock is None:
            raise KeyError(session_id)
        return lock

    def remove(self, session_id: str) -> bool:
        with self._guard:
            return self._drop(session_id)

    def __len__(self) -> int:
        with self._guard:
            return len(self._sessions)

    def _expired(self, session: QuizSession) -> bool:
        return datetime.now(UTC) - session.updated_at > self.timeout

    def _evict_expired(self) -> None:
        for session_id in [sid for sid, s in self._sessions.items() if self._expired(s)]:
            self._drop(session_id)

    def _drop(self, session_id: str) -> bool:
        self._locks.pop(session_id, None)
        return self._sessions.pop(session_id, None) is not None
