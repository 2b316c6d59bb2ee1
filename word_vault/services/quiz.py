from __future__ import annotations

import logging

from word_vault.errors import QuizSessionNotFound
from word_vault.quiz.engine import QuizEngine, QuizResult, QuizSession
from word_vault.quiz.sessions import QuizSessionStore
from word_vault.repository.words import WordRepository, normalize_difficulty_filter
from word_vault.services.accounts import SessionContext
from word_vault.storage.db import Database, QuizScore

logger = logging.getLogger(__name__)


class QuizService:
    """Binds the quiz engine to the word pool, the session store and score storage.

    Pool fetches happen outside the session lock. Each fetch is tagged with a
    generation ticket, and the engine refuses to apply a pool whose ticket
    has been superseded by a newer start, retry or reset. Public methods
    return a view of the session taken while its lock is held.
    """

    def __init__(
        self,
        db: Database,
        *,
        store: QuizSessionStore | None = None,
        engine: QuizEngine | None = None,
    ) -> None:
        self.db = db
        self.words = WordRepository(db)
        self.store = store or QuizSessionStore()
        self.engine = engine or QuizEngine()
        if self.engine.on_result is None:
            self.engine.on_result = self._persist_result

    def create(self, ctx: SessionContext, *, difficulty: str = "all") -> dict:
        level = _difficulty_label(difficulty)
        session = self.engine.new_session(difficulty=level, owner_id=ctx.user_id)
        session.pool_size = len(self.words.quiz_pool(level))
        view = session.as_dict()
        self.store.add(session)
        logger.info("quiz session %s created (difficulty=%s, pool=%d)", session.id, level, session.pool_size)
        return view

    def get(self, ctx: SessionContext, session_id: str) -> QuizSession:
        session = self.store.get(session_id)
        if session is None or (session.owner_id is not None and session.owner_id != ctx.user_id):
            raise QuizSessionNotFound(session_id)
        return session

    def view(self, ctx: SessionContext, session_id: str) -> dict:
        session = self.get(ctx, session_id)
        with self._lock(session_id):
            return session.as_dict()

    def start(self, ctx: SessionContext, session_id: str) -> dict:
        session = self.get(ctx, session_id)
        with self._lock(session_id):
            ticket = self.engine.issue_ticket(session)
            difficulty = session.difficulty
        pool = self.words.quiz_pool(difficulty)
        with self._lock(session_id):
            return self.engine.start(session, pool, ticket=ticket).as_dict()

    def retry(self, ctx: SessionContext, session_id: str) -> dict:
        session = self.get(ctx, session_id)
        with self._lock(session_id):
            ticket = self.engine.issue_ticket(session)
            difficulty = session.difficulty
        pool = self.words.quiz_pool(difficulty)
        with self._lock(session_id):
            return self.engine.retry(session, pool, ticket=ticket).as_dict()

    def reset(self, ctx: SessionContext, session_id: str, *, difficulty: str | None = None) -> dict:
        session = self.get(ctx, session_id)
        level = _difficulty_label(difficulty) if difficulty is not None else None
        with self._lock(session_id):
            self.engine.reset(session, difficulty=level)
            target = session.difficulty
        pool_size = len(self.words.quiz_pool(target))
        with self._lock(session_id):
            if session.difficulty == target:
                session.pool_size = pool_size
            return session.as_dict()

    def select_word(self, ctx: SessionContext, session_id: str, word_id: int) -> dict:
        session = self.get(ctx, session_id)
        with self._lock(session_id):
            self.engine.select_word(session, word_id)
            return session.as_dict()

    def choose_definition(self, ctx: SessionContext, session_id: str, definition_key: str) -> dict:
        session = self.get(ctx, session_id)
        with self._lock(session_id):
            card = session.definition_by_key(definition_key)
            if card is not None:
                self.engine.choose_definition(session, card.owner_id)
            return session.as_dict()

    def unmatch(self, ctx: SessionContext, session_id: str, word_id: int) -> dict:
        session = self.get(ctx, session_id)
        with self._lock(session_id):
            self.engine.unmatch(session, word_id)
            return session.as_dict()

    def submit(self, ctx: SessionContext, session_id: str) -> dict:
        session = self.get(ctx, session_id)
        with self._lock(session_id):
            self.engine.submit(session)
            return session.as_dict()

    def discard(self, ctx: SessionContext, session_id: str) -> bool:
        self.get(ctx, session_id)
        return self.store.remove(session_id)


    def _lock(self, session_id: str):
        try:
            return self.store.lock(session_id)
        except KeyError as exc:
            raise QuizSessionNotFound(session_id) from exc

    def _persist_result(self, session: QuizSession, result: QuizResult) -> None:
        if session.owner_id is None:
            return
        self.db.insert_quiz_score(
            QuizScore(
                score=result.correct,
                total=result.total,
                difficulty=result.difficulty,
                user_id=session.owner_id,
            )
        )


def _difficulty_label(value: str | None) -> str:
    return normalize_difficulty_filter(value) or "all"
