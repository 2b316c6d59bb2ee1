from __future__ import annotations

import logging
import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Sequence, TypeVar

from word_vault.config import QuizLimits
from word_vault.errors import InsufficientWords, QuizStateError, StaleRequest

UTC = timezone.utc
T = TypeVar("T")

logger = logging.getLogger(__name__)


class QuizPhase(str, Enum):
    SETUP = "setup"
    PLAYING = "playing"
    RESULTS = "results"


@dataclass
class QuizWord:
    id: int
    word: str
    definition: str


@dataclass
class DefinitionCard:
    key: str
    owner_id: int
    definition: str


@dataclass
class QuizResult:
    correct: int
    total: int
    difficulty: str


@dataclass
class QuizSession:
    id: str
    difficulty: str = "all"
    owner_id: int | None = None
    phase: QuizPhase = QuizPhase.SETUP
    quiz_words: list[QuizWord] = field(default_factory=list)
    definitions: list[DefinitionCard] = field(default_factory=list)
    selected_word: int | None = None
    matches: dict[int, int] = field(default_factory=dict)
    result: QuizResult | None = None
    pool_size: int = 0
    generation: int = 0
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def word_ids(self) -> set[int]:
        return {item.id for item in self.quiz_words}

    def definition_by_key(self, key: str) -> DefinitionCard | None:
        return next((card for card in self.definitions if card.key == key), None)

    def used_definitions(self) -> set[int]:
        return set(self.matches.values())

    def as_dict(self) -> dict:
        keys = {card.owner_id: card.key for card in self.definitions}
        used = self.used_definitions()
        payload = {
            "id": self.id,
            "phase": self.phase.value,
            "difficulty": self.difficulty,
            "pool_size": self.pool_size,
            "words": [
                {
                    "id": item.id,
                    "word": item.word,
                    "matched": item.id in self.matches,
                    "selected": item.id == self.selected_word,
                }
                for item in self.quiz_words
            ],
            "definitions": [
                {"key": card.key, "definition": card.definition, "used": card.owner_id in used}
                for card in self.definitions
            ],
            "matches": {str(word_id): keys.get(owner_id) for word_id, owner_id in self.matches.items()},
            "selected_word": self.selected_word,
            "can_submit": can_submit(self),
            "result": None,
        }
        if self.phase is QuizPhase.RESULTS and self.result is not None:
            payload["result"] = {
                "correct": self.result.correct,
                "total": self.result.total,
                "review": [
                    {
                        "id": item.id,
                        "word": item.word,
                        "definition": item.definition,
                        "correct": self.matches.get(item.id) == item.id,
                    }
                    for item in self.quiz_words
                ],
            }
        return payload


def shuffle(items: Sequence[T], rng: random.Random | None = None) -> list[T]:
    """Return an unbiased Fisher-Yates permutation of ``items``."""
    source = rng or random
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = source.randrange(i + 1)
        result[i], result[j] = result[j], result[i]
    return result


def can_submit(session: QuizSession) -> bool:
    return (
        session.phase is QuizPhase.PLAYING
        and bool(session.quiz_words)
        and len(session.matches) == len(session.quiz_words)
    )


def score(session: QuizSession) -> int:
    return sum(1 for item in session.quiz_words if session.matches.get(item.id) == item.id)


class QuizEngine:
    """Matching-quiz state machine: SETUP -> PLAYING -> RESULTS.

    Every mutating call takes the session explicitly; the engine itself keeps
    no per-player state. Click handlers return ``True`` only when they changed
    the session, so no-op clicks are observable without diffing.
    """

    def __init__(
        self,
        *,
        rng: random.Random | None = None,
        limits: QuizLimits | None = None,
        on_result: Callable[[QuizSession, QuizResult], None] | None = None,
    ) -> None:
        self.rng = rng or random.Random()
        self.limits = limits or QuizLimits()
        self.on_result = on_result

    def new_session(self, *, difficulty: str = "all", owner_id: int | None = None) -> QuizSession:
        return QuizSession(id=uuid.uuid4().hex, difficulty=difficulty, owner_id=owner_id)

    def issue_ticket(self, session: QuizSession) -> int:
        session.generation += 1
        return session.generation

    def start(self, session: QuizSession, pool: Sequence[dict], *, ticket: int | None = None) -> QuizSession:
        if ticket is not None and ticket != session.generation:
            raise StaleRequest(ticket, session.generation)
        # A rejected start leaves the session untouched.
        if len(pool) < self.limits.min_pool:
            raise InsufficientWords(len(pool), self.limits.min_pool)
        if ticket is None:
            self.issue_ticket(session)

        session.pool_size = len(pool)

        drawn = shuffle(pool, self.rng)[: min(self.limits.quiz_size, len(pool))]
        session.quiz_words = [
            QuizWord(id=int(row["id"]), word=str(row["word"]), definition=str(row["definition"]))
            for row in drawn
        ]
        column = shuffle([(item.id, item.definition) for item in session.quiz_words], self.rng)
        session.definitions = [
            DefinitionCard(key=f"d{index + 1}", owner_id=owner_id, definition=text)
            for index, (owner_id, text) in enumerate(column)
        ]
        session.matches = {}
        session.selected_word = None
        session.result = None
        session.phase = QuizPhase.PLAYING
        self._touch(session)
        logger.info(
            "quiz %s started: %d of %d words (difficulty=%s)",
            session.id,
            len(session.quiz_words),
            len(pool),
            session.difficulty,
        )
        return session

    def retry(self, session: QuizSession, pool: Sequence[dict], *, ticket: int | None = None) -> QuizSession:
        if session.phase is not QuizPhase.RESULTS:
            raise QuizStateError("retry is only available after submitting")
        return self.start(session, pool, ticket=ticket)

    def reset(self, session: QuizSession, *, difficulty: str | None = None) -> QuizSession:
        # Invalidates any pool fetch still in flight for the previous round.
        session.generation += 1
        if difficulty is not None:
            session.difficulty = difficulty
        session.phase = QuizPhase.SETUP
        session.quiz_words = []
        session.definitions = []
        session.matches = {}
        session.selected_word = None
        session.result = None
        self._touch(session)
        return session

    def select_word(self, session: QuizSession, word_id: int) -> bool:
        if session.phase is not QuizPhase.PLAYING or word_id not in session.word_ids():
            return False
        if word_id in session.matches:
            return False
        session.selected_word = None if session.selected_word == word_id else word_id
        self._touch(session)
        return True

    def choose_definition(self, session: QuizSession, definition_id: int) -> bool:
        if session.phase is not QuizPhase.PLAYING or session.selected_word is None:
            return False
        if definition_id not in session.word_ids() or definition_id in session.used_definitions():
            return False
        session.matches[session.selected_word] = definition_id
        session.selected_word = None
        self._touch(session)
        return True

    def unmatch(self, session: QuizSession, word_id: int) -> bool:
        if session.phase is not QuizPhase.PLAYING or word_id not in session.matches:
            return False
        del session.matches[word_id]
        self._touch(session)
        return True

    def submit(self, session: QuizSession) -> QuizResult:
        if not can_submit(session):
            raise QuizStateError("match every word before submitting")

        result = QuizResult(correct=score(session), total=len(session.quiz_words), difficulty=session.difficulty)
        session.result = result
        session.selected_word = None
        session.phase = QuizPhase.RESULTS
        self._touch(session)
        logger.info("quiz %s submitted: %d/%d", session.id, result.correct, result.total)

        if self.on_result is not None:
            try:
                self.on_result(session, result)
            except Exception:
                logger.warning("failed to persist result of quiz %s", session.id, exc_info=True)
        return result

    def _touch(self, session: QuizSession) -> None:
        session.updated_at = datetime.now(UTC)
