from word_vault.quiz.engine import (
    DefinitionCard,
    QuizEngine,
    QuizPhase,
    QuizResult,
    QuizSession,
    QuizWord,
    can_submit,
    score,
    shuffle,
)
from word_vault.quiz.sessions import QuizSessionStore

__all__ = [
    "DefinitionCard",
    "QuizEngine",
    "QuizPhase",
    "QuizResult",
    "QuizSession",
    "QuizSessionStore",
    "QuizWord",
    "can_submit",
    "score",
    "shuffle",
]
