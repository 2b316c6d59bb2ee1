from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass

from word_vault.config import DIFFICULTIES, DIFFICULTY_FILTERS, RECENT_WORDS_LIMIT
from word_vault.errors import FetchFailed
from word_vault.storage.db import Database

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WordFilter:
    difficulty: str | None = None
    search: str | None = None
    owner_id: int | None = None
    limit: int | None = None
    order_by: str = "recent"


def normalize_difficulty_filter(value: str | None) -> str | None:
    """Map ``all``/blank to ``None``; reject anything outside the enum."""
    text = str(value or "all").strip().lower()
    if text not in DIFFICULTY_FILTERS:
        raise ValueError(f"unsupported difficulty filter: {value}")
    return text if text in DIFFICULTIES else None


class WordRepository:
    def __init__(self, db: Database) -> None:
        self.db = db

    def list(self, word_filter: WordFilter) -> list[dict]:
        search = (word_filter.search or "").strip() or None
        try:
            return self.db.select_words(
                difficulty=normalize_difficulty_filter(word_filter.difficulty),
                search=search,
                user_id=word_filter.owner_id,
                order_by=word_filter.order_by,
                limit=word_filter.limit,
            )
        except sqlite3.Error as exc:
            logger.warning("word query failed: %s", exc)
            raise FetchFailed("Could not load words right now.") from exc

    def recent(self, search: str | None = None) -> list[dict]:
        searching = bool((search or "").strip())
        return self.list(
            WordFilter(
                search=search,
                order_by="recent",
                limit=None if searching else RECENT_WORDS_LIMIT,
            )
        )

    def browse(self, difficulty: str | None = None, search: str | None = None) -> list[dict]:
        return self.list(WordFilter(difficulty=difficulty, search=search, order_by="alphabetical"))

    def quiz_pool(self, difficulty: str | None = None) -> list[dict]:
        return self.list(WordFilter(difficulty=difficulty))

    def owned_by(self, user_id: int) -> list[dict]:
        return self.list(WordFilter(owner_id=user_id))

    def get(self, word_id: int) -> dict | None:
        try:
            return self.db.get_word(word_id)
        except sqlite3.Error as exc:
            logger.warning("word %s fetch failed: %s", word_id, exc)
            raise FetchFailed("Could not load this word right now.") from exc
