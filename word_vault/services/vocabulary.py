from __future__ import annotations

import logging
import sqlite3

import httpx

from word_vault.config import DIFFICULTIES, WordLimits
from word_vault.errors import (
    DuplicateWord,
    FetchFailed,
    InvalidWord,
    LookupNotFound,
    Unauthorized,
    VaultError,
    WordNotFound,
)
from word_vault.lexicon.definitions import NormalizedDefinition, normalize_entry, parse_definition_text
from word_vault.lexicon.dictionary import DictionaryClient
from word_vault.repository.words import WordRepository
from word_vault.services.accounts import SessionContext
from word_vault.storage.db import NOT_FOUND, UNIQUE_VIOLATION, Database, RecordStoreError

logger = logging.getLogger(__name__)


class VocabularyService:
    def __init__(
        self,
        db: Database,
        *,
        dictionary: DictionaryClient | None = None,
        limits: WordLimits | None = None,
    ) -> None:
        self.db = db
        self.words = WordRepository(db)
        self.dictionary = dictionary or DictionaryClient()
        self.limits = limits or WordLimits()

    def add_word(
        self,
        ctx: SessionContext,
        *,
        word: str,
        definition: str,
        difficulty: str = "medium",
        example_sentence: str | None = None,
        senses: list[dict] | None = None,
        phonetic: str | None = None,
    ) -> dict:
        user_id = ctx.require_user("You need to sign in to add words.")
        fields = self._validate(
            word=word,
            definition=definition,
            example_sentence=example_sentence,
            difficulty=difficulty,
        )
        try:
            created = self.db.insert_word(
                user_id=user_id,
                senses=senses or parse_definition_text(fields["definition"]),
                phonetic=phonetic,
                **fields,
            )
        except RecordStoreError as exc:
            if exc.code == UNIQUE_VIOLATION:
                raise DuplicateWord(fields["word"]) from exc
            raise VaultError("Failed to add word.") from exc
        except sqlite3.Error as exc:
            logger.error("insert of %r failed: %s", fields["word"], exc)
            raise VaultError("Failed to add word.") from exc
        logger.info("user %s added word %r (id=%s)", user_id, created["word"], created["id"])
        return created

    def update_word(self, ctx: SessionContext, word_id: int, patch: dict) -> dict:
        current = self._owned_word(ctx, word_id, action="edit")
        merged = {
            "word": patch.get("word", current["word"]),
            "definition": patch.get("definition", current["definition"]),
            "example_sentence": patch.get("example_sentence", current["example_sentence"]),
            "difficulty": patch.get("difficulty", current["difficulty"]),
        }
        fields = self._validate(**merged)
        if "definition" in patch:
            fields["senses"] = patch.get("senses") or parse_definition_text(fields["definition"])
        try:
            return self.db.update_word(word_id, fields)
        except RecordStoreError as exc:
            if exc.code == UNIQUE_VIOLATION:
                raise DuplicateWord(fields["word"]) from exc
            if exc.code == NOT_FOUND:
                raise WordNotFound(word_id) from exc
            raise

    def delete_word(self, ctx: SessionContext, word_id: int) -> dict:
        self._owned_word(ctx, word_id, action="delete")
        try:
            deleted = self.db.delete_word(word_id)
        except RecordStoreError as exc:
            raise WordNotFound(word_id) from exc
        logger.info("user %s deleted word %r", ctx.user_id, deleted["word"])
        return deleted

    def lookup(self, word: str) -> NormalizedDefinition:
        token = " ".join(word.split()).lower()
        if not token:
            raise InvalidWord("word is empty")
        if len(token) > self.limits.word:
            raise InvalidWord("Input too long.")
        try:
            entry = self.dictionary.lookup(token)
        except httpx.HTTPError as exc:
            logger.warning("dictionary lookup for %r failed: %s", token, exc)
            raise FetchFailed("Dictionary lookup failed. Please try again.") from exc
        if entry is None:
            raise LookupNotFound(token)
        return normalize_entry(entry, max_length=self.limits.definition)

    def add_from_dictionary(
        self,
        ctx: SessionContext,
        *,
        word: str,
        difficulty: str = "medium",
        auto_insert: bool = True,
    ) -> dict:
        if auto_insert:
            ctx.require_user("You need to sign in to add words.")
        preview = self.lookup(word)
        if not auto_insert:
            return {"added": False, "preview": preview.as_dict(), "word": None}

        created = self.add_word(
            ctx,
            word=preview.word,
            definition=preview.definition,
            difficulty=difficulty,
            example_sentence=_clip(preview.example, self.limits.example),
            senses=preview.senses,
            phonetic=preview.phonetic,
        )
        return {"added": True, "preview": preview.as_dict(), "word": created}

    def _owned_word(self, ctx: SessionContext, word_id: int, *, action: str) -> dict:
        user_id = ctx.require_user(f"You need to sign in to {action} words.")
        current = self.words.get(word_id)
        if current is None:
            raise WordNotFound(word_id)
        if current.get("user_id") != user_id:
            raise Unauthorized(f"You can only {action} your own words.")
        return current

    def _validate(
        self,
        *,
        word: str,
        definition: str,
        example_sentence: str | None,
        difficulty: str,
    ) -> dict:
        word_text = str(word or "").strip()
        definition_text = str(definition or "").strip()
        example_text = str(example_sentence or "").strip()
        if not word_text or not definition_text:
            raise InvalidWord("Word and definition are required.")
        if (
            len(word_text) > self.limits.word
            or len(definition_text) > self.limits.definition
            or len(example_text) > self.limits.example
        ):
            raise InvalidWord("Input too long.")
        level = str(difficulty or "").strip().lower()
        if level not in DIFFICULTIES:
            raise InvalidWord(f"Difficulty must be one of: {', '.join(DIFFICULTIES)}.")
        return {
            "word": word_text.lower(),
            "definition": definition_text,
            "example_sentence": example_text or None,
            "difficulty": level,
        }


def _clip(text: str | None, limit: int) -> str | None:
    if not text:
        return None
    return text if len(text) <= limit else text[: limit - 1].rstrip() + "…"
