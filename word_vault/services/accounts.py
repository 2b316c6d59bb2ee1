from __future__ import annotations

import logging
import re
import secrets
from dataclasses import dataclass

from werkzeug.security import check_password_hash, generate_password_hash

from word_vault.errors import InvalidWord, Unauthorized, UsernameTaken
from word_vault.repository.words import WordRepository
from word_vault.storage.db import UNIQUE_VIOLATION, Database, RecordStoreError

USERNAME_PATTERN = re.compile(r"[a-z0-9][a-z0-9_.-]{2,31}")
MIN_PASSWORD_LENGTH = 6

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionContext:
    """Who is acting. Passed explicitly into every service call that needs it."""

    user_id: int | None = None
    display_name: str | None = None
    token: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def require_user(self, message: str = "Sign in first.") -> int:
        if self.user_id is None:
            raise Unauthorized(message)
        return self.user_id


ANONYMOUS = SessionContext()


class AccountService:
    def __init__(self, db: Database) -> None:
        self.db = db
        self.words = WordRepository(db)

    def sign_up(self, *, username: str, password: str, display_name: str | None = None) -> SessionContext:
        normalized = username.strip().lower()
        if not USERNAME_PATTERN.fullmatch(normalized):
            raise InvalidWord("Username must be 3-32 letters, digits, '.', '_' or '-'.")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise InvalidWord(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")

        try:
            user = self.db.create_user(
                username=normalized,
                display_name=(display_name or username).strip() or normalized,
                password_hash=generate_password_hash(password),
            )
        except RecordStoreError as exc:
            if exc.code == UNIQUE_VIOLATION:
                raise UsernameTaken(normalized) from exc
            raise
        logger.info("user %s signed up", user["id"])
        return self._open_session(user)

    def sign_in(self, *, username: str, password: str) -> SessionContext:
        user = self.db.get_user_by_username(username.strip().lower())
        if user is None or not check_password_hash(user["password_hash"], password):
            raise Unauthorized("Invalid username or password.")
        return self._open_session(user)

    def sign_out(self, ctx: SessionContext) -> None:
        if ctx.token:
            self.db.delete_auth_session(ctx.token)

    def resolve(self, token: str | None) -> SessionContext:
        if not token:
            return ANONYMOUS
        user = self.db.get_session_user(token)
        if user is None:
            raise Unauthorized("Session expired. Please sign in again.")
        return SessionContext(user_id=int(user["id"]), display_name=user["display_name"], token=token)

    def profile(self, ctx: SessionContext, *, score_limit: int = 10) -> dict:
        user_id = ctx.require_user("Sign in to view your profile.")
        user = self.db.get_user(user_id)
        if user is None:
            raise Unauthorized()
        words = self.words.owned_by(user_id)
        return {
            "user": {"id": user_id, "username": user["username"], "display_name": user["display_name"]},
            "words_added": len(words),
            "quizzes_taken": self.db.count_quiz_scores(user_id),
            "recent_scores": self.db.list_quiz_scores(user_id, limit=score_limit),
            "words": [{"id": w["id"], "word": w["word"], "difficulty": w["difficulty"]} for w in words],
        }

    def _open_session(self, user: dict) -> SessionContext:
        token = secrets.token_urlsafe(32)
        self.db.create_auth_session(token=token, user_id=int(user["id"]))
        return SessionContext(user_id=int(user["id"]), display_name=user["display_name"], token=token)
