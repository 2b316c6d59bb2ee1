from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from word_vault.config import DB_PATH, DIFFICULTIES

UTC = timezone.utc
UNIQUE_VIOLATION = "unique_violation"
NOT_FOUND = "not_found"

WORD_COLUMNS = ("word", "definition", "senses", "example_sentence", "difficulty", "phonetic")
ORDERINGS = {
    "recent": "w.created_at DESC, w.id DESC",
    "alphabetical": "w.word ASC, w.id ASC",
}


class RecordStoreError(Exception):
    def __init__(self, code: str, message: str = "") -> None:
        super().__init__(message or code)
        self.code = code


@dataclass
class QuizScore:
    score: int
    total: int
    difficulty: str
    user_id: int | None = None


class Database:
    def __init__(self, db_path: Path = DB_PATH) -> None:
        self.db_path = db_path

    @contextmanager
    def connect(self):
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def initialize(self) -> None:
        schema_path = Path(__file__).with_name("schema.sql")
        with self.connect() as conn:
            conn.executescript(schema_path.read_text(encoding="utf-8"))

    # users

    def create_user(self, *, username: str, display_name: str, password_hash: str) -> dict:
        try:
            with self.connect() as conn:
                cur = conn.execute(
                    """
                    INSERT INTO users (username, display_name, password_hash, created_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (username, display_name, password_hash, _iso_now()),
                )
                row = conn.execute("SELECT * FROM users WHERE id = ?", (cur.lastrowid,)).fetchone()
        except sqlite3.IntegrityError as exc:
            if _is_unique_violation(exc):
                raise RecordStoreError(UNIQUE_VIOLATION, str(exc)) from exc
            raise
        return dict(row)

    def get_user(self, user_id: int) -> dict | None:
        with self.connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return dict(row) if row else None

    def get_user_by_username(self, username: str) -> dict | None:
        with self.connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE username = ?", (username.lower(),)).fetchone()
        return dict(row) if row else None

    def count_users(self) -> int:
        with self.connect() as conn:
            row = conn.execute("SELECT COUNT(*) AS cnt FROM users").fetchone()
        return int(row["cnt"] if row else 0)

    def display_names(self, user_ids: Sequence[int]) -> dict[int, str]:
        ids = sorted({int(uid) for uid in user_ids if uid})
        if not ids:
            return {}
        placeholders = ",".join(["?"] * len(ids))
        with self.connect() as conn:
            rows = conn.execute(
                f"SELECT id, display_name FROM users WHERE id IN ({placeholders})",
                tuple(ids),
            ).fetchall()
        return {int(row["id"]): row["display_name"] or "Anonymous" for row in rows}

    def create_auth_session(self, *, token: str, user_id: int) -> None:
        with self.connect() as conn:
            conn.execute(
                "INSERT INTO auth_sessions (token, user_id, created_at) VALUES (?, ?, ?)",
                (token, user_id, _iso_now()),
            )

    def get_session_user(self, token: str) -> dict | None:
        with self.connect() as conn:
            row = conn.execute(
                """
                SELECT u.*, s.created_at AS session_created_at
                FROM auth_sessions s
                JOIN users u ON u.id = s.user_id
                WHERE s.token = ?
                """,
                (token,),
            ).fetchone()
        return dict(row) if row else None

    def delete_auth_session(self, token: str) -> int:
        with self.connect() as conn:
            cur = conn.execute("DELETE FROM auth_sessions WHERE token = ?", (token,))
        return int(cur.rowcount or 0)

    # words

    def insert_word(
        self,
        *,
        word: str,
        definition: str,
        difficulty: str,
        user_id: int | None = None,
        senses: Sequence[dict] | None = None,
        example_sentence: str | None = None,
        phonetic: str | None = None,
        created_at: str | None = None,
    ) -> dict:
        if difficulty not in DIFFICULTIES:
            raise ValueError(f"unsupported difficulty: {difficulty}")
        stamp = created_at or _iso_now()
        try:
            with self.connect() as conn:
                cur = conn.execute(
                    """
                    INSERT INTO words
                    (user_id, owner_key, word, definition, senses, example_sentence, difficulty, phonetic, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        user_id,
                        int(user_id or 0),
                        word.strip().lower(),
                        definition,
                        _json_dumps(list(senses or [])),
                        example_sentence,
                        difficulty,
                        phonetic,
                        stamp,
                        stamp,
                    ),
                )
                row = conn.execute("SELECT * FROM words WHERE id = ?", (cur.lastrowid,)).fetchone()
        except sqlite3.IntegrityError as exc:
            if _is_unique_violation(exc):
                raise RecordStoreError(UNIQUE_VIOLATION, str(exc)) from exc
            raise
        return _decode_word(row)

    def get_word(self, word_id: int) -> dict | None:
        with self.connect() as conn:
            row = conn.execute("SELECT * FROM words w WHERE w.id = ?", (word_id,)).fetchone()
        return _decode_word(row) if row else None

    def select_words(
        self,
        *,
        difficulty: str | None = None,
        search: str | None = None,
        user_id: int | None = None,
        order_by: str = "recent",
        limit: int | None = None,
    ) -> list[dict]:
        clauses, params = _word_clauses(difficulty=difficulty, search=search, user_id=user_id)
        if order_by not in ORDERINGS:
            raise ValueError(f"unsupported ordering: {order_by}")
        query = f"SELECT w.* FROM words w {_where(clauses)} ORDER BY {ORDERINGS[order_by]}"
        if limit is not None:
            query += " LIMIT ?"
            params.append(max(1, int(limit)))
        with self.connect() as conn:
            rows = conn.execute(query, tuple(params)).fetchall()
        return [_decode_word(row) for row in rows]

    def count_words(
        self,
        *,
        difficulty: str | None = None,
        user_id: int | None = None,
        since: str | None = None,
    ) -> int:
        clauses, params = _word_clauses(difficulty=difficulty, search=None, user_id=user_id)
        if since:
            clauses.append("w.created_at >= ?")
            params.append(since)
        with self.connect() as conn:
            row = conn.execute(f"SELECT COUNT(*) AS cnt FROM words w {_where(clauses)}", tuple(params)).fetchone()
        return int(row["cnt"] if row else 0)

    def update_word(self, word_id: int, patch: dict) -> dict:
        updates = {key: value for key, value in patch.items() if key in WORD_COLUMNS}
        if "difficulty" in updates and updates["difficulty"] not in DIFFICULTIES:
            raise ValueError(f"unsupported difficulty: {updates['difficulty']}")
        if "word" in updates:
            updates["word"] = str(updates["word"]).strip().lower()
        if "senses" in updates:
            updates["senses"] = _json_dumps(list(updates["senses"] or []))

        try:
            with self.connect() as conn:
                current = conn.execute("SELECT id FROM words WHERE id = ?", (word_id,)).fetchone()
                if current is None:
                    raise RecordStoreError(NOT_FOUND, f"word {word_id} not found")
                if updates:
                    assignments = ", ".join(f"{column} = ?" for column in updates)
                    conn.execute(
                        f"UPDATE words SET {assignments}, updated_at = ? WHERE id = ?",
                        (*updates.values(), _iso_now(), word_id),
                    )
                row = conn.execute("SELECT * FROM words WHERE id = ?", (word_id,)).fetchone()
        except sqlite3.IntegrityError as exc:
            if _is_unique_violation(exc):
                raise RecordStoreError(UNIQUE_VIOLATION, str(exc)) from exc
            raise
        return _decode_word(row)

    def delete_word(self, word_id: int) -> dict:
        with self.connect() as conn:
            row = conn.execute("SELECT * FROM words WHERE id = ?", (word_id,)).fetchone()
            if row is None:
                raise RecordStoreError(NOT_FOUND, f"word {word_id} not found")
            conn.execute("DELETE FROM words WHERE id = ?", (word_id,))
        return _decode_word(row)

    def word_activity(self) -> list[dict]:
        with self.connect() as conn:
            rows = conn.execute("SELECT id, difficulty, created_at, user_id FROM words").fetchall()
        return [dict(row) for row in rows]

    # quiz scores

    def insert_quiz_score(self, result: QuizScore) -> dict:
        with self.connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO quiz_scores (user_id, score, total, difficulty, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (result.user_id, result.score, result.total, result.difficulty, _iso_now()),
            )
            row = conn.execute("SELECT * FROM quiz_scores WHERE id = ?", (cur.lastrowid,)).fetchone()
        return dict(row)

    def list_quiz_scores(self, user_id: int, limit: int = 10) -> list[dict]:
        with self.connect() as conn:
            rows = conn.execute(
                """
                SELECT * FROM quiz_scores
                WHERE user_id = ?
                ORDER BY created_at DESC, id DESC
                LIMIT ?
                """,
                (user_id, max(1, int(limit))),
            ).fetchall()
        return [dict(row) for row in rows]

    def count_quiz_scores(self, user_id: int) -> int:
        with self.connect() as conn:
            row = conn.execute("SELECT COUNT(*) AS cnt FROM quiz_scores WHERE user_id = ?", (user_id,)).fetchone()
        return int(row["cnt"] if row else 0)


def _word_clauses(
    *,
    difficulty: str | None,
    search: str | None,
    user_id: int | None,
) -> tuple[list[str], list[object]]:
    clauses: list[str] = []
    params: list[object] = []
    if difficulty:
        clauses.append("w.difficulty = ?")
        params.append(difficulty)
    if search:
        clauses.append("w.word LIKE ? ESCAPE '\\'")
        params.append(f"%{_escape_like(search.lower())}%")
    if user_id is not None:
        clauses.append("w.user_id = ?")
        params.append(user_id)
    return clauses, params


def _where(clauses: list[str]) -> str:
    return f"WHERE {' AND '.join(clauses)}" if clauses else ""


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _is_unique_violation(exc: sqlite3.IntegrityError) -> bool:
    return "UNIQUE" in str(exc).upper()


def _decode_word(row: sqlite3.Row) -> dict:
    data = dict(row)
    data.pop("owner_key", None)
    data["senses"] = _json_loads(data.get("senses"))
    return data


def _json_dumps(value: object) -> str:
    return json.dumps(value, ensure_ascii=False)


def _json_loads(value: object) -> list:
    if not value:
        return []
    try:
        loaded = json.loads(str(value))
    except json.JSONDecodeError:
        return []
    return loaded if isinstance(loaded, list) else []


def _iso_now() -> str:
    return datetime.now(UTC).isoformat()
