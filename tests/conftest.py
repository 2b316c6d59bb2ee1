from __future__ import annotations

import sys
from pathlib import Path
from urllib.parse import unquote

import httpx
import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import word_vault.app as app_module
from word_vault.lexicon.dictionary import DictionaryClient
from word_vault.quiz.sessions import QuizSessionStore
from word_vault.storage.db import Database

DICTIONARY_FIXTURES = {
    "serendipity": [
        {
            "word": "serendipity",
            "phonetic": "/ˌsɛɹənˈdɪpɪti/",
            "meanings": [
                {
                    "partOfSpeech": "noun",
                    "definitions": [
                        {
                            "definition": "An unsought, unintended, and/or unexpected discovery made by happy accident.",
                            "example": "Finding that book was pure serendipity.",
                        },
                        {"definition": "The faculty of making such fortunate discoveries."},
                    ],
                }
            ],
        }
    ],
    "run": [
        {
            "word": "run",
            "phonetics": [{"text": ""}, {"text": "/ɹʌn/"}],
            "meanings": [
                {
                    "partOfSpeech": "verb",
                    "definitions": [
                        {"definition": "To move swiftly on foot."},
                        {"definition": "To manage or be in charge of."},
                    ],
                },
                {
                    "partOfSpeech": "noun",
                    "definitions": [{"definition": "An act of running.", "example": "I went for a run."}],
                },
            ],
        }
    ],
}


def fake_dictionary(request: httpx.Request) -> httpx.Response:
    word = unquote(request.url.path.rsplit("/", 1)[-1])
    if word == "explode":
        return httpx.Response(500, json={"message": "upstream failure"})
    payload = DICTIONARY_FIXTURES.get(word)
    if payload is None:
        return httpx.Response(404, json={"title": "No Definitions Found"})
    return httpx.Response(200, json=payload)


def seed_words(db: Database, entries, *, user_id: int | None = None) -> list[dict]:
    rows = []
    for entry in entries:
        if isinstance(entry, str):
            entry = {"word": entry}
        rows.append(
            db.insert_word(
                word=entry["word"],
                definition=entry.get("definition", f"meaning of {entry['word']}"),
                difficulty=entry.get("difficulty", "medium"),
                user_id=entry.get("user_id", user_id),
                created_at=entry.get("created_at"),
            )
        )
    return rows


@pytest.fixture()
def temp_db(tmp_path):
    db = Database(tmp_path / "word_vault_test.db")
    db.initialize()
    return db


@pytest.fixture()
def dictionary():
    return DictionaryClient(base_url="https://dictionary.test/api/v2/entries/en", transport=httpx.MockTransport(fake_dictionary))


@pytest.fixture()
def client(temp_db, dictionary, monkeypatch):
    monkeypatch.setattr(app_module, "db", temp_db)
    monkeypatch.setattr(app_module, "dictionary_client", dictionary)
    monkeypatch.setattr(app_module, "quiz_store", QuizSessionStore())
    monkeypatch.setattr(app_module, "setup_logging", lambda: None)
    monkeypatch.setattr(app_module, "ensure_dirs", lambda: None)
    with TestClient(app_module.app) as c:
        yield c


@pytest.fixture()
def auth_headers(client):
    def _sign_up(username: str = "alice", password: str = "secret123") -> dict:
        resp = client.post(
            "/api/auth/signup",
            json={"username": username, "password": password, "display_name": username.title()},
        )
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['token']}"}

    return _sign_up
