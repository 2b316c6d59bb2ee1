from __future__ import annotations

from datetime import datetime, timezone

import pytest

from conftest import seed_words
from word_vault.errors import Unauthorized
from word_vault.services.admin import AdminService

NOW = datetime(2026, 3, 10, 15, 30, tzinfo=timezone.utc)


def test_verify_rejects_wrong_and_unconfigured_password(temp_db):
    with pytest.raises(Unauthorized):
        AdminService(temp_db, password="letmein").verify("guess")
    with pytest.raises(Unauthorized):
        AdminService(temp_db, password="").verify("")

    AdminService(temp_db, password="letmein").verify("letmein")


def test_dashboard_aggregates(temp_db):
    alice = temp_db.create_user(username="alice", display_name="Alice", password_hash="x")
    bob = temp_db.create_user(username="bob", display_name="Bob", password_hash="x")
    seed_words(
        temp_db,
        [
            {"word": "cat", "difficulty": "easy", "created_at": "2026-03-10T09:00:00+00:00"},
            {"word": "dog", "difficulty": "easy", "created_at": "2026-03-09T09:00:00+00:00"},
            {"word": "owl", "difficulty": "hard", "created_at": "2026-01-01T09:00:00+00:00"},
        ],
        user_id=alice["id"],
    )
    seed_words(temp_db, [{"word": "eel", "created_at": "2026-03-10T10:00:00+00:00"}], user_id=bob["id"])

    data = AdminService(temp_db, password="letmein").dashboard("letmein", now=NOW)

    assert data["stats"] == {"total_users": 2, "total_words": 4, "words_today": 2, "avg_per_user": 2.0}
    assert data["words_by_date"] == [{"date": "2026-03-09", "count": 1}, {"date": "2026-03-10", "count": 2}]
    assert {row["difficulty"]: row["count"] for row in data["difficulty_breakdown"]} == {
        "easy": 2,
        "hard": 1,
        "medium": 1,
    }
    assert data["recent_words"][0] == {
        "word": "eel",
        "difficulty": "medium",
        "display_name": "Bob",
        "created_at": "2026-03-10T10:00:00+00:00",
    }
    assert data["top_users"][0] == {
        "display_name": "Alice",
        "word_count": 3,
        "latest_activity": "2026-03-10T09:00:00+00:00",
    }


def test_admin_endpoints(client, temp_db, monkeypatch):
    monkeypatch.setenv("WORD_VAULT_ADMIN_PASSWORD", "letmein")
    seed_words(temp_db, ["orphan"])

    assert client.post("/api/admin/auth", json={"password": "nope"}).status_code == 401
    assert client.post("/api/admin/auth", json={"password": "letmein"}).json() == {"ok": True, "success": True}

    dashboard = client.post("/api/admin/dashboard", json={"password": "letmein"}).json()
    assert dashboard["stats"]["total_words"] == 1
    assert dashboard["stats"]["avg_per_user"] == 0
    assert dashboard["recent_words"][0]["display_name"] == "Unknown"


def test_admin_disabled_without_secret(client, monkeypatch):
    monkeypatch.delenv("WORD_VAULT_ADMIN_PASSWORD", raising=False)

    assert client.post("/api/admin/auth", json={}).status_code == 401
    assert client.post("/api/admin/dashboard", json={"password": ""}).status_code == 401
