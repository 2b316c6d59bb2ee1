from __future__ import annotations

import pytest

from conftest import seed_words
from word_vault.errors import FetchFailed
from word_vault.repository.words import WordRepository, normalize_difficulty_filter
from word_vault.storage.db import Database


def _stamped(words: list[str], difficulty: str = "medium") -> list[dict]:
    return [
        {"word": w, "difficulty": difficulty, "created_at": f"2026-01-01T00:00:{i:02d}+00:00"}
        for i, w in enumerate(words)
    ]


def test_recent_caps_at_twelve_newest_first(temp_db):
    seed_words(temp_db, _stamped([f"word{i:02d}" for i in range(15)]))

    items = WordRepository(temp_db).recent()

    assert len(items) == 12
    assert items[0]["word"] == "word14"
    assert items[-1]["word"] == "word03"


def test_recent_search_is_case_insensitive_and_uncapped(temp_db):
    seed_words(temp_db, _stamped([f"cat{i:02d}" for i in range(14)] + ["dog"]))

    items = WordRepository(temp_db).recent(search="  CAT ")

    assert len(items) == 14
    assert all(item["word"].startswith("cat") for item in items)


def test_blank_search_is_ignored(temp_db):
    seed_words(temp_db, ["alpha", "beta"])

    assert len(WordRepository(temp_db).recent(search="   ")) == 2


def test_search_treats_wildcards_literally(temp_db):
    seed_words(temp_db, ["100%", "1000", "snake_case", "snakecase"])
    repo = WordRepository(temp_db)

    assert [w["word"] for w in repo.recent(search="%")] == ["100%"]
    assert [w["word"] for w in repo.recent(search="_")] == ["snake_case"]


def test_browse_is_alphabetical_with_difficulty_filter(temp_db):
    seed_words(temp_db, _stamped(["pear", "apple", "mango"], "easy") + _stamped(["zebra"], "hard"))
    repo = WordRepository(temp_db)

    assert [w["word"] for w in repo.browse()] == ["apple", "mango", "pear", "zebra"]
    assert [w["word"] for w in repo.browse(difficulty="easy")] == ["apple", "mango", "pear"]
    assert [w["word"] for w in repo.browse(difficulty="HARD", search="ze")] == ["zebra"]


def test_quiz_pool_is_unbounded_and_filtered(temp_db):
    seed_words(temp_db, _stamped([f"easy{i}" for i in range(20)], "easy") + _stamped(["tough"], "hard"))
    repo = WordRepository(temp_db)

    assert len(repo.quiz_pool()) == 21
    assert len(repo.quiz_pool("all")) == 21
    assert [w["word"] for w in repo.quiz_pool("hard")] == ["tough"]


def test_difficulty_filter_rejects_unknown_levels():
    assert normalize_difficulty_filter(None) is None
    assert normalize_difficulty_filter(" All ") is None
    assert normalize_difficulty_filter("Medium") == "medium"
    with pytest.raises(ValueError):
        normalize_difficulty_filter("impossible")


def test_owned_by_and_get(temp_db):
    user = temp_db.create_user(username="bob", display_name="Bob", password_hash="x")
    rows = seed_words(temp_db, ["mine"], user_id=user["id"]) + seed_words(temp_db, ["theirs"])
    repo = WordRepository(temp_db)

    assert [w["word"] for w in repo.owned_by(user["id"])] == ["mine"]
    fetched = repo.get(rows[1]["id"])
    assert fetched["word"] == "theirs"
    assert fetched["senses"] == []
    assert "owner_key" not in fetched
    assert repo.get(9999) is None


def test_unreachable_store_raises_fetch_failed(tmp_path):
    repo = WordRepository(Database(tmp_path / "missing" / "vault.db"))

    with pytest.raises(FetchFailed):
        repo.recent()
