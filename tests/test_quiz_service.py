from __future__ import annotations

import random
import threading

import pytest

from conftest import seed_words
from word_vault.errors import InsufficientWords
from word_vault.quiz.engine import QuizEngine
from word_vault.quiz.sessions import QuizSessionStore
from word_vault.services.accounts import ANONYMOUS
from word_vault.services.quiz import QuizService


@pytest.fixture()
def service(temp_db):
    seed_words(temp_db, ["cat", "dog", "owl", "eel", "ant"])
    return QuizService(temp_db, store=QuizSessionStore(), engine=QuizEngine(rng=random.Random(5)))


def test_views_are_snapshots(service):
    sid = service.create(ANONYMOUS)["id"]
    started = service.start(ANONYMOUS, sid)
    word_id = started["words"][0]["id"]

    service.select_word(ANONYMOUS, sid, word_id)
    matched = service.choose_definition(ANONYMOUS, sid, "d1")

    assert started["matches"] == {}
    assert started["selected_word"] is None
    assert matched["matches"] == {str(word_id): "d1"}


def test_concurrent_clicks_and_views_do_not_collide(service):
    sid = service.create(ANONYMOUS)["id"]
    words = [item["id"] for item in service.start(ANONYMOUS, sid)["words"]]
    keys = [f"d{i}" for i in range(1, len(words) + 1)]
    errors: list[BaseException] = []
    done = threading.Event()

    def clicker(offset: int) -> None:
        try:
            for n in range(300):
                word_id = words[(n + offset) % len(words)]
                service.select_word(ANONYMOUS, sid, word_id)
                service.choose_definition(ANONYMOUS, sid, keys[(n * 3 + offset) % len(keys)])
                service.unmatch(ANONYMOUS, sid, word_id)
        except BaseException as exc:
            errors.append(exc)

    threads = [threading.Thread(target=clicker, args=(i,)) for i in range(3)]
    for thread in threads:
        thread.start()

    def watcher() -> None:
        try:
            while not done.is_set():
                view = service.view(ANONYMOUS, sid)
                assert len(view["matches"]) <= len(words)
        except BaseException as exc:
            errors.append(exc)

    watchers = [threading.Thread(target=watcher) for _ in range(2)]
    for thread in watchers:
        thread.start()
    for thread in threads:
        thread.join()
    done.set()
    for thread in watchers:
        thread.join()

    assert errors == []


def test_rejected_start_keeps_session_unchanged(temp_db):
    seed_words(temp_db, ["lonely"])
    service = QuizService(temp_db, store=QuizSessionStore())
    sid = service.create(ANONYMOUS)["id"]
    session = service.get(ANONYMOUS, sid)
    before = (session.phase, session.pool_size, session.quiz_words)

    with pytest.raises(InsufficientWords):
        service.start(ANONYMOUS, sid)

    assert (session.phase, session.pool_size, session.quiz_words) == before
    assert service.view(ANONYMOUS, sid)["phase"] == "setup"
