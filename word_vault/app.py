from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Header, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from word_vault.api.schemas import (
    AdminAuthRequest,
    DictionaryAddRequest,
    QuizCreateRequest,
    QuizMatchRequest,
    QuizResetRequest,
    QuizSelectRequest,
    SignInRequest,
    SignUpRequest,
    WordCreateRequest,
    WordUpdateRequest,
)
from word_vault.config import ensure_dirs
from word_vault.errors import (
    DuplicateWord,
    FetchFailed,
    InsufficientWords,
    LookupNotFound,
    QuizSessionNotFound,
    QuizStateError,
    StaleRequest,
    Unauthorized,
    UsernameTaken,
    VaultError,
    WordNotFound,
)
from word_vault.lexicon.dictionary import DictionaryClient
from word_vault.log import setup_logging
from word_vault.quiz.sessions import QuizSessionStore
from word_vault.repository.words import WordRepository
from word_vault.services.accounts import AccountService, SessionContext
from word_vault.services.admin import AdminService
from word_vault.services.quiz import QuizService
from word_vault.services.vocabulary import VocabularyService
from word_vault.storage.db import Database

ERROR_STATUS = (
    (Unauthorized, 401),
    (WordNotFound, 404),
    (LookupNotFound, 404),
    (QuizSessionNotFound, 404),
    (DuplicateWord, 409),
    (UsernameTaken, 409),
    (InsufficientWords, 409),
    (QuizStateError, 409),
    (StaleRequest, 409),
    (FetchFailed, 503),
    (ValueError, 400),
)

db = Database()
dictionary_client = DictionaryClient()
quiz_store = QuizSessionStore()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    setup_logging()
    ensure_dirs()
    db.initialize()
    yield


app = FastAPI(title="WordVault", version="0.1.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def current_context(authorization: str | None = Header(default=None)) -> SessionContext:
    token = None
    if authorization:
        scheme, _, value = authorization.partition(" ")
        token = value.strip() if scheme.lower() == "bearer" else None
    try:
        return AccountService(db).resolve(token)
    except Unauthorized as exc:
        raise _http_error(exc) from exc


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


# accounts


@app.post("/api/auth/signup")
def sign_up(req: SignUpRequest) -> dict:
    try:
        ctx = AccountService(db).sign_up(username=req.username, password=req.password, display_name=req.display_name)
    except VaultError as exc:
        raise _http_error(exc) from exc
    return {"ok": True, **_session_payload(ctx)}


@app.post("/api/auth/signin")
def sign_in(req: SignInRequest) -> dict:
    try:
        ctx = AccountService(db).sign_in(username=req.username, password=req.password)
    except VaultError as exc:
        raise _http_error(exc) from exc
    return {"ok": True, **_session_payload(ctx)}


@app.post("/api/auth/signout")
def sign_out(ctx: SessionContext = Depends(current_context)) -> dict:
    AccountService(db).sign_out(ctx)
    return {"ok": True}


@app.get("/api/profile")
def profile(ctx: SessionContext = Depends(current_context)) -> dict:
    try:
        data = AccountService(db).profile(ctx)
    except VaultError as exc:
        raise _http_error(exc) from exc
    return {"ok": True, **data}


# words


@app.get("/api/words")
def recent_words(search: str | None = Query(default=None)) -> dict:
    try:
        items = WordRepository(db).recent(search)
    except VaultError as exc:
        raise _http_error(exc) from exc
    return {"ok": True, "items": items, "search": (search or "").strip() or None}


@app.get("/api/words/browse")
def browse_words(
    difficulty: str = Query(default="all"),
    search: str | None = Query(default=None),
) -> dict:
    try:
        items = WordRepository(db).browse(difficulty=difficulty, search=search)
    except (VaultError, ValueError) as exc:
        raise _http_error(exc) from exc
    return {"ok": True, "items": items, "difficulty": difficulty.strip().lower()}


@app.get("/api/words/{word_id}")
def word_detail(word_id: int) -> dict:
    try:
        word = WordRepository(db).get(word_id)
    except VaultError as exc:
        raise _http_error(exc) from exc
    if word is None:
        raise HTTPException(status_code=404, detail="Word not found.")
    return {"ok": True, "word": word}


@app.post("/api/words")
def create_word(req: WordCreateRequest, ctx: SessionContext = Depends(current_context)) -> dict:
    try:
        word = VocabularyService(db, dictionary=dictionary_client).add_word(
            ctx,
            word=req.word,
            definition=req.definition,
            example_sentence=req.example_sentence,
            difficulty=req.difficulty,
        )
    except VaultError as exc:
        raise _http_error(exc) from exc
    return {"ok": True, "word": word}


@app.patch("/api/words/{word_id}")
def update_word(word_id: int, req: WordUpdateRequest, ctx: SessionContext = Depends(current_context)) -> dict:
    try:
        word = VocabularyService(db, dictionary=dictionary_client).update_word(
            ctx, word_id, req.model_dump(exclude_unset=True)
        )
    except VaultError as exc:
        raise _http_error(exc) from exc
    return {"ok": True, "word": word}


@app.delete("/api/words/{word_id}")
def delete_word(word_id: int, ctx: SessionContext = Depends(current_context)) -> dict:
    try:
        word = VocabularyService(db, dictionary=dictionary_client).delete_word(ctx, word_id)
    except VaultError as exc:
        raise _http_error(exc) from exc
    return {"ok": True, "word": word}


# dictionary


@app.get("/api/dictionary/lookup")
def dictionary_lookup(word: str = Query(...)) -> dict:
    try:
        preview = VocabularyService(db, dictionary=dictionary_client).lookup(word)
    except VaultError as exc:
        raise _http_error(exc) from exc
    return {"ok": True, "entry": preview.as_dict()}


@app.post("/api/dictionary/add")
def dictionary_add(req: DictionaryAddRequest, ctx: SessionContext = Depends(current_context)) -> dict:
    try:
        outcome = VocabularyService(db, dictionary=dictionary_client).add_from_dictionary(
            ctx,
            word=req.word,
            difficulty=req.difficulty,
            auto_insert=req.auto_insert,
        )
    except VaultError as exc:
        raise _http_error(exc) from exc
    return {"ok": True, **outcome}


# quiz


@app.post("/api/quiz/sessions")
def create_quiz(req: QuizCreateRequest, ctx: SessionContext = Depends(current_context)) -> dict:
    try:
        session = _quiz_service().create(ctx, difficulty=req.difficulty)
    except (VaultError, ValueError) as exc:
        raise _http_error(exc) from exc
    return {"ok": True, "session": session}


@app.get("/api/quiz/sessions/{session_id}")
def quiz_state(session_id: str, ctx: SessionContext = Depends(current_context)) -> dict:
    try:
        session = _quiz_service().view(ctx, session_id)
    except VaultError as exc:
        raise _http_error(exc) from exc
    return {"ok": True, "session": session}


@app.post("/api/quiz/sessions/{session_id}/start")
def start_quiz(session_id: str, ctx: SessionContext = Depends(current_context)) -> dict:
    try:
        session = _quiz_service().start(ctx, session_id)
    except VaultError as exc:
        raise _http_error(exc) from exc
    return {"ok": True, "session": session}


@app.post("/api/quiz/sessions/{session_id}/select")
def select_quiz_word(session_id: str, req: QuizSelectRequest, ctx: SessionContext = Depends(current_context)) -> dict:
    try:
        session = _quiz_service().select_word(ctx, session_id, req.word_id)
    except VaultError as exc:
        raise _http_error(exc) from exc
    return {"ok": True, "session": session}


@app.post("/api/quiz/sessions/{session_id}/match")
def match_quiz_definition(
    session_id: str,
    req: QuizMatchRequest,
    ctx: SessionContext = Depends(current_context),
) -> dict:
    try:
        session = _quiz_service().choose_definition(ctx, session_id, req.definition_key)
    except VaultError as exc:
        raise _http_error(exc) from exc
    return {"ok": True, "session": session}


@app.post("/api/quiz/sessions/{session_id}/unmatch")
def unmatch_quiz_word(session_id: str, req: QuizSelectRequest, ctx: SessionContext = Depends(current_context)) -> dict:
    try:
        session = _quiz_service().unmatch(ctx, session_id, req.word_id)
    except VaultError as exc:
        raise _http_error(exc) from exc
    return {"ok": True, "session": session}


@app.post("/api/quiz/sessions/{session_id}/submit")
def submit_quiz(session_id: str, ctx: SessionContext = Depends(current_context)) -> dict:
    try:
        session = _quiz_service().submit(ctx, session_id)
    except VaultError as exc:
        raise _http_error(exc) from exc
    return {"ok": True, "session": session}


@app.post("/api/quiz/sessions/{session_id}/retry")
def retry_quiz(session_id: str, ctx: SessionContext = Depends(current_context)) -> dict:
    try:
        session = _quiz_service().retry(ctx, session_id)
    except VaultError as exc:
        raise _http_error(exc) from exc
    return {"ok": True, "session": session}


@app.post("/api/quiz/sessions/{session_id}/reset")
def reset_quiz(session_id: str, req: QuizResetRequest, ctx: SessionContext = Depends(current_context)) -> dict:
    try:
        session = _quiz_service().reset(ctx, session_id, difficulty=req.difficulty)
    except (VaultError, ValueError) as exc:
        raise _http_error(exc) from exc
    return {"ok": True, "session": session}


@app.delete("/api/quiz/sessions/{session_id}")
def discard_quiz(session_id: str, ctx: SessionContext = Depends(current_context)) -> dict:
    try:
        removed = _quiz_service().discard(ctx, session_id)
    except VaultError as exc:
        raise _http_error(exc) from exc
    return {"ok": True, "removed": removed}


# admin


@app.post("/api/admin/auth")
def admin_auth(req: AdminAuthRequest) -> dict:
    try:
        AdminService(db).verify(req.password)
    except Unauthorized as exc:
        raise _http_error(exc) from exc
    return {"ok": True, "success": True}


@app.post("/api/admin/dashboard")
def admin_dashboard(req: AdminAuthRequest) -> dict:
    try:
        data = AdminService(db).dashboard(req.password)
    except VaultError as exc:
        raise _http_error(exc) from exc
    return {"ok": True, **data}


def _quiz_service() -> QuizService:
    return QuizService(db, store=quiz_store)


def _session_payload(ctx: SessionContext) -> dict:
    return {"token": ctx.token, "user": {"id": ctx.user_id, "display_name": ctx.display_name}}


def _http_error(exc: Exception) -> HTTPException:
    status = next((code for kind, code in ERROR_STATUS if isinstance(exc, kind)), 500)
    return HTTPException(status_code=status, detail=str(exc))
