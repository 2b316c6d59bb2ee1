from __future__ import annotations

from pydantic import BaseModel, Field


class SignUpRequest(BaseModel):
    username: str
    password: str
    display_name: str | None = None


class SignInRequest(BaseModel):
    username: str
    password: str


class WordCreateRequest(BaseModel):
    word: str
    definition: str
    example_sentence: str | None = None
    difficulty: str = Field(default="medium")


class WordUpdateRequest(BaseModel):
    word: str | None = None
    definition: str | None = None
    example_sentence: str | None = None
    difficulty: str | None = None


class DictionaryAddRequest(BaseModel):
    word: str
    difficulty: str = Field(default="medium")
    auto_insert: bool = True


class QuizCreateRequest(BaseModel):
    difficulty: str = Field(default="all")


class QuizSelectRequest(BaseModel):
    word_id: int


class QuizMatchRequest(BaseModel):
    definition_key: str


class QuizResetRequest(BaseModel):
    difficulty: str | None = None


class AdminAuthRequest(BaseModel):
    password: str = Field(default="")
