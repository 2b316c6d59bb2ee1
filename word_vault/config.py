from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[1]
DATA_DIR = Path(os.getenv("WORD_VAULT_DATA_DIR", str(PROJECT_ROOT / "data")))
LOG_DIR = Path(os.getenv("WORD_VAULT_LOG_DIR", str(PROJECT_ROOT / "log")))
LOG_FILE = "word_vault.log"
DB_PATH = Path(os.getenv("WORD_VAULT_DB_PATH", str(DATA_DIR / "word_vault.db")))

DICTIONARY_API_URL = "https://api.dictionaryapi.dev/api/v2/entries/en"

DIFFICULTIES = ("easy", "medium", "hard")
DIFFICULTY_FILTERS = ("all", *DIFFICULTIES)

RECENT_WORDS_LIMIT = 12


@dataclass(frozen=True)
class QuizLimits:
    quiz_size: int = 5
    min_pool: int = 2


@dataclass(frozen=True)
class WordLimits:
    word: int = 100
    definition: int = 1000
    example: int = 500


def ensure_dirs() -> None:
    for path in [DATA_DIR, LOG_DIR, DB_PATH.parent]:
        path.mkdir(parents=True, exist_ok=True)
