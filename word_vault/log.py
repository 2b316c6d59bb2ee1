from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from word_vault.config import LOG_DIR, LOG_FILE

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    logger = logging.getLogger("word_vault")
    logger.setLevel(level)

    if not any(isinstance(handler, RotatingFileHandler) for handler in logger.handlers):
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(LOG_DIR / LOG_FILE, maxBytes=5_000_000, backupCount=3)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)
    # Root logger picks up uvicorn/httpx output as well.
    logging.basicConfig(level=level, format=LOG_FORMAT)
    return logger
