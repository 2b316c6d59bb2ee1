from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from urllib.parse import quote

import httpx

from word_vault.config import DICTIONARY_API_URL

logger = logging.getLogger(__name__)


@dataclass
class Definition:
    text: str
    example: str | None = None


@dataclass
class Meaning:
    part_of_speech: str
    definitions: list[Definition] = field(default_factory=list)


@dataclass
class DictionaryEntry:
    word: str
    phonetic: str | None = None
    meanings: list[Meaning] = field(default_factory=list)


class DictionaryClient:
    """Best-effort lookups against the public dictionary endpoint.

    A 404 from the endpoint is a miss and yields ``None``. Transport errors and
    other non-2xx statuses propagate as ``httpx.HTTPError``; nothing is retried.
    """

    def __init__(
        self,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or os.getenv("WORD_VAULT_DICTIONARY_URL", DICTIONARY_API_URL)
        self.timeout = timeout or float(os.getenv("WORD_VAULT_DICTIONARY_TIMEOUT_SEC", "10"))
        self.transport = transport

    def lookup(self, word: str) -> DictionaryEntry | None:
        token = word.strip().lower()
        if not token:
            return None

        url = self.base_url.rstrip("/") + "/" + quote(token, safe="")
        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            resp = client.get(url)
            if resp.status_code == 404:
                logger.info("dictionary miss for %r", token)
                return None
            resp.raise_for_status()
            payload = resp.json()
        return parse_entry(token, payload)


def parse_entry(word: str, payload: object) -> DictionaryEntry | None:
    """Merge every entry of the endpoint's response list into one DictionaryEntry."""
    if not isinstance(payload, list) or not payload:
        return None

    phonetic: str | None = None
    meanings: list[Meaning] = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        phonetic = phonetic or _pick_phonetic(item)
        for raw_meaning in item.get("meanings") or []:
            meaning = _parse_meaning(raw_meaning)
            if meaning is not None:
                meanings.append(meaning)

    if not meanings:
        return None
    head = payload[0] if isinstance(payload[0], dict) else {}
    return DictionaryEntry(
        word=str(head.get("word") or word).strip().lower(),
        phonetic=phonetic,
        meanings=meanings,
    )


def _parse_meaning(raw: object) -> Meaning | None:
    if not isinstance(raw, dict):
        return None
    part_of_speech = " ".join(str(raw.get("partOfSpeech") or "").split()).lower()
    definitions: list[Definition] = []
    for item in raw.get("definitions") or []:
        if not isinstance(item, dict):
            continue
        text = _clean(item.get("definition"))
        if not text:
            continue
        definitions.append(Definition(text=text, example=_clean(item.get("example")) or None))
    if not definitions:
        return None
    return Meaning(part_of_speech=part_of_speech, definitions=definitions)


def _pick_phonetic(item: dict) -> str | None:
    candidates = [item.get("phonetic")]
    candidates.extend(p.get("text") for p in item.get("phonetics") or [] if isinstance(p, dict))
    for candidate in candidates:
        text = _clean(candidate).strip("/")
        if text:
            return text
    return None


def _clean(value: object) -> str:
    return re.sub(r"\s+", " ", str(value or "")).strip()
