from __future__ import annotations

import re
from dataclasses import dataclass, field

from word_vault.config import WordLimits
from word_vault.lexicon.dictionary import DictionaryEntry

SENSE_SEPARATOR = " | "
DEFINITION_SEPARATOR = "; "
DEFINITIONS_PER_SENSE = 3

TAGGED_SEGMENT = re.compile(r"^\((?P<pos>[^()]+)\)\s*(?P<body>.+)$")


@dataclass
class NormalizedDefinition:
    word: str
    definition: str
    senses: list[dict] = field(default_factory=list)
    phonetic: str | None = None
    example: str | None = None

    def as_dict(self) -> dict:
        return {
            "word": self.word,
            "phonetic": self.phonetic,
            "definition": self.definition,
            "senses": self.senses,
            "example_sentence": self.example,
        }


def normalize_entry(
    entry: DictionaryEntry,
    *,
    per_sense: int = DEFINITIONS_PER_SENSE,
    max_length: int = WordLimits().definition,
) -> NormalizedDefinition:
    senses: list[dict] = []
    example: str | None = None
    for meaning in entry.meanings:
        texts = _dedupe([d.text for d in meaning.definitions])[: max(1, per_sense)]
        if not texts:
            continue
        if example is None:
            example = next((d.example for d in meaning.definitions if d.example), None)
        senses.append({"part_of_speech": meaning.part_of_speech, "definitions": texts})

    # Drop whole senses from the tail rather than cutting a segment in half.
    while len(senses) > 1 and len(format_senses(senses)) > max_length:
        senses.pop()
    flat = format_senses(senses)
    if len(flat) > max_length:
        flat = flat[: max_length - 1].rstrip() + "…"

    return NormalizedDefinition(
        word=entry.word,
        definition=flat,
        senses=senses,
        phonetic=entry.phonetic,
        example=example,
    )


def format_senses(senses: list[dict]) -> str:
    segments: list[str] = []
    for sense in senses:
        body = DEFINITION_SEPARATOR.join(sense.get("definitions") or [])
        if not body:
            continue
        pos = str(sense.get("part_of_speech") or "").strip()
        segments.append(f"({pos}) {body}" if pos else body)
    return SENSE_SEPARATOR.join(segments)


def parse_definition_text(text: str) -> list[dict]:
    """Parse ``"(noun) a; b | (verb) c"`` into structured senses.

    Text that is not entirely in the tagged shape is kept whole as a single
    untagged sense.
    """
    value = " ".join(str(text or "").split())
    if not value:
        return []

    senses: list[dict] = []
    for segment in value.split("|"):
        match = TAGGED_SEGMENT.match(segment.strip())
        if match is None:
            return [{"part_of_speech": "", "definitions": [value]}]
        definitions = [part.strip() for part in match.group("body").split(";") if part.strip()]
        senses.append({"part_of_speech": match.group("pos").strip().lower(), "definitions": definitions})
    return senses


def _dedupe(values: list[str]) -> list[str]:
    seen: set[str] = set()
    cleaned: list[str] = []
    for value in values:
        lower = value.lower()
        if lower in seen:
            continue
        seen.add(lower)
        cleaned.append(value)
    return cleaned
