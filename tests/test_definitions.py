from __future__ import annotations

import httpx
import pytest

from conftest import DICTIONARY_FIXTURES
from word_vault.lexicon.definitions import format_senses, normalize_entry, parse_definition_text
from word_vault.lexicon.dictionary import Definition, DictionaryClient, DictionaryEntry, Meaning, parse_entry


def _entry(*meanings: tuple[str, list[str]]) -> DictionaryEntry:
    return DictionaryEntry(
        word="probe",
        meanings=[Meaning(part_of_speech=pos, definitions=[Definition(text=t) for t in texts]) for pos, texts in meanings],
    )


def test_parse_entry_merges_meanings_and_picks_phonetic():
    entry = parse_entry("run", DICTIONARY_FIXTURES["run"])

    assert entry.word == "run"
    assert entry.phonetic == "ɹʌn"
    assert [m.part_of_speech for m in entry.meanings] == ["verb", "noun"]
    assert entry.meanings[1].definitions[0].example == "I went for a run."


def test_parse_entry_rejects_unexpected_payloads():
    assert parse_entry("x", {"title": "No Definitions Found"}) is None
    assert parse_entry("x", []) is None
    assert parse_entry("x", [{"word": "x", "meanings": [{"partOfSpeech": "noun", "definitions": []}]}]) is None


def test_normalize_entry_formats_tagged_senses():
    normalized = normalize_entry(parse_entry("run", DICTIONARY_FIXTURES["run"]))

    assert normalized.definition == (
        "(verb) To move swiftly on foot.; To manage or be in charge of. | (noun) An act of running."
    )
    assert normalized.example == "I went for a run."
    assert normalized.senses[0] == {
        "part_of_speech": "verb",
        "definitions": ["To move swiftly on foot.", "To manage or be in charge of."],
    }
    assert normalized.as_dict()["example_sentence"] == "I went for a run."


def test_normalize_entry_dedupes_and_caps_per_sense():
    entry = _entry(("noun", ["One.", "one.", "Two.", "Three.", "Four."]))

    normalized = normalize_entry(entry, per_sense=3)

    assert normalized.senses == [{"part_of_speech": "noun", "definitions": ["One.", "Two.", "Three."]}]


def test_normalize_entry_drops_tail_senses_before_clipping():
    entry = _entry(("noun", ["a" * 40]), ("verb", ["b" * 40]), ("adjective", ["c" * 40]))

    normalized = normalize_entry(entry, max_length=100)

    assert [s["part_of_speech"] for s in normalized.senses] == ["noun", "verb"]
    assert len(normalized.definition) <= 100
    assert not normalized.definition.endswith("…")


def test_normalize_entry_clips_single_oversized_sense():
    normalized = normalize_entry(_entry(("noun", ["x" * 300])), max_length=50)

    assert len(normalized.definition) <= 50
    assert normalized.definition.endswith("…")


def test_format_senses_without_part_of_speech():
    senses = [{"part_of_speech": "", "definitions": ["plain text"]}, {"part_of_speech": "verb", "definitions": []}]

    assert format_senses(senses) == "plain text"


def test_parse_definition_text_reads_tagged_segments():
    senses = parse_definition_text("(Noun) a cat; a feline | (verb) to sneak")

    assert senses == [
        {"part_of_speech": "noun", "definitions": ["a cat", "a feline"]},
        {"part_of_speech": "verb", "definitions": ["to sneak"]},
    ]


def test_parse_definition_text_keeps_free_text_whole():
    assert parse_definition_text("A small   domesticated cat | kitten") == [
        {"part_of_speech": "", "definitions": ["A small domesticated cat | kitten"]}
    ]
    assert parse_definition_text("   ") == []


def test_client_lookup_parses_found_word(dictionary):
    entry = dictionary.lookup("  Serendipity ")

    assert entry.word == "serendipity"
    assert entry.phonetic == "ˌsɛɹənˈdɪpɪti"
    assert len(entry.meanings[0].definitions) == 2


def test_client_lookup_miss_returns_none(dictionary):
    assert dictionary.lookup("xyzzynotaword") is None


def test_client_lookup_encodes_word_in_path():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.raw_path)
        return httpx.Response(404)

    client = DictionaryClient(base_url="https://dictionary.test/entries/en/", transport=httpx.MockTransport(handler))

    assert client.lookup("Ice Cream") is None
    assert seen == [b"/entries/en/ice%20cream"]


def test_client_lookup_raises_on_server_error(dictionary):
    with pytest.raises(httpx.HTTPStatusError):
        dictionary.lookup("explode")
