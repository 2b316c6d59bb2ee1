from word_vault.lexicon.definitions import NormalizedDefinition, normalize_entry, parse_definition_text
from word_vault.lexicon.dictionary import DictionaryClient, DictionaryEntry

__all__ = [
    "DictionaryClient",
    "DictionaryEntry",
    "NormalizedDefinition",
    "normalize_entry",
    "parse_definition_text",
]
