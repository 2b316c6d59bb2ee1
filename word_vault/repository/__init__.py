from word_vault.repository.words import WordFilter, WordRepository, normalize_difficulty_filter

__all__ = ["WordFilter", "WordRepository", "normalize_difficulty_filter"]
