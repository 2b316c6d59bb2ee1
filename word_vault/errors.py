from __future__ import annotations


class VaultError(Exception):
    """Base class for conditions surfaced to the user as a message."""


class InsufficientWords(VaultError):
    def __init__(self, available: int, required: int) -> None:
        super().__init__(f"Need at least {required} words to start a quiz ({available} available).")
        self.available = available
        self.required = required


class FetchFailed(VaultError):
    pass


class DuplicateWord(VaultError):
    def __init__(self, word: str) -> None:
        super().__init__("This word already exists!")
        self.word = word


class LookupNotFound(VaultError):
    def __init__(self, word: str) -> None:
        super().__init__(f"No definition found for '{word}'.")
        self.word = word


class Unauthorized(VaultError):
    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class WordNotFound(VaultError):
    def __init__(self, word_id: int) -> None:
        super().__init__(f"word {word_id} not found")
        self.word_id = word_id


class InvalidWord(VaultError, ValueError):
    pass


class QuizStateError(VaultError):
    pass


class StaleRequest(VaultError):
    def __init__(self, ticket: int, current: int) -> None:
        super().__init__(f"request {ticket} superseded by {current}")
        self.ticket = ticket
        self.current = current


class UsernameTaken(VaultError):
    def __init__(self, username: str) -> None:
        super().__init__("This username is already taken.")
        self.username = username


class QuizSessionNotFound(VaultError):
    def __init__(self, session_id: str) -> None:
        super().__init__("Quiz session not found or expired.")
        self.session_id = session_id
