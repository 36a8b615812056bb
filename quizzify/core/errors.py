"""Exceptions raised by the quiz engine and its collaborators."""

from __future__ import annotations


class QuizzifyError(Exception):
    """Base class for all application errors."""


class QuizNotFoundError(QuizzifyError):
    """Raised when no stored quiz matches a join code or identifier."""

    def __init__(self, code: str) -> None:
        super().__init__(f"No quiz found for code '{code}'.")
        self.code = code


class AttemptNotFoundError(QuizzifyError):
    def __init__(self, attempt_id: str) -> None:
        super().__init__(f"No attempt found with id '{attempt_id}'.")
        self.attempt_id = attempt_id


class SessionNotFoundError(QuizzifyError):
    def __init__(self, session_id: str) -> None:
        super().__init__(f"No active session with id '{session_id}'.")
        self.session_id = session_id


class QuizValidationError(QuizzifyError, ValueError):
    """Raised when an authored quiz or submitted answer is malformed."""


class GenerationFailure(QuizzifyError):
    """Raised when the AI assistant fails or returns unusable data."""


class StorageError(QuizzifyError):
    """Raised when a record collection cannot be read or written."""


class SessionStateError(QuizzifyError):
    """Raised when a session is asked for a transition its state does not allow."""
