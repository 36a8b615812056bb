"""Generation of record identifiers and quiz join codes."""

from __future__ import annotations

from collections.abc import Callable, Container
import random
import string

from quizzify.constants.quiz_constants import (
    JOIN_CODE_ALPHABET,
    JOIN_CODE_LENGTH,
    MAX_ID_GENERATION_ATTEMPTS,
    RECORD_ID_LENGTH,
    USER_ID_LENGTH,
    USER_ID_PREFIX,
)
from quizzify.core.errors import StorageError

_BASE36 = string.digits + string.ascii_lowercase


class IdentifierFactory:
    """Produces random identifiers, retrying until one is unused."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def record_id(self, taken: Container[str] = ()) -> str:
        return self._unique(lambda: self._random_string(_BASE36, RECORD_ID_LENGTH), taken)

    def join_code(self, taken: Container[str] = ()) -> str:
        """Return a join code whose upper-case form is not in ``taken``."""
        return self._unique(lambda: self._random_string(JOIN_CODE_ALPHABET, JOIN_CODE_LENGTH), taken)

    def user_id(self) -> str:
        return USER_ID_PREFIX + self._random_string(_BASE36, USER_ID_LENGTH)

    def _random_string(self, alphabet: str, length: int) -> str:
        return "".join(self._rng.choice(alphabet) for _ in range(length))

    @staticmethod
    def _unique(generate: Callable[[], str], taken: Container[str]) -> str:
        for _ in range(MAX_ID_GENERATION_ATTEMPTS):
            candidate = generate()
            if candidate not in taken:
                return candidate
        raise StorageError(
            f"Could not generate an unused identifier after {MAX_ID_GENERATION_ATTEMPTS} attempts."
        )
