"""JSON-file persistence for quizzes, attempts and the local user profile.

Each collection lives in its own file and is always rewritten whole: a
mutation re-reads the collection, changes one record and writes the full
collection back through a temporary file that replaces the original. A
failed write therefore leaves the previous file, and the other collections,
untouched.
"""

from __future__ import annotations

from collections.abc import Callable
import json
import logging
from pathlib import Path
from threading import RLock
from typing import Any

from quizzify.constants.storage_constants import ATTEMPTS_FILE, QUIZZES_FILE, USER_FILE
from quizzify.core.errors import StorageError
from quizzify.core.identifiers import IdentifierFactory
from quizzify.core.models import Quiz, QuizAttempt, UserProfile
from quizzify.core.serialization import (
    attempt_from_record,
    attempt_to_record,
    quiz_from_record,
    quiz_to_record,
    user_from_record,
    user_to_record,
)

logger = logging.getLogger(__name__)


class RecordStore:
    """Explicit handle over the three persisted record collections."""

    def __init__(self, data_dir: Path, identifiers: IdentifierFactory | None = None) -> None:
        self._data_dir = Path(data_dir)
        self._identifiers = identifiers or IdentifierFactory()
        self._lock = RLock()
        self._open = False

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def open(self) -> "RecordStore":
        with self._lock:
            try:
                self._data_dir.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise StorageError(f"Cannot create data directory {self._data_dir}: {exc}") from exc
            self._open = True
            logger.info("Record store opened at %s", self._data_dir)
        return self

    def close(self) -> None:
        with self._lock:
            self._open = False

    def is_open(self) -> bool:
        return self._open

    def __enter__(self) -> "RecordStore":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # --- Quizzes ---

    def load_quizzes(self) -> list[Quiz]:
        with self._lock:
            return [_decode(quiz_from_record, record, QUIZZES_FILE) for record in self._read_list(QUIZZES_FILE)]

    def save_quiz(self, quiz: Quiz) -> None:
        """Append ``quiz``, or replace the stored quiz with the same id."""
        with self._lock:
            records = self._read_list(QUIZZES_FILE)
            record = quiz_to_record(quiz)
            index = next((i for i, item in enumerate(records) if item.get("id") == quiz.id), -1)
            if index >= 0:
                records[index] = record
            else:
                records.append(record)
            self._write(QUIZZES_FILE, records)

    def find_quiz_by_code(self, code: str) -> Quiz | None:
        wanted = code.upper()
        return next((quiz for quiz in self.load_quizzes() if quiz.code.upper() == wanted), None)

    def find_quiz(self, quiz_id: str) -> Quiz | None:
        return next((quiz for quiz in self.load_quizzes() if quiz.id == quiz_id), None)

    def increment_attempts_count(self, quiz_id: str) -> Quiz | None:
        with self._lock:
            records = self._read_list(QUIZZES_FILE)
            for record in records:
                if record.get("id") == quiz_id:
                    record["attemptsCount"] = int(record.get("attemptsCount") or 0) + 1
                    self._write(QUIZZES_FILE, records)
                    return _decode(quiz_from_record, record, QUIZZES_FILE)
            return None

    # --- Attempts ---

    def load_attempts(self) -> list[QuizAttempt]:
        with self._lock:
            return [_decode(attempt_from_record, record, ATTEMPTS_FILE) for record in self._read_list(ATTEMPTS_FILE)]

    def save_attempt(self, attempt: QuizAttempt) -> None:
        with self._lock:
            records = self._read_list(ATTEMPTS_FILE)
            if any(item.get("id") == attempt.id for item in records):
                raise StorageError(f"Attempt {attempt.id} is already stored.")
            records.append(attempt_to_record(attempt))
            self._write(ATTEMPTS_FILE, records)

    def find_attempt(self, attempt_id: str) -> QuizAttempt | None:
        return next((attempt for attempt in self.load_attempts() if attempt.id == attempt_id), None)

    # --- User profile ---

    def load_user(self) -> UserProfile:
        """Return the stored profile, creating and persisting a default one first if needed."""
        with self._lock:
            record = self._read(USER_FILE, default=lambda: None)
            if record is None:
                user = UserProfile(id=self._identifiers.user_id())
                self._write(USER_FILE, user_to_record(user))
                return user
            if not isinstance(record, dict):
                raise StorageError(f"{USER_FILE} does not contain a user record.")
            return _decode(user_from_record, record, USER_FILE)

    def save_user(self, user: UserProfile) -> None:
        with self._lock:
            self._write(USER_FILE, user_to_record(user))

    # --- Raw collection access ---

    def _path(self, file_name: str) -> Path:
        return self._data_dir / file_name

    def _ensure_open(self) -> None:
        if not self._open:
            raise StorageError("Record store is not open.")

    def _read_list(self, file_name: str) -> list[dict[str, Any]]:
        data = self._read(file_name, default=list)
        if not isinstance(data, list):
            raise StorageError(f"{file_name} does not contain a record list.")
        return data

    def _read(self, file_name: str, default: Callable[[], Any]) -> Any:
        self._ensure_open()
        path = self._path(file_name)
        if not path.exists():
            return default()
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise StorageError(f"Cannot read {path}: {exc}") from exc

    def _write(self, file_name: str, data: Any) -> None:
        self._ensure_open()
        path = self._path(file_name)
        temp_path = path.with_name(path.name + ".tmp")
        try:
            temp_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
            temp_path.replace(path)
        except OSError as exc:
            raise StorageError(f"Cannot write {path}: {exc}") from exc
        logger.debug("Rewrote %s", path)


def _decode(converter: Callable[[dict[str, Any]], Any], record: Any, file_name: str) -> Any:
    try:
        return converter(record)
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise StorageError(f"Malformed record in {file_name}: {exc}") from exc
