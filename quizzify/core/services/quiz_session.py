"""State machine driving one timed quiz attempt from load to submission."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum, auto
import logging
from uuid import uuid4

from quizzify.core.errors import QuizNotFoundError, QuizValidationError, SessionStateError
from quizzify.core.identifiers import IdentifierFactory
from quizzify.core.models import Answer, Question, Quiz, QuizAttempt, make_answer
from quizzify.core.progression import ProfileProgressionUpdater
from quizzify.core.scoring import score_answers
from quizzify.core.services.record_store import RecordStore

logger = logging.getLogger(__name__)


class SessionState(Enum):
    LOADING = auto()
    ACTIVE = auto()
    FINISHED = auto()


@dataclass(frozen=True, slots=True)
class Navigate:
    """Move the cursor one question forward (+1) or back (-1)."""

    direction: int


@dataclass(frozen=True, slots=True)
class RecordAnswer:
    question_id: str
    value: Answer


@dataclass(frozen=True, slots=True)
class Tick:
    """One second of countdown elapsed."""


@dataclass(frozen=True, slots=True)
class Submit:
    pass


SessionEvent = Navigate | RecordAnswer | Tick | Submit


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """Read-only view of a session for display."""

    session_id: str
    state: SessionState
    quiz: Quiz | None
    cursor: int
    current_question: Question | None
    remaining_seconds: int
    answers: dict[str, Answer]
    attempt_id: str | None

    @property
    def submit_required(self) -> bool:
        """True when time ran out but the automatic submit did not go through."""
        return self.state is SessionState.ACTIVE and self.remaining_seconds == 0


class QuizSession:
    """Drives a single attempt: ``LOADING -> ACTIVE -> FINISHED``.

    All transitions go through :meth:`dispatch`. Once finished, further
    navigation, answers and ticks are ignored and repeated submissions return
    the identity of the attempt that was already stored, so an attempt is
    scored and persisted exactly once.
    """

    def __init__(
        self,
        store: RecordStore,
        progression: ProfileProgressionUpdater | None = None,
        identifiers: IdentifierFactory | None = None,
        clock: Callable[[], datetime] | None = None,
        on_finished: Callable[["QuizSession"], None] | None = None,
        session_id: str | None = None,
    ) -> None:
        self.session_id = session_id or uuid4().hex
        self._store = store
        self._progression = progression or ProfileProgressionUpdater(store)
        self._identifiers = identifiers or IdentifierFactory()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._on_finished = on_finished

        self._state = SessionState.LOADING
        self._quiz: Quiz | None = None
        self._cursor = 0
        self._remaining_seconds = 0
        self._answers: dict[str, Answer] = {}
        self._attempt_id: str | None = None

    # --- Lifecycle ---

    def load(self, code: str) -> Quiz:
        """Fetch the quiz for ``code`` and start the countdown."""
        if self._state is not SessionState.LOADING:
            raise SessionStateError("Session has already loaded a quiz.")
        quiz = self._store.find_quiz_by_code(code.strip())
        if quiz is None:
            raise QuizNotFoundError(code)
        if not quiz.questions:
            raise QuizValidationError("Quiz has no questions to answer.")

        self._quiz = quiz
        self._cursor = 0
        self._remaining_seconds = quiz.time_limit_seconds
        self._answers = {}
        self._state = SessionState.ACTIVE
        logger.info("Session %s started quiz %s (%s)", self.session_id, quiz.id, quiz.code)
        return quiz

    @property
    def state(self) -> SessionState:
        return self._state

    def is_finished(self) -> bool:
        return self._state is SessionState.FINISHED

    @property
    def quiz(self) -> Quiz | None:
        return self._quiz

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def remaining_seconds(self) -> int:
        return self._remaining_seconds

    @property
    def attempt_id(self) -> str | None:
        return self._attempt_id

    def get_answers(self) -> dict[str, Answer]:
        return dict(self._answers)

    def get_current_question(self) -> Question | None:
        if self._quiz is None:
            return None
        return self._quiz.questions[self._cursor]

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            session_id=self.session_id,
            state=self._state,
            quiz=self._quiz,
            cursor=self._cursor,
            current_question=self.get_current_question(),
            remaining_seconds=self._remaining_seconds,
            answers=self.get_answers(),
            attempt_id=self._attempt_id,
        )

    # --- Transitions ---

    def dispatch(self, event: SessionEvent) -> str | None:
        """Apply ``event``; returns the attempt id once the session is finished."""
        if isinstance(event, Submit):
            return self._handle_submit()
        if self._state is not SessionState.ACTIVE:
            return self._attempt_id
        if isinstance(event, Navigate):
            self._handle_navigate(event.direction)
        elif isinstance(event, RecordAnswer):
            self._handle_record_answer(event.question_id, event.value)
        elif isinstance(event, Tick):
            return self._handle_tick()
        else:
            raise TypeError(f"Unsupported session event: {type(event).__name__}")
        return None

    def navigate(self, direction: int) -> int:
        self.dispatch(Navigate(direction))
        return self._cursor

    def record_answer(self, question_id: str, value: Answer | str | list[str]) -> None:
        self.dispatch(RecordAnswer(question_id, make_answer(value)))

    def tick(self) -> str | None:
        return self.dispatch(Tick())

    def submit(self) -> str:
        return self._handle_submit()

    def _handle_navigate(self, direction: int) -> None:
        if direction not in (-1, 1):
            raise ValueError("Direction must be -1 or 1.")
        last_index = len(self._quiz.questions) - 1
        self._cursor = min(max(self._cursor + direction, 0), last_index)

    def _handle_record_answer(self, question_id: str, value: Answer) -> None:
        if question_id not in self._quiz.question_ids():
            raise QuizValidationError(f"Question '{question_id}' is not part of this quiz.")
        self._answers[question_id] = value

    def _handle_tick(self) -> str | None:
        self._remaining_seconds = max(0, self._remaining_seconds - 1)
        if self._remaining_seconds == 0:
            logger.info("Session %s ran out of time", self.session_id)
            return self._handle_submit()
        return None

    def _handle_submit(self) -> str:
        if self._state is SessionState.FINISHED:
            return self._attempt_id
        if self._state is SessionState.LOADING:
            raise SessionStateError("No quiz has been loaded for this session.")

        quiz = self._quiz
        limit = quiz.time_limit_seconds
        time_taken = min(max(limit - self._remaining_seconds, 0), limit)
        report = score_answers(quiz, self._answers)
        user = self._store.load_user()
        taken_ids = {attempt.id for attempt in self._store.load_attempts()}
        attempt = QuizAttempt(
            id=self._identifiers.record_id(taken=taken_ids),
            quiz_id=quiz.id,
            user_id=user.id,
            answers=dict(self._answers),
            score=report.score,
            total_marks=report.total_marks,
            time_taken_seconds=time_taken,
            completed_at=self._clock(),
            topic_performance={quiz.topic: report.score} if quiz.topic else {},
        )
        self._store.save_attempt(attempt)

        # The attempt is durable from here on; never score this session again.
        self._state = SessionState.FINISHED
        self._attempt_id = attempt.id
        logger.info(
            "Session %s submitted attempt %s: %d/%d in %ds",
            self.session_id,
            attempt.id,
            attempt.score,
            attempt.total_marks,
            time_taken,
        )
        # Profile first, then the quiz counter; each runs even if the other fails.
        try:
            try:
                self._progression.apply(attempt)
            finally:
                self._store.increment_attempts_count(quiz.id)
        finally:
            if self._on_finished is not None:
                self._on_finished(self)
        return attempt.id
