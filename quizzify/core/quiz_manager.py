"""Business logic shared by the HTTP API: quizzes, live sessions and attempts."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
import logging
from threading import RLock

from quizzify.core.errors import (
    AttemptNotFoundError,
    GenerationFailure,
    QuizNotFoundError,
    QuizValidationError,
    QuizzifyError,
    SessionNotFoundError,
)
from quizzify.core.identifiers import IdentifierFactory
from quizzify.core.models import Answer, Difficulty, Quiz, QuizAttempt, QuizTheme, UserProfile, UserRole
from quizzify.core.progression import ProfileProgressionUpdater
from quizzify.core.quiz_exporter import serialize_questions
from quizzify.core.quiz_importer import parse_quiz_text
from quizzify.core.scoring import ScoreReport, score_answers
from quizzify.core.services.quiz_assistant import AttemptAnalysis, QuizAssistant
from quizzify.core.services.quiz_builder import QuizBuilder, QuizDraft
from quizzify.core.services.quiz_session import QuizSession, SessionSnapshot
from quizzify.core.services.record_store import RecordStore
from quizzify.core.services.session_ticker import SessionTicker

logger = logging.getLogger(__name__)

TickerFactory = Callable[[Callable[[], bool]], SessionTicker]


class QuizManager:
    """Facade over the record store, quiz builder, live sessions and the AI assistant.

    Every session transition happens under one lock, so a countdown tick and
    a manual submit can never interleave.
    """

    def __init__(
        self,
        store: RecordStore,
        assistant: QuizAssistant | None = None,
        identifiers: IdentifierFactory | None = None,
        clock: Callable[[], datetime] | None = None,
        ticker_factory: TickerFactory | None = None,
    ) -> None:
        self._lock = RLock()
        self._store = store
        self._assistant = assistant
        self._identifiers = identifiers or IdentifierFactory()
        self._clock = clock
        self._ticker_factory = ticker_factory

        # Services
        self._builder = QuizBuilder(store, identifiers=self._identifiers, clock=clock)
        self._progression = ProfileProgressionUpdater(store)
        self._sessions: dict[str, QuizSession] = {}
        self._tickers: dict[str, SessionTicker] = {}

    @property
    def store(self) -> RecordStore:
        return self._store

    # --- Quiz authoring ---

    def create_quiz(self, draft: QuizDraft) -> Quiz:
        with self._lock:
            return self._builder.create_quiz(draft, self._store.load_user())

    def import_quiz_text(self, text: str, title: str, topic: str = "", **options) -> Quiz:
        draft = QuizDraft(title=title, topic=topic, questions=parse_quiz_text(text), **options)
        return self.create_quiz(draft)

    def generate_quiz(
        self,
        topic: str,
        count: int,
        difficulty: Difficulty = Difficulty.MEDIUM,
        theme: QuizTheme = QuizTheme.STANDARD,
    ) -> Quiz:
        """Ask the assistant for questions and store them as a new quiz.

        Runs outside the session lock; the assistant call can take a while.
        """
        drafts = self._require_assistant().generate_questions(topic, count, difficulty)
        with self._lock:
            creator = self._store.load_user()
            try:
                return self._builder.create_generated_quiz(topic, drafts, creator, difficulty, theme)
            except QuizValidationError as exc:
                logger.warning("Generated questions for %r were rejected: %s", topic, exc)
                raise GenerationFailure(f"The AI returned an unusable question. {exc}") from exc

    def get_quiz_by_code(self, code: str) -> Quiz:
        quiz = self._store.find_quiz_by_code(code.strip())
        if quiz is None:
            raise QuizNotFoundError(code)
        return quiz

    def list_quizzes(self) -> list[Quiz]:
        return self._store.load_quizzes()

    def export_quiz(self, code: str) -> str:
        """Return the quiz for ``code`` in the plain-text import format."""
        quiz = self.get_quiz_by_code(code)
        try:
            return serialize_questions(quiz.questions)
        except ValueError as exc:
            raise QuizValidationError(f"Quiz {quiz.code} cannot be exported: {exc}") from exc

    # --- Sessions ---

    def start_session(self, code: str) -> SessionSnapshot:
        with self._lock:
            session = QuizSession(
                self._store,
                progression=self._progression,
                identifiers=self._identifiers,
                clock=self._clock,
                on_finished=self._handle_session_finished,
            )
            session.load(code)
            self._sessions[session.session_id] = session
            if self._ticker_factory is not None:
                session_id = session.session_id
                ticker = self._ticker_factory(lambda: self._tick_from_timer(session_id))
                self._tickers[session_id] = ticker
                ticker.start()
            return session.snapshot()

    def get_session(self, session_id: str) -> SessionSnapshot:
        with self._lock:
            return self._get_session(session_id).snapshot()

    def navigate(self, session_id: str, direction: int) -> SessionSnapshot:
        with self._lock:
            session = self._get_session(session_id)
            session.navigate(direction)
            return session.snapshot()

    def record_answer(self, session_id: str, question_id: str, value: Answer | str | list[str]) -> SessionSnapshot:
        with self._lock:
            session = self._get_session(session_id)
            try:
                session.record_answer(question_id, value)
            except TypeError as exc:
                raise QuizValidationError(str(exc)) from exc
            return session.snapshot()

    def tick(self, session_id: str) -> SessionSnapshot:
        with self._lock:
            session = self._get_session(session_id)
            session.tick()
            return session.snapshot()

    def submit(self, session_id: str) -> str:
        with self._lock:
            return self._get_session(session_id).submit()

    def end_session(self, session_id: str) -> None:
        """Tear a session down; an unsubmitted attempt is discarded."""
        with self._lock:
            self._stop_ticker(session_id)
            session = self._sessions.pop(session_id, None)
            if session is None:
                raise SessionNotFoundError(session_id)
            if not session.is_finished():
                logger.info("Session %s ended without submitting", session_id)

    def active_session_ids(self) -> list[str]:
        with self._lock:
            return list(self._sessions)

    def shutdown(self) -> None:
        with self._lock:
            for session_id in list(self._tickers):
                self._stop_ticker(session_id)
            self._sessions.clear()
        self._store.close()

    # --- Attempts & feedback ---

    def get_attempt(self, attempt_id: str) -> QuizAttempt:
        attempt = self._store.find_attempt(attempt_id)
        if attempt is None:
            raise AttemptNotFoundError(attempt_id)
        return attempt

    def get_attempt_report(self, attempt_id: str) -> tuple[QuizAttempt, Quiz, ScoreReport]:
        attempt = self.get_attempt(attempt_id)
        quiz = self._store.find_quiz(attempt.quiz_id)
        if quiz is None:
            raise QuizNotFoundError(attempt.quiz_id)
        return attempt, quiz, score_answers(quiz, attempt.answers)

    def analyze_attempt(self, attempt_id: str) -> AttemptAnalysis:
        """Request AI feedback for a stored attempt. Failures never touch the attempt."""
        attempt, quiz, _ = self.get_attempt_report(attempt_id)
        return self._require_assistant().analyze_attempt(attempt, quiz)

    # --- User profile ---

    def get_user(self) -> UserProfile:
        with self._lock:
            return self._store.load_user()

    def complete_onboarding(self, name: str, email: str, role: UserRole) -> UserProfile:
        name = name.strip()
        if not name:
            raise QuizValidationError("Please enter your name.")
        with self._lock:
            user = replace(
                self._store.load_user(),
                name=name,
                email=email.strip(),
                role=role,
                is_onboarded=True,
            )
            self._store.save_user(user)
            return user

    # --- Internals ---

    def _get_session(self, session_id: str) -> QuizSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def _require_assistant(self) -> QuizAssistant:
        if self._assistant is None:
            raise GenerationFailure("No AI assistant is configured.")
        return self._assistant

    def _tick_from_timer(self, session_id: str) -> bool:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return True
            try:
                session.tick()
            except QuizzifyError:
                # The session stays ACTIVE at zero seconds until submitted by hand.
                logger.exception("Automatic submit failed for session %s", session_id)
                self._stop_ticker(session_id)
                return True
            return session.is_finished()

    def _handle_session_finished(self, session: QuizSession) -> None:
        self._stop_ticker(session.session_id)

    def _stop_ticker(self, session_id: str) -> None:
        ticker = self._tickers.pop(session_id, None)
        if ticker is not None:
            ticker.stop()
