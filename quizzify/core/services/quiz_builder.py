"""Validation and creation of quizzes from authored or generated drafts."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging

from quizzify.constants.quiz_constants import DEFAULT_QUESTION_MARKS, MINUTES_PER_QUESTION
from quizzify.core.errors import QuizValidationError
from quizzify.core.identifiers import IdentifierFactory
from quizzify.core.models import (
    Difficulty,
    MultiAnswer,
    Question,
    QuestionType,
    Quiz,
    QuizTheme,
    SingleAnswer,
    UserProfile,
    UserRole,
    make_answer,
)
from quizzify.core.services.record_store import RecordStore

logger = logging.getLogger(__name__)

_TRUE_FALSE_OPTIONS = ("True", "False")


@dataclass(slots=True)
class QuestionDraft:
    """Editable question as it comes from the builder form, an import or the AI."""

    text: str
    correct_answer: str | list[str] | None
    type: QuestionType = QuestionType.MCQ
    options: list[str] = field(default_factory=list)
    explanation: str = ""
    difficulty: Difficulty = Difficulty.MEDIUM
    marks: int = DEFAULT_QUESTION_MARKS
    image: str | None = None
    id: str | None = None


@dataclass(slots=True)
class QuizDraft:
    title: str
    questions: list[QuestionDraft]
    topic: str = ""
    description: str = ""
    difficulty: Difficulty = Difficulty.MEDIUM
    theme: QuizTheme = QuizTheme.STANDARD
    time_limit_minutes: int | None = None


class QuizBuilder:
    """Turns drafts into stored quizzes. Nothing is saved unless every question is valid."""

    def __init__(
        self,
        store: RecordStore,
        identifiers: IdentifierFactory | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._identifiers = identifiers or IdentifierFactory()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def create_quiz(self, draft: QuizDraft, creator: UserProfile) -> Quiz:
        quiz = self.build_quiz(draft, creator)
        self._store.save_quiz(quiz)
        logger.info("Created quiz %s with code %s (%d questions)", quiz.id, quiz.code, len(quiz.questions))
        return quiz

    def create_generated_quiz(
        self,
        topic: str,
        questions: list[QuestionDraft],
        creator: UserProfile,
        difficulty: Difficulty = Difficulty.MEDIUM,
        theme: QuizTheme = QuizTheme.STANDARD,
    ) -> Quiz:
        """Store AI-generated questions as a quiz titled after the creator's role."""
        topic = topic.strip()
        if creator.role is UserRole.STUDENT:
            title, description = f"{topic} Mock Exam", f"AI Practice for {topic}"
        else:
            title, description = f"{topic} Mastery Quiz", f"Assessment for {topic}"
        draft = QuizDraft(
            title=title,
            topic=topic,
            description=description,
            questions=[_without_id(question) for question in questions],
            difficulty=difficulty,
            theme=theme,
        )
        return self.create_quiz(draft, creator)

    def build_quiz(self, draft: QuizDraft, creator: UserProfile) -> Quiz:
        title = (draft.title or "").strip() or (draft.topic or "").strip()
        if not title:
            raise QuizValidationError("Please enter a quiz title/topic.")
        if not draft.questions:
            raise QuizValidationError("Quiz must contain at least one question.")

        questions: list[Question] = []
        used_ids: set[str] = set()
        for position, question_draft in enumerate(draft.questions, start=1):
            try:
                question = self._prepare_question(question_draft, used_ids)
            except QuizValidationError as exc:
                raise QuizValidationError(f"Question {position}: {exc}") from exc
            used_ids.add(question.id)
            questions.append(question)

        time_limit = self._normalize_time_limit(draft.time_limit_minutes, len(questions))
        existing = self._store.load_quizzes()
        return Quiz(
            id=self._identifiers.record_id(taken={quiz.id for quiz in existing}),
            code=self._identifiers.join_code(taken={quiz.code.upper() for quiz in existing}),
            title=title,
            description=draft.description.strip() or f"Manual quiz about {draft.topic or title}",
            topic=(draft.topic or title).strip(),
            questions=tuple(questions),
            time_limit_minutes=time_limit,
            creator_id=creator.id,
            created_at=self._clock(),
            difficulty=draft.difficulty,
            theme=draft.theme,
        )

    def _prepare_question(self, draft: QuestionDraft, used_ids: set[str]) -> Question:
        """Validate and normalize a question before storage."""
        cleaned_text = (draft.text or "").strip()
        if not cleaned_text:
            raise QuizValidationError("Question text must not be empty.")

        correct_answer = self._validate_correct_answer(draft.correct_answer)
        options = self._validate_options(draft.type, draft.options)
        if draft.type is QuestionType.MATCHING and isinstance(correct_answer, SingleAnswer):
            correct_answer = MultiAnswer((correct_answer.value,))
        marks = self._validate_marks(draft.marks)

        question_id = (draft.id or "").strip()
        if not question_id or question_id in used_ids:
            question_id = self._identifiers.record_id(taken=used_ids)

        return Question(
            id=question_id,
            type=draft.type,
            text=cleaned_text,
            correct_answer=correct_answer,
            marks=marks,
            options=options,
            explanation=(draft.explanation or "").strip(),
            difficulty=draft.difficulty,
            image=draft.image or None,
        )

    @staticmethod
    def _validate_correct_answer(value: str | list[str] | None):
        if value is None:
            raise QuizValidationError("A correct answer is required.")
        try:
            answer = make_answer(value)
        except TypeError as exc:
            raise QuizValidationError(str(exc)) from exc
        if isinstance(answer, SingleAnswer) and not answer.value.strip():
            raise QuizValidationError("A correct answer is required.")
        if isinstance(answer, MultiAnswer) and (
            not answer.values or any(not part.strip() for part in answer.values)
        ):
            raise QuizValidationError("Every part of the correct answer must be filled in.")
        return answer

    @staticmethod
    def _validate_options(question_type: QuestionType, options: list[str]) -> tuple[str, ...]:
        cleaned = tuple(option.strip() for option in options or [])
        if question_type is QuestionType.TRUE_FALSE and not cleaned:
            return _TRUE_FALSE_OPTIONS
        if question_type is QuestionType.MCQ:
            if len(cleaned) < 2:
                raise QuizValidationError("Multiple-choice questions need at least two options.")
            if any(not option for option in cleaned):
                raise QuizValidationError("Option text cannot be empty.")
        return tuple(option for option in cleaned if option)

    @staticmethod
    def _validate_marks(marks: int) -> int:
        if not isinstance(marks, int) or isinstance(marks, bool) or marks <= 0:
            raise QuizValidationError("Marks must be a positive integer.")
        return marks

    @staticmethod
    def _normalize_time_limit(time_limit_minutes: int | None, question_count: int) -> int:
        if time_limit_minutes is None:
            return question_count * MINUTES_PER_QUESTION
        if not isinstance(time_limit_minutes, int) or time_limit_minutes <= 0:
            raise QuizValidationError("Time limit must be a positive number of minutes.")
        return time_limit_minutes


def _without_id(draft: QuestionDraft) -> QuestionDraft:
    draft.id = None
    return draft
