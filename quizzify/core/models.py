"""Domain models for the quiz application."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class QuestionType(str, Enum):
    MCQ = "MCQ"
    TRUE_FALSE = "TRUE_FALSE"
    FILL_IN_BLANK = "FILL_IN_BLANK"
    MATCHING = "MATCHING"


class Difficulty(str, Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


class UserRole(str, Enum):
    STUDENT = "STUDENT"
    TEACHER = "TEACHER"


class QuizTheme(str, Enum):
    STANDARD = "standard"
    ROYAL = "royal"
    CYBER = "cyber"
    NATURE = "nature"
    MINIMAL = "minimal"


@dataclass(frozen=True, slots=True)
class SingleAnswer:
    """A one-part answer such as an MCQ option or a fill-in-the-blank word."""

    value: str


@dataclass(frozen=True, slots=True)
class MultiAnswer:
    """An ordered multi-part answer, used by matching questions."""

    values: tuple[str, ...]


Answer = SingleAnswer | MultiAnswer


@dataclass(frozen=True, slots=True)
class Question:
    """A published quiz question. Never mutated once its quiz is saved."""

    id: str
    type: QuestionType
    text: str
    correct_answer: Answer
    marks: int = 1
    options: tuple[str, ...] = ()
    explanation: str = ""
    difficulty: Difficulty = Difficulty.MEDIUM
    image: str | None = None


@dataclass(frozen=True, slots=True)
class Quiz:
    """A stored quiz. Only ``attempts_count`` changes after creation."""

    id: str
    code: str
    title: str
    questions: tuple[Question, ...]
    time_limit_minutes: int
    creator_id: str
    created_at: datetime
    description: str = ""
    topic: str = ""
    difficulty: Difficulty = Difficulty.MEDIUM
    theme: QuizTheme = QuizTheme.STANDARD
    is_live: bool = False
    attempts_count: int = 0

    @property
    def time_limit_seconds(self) -> int:
        return self.time_limit_minutes * 60

    @property
    def total_marks(self) -> int:
        return sum(question.marks for question in self.questions)

    def question_ids(self) -> set[str]:
        return {question.id for question in self.questions}


@dataclass(frozen=True, slots=True)
class QuizAttempt:
    """Immutable record of one completed pass through a quiz."""

    id: str
    quiz_id: str
    user_id: str
    answers: dict[str, Answer]
    score: int
    total_marks: int
    time_taken_seconds: int
    completed_at: datetime
    topic_performance: dict[str, int] = field(default_factory=dict)


@dataclass(slots=True)
class UserProfile:
    """Local user profile carrying gamification progress."""

    id: str
    name: str = ""
    email: str = ""
    role: UserRole = UserRole.STUDENT
    xp: int = 0
    level: int = 1
    streak: int = 0
    badges: list[str] = field(default_factory=list)
    is_onboarded: bool = False


def make_answer(value: Answer | str | list[str] | tuple[str, ...]) -> Answer:
    """Wrap a raw string or string sequence in the matching answer variant."""
    if isinstance(value, (SingleAnswer, MultiAnswer)):
        return value
    if isinstance(value, str):
        return SingleAnswer(value)
    if isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value):
        return MultiAnswer(tuple(value))
    raise TypeError(f"Answer must be a string or a sequence of strings, got {value!r}.")
