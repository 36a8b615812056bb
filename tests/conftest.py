from __future__ import annotations

from datetime import datetime, timezone
import random

import pytest

from quizzify.core.errors import GenerationFailure
from quizzify.core.identifiers import IdentifierFactory
from quizzify.core.models import (
    Difficulty,
    MultiAnswer,
    Question,
    QuestionType,
    Quiz,
    QuizAttempt,
    SingleAnswer,
)
from quizzify.core.quiz_manager import QuizManager
from quizzify.core.services.quiz_assistant import AttemptAnalysis
from quizzify.core.services.quiz_builder import QuestionDraft
from quizzify.core.services.record_store import RecordStore

FIXED_NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return FIXED_NOW


def make_scenario_quiz(code: str = "AB12CD", time_limit_minutes: int = 1) -> Quiz:
    """Three questions worth [1, 1, 2] marks with answers A / True / X."""
    return Quiz(
        id="quiz-1",
        code=code,
        title="Scenario Quiz",
        topic="Scenarios",
        questions=(
            Question(
                id="q1",
                type=QuestionType.MCQ,
                text="Pick **A**",
                options=("A", "B", "C", "D"),
                correct_answer=SingleAnswer("A"),
                marks=1,
            ),
            Question(
                id="q2",
                type=QuestionType.TRUE_FALSE,
                text="Is this true?",
                options=("True", "False"),
                correct_answer=SingleAnswer("True"),
                marks=1,
            ),
            Question(
                id="q3",
                type=QuestionType.FILL_IN_BLANK,
                text="Type X",
                correct_answer=SingleAnswer("X"),
                marks=2,
                explanation="The answer is X.",
                difficulty=Difficulty.HARD,
            ),
        ),
        time_limit_minutes=time_limit_minutes,
        creator_id="user_teach",
        created_at=FIXED_NOW,
    )


def make_matching_quiz() -> Quiz:
    return Quiz(
        id="quiz-match",
        code="MATCH1",
        title="Capitals",
        questions=(
            Question(
                id="m1",
                type=QuestionType.MATCHING,
                text="Match the countries to their capitals",
                options=("France", "Japan"),
                correct_answer=MultiAnswer(("Paris", "Tokyo")),
                marks=3,
            ),
        ),
        time_limit_minutes=2,
        creator_id="user_teach",
        created_at=FIXED_NOW,
    )


class FakeAssistant:
    """In-memory stand-in for the AI collaborator."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.analyzed: list[str] = []

    def generate_questions(self, topic, count, difficulty):
        if self.fail:
            raise GenerationFailure("model unavailable")
        return [
            QuestionDraft(
                text=f"{topic} question {index + 1}",
                correct_answer="True",
                type=QuestionType.TRUE_FALSE,
                difficulty=difficulty,
                explanation="Because.",
            )
            for index in range(count)
        ]

    def analyze_attempt(self, attempt: QuizAttempt, quiz: Quiz) -> AttemptAnalysis:
        if self.fail:
            raise GenerationFailure("model unavailable")
        self.analyzed.append(attempt.id)
        return AttemptAnalysis(
            feedback=f"You scored {attempt.score} of {attempt.total_marks}.",
            weak_topics=[quiz.topic],
            improvement_tips=["Review the explanations."],
        )


@pytest.fixture
def identifiers() -> IdentifierFactory:
    return IdentifierFactory(random.Random(1234))


@pytest.fixture
def store(tmp_path, identifiers) -> RecordStore:
    record_store = RecordStore(tmp_path / "data", identifiers=identifiers).open()
    yield record_store
    record_store.close()


@pytest.fixture
def scenario_quiz(store) -> Quiz:
    quiz = make_scenario_quiz()
    store.save_quiz(quiz)
    return quiz


@pytest.fixture
def assistant() -> FakeAssistant:
    return FakeAssistant()


@pytest.fixture
def manager(store, assistant, identifiers) -> QuizManager:
    return QuizManager(store, assistant=assistant, identifiers=identifiers, clock=fixed_clock)
