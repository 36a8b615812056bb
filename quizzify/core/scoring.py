"""Scoring of a finished answer set against a quiz's answer key."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from quizzify.core.models import Answer, MultiAnswer, Question, Quiz, SingleAnswer


@dataclass(frozen=True, slots=True)
class QuestionResult:
    question_id: str
    answered: bool
    is_correct: bool
    marks_awarded: int
    marks_available: int


@dataclass(frozen=True, slots=True)
class ScoreReport:
    """Score plus the per-question breakdown used by the results view."""

    score: int
    total_marks: int
    question_results: tuple[QuestionResult, ...]

    @property
    def correct_count(self) -> int:
        return sum(1 for result in self.question_results if result.is_correct)

    @property
    def answered_count(self) -> int:
        return sum(1 for result in self.question_results if result.answered)

    @property
    def percentage(self) -> float:
        if self.total_marks == 0:
            return 0.0
        return (self.score / self.total_marks) * 100


def is_answer_correct(expected: Answer, submitted: Answer | None) -> bool:
    """Exact comparison: case-sensitive, untrimmed and order-sensitive."""
    if submitted is None:
        return False
    if isinstance(expected, SingleAnswer):
        return isinstance(submitted, SingleAnswer) and submitted.value == expected.value
    if isinstance(expected, MultiAnswer):
        return isinstance(submitted, MultiAnswer) and submitted.values == expected.values
    raise TypeError(f"Unsupported answer type: {type(expected).__name__}")


def score_question(question: Question, submitted: Answer | None) -> QuestionResult:
    correct = is_answer_correct(question.correct_answer, submitted)
    return QuestionResult(
        question_id=question.id,
        answered=submitted is not None,
        is_correct=correct,
        marks_awarded=question.marks if correct else 0,
        marks_available=question.marks,
    )


def score_answers(quiz: Quiz, answers: Mapping[str, Answer]) -> ScoreReport:
    """Score ``answers`` against every question of ``quiz``.

    Unanswered questions count towards ``total_marks`` but never score.
    """
    results = tuple(score_question(question, answers.get(question.id)) for question in quiz.questions)
    return ScoreReport(
        score=sum(result.marks_awarded for result in results),
        total_marks=sum(result.marks_available for result in results),
        question_results=results,
    )
