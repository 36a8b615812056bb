"""Utilities for exporting quizzes to the plain-text format used for imports."""

from __future__ import annotations

from quizzify.core.models import Difficulty, MultiAnswer, Question, QuestionType, SingleAnswer
from quizzify.core.quiz_importer import MULTI_PART_SEPARATOR, OPTION_LETTERS


def serialize_questions(questions: list[Question] | tuple[Question, ...]) -> str:
    """Render ``questions`` as an importable text document."""
    if not questions:
        raise ValueError("Cannot export an empty quiz.")
    blocks = [_serialize_question(question) for question in questions]
    return "\n\n---\n\n".join(blocks) + "\n"


def _serialize_question(question: Question) -> str:
    lines: list[str] = []

    if question.type is not QuestionType.MCQ:
        lines.append(f"TYPE: {question.type.value}")

    question_lines = _non_blank_lines(question.text)
    lines.append(f"Q: {question_lines[0] if question_lines else ''}")
    lines.extend(question_lines[1:])

    if question.type is QuestionType.MCQ:
        if len(question.options) > len(OPTION_LETTERS):
            raise ValueError(f"Cannot export more than {len(OPTION_LETTERS)} options.")
        for letter, option_text in zip(OPTION_LETTERS, question.options):
            option_lines = _non_blank_lines(option_text)
            lines.append(f"{letter}: {option_lines[0] if option_lines else ''}")
            lines.extend(option_lines[1:])

    lines.append(f"CORRECT: {_serialize_correct_answer(question)}")

    if question.marks != 1:
        lines.append(f"MARKS: {question.marks}")
    if question.difficulty is not Difficulty.MEDIUM:
        lines.append(f"DIFFICULTY: {question.difficulty.value}")
    if question.image:
        lines.append(f"IMAGE: {question.image}")

    explanation_lines = _non_blank_lines(question.explanation)
    if explanation_lines:
        lines.append(f"EXPLANATION: {explanation_lines[0]}")
        lines.extend(explanation_lines[1:])

    return "\n".join(lines)


def _serialize_correct_answer(question: Question) -> str:
    answer = question.correct_answer
    if isinstance(answer, MultiAnswer):
        return MULTI_PART_SEPARATOR.join(answer.values)
    if isinstance(answer, SingleAnswer):
        if question.type is not QuestionType.MCQ:
            return answer.value
        try:
            return OPTION_LETTERS[question.options.index(answer.value)]
        except ValueError as exc:
            raise ValueError(
                f"Correct answer of question '{question.id}' is not one of its options."
            ) from exc
    raise TypeError(f"Unsupported answer type: {type(answer).__name__}")


def _non_blank_lines(text: str) -> list[str]:
    return [line for line in text.splitlines() if line.strip()]
