from __future__ import annotations

import pytest
from conftest import fixed_clock, make_matching_quiz, make_scenario_quiz

from quizzify.core.models import Difficulty, QuestionType, UserProfile
from quizzify.core.quiz_exporter import serialize_questions
from quizzify.core.quiz_importer import QuizImportError, parse_quiz_text
from quizzify.core.services.quiz_builder import QuizBuilder, QuizDraft

SAMPLE = """\
Q: What is $2 + 2$?
A: 3
B: 4
C: 5
D: 22
CORRECT: B
MARKS: 2

---

TYPE: TRUE_FALSE
Q: The sun is a star.
CORRECT: True
DIFFICULTY: easy
EXPLANATION: The sun is a G-type
main-sequence star.

TYPE: MATCHING
Q: Match the countries
to their capitals.
CORRECT: Paris | Tokyo
"""


def test_parse_sample():
    questions = parse_quiz_text(SAMPLE)

    assert len(questions) == 3
    mcq, true_false, matching = questions
    assert mcq.text == "What is $2 + 2$?"
    assert mcq.options == ["3", "4", "5", "22"]
    assert mcq.correct_answer == "4"
    assert mcq.marks == 2
    assert true_false.type is QuestionType.TRUE_FALSE
    assert true_false.correct_answer == "True"
    assert true_false.difficulty is Difficulty.EASY
    assert true_false.explanation == "The sun is a G-type\nmain-sequence star."
    assert matching.text == "Match the countries\nto their capitals."
    assert matching.correct_answer == ["Paris", "Tokyo"]


@pytest.mark.parametrize(
    "text, message",
    [
        ("", "did not contain any questions"),
        ("A: 1\nB: 2\nCORRECT: A", "Question text missing"),
        ("Q: Hi?\nA: 1\nB: 2", "CORRECT is required"),
        ("Q: Hi?\nA: 1\nB: 2\nCORRECT: E", "CORRECT must be one of A, B"),
        ("Q: Hi?\nA: 1\nC: 2\nCORRECT: A", "consecutively"),
        ("Q: Hi?\nCORRECT: x\nMARKS: -1", "positive"),
        ("TYPE: ESSAY\nQ: Hi?\nCORRECT: x", "TYPE must be one of"),
        ("CORRECT: A\nstray text", "outside of a known section"),
    ],
)
def test_malformed_blocks(text, message):
    with pytest.raises(QuizImportError, match=message):
        parse_quiz_text(text)


def test_export_then_import_preserves_questions():
    quiz = make_scenario_quiz()

    imported = parse_quiz_text(serialize_questions(quiz.questions))

    assert len(imported) == len(quiz.questions)
    for original, draft in zip(quiz.questions, imported):
        assert draft.text == original.text
        assert draft.type is original.type
        assert draft.correct_answer == original.correct_answer.value
        assert draft.marks == original.marks
        assert draft.difficulty is original.difficulty
        assert draft.explanation == original.explanation


def test_imported_questions_build_a_quiz(store):
    builder = QuizBuilder(store, clock=fixed_clock)
    draft = QuizDraft(title="Imported", questions=parse_quiz_text(SAMPLE))

    quiz = builder.build_quiz(draft, UserProfile(id="user_teach"))

    assert quiz.total_marks == 4
    assert quiz.questions[1].options == ("True", "False")


def test_matching_export_joins_parts():
    document = serialize_questions(make_matching_quiz().questions)

    assert "TYPE: MATCHING" in document
    assert "CORRECT: Paris | Tokyo" in document
    assert "MARKS: 3" in document


def test_export_rejects_empty_quiz():
    with pytest.raises(ValueError):
        serialize_questions([])


@pytest.mark.parametrize("raw, expected", [("true", "True"), ("FALSE", "False"), ("False", "False")])
def test_true_false_answer_matches_option_casing(raw, expected):
    (question,) = parse_quiz_text(f"TYPE: TRUE_FALSE\nQ: Is it?\nCORRECT: {raw}")

    assert question.correct_answer == expected


def test_true_false_answer_must_be_a_choice():
    with pytest.raises(QuizImportError, match="True or False"):
        parse_quiz_text("TYPE: TRUE_FALSE\nQ: Is it?\nCORRECT: yes")
