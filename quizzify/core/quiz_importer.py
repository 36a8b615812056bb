"""Utilities for importing quizzes from a human-friendly text file.

File format (repeat blocks separated by blank lines or '---'):

    TYPE: MCQ|TRUE_FALSE|FILL_IN_BLANK|MATCHING   (optional, default MCQ)
    Q: Question text (supports markdown + LaTeX). Additional lines until the
       next marker are treated as part of the question.
    A: First option text
    B: Second option text
    ...                  (up to F; required for MCQ, ignored otherwise)
    CORRECT: B           (MCQ: option letter; MATCHING: parts joined by ' | ';
                          TRUE_FALSE: True or False, any case;
                          otherwise the literal answer)
    MARKS: 2             (optional, default 1)
    DIFFICULTY: EASY|MEDIUM|HARD   (optional)
    EXPLANATION: Why the answer is right. Continues on following lines.
    IMAGE: https://example.com/figure.png   (optional)

Example:

    Q: What is $2 + 2$?
    A: 3
    B: 4
    C: 5
    D: 22
    CORRECT: B
    MARKS: 1
"""

from __future__ import annotations

from quizzify.core.errors import QuizValidationError
from quizzify.core.models import Difficulty, QuestionType
from quizzify.core.services.quiz_builder import QuestionDraft


class QuizImportError(QuizValidationError):
    """Raised when a quiz definition cannot be parsed."""


OPTION_LETTERS = ["A", "B", "C", "D", "E", "F"]
MULTI_PART_SEPARATOR = " | "
TRUE_FALSE_CHOICES = ("True", "False")


def parse_quiz_text(text: str) -> list[QuestionDraft]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped == "---":
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        if stripped:
            current_block.append(raw_line)
        elif current_block:
            # Blank line encountered after content - finalize current block
            blocks.append("\n".join(current_block).strip())
            current_block = []
    if current_block:
        blocks.append("\n".join(current_block).strip())

    questions = [_parse_block(block) for block in blocks if block]
    if not questions:
        raise QuizImportError("Quiz file did not contain any questions.")
    return questions


def _parse_block(block: str) -> QuestionDraft:
    question_lines: list[str] = []
    explanation_lines: list[str] = []
    options: dict[str, str] = {}
    question_type = QuestionType.MCQ
    correct_raw: str | None = None
    marks = 1
    difficulty = Difficulty.MEDIUM
    image: str | None = None
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        upper = line.upper()
        if upper.startswith("Q:"):
            question_lines = [line[2:].strip()]
            current_section = "Q"
            continue

        if upper.startswith("TYPE:"):
            question_type = _parse_enum(QuestionType, _value_of(line), "TYPE")
            current_section = None
            continue

        if upper.startswith("CORRECT:"):
            correct_raw = _value_of(line)
            current_section = None
            continue

        if upper.startswith("MARKS:"):
            marks = _parse_marks(_value_of(line))
            current_section = None
            continue

        if upper.startswith("DIFFICULTY:"):
            difficulty = _parse_enum(Difficulty, _value_of(line), "DIFFICULTY")
            current_section = None
            continue

        if upper.startswith("IMAGE:"):
            image = _value_of(line) or None
            current_section = None
            continue

        if upper.startswith("EXPLANATION:"):
            explanation_lines = [_value_of(line)]
            current_section = "EXPLANATION"
            continue

        if len(line) > 2 and line[0].upper() in OPTION_LETTERS and line[1] == ":":
            letter = line[0].upper()
            options[letter] = line[2:].strip()
            current_section = letter
            continue

        if current_section == "Q":
            question_lines.append(line)
        elif current_section == "EXPLANATION":
            explanation_lines.append(line)
        elif current_section in OPTION_LETTERS:
            options[current_section] = options[current_section] + f"\n{line}"
        else:
            raise QuizImportError(
                f"Encountered text outside of a known section: '{line}'."
            )

    question_text = "\n".join(question_lines).strip()
    if not question_text:
        raise QuizImportError("Question text missing (Q: ...)")
    if not correct_raw:
        raise QuizImportError("CORRECT is required for every question.")

    option_list = _collect_options(options)
    if question_type is QuestionType.MCQ:
        correct_answer: str | list[str] = _resolve_option_letter(correct_raw, option_list)
    elif question_type is QuestionType.TRUE_FALSE:
        correct_answer = _resolve_true_false(correct_raw)
    elif question_type is QuestionType.MATCHING:
        correct_answer = [part.strip() for part in correct_raw.split(MULTI_PART_SEPARATOR.strip())]
    else:
        correct_answer = correct_raw

    return QuestionDraft(
        text=question_text,
        correct_answer=correct_answer,
        type=question_type,
        options=option_list,
        explanation="\n".join(explanation_lines).strip(),
        difficulty=difficulty,
        marks=marks,
        image=image,
    )


def _value_of(line: str) -> str:
    return line.split(":", 1)[1].strip()


def _parse_enum(enum_type, raw_value: str, label: str):
    try:
        return enum_type(raw_value.upper())
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_type)
        raise QuizImportError(f"{label} must be one of {allowed}.") from exc


def _parse_marks(raw_value: str) -> int:
    if not raw_value:
        raise QuizImportError("MARKS must include an integer value.")
    try:
        parsed_value = int(raw_value)
    except ValueError as exc:
        raise QuizImportError("MARKS must be an integer.") from exc
    if parsed_value <= 0:
        raise QuizImportError("MARKS must be a positive integer.")
    return parsed_value


def _collect_options(options: dict[str, str]) -> list[str]:
    present = [letter for letter in OPTION_LETTERS if letter in options]
    expected = OPTION_LETTERS[: len(present)]
    if present != expected:
        raise QuizImportError("Options must be lettered consecutively starting at A.")
    option_list = [options[letter].strip() for letter in present]
    if any(not option for option in option_list):
        raise QuizImportError("Option text cannot be empty.")
    return option_list


def _resolve_option_letter(correct_raw: str, option_list: list[str]) -> str:
    letter = correct_raw.upper()
    if letter not in OPTION_LETTERS[: len(option_list)]:
        allowed = ", ".join(OPTION_LETTERS[: len(option_list)]) or "an option letter"
        raise QuizImportError(f"CORRECT must be one of {allowed}.")
    return option_list[OPTION_LETTERS.index(letter)]


def _resolve_true_false(correct_raw: str) -> str:
    for choice in TRUE_FALSE_CHOICES:
        if correct_raw.lower() == choice.lower():
            return choice
    raise QuizImportError("CORRECT must be True or False for TRUE_FALSE questions.")
