"""Conversion between domain models and JSON-compatible records.

Records use the camelCase keys of the persisted collections. Answers are
stored untagged: a single answer is a string, a multi-part answer is a list
of strings.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from quizzify.core.errors import StorageError
from quizzify.core.models import (
    Answer,
    Difficulty,
    MultiAnswer,
    Question,
    QuestionType,
    Quiz,
    QuizAttempt,
    QuizTheme,
    SingleAnswer,
    UserProfile,
    UserRole,
)


def answer_to_record(answer: Answer) -> str | list[str]:
    if isinstance(answer, SingleAnswer):
        return answer.value
    if isinstance(answer, MultiAnswer):
        return list(answer.values)
    raise TypeError(f"Unsupported answer type: {type(answer).__name__}")


def answer_from_record(value: Any) -> Answer:
    if isinstance(value, str):
        return SingleAnswer(value)
    if isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value):
        return MultiAnswer(tuple(value))
    raise StorageError(f"Answer must be a string or a list of strings, got {value!r}.")


def _timestamp_to_record(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat()


def _timestamp_from_record(value: str) -> datetime:
    return datetime.fromisoformat(value)


def question_to_record(question: Question) -> dict[str, Any]:
    record: dict[str, Any] = {
        "id": question.id,
        "type": question.type.value,
        "text": question.text,
        "options": list(question.options),
        "correctAnswer": answer_to_record(question.correct_answer),
        "explanation": question.explanation,
        "difficulty": question.difficulty.value,
        "marks": question.marks,
    }
    if question.image is not None:
        record["image"] = question.image
    return record


def question_from_record(record: dict[str, Any]) -> Question:
    return Question(
        id=str(record["id"]),
        type=QuestionType(record["type"]),
        text=record["text"],
        correct_answer=answer_from_record(record["correctAnswer"]),
        marks=int(record.get("marks", 1)),
        options=tuple(record.get("options") or ()),
        explanation=record.get("explanation", ""),
        difficulty=Difficulty(record.get("difficulty", Difficulty.MEDIUM.value)),
        image=record.get("image"),
    )


def quiz_to_record(quiz: Quiz) -> dict[str, Any]:
    return {
        "id": quiz.id,
        "code": quiz.code,
        "title": quiz.title,
        "description": quiz.description,
        "topic": quiz.topic,
        "creatorId": quiz.creator_id,
        "createdAt": _timestamp_to_record(quiz.created_at),
        "questions": [question_to_record(question) for question in quiz.questions],
        "difficulty": quiz.difficulty.value,
        "timeLimit": quiz.time_limit_minutes,
        "isLive": quiz.is_live,
        "attemptsCount": quiz.attempts_count,
        "theme": quiz.theme.value,
    }


def quiz_from_record(record: dict[str, Any]) -> Quiz:
    return Quiz(
        id=str(record["id"]),
        code=record["code"],
        title=record.get("title", ""),
        questions=tuple(question_from_record(item) for item in record.get("questions", [])),
        time_limit_minutes=int(record["timeLimit"]),
        creator_id=record.get("creatorId", ""),
        created_at=_timestamp_from_record(record["createdAt"]),
        description=record.get("description", ""),
        topic=record.get("topic", ""),
        difficulty=Difficulty(record.get("difficulty", Difficulty.MEDIUM.value)),
        theme=QuizTheme(record.get("theme") or QuizTheme.STANDARD.value),
        is_live=bool(record.get("isLive", False)),
        attempts_count=int(record.get("attemptsCount", 0)),
    )


def attempt_to_record(attempt: QuizAttempt) -> dict[str, Any]:
    return {
        "id": attempt.id,
        "quizId": attempt.quiz_id,
        "userId": attempt.user_id,
        "score": attempt.score,
        "totalMarks": attempt.total_marks,
        "timeTaken": attempt.time_taken_seconds,
        "completedAt": _timestamp_to_record(attempt.completed_at),
        "answers": {
            question_id: answer_to_record(answer)
            for question_id, answer in attempt.answers.items()
        },
        "topicPerformance": dict(attempt.topic_performance),
    }


def attempt_from_record(record: dict[str, Any]) -> QuizAttempt:
    return QuizAttempt(
        id=str(record["id"]),
        quiz_id=str(record["quizId"]),
        user_id=str(record["userId"]),
        answers={
            str(question_id): answer_from_record(value)
            for question_id, value in record.get("answers", {}).items()
        },
        score=int(record["score"]),
        total_marks=int(record["totalMarks"]),
        time_taken_seconds=int(record["timeTaken"]),
        completed_at=_timestamp_from_record(record["completedAt"]),
        topic_performance={
            str(topic): int(value)
            for topic, value in record.get("topicPerformance", {}).items()
        },
    )


def user_to_record(user: UserProfile) -> dict[str, Any]:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role.value,
        "xp": user.xp,
        "level": user.level,
        "badges": list(user.badges),
        "streak": user.streak,
        "isOnboarded": user.is_onboarded,
    }


def user_from_record(record: dict[str, Any]) -> UserProfile:
    return UserProfile(
        id=str(record["id"]),
        name=record.get("name", ""),
        email=record.get("email", ""),
        role=UserRole(record.get("role", UserRole.STUDENT.value)),
        xp=int(record.get("xp", 0)),
        level=int(record.get("level", 1)),
        streak=int(record.get("streak") or 0),
        badges=list(record.get("badges", [])),
        is_onboarded=bool(record.get("isOnboarded", False)),
    )
