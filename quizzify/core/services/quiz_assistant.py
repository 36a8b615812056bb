"""Client for the external AI collaborator that writes questions and feedback.

The assistant is fallible and non-authoritative: every transport error,
unexpected status, unparsable body or schema mismatch is reported as
:class:`GenerationFailure`, and nothing here reads or writes the record store.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import httpx
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from quizzify.constants.ai_constants import (
    ANALYSIS_MODEL,
    GEMINI_BASE_URL,
    GENERATION_MODEL,
    MAX_GENERATED_QUESTIONS,
    REQUEST_TIMEOUT_SECONDS,
)
from quizzify.core.errors import GenerationFailure, QuizValidationError
from quizzify.core.models import Difficulty, QuestionType, Quiz, QuizAttempt
from quizzify.core.scoring import score_answers
from quizzify.core.serialization import answer_to_record
from quizzify.core.services.quiz_builder import QuestionDraft

logger = logging.getLogger(__name__)


class GeneratedQuestion(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(min_length=1)
    type: QuestionType
    options: list[str] = Field(default_factory=list)
    correct_answer: str | list[str] = Field(alias="correctAnswer")
    explanation: str = ""
    difficulty: Difficulty = Difficulty.MEDIUM
    marks: int = Field(default=1, gt=0)

    def to_draft(self) -> QuestionDraft:
        return QuestionDraft(
            text=self.text,
            correct_answer=self.correct_answer,
            type=self.type,
            options=list(self.options),
            explanation=self.explanation,
            difficulty=self.difficulty,
            marks=self.marks,
        )


class AttemptAnalysis(BaseModel):
    """Narrated feedback on one attempt."""

    model_config = ConfigDict(populate_by_name=True)

    feedback: str
    weak_topics: list[str] = Field(default_factory=list, alias="weakTopics")
    improvement_tips: list[str] = Field(default_factory=list, alias="improvementTips")
    concept_recap: str = Field(default="", alias="conceptRecap")


_GENERATED_QUESTIONS = TypeAdapter(list[GeneratedQuestion])

_QUESTION_SCHEMA: dict[str, Any] = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "text": {"type": "STRING", "description": "The question text"},
            "type": {
                "type": "STRING",
                "enum": [member.value for member in QuestionType],
                "description": "Type of question",
            },
            "options": {
                "type": "ARRAY",
                "items": {"type": "STRING"},
                "description": "Array of options for MCQ (empty for True/False)",
            },
            "correctAnswer": {"type": "STRING", "description": "The correct answer"},
            "explanation": {
                "type": "STRING",
                "description": "Detailed explanation of why this answer is correct",
            },
            "difficulty": {"type": "STRING", "enum": [member.value for member in Difficulty]},
            "marks": {"type": "NUMBER"},
        },
        "required": ["text", "type", "correctAnswer", "explanation", "difficulty", "marks"],
    },
}

_ANALYSIS_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "feedback": {"type": "STRING"},
        "weakTopics": {"type": "ARRAY", "items": {"type": "STRING"}},
        "improvementTips": {"type": "ARRAY", "items": {"type": "STRING"}},
        "conceptRecap": {"type": "STRING"},
    },
    "required": ["feedback", "weakTopics", "improvementTips"],
}


class QuizAssistant(Protocol):
    def generate_questions(self, topic: str, count: int, difficulty: Difficulty) -> list[QuestionDraft]:
        ...

    def analyze_attempt(self, attempt: QuizAttempt, quiz: Quiz) -> AttemptAnalysis:
        ...


class GeminiQuizAssistant:
    """Talks to the Gemini ``generateContent`` REST endpoint with JSON responses."""

    def __init__(
        self,
        api_key: str | None,
        generation_model: str = GENERATION_MODEL,
        analysis_model: str = ANALYSIS_MODEL,
        base_url: str = GEMINI_BASE_URL,
        timeout_seconds: float = REQUEST_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._generation_model = generation_model
        self._analysis_model = analysis_model
        self._base_url = base_url.rstrip("/")
        self._timeout = httpx.Timeout(timeout_seconds, connect=5.0)
        self._transport = transport

    def generate_questions(self, topic: str, count: int, difficulty: Difficulty) -> list[QuestionDraft]:
        topic = topic.strip()
        if not topic:
            raise QuizValidationError("Please enter a topic.")
        if not 1 <= count <= MAX_GENERATED_QUESTIONS:
            raise QuizValidationError(f"Question count must be between 1 and {MAX_GENERATED_QUESTIONS}.")

        prompt = (
            f'Generate a high-quality academic quiz on the topic of "{topic}".\n'
            f"The difficulty level should be {difficulty.value}.\n"
            f"Include {count} questions.\n"
            "Mix MCQ and True/False questions.\n"
            "Provide detailed explanations for each answer.\n"
            "Add real-world examples in the explanations."
        )
        payload = self._generate_json(self._generation_model, prompt, _QUESTION_SCHEMA)
        try:
            questions = _GENERATED_QUESTIONS.validate_python(payload)
        except ValidationError as exc:
            logger.warning("Generated questions for %r did not match the schema: %s", topic, exc)
            raise GenerationFailure("The AI returned questions in an unexpected format.") from exc
        if not questions:
            raise GenerationFailure("The AI did not return any questions.")
        return [question.to_draft() for question in questions]

    def analyze_attempt(self, attempt: QuizAttempt, quiz: Quiz) -> AttemptAnalysis:
        report = score_answers(quiz, attempt.answers)
        performance = {
            "quiz": quiz.title,
            "topic": quiz.topic,
            "score": attempt.score,
            "totalMarks": attempt.total_marks,
            "timeTaken": attempt.time_taken_seconds,
            "timeLimit": quiz.time_limit_seconds,
            "questions": [
                {
                    "text": question.text,
                    "difficulty": question.difficulty.value,
                    "submitted": (
                        answer_to_record(attempt.answers[question.id])
                        if question.id in attempt.answers
                        else None
                    ),
                    "correct": result.is_correct,
                }
                for question, result in zip(quiz.questions, report.question_results)
            ],
        }
        prompt = (
            "Analyze this student's quiz performance and provide constructive feedback, "
            "key areas for improvement, and a summary of their knowledge gaps.\n"
            f"Performance Data: {json.dumps(performance)}"
        )
        payload = self._generate_json(self._analysis_model, prompt, _ANALYSIS_SCHEMA)
        try:
            return AttemptAnalysis.model_validate(payload)
        except ValidationError as exc:
            logger.warning("Analysis for attempt %s did not match the schema: %s", attempt.id, exc)
            raise GenerationFailure("The AI returned feedback in an unexpected format.") from exc

    def _generate_json(self, model: str, prompt: str, schema: dict[str, Any]) -> Any:
        if not self._api_key:
            raise GenerationFailure("No Gemini API key is configured.")

        url = f"{self._base_url}/models/{model}:generateContent"
        body = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": schema,
            },
        }
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.post(url, json=body, headers={"x-goog-api-key": self._api_key})
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as exc:
            logger.warning("Gemini model %s answered HTTP %s", model, exc.response.status_code)
            raise GenerationFailure(f"The AI service answered with status {exc.response.status_code}.") from exc
        except httpx.HTTPError as exc:
            logger.warning("Gemini model %s request failed: %s", model, exc)
            raise GenerationFailure("The AI service could not be reached.") from exc
        except ValueError as exc:
            raise GenerationFailure("The AI service returned a non-JSON response.") from exc

        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as exc:
            logger.warning("Gemini model %s returned no candidate text", model)
            raise GenerationFailure("The AI service returned an empty response.") from exc
        try:
            return json.loads(text)
        except (TypeError, json.JSONDecodeError) as exc:
            raise GenerationFailure("The AI response was not valid JSON.") from exc
