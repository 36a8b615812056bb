from __future__ import annotations

import json

import httpx
import pytest
from conftest import FIXED_NOW, make_scenario_quiz

from quizzify.core.errors import GenerationFailure, QuizValidationError
from quizzify.core.models import Difficulty, QuestionType, QuizAttempt, SingleAnswer
from quizzify.core.services.quiz_assistant import GeminiQuizAssistant


def _gemini_body(payload) -> dict:
    text = payload if isinstance(payload, str) else json.dumps(payload)
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def _assistant(handler, api_key: str | None = "test-key") -> GeminiQuizAssistant:
    return GeminiQuizAssistant(
        api_key,
        generation_model="gen-model",
        analysis_model="analysis-model",
        base_url="https://example.test/v1beta/",
        transport=httpx.MockTransport(handler),
    )


GENERATED = [
    {
        "text": "Water boils at 100C at sea level.",
        "type": "TRUE_FALSE",
        "options": [],
        "correctAnswer": "True",
        "explanation": "Standard pressure.",
        "difficulty": "EASY",
        "marks": 1,
    },
    {
        "text": "Which gas do plants absorb?",
        "type": "MCQ",
        "options": ["Oxygen", "Carbon dioxide", "Helium", "Neon"],
        "correctAnswer": "Carbon dioxide",
        "explanation": "Photosynthesis.",
        "difficulty": "MEDIUM",
        "marks": 2,
    },
]


def test_generate_questions_success():
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=_gemini_body(GENERATED))

    drafts = _assistant(handler).generate_questions("Science", 2, Difficulty.EASY)

    assert [draft.type for draft in drafts] == [QuestionType.TRUE_FALSE, QuestionType.MCQ]
    assert drafts[1].correct_answer == "Carbon dioxide"
    assert drafts[1].marks == 2
    assert drafts[0].id is None

    request = requests[0]
    assert request.url.path == "/v1beta/models/gen-model:generateContent"
    assert request.headers["x-goog-api-key"] == "test-key"
    body = json.loads(request.content)
    assert "Science" in body["contents"][0]["parts"][0]["text"]
    assert body["generationConfig"]["responseMimeType"] == "application/json"


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"error": "boom"}),
        httpx.Response(200, text="<html>not json</html>"),
        httpx.Response(200, json={"candidates": []}),
        httpx.Response(200, json=_gemini_body("this is not json")),
        httpx.Response(200, json=_gemini_body([{"text": "No answer", "type": "MCQ"}])),
        httpx.Response(200, json=_gemini_body([])),
    ],
)
def test_generation_failures_are_reported(response):
    assistant = _assistant(lambda request: response)

    with pytest.raises(GenerationFailure):
        assistant.generate_questions("Science", 2, Difficulty.MEDIUM)


def test_transport_error_is_a_generation_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GenerationFailure):
        _assistant(handler).generate_questions("Science", 1, Difficulty.MEDIUM)


def test_missing_api_key_never_calls_out():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=_gemini_body(GENERATED))

    with pytest.raises(GenerationFailure):
        _assistant(handler, api_key=None).generate_questions("Science", 2, Difficulty.MEDIUM)
    assert calls == []


@pytest.mark.parametrize("topic, count", [("   ", 5), ("Science", 0), ("Science", 21)])
def test_invalid_generation_request(topic, count):
    assistant = _assistant(lambda request: httpx.Response(200, json=_gemini_body(GENERATED)))

    with pytest.raises(QuizValidationError):
        assistant.generate_questions(topic, count, Difficulty.MEDIUM)


def test_analyze_attempt_success():
    quiz = make_scenario_quiz()
    attempt = QuizAttempt(
        id="att-1",
        quiz_id=quiz.id,
        user_id="user_abcde",
        answers={"q1": SingleAnswer("A")},
        score=1,
        total_marks=4,
        time_taken_seconds=20,
        completed_at=FIXED_NOW,
    )
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        assert request.url.path.endswith("/models/analysis-model:generateContent")
        return httpx.Response(
            200,
            json=_gemini_body(
                {
                    "feedback": "Solid start.",
                    "weakTopics": ["Scenarios"],
                    "improvementTips": ["Read every option."],
                }
            ),
        )

    analysis = _assistant(handler).analyze_attempt(attempt, quiz)

    assert analysis.feedback == "Solid start."
    assert analysis.weak_topics == ["Scenarios"]
    assert analysis.improvement_tips == ["Read every option."]
    assert analysis.concept_recap == ""
    prompt = seen[0]["contents"][0]["parts"][0]["text"]
    assert '"score": 1' in prompt
    assert '"totalMarks": 4' in prompt


def test_analysis_schema_mismatch():
    quiz = make_scenario_quiz()
    attempt = QuizAttempt(
        id="att-1",
        quiz_id=quiz.id,
        user_id="user_abcde",
        answers={},
        score=0,
        total_marks=4,
        time_taken_seconds=60,
        completed_at=FIXED_NOW,
    )
    assistant = _assistant(lambda request: httpx.Response(200, json=_gemini_body({"weakTopics": []})))

    with pytest.raises(GenerationFailure):
        assistant.analyze_attempt(attempt, quiz)
