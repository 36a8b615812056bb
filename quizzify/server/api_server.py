"""FastAPI server exposing quiz, session, attempt and profile endpoints."""

from __future__ import annotations

import logging
from typing import Literal

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field
import uvicorn

from quizzify.constants.about import APP_ABOUT_TEXT, APP_NAME, APP_VERSION, HELP_TEXT
from quizzify.constants.ai_constants import ANALYSIS_FAILED_MESSAGE, GENERATION_FAILED_MESSAGE
from quizzify.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quizzify.core.errors import (
    AttemptNotFoundError,
    GenerationFailure,
    QuizNotFoundError,
    QuizValidationError,
    SessionNotFoundError,
    SessionStateError,
    StorageError,
)
from quizzify.core.markdown_renderer import renderer
from quizzify.core.models import (
    Difficulty,
    QuestionType,
    Quiz,
    QuizTheme,
    UserProfile,
    UserRole,
)
from quizzify.core.quiz_manager import QuizManager
from quizzify.core.serialization import answer_to_record, attempt_to_record, user_to_record
from quizzify.core.services.quiz_builder import QuestionDraft, QuizDraft
from quizzify.core.services.quiz_session import SessionSnapshot

logger = logging.getLogger(__name__)


class QuestionPayload(BaseModel):
    """Payload schema for one manually authored question."""

    text: str
    correct_answer: str | list[str] | None = None
    type: QuestionType = QuestionType.MCQ
    options: list[str] = Field(default_factory=list)
    explanation: str = ""
    difficulty: Difficulty = Difficulty.MEDIUM
    marks: int = 1
    image: str | None = None
    id: str | None = None

    def to_draft(self) -> QuestionDraft:
        return QuestionDraft(
            text=self.text,
            correct_answer=self.correct_answer,
            type=self.type,
            options=list(self.options),
            explanation=self.explanation,
            difficulty=self.difficulty,
            marks=self.marks,
            image=self.image,
            id=self.id,
        )


class QuizPayload(BaseModel):
    title: str
    questions: list[QuestionPayload]
    topic: str = ""
    description: str = ""
    difficulty: Difficulty = Difficulty.MEDIUM
    theme: QuizTheme = QuizTheme.STANDARD
    time_limit_minutes: int | None = None

    def to_draft(self) -> QuizDraft:
        return QuizDraft(
            title=self.title,
            topic=self.topic,
            description=self.description,
            questions=[question.to_draft() for question in self.questions],
            difficulty=self.difficulty,
            theme=self.theme,
            time_limit_minutes=self.time_limit_minutes,
        )


class GeneratePayload(BaseModel):
    topic: str
    count: int = 5
    difficulty: Difficulty = Difficulty.MEDIUM
    theme: QuizTheme = QuizTheme.STANDARD


class ImportPayload(BaseModel):
    """Plain-text quiz in the import format (see ``GET /quizzes/import-format``)."""

    title: str
    text: str
    topic: str = ""
    theme: QuizTheme = QuizTheme.STANDARD


class StartSessionPayload(BaseModel):
    code: str


class NavigatePayload(BaseModel):
    direction: Literal[-1, 1]


class AnswerPayload(BaseModel):
    """Payload schema for a submitted answer."""

    question_id: str
    value: str | list[str]


class OnboardingPayload(BaseModel):
    name: str
    email: str = ""
    role: UserRole = UserRole.STUDENT


def _get_quiz_manager_dependency(quiz_manager: QuizManager):
    def dependency() -> QuizManager:
        return quiz_manager

    return dependency


def _quiz_summary(quiz: Quiz) -> dict[str, object]:
    return {
        "id": quiz.id,
        "code": quiz.code,
        "title": quiz.title,
        "description": quiz.description,
        "topic": quiz.topic,
        "difficulty": quiz.difficulty.value,
        "theme": quiz.theme.value,
        "time_limit_minutes": quiz.time_limit_minutes,
        "question_count": len(quiz.questions),
        "total_marks": quiz.total_marks,
        "attempts_count": quiz.attempts_count,
        "creator_id": quiz.creator_id,
        "created_at": quiz.created_at.isoformat(),
    }


def _session_view(snapshot: SessionSnapshot) -> dict[str, object]:
    question = snapshot.current_question
    question_view = None
    if question is not None:
        # Correct answers and explanations stay hidden until the results view.
        question_view = {
            "id": question.id,
            "index": snapshot.cursor,
            "type": question.type.value,
            "html": renderer.render_fragment(question.text),
            "options": [
                {"value": option, "html": renderer.render_inline(option)}
                for option in question.options
            ],
            "image": question.image,
            "marks": question.marks,
        }
    quiz = snapshot.quiz
    return {
        "session_id": snapshot.session_id,
        "state": snapshot.state.name,
        "quiz": _quiz_summary(quiz) if quiz is not None else None,
        "cursor": snapshot.cursor,
        "remaining_seconds": snapshot.remaining_seconds,
        "question": question_view,
        "answers": {
            question_id: answer_to_record(answer) for question_id, answer in snapshot.answers.items()
        },
        "attempt_id": snapshot.attempt_id,
        "submit_required": snapshot.submit_required,
    }


def _user_view(user: UserProfile) -> dict[str, object]:
    return user_to_record(user)


def _install_error_handlers(app: FastAPI) -> None:
    def _error(status_code: int, detail: str) -> JSONResponse:
        return JSONResponse(status_code=status_code, content={"detail": detail})

    @app.exception_handler(QuizNotFoundError)
    @app.exception_handler(AttemptNotFoundError)
    @app.exception_handler(SessionNotFoundError)
    async def handle_not_found(request: Request, exc: Exception) -> JSONResponse:
        return _error(404, str(exc))

    @app.exception_handler(QuizValidationError)
    async def handle_validation(request: Request, exc: QuizValidationError) -> JSONResponse:
        return _error(422, str(exc))

    @app.exception_handler(GenerationFailure)
    async def handle_generation_failure(request: Request, exc: GenerationFailure) -> JSONResponse:
        logger.warning("AI request for %s failed: %s", request.url.path, exc)
        message = ANALYSIS_FAILED_MESSAGE if request.url.path.endswith("/analysis") else GENERATION_FAILED_MESSAGE
        return JSONResponse(status_code=502, content={"detail": message, "reason": str(exc)})

    @app.exception_handler(StorageError)
    async def handle_storage_error(request: Request, exc: StorageError) -> JSONResponse:
        logger.error("Storage failure on %s: %s", request.url.path, exc)
        return _error(500, str(exc))

    @app.exception_handler(SessionStateError)
    async def handle_conflict(request: Request, exc: SessionStateError) -> JSONResponse:
        return _error(409, str(exc))


def create_api_app(quiz_manager: QuizManager) -> FastAPI:
    """Create a FastAPI application wired to the provided quiz manager."""
    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION, description=APP_ABOUT_TEXT)
    quiz_manager_dep = _get_quiz_manager_dependency(quiz_manager)
    _install_error_handlers(app)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    # --- Quizzes ---

    @app.get("/quizzes")
    def list_quizzes(manager: QuizManager = Depends(quiz_manager_dep)) -> list[dict[str, object]]:
        return [_quiz_summary(quiz) for quiz in manager.list_quizzes()]

    @app.post("/quizzes", status_code=201)
    def create_quiz(
        payload: QuizPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        return _quiz_summary(manager.create_quiz(payload.to_draft()))

    @app.post("/quizzes/generate", status_code=201)
    def generate_quiz(
        payload: GeneratePayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        quiz = manager.generate_quiz(payload.topic, payload.count, payload.difficulty, payload.theme)
        return _quiz_summary(quiz)

    @app.get("/quizzes/import-format")
    def import_format() -> dict[str, str]:
        return {"format": HELP_TEXT}

    @app.post("/quizzes/import", status_code=201)
    def import_quiz(
        payload: ImportPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        quiz = manager.import_quiz_text(payload.text, payload.title, payload.topic, theme=payload.theme)
        return _quiz_summary(quiz)

    @app.get("/quizzes/{code}")
    def get_quiz(code: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        return _quiz_summary(manager.get_quiz_by_code(code))

    @app.get("/quizzes/{code}/export", response_class=PlainTextResponse)
    def export_quiz(code: str, manager: QuizManager = Depends(quiz_manager_dep)) -> str:
        return manager.export_quiz(code)

    # --- Sessions ---

    @app.post("/sessions", status_code=201)
    def start_session(
        payload: StartSessionPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        return _session_view(manager.start_session(payload.code))

    @app.get("/sessions/{session_id}")
    def get_session(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        return _session_view(manager.get_session(session_id))

    @app.post("/sessions/{session_id}/navigate")
    def navigate(
        session_id: str,
        payload: NavigatePayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        return _session_view(manager.navigate(session_id, payload.direction))

    @app.post("/sessions/{session_id}/answers")
    def record_answer(
        session_id: str,
        payload: AnswerPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        return _session_view(manager.record_answer(session_id, payload.question_id, payload.value))

    @app.post("/sessions/{session_id}/submit")
    def submit(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        attempt_id = manager.submit(session_id)
        return {"attempt_id": attempt_id}

    @app.delete("/sessions/{session_id}", status_code=204)
    def end_session(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> None:
        manager.end_session(session_id)

    # --- Attempts ---

    @app.get("/attempts/{attempt_id}")
    def get_attempt(attempt_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        attempt, quiz, report = manager.get_attempt_report(attempt_id)
        review = []
        for question, result in zip(quiz.questions, report.question_results):
            submitted = attempt.answers.get(question.id)
            review.append(
                {
                    "question_id": question.id,
                    "html": renderer.render_fragment(question.text),
                    "submitted": answer_to_record(submitted) if submitted is not None else None,
                    "correct_answer": answer_to_record(question.correct_answer),
                    "is_correct": result.is_correct,
                    "marks_awarded": result.marks_awarded,
                    "explanation": question.explanation,
                }
            )
        return {
            "attempt": attempt_to_record(attempt),
            "quiz": _quiz_summary(quiz),
            "percentage": report.percentage,
            "correct_count": report.correct_count,
            "answered_count": report.answered_count,
            "review": review,
        }

    @app.get("/attempts/{attempt_id}/analysis")
    def analyze_attempt(attempt_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        return manager.analyze_attempt(attempt_id).model_dump(by_alias=True)

    # --- User profile ---

    @app.get("/user")
    def get_user(manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        return _user_view(manager.get_user())

    @app.put("/user")
    def complete_onboarding(
        payload: OnboardingPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        return _user_view(manager.complete_onboarding(payload.name, payload.email, payload.role))

    return app


def run_api_server(
    quiz_manager: QuizManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> None:
    """Serve the API with uvicorn until interrupted."""
    app = create_api_app(quiz_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)
    server.run()
