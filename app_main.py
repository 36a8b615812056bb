"""Application entry point for the Quizzify server."""

from __future__ import annotations

from quizzify.core.quiz_manager import QuizManager
from quizzify.core.services.quiz_assistant import GeminiQuizAssistant
from quizzify.core.services.record_store import RecordStore
from quizzify.core.services.session_ticker import SessionTicker
from quizzify.server.api_server import run_api_server
from quizzify.utils.logging_config import configure_logging
from quizzify.utils.settings import load_settings


def main() -> None:
    """Initialize logging, open the record store, and serve the API."""
    logger = configure_logging()
    settings = load_settings()
    logger.info("Starting Quizzify with data in %s", settings.data_dir.resolve())

    store = RecordStore(settings.data_dir).open()
    assistant = GeminiQuizAssistant(
        api_key=settings.gemini_api_key,
        generation_model=settings.gemini_model,
        analysis_model=settings.analysis_model,
        timeout_seconds=settings.ai_timeout_seconds,
    )
    if not settings.gemini_api_key:
        logger.warning("QUIZZIFY_GEMINI_API_KEY is not set; AI generation and feedback are disabled.")

    quiz_manager = QuizManager(store, assistant=assistant, ticker_factory=SessionTicker)
    logger.info("API available at http://%s:%d/", settings.host, settings.port)
    try:
        run_api_server(quiz_manager=quiz_manager, host=settings.host, port=settings.port)
    finally:
        quiz_manager.shutdown()


if __name__ == "__main__":
    main()
