"""Defaults for the Gemini-backed quiz assistant."""

GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
GENERATION_MODEL: str = "gemini-3-pro-preview"
ANALYSIS_MODEL: str = "gemini-3-flash-preview"
REQUEST_TIMEOUT_SECONDS: float = 30.0
MAX_GENERATED_QUESTIONS: int = 20

GENERATION_FAILED_MESSAGE: str = "AI Generation failed. Try again."
ANALYSIS_FAILED_MESSAGE: str = "AI analysis is unavailable right now. Your score has been saved."
