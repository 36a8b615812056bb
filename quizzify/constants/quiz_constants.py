"""Quiz-related constants shared across the engine and the API."""

JOIN_CODE_LENGTH: int = 6
JOIN_CODE_ALPHABET: str = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
RECORD_ID_LENGTH: int = 9
USER_ID_PREFIX: str = "user_"
USER_ID_LENGTH: int = 5
MAX_ID_GENERATION_ATTEMPTS: int = 32

MINUTES_PER_QUESTION: int = 2
DEFAULT_QUESTION_MARKS: int = 1
TICK_INTERVAL_SECONDS: float = 1.0

XP_PER_MARK: int = 10
XP_PER_LEVEL: int = 500
