"""File names and locations of the persisted record collections."""

DEFAULT_DATA_DIR: str = "quizzify_data"
QUIZZES_FILE: str = "quizzify_quizzes.json"
ATTEMPTS_FILE: str = "quizzify_attempts.json"
USER_FILE: str = "quizzify_user.json"
