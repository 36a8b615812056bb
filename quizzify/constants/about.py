"""Static metadata describing Quizzify."""

APP_NAME = "Quizzify"
APP_VERSION = "0.1"
APP_ABOUT_TEXT = (
    "Quizzify runs timed quizzes in the browser: join by code, answer under a countdown, "
    "and review AI-narrated feedback on every attempt."
)

HELP_TEXT = (
    "Quizzes can be authored as plain text and imported. Separate questions with a blank line "
    "or '---':\n\n"
    "Q: What is $2 + 2$?\n"
    "A: 3\nB: 4\nC: 5\nD: 22\n"
    "CORRECT: B\nMARKS: 1\n\n"
    "TYPE: TRUE_FALSE\n"
    "Q: The sun is a star.\n"
    "CORRECT: True\n"
    "EXPLANATION: The sun is a G-type main-sequence star."
)
