"""Daily ten-answer habit loop."""

COMPLETION_THRESHOLD = 10
MAX_QUESTION_CHANGES = 3
