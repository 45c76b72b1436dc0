from quizbot.keyboards.builders import (
    build_answers_keyboard,
    build_revealed_keyboard,
    build_retry_keyboard,
    build_results_keyboard,
)

__all__ = [
    "build_answers_keyboard",
    "build_revealed_keyboard",
    "build_retry_keyboard",
    "build_results_keyboard",
]
