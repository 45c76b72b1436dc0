from dataclasses import dataclass

from quizbot.services.questions import Question


@dataclass(frozen=True)
class Evaluation:
    """Outcome of checking one answer."""

    is_correct: bool


def evaluate(question: Question, selected_option: str) -> Evaluation:
    """Check the selected option against the question's correct option."""
    return Evaluation(is_correct=selected_option == question.correct_option)
