from typing import Optional


class QuizError(Exception):
    """Base class for quiz session errors."""


class GenerationError(QuizError):
    """Question generation failed or returned no usable data."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class MalformedQuestionError(GenerationError):
    """Generator response violates the question set invariants."""


class EmptyTopicError(GenerationError):
    """A quiz was requested for a blank topic."""


class InvalidTransitionError(QuizError):
    """Operation is not legal in the current session phase."""

    def __init__(self, operation: str, phase: str, reason: str = "") -> None:
        message = f"{operation} is not allowed in phase {phase}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.operation = operation
        self.phase = phase


class SupersededError(GenerationError):
    """A restart made a pending quiz request obsolete."""
