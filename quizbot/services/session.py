import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Union

from quizbot.services.errors import InvalidTransitionError
from quizbot.services.evaluator import Evaluation, evaluate
from quizbot.services.questions import Question, QuestionSet


class Phase(Enum):
    """Coarse-grained session phases."""

    SETUP = "setup"  # User is composing a topic
    ANSWERING = "answering"  # User is answering questions
    RESULTS = "results"  # Final score is shown


class Selection(Enum):
    NONE = "none"


NONE_SELECTED = Selection.NONE

PendingSelection = Union[str, Selection]


@dataclass
class SessionState:
    """Mutable record of one quiz session."""

    phase: Phase = Phase.SETUP
    current_index: int = 0
    score: int = 0
    pending_selection: PendingSelection = NONE_SELECTED
    revealed: bool = False
    topic: str = ""


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of a session, handed to update listeners."""

    phase: Phase
    current_index: int
    score: int
    pending_selection: PendingSelection
    revealed: bool
    topic: str
    total_questions: int
    is_low_score: bool


class QuizSession:
    """
    Quiz session state machine.

    Every transition validates the current phase first and raises
    InvalidTransitionError without touching state when the call is illegal.
    """

    def __init__(self) -> None:
        self.state = SessionState()
        self.question_set: Optional[QuestionSet] = None

    @property
    def total_questions(self) -> int:
        return len(self.question_set) if self.question_set else 0

    @property
    def is_low_score(self) -> bool:
        """True when the score is at most half of the question count."""
        return self.state.score <= self.total_questions / 2

    @property
    def current_question(self) -> Optional[Question]:
        if self.state.phase is not Phase.ANSWERING or not self.question_set:
            return None
        return self.question_set[self.state.current_index]

    @property
    def question_number(self) -> int:
        """1-based position of the current question, 0 outside answering."""
        if self.state.phase is not Phase.ANSWERING:
            return 0
        return self.state.current_index + 1

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            phase=self.state.phase,
            current_index=self.state.current_index,
            score=self.state.score,
            pending_selection=self.state.pending_selection,
            revealed=self.state.revealed,
            topic=self.state.topic,
            total_questions=self.total_questions,
            is_low_score=self.is_low_score,
        )

    def begin(self, question_set: QuestionSet) -> None:
        """Enter the answering phase with a freshly generated question set."""
        self._require_phase("begin", Phase.SETUP)
        if not len(question_set):
            raise InvalidTransitionError("begin", self.state.phase.value, "no questions")

        self.question_set = question_set
        self.state = SessionState(phase=Phase.ANSWERING, topic=self.state.topic)
        logging.info(
            f"Session started: topic={self.state.topic!r}, questions={len(question_set)}"
        )

    def submit(self, option: str) -> Evaluation:
        """Lock in an answer for the current question."""
        self._require_phase("submit_answer", Phase.ANSWERING)
        if self.state.revealed:
            raise InvalidTransitionError(
                "submit_answer", self.state.phase.value, "answer already locked"
            )

        result = evaluate(self.current_question, option)
        self.state = replace(
            self.state,
            pending_selection=option,
            score=self.state.score + int(result.is_correct),
            revealed=True,
        )
        logging.debug(
            f"Question {self.state.current_index + 1} answered, correct={result.is_correct}"
        )
        return result

    def advance(self) -> None:
        """Move past a revealed question, finishing the quiz after the last one."""
        self._require_phase("advance", Phase.ANSWERING)
        if not self.state.revealed:
            raise InvalidTransitionError(
                "advance", self.state.phase.value, "current question not answered"
            )

        if self.state.current_index < self.question_set.last_index:
            self.state = replace(
                self.state,
                current_index=self.state.current_index + 1,
                pending_selection=NONE_SELECTED,
                revealed=False,
            )
            return

        self.state = replace(
            self.state,
            phase=Phase.RESULTS,
            current_index=0,
            pending_selection=NONE_SELECTED,
            revealed=False,
        )
        logging.info(f"Session finished: score={self.state.score}/{self.total_questions}")

    def reset(self) -> None:
        """Drop the question set and return to the initial setup state."""
        self.question_set = None
        self.state = SessionState()

    def _require_phase(self, operation: str, phase: Phase) -> None:
        if self.state.phase is not phase:
            raise InvalidTransitionError(operation, self.state.phase.value)
