import logging
from typing import Callable, Optional

from quizbot.services.errors import (
    EmptyTopicError,
    GenerationError,
    InvalidTransitionError,
    MalformedQuestionError,
    SupersededError,
)
from quizbot.services.evaluator import Evaluation
from quizbot.services.generator import QuestionGenerator
from quizbot.services.questions import Question, QuestionSet
from quizbot.services.session import (
    PendingSelection,
    Phase,
    QuizSession,
    SessionSnapshot,
)

SessionListener = Callable[[SessionSnapshot], None]


class SessionController:
    """
    Public entry point for one chat's quiz session.

    All methods except start_session run to completion synchronously.
    Listeners registered with subscribe() receive a snapshot after every
    successful mutation.
    """

    def __init__(self, generator: QuestionGenerator) -> None:
        self.generator = generator
        self._session = QuizSession()
        self._listeners: list[SessionListener] = []
        # Bumped by restart() so a late generator response can be discarded
        self._epoch = 0
        self._inflight_epoch: Optional[int] = None

    @property
    def phase(self) -> Phase:
        return self._session.state.phase

    @property
    def current_index(self) -> int:
        return self._session.state.current_index

    @property
    def score(self) -> int:
        return self._session.state.score

    @property
    def pending_selection(self) -> PendingSelection:
        return self._session.state.pending_selection

    @property
    def revealed(self) -> bool:
        return self._session.state.revealed

    @property
    def topic(self) -> str:
        return self._session.state.topic

    @property
    def is_low_score(self) -> bool:
        return self._session.is_low_score

    @property
    def total_questions(self) -> int:
        return self._session.total_questions

    @property
    def current_question(self) -> Optional[Question]:
        return self._session.current_question

    @property
    def question_number(self) -> int:
        return self._session.question_number

    @property
    def is_generating(self) -> bool:
        """True while a request started in the current epoch is pending."""
        return self._inflight_epoch is not None and self._inflight_epoch == self._epoch

    def snapshot(self) -> SessionSnapshot:
        return self._session.snapshot()

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Register a state listener and return a callable that removes it.

        Listeners run after the state has changed. An exception raised by a
        listener propagates to the caller of the operation, which has already
        taken effect by then.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def start_session(self, topic: str) -> None:
        """
        Generate questions for a topic and start answering them.

        Raises:
            EmptyTopicError: topic is blank
            InvalidTransitionError: not in setup, or a request is already running
            MalformedQuestionError: generator response breaks the question invariants
            SupersededError: restart() was called while the request was pending
            GenerationError: generator failed
        """
        if self.is_generating:
            raise InvalidTransitionError(
                "start_session", self.phase.value, "a quiz is already being generated"
            )
        if self.phase is not Phase.SETUP:
            raise InvalidTransitionError("start_session", self.phase.value)

        topic = topic.strip()
        if not topic:
            raise EmptyTopicError("topic must not be empty")

        epoch = self._epoch
        self._inflight_epoch = epoch
        try:
            payload = await self.generator.generate(topic)
        except Exception as e:
            if epoch != self._epoch:
                raise SupersededError(
                    f"quiz request for {topic!r} was superseded by a restart", e
                ) from e
            logging.error(f"Question generation failed for topic {topic!r}: {e}")
            self._remember_topic(topic)
            raise GenerationError(f"could not generate a quiz about {topic!r}", e) from e
        finally:
            # A newer request may own the flag after a restart
            if self._inflight_epoch == epoch:
                self._inflight_epoch = None

        if epoch != self._epoch:
            logging.info(f"Discarding quiz for {topic!r}: session was restarted")
            raise SupersededError(f"quiz request for {topic!r} was superseded by a restart")

        try:
            question_set = QuestionSet.from_response(payload)
        except MalformedQuestionError as e:
            logging.warning(f"Malformed quiz for topic {topic!r}: {e}")
            self._remember_topic(topic)
            raise

        self._session.state.topic = topic
        self._session.begin(question_set)
        self._notify()

    def submit_answer(self, option: str) -> Evaluation:
        result = self._session.submit(option)
        self._notify()
        return result

    def advance(self) -> None:
        self._session.advance()
        self._notify()

    def restart(self) -> None:
        """Return to setup with a cleared topic, from any phase."""
        self._epoch += 1
        self._session.reset()
        self._notify()

    def _remember_topic(self, topic: str) -> None:
        self._session.state.topic = topic
        self._notify()

    def _notify(self) -> None:
        snapshot = self._session.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)
