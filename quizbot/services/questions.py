from dataclasses import dataclass
from typing import Iterator

from quizbot.services.errors import MalformedQuestionError


@dataclass(frozen=True)
class Question:
    """A single multiple-choice question."""

    prompt: str
    options: tuple[str, ...]
    correct_option: str

    def __post_init__(self) -> None:
        matches = self.options.count(self.correct_option)
        if matches != 1:
            raise MalformedQuestionError(
                f"correct option {self.correct_option!r} appears {matches} times "
                f"in the options of {self.prompt!r}"
            )

    @property
    def correct_index(self) -> int:
        return self.options.index(self.correct_option)


@dataclass(frozen=True)
class QuestionSet:
    """Ordered, immutable sequence of questions for one session."""

    questions: tuple[Question, ...]

    def __len__(self) -> int:
        return len(self.questions)

    def __getitem__(self, index: int) -> Question:
        return self.questions[index]

    def __iter__(self) -> Iterator[Question]:
        return iter(self.questions)

    @property
    def last_index(self) -> int:
        return len(self.questions) - 1

    @classmethod
    def from_response(cls, payload: dict) -> "QuestionSet":
        """
        Build a question set from a generator response.

        The payload has the shape ``{"quizData": [{"question": str,
        "options": [str, ...], "answer": str}, ...]}``.

        Raises:
            MalformedQuestionError: the list is missing or empty, or an item
                is incomplete or its answer is not exactly one of its options.
        """
        if not isinstance(payload, dict):
            raise MalformedQuestionError("generator response is not an object")

        items = payload.get("quizData")
        if not isinstance(items, list):
            raise MalformedQuestionError("generator response has no quizData list")
        if not items:
            raise MalformedQuestionError("generator returned no questions")

        return cls(tuple(_parse_question(pos, item) for pos, item in enumerate(items, 1)))


def _parse_question(position: int, item: object) -> Question:
    if not isinstance(item, dict):
        raise MalformedQuestionError(f"question {position} is not an object")

    missing = [key for key in ("question", "options", "answer") if key not in item]
    if missing:
        raise MalformedQuestionError(
            f"question {position} is missing {', '.join(missing)}"
        )

    options = item["options"]
    if not isinstance(options, list) or not all(isinstance(o, str) for o in options):
        raise MalformedQuestionError(f"question {position} options must be strings")

    try:
        return Question(
            prompt=str(item["question"]),
            options=tuple(options),
            correct_option=str(item["answer"]),
        )
    except MalformedQuestionError as e:
        raise MalformedQuestionError(f"question {position}: {e}") from e
