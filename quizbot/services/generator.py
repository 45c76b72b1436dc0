import json
import logging
import time
from pathlib import Path
from typing import Optional

from openai import AsyncOpenAI

from quizbot import config

SYSTEM_PROMPT = """You write multiple-choice quizzes.
Reply with a single JSON object and nothing else, in this exact shape:
{"quizData": [{"question": "...", "options": ["...", "...", "...", "..."], "answer": "..."}]}
Rules:
- Write exactly {count} questions about the topic given by the user.
- Every question has exactly 4 distinct options.
- "answer" is copied verbatim from one of the options.
- Use the same language as the topic.
"""


class QuestionGenerator:
    """Boundary to whatever produces quiz questions for a topic."""

    async def generate(self, topic: str) -> dict:
        """Return a response of the form {"quizData": [{question, options, answer}]}."""
        raise NotImplementedError


class OpenAIQuestionGenerator(QuestionGenerator):
    """Generates questions with an OpenAI-compatible chat completion API."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gpt-4o-mini",
        base_url: Optional[str] = None,
        question_count: int = 5,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        self.model = model
        self.question_count = question_count
        if client is None and api_key:
            client = AsyncOpenAI(api_key=api_key, base_url=base_url or None)
        self.client = client

    async def generate(self, topic: str) -> dict:
        if self.client is None:
            raise RuntimeError("OPENAI_API_KEY is not set, cannot generate questions")

        start = time.perf_counter()
        response = await self.client.chat.completions.create(
            model=self.model,
            response_format={"type": "json_object"},
            messages=[
                {
                    "role": "system",
                    "content": SYSTEM_PROMPT.replace("{count}", str(self.question_count)),
                },
                {"role": "user", "content": topic},
            ],
        )
        latency = int((time.perf_counter() - start) * 1000)
        tokens = response.usage.total_tokens if response.usage else 0
        logging.info(f"Quiz generated for {topic!r}: {tokens} tokens, {latency}ms")

        content = response.choices[0].message.content or ""
        return json.loads(content)


class FileQuestionGenerator(QuestionGenerator):
    """
    Serves questions from a bundled JSON file.

    File layout: {"<topic key>": {"title": str, "questions": [
    {"question": str, "options": [str, ...], "correct": int}]}}
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._quizzes: Optional[dict] = None

    def load_quizzes(self) -> dict:
        """Load quizzes from JSON file."""
        if self._quizzes is None:
            with self.path.open(encoding="utf-8") as f:
                self._quizzes = json.load(f)
        return self._quizzes

    def get_topics(self) -> list[str]:
        """Get display titles of available topics."""
        return [quiz.get("title", key) for key, quiz in self.load_quizzes().items()]

    def find_topic(self, topic: str) -> Optional[str]:
        """Match a free-text topic against topic keys and titles."""
        wanted = topic.strip().casefold()
        for key, quiz in self.load_quizzes().items():
            if wanted in (key.casefold(), quiz.get("title", key).casefold()):
                return key
        return None

    async def generate(self, topic: str) -> dict:
        key = self.find_topic(topic)
        if key is None:
            logging.info(f"No bundled quiz for topic {topic!r}")
            return {"quizData": []}

        return {
            "quizData": [_to_response_item(q) for q in self.load_quizzes()[key]["questions"]]
        }


def _to_response_item(question: dict) -> dict:
    options = question.get("options", [])
    # Stored as an option index; out of range leaves the answer blank
    correct_idx = int(question.get("correct", -1))
    answer = options[correct_idx] if 0 <= correct_idx < len(options) else ""
    return {"question": question.get("question", ""), "options": options, "answer": answer}


def build_generator() -> QuestionGenerator:
    """Create the generator selected by configuration."""
    if config.quiz_source == "file":
        logging.info(f"Using bundled quizzes from {config.quiz_path}")
        return FileQuestionGenerator(config.quiz_path)

    logging.info(f"Using OpenAI model {config.openai_model} for quizzes")
    return OpenAIQuestionGenerator(
        api_key=config.openai_api_key,
        model=config.openai_model,
        base_url=config.openai_base_url,
        question_count=config.question_count,
    )
