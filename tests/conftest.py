"""
Pytest configuration and shared fixtures for quiz bot tests.
"""

import asyncio
from typing import Optional

import pytest

from quizbot.services.controller import SessionController
from quizbot.services.generator import QuestionGenerator
from quizbot.services.questions import QuestionSet


def make_payload(count: int = 3) -> dict:
    """Build a generator response whose correct answer is always option 'A<n>'."""
    return {
        "quizData": [
            {
                "question": f"Question {n}?",
                "options": [f"A{n}", f"B{n}", f"C{n}", f"D{n}"],
                "answer": f"A{n}",
            }
            for n in range(1, count + 1)
        ]
    }


class FakeGenerator(QuestionGenerator):
    """Generator returning a canned payload, optionally held until released."""

    def __init__(self, payload: Optional[dict] = None, error: Optional[Exception] = None):
        self.payload = payload if payload is not None else make_payload()
        self.error = error
        self.calls: list[str] = []
        self.gate: Optional[asyncio.Event] = None
        self.started = asyncio.Event()

    def hold(self) -> None:
        """Make generate() wait until release() is called."""
        self.gate = asyncio.Event()

    def release(self) -> None:
        self.gate.set()

    async def generate(self, topic: str) -> dict:
        self.calls.append(topic)
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.payload


@pytest.fixture
def payload():
    return make_payload()


@pytest.fixture
def question_set(payload):
    return QuestionSet.from_response(payload)


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def controller(generator):
    return SessionController(generator)
