import asyncio

import pytest

from quizbot.services.controller import SessionController
from quizbot.services.errors import (
    EmptyTopicError,
    GenerationError,
    InvalidTransitionError,
    MalformedQuestionError,
    SupersededError,
)
from quizbot.services.session import NONE_SELECTED, Phase
from tests.conftest import FakeGenerator, make_payload


def assert_initial(controller: SessionController) -> None:
    assert controller.phase is Phase.SETUP
    assert controller.score == 0
    assert controller.current_index == 0
    assert controller.pending_selection is NONE_SELECTED
    assert controller.revealed is False


async def test_start_session_enters_answering(controller, generator):
    await controller.start_session("  history ")

    assert generator.calls == ["history"]
    assert controller.phase is Phase.ANSWERING
    assert controller.topic == "history"
    assert controller.total_questions == 3
    assert controller.current_question.prompt == "Question 1?"
    assert controller.is_generating is False


async def test_history_scenario_scores_two_of_three(controller):
    await controller.start_session("history")

    for option in ["A1", "B2", "A3"]:
        controller.submit_answer(option)
        controller.advance()

    assert controller.phase is Phase.RESULTS
    assert controller.score == 2
    assert controller.is_low_score is False


@pytest.mark.parametrize("count", [1, 2, 5, 8])
async def test_full_run_counts_correct_answers(count):
    controller = SessionController(FakeGenerator(make_payload(count)))
    await controller.start_session("numbers")

    expected = 0
    for n in range(1, count + 1):
        correct = n % 2 == 1
        expected += int(correct)
        result = controller.submit_answer(f"A{n}" if correct else f"C{n}")
        assert result.is_correct is correct
        controller.advance()

    assert controller.phase is Phase.RESULTS
    assert controller.score == expected


async def test_empty_topic_is_rejected(controller, generator):
    with pytest.raises(EmptyTopicError):
        await controller.start_session("   ")

    assert generator.calls == []
    assert_initial(controller)


async def test_empty_question_list_is_generation_error(controller, generator):
    generator.payload = {"quizData": []}

    with pytest.raises(GenerationError):
        await controller.start_session("nothing")

    assert controller.phase is Phase.SETUP
    assert controller.topic == "nothing"


async def test_answer_outside_options_is_malformed(controller, generator):
    generator.payload = {
        "quizData": [{"question": "Q", "options": ["a", "b"], "answer": "c"}]
    }

    with pytest.raises(MalformedQuestionError):
        await controller.start_session("broken")

    assert controller.phase is Phase.SETUP
    assert controller.total_questions == 0


async def test_generator_failure_keeps_topic_and_cause(controller, generator):
    cause = ConnectionError("offline")
    generator.error = cause

    with pytest.raises(GenerationError) as exc_info:
        await controller.start_session("chemistry")

    assert exc_info.value.cause is cause
    assert exc_info.value.__cause__ is cause
    assert controller.phase is Phase.SETUP
    assert controller.topic == "chemistry"

    # Retry with the preserved topic
    generator.error = None
    await controller.start_session(controller.topic)
    assert controller.phase is Phase.ANSWERING


async def test_start_session_rejected_outside_setup(controller, generator):
    await controller.start_session("history")

    with pytest.raises(InvalidTransitionError):
        await controller.start_session("again")

    assert generator.calls == ["history"]
    assert controller.phase is Phase.ANSWERING


async def test_second_start_while_in_flight_is_rejected(controller, generator):
    generator.hold()
    first = asyncio.create_task(controller.start_session("history"))
    await generator.started.wait()

    assert controller.is_generating is True
    assert controller.phase is Phase.SETUP
    with pytest.raises(InvalidTransitionError, match="already being generated"):
        await controller.start_session("geography")

    generator.release()
    await first

    assert generator.calls == ["history"]
    assert controller.topic == "history"
    assert controller.phase is Phase.ANSWERING


async def test_cancelled_start_leaves_state_unchanged(controller, generator):
    generator.hold()
    task = asyncio.create_task(controller.start_session("history"))
    await generator.started.wait()
    before = controller.snapshot()

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert controller.snapshot() == before
    assert controller.topic == ""
    assert controller.total_questions == 0
    assert controller.is_generating is False


async def test_restart_supersedes_in_flight_request(controller, generator):
    generator.hold()
    task = asyncio.create_task(controller.start_session("history"))
    await generator.started.wait()

    controller.restart()
    generator.release()

    with pytest.raises(SupersededError):
        await task
    assert_initial(controller)
    assert controller.topic == ""


async def test_double_submit_changes_nothing(controller):
    await controller.start_session("history")
    controller.submit_answer("A1")

    with pytest.raises(InvalidTransitionError):
        controller.submit_answer("B1")

    assert controller.score == 1
    assert controller.pending_selection == "A1"


async def test_advance_before_submit_fails(controller):
    await controller.start_session("history")

    with pytest.raises(InvalidTransitionError):
        controller.advance()

    assert controller.current_index == 0


def test_submit_in_setup_fails(controller):
    with pytest.raises(InvalidTransitionError):
        controller.submit_answer("A1")
    assert_initial(controller)


@pytest.mark.parametrize("steps", [0, 1, 2, 6])
async def test_restart_from_any_phase(controller, steps):
    await controller.start_session("history")
    for n in range(steps):
        if n % 2 == 0:
            controller.submit_answer(f"A{n // 2 + 1}")
        else:
            controller.advance()

    controller.restart()

    assert_initial(controller)
    assert controller.topic == ""
    assert controller.total_questions == 0


def test_restart_in_setup_is_legal(controller):
    controller.restart()
    assert_initial(controller)


async def test_listeners_receive_snapshots(controller):
    seen = []
    unsubscribe = controller.subscribe(seen.append)

    await controller.start_session("history")
    controller.submit_answer("A1")
    controller.advance()
    unsubscribe()
    controller.restart()

    assert [s.phase for s in seen] == [Phase.ANSWERING, Phase.ANSWERING, Phase.ANSWERING]
    assert seen[1].score == 1
    assert seen[1].revealed is True
    assert seen[2].current_index == 1


async def test_rejected_operation_does_not_notify(controller):
    seen = []
    controller.subscribe(seen.append)

    with pytest.raises(InvalidTransitionError):
        controller.advance()

    assert seen == []


async def test_restart_allows_new_topic_while_old_request_pending(controller, generator):
    generator.hold()
    stale = asyncio.create_task(controller.start_session("history"))
    await generator.started.wait()

    controller.restart()
    assert controller.is_generating is False
    fresh = asyncio.create_task(controller.start_session("geography"))
    await asyncio.sleep(0)
    assert controller.is_generating is True

    generator.release()
    with pytest.raises(SupersededError):
        await stale
    await fresh

    assert generator.calls == ["history", "geography"]
    assert controller.phase is Phase.ANSWERING
    assert controller.topic == "geography"
    assert controller.is_generating is False


async def test_failure_after_restart_is_superseded(controller, generator):
    generator.hold()
    generator.error = ConnectionError("offline")
    task = asyncio.create_task(controller.start_session("history"))
    await generator.started.wait()

    controller.restart()
    generator.release()

    with pytest.raises(SupersededError) as exc_info:
        await task
    assert isinstance(exc_info.value.cause, ConnectionError)
    assert controller.topic == ""


async def test_listener_error_surfaces_after_state_changed(controller):
    await controller.start_session("history")

    def broken(snapshot):
        raise RuntimeError("listener failed")

    controller.subscribe(broken)
    with pytest.raises(RuntimeError, match="listener failed"):
        controller.submit_answer("A1")

    assert controller.score == 1
    assert controller.revealed is True
