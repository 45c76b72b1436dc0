import logging
from aiogram import Router, F
from aiogram.fsm.context import FSMContext
from aiogram.types import Message, CallbackQuery
from aiogram.exceptions import TelegramBadRequest

from quizbot.states import QuizState
from quizbot.keyboards import (
    build_answers_keyboard,
    build_revealed_keyboard,
    build_retry_keyboard,
    build_results_keyboard,
)
from quizbot.services.controller import SessionController
from quizbot.services.errors import (
    GenerationError,
    InvalidTransitionError,
    SupersededError,
)
from quizbot.services.formatting import (
    format_generation_error,
    format_question,
    format_results,
    format_reveal,
)
from quizbot.services.registry import SessionRegistry
from quizbot.services.session import Phase

router = Router()


@router.message(QuizState.entering_topic, F.text)
async def receive_topic(msg: Message, state: FSMContext, registry: SessionRegistry) -> None:
    """Handle a typed topic and generate a quiz for it."""
    controller = registry.get(msg.chat.id)
    await generate_quiz(msg, state, controller, msg.text)


@router.callback_query(QuizState.entering_topic, F.data == "retry")
async def retry_topic(cb: CallbackQuery, state: FSMContext, registry: SessionRegistry) -> None:
    """Retry generation with the topic kept from the failed attempt."""
    controller = registry.get(cb.message.chat.id)
    await cb.answer()
    await generate_quiz(cb.message, state, controller, controller.topic)


async def generate_quiz(
    msg: Message, state: FSMContext, controller: SessionController, topic: str
) -> None:
    """Run start_session and report the outcome to the chat."""
    if not topic.strip():
        await msg.answer("Please send a topic for your quiz:")
        return
    if controller.is_generating:
        await msg.answer("⏳ Still working on your previous topic, hold on.")
        return

    await msg.answer("⏳ Generating your quiz...")
    try:
        await controller.start_session(topic)
    except InvalidTransitionError as e:
        logging.warning(f"Quiz request rejected in chat {msg.chat.id}: {e}")
        await msg.answer("A quiz is already running. Press /start to begin a new one.")
        return
    except SupersededError:
        # /start was pressed meanwhile; the new prompt is already on screen
        logging.info(f"Dropped superseded quiz request in chat {msg.chat.id}")
        return
    except GenerationError as e:
        logging.warning(f"Quiz generation failed in chat {msg.chat.id}: {e}")
        await msg.answer(
            format_generation_error(controller.topic or topic),
            reply_markup=build_retry_keyboard(),
            parse_mode="MarkdownV2",
        )
        return

    await ask_question(msg, state, controller)


async def ask_question(msg: Message, state: FSMContext, controller: SessionController) -> None:
    """Send the current question to the user."""
    question = controller.current_question
    keyboard, order = build_answers_keyboard(question.options, controller.current_index)

    try:
        await msg.answer(
            format_question(controller), reply_markup=keyboard, parse_mode="MarkdownV2"
        )
    except TelegramBadRequest as e:
        logging.warning(f"Error sending question: {e}")
        # Fallback to plain text
        await msg.answer(question.prompt[:4000], reply_markup=keyboard, parse_mode=None)

    await state.update_data(order=order)
    await state.set_state(QuizState.answering)


@router.callback_query(QuizState.answering, F.data.startswith("ans:"))
async def handle_answer(cb: CallbackQuery, state: FSMContext, registry: SessionRegistry) -> None:
    """Handle user's answer."""
    controller = registry.get(cb.message.chat.id)
    question = controller.current_question

    # Parse callback data
    try:
        _, qidx_str, opt_str = cb.data.split(":")
        qidx = int(qidx_str)
        opt = int(opt_str)
    except ValueError as e:
        logging.error(f"Invalid callback format: {cb.data} - {e}")
        await cb.answer("❌ Could not read that answer")
        return

    # Check if this is the current question
    if question is None or qidx != controller.current_index or not 0 <= opt < len(question.options):
        await cb.answer("⚠️ This question is already done", show_alert=True)
        return

    try:
        result = controller.submit_answer(question.options[opt])
    except InvalidTransitionError as e:
        logging.debug(f"Answer rejected in chat {cb.message.chat.id}: {e}")
        await cb.answer("⚠️ You already answered this question", show_alert=True)
        return

    await cb.answer("✅ Correct!" if result.is_correct else "❌ Wrong")

    data = await state.get_data()
    order = data.get("order") or list(range(len(question.options)))
    keyboard = build_revealed_keyboard(
        question.options,
        question.correct_index,
        opt,
        order,
        is_last=controller.question_number == controller.total_questions,
    )
    try:
        await cb.message.edit_text(
            format_reveal(controller), reply_markup=keyboard, parse_mode="MarkdownV2"
        )
    except TelegramBadRequest as e:
        logging.warning(f"Error revealing answer: {e}")
        await cb.message.answer(
            f"Correct answer: {question.correct_option}", reply_markup=keyboard, parse_mode=None
        )


@router.callback_query(QuizState.answering, F.data == "answered")
async def handle_locked_option(cb: CallbackQuery) -> None:
    """Handle taps on options of an already answered question."""
    await cb.answer("⚠️ You already answered this question")


@router.callback_query(QuizState.answering, F.data == "next")
async def handle_next(cb: CallbackQuery, state: FSMContext, registry: SessionRegistry) -> None:
    """Move to the next question or to the results."""
    controller = registry.get(cb.message.chat.id)

    try:
        controller.advance()
    except InvalidTransitionError as e:
        logging.debug(f"Advance rejected in chat {cb.message.chat.id}: {e}")
        await cb.answer("⚠️ Pick an answer first", show_alert=True)
        return

    await cb.answer()
    if controller.phase is Phase.RESULTS:
        await show_results(cb.message, state, controller)
    else:
        await ask_question(cb.message, state, controller)


async def show_results(msg: Message, state: FSMContext, controller: SessionController) -> None:
    """Show quiz results."""
    await msg.answer(
        format_results(controller),
        reply_markup=build_results_keyboard(),
        parse_mode="MarkdownV2",
    )
    await state.update_data(order=None)
    await state.set_state(QuizState.results)


@router.callback_query()
async def unknown_callback(cb: CallbackQuery) -> None:
    """Handle unknown callbacks."""
    await cb.answer(
        "⚠️ This quiz is over or the session has ended. Press /start", show_alert=True
    )
