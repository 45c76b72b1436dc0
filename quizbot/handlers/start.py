from aiogram import Router, F
from aiogram.filters import Command, StateFilter
from aiogram.fsm.context import FSMContext
from aiogram.types import Message, CallbackQuery

from quizbot.states import QuizState
from quizbot.services.formatting import escape_md
from quizbot.services.generator import FileQuestionGenerator
from quizbot.services.registry import SessionRegistry

router = Router()

TOPIC_PROMPT = "🧠 Send me a topic and I will build a multiple\\-choice quiz about it\\."

HELP_TEXT = (
    "*How it works*\n\n"
    "1\\. Send any topic, for example _history of Rome_\\.\n"
    "2\\. Answer each question with the buttons\\.\n"
    "3\\. Press *Next question* to move on and see your score at the end\\.\n\n"
    "/start \\- begin a new quiz"
)


@router.message(Command("start"))
async def cmd_start(msg: Message, state: FSMContext, registry: SessionRegistry) -> None:
    """Handle /start command - reset the session and ask for a topic."""
    registry.get(msg.chat.id).restart()
    await state.clear()
    await msg.answer(TOPIC_PROMPT, parse_mode="MarkdownV2")
    await state.set_state(QuizState.entering_topic)


@router.message(Command("help"))
async def cmd_help(msg: Message, registry: SessionRegistry) -> None:
    """Handle /help command."""
    text = HELP_TEXT
    if isinstance(registry.generator, FileQuestionGenerator):
        # Only the bundled topics can be played without an API key
        topics = ", ".join(escape_md(t) for t in registry.generator.get_topics())
        text += f"\n\n*Available topics:* {topics}"
    await msg.answer(text, parse_mode="MarkdownV2")


@router.callback_query(F.data == "new_quiz")
async def new_quiz(cb: CallbackQuery, state: FSMContext, registry: SessionRegistry) -> None:
    """Handle request to start over with another topic."""
    registry.get(cb.message.chat.id).restart()
    await state.clear()
    await cb.message.answer(TOPIC_PROMPT, parse_mode="MarkdownV2")
    await state.set_state(QuizState.entering_topic)
    await cb.answer()


@router.message(StateFilter(None), F.text)
async def unknown_message(msg: Message) -> None:
    """Handle text sent before a quiz was started."""
    await msg.answer("Press /start to begin a quiz\\.", parse_mode="MarkdownV2")


@router.message(StateFilter(QuizState.answering, QuizState.results), F.text)
async def text_during_quiz(msg: Message) -> None:
    """Handle text sent while the quiz expects button presses."""
    await msg.answer(
        "Use the buttons above, or press /start for a new quiz\\.", parse_mode="MarkdownV2"
    )
