from aiogram.fsm.state import State, StatesGroup


class QuizState(StatesGroup):
    """FSM states for the quiz bot user flow."""

    entering_topic = State()  # User is typing a quiz topic
    answering = State()  # User is answering quiz questions
    results = State()  # Final score is shown
