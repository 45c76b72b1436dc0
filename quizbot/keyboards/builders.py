import random
from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton


def build_answers_keyboard(
    options: tuple[str, ...], question_idx: int, shuffle: bool = True
) -> tuple[InlineKeyboardMarkup, list[int]]:
    """
    Build keyboard for answer options.

    Returns:
        tuple: (keyboard, order) where order maps display position to original index
    """
    indices = list(range(len(options)))
    if shuffle:
        random.shuffle(indices)

    keyboard = InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(
                    text=options[i], callback_data=f"ans:{question_idx}:{i}"
                )
            ]
            for i in indices
        ]
    )
    return keyboard, indices


def build_revealed_keyboard(
    options: tuple[str, ...],
    correct_idx: int,
    selected_idx: int,
    order: list[int],
    is_last: bool,
) -> InlineKeyboardMarkup:
    """Build keyboard that marks the answer and offers to move on."""
    rows = []
    for i in order:
        if i == correct_idx:
            mark = "✅ "
        elif i == selected_idx:
            mark = "❌ "
        else:
            mark = ""
        rows.append([InlineKeyboardButton(text=f"{mark}{options[i]}", callback_data="answered")])

    rows.append(
        [
            InlineKeyboardButton(
                text="See results" if is_last else "Next question", callback_data="next"
            )
        ]
    )
    return InlineKeyboardMarkup(inline_keyboard=rows)


def build_retry_keyboard() -> InlineKeyboardMarkup:
    """Build keyboard offered after a failed quiz generation."""
    return InlineKeyboardMarkup(
        inline_keyboard=[[InlineKeyboardButton(text="Try again", callback_data="retry")]]
    )


def build_results_keyboard() -> InlineKeyboardMarkup:
    """Build keyboard shown under the final score."""
    return InlineKeyboardMarkup(
        inline_keyboard=[[InlineKeyboardButton(text="New quiz", callback_data="new_quiz")]]
    )
