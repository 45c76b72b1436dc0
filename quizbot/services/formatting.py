import re

from quizbot.services.controller import SessionController
from quizbot.services.session import NONE_SELECTED


def escape_md(text: str) -> str:
    """Escape special characters for MarkdownV2."""
    return re.sub(r"([_*\[\]()~`>#+\-=|{}.!\\])", r"\\\1", text)


def format_question(controller: SessionController) -> str:
    """Render the current question with its progress line."""
    question = controller.current_question
    lines = question.prompt.splitlines() or [""]
    caption = (
        f"❓ _Question {controller.question_number} of {controller.total_questions}_\n\n"
        f"*{escape_md(lines[0])}*"
    )
    if len(lines) > 1:
        caption += "\n" + "\n".join(escape_md(line) for line in lines[1:])
    return caption


def format_reveal(controller: SessionController) -> str:
    """Render the current question after its answer was locked in."""
    question = controller.current_question
    selected = controller.pending_selection
    if selected is NONE_SELECTED:
        return format_question(controller)

    if selected == question.correct_option:
        verdict = "✅ Correct\\!"
    else:
        verdict = (
            f"❌ Wrong\\. Correct answer: _{escape_md(question.correct_option)}_"
        )
    return f"{format_question(controller)}\n\nYour answer: {escape_md(selected)}\n{verdict}"


def format_results(controller: SessionController) -> str:
    """Render the final score, picking the narrative from the low-score flag."""
    score_line = (
        f"You scored *{controller.score}* out of *{controller.total_questions}*"
    )
    if controller.is_low_score:
        narrative = "📚 Not quite there yet\\. Another round on this topic will help\\."
    else:
        narrative = "🎉 Great job, you know this topic well\\!"
    return f"🏁 *Quiz finished\\!*\n\n{score_line}\n\n{narrative}"


def format_generation_error(topic: str) -> str:
    return (
        f"⚠️ Could not build a quiz about *{escape_md(topic)}*\\.\n"
        "Try again or send another topic\\."
    )
