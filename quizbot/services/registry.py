import logging
from collections import OrderedDict

from quizbot.services.controller import SessionController
from quizbot.services.generator import QuestionGenerator


class SessionRegistry:
    """
    Keeps one session controller per chat, all sharing a generator.

    At most max_sessions controllers are kept; the least recently used chat
    is forgotten first.
    """

    def __init__(self, generator: QuestionGenerator, max_sessions: int = 1000) -> None:
        self.generator = generator
        self.max_sessions = max_sessions
        self._controllers: OrderedDict[int, SessionController] = OrderedDict()

    def get(self, chat_id: int) -> SessionController:
        """Get the chat's controller, creating it on first use."""
        controller = self._controllers.get(chat_id)
        if controller is not None:
            self._controllers.move_to_end(chat_id)
            return controller

        controller = SessionController(self.generator)
        self._controllers[chat_id] = controller
        logging.debug(f"Created quiz session for chat {chat_id}")

        while len(self._controllers) > self.max_sessions:
            evicted, _ = self._controllers.popitem(last=False)
            logging.info(f"Dropped idle quiz session for chat {evicted}")
        return controller

    def drop(self, chat_id: int) -> None:
        """Forget the chat's controller."""
        self._controllers.pop(chat_id, None)

    def __len__(self) -> int:
        return len(self._controllers)
