import logging
import threading
from collections.abc import Callable

from ai_analyzer import stream_chat
from errors import BusyError, ValidationError
from models import ChatMessage

logger = logging.getLogger(__name__)

GREETING = (
    "Hi! I'm your Creator Boost consultant. Ask me anything about growing "
    "and monetizing your YouTube channel."
)
PLACEHOLDER = "..."
ERROR_REPLY = "Sorry, I couldn't get a response right now. Please try again."


class ChatSession:
    """
    Linear conversation with the AI consultant. Only one reply can stream at
    a time; the last message is rewritten in place while it arrives.
    """

    def __init__(self, language: str, greeting: str = GREETING):
        self.language = language
        self.messages: list[ChatMessage] = [ChatMessage(role="model", text=greeting)]
        self._busy = False
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def history(self) -> list[ChatMessage]:
        """Messages sent upstream as context; the greeting is local only."""
        return self.messages[1:]

    def reserve(self):
        with self._lock:
            if self._busy:
                raise BusyError("Still waiting for the previous reply")
            self._busy = True

    def send(
        self,
        text: str,
        on_update: Callable[[str], None] | None = None,
        reserved: bool = False,
    ) -> ChatMessage:
        if not text.strip():
            if reserved:
                self._busy = False
            raise ValidationError("Message is empty")
        if not reserved:
            self.reserve()

        try:
            history = list(self.history)
            self.messages.append(ChatMessage(role="user", text=text))
            self.messages.append(ChatMessage(role="model", text=PLACEHOLDER))

            buffer = ""
            try:
                for fragment in stream_chat(history, text, self.language):
                    buffer += fragment
                    self.messages[-1] = ChatMessage(role="model", text=buffer)
                    if on_update:
                        on_update(buffer)
            except Exception:
                logger.exception("Chat stream failed")
                self.messages[-1] = ChatMessage(role="model", text=ERROR_REPLY)
            return self.messages[-1]
        finally:
            self._busy = False
