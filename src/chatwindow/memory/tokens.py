"""Token accounting for messages and conversations.

Counts go through an injected TokenCounter when one is available and fall
back to a ~4 characters per token heuristic otherwise. Counts are
estimates, so a failing counter never fails the operation.
"""

import json
import logging
from collections.abc import Iterable

from chatwindow.chat.message import Message
from chatwindow.llm.protocol import TokenCounter

logger = logging.getLogger(__name__)

DEFAULT_CHARS_PER_TOKEN = 4


def estimate_tokens(text: str, chars_per_token: int = DEFAULT_CHARS_PER_TOKEN) -> int:
    """Estimate token count for text.

    Args:
        text: Text to estimate.
        chars_per_token: Characters assumed per token.

    Returns:
        Estimated token count.
    """
    return len(text) // chars_per_token


class TokenAccountant:
    """Turns messages and conversations into token counts.

    Message counts are memoized on the message itself
    (``Message.token_count``) so one operation never counts the same
    message twice.
    """

    def __init__(
        self,
        counter: TokenCounter | None = None,
        model: str | None = None,
        chars_per_token: int = DEFAULT_CHARS_PER_TOKEN,
    ) -> None:
        """Initialize the accountant.

        Args:
            counter: Token counting capability (heuristic only if None).
            model: Model hint passed to the counter.
            chars_per_token: Characters per token for the heuristic.
        """
        if chars_per_token <= 0:
            raise ValueError("chars_per_token must be positive")

        self.counter = counter
        self.model = model
        self.chars_per_token = chars_per_token

    def count_text(self, text: str) -> int:
        """Count tokens in text.

        Args:
            text: Text to count.

        Returns:
            Token count from the counter, or the heuristic estimate.
        """
        if self.counter is not None:
            try:
                return self.counter.count_tokens(text, self.model)
            except Exception as e:
                logger.warning("Token counter failed, using estimate: %s", e)

        return estimate_tokens(text, self.chars_per_token)

    def count_message(self, message: Message | None) -> int:
        """Count tokens in a message, caching the result on it.

        Args:
            message: Message to count.

        Returns:
            Token count (0 for None or empty content).
        """
        if message is None:
            return 0

        if message.token_count is not None:
            return message.token_count

        text = message.text
        if text is not None:
            count = self.count_text(text)
        elif message.content is None:
            count = 0
        else:
            count = estimate_tokens(self._serialize(message.content), self.chars_per_token)

        message.token_count = count
        return count

    def count_conversation(self, messages: Iterable[Message]) -> int:
        """Count tokens across messages.

        Args:
            messages: A Conversation or any iterable of messages.

        Returns:
            Sum of the message counts.
        """
        return sum(self.count_message(m) for m in messages)

    def _serialize(self, content: object) -> str:
        try:
            return json.dumps(content)
        except (TypeError, ValueError):
            return str(content)
