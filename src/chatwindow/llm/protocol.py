"""Protocol definitions for the capabilities context management consumes."""

from typing import Any, Protocol

from chatwindow.chat.conversation import Conversation


class TokenCounter(Protocol):
    """Counts tokens in a piece of text.

    Implementations may raise; callers treat the result as an estimate
    and fall back to a local heuristic on failure.
    """

    def count_tokens(self, text: str, model: str | None = None) -> int:
        """Count the tokens in text.

        Args:
            text: Text to count.
            model: Optional model hint for the tokenizer.

        Returns:
            Number of tokens.
        """
        ...


class Summarizer(Protocol):
    """Condenses a conversation or a piece of text into fewer tokens."""

    def summarize_conversation(
        self,
        conversation: Conversation,
        prompt: str,
        params: dict[str, Any] | None = None,
    ) -> Conversation:
        """Summarize a whole conversation.

        Args:
            conversation: Conversation to condense.
            prompt: Directive describing how to summarize.
            params: Optional generation parameters (max_tokens, temperature).

        Returns:
            A shorter conversation carrying the summary.
        """
        ...

    def summarize_text(
        self,
        text: str,
        prompt: str,
        params: dict[str, Any] | None = None,
    ) -> str:
        """Summarize a single piece of text.

        Args:
            text: Text to condense.
            prompt: Directive describing how to summarize.
            params: Optional generation parameters (max_tokens, temperature).

        Returns:
            Summary text.
        """
        ...
