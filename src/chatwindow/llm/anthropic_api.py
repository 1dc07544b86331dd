"""Anthropic API backend for token counting and summarization."""

from typing import Any

import anthropic

from chatwindow.chat.conversation import Conversation
from chatwindow.chat.message import Message, MessageRole
from chatwindow.errors import SummarizationError, TokenCountError
from chatwindow.llm.prompts import (
    SUMMARY_ASSISTANT_ACK,
    SUMMARY_USER_PREFIX,
    format_history,
    get_summarization_prompt,
    is_summary_message,
)


class AnthropicAPIBackend:
    """Token counter and summarizer backed by the Anthropic API.

    Uses the synchronous anthropic client; every call blocks until the
    API answers. Timeouts and retries are delegated to the SDK.
    """

    def __init__(
        self,
        model: str = "claude-sonnet-4-20250514",
        max_tokens: int = 1024,
        temperature: float = 0.3,
        api_key: str | None = None,
        timeout: float | None = None,
        max_retries: int = 2,
    ) -> None:
        """Initialize the Anthropic API backend.

        Args:
            model: Model name to use.
            max_tokens: Maximum tokens in a summary.
            temperature: Sampling temperature for summaries.
            api_key: API key (defaults to ANTHROPIC_API_KEY env var).
            timeout: Request timeout in seconds (SDK default if None).
            max_retries: Retries the SDK performs on transient errors.
        """
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

        client_kwargs: dict[str, Any] = {"api_key": api_key, "max_retries": max_retries}
        if timeout is not None:
            client_kwargs["timeout"] = timeout
        self._client = anthropic.Anthropic(**client_kwargs)

    def count_tokens(self, text: str, model: str | None = None) -> int:
        """Count tokens in text with the provider's tokenizer.

        Args:
            text: Text to count.
            model: Model hint (defaults to the backend model).

        Returns:
            Number of input tokens the text costs.

        Raises:
            TokenCountError: If the API call fails.
        """
        try:
            result = self._client.messages.count_tokens(
                model=model or self.model,
                messages=[{"role": "user", "content": text}],
            )
        except anthropic.APIError as e:
            raise TokenCountError(f"Token count failed: {e}") from e
        return result.input_tokens

    def summarize_text(
        self,
        text: str,
        prompt: str,
        params: dict[str, Any] | None = None,
    ) -> str:
        """Summarize a single piece of text.

        Args:
            text: Text to condense.
            prompt: Summarization directive, sent as the system prompt.
            params: Optional overrides for max_tokens and temperature.

        Returns:
            Summary text.
        """
        return self._create(get_summarization_prompt(prompt), text, params)

    def summarize_conversation(
        self,
        conversation: Conversation,
        prompt: str,
        params: dict[str, Any] | None = None,
    ) -> Conversation:
        """Summarize a conversation into a summary pair.

        System messages are kept verbatim at the start. An existing
        summary pair at the start of the history is folded into the
        new summary instead of being summarized as plain text.

        Args:
            conversation: Conversation to condense.
            prompt: Summarization directive.
            params: Optional overrides for max_tokens and temperature.

        Returns:
            Conversation with the system messages followed by a
            user/assistant pair carrying the summary.
        """
        system_messages = conversation.system_messages()
        history = [m for m in conversation if m.role != MessageRole.SYSTEM]

        if not history:
            return conversation.copy()

        previous_summary = None
        if is_summary_message(history[0]):
            previous_summary = (history[0].text or "")[len(SUMMARY_USER_PREFIX) :]
            history = history[2:] if len(history) > 1 else []

        system_prompt = get_summarization_prompt(prompt, previous_summary)
        history_text = format_history(history) if history else "(no new messages)"
        summary = self._create(
            system_prompt,
            f"Please summarize this conversation:\n\n{history_text}",
            params,
        )

        result = Conversation(system_messages, conversation_id=conversation.id)
        result.add_message(Message(role=MessageRole.USER, content=SUMMARY_USER_PREFIX + summary))
        result.add_message(Message(role=MessageRole.ASSISTANT, content=SUMMARY_ASSISTANT_ACK))
        return result

    def _create(
        self,
        system_prompt: str,
        content: str,
        params: dict[str, Any] | None,
    ) -> str:
        """Run a single-message completion.

        Args:
            system_prompt: System prompt for the call.
            content: User message content.
            params: Optional overrides for max_tokens and temperature.

        Returns:
            Extracted response text.

        Raises:
            SummarizationError: If the API call fails.
        """
        params = params or {}
        try:
            response = self._client.messages.create(
                model=params.get("model", self.model),
                max_tokens=params.get("max_tokens", self.max_tokens),
                temperature=params.get("temperature", self.temperature),
                system=system_prompt,
                messages=[{"role": "user", "content": content}],
            )
        except anthropic.APIError as e:
            raise SummarizationError(f"Summarization failed: {e}") from e

        return self._extract_text(response)

    def _extract_text(self, response: anthropic.types.Message) -> str:
        """Extract text content from API response.

        Args:
            response: Anthropic API response.

        Returns:
            Extracted text content.
        """
        text_parts = []
        for block in response.content:
            if block.type == "text":
                text_parts.append(block.text)
        return "\n".join(text_parts).strip()
