"""LLM capability interfaces and backends."""

from chatwindow.llm.anthropic_api import AnthropicAPIBackend
from chatwindow.llm.prompts import (
    SUMMARIZE_CHAT_PROMPT,
    SUMMARIZE_EXCHANGE_PROMPT,
    SUMMARY_ASSISTANT_ACK,
    SUMMARY_USER_PREFIX,
    format_history,
    get_summarization_prompt,
    is_summary_message,
)
from chatwindow.llm.protocol import Summarizer, TokenCounter

__all__ = [
    "AnthropicAPIBackend",
    "SUMMARIZE_CHAT_PROMPT",
    "SUMMARIZE_EXCHANGE_PROMPT",
    "SUMMARY_ASSISTANT_ACK",
    "SUMMARY_USER_PREFIX",
    "Summarizer",
    "TokenCounter",
    "format_history",
    "get_summarization_prompt",
    "is_summary_message",
]
