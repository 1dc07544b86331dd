"""Summarization directives and history formatting."""

from chatwindow.chat.message import Message, MessageRole

# Directive for condensing a single user/assistant exchange
SUMMARIZE_EXCHANGE_PROMPT = """\
Summarize this exchange between a user and an AI assistant briefly. \
Keep the user's request, any facts or constraints they gave, and the \
essential content of the assistant's answer. Drop pleasantries.\
"""

# Directive for condensing a whole conversation or one of its messages
SUMMARIZE_CHAT_PROMPT = """\
Summarize briefly the following conversation between a user and an AI assistant.

Someone reading only this summary should be able to continue the conversation \
without the user having to repeat themselves. Capture:
- What the user is trying to accomplish
- Key facts, preferences, or constraints the user shared
- Decisions made and conclusions reached
- Open threads and where the conversation left off

Be factual and specific. No meta-commentary.\
"""

# Prefix and acknowledgement of the user/assistant pair that carries a summary
SUMMARY_USER_PREFIX = "[Prior conversation summary]\n"
SUMMARY_ASSISTANT_ACK = "Understood, I have context from our earlier conversation."


def get_summarization_prompt(
    directive: str,
    previous_summary: str | None = None,
) -> str:
    """Build the system prompt for a summarization call.

    Args:
        directive: Summarization directive.
        previous_summary: Previous summary to incorporate.

    Returns:
        Summarization system prompt.
    """
    prompt = directive

    if previous_summary:
        prompt += f"\n\nPrevious summary to incorporate:\n{previous_summary}"

    return prompt


def format_history(messages: list[Message]) -> str:
    """Format messages as text for a summarization request.

    Args:
        messages: Messages to format, oldest first.

    Returns:
        Formatted history text.
    """
    lines = []
    for message in messages:
        text = message.text if message.text is not None else f"<{message.content_type.value}>"
        if message.role == MessageRole.USER:
            lines.append(f"USER: {text}")
        elif message.role == MessageRole.ASSISTANT:
            lines.append(f"ASSISTANT: {text}")
        else:
            lines.append(f"[{message.role.value.upper()}]: {text}")
    return "\n\n".join(lines)


def is_summary_message(message: Message) -> bool:
    """Check whether a message is the user half of a summary pair.

    Args:
        message: Message to check.

    Returns:
        True if the message carries a conversation summary.
    """
    return (
        message.role == MessageRole.USER
        and message.text is not None
        and message.text.startswith(SUMMARY_USER_PREFIX)
    )
