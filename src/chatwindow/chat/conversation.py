"""Ordered conversation of chat messages."""

import uuid
from collections.abc import Iterable, Iterator
from typing import Any

from chatwindow.chat.message import Message, MessageRole


class Conversation:
    """An ordered sequence of messages.

    Insertion order is chronological order. The id is the session key
    used to look up previously compressed history.
    """

    def __init__(
        self,
        messages: Iterable[Message] | None = None,
        conversation_id: str | None = None,
    ) -> None:
        """Initialize the conversation.

        Args:
            messages: Initial messages, oldest first.
            conversation_id: Session identifier (generated if None).
        """
        self.id = conversation_id or str(uuid.uuid4())
        self._messages: list[Message] = list(messages) if messages else []

    @property
    def messages(self) -> list[Message]:
        """Messages in chronological order."""
        return self._messages

    def add_message(self, message: Message) -> None:
        """Append a message.

        Args:
            message: Message to append.
        """
        self._messages.append(message)

    def add_system_message(self, text: str) -> Message:
        """Append a system message."""
        return self._add_text(MessageRole.SYSTEM, text)

    def add_user_message(self, text: str) -> Message:
        """Append a user message."""
        return self._add_text(MessageRole.USER, text)

    def add_assistant_message(self, text: str) -> Message:
        """Append an assistant message."""
        return self._add_text(MessageRole.ASSISTANT, text)

    def add_developer_message(self, text: str) -> Message:
        """Append a developer message."""
        return self._add_text(MessageRole.DEVELOPER, text)

    def _add_text(self, role: MessageRole, text: str) -> Message:
        message = Message(role=role, content=text.strip())
        self._messages.append(message)
        return message

    def find_message(self, message_id: uuid.UUID) -> Message | None:
        """Find a message by identity.

        Args:
            message_id: Id to look for.

        Returns:
            The message, or None if not present.
        """
        for message in self._messages:
            if message.id == message_id:
                return message
        return None

    def pop_message(self) -> Message | None:
        """Remove and return the most recent message.

        Returns:
            The removed message, or None when empty.
        """
        if not self._messages:
            return None
        return self._messages.pop()

    def replace_messages(self, messages: Iterable[Message]) -> None:
        """Replace every message in place.

        Args:
            messages: New messages, oldest first.
        """
        self._messages[:] = list(messages)

    def system_messages(self) -> list[Message]:
        """Return the system messages in order."""
        return [m for m in self._messages if m.role == MessageRole.SYSTEM]

    def clear(self) -> None:
        """Remove all messages."""
        self._messages.clear()

    def copy(self) -> "Conversation":
        """Shallow copy sharing the same message objects and id."""
        return Conversation(self._messages, conversation_id=self.id)

    def to_dicts(self) -> list[dict[str, Any]]:
        """Convert messages to plain dicts."""
        return [m.to_dict() for m in self._messages]

    @classmethod
    def from_dicts(
        cls,
        messages: Iterable[dict[str, Any]],
        conversation_id: str | None = None,
    ) -> "Conversation":
        """Build a conversation from role/content dicts.

        Args:
            messages: Message dicts, oldest first.
            conversation_id: Session identifier.

        Returns:
            New Conversation.
        """
        return cls((Message.from_dict(m) for m in messages), conversation_id=conversation_id)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self._messages)

    def __getitem__(self, index: int) -> Message:
        return self._messages[index]

    def __repr__(self) -> str:
        return f"Conversation(id={self.id!r}, messages={len(self._messages)})"
