"""Conversation data model."""

from chatwindow.chat.conversation import Conversation
from chatwindow.chat.message import ContentType, Message, MessageRole

__all__ = [
    "ContentType",
    "Conversation",
    "Message",
    "MessageRole",
]
