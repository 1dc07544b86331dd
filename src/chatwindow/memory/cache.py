"""Caller-owned cache of compressed conversation history."""

import uuid
from dataclasses import dataclass, field

from chatwindow.chat.conversation import Conversation


@dataclass
class CompressedHistory:
    """Summarized history of one session.

    ``source_ids`` holds the ids of input messages already folded into
    ``conversation`` by a whole-conversation summary, since the summary
    messages themselves carry new ids.
    """

    conversation: Conversation = field(default_factory=Conversation)
    source_ids: set[uuid.UUID] = field(default_factory=set)

    @property
    def is_empty(self) -> bool:
        """Whether nothing has been summarized yet."""
        return len(self.conversation) == 0

    def covers(self, message_id: uuid.UUID) -> bool:
        """Check whether a message is already part of the history.

        Args:
            message_id: Id of the input message.

        Returns:
            True if the message was absorbed or copied earlier.
        """
        if message_id in self.source_ids:
            return True
        return self.conversation.find_message(message_id) is not None


class SummaryCache:
    """Compressed history per session, owned by the caller.

    Not thread-safe: callers sharing a session across threads must
    serialize access themselves.
    """

    def __init__(self) -> None:
        """Initialize an empty cache."""
        self._sessions: dict[str, CompressedHistory] = {}

    def history_for(self, session_id: str) -> CompressedHistory:
        """Get the history of a session, creating it on first use.

        Args:
            session_id: Session key, usually the conversation id.

        Returns:
            The session's compressed history.
        """
        if session_id not in self._sessions:
            self._sessions[session_id] = CompressedHistory(
                conversation=Conversation(conversation_id=session_id)
            )
        return self._sessions[session_id]

    def drop(self, session_id: str) -> None:
        """Forget a session.

        Args:
            session_id: Session key to remove.
        """
        self._sessions.pop(session_id, None)

    def clear(self) -> None:
        """Forget every session."""
        self._sessions.clear()

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
