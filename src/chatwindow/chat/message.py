"""Chat message model."""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class MessageRole(str, Enum):
    """Author of a message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    # Instructions from the application developer, ranked above user messages
    DEVELOPER = "developer"

    @classmethod
    def from_string(cls, role: str) -> "MessageRole":
        """Parse a role name case-insensitively.

        Args:
            role: Role name such as "user" or "ASSISTANT".

        Returns:
            Matching MessageRole.

        Raises:
            ValueError: If the role is unknown.
        """
        try:
            return cls(role.strip().lower())
        except ValueError:
            raise ValueError(f"Invalid role: {role}") from None

    def __str__(self) -> str:
        return self.value


class ContentType(str, Enum):
    """Kind of payload carried by a message."""

    TEXT = "text"
    URL = "url"
    IMAGE = "image"
    TOOL_CALL = "tool_call"
    FILE = "file"
    AUDIO = "audio"
    VIDEO = "video"
    UNKNOWN = "unknown"


@dataclass
class Message:
    """A single message in a conversation.

    The id is the message identity. It survives cloning, which is how
    already-summarized messages are recognized across calls.
    Assigning ``content`` or ``content_type`` clears ``token_count``.
    """

    role: MessageRole
    content: Any
    content_type: ContentType = ContentType.TEXT
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    token_count: int | None = None

    def __setattr__(self, name: str, value: Any) -> None:
        super().__setattr__(name, value)
        # A cached count only describes the content it was computed from
        if name in ("content", "content_type"):
            super().__setattr__("token_count", None)

    @property
    def text(self) -> str | None:
        """Text content, or None for non-text payloads."""
        if self.content_type == ContentType.TEXT and isinstance(self.content, str):
            return self.content
        return None

    @property
    def is_text(self) -> bool:
        """Whether the message carries text content."""
        return self.text is not None

    def set_text(self, text: str) -> None:
        """Replace the content with text.

        Args:
            text: New text content.
        """
        self.content = text
        self.content_type = ContentType.TEXT

    def set_role(self, role: MessageRole) -> None:
        """Change the author role.

        Args:
            role: New role.
        """
        self.role = role

    def clone(self) -> "Message":
        """Copy the message, keeping its identity.

        Returns:
            New Message with the same id.
        """
        return Message(
            role=self.role,
            content=self.content,
            content_type=self.content_type,
            id=self.id,
            token_count=self.token_count,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the plain role/content shape used by provider APIs.

        Returns:
            Message dict including the id.
        """
        data: dict[str, Any] = {
            "id": str(self.id),
            "role": self.role.value,
            "content": self.content,
        }
        if self.content_type != ContentType.TEXT:
            data["content_type"] = self.content_type.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        """Build a message from a role/content dict.

        Args:
            data: Dict with "role" and "content", and optionally "id"
                and "content_type".

        Returns:
            Parsed Message.

        Raises:
            ValueError: If the role is missing or unknown.
        """
        if "role" not in data:
            raise ValueError("Message is missing a role")

        content = data.get("content", "")
        default_type = ContentType.TEXT if isinstance(content, str) else ContentType.UNKNOWN
        content_type = ContentType(data["content_type"]) if "content_type" in data else default_type

        message = cls(
            role=MessageRole.from_string(data["role"]),
            content=content,
            content_type=content_type,
        )
        if data.get("id"):
            message.id = uuid.UUID(str(data["id"]))
        return message
