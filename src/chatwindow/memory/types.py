"""Types shared by the context manager and its policies."""

from dataclasses import dataclass
from enum import Enum

from chatwindow.chat.conversation import Conversation
from chatwindow.errors import ConfigurationError


class ContextStrategy(str, Enum):
    """Context-window management strategy."""

    ROLLING_WINDOW = "rolling_window"
    CUT_MIDDLE = "cut_middle"
    MEMORY_BLOCKS = "memory_blocks"
    SUMMARIZATION = "summarization"


@dataclass(frozen=True)
class Budget:
    """Token budget for a managed conversation.

    ``max_context_window`` is the total the downstream call may consume;
    ``minimum_reserve`` tokens of it must stay free after compaction.
    """

    max_context_window: int = 4096
    minimum_reserve: int = 512

    def __post_init__(self) -> None:
        if self.max_context_window <= 0:
            raise ConfigurationError(
                f"max_context_window must be positive, got {self.max_context_window}"
            )
        if self.minimum_reserve < 0:
            raise ConfigurationError(
                f"minimum_reserve must not be negative, got {self.minimum_reserve}"
            )
        if self.minimum_reserve >= self.max_context_window:
            raise ConfigurationError(
                f"minimum_reserve ({self.minimum_reserve}) must be smaller than "
                f"max_context_window ({self.max_context_window})"
            )

    @property
    def usable(self) -> int:
        """Tokens available to messages once the reserve is set aside."""
        return self.max_context_window - self.minimum_reserve

    def fits(self, total: int) -> bool:
        """Check whether a token total leaves the reserve free.

        Args:
            total: Token total to check.

        Returns:
            True if at least ``minimum_reserve`` tokens remain.
        """
        return self.max_context_window - total >= self.minimum_reserve


@dataclass
class CompactionResult:
    """Outcome of one context-management run."""

    conversation: Conversation
    strategy: ContextStrategy
    input_tokens: int
    output_tokens: int
    retained_turns: int = 0
    summarized_turns: int = 0
    dropped_turns: int = 0
    summarizer_calls: int = 0
    compacted: bool = False
    overflow: bool = False
