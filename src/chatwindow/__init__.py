"""Context-window management for LLM conversations."""

from chatwindow.chat import ContentType, Conversation, Message, MessageRole
from chatwindow.errors import (
    CapabilityFailureError,
    CapabilityUnavailableError,
    ConfigurationError,
    ContextWindowError,
    SummarizationError,
    TokenCountError,
    UnimplementedStrategyError,
)
from chatwindow.memory import (
    Budget,
    CompactionResult,
    ContextManager,
    ContextStrategy,
    SummaryCache,
    TokenAccountant,
)

__version__ = "0.1.0"

__all__ = [
    "Budget",
    "CapabilityFailureError",
    "CapabilityUnavailableError",
    "CompactionResult",
    "ConfigurationError",
    "ContentType",
    "ContextManager",
    "ContextStrategy",
    "ContextWindowError",
    "Conversation",
    "Message",
    "MessageRole",
    "SummarizationError",
    "SummaryCache",
    "TokenAccountant",
    "TokenCountError",
    "UnimplementedStrategyError",
    "__version__",
]
