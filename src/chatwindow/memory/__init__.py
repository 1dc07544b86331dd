"""Context-window management and summarization."""

from chatwindow.memory.cache import CompressedHistory, SummaryCache
from chatwindow.memory.context import ContextManager
from chatwindow.memory.policies import (
    ContextPolicy,
    CutMiddlePolicy,
    MemoryBlocksPolicy,
    RollingWindowPolicy,
    SummarizationPolicy,
    group_turns,
)
from chatwindow.memory.tokens import TokenAccountant, estimate_tokens
from chatwindow.memory.types import Budget, CompactionResult, ContextStrategy

__all__ = [
    "Budget",
    "CompactionResult",
    "CompressedHistory",
    "ContextManager",
    "ContextPolicy",
    "ContextStrategy",
    "CutMiddlePolicy",
    "MemoryBlocksPolicy",
    "RollingWindowPolicy",
    "SummarizationPolicy",
    "SummaryCache",
    "TokenAccountant",
    "estimate_tokens",
    "group_turns",
]
