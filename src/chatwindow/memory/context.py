"""Context-window management for conversations."""

import logging
from typing import TYPE_CHECKING

from chatwindow.chat.conversation import Conversation
from chatwindow.llm.protocol import Summarizer, TokenCounter
from chatwindow.memory.cache import CompressedHistory, SummaryCache
from chatwindow.memory.policies import (
    ContextPolicy,
    CutMiddlePolicy,
    MemoryBlocksPolicy,
    RollingWindowPolicy,
    SummarizationPolicy,
)
from chatwindow.memory.tokens import TokenAccountant
from chatwindow.memory.types import Budget, CompactionResult, ContextStrategy

if TYPE_CHECKING:
    from chatwindow.config import ContextConfig

logger = logging.getLogger(__name__)


class ContextManager:
    """Fits conversations into a token budget.

    Holds the selected strategy and budget and dispatches each call to
    the matching policy. The input conversation is never mutated.
    Configuration may change between calls; each call works on a
    snapshot of it.
    """

    def __init__(
        self,
        strategy: ContextStrategy = ContextStrategy.ROLLING_WINDOW,
        max_context_window: int = 4096,
        minimum_reserve: int = 512,
        summarizer: Summarizer | None = None,
        token_counter: TokenCounter | None = None,
        model: str | None = None,
        cache: SummaryCache | None = None,
    ) -> None:
        """Initialize the context manager.

        Args:
            strategy: Context strategy to apply.
            max_context_window: Total tokens the conversation may use.
            minimum_reserve: Tokens that must stay free after compaction.
            summarizer: Optional summarization capability.
            token_counter: Optional token counting capability.
            model: Model hint for the token counter.
            cache: Compressed history per session (Summarization strategy).

        Raises:
            ConfigurationError: If the budget is invalid.
        """
        self._budget = Budget(max_context_window, minimum_reserve)
        self.strategy = ContextStrategy(strategy)
        self.summarizer = summarizer
        self.accountant = TokenAccountant(token_counter, model=model)
        self.cache = cache if cache is not None else SummaryCache()
        self._managed: Conversation | None = None
        self.last_result: CompactionResult | None = None

    @classmethod
    def from_config(
        cls,
        config: "ContextConfig",
        summarizer: Summarizer | None = None,
        token_counter: TokenCounter | None = None,
        model: str | None = None,
        cache: SummaryCache | None = None,
    ) -> "ContextManager":
        """Create a context manager from configuration.

        Args:
            config: Context section of the configuration.
            summarizer: Optional summarization capability.
            token_counter: Optional token counting capability.
            model: Model hint for the token counter.
            cache: Compressed history per session.

        Returns:
            Configured ContextManager.
        """
        return cls(
            strategy=config.strategy,
            max_context_window=config.max_context_window,
            minimum_reserve=config.minimum_reserve,
            summarizer=summarizer,
            token_counter=token_counter,
            model=model,
            cache=cache,
        )

    @property
    def budget(self) -> Budget:
        """Current token budget."""
        return self._budget

    @property
    def max_context_window(self) -> int:
        """Total tokens the conversation may use."""
        return self._budget.max_context_window

    @property
    def minimum_reserve(self) -> int:
        """Tokens that must stay free after compaction."""
        return self._budget.minimum_reserve

    @property
    def managed(self) -> Conversation | None:
        """Conversation produced by the last call."""
        return self._managed

    def configure(
        self,
        strategy: ContextStrategy | str | None = None,
        max_context_window: int | None = None,
        minimum_reserve: int | None = None,
    ) -> None:
        """Change settings between calls.

        The new budget is validated before anything changes.

        Args:
            strategy: New strategy.
            max_context_window: New total token budget.
            minimum_reserve: New reserve.

        Raises:
            ConfigurationError: If the resulting budget is invalid.
        """
        budget = Budget(
            max_context_window if max_context_window is not None else self.max_context_window,
            minimum_reserve if minimum_reserve is not None else self.minimum_reserve,
        )
        new_strategy = ContextStrategy(strategy) if strategy is not None else self.strategy

        self._budget = budget
        self.strategy = new_strategy

    def apply_context_management(
        self,
        conversation: Conversation,
        output: Conversation | None = None,
        *,
        compressed: CompressedHistory | None = None,
    ) -> Conversation:
        """Produce a conversation that fits the budget.

        Args:
            conversation: Input conversation (never mutated).
            output: Optional accumulator whose messages are replaced by the
                result.
            compressed: Compressed history for the Summarization strategy
                (looked up in the cache by conversation id if None).

        Returns:
            The managed conversation: ``output`` when given, otherwise the
            policy's result.

        Raises:
            ValueError: If conversation is None.
            UnimplementedStrategyError: If the strategy has no implementation.
            CapabilityFailureError: If the summarizer fails.
        """
        result = self.compact(conversation, compressed=compressed)
        if output is None:
            return result.conversation

        output.replace_messages(list(result.conversation.messages))
        self._managed = output
        return output

    def compact(
        self,
        conversation: Conversation,
        *,
        compressed: CompressedHistory | None = None,
    ) -> CompactionResult:
        """Fit a conversation into the budget and report what happened.

        Args:
            conversation: Input conversation (never mutated).
            compressed: Compressed history for the Summarization strategy
                (looked up in the cache by conversation id if None).

        Returns:
            CompactionResult holding the managed conversation and counts.

        Raises:
            ValueError: If conversation is None.
            UnimplementedStrategyError: If the strategy has no implementation.
            CapabilityFailureError: If the summarizer fails.
        """
        if conversation is None:
            raise ValueError("conversation must not be None")

        budget = self._budget
        policy = self._policy_for(self.strategy)

        if policy.strategy == ContextStrategy.SUMMARIZATION and compressed is None:
            compressed = self.cache.history_for(conversation.id)

        result = policy.apply(conversation, budget, compressed)

        self._managed = result.conversation
        self.last_result = result

        if result.overflow:
            logger.warning(
                "Managed conversation exceeds usable budget: %d > %d tokens",
                result.output_tokens,
                budget.usable,
            )

        return result

    def count_tokens(self, conversation: Conversation) -> int:
        """Count the tokens in a conversation.

        Args:
            conversation: Conversation to count.

        Returns:
            Token total.
        """
        return self.accountant.count_conversation(conversation)

    def _policy_for(self, strategy: ContextStrategy) -> ContextPolicy:
        """Build the policy implementing a strategy."""
        policies: dict[ContextStrategy, type[ContextPolicy]] = {
            ContextStrategy.ROLLING_WINDOW: RollingWindowPolicy,
            ContextStrategy.CUT_MIDDLE: CutMiddlePolicy,
            ContextStrategy.MEMORY_BLOCKS: MemoryBlocksPolicy,
            ContextStrategy.SUMMARIZATION: SummarizationPolicy,
        }
        return policies[strategy](self.accountant, self.summarizer)  # type: ignore[call-arg]
