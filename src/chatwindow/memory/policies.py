"""Context-window policies.

Each policy turns an input conversation into an output conversation
bounded by a Budget. Policies receive the TokenAccountant and the
optional Summarizer explicitly and never mutate the input conversation.
"""

import logging
from typing import Protocol

from chatwindow.chat.conversation import Conversation
from chatwindow.chat.message import Message, MessageRole
from chatwindow.errors import UnimplementedStrategyError
from chatwindow.llm.prompts import SUMMARIZE_CHAT_PROMPT, SUMMARIZE_EXCHANGE_PROMPT
from chatwindow.llm.protocol import Summarizer
from chatwindow.memory.cache import CompressedHistory
from chatwindow.memory.tokens import TokenAccountant
from chatwindow.memory.types import Budget, CompactionResult, ContextStrategy

logger = logging.getLogger(__name__)

Turn = list[Message]


def group_turns(messages: list[Message]) -> list[Turn]:
    """Group non-system messages into turns.

    Scans from the most recent message backward. An assistant message
    directly preceded by a user message forms a two-message turn; any
    other message (an unanswered user message, a lone assistant reply,
    a developer message) is a turn of its own.

    Args:
        messages: Non-system messages, oldest first.

    Returns:
        Turns, oldest first.
    """
    turns: list[Turn] = []
    index = len(messages) - 1

    while index >= 0:
        message = messages[index]
        if (
            message.role == MessageRole.ASSISTANT
            and index > 0
            and messages[index - 1].role == MessageRole.USER
        ):
            turns.append([messages[index - 1], message])
            index -= 2
        else:
            turns.append([message])
            index -= 1

    turns.reverse()
    return turns


def split_system(conversation: Conversation) -> tuple[list[Message], list[Message]]:
    """Split a conversation into system and non-system messages.

    Args:
        conversation: Conversation to split.

    Returns:
        Tuple of (system_messages, other_messages), both in order.
    """
    system: list[Message] = []
    others: list[Message] = []
    for message in conversation:
        if message.role == MessageRole.SYSTEM:
            system.append(message)
        else:
            others.append(message)
    return system, others


def merge_system_messages(messages: list[Message], system: list[Message]) -> list[Message]:
    """Insert missing system messages, keeping their input order.

    Each missing message goes right after the nearest preceding input
    system message already present, or at the front when there is none.

    Args:
        messages: Current messages.
        system: System messages of the input, in order.

    Returns:
        New list with every system message present.
    """
    merged = list(messages)
    anchor = 0
    for message in system:
        index = next((i for i, m in enumerate(merged) if m.id == message.id), None)
        if index is None:
            merged.insert(anchor, message)
            anchor += 1
        else:
            anchor = index + 1
    return merged


class ContextPolicy(Protocol):
    """A strategy that fits a conversation into a budget."""

    strategy: ContextStrategy

    def apply(
        self,
        conversation: Conversation,
        budget: Budget,
        compressed: CompressedHistory | None = None,
    ) -> CompactionResult:
        """Produce a conversation that respects the budget.

        Args:
            conversation: Input conversation (not mutated).
            budget: Token budget to respect.
            compressed: Compressed history, for policies that keep one.

        Returns:
            CompactionResult carrying the output conversation.
        """
        ...


class RollingWindowPolicy:
    """Keep system messages and as many recent turns as fit.

    Turns are considered newest first. A turn that does not fit is
    summarized when a Summarizer is available and kept if the summary
    fits; otherwise it is dropped and older turns are still considered
    until the window is full. The most recent turn is always kept, even
    when it alone overflows the budget.

    Without a Summarizer the first turn that does not fit ends the
    window; it and every older turn are dropped.
    """

    strategy = ContextStrategy.ROLLING_WINDOW

    def __init__(
        self,
        accountant: TokenAccountant,
        summarizer: Summarizer | None = None,
    ) -> None:
        """Initialize the policy.

        Args:
            accountant: Token accountant for message costs.
            summarizer: Optional summarizer for turns that do not fit.
        """
        self.accountant = accountant
        self.summarizer = summarizer

    def apply(
        self,
        conversation: Conversation,
        budget: Budget,
        compressed: CompressedHistory | None = None,
    ) -> CompactionResult:
        """Apply the rolling window to a conversation.

        Args:
            conversation: Input conversation (not mutated).
            budget: Token budget to respect.
            compressed: Unused by this policy.

        Returns:
            CompactionResult; the conversation is the input itself when
            it already fits.
        """
        input_tokens = self.accountant.count_conversation(conversation)
        system, others = split_system(conversation)
        turns = group_turns(others)

        if budget.fits(input_tokens):
            return CompactionResult(
                conversation=conversation,
                strategy=self.strategy,
                input_tokens=input_tokens,
                output_tokens=input_tokens,
                retained_turns=len(turns),
            )

        running = self.accountant.count_conversation(system)
        kept: list[Turn] = []
        summarized = 0
        calls = 0
        dropped = 0

        for position in range(len(turns) - 1, -1, -1):
            turn = turns[position]
            cost = self.accountant.count_conversation(turn)

            if budget.fits(running + cost):
                kept.append(turn)
                running += cost
                continue

            # Nothing more can be admitted once the window is full
            if kept and running >= budget.usable:
                dropped += position + 1
                break

            summary: Turn | None = None
            summary_cost = 0
            if self.summarizer is not None:
                summary = self._summarize_turn(self.summarizer, turn, conversation.id)
                calls += 1
                summary_cost = self.accountant.count_conversation(summary)
                if budget.fits(running + summary_cost):
                    logger.debug(
                        "Summarized turn %d: %d -> %d tokens", position, cost, summary_cost
                    )
                    kept.append(summary)
                    running += summary_cost
                    summarized += 1
                    continue

            if not kept:
                # Irreducible: the most recent turn stays even if it overflows
                if summary is not None and summary_cost < cost:
                    kept.append(summary)
                    running += summary_cost
                    summarized += 1
                else:
                    kept.append(turn)
                    running += cost
                logger.warning(
                    "Most recent turn alone exceeds the budget (%d > %d tokens)",
                    running,
                    budget.usable,
                )
                continue

            if self.summarizer is None:
                # Without summaries the window stays contiguous
                dropped += position + 1
                break

            logger.debug("Dropped turn %d (%d tokens)", position, cost)
            dropped += 1

        managed = Conversation(system, conversation_id=conversation.id)
        for turn in reversed(kept):
            for message in turn:
                managed.add_message(message)

        logger.info(
            "Rolling window kept %d of %d turns (%d summarized, %d dropped): %d -> %d tokens",
            len(kept),
            len(turns),
            summarized,
            dropped,
            input_tokens,
            running,
        )

        return CompactionResult(
            conversation=managed,
            strategy=self.strategy,
            input_tokens=input_tokens,
            output_tokens=running,
            retained_turns=len(kept),
            summarized_turns=summarized,
            dropped_turns=dropped,
            summarizer_calls=calls,
            compacted=True,
            overflow=running > budget.usable,
        )

    def _summarize_turn(self, summarizer: Summarizer, turn: Turn, conversation_id: str) -> Turn:
        """Summarize one turn as a two-message mini-conversation."""
        exchange = Conversation(turn, conversation_id=conversation_id)
        summary = summarizer.summarize_conversation(exchange, SUMMARIZE_EXCHANGE_PROMPT)
        return list(summary.messages)


class SummarizationPolicy:
    """Compact the whole history incrementally.

    The first run summarizes the entire input in one call. Later runs
    only summarize messages missing from the compressed history, one call
    per message; system messages are copied verbatim. Without a
    Summarizer the policy is a no-op and returns the input unchanged.
    """

    strategy = ContextStrategy.SUMMARIZATION

    def __init__(
        self,
        accountant: TokenAccountant,
        summarizer: Summarizer | None = None,
    ) -> None:
        """Initialize the policy.

        Args:
            accountant: Token accountant for reporting.
            summarizer: Summarizer producing the compressed history.
        """
        self.accountant = accountant
        self.summarizer = summarizer

    def apply(
        self,
        conversation: Conversation,
        budget: Budget,
        compressed: CompressedHistory | None = None,
    ) -> CompactionResult:
        """Bring the compressed history up to date with the conversation.

        Args:
            conversation: Input conversation (not mutated).
            budget: Token budget, used to flag overflow.
            compressed: Session history, updated in place.

        Returns:
            CompactionResult whose conversation is the compressed history.
        """
        input_tokens = self.accountant.count_conversation(conversation)

        summarizer = self.summarizer
        if summarizer is None:
            logger.info("No summarizer configured, history left unsummarized")
            return CompactionResult(
                conversation=conversation,
                strategy=self.strategy,
                input_tokens=input_tokens,
                output_tokens=input_tokens,
                retained_turns=len(group_turns(split_system(conversation)[1])),
                overflow=input_tokens > budget.usable,
            )

        if compressed is None:
            compressed = CompressedHistory(
                conversation=Conversation(conversation_id=conversation.id)
            )

        if compressed.is_empty:
            calls, summarized = self._summarize_all(summarizer, conversation, compressed)
        else:
            calls, summarized = self._summarize_missing(summarizer, conversation, compressed)

        output_tokens = self.accountant.count_conversation(compressed.conversation)
        logger.info(
            "Summarization made %d summarizer calls: %d -> %d tokens",
            calls,
            input_tokens,
            output_tokens,
        )

        return CompactionResult(
            conversation=compressed.conversation,
            strategy=self.strategy,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            retained_turns=len(group_turns(split_system(compressed.conversation)[1])),
            summarized_turns=summarized,
            summarizer_calls=calls,
            compacted=calls > 0,
            overflow=output_tokens > budget.usable,
        )

    def _summarize_all(
        self,
        summarizer: Summarizer,
        conversation: Conversation,
        compressed: CompressedHistory,
    ) -> tuple[int, int]:
        """First run: summarize the whole conversation in one call.

        Returns:
            Tuple of (summarizer_calls, summarized_turns).
        """
        if len(conversation) == 0:
            return 0, 0

        summary = summarizer.summarize_conversation(conversation, SUMMARIZE_CHAT_PROMPT)

        merged = merge_system_messages(summary.messages, conversation.system_messages())
        compressed.conversation.replace_messages(merged)
        compressed.source_ids.update(m.id for m in conversation)
        return 1, len(group_turns(split_system(conversation)[1]))

    def _summarize_missing(
        self,
        summarizer: Summarizer,
        conversation: Conversation,
        compressed: CompressedHistory,
    ) -> tuple[int, int]:
        """Later runs: add messages the history has not seen yet.

        Changes are staged and committed only once every summarizer call
        has succeeded.

        Returns:
            Tuple of (summarizer_calls, summarized_messages).
        """
        staged: list[Message] = []

        for message in conversation:
            if compressed.covers(message.id) or message.role == MessageRole.SYSTEM:
                continue

            if message.text is not None:
                text = summarizer.summarize_text(message.text, SUMMARIZE_CHAT_PROMPT)
                summary = message.clone()
                summary.set_text(text)
                staged.append(summary)
            else:
                logger.debug("Skipping non-text %s message %s", message.role, message.id)

        merged = merge_system_messages(
            compressed.conversation.messages, conversation.system_messages()
        )
        compressed.conversation.replace_messages(merged + staged)

        return len(staged), len(staged)


class CutMiddlePolicy:
    """Keep the head and tail of the conversation, eliding the middle.

    Extension point: the opening messages (task framing) and the most
    recent turns would be kept while the middle is elided or summarized.
    No implementation ships; selecting it raises
    UnimplementedStrategyError.
    """

    strategy = ContextStrategy.CUT_MIDDLE

    def __init__(
        self,
        accountant: TokenAccountant,
        summarizer: Summarizer | None = None,
    ) -> None:
        self.accountant = accountant
        self.summarizer = summarizer

    def apply(
        self,
        conversation: Conversation,
        budget: Budget,
        compressed: CompressedHistory | None = None,
    ) -> CompactionResult:
        raise UnimplementedStrategyError(self.strategy.value)


class MemoryBlocksPolicy:
    """Organize history into memory blocks.

    Extension point with no implementation; selecting it raises
    UnimplementedStrategyError.
    """

    strategy = ContextStrategy.MEMORY_BLOCKS

    def __init__(
        self,
        accountant: TokenAccountant,
        summarizer: Summarizer | None = None,
    ) -> None:
        self.accountant = accountant
        self.summarizer = summarizer

    def apply(
        self,
        conversation: Conversation,
        budget: Budget,
        compressed: CompressedHistory | None = None,
    ) -> CompactionResult:
        raise UnimplementedStrategyError(self.strategy.value)
