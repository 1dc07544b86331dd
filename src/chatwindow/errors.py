"""Error types for context-window management."""


class ContextWindowError(Exception):
    """Base error for chatwindow."""


class ConfigurationError(ContextWindowError, ValueError):
    """Invalid budget or configuration, rejected before any work is done."""


class CapabilityUnavailableError(ContextWindowError):
    """A required capability (token counter or summarizer) is not wired up."""


class CapabilityFailureError(ContextWindowError):
    """A wired capability was called and failed."""


class SummarizationError(CapabilityFailureError):
    """The summarizer failed to produce a summary."""


class TokenCountError(CapabilityFailureError):
    """The token counter failed to count a piece of text."""


class UnimplementedStrategyError(ContextWindowError, NotImplementedError):
    """The selected context strategy is an extension point with no implementation."""

    def __init__(self, strategy: str) -> None:
        """Initialize the error.

        Args:
            strategy: Name of the strategy that was selected.
        """
        super().__init__(f"Context strategy '{strategy}' is not implemented")
        self.strategy = strategy
