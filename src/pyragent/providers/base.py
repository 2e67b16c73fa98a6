"""
Base completion provider interface.
"""

from abc import ABC, abstractmethod


class CompletionProvider(ABC):
    """
    Abstract base class for language-model completion providers.

    A provider turns one prompt into one completion. Implementations raise
    ``CompletionUnavailable``, ``RateLimited`` or ``ContentFiltered`` and
    never retry internally.
    """

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """
        Get a completion for a single prompt.

        Args:
            prompt: Full prompt text

        Returns:
            The generated text
        """
        pass

    def count_tokens(self, text: str) -> int:
        """Estimate token count for text (simple implementation)."""
        # Simple estimation: ~4 characters per token
        return len(text) // 4
