"""
Completion providers module.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pyragent.exceptions import ConfigError
from pyragent.providers.anthropic import AnthropicCompletion
from pyragent.providers.base import CompletionProvider
from pyragent.providers.openai import OpenAICompletion

if TYPE_CHECKING:
    from pyragent.utils.config import CompletionConfig


def create_completion(config: "CompletionConfig") -> CompletionProvider:
    """Build the completion provider named by ``config.provider``."""
    kwargs = {
        "model": config.model,
        "api_key": config.api_key,
        "base_url": config.base_url,
        "temperature": config.temperature,
        "max_tokens": config.max_tokens,
    }
    if config.provider == "openai":
        return OpenAICompletion(**kwargs)
    if config.provider == "anthropic":
        return AnthropicCompletion(**kwargs)
    raise ConfigError(f"Unknown completion provider: {config.provider}")


__all__ = [
    "CompletionProvider",
    "OpenAICompletion",
    "AnthropicCompletion",
    "create_completion",
]
