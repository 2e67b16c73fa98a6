"""
Anthropic Claude completion provider.
"""

from typing import Any

from pyragent.exceptions import (
    CompletionUnavailable,
    ContentFiltered,
    ProviderRequestError,
    RateLimited,
)
from pyragent.providers.base import CompletionProvider
from pyragent.providers.openai import _is_permanent, _retry_after


class AnthropicCompletion(CompletionProvider):
    """
    Completion provider for the Anthropic messages API.
    """

    def __init__(
        self,
        model: str = "claude-3-5-sonnet-20241022",
        api_key: str | None = None,
        base_url: str | None = None,
        temperature: float = 0.0,
        max_tokens: int = 1024,
        client: Any = None,
    ):
        self.model = model
        self.api_key = api_key
        self.base_url = base_url
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = client

    def _get_client(self):
        """Get or create Anthropic client."""
        if self._client is None:
            try:
                from anthropic import AsyncAnthropic
            except ImportError:
                raise ImportError(
                    "anthropic package not installed. "
                    "Install with: pip install pyragent[anthropic]"
                )

            self._client = AsyncAnthropic(
                api_key=self.api_key,
                base_url=self.base_url
            )
        return self._client

    async def complete(self, prompt: str) -> str:
        """Get a completion from Anthropic."""
        import anthropic

        client = self._get_client()

        try:
            response = await client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.RateLimitError as e:
            raise RateLimited(str(e), retry_after=_retry_after(e.response.headers)) from e
        except anthropic.APIStatusError as e:
            if _is_permanent(e.status_code):
                raise ProviderRequestError(
                    f"Anthropic rejected the request: {e}", status_code=e.status_code
                ) from e
            raise CompletionUnavailable(f"Anthropic request failed: {e}") from e
        except anthropic.AnthropicError as e:
            raise CompletionUnavailable(f"Anthropic request failed: {e}") from e

        if response.stop_reason == "refusal":
            raise ContentFiltered("Anthropic model refused to answer")

        # Concatenate text blocks
        return "".join(
            block.text for block in response.content
            if getattr(block, "type", None) == "text"
        )
