"""
OpenAI completion provider.
"""

from typing import Any

from pyragent.exceptions import (
    CompletionUnavailable,
    ContentFiltered,
    ProviderRequestError,
    RateLimited,
)
from pyragent.providers.base import CompletionProvider

# 4xx statuses that are worth retrying: request timeout, conflict, rate limit
RETRYABLE_CLIENT_STATUSES = frozenset({408, 409, 429})


def _retry_after(headers: Any) -> float | None:
    """Read a Retry-After header in seconds, if present."""
    if not headers:
        return None
    value = headers.get("retry-after")
    try:
        return float(value) if value is not None else None
    except ValueError:
        return None


def _is_permanent(status_code: int | None) -> bool:
    """Whether an HTTP status means the same request will fail again."""
    if status_code is None:
        return False
    return 400 <= status_code < 500 and status_code not in RETRYABLE_CLIENT_STATUSES


class OpenAICompletion(CompletionProvider):
    """
    Completion provider for the OpenAI chat completions API.
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
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
        """Get or create OpenAI client."""
        if self._client is None:
            try:
                from openai import AsyncOpenAI
            except ImportError:
                raise ImportError(
                    "openai package not installed. "
                    "Install with: pip install pyragent[openai]"
                )

            self._client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
            )
        return self._client

    async def complete(self, prompt: str) -> str:
        """Get a completion from OpenAI."""
        import openai

        client = self._get_client()

        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except openai.RateLimitError as e:
            raise RateLimited(str(e), retry_after=_retry_after(e.response.headers)) from e
        except openai.APIStatusError as e:
            if e.code == "content_filter":
                raise ContentFiltered(str(e)) from e
            if _is_permanent(e.status_code):
                raise ProviderRequestError(
                    f"OpenAI rejected the request: {e}", status_code=e.status_code
                ) from e
            raise CompletionUnavailable(f"OpenAI request failed: {e}") from e
        except openai.OpenAIError as e:
            raise CompletionUnavailable(f"OpenAI request failed: {e}") from e

        choice = response.choices[0]
        if choice.finish_reason == "content_filter":
            raise ContentFiltered("OpenAI response was blocked by the content filter")

        return choice.message.content or ""
