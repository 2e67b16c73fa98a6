"""Tests for completion providers and the OpenAI embedding adapter."""

from types import SimpleNamespace

import httpx
import pytest

from pyragent.exceptions import (
    CompletionUnavailable,
    ConfigError,
    ContentFiltered,
    EmbeddingUnavailable,
    ProviderRequestError,
    RateLimited,
)
from pyragent.providers import AnthropicCompletion, OpenAICompletion, create_completion
from pyragent.providers.openai import _retry_after
from pyragent.rag import OpenAIEmbedding
from pyragent.utils import retry_async
from pyragent.utils.config import CompletionConfig

REQUEST = httpx.Request("POST", "https://api.example.com/v1/messages")


def _raising(error):
    async def create(**kwargs):
        raise error

    return create


def _openai_client(create):
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


def _openai_response(content="Hello", finish_reason="stop"):
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message, finish_reason=finish_reason)])


def _anthropic_client(create):
    return SimpleNamespace(messages=SimpleNamespace(create=create))


class TestRetryAfter:
    def test_reads_seconds(self):
        assert _retry_after(httpx.Headers({"retry-after": "3"})) == 3.0

    def test_missing_or_invalid(self):
        assert _retry_after(None) is None
        assert _retry_after({"retry-after": "soon"}) is None


class TestCreateCompletion:
    def test_openai(self):
        provider = create_completion(CompletionConfig(provider="openai", model="gpt-4o", max_tokens=50))
        assert isinstance(provider, OpenAICompletion)
        assert provider.model == "gpt-4o"
        assert provider.max_tokens == 50

    def test_anthropic(self):
        provider = create_completion(CompletionConfig(provider="anthropic", model="claude-3-5-haiku-latest"))
        assert isinstance(provider, AnthropicCompletion)

    def test_unknown_provider(self):
        config = CompletionConfig.model_construct(provider="unknown")
        with pytest.raises(ConfigError):
            create_completion(config)


class TestOpenAICompletion:
    @pytest.fixture(autouse=True)
    def _openai(self):
        return pytest.importorskip("openai")

    @pytest.mark.asyncio
    async def test_complete(self):
        captured = {}

        async def create(**kwargs):
            captured.update(kwargs)
            return _openai_response("Paris")

        provider = OpenAICompletion(model="gpt-4o-mini", temperature=0.2, client=_openai_client(create))

        assert await provider.complete("Capital of France?") == "Paris"
        assert captured["model"] == "gpt-4o-mini"
        assert captured["temperature"] == 0.2
        assert captured["messages"] == [{"role": "user", "content": "Capital of France?"}]

    @pytest.mark.asyncio
    async def test_rate_limited(self, _openai):
        response = httpx.Response(429, headers={"retry-after": "4"}, request=REQUEST)
        error = _openai.RateLimitError("slow down", response=response, body=None)
        provider = OpenAICompletion(client=_openai_client(_raising(error)))

        with pytest.raises(RateLimited) as exc_info:
            await provider.complete("hi")
        assert exc_info.value.retry_after == 4.0
        assert exc_info.value.__cause__ is error

    @pytest.mark.asyncio
    async def test_content_filter_error_code(self, _openai):
        response = httpx.Response(400, request=REQUEST)
        error = _openai.BadRequestError(
            "filtered", response=response, body={"code": "content_filter", "message": "filtered"}
        )
        provider = OpenAICompletion(client=_openai_client(_raising(error)))

        with pytest.raises(ContentFiltered):
            await provider.complete("hi")

    @pytest.mark.asyncio
    async def test_content_filter_finish_reason(self):
        async def create(**kwargs):
            return _openai_response(None, finish_reason="content_filter")

        with pytest.raises(ContentFiltered):
            await OpenAICompletion(client=_openai_client(create)).complete("hi")

    @pytest.mark.asyncio
    async def test_connection_error(self, _openai):
        error = _openai.APIConnectionError(request=REQUEST)
        provider = OpenAICompletion(client=_openai_client(_raising(error)))

        with pytest.raises(CompletionUnavailable) as exc_info:
            await provider.complete("hi")
        assert exc_info.value.retryable is True

    @pytest.mark.asyncio
    async def test_server_error(self, _openai):
        response = httpx.Response(500, request=REQUEST)
        error = _openai.InternalServerError("boom", response=response, body=None)

        with pytest.raises(CompletionUnavailable):
            await OpenAICompletion(client=_openai_client(_raising(error))).complete("hi")

    @pytest.mark.asyncio
    async def test_rejected_request_not_retried(self, _openai):
        calls = []

        async def create(**kwargs):
            calls.append(kwargs)
            response = httpx.Response(401, request=REQUEST)
            raise _openai.AuthenticationError("bad key", response=response, body=None)

        provider = OpenAICompletion(client=_openai_client(create))

        with pytest.raises(ProviderRequestError) as exc_info:
            await retry_async(provider.complete, "hi", base_delay=0.0)
        assert exc_info.value.status_code == 401
        assert exc_info.value.retryable is False
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_unknown_model(self, _openai):
        response = httpx.Response(404, request=REQUEST)
        error = _openai.NotFoundError("no such model", response=response, body=None)

        with pytest.raises(ProviderRequestError) as exc_info:
            await OpenAICompletion(client=_openai_client(_raising(error))).complete("hi")
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_conflict_is_transient(self, _openai):
        response = httpx.Response(409, request=REQUEST)
        error = _openai.ConflictError("busy", response=response, body=None)

        with pytest.raises(CompletionUnavailable):
            await OpenAICompletion(client=_openai_client(_raising(error))).complete("hi")


class TestAnthropicCompletion:
    @pytest.fixture(autouse=True)
    def _anthropic(self):
        return pytest.importorskip("anthropic")

    @pytest.mark.asyncio
    async def test_complete_joins_text_blocks(self):
        async def create(**kwargs):
            return SimpleNamespace(
                stop_reason="end_turn",
                content=[
                    SimpleNamespace(type="text", text="Hello "),
                    SimpleNamespace(type="tool_use", name="ignored"),
                    SimpleNamespace(type="text", text="world"),
                ],
            )

        assert await AnthropicCompletion(client=_anthropic_client(create)).complete("hi") == "Hello world"

    @pytest.mark.asyncio
    async def test_refusal(self):
        async def create(**kwargs):
            return SimpleNamespace(stop_reason="refusal", content=[])

        with pytest.raises(ContentFiltered):
            await AnthropicCompletion(client=_anthropic_client(create)).complete("hi")

    @pytest.mark.asyncio
    async def test_rate_limited(self, _anthropic):
        response = httpx.Response(429, headers={"retry-after": "2"}, request=REQUEST)
        error = _anthropic.RateLimitError("slow down", response=response, body=None)

        with pytest.raises(RateLimited) as exc_info:
            await AnthropicCompletion(client=_anthropic_client(_raising(error))).complete("hi")
        assert exc_info.value.retry_after == 2.0

    @pytest.mark.asyncio
    async def test_connection_error(self, _anthropic):
        error = _anthropic.APIConnectionError(request=REQUEST)

        with pytest.raises(CompletionUnavailable):
            await AnthropicCompletion(client=_anthropic_client(_raising(error))).complete("hi")

    @pytest.mark.asyncio
    async def test_rejected_request(self, _anthropic):
        response = httpx.Response(401, request=REQUEST)
        error = _anthropic.AuthenticationError("bad key", response=response, body=None)

        with pytest.raises(ProviderRequestError) as exc_info:
            await AnthropicCompletion(client=_anthropic_client(_raising(error))).complete("hi")
        assert exc_info.value.status_code == 401
        assert exc_info.value.retryable is False

    @pytest.mark.asyncio
    async def test_server_error(self, _anthropic):
        response = httpx.Response(529, request=REQUEST)
        error = _anthropic.APIStatusError("overloaded", response=response, body=None)

        with pytest.raises(CompletionUnavailable):
            await AnthropicCompletion(client=_anthropic_client(_raising(error))).complete("hi")


class TestOpenAIEmbedding:
    @pytest.mark.asyncio
    async def test_batched_embed_documents(self):
        batches = []

        async def create(model, input):
            batches.append(list(input))
            return SimpleNamespace(data=[SimpleNamespace(embedding=[float(len(t))]) for t in input])

        client = SimpleNamespace(embeddings=SimpleNamespace(create=create))
        embedding = OpenAIEmbedding(batch_size=2, client=client)

        vectors = await embedding.embed_documents(["a", "bb", "ccc", "dddd", "eeeee"])

        assert vectors == [[1.0], [2.0], [3.0], [4.0], [5.0]]
        assert batches == [["a", "bb"], ["ccc", "dddd"], ["eeeee"]]
        assert embedding.dimension == 1536

    @pytest.mark.asyncio
    async def test_errors_become_embedding_unavailable(self):
        async def create(model, input):
            raise RuntimeError("network down")

        client = SimpleNamespace(embeddings=SimpleNamespace(create=create))

        with pytest.raises(EmbeddingUnavailable):
            await OpenAIEmbedding(client=client).embed("text")

    @pytest.mark.asyncio
    async def test_dimension_override_sent_to_api(self):
        requests = []

        async def create(**kwargs):
            requests.append(kwargs)
            return SimpleNamespace(data=[SimpleNamespace(embedding=[0.0] * 256)])

        client = SimpleNamespace(embeddings=SimpleNamespace(create=create))
        embedding = OpenAIEmbedding(model="text-embedding-3-large", dimension=256, client=client)

        assert len(await embedding.embed("text")) == 256
        assert embedding.dimension == 256
        assert requests == [{"model": "text-embedding-3-large", "input": ["text"], "dimensions": 256}]

    def test_invalid_dimension(self):
        with pytest.raises(ConfigError):
            OpenAIEmbedding(dimension=0)

    @pytest.mark.asyncio
    async def test_rejected_request(self):
        _openai = pytest.importorskip("openai")
        response = httpx.Response(400, request=REQUEST)
        error = _openai.BadRequestError("dimensions not supported", response=response, body=None)
        client = SimpleNamespace(embeddings=SimpleNamespace(create=_raising(error)))

        with pytest.raises(ProviderRequestError) as exc_info:
            await OpenAIEmbedding(dimension=64, client=client).embed("text")
        assert exc_info.value.status_code == 400
