"""
Test configuration and fixtures.
"""

import asyncio
from typing import Any, Optional

import pytest

from pyragent.exceptions import EmbeddingUnavailable
from pyragent.providers.base import CompletionProvider
from pyragent.rag import FakeEmbedding, MemoryVectorIndex, RAGPipeline
from pyragent.rag.base import BaseEmbedding


class ScriptedCompletion(CompletionProvider):
    """Completion provider that replays canned replies and records prompts.

    Each reply may be a string, an exception (raised), or a callable taking
    the prompt. When the script runs out, ``default`` is returned.
    """

    def __init__(self, replies: Optional[list[Any]] = None, default: str = "scripted answer"):
        self.replies = list(replies or [])
        self.default = default
        self.prompts: list[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.replies:
            return self.default
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        if callable(reply):
            return reply(prompt)
        return reply


class SlowCompletion(CompletionProvider):
    """Completion provider that blocks until released."""

    def __init__(self, delay: float = 10.0):
        self.delay = delay
        self.started = asyncio.Event()
        self.cancelled = False

    async def complete(self, prompt: str) -> str:
        self.started.set()
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return "too late"


class FailingEmbedding(BaseEmbedding):
    """Embedding that fails on the ``fail_on``-th call (1-based)."""

    def __init__(self, fail_on: int, dimension: int = 32):
        self.inner = FakeEmbedding(dimension=dimension)
        self.fail_on = fail_on
        self.calls = 0

    @property
    def dimension(self) -> int:
        return self.inner.dimension

    async def embed(self, text: str) -> list[float]:
        self.calls += 1
        if self.calls == self.fail_on:
            raise EmbeddingUnavailable(f"embedding failed on call {self.calls}")
        return await self.inner.embed(text)


class CountingIndex(MemoryVectorIndex):
    """Memory index that counts port calls."""

    def __init__(self, dimension: Optional[int] = None):
        super().__init__(dimension)
        self.upserts = 0
        self.deletes = 0
        self.queries = 0

    async def upsert(self, id, vector, metadata):
        self.upserts += 1
        await super().upsert(id, vector, metadata)

    async def delete(self, id):
        self.deletes += 1
        return await super().delete(id)

    async def query(self, vector, top_k=5):
        self.queries += 1
        return await super().query(vector, top_k)


@pytest.fixture
def embedding():
    """Deterministic offline embedding."""
    return FakeEmbedding(dimension=64)


@pytest.fixture
def index():
    """Empty in-memory vector index."""
    return CountingIndex()


@pytest.fixture
def completion():
    """Scripted completion provider with no canned replies."""
    return ScriptedCompletion()


@pytest.fixture
def pipeline(embedding, index, completion):
    """Pipeline over the fake embedding, memory index and scripted completion."""
    return RAGPipeline(embedding=embedding, index=index, completion=completion)


@pytest.fixture
def sample_documents():
    """A few small documents about programming languages."""
    from pyragent.rag import Document

    return [
        Document(
            id="python",
            content="Python is a programming language created by Guido van Rossum.",
            metadata={"title": "Python"},
        ),
        Document(
            id="rust",
            content="Rust is a systems programming language focused on memory safety.",
            metadata={"title": "Rust"},
        ),
        Document(
            id="cooking",
            content="Risotto is cooked slowly with stock and parmesan cheese.",
            metadata={"title": "Risotto"},
        ),
    ]
