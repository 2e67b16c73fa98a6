"""Embedding model implementations."""

from __future__ import annotations

import asyncio
import hashlib
import logging
import math
import re
from typing import TYPE_CHECKING, Optional

from ..exceptions import ConfigError, EmbeddingUnavailable, ProviderRequestError
from ..providers.openai import _is_permanent
from .base import BaseEmbedding

if TYPE_CHECKING:
    from pyragent.utils.config import EmbeddingConfig

logger = logging.getLogger(__name__)


class FakeEmbedding(BaseEmbedding):
    """Fake embedding that generates deterministic embeddings from text.

    Each word is hashed into one of ``dimension`` buckets and the bucket
    counts are L2-normalised, so texts sharing words score closer under
    cosine similarity. Useful for tests and offline runs.
    """

    def __init__(self, dimension: int = 384, seed: int = 42):
        """Initialize the fake embedding.

        Args:
            dimension: Dimension of the embedding vectors
            seed: Seed mixed into the token hash
        """
        if dimension <= 0:
            raise ConfigError("Embedding dimension must be positive")
        self._dimension = dimension
        self.seed = seed

    @property
    def dimension(self) -> int:
        return self._dimension

    def _hash_text(self, text: str) -> list[float]:
        """Generate a deterministic embedding from hashed tokens."""
        vector = [0.0] * self._dimension
        for token in re.findall(r"\w+", text.lower()):
            digest = hashlib.sha256(f"{self.seed}:{token}".encode()).digest()
            vector[int.from_bytes(digest[:4], "big") % self._dimension] += 1.0

        norm = math.sqrt(sum(v * v for v in vector))
        if norm == 0:
            return vector
        return [v / norm for v in vector]

    async def embed(self, text: str) -> list[float]:
        return self._hash_text(text)


class OpenAIEmbedding(BaseEmbedding):
    """OpenAI embedding model.

    Uses OpenAI's embedding API (text-embedding-3-small/large).

    Note: Requires the 'openai' extra to be installed.
    """

    # Known model dimensions
    MODEL_DIMENSIONS = {
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
        "text-embedding-ada-002": 1536,
    }

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        batch_size: int = 100,
        dimension: Optional[int] = None,
        client=None,
    ):
        """Initialize the OpenAI embedding model.

        Args:
            model: Model name (text-embedding-3-small, text-embedding-3-large)
            api_key: OpenAI API key (optional, uses env var if not provided)
            base_url: Optional base URL for API
            batch_size: Batch size for embedding documents
            dimension: Output dimension, sent as ``dimensions`` to the API.
                If None the model's native size is used.
            client: Preconfigured ``AsyncOpenAI`` client (optional)
        """
        if dimension is not None and dimension <= 0:
            raise ConfigError("Embedding dimension must be positive")
        self.model = model
        self.api_key = api_key
        self.base_url = base_url
        self.batch_size = batch_size
        self._dimension = dimension
        self._client = client

    @property
    def dimension(self) -> int:
        if self._dimension is not None:
            return self._dimension
        # Best guess for unlisted models; the index pins the real size on first upsert
        return self.MODEL_DIMENSIONS.get(self.model, 1536)

    def _get_client(self):
        """Get or create the OpenAI client."""
        if self._client is None:
            try:
                from openai import AsyncOpenAI
            except ImportError:
                raise ImportError(
                    "OpenAI embedding requires the 'openai' package. "
                    "Install it with: pip install pyragent[openai]"
                )

            kwargs = {}
            if self.api_key:
                kwargs["api_key"] = self.api_key
            if self.base_url:
                kwargs["base_url"] = self.base_url

            self._client = AsyncOpenAI(**kwargs)
        return self._client

    async def _create(self, inputs: list[str]) -> list[list[float]]:
        client = self._get_client()
        kwargs = {"model": self.model, "input": inputs}
        if self._dimension is not None:
            kwargs["dimensions"] = self._dimension
        try:
            response = await client.embeddings.create(**kwargs)
        except Exception as e:
            status_code = getattr(e, "status_code", None)
            if _is_permanent(status_code):
                raise ProviderRequestError(
                    f"OpenAI rejected the embedding request: {e}", status_code=status_code
                ) from e
            raise EmbeddingUnavailable(f"OpenAI embedding request failed: {e}") from e
        return [item.embedding for item in response.data]

    async def embed(self, text: str) -> list[float]:
        """Embed a single text using OpenAI API."""
        return (await self._create([text]))[0]

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed a list of documents using OpenAI API."""
        all_embeddings = []

        # Process in batches
        for i in range(0, len(texts), self.batch_size):
            all_embeddings.extend(await self._create(texts[i : i + self.batch_size]))

        return all_embeddings


class LocalEmbedding(BaseEmbedding):
    """Local embedding model using sentence-transformers.

    Uses HuggingFace sentence-transformers models locally.
    No API calls required, runs entirely on the local machine.

    Note: Requires the 'vector' extra to be installed.
    """

    # Known model dimensions
    MODEL_DIMENSIONS = {
        "all-MiniLM-L6-v2": 384,
        "all-mpnet-base-v2": 768,
        "paraphrase-multilingual-MiniLM-L12-v2": 384,
        "multi-qa-mpnet-base-dot-v1": 768,
    }

    def __init__(
        self,
        model_name: str = "all-MiniLM-L6-v2",
        device: Optional[str] = None,
        normalize: bool = True,
        dimension: Optional[int] = None,
    ):
        """Initialize the local embedding model.

        Args:
            model_name: Name of the sentence-transformers model
            device: Device to run on (cuda, cpu, mps). Auto-detected if None.
            normalize: Whether to normalize embeddings
            dimension: Known output dimension of the model (optional)
        """
        self.model_name = model_name
        self.device = device
        self.normalize = normalize
        self._dimension = dimension
        self._model = None

    @property
    def dimension(self) -> int:
        if self._model is not None:
            return self._model.get_sentence_embedding_dimension()
        if self._dimension is not None:
            return self._dimension
        return self.MODEL_DIMENSIONS.get(self.model_name, 384)

    def _get_model(self):
        """Get or load the sentence-transformers model."""
        if self._model is None:
            try:
                from sentence_transformers import SentenceTransformer
            except ImportError:
                raise ImportError(
                    "Local embedding requires 'sentence-transformers'. "
                    "Install it with: pip install pyragent[vector]"
                )

            try:
                self._model = SentenceTransformer(self.model_name, device=self.device)
            except Exception as e:
                raise EmbeddingUnavailable(
                    f"Could not load embedding model {self.model_name}: {e}"
                ) from e
            logger.info(f"Loaded embedding model: {self.model_name}")
        return self._model

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed a list of documents using local model."""
        model = self._get_model()

        # Run in thread pool to avoid blocking
        loop = asyncio.get_event_loop()
        try:
            embeddings = await loop.run_in_executor(
                None,
                lambda: model.encode(
                    texts,
                    normalize_embeddings=self.normalize,
                    convert_to_numpy=True,
                ),
            )
        except Exception as e:
            raise EmbeddingUnavailable(f"Local embedding failed: {e}") from e

        return embeddings.tolist()

    async def embed(self, text: str) -> list[float]:
        """Embed a single text using local model."""
        embeddings = await self.embed_documents([text])
        return embeddings[0]


def create_embedding(config: "EmbeddingConfig") -> BaseEmbedding:
    """Build the embedding backend named by ``config.provider``."""
    if config.provider == "fake":
        return FakeEmbedding(dimension=config.dimension or 384)
    if config.provider == "openai":
        return OpenAIEmbedding(
            model=config.model or "text-embedding-3-small",
            api_key=config.api_key,
            base_url=config.base_url,
            batch_size=config.batch_size,
            dimension=config.dimension,
        )
    if config.provider == "local":
        return LocalEmbedding(
            model_name=config.model or "all-MiniLM-L6-v2",
            dimension=config.dimension,
        )
    raise ConfigError(f"Unknown embedding provider: {config.provider}")
