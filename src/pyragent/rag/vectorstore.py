"""Vector index implementations."""

from __future__ import annotations

import asyncio
import logging
import math
from typing import TYPE_CHECKING, Any, Optional

from ..exceptions import ConfigError, DimensionMismatchError, IndexUnavailable
from .base import BaseVectorIndex
from .document import RetrievalMatch

if TYPE_CHECKING:
    from pyragent.utils.config import VectorStoreConfig

logger = logging.getLogger(__name__)


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Calculate cosine similarity between two vectors."""
    if len(a) != len(b):
        raise ValueError("Vectors must have the same dimension")

    dot_product = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(x * x for x in b))

    if norm_a == 0 or norm_b == 0:
        return 0.0

    return dot_product / (norm_a * norm_b)


def _to_score(similarity: float) -> float:
    """Clamp a similarity into [0, 1]."""
    return max(0.0, min(1.0, similarity))


class MemoryVectorIndex(BaseVectorIndex):
    """In-memory vector index for testing and small datasets.

    Stores all vectors in memory and performs exact cosine search.
    The dimension is fixed at construction or by the first upsert.
    Not suitable for large-scale production use.
    """

    def __init__(self, dimension: Optional[int] = None) -> None:
        """Initialize the memory vector index.

        Args:
            dimension: Expected vector dimension (pinned on first upsert if None)
        """
        self.dimension = dimension
        self._vectors: dict[str, list[float]] = {}
        self._metadata: dict[str, dict[str, Any]] = {}

    def _check_dimension(self, vector: list[float]) -> None:
        if self.dimension is None:
            self.dimension = len(vector)
        elif len(vector) != self.dimension:
            raise DimensionMismatchError(self.dimension, len(vector))

    async def upsert(
        self,
        id: str,
        vector: list[float],
        metadata: dict[str, Any],
    ) -> None:
        """Insert or replace a vector."""
        self._check_dimension(vector)
        self._vectors[id] = list(vector)
        self._metadata[id] = dict(metadata)

    async def query(
        self,
        vector: list[float],
        top_k: int = 5,
    ) -> list[RetrievalMatch]:
        """Search for similar vectors using cosine similarity."""
        if not self._vectors:
            return []
        self._check_dimension(vector)

        similarities = [
            (id, cosine_similarity(vector, stored))
            for id, stored in self._vectors.items()
        ]

        # Sort by score (descending)
        similarities.sort(key=lambda x: x[1], reverse=True)

        return [
            RetrievalMatch(
                chunk_id=id,
                content=str(self._metadata[id].get("content", "")),
                score=_to_score(score),
                metadata=dict(self._metadata[id]),
            )
            for id, score in similarities[:top_k]
        ]

    def _matches_filter(self, metadata: dict[str, Any], where: dict[str, Any]) -> bool:
        """Check if metadata matches the filter criteria."""
        for key, value in where.items():
            if key not in metadata:
                return False
            if metadata[key] != value:
                return False
        return True

    async def list_ids(self, where: Optional[dict[str, Any]] = None) -> list[str]:
        if not where:
            return list(self._vectors)
        return [
            id for id, metadata in self._metadata.items()
            if self._matches_filter(metadata, where)
        ]

    async def delete(self, id: str) -> bool:
        """Delete a vector by its ID."""
        self._metadata.pop(id, None)
        return self._vectors.pop(id, None) is not None

    async def count(self) -> int:
        """Return the number of vectors."""
        return len(self._vectors)

    async def clear(self) -> None:
        """Clear all vectors."""
        self._vectors.clear()
        self._metadata.clear()


class ChromaVectorIndex(BaseVectorIndex):
    """ChromaDB vector index implementation.

    Uses ChromaDB with cosine space for persistent vector storage.
    Requires the 'vector' extra to be installed.
    """

    def __init__(
        self,
        collection_name: str = "pyragent",
        persist_directory: Optional[str] = None,
        dimension: Optional[int] = None,
        client=None,
    ):
        """Initialize the ChromaDB vector index.

        Args:
            collection_name: Name of the ChromaDB collection
            persist_directory: Directory for persistent storage (None for in-memory)
            dimension: Expected vector dimension (pinned on first upsert if None)
            client: Preconfigured ChromaDB client (optional)
        """
        self.collection_name = collection_name
        self.persist_directory = persist_directory
        self.dimension = dimension
        self._client = client
        self._collection = None

    def _get_client(self):
        """Get or create the ChromaDB client."""
        if self._client is None:
            try:
                import chromadb
            except ImportError:
                raise ImportError(
                    "ChromaDB vector index requires 'chromadb'. "
                    "Install it with: pip install pyragent[vector]"
                )

            if self.persist_directory:
                self._client = chromadb.PersistentClient(path=self.persist_directory)
            else:
                self._client = chromadb.Client()
        return self._client

    def _get_collection(self):
        """Get or create the collection."""
        if self._collection is None:
            client = self._get_client()
            self._collection = client.get_or_create_collection(
                name=self.collection_name,
                metadata={"hnsw:space": "cosine"},
            )
        return self._collection

    async def _run(self, operation: str, func):
        """Run a blocking collection call in a thread, mapping backend errors."""
        loop = asyncio.get_event_loop()
        try:
            return await loop.run_in_executor(None, func)
        except ImportError:
            raise
        except Exception as e:
            raise IndexUnavailable(f"ChromaDB {operation} failed: {e}") from e

    def _check_dimension(self, vector: list[float]) -> None:
        if self.dimension is None:
            self.dimension = len(vector)
        elif len(vector) != self.dimension:
            raise DimensionMismatchError(self.dimension, len(vector))

    @staticmethod
    def _where(where: dict[str, Any]) -> dict[str, Any]:
        if len(where) == 1:
            return dict(where)
        return {"$and": [{key: value} for key, value in where.items()]}

    async def upsert(
        self,
        id: str,
        vector: list[float],
        metadata: dict[str, Any],
    ) -> None:
        """Insert or replace a vector in ChromaDB."""
        self._check_dimension(vector)
        # Chroma metadata values must be scalars
        clean = {k: v for k, v in metadata.items() if isinstance(v, (str, int, float, bool))}

        await self._run(
            "upsert",
            lambda: self._get_collection().upsert(
                ids=[id],
                embeddings=[vector],
                metadatas=[clean],
                documents=[str(metadata.get("content", ""))],
            ),
        )

    async def query(
        self,
        vector: list[float],
        top_k: int = 5,
    ) -> list[RetrievalMatch]:
        """Search for similar vectors in ChromaDB."""
        total = await self.count()
        if total == 0:
            return []
        self._check_dimension(vector)

        results = await self._run(
            "query",
            lambda: self._get_collection().query(
                query_embeddings=[vector],
                n_results=min(top_k, total),
                include=["documents", "metadatas", "distances"],
            ),
        )

        matches = []
        if results and results["ids"] and results["ids"][0]:
            for i, chunk_id in enumerate(results["ids"][0]):
                metadata = dict(results["metadatas"][0][i] or {}) if results["metadatas"] else {}
                content = results["documents"][0][i] if results["documents"] else ""
                # ChromaDB returns cosine distance, convert to similarity
                distance = results["distances"][0][i] if results["distances"] else 1.0
                matches.append(RetrievalMatch(
                    chunk_id=chunk_id,
                    content=content or str(metadata.get("content", "")),
                    score=_to_score(1.0 - distance),
                    metadata=metadata,
                ))

        matches.sort(key=lambda m: m.score, reverse=True)
        return matches

    async def list_ids(self, where: Optional[dict[str, Any]] = None) -> list[str]:
        results = await self._run(
            "get",
            lambda: self._get_collection().get(
                where=self._where(where) if where else None,
                include=[],
            ),
        )
        return list(results["ids"]) if results else []

    async def delete(self, id: str) -> bool:
        """Delete a vector from ChromaDB."""
        existing = await self._run(
            "get", lambda: self._get_collection().get(ids=[id], include=[])
        )
        if not existing or not existing["ids"]:
            return False
        await self._run("delete", lambda: self._get_collection().delete(ids=[id]))
        return True

    async def count(self) -> int:
        """Return the number of vectors in the collection."""
        return await self._run("count", lambda: self._get_collection().count())

    async def clear(self) -> None:
        """Drop and recreate the collection."""
        client = self._get_client()
        await self._run("clear", lambda: client.delete_collection(self.collection_name))
        self._collection = None
        self.dimension = None
        logger.debug(f"Cleared ChromaDB collection '{self.collection_name}'")


def create_vector_index(
    config: "VectorStoreConfig",
    dimension: Optional[int] = None,
) -> BaseVectorIndex:
    """Build the vector index backend named by ``config.backend``."""
    if config.backend == "memory":
        return MemoryVectorIndex(dimension=dimension)
    if config.backend == "chroma":
        return ChromaVectorIndex(
            collection_name=config.collection_name,
            persist_directory=config.persist_directory,
            dimension=dimension,
        )
    raise ConfigError(f"Unknown vector store backend: {config.backend}")
