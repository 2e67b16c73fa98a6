"""Base classes and abstract interfaces for RAG components."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .document import Chunk, Document, RetrievalMatch


class BaseEmbedding(ABC):
    """Abstract base class for embedding models.

    Embedding models convert text into dense vectors of a fixed dimension.
    Implementations raise ``EmbeddingUnavailable`` on provider errors.
    """

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Embed a single text.

        Args:
            text: Text to embed

        Returns:
            Embedding vector of length ``dimension``
        """
        pass

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed a list of texts, one call per text unless overridden."""
        return [await self.embed(text) for text in texts]

    async def embed_query(self, text: str) -> list[float]:
        """Embed a search query."""
        return await self.embed(text)

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Return the dimension of the embedding vectors."""
        pass


class BaseVectorIndex(ABC):
    """Abstract base class for vector indexes.

    Vector indexes persist chunk vectors with their metadata and answer
    nearest-neighbour queries. Implementations raise ``IndexUnavailable``
    on backend errors and ``DimensionMismatchError`` when vectors of a
    different dimension are mixed into one index.
    """

    @abstractmethod
    async def upsert(
        self,
        id: str,
        vector: list[float],
        metadata: dict[str, Any],
    ) -> None:
        """Insert or replace a vector.

        Args:
            id: Chunk ID
            vector: Embedding vector
            metadata: Metadata stored with the vector (must include ``content``)
        """
        pass

    @abstractmethod
    async def delete(self, id: str) -> bool:
        """Delete a vector by ID.

        Args:
            id: Chunk ID

        Returns:
            True if a vector was removed
        """
        pass

    @abstractmethod
    async def query(
        self,
        vector: list[float],
        top_k: int = 5,
    ) -> list["RetrievalMatch"]:
        """Find the nearest vectors.

        Args:
            vector: Query vector
            top_k: Number of matches to return

        Returns:
            Matches sorted by descending similarity; empty if the index is empty
        """
        pass

    @abstractmethod
    async def list_ids(self, where: Optional[dict[str, Any]] = None) -> list[str]:
        """List IDs whose metadata matches every key/value in ``where``."""
        pass

    @abstractmethod
    async def count(self) -> int:
        """Return the number of vectors in the index."""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Remove every vector from the index."""
        pass


class BaseChunker(ABC):
    """Abstract base class for document chunkers.

    Chunkers split documents into smaller pieces for indexing.
    """

    @abstractmethod
    def chunk(self, document: "Document") -> list["Chunk"]:
        """Split a document into chunks.

        Args:
            document: Document to chunk

        Returns:
            List of chunks
        """
        pass


class BaseDocumentSource(ABC):
    """Abstract producer of raw document text."""

    @abstractmethod
    async def load(self) -> tuple[str, dict[str, str]]:
        """Return the raw text and source metadata."""
        pass
